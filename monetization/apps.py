from django.apps import AppConfig


class MonetizationConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "monetization"

    def ready(self):
        from monetization import signals  # noqa: F401
