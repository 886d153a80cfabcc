from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone

from monetization.models.base import BaseModel


class AnalyticsEvent(BaseModel):
    """
    Ledger-adjacent activity record read by reporting.

    Unlike the ledger, these rows are pruned after the retention window.
    """

    class EventType(models.TextChoices):
        AD_VIEW_SETTLED = "ad_view_settled", "Ad view settled"
        STREAK_CHECK_IN = "streak_check_in", "Streak check-in"
        REFERRAL_APPLIED = "referral_applied", "Referral applied"

    event_type = models.CharField(max_length=32, choices=EventType.choices)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="analytics_events",
    )
    reel = models.ForeignKey(
        "monetization.Reel",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="analytics_events",
    )
    payload = models.JSONField(default=dict, blank=True)

    def __str__(self):
        return f"AnalyticsEvent {self.pk} | {self.event_type} | user={self.user_id}"

    @classmethod
    def get_expired(cls, retention_days):
        """Return events older than the retention window."""
        cutoff = timezone.now() - timedelta(days=retention_days)
        return cls.objects.filter(created_at__lt=cutoff)
