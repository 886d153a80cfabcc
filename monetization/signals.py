import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

from monetization.services.wallet import WalletService

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_wallet_for_new_user(sender, instance, created, **kwargs):
    """Every account gets a zeroed wallet the moment it is created."""
    if created and not kwargs.get("raw", False):
        WalletService.create_wallet(instance.pk)
