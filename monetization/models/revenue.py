from django.conf import settings
from django.db import models

from monetization.models.base import BaseModel, money_field


class Reel(BaseModel):
    """Content directory entry; the engine only needs reel -> creator."""

    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="reels",
    )
    caption = models.TextField(blank=True, default="")
    duration = models.PositiveIntegerField(default=0, help_text="Length in seconds.")
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return f"Reel {self.pk} by user={self.creator_id}"


class AdRevenueEvent(BaseModel):
    """
    One settled ad impression shown during a reel view.

    Rows are only written inside the settlement transaction, so the unique
    (reel, viewer, impression_id) triple doubles as the idempotency key.
    Rejected events are never persisted.
    """

    class AdType(models.TextChoices):
        BANNER = "banner", "Banner"
        INTERSTITIAL = "interstitial", "Interstitial"
        REWARDED = "rewarded", "Rewarded"
        NATIVE = "native", "Native"

    reel = models.ForeignKey(Reel, on_delete=models.PROTECT, related_name="ad_revenue_events")
    viewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="viewed_ad_revenue_events",
    )
    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="created_ad_revenue_events",
    )
    ad_provider = models.CharField(max_length=32)
    ad_type = models.CharField(max_length=16, choices=AdType.choices)
    # As reported by the ad source, before rounding to the ledger scale.
    revenue = money_field(max_digits=24, decimal_places=12)
    cpm = money_field()
    view_duration = models.PositiveIntegerField()
    video_duration = models.PositiveIntegerField()
    impression_id = models.CharField(max_length=128)
    is_valid_view = models.BooleanField(default=True)
    timestamp = models.DateTimeField()
    distributed_at = models.DateTimeField(null=True, blank=True)

    class Meta(BaseModel.Meta):
        constraints = [
            models.UniqueConstraint(
                fields=["reel", "viewer", "impression_id"],
                name="uq_ad_revenue_event_impression",
            ),
        ]
        indexes = [
            models.Index(fields=["ad_provider", "created_at"], name="idx_ad_event_provider"),
        ]

    def __str__(self):
        return (
            f"AdRevenueEvent {self.pk} | reel={self.reel_id} viewer={self.viewer_id} "
            f"impression={self.impression_id} | {self.revenue}"
        )


class RevenueDistribution(BaseModel):
    """
    Settled split of one AdRevenueEvent among creator, viewer and app.

    app_amount is always the remainder of total_revenue after the creator and
    viewer shares, so the three allocations sum to total_revenue exactly.
    """

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        COMPLETED = "completed", "Completed"

    ad_revenue_event = models.OneToOneField(
        AdRevenueEvent,
        on_delete=models.PROTECT,
        related_name="distribution",
    )
    total_revenue = money_field()

    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="creator_distributions",
    )
    creator_amount = money_field()
    creator_percentage = models.DecimalField(max_digits=7, decimal_places=4)

    viewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="viewer_distributions",
    )
    viewer_amount = money_field()
    viewer_percentage = models.DecimalField(max_digits=7, decimal_places=4)

    app_amount = money_field()
    app_percentage = models.DecimalField(max_digits=7, decimal_places=4)

    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
    )
    processed_at = models.DateTimeField(null=True, blank=True)
    skipped_parties = models.JSONField(
        default=list,
        blank=True,
        help_text="User ids whose share was not paid because their wallet was missing.",
    )

    def __str__(self):
        return (
            f"RevenueDistribution {self.pk} | total={self.total_revenue} "
            f"creator={self.creator_amount} viewer={self.viewer_amount} app={self.app_amount}"
        )
