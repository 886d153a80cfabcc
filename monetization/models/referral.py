from django.conf import settings
from django.db import models

from monetization.models.base import BaseModel, money_field


class ReferralCode(BaseModel):
    """
    Shareable referral code.

    Lifecycle: (no row) -> ACTIVE -> EXHAUSTED | EXPIRED. A user holds at
    most one ACTIVE code at a time.
    """

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        EXHAUSTED = "exhausted", "Exhausted"
        EXPIRED = "expired", "Expired"

    code = models.CharField(max_length=12, unique=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="referral_codes",
    )
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
    )
    total_uses = models.PositiveIntegerField(default=0)
    max_uses = models.PositiveIntegerField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)

    class Meta(BaseModel.Meta):
        constraints = [
            models.UniqueConstraint(
                fields=["user"],
                condition=models.Q(status="active"),
                name="uq_referral_code_one_active_per_user",
            ),
        ]

    def __str__(self):
        return f"ReferralCode {self.code} | user={self.user_id} | {self.status}"

    @property
    def is_active(self):
        return self.status == self.Status.ACTIVE


class ReferralRelationship(BaseModel):
    """
    Referrer -> referee link. A referee is referred at most once, ever.

    Active relationships share referrer_bonus of the referee's ad-revenue
    earnings with the referrer until the tracking window closes.
    """

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        INACTIVE = "inactive", "Inactive"
        EXPIRED = "expired", "Expired"

    referrer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="referrals_made",
    )
    referee = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="referral_relationship",
    )
    referral_code = models.ForeignKey(
        ReferralCode,
        on_delete=models.PROTECT,
        related_name="relationships",
    )
    referee_email = models.EmailField(blank=True, default="")
    signup_date = models.DateTimeField()
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
    )
    total_revenue_shared = money_field()
    last_revenue_share = models.DateTimeField(null=True, blank=True)
    bonus_paid = models.BooleanField(default=False)

    class Meta(BaseModel.Meta):
        indexes = [
            models.Index(fields=["referrer", "status"], name="idx_referral_referrer_status"),
            models.Index(fields=["status", "signup_date"], name="idx_referral_status_signup"),
        ]

    def __str__(self):
        return (
            f"ReferralRelationship referrer={self.referrer_id} referee={self.referee_id} "
            f"| {self.status}"
        )


class ReferralEarning(BaseModel):
    """One cascade payout; unique per source earning so a cascade never repeats."""

    referrer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="referral_earnings_received",
    )
    referee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="referral_earnings_generated",
    )
    relationship = models.ForeignKey(
        ReferralRelationship,
        on_delete=models.PROTECT,
        related_name="earnings",
    )
    amount = money_field()
    source_revenue = money_field()
    percentage = models.DecimalField(max_digits=7, decimal_places=4)
    reel = models.ForeignKey(
        "monetization.Reel",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="referral_earnings",
    )
    transaction = models.OneToOneField(
        "monetization.LedgerTransaction",
        on_delete=models.PROTECT,
        related_name="referral_earning",
    )
    source_transaction = models.OneToOneField(
        "monetization.LedgerTransaction",
        on_delete=models.PROTECT,
        related_name="referral_payout",
    )

    def __str__(self):
        return (
            f"ReferralEarning referrer={self.referrer_id} referee={self.referee_id} "
            f"| {self.amount}"
        )
