from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import models
from django.utils import timezone

from monetization.exceptions import ImmutableTransactionError
from monetization.models.base import BaseModel, money_field


class LedgerTransaction(BaseModel):
    """
    Append-only record of every balance-affecting event.

    Earnings and bonuses are written COMPLETED in the same database
    transaction as the wallet credit. Withdrawals are written PENDING and
    moved to COMPLETED by the settlement job. Once written, only the status
    bookkeeping fields in MUTABLE_FIELDS may change.

    `referral_processed` tracks the post-commit referral cascade for
    ad-revenue earnings: None when no cascade applies, False while the
    cascade is outstanding (or failed), True once it has run.
    """

    class TransactionType(models.TextChoices):
        EARNING = "earning", "Earning"
        BONUS = "bonus", "Bonus"
        WITHDRAWAL = "withdrawal", "Withdrawal"
        REFERRAL = "referral", "Referral"

    class SubType(models.TextChoices):
        WATCH = "watch", "Watch"
        CREATE = "create", "Create"
        AD_REVENUE = "ad_revenue", "Ad revenue"
        REFERRAL_SIGNUP = "referral_signup", "Referral signup"
        WELCOME_BONUS = "welcome_bonus", "Welcome bonus"
        REFERRAL_REVENUE = "referral_revenue", "Referral revenue"
        DAILY_STREAK = "daily_streak", "Daily streak"
        LIKE_BONUS = "like_bonus", "Like bonus"
        SHARE_BONUS = "share_bonus", "Share bonus"
        WITHDRAWAL = "withdrawal", "Withdrawal"

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        COMPLETED = "completed", "Completed"
        FAILED = "failed", "Failed"

    MUTABLE_FIELDS = frozenset(
        {"status", "processed_at", "referral_processed", "referral_error", "updated_at"}
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="ledger_transactions",
    )
    transaction_type = models.CharField(max_length=16, choices=TransactionType.choices)
    sub_type = models.CharField(max_length=24, choices=SubType.choices)
    amount = models.DecimalField(max_digits=18, decimal_places=6)
    description = models.CharField(max_length=255, blank=True, default="")
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
    )
    processed_at = models.DateTimeField(null=True, blank=True)

    reel = models.ForeignKey(
        "monetization.Reel",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="ledger_transactions",
    )
    distribution = models.ForeignKey(
        "monetization.RevenueDistribution",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="transactions",
        help_text="Revenue distribution this credit was paid from.",
    )
    source_transaction = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="derived_transactions",
        help_text="Earning that triggered this referral payout.",
    )

    referral_processed = models.BooleanField(null=True, blank=True)
    referral_error = models.TextField(blank=True, default="")
    metadata = models.JSONField(default=dict, blank=True)

    class Meta(BaseModel.Meta):
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="ledger_amount_positive",
            ),
        ]
        indexes = [
            models.Index(
                fields=["user", "sub_type", "status", "created_at"],
                name="idx_ledger_daily_cap",
            ),
            models.Index(fields=["status", "transaction_type"], name="idx_ledger_status_type"),
            models.Index(
                fields=["sub_type", "referral_processed"],
                name="idx_ledger_referral_pending",
            ),
        ]

    def __str__(self):
        return (
            f"LedgerTransaction {self.id} | {self.transaction_type}/{self.sub_type} | "
            f"{self.amount} | {self.status}"
        )

    def save(self, *args, **kwargs):
        if not self._state.adding:
            update_fields = kwargs.get("update_fields")
            if update_fields is None or not set(update_fields) <= self.MUTABLE_FIELDS:
                raise ImmutableTransactionError(
                    f"Ledger transaction {self.pk} can only update {sorted(self.MUTABLE_FIELDS)}"
                )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableTransactionError("Ledger transactions are never deleted")

    @classmethod
    def get_due_pending_withdrawals(cls, settlement_delay=timedelta(hours=24)):
        """Return pending withdrawals older than the settlement delay, oldest first."""
        return cls.objects.filter(
            transaction_type=cls.TransactionType.WITHDRAWAL,
            status=cls.Status.PENDING,
            created_at__lte=timezone.now() - settlement_delay,
        ).order_by("created_at")

    @classmethod
    def get_unprocessed_referral_sources(cls):
        """Return ad-revenue earnings whose referral cascade has not run yet."""
        return cls.objects.filter(
            transaction_type=cls.TransactionType.EARNING,
            sub_type=cls.SubType.AD_REVENUE,
            status=cls.Status.COMPLETED,
            referral_processed=False,
        ).order_by("created_at")


# Closed mapping of credit sub-types to the single wallet subtotal each one feeds.
EARNING_FIELDS = {
    LedgerTransaction.SubType.AD_REVENUE: "ad_earnings",
    LedgerTransaction.SubType.WATCH: "watch_earnings",
    LedgerTransaction.SubType.CREATE: "create_earnings",
    LedgerTransaction.SubType.REFERRAL_SIGNUP: "referral_earnings",
    LedgerTransaction.SubType.REFERRAL_REVENUE: "referral_earnings",
    LedgerTransaction.SubType.DAILY_STREAK: "streak_earnings",
    LedgerTransaction.SubType.WELCOME_BONUS: "bonus_earnings",
    LedgerTransaction.SubType.LIKE_BONUS: "bonus_earnings",
    LedgerTransaction.SubType.SHARE_BONUS: "bonus_earnings",
}

_uncovered = set(LedgerTransaction.SubType) - set(EARNING_FIELDS) - {
    LedgerTransaction.SubType.WITHDRAWAL
}
if _uncovered:
    raise ImproperlyConfigured(
        f"Credit sub-types without a wallet subtotal: {sorted(_uncovered)}"
    )


def earning_field_for(sub_type):
    """Resolve the wallet subtotal for a credit sub-type; unknown sub-types are errors."""
    try:
        return EARNING_FIELDS[LedgerTransaction.SubType(sub_type)]
    except (KeyError, ValueError):
        raise ValueError(f"Sub-type {sub_type!r} cannot be credited to a wallet")
