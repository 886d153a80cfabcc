from django.conf import settings
from django.db import models

from monetization.models.base import BaseModel, money_field


class Wallet(BaseModel):
    """
    Per-user balance aggregate and the single source of truth for spendable funds.

    Balances are only changed by WalletService (credits) and WithdrawalService
    (available -> pending -> withdrawn), always under select_for_update() or a
    conditional F() update. `updated_at` doubles as the wallet's last-updated
    timestamp.

    Invariants:
        available_balance >= 0, pending_balance >= 0 (check constraints)
        total_balance == available_balance + pending_balance (every update
        moves both sides by the same amount)
    Category subtotals always sum to total_earned because every ledger
    sub-type credits exactly one subtotal (see EARNING_FIELDS).
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="wallet",
    )

    total_balance = money_field()
    available_balance = money_field()
    pending_balance = money_field()

    total_earned = money_field()
    total_withdrawn = money_field()

    ad_earnings = money_field()
    bonus_earnings = money_field()
    watch_earnings = money_field()
    create_earnings = money_field()
    referral_earnings = money_field()
    streak_earnings = money_field()

    class Meta(BaseModel.Meta):
        constraints = [
            models.CheckConstraint(
                condition=models.Q(available_balance__gte=0),
                name="wallet_available_balance_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(pending_balance__gte=0),
                name="wallet_pending_balance_non_negative",
            ),
        ]

    def __str__(self):
        return (
            f"Wallet user={self.user_id} (available={self.available_balance}, "
            f"pending={self.pending_balance})"
        )

    @property
    def category_total(self):
        return sum(getattr(self, name) for name in EARNING_FIELD_NAMES)


EARNING_FIELD_NAMES = (
    "ad_earnings",
    "bonus_earnings",
    "watch_earnings",
    "create_earnings",
    "referral_earnings",
    "streak_earnings",
)
