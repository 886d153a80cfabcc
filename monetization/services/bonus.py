import logging
from typing import Optional

from django.db import transaction

from monetization.conf import MonetizationConfig
from monetization.exceptions import NotFound, ValidationRejected
from monetization.models import LedgerTransaction, Reel
from monetization.services.caps import DailyCapEnforcer
from monetization.services.wallet import Credit, WalletService
from monetization.utils.money import quantize_money, to_decimal
from monetization.utils.retry import retry_on_conflict

logger = logging.getLogger(__name__)

BONUS_SUB_TYPES = (
    LedgerTransaction.SubType.CREATE,
    LedgerTransaction.SubType.REFERRAL_SIGNUP,
    LedgerTransaction.SubType.DAILY_STREAK,
    LedgerTransaction.SubType.LIKE_BONUS,
    LedgerTransaction.SubType.SHARE_BONUS,
)


class BonusService:
    """Fixed-amount bonuses for creating, liking and sharing content."""

    def __init__(
        self,
        config: Optional[MonetizationConfig] = None,
        cap_enforcer: Optional[DailyCapEnforcer] = None,
    ):
        self.config = config or MonetizationConfig.from_settings()
        self.cap_enforcer = cap_enforcer or DailyCapEnforcer(self.config)

    def submit_fixed_bonus(self, user_id, sub_type, amount, description="", reel_id=None) -> LedgerTransaction:
        """
        Credit a fixed bonus.

        Args:
            user_id: The user to credit.
            sub_type: One of BONUS_SUB_TYPES.
            amount: Must be positive and within the sub-type's per-bonus limit.
            description: Shown on the ledger row.
            reel_id: Optional reel the bonus relates to.

        Returns:
            The completed ledger transaction.

        Raises:
            ValidationRejected: Unknown sub-type or amount out of range.
            CapExceeded: Today's ceiling for the sub-type would be passed.
            NotFound: The reel or the user's wallet does not exist.
        """
        if sub_type not in BONUS_SUB_TYPES:
            raise ValidationRejected("Invalid bonus type")

        amount = quantize_money(to_decimal(amount))
        if amount <= 0:
            raise ValidationRejected("Bonus amount must be positive")

        limit = self.config.bonus_limits.get(sub_type)
        if limit is not None and amount > limit:
            raise ValidationRejected(f"Amount exceeds maximum for {sub_type}: {amount} > {limit}")

        if reel_id is not None and not Reel.objects.filter(pk=reel_id).exists():
            raise NotFound("Reel not found")

        return self._commit(user_id, sub_type, amount, description, reel_id)

    @retry_on_conflict
    @transaction.atomic
    def _commit(self, user_id, sub_type, amount, description, reel_id):
        if user_id not in WalletService.lock_wallets([user_id]):
            raise NotFound(f"Wallet not found for user {user_id}")

        self.cap_enforcer.check_cap(user_id, sub_type, amount)

        committed = WalletService.commit_credits(
            [
                Credit(
                    user_id=user_id,
                    amount=amount,
                    transaction_type=LedgerTransaction.TransactionType.BONUS,
                    sub_type=sub_type,
                    description=description or f"{LedgerTransaction.SubType(sub_type).label} bonus",
                    reel_id=reel_id,
                )
            ],
            require_all=True,
        )
        tx = committed.transactions[0]
        logger.info("Bonus paid: user=%s sub_type=%s amount=%s tx=%d", user_id, sub_type, amount, tx.id)
        return tx
