import logging
from typing import Optional

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from monetization.conf import MonetizationConfig
from monetization.exceptions import NotFound, ValidationRejected
from monetization.models import LedgerTransaction, Wallet
from monetization.utils.money import quantize_money, to_decimal

logger = logging.getLogger(__name__)


class WithdrawalService:
    """
    Handles withdrawal requests and their settlement.

    Request: moves the amount from available to pending with a conditional
    UPDATE and appends a PENDING ledger row.
    Settlement: once the settlement delay has passed, the pending amount
    leaves the wallet and the ledger row is completed.
    """

    def __init__(self, config: Optional[MonetizationConfig] = None):
        self.config = config or MonetizationConfig.from_settings()

    @transaction.atomic
    def request(self, user_id: int, amount) -> LedgerTransaction:
        """
        Reserve funds for a withdrawal.

        Args:
            user_id: Owner of the wallet.
            amount: Positive amount, at least min_withdrawal_amount.

        Returns:
            The PENDING withdrawal transaction.

        Raises:
            ValidationRejected: Amount too small or balance insufficient.
            NotFound: The user has no wallet.
        """
        amount = quantize_money(to_decimal(amount))
        if amount <= 0:
            raise ValidationRejected("Withdrawal amount must be positive.")
        if amount < self.config.min_withdrawal_amount:
            raise ValidationRejected(f"Minimum withdrawal is {self.config.min_withdrawal_amount}")

        # Only succeeds when the available balance covers the amount
        updated = Wallet.objects.filter(user_id=user_id, available_balance__gte=amount).update(
            available_balance=F("available_balance") - amount,
            pending_balance=F("pending_balance") + amount,
            updated_at=timezone.now(),
        )
        if not updated:
            if not Wallet.objects.filter(user_id=user_id).exists():
                raise NotFound("Wallet not found.")
            logger.warning("Withdrawal rejected (insufficient balance): user=%s amount=%s", user_id, amount)
            raise ValidationRejected("Insufficient balance")

        tx = LedgerTransaction.objects.create(
            user_id=user_id,
            transaction_type=LedgerTransaction.TransactionType.WITHDRAWAL,
            sub_type=LedgerTransaction.SubType.WITHDRAWAL,
            amount=amount,
            description=f"Withdrawal of {amount}",
            status=LedgerTransaction.Status.PENDING,
        )

        logger.info("Withdrawal requested: user=%s amount=%s tx=%d", user_id, amount, tx.id)
        return tx

    @staticmethod
    @transaction.atomic
    def settle(transaction_id: int) -> LedgerTransaction:
        """
        Complete a pending withdrawal.

        Raises:
            LedgerTransaction.DoesNotExist: The transaction is missing or no
                longer pending.
        """
        # Lock the transaction to prevent double settlement
        tx = LedgerTransaction.objects.select_for_update().get(
            id=transaction_id,
            transaction_type=LedgerTransaction.TransactionType.WITHDRAWAL,
            status=LedgerTransaction.Status.PENDING,
        )

        wallet = Wallet.objects.select_for_update().get(user_id=tx.user_id)
        Wallet.objects.filter(pk=wallet.pk).update(
            pending_balance=F("pending_balance") - tx.amount,
            total_balance=F("total_balance") - tx.amount,
            total_withdrawn=F("total_withdrawn") + tx.amount,
            updated_at=timezone.now(),
        )

        tx.status = LedgerTransaction.Status.COMPLETED
        tx.processed_at = timezone.now()
        tx.save(update_fields=["status", "processed_at", "updated_at"])

        logger.info("Withdrawal settled: user=%s amount=%s tx=%d", tx.user_id, tx.amount, tx.id)
        return tx
