import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from monetization.exceptions import NotFound, ValidationRejected
from monetization.models import LedgerTransaction, Wallet, earning_field_for
from monetization.utils.money import to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credit:
    """One party's share of a payout, as handed to WalletService.commit_credits."""

    user_id: int
    amount: Decimal
    transaction_type: str
    sub_type: str
    description: str = ""
    reel_id: Optional[int] = None
    distribution: Optional[object] = None
    source_transaction: Optional[LedgerTransaction] = None
    metadata: dict = field(default_factory=dict)


@dataclass
class CommitResult:
    transactions: List[LedgerTransaction] = field(default_factory=list)
    skipped_user_ids: List[int] = field(default_factory=list)

    def transaction_for(self, user_id):
        return next((tx for tx in self.transactions if tx.user_id == user_id), None)


class WalletService:
    """
    Owns every credit to a wallet.

    Wallet rows are locked with select_for_update() in ascending user order
    (so two payouts touching the same pair of wallets cannot deadlock) and
    incremented with F() expressions, with one COMPLETED ledger row appended
    per credited party, all inside one atomic block.
    """

    @staticmethod
    def create_wallet(user_id: int) -> Wallet:
        wallet, created = Wallet.objects.get_or_create(user_id=user_id)
        if created:
            logger.info("Wallet created: user=%s wallet=%d", user_id, wallet.pk)
        return wallet

    @staticmethod
    def lock_wallets(user_ids: Iterable[int]) -> Dict[int, Wallet]:
        """Lock the given users' wallets for the rest of the current transaction."""
        wallets = (
            Wallet.objects.select_for_update()
            .filter(user_id__in=set(user_ids))
            .order_by("user_id")
        )
        return {wallet.user_id: wallet for wallet in wallets}

    @staticmethod
    @transaction.atomic
    def commit_credits(credits: List[Credit], require_all: bool = False) -> CommitResult:
        """
        Credit each party's wallet and append its ledger row.

        Args:
            credits: Shares to pay, one per party.
            require_all: When True a missing wallet aborts the whole commit
                with NotFound. When False that party's share is skipped and
                reported in CommitResult.skipped_user_ids while the remaining
                parties are still paid.

        Raises:
            ValidationRejected: An amount is not positive or a sub-type has no
                wallet subtotal.
            NotFound: A wallet is missing and require_all is set.
        """
        resolved = []
        for credit in credits:
            amount = to_decimal(credit.amount)
            if amount <= 0:
                raise ValidationRejected(
                    f"Credit amount must be positive (user={credit.user_id}, amount={amount})"
                )
            try:
                subtotal = earning_field_for(credit.sub_type)
            except ValueError as exc:
                raise ValidationRejected(str(exc)) from exc
            resolved.append((credit, amount, subtotal))

        wallets = WalletService.lock_wallets(credit.user_id for credit in credits)
        missing = sorted({c.user_id for c in credits} - set(wallets))
        if missing and require_all:
            raise NotFound(f"Wallet not found for user {missing[0]}")

        now = timezone.now()
        result = CommitResult(skipped_user_ids=missing)

        for credit, amount, subtotal in resolved:
            wallet = wallets.get(credit.user_id)
            if wallet is None:
                logger.warning(
                    "Credit skipped, wallet missing: user=%s amount=%s sub_type=%s",
                    credit.user_id,
                    amount,
                    credit.sub_type,
                )
                continue

            Wallet.objects.filter(pk=wallet.pk).update(
                total_balance=F("total_balance") + amount,
                available_balance=F("available_balance") + amount,
                total_earned=F("total_earned") + amount,
                **{subtotal: F(subtotal) + amount},
                updated_at=now,
            )

            cascades = (
                credit.transaction_type == LedgerTransaction.TransactionType.EARNING
                and credit.sub_type == LedgerTransaction.SubType.AD_REVENUE
            )
            tx = LedgerTransaction.objects.create(
                user_id=credit.user_id,
                transaction_type=credit.transaction_type,
                sub_type=credit.sub_type,
                amount=amount,
                description=credit.description,
                status=LedgerTransaction.Status.COMPLETED,
                processed_at=now,
                reel_id=credit.reel_id,
                distribution=credit.distribution,
                source_transaction=credit.source_transaction,
                referral_processed=False if cascades else None,
                metadata=credit.metadata,
            )
            result.transactions.append(tx)

            logger.info(
                "Wallet credited: user=%s amount=%s type=%s sub_type=%s tx=%d",
                credit.user_id,
                amount,
                credit.transaction_type,
                credit.sub_type,
                tx.id,
            )

        return result
