import logging
import re
import secrets
import string
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Count, F, Q, Sum
from django.utils import timezone

from monetization.conf import MonetizationConfig
from monetization.exceptions import (
    CascadeFailure,
    NotFound,
    ReferralCodeGenerationError,
    ValidationRejected,
)
from monetization.models import (
    AnalyticsEvent,
    LedgerTransaction,
    ReferralCode,
    ReferralEarning,
    ReferralRelationship,
)
from monetization.services.analytics import AnalyticsService
from monetization.services.wallet import Credit, WalletService
from monetization.utils.money import quantize_money, to_decimal
from monetization.utils.retry import retry_on_conflict, run_with_conflict_retry

logger = logging.getLogger(__name__)

CUSTOM_CODE_PATTERN = re.compile(r"^[A-Z0-9]{6,12}$")
CODE_ALPHABET = string.ascii_uppercase + string.digits


@dataclass(frozen=True)
class IssuedCode:
    code: ReferralCode
    share_link: str
    created: bool


@dataclass(frozen=True)
class ReferralApplication:
    accepted: bool
    referrer_id: int
    bonus_awarded: Decimal
    relationship: ReferralRelationship


@dataclass(frozen=True)
class CascadeResult:
    source_transaction_id: int
    paid: bool
    amount: Decimal = Decimal("0")
    referrer_id: Optional[int] = None
    error: str = ""


class ReferralService:
    """
    Referral codes, relationships and the one-hop revenue cascade.

    The cascade always runs after the primary earning has committed, in its
    own atomic block, so a failing cascade never takes the earning with it.
    """

    def __init__(self, config: Optional[MonetizationConfig] = None):
        self.config = config or MonetizationConfig.from_settings()

    # ------------------------------------------------------------------
    # Codes
    # ------------------------------------------------------------------

    def build_share_link(self, code: str) -> str:
        return f"{self.config.referral_share_base_url.rstrip('/')}/signup?ref={code}"

    def _generate_code(self) -> str:
        prefix = self.config.referral_code_prefix
        length = self.config.referral_code_length - len(prefix)
        for _ in range(self.config.referral_code_max_attempts):
            candidate = prefix + "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))
            if not ReferralCode.objects.filter(code=candidate).exists():
                return candidate
        raise ReferralCodeGenerationError()

    def create_referral_code(self, user_id: int, custom_code: Optional[str] = None) -> IssuedCode:
        """
        Issue the user's referral code, or return the active one they already hold.

        Raises:
            NotFound: The user does not exist.
            ValidationRejected: The custom code is malformed or taken.
            ReferralCodeGenerationError: No free code was found in the attempt budget.
        """
        if not get_user_model().objects.filter(pk=user_id).exists():
            raise NotFound("User not found")

        existing = ReferralCode.objects.filter(
            user_id=user_id, status=ReferralCode.Status.ACTIVE
        ).first()
        if existing:
            return IssuedCode(existing, self.build_share_link(existing.code), created=False)

        if custom_code:
            code = custom_code.strip().upper()
            if not CUSTOM_CODE_PATTERN.match(code):
                raise ValidationRejected(
                    "Custom code must be 6-12 characters, letters and numbers only"
                )
            if ReferralCode.objects.filter(code=code).exists():
                raise ValidationRejected("Custom code already exists")
        else:
            code = self._generate_code()

        try:
            with transaction.atomic():
                referral_code = ReferralCode.objects.create(user_id=user_id, code=code)
        except IntegrityError:
            # Lost a race: either the code was taken or the user got an active code.
            existing = ReferralCode.objects.filter(
                user_id=user_id, status=ReferralCode.Status.ACTIVE
            ).first()
            if existing:
                return IssuedCode(existing, self.build_share_link(existing.code), created=False)
            raise ValidationRejected("Referral code already exists")

        logger.info("Referral code created: user=%s code=%s", user_id, code)
        return IssuedCode(referral_code, self.build_share_link(code), created=True)

    # ------------------------------------------------------------------
    # Applying a code
    # ------------------------------------------------------------------

    def _validate_code(self, new_user_id, code, now):
        referral_code = ReferralCode.objects.filter(code=code).first()
        if referral_code is None:
            raise ValidationRejected("Invalid referral code")
        if not referral_code.is_active:
            raise ValidationRejected("Referral code is no longer active")

        if referral_code.expires_at and referral_code.expires_at < now:
            ReferralCode.objects.filter(pk=referral_code.pk).update(
                status=ReferralCode.Status.EXPIRED, updated_at=now
            )
            raise ValidationRejected("Referral code has expired")

        if referral_code.max_uses is not None and referral_code.total_uses >= referral_code.max_uses:
            ReferralCode.objects.filter(pk=referral_code.pk).update(
                status=ReferralCode.Status.EXHAUSTED, updated_at=now
            )
            raise ValidationRejected("Referral code has reached its usage limit")

        if referral_code.user_id == new_user_id:
            raise ValidationRejected("Cannot use your own referral code")

        if ReferralRelationship.objects.filter(referee_id=new_user_id).exists():
            raise ValidationRejected("User already has a referral relationship")

        active_referrals = ReferralRelationship.objects.filter(
            referrer_id=referral_code.user_id,
            status=ReferralRelationship.Status.ACTIVE,
        ).count()
        if active_referrals >= self.config.max_referrals_per_user:
            raise ValidationRejected("Referrer has reached maximum referral limit")

        return referral_code

    @retry_on_conflict
    @transaction.atomic
    def _link(self, new_user_id, referral_code_id, user_email, now):
        referral_code = ReferralCode.objects.select_for_update().get(pk=referral_code_id)
        if not referral_code.is_active:
            raise ValidationRejected("Referral code is no longer active")

        try:
            with transaction.atomic():
                relationship = ReferralRelationship.objects.create(
                    referrer_id=referral_code.user_id,
                    referee_id=new_user_id,
                    referral_code=referral_code,
                    referee_email=user_email or "",
                    signup_date=now,
                )
        except IntegrityError:
            raise ValidationRejected("User already has a referral relationship")

        committed = WalletService.commit_credits(
            [
                Credit(
                    user_id=referral_code.user_id,
                    amount=self.config.referrer_signup_bonus,
                    transaction_type=LedgerTransaction.TransactionType.BONUS,
                    sub_type=LedgerTransaction.SubType.REFERRAL_SIGNUP,
                    description=f"Referral signup bonus - code {referral_code.code}",
                    metadata={"referee_id": new_user_id, "referral_code": referral_code.code},
                ),
                Credit(
                    user_id=new_user_id,
                    amount=self.config.referee_signup_bonus,
                    transaction_type=LedgerTransaction.TransactionType.BONUS,
                    sub_type=LedgerTransaction.SubType.WELCOME_BONUS,
                    description=f"Welcome bonus - referred with code {referral_code.code}",
                    metadata={"referrer_id": referral_code.user_id, "referral_code": referral_code.code},
                ),
            ]
        )

        relationship.bonus_paid = True
        relationship.save(update_fields=["bonus_paid", "updated_at"])

        uses = referral_code.total_uses + 1
        updates = {"total_uses": F("total_uses") + 1, "updated_at": now}
        if referral_code.max_uses is not None and uses >= referral_code.max_uses:
            updates["status"] = ReferralCode.Status.EXHAUSTED
        ReferralCode.objects.filter(pk=referral_code.pk).update(**updates)

        referee_tx = committed.transaction_for(new_user_id)
        bonus_awarded = referee_tx.amount if referee_tx else Decimal("0")
        return relationship, bonus_awarded

    def apply_referral_code(self, new_user_id: int, code: str, user_email: str = "") -> ReferralApplication:
        """
        Link a new user to the code's owner and pay the signup bonus pair.

        Checks run in a fixed order and the first failure is reported. Expired
        or used-up codes are marked as such even though the request fails.

        Raises:
            NotFound: The new user does not exist.
            ValidationRejected: The code cannot be applied for this user.
        """
        if not get_user_model().objects.filter(pk=new_user_id).exists():
            raise NotFound("User not found")

        now = timezone.now()
        code = (code or "").strip().upper()
        referral_code = self._validate_code(new_user_id, code, now)
        relationship, bonus_awarded = self._link(new_user_id, referral_code.pk, user_email, now)

        logger.info(
            "Referral applied: referrer=%s referee=%s code=%s bonus=%s",
            referral_code.user_id,
            new_user_id,
            code,
            bonus_awarded,
        )
        AnalyticsService.record_event(
            AnalyticsEvent.EventType.REFERRAL_APPLIED,
            user_id=new_user_id,
            payload={"referrer_id": referral_code.user_id, "code": code},
        )
        return ReferralApplication(
            accepted=True,
            referrer_id=referral_code.user_id,
            bonus_awarded=bonus_awarded,
            relationship=relationship,
        )

    # ------------------------------------------------------------------
    # Revenue cascade
    # ------------------------------------------------------------------

    @staticmethod
    def _mark_processed(source):
        source.referral_processed = True
        source.referral_error = ""
        source.save(update_fields=["referral_processed", "referral_error", "updated_at"])

    @transaction.atomic
    def _pay_referrer(self, source_transaction_id) -> CascadeResult:
        source = LedgerTransaction.objects.select_for_update().get(pk=source_transaction_id)
        if source.referral_processed or ReferralEarning.objects.filter(source_transaction=source).exists():
            if not source.referral_processed:
                self._mark_processed(source)
            return CascadeResult(source.pk, paid=False)

        relationship = (
            ReferralRelationship.objects.select_for_update()
            .filter(referee_id=source.user_id, status=ReferralRelationship.Status.ACTIVE)
            .first()
        )
        if relationship is None:
            self._mark_processed(source)
            return CascadeResult(source.pk, paid=False)

        now = timezone.now()
        if now - relationship.signup_date > self.config.referral_tracking_duration:
            relationship.status = ReferralRelationship.Status.EXPIRED
            relationship.save(update_fields=["status", "updated_at"])
            self._mark_processed(source)
            logger.info("Referral relationship expired: id=%d referee=%s", relationship.pk, source.user_id)
            return CascadeResult(source.pk, paid=False)

        bonus = quantize_money(source.amount * self.config.referrer_bonus)
        if source.amount < self.config.min_revenue_for_bonus or bonus <= 0:
            self._mark_processed(source)
            return CascadeResult(source.pk, paid=False)

        committed = WalletService.commit_credits(
            [
                Credit(
                    user_id=relationship.referrer_id,
                    amount=bonus,
                    transaction_type=LedgerTransaction.TransactionType.REFERRAL,
                    sub_type=LedgerTransaction.SubType.REFERRAL_REVENUE,
                    description=f"Referral revenue share from user {source.user_id}",
                    reel_id=source.reel_id,
                    source_transaction=source,
                    metadata={
                        "referee_id": source.user_id,
                        "source_amount": str(source.amount),
                        "percentage": str(self.config.referrer_bonus * 100),
                    },
                )
            ],
            require_all=True,
        )

        ReferralEarning.objects.create(
            referrer_id=relationship.referrer_id,
            referee_id=source.user_id,
            relationship=relationship,
            amount=bonus,
            source_revenue=source.amount,
            percentage=self.config.referrer_bonus * 100,
            reel_id=source.reel_id,
            transaction=committed.transactions[0],
            source_transaction=source,
        )
        ReferralRelationship.objects.filter(pk=relationship.pk).update(
            total_revenue_shared=F("total_revenue_shared") + bonus,
            last_revenue_share=now,
            updated_at=now,
        )
        self._mark_processed(source)

        logger.info(
            "Referral revenue shared: referrer=%s referee=%s amount=%s source_tx=%d",
            relationship.referrer_id,
            source.user_id,
            bonus,
            source.pk,
        )
        return CascadeResult(source.pk, paid=True, amount=bonus, referrer_id=relationship.referrer_id)

    def process_referral_revenue(self, source_transaction: LedgerTransaction) -> CascadeResult:
        """
        Run the one-hop cascade for a committed ad-revenue earning.

        Never raises: a failure is logged and left on the source row
        (referral_processed=False plus referral_error) for the repair job.
        """
        try:
            return run_with_conflict_retry(
                lambda: self._pay_referrer(source_transaction.pk),
                attempts=self.config.conflict_retry_attempts,
            )
        except Exception as exc:
            failure = CascadeFailure(f"{exc.__class__.__name__}: {exc}")
            logger.exception(
                "Referral cascade failed: source_tx=%d user=%s",
                source_transaction.pk,
                source_transaction.user_id,
            )
            LedgerTransaction.objects.filter(pk=source_transaction.pk).update(
                referral_processed=False,
                referral_error=failure.reason,
                updated_at=timezone.now(),
            )
            return CascadeResult(source_transaction.pk, paid=False, error=failure.reason)

    def reconcile(self, limit=None) -> dict:
        """Rerun the cascade for earnings it has not completed on yet."""
        limit = limit or self.config.batch_size
        pending = list(LedgerTransaction.get_unprocessed_referral_sources()[:limit])
        paid = failed = 0
        for source in pending:
            result = self.process_referral_revenue(source)
            if result.error:
                failed += 1
            elif result.paid:
                paid += 1
        return {"scanned": len(pending), "paid": paid, "failed": failed}

    def expire_relationships(self, now=None) -> int:
        """Move active relationships past the tracking window to EXPIRED."""
        now = now or timezone.now()
        cutoff = now - self.config.referral_tracking_duration
        expired = ReferralRelationship.objects.filter(
            status=ReferralRelationship.Status.ACTIVE,
            signup_date__lt=cutoff,
        ).update(status=ReferralRelationship.Status.EXPIRED, updated_at=now)
        if expired:
            logger.info("Referral relationships expired: count=%d", expired)
        return expired

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    @staticmethod
    def get_referral_stats(user_id: int) -> dict:
        relationships = ReferralRelationship.objects.filter(referrer_id=user_id).aggregate(
            total=Count("id"),
            active=Count("id", filter=Q(status=ReferralRelationship.Status.ACTIVE)),
        )

        earnings = ReferralEarning.objects.filter(referrer_id=user_id)
        month_start = timezone.now().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        recent_cutoff = timezone.now() - timedelta(days=30)

        top = (
            earnings.values("referee_id")
            .annotate(total=Sum("amount"))
            .order_by("-total")
            .first()
        )

        return {
            "total_referrals": relationships["total"],
            "active_referrals": relationships["active"],
            "total_earnings": to_decimal(earnings.aggregate(total=Sum("amount"))["total"] or 0),
            "monthly_earnings": to_decimal(
                earnings.filter(created_at__gte=month_start).aggregate(total=Sum("amount"))["total"] or 0
            ),
            "top_referral": (
                {"user_id": top["referee_id"], "earnings": to_decimal(top["total"])} if top else None
            ),
            "recent_earnings": [
                {
                    "referee_id": row.referee_id,
                    "amount": row.amount,
                    "source_revenue": row.source_revenue,
                    "reel_id": row.reel_id,
                    "created_at": row.created_at,
                }
                for row in earnings.filter(created_at__gte=recent_cutoff).order_by("-created_at")[:50]
            ],
        }
