import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.utils import timezone

from monetization.conf import MonetizationConfig
from monetization.exceptions import DuplicateEvent, NotFound, ValidationRejected
from monetization.models import (
    AdRevenueEvent,
    AnalyticsEvent,
    LedgerTransaction,
    Reel,
    RevenueDistribution,
)
from monetization.services.analytics import AnalyticsService
from monetization.services.calculator import AdView, RevenueCalculator, RevenueSplit
from monetization.services.caps import DailyCapEnforcer
from monetization.services.idempotency import IdempotencyGuard
from monetization.services.referral import CascadeResult, ReferralService
from monetization.services.wallet import Credit, WalletService
from monetization.utils.money import to_decimal
from monetization.utils.retry import run_with_conflict_retry

logger = logging.getLogger(__name__)


@dataclass
class AdRevenueResult:
    accepted: bool
    duplicate: bool = False
    reason: str = ""
    distribution: Optional[RevenueDistribution] = None
    transactions: List[LedgerTransaction] = field(default_factory=list)
    cascades: List[CascadeResult] = field(default_factory=list)


class AdRevenueService:
    """
    Settles ad impressions into wallet credits.

    Flow: eligibility -> duplicate check -> locked settlement (caps, event
    row, distribution, credits) -> referral cascade. Everything up to the
    cascade is one atomic block; the cascade is a second one.
    """

    def __init__(
        self,
        config: Optional[MonetizationConfig] = None,
        calculator: Optional[RevenueCalculator] = None,
        cap_enforcer: Optional[DailyCapEnforcer] = None,
        referral_service: Optional[ReferralService] = None,
    ):
        self.config = config or MonetizationConfig.from_settings()
        self.calculator = calculator or RevenueCalculator(self.config)
        self.cap_enforcer = cap_enforcer or DailyCapEnforcer(self.config)
        self.referral_service = referral_service or ReferralService(self.config)

    def submit_ad_revenue_event(
        self,
        reel_id,
        viewer_id,
        ad_provider,
        ad_type,
        revenue,
        cpm,
        view_duration,
        video_duration,
        impression_id,
        timestamp=None,
    ) -> AdRevenueResult:
        """
        Pay out one ad impression.

        Returns:
            AdRevenueResult. Rejections come back with accepted=False and a
            reason; a repeat of an already settled impression comes back
            accepted with duplicate=True and the original distribution.

        Raises:
            NotFound: The reel does not exist.
            TransientConflict: Lock conflicts persisted past the retry budget.
        """
        view = AdView(
            reel_id=reel_id,
            viewer_id=viewer_id,
            ad_provider=ad_provider,
            ad_type=ad_type,
            revenue=to_decimal(revenue),
            cpm=to_decimal(cpm),
            view_duration=view_duration,
            video_duration=video_duration,
            impression_id=impression_id,
            timestamp=timestamp or timezone.now(),
        )

        reel = Reel.objects.filter(pk=reel_id).first()
        if reel is None:
            raise NotFound("Reel not found")

        try:
            self.calculator.check_engagement(view)
            if IdempotencyGuard.has_settled(reel_id, viewer_id, impression_id):
                raise DuplicateEvent()
            self._check_users(reel.creator_id, viewer_id)
            split = self.calculator.split(view.revenue, creator_id=reel.creator_id, viewer_id=viewer_id)

            distribution, transactions = run_with_conflict_retry(
                lambda: self._settle(view, reel, split),
                attempts=self.config.conflict_retry_attempts,
            )
        except DuplicateEvent as exc:
            logger.info(
                "Duplicate ad impression ignored: reel=%s viewer=%s impression=%s",
                reel_id,
                viewer_id,
                impression_id,
            )
            return AdRevenueResult(
                accepted=True,
                duplicate=True,
                reason=exc.reason,
                distribution=IdempotencyGuard.get_distribution(reel_id, viewer_id, impression_id),
            )
        except (ValidationRejected, NotFound) as exc:
            logger.warning(
                "Ad revenue rejected: reel=%s viewer=%s impression=%s reason=%s",
                reel_id,
                viewer_id,
                impression_id,
                exc.reason,
            )
            return AdRevenueResult(accepted=False, reason=exc.reason)

        cascades = [
            self.referral_service.process_referral_revenue(tx)
            for tx in transactions
            if tx.sub_type == LedgerTransaction.SubType.AD_REVENUE
        ]

        AnalyticsService.record_event(
            AnalyticsEvent.EventType.AD_VIEW_SETTLED,
            user_id=viewer_id,
            reel_id=reel_id,
            payload={
                "distribution_id": distribution.pk,
                "ad_provider": ad_provider,
                "ad_type": ad_type,
                "revenue": str(split.total_revenue),
            },
        )

        return AdRevenueResult(
            accepted=True,
            distribution=distribution,
            transactions=transactions,
            cascades=cascades,
        )

    @staticmethod
    def _check_users(creator_id, viewer_id):
        found = set(
            get_user_model().objects.filter(pk__in=[creator_id, viewer_id]).values_list("pk", flat=True)
        )
        if creator_id not in found:
            raise NotFound("Creator not found")
        if viewer_id not in found:
            raise NotFound("Viewer not found")

    @transaction.atomic
    def _settle(self, view: AdView, reel: Reel, split: RevenueSplit):
        parties = [split.creator, split.viewer]
        WalletService.lock_wallets(party.user_id for party in parties)

        if IdempotencyGuard.has_settled(view.reel_id, view.viewer_id, view.impression_id):
            raise DuplicateEvent()

        # A self-view credits one wallet with both shares.
        proposed = Counter()
        for party in parties:
            proposed[party.user_id] += party.amount
        for user_id, amount in proposed.items():
            self.cap_enforcer.check_cap(user_id, LedgerTransaction.SubType.AD_REVENUE, amount)

        now = timezone.now()
        try:
            with transaction.atomic():
                event = AdRevenueEvent.objects.create(
                    reel=reel,
                    viewer_id=view.viewer_id,
                    creator_id=reel.creator_id,
                    ad_provider=view.ad_provider,
                    ad_type=view.ad_type,
                    revenue=view.revenue,
                    cpm=view.cpm,
                    view_duration=view.view_duration,
                    video_duration=view.video_duration,
                    impression_id=view.impression_id,
                    is_valid_view=True,
                    timestamp=view.timestamp,
                    distributed_at=now,
                )
        except IntegrityError as exc:
            raise DuplicateEvent() from exc

        distribution = RevenueDistribution.objects.create(
            ad_revenue_event=event,
            total_revenue=split.total_revenue,
            creator_id=split.creator.user_id,
            creator_amount=split.creator.amount,
            creator_percentage=split.creator.percentage,
            viewer_id=split.viewer.user_id,
            viewer_amount=split.viewer.amount,
            viewer_percentage=split.viewer.percentage,
            app_amount=split.app.amount,
            app_percentage=split.app.percentage,
        )

        credits = [
            Credit(
                user_id=party.user_id,
                amount=party.amount,
                transaction_type=LedgerTransaction.TransactionType.EARNING,
                sub_type=LedgerTransaction.SubType.AD_REVENUE,
                description=description,
                reel_id=reel.pk,
                distribution=distribution,
                metadata={
                    "impression_id": view.impression_id,
                    "ad_provider": view.ad_provider,
                    "role": role,
                },
            )
            for party, role, description in (
                (split.creator, "creator", f"Ad revenue from reel {reel.pk} (creator share)"),
                (split.viewer, "viewer", f"Ad revenue from reel {reel.pk} (viewer share)"),
            )
            if party.amount > 0
        ]
        committed = WalletService.commit_credits(credits)

        distribution.status = RevenueDistribution.Status.COMPLETED
        distribution.processed_at = now
        distribution.skipped_parties = committed.skipped_user_ids
        distribution.save(update_fields=["status", "processed_at", "skipped_parties", "updated_at"])

        logger.info(
            "Ad revenue distributed: distribution=%d reel=%s total=%s creator=%s viewer=%s app=%s skipped=%s",
            distribution.pk,
            reel.pk,
            split.total_revenue,
            split.creator.amount,
            split.viewer.amount,
            split.app.amount,
            committed.skipped_user_ids,
        )
        return distribution, committed.transactions
