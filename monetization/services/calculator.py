from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from monetization.conf import MonetizationConfig
from monetization.exceptions import ValidationRejected
from monetization.utils.money import quantize_money, to_decimal

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class AdView:
    """An ad impression shown while a viewer watched a reel."""

    reel_id: int
    viewer_id: int
    ad_provider: str
    ad_type: str
    revenue: Decimal
    cpm: Decimal
    view_duration: int
    video_duration: int
    impression_id: str
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class Allocation:
    user_id: Optional[int]
    amount: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class RevenueSplit:
    total_revenue: Decimal
    creator: Allocation
    viewer: Allocation
    app: Allocation


class RevenueCalculator:
    """
    Decides whether an ad view earns revenue and how to split it.

    Pure apart from the injected configuration: no database access.
    """

    def __init__(self, config: Optional[MonetizationConfig] = None):
        self.config = config or MonetizationConfig.from_settings()

    def check_engagement(self, view: AdView) -> None:
        """
        Apply the engagement and payload rules in order; the first failure wins.

        Raises:
            ValidationRejected: With the reason of the failing rule.
        """
        minimum = self.config.min_view_duration
        if view.view_duration < minimum:
            raise ValidationRejected(
                f"View too short for revenue sharing: {view.view_duration}s < {minimum}s required"
            )

        if view.video_duration <= 0:
            raise ValidationRejected("Video duration must be positive")

        watched = Decimal(view.view_duration) / Decimal(view.video_duration)
        if watched < self.config.min_view_percentage:
            raise ValidationRejected(
                "Insufficient view percentage for revenue sharing: "
                f"{watched * HUNDRED:.1f}% < {self.config.min_view_percentage * HUNDRED:.0f}% required"
            )

        if not view.ad_provider:
            raise ValidationRejected("Ad revenue data is required")
        if to_decimal(view.revenue) <= 0:
            raise ValidationRejected("Ad revenue must be positive")

    def split(self, revenue, creator_id=None, viewer_id=None) -> RevenueSplit:
        """
        Split revenue into creator, viewer and app shares.

        Creator and viewer amounts are rounded down to six places and the app
        takes the remainder, so the three amounts always add up to the total.
        """
        total = quantize_money(revenue)
        creator_amount = quantize_money(total * self.config.creator_share)
        viewer_amount = quantize_money(total * self.config.viewer_share)

        if creator_amount + viewer_amount < self.config.min_payout_amount:
            raise ValidationRejected("Revenue amount too small to process")

        creator_pct = self.config.creator_share * HUNDRED
        viewer_pct = self.config.viewer_share * HUNDRED
        return RevenueSplit(
            total_revenue=total,
            creator=Allocation(creator_id, creator_amount, creator_pct),
            viewer=Allocation(viewer_id, viewer_amount, viewer_pct),
            app=Allocation(None, total - creator_amount - viewer_amount, HUNDRED - creator_pct - viewer_pct),
        )

    def calculate(self, view: AdView, creator_id: int) -> RevenueSplit:
        self.check_engagement(view)
        return self.split(view.revenue, creator_id=creator_id, viewer_id=view.viewer_id)
