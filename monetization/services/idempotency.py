from typing import Optional

from monetization.models import AdRevenueEvent, RevenueDistribution


class IdempotencyGuard:
    """Answers whether an ad impression has already been paid out."""

    @staticmethod
    def _settled(reel_id, viewer_id, impression_id):
        return AdRevenueEvent.objects.filter(
            reel_id=reel_id,
            viewer_id=viewer_id,
            impression_id=impression_id,
            distributed_at__isnull=False,
        )

    @staticmethod
    def has_settled(reel_id: int, viewer_id: int, impression_id: str) -> bool:
        return IdempotencyGuard._settled(reel_id, viewer_id, impression_id).exists()

    @staticmethod
    def get_distribution(reel_id: int, viewer_id: int, impression_id: str) -> Optional[RevenueDistribution]:
        """Return the distribution an earlier settlement of this impression produced."""
        return (
            RevenueDistribution.objects.filter(
                ad_revenue_event__reel_id=reel_id,
                ad_revenue_event__viewer_id=viewer_id,
                ad_revenue_event__impression_id=impression_id,
            )
            .select_related("ad_revenue_event")
            .first()
        )
