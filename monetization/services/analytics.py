import logging
from typing import Optional

from django.db import DatabaseError
from django.db.models import Avg, Count, Q, Sum

from monetization.conf import MonetizationConfig
from monetization.models import AnalyticsEvent, RevenueDistribution
from monetization.utils.money import to_decimal

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Read-only revenue reporting plus the prunable activity log."""

    def __init__(self, config: Optional[MonetizationConfig] = None):
        self.config = config or MonetizationConfig.from_settings()

    @staticmethod
    def record_event(event_type, user_id=None, reel_id=None, payload=None):
        """
        Append an analytics event.

        Called after the money has moved, so a failure here is logged and
        swallowed rather than reported as a failed payment.
        """
        try:
            return AnalyticsEvent.objects.create(
                event_type=event_type,
                user_id=user_id,
                reel_id=reel_id,
                payload=payload or {},
            )
        except DatabaseError:
            logger.exception("Failed to record analytics event: type=%s user=%s", event_type, user_id)
            return None

    @staticmethod
    def get_ad_revenue_stats(user_id=None, start=None, end=None) -> dict:
        """
        Aggregate settled ad revenue.

        Args:
            user_id: Restrict to distributions where the user was creator or viewer.
            start: Inclusive lower bound on settlement time.
            end: Exclusive upper bound on settlement time.

        Returns:
            Totals, averages, the top ad providers and, for a user, the
            amounts earned as creator and as viewer.
        """
        distributions = RevenueDistribution.objects.filter(
            status=RevenueDistribution.Status.COMPLETED
        )
        if user_id is not None:
            distributions = distributions.filter(Q(creator_id=user_id) | Q(viewer_id=user_id))
        if start is not None:
            distributions = distributions.filter(processed_at__gte=start)
        if end is not None:
            distributions = distributions.filter(processed_at__lt=end)

        totals = distributions.aggregate(
            total_views=Count("id"),
            revenue_sum=Sum("total_revenue"),
            creator_revenue=Sum("creator_amount"),
            viewer_revenue=Sum("viewer_amount"),
            app_revenue=Sum("app_amount"),
            average_revenue=Avg("total_revenue"),
            average_cpm=Avg("ad_revenue_event__cpm"),
        )

        top_providers = (
            distributions.values("ad_revenue_event__ad_provider")
            .annotate(views=Count("id"), revenue=Sum("total_revenue"))
            .order_by("-revenue")[:10]
        )

        stats = {
            "total_views": totals["total_views"],
            "total_revenue": to_decimal(totals["revenue_sum"] or 0),
            "creator_revenue": to_decimal(totals["creator_revenue"] or 0),
            "viewer_revenue": to_decimal(totals["viewer_revenue"] or 0),
            "app_revenue": to_decimal(totals["app_revenue"] or 0),
            "average_revenue": to_decimal(totals["average_revenue"] or 0),
            "average_cpm": to_decimal(totals["average_cpm"] or 0),
            "top_providers": [
                {
                    "provider": row["ad_revenue_event__ad_provider"],
                    "views": row["views"],
                    "revenue": to_decimal(row["revenue"] or 0),
                }
                for row in top_providers
            ],
        }

        if user_id is not None:
            as_creator = distributions.filter(creator_id=user_id).aggregate(total=Sum("creator_amount"))
            as_viewer = distributions.filter(viewer_id=user_id).aggregate(total=Sum("viewer_amount"))
            stats["earned_as_creator"] = to_decimal(as_creator["total"] or 0)
            stats["earned_as_viewer"] = to_decimal(as_viewer["total"] or 0)

        return stats

    def cleanup_expired_events(self, retention_days=None) -> int:
        """Delete analytics events past the retention window, one batch at a time."""
        retention_days = retention_days or self.config.analytics_retention_days
        deleted = 0
        while True:
            batch = list(
                AnalyticsEvent.get_expired(retention_days)
                .order_by("created_at")
                .values_list("pk", flat=True)[: self.config.batch_size]
            )
            if not batch:
                break
            count, _ = AnalyticsEvent.objects.filter(pk__in=batch).delete()
            deleted += count

        logger.info("Analytics cleanup: deleted=%d retention_days=%d", deleted, retention_days)
        return deleted
