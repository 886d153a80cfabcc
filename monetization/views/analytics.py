from django.utils.dateparse import parse_datetime
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from monetization.services import AnalyticsService


class AdRevenueStatsView(APIView):
    """
    GET /monetization/analytics/ad-revenue/: Settled ad revenue totals.

    Query params:
        - user_id: only distributions the user took part in
        - start, end: ISO datetimes bounding the settlement time
    """

    def get(self, request, *args, **kwargs):
        params = request.query_params
        filters = {}

        user_id = params.get("user_id")
        if user_id:
            if not user_id.isdigit():
                return Response({"error": "user_id must be an integer."}, status=status.HTTP_400_BAD_REQUEST)
            filters["user_id"] = int(user_id)

        for name in ("start", "end"):
            raw = params.get(name)
            if raw:
                value = parse_datetime(raw)
                if value is None:
                    return Response(
                        {"error": f"{name} must be an ISO 8601 datetime."},
                        status=status.HTTP_400_BAD_REQUEST,
                    )
                filters[name] = value

        stats = AnalyticsService.get_ad_revenue_stats(**filters)
        for key, value in stats.items():
            if key != "top_providers" and key != "total_views":
                stats[key] = str(value)
        for row in stats["top_providers"]:
            row["revenue"] = str(row["revenue"])
        return Response(stats, status=status.HTTP_200_OK)
