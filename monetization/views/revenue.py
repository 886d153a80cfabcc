from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from monetization.exceptions import MonetizationError
from monetization.serializers import (
    AdRevenueEventSerializer,
    LedgerTransactionSerializer,
    RevenueDistributionSerializer,
)
from monetization.services import AdRevenueService
from monetization.views.errors import error_response


class SubmitAdRevenueView(APIView):
    """
    POST /monetization/ad-revenue/: Settle an ad impression.

    201 for a new settlement, 200 with duplicate=true for a repeat,
    400 with accepted=false and a reason for an ineligible view.
    """

    def post(self, request, *args, **kwargs):
        serializer = AdRevenueEventSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = AdRevenueService().submit_ad_revenue_event(**serializer.validated_data)
        except MonetizationError as exc:
            return error_response(exc)

        if not result.accepted:
            return Response(
                {"accepted": False, "reason": result.reason},
                status=status.HTTP_400_BAD_REQUEST,
            )

        distribution = (
            RevenueDistributionSerializer(result.distribution).data if result.distribution else None
        )
        body = {
            "accepted": True,
            "duplicate": result.duplicate,
            "distribution": distribution,
        }
        if result.duplicate:
            body["reason"] = result.reason
            return Response(body, status=status.HTTP_200_OK)

        body["transactions"] = LedgerTransactionSerializer(result.transactions, many=True).data
        return Response(body, status=status.HTTP_201_CREATED)
