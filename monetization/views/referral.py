from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from monetization.exceptions import MonetizationError
from monetization.serializers import (
    ApplyReferralCodeSerializer,
    CreateReferralCodeSerializer,
    ReferralCodeSerializer,
)
from monetization.services import ReferralService
from monetization.views.errors import error_response


class CreateReferralCodeView(APIView):
    """POST /monetization/referrals/codes/: Issue (or return) a user's referral code."""

    def post(self, request, *args, **kwargs):
        serializer = CreateReferralCodeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            issued = ReferralService().create_referral_code(
                serializer.validated_data["user_id"],
                custom_code=serializer.validated_data.get("custom_code") or None,
            )
        except MonetizationError as exc:
            return error_response(exc)

        body = ReferralCodeSerializer(issued.code).data
        body["share_link"] = issued.share_link
        return Response(
            body,
            status=status.HTTP_201_CREATED if issued.created else status.HTTP_200_OK,
        )


class ApplyReferralCodeView(APIView):
    """
    POST /monetization/referrals/apply/: Apply a referral code for a new user.

    Request body: {"user_id": 7, "code": "RSAB12CD", "email": "new@example.com"}
    """

    def post(self, request, *args, **kwargs):
        serializer = ApplyReferralCodeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = ReferralService().apply_referral_code(
                serializer.validated_data["user_id"],
                serializer.validated_data["code"],
                user_email=serializer.validated_data["email"],
            )
        except MonetizationError as exc:
            return error_response(exc)

        return Response(
            {
                "accepted": result.accepted,
                "referrer_id": result.referrer_id,
                "bonus_awarded": str(result.bonus_awarded),
            },
            status=status.HTTP_200_OK,
        )


class ReferralStatsView(APIView):
    """GET /monetization/referrals/<user_id>/stats/: Referral counts and earnings."""

    def get(self, request, user_id, *args, **kwargs):
        stats = ReferralService.get_referral_stats(user_id)
        stats["total_earnings"] = str(stats["total_earnings"])
        stats["monthly_earnings"] = str(stats["monthly_earnings"])
        if stats["top_referral"]:
            stats["top_referral"]["earnings"] = str(stats["top_referral"]["earnings"])
        for row in stats["recent_earnings"]:
            row["amount"] = str(row["amount"])
            row["source_revenue"] = str(row["source_revenue"])
        return Response(stats, status=status.HTTP_200_OK)
