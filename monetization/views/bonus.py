from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from monetization.exceptions import MonetizationError
from monetization.serializers import FixedBonusSerializer, LedgerTransactionSerializer
from monetization.services import BonusService
from monetization.views.errors import error_response


class FixedBonusView(APIView):
    """
    POST /monetization/bonuses/: Pay a fixed bonus.

    Request body: {"user_id": 1, "sub_type": "like_bonus", "amount": "0.05"}
    """

    def post(self, request, *args, **kwargs):
        serializer = FixedBonusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            tx = BonusService().submit_fixed_bonus(**serializer.validated_data)
        except MonetizationError as exc:
            return error_response(exc)

        return Response(
            {"accepted": True, "transaction": LedgerTransactionSerializer(tx).data},
            status=status.HTTP_201_CREATED,
        )
