from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from monetization.exceptions import MonetizationError
from monetization.serializers import LedgerTransactionSerializer, WithdrawSerializer
from monetization.services import WithdrawalService
from monetization.views.errors import error_response


class WithdrawView(APIView):
    """
    POST /monetization/wallets/<user_id>/withdraw: Request a withdrawal.

    Request body: {"amount": "150.00"}
    Funds move to pending immediately and settle after the settlement delay.
    """

    def post(self, request, user_id, *args, **kwargs):
        serializer = WithdrawSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            tx = WithdrawalService().request(user_id, serializer.validated_data["amount"])
        except MonetizationError as exc:
            return error_response(exc)

        return Response(LedgerTransactionSerializer(tx).data, status=status.HTTP_201_CREATED)
