from rest_framework.generics import ListAPIView, RetrieveAPIView

from monetization.models import LedgerTransaction
from monetization.serializers import LedgerTransactionSerializer


class TransactionListView(ListAPIView):
    """
    GET /monetization/wallets/<user_id>/transactions/: A user's ledger.

    Query params:
        - status: pending, completed or failed
        - type: earning, bonus, withdrawal or referral
        - sub_type: e.g. ad_revenue, daily_streak
    """

    serializer_class = LedgerTransactionSerializer

    def get_queryset(self):
        queryset = LedgerTransaction.objects.filter(user_id=self.kwargs["user_id"])

        tx_status = self.request.query_params.get("status")
        if tx_status:
            queryset = queryset.filter(status=tx_status.lower())

        tx_type = self.request.query_params.get("type")
        if tx_type:
            queryset = queryset.filter(transaction_type=tx_type.lower())

        sub_type = self.request.query_params.get("sub_type")
        if sub_type:
            queryset = queryset.filter(sub_type=sub_type.lower())

        return queryset


class TransactionDetailView(RetrieveAPIView):
    """GET /monetization/wallets/<user_id>/transactions/<id>/: One ledger row."""

    serializer_class = LedgerTransactionSerializer
    lookup_field = "id"

    def get_queryset(self):
        return LedgerTransaction.objects.filter(user_id=self.kwargs["user_id"])
