from rest_framework.generics import RetrieveAPIView

from monetization.models import Wallet
from monetization.serializers import WalletSerializer


class RetrieveWalletView(RetrieveAPIView):
    """GET /monetization/wallets/<user_id>/: Wallet balances for a user."""

    serializer_class = WalletSerializer
    queryset = Wallet.objects.all()
    lookup_field = "user_id"
