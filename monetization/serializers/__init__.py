from monetization.serializers.wallet import WalletSerializer
from monetization.serializers.transaction import LedgerTransactionSerializer
from monetization.serializers.revenue import (
    AdRevenueEventSerializer,
    RevenueDistributionSerializer,
)
from monetization.serializers.bonus import FixedBonusSerializer
from monetization.serializers.withdraw import WithdrawSerializer
from monetization.serializers.referral import (
    ApplyReferralCodeSerializer,
    CreateReferralCodeSerializer,
    ReferralCodeSerializer,
)

__all__ = [
    "WalletSerializer",
    "LedgerTransactionSerializer",
    "AdRevenueEventSerializer",
    "RevenueDistributionSerializer",
    "FixedBonusSerializer",
    "WithdrawSerializer",
    "CreateReferralCodeSerializer",
    "ApplyReferralCodeSerializer",
    "ReferralCodeSerializer",
]
