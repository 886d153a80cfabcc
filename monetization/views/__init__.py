from monetization.views.wallet import RetrieveWalletView
from monetization.views.transaction import TransactionDetailView, TransactionListView
from monetization.views.revenue import SubmitAdRevenueView
from monetization.views.bonus import FixedBonusView
from monetization.views.withdraw import WithdrawView
from monetization.views.referral import (
    ApplyReferralCodeView,
    CreateReferralCodeView,
    ReferralStatsView,
)
from monetization.views.streak import StreakCheckInView
from monetization.views.analytics import AdRevenueStatsView

__all__ = [
    "RetrieveWalletView",
    "TransactionListView",
    "TransactionDetailView",
    "SubmitAdRevenueView",
    "FixedBonusView",
    "WithdrawView",
    "CreateReferralCodeView",
    "ApplyReferralCodeView",
    "ReferralStatsView",
    "StreakCheckInView",
    "AdRevenueStatsView",
]
