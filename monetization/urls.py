from django.urls import path

from monetization.views import (
    AdRevenueStatsView,
    ApplyReferralCodeView,
    CreateReferralCodeView,
    FixedBonusView,
    ReferralStatsView,
    RetrieveWalletView,
    StreakCheckInView,
    SubmitAdRevenueView,
    TransactionDetailView,
    TransactionListView,
    WithdrawView,
)

urlpatterns = [
    path("ad-revenue/", SubmitAdRevenueView.as_view(), name="ad-revenue-submit"),
    path("bonuses/", FixedBonusView.as_view(), name="bonus-submit"),
    path("wallets/<int:user_id>/", RetrieveWalletView.as_view(), name="wallet-detail"),
    path("wallets/<int:user_id>/withdraw", WithdrawView.as_view(), name="wallet-withdraw"),
    path(
        "wallets/<int:user_id>/transactions/",
        TransactionListView.as_view(),
        name="wallet-transactions",
    ),
    path(
        "wallets/<int:user_id>/transactions/<int:id>/",
        TransactionDetailView.as_view(),
        name="transaction-detail",
    ),
    path("referrals/codes/", CreateReferralCodeView.as_view(), name="referral-code-create"),
    path("referrals/apply/", ApplyReferralCodeView.as_view(), name="referral-apply"),
    path("referrals/<int:user_id>/stats/", ReferralStatsView.as_view(), name="referral-stats"),
    path("streaks/<int:user_id>/check-in", StreakCheckInView.as_view(), name="streak-check-in"),
    path("analytics/ad-revenue/", AdRevenueStatsView.as_view(), name="analytics-ad-revenue"),
]
