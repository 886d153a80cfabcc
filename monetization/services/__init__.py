from monetization.services.analytics import AnalyticsService
from monetization.services.bonus import BonusService
from monetization.services.calculator import AdView, RevenueCalculator, RevenueSplit
from monetization.services.caps import DailyCapEnforcer
from monetization.services.idempotency import IdempotencyGuard
from monetization.services.referral import ReferralService
from monetization.services.revenue import AdRevenueResult, AdRevenueService
from monetization.services.streak import StreakResult, StreakService
from monetization.services.wallet import CommitResult, Credit, WalletService
from monetization.services.withdrawal import WithdrawalService

__all__ = [
    "AdRevenueResult",
    "AdRevenueService",
    "AdView",
    "AnalyticsService",
    "BonusService",
    "CommitResult",
    "Credit",
    "DailyCapEnforcer",
    "IdempotencyGuard",
    "ReferralService",
    "RevenueCalculator",
    "RevenueSplit",
    "StreakResult",
    "StreakService",
    "WalletService",
    "WithdrawalService",
]
