from monetization.models.base import BaseModel
from monetization.models.wallet import Wallet
from monetization.models.revenue import AdRevenueEvent, Reel, RevenueDistribution
from monetization.models.transaction import LedgerTransaction, earning_field_for
from monetization.models.referral import (
    ReferralCode,
    ReferralEarning,
    ReferralRelationship,
)
from monetization.models.streak import DailyStreak
from monetization.models.analytics import AnalyticsEvent

__all__ = [
    "BaseModel",
    "Wallet",
    "Reel",
    "AdRevenueEvent",
    "RevenueDistribution",
    "LedgerTransaction",
    "earning_field_for",
    "ReferralCode",
    "ReferralRelationship",
    "ReferralEarning",
    "DailyStreak",
    "AnalyticsEvent",
]
