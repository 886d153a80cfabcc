from dataclasses import dataclass, field, fields
from datetime import timedelta
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from django.conf import settings


def _frozen(mapping: dict) -> Mapping[str, Decimal]:
    return MappingProxyType({key: Decimal(str(value)) for key, value in mapping.items()})


DEFAULT_DAILY_CAPS = {
    "ad_revenue": "1000",
    "create": "50",
    "like_bonus": "50",
    "share_bonus": "50",
}

DEFAULT_BONUS_LIMITS = {
    "create": "2",
    "referral_signup": "10",
    "daily_streak": "1",
    "like_bonus": "0.05",
    "share_bonus": "0.25",
}


@dataclass(frozen=True)
class MonetizationConfig:
    """
    Immutable engine configuration.

    Built once per service instance and passed in at construction time, so
    tests can run the engine against any combination of shares and limits.
    Use `from_settings()` to layer `settings.MONETIZATION` over the defaults.
    """

    # Revenue split; the app share is always the remainder.
    creator_share: Decimal = Decimal("0.60")
    viewer_share: Decimal = Decimal("0.20")

    # Engagement minimums
    min_view_duration: int = 30
    min_view_percentage: Decimal = Decimal("0.7")

    # Payout limits
    min_payout_amount: Decimal = Decimal("0.001")
    daily_caps: Mapping[str, Decimal] = field(
        default_factory=lambda: _frozen(DEFAULT_DAILY_CAPS)
    )
    bonus_limits: Mapping[str, Decimal] = field(
        default_factory=lambda: _frozen(DEFAULT_BONUS_LIMITS)
    )

    # Streaks
    streak_floor_bonus: Decimal = Decimal("1")
    streak_bonus_cap: Decimal = Decimal("5")
    streak_step_days: int = 7
    streak_milestones: Tuple[int, ...] = (7, 14, 30, 60, 100)

    # Referrals
    referrer_bonus: Decimal = Decimal("0.05")
    referrer_signup_bonus: Decimal = Decimal("10")
    referee_signup_bonus: Decimal = Decimal("5")
    referral_tracking_days: int = 365
    min_revenue_for_bonus: Decimal = Decimal("0.0001")
    max_referrals_per_user: int = 1000
    referral_code_prefix: str = "RS"
    referral_code_length: int = 8
    referral_code_max_attempts: int = 10
    referral_share_base_url: str = "https://reelshare.app"

    # Withdrawals
    min_withdrawal_amount: Decimal = Decimal("100")
    withdrawal_settlement_delay: timedelta = timedelta(hours=24)

    # Jobs and retries
    analytics_retention_days: int = 7
    batch_size: int = 500
    conflict_retry_attempts: int = 3

    def __post_init__(self):
        if self.creator_share < 0 or self.viewer_share < 0:
            raise ValueError("Revenue shares must not be negative.")
        if self.creator_share + self.viewer_share > 1:
            raise ValueError("Creator and viewer shares must not exceed 100% of revenue.")
        if self.conflict_retry_attempts < 1:
            raise ValueError("conflict_retry_attempts must be at least 1.")

    @property
    def app_share(self) -> Decimal:
        return Decimal("1") - self.creator_share - self.viewer_share

    @property
    def referral_tracking_duration(self) -> timedelta:
        return timedelta(days=self.referral_tracking_days)

    def daily_cap_for(self, sub_type: str) -> Optional[Decimal]:
        return self.daily_caps.get(sub_type)

    @classmethod
    def from_settings(cls, overrides: Optional[dict] = None) -> "MonetizationConfig":
        """Build a config from `settings.MONETIZATION` plus explicit overrides."""
        values = dict(getattr(settings, "MONETIZATION", {}) or {})
        values.update(overrides or {})

        known = {f.name: f for f in fields(cls)}
        unknown = set(values) - set(known)
        if unknown:
            raise ValueError(f"Unknown monetization settings: {sorted(unknown)}")

        kwargs = {}
        for name, value in values.items():
            if name in ("daily_caps", "bonus_limits"):
                defaults = DEFAULT_DAILY_CAPS if name == "daily_caps" else DEFAULT_BONUS_LIMITS
                kwargs[name] = _frozen({**defaults, **value})
            elif name == "streak_milestones":
                kwargs[name] = tuple(sorted(int(v) for v in value))
            elif isinstance(known[name].default, Decimal):
                kwargs[name] = Decimal(str(value))
            else:
                kwargs[name] = value
        return cls(**kwargs)
