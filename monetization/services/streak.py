import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import transaction

from monetization.conf import MonetizationConfig
from monetization.exceptions import NotFound
from monetization.models import AnalyticsEvent, DailyStreak, LedgerTransaction
from monetization.services.analytics import AnalyticsService
from monetization.services.wallet import Credit, WalletService
from monetization.utils.money import today_utc
from monetization.utils.retry import retry_on_conflict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreakResult:
    streak_count: int
    bonus: Decimal
    streak_broken: bool = False
    milestone_reached: Optional[int] = None


class StreakService:
    """Daily check-in streaks and their escalating bonus."""

    def __init__(self, config: Optional[MonetizationConfig] = None):
        self.config = config or MonetizationConfig.from_settings()

    def bonus_for(self, streak_count: int) -> Decimal:
        bonus = self.config.streak_floor_bonus + streak_count // self.config.streak_step_days
        return min(bonus, self.config.streak_bonus_cap)

    def check_in(self, user_id: int, today=None) -> StreakResult:
        """
        Record today's check-in and pay the streak bonus.

        A second check-in on the same UTC day is a no-op with a zero bonus.

        Raises:
            NotFound: The user or their wallet does not exist.
        """
        if not get_user_model().objects.filter(pk=user_id).exists():
            raise NotFound("User not found")

        result = self._check_in(user_id, today or today_utc())
        if result.bonus > 0:
            AnalyticsService.record_event(
                AnalyticsEvent.EventType.STREAK_CHECK_IN,
                user_id=user_id,
                payload={
                    "streak": result.streak_count,
                    "bonus": str(result.bonus),
                    "milestone": result.milestone_reached,
                },
            )
        return result

    @retry_on_conflict
    @transaction.atomic
    def _check_in(self, user_id, today):
        streak, created = DailyStreak.objects.select_for_update().get_or_create(user_id=user_id)

        if created or streak.last_streak_date is None:
            count, broken = 1, False
        else:
            days_since = (today - streak.last_streak_date).days
            if days_since <= 0:
                return StreakResult(streak.current_streak, Decimal("0"))
            if days_since == 1:
                count, broken = streak.current_streak + 1, False
            else:
                count, broken = 1, True

        bonus = self.bonus_for(count)

        milestone = None
        if count in self.config.streak_milestones and str(count) not in streak.milestones:
            streak.milestones[str(count)] = today.isoformat()
            milestone = count

        streak.current_streak = count
        streak.max_streak = max(streak.max_streak, count)
        streak.last_streak_date = today
        streak.streak_rewards += bonus
        streak.save()

        WalletService.commit_credits(
            [
                Credit(
                    user_id=user_id,
                    amount=bonus,
                    transaction_type=LedgerTransaction.TransactionType.BONUS,
                    sub_type=LedgerTransaction.SubType.DAILY_STREAK,
                    description=f"Daily streak bonus - Day {count}",
                    metadata={"streak": count, "milestone": milestone},
                )
            ],
            require_all=True,
        )

        if broken:
            logger.info("Streak broken: user=%s restarted at day 1", user_id)
        logger.info(
            "Streak check-in: user=%s streak=%d bonus=%s milestone=%s",
            user_id,
            count,
            bonus,
            milestone,
        )
        return StreakResult(count, bonus, streak_broken=broken, milestone_reached=milestone)
