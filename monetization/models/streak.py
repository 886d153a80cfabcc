from django.conf import settings
from django.db import models

from monetization.models.base import BaseModel, money_field


class DailyStreak(BaseModel):
    """Consecutive check-in days per user; evaluated once per UTC calendar day."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="daily_streak",
    )
    current_streak = models.PositiveIntegerField(default=0)
    max_streak = models.PositiveIntegerField(default=0)
    last_streak_date = models.DateField(null=True, blank=True)
    streak_rewards = money_field()
    milestones = models.JSONField(
        default=dict,
        blank=True,
        help_text='Streak length -> ISO date first reached, e.g. {"7": "2026-01-07"}.',
    )

    def __str__(self):
        return (
            f"DailyStreak user={self.user_id} current={self.current_streak} "
            f"max={self.max_streak}"
        )
