import logging
from decimal import Decimal
from typing import Optional

from django.db.models import Sum

from monetization.conf import MonetizationConfig
from monetization.exceptions import CapExceeded
from monetization.models import LedgerTransaction
from monetization.utils.money import start_of_day_utc, to_decimal

logger = logging.getLogger(__name__)


class DailyCapEnforcer:
    """
    Per-user, per-sub-type earning ceilings over the current UTC day.

    Callers that need the check to hold under concurrency must lock the
    user's wallet first and run the check in the same transaction.
    """

    def __init__(self, config: Optional[MonetizationConfig] = None):
        self.config = config or MonetizationConfig.from_settings()

    def earned_today(self, user_id, sub_type, now=None) -> Decimal:
        total = LedgerTransaction.objects.filter(
            user_id=user_id,
            sub_type=sub_type,
            status=LedgerTransaction.Status.COMPLETED,
            created_at__gte=start_of_day_utc(now),
        ).aggregate(total=Sum("amount"))["total"]
        return to_decimal(total or 0)

    def check_cap(self, user_id, sub_type, proposed_amount, now=None) -> None:
        """
        Raises:
            CapExceeded: When today's total plus proposed_amount would pass
                the sub-type's ceiling. Sub-types without a ceiling pass.
        """
        ceiling = self.config.daily_cap_for(sub_type)
        if ceiling is None:
            return

        earned = self.earned_today(user_id, sub_type, now=now)
        proposed = to_decimal(proposed_amount)
        if earned + proposed > ceiling:
            logger.warning(
                "Daily cap exceeded: user=%s sub_type=%s earned=%s proposed=%s cap=%s",
                user_id,
                sub_type,
                earned,
                proposed,
                ceiling,
            )
            raise CapExceeded(f"Daily {sub_type} limit exceeded")
