from datetime import datetime, time, timezone as dt_timezone
from decimal import ROUND_DOWN, Decimal

from django.utils import timezone

MONEY_PLACES = Decimal("0.000001")


def to_decimal(value) -> Decimal:
    """Coerce ints, floats and strings to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value) -> Decimal:
    """Round down to the ledger's six decimal places."""
    return to_decimal(value).quantize(MONEY_PLACES, rounding=ROUND_DOWN)


def start_of_day_utc(now=None) -> datetime:
    now = now or timezone.now()
    today = now.astimezone(dt_timezone.utc).date()
    return datetime.combine(today, time.min, tzinfo=dt_timezone.utc)


def today_utc(now=None):
    return start_of_day_utc(now).date()
