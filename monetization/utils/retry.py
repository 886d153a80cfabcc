import logging
import time
from functools import wraps

from django.db import OperationalError

from monetization.exceptions import TransientConflict

logger = logging.getLogger(__name__)


def run_with_conflict_retry(func, attempts=3, base_delay=0.05):
    """
    Call `func` and retry it when the database reports a lock or
    serialization conflict.

    `func` must open its own transaction.atomic() block so every attempt
    starts from a clean read set. After `attempts` failures the conflict is
    surfaced as TransientConflict.
    """
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except OperationalError as exc:
            if attempt == attempts:
                logger.error(
                    "Write conflict not resolved after %d attempts: %s", attempts, exc
                )
                raise TransientConflict() from exc
            delay = base_delay * 2 ** (attempt - 1)
            logger.warning(
                "Write conflict (attempt %d/%d), retrying in %.2fs: %s",
                attempt,
                attempts,
                delay,
                exc,
            )
            time.sleep(delay)


def retry_on_conflict(func):
    """Decorator form; reads the attempt budget from the service's config."""

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        return run_with_conflict_retry(
            lambda: func(self, *args, **kwargs),
            attempts=self.config.conflict_retry_attempts,
        )

    return wrapper
