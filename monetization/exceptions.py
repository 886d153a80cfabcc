class MonetizationError(Exception):
    """Base class for every error raised by the monetization engine."""

    default_reason = "Monetization request failed"

    def __init__(self, reason=None):
        self.reason = reason or self.default_reason
        super().__init__(self.reason)


class ValidationRejected(MonetizationError):
    """Ineligible event, bad amount or malformed code. Nothing was written."""

    default_reason = "Request rejected"


class CapExceeded(ValidationRejected):
    """A daily earning ceiling would be exceeded. Nothing was written."""

    default_reason = "Daily earning limit exceeded"


class DuplicateEvent(MonetizationError):
    """The event was already settled; callers treat this as a successful no-op."""

    default_reason = "Revenue already processed for this ad impression"


class NotFound(MonetizationError):
    """A wallet, user or reel the operation depends on does not exist."""

    default_reason = "Not found"


class TransientConflict(MonetizationError):
    """Concurrent writes kept colliding after the bounded number of retries."""

    default_reason = "Concurrent update conflict, please retry"


class CascadeFailure(MonetizationError):
    """The referral payout failed after the primary payment committed."""

    default_reason = "Referral cascade failed"


class ImmutableTransactionError(MonetizationError):
    default_reason = "Ledger transactions can only change status fields"


class ReferralCodeGenerationError(MonetizationError):
    default_reason = "Could not generate unique referral code"
