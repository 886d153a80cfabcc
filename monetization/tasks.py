import logging

from celery import shared_task

from monetization.conf import MonetizationConfig
from monetization.models import LedgerTransaction
from monetization.services import AnalyticsService, ReferralService, WithdrawalService

logger = logging.getLogger(__name__)


@shared_task(bind=True, acks_late=True, max_retries=3, default_retry_delay=30)
def settle_withdrawal(self, transaction_id: int):
    """
    Settle a single pending withdrawal.

    acks_late=True keeps the message until the settlement commits, so a
    worker crash mid-way leaves it to be redelivered.
    """
    try:
        tx = WithdrawalService.settle(transaction_id)
        return {"transaction_id": transaction_id, "status": tx.status}
    except LedgerTransaction.DoesNotExist:
        logger.error("Withdrawal %d not found or already settled.", transaction_id)
        return {"transaction_id": transaction_id, "status": "not_found"}
    except Exception as exc:
        logger.exception("Unexpected error settling withdrawal tx=%d", transaction_id)
        raise self.retry(exc=exc, countdown=2**self.request.retries * 10)


@shared_task
def settle_pending_withdrawals():
    """
    Periodic task: settle withdrawals whose settlement delay has passed.

    Each withdrawal settles in its own transaction; one failure is logged
    and the rest of the page still settles.
    """
    config = MonetizationConfig.from_settings()
    due = list(
        LedgerTransaction.get_due_pending_withdrawals(config.withdrawal_settlement_delay)
        .values_list("id", flat=True)[: config.batch_size]
    )
    if not due:
        return {"settled": 0, "failed": 0}

    logger.info("Found %d pending withdrawal(s) due for settlement.", len(due))

    settled = failed = 0
    for transaction_id in due:
        try:
            WithdrawalService.settle(transaction_id)
            settled += 1
        except LedgerTransaction.DoesNotExist:
            logger.info("Withdrawal %d already settled, skipping.", transaction_id)
        except Exception:
            logger.exception("Failed to settle withdrawal tx=%d", transaction_id)
            failed += 1

    return {"settled": settled, "failed": failed}


@shared_task
def reconcile_referral_cascades():
    """Periodic task: rerun referral cascades that failed or never ran."""
    result = ReferralService().reconcile()
    if result["scanned"]:
        logger.info(
            "Referral reconciliation: scanned=%d paid=%d failed=%d",
            result["scanned"],
            result["paid"],
            result["failed"],
        )
    return result


@shared_task
def expire_referral_relationships():
    """Periodic task: close relationships whose tracking window has ended."""
    return {"expired": ReferralService().expire_relationships()}


@shared_task
def cleanup_analytics_events():
    """
    Periodic task: prune analytics events past the retention window.

    Ledger rows, ad revenue events and distributions are never pruned; they
    carry the duplicate-detection keys.
    """
    return {"deleted": AnalyticsService().cleanup_expired_events()}
