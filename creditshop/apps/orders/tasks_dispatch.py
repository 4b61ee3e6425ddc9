"""
Celery task that runs automated fulfillment outside the request.
"""
import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=10,
    retry_backoff=True,
)
def run_automated_fulfillment(self, order_id: str):
    """
    Run both provider phases for ``order_id``.

    Provider failures are settled inside ``fulfill_order`` (order canceled,
    charge refunded). Only infrastructure errors raised before the order left
    ``pending`` are retried here.
    """
    from apps.orders.services import InvalidStateTransition, OrderNotFound
    from apps.providers.services import fulfill_order

    try:
        result = fulfill_order(order_id)
    except (InvalidStateTransition, OrderNotFound) as exc:
        logger.warning("Automated fulfillment skipped", extra={"order_id": order_id, "reason": str(exc)})
        return {"orderId": order_id, "ok": False, "skipped": True, "reason": str(exc)}
    except Exception as exc:
        logger.error("Automated fulfillment task failed", extra={"order_id": order_id, "error": str(exc)})
        raise self.retry(exc=exc, countdown=10)

    logger.info(
        "Automated fulfillment finished",
        extra={"order_id": order_id, "ok": result.ok, "status": result.status},
    )
    return {
        "orderId": order_id,
        "ok": result.ok,
        "status": result.status,
        "transactionId": result.transaction_id,
        "errorCode": result.error_code,
    }
