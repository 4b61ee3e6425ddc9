"""
Order change events, sent after commit. Receivers are best-effort.
"""
import logging

from django.db import transaction
from django.dispatch import Signal

logger = logging.getLogger(__name__)

# kwargs: order_id, status, previous_status
order_changed = Signal()
# kwargs: order_id, order_number, category
order_queued_for_review = Signal()


def _send_robust(signal: Signal, name: str, **kwargs) -> None:
    for receiver, result in signal.send_robust(sender=None, **kwargs):
        if isinstance(result, Exception):
            logger.warning(
                "%s receiver failed",
                name,
                extra={"order_id": str(kwargs.get("order_id")), "receiver": repr(receiver), "error": str(result)},
            )


def publish_order_changed(*, order_id, status, previous_status) -> None:
    transaction.on_commit(
        lambda: _send_robust(
            order_changed,
            "order_changed",
            order_id=order_id,
            status=status,
            previous_status=previous_status,
        )
    )


def publish_order_queued_for_review(*, order_id, order_number, category) -> None:
    transaction.on_commit(
        lambda: _send_robust(
            order_queued_for_review,
            "order_queued_for_review",
            order_id=order_id,
            order_number=order_number,
            category=category,
        )
    )
