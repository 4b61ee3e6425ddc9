"""
Outbound change events for the realtime layer.

Events are sent after the surrounding transaction commits and receiver
failures never reach the caller.
"""
import logging

from django.db import transaction
from django.dispatch import Signal

logger = logging.getLogger(__name__)

# kwargs: user_id, balance, delta, entry_id
balance_changed = Signal()


def publish_balance_changed(*, user_id, balance, delta, entry_id) -> None:
    def _send():
        responses = balance_changed.send_robust(
            sender=None,
            user_id=user_id,
            balance=balance,
            delta=delta,
            entry_id=entry_id,
        )
        for receiver, result in responses:
            if isinstance(result, Exception):
                logger.warning(
                    "balance_changed receiver failed",
                    extra={"user_id": str(user_id), "receiver": repr(receiver), "error": str(result)},
                )

    transaction.on_commit(_send)
