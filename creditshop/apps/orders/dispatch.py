"""
Routes a freshly placed order to manual review or automated fulfillment.
"""
from __future__ import annotations

import enum
import logging

from django.conf import settings
from django.db import transaction

from .models import AUTOMATED_CATEGORIES, Order, OrderStatus
from .signals import publish_order_queued_for_review

logger = logging.getLogger(__name__)


class Route(str, enum.Enum):
    AUTOMATED = "automated"
    MANUAL = "manual"


def route(category: str, package_name: str = "") -> Route:
    # the package is validated against the provider catalog at placement
    if category in AUTOMATED_CATEGORIES:
        return Route.AUTOMATED
    return Route.MANUAL


def _dispatch_mode() -> str:
    mode = str(getattr(settings, "FULFILLMENT_DISPATCH_MODE", "async") or "async").strip().lower()
    return mode if mode in ("sync", "async") else "async"


def dispatch_order(order: Order) -> Route:
    """
    Hand ``order`` to its fulfillment path.

    Never raises: the order is already charged and committed, so a dispatch
    problem is logged and left for the retry tooling.
    """
    decision = route(order.category, order.package_name)
    try:
        if decision is Route.MANUAL:
            publish_order_queued_for_review(
                order_id=order.pk,
                order_number=order.order_number,
                category=order.category,
            )
            logger.info("Order queued for manual review", extra={"order_id": str(order.pk)})
            return decision

        if order.status != OrderStatus.PENDING:
            logger.warning(
                "Skipping automated dispatch for non-pending order",
                extra={"order_id": str(order.pk), "status": order.status},
            )
            return decision

        if _dispatch_mode() == "sync":
            from apps.providers.services import fulfill_order

            fulfill_order(order.pk)
        else:
            from .tasks_dispatch import run_automated_fulfillment

            order_id = str(order.pk)
            transaction.on_commit(lambda: run_automated_fulfillment.delay(order_id))
            logger.info("Automated fulfillment queued", extra={"order_id": order_id})
    except Exception:
        logger.exception("Dispatch failed", extra={"order_id": str(order.pk), "route": decision.value})
    return decision
