from __future__ import annotations

import json
import logging
import secrets
import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from django.db import IntegrityError, OperationalError, transaction
from django.db.models import Q
from django.utils import timezone

from apps.core.errors import ServiceError
from apps.core.pagination import CursorPage, keyset_page
from apps.providers.catalog import resolve_variation_id
from apps.users import ledger
from apps.users.wallet_models import WalletTransaction
from .models import AUTOMATED_CATEGORIES, Category, Order, OrderStatus
from .signals import publish_order_changed

logger = logging.getLogger(__name__)

MAX_ORDER_NUMBER_LENGTH = 100
MAX_NAME_LENGTH = 200
MAX_QUANTITY = 1000
MAX_PRICE = Decimal("1000000")
MAX_DETAILS_LENGTH = 10000


class OrderError(ServiceError):
    code = "ORDER_ERROR"


class InvalidOrderRequest(OrderError):
    code = "INVALID_ORDER"
    default_message = "Order request is invalid"


class InvalidOrderDetails(OrderError):
    code = "INVALID_ORDER_DETAILS"
    default_message = "Please enter your game User ID and Zone ID"


class DuplicateOrder(OrderError):
    code = "DUPLICATE_ORDER"
    http_status = 409
    default_message = "An order with this number already exists"


class OrderPlacementFailed(OrderError):
    code = "ORDER_PLACEMENT_FAILED"
    http_status = 503
    default_message = "Could not place the order, please try again"
    retryable = True


class OrderNotFound(OrderError):
    code = "ORDER_NOT_FOUND"
    http_status = 404
    default_message = "Order not found"


class InvalidStateTransition(OrderError):
    code = "INVALID_STATE_TRANSITION"
    http_status = 409
    default_message = "Order is not in a state that allows this action"


class CancellationReasonRequired(OrderError):
    code = "REASON_REQUIRED"
    default_message = "A cancellation reason is required"


def game_identity(details: Any) -> tuple[str, str]:
    """Return ``(uid, zone_id)`` from order details, accepting camel and snake case keys."""
    if not isinstance(details, dict):
        return "", ""
    uid = details.get("userId") or details.get("user_id") or ""
    zone_id = details.get("zoneId") or details.get("zone_id") or ""
    return str(uid).strip(), str(zone_id).strip()


def generate_order_number(user) -> str:
    prefix = (getattr(user, "username", "") or "order").strip().replace(" ", "")[:40]
    return f"{prefix}-{secrets.token_hex(4).upper()}"


def _as_price(value: Any) -> Decimal:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidOrderRequest("Price must be a number")
    if not price.is_finite() or price <= 0 or price > MAX_PRICE:
        raise InvalidOrderRequest(f"Price must be greater than 0 and at most {MAX_PRICE}")
    return price.quantize(ledger.BALANCE_QUANT)


def _validate_placement(
    *,
    order_number: str,
    category: str,
    package_name: str,
    product_name: str,
    quantity: Any,
    price: Any,
    details: Any,
) -> tuple[int, Decimal, dict]:
    if not order_number or len(order_number) > MAX_ORDER_NUMBER_LENGTH:
        raise InvalidOrderRequest(f"Order number must be 1-{MAX_ORDER_NUMBER_LENGTH} characters")
    if category not in Category.values:
        raise InvalidOrderRequest(f"Unknown category '{category}'")
    if not package_name or len(package_name) > MAX_NAME_LENGTH:
        raise InvalidOrderRequest(f"Package name must be 1-{MAX_NAME_LENGTH} characters")
    if len(product_name) > MAX_NAME_LENGTH:
        raise InvalidOrderRequest(f"Product name must be at most {MAX_NAME_LENGTH} characters")
    try:
        qty = int(quantity)
        whole = Decimal(str(quantity)) == qty
    except (TypeError, ValueError, OverflowError, InvalidOperation):
        whole = False
    if not whole:
        raise InvalidOrderRequest("Quantity must be a whole number")
    if qty < 1 or qty > MAX_QUANTITY:
        raise InvalidOrderRequest(f"Quantity must be between 1 and {MAX_QUANTITY}")
    amount = _as_price(price)

    details = details if details is not None else {}
    if not isinstance(details, dict):
        raise InvalidOrderRequest("Order details must be an object")
    try:
        encoded = json.dumps(details)
    except (TypeError, ValueError):
        raise InvalidOrderRequest("Order details must be JSON serializable")
    if len(encoded) > MAX_DETAILS_LENGTH:
        raise InvalidOrderRequest("Order details are too large")

    if category in AUTOMATED_CATEGORIES:
        # no charge for a package the provider cannot deliver
        resolve_variation_id(package_name)
        uid, zone_id = game_identity(details)
        if not uid or not zone_id:
            raise InvalidOrderDetails()
    return qty, amount, details


def _insert_order(user_id, *, order_number, category, product_name, package_name, quantity, price, details) -> Order:
    with transaction.atomic():
        order_id = uuid.uuid4()
        ledger.deduct(
            user_id,
            price,
            kind=WalletTransaction.Kind.ORDER_CHARGE,
            order_id=order_id,
            description=f"Order {order_number}: {package_name} x{quantity}",
        )
        return Order.objects.create(
            id=order_id,
            order_number=order_number,
            user_id=user_id,
            category=category,
            product_name=product_name,
            package_name=package_name,
            quantity=quantity,
            price=price,
            details=details,
            status=OrderStatus.PENDING,
            credits_deducted=price,
        )


def place_order(
    user,
    order_number: Optional[str],
    category: str,
    package_name: str,
    quantity: Any,
    price: Any,
    details: Optional[dict] = None,
    product_name: Optional[str] = None,
) -> Order:
    """
    Charge the account and create the order in one transaction.

    Either both the ledger entry and the ``pending`` order exist afterwards, or
    neither does. ``InsufficientFunds``, ``UnknownPackage`` and the validation
    errors are raised before anything is written.
    """
    order_number = (order_number or "").strip() or generate_order_number(user)
    package_name = (package_name or "").strip()
    product_name = (product_name or "").strip()
    category = (category or "").strip().lower()
    qty, amount, details = _validate_placement(
        order_number=order_number,
        category=category,
        package_name=package_name,
        product_name=product_name,
        quantity=quantity,
        price=price,
        details=details,
    )

    user_id = getattr(user, "pk", user)
    attempts = 0
    while True:
        attempts += 1
        try:
            order = _insert_order(
                user_id,
                order_number=order_number,
                category=category,
                product_name=product_name,
                package_name=package_name,
                quantity=qty,
                price=amount,
                details=details,
            )
            break
        except IntegrityError as exc:
            if Order.objects.filter(order_number=order_number).exists():
                raise DuplicateOrder(order_number=order_number) from exc
            logger.exception("Order insert violated a constraint", extra={"order_number": order_number})
            raise OrderPlacementFailed(order_number=order_number) from exc
        except OperationalError as exc:
            if attempts >= 2:
                logger.error(
                    "Order placement failed after retry",
                    extra={"order_number": order_number, "error": str(exc)},
                )
                raise OrderPlacementFailed(order_number=order_number) from exc
            logger.warning(
                "Storage error during placement, retrying once",
                extra={"order_number": order_number, "error": str(exc)},
            )

    logger.info(
        "Order placed",
        extra={
            "order_id": str(order.id),
            "order_number": order.order_number,
            "user_id": str(user_id),
            "category": order.category,
            "price": str(order.price),
        },
    )
    publish_order_changed(order_id=order.id, status=order.status, previous_status=None)
    return order


def get_order(order_id) -> Order:
    try:
        order_uuid = uuid.UUID(str(order_id))
    except (TypeError, ValueError, AttributeError):
        raise OrderNotFound(order_id=str(order_id))
    try:
        return Order.objects.select_related("user").get(pk=order_uuid)
    except Order.DoesNotExist:
        raise OrderNotFound(order_id=str(order_id))


def transition_order(order_id, *, from_statuses, to_status: str, **fields) -> int:
    """Apply a status change only if the row is still in one of ``from_statuses``."""
    now = timezone.now()
    return Order.objects.filter(pk=order_id, status__in=list(from_statuses)).update(
        status=to_status,
        updated_at=now,
        **fields,
    )


def confirm_order(order_id, admin_remarks: Optional[str] = None, reviewed_by=None) -> Order:
    order = get_order(order_id)
    if order.is_automated:
        raise InvalidStateTransition("Automated orders are completed by the provider")
    if order.status == OrderStatus.CONFIRMED:
        return order

    with transaction.atomic():
        updated = transition_order(
            order.pk,
            from_statuses=[OrderStatus.PENDING],
            to_status=OrderStatus.CONFIRMED,
            confirmed_at=timezone.now(),
            reviewed_by=reviewed_by,
            admin_remarks=(admin_remarks or "").strip(),
        )
        if not updated:
            current = get_order(order.pk)
            if current.status == OrderStatus.CONFIRMED:
                return current
            raise InvalidStateTransition(f"Cannot confirm an order that is {current.status}")
        publish_order_changed(order_id=order.pk, status=OrderStatus.CONFIRMED, previous_status=OrderStatus.PENDING)

    logger.info("Order confirmed", extra={"order_id": str(order.pk), "reviewed_by": getattr(reviewed_by, "pk", None)})
    return get_order(order.pk)


def cancel_order(
    order_id,
    reason: str,
    reviewed_by=None,
    *,
    expected_status: str = OrderStatus.PENDING,
    failure_reason: str = "",
) -> Order:
    """
    Cancel the order and credit ``credits_deducted`` back in the same transaction.

    ``expected_status`` is ``pending`` for administrators and ``processing`` when
    automated fulfillment gives up on the order.
    """
    reason = (reason or "").strip()
    if not reason:
        raise CancellationReasonRequired()
    order = get_order(order_id)

    with transaction.atomic():
        updated = transition_order(
            order.pk,
            from_statuses=[expected_status],
            to_status=OrderStatus.CANCELED,
            canceled_at=timezone.now(),
            cancellation_reason=reason,
            reviewed_by=reviewed_by,
            failure_reason=failure_reason,
        )
        if not updated:
            current = Order.objects.filter(pk=order.pk).values_list("status", flat=True).first()
            raise InvalidStateTransition(f"Cannot cancel an order that is {current}")
        ledger.credit(
            order.user_id,
            order.credits_deducted,
            kind=WalletTransaction.Kind.ORDER_REFUND,
            order_id=order.pk,
            description=f"Refund for order {order.order_number}: {reason}"[:500],
            created_by=reviewed_by,
        )
        publish_order_changed(order_id=order.pk, status=OrderStatus.CANCELED, previous_status=expected_status)

    logger.info(
        "Order canceled",
        extra={"order_id": str(order.pk), "reason": reason, "refund": str(order.credits_deducted)},
    )
    return get_order(order.pk)


def list_orders(
    *,
    user=None,
    status: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    cursor: Optional[str] = None,
    limit: int = 20,
) -> CursorPage:
    limit = max(1, min(int(limit or 20), 100))
    qs = Order.objects.select_related("user")
    if user is not None:
        qs = qs.filter(user_id=getattr(user, "pk", user))
    if status in OrderStatus.values:
        qs = qs.filter(status=status)
    if category in Category.values:
        qs = qs.filter(category=category)
    if date_from:
        try:
            qs = qs.filter(created_at__date__gte=datetime.fromisoformat(date_from).date())
        except ValueError:
            pass
    if date_to:
        try:
            qs = qs.filter(created_at__date__lte=datetime.fromisoformat(date_to).date())
        except ValueError:
            pass
    if search:
        q = search.strip()
        filters = (
            Q(order_number__icontains=q)
            | Q(package_name__icontains=q)
            | Q(product_name__icontains=q)
            | Q(user__username__icontains=q)
            | Q(transaction_id__icontains=q)
        )
        try:
            filters |= Q(id=uuid.UUID(q))
        except ValueError:
            pass
        qs = qs.filter(filters)
    return keyset_page(qs, cursor=cursor, limit=limit)


def manual_review_queue():
    """Pending orders waiting for an administrator, oldest first."""
    return (
        Order.objects.select_related("user")
        .filter(status=OrderStatus.PENDING)
        .exclude(category__in=list(AUTOMATED_CATEGORIES))
        .order_by("created_at")
    )
