"""
Automated fulfillment: the two-phase verify/submit protocol and its retries.

Every path out of ``_run_phases`` leaves the order either ``completed`` or
``canceled`` with the charge refunded. The one exception is a refund that
cannot be written twice in a row: the order stays ``processing`` with the
attempt marked ``failed``, and a retry resumes it without charging again.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from django.db import OperationalError, transaction
from django.db.models import Count, F
from django.utils import timezone

from apps.core.errors import ServiceError
from apps.orders.models import Order, OrderStatus
from apps.orders.services import (
    InvalidStateTransition,
    cancel_order,
    game_identity,
    get_order,
    transition_order,
)
from apps.orders.signals import publish_order_changed
from apps.users import ledger
from apps.users.wallet_models import WalletTransaction
from .adapters import ProviderExchange, TopupApiAdapter, TopupApiCredentials, TopupApiError
from .catalog import resolve_variation_id
from .models import FulfillmentAttempt

logger = logging.getLogger(__name__)


class FulfillmentError(ServiceError):
    code = "FULFILLMENT_ERROR"
    http_status = 502
    default_message = (
        "There was a processing issue with your order. It will be reviewed and your balance has been restored."
    )


class VerificationFailed(FulfillmentError):
    code = "VERIFICATION_FAILED"
    http_status = 422
    default_message = "We could not verify this game account. Please check your User ID and Zone ID and order again."


class ProviderOrderFailed(FulfillmentError):
    code = "PROVIDER_ORDER_FAILED"


class ProviderUnreachable(FulfillmentError):
    code = "PROVIDER_UNREACHABLE"
    retryable = True


@dataclass
class FulfillmentResult:
    order_id: Any
    ok: bool
    status: str
    transaction_id: str = ""
    error_code: str = ""
    error_message: str = ""


@dataclass
class BulkRetryReport:
    retried: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "retried": self.retried,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "errors": list(self.errors),
        }


def _now():
    return timezone.now()


def _ensure_automated(order: Order) -> None:
    if not order.is_automated:
        raise InvalidStateTransition("Manual orders are not sent to the provider")


def fulfill_order(
    order_id,
    *,
    adapter: Optional[TopupApiAdapter] = None,
    credentials: Optional[TopupApiCredentials] = None,
) -> FulfillmentResult:
    """First dispatch of a pending automated order."""
    order = get_order(order_id)
    _ensure_automated(order)
    uid, zone_id = game_identity(order.details)

    with transaction.atomic():
        moved = transition_order(order.pk, from_statuses=[OrderStatus.PENDING], to_status=OrderStatus.PROCESSING)
        if not moved:
            current = Order.objects.filter(pk=order.pk).values_list("status", flat=True).first()
            raise InvalidStateTransition(f"Cannot start fulfillment for an order that is {current}")
        attempt, created = FulfillmentAttempt.objects.get_or_create(
            order=order,
            defaults={"uid": uid, "zone_id": zone_id, "status": FulfillmentAttempt.Status.PROCESSING},
        )
        if not created:
            _reset_attempt(attempt, uid=uid, zone_id=zone_id)
            attempt.save()
        publish_order_changed(order_id=order.pk, status=OrderStatus.PROCESSING, previous_status=OrderStatus.PENDING)

    order.status = OrderStatus.PROCESSING
    logger.info("Fulfillment started", extra={"order_id": str(order.pk), "order_number": order.order_number})
    return _run_phases(order, attempt, adapter=adapter, credentials=credentials)


def _reset_attempt(attempt: FulfillmentAttempt, *, uid: str, zone_id: str) -> None:
    attempt.uid = uid
    attempt.zone_id = zone_id
    attempt.status = FulfillmentAttempt.Status.PROCESSING
    attempt.display_name = ""
    attempt.verification_response = None
    attempt.order_response = None
    attempt.transaction_id = ""
    attempt.error_code = ""
    attempt.error_message = ""
    attempt.verification_sent_at = None
    attempt.verification_completed_at = None
    attempt.order_sent_at = None
    attempt.completed_at = None
    attempt.failed_at = None


def _transport_record(exc: TopupApiError) -> Dict[str, Any]:
    return {"request": exc.request, "httpStatus": None, "body": None, "raw": "", "error": exc.message}


def _run_phases(
    order: Order,
    attempt: FulfillmentAttempt,
    *,
    adapter: Optional[TopupApiAdapter] = None,
    credentials: Optional[TopupApiCredentials] = None,
) -> FulfillmentResult:
    adapter = adapter or TopupApiAdapter()
    credentials = credentials or TopupApiCredentials.from_settings()

    try:
        variation_id = resolve_variation_id(order.package_name)
        attempt.product_id = variation_id
        if not attempt.uid or not attempt.zone_id:
            raise VerificationFailed("Missing user id or zone id in order details")

        # Phase 1: identity verification, repeated on every retry
        attempt.verification_sent_at = _now()
        attempt.save()
        try:
            verify: ProviderExchange = adapter.verify_identity(credentials, variation_id, attempt.uid, attempt.zone_id)
        except TopupApiError as exc:
            attempt.verification_response = _transport_record(exc)
            raise ProviderUnreachable(exc.message) from exc
        attempt.verification_response = verify.as_record()
        attempt.verification_completed_at = _now()
        attempt.display_name = adapter.display_name(verify)[:255]
        attempt.save()
        if not verify.ok:
            raise VerificationFailed(verify.message or None)

        # Phase 2: submit with the order number as the provider-side idempotency key
        attempt.order_sent_at = _now()
        attempt.save()
        try:
            submit: ProviderExchange = adapter.submit_order(
                credentials, variation_id, order.quantity, attempt.uid, attempt.zone_id, order.order_number,
            )
        except TopupApiError as exc:
            attempt.order_response = _transport_record(exc)
            raise ProviderUnreachable(exc.message) from exc
        attempt.order_response = submit.as_record()
        attempt.save()
        if not submit.ok:
            raise ProviderOrderFailed(submit.message or None)
        transaction_id = adapter.transaction_id(submit)
    except Exception as exc:
        return _fail(order, attempt, exc)

    return _complete(order, attempt, transaction_id)


def _complete(order: Order, attempt: FulfillmentAttempt, transaction_id: str) -> FulfillmentResult:
    now = _now()
    with transaction.atomic():
        attempt.status = FulfillmentAttempt.Status.COMPLETED
        attempt.transaction_id = transaction_id
        attempt.completed_at = now
        attempt.error_code = ""
        attempt.error_message = ""
        attempt.save()
        updated = transition_order(
            order.pk,
            from_statuses=[OrderStatus.PROCESSING],
            to_status=OrderStatus.COMPLETED,
            completed_at=now,
            transaction_id=transaction_id,
            failure_reason="",
        )
        if updated:
            publish_order_changed(order_id=order.pk, status=OrderStatus.COMPLETED, previous_status=OrderStatus.PROCESSING)

    if not updated:
        logger.error(
            "Provider delivered but order left processing concurrently",
            extra={"order_id": str(order.pk), "transaction_id": transaction_id},
        )
    logger.info(
        "Fulfillment completed",
        extra={"order_id": str(order.pk), "transaction_id": transaction_id, "retry_count": attempt.retry_count},
    )
    return FulfillmentResult(
        order_id=order.pk,
        ok=True,
        status=OrderStatus.COMPLETED,
        transaction_id=transaction_id,
    )


def _settle_failure(order: Order, attempt: FulfillmentAttempt, code: str, message: str) -> None:
    with transaction.atomic():
        attempt.status = FulfillmentAttempt.Status.FAILED
        attempt.error_code = code[:64]
        attempt.error_message = message
        attempt.failed_at = _now()
        attempt.save()
        try:
            cancel_order(
                order.pk,
                reason=f"Automatic delivery failed: {message}",
                expected_status=OrderStatus.PROCESSING,
                failure_reason=f"{code}: {message}",
            )
        except InvalidStateTransition:
            logger.error("Failed order was no longer processing, refund skipped", extra={"order_id": str(order.pk)})


def _fail(order: Order, attempt: FulfillmentAttempt, exc: Exception) -> FulfillmentResult:
    if isinstance(exc, ServiceError):
        code, message = exc.code, exc.message
        logger.warning(
            "Fulfillment failed",
            extra={"order_id": str(order.pk), "error_code": code, "error": message},
        )
    else:
        code, message = "UNEXPECTED_ERROR", str(exc) or exc.__class__.__name__
        logger.exception("Unexpected error during fulfillment", extra={"order_id": str(order.pk)})

    for tries in (1, 2):
        try:
            _settle_failure(order, attempt, code, message)
            break
        except OperationalError as db_exc:
            if tries == 1:
                logger.warning(
                    "Storage error while refunding failed order, retrying once",
                    extra={"order_id": str(order.pk), "error": str(db_exc)},
                )
                continue
            # refund still owed; the failed attempt keeps the order retryable
            logger.error(
                "Refund for failed order could not be written",
                extra={"order_id": str(order.pk), "error": str(db_exc)},
            )
            FulfillmentAttempt.objects.filter(pk=attempt.pk).update(
                status=FulfillmentAttempt.Status.FAILED,
                error_code=code[:64],
                error_message=message,
                failed_at=_now(),
                updated_at=_now(),
            )
            return FulfillmentResult(
                order_id=order.pk,
                ok=False,
                status=OrderStatus.PROCESSING,
                error_code=code,
                error_message=message,
            )

    return FulfillmentResult(
        order_id=order.pk,
        ok=False,
        status=OrderStatus.CANCELED,
        error_code=code,
        error_message=message,
    )


def retry_fulfillment(
    order_id,
    *,
    adapter: Optional[TopupApiAdapter] = None,
    credentials: Optional[TopupApiCredentials] = None,
    requested_by=None,
) -> FulfillmentResult:
    """
    Re-run both phases for an order whose attempt failed.

    A failed attempt normally means the order was canceled and refunded, so the
    retry charges the order again before reopening it. ``InsufficientFunds``
    aborts the retry with nothing changed. An order still ``processing`` kept
    its original charge and is resumed as is.
    """
    order = get_order(order_id)
    _ensure_automated(order)
    attempt = FulfillmentAttempt.objects.filter(order=order).first()

    if attempt is None:
        if order.status == OrderStatus.PENDING:
            return fulfill_order(order.pk, adapter=adapter, credentials=credentials)
        raise InvalidStateTransition("Order has no fulfillment attempt to retry")
    if attempt.status != FulfillmentAttempt.Status.FAILED:
        raise InvalidStateTransition(f"Only failed attempts can be retried (attempt is {attempt.status})")

    uid, zone_id = game_identity(order.details)
    previous_status = order.status
    with transaction.atomic():
        claimed = FulfillmentAttempt.objects.filter(pk=attempt.pk, status=FulfillmentAttempt.Status.FAILED).update(
            status=FulfillmentAttempt.Status.PROCESSING,
            retry_count=F("retry_count") + 1,
            uid=uid,
            zone_id=zone_id,
            display_name="",
            verification_response=None,
            order_response=None,
            transaction_id="",
            error_code="",
            error_message="",
            verification_sent_at=None,
            verification_completed_at=None,
            order_sent_at=None,
            completed_at=None,
            failed_at=None,
            updated_at=_now(),
        )
        if not claimed:
            raise InvalidStateTransition("Attempt is already being retried")

        if previous_status == OrderStatus.CANCELED:
            ledger.deduct(
                order.user_id,
                order.credits_deducted,
                kind=WalletTransaction.Kind.ORDER_RETRY_CHARGE,
                order_id=order.pk,
                description=f"Retry of order {order.order_number}",
                created_by=requested_by,
            )
            reopened = transition_order(
                order.pk,
                from_statuses=[OrderStatus.CANCELED],
                to_status=OrderStatus.PROCESSING,
                canceled_at=None,
                cancellation_reason="",
                failure_reason="",
            )
        elif previous_status == OrderStatus.PENDING:
            reopened = transition_order(order.pk, from_statuses=[OrderStatus.PENDING], to_status=OrderStatus.PROCESSING)
        elif previous_status == OrderStatus.PROCESSING:
            # refund was never written, the original charge still stands
            reopened = transition_order(order.pk, from_statuses=[OrderStatus.PROCESSING], to_status=OrderStatus.PROCESSING)
        else:
            raise InvalidStateTransition(f"Cannot retry an order that is {previous_status}")
        if not reopened:
            raise InvalidStateTransition("Order changed while the retry was being prepared")
        if previous_status != OrderStatus.PROCESSING:
            publish_order_changed(order_id=order.pk, status=OrderStatus.PROCESSING, previous_status=previous_status)

    attempt.refresh_from_db()
    order = get_order(order.pk)
    logger.info(
        "Fulfillment retry started",
        extra={"order_id": str(order.pk), "retry_count": attempt.retry_count, "requested_by": getattr(requested_by, "pk", None)},
    )
    return _run_phases(order, attempt, adapter=adapter, credentials=credentials)


def retry_all_failed(
    *,
    adapter: Optional[TopupApiAdapter] = None,
    credentials: Optional[TopupApiCredentials] = None,
    requested_by=None,
    limit: Optional[int] = None,
) -> BulkRetryReport:
    """Retry every failed attempt one after another; one bad order never stops the rest."""
    qs = (
        FulfillmentAttempt.objects.filter(status=FulfillmentAttempt.Status.FAILED)
        .order_by("failed_at", "created_at")
        .values_list("order_id", flat=True)
    )
    order_ids = list(qs[:limit] if limit else qs)
    report = BulkRetryReport()

    for order_id in order_ids:
        report.retried += 1
        try:
            result = retry_fulfillment(order_id, adapter=adapter, credentials=credentials, requested_by=requested_by)
        except ServiceError as exc:
            report.failed += 1
            report.errors.append({"orderId": str(order_id), "code": exc.code, "message": exc.message})
            continue
        except Exception as exc:
            logger.exception("Bulk retry item crashed", extra={"order_id": str(order_id)})
            report.failed += 1
            report.errors.append({"orderId": str(order_id), "code": "UNEXPECTED_ERROR", "message": str(exc)})
            continue

        if result.ok:
            report.succeeded += 1
        else:
            report.failed += 1
            report.errors.append({"orderId": str(order_id), "code": result.error_code, "message": result.error_message})

    logger.info("Bulk fulfillment retry finished", extra=report.as_dict())
    return report


def list_attempts(status: Optional[str] = None):
    qs = FulfillmentAttempt.objects.select_related("order", "order__user").order_by("-created_at")
    if status in FulfillmentAttempt.Status.values:
        qs = qs.filter(status=status)
    return qs


def fulfillment_stats() -> Dict[str, int]:
    counts = {
        row["status"]: row["n"]
        for row in FulfillmentAttempt.objects.order_by().values("status").annotate(n=Count("id"))
    }
    total = sum(counts.values())
    completed = counts.get(FulfillmentAttempt.Status.COMPLETED, 0)
    return {
        "total": total,
        "idle": counts.get(FulfillmentAttempt.Status.IDLE, 0),
        "processing": counts.get(FulfillmentAttempt.Status.PROCESSING, 0),
        "completed": completed,
        "failed": counts.get(FulfillmentAttempt.Status.FAILED, 0),
        "successRate": round(completed * 100 / total) if total else 0,
    }
