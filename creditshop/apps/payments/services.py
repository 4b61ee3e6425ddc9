"""
Manual top-up requests: the customer claims a payment, an administrator
approves it (wallet credit) or rejects it.
"""
from __future__ import annotations

import logging
import uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from django.db import transaction
from django.utils import timezone

from apps.core.errors import ServiceError
from apps.users import ledger
from apps.users.wallet_models import WalletTransaction
from .models import TopUpRequest

logger = logging.getLogger(__name__)

MAX_TOPUP = Decimal("1000000")


class TopUpError(ServiceError):
    code = "TOPUP_ERROR"


class InvalidTopUpRequest(TopUpError):
    code = "INVALID_TOPUP"
    default_message = "Top-up request is invalid"


class TopUpNotFound(TopUpError):
    code = "TOPUP_NOT_FOUND"
    http_status = 404
    default_message = "Top-up request not found"


class TopUpAlreadyProcessed(TopUpError):
    code = "TOPUP_ALREADY_PROCESSED"
    http_status = 409
    default_message = "This top-up request has already been processed"


def _positive(value: Any, label: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidTopUpRequest(f"{label} must be a number")
    if not amount.is_finite() or amount <= 0 or amount > MAX_TOPUP:
        raise InvalidTopUpRequest(f"{label} must be greater than 0 and at most {MAX_TOPUP}")
    return amount.quantize(ledger.BALANCE_QUANT)


def submit_topup(
    user,
    amount: Any,
    credits: Any = None,
    *,
    payment_reference: str = "",
    screenshot_url: str = "",
) -> TopUpRequest:
    paid = _positive(amount, "Amount")
    granted = _positive(credits if credits not in (None, "") else amount, "Credits")
    req = TopUpRequest.objects.create(
        user_id=getattr(user, "pk", user),
        amount=paid,
        credits=granted,
        payment_reference=(payment_reference or "").strip()[:200],
        screenshot_url=(screenshot_url or "").strip()[:512],
    )
    logger.info(
        "Top-up requested",
        extra={"topup_id": str(req.pk), "user_id": str(req.user_id), "credits": str(req.credits)},
    )
    return req


def get_topup(topup_id) -> TopUpRequest:
    try:
        key = uuid.UUID(str(topup_id))
    except (TypeError, ValueError, AttributeError):
        raise TopUpNotFound(topup_id=str(topup_id))
    try:
        return TopUpRequest.objects.select_related("user").get(pk=key)
    except TopUpRequest.DoesNotExist:
        raise TopUpNotFound(topup_id=str(topup_id))


def _settle(topup_id, status: str, *, processed_by=None, remarks: str = "") -> int:
    return TopUpRequest.objects.filter(pk=topup_id, status=TopUpRequest.Status.PENDING).update(
        status=status,
        processed_at=timezone.now(),
        processed_by=processed_by,
        remarks=(remarks or "").strip(),
    )


def approve_topup(topup_id, *, processed_by=None, remarks: str = "") -> TopUpRequest:
    """Credit the wallet once; a second approval finds the row settled and fails."""
    req = get_topup(topup_id)
    with transaction.atomic():
        if not _settle(req.pk, TopUpRequest.Status.APPROVED, processed_by=processed_by, remarks=remarks):
            raise TopUpAlreadyProcessed(topup_id=str(req.pk))
        ledger.credit(
            req.user_id,
            req.credits,
            kind=WalletTransaction.Kind.TOPUP,
            topup_id=req.pk,
            description=f"Top-up {req.payment_reference or req.pk}"[:500],
            created_by=processed_by,
        )
    logger.info(
        "Top-up approved",
        extra={"topup_id": str(req.pk), "credits": str(req.credits), "processed_by": getattr(processed_by, "pk", None)},
    )
    return get_topup(req.pk)


def reject_topup(topup_id, *, processed_by=None, remarks: str = "") -> TopUpRequest:
    req = get_topup(topup_id)
    if not (remarks or "").strip():
        raise InvalidTopUpRequest("Remarks are required when rejecting a top-up")
    if not _settle(req.pk, TopUpRequest.Status.REJECTED, processed_by=processed_by, remarks=remarks):
        raise TopUpAlreadyProcessed(topup_id=str(req.pk))
    logger.info("Top-up rejected", extra={"topup_id": str(req.pk), "remarks": remarks})
    return get_topup(req.pk)


def list_topups(*, user=None, status: Optional[str] = None):
    qs = TopUpRequest.objects.select_related("user").order_by("-created_at")
    if user is not None:
        qs = qs.filter(user_id=getattr(user, "pk", user))
    if status in TopUpRequest.Status.values:
        qs = qs.filter(status=status)
    return qs
