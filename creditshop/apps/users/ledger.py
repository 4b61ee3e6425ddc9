"""
Credit ledger: the only code path that changes ``User.balance``.

Every mutation runs in ``transaction.atomic()`` and locks the user row with
``select_for_update`` before reading the balance, so concurrent deducts and
credits on one account are linearized by the database.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from django.db import transaction
from django.utils import timezone

from apps.core.errors import ServiceError
from .models import User
from .signals import publish_balance_changed
from .wallet_helpers import record_wallet_transaction
from .wallet_models import WalletTransaction

logger = logging.getLogger(__name__)

BALANCE_QUANT = Decimal("0.000001")


class LedgerError(ServiceError):
    code = "LEDGER_ERROR"


class InsufficientFunds(LedgerError):
    code = "INSUFFICIENT_FUNDS"
    http_status = 402
    default_message = "Insufficient balance. Please top up your credits."


class InvalidAmount(LedgerError):
    code = "INVALID_AMOUNT"
    default_message = "Amount must be a positive number"


class AccountNotFound(LedgerError):
    code = "ACCOUNT_NOT_FOUND"
    http_status = 404
    default_message = "Account not found"


@dataclass(frozen=True)
class LedgerResult:
    ok: bool
    new_balance: Decimal
    entry: WalletTransaction


def _as_amount(amount: object) -> Decimal:
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"Invalid amount: {amount!r}")
    if not value.is_finite() or value <= 0:
        raise InvalidAmount(f"Amount must be greater than zero, got {amount!r}")
    return value.quantize(BALANCE_QUANT, ROUND_HALF_UP)


def _check_attribution(order_id, topup_id) -> None:
    if (order_id is None) == (topup_id is None):
        raise ValueError("ledger mutation needs exactly one of order_id or topup_id")


def _lock_account(user_id) -> User:
    try:
        return User.objects.select_for_update().get(pk=user_id)
    except User.DoesNotExist as exc:
        raise AccountNotFound(user_id=str(user_id)) from exc


def _apply(
    user_id,
    signed_amount: Decimal,
    *,
    kind: str,
    order_id=None,
    topup_id=None,
    description: str = "",
    created_by: Optional[User] = None,
    metadata: Optional[dict] = None,
) -> LedgerResult:
    with transaction.atomic():
        account = _lock_account(user_id)
        before = Decimal(account.balance or 0).quantize(BALANCE_QUANT, ROUND_HALF_UP)
        after = (before + signed_amount).quantize(BALANCE_QUANT, ROUND_HALF_UP)
        if after < 0:
            raise InsufficientFunds(balance=before, required=-signed_amount)

        now = timezone.now()
        User.objects.filter(pk=account.pk).update(balance=after, balance_updated_at=now)
        account.balance = after
        account.balance_updated_at = now

        entry = record_wallet_transaction(
            user=account,
            kind=kind,
            amount=signed_amount,
            balance_before=before,
            balance_after=after,
            description=description,
            order_id=order_id,
            topup_id=topup_id,
            created_by=created_by,
            metadata=metadata,
        )
        publish_balance_changed(user_id=account.pk, balance=after, delta=signed_amount, entry_id=entry.id)

    logger.info(
        "ledger mutation",
        extra={
            "user_id": str(user_id),
            "kind": kind,
            "amount": str(signed_amount),
            "balance_after": str(after),
            "order_id": str(order_id) if order_id else None,
            "topup_id": str(topup_id) if topup_id else None,
        },
    )
    return LedgerResult(ok=True, new_balance=after, entry=entry)


def deduct(
    user_id,
    amount,
    *,
    kind: str = WalletTransaction.Kind.ORDER_CHARGE,
    order_id=None,
    topup_id=None,
    description: str = "",
    created_by: Optional[User] = None,
    metadata: Optional[dict] = None,
) -> LedgerResult:
    """Atomically check and debit ``amount``; raises InsufficientFunds with no side effect."""
    value = _as_amount(amount)
    _check_attribution(order_id, topup_id)
    return _apply(
        user_id,
        -value,
        kind=kind,
        order_id=order_id,
        topup_id=topup_id,
        description=description,
        created_by=created_by,
        metadata=metadata,
    )


def credit(
    user_id,
    amount,
    *,
    kind: str,
    order_id=None,
    topup_id=None,
    description: str = "",
    created_by: Optional[User] = None,
    metadata: Optional[dict] = None,
) -> LedgerResult:
    value = _as_amount(amount)
    _check_attribution(order_id, topup_id)
    return _apply(
        user_id,
        value,
        kind=kind,
        order_id=order_id,
        topup_id=topup_id,
        description=description,
        created_by=created_by,
        metadata=metadata,
    )


def current_balance(user_id) -> Decimal:
    try:
        balance = User.objects.values_list("balance", flat=True).get(pk=user_id)
    except User.DoesNotExist as exc:
        raise AccountNotFound(user_id=str(user_id)) from exc
    return Decimal(balance or 0)


def net_effect_for_order(order_id) -> Decimal:
    """Signed sum of ledger entries attributed to ``order_id`` (negative = charged)."""
    total = Decimal("0")
    for amount in WalletTransaction.objects.filter(order_id=order_id).values_list("amount", flat=True):
        total += Decimal(amount)
    return total
