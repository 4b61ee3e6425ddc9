"""
Helpers for writing wallet ledger rows.
"""
from decimal import Decimal
from typing import Optional

from apps.users.wallet_models import WalletTransaction
from apps.users.models import User


def record_wallet_transaction(
    user: User,
    kind: str,
    amount: Decimal,
    balance_before: Decimal,
    balance_after: Decimal,
    description: str = "",
    order_id=None,
    topup_id=None,
    created_by: Optional[User] = None,
    metadata: Optional[dict] = None,
) -> WalletTransaction:
    """
    Record one wallet transaction.

    Args:
        user: account whose balance changed
        kind: WalletTransaction.Kind value
        amount: signed amount (negative = debit)
        balance_before / balance_after: balance around the mutation
        order_id / topup_id: exactly one must be given
        created_by: administrator for manual actions
        metadata: extra details shown in the wallet history

    Returns:
        WalletTransaction: the stored row
    """
    return WalletTransaction.objects.create(
        user=user,
        kind=kind,
        amount=amount,
        currency=user.currency or 'INR',
        balance_before=balance_before,
        balance_after=balance_after,
        description=description[:500],
        order_id=order_id,
        topup_id=topup_id,
        created_by=created_by,
        metadata=metadata or {},
    )
