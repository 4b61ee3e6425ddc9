from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.core.paginator import Paginator
from drf_spectacular.utils import extend_schema

from apps.users.auth import current_account_id
from apps.users.models import User
from apps.users.wallet_models import WalletTransaction
from apps.users.wallet_serializers import (
    WalletBalanceSerializer,
    WalletTransactionsListResponseSerializer,
    WalletTransactionSerializer,
)

MAX_PAGE_SIZE = 100


def _int_param(raw, default: int, *, minimum: int = 1, maximum: int | None = None) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    value = max(minimum, value)
    if maximum is not None:
        value = min(maximum, value)
    return value


class WalletBalanceView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Wallet"], responses={200: WalletBalanceSerializer})
    def get(self, request):
        account = User.objects.only('balance', 'currency', 'balance_updated_at').get(pk=current_account_id(request))
        return Response({
            'balance': str(account.balance),
            'currency': account.currency,
            'updatedAt': account.balance_updated_at.isoformat() if account.balance_updated_at else None,
        })


class WalletTransactionsView(APIView):
    """
    Wallet history for the current user, newest first.

    Query Parameters:
    - page: page number (default 1)
    - page_size: items per page (default 20, max 100)
    - kind: order_charge, order_refund, order_retry_charge or topup
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Wallet"],
        responses={200: WalletTransactionsListResponseSerializer}
    )
    def get(self, request):
        page_num = _int_param(request.GET.get('page'), 1)
        page_size = _int_param(request.GET.get('page_size'), 20, maximum=MAX_PAGE_SIZE)
        kind = request.GET.get('kind')

        transactions = WalletTransaction.objects.filter(user_id=current_account_id(request))
        if kind in WalletTransaction.Kind.values:
            transactions = transactions.filter(kind=kind)
        transactions = transactions.order_by('-created_at')

        paginator = Paginator(transactions, page_size)
        page_obj = paginator.get_page(page_num)

        serializer = WalletTransactionSerializer(page_obj.object_list, many=True)
        return Response({
            'transactions': serializer.data,
            'total': paginator.count,
            'page': page_obj.number,
            'page_size': page_size,
            'total_pages': paginator.num_pages,
        })
