from __future__ import annotations

import logging

from django.conf import settings
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.users.auth import current_account_id, current_actor
from apps.users.permissions import RequireAdminRole, is_admin_user
from . import services
from .dedupe import default_guard, order_dedupe_key
from .dispatch import dispatch_order
from .serializers import (
    AdminOrderSerializer,
    AdminOrdersListResponseSerializer,
    CancelOrderRequestSerializer,
    ConfirmOrderRequestSerializer,
    OrderCreateRequestSerializer,
    OrderSerializer,
    OrdersListResponseSerializer,
)

logger = logging.getLogger(__name__)


def _limit(request, default: int = 20) -> int:
    try:
        return max(1, min(int(request.query_params.get('limit') or default), 100))
    except (TypeError, ValueError):
        return default


def _page_response(page, serializer_class):
    data = serializer_class(page.items, many=True).data
    return Response({'items': data, 'pageInfo': {'nextCursor': page.next_cursor, 'hasMore': page.has_more}})


class OrdersCreateView(APIView):
    permission_classes = [IsAuthenticated]
    @extend_schema(
        tags=["Orders"],
        request=OrderCreateRequestSerializer,
        responses={201: OrderSerializer},
    )
    def post(self, request):
        serializer = OrderCreateRequestSerializer(data=request.data)
        if not serializer.is_valid():
            raise ValidationError(serializer.errors)
        payload = serializer.validated_data
        user_id = current_account_id(request)

        def _submit():
            order = services.place_order(
                request.user,
                payload.get('orderNumber'),
                payload['category'],
                payload['packageName'],
                payload['quantity'],
                payload['price'],
                payload.get('details') or {},
                product_name=payload.get('productName'),
            )
            dispatch_order(order)
            return services.get_order(order.pk)

        key = None
        if getattr(settings, 'ORDER_DEDUPE_ENABLED', True):
            key = order_dedupe_key(user_id, payload['category'], payload['packageName'], payload['quantity'])
        order = default_guard.run(key, _submit)
        return Response(OrderSerializer(order).data, status=201)


class MyOrdersListView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Orders"],
        parameters=[
            OpenApiParameter(name='limit', required=False, type=int, description='Page size (1..100)'),
            OpenApiParameter(name='cursor', required=False, type=str, description='nextCursor from the previous page'),
            OpenApiParameter(name='status', required=False, type=str),
        ],
        responses={200: OrdersListResponseSerializer},
    )
    def get(self, request):
        page = services.list_orders(
            user=current_account_id(request),
            status=(request.query_params.get('status') or '').strip() or None,
            cursor=request.query_params.get('cursor') or None,
            limit=_limit(request),
        )
        return _page_response(page, OrderSerializer)


class MyOrderDetailsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Orders"], responses={200: OrderSerializer})
    def get(self, request, id):
        order = services.get_order(id)
        if order.user_id != current_account_id(request) and not is_admin_user(request.user):
            raise PermissionDenied('You do not have access to this order')
        return Response(OrderSerializer(order).data)


class AdminOrdersListView(APIView):
    permission_classes = [IsAuthenticated, RequireAdminRole]

    @extend_schema(
        tags=["Admin Orders"],
        parameters=[
            OpenApiParameter(name='limit', required=False, type=int),
            OpenApiParameter(name='cursor', required=False, type=str),
            OpenApiParameter(name='status', required=False, type=str, description='pending|processing|confirmed|completed|canceled'),
            OpenApiParameter(name='category', required=False, type=str),
            OpenApiParameter(name='from', required=False, type=str, description='ISO date (YYYY-MM-DD) inclusive'),
            OpenApiParameter(name='to', required=False, type=str, description='ISO date (YYYY-MM-DD) inclusive'),
            OpenApiParameter(name='q', required=False, type=str, description='Search order number, package, username'),
        ],
        responses={200: AdminOrdersListResponseSerializer},
    )
    def get(self, request):
        params = request.query_params
        page = services.list_orders(
            status=(params.get('status') or '').strip() or None,
            category=(params.get('category') or '').strip() or None,
            search=(params.get('q') or '').strip() or None,
            date_from=(params.get('from') or '').strip() or None,
            date_to=(params.get('to') or '').strip() or None,
            cursor=params.get('cursor') or None,
            limit=_limit(request),
        )
        return _page_response(page, AdminOrderSerializer)


class AdminReviewQueueView(APIView):
    permission_classes = [IsAuthenticated, RequireAdminRole]

    @extend_schema(tags=["Admin Orders"], responses={200: AdminOrdersListResponseSerializer})
    def get(self, request):
        limit = _limit(request, default=50)
        queue = list(services.manual_review_queue()[: limit + 1])
        has_more = len(queue) > limit
        items = queue[:limit]
        return Response({
            'items': AdminOrderSerializer(items, many=True).data,
            'pageInfo': {'nextCursor': None, 'hasMore': has_more},
        })


class AdminOrderDetailsView(APIView):
    permission_classes = [IsAuthenticated, RequireAdminRole]

    @extend_schema(tags=["Admin Orders"], responses={200: AdminOrderSerializer})
    def get(self, request, id):
        order = services.get_order(id)
        data = AdminOrderSerializer(order).data
        from apps.providers.models import FulfillmentAttempt
        from apps.providers.serializers import FulfillmentAttemptSerializer

        attempt = FulfillmentAttempt.objects.filter(order_id=order.pk).first()
        data['fulfillment'] = FulfillmentAttemptSerializer(attempt).data if attempt else None
        return Response(data)


class AdminOrderConfirmView(APIView):
    permission_classes = [IsAuthenticated, RequireAdminRole]

    @extend_schema(tags=["Admin Orders"], request=ConfirmOrderRequestSerializer, responses={200: AdminOrderSerializer})
    def post(self, request, id):
        serializer = ConfirmOrderRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = services.confirm_order(
            id,
            admin_remarks=serializer.validated_data.get('adminRemarks'),
            reviewed_by=current_actor(request),
        )
        return Response(AdminOrderSerializer(order).data)


class AdminOrderCancelView(APIView):
    permission_classes = [IsAuthenticated, RequireAdminRole]

    @extend_schema(tags=["Admin Orders"], request=CancelOrderRequestSerializer, responses={200: AdminOrderSerializer})
    def post(self, request, id):
        serializer = CancelOrderRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = services.cancel_order(
            id,
            serializer.validated_data['reason'],
            reviewed_by=current_actor(request),
        )
        return Response(AdminOrderSerializer(order).data)
