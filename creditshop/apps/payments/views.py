from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.users.auth import current_account_id, current_actor
from apps.users.permissions import RequireAdminRole
from . import services
from .serializers import (
    AdminTopUpActionRequestSerializer,
    AdminTopUpSerializer,
    TopUpCreateRequestSerializer,
    TopUpSerializer,
    TopUpsListResponseSerializer,
)

logger = logging.getLogger(__name__)


def _limit(request, default: int = 50) -> int:
    try:
        return max(1, min(int(request.query_params.get('limit') or default), 200))
    except (TypeError, ValueError):
        return default


class TopUpsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Top-ups"], request=TopUpCreateRequestSerializer, responses={201: TopUpSerializer})
    def post(self, request):
        serializer = TopUpCreateRequestSerializer(data=request.data)
        if not serializer.is_valid():
            raise ValidationError(serializer.errors)
        data = serializer.validated_data
        req = services.submit_topup(
            current_account_id(request),
            data['amount'],
            data.get('credits'),
            payment_reference=data.get('paymentReference') or '',
            screenshot_url=data.get('screenshotUrl') or '',
        )
        return Response(TopUpSerializer(req).data, status=201)


class MyTopUpsListView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Top-ups"],
        parameters=[OpenApiParameter(name='status', required=False, type=str, description='pending|approved|rejected')],
        responses={200: TopUpsListResponseSerializer},
    )
    def get(self, request):
        qs = services.list_topups(
            user=current_account_id(request),
            status=(request.query_params.get('status') or '').strip() or None,
        )
        items = list(qs[:_limit(request)])
        return Response({'items': TopUpSerializer(items, many=True).data, 'total': qs.count()})


class AdminTopUpsListView(APIView):
    permission_classes = [IsAuthenticated, RequireAdminRole]

    @extend_schema(
        tags=["Admin Top-ups"],
        parameters=[OpenApiParameter(name='status', required=False, type=str, description='pending|approved|rejected')],
    )
    def get(self, request):
        qs = services.list_topups(status=(request.query_params.get('status') or '').strip() or None)
        items = list(qs[:_limit(request)])
        return Response({'items': AdminTopUpSerializer(items, many=True).data, 'total': qs.count()})


class AdminTopUpApproveView(APIView):
    permission_classes = [IsAuthenticated, RequireAdminRole]

    @extend_schema(tags=["Admin Top-ups"], request=AdminTopUpActionRequestSerializer, responses={200: AdminTopUpSerializer})
    def post(self, request, id):
        serializer = AdminTopUpActionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        req = services.approve_topup(
            id,
            processed_by=current_actor(request),
            remarks=serializer.validated_data.get('remarks') or '',
        )
        return Response(AdminTopUpSerializer(req).data)


class AdminTopUpRejectView(APIView):
    permission_classes = [IsAuthenticated, RequireAdminRole]

    @extend_schema(tags=["Admin Top-ups"], request=AdminTopUpActionRequestSerializer, responses={200: AdminTopUpSerializer})
    def post(self, request, id):
        serializer = AdminTopUpActionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        req = services.reject_topup(
            id,
            processed_by=current_actor(request),
            remarks=serializer.validated_data.get('remarks') or '',
        )
        return Response(AdminTopUpSerializer(req).data)
