from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.pagination import keyset_page
from apps.users.auth import current_actor
from apps.users.permissions import RequireAdminRole, RequireSuperAdminRole
from . import services
from .serializers import (
    BulkRetryReportSerializer,
    FulfillmentAttemptSerializer,
    FulfillmentAttemptsListResponseSerializer,
    FulfillmentResultSerializer,
    FulfillmentStatsSerializer,
)

logger = logging.getLogger(__name__)


class AdminOrderRetryView(APIView):
    permission_classes = [IsAuthenticated, RequireAdminRole]

    @extend_schema(tags=["Admin Fulfillment"], request=None, responses={200: FulfillmentResultSerializer})
    def post(self, request, id):
        result = services.retry_fulfillment(id, requested_by=current_actor(request))
        return Response(FulfillmentResultSerializer(result).data)


class AdminRetryFailedView(APIView):
    permission_classes = [IsAuthenticated, RequireSuperAdminRole]

    @extend_schema(tags=["Admin Fulfillment"], request=None, responses={200: BulkRetryReportSerializer})
    def post(self, request):
        report = services.retry_all_failed(requested_by=current_actor(request))
        return Response(BulkRetryReportSerializer(report.as_dict()).data)


class AdminFulfillmentAttemptsView(APIView):
    permission_classes = [IsAuthenticated, RequireAdminRole]

    @extend_schema(
        tags=["Admin Fulfillment"],
        parameters=[
            OpenApiParameter(name='status', required=False, type=str, description='idle|processing|completed|failed'),
            OpenApiParameter(name='limit', required=False, type=int),
            OpenApiParameter(name='cursor', required=False, type=str),
        ],
        responses={200: FulfillmentAttemptsListResponseSerializer},
    )
    def get(self, request):
        try:
            limit = max(1, min(int(request.query_params.get('limit') or 50), 100))
        except (TypeError, ValueError):
            limit = 50
        qs = services.list_attempts((request.query_params.get('status') or '').strip() or None)
        page = keyset_page(qs, cursor=request.query_params.get('cursor') or None, limit=limit)
        data = FulfillmentAttemptSerializer(page.items, many=True).data
        return Response({'items': data, 'pageInfo': {'nextCursor': page.next_cursor, 'hasMore': page.has_more}})


class AdminFulfillmentStatsView(APIView):
    permission_classes = [IsAuthenticated, RequireAdminRole]

    @extend_schema(tags=["Admin Fulfillment"], responses={200: FulfillmentStatsSerializer})
    def get(self, request):
        return Response(services.fulfillment_stats())
