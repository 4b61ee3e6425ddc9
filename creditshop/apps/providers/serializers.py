from __future__ import annotations

from rest_framework import serializers
from .models import FulfillmentAttempt


class FulfillmentAttemptSerializer(serializers.ModelSerializer):
    orderId = serializers.UUIDField(source='order_id')
    orderNumber = serializers.CharField(source='order.order_number')
    orderStatus = serializers.CharField(source='order.status')
    packageName = serializers.CharField(source='order.package_name')
    productId = serializers.IntegerField(source='product_id', allow_null=True)
    zoneId = serializers.CharField(source='zone_id')
    displayName = serializers.CharField(source='display_name')
    verificationResponse = serializers.JSONField(source='verification_response', allow_null=True)
    orderResponse = serializers.JSONField(source='order_response', allow_null=True)
    transactionId = serializers.CharField(source='transaction_id')
    retryCount = serializers.IntegerField(source='retry_count')
    errorCode = serializers.CharField(source='error_code')
    errorMessage = serializers.CharField(source='error_message')
    verificationSentAt = serializers.DateTimeField(source='verification_sent_at', allow_null=True)
    verificationCompletedAt = serializers.DateTimeField(source='verification_completed_at', allow_null=True)
    orderSentAt = serializers.DateTimeField(source='order_sent_at', allow_null=True)
    completedAt = serializers.DateTimeField(source='completed_at', allow_null=True)
    failedAt = serializers.DateTimeField(source='failed_at', allow_null=True)
    createdAt = serializers.DateTimeField(source='created_at')
    updatedAt = serializers.DateTimeField(source='updated_at')

    class Meta:
        model = FulfillmentAttempt
        fields = (
            'id', 'orderId', 'orderNumber', 'orderStatus', 'packageName', 'productId', 'uid', 'zoneId',
            'displayName', 'status', 'verificationResponse', 'orderResponse', 'transactionId',
            'retryCount', 'errorCode', 'errorMessage', 'verificationSentAt', 'verificationCompletedAt',
            'orderSentAt', 'completedAt', 'failedAt', 'createdAt', 'updatedAt',
        )
        read_only_fields = fields


class PageInfoSerializer(serializers.Serializer):
    nextCursor = serializers.CharField(allow_null=True)
    hasMore = serializers.BooleanField()


class FulfillmentAttemptsListResponseSerializer(serializers.Serializer):
    items = FulfillmentAttemptSerializer(many=True)
    pageInfo = PageInfoSerializer()


class FulfillmentStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    idle = serializers.IntegerField()
    processing = serializers.IntegerField()
    completed = serializers.IntegerField()
    failed = serializers.IntegerField()
    successRate = serializers.IntegerField()


class FulfillmentResultSerializer(serializers.Serializer):
    orderId = serializers.UUIDField(source='order_id')
    ok = serializers.BooleanField()
    status = serializers.CharField()
    transactionId = serializers.CharField(source='transaction_id', allow_blank=True)
    errorCode = serializers.CharField(source='error_code', allow_blank=True)
    errorMessage = serializers.CharField(source='error_message', allow_blank=True)


class BulkRetryReportSerializer(serializers.Serializer):
    retried = serializers.IntegerField()
    succeeded = serializers.IntegerField()
    failed = serializers.IntegerField()
    errors = serializers.ListField(child=serializers.DictField())
