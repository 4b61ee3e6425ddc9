from __future__ import annotations

from rest_framework import serializers

from .models import Category, Order, OrderStatus


class OrderCreateRequestSerializer(serializers.Serializer):
    orderNumber = serializers.CharField(required=False, allow_blank=True, max_length=100)
    category = serializers.ChoiceField(choices=Category.choices)
    productName = serializers.CharField(required=False, allow_blank=True, max_length=200)
    packageName = serializers.CharField(max_length=200)
    quantity = serializers.IntegerField(min_value=1, max_value=1000, default=1)
    price = serializers.DecimalField(max_digits=18, decimal_places=6)
    details = serializers.JSONField(required=False, default=dict)

    def validate_details(self, value):
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise serializers.ValidationError('details must be an object')
        return value


class OrderSerializer(serializers.ModelSerializer):
    orderNumber = serializers.CharField(source='order_number')
    productName = serializers.CharField(source='product_name')
    packageName = serializers.CharField(source='package_name')
    creditsDeducted = serializers.DecimalField(source='credits_deducted', max_digits=18, decimal_places=6)
    createdAt = serializers.DateTimeField(source='created_at')
    updatedAt = serializers.DateTimeField(source='updated_at')
    confirmedAt = serializers.DateTimeField(source='confirmed_at', allow_null=True)
    completedAt = serializers.DateTimeField(source='completed_at', allow_null=True)
    canceledAt = serializers.DateTimeField(source='canceled_at', allow_null=True)
    adminRemarks = serializers.CharField(source='admin_remarks')
    cancellationReason = serializers.CharField(source='cancellation_reason')
    transactionId = serializers.CharField(source='transaction_id')
    customerMessage = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = (
            'id', 'orderNumber', 'category', 'productName', 'packageName', 'quantity',
            'price', 'creditsDeducted', 'details', 'status',
            'createdAt', 'updatedAt', 'confirmedAt', 'completedAt', 'canceledAt',
            'adminRemarks', 'cancellationReason', 'transactionId', 'customerMessage',
        )
        read_only_fields = fields

    def get_customerMessage(self, obj: Order):
        # provider internals never reach the customer
        if obj.status != OrderStatus.CANCELED or not obj.failure_reason:
            return None
        from apps.providers.services import FulfillmentError, VerificationFailed

        if obj.failure_reason.startswith(VerificationFailed.code):
            return VerificationFailed.default_message
        return FulfillmentError.default_message


class AdminOrderSerializer(OrderSerializer):
    userId = serializers.IntegerField(source='user_id')
    username = serializers.SerializerMethodField()
    userEmail = serializers.SerializerMethodField()
    reviewedBy = serializers.SerializerMethodField()
    failureReason = serializers.CharField(source='failure_reason')

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + (
            'userId', 'username', 'userEmail', 'reviewedBy', 'failureReason', 'metadata',
        )
        read_only_fields = fields

    def get_username(self, obj: Order):
        return getattr(obj.user, 'username', None)

    def get_userEmail(self, obj: Order):
        return getattr(obj.user, 'email', None) or None

    def get_reviewedBy(self, obj: Order):
        reviewer = obj.reviewed_by
        return getattr(reviewer, 'username', None) if reviewer else None


class OrdersListResponseSerializer(serializers.Serializer):
    items = OrderSerializer(many=True)
    pageInfo = serializers.DictField()


class AdminOrdersListResponseSerializer(serializers.Serializer):
    items = AdminOrderSerializer(many=True)
    pageInfo = serializers.DictField()


class ConfirmOrderRequestSerializer(serializers.Serializer):
    adminRemarks = serializers.CharField(required=False, allow_blank=True, max_length=2000)


class CancelOrderRequestSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=2000)
