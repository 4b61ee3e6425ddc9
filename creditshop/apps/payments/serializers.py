from __future__ import annotations

from rest_framework import serializers
from .models import TopUpRequest


class TopUpCreateRequestSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=18, decimal_places=6)
    credits = serializers.DecimalField(max_digits=18, decimal_places=6, required=False, allow_null=True)
    paymentReference = serializers.CharField(required=False, allow_blank=True, max_length=200)
    screenshotUrl = serializers.CharField(required=False, allow_blank=True, max_length=512)


class TopUpSerializer(serializers.ModelSerializer):
    paymentReference = serializers.CharField(source='payment_reference')
    screenshotUrl = serializers.CharField(source='screenshot_url')
    processedAt = serializers.DateTimeField(source='processed_at', allow_null=True)
    createdAt = serializers.DateTimeField(source='created_at')

    class Meta:
        model = TopUpRequest
        fields = ('id', 'amount', 'credits', 'paymentReference', 'screenshotUrl', 'status', 'remarks', 'processedAt', 'createdAt')
        read_only_fields = fields


class AdminTopUpSerializer(TopUpSerializer):
    userId = serializers.IntegerField(source='user_id')
    username = serializers.CharField(source='user.username')
    userEmail = serializers.CharField(source='user.email')
    processedBy = serializers.SerializerMethodField()

    class Meta(TopUpSerializer.Meta):
        fields = TopUpSerializer.Meta.fields + ('userId', 'username', 'userEmail', 'processedBy')
        read_only_fields = fields

    def get_processedBy(self, obj: TopUpRequest):
        return getattr(obj.processed_by, 'username', None) if obj.processed_by_id else None


class TopUpsListResponseSerializer(serializers.Serializer):
    items = TopUpSerializer(many=True)
    total = serializers.IntegerField()


class AdminTopUpActionRequestSerializer(serializers.Serializer):
    remarks = serializers.CharField(required=False, allow_blank=True, max_length=2000)
