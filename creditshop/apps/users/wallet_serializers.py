from rest_framework import serializers
from apps.users.wallet_models import WalletTransaction


class WalletTransactionSerializer(serializers.ModelSerializer):
    kind_display = serializers.CharField(source='get_kind_display', read_only=True)

    class Meta:
        model = WalletTransaction
        fields = [
            'id',
            'kind',
            'kind_display',
            'amount',
            'currency',
            'balance_before',
            'balance_after',
            'description',
            'order_id',
            'topup_id',
            'metadata',
            'created_at',
        ]
        read_only_fields = fields


class WalletTransactionsListResponseSerializer(serializers.Serializer):
    transactions = WalletTransactionSerializer(many=True)
    total = serializers.IntegerField()
    page = serializers.IntegerField()
    page_size = serializers.IntegerField()
    total_pages = serializers.IntegerField()


class WalletBalanceSerializer(serializers.Serializer):
    balance = serializers.DecimalField(max_digits=18, decimal_places=6)
    currency = serializers.CharField()
    updatedAt = serializers.DateTimeField(allow_null=True)
