import uuid
from django.db import models
from django.utils.translation import gettext_lazy as _


class WalletTransaction(models.Model):
    """
    One row per balance mutation. Each row belongs to exactly one order or
    exactly one top-up request.
    """
    class Kind(models.TextChoices):
        ORDER_CHARGE = "order_charge", _("Order charge")
        ORDER_REFUND = "order_refund", _("Order refund")
        ORDER_RETRY_CHARGE = "order_retry_charge", _("Order retry charge")
        TOPUP = "topup", _("Top-up")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        "users.User",
        on_delete=models.PROTECT,
        related_name="wallet_transactions",
    )
    kind = models.CharField(max_length=24, choices=Kind.choices)

    # signed: negative for a debit, positive for a credit
    amount = models.DecimalField(max_digits=18, decimal_places=6)
    currency = models.CharField(max_length=10, default="INR")
    balance_before = models.DecimalField(max_digits=18, decimal_places=6)
    balance_after = models.DecimalField(max_digits=18, decimal_places=6)
    description = models.CharField(max_length=500, blank=True)

    order_id = models.UUIDField(null=True, blank=True)
    topup_id = models.UUIDField(null=True, blank=True)

    created_by = models.ForeignKey(
        "users.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="wallet_transactions_created",
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "wallet_transactions"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "-created_at"], name="wallet_tran_user_id_5a1c2e_idx"),
            models.Index(fields=["kind"], name="wallet_tran_kind_8f3b41_idx"),
            models.Index(fields=["order_id"], name="wallet_tran_order_i_2d7e90_idx"),
            models.Index(fields=["topup_id"], name="wallet_tran_topup_i_b64c13_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(order_id__isnull=False, topup_id__isnull=True)
                    | models.Q(order_id__isnull=True, topup_id__isnull=False)
                ),
                name="wallet_tx_single_attribution",
            ),
        ]

    def __str__(self):
        sign = "+" if self.amount >= 0 else ""
        return f"{self.user_id} - {self.get_kind_display()} - {sign}{self.amount} {self.currency}"
