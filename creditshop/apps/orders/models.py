from __future__ import annotations

import uuid

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Category(models.TextChoices):
    FREEFIRE = "freefire", _("Free Fire")
    TIKTOK = "tiktok", _("TikTok")
    NETFLIX = "netflix", _("Netflix")
    GARENA = "garena", _("Garena")
    YOUTUBE = "youtube", _("YouTube")
    SMILECOIN = "smilecoin", _("Smile Coin")
    CHATGPT = "chatgpt", _("ChatGPT")
    UNIPIN = "unipin", _("UniPin")
    OTHER = "other", _("Other")
    DESIGN = "design", _("Design")
    ROBLOX = "roblox", _("Roblox")
    PUBG = "pubg", _("PUBG")
    MOBILE_LEGENDS = "mobile_legends", _("Mobile Legends")


# Categories fulfilled by the external top-up provider; everything else goes to review
AUTOMATED_CATEGORIES = frozenset({Category.MOBILE_LEGENDS})


class OrderStatus(models.TextChoices):
    PENDING = "pending", _("Pending")
    PROCESSING = "processing", _("Processing")
    CONFIRMED = "confirmed", _("Confirmed")
    COMPLETED = "completed", _("Completed")
    CANCELED = "canceled", _("Canceled")


class Order(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=100, unique=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="orders")

    category = models.CharField(max_length=32, choices=Category.choices)
    product_name = models.CharField(max_length=200, blank=True)
    package_name = models.CharField(max_length=200)
    quantity = models.PositiveIntegerField(default=1)
    price = models.DecimalField(max_digits=18, decimal_places=6)
    # fulfillment parameters: userId, zoneId, whatsapp, ...
    details = models.JSONField(default=dict, blank=True)

    status = models.CharField(max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING, db_index=True)
    # written once at placement, equals price
    credits_deducted = models.DecimalField(max_digits=18, decimal_places=6)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)

    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reviewed_orders",
    )
    admin_remarks = models.TextField(blank=True)
    cancellation_reason = models.TextField(blank=True)
    transaction_id = models.CharField(max_length=255, blank=True)
    failure_reason = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "-created_at"], name="orders_user_created_idx"),
            models.Index(fields=["category", "status"], name="orders_category_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(price__gt=0), name="orders_price_positive"),
            models.CheckConstraint(condition=models.Q(quantity__gte=1), name="orders_quantity_positive"),
        ]

    def __str__(self):
        return f"{self.order_number} ({self.status})"

    @property
    def is_automated(self) -> bool:
        return self.category in AUTOMATED_CATEGORIES
