from __future__ import annotations

import uuid

from django.db import models
from django.utils.translation import gettext_lazy as _


class FulfillmentAttempt(models.Model):
    """
    Tracking row for the automated two-phase delivery of one order.

    Responses are stored verbatim (request, HTTP status, parsed body, raw text)
    so a failed delivery can be replayed by hand.
    """

    class Status(models.TextChoices):
        IDLE = "idle", _("Idle")
        PROCESSING = "processing", _("Processing")
        COMPLETED = "completed", _("Completed")
        FAILED = "failed", _("Failed")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.OneToOneField("orders.Order", on_delete=models.CASCADE, related_name="fulfillment_attempt")

    product_id = models.PositiveIntegerField(null=True, blank=True)
    uid = models.CharField(max_length=100)
    zone_id = models.CharField(max_length=100)
    display_name = models.CharField(max_length=255, blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.IDLE, db_index=True)
    verification_response = models.JSONField(null=True, blank=True)
    order_response = models.JSONField(null=True, blank=True)
    transaction_id = models.CharField(max_length=255, blank=True)
    retry_count = models.PositiveIntegerField(default=0)
    error_code = models.CharField(max_length=64, blank=True)
    error_message = models.TextField(blank=True)

    verification_sent_at = models.DateTimeField(null=True, blank=True)
    verification_completed_at = models.DateTimeField(null=True, blank=True)
    order_sent_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "fulfillment_attempts"
        ordering = ["-created_at"]

    def __str__(self):
        return f"attempt {self.order_id} ({self.status})"
