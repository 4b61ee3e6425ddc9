from __future__ import annotations

import uuid

from django.db import models
from django.utils.translation import gettext_lazy as _


class TopUpRequest(models.Model):
    """A customer's claim of a manual payment, credited once an administrator approves it."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        APPROVED = "approved", _("Approved")
        REJECTED = "rejected", _("Rejected")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey("users.User", on_delete=models.PROTECT, related_name="topup_requests")

    # amount paid by the customer; credits is what lands in the wallet
    amount = models.DecimalField(max_digits=18, decimal_places=6)
    credits = models.DecimalField(max_digits=18, decimal_places=6)
    payment_reference = models.CharField(max_length=200, blank=True)
    screenshot_url = models.CharField(max_length=512, blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    remarks = models.TextField(blank=True)
    processed_at = models.DateTimeField(null=True, blank=True)
    processed_by = models.ForeignKey(
        "users.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="processed_topup_requests",
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "topup_requests"
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(condition=models.Q(amount__gt=0), name="topup_amount_positive"),
            models.CheckConstraint(condition=models.Q(credits__gt=0), name="topup_credits_positive"),
        ]

    def __str__(self):
        return f"topup {self.id} {self.credits} ({self.status})"
