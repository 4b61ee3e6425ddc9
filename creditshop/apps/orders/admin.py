from __future__ import annotations

from django.contrib import admin

from .models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "user", "category", "package_name", "quantity", "price", "status", "created_at")
    list_filter = ("status", "category")
    search_fields = ("order_number", "package_name", "user__username", "transaction_id")
    date_hierarchy = "created_at"
    raw_id_fields = ("user", "reviewed_by")
    # status and money move through the order services only
    readonly_fields = (
        "id", "status", "price", "credits_deducted", "transaction_id", "failure_reason",
        "confirmed_at", "completed_at", "canceled_at", "created_at", "updated_at",
    )

    def has_add_permission(self, request):
        return False
