from django.contrib import admin

from .models import FulfillmentAttempt


@admin.register(FulfillmentAttempt)
class FulfillmentAttemptAdmin(admin.ModelAdmin):
    list_display = ("order", "product_id", "uid", "zone_id", "status", "retry_count", "error_code", "created_at")
    list_filter = ("status", "error_code")
    search_fields = ("order__order_number", "uid", "transaction_id")
    readonly_fields = [f.name for f in FulfillmentAttempt._meta.fields]

    def has_add_permission(self, request):
        return False
