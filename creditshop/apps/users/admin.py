from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import User
from .wallet_models import WalletTransaction


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    fieldsets = DjangoUserAdmin.fieldsets + (
        ("Wallet", {"fields": ("balance", "balance_updated_at", "currency")}),
        ("Account", {"fields": ("status", "role", "full_name", "phone_number")}),
    )
    # balance moves only through the ledger
    readonly_fields = ("balance", "balance_updated_at")
    list_display = ("id", "username", "email", "role", "status", "balance", "currency")
    search_fields = ("username", "email", "phone_number")


@admin.register(WalletTransaction)
class WalletTransactionAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "kind", "amount", "balance_after", "order_id", "topup_id", "created_at")
    list_filter = ("kind",)
    search_fields = ("user__username", "order_id", "topup_id")
    readonly_fields = [f.name for f in WalletTransaction._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
