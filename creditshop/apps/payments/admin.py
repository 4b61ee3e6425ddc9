from django.contrib import admin

from .models import TopUpRequest


@admin.register(TopUpRequest)
class TopUpRequestAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "amount", "credits", "status", "created_at", "processed_at")
    list_filter = ("status",)
    search_fields = ("user__username", "payment_reference")
    # status changes go through the API so the wallet is credited
    readonly_fields = ("status", "processed_at", "processed_by", "credits", "amount", "user")
