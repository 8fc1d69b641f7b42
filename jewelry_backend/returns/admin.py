# returns/admin.py

from django.contrib import admin

from returns.models import ExchangeItem, ReturnItem, ReturnRequest


class ReturnItemInline(admin.TabularInline):
    model = ReturnItem
    extra = 0
    can_delete = False
    readonly_fields = ("order_item", "quantity", "unit_price", "line_amount")

    def has_add_permission(self, request, obj=None):
        return False


class ExchangeItemInline(admin.TabularInline):
    model = ExchangeItem
    extra = 0
    can_delete = False
    readonly_fields = ("jewelry_item_id", "item_name", "quantity", "unit_price", "line_amount")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(ReturnRequest)
class ReturnRequestAdmin(admin.ModelAdmin):
    list_display = ("id", "order", "return_type", "status", "return_amount", "refund_amount", "created_at")
    list_filter = ("status", "return_type", "refund_method")
    search_fields = ("order__order_number", "reason", "refund_reference")
    inlines = [ReturnItemInline, ExchangeItemInline]

    # refunds and stock moves only happen through the lifecycle endpoints
    readonly_fields = (
        "order",
        "return_type",
        "status",
        "return_amount",
        "exchange_amount",
        "exchange_amount_difference",
        "refund_method",
        "refund_amount",
        "refund_reference",
        "processed_by",
        "processed_at",
        "created_at",
        "updated_at",
    )
