# orders/admin.py

from django.contrib import admin

from orders.models import Order, OrderItem, OrderItemCustomization


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "jewelry_item_id",
        "item_name",
        "item_sku",
        "quantity",
        "unit_price",
        "total_price",
        "customization_details",
    )

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "customer", "order_type", "status", "total_amount", "created_at")
    list_filter = ("status", "order_type", "created_at")
    search_fields = ("order_number", "customer__email", "customer__first_name", "customer__last_name")
    inlines = [OrderItemInline]

    # status moves go through the lifecycle endpoints (history + notifications)
    readonly_fields = (
        "order_number",
        "customer",
        "staff",
        "order_type",
        "status",
        "subtotal",
        "making_charges",
        "wastage_amount",
        "gst_amount",
        "total_amount",
        "created_at",
        "updated_at",
    )


@admin.register(OrderItemCustomization)
class OrderItemCustomizationAdmin(admin.ModelAdmin):
    list_display = ("order_item", "customization_type", "additional_cost", "created_by", "created_at")
    list_filter = ("customization_type",)
