# orders/serializers.py

from rest_framework import serializers

from orders.models import Order, OrderItem, OrderItemCustomization


# ==========================================================
# READ
# ==========================================================


class OrderItemCustomizationSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItemCustomization
        fields = [
            "id",
            "order_item",
            "customization_type",
            "details",
            "additional_cost",
            "created_by",
            "created_at",
        ]
        read_only_fields = fields


class OrderItemSerializer(serializers.ModelSerializer):
    customizations = OrderItemCustomizationSerializer(many=True, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "jewelry_item_id",
            "item_name",
            "item_sku",
            "quantity",
            "unit_price",
            "total_price",
            "customization_details",
            "customizations",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    customer_name = serializers.CharField(source="customer.full_name", read_only=True)
    customer_email = serializers.EmailField(source="customer.email", read_only=True)
    staff_email = serializers.EmailField(source="staff.email", read_only=True, default=None)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer",
            "customer_name",
            "customer_email",
            "staff",
            "staff_email",
            "order_type",
            "status",
            "subtotal",
            "making_charges",
            "wastage_amount",
            "gst_amount",
            "total_amount",
            "special_instructions",
            "estimated_completion",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


# ==========================================================
# COMMANDS (input only; never touch the database)
# ==========================================================


class OrderItemInputSerializer(serializers.Serializer):
    jewelry_item_id = serializers.CharField(max_length=64)
    item_name = serializers.CharField(required=False, allow_blank=True, max_length=200)
    item_sku = serializers.CharField(required=False, allow_blank=True, max_length=64)
    quantity = serializers.IntegerField()
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    customization_details = serializers.CharField(required=False, allow_blank=True)


class OrderCreateSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    order_type = serializers.ChoiceField(choices=Order.TYPE_CHOICES, default=Order.TYPE_SALE)
    items = OrderItemInputSerializer(many=True, allow_empty=True)
    special_instructions = serializers.CharField(required=False, allow_blank=True, default="")
    estimated_completion = serializers.DateTimeField(required=False, allow_null=True, default=None)


class OrderUpdateSerializer(serializers.Serializer):
    """Only the keys actually sent are applied."""

    special_instructions = serializers.CharField(required=False, allow_blank=True)
    estimated_completion = serializers.DateTimeField(required=False, allow_null=True)
    items = OrderItemInputSerializer(many=True, required=False, allow_empty=True)


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=20)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class OrderCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=500)


class CustomizationInputSerializer(serializers.Serializer):
    order_item_id = serializers.IntegerField()
    customization_type = serializers.CharField(max_length=50)
    details = serializers.CharField(required=False, allow_blank=True, default="")
    additional_cost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=0)


class OrderStatsQuerySerializer(serializers.Serializer):
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)


class OrderStatsSerializer(serializers.Serializer):
    total_orders = serializers.IntegerField()
    by_status = serializers.DictField(child=serializers.IntegerField())
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    average_order_value = serializers.DecimalField(max_digits=14, decimal_places=2)
