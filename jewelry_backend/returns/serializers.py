# returns/serializers.py

from rest_framework import serializers

from returns.models import ExchangeItem, ReturnItem, ReturnRequest


# ==========================================================
# READ
# ==========================================================


class ReturnItemSerializer(serializers.ModelSerializer):
    jewelry_item_id = serializers.CharField(source="order_item.jewelry_item_id", read_only=True)
    item_name = serializers.CharField(source="order_item.item_name", read_only=True)

    class Meta:
        model = ReturnItem
        fields = ["id", "order_item", "jewelry_item_id", "item_name", "quantity", "unit_price", "line_amount"]
        read_only_fields = fields


class ExchangeItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = ExchangeItem
        fields = ["id", "jewelry_item_id", "item_name", "quantity", "unit_price", "line_amount"]
        read_only_fields = fields


class ReturnRequestSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True)
    customer_id = serializers.UUIDField(source="order.customer_id", read_only=True)
    items = ReturnItemSerializer(many=True, read_only=True)
    exchange_items = ExchangeItemSerializer(many=True, read_only=True)

    class Meta:
        model = ReturnRequest
        fields = [
            "id",
            "order",
            "order_number",
            "customer_id",
            "return_type",
            "reason",
            "reason_details",
            "requested_by",
            "return_amount",
            "exchange_amount",
            "exchange_amount_difference",
            "status",
            "processed_by",
            "refund_method",
            "refund_amount",
            "refund_reference",
            "processed_at",
            "items",
            "exchange_items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


# ==========================================================
# COMMANDS
# ==========================================================


class ReturnLineInputSerializer(serializers.Serializer):
    order_item_id = serializers.IntegerField()
    quantity = serializers.IntegerField()


class ExchangeLineInputSerializer(serializers.Serializer):
    jewelry_item_id = serializers.CharField(max_length=64)
    item_name = serializers.CharField(required=False, allow_blank=True, max_length=200)
    quantity = serializers.IntegerField()
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2)


class ReturnCreateSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    return_type = serializers.ChoiceField(choices=ReturnRequest.TYPE_CHOICES)
    reason = serializers.CharField(max_length=100)
    reason_details = serializers.CharField(required=False, allow_blank=True, default="")
    items_to_return = ReturnLineInputSerializer(many=True, allow_empty=True)
    exchange_items = ExchangeLineInputSerializer(many=True, required=False, default=list)


class ReturnApproveSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ReturnRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500)


class ReturnProcessSerializer(serializers.Serializer):
    refund_method = serializers.ChoiceField(choices=ReturnRequest.REFUND_METHOD_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ReturnStatusSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=20)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    refund_method = serializers.ChoiceField(
        choices=ReturnRequest.REFUND_METHOD_CHOICES,
        required=False,
        allow_null=True,
        default=None,
    )
