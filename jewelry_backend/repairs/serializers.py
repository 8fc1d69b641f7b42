# repairs/serializers.py

from rest_framework import serializers

from repairs.models import RepairRequest


class RepairRequestSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True)
    customer_id = serializers.UUIDField(source="order.customer_id", read_only=True)
    technician_email = serializers.EmailField(source="technician.email", read_only=True, default=None)

    class Meta:
        model = RepairRequest
        fields = [
            "id",
            "order",
            "order_number",
            "customer_id",
            "item_description",
            "problem_description",
            "repair_type",
            "estimated_cost",
            "actual_cost",
            "estimated_completion",
            "repair_notes",
            "customer_approval_required",
            "customer_approved",
            "before_photos",
            "after_photos",
            "technician",
            "technician_email",
            "created_by",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class RepairCreateSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    item_description = serializers.CharField()
    problem_description = serializers.CharField()
    repair_type = serializers.ChoiceField(choices=RepairRequest.TYPE_CHOICES)
    estimated_cost = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    technician_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    requires_approval = serializers.BooleanField(required=False, default=False)
    estimated_completion = serializers.DateTimeField(required=False, allow_null=True, default=None)


class RepairUpdateSerializer(serializers.Serializer):
    """Only the keys actually sent are applied."""

    repair_type = serializers.ChoiceField(choices=RepairRequest.TYPE_CHOICES, required=False)
    estimated_cost = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    estimated_completion = serializers.DateTimeField(required=False, allow_null=True)
    actual_cost = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True)
    repair_notes = serializers.CharField(required=False, allow_blank=True)
    customer_approved = serializers.BooleanField(required=False, allow_null=True)
    technician_id = serializers.UUIDField(required=False, allow_null=True)


class RepairStatusSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=20)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class RepairPhotosSerializer(serializers.Serializer):
    photo_type = serializers.CharField(max_length=10)
    photos = serializers.ListField(child=serializers.URLField(max_length=500), allow_empty=True)
