# notifications/serializers.py

from rest_framework import serializers

from notifications.models import Notification, NotificationTemplate


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = [
            "id",
            "customer",
            "order",
            "repair",
            "return_request",
            "notification_type",
            "channels",
            "template_data",
            "delivery_status",
            "status",
            "created_at",
            "sent_at",
        ]
        read_only_fields = fields


class NotificationTemplateSerializer(serializers.ModelSerializer):
    class Meta:
        model = NotificationTemplate
        fields = [
            "id",
            "notification_type",
            "channel",
            "subject",
            "template",
            "is_active",
            "updated_at",
        ]
        read_only_fields = ["id", "notification_type", "channel", "updated_at"]


class SendNotificationSerializer(serializers.Serializer):
    """
    Command serializer for a manual send.

    Either `message` (custom_message) or `template_data` (typed templates).
    """

    customer_id = serializers.UUIDField()
    notification_type = serializers.ChoiceField(
        choices=Notification.TYPE_CHOICES,
        default=Notification.TYPE_CUSTOM_MESSAGE,
    )
    channels = serializers.ListField(
        child=serializers.ChoiceField(choices=Notification.CHANNEL_CHOICES),
        allow_empty=False,
    )
    subject = serializers.CharField(required=False, allow_blank=True, default="", max_length=200)
    message = serializers.CharField(required=False, allow_blank=True, default="")
    template_data = serializers.DictField(required=False, default=dict)

    order_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    repair_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    return_id = serializers.IntegerField(required=False, allow_null=True, default=None)

    def validate(self, attrs):
        if attrs["notification_type"] == Notification.TYPE_CUSTOM_MESSAGE and not attrs["message"].strip():
            raise serializers.ValidationError({"message": "message is required for custom messages."})
        return attrs
