# notifications/models/notification.py

"""
NOTIFICATION RECORD

Persisted before any delivery attempt so the audit trail exists even when
every channel fails. Updated once afterwards with the per-channel outcome.
Never deleted.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class Notification(models.Model):
    TYPE_ORDER_CREATED = "order_created"
    TYPE_STATUS_CHANGE = "status_change"
    TYPE_REPAIR_UPDATE = "repair_update"
    TYPE_RETURN_UPDATE = "return_update"
    TYPE_CUSTOM_MESSAGE = "custom_message"

    TYPE_CHOICES = [
        (TYPE_ORDER_CREATED, "Order created"),
        (TYPE_STATUS_CHANGE, "Order status change"),
        (TYPE_REPAIR_UPDATE, "Repair update"),
        (TYPE_RETURN_UPDATE, "Return update"),
        (TYPE_CUSTOM_MESSAGE, "Custom message"),
    ]

    CHANNEL_WHATSAPP = "whatsapp"
    CHANNEL_SMS = "sms"
    CHANNEL_EMAIL = "email"

    CHANNEL_CHOICES = [
        (CHANNEL_WHATSAPP, "WhatsApp"),
        (CHANNEL_SMS, "SMS"),
        (CHANNEL_EMAIL, "Email"),
    ]

    STATUS_PENDING = "pending"
    STATUS_SENT = "sent"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_SENT, "Sent"),
    ]

    DELIVERY_SENT = "sent"
    DELIVERY_FAILED = "failed"
    DELIVERY_SKIPPED = "skipped"

    customer = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name="notifications",
    )

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="notifications",
    )
    repair = models.ForeignKey(
        "repairs.RepairRequest",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="notifications",
    )
    return_request = models.ForeignKey(
        "returns.ReturnRequest",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="notifications",
    )

    notification_type = models.CharField(max_length=32, choices=TYPE_CHOICES)
    channels = models.JSONField(default=list, blank=True)
    template_data = models.JSONField(default=dict, blank=True)
    delivery_status = models.JSONField(default=dict, blank=True)

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    sent_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def delete(self, *args, **kwargs):
        raise RuntimeError("Notification records cannot be deleted")

    def __str__(self):
        return f"{self.notification_type} -> {self.customer_id} ({self.status})"
