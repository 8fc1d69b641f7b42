# notifications/models/template.py

from django.db import models

from .notification import Notification


class NotificationTemplate(models.Model):
    """
    Editable message template for one (notification type, channel) pair.

    `template` and `subject` use str.format placeholders, e.g.
    "Hi {customer_name}, order {order_number} is {status_label}."
    Unknown placeholders are left as-is when rendering.
    """

    notification_type = models.CharField(max_length=32, choices=Notification.TYPE_CHOICES)
    channel = models.CharField(max_length=16, choices=Notification.CHANNEL_CHOICES)

    subject = models.CharField(max_length=200, blank=True, default="")
    template = models.TextField()

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["notification_type", "channel"]
        constraints = [
            models.UniqueConstraint(
                fields=["notification_type", "channel"],
                name="uniq_notification_template_type_channel",
            ),
        ]

    def __str__(self):
        return f"{self.notification_type}/{self.channel}"
