# notifications/admin.py

from django.contrib import admin

from notifications.models import Notification, NotificationTemplate


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("id", "notification_type", "customer", "status", "created_at", "sent_at")
    list_filter = ("notification_type", "status", "created_at")
    search_fields = ("customer__email", "order__order_number")
    readonly_fields = (
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
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(NotificationTemplate)
class NotificationTemplateAdmin(admin.ModelAdmin):
    list_display = ("notification_type", "channel", "subject", "is_active", "updated_at")
    list_filter = ("notification_type", "channel", "is_active")
