# notifications/services/dispatcher.py

"""
NOTIFICATION DISPATCHER

send(): persist -> resolve template per channel -> deliver per channel ->
record outcome -> mark sent.

Guarantees:
- The Notification row exists before any delivery attempt
- One channel failing never affects another channel
- Never raises past send(); lifecycles call it fire-and-forget
"""

from __future__ import annotations

import json
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.serializers.json import DjangoJSONEncoder
from django.db import DEFAULT_DB_ALIAS
from django.utils import timezone

from integrations.registry import get_channel_gateway
from notifications.models import Notification
from notifications.services.templates import render, resolve_template

logger = logging.getLogger(__name__)

ORDER_CREATED_CHANNELS = (Notification.CHANNEL_WHATSAPP, Notification.CHANNEL_SMS, Notification.CHANNEL_EMAIL)
ORDER_STATUS_CHANNELS = (Notification.CHANNEL_WHATSAPP, Notification.CHANNEL_SMS)
REPAIR_CHANNELS = (Notification.CHANNEL_WHATSAPP, Notification.CHANNEL_SMS)
RETURN_CHANNELS = (Notification.CHANNEL_WHATSAPP, Notification.CHANNEL_SMS, Notification.CHANNEL_EMAIL)

KNOWN_CHANNELS = {choice for choice, _label in Notification.CHANNEL_CHOICES}

_HISTORY_FIELDS = {
    "order": "order_id",
    "repair": "repair_id",
    "return": "return_request_id",
}


def _json_safe(data: dict) -> dict:
    return json.loads(json.dumps(data or {}, cls=DjangoJSONEncoder))


def _label(instance) -> str:
    display = getattr(instance, "get_status_display", None)
    return str(display()) if callable(display) else str(getattr(instance, "status", ""))


class NotificationDispatcher:
    def __init__(self, *, using: str = DEFAULT_DB_ALIAS, gateway=None):
        self.using = using
        self.gateway = gateway if gateway is not None else get_channel_gateway()

    # --------------------------------------------------
    # CORE
    # --------------------------------------------------

    def send(
        self,
        *,
        customer_id,
        notification_type: str,
        channels,
        template_data: dict | None = None,
        order=None,
        repair=None,
        return_request=None,
    ) -> Notification | None:
        try:
            return self._send(
                customer_id=customer_id,
                notification_type=notification_type,
                channels=list(dict.fromkeys(channels or [])),
                template_data=_json_safe(template_data),
                order=order,
                repair=repair,
                return_request=return_request,
            )
        except Exception:
            logger.exception(
                "Notification dispatch failed",
                extra={"customer_id": str(customer_id), "notification_type": notification_type},
            )
            return None

    def _send(self, *, customer_id, notification_type, channels, template_data, order, repair, return_request):
        User = get_user_model()
        customer = User.objects.using(self.using).filter(pk=customer_id).first()
        if customer is None:
            logger.warning(
                "Notification skipped: unknown customer",
                extra={"customer_id": str(customer_id), "notification_type": notification_type},
            )
            return None

        data = {
            "customer_name": customer.full_name,
            "business_name": settings.BUSINESS.get("NAME", ""),
            **template_data,
        }

        notification = Notification(
            customer=customer,
            order=order,
            repair=repair,
            return_request=return_request,
            notification_type=notification_type,
            channels=channels,
            template_data=data,
            status=Notification.STATUS_PENDING,
        )
        notification.save(using=self.using)

        outcome: dict[str, str] = {}
        for channel in channels:
            outcome[channel] = self._deliver_one(notification, customer, channel, data)

        notification.delivery_status = outcome
        notification.status = Notification.STATUS_SENT
        notification.sent_at = timezone.now()
        notification.save(using=self.using, update_fields=["delivery_status", "status", "sent_at"])

        logger.info(
            "Notification dispatched",
            extra={
                "notification_id": notification.pk,
                "notification_type": notification_type,
                "delivery_status": outcome,
            },
        )
        return notification

    def _deliver_one(self, notification, customer, channel, data) -> str:
        if channel not in KNOWN_CHANNELS:
            return Notification.DELIVERY_SKIPPED

        try:
            template = resolve_template(notification.notification_type, channel, using=self.using)
            if template is None:
                return Notification.DELIVERY_SKIPPED

            result = self.gateway.deliver(
                customer_id=customer.pk,
                channel=channel,
                subject=render(template.subject, data),
                message=render(template.body, data),
                notification_id=notification.pk,
            )
        except Exception:
            logger.exception(
                "Channel delivery failed",
                extra={"notification_id": notification.pk, "channel": channel},
            )
            return Notification.DELIVERY_FAILED

        if result == Notification.DELIVERY_SENT:
            return Notification.DELIVERY_SENT
        return Notification.DELIVERY_FAILED

    # --------------------------------------------------
    # CONVENIENCE
    # --------------------------------------------------

    def notify_order_created(self, order):
        return self.send(
            customer_id=order.customer_id,
            notification_type=Notification.TYPE_ORDER_CREATED,
            channels=ORDER_CREATED_CHANNELS,
            template_data={
                "order_number": order.order_number,
                "order_type": order.order_type,
                "total_amount": order.total_amount,
                "item_count": order.items.count(),
                "estimated_completion": order.estimated_completion,
            },
            order=order,
        )

    def notify_order_status(self, order, *, notes: str = ""):
        return self.send(
            customer_id=order.customer_id,
            notification_type=Notification.TYPE_STATUS_CHANGE,
            channels=ORDER_STATUS_CHANNELS,
            template_data={
                "order_number": order.order_number,
                "status": order.status,
                "status_label": _label(order),
                "notes": notes or "",
            },
            order=order,
        )

    def notify_repair_update(self, repair, *, event: str = "", notes: str = ""):
        """event: "received", "updated" or the new status."""
        status_label = "updated" if event == "updated" else _label(repair)
        return self.send(
            customer_id=repair.order.customer_id,
            notification_type=Notification.TYPE_REPAIR_UPDATE,
            channels=REPAIR_CHANNELS,
            template_data={
                "repair_id": repair.pk,
                "order_number": repair.order.order_number,
                "item_description": repair.item_description,
                "repair_type": repair.repair_type,
                "event": event or repair.status,
                "status": repair.status,
                "status_label": status_label,
                "estimated_cost": repair.estimated_cost,
                "actual_cost": repair.actual_cost,
                "estimated_completion": repair.estimated_completion,
                "notes": notes or "",
            },
            order=repair.order,
            repair=repair,
        )

    def notify_return_update(self, return_request, *, notes: str = ""):
        return self.send(
            customer_id=return_request.order.customer_id,
            notification_type=Notification.TYPE_RETURN_UPDATE,
            channels=RETURN_CHANNELS,
            template_data={
                "return_id": return_request.pk,
                "order_number": return_request.order.order_number,
                "return_type": return_request.return_type,
                "status": return_request.status,
                "status_label": _label(return_request),
                "return_amount": return_request.return_amount,
                "refund_amount": return_request.refund_amount,
                "refund_reference": return_request.refund_reference,
                "notes": notes or "",
            },
            order=return_request.order,
            return_request=return_request,
        )

    def send_custom(self, *, customer_id, message: str, channels, subject: str = "", order=None, repair=None, return_request=None):
        return self.send(
            customer_id=customer_id,
            notification_type=Notification.TYPE_CUSTOM_MESSAGE,
            channels=channels,
            template_data={"message": message, "subject": subject or ""},
            order=order,
            repair=repair,
            return_request=return_request,
        )

    # --------------------------------------------------
    # READ
    # --------------------------------------------------

    def history_for(self, entity: str, entity_id):
        field = _HISTORY_FIELDS.get(entity)
        if field is None:
            raise ValueError(f"Unknown notification entity: {entity!r}")
        return (
            Notification.objects.using(self.using)
            .filter(**{field: entity_id})
            .order_by("-created_at", "-id")
        )
