# notifications/services/templates.py

"""
TEMPLATE STORE

Resolution order for a (notification type, channel) pair:
1) active NotificationTemplate row
2) built-in default below
3) nothing -> the channel is skipped
"""

from __future__ import annotations

from dataclasses import dataclass

from django.db import DEFAULT_DB_ALIAS

from notifications.models import Notification, NotificationTemplate

_ALL = (Notification.CHANNEL_WHATSAPP, Notification.CHANNEL_SMS, Notification.CHANNEL_EMAIL)


@dataclass(frozen=True)
class ResolvedTemplate:
    subject: str
    body: str
    source: str


_ORDER_CREATED = (
    "Order {order_number} confirmed",
    "Hi {customer_name}, thank you for shopping with {business_name}. "
    "Your order {order_number} for Rs. {total_amount} has been placed.",
)
_ORDER_STATUS = (
    "Order {order_number}: {status_label}",
    "Hi {customer_name}, your order {order_number} is now {status_label}. {notes}",
)
_REPAIR = (
    "Repair #{repair_id}: {status_label}",
    "Hi {customer_name}, your repair #{repair_id} ({item_description}) is {status_label}. {notes}",
)
_RETURN = (
    "Return #{return_id}: {status_label}",
    "Hi {customer_name}, your {return_type} request #{return_id} for order "
    "{order_number} is {status_label}. {notes}",
)
_CUSTOM = ("{subject}", "{message}")

DEFAULT_TEMPLATES: dict[tuple[str, str], tuple[str, str]] = {
    **{(Notification.TYPE_ORDER_CREATED, c): _ORDER_CREATED for c in _ALL},
    **{(Notification.TYPE_STATUS_CHANGE, c): _ORDER_STATUS for c in _ALL},
    **{(Notification.TYPE_REPAIR_UPDATE, c): _REPAIR for c in _ALL},
    **{(Notification.TYPE_RETURN_UPDATE, c): _RETURN for c in _ALL},
    **{(Notification.TYPE_CUSTOM_MESSAGE, c): _CUSTOM for c in _ALL},
}


class _SafeDict(dict):
    def __missing__(self, key):
        return "{" + key + "}"


def render(text: str, data: dict) -> str:
    try:
        return text.format_map(_SafeDict(data)).strip()
    except (ValueError, IndexError, AttributeError):
        # malformed placeholder syntax in an edited template; send it raw
        return text.strip()


def resolve_template(notification_type: str, channel: str, *, using: str = DEFAULT_DB_ALIAS):
    row = (
        NotificationTemplate.objects.using(using)
        .filter(notification_type=notification_type, channel=channel, is_active=True)
        .first()
    )
    if row is not None:
        return ResolvedTemplate(subject=row.subject, body=row.template, source="store")

    default = DEFAULT_TEMPLATES.get((notification_type, channel))
    if default is None:
        return None
    return ResolvedTemplate(subject=default[0], body=default[1], source="default")
