# integrations/local.py

"""
IN-PROCESS COLLABORATORS

Used when INTEGRATIONS_BACKEND=local (tests, offline development).
Each keeps a record of what it was asked to do so callers can inspect it.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from decimal import Decimal

from .gateway import DELIVERY_SENT
from .pricing import PricingQuote, fallback_quote


class LocalPricingClient:
    def calculate_order_total(self, items) -> PricingQuote:
        return fallback_quote(items)


class LocalInventoryClient:
    def __init__(self):
        self.adjustments: list[tuple[str, int]] = []
        self.levels: dict[str, int] = defaultdict(int)

    def adjust_stock(self, jewelry_item_id, quantity_change: int) -> None:
        key = str(jewelry_item_id)
        self.adjustments.append((key, int(quantity_change)))
        self.levels[key] += int(quantity_change)


class LocalPaymentClient:
    def __init__(self):
        self.refunds: list[dict] = []

    def refund(self, *, order_id, amount: Decimal, refund_method: str, reason: str = "") -> str:
        reference = f"LOCAL_REF_{uuid.uuid4().hex[:12].upper()}"
        self.refunds.append(
            {
                "order_id": order_id,
                "amount": amount,
                "refund_method": refund_method,
                "reason": reason,
                "refund_reference": reference,
            }
        )
        return reference


class LocalChannelGateway:
    def __init__(self):
        self.deliveries: list[dict] = []

    def deliver(self, *, customer_id, channel: str, subject: str, message: str, notification_id=None) -> str:
        self.deliveries.append(
            {
                "customer_id": str(customer_id),
                "channel": channel,
                "subject": subject,
                "message": message,
                "notification_id": notification_id,
            }
        )
        return DELIVERY_SENT
