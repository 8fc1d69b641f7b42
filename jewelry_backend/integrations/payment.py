# integrations/payment.py

from __future__ import annotations

from decimal import Decimal

from core.exceptions import DependencyError
from core.money import money

from .http import JsonHttpClient


class HttpPaymentClient:
    def __init__(self, http: JsonHttpClient):
        self.http = http

    def refund(self, *, order_id, amount: Decimal, refund_method: str, reason: str = "") -> str:
        """Returns the payment service's refund reference."""
        data = self.http.data_of(
            self.http.request(
                "POST",
                "/api/payments/refund",
                body={
                    "order_id": order_id,
                    "amount": str(money(amount)),
                    "refund_method": refund_method,
                    "reason": reason or "",
                },
            )
        )
        reference = str(data.get("refund_reference") or "").strip()
        if not reference:
            raise DependencyError("Payment service did not return a refund reference")
        return reference
