# integrations/pricing.py

"""
PRICING

calculate_order_total(items) -> PricingQuote

items: [{"jewelry_item_id", "quantity", "unit_price"}, ...]

The quote is always normalized here: each component quantized to 2dp and
total_amount re-derived as their sum, so the stored order total can never
drift from its components whatever the service answers.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from decimal import Decimal

from core.exceptions import DependencyError
from core.money import money

from .http import JsonHttpClient

logger = logging.getLogger(__name__)

MAKING_CHARGE_RATE = Decimal("0.10")
WASTAGE_RATE = Decimal("0.02")
GST_RATE = Decimal("0.03")

QUOTE_COMPONENTS = ("subtotal", "making_charges", "wastage_amount", "gst_amount")


@dataclass(frozen=True)
class PricingQuote:
    subtotal: Decimal
    making_charges: Decimal
    wastage_amount: Decimal
    gst_amount: Decimal
    total_amount: Decimal
    source: str = "pricing_service"

    @classmethod
    def from_components(cls, *, subtotal, making_charges, wastage_amount, gst_amount, source):
        subtotal = money(subtotal)
        making_charges = money(making_charges)
        wastage_amount = money(wastage_amount)
        gst_amount = money(gst_amount)
        return cls(
            subtotal=subtotal,
            making_charges=making_charges,
            wastage_amount=wastage_amount,
            gst_amount=gst_amount,
            total_amount=subtotal + making_charges + wastage_amount + gst_amount,
            source=source,
        )

    def as_dict(self) -> dict:
        return asdict(self)


def items_subtotal(items) -> Decimal:
    return money(
        sum(
            (Decimal(str(i["unit_price"])) * int(i["quantity"]) for i in items),
            Decimal("0"),
        )
    )


def fallback_quote(items) -> PricingQuote:
    """
    Local approximation used when the pricing service is unavailable:
    making 10%, wastage 2%, GST 3% of (subtotal + making + wastage).
    """
    subtotal = items_subtotal(items)
    making = money(subtotal * MAKING_CHARGE_RATE)
    wastage = money(subtotal * WASTAGE_RATE)
    gst = money((subtotal + making + wastage) * GST_RATE)
    return PricingQuote.from_components(
        subtotal=subtotal,
        making_charges=making,
        wastage_amount=wastage,
        gst_amount=gst,
        source="fallback",
    )


class HttpPricingClient:
    def __init__(self, http: JsonHttpClient):
        self.http = http

    def calculate_order_total(self, items) -> PricingQuote:
        payload = {
            "items": [
                {
                    "jewelry_item_id": i["jewelry_item_id"],
                    "quantity": int(i["quantity"]),
                    "unit_price": str(money(i["unit_price"])),
                }
                for i in items
            ]
        }
        data = self.http.data_of(
            self.http.request("POST", "/api/pricing/calculate-order-total", body=payload)
        )

        missing = [key for key in QUOTE_COMPONENTS if data.get(key) in (None, "")]
        if missing:
            raise DependencyError(
                "Pricing service returned an incomplete quote",
                details={"missing": missing},
            )

        try:
            quote = PricingQuote.from_components(
                **{key: data[key] for key in QUOTE_COMPONENTS},
                source="pricing_service",
            )
        except ValueError as exc:
            raise DependencyError("Pricing service returned an unusable quote") from exc

        reported = data.get("total_amount")
        if reported is not None and money(reported) != quote.total_amount:
            logger.warning(
                "Pricing total does not match its components; using component sum",
                extra={"reported_total": str(reported), "component_total": str(quote.total_amount)},
            )
        return quote
