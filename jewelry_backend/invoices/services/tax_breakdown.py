# invoices/services/tax_breakdown.py

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal

from django.conf import settings

from core.money import TWOPLACES, ZERO, money

from .amount_words import amount_in_words


@dataclass(frozen=True)
class TaxBreakdown:
    subtotal: Decimal
    making_charges: Decimal
    wastage_amount: Decimal
    taxable_value: Decimal
    gst_rate: Decimal
    gst_amount: Decimal
    interstate: bool
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    grand_total: Decimal
    amount_in_words: str


def build_tax_breakdown(order, *, interstate: bool | None = None) -> TaxBreakdown:
    """
    Split the order's stored GST; never recompute it.

    Intrastate: CGST + SGST, half each, SGST takes the odd paisa.
    Interstate: the whole amount is IGST.
    """
    if interstate is None:
        interstate = bool(getattr(settings, "INVOICE_INTERSTATE", False))

    subtotal = money(order.subtotal)
    making = money(order.making_charges)
    wastage = money(order.wastage_amount)
    gst = money(order.gst_amount)
    rate = Decimal(str(getattr(settings, "GST_RATE", "3.00"))).quantize(TWOPLACES)

    if interstate:
        cgst = sgst = ZERO
        igst = gst
    else:
        cgst = (gst / 2).quantize(TWOPLACES, rounding=ROUND_DOWN)
        sgst = gst - cgst
        igst = ZERO

    grand_total = money(order.total_amount)

    return TaxBreakdown(
        subtotal=subtotal,
        making_charges=making,
        wastage_amount=wastage,
        taxable_value=subtotal + making + wastage,
        gst_rate=rate,
        gst_amount=gst,
        interstate=interstate,
        cgst=cgst,
        sgst=sgst,
        igst=igst,
        grand_total=grand_total,
        amount_in_words=amount_in_words(grand_total),
    )
