# invoices/services/invoice_pdf.py

"""
INVOICE PDF (ReportLab platypus)

Pure read + render. Layout, top to bottom:
- business block + "TAX INVOICE"
- invoice details (number, dates, status)
- bill to / served by
- itemized table (header row repeats on every page)
- totals with CGST/SGST or IGST
- amount in words, terms, signature block
Footer on every page: business name + page number.
"""

from __future__ import annotations

import logging
from io import BytesIO
from xml.sax.saxutils import escape

from django.conf import settings
from django.utils import timezone
from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import KeepTogether, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .tax_breakdown import build_tax_breakdown

logger = logging.getLogger(__name__)

CURRENCY = "Rs."

TERMS = [
    "Goods once sold will be exchanged or returned only within 30 days of purchase "
    "with this invoice.",
    "Making charges and wastage are non-refundable on exchange.",
    "Repairs are subject to assessment; estimates may change after inspection.",
    "Subject to local jurisdiction.",
]


def _fmt(amount) -> str:
    return f"{CURRENCY} {amount:,.2f}"


def _p(text, style) -> Paragraph:
    return Paragraph(escape(str(text or "")).replace("\n", "<br/>"), style)


class InvoiceGenerator:
    def __init__(self, *, business: dict | None = None):
        self.business = business if business is not None else dict(getattr(settings, "BUSINESS", {}))
        base = getSampleStyleSheet()
        self.styles = {
            "title": ParagraphStyle("InvTitle", parent=base["Title"], fontSize=16, spaceAfter=2),
            "business": ParagraphStyle("InvBusiness", parent=base["Heading2"], fontSize=14, spaceAfter=2),
            "small": ParagraphStyle("InvSmall", parent=base["Normal"], fontSize=8, leading=10),
            "normal": ParagraphStyle("InvNormal", parent=base["Normal"], fontSize=9, leading=11),
            "bold": ParagraphStyle("InvBold", parent=base["Normal"], fontName="Helvetica-Bold", fontSize=9, leading=11),
            "right": ParagraphStyle("InvRight", parent=base["Normal"], fontSize=9, leading=11, alignment=TA_RIGHT),
            "heading": ParagraphStyle("InvHeading", parent=base["Heading4"], fontSize=10, spaceBefore=6, spaceAfter=2),
        }

    # --------------------------------------------------
    # Public
    # --------------------------------------------------

    @staticmethod
    def invoice_number(order) -> str:
        return f"INV-{order.order_number}"

    def render(self, order, *, interstate: bool | None = None) -> bytes:
        breakdown = build_tax_breakdown(order, interstate=interstate)
        buf = BytesIO()

        doc = SimpleDocTemplate(
            buf,
            pagesize=A4,
            leftMargin=15 * mm,
            rightMargin=15 * mm,
            topMargin=15 * mm,
            bottomMargin=18 * mm,
            title=self.invoice_number(order),
            author=self.business.get("NAME", ""),
        )

        story = []
        story += self._header()
        story += self._details(order)
        story += self._parties(order)
        story += self._items(order)
        story.append(KeepTogether(self._totals(breakdown)))
        story += self._terms()
        story.append(KeepTogether(self._signature()))

        doc.build(story, onFirstPage=self._footer, onLaterPages=self._footer)

        logger.info(
            "Invoice rendered",
            extra={"order_id": order.pk, "invoice_number": self.invoice_number(order)},
        )
        return buf.getvalue()

    # --------------------------------------------------
    # Sections
    # --------------------------------------------------

    def _header(self):
        s = self.styles
        b = self.business
        lines = [b.get("ADDRESS"), b.get("PHONE") and f"Phone: {b['PHONE']}", b.get("EMAIL") and f"Email: {b['EMAIL']}"]
        left = [_p(b.get("NAME") or "", s["business"])]
        left += [_p(line, s["small"]) for line in lines if line]
        if b.get("GST_NUMBER"):
            left.append(_p(f"GSTIN: {b['GST_NUMBER']}", s["small"]))

        table = Table([[left, _p("TAX INVOICE", s["title"])]], colWidths=[110 * mm, 70 * mm])
        table.setStyle(
            TableStyle(
                [
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("LINEBELOW", (0, 0), (-1, 0), 1, colors.black),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                ]
            )
        )
        return [table, Spacer(1, 4 * mm)]

    def _details(self, order):
        s = self.styles
        issued = timezone.localtime(timezone.now())
        created = timezone.localtime(order.created_at)
        rows = [
            [_p("Invoice No:", s["bold"]), _p(self.invoice_number(order), s["normal"]),
             _p("Invoice Date:", s["bold"]), _p(f"{issued:%d %b %Y}", s["normal"])],
            [_p("Order No:", s["bold"]), _p(order.order_number, s["normal"]),
             _p("Order Date:", s["bold"]), _p(f"{created:%d %b %Y}", s["normal"])],
            [_p("Order Type:", s["bold"]), _p(order.get_order_type_display(), s["normal"]),
             _p("Status:", s["bold"]), _p(order.get_status_display(), s["normal"])],
        ]
        table = Table(rows, colWidths=[25 * mm, 65 * mm, 28 * mm, 62 * mm])
        table.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
        return [table, Spacer(1, 4 * mm)]

    def _parties(self, order):
        s = self.styles
        customer = order.customer
        bill_to = [_p("Bill To", s["heading"]), _p(customer.full_name, s["bold"])]
        for line in (customer.address, customer.phone, customer.email):
            if line:
                bill_to.append(_p(line, s["normal"]))

        served_by = [_p("Served By", s["heading"])]
        if order.staff_id:
            served_by.append(_p(order.staff.full_name, s["bold"]))
        else:
            served_by.append(_p("-", s["normal"]))

        table = Table([[bill_to, served_by]], colWidths=[110 * mm, 70 * mm])
        table.setStyle(
            TableStyle(
                [
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("BOX", (0, 0), (-1, -1), 0.5, colors.grey),
                    ("INNERGRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ]
            )
        )
        return [table, Spacer(1, 5 * mm)]

    def _items(self, order):
        s = self.styles
        rows = [[_p(h, s["bold"]) for h in ("#", "Item", "SKU", "Qty", "Rate", "Amount")]]

        for idx, item in enumerate(order.items.all(), start=1):
            description = [_p(item.display_name, s["normal"])]
            if item.customization_details:
                description.append(_p(item.customization_details, s["small"]))
            for c in item.customizations.all():
                extra = f" (+{_fmt(c.additional_cost)})" if c.additional_cost else ""
                description.append(_p(f"{c.customization_type}: {c.details}{extra}", s["small"]))

            rows.append(
                [
                    _p(idx, s["normal"]),
                    description,
                    _p(item.item_sku or "-", s["normal"]),
                    _p(item.quantity, s["right"]),
                    _p(_fmt(item.unit_price), s["right"]),
                    _p(_fmt(item.total_price), s["right"]),
                ]
            )

        table = Table(
            rows,
            colWidths=[10 * mm, 70 * mm, 28 * mm, 14 * mm, 29 * mm, 29 * mm],
            repeatRows=1,
        )
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#EEEEEE")),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ]
            )
        )
        return [table, Spacer(1, 4 * mm)]

    def _totals(self, b):
        s = self.styles
        rows = [
            ("Subtotal", b.subtotal),
            ("Making Charges", b.making_charges),
            ("Wastage", b.wastage_amount),
            ("Taxable Value", b.taxable_value),
        ]
        if b.interstate:
            rows.append((f"IGST @ {b.gst_rate}%", b.igst))
        else:
            half = b.gst_rate / 2
            rows.append((f"CGST @ {half}%", b.cgst))
            rows.append((f"SGST @ {half}%", b.sgst))

        data = [[_p(label, s["normal"]), _p(_fmt(value), s["right"])] for label, value in rows]
        data.append([_p("Grand Total", s["bold"]), _p(_fmt(b.grand_total), s["right"])])

        table = Table(data, colWidths=[50 * mm, 40 * mm], hAlign="RIGHT")
        table.setStyle(
            TableStyle(
                [
                    ("LINEABOVE", (0, -1), (-1, -1), 1, colors.black),
                    ("BACKGROUND", (0, -1), (-1, -1), colors.HexColor("#EEEEEE")),
                ]
            )
        )
        return [
            table,
            Spacer(1, 3 * mm),
            _p(f"Amount in words: Rupees {b.amount_in_words} Only", s["bold"]),
            Spacer(1, 4 * mm),
        ]

    def _terms(self):
        s = self.styles
        flow = [_p("Terms & Conditions", s["heading"])]
        flow += [_p(f"{i}. {t}", s["small"]) for i, t in enumerate(TERMS, start=1)]
        flow.append(Spacer(1, 10 * mm))
        return flow

    def _signature(self):
        s = self.styles
        name = self.business.get("NAME") or ""
        table = Table(
            [
                [_p("Customer Signature", s["normal"]), _p(f"For {name}", s["right"])],
                [Spacer(1, 12 * mm), Spacer(1, 12 * mm)],
                [_p("______________________", s["normal"]), _p("Authorised Signatory", s["right"])],
            ],
            colWidths=[90 * mm, 90 * mm],
        )
        return [table]

    def _footer(self, canvas, doc):
        canvas.saveState()
        canvas.setFont("Helvetica", 8)
        canvas.drawString(doc.leftMargin, 10 * mm, self.business.get("NAME") or "")
        canvas.drawRightString(
            doc.pagesize[0] - doc.rightMargin,
            10 * mm,
            f"Page {canvas.getPageNumber()}",
        )
        canvas.restoreState()
