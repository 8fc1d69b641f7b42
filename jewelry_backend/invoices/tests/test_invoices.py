# invoices/tests/test_invoices.py

from decimal import Decimal
from types import SimpleNamespace

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase, override_settings

from integrations.local import LocalChannelGateway, LocalInventoryClient, LocalPricingClient
from invoices.services.amount_words import amount_in_words, integer_in_words
from invoices.services.invoice_pdf import InvoiceGenerator
from invoices.services.tax_breakdown import build_tax_breakdown
from notifications.services.dispatcher import NotificationDispatcher
from orders.models import Order
from orders.services.order_service import OrderLifecycle

User = get_user_model()


def _order(**amounts):
    values = {
        "subtotal": Decimal("15000.00"),
        "making_charges": Decimal("1500.00"),
        "wastage_amount": Decimal("300.00"),
        "gst_amount": Decimal("504.00"),
        "total_amount": Decimal("17304.00"),
    }
    values.update(amounts)
    return SimpleNamespace(**values)


class AmountInWordsTests(SimpleTestCase):
    def test_thousands(self):
        self.assertEqual(amount_in_words(Decimal("17304")), "Seventeen Thousand Three Hundred Four")

    def test_lakh_and_crore(self):
        self.assertEqual(integer_in_words(250000), "Two Lakh Fifty Thousand")
        self.assertEqual(
            amount_in_words(Decimal("12345678.50")),
            "One Crore Twenty Three Lakh Forty Five Thousand Six Hundred Seventy Eight and Fifty Paise",
        )

    def test_paise_only_and_zero(self):
        self.assertEqual(amount_in_words(Decimal("0.05")), "Zero and Five Paise")
        self.assertEqual(amount_in_words(0), "Zero")

    def test_teens_and_exact_hundreds(self):
        self.assertEqual(integer_in_words(11), "Eleven")
        self.assertEqual(integer_in_words(900), "Nine Hundred")
        self.assertEqual(integer_in_words(10_000_000), "One Crore")

    def test_negative(self):
        self.assertEqual(amount_in_words(Decimal("-42")), "Minus Forty Two")


class TaxBreakdownTests(SimpleTestCase):
    def test_intrastate_split_is_even(self):
        b = build_tax_breakdown(_order(), interstate=False)
        self.assertEqual(b.taxable_value, Decimal("16800.00"))
        self.assertEqual(b.cgst, Decimal("252.00"))
        self.assertEqual(b.sgst, Decimal("252.00"))
        self.assertEqual(b.igst, Decimal("0"))
        self.assertEqual(b.grand_total, Decimal("17304.00"))
        self.assertEqual(b.amount_in_words, "Seventeen Thousand Three Hundred Four")

    def test_sgst_takes_the_odd_paisa(self):
        b = build_tax_breakdown(_order(gst_amount=Decimal("504.01"), total_amount=Decimal("17304.01")), interstate=False)
        self.assertEqual(b.cgst, Decimal("252.00"))
        self.assertEqual(b.sgst, Decimal("252.01"))
        self.assertEqual(b.cgst + b.sgst, Decimal("504.01"))

    def test_interstate_is_all_igst(self):
        b = build_tax_breakdown(_order(), interstate=True)
        self.assertEqual(b.igst, Decimal("504.00"))
        self.assertEqual(b.cgst, Decimal("0"))
        self.assertEqual(b.sgst, Decimal("0"))

    @override_settings(INVOICE_INTERSTATE=True)
    def test_default_comes_from_settings(self):
        self.assertTrue(build_tax_breakdown(_order()).interstate)


class InvoiceGeneratorTests(TestCase):
    def setUp(self):
        staff = User.objects.create_user(email="sales@example.com", password="pass", role="sales")
        customer = User.objects.create_user(
            email="asha@example.com",
            first_name="Asha",
            last_name="Rao",
            phone="+91 90000 00000",
            role="customer",
        )
        lifecycle = OrderLifecycle(
            pricing=LocalPricingClient(),
            inventory=LocalInventoryClient(),
            notifier=NotificationDispatcher(gateway=LocalChannelGateway()),
        )
        items = [
            {"jewelry_item_id": f"ITEM-{n}", "item_name": f"Bangle {n}", "quantity": 1, "unit_price": "1000"}
            for n in range(60)
        ]
        self.order = lifecycle.create_order(customer_id=customer.pk, staff=staff, items=items)
        lifecycle.add_customization(
            self.order.pk,
            order_item_id=self.order.items.first().pk,
            customization_type="engraving",
            details="A & R",
            additional_cost="150",
        )

    def test_render_produces_pdf_bytes(self):
        generator = InvoiceGenerator(business={"NAME": "Test Jewellers", "GST_NUMBER": "29ABCDE1234F1Z5"})
        pdf = generator.render(self.order)

        self.assertTrue(pdf.startswith(b"%PDF"))
        self.assertGreater(len(pdf), 1000)
        self.assertEqual(generator.invoice_number(self.order), f"INV-{self.order.order_number}")

    def test_render_does_not_touch_the_order(self):
        before = Order.objects.get(pk=self.order.pk)
        InvoiceGenerator().render(before, interstate=True)
        after = Order.objects.get(pk=self.order.pk)

        self.assertEqual(before.updated_at, after.updated_at)
        self.assertEqual(after.status, Order.STATUS_PENDING)
