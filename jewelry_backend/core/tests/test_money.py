# core/tests/test_money.py

from __future__ import annotations

from decimal import Decimal

from django.test import SimpleTestCase

from core.money import ZERO, money, to_int_qty


class MoneyTests(SimpleTestCase):
    def test_rounds_half_up(self):
        self.assertEqual(money("2.345"), Decimal("2.35"))
        self.assertEqual(money("2.344"), Decimal("2.34"))

    def test_float_goes_through_str(self):
        self.assertEqual(money(0.1), Decimal("0.10"))

    def test_empty_is_zero(self):
        self.assertEqual(money(None), ZERO)
        self.assertEqual(money(""), ZERO)

    def test_garbage_raises(self):
        with self.assertRaises(ValueError):
            money("ten rupees")


class QuantityTests(SimpleTestCase):
    def test_accepts_ints_and_digit_strings(self):
        self.assertEqual(to_int_qty(3), 3)
        self.assertEqual(to_int_qty(" 4 "), 4)
        self.assertEqual(to_int_qty("-2"), -2)

    def test_rejects_fractions_and_bools(self):
        for bad in (1.5, "1.5", True, "two"):
            with self.assertRaises(ValueError):
                to_int_qty(bad)
