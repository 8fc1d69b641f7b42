# invoices/services/amount_words.py

"""
Amount in words, Indian numbering (Crore / Lakh / Thousand / Hundred).

    17304      -> "Seventeen Thousand Three Hundred Four"
    12345678.5 -> "One Crore Twenty Three Lakh Forty Five Thousand Six Hundred
                   Seventy Eight and Fifty Paise"
"""

from __future__ import annotations

from decimal import Decimal

from core.money import money

ONES = [
    "", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine",
    "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen",
    "Seventeen", "Eighteen", "Nineteen",
]
TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]

CRORE = 10_000_000
LAKH = 100_000
THOUSAND = 1_000
HUNDRED = 100


def _below_hundred(n: int) -> str:
    if n < 20:
        return ONES[n]
    tens, ones = divmod(n, 10)
    return f"{TENS[tens]} {ONES[ones]}".strip()


def integer_in_words(n: int) -> str:
    if n == 0:
        return "Zero"

    parts = []
    crores, n = divmod(n, CRORE)
    if crores:
        parts.append(f"{integer_in_words(crores)} Crore")

    lakhs, n = divmod(n, LAKH)
    if lakhs:
        parts.append(f"{_below_hundred(lakhs)} Lakh")

    thousands, n = divmod(n, THOUSAND)
    if thousands:
        parts.append(f"{_below_hundred(thousands)} Thousand")

    hundreds, n = divmod(n, HUNDRED)
    if hundreds:
        parts.append(f"{ONES[hundreds]} Hundred")

    if n:
        parts.append(_below_hundred(n))

    return " ".join(parts)


def amount_in_words(amount) -> str:
    value = money(amount)
    sign = "Minus " if value < 0 else ""
    value = abs(value)

    rupees = int(value)
    paise = int((value - Decimal(rupees)) * 100)

    words = integer_in_words(rupees)
    if paise:
        words = f"{words} and {integer_in_words(paise)} Paise"
    return sign + words
