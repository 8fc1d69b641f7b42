# returns/models/return_request.py

"""
RETURN / EXCHANGE REQUESTS

Amounts are derived from the order's own line prices at request time and
snapshotted on ReturnItem rows. Status only moves through
returns.services.return_lifecycle.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class ReturnRequest(models.Model):
    TYPE_RETURN = "return"
    TYPE_EXCHANGE = "exchange"

    TYPE_CHOICES = [
        (TYPE_RETURN, "Return"),
        (TYPE_EXCHANGE, "Exchange"),
    ]

    STATUS_REQUESTED = "requested"
    STATUS_APPROVED = "approved"
    STATUS_REJECTED = "rejected"
    STATUS_PROCESSED = "processed"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_REQUESTED, "Requested"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
        (STATUS_PROCESSED, "Processed"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    REFUND_CASH = "cash"
    REFUND_BANK_TRANSFER = "bank_transfer"
    REFUND_ORIGINAL_PAYMENT = "original_payment"
    REFUND_STORE_CREDIT = "store_credit"

    REFUND_METHOD_CHOICES = [
        (REFUND_CASH, "Cash"),
        (REFUND_BANK_TRANSFER, "Bank Transfer"),
        (REFUND_ORIGINAL_PAYMENT, "Original Payment"),
        (REFUND_STORE_CREDIT, "Store Credit"),
    ]

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="returns",
    )

    return_type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    reason = models.CharField(max_length=100)
    reason_details = models.TextField(blank=True, default="")

    requested_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="requested_returns",
    )

    return_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    exchange_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    # exchange - return; negative means the shop owes the customer
    exchange_amount_difference = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_REQUESTED,
        db_index=True,
    )

    processed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="processed_returns",
    )
    refund_method = models.CharField(max_length=20, choices=REFUND_METHOD_CHOICES, blank=True, default="")
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    refund_reference = models.CharField(max_length=100, blank=True, default="")
    processed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.get_return_type_display()} #{self.pk} ({self.status})"


class ReturnItem(models.Model):
    return_request = models.ForeignKey(
        ReturnRequest,
        on_delete=models.CASCADE,
        related_name="items",
    )
    order_item = models.ForeignKey(
        "orders.OrderItem",
        on_delete=models.PROTECT,
        related_name="return_items",
    )
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    line_amount = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        ordering = ["id"]

    def save(self, *args, **kwargs):
        self.line_amount = (self.unit_price * self.quantity).quantize(Decimal("0.01"))
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.order_item} x{self.quantity}"


class ExchangeItem(models.Model):
    return_request = models.ForeignKey(
        ReturnRequest,
        on_delete=models.CASCADE,
        related_name="exchange_items",
    )
    jewelry_item_id = models.CharField(max_length=64)
    item_name = models.CharField(max_length=200, blank=True, default="")
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    line_amount = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        ordering = ["id"]

    def save(self, *args, **kwargs):
        self.line_amount = (self.unit_price * self.quantity).quantize(Decimal("0.01"))
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.item_name or self.jewelry_item_id} x{self.quantity}"
