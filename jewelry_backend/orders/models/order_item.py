# orders/models/order_item.py

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.exceptions import InvalidStateError

from .order import Order

User = settings.AUTH_USER_MODEL


class OrderItem(models.Model):
    """
    One jewelry line of an order.

    total_price = unit_price * quantity, computed on save.
    Lines can only be written or removed while the order is pending.
    """

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")

    jewelry_item_id = models.CharField(max_length=64)
    item_name = models.CharField(max_length=200, blank=True, default="")
    item_sku = models.CharField(max_length=64, blank=True, default="")

    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    customization_details = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["id"]

    def _ensure_order_pending(self):
        if self.order.status != Order.STATUS_PENDING:
            raise InvalidStateError(
                f"Items of order {self.order.order_number} are locked once it leaves pending"
            )

    def save(self, *args, **kwargs):
        self._ensure_order_pending()
        self.total_price = Decimal(str(self.unit_price)) * int(self.quantity)
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        self._ensure_order_pending()
        return super().delete(*args, **kwargs)

    @property
    def display_name(self) -> str:
        return self.item_name or self.item_sku or f"Item {self.jewelry_item_id}"

    def __str__(self):
        return f"{self.display_name} x{self.quantity}"


class OrderItemCustomization(models.Model):
    """Engraving, sizing, stone choice... added to a line after the fact."""

    order_item = models.ForeignKey(
        OrderItem,
        on_delete=models.CASCADE,
        related_name="customizations",
    )

    customization_type = models.CharField(max_length=50)
    details = models.TextField(blank=True, default="")
    additional_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_customizations",
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"{self.customization_type} on item {self.order_item_id}"
