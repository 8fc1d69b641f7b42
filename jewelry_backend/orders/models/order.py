# orders/models/order.py

"""
ORDER

Financial invariant (always):
    total_amount == subtotal + making_charges + wastage_amount + gst_amount

- total_amount is re-derived on every save; callers never set it
- the components are frozen once the order leaves "pending"
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.exceptions import InvalidStateError

User = settings.AUTH_USER_MODEL

FINANCIAL_FIELDS = ("subtotal", "making_charges", "wastage_amount", "gst_amount")


class Order(models.Model):
    TYPE_SALE = "sale"
    TYPE_REPAIR = "repair"
    TYPE_CUSTOM = "custom"

    TYPE_CHOICES = [
        (TYPE_SALE, "Sale"),
        (TYPE_REPAIR, "Repair"),
        (TYPE_CUSTOM, "Custom"),
    ]

    STATUS_PENDING = "pending"
    STATUS_CONFIRMED = "confirmed"
    STATUS_IN_PROGRESS = "in_progress"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_IN_PROGRESS, "In Progress"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    order_number = models.CharField(max_length=20, unique=True, editable=False)

    customer = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    staff = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="staff_orders",
    )

    order_type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=TYPE_SALE)
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
        db_index=True,
    )

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    making_charges = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    wastage_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    gst_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    special_instructions = models.TextField(blank=True, default="")
    estimated_completion = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    # --------------------------------------------------
    # Change tracking for the financial lock
    # --------------------------------------------------

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_status = instance.__dict__.get("status")
        instance._loaded_financials = {
            f: instance.__dict__.get(f) for f in FINANCIAL_FIELDS if f in instance.__dict__
        }
        return instance

    def _financials_changed(self) -> bool:
        loaded = getattr(self, "_loaded_financials", None) or {}
        return any(
            Decimal(str(getattr(self, f))) != Decimal(str(v)) for f, v in loaded.items()
        )

    def save(self, *args, **kwargs):
        loaded_status = getattr(self, "_loaded_status", None)
        if (
            not self._state.adding
            and loaded_status is not None
            and loaded_status != self.STATUS_PENDING
            and self._financials_changed()
        ):
            raise InvalidStateError(
                f"Order {self.order_number} totals are locked once it leaves pending"
            )

        self.total_amount = (
            Decimal(str(self.subtotal))
            + Decimal(str(self.making_charges))
            + Decimal(str(self.wastage_amount))
            + Decimal(str(self.gst_amount))
        )

        update_fields = kwargs.get("update_fields")
        if update_fields is not None and set(update_fields) & set(FINANCIAL_FIELDS):
            kwargs["update_fields"] = list(set(update_fields) | {"total_amount"})

        super().save(*args, **kwargs)

        self._loaded_status = self.status
        self._loaded_financials = {f: getattr(self, f) for f in FINANCIAL_FIELDS}

    @property
    def is_terminal(self) -> bool:
        return self.status in {self.STATUS_COMPLETED, self.STATUS_CANCELLED}

    def __str__(self):
        return f"{self.order_number} ({self.status})"


class OrderNumberSequence(models.Model):
    """One row per calendar day; last_value is bumped under row lock."""

    day = models.DateField(unique=True)
    last_value = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.day:%Y-%m-%d}: {self.last_value}"
