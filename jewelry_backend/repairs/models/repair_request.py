# repairs/models/repair_request.py

"""
REPAIR REQUEST

A service ticket attached to exactly one order.
Status only moves through repairs.services.repair_lifecycle.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class RepairRequest(models.Model):
    TYPE_CLEANING = "cleaning"
    TYPE_FIXING = "fixing"
    TYPE_RESIZING = "resizing"
    TYPE_STONE_REPLACEMENT = "stone_replacement"
    TYPE_CHAIN_REPAIR = "chain_repair"
    TYPE_CLASP_REPAIR = "clasp_repair"
    TYPE_POLISHING = "polishing"
    TYPE_PLATING = "plating"

    TYPE_CHOICES = [
        (TYPE_CLEANING, "Cleaning"),
        (TYPE_FIXING, "Fixing"),
        (TYPE_RESIZING, "Resizing"),
        (TYPE_STONE_REPLACEMENT, "Stone Replacement"),
        (TYPE_CHAIN_REPAIR, "Chain Repair"),
        (TYPE_CLASP_REPAIR, "Clasp Repair"),
        (TYPE_POLISHING, "Polishing"),
        (TYPE_PLATING, "Plating"),
    ]

    STATUS_RECEIVED = "received"
    STATUS_ASSESSED = "assessed"
    STATUS_APPROVED = "approved"
    STATUS_IN_PROGRESS = "in_progress"
    STATUS_COMPLETED = "completed"
    STATUS_READY_FOR_PICKUP = "ready_for_pickup"
    STATUS_DELIVERED = "delivered"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_RECEIVED, "Received"),
        (STATUS_ASSESSED, "Assessed"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_IN_PROGRESS, "In Progress"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_READY_FOR_PICKUP, "Ready for Pickup"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="repairs",
    )

    item_description = models.TextField()
    problem_description = models.TextField()
    repair_type = models.CharField(max_length=32, choices=TYPE_CHOICES)

    estimated_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    actual_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    estimated_completion = models.DateTimeField(null=True, blank=True)

    repair_notes = models.TextField(blank=True, default="")

    customer_approval_required = models.BooleanField(default=False)
    customer_approved = models.BooleanField(null=True, blank=True)

    before_photos = models.JSONField(default=list, blank=True)
    after_photos = models.JSONField(default=list, blank=True)

    technician = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_repairs",
    )
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_repairs",
    )

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_RECEIVED,
        db_index=True,
    )

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"Repair #{self.pk} ({self.repair_type}, {self.status})"
