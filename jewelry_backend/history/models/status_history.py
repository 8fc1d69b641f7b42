# history/models/status_history.py

"""
STATUS HISTORY ENTRY (IMMUTABLE)

One row per status transition of an order, repair or return, including the
creation transition. Created once. Never updated. Never deleted.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class StatusHistoryEntry(models.Model):
    ENTITY_ORDER = "order"
    ENTITY_REPAIR = "repair"
    ENTITY_RETURN = "return"

    ENTITY_CHOICES = [
        (ENTITY_ORDER, "Order"),
        (ENTITY_REPAIR, "Repair"),
        (ENTITY_RETURN, "Return"),
    ]

    entity_type = models.CharField(max_length=10, choices=ENTITY_CHOICES)
    entity_id = models.PositiveBigIntegerField()

    status = models.CharField(max_length=32)
    notes = models.TextField(blank=True, default="")

    changed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="status_changes",
    )

    changed_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["changed_at", "id"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id"], name="history_entity_idx"),
        ]
        verbose_name_plural = "status history"

    # ======================================================
    # IMMUTABILITY
    # ======================================================

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("StatusHistoryEntry records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("StatusHistoryEntry records cannot be deleted")

    def __str__(self):
        return f"{self.entity_type}:{self.entity_id} -> {self.status}"
