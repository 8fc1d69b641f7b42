# history/services/status_history.py

"""
STATUS HISTORY LOG

Append-only ledger shared by the order, repair and return lifecycles.

Callers record inside their own transaction.atomic() block so the entry
commits (or rolls back) together with the status change it describes.
"""

from __future__ import annotations

import logging

from django.db import DEFAULT_DB_ALIAS

from history.models import StatusHistoryEntry

logger = logging.getLogger(__name__)

ENTITY_TYPES = {choice for choice, _label in StatusHistoryEntry.ENTITY_CHOICES}


class StatusHistoryLog:
    def __init__(self, *, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def record(
        self,
        *,
        entity_type: str,
        entity_id: int,
        status: str,
        changed_by=None,
        notes: str = "",
    ) -> StatusHistoryEntry:
        if entity_type not in ENTITY_TYPES:
            raise ValueError(f"Unknown history entity type: {entity_type!r}")

        entry = StatusHistoryEntry(
            entity_type=entity_type,
            entity_id=entity_id,
            status=status,
            notes=notes or "",
            changed_by=changed_by if getattr(changed_by, "pk", None) else None,
        )
        entry.save(using=self.using)

        logger.info(
            "Status recorded",
            extra={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "status": status,
            },
        )
        return entry

    def for_entity(self, entity_type: str, entity_id: int):
        """Oldest first, the order transitions happened in."""
        return (
            StatusHistoryEntry.objects.using(self.using)
            .filter(entity_type=entity_type, entity_id=entity_id)
            .select_related("changed_by")
            .order_by("changed_at", "id")
        )
