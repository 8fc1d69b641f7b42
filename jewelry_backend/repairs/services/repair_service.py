# repairs/services/repair_service.py

"""
REPAIR LIFECYCLE

Same shape as the order lifecycle:
validate -> lock -> persist + history -> post-commit notification.

Repairs never touch inventory.
"""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.models import F

from core.dates import filter_created_between
from core.effects import PostCommitEffects
from core.exceptions import InvalidStateError, NotFoundError, ValidationError
from core.money import ZERO, money
from history.models import StatusHistoryEntry
from history.services.status_history import StatusHistoryLog
from notifications.services.dispatcher import NotificationDispatcher
from orders.models import Order
from repairs.models import RepairRequest
from repairs.services.repair_lifecycle import (
    APPROVAL_STATES,
    PHOTO_TYPES,
    QUEUE_STATES,
    validate_transition,
)

logger = logging.getLogger(__name__)

REPAIR_TYPES = {choice for choice, _label in RepairRequest.TYPE_CHOICES}

UPDATABLE_FIELDS = {
    "repair_type",
    "estimated_cost",
    "estimated_completion",
    "actual_cost",
    "repair_notes",
    "customer_approved",
    "technician_id",
}

# a change to any of these is worth telling the customer about
NOTIFY_FIELDS = {"estimated_cost", "estimated_completion", "actual_cost", "customer_approved"}


def _required_text(value, field: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValidationError(f"{field} is required", details={field: "required"})
    return text


def _cost(value, field: str, *, allow_none: bool = False):
    if value in (None, "") and allow_none:
        return None
    try:
        amount = money(value)
    except ValueError as exc:
        raise ValidationError(f"{field} must be a number", details={field: str(value)}) from exc
    if amount < ZERO:
        raise ValidationError(f"{field} must be zero or more", details={field: str(amount)})
    return amount


def _repair_type(value) -> str:
    if value not in REPAIR_TYPES:
        raise ValidationError(f"Unknown repair type '{value}'", details={"repair_type": value})
    return value


class RepairLifecycle:
    def __init__(self, *, using: str = DEFAULT_DB_ALIAS, notifier=None, history=None):
        self.using = using
        self.notifier = notifier if notifier is not None else NotificationDispatcher(using=using)
        self.history = history if history is not None else StatusHistoryLog(using=using)

    # --------------------------------------------------
    # Internals
    # --------------------------------------------------

    def _base_qs(self):
        return RepairRequest.objects.using(self.using).select_related(
            "order", "order__customer", "technician", "created_by"
        )

    def _lock(self, repair_id) -> RepairRequest:
        repair = (
            RepairRequest.objects.using(self.using)
            .select_for_update()
            .filter(pk=repair_id)
            .first()
        )
        if repair is None:
            raise NotFoundError(f"Repair {repair_id} not found", details={"repair_id": repair_id})
        return repair

    def _technician(self, technician_id):
        if technician_id in (None, ""):
            return None
        User = get_user_model()
        try:
            technician = User.objects.using(self.using).filter(pk=technician_id).first()
        except (ValueError, DjangoValidationError):
            technician = None
        if technician is None:
            raise NotFoundError(
                f"Technician {technician_id} not found",
                details={"technician_id": str(technician_id)},
            )
        if not technician.is_active or technician.is_customer:
            raise ValidationError(
                "Repairs can only be assigned to active staff",
                details={"technician_id": str(technician_id)},
            )
        return technician

    def _notify(self, repair, *, event: str, notes: str = ""):
        effects = PostCommitEffects(using=self.using, context={"repair_id": repair.pk, "event": event})
        effects.add(f"notify.repair_{event}", self.notifier.notify_repair_update, repair, event=event, notes=notes)
        effects.schedule()

    # --------------------------------------------------
    # Create
    # --------------------------------------------------

    def create_repair(
        self,
        *,
        order_id,
        item_description,
        problem_description,
        repair_type,
        estimated_cost,
        actor,
        technician_id=None,
        requires_approval: bool = False,
        estimated_completion=None,
    ) -> RepairRequest:
        item_description = _required_text(item_description, "item_description")
        problem_description = _required_text(problem_description, "problem_description")
        repair_type = _repair_type(repair_type)
        estimated_cost = _cost(estimated_cost, "estimated_cost")

        with transaction.atomic(using=self.using):
            order = Order.objects.using(self.using).select_related("customer").filter(pk=order_id).first()
            if order is None:
                raise NotFoundError(f"Order {order_id} not found", details={"order_id": order_id})

            technician = self._technician(technician_id)

            repair = RepairRequest(
                order=order,
                item_description=item_description,
                problem_description=problem_description,
                repair_type=repair_type,
                estimated_cost=estimated_cost,
                estimated_completion=estimated_completion,
                customer_approval_required=bool(requires_approval),
                technician=technician,
                created_by=actor if getattr(actor, "pk", None) else None,
                status=RepairRequest.STATUS_RECEIVED,
            )
            repair.save(using=self.using)

            self.history.record(
                entity_type=StatusHistoryEntry.ENTITY_REPAIR,
                entity_id=repair.pk,
                status=repair.status,
                changed_by=actor,
                notes="Repair request received",
            )
            self._notify(repair, event="received")

        logger.info(
            "Repair created",
            extra={"repair_id": repair.pk, "order_id": order.pk, "repair_type": repair_type},
        )
        return repair

    # --------------------------------------------------
    # Read
    # --------------------------------------------------

    def get_repair(self, repair_id) -> RepairRequest:
        repair = self._base_qs().filter(pk=repair_id).first()
        if repair is None:
            raise NotFoundError(f"Repair {repair_id} not found", details={"repair_id": repair_id})
        return repair

    def list_repairs(self, filters: dict | None = None):
        """Newest first. Keys: status, technician_id, customer_id, repair_type, date_from, date_to."""
        filters = filters or {}
        qs = self._base_qs()

        if filters.get("status"):
            qs = qs.filter(status=filters["status"])
        if filters.get("technician_id"):
            qs = qs.filter(technician_id=filters["technician_id"])
        if filters.get("customer_id"):
            qs = qs.filter(order__customer_id=filters["customer_id"])
        if filters.get("repair_type"):
            qs = qs.filter(repair_type=filters["repair_type"])

        qs = filter_created_between(qs, date_from=filters.get("date_from"), date_to=filters.get("date_to"))
        return qs.order_by("-created_at", "-id")

    def get_repair_queue(self, technician_id=None):
        qs = self._base_qs().filter(status__in=QUEUE_STATES)
        if technician_id:
            qs = qs.filter(technician_id=technician_id)
        return qs.order_by(F("estimated_completion").asc(nulls_last=True), "created_at", "id")

    def get_status_history(self, repair_id):
        if not RepairRequest.objects.using(self.using).filter(pk=repair_id).exists():
            raise NotFoundError(f"Repair {repair_id} not found", details={"repair_id": repair_id})
        return self.history.for_entity(StatusHistoryEntry.ENTITY_REPAIR, repair_id)

    # --------------------------------------------------
    # Update
    # --------------------------------------------------

    def update_repair(self, repair_id, *, actor, **fields) -> RepairRequest:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                "Unknown repair fields",
                details={"fields": sorted(unknown)},
            )
        if not fields:
            raise ValidationError("Nothing to update")

        cleaned = dict(fields)
        if "repair_type" in cleaned:
            cleaned["repair_type"] = _repair_type(cleaned["repair_type"])
        if "estimated_cost" in cleaned:
            cleaned["estimated_cost"] = _cost(cleaned["estimated_cost"], "estimated_cost")
        if "actual_cost" in cleaned:
            cleaned["actual_cost"] = _cost(cleaned["actual_cost"], "actual_cost", allow_none=True)
        if "repair_notes" in cleaned:
            cleaned["repair_notes"] = str(cleaned["repair_notes"] or "")
        technician = self._technician(cleaned.pop("technician_id")) if "technician_id" in fields else None

        with transaction.atomic(using=self.using):
            repair = self._lock(repair_id)

            if "customer_approved" in cleaned and repair.status not in APPROVAL_STATES:
                raise InvalidStateError(
                    f"Repair {repair.pk} must be assessed before customer approval is recorded",
                    details={"status": repair.status},
                )

            changed = set()
            for name, value in cleaned.items():
                if getattr(repair, name) != value:
                    setattr(repair, name, value)
                    changed.add(name)
            if "technician_id" in fields and repair.technician_id != getattr(technician, "pk", None):
                repair.technician = technician
                changed.add("technician")

            if changed:
                repair.save(using=self.using)
            if changed & NOTIFY_FIELDS:
                self._notify(repair, event="updated")

        logger.info(
            "Repair updated",
            extra={
                "repair_id": repair.pk,
                "changed": sorted(changed),
                "actor_id": str(getattr(actor, "pk", "") or ""),
            },
        )
        return self.get_repair(repair.pk)

    def update_status(self, repair_id, new_status: str, *, actor, notes: str = "") -> RepairRequest:
        with transaction.atomic(using=self.using):
            repair = self._lock(repair_id)
            previous = repair.status
            validate_transition(repair=repair, target_status=new_status)

            repair.status = new_status
            repair.save(using=self.using, update_fields=["status", "updated_at"])

            self.history.record(
                entity_type=StatusHistoryEntry.ENTITY_REPAIR,
                entity_id=repair.pk,
                status=new_status,
                changed_by=actor,
                notes=notes,
            )
            self._notify(repair, event=new_status, notes=notes)

        logger.info(
            "Repair status changed",
            extra={"repair_id": repair.pk, "from_status": previous, "to_status": new_status},
        )
        return repair

    def upload_photos(self, repair_id, *, photos, photo_type: str) -> RepairRequest:
        if photo_type not in PHOTO_TYPES:
            raise ValidationError(
                "photo_type must be 'before' or 'after'",
                details={"photo_type": photo_type},
            )
        if isinstance(photos, str) or not isinstance(photos, (list, tuple)):
            raise ValidationError("photos must be a list of URLs")
        urls = [str(p).strip() for p in photos]
        if any(not url for url in urls):
            raise ValidationError("photos must not contain empty entries")

        field = f"{photo_type}_photos"
        with transaction.atomic(using=self.using):
            repair = self._lock(repair_id)
            setattr(repair, field, urls)
            repair.save(using=self.using, update_fields=[field, "updated_at"])

        logger.info("Repair photos replaced", extra={"repair_id": repair.pk, "photo_type": photo_type, "count": len(urls)})
        return repair
