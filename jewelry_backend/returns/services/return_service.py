# returns/services/return_service.py

"""
RETURN / EXCHANGE LIFECYCLE

create_return_request
    order must be completed (or delivered) and at most 30 days old;
    amounts come from the order's own line prices, never from the caller;
    returned quantities across live requests never exceed what was bought.

process_return (approved -> processed), under the return row lock:
    1) refund through the payment service (manual placeholder on failure)
    2) inventory: restore returned lines, debit exchange lines (after commit)
    3) status + refund details + history
    4) customer notification (after commit)

A request that is not `approved` cannot be processed, so a repeated call
never refunds twice.
"""

from __future__ import annotations

import logging
from collections import OrderedDict

from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.models import Q, Sum
from django.utils import timezone

from core.dates import filter_created_between
from core.effects import PostCommitEffects
from core.exceptions import (
    DependencyError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from core.money import ZERO, money, to_int_qty
from history.models import StatusHistoryEntry
from history.services.status_history import StatusHistoryLog
from integrations.registry import get_inventory_client, get_payment_client
from notifications.services.dispatcher import NotificationDispatcher
from orders.models import Order
from orders.services.order_service import normalize_items
from returns.models import ExchangeItem, ReturnItem, ReturnRequest
from returns.services.return_lifecycle import (
    RELEASED_STATES,
    RETURN_WINDOW_DAYS,
    RETURNABLE_ORDER_STATES,
    validate_transition,
)

logger = logging.getLogger(__name__)

RETURN_TYPES = {choice for choice, _label in ReturnRequest.TYPE_CHOICES}
REFUND_METHODS = {choice for choice, _label in ReturnRequest.REFUND_METHOD_CHOICES}

MANUAL_REFERENCE_PREFIX = "MANUAL_REF_"


def manual_refund_reference(now=None) -> str:
    now = now or timezone.now()
    return f"{MANUAL_REFERENCE_PREFIX}{int(now.timestamp() * 1000)}"


def refund_amount_for(return_request: ReturnRequest):
    """
    The computed return amount, for exchanges too: exchange items are
    settled separately through exchange_amount_difference.
    """
    return money(return_request.return_amount)


def _aggregate_return_lines(items_to_return) -> "OrderedDict[int, int]":
    """{order_item_id: quantity}; repeated ids are summed."""
    if not items_to_return:
        raise ValidationError("At least one item must be returned")

    errors = {}
    wanted = OrderedDict()
    for idx, raw in enumerate(items_to_return):
        raw = raw or {}
        try:
            item_id = int(raw.get("order_item_id"))
        except (TypeError, ValueError):
            item_id = None
        try:
            quantity = to_int_qty(raw.get("quantity"))
        except ValueError:
            quantity = None

        line_errors = []
        if item_id is None:
            line_errors.append("order_item_id is required")
        if quantity is None or quantity < 1:
            line_errors.append("quantity must be a positive whole number")
        if line_errors:
            errors[str(idx)] = line_errors
            continue
        wanted[item_id] = wanted.get(item_id, 0) + quantity

    if errors:
        raise ValidationError("Invalid return items", details={"items": errors})
    return wanted


class ReturnLifecycle:
    def __init__(
        self,
        *,
        using: str = DEFAULT_DB_ALIAS,
        inventory=None,
        payment=None,
        notifier=None,
        history=None,
    ):
        self.using = using
        self.inventory = inventory if inventory is not None else get_inventory_client()
        self.payment = payment if payment is not None else get_payment_client()
        self.notifier = notifier if notifier is not None else NotificationDispatcher(using=using)
        self.history = history if history is not None else StatusHistoryLog(using=using)

    # --------------------------------------------------
    # Internals
    # --------------------------------------------------

    def _base_qs(self):
        return (
            ReturnRequest.objects.using(self.using)
            .select_related("order", "order__customer", "requested_by", "processed_by")
            .prefetch_related("items__order_item", "exchange_items")
        )

    def _lock(self, return_id) -> ReturnRequest:
        return_request = (
            ReturnRequest.objects.using(self.using)
            .select_for_update()
            .filter(pk=return_id)
            .first()
        )
        if return_request is None:
            raise NotFoundError(f"Return {return_id} not found", details={"return_id": return_id})
        return return_request

    def _effects(self, return_request) -> PostCommitEffects:
        return PostCommitEffects(
            using=self.using,
            context={"return_id": return_request.pk, "order_id": return_request.order_id},
        )

    def _returned_so_far(self, order, *, exclude_return_id=None) -> dict:
        """{order_item_id: quantity} held by this order's live requests."""
        qs = ReturnItem.objects.using(self.using).filter(return_request__order=order).exclude(
            return_request__status__in=RELEASED_STATES
        )
        if exclude_return_id is not None:
            qs = qs.exclude(return_request_id=exclude_return_id)
        rows = qs.values("order_item_id").annotate(total=Sum("quantity")).order_by()
        return {row["order_item_id"]: row["total"] for row in rows}

    def _check_ceiling(self, order, wanted: dict, *, exclude_return_id=None) -> dict:
        """Returns {order_item_id: OrderItem}; raises when a quantity would exceed what was bought."""
        order_items = {item.pk: item for item in order.items.all()}

        unknown = [item_id for item_id in wanted if item_id not in order_items]
        if unknown:
            raise ValidationError(
                f"Items {unknown} are not part of order {order.order_number}",
                details={"order_item_ids": unknown},
            )

        already = self._returned_so_far(order, exclude_return_id=exclude_return_id)
        errors = {}
        for item_id, quantity in wanted.items():
            purchased = order_items[item_id].quantity
            returned = already.get(item_id, 0)
            if quantity + returned > purchased:
                errors[str(item_id)] = (
                    f"requested {quantity}, purchased {purchased}, already returned {returned}"
                )
        if errors:
            raise ValidationError(
                "Return quantity exceeds purchased quantity",
                details={"items": errors},
            )
        return order_items

    @staticmethod
    def _normalize_exchange(return_type: str, exchange_items):
        if return_type != ReturnRequest.TYPE_EXCHANGE:
            if exchange_items:
                raise ValidationError("exchange_items are only accepted for exchanges")
            return []
        if not exchange_items:
            raise ValidationError("An exchange needs at least one exchange item")
        try:
            return normalize_items(exchange_items)
        except ValidationError as exc:
            raise ValidationError(
                "Invalid exchange items",
                details={"exchange_items": (exc.details or {}).get("items")},
            ) from exc

    def _record(self, return_request, *, actor, notes: str = ""):
        self.history.record(
            entity_type=StatusHistoryEntry.ENTITY_RETURN,
            entity_id=return_request.pk,
            status=return_request.status,
            changed_by=actor,
            notes=notes,
        )

    # --------------------------------------------------
    # Create
    # --------------------------------------------------

    def create_return_request(
        self,
        *,
        order_id,
        return_type,
        reason,
        items_to_return,
        actor,
        exchange_items=None,
        reason_details: str = "",
    ) -> ReturnRequest:
        if return_type not in RETURN_TYPES:
            raise ValidationError(f"Unknown return type '{return_type}'", details={"return_type": return_type})
        reason = str(reason or "").strip()
        if not reason:
            raise ValidationError("reason is required", details={"reason": "required"})

        wanted = _aggregate_return_lines(items_to_return)
        exchange_lines = self._normalize_exchange(return_type, exchange_items)

        with transaction.atomic(using=self.using):
            # the order row serialises concurrent requests against the same lines
            order = Order.objects.using(self.using).select_for_update().filter(pk=order_id).first()
            if order is None:
                raise NotFoundError(f"Order {order_id} not found", details={"order_id": order_id})

            if order.status not in RETURNABLE_ORDER_STATES:
                raise InvalidStateError(
                    "Order must be completed or delivered to initiate a return",
                    details={"order_status": order.status},
                )

            age_days = (timezone.now() - order.created_at).days
            if age_days > RETURN_WINDOW_DAYS:
                raise InvalidStateError(
                    f"Return window of {RETURN_WINDOW_DAYS} days has expired",
                    details={"order_age_days": age_days},
                )

            order_items = self._check_ceiling(order, wanted)

            return_amount = money(
                sum((order_items[item_id].unit_price * qty for item_id, qty in wanted.items()), ZERO)
            )
            exchange_amount = money(
                sum((line["unit_price"] * line["quantity"] for line in exchange_lines), ZERO)
            )
            difference = (
                money(exchange_amount - return_amount)
                if return_type == ReturnRequest.TYPE_EXCHANGE
                else ZERO
            )

            return_request = ReturnRequest(
                order=order,
                return_type=return_type,
                reason=reason,
                reason_details=reason_details or "",
                requested_by=actor if getattr(actor, "pk", None) else None,
                return_amount=return_amount,
                exchange_amount=exchange_amount,
                exchange_amount_difference=difference,
                status=ReturnRequest.STATUS_REQUESTED,
            )
            return_request.save(using=self.using)

            for item_id, qty in wanted.items():
                ReturnItem(
                    return_request=return_request,
                    order_item=order_items[item_id],
                    quantity=qty,
                    unit_price=order_items[item_id].unit_price,
                ).save(using=self.using)

            for line in exchange_lines:
                ExchangeItem(
                    return_request=return_request,
                    jewelry_item_id=line["jewelry_item_id"],
                    item_name=line["item_name"],
                    quantity=line["quantity"],
                    unit_price=line["unit_price"],
                ).save(using=self.using)

            self._record(return_request, actor=actor, notes=f"Return requested: {reason}")

            effects = self._effects(return_request)
            effects.add("notify.return_requested", self.notifier.notify_return_update, return_request)
            effects.schedule()

        logger.info(
            "Return requested",
            extra={
                "return_id": return_request.pk,
                "order_id": order.pk,
                "return_type": return_type,
                "return_amount": str(return_amount),
                "exchange_amount": str(exchange_amount),
            },
        )
        return return_request

    # --------------------------------------------------
    # Read
    # --------------------------------------------------

    def get_return(self, return_id) -> ReturnRequest:
        return_request = self._base_qs().filter(pk=return_id).first()
        if return_request is None:
            raise NotFoundError(f"Return {return_id} not found", details={"return_id": return_id})
        return return_request

    def list_returns(self, filters: dict | None = None):
        """Newest first. Keys: status, return_type, order_id, customer_id, date_from, date_to, search."""
        filters = filters or {}
        qs = self._base_qs()

        if filters.get("status"):
            qs = qs.filter(status=filters["status"])
        if filters.get("return_type"):
            qs = qs.filter(return_type=filters["return_type"])
        if filters.get("order_id"):
            qs = qs.filter(order_id=filters["order_id"])
        if filters.get("customer_id"):
            qs = qs.filter(order__customer_id=filters["customer_id"])

        qs = filter_created_between(qs, date_from=filters.get("date_from"), date_to=filters.get("date_to"))

        search = str(filters.get("search") or "").strip()
        if search:
            qs = qs.filter(
                Q(order__order_number__icontains=search)
                | Q(reason__icontains=search)
                | Q(order__customer__email__icontains=search)
            )

        return qs.order_by("-created_at", "-id")

    def get_status_history(self, return_id):
        if not ReturnRequest.objects.using(self.using).filter(pk=return_id).exists():
            raise NotFoundError(f"Return {return_id} not found", details={"return_id": return_id})
        return self.history.for_entity(StatusHistoryEntry.ENTITY_RETURN, return_id)

    # --------------------------------------------------
    # Status moves
    # --------------------------------------------------

    def approve_return(self, return_id, *, actor, notes: str = "") -> ReturnRequest:
        return self.update_status(
            return_id,
            ReturnRequest.STATUS_APPROVED,
            actor=actor,
            notes=notes or "Return approved",
        )

    def reject_return(self, return_id, *, actor, reason: str) -> ReturnRequest:
        reason = str(reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required", details={"reason": "required"})
        return self.update_status(
            return_id,
            ReturnRequest.STATUS_REJECTED,
            actor=actor,
            notes=f"Return rejected: {reason}",
        )

    def update_status(
        self,
        return_id,
        new_status: str,
        *,
        actor,
        notes: str = "",
        refund_method: str | None = None,
    ) -> ReturnRequest:
        if new_status == ReturnRequest.STATUS_PROCESSED:
            validate_transition(return_request=self.get_return(return_id), target_status=new_status)
            if not refund_method:
                raise ValidationError(
                    "refund_method is required to process a return",
                    details={"refund_method": "required"},
                )
            return self.process_return(return_id, refund_method=refund_method, actor=actor, notes=notes)

        with transaction.atomic(using=self.using):
            return_request = self._lock(return_id)
            previous = return_request.status
            validate_transition(return_request=return_request, target_status=new_status)

            if previous == ReturnRequest.STATUS_REJECTED and new_status == ReturnRequest.STATUS_REQUESTED:
                order = Order.objects.using(self.using).select_for_update().get(pk=return_request.order_id)
                wanted = {item.order_item_id: item.quantity for item in return_request.items.all()}
                self._check_ceiling(order, wanted, exclude_return_id=return_request.pk)

            return_request.status = new_status
            return_request.save(using=self.using, update_fields=["status", "updated_at"])
            self._record(return_request, actor=actor, notes=notes)

            effects = self._effects(return_request)
            effects.add(
                "notify.return_status",
                self.notifier.notify_return_update,
                return_request,
                notes=notes,
            )
            effects.schedule()

        logger.info(
            "Return status changed",
            extra={"return_id": return_request.pk, "from_status": previous, "to_status": new_status},
        )
        return return_request

    def process_return(self, return_id, *, refund_method: str, actor, notes: str = "") -> ReturnRequest:
        if refund_method not in REFUND_METHODS:
            raise ValidationError(
                f"Unknown refund method '{refund_method}'",
                details={"refund_method": refund_method},
            )

        with transaction.atomic(using=self.using):
            return_request = self._lock(return_id)
            if return_request.status != ReturnRequest.STATUS_APPROVED:
                raise InvalidStateError(
                    f"Return {return_request.pk} must be approved before processing",
                    details={"status": return_request.status},
                )
            validate_transition(return_request=return_request, target_status=ReturnRequest.STATUS_PROCESSED)

            amount = refund_amount_for(return_request)
            reference = ""
            if amount > ZERO:
                try:
                    reference = self.payment.refund(
                        order_id=return_request.order_id,
                        amount=amount,
                        refund_method=refund_method,
                        reason=return_request.reason,
                    )
                except DependencyError as exc:
                    reference = manual_refund_reference()
                    logger.warning(
                        "Refund failed; recorded manual reference",
                        extra={
                            "return_id": return_request.pk,
                            "amount": str(amount),
                            "refund_reference": reference,
                            "error": str(exc),
                        },
                    )

            effects = self._effects(return_request)
            for item in return_request.items.select_related("order_item"):
                effects.add(
                    f"inventory.restore:{item.order_item.jewelry_item_id}",
                    self.inventory.adjust_stock,
                    item.order_item.jewelry_item_id,
                    int(item.quantity),
                )
            for line in return_request.exchange_items.all():
                effects.add(
                    f"inventory.debit:{line.jewelry_item_id}",
                    self.inventory.adjust_stock,
                    line.jewelry_item_id,
                    -int(line.quantity),
                )

            return_request.status = ReturnRequest.STATUS_PROCESSED
            return_request.refund_method = refund_method
            return_request.refund_amount = amount
            return_request.refund_reference = reference
            return_request.processed_by = actor if getattr(actor, "pk", None) else None
            return_request.processed_at = timezone.now()
            return_request.save(using=self.using)

            summary = f"Refund {amount} via {refund_method}"
            if reference:
                summary = f"{summary} (ref {reference})"
            self._record(return_request, actor=actor, notes=f"{summary}. {notes}".strip() if notes else summary)

            effects.add("notify.return_processed", self.notifier.notify_return_update, return_request, notes=notes)
            effects.schedule()

        logger.info(
            "Return processed",
            extra={
                "return_id": return_request.pk,
                "refund_amount": str(amount),
                "refund_method": refund_method,
                "refund_reference": reference,
            },
        )
        return return_request
