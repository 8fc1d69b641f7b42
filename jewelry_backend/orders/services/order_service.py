# orders/services/order_service.py

"""
ORDER LIFECYCLE

Every mutation follows the same shape:

1) validate input (no DB)
2) pricing quote, if needed (before the transaction)
3) transaction.atomic:
     lock the order row, check state, persist, record history,
     queue post-commit effects
4) after commit: inventory sync + customer notification, each guarded

Inventory and notification failures are logged and never undo the
committed order.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.models import Count, Q, Sum

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
from integrations.pricing import PricingQuote, fallback_quote
from integrations.registry import get_inventory_client, get_pricing_client
from notifications.services.dispatcher import NotificationDispatcher
from orders.models import Order, OrderItem, OrderItemCustomization
from orders.services.order_lifecycle import (
    CANCELLABLE_STATES,
    EDITABLE_STATES,
    ITEM_EDITABLE_STATES,
    TERMINAL_STATES,
    validate_transition,
)
from orders.services.order_numbers import next_order_number

logger = logging.getLogger(__name__)

ORDER_TYPES = {choice for choice, _label in Order.TYPE_CHOICES}

_UNSET = object()


def normalize_items(items) -> list[dict]:
    """
    Validate raw line input.

    Each line: jewelry_item_id, quantity > 0, unit_price >= 0, plus optional
    item_name / item_sku / customization_details.
    """
    if not items:
        raise ValidationError("Order must contain at least one item")

    errors = {}
    lines = []
    for idx, raw in enumerate(items):
        raw = raw or {}
        item_id = str(raw.get("jewelry_item_id") or "").strip()
        try:
            quantity = to_int_qty(raw.get("quantity"))
        except ValueError:
            quantity = None
        try:
            unit_price = money(raw.get("unit_price"))
        except ValueError:
            unit_price = None

        line_errors = []
        if not item_id:
            line_errors.append("jewelry_item_id is required")
        if quantity is None or quantity <= 0:
            line_errors.append("quantity must be a positive whole number")
        if raw.get("unit_price") in (None, ""):
            line_errors.append("unit_price is required")
        elif unit_price is None or unit_price < ZERO:
            line_errors.append("unit_price must be zero or more")
        if line_errors:
            errors[str(idx)] = line_errors
            continue

        lines.append(
            {
                "jewelry_item_id": item_id,
                "item_name": str(raw.get("item_name") or "").strip(),
                "item_sku": str(raw.get("item_sku") or "").strip(),
                "quantity": quantity,
                "unit_price": unit_price,
                "customization_details": str(raw.get("customization_details") or "").strip(),
            }
        )

    if errors:
        raise ValidationError("Invalid order items", details={"items": errors})
    return lines


class OrderLifecycle:
    def __init__(
        self,
        *,
        using: str = DEFAULT_DB_ALIAS,
        pricing=None,
        inventory=None,
        notifier=None,
        history=None,
    ):
        self.using = using
        self.pricing = pricing if pricing is not None else get_pricing_client()
        self.inventory = inventory if inventory is not None else get_inventory_client()
        self.notifier = notifier if notifier is not None else NotificationDispatcher(using=using)
        self.history = history if history is not None else StatusHistoryLog(using=using)

    # --------------------------------------------------
    # Internals
    # --------------------------------------------------

    def _quote(self, lines) -> PricingQuote:
        try:
            return self.pricing.calculate_order_total(lines)
        except DependencyError as exc:
            logger.warning(
                "Pricing service unavailable; using fallback formula",
                extra={"error": str(exc), "line_count": len(lines)},
            )
            return fallback_quote(lines)

    def _base_qs(self):
        return (
            Order.objects.using(self.using)
            .select_related("customer", "staff")
            .prefetch_related("items__customizations")
        )

    def _lock(self, order_id) -> Order:
        order = (
            Order.objects.using(self.using)
            .select_for_update()
            .filter(pk=order_id)
            .first()
        )
        if order is None:
            raise NotFoundError(f"Order {order_id} not found", details={"order_id": order_id})
        return order

    def _effects(self, order) -> PostCommitEffects:
        return PostCommitEffects(
            using=self.using,
            context={"order_id": order.pk, "order_number": order.order_number},
        )

    def _queue_stock(self, effects, lines, *, sign: int, label: str):
        for line in lines:
            item_id = line["jewelry_item_id"] if isinstance(line, dict) else line.jewelry_item_id
            qty = line["quantity"] if isinstance(line, dict) else line.quantity
            effects.add(
                f"inventory.{label}:{item_id}",
                self.inventory.adjust_stock,
                item_id,
                sign * int(qty),
            )

    def _create_lines(self, order, lines):
        for line in lines:
            item = OrderItem(order=order, **line)
            item.save(using=self.using)

    @staticmethod
    def _apply_quote(order, quote: PricingQuote):
        order.subtotal = quote.subtotal
        order.making_charges = quote.making_charges
        order.wastage_amount = quote.wastage_amount
        order.gst_amount = quote.gst_amount

    # --------------------------------------------------
    # Create
    # --------------------------------------------------

    def create_order(
        self,
        *,
        customer_id,
        staff,
        items,
        order_type: str = Order.TYPE_SALE,
        special_instructions: str | None = None,
        estimated_completion=None,
    ) -> Order:
        if order_type not in ORDER_TYPES:
            raise ValidationError(f"Unknown order type '{order_type}'")

        lines = normalize_items(items)

        User = get_user_model()
        try:
            customer = User.objects.using(self.using).filter(pk=customer_id).first()
        except (ValueError, DjangoValidationError):
            customer = None
        if customer is None:
            raise NotFoundError(f"Customer {customer_id} not found", details={"customer_id": str(customer_id)})

        quote = self._quote(lines)

        with transaction.atomic(using=self.using):
            order = Order(
                order_number=next_order_number(using=self.using),
                customer=customer,
                staff=staff if getattr(staff, "pk", None) else None,
                order_type=order_type,
                status=Order.STATUS_PENDING,
                special_instructions=special_instructions or "",
                estimated_completion=estimated_completion,
            )
            self._apply_quote(order, quote)
            order.save(using=self.using)

            self._create_lines(order, lines)

            self.history.record(
                entity_type=StatusHistoryEntry.ENTITY_ORDER,
                entity_id=order.pk,
                status=order.status,
                changed_by=staff,
                notes="Order created",
            )

            effects = self._effects(order)
            self._queue_stock(effects, lines, sign=-1, label="debit")
            effects.add("notify.order_created", self.notifier.notify_order_created, order)
            effects.schedule()

        logger.info(
            "Order created",
            extra={
                "order_id": order.pk,
                "order_number": order.order_number,
                "total_amount": str(order.total_amount),
                "pricing_source": quote.source,
            },
        )
        return order

    # --------------------------------------------------
    # Read
    # --------------------------------------------------

    def get_order(self, order_id) -> Order:
        order = self._base_qs().filter(pk=order_id).first()
        if order is None:
            raise NotFoundError(f"Order {order_id} not found", details={"order_id": order_id})
        return order

    def list_orders(self, filters: dict | None = None):
        """Newest first. Keys: status, customer_id, staff_id, order_type, date_from, date_to, search."""
        filters = filters or {}
        qs = self._base_qs()

        if filters.get("status"):
            qs = qs.filter(status=filters["status"])
        if filters.get("customer_id"):
            qs = qs.filter(customer_id=filters["customer_id"])
        if filters.get("staff_id"):
            qs = qs.filter(staff_id=filters["staff_id"])
        if filters.get("order_type"):
            qs = qs.filter(order_type=filters["order_type"])

        qs = filter_created_between(qs, date_from=filters.get("date_from"), date_to=filters.get("date_to"))

        search = str(filters.get("search") or "").strip()
        if search:
            qs = qs.filter(
                Q(order_number__icontains=search)
                | Q(customer__first_name__icontains=search)
                | Q(customer__last_name__icontains=search)
                | Q(customer__email__icontains=search)
            )

        return qs.order_by("-created_at", "-id")

    def get_status_history(self, order_id):
        if not Order.objects.using(self.using).filter(pk=order_id).exists():
            raise NotFoundError(f"Order {order_id} not found", details={"order_id": order_id})
        return self.history.for_entity(StatusHistoryEntry.ENTITY_ORDER, order_id)

    def get_order_stats(self, *, date_from=None, date_to=None) -> dict:
        qs = filter_created_between(Order.objects.using(self.using), date_from=date_from, date_to=date_to)

        by_status = {status: 0 for status, _label in Order.STATUS_CHOICES}
        for row in qs.values("status").annotate(n=Count("id")).order_by():
            by_status[row["status"]] = row["n"]

        agg = qs.aggregate(revenue=Sum("total_amount"), n=Count("id"))
        total_orders = agg["n"] or 0
        total_revenue = money(agg["revenue"] or ZERO)
        average = money(total_revenue / total_orders) if total_orders else ZERO

        return {
            "total_orders": total_orders,
            "by_status": by_status,
            "total_revenue": total_revenue,
            "average_order_value": average,
        }

    # --------------------------------------------------
    # Update
    # --------------------------------------------------

    def update_order(
        self,
        order_id,
        *,
        actor,
        special_instructions=_UNSET,
        estimated_completion=_UNSET,
        items=_UNSET,
    ) -> Order:
        if special_instructions is _UNSET and estimated_completion is _UNSET and items is _UNSET:
            raise ValidationError("Nothing to update")

        lines = quote = None
        if items is not _UNSET:
            lines = normalize_items(items)
            quote = self._quote(lines)

        with transaction.atomic(using=self.using):
            order = self._lock(order_id)

            if order.status not in EDITABLE_STATES:
                raise InvalidStateError(
                    f"Order {order.order_number} cannot be modified in status '{order.status}'"
                )
            if lines is not None and order.status not in ITEM_EDITABLE_STATES:
                raise InvalidStateError(
                    f"Items of order {order.order_number} can only change while pending"
                )

            if special_instructions is not _UNSET:
                order.special_instructions = special_instructions or ""
            if estimated_completion is not _UNSET:
                order.estimated_completion = estimated_completion

            effects = self._effects(order)
            if lines is not None:
                old_lines = list(order.items.all())
                order.items.all().delete()
                self._create_lines(order, lines)
                self._apply_quote(order, quote)
                self._queue_stock(effects, old_lines, sign=1, label="restore")
                self._queue_stock(effects, lines, sign=-1, label="debit")

            order.save(using=self.using)
            effects.schedule()

        logger.info(
            "Order updated",
            extra={
                "order_id": order.pk,
                "items_replaced": lines is not None,
                "actor_id": str(getattr(actor, "pk", "") or ""),
            },
        )
        return self.get_order(order.pk)

    def update_status(self, order_id, new_status: str, *, actor, notes: str = "") -> Order:
        with transaction.atomic(using=self.using):
            order = self._lock(order_id)
            previous = order.status
            validate_transition(order=order, target_status=new_status)

            order.status = new_status
            order.save(using=self.using, update_fields=["status", "updated_at"])

            self.history.record(
                entity_type=StatusHistoryEntry.ENTITY_ORDER,
                entity_id=order.pk,
                status=new_status,
                changed_by=actor,
                notes=notes,
            )

            effects = self._effects(order)
            if new_status == Order.STATUS_CANCELLED:
                self._queue_stock(effects, list(order.items.all()), sign=1, label="restore")
            effects.add("notify.order_status", self.notifier.notify_order_status, order, notes=notes)
            effects.schedule()

        logger.info(
            "Order status changed",
            extra={"order_id": order.pk, "from_status": previous, "to_status": new_status},
        )
        return order

    def cancel_order(self, order_id, *, reason: str = "", actor) -> Order:
        with transaction.atomic(using=self.using):
            order = self._lock(order_id)
            if order.status not in CANCELLABLE_STATES:
                raise InvalidStateError(
                    f"Order {order.order_number} cannot be cancelled in status '{order.status}'"
                )

            order.status = Order.STATUS_CANCELLED
            order.save(using=self.using, update_fields=["status", "updated_at"])

            notes = f"Order cancelled: {reason}" if reason else "Order cancelled"
            self.history.record(
                entity_type=StatusHistoryEntry.ENTITY_ORDER,
                entity_id=order.pk,
                status=order.status,
                changed_by=actor,
                notes=notes,
            )

            effects = self._effects(order)
            self._queue_stock(effects, list(order.items.all()), sign=1, label="restore")
            effects.add("notify.order_status", self.notifier.notify_order_status, order, notes=notes)
            effects.schedule()

        logger.info("Order cancelled", extra={"order_id": order.pk, "reason": reason})
        return order

    def add_customization(
        self,
        order_id,
        *,
        order_item_id,
        customization_type: str,
        details: str = "",
        additional_cost=Decimal("0.00"),
        actor=None,
    ) -> OrderItemCustomization:
        customization_type = str(customization_type or "").strip()
        if not customization_type:
            raise ValidationError("customization_type is required")
        try:
            cost = money(additional_cost)
        except ValueError as exc:
            raise ValidationError("additional_cost must be a number") from exc
        if cost < ZERO:
            raise ValidationError("additional_cost must be zero or more")

        with transaction.atomic(using=self.using):
            order = self._lock(order_id)
            if order.status in TERMINAL_STATES:
                raise InvalidStateError(
                    f"Order {order.order_number} is {order.status}; customizations are closed"
                )

            item = order.items.filter(pk=order_item_id).first()
            if item is None:
                raise NotFoundError(
                    f"Order item {order_item_id} is not part of order {order.order_number}"
                )

            customization = OrderItemCustomization(
                order_item=item,
                customization_type=customization_type,
                details=details or "",
                additional_cost=cost,
                created_by=actor if getattr(actor, "pk", None) else None,
            )
            customization.save(using=self.using)

        return customization
