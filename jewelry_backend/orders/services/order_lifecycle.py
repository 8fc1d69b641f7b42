"""
ORDER LIFECYCLE DOMAIN RULES

The ONLY allowed status moves for Order entities.

    pending -> confirmed -> in_progress -> completed
    pending | confirmed | in_progress -> cancelled

DESIGN PRINCIPLES:
- No database writes
- No side effects
- Single source of truth
"""

from core.state_machine import TransitionGraph
from orders.models import Order

ORDER_GRAPH = TransitionGraph.build(
    "order",
    {
        Order.STATUS_PENDING: {Order.STATUS_CONFIRMED, Order.STATUS_CANCELLED},
        Order.STATUS_CONFIRMED: {Order.STATUS_IN_PROGRESS, Order.STATUS_CANCELLED},
        Order.STATUS_IN_PROGRESS: {Order.STATUS_COMPLETED, Order.STATUS_CANCELLED},
        Order.STATUS_COMPLETED: set(),
        Order.STATUS_CANCELLED: set(),
    },
)

TERMINAL_STATES = ORDER_GRAPH.terminal_states

# instructions / completion date may change
EDITABLE_STATES = {Order.STATUS_PENDING, Order.STATUS_CONFIRMED}

# lines + totals may change
ITEM_EDITABLE_STATES = {Order.STATUS_PENDING}

CANCELLABLE_STATES = {Order.STATUS_PENDING, Order.STATUS_CONFIRMED}


def is_valid_transition(current: str, target: str) -> bool:
    return ORDER_GRAPH.is_valid(current, target)


def validate_transition(*, order: Order, target_status: str) -> None:
    ORDER_GRAPH.validate(entity_id=order.order_number, current=order.status, target=target_status)
