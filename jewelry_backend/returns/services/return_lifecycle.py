"""
RETURN LIFECYCLE DOMAIN RULES

    requested -> approved | rejected | cancelled
    approved  -> processed | cancelled
    rejected  -> requested          (resubmission)
    processed -> completed

DESIGN PRINCIPLES:
- No database writes
- No side effects
- Single source of truth
"""

from core.state_machine import TransitionGraph
from orders.models import Order
from returns.models import ReturnRequest

R = ReturnRequest

RETURN_GRAPH = TransitionGraph.build(
    "return",
    {
        R.STATUS_REQUESTED: {R.STATUS_APPROVED, R.STATUS_REJECTED, R.STATUS_CANCELLED},
        R.STATUS_APPROVED: {R.STATUS_PROCESSED, R.STATUS_CANCELLED},
        R.STATUS_REJECTED: {R.STATUS_REQUESTED},
        R.STATUS_PROCESSED: {R.STATUS_COMPLETED},
        R.STATUS_COMPLETED: set(),
        R.STATUS_CANCELLED: set(),
    },
)

TERMINAL_STATES = RETURN_GRAPH.terminal_states

RETURN_WINDOW_DAYS = 30

# "delivered" only appears on orders loaded from outside the order graph
RETURNABLE_ORDER_STATES = {Order.STATUS_COMPLETED, "delivered"}

# requests in these states no longer hold any quantity of the order
RELEASED_STATES = {R.STATUS_REJECTED, R.STATUS_CANCELLED}


def is_valid_transition(current: str, target: str) -> bool:
    return RETURN_GRAPH.is_valid(current, target)


def validate_transition(*, return_request: ReturnRequest, target_status: str) -> None:
    RETURN_GRAPH.validate(entity_id=return_request.pk, current=return_request.status, target=target_status)
