"""
REPAIR LIFECYCLE DOMAIN RULES

    received -> assessed -> approved -> in_progress -> completed
             -> ready_for_pickup -> delivered
    received | assessed | approved | in_progress -> cancelled

DESIGN PRINCIPLES:
- No database writes
- No side effects
- Single source of truth
"""

from core.state_machine import TransitionGraph
from repairs.models import RepairRequest

R = RepairRequest

REPAIR_GRAPH = TransitionGraph.build(
    "repair",
    {
        R.STATUS_RECEIVED: {R.STATUS_ASSESSED, R.STATUS_CANCELLED},
        R.STATUS_ASSESSED: {R.STATUS_APPROVED, R.STATUS_CANCELLED},
        R.STATUS_APPROVED: {R.STATUS_IN_PROGRESS, R.STATUS_CANCELLED},
        R.STATUS_IN_PROGRESS: {R.STATUS_COMPLETED, R.STATUS_CANCELLED},
        R.STATUS_COMPLETED: {R.STATUS_READY_FOR_PICKUP},
        R.STATUS_READY_FOR_PICKUP: {R.STATUS_DELIVERED},
        R.STATUS_DELIVERED: set(),
        R.STATUS_CANCELLED: set(),
    },
)

TERMINAL_STATES = REPAIR_GRAPH.terminal_states

# work still owed by a technician
QUEUE_STATES = {R.STATUS_RECEIVED, R.STATUS_ASSESSED, R.STATUS_APPROVED, R.STATUS_IN_PROGRESS}

# customer approval can be recorded from assessment onwards
APPROVAL_STATES = {
    R.STATUS_ASSESSED,
    R.STATUS_APPROVED,
    R.STATUS_IN_PROGRESS,
    R.STATUS_COMPLETED,
    R.STATUS_READY_FOR_PICKUP,
    R.STATUS_DELIVERED,
}

PHOTO_TYPES = {"before", "after"}


def is_valid_transition(current: str, target: str) -> bool:
    return REPAIR_GRAPH.is_valid(current, target)


def validate_transition(*, repair: RepairRequest, target_status: str) -> None:
    REPAIR_GRAPH.validate(entity_id=repair.pk, current=repair.status, target=target_status)
