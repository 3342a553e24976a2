import logging
from models import ReviewStatus, TicketStatus
from mlm.exceptions import ValidationError, InvalidTransitionError


logger = logging.getLogger(__name__)

# ==========================================================
#                  STATUS TRANSITION TABLES
# ==========================================================
_REVIEW = {
    ReviewStatus.PENDING.value: {ReviewStatus.APPROVED.value, ReviewStatus.REJECTED.value},
    ReviewStatus.APPROVED.value: set(),
    ReviewStatus.REJECTED.value: set(),
}

TRANSITIONS = {
    "withdrawal": _REVIEW,
    "franchise": _REVIEW,
    "support_ticket": {
        TicketStatus.OPEN.value: {
            TicketStatus.IN_PROGRESS.value, TicketStatus.RESOLVED.value, TicketStatus.CLOSED.value,
        },
        TicketStatus.IN_PROGRESS.value: {TicketStatus.RESOLVED.value, TicketStatus.CLOSED.value},
        # resolved tickets may be reopened by support
        TicketStatus.RESOLVED.value: {TicketStatus.OPEN.value, TicketStatus.CLOSED.value},
        TicketStatus.CLOSED.value: set(),
    },
}


def ensure_transition(kind: str, current: str, target: str) -> str:
    """Raise unless `kind` may move from current to target. Returns target."""
    table = TRANSITIONS[kind]
    if target not in table:
        raise ValidationError(f"Invalid {kind.replace('_', ' ')} status: {target}")
    if target not in table.get(current, set()):
        raise InvalidTransitionError(
            f"Cannot change {kind.replace('_', ' ')} status from {current} to {target}"
        )
    logger.info(f"{kind} transition {current} -> {target}")
    return target
