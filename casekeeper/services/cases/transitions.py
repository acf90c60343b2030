"""
Casekeeper - Case State Machine
===============================

Legal status transitions for a case, expressed as data.

    (none)   --create------> active
    active   --edit--------> active
    active   --soft_delete-> deleted
    deleted  --restore-----> active
    active   --void--------> voided
    deleted  --void--------> voided

voided is terminal.
"""

from typing import Dict, FrozenSet, NamedTuple, Optional

from casekeeper.core.constants import STATUS_ACTIVE, STATUS_DELETED, STATUS_VOIDED
from casekeeper.core.errors import ErrorCode, InvalidTransitionError


# =============================================================================
# Events
# =============================================================================

EVENT_CREATE = "create"
EVENT_EDIT = "edit"
EVENT_SOFT_DELETE = "soft_delete"
EVENT_RESTORE = "restore"
EVENT_VOID = "void"


class Transition(NamedTuple):
    """One row of the transition table."""
    event: str
    allowed_from: FrozenSet[Optional[str]]
    to_status: str


TRANSITIONS: Dict[str, Transition] = {
    EVENT_CREATE: Transition(EVENT_CREATE, frozenset({None}), STATUS_ACTIVE),
    EVENT_EDIT: Transition(EVENT_EDIT, frozenset({STATUS_ACTIVE}), STATUS_ACTIVE),
    EVENT_SOFT_DELETE: Transition(EVENT_SOFT_DELETE, frozenset({STATUS_ACTIVE}), STATUS_DELETED),
    EVENT_RESTORE: Transition(EVENT_RESTORE, frozenset({STATUS_DELETED}), STATUS_ACTIVE),
    EVENT_VOID: Transition(EVENT_VOID, frozenset({STATUS_ACTIVE, STATUS_DELETED}), STATUS_VOIDED),
}

# Rejection code when an event meets a status it doesn't accept
_REJECTIONS: Dict[tuple, ErrorCode] = {
    (EVENT_EDIT, STATUS_DELETED): ErrorCode.CASE_NOT_EDITABLE,
    (EVENT_SOFT_DELETE, STATUS_DELETED): ErrorCode.CASE_ALREADY_DELETED,
    (EVENT_RESTORE, STATUS_ACTIVE): ErrorCode.CASE_ALREADY_ACTIVE,
}


# =============================================================================
# Guards
# =============================================================================

def can_transition(status: Optional[str], event: str) -> bool:
    """Check whether `event` is legal from `status`."""
    transition = TRANSITIONS.get(event)
    return transition is not None and status in transition.allowed_from


def target_status(event: str) -> str:
    """Status a case ends up in after `event`."""
    return TRANSITIONS[event].to_status


def check_transition(
    status: Optional[str],
    event: str,
    case_id: Optional[str] = None,
    strict_soft_delete: bool = True,
) -> bool:
    """
    Guard a transition.

    Args:
        status: Current case status.
        event: Requested event.
        case_id: Case ID, for the error details.
        strict_soft_delete: Reject deleting an already deleted case. When
            False the repeat is accepted as a no-op.

    Returns:
        True if the transition should be applied, False if it is an
        accepted no-op (repeat soft-delete in non-strict mode).

    Raises:
        InvalidTransitionError: If the transition is not allowed.
    """
    if can_transition(status, event):
        return True

    if event == EVENT_SOFT_DELETE and status == STATUS_DELETED and not strict_soft_delete:
        return False

    if status == STATUS_VOIDED:
        code = ErrorCode.CASE_ALREADY_VOIDED
    else:
        code = _REJECTIONS.get((event, status), ErrorCode.CASE_INVALID_TRANSITION)

    raise InvalidTransitionError(code, details={
        "case_id": case_id,
        "status": status,
        "event": event,
    })


__all__ = [
    "EVENT_CREATE",
    "EVENT_EDIT",
    "EVENT_SOFT_DELETE",
    "EVENT_RESTORE",
    "EVENT_VOID",
    "Transition",
    "TRANSITIONS",
    "can_transition",
    "target_status",
    "check_transition",
]
