"""
Event lifecycle state machine.
Single transition table shared by the event store, the approval engine and API responses.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from campus_events.core.exceptions import InvalidStateError


class EventStatus(str, Enum):
    """Event status enumeration."""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    GS_APPROVED = "gs_approved"
    FINAL_APPROVED = "final_approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class EventAction(str, Enum):
    """Actions that move an event between statuses."""
    SUBMIT = "submit"
    GS_APPROVE = "gs_approve"
    GS_REJECT = "gs_reject"
    DEAN_APPROVE = "dean_approve"
    DEAN_REJECT = "dean_reject"
    CANCEL = "cancel"
    DELETE = "delete"


class ApprovalType(str, Enum):
    """Approval stage."""
    GS_APPROVAL = "gs_approval"
    DEAN_APPROVAL = "dean_approval"


class DecisionStatus(str, Enum):
    """Outcome recorded by an approver."""
    APPROVED = "approved"
    REJECTED = "rejected"


# None target means the record is removed
TRANSITIONS: Dict[Tuple[EventStatus, EventAction], Optional[EventStatus]] = {
    (EventStatus.DRAFT, EventAction.SUBMIT): EventStatus.SUBMITTED,
    (EventStatus.DRAFT, EventAction.DELETE): None,
    (EventStatus.SUBMITTED, EventAction.GS_APPROVE): EventStatus.GS_APPROVED,
    (EventStatus.SUBMITTED, EventAction.GS_REJECT): EventStatus.REJECTED,
    (EventStatus.GS_APPROVED, EventAction.DEAN_APPROVE): EventStatus.FINAL_APPROVED,
    (EventStatus.GS_APPROVED, EventAction.DEAN_REJECT): EventStatus.REJECTED,
    (EventStatus.SUBMITTED, EventAction.CANCEL): EventStatus.CANCELLED,
    (EventStatus.GS_APPROVED, EventAction.CANCEL): EventStatus.CANCELLED,
    (EventStatus.FINAL_APPROVED, EventAction.CANCEL): EventStatus.CANCELLED,
}

DECISION_ACTIONS: Dict[Tuple[ApprovalType, DecisionStatus], EventAction] = {
    (ApprovalType.GS_APPROVAL, DecisionStatus.APPROVED): EventAction.GS_APPROVE,
    (ApprovalType.GS_APPROVAL, DecisionStatus.REJECTED): EventAction.GS_REJECT,
    (ApprovalType.DEAN_APPROVAL, DecisionStatus.APPROVED): EventAction.DEAN_APPROVE,
    (ApprovalType.DEAN_APPROVAL, DecisionStatus.REJECTED): EventAction.DEAN_REJECT,
}


def next_status(status: EventStatus, action: EventAction) -> Optional[EventStatus]:
    """
    Resolve the status an action leads to.

    Args:
        status: Current event status
        action: Requested action

    Returns:
        Target status, or None when the action removes the event

    Raises:
        InvalidStateError: If the action is not legal from ``status``
    """
    status = EventStatus(status)
    action = EventAction(action)
    key = (status, action)
    if key not in TRANSITIONS:
        raise InvalidStateError(
            f"Cannot {action.value.replace('_', ' ')} an event in {status.value} status"
        )
    return TRANSITIONS[key]


def allowed_actions(status: EventStatus) -> List[EventAction]:
    """List the actions legal from a status, in declaration order."""
    status = EventStatus(status)
    return [action for (source, action) in TRANSITIONS if source == status]


def decision_action(approval_type: ApprovalType, decision: DecisionStatus) -> EventAction:
    """Map an approval decision onto its lifecycle action."""
    return DECISION_ACTIONS[(ApprovalType(approval_type), DecisionStatus(decision))]
