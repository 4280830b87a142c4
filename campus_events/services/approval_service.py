"""
Approval Service: the two-stage approval engine.
Records General Secretary and Dean decisions and moves the event status in the same transaction.
"""

from typing import List, Optional, Tuple
import logging

from campus_events.core.config import config
from campus_events.core.exceptions import PermissionDeniedError
from campus_events.core.identity import Identity, Role
from campus_events.db.database import db_manager, storage_errors
from campus_events.models.event import ApprovalDecision, Event
from campus_events.models.lifecycle import (
    ApprovalType, DecisionStatus, decision_action
)
from campus_events.services.event_service import apply_transition, event_status_lock, load_event

logger = logging.getLogger(__name__)

# Role that owns each approval stage
STAGE_ROLES = {
    ApprovalType.GS_APPROVAL: Role.GENERAL_SECRETARY,
    ApprovalType.DEAN_APPROVAL: Role.DEAN,
}


class ApprovalService:
    """
    Approval engine.
    A decision row is written only when the status transition it implies succeeds.
    """

    def __init__(self):
        self.consistency_config = None

    async def _get_configs(self):
        """Get configuration settings."""
        if not self.consistency_config:
            self.consistency_config = await config.get_consistency_config()

    async def record_decision(
        self,
        event_id: str,
        identity: Identity,
        approval_type: ApprovalType,
        decision: DecisionStatus,
        comments: Optional[str] = None,
    ) -> Tuple[Event, ApprovalDecision]:
        """
        Record an approval decision and apply the matching transition.

        Args:
            event_id: Event under review
            identity: Approver
            approval_type: Stage being decided
            decision: approved or rejected
            comments: Optional free text stored with the decision

        Returns:
            Tuple of (updated event, stored decision)

        Raises:
            PermissionDeniedError: If the caller's role does not own the stage
            NotFoundError: If the event does not exist
            InvalidStateError: If the event is not awaiting this stage
        """
        await self._get_configs()
        approval_type = ApprovalType(approval_type)
        decision = DecisionStatus(decision)

        if identity.role != STAGE_ROLES[approval_type]:
            raise PermissionDeniedError(
                f"Only the {STAGE_ROLES[approval_type].value.replace('_', ' ')} can record {approval_type.value} decisions"
            )

        action = decision_action(approval_type, decision)

        async with event_status_lock(event_id, self.consistency_config):
            with storage_errors("record_decision"):
                with db_manager.get_transaction_session() as session:
                    event = load_event(session, event_id)
                    apply_transition(session, event, action)

                    approval = ApprovalDecision(
                        event_id=event.id,
                        approver_id=identity.user_id,
                        approval_type=approval_type,
                        status=decision,
                        comments=comments,
                    )
                    session.add(approval)
                    session.commit()

        logger.info(
            f"{approval_type.value} {decision.value} for event {event_id} by {identity.user_id}, "
            f"status now {event.status.value}"
        )
        return event, approval

    async def list_decisions(self, event_id: str, identity: Identity) -> List[ApprovalDecision]:
        """
        Approval history of an event, oldest first.
        Visible to approvers and to the committee that owns the event.
        """
        with storage_errors("list_decisions"):
            with db_manager.get_session() as session:
                event = load_event(session, event_id)
                if not identity.is_approver and event.created_by != identity.user_id:
                    raise PermissionDeniedError("You cannot view approvals for this event")

                return session.query(ApprovalDecision).filter(
                    ApprovalDecision.event_id == event_id
                ).order_by(ApprovalDecision.created_at.asc()).all()


# Global service instance
approval_service = ApprovalService()
