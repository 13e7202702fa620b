"""
Patient handoff service.

Implements the request / approve / reject / cancel lifecycle of transferring
responsibility for a patient between two clinicians of the same organization.

State changes are compare-and-swap updates (``... WHERE status = 'requested'``)
and new requests are guarded by a partial unique index, so concurrent callers
can never both win. Notifications and audit records are emitted only after the
transition is committed.
"""

import logging
from typing import Iterator, List, Optional, Union

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth.dependencies import UserContext
from auth.permissions import AuthorizationGuard, require
from core.config import HANDOFF_REVOKE_REQUESTER_ON_APPROVE
from core.constants import (
    AUDIT_ASSIGNMENT_CREATED,
    AUDIT_ASSIGNMENT_REMOVED,
    AUDIT_HANDOFF_APPROVED,
    AUDIT_HANDOFF_CANCELLED,
    AUDIT_HANDOFF_REJECTED,
    AUDIT_HANDOFF_REQUESTED,
    MAX_HANDOFF_MESSAGE_LENGTH,
    MAX_HANDOFF_REASON_LENGTH,
    NOTIFICATION_HANDOFF_APPROVED,
    NOTIFICATION_HANDOFF_CANCELLED,
    NOTIFICATION_HANDOFF_REJECTED,
    NOTIFICATION_HANDOFF_REQUEST,
    RESOURCE_CLINICIAN_ASSIGNMENT,
    RESOURCE_PATIENT_HANDOFF,
)
from core.exceptions import (
    CareTeamError,
    InvalidTransitionError,
    NotFoundError,
    PendingHandoffExistsError,
    ValidationError,
)
from models import AssignmentRole, HandoffStatus, Patient, PatientHandoff
from services.audit_service import AuditRecorder
from services.clinician_assignment_service import ClinicianAssignmentService, parse_assignment_role
from services.membership_service import MembershipDirectory
from services.notification_service import NotificationDispatcher, build_handoff_payload, dispatch_notification
from utils.assignment_queries import get_assignment, is_clinician_assigned
from utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

PENDING_LIST_BATCH_SIZE = 100


def _clean_text(value: Optional[str], field_name: str, max_length: int) -> Optional[str]:
    """Strip optional free text; blank becomes None."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if len(value) > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters")
    return value


class PatientHandoffService:
    """
    Service class for the patient handoff state machine.

    requested -> approved | rejected | cancelled. Terminal states are final.
    """

    def __init__(
        self,
        db: Session,
        guard: AuthorizationGuard,
        directory: MembershipDirectory,
        assignments: ClinicianAssignmentService,
        audit: AuditRecorder,
        notifier: NotificationDispatcher,
        revoke_requester_on_approve: bool = HANDOFF_REVOKE_REQUESTER_ON_APPROVE
    ):
        self.db = db
        self.guard = guard
        self.directory = directory
        self.assignments = assignments
        self.audit = audit
        self.notifier = notifier
        self.revoke_requester_on_approve = revoke_requester_on_approve

    # ===== Queries =====

    def get_handoff(self, handoff_id: int, actor: UserContext) -> PatientHandoff:
        """
        Get a handoff of the actor's organization.

        Raises:
            NotFoundError: If the handoff does not exist in the actor's organization
            NotAuthorizedError: If the actor is not an active member
        """
        handoff = self.db.query(PatientHandoff).filter(
            PatientHandoff.id == handoff_id,
            PatientHandoff.organization_id == actor.organization_id
        ).first()
        if not handoff:
            raise NotFoundError("Handoff not found")
        require(self.guard.can_view_organization(actor, handoff.organization_id))
        return handoff

    def list_for_patient(self, patient_id: int, actor: UserContext) -> List[PatientHandoff]:
        """
        All handoffs of a patient, newest request first.

        Equal request timestamps are ordered by descending id so the order is
        deterministic.
        """
        patient = self.assignments.get_patient(patient_id, actor)
        require(self.guard.can_view_organization(actor, patient.organization_id))
        return self.db.query(PatientHandoff).filter(
            PatientHandoff.patient_id == patient.id
        ).order_by(PatientHandoff.requested_at.desc(), PatientHandoff.id.desc()).all()

    def list_pending_for_clinician(self, clinician_id: int, actor: UserContext) -> Iterator[PatientHandoff]:
        """
        Lazily stream pending handoffs where the clinician is requester or receiver.

        Results are scoped to the actor's organization and fetched in batches.
        """
        require(self.guard.can_view_organization(actor, actor.organization_id))
        query = self.db.query(PatientHandoff).filter(
            PatientHandoff.organization_id == actor.organization_id,
            PatientHandoff.status == HandoffStatus.REQUESTED,
            or_(
                PatientHandoff.requesting_clinician_id == clinician_id,
                PatientHandoff.receiving_clinician_id == clinician_id
            )
        ).order_by(PatientHandoff.requested_at.desc(), PatientHandoff.id.desc())
        return iter(query.yield_per(PENDING_LIST_BATCH_SIZE))

    # ===== Transitions =====

    def request_handoff(
        self,
        patient_id: int,
        actor: UserContext,
        receiving_clinician_id: int,
        requested_role: Optional[Union[AssignmentRole, str]] = None,
        message: Optional[str] = None
    ) -> PatientHandoff:
        """
        Create a handoff request from the actor to another clinician.

        Args:
            patient_id: Patient ID
            actor: Requesting clinician (must be assigned to the patient)
            receiving_clinician_id: Clinician who should take over
            requested_role: Role for the receiver on approval; None inherits the requester's role
            message: Optional note for the receiver

        Returns:
            Created PatientHandoff in the requested state

        Raises:
            NotFoundError: If patient not found
            NotAuthorizedError: If the actor is not assigned to the patient
            ValidationError: Self-handoff, receiver outside the organization or already assigned
            PendingHandoffExistsError: If the actor already has a pending request for the patient
        """
        patient = self.assignments.get_patient(patient_id, actor)
        require(
            self.guard.can_request_handoff(actor, patient.id),
            "You must be assigned to this patient to request a handoff"
        )

        if receiving_clinician_id == actor.user_id:
            raise ValidationError("Cannot request handoff to yourself")
        if self.directory.role(receiving_clinician_id, patient.organization_id) is None:
            raise ValidationError("Receiving clinician does not belong to this organization")
        if is_clinician_assigned(self.db, patient.id, receiving_clinician_id):
            raise ValidationError("Receiving clinician is already assigned to this patient")

        role = parse_assignment_role(requested_role) if requested_role else None
        message = _clean_text(message, "Message", MAX_HANDOFF_MESSAGE_LENGTH)

        if self._get_pending(patient.id, actor.user_id):
            raise PendingHandoffExistsError()

        now = utc_now()
        handoff = PatientHandoff(
            patient_id=patient.id,
            organization_id=patient.organization_id,
            requesting_clinician_id=actor.user_id,
            receiving_clinician_id=receiving_clinician_id,
            status=HandoffStatus.REQUESTED,
            requested_role=role,
            message=message,
            requested_at=now,
            updated_at=now
        )
        patient_id = patient.id
        self.db.add(handoff)
        try:
            self.db.flush()
        except IntegrityError as e:
            # Every other constraint on this row was validated above, so the
            # partial unique index rejected it: a concurrent request for the same
            # (patient, requester) got in first, even if it has since been resolved
            self.db.rollback()
            logger.info(
                f"Concurrent handoff request by clinician {actor.user_id} for patient {patient_id}: {e.orig}"
            )
            raise PendingHandoffExistsError() from e
        self.db.commit()

        logger.info(
            f"Patient handoff requested: handoff {handoff.id}, patient {patient.id}, "
            f"requesting clinician {actor.user_id}, receiving clinician {receiving_clinician_id}"
        )
        self._notify(NOTIFICATION_HANDOFF_REQUEST, handoff.receiving_clinician_id, handoff, patient)
        self.audit.record(AUDIT_HANDOFF_REQUESTED, RESOURCE_PATIENT_HANDOFF, handoff.id, actor.user_id)
        return handoff

    def approve_handoff(self, handoff_id: int, actor: UserContext, reason: Optional[str] = None) -> PatientHandoff:
        """
        Approve a pending handoff and update the patient's assignments atomically.

        The receiving clinician is assigned with the requested role, or with the
        requester's current role when none was requested. When
        revoke_requester_on_approve is set the requester's assignment is
        removed in the same transaction.

        Raises:
            NotFoundError: If handoff not found
            NotAuthorizedError: If the actor is not the receiving clinician
            InvalidTransitionError: If the handoff is no longer pending
            ValidationError: If the requester is no longer assigned, or the
                patient would be left without a primary clinician
            DuplicateAssignmentError: If the receiver got assigned in the meantime
        """
        handoff = self.get_handoff(handoff_id, actor)
        require(
            self.guard.can_respond_to_handoff(actor, handoff),
            "Only the receiving clinician can approve this handoff"
        )
        self._ensure_pending(handoff, "approved")
        reason = _clean_text(reason, "Reason", MAX_HANDOFF_REASON_LENGTH)
        patient = handoff.patient
        removed_assignment_id = None

        try:
            self._transition(handoff.id, HandoffStatus.APPROVED, actor, reason, "approved")
            self.assignments.lock_patient(patient.id)

            requester_assignment = get_assignment(self.db, patient.id, handoff.requesting_clinician_id)
            if not requester_assignment:
                raise ValidationError("Requesting clinician is no longer assigned to this patient")

            role = handoff.requested_role or requester_assignment.role
            new_assignment = self.assignments.add_assignment(
                patient, handoff.receiving_clinician_id, role, assigned_by=actor.user_id
            )
            new_assignment_id = new_assignment.id

            # Receiver is added first so a primary handing off to a primary
            # never drops the patient below one primary clinician
            if self.revoke_requester_on_approve:
                removed_assignment_id = requester_assignment.id
                self.assignments.remove_assignment(requester_assignment)

            self.db.commit()
        except CareTeamError:
            self.db.rollback()
            raise

        self.db.refresh(handoff)
        logger.info(
            f"Patient handoff approved: handoff {handoff.id}, patient {patient.id}, "
            f"clinician {handoff.receiving_clinician_id} assigned as {AssignmentRole(role).value}, "
            f"requester revoked: {removed_assignment_id is not None}"
        )
        self._notify(NOTIFICATION_HANDOFF_APPROVED, handoff.requesting_clinician_id, handoff, patient)
        self.audit.record(AUDIT_HANDOFF_APPROVED, RESOURCE_PATIENT_HANDOFF, handoff.id, actor.user_id)
        self.audit.record(AUDIT_ASSIGNMENT_CREATED, RESOURCE_CLINICIAN_ASSIGNMENT, new_assignment_id, actor.user_id)
        if removed_assignment_id is not None:
            self.audit.record(AUDIT_ASSIGNMENT_REMOVED, RESOURCE_CLINICIAN_ASSIGNMENT, removed_assignment_id, actor.user_id)
        return handoff

    def reject_handoff(self, handoff_id: int, actor: UserContext, reason: Optional[str]) -> PatientHandoff:
        """
        Reject a pending handoff. A non-blank reason is mandatory.

        Raises:
            NotFoundError: If handoff not found
            NotAuthorizedError: If the actor is not the receiving clinician
            ValidationError: If reason is missing or blank
            InvalidTransitionError: If the handoff is no longer pending
        """
        handoff = self.get_handoff(handoff_id, actor)
        require(
            self.guard.can_respond_to_handoff(actor, handoff),
            "Only the receiving clinician can reject this handoff"
        )
        reason = _clean_text(reason, "Reason", MAX_HANDOFF_REASON_LENGTH)
        if reason is None:
            raise ValidationError("A reason is required to reject a handoff")
        self._ensure_pending(handoff, "rejected")

        try:
            self._transition(handoff.id, HandoffStatus.REJECTED, actor, reason, "rejected")
            self.db.commit()
        except CareTeamError:
            self.db.rollback()
            raise

        self.db.refresh(handoff)
        logger.info(f"Patient handoff rejected: handoff {handoff.id}, patient {handoff.patient_id}")
        self._notify(NOTIFICATION_HANDOFF_REJECTED, handoff.requesting_clinician_id, handoff, handoff.patient)
        self.audit.record(AUDIT_HANDOFF_REJECTED, RESOURCE_PATIENT_HANDOFF, handoff.id, actor.user_id)
        return handoff

    def cancel_handoff(self, handoff_id: int, actor: UserContext) -> PatientHandoff:
        """
        Cancel a pending handoff. Only the requesting clinician may cancel.

        Raises:
            NotFoundError: If handoff not found
            NotAuthorizedError: If the actor is not the requesting clinician
            InvalidTransitionError: If the handoff is no longer pending
        """
        handoff = self.get_handoff(handoff_id, actor)
        require(
            self.guard.can_cancel_handoff(actor, handoff),
            "Only the requesting clinician can cancel this handoff"
        )
        self._ensure_pending(handoff, "cancelled")

        try:
            self._transition(handoff.id, HandoffStatus.CANCELLED, actor, None, "cancelled")
            self.db.commit()
        except CareTeamError:
            self.db.rollback()
            raise

        self.db.refresh(handoff)
        logger.info(f"Patient handoff cancelled: handoff {handoff.id}, patient {handoff.patient_id}")
        self._notify(NOTIFICATION_HANDOFF_CANCELLED, handoff.receiving_clinician_id, handoff, handoff.patient)
        self.audit.record(AUDIT_HANDOFF_CANCELLED, RESOURCE_PATIENT_HANDOFF, handoff.id, actor.user_id)
        return handoff

    # ===== Helpers =====

    def _get_pending(self, patient_id: int, requesting_clinician_id: int) -> Optional[PatientHandoff]:
        return self.db.query(PatientHandoff).filter(
            PatientHandoff.patient_id == patient_id,
            PatientHandoff.requesting_clinician_id == requesting_clinician_id,
            PatientHandoff.status == HandoffStatus.REQUESTED
        ).first()

    @staticmethod
    def _ensure_pending(handoff: PatientHandoff, verb: str) -> None:
        if HandoffStatus(handoff.status).is_terminal:
            raise InvalidTransitionError(f"Handoff cannot be {verb} in its current state ({handoff.status.value})")

    def _transition(
        self,
        handoff_id: int,
        new_status: HandoffStatus,
        actor: UserContext,
        reason: Optional[str],
        verb: str
    ) -> None:
        """
        Move a handoff out of requested with a single conditional UPDATE.

        Zero affected rows means another transaction already moved it.
        """
        now = utc_now()
        values = {
            "status": new_status,
            "responded_at": now,
            "responded_by": actor.user_id,
            "updated_at": now,
        }
        if reason is not None:
            values["reason"] = reason

        result = self.db.execute(
            update(PatientHandoff)
            .where(
                PatientHandoff.id == handoff_id,
                PatientHandoff.status == HandoffStatus.REQUESTED
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidTransitionError(f"Handoff cannot be {verb} in its current state")

    def _notify(self, event_kind: str, recipient_id: int, handoff: PatientHandoff, patient: Patient) -> None:
        payload = build_handoff_payload(
            handoff,
            patient,
            requesting_name=self.directory.display_name(handoff.requesting_clinician_id, handoff.organization_id),
            receiving_name=self.directory.display_name(handoff.receiving_clinician_id, handoff.organization_id),
        )
        dispatch_notification(self.notifier, event_kind, recipient_id, payload)
