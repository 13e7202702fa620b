"""
Clinician assignment service.

This module contains business logic for managing which clinicians are
responsible for a patient, and in what capacity (primary/secondary).
"""

import logging
from typing import List, Union

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth.dependencies import UserContext
from auth.permissions import AuthorizationGuard, require
from core.constants import (
    AUDIT_ASSIGNMENT_CREATED,
    AUDIT_ASSIGNMENT_REMOVED,
    RESOURCE_CLINICIAN_ASSIGNMENT,
)
from core.exceptions import (
    CareTeamError,
    DuplicateAssignmentError,
    LastPrimaryClinicianError,
    NotFoundError,
    UnknownClinicianError,
    ValidationError,
)
from models import AssignmentRole, ClinicianAssignment, Patient
from services.audit_service import AuditRecorder
from services.membership_service import MembershipDirectory
from utils.assignment_queries import (
    count_primary_clinicians,
    get_assignment,
    get_assignments_for_patient,
    get_patient_in_organization,
    is_clinician_assigned,
)
from utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


def parse_assignment_role(role: Union[AssignmentRole, str]) -> AssignmentRole:
    """
    Convert a role given by a caller into AssignmentRole.

    Raises:
        ValidationError: If the value is not primary or secondary
    """
    try:
        return AssignmentRole(role)
    except ValueError:
        raise ValidationError(f"Invalid assignment role: {role}. Must be 'primary' or 'secondary'")


class ClinicianAssignmentService:
    """
    Service class for clinician assignment operations.

    assign/unassign are complete units of work (they commit and audit).
    add_assignment/remove_assignment only stage changes on the session so the
    handoff service can combine them with a handoff transition in one
    transaction.
    """

    def __init__(
        self,
        db: Session,
        guard: AuthorizationGuard,
        directory: MembershipDirectory,
        audit: AuditRecorder
    ):
        self.db = db
        self.guard = guard
        self.directory = directory
        self.audit = audit

    def get_patient(self, patient_id: int, actor: UserContext) -> Patient:
        """
        Get a patient of the actor's organization.

        Raises:
            NotFoundError: If the patient does not exist in the actor's organization
        """
        patient = get_patient_in_organization(self.db, patient_id, actor.organization_id)
        if not patient:
            raise NotFoundError("Patient not found")
        return patient

    def list_for_patient(self, patient_id: int, actor: UserContext) -> List[ClinicianAssignment]:
        """
        Get all clinician assignments for a patient, in insertion order.

        Args:
            patient_id: Patient ID
            actor: Acting user

        Returns:
            List of ClinicianAssignment objects

        Raises:
            NotFoundError: If patient not found
            NotAuthorizedError: If the actor is not an active member of the organization
        """
        patient = self.get_patient(patient_id, actor)
        require(self.guard.can_view_organization(actor, patient.organization_id))
        return get_assignments_for_patient(self.db, patient.id)

    def assign(
        self,
        patient_id: int,
        clinician_id: int,
        role: Union[AssignmentRole, str],
        actor: UserContext
    ) -> ClinicianAssignment:
        """
        Assign a clinician to a patient.

        Args:
            patient_id: Patient ID
            clinician_id: Clinician (user) ID
            role: Primary or secondary
            actor: Acting user (must be an admin or owner)

        Returns:
            Created ClinicianAssignment object

        Raises:
            NotFoundError: If patient not found
            NotAuthorizedError: If actor may not manage assignments
            UnknownClinicianError: If clinician is not an active member of the organization
            DuplicateAssignmentError: If the pair already exists
            AuditRecordError: If the audit record could not be written
        """
        patient = self.get_patient(patient_id, actor)
        require(
            self.guard.can_manage_assignments(actor, patient.organization_id),
            "Admin or owner access required to manage assignments"
        )
        assignment_role = parse_assignment_role(role)

        if self.directory.role(clinician_id, patient.organization_id) is None:
            raise UnknownClinicianError()

        if is_clinician_assigned(self.db, patient.id, clinician_id):
            raise DuplicateAssignmentError()

        try:
            assignment = self.add_assignment(patient, clinician_id, assignment_role, assigned_by=actor.user_id)
            self.db.commit()
        except CareTeamError:
            self.db.rollback()
            raise

        logger.info(
            f"Assigned clinician {clinician_id} to patient {patient.id} as {assignment_role.value} "
            f"in organization {patient.organization_id}"
        )
        self.audit.record(AUDIT_ASSIGNMENT_CREATED, RESOURCE_CLINICIAN_ASSIGNMENT, assignment.id, actor.user_id)
        return assignment

    def unassign(self, patient_id: int, clinician_id: int, actor: UserContext) -> None:
        """
        Remove a clinician assignment from a patient.

        Args:
            patient_id: Patient ID
            clinician_id: Clinician (user) ID
            actor: Acting user (must be an admin or owner)

        Raises:
            NotFoundError: If patient or assignment not found
            NotAuthorizedError: If actor may not manage assignments
            LastPrimaryClinicianError: If this is the patient's last primary clinician
            AuditRecordError: If the audit record could not be written
        """
        patient = self.get_patient(patient_id, actor)
        require(
            self.guard.can_manage_assignments(actor, patient.organization_id),
            "Admin or owner access required to manage assignments"
        )

        try:
            self.lock_patient(patient.id)
            assignment = get_assignment(self.db, patient.id, clinician_id)
            if not assignment:
                raise NotFoundError("Clinician is not assigned to this patient")
            assignment_id = assignment.id
            self.remove_assignment(assignment)
            self.db.commit()
        except CareTeamError:
            self.db.rollback()
            raise

        logger.info(
            f"Removed assignment of clinician {clinician_id} from patient {patient.id} "
            f"in organization {patient.organization_id}"
        )
        self.audit.record(AUDIT_ASSIGNMENT_REMOVED, RESOURCE_CLINICIAN_ASSIGNMENT, assignment_id, actor.user_id)

    def lock_patient(self, patient_id: int) -> None:
        """
        Serialize assignment changes for one patient.

        Takes a row lock on the patient on PostgreSQL; SQLite already
        serializes writers, so the lock clause is omitted there.
        """
        self.db.query(Patient.id).filter(Patient.id == patient_id).with_for_update().first()

    def add_assignment(
        self,
        patient: Patient,
        clinician_id: int,
        role: AssignmentRole,
        assigned_by: int
    ) -> ClinicianAssignment:
        """
        Stage a new assignment in the current transaction.

        The unique constraint on (patient_id, clinician_id) decides between
        concurrent callers; the loser gets DuplicateAssignmentError and must
        roll back.
        """
        # A failed flush expires loaded objects; only local values are used after it
        patient_id = patient.id
        assignment = ClinicianAssignment(
            patient_id=patient_id,
            clinician_id=clinician_id,
            organization_id=patient.organization_id,
            role=role,
            assigned_at=utc_now(),
            assigned_by=assigned_by
        )
        self.db.add(assignment)
        try:
            self.db.flush()
        except IntegrityError as e:
            logger.info(f"Duplicate assignment of clinician {clinician_id} to patient {patient_id}: {e.orig}")
            raise DuplicateAssignmentError() from e
        return assignment

    def remove_assignment(self, assignment: ClinicianAssignment) -> None:
        """
        Stage the removal of an assignment in the current transaction.

        Raises:
            LastPrimaryClinicianError: If it is the patient's only primary clinician
            NotFoundError: If another transaction already removed it
        """
        if assignment.role == AssignmentRole.PRIMARY and count_primary_clinicians(self.db, assignment.patient_id) <= 1:
            raise LastPrimaryClinicianError()

        result = self.db.execute(
            delete(ClinicianAssignment)
            .where(ClinicianAssignment.id == assignment.id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("Clinician is not assigned to this patient")
        self.db.expunge(assignment)
