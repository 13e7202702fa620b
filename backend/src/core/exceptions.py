"""
Domain exceptions for care-team assignment and handoff management.

Services raise these; the API layer maps them to HTTP responses in a single
exception handler (see main.py). Each error carries a human-readable message
and a machine-readable code for clients.
"""

from typing import Optional


class CareTeamError(Exception):
    """Base exception for all care-team errors."""

    code = "care_team_error"

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(message)


class NotFoundError(CareTeamError):
    """Patient, assignment or handoff does not exist in the actor's organization."""

    code = "not_found"


class UnknownClinicianError(NotFoundError):
    """The clinician is not an active member of the patient's organization."""

    code = "unknown_clinician"

    def __init__(self, message: str = "Clinician does not belong to this organization"):
        super().__init__(message)


class NotAuthorizedError(CareTeamError):
    """A capability check failed; no state was changed."""

    code = "not_authorized"

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(message)


class InvalidTransitionError(CareTeamError):
    """The handoff is no longer in the requested state."""

    code = "invalid_transition"


class ValidationError(CareTeamError):
    """Input was rejected before any write (missing reason, self-handoff, ...)."""

    code = "validation_error"


class LastPrimaryClinicianError(ValidationError):
    """The change would leave a patient without any primary clinician."""

    code = "last_primary_clinician"

    def __init__(self, message: str = "Cannot remove the last primary clinician from a patient"):
        super().__init__(message)


class ConflictError(CareTeamError):
    """A uniqueness rule was violated."""

    code = "conflict"


class DuplicateAssignmentError(ConflictError):
    """The clinician is already assigned to the patient."""

    code = "duplicate_assignment"

    def __init__(self, message: str = "Clinician is already assigned to this patient"):
        super().__init__(message)


class PendingHandoffExistsError(ConflictError):
    """The requesting clinician already has a pending handoff for the patient."""

    code = "pending_handoff_exists"

    def __init__(self, message: str = "You already have a pending handoff request for this patient"):
        super().__init__(message)


class AuditRecordError(CareTeamError):
    """
    The audit sink kept failing after the retry budget was spent.

    The state change it describes is already committed; the caller must treat
    the operation as failed until the audit trail is repaired.
    """

    code = "audit_failure"
