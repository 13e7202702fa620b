"""
FastAPI dependencies that wire services to their collaborators.

The audit sink and notification dispatcher are separate dependencies so tests
(and deployments) can swap them with ``app.dependency_overrides``.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from auth.permissions import AuthorizationGuard
from core.database import get_db
from services.audit_service import AuditRecorder, AuditSink, LoggingAuditSink
from services.clinician_assignment_service import ClinicianAssignmentService
from services.membership_service import SqlMembershipDirectory
from services.notification_service import LoggingNotificationDispatcher, NotificationDispatcher
from services.patient_handoff_service import PatientHandoffService

_default_audit_sink = LoggingAuditSink()
_default_notification_dispatcher = LoggingNotificationDispatcher()


def get_audit_sink() -> AuditSink:
    return _default_audit_sink


def get_notification_dispatcher() -> NotificationDispatcher:
    return _default_notification_dispatcher


def get_membership_directory(db: Session = Depends(get_db)) -> SqlMembershipDirectory:
    return SqlMembershipDirectory(db)


def get_assignment_service(
    db: Session = Depends(get_db),
    directory: SqlMembershipDirectory = Depends(get_membership_directory),
    sink: AuditSink = Depends(get_audit_sink)
) -> ClinicianAssignmentService:
    return ClinicianAssignmentService(
        db=db,
        guard=AuthorizationGuard(db, directory),
        directory=directory,
        audit=AuditRecorder(sink)
    )


def get_handoff_service(
    db: Session = Depends(get_db),
    directory: SqlMembershipDirectory = Depends(get_membership_directory),
    assignments: ClinicianAssignmentService = Depends(get_assignment_service),
    sink: AuditSink = Depends(get_audit_sink),
    notifier: NotificationDispatcher = Depends(get_notification_dispatcher)
) -> PatientHandoffService:
    return PatientHandoffService(
        db=db,
        guard=assignments.guard,
        directory=directory,
        assignments=assignments,
        audit=AuditRecorder(sink),
        notifier=notifier
    )
