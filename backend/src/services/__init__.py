"""
Services package for care-team business logic.

Only the collaborator-facing services are re-exported here. The assignment
and handoff services depend on the auth package and are imported from their
modules directly.
"""

from .audit_service import AuditRecorder, AuditSink, LoggingAuditSink
from .membership_service import MembershipDirectory, SqlMembershipDirectory
from .notification_service import LoggingNotificationDispatcher, NotificationDispatcher

__all__ = [
    "AuditRecorder",
    "AuditSink",
    "LoggingAuditSink",
    "MembershipDirectory",
    "SqlMembershipDirectory",
    "LoggingNotificationDispatcher",
    "NotificationDispatcher",
]
