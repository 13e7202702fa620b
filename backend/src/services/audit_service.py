"""
Audit emission for care-team mutations.

Audit storage is an external collaborator reached through the AuditSink
protocol. Every successful assignment or handoff mutation produces audit
records; a sink failure is retried a bounded number of times and then
surfaced as AuditRecordError.
"""

import logging
from typing import Optional, Protocol

from tenacity import Retrying, before_sleep_log, stop_after_attempt, wait_exponential

from core.config import AUDIT_MAX_ATTEMPTS, AUDIT_RETRY_WAIT_SECONDS
from core.constants import AUDIT_LOGGER_NAME
from core.exceptions import AuditRecordError

logger = logging.getLogger(__name__)


class AuditSink(Protocol):
    """Destination of audit records."""

    def record(self, action: str, resource_type: str, resource_id: int, actor_id: int) -> None:
        ...


class LoggingAuditSink:
    """
    AuditSink that writes each record to the ``audit`` logger.

    Deployments route that logger to the audit-log store; tests inject an
    in-memory sink instead.
    """

    def __init__(self, audit_logger: Optional[logging.Logger] = None):
        self.audit_logger = audit_logger or logging.getLogger(AUDIT_LOGGER_NAME)

    def record(self, action: str, resource_type: str, resource_id: int, actor_id: int) -> None:
        self.audit_logger.info(
            f"{action} {resource_type}={resource_id} actor={actor_id}",
            extra={
                "audit_action": action,
                "audit_resource_type": resource_type,
                "audit_resource_id": resource_id,
                "audit_actor_id": actor_id,
            },
        )


class AuditRecorder:
    """Writes audit records to a sink, retrying transient sink failures."""

    def __init__(
        self,
        sink: AuditSink,
        max_attempts: int = AUDIT_MAX_ATTEMPTS,
        wait_seconds: float = AUDIT_RETRY_WAIT_SECONDS,
    ):
        self.sink = sink
        self.max_attempts = max(1, max_attempts)
        self.wait_seconds = wait_seconds

    def record(self, action: str, resource_type: str, resource_id: int, actor_id: int) -> None:
        """
        Record one audit event.

        Raises:
            AuditRecordError: If the sink still fails after max_attempts tries
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.wait_seconds, max=5),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    self.sink.record(action, resource_type, resource_id, actor_id)
        except Exception as e:
            logger.error(
                f"Audit record {action} for {resource_type} {resource_id} failed "
                f"after {self.max_attempts} attempts: {e}"
            )
            raise AuditRecordError(
                f"Failed to record audit event {action} for {resource_type} {resource_id}"
            ) from e
