"""
Notification dispatch for handoff state transitions.

Delivery (in-app inbox, email, push) belongs to the notification service; this
module only hands it one structured event per transition. Dispatch is best
effort: a failure is logged and never changes the outcome of the transition
that triggered it.
"""

import logging
from typing import Any, Dict, Optional, Protocol

from models import HandoffStatus, Patient, PatientHandoff
from utils.datetime_utils import ensure_utc

logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    """Receiver of structured notification events."""

    def emit(self, event_kind: str, recipient_id: int, payload: Dict[str, Any]) -> None:
        ...


class LoggingNotificationDispatcher:
    """NotificationDispatcher that only logs events; used when no delivery backend is wired."""

    def emit(self, event_kind: str, recipient_id: int, payload: Dict[str, Any]) -> None:
        logger.info(f"Notification {event_kind} -> user {recipient_id}: {payload.get('title', '')}")


_TITLES = {
    HandoffStatus.REQUESTED: "Patient Handoff Request: {patient}",
    HandoffStatus.APPROVED: "Patient Handoff Approved: {patient}",
    HandoffStatus.REJECTED: "Patient Handoff Rejected: {patient}",
    HandoffStatus.CANCELLED: "Patient Handoff Cancelled: {patient}",
}


def build_handoff_payload(
    handoff: PatientHandoff,
    patient: Patient,
    requesting_name: Optional[str],
    receiving_name: Optional[str],
) -> Dict[str, Any]:
    """
    Build the notification payload for the handoff's current status.

    Args:
        handoff: Handoff after the transition
        patient: Patient of the handoff
        requesting_name: Display name of the requesting clinician
        receiving_name: Display name of the receiving clinician

    Returns:
        Payload dict with ids, status and human-readable title/body
    """
    status = HandoffStatus(handoff.status)
    requester = requesting_name or "A clinician"
    receiver = receiving_name or "The receiving clinician"
    patient_name = patient.full_name

    if status == HandoffStatus.REQUESTED:
        body = f"{requester} has requested to hand off patient {patient_name} to you."
    elif status == HandoffStatus.APPROVED:
        body = f"{receiver} has approved your handoff request for patient {patient_name}."
    elif status == HandoffStatus.REJECTED:
        body = f"{receiver} has rejected your handoff request for patient {patient_name}."
        if handoff.reason:
            body += f" Reason: {handoff.reason}"
    else:
        body = f"The handoff request for patient {patient_name} has been cancelled."

    return {
        "handoff_id": handoff.id,
        "patient_id": patient.id,
        "patient_name": patient_name,
        "requesting_clinician_id": handoff.requesting_clinician_id,
        "receiving_clinician_id": handoff.receiving_clinician_id,
        "status": status.value,
        "message": handoff.message,
        "reason": handoff.reason,
        "requested_at": ensure_utc(handoff.requested_at).isoformat(),
        "title": _TITLES[status].format(patient=patient_name),
        "body": body,
    }


def dispatch_notification(
    dispatcher: NotificationDispatcher,
    event_kind: str,
    recipient_id: int,
    payload: Dict[str, Any],
) -> bool:
    """
    Emit a notification without letting delivery problems escape.

    Returns:
        True if the dispatcher accepted the event, False if it raised
    """
    try:
        dispatcher.emit(event_kind, recipient_id, payload)
        return True
    except Exception as e:
        # Notifications are independently retryable; the transition already committed
        logger.exception(f"Failed to dispatch {event_kind} notification to user {recipient_id}: {e}")
        return False
