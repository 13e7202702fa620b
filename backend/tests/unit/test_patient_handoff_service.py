"""
Unit tests for PatientHandoffService.

Covers the request / approve / reject / cancel lifecycle, the authorization
rules of each transition, what approval does to the patient's assignments,
and the notification and audit events emitted per transition.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest

from core.exceptions import (
    AuditRecordError,
    DuplicateAssignmentError,
    InvalidTransitionError,
    LastPrimaryClinicianError,
    NotAuthorizedError,
    NotFoundError,
    PendingHandoffExistsError,
    ValidationError,
)
from models import AssignmentRole, HandoffStatus, OrganizationRole, Patient, PatientHandoff
from tests.conftest import (
    FakeAuditSink,
    FakeNotificationDispatcher,
    actor_for,
    add_membership,
    build_services,
    create_assignment,
    create_user_with_membership,
)
from utils.assignment_queries import get_assignment, get_assignments_for_patient


def _handoff_rows(db_session, patient_id):
    return db_session.query(PatientHandoff).filter(PatientHandoff.patient_id == patient_id).all()


@pytest.fixture
def pending_handoff(handoff_service, organization, assigned_patient, clinician_x, clinician_y) -> PatientHandoff:
    """X (primary) has asked Y to take over the patient."""
    return handoff_service.request_handoff(
        assigned_patient.id, actor_for(clinician_x, organization), clinician_y.id, message="Going on leave"
    )


class TestRequestHandoff:

    def test_creates_requested_handoff(self, handoff_service, notifier, audit_sink, organization, assigned_patient, clinician_x, clinician_y):
        handoff = handoff_service.request_handoff(
            assigned_patient.id, actor_for(clinician_x, organization), clinician_y.id,
            requested_role="secondary", message="  Please follow up on labs  "
        )

        assert handoff.status == HandoffStatus.REQUESTED
        assert handoff.requesting_clinician_id == clinician_x.id
        assert handoff.receiving_clinician_id == clinician_y.id
        assert handoff.organization_id == organization.id
        assert handoff.requested_role == AssignmentRole.SECONDARY
        assert handoff.message == "Please follow up on labs"
        assert handoff.requested_at is not None
        assert handoff.responded_at is None

        assert len(notifier.events) == 1
        kind, recipient, payload = notifier.events[0]
        assert kind == "handoff_request"
        assert recipient == clinician_y.id
        assert payload["handoff_id"] == handoff.id
        assert payload["patient_name"] == "Pat Doe"
        assert payload["status"] == "requested"
        assert "Dr. Xavier" in payload["body"]

        assert audit_sink.records == [("patient.handoff.requested", "patient_handoff", handoff.id, clinician_x.id)]

    def test_blank_message_is_stored_as_none(self, handoff_service, organization, assigned_patient, clinician_x, clinician_y):
        handoff = handoff_service.request_handoff(
            assigned_patient.id, actor_for(clinician_x, organization), clinician_y.id, message="   "
        )
        assert handoff.message is None
        assert handoff.requested_role is None

    def test_scenario_d_unassigned_requester_is_not_authorized(self, db_session, handoff_service, notifier, audit_sink, organization, assigned_patient, clinician_y, clinician_z):
        with pytest.raises(NotAuthorizedError):
            handoff_service.request_handoff(assigned_patient.id, actor_for(clinician_z, organization), clinician_y.id)

        assert _handoff_rows(db_session, assigned_patient.id) == []
        assert notifier.events == []
        assert audit_sink.records == []

    def test_admin_without_assignment_is_not_authorized(self, handoff_service, organization, assigned_patient, admin, clinician_y):
        with pytest.raises(NotAuthorizedError):
            handoff_service.request_handoff(assigned_patient.id, actor_for(admin, organization), clinician_y.id)

    def test_secondary_clinician_may_request(self, db_session, handoff_service, organization, assigned_patient, admin, clinician_y, clinician_z):
        create_assignment(db_session, assigned_patient, clinician_y, AssignmentRole.SECONDARY, admin)
        handoff = handoff_service.request_handoff(assigned_patient.id, actor_for(clinician_y, organization), clinician_z.id)
        assert handoff.status == HandoffStatus.REQUESTED

    def test_self_handoff_is_invalid(self, db_session, handoff_service, organization, assigned_patient, clinician_x):
        with pytest.raises(ValidationError):
            handoff_service.request_handoff(assigned_patient.id, actor_for(clinician_x, organization), clinician_x.id)
        assert _handoff_rows(db_session, assigned_patient.id) == []

    def test_receiver_from_other_organization_is_invalid(self, db_session, handoff_service, organization, assigned_patient, clinician_x, outsider):
        with pytest.raises(ValidationError):
            handoff_service.request_handoff(assigned_patient.id, actor_for(clinician_x, organization), outsider.id)
        assert _handoff_rows(db_session, assigned_patient.id) == []

    def test_inactive_receiver_is_invalid(self, db_session, handoff_service, organization, assigned_patient, clinician_x):
        former, _ = create_user_with_membership(
            db_session, organization, "Dr. Former", "former@riverside.test", OrganizationRole.CLINICIAN,
            is_active=False
        )
        with pytest.raises(ValidationError):
            handoff_service.request_handoff(assigned_patient.id, actor_for(clinician_x, organization), former.id)

    def test_receiver_already_assigned_is_invalid(self, db_session, handoff_service, organization, assigned_patient, admin, clinician_x, clinician_y):
        create_assignment(db_session, assigned_patient, clinician_y, AssignmentRole.SECONDARY, admin)
        with pytest.raises(ValidationError):
            handoff_service.request_handoff(assigned_patient.id, actor_for(clinician_x, organization), clinician_y.id)

    def test_invalid_requested_role(self, handoff_service, organization, assigned_patient, clinician_x, clinician_y):
        with pytest.raises(ValidationError):
            handoff_service.request_handoff(
                assigned_patient.id, actor_for(clinician_x, organization), clinician_y.id, requested_role="chief"
            )

    def test_message_too_long(self, handoff_service, organization, assigned_patient, clinician_x, clinician_y):
        with pytest.raises(ValidationError):
            handoff_service.request_handoff(
                assigned_patient.id, actor_for(clinician_x, organization), clinician_y.id, message="x" * 2001
            )

    def test_second_pending_request_conflicts(self, db_session, handoff_service, organization, pending_handoff, clinician_x, clinician_z):
        with pytest.raises(PendingHandoffExistsError):
            handoff_service.request_handoff(pending_handoff.patient_id, actor_for(clinician_x, organization), clinician_z.id)
        assert len(_handoff_rows(db_session, pending_handoff.patient_id)) == 1

    def test_pending_conflict_caught_by_unique_index(self, db_session, handoff_service, notifier, audit_sink, organization, pending_handoff, clinician_x, clinician_z):
        """A racing request that missed the pending check is rejected by the partial unique index."""
        with patch.object(handoff_service, '_get_pending', return_value=None):
            with pytest.raises(PendingHandoffExistsError):
                handoff_service.request_handoff(
                    pending_handoff.patient_id, actor_for(clinician_x, organization), clinician_z.id
                )

        rows = _handoff_rows(db_session, pending_handoff.patient_id)
        assert [h.id for h in rows] == [pending_handoff.id]
        assert notifier.kinds() == ["handoff_request"]
        assert audit_sink.actions() == ["patient.handoff.requested"]

    def test_new_request_allowed_after_terminal(self, db_session, handoff_service, organization, pending_handoff, clinician_x, clinician_z):
        handoff_service.cancel_handoff(pending_handoff.id, actor_for(clinician_x, organization))

        second = handoff_service.request_handoff(pending_handoff.patient_id, actor_for(clinician_x, organization), clinician_z.id)

        assert second.id != pending_handoff.id
        assert second.status == HandoffStatus.REQUESTED

    def test_different_requesters_may_each_have_a_pending_request(self, db_session, handoff_service, organization, pending_handoff, admin, clinician_y, clinician_z):
        create_assignment(db_session, pending_handoff.patient, clinician_z, AssignmentRole.SECONDARY, admin)
        other = handoff_service.request_handoff(pending_handoff.patient_id, actor_for(clinician_z, organization), admin.id)
        assert other.status == HandoffStatus.REQUESTED

    def test_patient_of_other_organization_is_not_found(self, db_session, handoff_service, other_organization, organization, clinician_x, clinician_y):
        foreign_patient = Patient(organization_id=other_organization.id, full_name="Foreign Patient")
        db_session.add(foreign_patient)
        db_session.commit()
        with pytest.raises(NotFoundError):
            handoff_service.request_handoff(foreign_patient.id, actor_for(clinician_x, organization), clinician_y.id)


class TestApproveHandoff:

    def test_scenario_a_receiver_inherits_primary_role(self, db_session, handoff_service, notifier, organization, pending_handoff, clinician_x, clinician_y):
        notifier.events.clear()

        approved = handoff_service.approve_handoff(pending_handoff.id, actor_for(clinician_y, organization))

        assert approved.status == HandoffStatus.APPROVED
        assert approved.responded_by == clinician_y.id
        assert approved.responded_at is not None

        new_assignment = get_assignment(db_session, approved.patient_id, clinician_y.id)
        assert new_assignment is not None
        assert new_assignment.role == AssignmentRole.PRIMARY
        assert new_assignment.assigned_by == clinician_y.id

        assert notifier.kinds() == ["handoff_approved"]
        assert notifier.events[0][1] == clinician_x.id
        assert notifier.events[0][2]["status"] == "approved"

    def test_approval_revokes_requester_by_default(self, db_session, handoff_service, audit_sink, organization, pending_handoff, clinician_x, clinician_y):
        requester_assignment_id = get_assignment(db_session, pending_handoff.patient_id, clinician_x.id).id
        audit_sink.records.clear()

        handoff_service.approve_handoff(pending_handoff.id, actor_for(clinician_y, organization))

        assignments = get_assignments_for_patient(db_session, pending_handoff.patient_id)
        assert [(a.clinician_id, a.role) for a in assignments] == [(clinician_y.id, AssignmentRole.PRIMARY)]

        new_assignment_id = assignments[0].id
        assert audit_sink.records == [
            ("patient.handoff.approved", "patient_handoff", pending_handoff.id, clinician_y.id),
            ("patient.assignment.created", "clinician_assignment", new_assignment_id, clinician_y.id),
            ("patient.assignment.removed", "clinician_assignment", requester_assignment_id, clinician_y.id),
        ]

    def test_approval_keeps_requester_when_revocation_disabled(self, db_session, audit_sink, notifier, organization, pending_handoff, clinician_x, clinician_y):
        _, handoffs = build_services(db_session, audit_sink, notifier, revoke_requester_on_approve=False)
        audit_sink.records.clear()

        handoffs.approve_handoff(pending_handoff.id, actor_for(clinician_y, organization))

        assignments = get_assignments_for_patient(db_session, pending_handoff.patient_id)
        assert [(a.clinician_id, a.role) for a in assignments] == [
            (clinician_x.id, AssignmentRole.PRIMARY),
            (clinician_y.id, AssignmentRole.PRIMARY),
        ]
        assert audit_sink.actions() == ["patient.handoff.approved", "patient.assignment.created"]

    def test_requested_role_wins_over_inherited_role(self, db_session, audit_sink, notifier, organization, assigned_patient, clinician_x, clinician_y):
        _, handoffs = build_services(db_session, audit_sink, notifier, revoke_requester_on_approve=False)
        handoff = handoffs.request_handoff(
            assigned_patient.id, actor_for(clinician_x, organization), clinician_y.id, requested_role=AssignmentRole.SECONDARY
        )

        handoffs.approve_handoff(handoff.id, actor_for(clinician_y, organization))

        assert get_assignment(db_session, assigned_patient.id, clinician_y.id).role == AssignmentRole.SECONDARY

    def test_role_is_inherited_at_approval_time(self, db_session, audit_sink, notifier, organization, admin, patient, clinician_x, clinician_y, clinician_z):
        # X starts as secondary next to Z as primary, then gets promoted before Y approves
        create_assignment(db_session, patient, clinician_z, AssignmentRole.PRIMARY, admin)
        create_assignment(db_session, patient, clinician_x, AssignmentRole.SECONDARY, admin)
        assignments, handoffs = build_services(db_session, audit_sink, notifier, revoke_requester_on_approve=False)
        handoff = handoffs.request_handoff(patient.id, actor_for(clinician_x, organization), clinician_y.id)

        assignments.unassign(patient.id, clinician_x.id, actor_for(admin, organization))
        assignments.assign(patient.id, clinician_x.id, "primary", actor_for(admin, organization))

        handoffs.approve_handoff(handoff.id, actor_for(clinician_y, organization))
        assert get_assignment(db_session, patient.id, clinician_y.id).role == AssignmentRole.PRIMARY

    def test_approve_reason_is_stored(self, handoff_service, organization, pending_handoff, clinician_y):
        approved = handoff_service.approve_handoff(
            pending_handoff.id, actor_for(clinician_y, organization), reason=" Happy to take over "
        )
        assert approved.reason == "Happy to take over"

    @pytest.mark.parametrize("actor_name", ["clinician_x", "clinician_z", "admin"])
    def test_only_receiver_can_approve(self, request, db_session, handoff_service, organization, pending_handoff, actor_name):
        actor = request.getfixturevalue(actor_name)

        with pytest.raises(NotAuthorizedError):
            handoff_service.approve_handoff(pending_handoff.id, actor_for(actor, organization))

        db_session.refresh(pending_handoff)
        assert pending_handoff.status == HandoffStatus.REQUESTED
        assert len(get_assignments_for_patient(db_session, pending_handoff.patient_id)) == 1

    def test_missing_handoff(self, handoff_service, organization, clinician_y):
        with pytest.raises(NotFoundError):
            handoff_service.approve_handoff(424242, actor_for(clinician_y, organization))

    def test_requester_no_longer_assigned(self, db_session, handoff_service, notifier, organization, admin, pending_handoff, clinician_x, clinician_y, clinician_z):
        # Give the patient another primary so X can be removed
        create_assignment(db_session, pending_handoff.patient, clinician_z, AssignmentRole.PRIMARY, admin)
        handoff_service.assignments.unassign(pending_handoff.patient_id, clinician_x.id, actor_for(admin, organization))
        notifier.events.clear()

        with pytest.raises(ValidationError):
            handoff_service.approve_handoff(pending_handoff.id, actor_for(clinician_y, organization))

        db_session.refresh(pending_handoff)
        assert pending_handoff.status == HandoffStatus.REQUESTED
        assert get_assignment(db_session, pending_handoff.patient_id, clinician_y.id) is None
        assert notifier.events == []

    def test_receiver_assigned_in_the_meantime(self, db_session, handoff_service, organization, admin, pending_handoff, clinician_y):
        create_assignment(db_session, pending_handoff.patient, clinician_y, AssignmentRole.SECONDARY, admin)

        with pytest.raises(DuplicateAssignmentError):
            handoff_service.approve_handoff(pending_handoff.id, actor_for(clinician_y, organization))

        db_session.refresh(pending_handoff)
        assert pending_handoff.status == HandoffStatus.REQUESTED
        assert pending_handoff.responded_at is None

    def test_revoking_last_primary_for_secondary_role_is_rejected(self, db_session, handoff_service, organization, assigned_patient, clinician_x, clinician_y):
        handoff = handoff_service.request_handoff(
            assigned_patient.id, actor_for(clinician_x, organization), clinician_y.id, requested_role="secondary"
        )

        with pytest.raises(LastPrimaryClinicianError):
            handoff_service.approve_handoff(handoff.id, actor_for(clinician_y, organization))

        db_session.refresh(handoff)
        assert handoff.status == HandoffStatus.REQUESTED
        assignments = get_assignments_for_patient(db_session, assigned_patient.id)
        assert [(a.clinician_id, a.role) for a in assignments] == [(clinician_x.id, AssignmentRole.PRIMARY)]

    def test_audit_failure_is_fatal_but_transition_is_committed(self, db_session, notifier, organization, assigned_patient, clinician_x, clinician_y):
        sink = FakeAuditSink()
        _, handoffs = build_services(db_session, sink, notifier)
        handoff = handoffs.request_handoff(assigned_patient.id, actor_for(clinician_x, organization), clinician_y.id)
        sink.failures = 100

        with pytest.raises(AuditRecordError):
            handoffs.approve_handoff(handoff.id, actor_for(clinician_y, organization))

        db_session.refresh(handoff)
        assert handoff.status == HandoffStatus.APPROVED
        # Notification goes out before audit
        assert notifier.kinds() == ["handoff_request", "handoff_approved"]

    def test_notification_failure_does_not_fail_approval(self, db_session, audit_sink, organization, assigned_patient, clinician_x, clinician_y):
        _, handoffs = build_services(db_session, audit_sink, FakeNotificationDispatcher(fail=True))
        handoff = handoffs.request_handoff(assigned_patient.id, actor_for(clinician_x, organization), clinician_y.id)

        approved = handoffs.approve_handoff(handoff.id, actor_for(clinician_y, organization))

        assert approved.status == HandoffStatus.APPROVED
        assert "patient.handoff.approved" in audit_sink.actions()


class TestRejectHandoff:

    def test_scenario_c_reject_with_reason(self, db_session, handoff_service, notifier, audit_sink, organization, pending_handoff, clinician_x, clinician_y):
        notifier.events.clear()
        audit_sink.records.clear()

        rejected = handoff_service.reject_handoff(
            pending_handoff.id, actor_for(clinician_y, organization), "patient requires specialist"
        )

        assert rejected.status == HandoffStatus.REJECTED
        assert rejected.reason == "patient requires specialist"
        assert rejected.responded_by == clinician_y.id

        assert notifier.kinds() == ["handoff_rejected"]
        assert notifier.events[0][1] == clinician_x.id
        assert "patient requires specialist" in notifier.events[0][2]["body"]

        # Assignment store unchanged: X remains the only clinician
        assignments = get_assignments_for_patient(db_session, pending_handoff.patient_id)
        assert [a.clinician_id for a in assignments] == [clinician_x.id]
        assert audit_sink.records == [("patient.handoff.rejected", "patient_handoff", pending_handoff.id, clinician_y.id)]

    @pytest.mark.parametrize("reason", [None, "", "   ", "\t\n"])
    def test_blank_reason_is_invalid(self, db_session, handoff_service, organization, pending_handoff, clinician_y, reason):
        with pytest.raises(ValidationError):
            handoff_service.reject_handoff(pending_handoff.id, actor_for(clinician_y, organization), reason)

        db_session.refresh(pending_handoff)
        assert pending_handoff.status == HandoffStatus.REQUESTED

    def test_requester_cannot_reject(self, db_session, handoff_service, organization, pending_handoff, clinician_x):
        with pytest.raises(NotAuthorizedError):
            handoff_service.reject_handoff(pending_handoff.id, actor_for(clinician_x, organization), "no")

        db_session.refresh(pending_handoff)
        assert pending_handoff.status == HandoffStatus.REQUESTED


class TestCancelHandoff:

    def test_scenario_b_cancel_then_approve_fails(self, db_session, handoff_service, notifier, organization, pending_handoff, clinician_x, clinician_y):
        notifier.events.clear()

        cancelled = handoff_service.cancel_handoff(pending_handoff.id, actor_for(clinician_x, organization))

        assert cancelled.status == HandoffStatus.CANCELLED
        assert cancelled.responded_by == clinician_x.id
        assert notifier.kinds() == ["handoff_cancelled"]
        assert notifier.events[0][1] == clinician_y.id

        with pytest.raises(InvalidTransitionError):
            handoff_service.approve_handoff(pending_handoff.id, actor_for(clinician_y, organization))
        assert get_assignment(db_session, pending_handoff.patient_id, clinician_y.id) is None

    @pytest.mark.parametrize("actor_name", ["clinician_y", "clinician_z", "admin"])
    def test_only_requester_can_cancel(self, request, db_session, handoff_service, organization, pending_handoff, actor_name):
        actor = request.getfixturevalue(actor_name)

        with pytest.raises(NotAuthorizedError):
            handoff_service.cancel_handoff(pending_handoff.id, actor_for(actor, organization))

        db_session.refresh(pending_handoff)
        assert pending_handoff.status == HandoffStatus.REQUESTED


class TestTerminalStates:

    @pytest.mark.parametrize("finish", ["approve", "reject", "cancel"])
    def test_no_transition_out_of_terminal_state(self, db_session, handoff_service, notifier, audit_sink, organization, pending_handoff, clinician_x, clinician_y, finish):
        receiver = actor_for(clinician_y, organization)
        requester = actor_for(clinician_x, organization)
        if finish == "approve":
            handoff_service.approve_handoff(pending_handoff.id, receiver)
        elif finish == "reject":
            handoff_service.reject_handoff(pending_handoff.id, receiver, "not my specialty")
        else:
            handoff_service.cancel_handoff(pending_handoff.id, requester)

        db_session.refresh(pending_handoff)
        final_status = pending_handoff.status
        events_before = len(notifier.events)
        audits_before = len(audit_sink.records)

        with pytest.raises(InvalidTransitionError):
            handoff_service.approve_handoff(pending_handoff.id, receiver)
        with pytest.raises(InvalidTransitionError):
            handoff_service.reject_handoff(pending_handoff.id, receiver, "again")
        with pytest.raises(InvalidTransitionError):
            handoff_service.cancel_handoff(pending_handoff.id, requester)

        db_session.refresh(pending_handoff)
        assert pending_handoff.status == final_status
        assert len(notifier.events) == events_before
        assert len(audit_sink.records) == audits_before

    def test_authorization_is_checked_before_state(self, handoff_service, organization, pending_handoff, clinician_x, clinician_z):
        handoff_service.cancel_handoff(pending_handoff.id, actor_for(clinician_x, organization))

        with pytest.raises(NotAuthorizedError):
            handoff_service.approve_handoff(pending_handoff.id, actor_for(clinician_z, organization))


class TestQueries:

    def test_get_handoff(self, handoff_service, organization, pending_handoff, clinician_z):
        fetched = handoff_service.get_handoff(pending_handoff.id, actor_for(clinician_z, organization))
        assert fetched.id == pending_handoff.id

    def test_get_handoff_of_other_organization_is_not_found(self, handoff_service, other_organization, pending_handoff, outsider):
        with pytest.raises(NotFoundError):
            handoff_service.get_handoff(pending_handoff.id, actor_for(outsider, other_organization))

    def test_list_for_patient_newest_first_with_id_tiebreak(self, db_session, handoff_service, organization, assigned_patient, clinician_x, clinician_y, clinician_z):
        x = actor_for(clinician_x, organization)
        first = handoff_service.request_handoff(assigned_patient.id, x, clinician_y.id)
        handoff_service.cancel_handoff(first.id, x)
        second = handoff_service.request_handoff(assigned_patient.id, x, clinician_z.id)
        handoff_service.cancel_handoff(second.id, x)
        third = handoff_service.request_handoff(assigned_patient.id, x, clinician_y.id)

        # Force a timestamp tie between the two most recent requests
        third.requested_at = second.requested_at
        first.requested_at = second.requested_at - timedelta(minutes=5)
        db_session.commit()

        listed = handoff_service.list_for_patient(assigned_patient.id, actor_for(clinician_z, organization))
        assert [h.id for h in listed] == [third.id, second.id, first.id]

    def test_list_pending_covers_incoming_and_outgoing(self, db_session, handoff_service, organization, admin, clinician_x, clinician_y, clinician_z):
        patients = []
        for name in ("One", "Two", "Three"):
            p = Patient(organization_id=organization.id, full_name=name)
            db_session.add(p)
            db_session.commit()
            patients.append(p)
        create_assignment(db_session, patients[0], clinician_x, AssignmentRole.PRIMARY, admin)
        create_assignment(db_session, patients[1], clinician_y, AssignmentRole.PRIMARY, admin)
        create_assignment(db_session, patients[2], clinician_x, AssignmentRole.PRIMARY, admin)

        to_y = handoff_service.request_handoff(patients[0].id, actor_for(clinician_x, organization), clinician_y.id)
        from_y = handoff_service.request_handoff(patients[1].id, actor_for(clinician_y, organization), clinician_x.id)
        cancelled = handoff_service.request_handoff(patients[2].id, actor_for(clinician_x, organization), clinician_y.id)
        handoff_service.cancel_handoff(cancelled.id, actor_for(clinician_x, organization))
        handoff_service.request_handoff(patients[2].id, actor_for(clinician_x, organization), clinician_z.id)

        pending = list(handoff_service.list_pending_for_clinician(clinician_y.id, actor_for(clinician_y, organization)))

        assert {h.id for h in pending} == {to_y.id, from_y.id}
        assert all(h.status == HandoffStatus.REQUESTED for h in pending)

    def test_list_pending_is_lazy_iterator(self, handoff_service, organization, pending_handoff, clinician_y):
        pending = handoff_service.list_pending_for_clinician(clinician_y.id, actor_for(clinician_y, organization))
        assert iter(pending) is pending
        assert next(pending).id == pending_handoff.id

    def test_list_pending_excludes_other_organizations(self, db_session, handoff_service, organization, other_organization, pending_handoff, clinician_y):
        add_membership(db_session, clinician_y, other_organization, OrganizationRole.CLINICIAN)

        pending = list(handoff_service.list_pending_for_clinician(clinician_y.id, actor_for(clinician_y, other_organization)))
        assert pending == []
