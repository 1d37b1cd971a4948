import threading
from datetime import date, datetime, time

import pytest

from conftest import CANDIDATE_A, CANDIDATE_B, INTERVIEWER
from interview_booking.models import ProposalStatus, RequestStatus
from interview_booking.utils.exceptions import (
    ActorNotAllowedError,
    AdvanceNoticeError,
    IllegalTransitionError,
    NoChangeProposedError,
    PastDateError,
)


def test_full_reschedule_scenario(service, recorder):
    """Interviewer publishes, candidate books, interviewer approves and later accepts a new time."""
    now = datetime(2024, 6, 9, 10, 0)
    slot = service.publish_slot(INTERVIEWER, "2024-06-10", "09:00", "09:45", now)
    request = service.book_slot(CANDIDATE_A, slot.id, "50.00", now)
    service.approve_request(request.id, INTERVIEWER, now)

    proposed = service.propose_reschedule(request.id, "2024-06-11", "14:00", "15:00", CANDIDATE_A, now)
    assert proposed.status == RequestStatus.RESCHEDULE_REQUESTED
    assert proposed.pending_proposal.status == ProposalStatus.PENDING
    assert proposed.pending_proposal.proposed_by == CANDIDATE_A
    # The committed window is untouched until the proposal is accepted
    assert proposed.committed_date == date(2024, 6, 10)

    later = datetime(2024, 6, 9, 12, 0)
    accepted = service.resolve_reschedule(request.id, True, later, resolved_by=INTERVIEWER)

    assert accepted.status == RequestStatus.APPROVED
    assert accepted.pending_proposal is None
    assert accepted.committed_date == date(2024, 6, 11)
    assert (accepted.committed_start, accepted.committed_end) == (time(14, 0), time(15, 0))
    assert [h.to_status for h in accepted.history] == [
        RequestStatus.REQUESTED,
        RequestStatus.APPROVED,
        RequestStatus.RESCHEDULE_REQUESTED,
        RequestStatus.APPROVED,
    ]
    assert accepted.history[-1].actor == INTERVIEWER
    assert accepted.history[-1].note.startswith("Reschedule accepted")

    # The original slot is not re-offered by a reschedule
    assert service.get_slot(slot.id).claimed_by == CANDIDATE_A
    assert recorder.names()[-2:] == ["RescheduleProposed", "RescheduleResolved"]


def test_rejected_proposal_keeps_committed_window(service, approved_request, now, recorder):
    service.propose_reschedule(approved_request.id, "2024-06-11", "14:00", "15:00", INTERVIEWER, now)
    rejected = service.resolve_reschedule(approved_request.id, False, now, resolved_by=CANDIDATE_A)

    assert rejected.status == RequestStatus.APPROVED
    assert rejected.pending_proposal is None
    assert rejected.committed_date == date(2024, 6, 10)
    assert rejected.committed_start == time(9, 0)
    assert rejected.history[-1].note.startswith("Reschedule rejected")

    resolved_event = recorder.events[-1]
    assert resolved_event.payload["accepted"] is False
    assert resolved_event.payload["notify"] == INTERVIEWER
    assert resolved_event.payload["proposal"]["status"] == ProposalStatus.REJECTED.value


def test_resolver_defaults_to_counter_party(service, approved_request, now):
    service.propose_reschedule(approved_request.id, "2024-06-11", "14:00", "15:00", CANDIDATE_A, now)
    resolved = service.resolve_reschedule(approved_request.id, True, now)
    assert resolved.history[-1].actor == INTERVIEWER


def test_proposer_cannot_resolve_own_proposal(service, approved_request, now):
    service.propose_reschedule(approved_request.id, "2024-06-11", "14:00", "15:00", CANDIDATE_A, now)

    with pytest.raises(ActorNotAllowedError):
        service.resolve_reschedule(approved_request.id, True, now, resolved_by=CANDIDATE_A)
    with pytest.raises(ActorNotAllowedError):
        service.resolve_reschedule(approved_request.id, True, now, resolved_by=CANDIDATE_B)
    assert service.get_request(approved_request.id).status == RequestStatus.RESCHEDULE_REQUESTED


def test_stranger_cannot_propose(service, approved_request, now):
    with pytest.raises(ActorNotAllowedError):
        service.propose_reschedule(approved_request.id, "2024-06-11", "14:00", "15:00", CANDIDATE_B, now)


def test_cannot_propose_on_requested(service, booked_request, now):
    with pytest.raises(IllegalTransitionError):
        service.propose_reschedule(booked_request.id, "2024-06-11", "14:00", "15:00", CANDIDATE_A, now)


def test_only_one_pending_proposal(service, approved_request, now):
    service.propose_reschedule(approved_request.id, "2024-06-11", "14:00", "15:00", CANDIDATE_A, now)
    with pytest.raises(IllegalTransitionError):
        service.propose_reschedule(approved_request.id, "2024-06-12", "14:00", "15:00", INTERVIEWER, now)

    pending = service.get_request(approved_request.id).pending_proposal
    assert pending.proposed_date == date(2024, 6, 11)


def test_resolve_without_pending_proposal(service, approved_request, now):
    with pytest.raises(IllegalTransitionError):
        service.resolve_reschedule(approved_request.id, True, now)


def test_invalid_proposal_leaves_request_untouched(service, approved_request, now, recorder):
    with pytest.raises(PastDateError):
        service.propose_reschedule(approved_request.id, "2024-06-01", "14:00", "15:00", CANDIDATE_A, now)
    with pytest.raises(NoChangeProposedError):
        service.propose_reschedule(approved_request.id, "2024-06-10", "09:00", "10:00", CANDIDATE_A, now)

    request = service.get_request(approved_request.id)
    assert request.status == RequestStatus.APPROVED
    assert request.pending_proposal is None
    assert "RescheduleProposed" not in recorder.names()


def test_cancel_while_reschedule_pending_is_illegal(service, approved_request, now):
    service.propose_reschedule(approved_request.id, "2024-06-11", "14:00", "15:00", CANDIDATE_A, now)
    with pytest.raises(IllegalTransitionError):
        service.cancel_request(approved_request.id, CANDIDATE_A, now)


def test_accepted_duration_matches_proposal(service, approved_request, now):
    service.propose_reschedule(approved_request.id, "2024-06-12", "1:00 PM", "2:30 PM", INTERVIEWER, now)
    accepted = service.resolve_reschedule(approved_request.id, True, now)
    assert accepted.duration_minutes == 90


def test_concurrent_resolutions_apply_once(service, approved_request, now):
    service.propose_reschedule(approved_request.id, "2024-06-11", "14:00", "15:00", CANDIDATE_A, now)

    contenders = 8
    barrier = threading.Barrier(contenders)
    results = []
    lock = threading.Lock()

    def attempt(accept):
        barrier.wait()
        try:
            service.resolve_reschedule(approved_request.id, accept, now, resolved_by=INTERVIEWER)
            outcome = "ok"
        except IllegalTransitionError:
            outcome = "lost"
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=attempt, args=(i % 2 == 0,)) for i in range(contenders)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count("ok") == 1
    assert results.count("lost") == contenders - 1
    request = service.get_request(approved_request.id)
    assert request.status == RequestStatus.APPROVED
    assert len(request.history) == 4


def test_proposal_that_went_stale_cannot_be_accepted(service, approved_request, now):
    service.propose_reschedule(approved_request.id, now.date(), "11:00", "12:00", CANDIDATE_A, now)
    later = datetime(2024, 6, 9, 10, 50)

    with pytest.raises(AdvanceNoticeError) as exc_info:
        service.resolve_reschedule(approved_request.id, True, later, resolved_by=INTERVIEWER)
    assert exc_info.value.field == "proposed_start"
    request = service.get_request(approved_request.id)
    assert request.status == RequestStatus.RESCHEDULE_REQUESTED
    assert request.committed_date == date(2024, 6, 10)

    rejected = service.resolve_reschedule(approved_request.id, False, later, resolved_by=INTERVIEWER)
    assert rejected.status == RequestStatus.APPROVED
    assert rejected.committed_start == time(9, 0)


def test_proposal_for_a_day_now_past_cannot_be_accepted(service, approved_request, now):
    service.propose_reschedule(approved_request.id, "2024-06-11", "14:00", "15:00", CANDIDATE_A, now)

    with pytest.raises(PastDateError):
        service.resolve_reschedule(approved_request.id, True, datetime(2024, 6, 12, 8, 0))
    assert service.get_request(approved_request.id).pending_proposal is not None
