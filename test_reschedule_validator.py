from datetime import date, datetime, time
from decimal import Decimal

import pytest

from conftest import CANDIDATE_A, INTERVIEWER, NOW
from interview_booking.config import Config
from interview_booking.models import InterviewRequest, ProposalStatus, RequestStatus, RescheduleProposal
from interview_booking.services.reschedule_validator import ProposedWindow, RescheduleValidator
from interview_booking.utils.exceptions import (
    AdvanceNoticeError,
    DateRequiredError,
    DurationTooShortError,
    IllegalTransitionError,
    NoChangeProposedError,
    PastDateError,
    TimeFormatError,
    TimeOrderError,
)


@pytest.fixture
def validator():
    return RescheduleValidator(Config())


@pytest.fixture
def approved():
    return InterviewRequest(
        id="req-1",
        candidate_id=CANDIDATE_A,
        interviewer_id=INTERVIEWER,
        committed_date=date(2024, 6, 10),
        committed_start=time(9, 0),
        committed_end=time(9, 45),
        price=Decimal("50.00"),
        status=RequestStatus.APPROVED,
    )


def test_valid_proposal_returns_parsed_window(validator, approved):
    window = validator.validate(approved, "2024-06-11", "14:00", "15:00", NOW)
    assert window == ProposedWindow(date=date(2024, 6, 11), start=time(14, 0), end=time(15, 0))


def test_twelve_hour_and_display_inputs(validator, approved):
    window = validator.validate(approved, "Tuesday, 11/06/2024", "2:00 PM", "3:00 PM", NOW)
    assert window == ProposedWindow(date=date(2024, 6, 11), start=time(14, 0), end=time(15, 0))


@pytest.mark.parametrize("proposed_date", [None, "", "   "])
def test_date_is_required(validator, approved, proposed_date):
    with pytest.raises(DateRequiredError) as exc_info:
        validator.validate(approved, proposed_date, "14:00", "15:00", NOW)
    assert exc_info.value.field == "proposed_date"


def test_unparseable_date_is_a_format_error(validator, approved):
    with pytest.raises(TimeFormatError) as exc_info:
        validator.validate(approved, "next tuesday", "14:00", "15:00", NOW)
    assert exc_info.value.field == "proposed_date"


def test_past_date(validator, approved):
    with pytest.raises(PastDateError):
        validator.validate(approved, "2024-06-08", "14:00", "15:00", NOW)


@pytest.mark.parametrize("start,end,field", [
    ("25:00", "15:00", "proposed_start"),
    ("14:00", "3pm", "proposed_end"),
    (None, "15:00", "proposed_start"),
])
def test_bad_time_format(validator, approved, start, end, field):
    with pytest.raises(TimeFormatError) as exc_info:
        validator.validate(approved, "2024-06-11", start, end, NOW)
    assert exc_info.value.field == field


@pytest.mark.parametrize("end", ["14:00", "13:30"])
def test_end_must_follow_start(validator, approved, end):
    with pytest.raises(TimeOrderError):
        validator.validate(approved, "2024-06-11", "14:00", end, NOW)


def test_short_duration(validator, approved):
    with pytest.raises(DurationTooShortError):
        validator.validate(approved, "2024-06-11", "14:00", "14:29", NOW)
    assert validator.validate(approved, "2024-06-11", "14:00", "14:30", NOW).end == time(14, 30)


def test_same_day_advance_notice(validator, approved):
    with pytest.raises(AdvanceNoticeError) as exc_info:
        validator.validate(approved, NOW.date(), "10:10", "11:00", NOW)
    assert exc_info.value.field == "proposed_start"
    assert validator.validate(approved, NOW.date(), "10:15", "11:00", NOW).start == time(10, 15)


def test_same_date_and_start_is_no_change(validator, approved):
    with pytest.raises(NoChangeProposedError):
        validator.validate(approved, "2024-06-10", "09:00", "10:00", NOW)


def test_new_start_on_same_date_is_a_change(validator, approved):
    window = validator.validate(approved, "2024-06-10", "09:30", "10:15", NOW)
    assert window.start == time(9, 30)


def test_checks_run_in_order(validator, approved):
    # Past date and inverted times: the date check fires first
    with pytest.raises(PastDateError):
        validator.validate(approved, "2024-06-08", "15:00", "14:00", NOW)
    # Inverted and too short: order fires before duration
    with pytest.raises(TimeOrderError):
        validator.validate(approved, NOW.date(), "10:05", "10:00", NOW)


@pytest.mark.parametrize("status", [
    RequestStatus.REQUESTED,
    RequestStatus.RESCHEDULE_REQUESTED,
    RequestStatus.CANCELLED,
    RequestStatus.COMPLETED,
])
def test_only_approved_requests_can_be_rescheduled(validator, approved, status):
    approved.status = status
    with pytest.raises(IllegalTransitionError):
        validator.validate(approved, "2024-06-11", "14:00", "15:00", NOW)


def test_first_error(validator, approved):
    assert validator.first_error(approved, "2024-06-11", "14:00", "15:00", NOW) is None
    error = validator.first_error(approved, "2024-06-11", "14:00", "14:10", NOW)
    assert isinstance(error, DurationTooShortError)


def test_collect_errors_reports_every_failing_check(validator, approved):
    errors = validator.collect_errors(approved, "2024-06-08", "15:00", "14:00", NOW)
    assert [type(e) for e in errors] == [PastDateError, TimeOrderError]

    assert validator.collect_errors(approved, "2024-06-11", "14:00", "15:00", NOW) == []


def test_collect_errors_with_missing_date(validator, approved):
    errors = validator.collect_errors(approved, None, "bad", "15:00", datetime(2024, 6, 9, 10, 0))
    assert [type(e) for e in errors] == [DateRequiredError, TimeFormatError]


def _pending(day, start, end):
    return RescheduleProposal(
        proposed_date=day, proposed_start=start, proposed_end=end,
        proposed_by=CANDIDATE_A, status=ProposalStatus.PENDING, proposed_at=NOW,
    )


def test_still_open_rechecks_notice_against_current_clock(validator):
    proposal = _pending(NOW.date(), time(11, 0), time(12, 0))

    validator.check_still_open(proposal, NOW)
    validator.check_still_open(proposal, datetime(2024, 6, 9, 10, 45))
    with pytest.raises(AdvanceNoticeError):
        validator.check_still_open(proposal, datetime(2024, 6, 9, 10, 46))


def test_still_open_rejects_a_day_that_has_passed(validator):
    proposal = _pending(date(2024, 6, 10), time(14, 0), time(15, 0))

    with pytest.raises(PastDateError) as exc_info:
        validator.check_still_open(proposal, datetime(2024, 6, 11, 9, 0))
    assert exc_info.value.field == "proposed_date"
