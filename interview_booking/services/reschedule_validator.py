"""
Reschedule Validator

Decides whether a proposed window is acceptable for an Approved request. The
same rules apply whichever party proposes. Checks run in a fixed order and the
first failure is reported with the field and value that caused it.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import List, Optional, Union

from interview_booking.config import Config
from interview_booking.models import InterviewRequest, RequestStatus, RescheduleProposal
from interview_booking.utils.exceptions import (
    AdvanceNoticeError,
    DateRequiredError,
    DurationTooShortError,
    IllegalTransitionError,
    NoChangeProposedError,
    PastDateError,
    TimeFormatError,
    TimeOrderError,
    ValidationError,
)
from interview_booking.utils.time_rules import (
    duration_minutes,
    format_time_12h,
    is_advance_notice_satisfied,
    is_past_date,
    parse_date,
    parse_time_of_day,
)

DateInput = Optional[Union[date, str]]
TimeInput = Optional[Union[time, str]]


@dataclass(frozen=True)
class ProposedWindow:
    date: date
    start: time
    end: time


class RescheduleValidator:

    def __init__(self, config: Config):
        self.config = config

    def _check_date(self, proposed_date: DateInput, now: datetime) -> date:
        if proposed_date is None or (isinstance(proposed_date, str) and not proposed_date.strip()):
            raise DateRequiredError("Please select a date", "RescheduleValidator", field="proposed_date")
        try:
            day = parse_date(proposed_date)
        except TimeFormatError:
            raise TimeFormatError(
                "Invalid date format", "RescheduleValidator", field="proposed_date", value=proposed_date
            )
        if is_past_date(day, now):
            raise PastDateError(
                "Cannot select past dates", "RescheduleValidator",
                field="proposed_date", value=day.isoformat(),
            )
        return day

    def _check_time(self, value: TimeInput, field: str) -> time:
        if value is None:
            raise TimeFormatError("Invalid time format", "RescheduleValidator", field=field)
        try:
            return parse_time_of_day(value)
        except TimeFormatError:
            raise TimeFormatError("Invalid time format", "RescheduleValidator", field=field, value=value)

    def _check_window(self, day: date, start: time, end: time, now: datetime) -> None:
        if end <= start:
            raise TimeOrderError(
                "End time must be after start time", "RescheduleValidator",
                field="proposed_end", value=format_time_12h(end),
            )
        minimum = self.config.rules.min_session_minutes
        if duration_minutes(start, end) < minimum:
            raise DurationTooShortError(
                f"Minimum session duration is {minimum} minutes", "RescheduleValidator",
                field="proposed_end", value=format_time_12h(end),
            )
        notice = self.config.rules.advance_notice_minutes
        if not is_advance_notice_satisfied(day, start, now, notice):
            raise AdvanceNoticeError(
                f"Sessions must be scheduled at least {notice} minutes in advance", "RescheduleValidator",
                field="proposed_start", value=format_time_12h(start),
            )

    def _check_changed(self, request: InterviewRequest, day: date, start: time) -> None:
        if day == request.committed_date and start == request.committed_start:
            raise NoChangeProposedError(
                "The proposed date and start time match the current booking", "RescheduleValidator",
                field="proposed_start", value=format_time_12h(start),
            )

    def validate(
        self,
        request: InterviewRequest,
        proposed_date: DateInput,
        proposed_start: TimeInput,
        proposed_end: TimeInput,
        now: datetime,
    ) -> ProposedWindow:
        """
        Validate a proposal against the time rules and the committed window.

        Returns:
            The parsed window

        Raises:
            IllegalTransitionError: If the request is not Approved
            ValidationError: The first failing check
        """
        if request.status != RequestStatus.APPROVED:
            raise IllegalTransitionError(request.status, RequestStatus.RESCHEDULE_REQUESTED, "RescheduleValidator")

        day = self._check_date(proposed_date, now)
        start = self._check_time(proposed_start, "proposed_start")
        end = self._check_time(proposed_end, "proposed_end")
        self._check_window(day, start, end, now)
        self._check_changed(request, day, start)
        return ProposedWindow(date=day, start=start, end=end)

    def check_still_open(self, proposal: RescheduleProposal, now: datetime) -> None:
        """Re-run the clock-dependent checks on a pending proposal that is about to be accepted."""
        if is_past_date(proposal.proposed_date, now):
            raise PastDateError(
                "The proposed date has already passed", "RescheduleValidator",
                field="proposed_date", value=proposal.proposed_date.isoformat(),
            )
        notice = self.config.rules.advance_notice_minutes
        if not is_advance_notice_satisfied(proposal.proposed_date, proposal.proposed_start, now, notice):
            raise AdvanceNoticeError(
                f"The proposed start is now less than {notice} minutes away", "RescheduleValidator",
                field="proposed_start", value=format_time_12h(proposal.proposed_start),
            )

    def first_error(
        self,
        request: InterviewRequest,
        proposed_date: DateInput,
        proposed_start: TimeInput,
        proposed_end: TimeInput,
        now: datetime,
    ) -> Optional[ValidationError]:
        try:
            self.validate(request, proposed_date, proposed_start, proposed_end, now)
        except ValidationError as e:
            return e
        return None

    def collect_errors(
        self,
        request: InterviewRequest,
        proposed_date: DateInput,
        proposed_start: TimeInput,
        proposed_end: TimeInput,
        now: datetime,
    ) -> List[ValidationError]:
        """Every failing check rather than only the first, for a combined form message."""
        errors: List[ValidationError] = []
        day = start = end = None
        try:
            day = self._check_date(proposed_date, now)
        except ValidationError as e:
            errors.append(e)
        try:
            start = self._check_time(proposed_start, "proposed_start")
            end = self._check_time(proposed_end, "proposed_end")
        except ValidationError as e:
            errors.append(e)

        if start is not None and end is not None:
            try:
                # Advance notice only applies when the date itself is usable
                self._check_window(day or date.max, start, end, now)
            except ValidationError as e:
                errors.append(e)
        if day is not None and start is not None:
            try:
                self._check_changed(request, day, start)
            except ValidationError as e:
                errors.append(e)
        return errors
