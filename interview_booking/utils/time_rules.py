"""
Time rules

Pure date/time helpers and the business-time constants shared by every
component. Nothing here reads the wall clock except utc_now(), which only the
HTTP edge calls; the engine always receives `now` from its caller.
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Union

from interview_booking.utils.exceptions import TimeFormatError

MIN_SESSION_MINUTES = 30
ADVANCE_NOTICE_MINUTES = 15

_TIME_24H = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")
_TIME_12H = re.compile(r"^(0?[1-9]|1[0-2]):([0-5]\d)\s*([AaPp][Mm])$")
_DATE_DMY = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


def utc_now() -> datetime:
    """Current time as a naive UTC datetime (slots use the naive "GMT" convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def is_past_date(day: date, now: datetime) -> bool:
    """True if `day` is strictly before the calendar day of `now`."""
    return day < now.date()


def parse_time_of_day(text: Union[str, time]) -> time:
    """
    Parse a time of day with minute precision.

    Accepts 24-hour "HH:MM" ("09:00", "9:05", "17:30") and the 12-hour
    display form "h:mm AM" ("9:00 AM", "12:30 pm").

    Raises:
        TimeFormatError: If the text is not a valid time of day
    """
    if isinstance(text, time):
        if text.second or text.microsecond:
            raise TimeFormatError(f"Time must have minute precision: {text}", "TimeRules", value=text)
        return text.replace(tzinfo=None)
    if not isinstance(text, str):
        raise TimeFormatError(f"Invalid time format: {text!r}", "TimeRules", value=text)

    cleaned = text.strip()
    match = _TIME_24H.match(cleaned)
    if match:
        return time(int(match.group(1)), int(match.group(2)))

    match = _TIME_12H.match(cleaned)
    if match:
        hour = int(match.group(1)) % 12
        if match.group(3).lower() == "pm":
            hour += 12
        return time(hour, int(match.group(2)))

    raise TimeFormatError(f"Invalid time format: {text!r}", "TimeRules", value=text)


def parse_date(text: Union[str, date]) -> date:
    """
    Parse a calendar date.

    Accepts ISO "YYYY-MM-DD" and the display forms "dd/MM/yyyy" and
    "Monday, dd/MM/yyyy".

    Raises:
        TimeFormatError: If the text is not a valid date
    """
    if isinstance(text, datetime):
        return text.date()
    if isinstance(text, date):
        return text
    if not isinstance(text, str):
        raise TimeFormatError(f"Invalid date format: {text!r}", "TimeRules", value=text)

    cleaned = text.strip()
    # "Monday, 10/06/2024" -> "10/06/2024"
    if "," in cleaned:
        cleaned = cleaned.split(",")[-1].strip()
    try:
        match = _DATE_DMY.match(cleaned)
        if match:
            return date(int(match.group(3)), int(match.group(2)), int(match.group(1)))
        return date.fromisoformat(cleaned)
    except ValueError:
        raise TimeFormatError(f"Invalid date format: {text!r}", "TimeRules", value=text)


def duration_minutes(start: time, end: time) -> int:
    """Minutes from start to end on the same day. Negative when end precedes start."""
    return (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)


def combine(day: date, tod: time) -> datetime:
    return datetime.combine(day, tod)


def is_advance_notice_satisfied(
    day: date,
    start: time,
    now: datetime,
    notice_minutes: int = ADVANCE_NOTICE_MINUTES,
) -> bool:
    """
    Same-day sessions must start at least `notice_minutes` after `now`
    (inclusive boundary). Any other day is always satisfied.
    """
    if day != now.date():
        return True
    return combine(day, start) >= now.replace(tzinfo=None) + timedelta(minutes=notice_minutes)


def format_time_12h(tod: time) -> str:
    """Format as "9:00 AM"."""
    hour = tod.hour % 12 or 12
    suffix = "AM" if tod.hour < 12 else "PM"
    return f"{hour}:{tod.minute:02d} {suffix}"


def format_display_date(day: date) -> str:
    """Format as "Monday, 10/06/2024"."""
    return day.strftime("%A, %d/%m/%Y")


def format_window(day: date, start: time, end: time) -> str:
    return f"{format_display_date(day)} {format_time_12h(start)} - {format_time_12h(end)}"
