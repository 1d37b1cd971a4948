"""
Booking engine errors.

Every failure the engine reports is a typed BookingError carrying a stable
`kind`, the component that raised it, and (for validation failures) the
offending field and value so the caller can render a precise message.
"""

from typing import Any, Dict, Optional


class BookingError(Exception):
    """Base error for all booking engine failures."""

    kind = "BookingError"

    def __init__(
        self,
        message: str,
        component: str = "engine",
        field: Optional[str] = None,
        value: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.component = component
        self.field = field
        self.value = value

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"error": self.kind, "message": self.message}
        if self.field is not None:
            data["field"] = self.field
        if self.value is not None:
            data["value"] = str(self.value)
        return data

    def __str__(self) -> str:
        return self.message


class NotFoundError(BookingError):
    kind = "NotFound"


class AlreadyClaimedError(BookingError):
    kind = "AlreadyClaimed"


class ActorNotAllowedError(BookingError):
    """The caller is not a party allowed to perform this action."""

    kind = "ActorNotAllowed"


class IllegalTransitionError(BookingError):
    kind = "IllegalTransition"

    def __init__(self, from_status: Any, to_status: Any, component: str = "RequestStateMachine"):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot move request from {_status_name(from_status)} to {_status_name(to_status)}",
            component,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["from"] = _status_name(self.from_status)
        data["to"] = _status_name(self.to_status)
        return data


class StoreUnavailableError(BookingError):
    """Transient infrastructure failure; safe for the caller to retry idempotent calls."""

    kind = "StoreUnavailable"


class ValidationError(BookingError):
    kind = "ValidationError"


class InvalidWindowError(ValidationError):
    kind = "InvalidWindow"


class InvalidPriceError(ValidationError):
    kind = "InvalidPrice"


class DateRequiredError(ValidationError):
    kind = "DateRequired"


class PastDateError(ValidationError):
    kind = "PastDate"


class TimeFormatError(ValidationError):
    kind = "TimeFormat"


class TimeOrderError(ValidationError):
    kind = "TimeOrder"


class DurationTooShortError(ValidationError):
    kind = "DurationTooShort"


class AdvanceNoticeError(ValidationError):
    kind = "AdvanceNotice"


class TooSoonError(AdvanceNoticeError):
    """Booking-time advance notice failure."""

    kind = "TooSoon"


class NoChangeProposedError(ValidationError):
    kind = "NoChangeProposed"


def _status_name(status: Any) -> str:
    if status is None:
        return "None"
    return getattr(status, "value", str(status))
