"""
Booking Engine

The only entry point that creates an InterviewRequest. Claiming the slot and
creating the request are all-or-nothing: any failure after the claim releases
the slot before the error reaches the caller.
"""

import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Union

from interview_booking.config import Config
from interview_booking.db.store import RequestStore
from interview_booking.models import HistoryEntry, InterviewRequest, RequestStatus, Slot
from interview_booking.services.events import BOOKING_CREATED, EventDispatcher
from interview_booking.services.slot_catalog import SlotCatalog
from interview_booking.utils.exceptions import (
    ActorNotAllowedError,
    DurationTooShortError,
    InvalidPriceError,
    InvalidWindowError,
    TooSoonError,
)
from interview_booking.utils.logger import get_logger
from interview_booking.utils.time_rules import (
    format_time_12h,
    is_advance_notice_satisfied,
    is_past_date,
)

logger = get_logger(__name__)


def _to_price(quoted_price: Union[Decimal, int, float, str]) -> Decimal:
    try:
        price = Decimal(str(quoted_price))
    except (InvalidOperation, ValueError):
        raise InvalidPriceError(
            f"Invalid price: {quoted_price!r}", "BookingEngine", field="price", value=quoted_price
        )
    if not price.is_finite() or price < 0:
        raise InvalidPriceError(
            "Price must be a non-negative amount", "BookingEngine", field="price", value=quoted_price
        )
    return price


class BookingEngine:
    """Turns a claimed slot plus a candidate into a Requested interview"""

    def __init__(
        self,
        config: Config,
        catalog: SlotCatalog,
        requests: RequestStore,
        events: EventDispatcher,
    ):
        self.config = config
        self.catalog = catalog
        self.requests = requests
        self.events = events

    def _validate_window(self, slot: Slot, now: datetime) -> None:
        if is_past_date(slot.date, now):
            raise InvalidWindowError(
                "This slot is in the past", "BookingEngine",
                field="date", value=slot.date.isoformat(),
            )
        minimum = self.config.rules.min_session_minutes
        if slot.duration_minutes < minimum:
            raise DurationTooShortError(
                f"Minimum session duration is {minimum} minutes", "BookingEngine",
                field="end_time", value=slot.end_time.strftime("%H:%M"),
            )
        notice = self.config.rules.advance_notice_minutes
        if not is_advance_notice_satisfied(slot.date, slot.start_time, now, notice):
            raise TooSoonError(
                f"Sessions must be booked at least {notice} minutes in advance", "BookingEngine",
                field="start_time", value=format_time_12h(slot.start_time),
            )

    def book_slot(
        self,
        candidate_id: str,
        slot_id: str,
        quoted_price: Union[Decimal, int, float, str],
        now: datetime,
    ) -> InterviewRequest:
        price = _to_price(quoted_price)
        if self.catalog.get(slot_id).interviewer_id == candidate_id:
            raise ActorNotAllowedError(
                "Interviewers cannot book their own slots", "BookingEngine",
                field="slot_id", value=slot_id,
            )

        slot = self.catalog.claim(slot_id, candidate_id, now)
        try:
            self._validate_window(slot, now)
            request = InterviewRequest(
                id=str(uuid.uuid4()),
                candidate_id=candidate_id,
                interviewer_id=slot.interviewer_id,
                committed_date=slot.date,
                committed_start=slot.start_time,
                committed_end=slot.end_time,
                price=price,
                status=RequestStatus.REQUESTED,
                slot_id=slot.id,
                created_at=now,
                updated_at=now,
            )
            request.history.append(
                HistoryEntry(
                    at=now,
                    actor=candidate_id,
                    from_status=None,
                    to_status=RequestStatus.REQUESTED,
                    note=f"Booked slot {slot.id}",
                )
            )
            self.requests.insert(request)
        except Exception as e:
            # Nothing may outlive a failed booking, including the claim
            self.catalog.release(slot_id, candidate_id)
            logger.warning(f"[BookingEngine] Booking rejected for slot={slot_id} candidate={candidate_id}: {e}")
            raise

        logger.info(f"[BookingEngine] Request created: id={request.id} slot={slot_id} candidate={candidate_id}")
        self.events.emit(
            BOOKING_CREATED,
            now,
            request_id=request.id,
            slot_id=slot.id,
            candidate_id=candidate_id,
            interviewer_id=slot.interviewer_id,
        )
        return request
