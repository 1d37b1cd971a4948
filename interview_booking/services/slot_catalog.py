"""
Slot Catalog

Holds each interviewer's offered time windows and is the only path by which a
slot moves from free to claimed.
"""

import uuid
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Tuple, Union

from interview_booking.config import Config
from interview_booking.db.store import SlotStore
from interview_booking.models import Slot
from interview_booking.services.events import SLOT_PUBLISHED, SLOT_WITHDRAWN, EventDispatcher
from interview_booking.utils.exceptions import (
    ActorNotAllowedError,
    AlreadyClaimedError,
    DurationTooShortError,
    InvalidWindowError,
    NotFoundError,
    PastDateError,
)
from interview_booking.utils.logger import get_logger
from interview_booking.utils.time_rules import (
    combine,
    duration_minutes,
    format_time_12h,
    format_window,
    is_past_date,
    parse_date,
    parse_time_of_day,
)

logger = get_logger(__name__)

DateLike = Union[date, str]
TimeLike = Union[time, str]


class SlotCatalog:
    """Per-interviewer collection of offered slots"""

    def __init__(self, config: Config, store: SlotStore, events: Optional[EventDispatcher] = None):
        self.config = config
        self.store = store
        self.events = events or EventDispatcher()

    def _build_slot(
        self,
        interviewer_id: str,
        day: DateLike,
        start: TimeLike,
        end: TimeLike,
        now: Optional[datetime] = None,
    ) -> Slot:
        day = parse_date(day)
        start = parse_time_of_day(start)
        end = parse_time_of_day(end)

        if start >= end:
            raise InvalidWindowError(
                "Start time must be before end time", "SlotCatalog",
                field="end_time", value=end.strftime("%H:%M"),
            )
        minimum = self.config.rules.min_session_minutes
        if duration_minutes(start, end) < minimum:
            raise DurationTooShortError(
                f"Minimum session duration is {minimum} minutes", "SlotCatalog",
                field="end_time", value=end.strftime("%H:%M"),
            )
        if now is not None and is_past_date(day, now):
            raise PastDateError(
                "Cannot publish availability on a past date", "SlotCatalog",
                field="date", value=day.isoformat(),
            )
        if now is not None and day == now.date() and combine(day, start) < now:
            raise PastDateError(
                "Start time cannot be in the past", "SlotCatalog",
                field="start_time", value=format_time_12h(start),
            )

        return Slot(
            id=str(uuid.uuid4()),
            interviewer_id=interviewer_id,
            date=day,
            start_time=start,
            end_time=end,
            created_at=now,
        )

    def publish(
        self,
        interviewer_id: str,
        day: DateLike,
        start: TimeLike,
        end: TimeLike,
        now: Optional[datetime] = None,
    ) -> Slot:
        slot = self._build_slot(interviewer_id, day, start, end, now)
        self._store([slot])
        logger.info(f"[SlotCatalog] Slot published: id={slot.id} interviewer={interviewer_id} {slot.date} {slot.start_time}-{slot.end_time}")
        self.events.emit(SLOT_PUBLISHED, now, slot_id=slot.id, interviewer_id=interviewer_id)
        return slot

    def publish_many(
        self,
        interviewer_id: str,
        windows: Iterable[Tuple[DateLike, TimeLike, TimeLike]],
        now: Optional[datetime] = None,
    ) -> List[Slot]:
        """Publish several windows at once. Nothing is stored unless every window is valid."""
        slots = [self._build_slot(interviewer_id, d, s, e, now) for d, s, e in windows]
        for i, slot in enumerate(slots):
            for other in slots[i + 1:]:
                if slot.overlaps(other):
                    raise InvalidWindowError(
                        f"Windows overlap: {format_window(slot.date, slot.start_time, slot.end_time)} "
                        f"and {format_window(other.date, other.start_time, other.end_time)}",
                        "SlotCatalog", field="start_time", value=format_time_12h(other.start_time),
                    )
        self._store(slots)
        logger.info(f"[SlotCatalog] {len(slots)} slot(s) published for interviewer={interviewer_id}")
        for slot in slots:
            self.events.emit(SLOT_PUBLISHED, now, slot_id=slot.id, interviewer_id=interviewer_id)
        return slots

    def publish_day(
        self,
        interviewer_id: str,
        day: DateLike,
        day_start: TimeLike,
        day_end: TimeLike,
        duration: int,
        interval: int,
        now: Optional[datetime] = None,
    ) -> List[Slot]:
        """Split a working day into slots of `duration` minutes starting every `interval` minutes."""
        day = parse_date(day)
        day_start = parse_time_of_day(day_start)
        day_end = parse_time_of_day(day_end)
        if day_start >= day_end:
            raise InvalidWindowError(
                "Day start must be before day end", "SlotCatalog",
                field="end_time", value=day_end.strftime("%H:%M"),
            )
        if interval < 1:
            raise InvalidWindowError(
                "Interval must be at least 1 minute", "SlotCatalog",
                field="interval_minutes", value=interval,
            )
        if interval < duration:
            raise InvalidWindowError(
                "Interval must not be shorter than the slot duration", "SlotCatalog",
                field="interval_minutes", value=interval,
            )

        windows = []
        cursor = combine(day, day_start)
        limit = combine(day, day_end)
        while cursor + timedelta(minutes=duration) <= limit:
            # Earlier parts of today are skipped rather than failing the whole day
            if now is None or cursor >= now:
                windows.append((day, cursor.time(), (cursor + timedelta(minutes=duration)).time()))
            cursor += timedelta(minutes=interval)

        if not windows:
            raise InvalidWindowError(
                "No slot of the requested duration fits in this day", "SlotCatalog",
                field="duration_minutes", value=duration,
            )
        return self.publish_many(interviewer_id, windows, now)

    def _store(self, slots: List[Slot]) -> None:
        conflict = self.store.insert_many(slots)
        if conflict is None:
            return
        logger.warning(
            f"[SlotCatalog] Publish rejected for interviewer={conflict.interviewer_id}: "
            f"overlaps slot {conflict.id}"
        )
        raise InvalidWindowError(
            "This window overlaps an existing slot "
            f"({format_window(conflict.date, conflict.start_time, conflict.end_time)})",
            "SlotCatalog", field="start_time", value=format_time_12h(conflict.start_time),
        )

    def get(self, slot_id: str) -> Slot:
        slot = self.store.get(slot_id)
        if slot is None:
            raise NotFoundError(f"Slot {slot_id} not found", "SlotCatalog", field="slot_id", value=slot_id)
        return slot

    def withdraw(self, slot_id: str, interviewer_id: Optional[str] = None, now: Optional[datetime] = None) -> None:
        slot = self.get(slot_id)
        if interviewer_id is not None and slot.interviewer_id != interviewer_id:
            raise ActorNotAllowedError(
                "Only the publishing interviewer can withdraw a slot", "SlotCatalog",
                field="slot_id", value=slot_id,
            )
        if not slot.is_free or not self.store.delete_if_free(slot_id):
            # Either claimed already, or claimed between our read and the delete
            if self.store.get(slot_id) is None:
                raise NotFoundError(f"Slot {slot_id} not found", "SlotCatalog", field="slot_id", value=slot_id)
            raise AlreadyClaimedError(
                "Slot is claimed; cancel its interview request instead", "SlotCatalog",
                field="slot_id", value=slot_id,
            )
        logger.info(f"[SlotCatalog] Slot withdrawn: id={slot_id}")
        self.events.emit(SLOT_WITHDRAWN, now, slot_id=slot_id, interviewer_id=slot.interviewer_id)

    def claim(self, slot_id: str, candidate_id: str, now: Optional[datetime] = None) -> Slot:
        slot = self.store.claim(slot_id, candidate_id, now)
        if slot is not None:
            logger.info(f"[SlotCatalog] Slot claimed: id={slot_id} candidate={candidate_id}")
            return slot

        if self.store.get(slot_id) is None:
            raise NotFoundError(f"Slot {slot_id} not found", "SlotCatalog", field="slot_id", value=slot_id)
        logger.warning(f"[SlotCatalog] Claim lost: id={slot_id} candidate={candidate_id}")
        raise AlreadyClaimedError("Slot has already been booked", "SlotCatalog", field="slot_id", value=slot_id)

    def release(self, slot_id: str, candidate_id: Optional[str] = None) -> bool:
        released = self.store.release(slot_id, candidate_id)
        if released:
            logger.info(f"[SlotCatalog] Slot released: id={slot_id}")
        return released

    def list_free_slots(self, interviewer_id: str) -> List[Slot]:
        return self.store.list_for_interviewer(interviewer_id, free_only=True)

    def list_slots(self, interviewer_id: str) -> List[Slot]:
        return self.store.list_for_interviewer(interviewer_id, free_only=False)
