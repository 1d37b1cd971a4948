"""
Event Dispatcher

Domain events handed to the notification collaborator. Delivery is not our
concern: a handler that raises is logged and skipped so a notification
failure never undoes a booking.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from interview_booking.utils.logger import get_logger

logger = get_logger(__name__)

BOOKING_CREATED = "BookingCreated"
REQUEST_APPROVED = "RequestApproved"
REQUEST_CANCELLED = "RequestCancelled"
REQUEST_COMPLETED = "RequestCompleted"
RESCHEDULE_PROPOSED = "RescheduleProposed"
RESCHEDULE_RESOLVED = "RescheduleResolved"
SLOT_PUBLISHED = "SlotPublished"
SLOT_WITHDRAWN = "SlotWithdrawn"


@dataclass
class DomainEvent:
    name: str
    occurred_at: Optional[datetime]
    payload: Dict[str, Any] = field(default_factory=dict)


EventHandler = Callable[[DomainEvent], None]


class EventDispatcher:
    """Synchronous fan-out to registered handlers"""

    def __init__(self):
        self._handlers: List[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    def emit(self, name: str, occurred_at: Optional[datetime], **payload: Any) -> DomainEvent:
        event = DomainEvent(name=name, occurred_at=occurred_at, payload=payload)
        logger.debug(f"[Events] {name} {payload}")
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception as e:
                logger.warning(f"[Events] Handler {handler!r} failed for {name}: {e}")
        return event


class RecordingHandler:
    """Keeps every event it receives; handy for audit feeds and tests."""

    def __init__(self):
        self.events: List[DomainEvent] = []

    def __call__(self, event: DomainEvent) -> None:
        self.events.append(event)

    def names(self) -> List[str]:
        return [event.name for event in self.events]
