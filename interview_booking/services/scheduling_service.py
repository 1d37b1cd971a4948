"""
Scheduling Service

The operations exposed to the API layer, wired over the catalog, booking
engine, state machine and negotiation coordinator. Callers always pass `now`.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple, Union

from interview_booking.config import Config
from interview_booking.db.store import RequestStore, SlotStore
from interview_booking.models import InterviewRequest, RequestStatus, Slot
from interview_booking.services.booking_engine import BookingEngine
from interview_booking.services.events import EventDispatcher
from interview_booking.services.negotiation import NegotiationCoordinator
from interview_booking.services.request_state_machine import RequestStateMachine
from interview_booking.services.reschedule_validator import DateInput, RescheduleValidator, TimeInput
from interview_booking.services.slot_catalog import SlotCatalog
from interview_booking.utils.exceptions import ActorNotAllowedError


class SchedulingService:
    """Service facade for slot publication, booking and reschedule negotiation"""

    def __init__(
        self,
        config: Config,
        slot_store: SlotStore,
        request_store: RequestStore,
        events: Optional[EventDispatcher] = None,
    ):
        self.config = config
        self.events = events or EventDispatcher()
        self.catalog = SlotCatalog(config, slot_store, self.events)
        self.booking = BookingEngine(config, self.catalog, request_store, self.events)
        self.state_machine = RequestStateMachine(config, request_store, self.events, self.catalog)
        self.validator = RescheduleValidator(config)
        self.negotiation = NegotiationCoordinator(self.state_machine, self.validator, self.events)

    # === Interviewer-facing ===

    def publish_slot(
        self,
        interviewer_id: str,
        day: Union[date, str],
        start: Union[time, str],
        end: Union[time, str],
        now: Optional[datetime] = None,
    ) -> Slot:
        return self.catalog.publish(interviewer_id, day, start, end, now)

    def publish_slots(
        self,
        interviewer_id: str,
        windows: Iterable[Tuple[Union[date, str], Union[time, str], Union[time, str]]],
        now: Optional[datetime] = None,
    ) -> List[Slot]:
        return self.catalog.publish_many(interviewer_id, windows, now)

    def publish_day_slots(
        self,
        interviewer_id: str,
        day: Union[date, str],
        day_start: Union[time, str],
        day_end: Union[time, str],
        duration_minutes: int,
        interval_minutes: int,
        now: Optional[datetime] = None,
    ) -> List[Slot]:
        return self.catalog.publish_day(
            interviewer_id, day, day_start, day_end, duration_minutes, interval_minutes, now
        )

    def withdraw_slot(self, slot_id: str, interviewer_id: Optional[str] = None, now: Optional[datetime] = None) -> None:
        self.catalog.withdraw(slot_id, interviewer_id, now)

    # === Candidate-facing ===

    def book_slot(
        self,
        candidate_id: str,
        slot_id: str,
        quoted_price: Union[Decimal, int, float, str],
        now: datetime,
    ) -> InterviewRequest:
        return self.booking.book_slot(candidate_id, slot_id, quoted_price, now)

    # === Either party ===

    def approve_request(self, request_id: str, actor: str, now: datetime) -> InterviewRequest:
        return self.state_machine.approve(request_id, actor, now)

    def cancel_request(
        self, request_id: str, actor: str, now: datetime, reason: Optional[str] = None
    ) -> InterviewRequest:
        return self.state_machine.cancel(request_id, actor, now, reason)

    def propose_reschedule(
        self,
        request_id: str,
        proposed_date: DateInput,
        proposed_start: TimeInput,
        proposed_end: TimeInput,
        proposed_by: str,
        now: datetime,
    ) -> InterviewRequest:
        return self.negotiation.propose(request_id, proposed_date, proposed_start, proposed_end, proposed_by, now)

    def resolve_reschedule(
        self,
        request_id: str,
        accept: bool,
        now: datetime,
        resolved_by: Optional[str] = None,
    ) -> InterviewRequest:
        return self.negotiation.resolve(request_id, accept, now, resolved_by)

    # === System ===

    def complete_request(self, request_id: str, now: datetime) -> InterviewRequest:
        return self.state_machine.complete(request_id, now)

    # === Queries ===

    def get_slot(self, slot_id: str) -> Slot:
        return self.catalog.get(slot_id)

    def list_free_slots(self, interviewer_id: str) -> List[Slot]:
        return self.catalog.list_free_slots(interviewer_id)

    def list_slots(self, interviewer_id: str) -> List[Slot]:
        """Free and claimed slots, for the interviewer's own calendar view."""
        return self.catalog.list_slots(interviewer_id)

    def get_request(self, request_id: str, party_id: Optional[str] = None) -> InterviewRequest:
        request = self.state_machine.get(request_id)
        if party_id is not None and not request.is_party(party_id):
            raise ActorNotAllowedError(
                "This interview request belongs to other parties", "SchedulingService",
                field="request_id", value=request_id,
            )
        return request

    def list_requests(self, party_id: str, status: Optional[RequestStatus] = None) -> List[InterviewRequest]:
        return self.state_machine.requests.list_for_party(party_id, status)
