"""
Request State Machine

Lifecycle of an InterviewRequest:

    Requested -> Approved            (interviewer)
    Requested -> Cancelled           (either party)
    Approved -> Cancelled            (either party)
    Approved -> RescheduleRequested  (either party)
    RescheduleRequested -> Approved  (counter-party accepts or rejects)
    Approved -> Completed            (system, once the committed window has ended)

Any other move raises IllegalTransitionError. Every accepted move is appended
to the request history and written with a compare-and-set on the status and
version the caller read, so two racing writers cannot both win.
"""

from datetime import datetime
from typing import Callable, Dict, FrozenSet, Optional, Tuple

from interview_booking.config import Config
from interview_booking.db.store import RequestStore
from interview_booking.models import SYSTEM_ACTOR, HistoryEntry, InterviewRequest, RequestStatus
from interview_booking.services.events import (
    REQUEST_APPROVED,
    REQUEST_CANCELLED,
    REQUEST_COMPLETED,
    EventDispatcher,
)
from interview_booking.services.slot_catalog import SlotCatalog
from interview_booking.utils.exceptions import (
    ActorNotAllowedError,
    IllegalTransitionError,
    InvalidWindowError,
    NotFoundError,
)
from interview_booking.utils.logger import get_logger
from interview_booking.utils.time_rules import combine

logger = get_logger(__name__)

CANDIDATE = "candidate"
INTERVIEWER = "interviewer"
SYSTEM = "system"

_EITHER_PARTY = frozenset({CANDIDATE, INTERVIEWER})

TRANSITIONS: Dict[Tuple[RequestStatus, RequestStatus], FrozenSet[str]] = {
    (RequestStatus.REQUESTED, RequestStatus.APPROVED): frozenset({INTERVIEWER}),
    (RequestStatus.REQUESTED, RequestStatus.CANCELLED): _EITHER_PARTY,
    (RequestStatus.APPROVED, RequestStatus.CANCELLED): _EITHER_PARTY,
    (RequestStatus.APPROVED, RequestStatus.RESCHEDULE_REQUESTED): _EITHER_PARTY,
    (RequestStatus.RESCHEDULE_REQUESTED, RequestStatus.APPROVED): _EITHER_PARTY,
    (RequestStatus.APPROVED, RequestStatus.COMPLETED): frozenset({SYSTEM}),
}

TERMINAL_STATES = frozenset({RequestStatus.CANCELLED, RequestStatus.COMPLETED})

Mutation = Callable[[InterviewRequest], None]


def can_transition(from_status: RequestStatus, to_status: RequestStatus) -> bool:
    return (from_status, to_status) in TRANSITIONS


def role_of(request: InterviewRequest, actor: str) -> Optional[str]:
    if actor == SYSTEM_ACTOR:
        return SYSTEM
    if actor == request.candidate_id:
        return CANDIDATE
    if actor == request.interviewer_id:
        return INTERVIEWER
    return None


class RequestStateMachine:
    """Validates, audits and persists status transitions"""

    def __init__(
        self,
        config: Config,
        requests: RequestStore,
        events: EventDispatcher,
        catalog: Optional[SlotCatalog] = None,
    ):
        self.config = config
        self.requests = requests
        self.events = events
        self.catalog = catalog

    def get(self, request_id: str) -> InterviewRequest:
        request = self.requests.get(request_id)
        if request is None:
            raise NotFoundError(
                f"Interview request {request_id} not found", "RequestStateMachine",
                field="request_id", value=request_id,
            )
        return request

    def check(self, request: InterviewRequest, to_status: RequestStatus, actor: str) -> None:
        if not can_transition(request.status, to_status):
            raise IllegalTransitionError(request.status, to_status)
        role = role_of(request, actor)
        if role is None:
            raise ActorNotAllowedError(
                "Only the candidate or interviewer of this request can change it", "RequestStateMachine",
                field="actor", value=actor,
            )
        if role not in TRANSITIONS[(request.status, to_status)]:
            raise ActorNotAllowedError(
                f"A {role} cannot move a request from {request.status.value} to {to_status.value}",
                "RequestStateMachine", field="actor", value=actor,
            )

    def apply(
        self,
        request: InterviewRequest,
        to_status: RequestStatus,
        actor: str,
        now: datetime,
        note: Optional[str] = None,
        mutate: Optional[Mutation] = None,
    ) -> InterviewRequest:
        """
        Move `request` (as read by the caller) to `to_status`.

        `mutate` edits the new copy before it is written, so window and
        proposal changes land in the same guarded write as the status.
        """
        self.check(request, to_status, actor)

        updated = request.copy()
        if mutate is not None:
            mutate(updated)
        updated.status = to_status
        updated.updated_at = now
        updated.version = request.version + 1
        updated.history.append(
            HistoryEntry(at=now, actor=actor, from_status=request.status, to_status=to_status, note=note)
        )

        if not self.requests.replace_if(updated, request.status, request.version):
            current = self.get(request.id)
            logger.warning(
                f"[RequestStateMachine] Lost update on request={request.id}: "
                f"expected {request.status.value}/v{request.version}, found {current.status.value}/v{current.version}"
            )
            raise IllegalTransitionError(current.status, to_status)

        logger.info(
            f"[RequestStateMachine] Request {request.id}: {request.status.value} -> {to_status.value} by {actor}"
        )
        return updated

    def transition(
        self,
        request_id: str,
        to_status: RequestStatus,
        actor: str,
        now: datetime,
        note: Optional[str] = None,
        mutate: Optional[Mutation] = None,
    ) -> InterviewRequest:
        return self.apply(self.get(request_id), to_status, actor, now, note=note, mutate=mutate)

    def approve(self, request_id: str, actor: str, now: datetime) -> InterviewRequest:
        request = self.transition(request_id, RequestStatus.APPROVED, actor, now, note="Approved by interviewer")
        self.events.emit(
            REQUEST_APPROVED, now,
            request_id=request.id, candidate_id=request.candidate_id, interviewer_id=request.interviewer_id,
        )
        return request

    def cancel(self, request_id: str, actor: str, now: datetime, reason: Optional[str] = None) -> InterviewRequest:
        before = self.get(request_id)
        request = self.apply(before, RequestStatus.CANCELLED, actor, now, note=reason or "Cancelled")
        self._release_slot(request)
        self.events.emit(
            REQUEST_CANCELLED, now,
            request_id=request.id, cancelled_by=actor, reason=reason,
            candidate_id=request.candidate_id, interviewer_id=request.interviewer_id,
        )
        return request

    def complete(self, request_id: str, now: datetime) -> InterviewRequest:
        request = self.get(request_id)
        if request.status == RequestStatus.APPROVED:
            ends_at = combine(request.committed_date, request.committed_end)
            if now < ends_at:
                raise InvalidWindowError(
                    "The interview has not finished yet", "RequestStateMachine",
                    field="committed_end", value=ends_at.isoformat(),
                )
        request = self.apply(request, RequestStatus.COMPLETED, SYSTEM_ACTOR, now, note="Committed window elapsed")
        self.events.emit(
            REQUEST_COMPLETED, now,
            request_id=request.id, candidate_id=request.candidate_id,
            interviewer_id=request.interviewer_id, price=str(request.price),
        )
        return request

    def _release_slot(self, request: InterviewRequest) -> None:
        """Offer the original slot again if the request still sits on its window."""
        if self.catalog is None or not request.slot_id:
            return
        slot = self.catalog.store.get(request.slot_id)
        if slot is None or slot.claimed_by != request.candidate_id:
            return
        unchanged = (
            slot.date == request.committed_date
            and slot.start_time == request.committed_start
            and slot.end_time == request.committed_end
        )
        if unchanged:
            self.catalog.release(slot.id, request.candidate_id)
