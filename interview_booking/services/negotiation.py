"""
Negotiation Coordinator

Stages reschedule proposals against the state machine and resolves them.
A reschedule never touches the original Slot: after booking, the committed
window lives only on the InterviewRequest.
"""

from dataclasses import replace
from datetime import datetime
from typing import Optional

from interview_booking.models import InterviewRequest, ProposalStatus, RequestStatus, RescheduleProposal
from interview_booking.services.events import RESCHEDULE_PROPOSED, RESCHEDULE_RESOLVED, EventDispatcher
from interview_booking.services.request_state_machine import RequestStateMachine
from interview_booking.services.reschedule_validator import DateInput, RescheduleValidator, TimeInput
from interview_booking.utils.exceptions import ActorNotAllowedError, IllegalTransitionError
from interview_booking.utils.logger import get_logger
from interview_booking.utils.time_rules import format_window

logger = get_logger(__name__)


class NegotiationCoordinator:

    def __init__(
        self,
        state_machine: RequestStateMachine,
        validator: RescheduleValidator,
        events: EventDispatcher,
    ):
        self.state_machine = state_machine
        self.validator = validator
        self.events = events

    def propose(
        self,
        request_id: str,
        proposed_date: DateInput,
        proposed_start: TimeInput,
        proposed_end: TimeInput,
        proposed_by: str,
        now: datetime,
    ) -> InterviewRequest:
        request = self.state_machine.get(request_id)
        if request.status != RequestStatus.APPROVED:
            raise IllegalTransitionError(request.status, RequestStatus.RESCHEDULE_REQUESTED, "NegotiationCoordinator")

        window = self.validator.validate(request, proposed_date, proposed_start, proposed_end, now)
        proposal = RescheduleProposal(
            proposed_date=window.date,
            proposed_start=window.start,
            proposed_end=window.end,
            proposed_by=proposed_by,
            status=ProposalStatus.PENDING,
            proposed_at=now,
        )

        def attach(updated: InterviewRequest) -> None:
            updated.pending_proposal = proposal

        request = self.state_machine.apply(
            request,
            RequestStatus.RESCHEDULE_REQUESTED,
            proposed_by,
            now,
            note=f"Proposed {format_window(window.date, window.start, window.end)}",
            mutate=attach,
        )
        logger.info(f"[Negotiation] Reschedule proposed on request={request_id} by {proposed_by}")
        self.events.emit(
            RESCHEDULE_PROPOSED, now,
            request_id=request.id,
            proposed_by=proposed_by,
            notify=request.counter_party(proposed_by),
            proposed_date=window.date.isoformat(),
            proposed_start=window.start.strftime("%H:%M"),
            proposed_end=window.end.strftime("%H:%M"),
        )
        return request

    def resolve(
        self,
        request_id: str,
        accept: bool,
        now: datetime,
        resolved_by: Optional[str] = None,
    ) -> InterviewRequest:
        request = self.state_machine.get(request_id)
        proposal = request.pending_proposal
        if request.status != RequestStatus.RESCHEDULE_REQUESTED or proposal is None:
            raise IllegalTransitionError(request.status, RequestStatus.APPROVED, "NegotiationCoordinator")

        counter_party = request.counter_party(proposal.proposed_by)
        if resolved_by is None:
            resolved_by = counter_party
        elif resolved_by != counter_party:
            raise ActorNotAllowedError(
                "Only the other party can accept or reject this proposal", "NegotiationCoordinator",
                field="resolved_by", value=resolved_by,
            )
        if accept:
            # A stale proposal can still be rejected, never accepted
            self.validator.check_still_open(proposal, now)

        outcome = ProposalStatus.ACCEPTED if accept else ProposalStatus.REJECTED
        resolved = replace(proposal, status=outcome, resolved_at=now, resolved_by=resolved_by)
        window_text = format_window(proposal.proposed_date, proposal.proposed_start, proposal.proposed_end)

        def settle(updated: InterviewRequest) -> None:
            if accept:
                updated.committed_date = proposal.proposed_date
                updated.committed_start = proposal.proposed_start
                updated.committed_end = proposal.proposed_end
            updated.pending_proposal = None

        request = self.state_machine.apply(
            request,
            RequestStatus.APPROVED,
            resolved_by,
            now,
            note=f"Reschedule {outcome.value.lower()}: {window_text}",
            mutate=settle,
        )
        logger.info(f"[Negotiation] Reschedule {outcome.value.lower()} on request={request_id} by {resolved_by}")
        self.events.emit(
            RESCHEDULE_RESOLVED, now,
            request_id=request.id,
            accepted=accept,
            resolved_by=resolved_by,
            notify=resolved.proposed_by,
            proposal=resolved.to_doc(),
        )
        return request
