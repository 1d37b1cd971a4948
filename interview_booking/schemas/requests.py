"""
Interview request, booking and reschedule schemas.
"""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from interview_booking.models import HistoryEntry, InterviewRequest, RescheduleProposal


class BookSlotRequest(BaseModel):
    # Interviewer's current rate, supplied by the profile service
    quoted_price: Decimal = Field(..., ge=0, example="45.00")


class CancelRequestBody(BaseModel):
    reason: Optional[str] = Field(None, example="Candidate unavailable")


class ProposeRescheduleRequest(BaseModel):
    # Left optional so a missing date is reported as DateRequired, not a schema error
    date: Optional[str] = Field(None, example="2024-06-10")
    start_time: Optional[str] = Field(None, example="10:00")
    end_time: Optional[str] = Field(None, example="10:30")


class ResolveRescheduleRequest(BaseModel):
    accept: bool


class ProposalResponse(BaseModel):
    proposed_date: str
    proposed_start: str
    proposed_end: str
    proposed_by: str
    status: str
    proposed_at: Optional[str] = None

    @classmethod
    def from_proposal(cls, proposal: RescheduleProposal) -> "ProposalResponse":
        return cls(
            proposed_date=proposal.proposed_date.isoformat(),
            proposed_start=proposal.proposed_start.strftime("%H:%M"),
            proposed_end=proposal.proposed_end.strftime("%H:%M"),
            proposed_by=proposal.proposed_by,
            status=proposal.status.value,
            proposed_at=proposal.proposed_at.isoformat() if proposal.proposed_at else None,
        )


class HistoryEntryResponse(BaseModel):
    at: str
    actor: str
    from_status: Optional[str] = None
    to_status: str
    note: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: HistoryEntry) -> "HistoryEntryResponse":
        return cls(
            at=entry.at.isoformat(),
            actor=entry.actor,
            from_status=entry.from_status.value if entry.from_status else None,
            to_status=entry.to_status.value,
            note=entry.note,
        )


class InterviewRequestResponse(BaseModel):
    id: str
    candidate_id: str
    interviewer_id: str
    slot_id: Optional[str] = None
    date: str
    start_time: str
    end_time: str
    price: str
    status: str
    pending_proposal: Optional[ProposalResponse] = None
    history: List[HistoryEntryResponse] = []
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_request(cls, request: InterviewRequest) -> "InterviewRequestResponse":
        return cls(
            id=request.id,
            candidate_id=request.candidate_id,
            interviewer_id=request.interviewer_id,
            slot_id=request.slot_id,
            date=request.committed_date.isoformat(),
            start_time=request.committed_start.strftime("%H:%M"),
            end_time=request.committed_end.strftime("%H:%M"),
            price=str(request.price),
            status=request.status.value,
            pending_proposal=(
                ProposalResponse.from_proposal(request.pending_proposal)
                if request.pending_proposal else None
            ),
            history=[HistoryEntryResponse.from_entry(e) for e in request.history],
            created_at=request.created_at.isoformat() if request.created_at else None,
            updated_at=request.updated_at.isoformat() if request.updated_at else None,
        )


class InterviewRequestListResponse(BaseModel):
    requests: List[InterviewRequestResponse]
    total: int


__all__ = [
    "BookSlotRequest",
    "CancelRequestBody",
    "ProposeRescheduleRequest",
    "ResolveRescheduleRequest",
    "ProposalResponse",
    "HistoryEntryResponse",
    "InterviewRequestResponse",
    "InterviewRequestListResponse",
]
