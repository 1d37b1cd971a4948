"""
Domain entities

Slot, InterviewRequest and RescheduleProposal as plain dataclasses, plus the
document mapping used by the MongoDB store.
"""

import copy
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from interview_booking.utils.time_rules import duration_minutes


class RequestStatus(str, Enum):
    REQUESTED = "Requested"
    APPROVED = "Approved"
    CANCELLED = "Cancelled"
    RESCHEDULE_REQUESTED = "RescheduleRequested"
    COMPLETED = "Completed"


class ProposalStatus(str, Enum):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


SYSTEM_ACTOR = "system"


@dataclass
class Slot:
    """An interviewer-published, bookable time window"""

    id: str
    interviewer_id: str
    date: date
    start_time: time
    end_time: time
    claimed_by: Optional[str] = None
    created_at: Optional[datetime] = None
    claimed_at: Optional[datetime] = None

    @property
    def is_free(self) -> bool:
        return self.claimed_by is None

    @property
    def duration_minutes(self) -> int:
        return duration_minutes(self.start_time, self.end_time)

    def overlaps(self, other: "Slot") -> bool:
        """Same interviewer and day, and the half-open windows intersect."""
        return (
            self.interviewer_id == other.interviewer_id
            and self.date == other.date
            and self.start_time < other.end_time
            and other.start_time < self.end_time
        )

    def copy(self) -> "Slot":
        return copy.copy(self)

    def to_doc(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "interviewer_id": self.interviewer_id,
            "date": self.date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "claimed_by": self.claimed_by,
            "created_at": _iso(self.created_at),
            "claimed_at": _iso(self.claimed_at),
        }

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "Slot":
        return cls(
            id=str(doc["_id"]),
            interviewer_id=doc["interviewer_id"],
            date=date.fromisoformat(doc["date"]),
            start_time=time.fromisoformat(doc["start_time"]),
            end_time=time.fromisoformat(doc["end_time"]),
            claimed_by=doc.get("claimed_by"),
            created_at=_from_iso(doc.get("created_at")),
            claimed_at=_from_iso(doc.get("claimed_at")),
        )


@dataclass
class RescheduleProposal:
    proposed_date: date
    proposed_start: time
    proposed_end: time
    proposed_by: str
    status: ProposalStatus = ProposalStatus.PENDING
    proposed_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None

    def to_doc(self) -> Dict[str, Any]:
        return {
            "proposed_date": self.proposed_date.isoformat(),
            "proposed_start": self.proposed_start.strftime("%H:%M"),
            "proposed_end": self.proposed_end.strftime("%H:%M"),
            "proposed_by": self.proposed_by,
            "status": self.status.value,
            "proposed_at": _iso(self.proposed_at),
            "resolved_at": _iso(self.resolved_at),
            "resolved_by": self.resolved_by,
        }

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "RescheduleProposal":
        return cls(
            proposed_date=date.fromisoformat(doc["proposed_date"]),
            proposed_start=time.fromisoformat(doc["proposed_start"]),
            proposed_end=time.fromisoformat(doc["proposed_end"]),
            proposed_by=doc["proposed_by"],
            status=ProposalStatus(doc.get("status", ProposalStatus.PENDING.value)),
            proposed_at=_from_iso(doc.get("proposed_at")),
            resolved_at=_from_iso(doc.get("resolved_at")),
            resolved_by=doc.get("resolved_by"),
        )


@dataclass
class HistoryEntry:
    """One audited status transition"""

    at: datetime
    actor: str
    from_status: Optional[RequestStatus]
    to_status: RequestStatus
    note: Optional[str] = None

    def to_doc(self) -> Dict[str, Any]:
        return {
            "at": _iso(self.at),
            "actor": self.actor,
            "from_status": self.from_status.value if self.from_status else None,
            "to_status": self.to_status.value,
            "note": self.note,
        }

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "HistoryEntry":
        from_status = doc.get("from_status")
        return cls(
            at=_from_iso(doc["at"]),
            actor=doc["actor"],
            from_status=RequestStatus(from_status) if from_status else None,
            to_status=RequestStatus(doc["to_status"]),
            note=doc.get("note"),
        )


@dataclass
class InterviewRequest:
    """The binding (or negotiated) booking created from a claimed slot"""

    id: str
    candidate_id: str
    interviewer_id: str
    committed_date: date
    committed_start: time
    committed_end: time
    price: Decimal
    status: RequestStatus = RequestStatus.REQUESTED
    slot_id: Optional[str] = None
    pending_proposal: Optional[RescheduleProposal] = None
    history: List[HistoryEntry] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 0

    @property
    def duration_minutes(self) -> int:
        return duration_minutes(self.committed_start, self.committed_end)

    @property
    def is_terminal(self) -> bool:
        return self.status in (RequestStatus.CANCELLED, RequestStatus.COMPLETED)

    def is_party(self, party_id: str) -> bool:
        return party_id in (self.candidate_id, self.interviewer_id)

    def counter_party(self, party_id: str) -> Optional[str]:
        if party_id == self.candidate_id:
            return self.interviewer_id
        if party_id == self.interviewer_id:
            return self.candidate_id
        return None

    def copy(self) -> "InterviewRequest":
        return copy.deepcopy(self)

    def to_doc(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "candidate_id": self.candidate_id,
            "interviewer_id": self.interviewer_id,
            "committed_date": self.committed_date.isoformat(),
            "committed_start": self.committed_start.strftime("%H:%M"),
            "committed_end": self.committed_end.strftime("%H:%M"),
            # Stored as text so the snapshot never loses precision
            "price": str(self.price),
            "status": self.status.value,
            "slot_id": self.slot_id,
            "pending_proposal": self.pending_proposal.to_doc() if self.pending_proposal else None,
            "history": [entry.to_doc() for entry in self.history],
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "version": self.version,
        }

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "InterviewRequest":
        proposal = doc.get("pending_proposal")
        return cls(
            id=str(doc["_id"]),
            candidate_id=doc["candidate_id"],
            interviewer_id=doc["interviewer_id"],
            committed_date=date.fromisoformat(doc["committed_date"]),
            committed_start=time.fromisoformat(doc["committed_start"]),
            committed_end=time.fromisoformat(doc["committed_end"]),
            price=Decimal(doc["price"]),
            status=RequestStatus(doc["status"]),
            slot_id=doc.get("slot_id"),
            pending_proposal=RescheduleProposal.from_doc(proposal) if proposal else None,
            history=[HistoryEntry.from_doc(entry) for entry in doc.get("history", [])],
            created_at=_from_iso(doc.get("created_at")),
            updated_at=_from_iso(doc.get("updated_at")),
            version=int(doc.get("version", 0)),
        )


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _from_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None
