"""
Slot and request stores

The engine's only shared mutable state lives here. Both backends expose the
same three atomic primitives:

- SlotStore.insert_many: insert a batch only if none of it overlaps a stored
  slot of the same interviewer
- SlotStore.claim: conditional update of `claimed_by` from None to a candidate
- RequestStore.replace_if: write a request only if its stored status and
  version still match what the caller read

Everything handed back to callers is a copy; mutating it never changes the
stored record.
"""

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Iterable, Iterator, List, Optional

from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from interview_booking.models import InterviewRequest, RequestStatus, Slot
from interview_booking.utils.exceptions import StoreUnavailableError
from interview_booking.utils.logger import get_logger

logger = get_logger(__name__)


class SlotStore(ABC):

    @abstractmethod
    def insert_many(self, slots: Iterable[Slot]) -> Optional[Slot]:
        """
        Insert every slot, or none of them.

        Returns:
            None on success, or a stored slot that overlaps one of `slots`
            (in which case nothing was inserted)
        """

    def insert(self, slot: Slot) -> Optional[Slot]:
        return self.insert_many([slot])

    @abstractmethod
    def get(self, slot_id: str) -> Optional[Slot]:
        ...

    @abstractmethod
    def claim(self, slot_id: str, candidate_id: str, claimed_at: Optional[datetime] = None) -> Optional[Slot]:
        """Claim a free slot. Returns None if the slot is absent or already claimed."""

    @abstractmethod
    def release(self, slot_id: str, candidate_id: Optional[str] = None) -> bool:
        """Free a claimed slot (only if held by `candidate_id`, when given)."""

    @abstractmethod
    def delete_if_free(self, slot_id: str) -> bool:
        ...

    @abstractmethod
    def list_for_interviewer(self, interviewer_id: str, free_only: bool = True) -> List[Slot]:
        ...


class RequestStore(ABC):

    @abstractmethod
    def insert(self, request: InterviewRequest) -> None:
        ...

    @abstractmethod
    def get(self, request_id: str) -> Optional[InterviewRequest]:
        ...

    @abstractmethod
    def replace_if(
        self,
        request: InterviewRequest,
        expected_status: RequestStatus,
        expected_version: int,
    ) -> bool:
        """Store `request` only if the stored copy still has the expected status and version."""

    @abstractmethod
    def list_for_party(
        self, party_id: str, status: Optional[RequestStatus] = None
    ) -> List[InterviewRequest]:
        ...


def _slot_order(slot: Slot):
    return (slot.date, slot.start_time, slot.id)


def _request_order(request: InterviewRequest):
    return (request.committed_date, request.committed_start, request.id)


# === In-process backend ===

class InMemorySlotStore(SlotStore):
    """Slots held in a dict; every read-modify-write runs under one lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self._slots: Dict[str, Slot] = {}

    def insert_many(self, slots: Iterable[Slot]) -> Optional[Slot]:
        slots = list(slots)
        with self._lock:
            for slot in slots:
                if slot.id in self._slots:
                    raise ValueError(f"Duplicate slot id {slot.id}")
                for stored in self._slots.values():
                    if stored.overlaps(slot):
                        return stored.copy()
            for slot in slots:
                self._slots[slot.id] = slot.copy()
        return None

    def get(self, slot_id: str) -> Optional[Slot]:
        with self._lock:
            slot = self._slots.get(slot_id)
            return slot.copy() if slot else None

    def claim(self, slot_id: str, candidate_id: str, claimed_at: Optional[datetime] = None) -> Optional[Slot]:
        with self._lock:
            slot = self._slots.get(slot_id)
            if slot is None or slot.claimed_by is not None:
                return None
            slot.claimed_by = candidate_id
            slot.claimed_at = claimed_at
            return slot.copy()

    def release(self, slot_id: str, candidate_id: Optional[str] = None) -> bool:
        with self._lock:
            slot = self._slots.get(slot_id)
            if slot is None or slot.claimed_by is None:
                return False
            if candidate_id is not None and slot.claimed_by != candidate_id:
                return False
            slot.claimed_by = None
            slot.claimed_at = None
            return True

    def delete_if_free(self, slot_id: str) -> bool:
        with self._lock:
            slot = self._slots.get(slot_id)
            if slot is None or slot.claimed_by is not None:
                return False
            del self._slots[slot_id]
            return True

    def list_for_interviewer(self, interviewer_id: str, free_only: bool = True) -> List[Slot]:
        with self._lock:
            slots = [
                s.copy() for s in self._slots.values()
                if s.interviewer_id == interviewer_id and (s.is_free or not free_only)
            ]
        return sorted(slots, key=_slot_order)


class InMemoryRequestStore(RequestStore):

    def __init__(self):
        self._lock = threading.Lock()
        self._requests: Dict[str, InterviewRequest] = {}

    def insert(self, request: InterviewRequest) -> None:
        with self._lock:
            if request.id in self._requests:
                raise ValueError(f"Duplicate request id {request.id}")
            self._requests[request.id] = request.copy()

    def get(self, request_id: str) -> Optional[InterviewRequest]:
        with self._lock:
            request = self._requests.get(request_id)
            return request.copy() if request else None

    def replace_if(
        self,
        request: InterviewRequest,
        expected_status: RequestStatus,
        expected_version: int,
    ) -> bool:
        with self._lock:
            stored = self._requests.get(request.id)
            if stored is None:
                return False
            if stored.status != expected_status or stored.version != expected_version:
                return False
            self._requests[request.id] = request.copy()
            return True

    def list_for_party(
        self, party_id: str, status: Optional[RequestStatus] = None
    ) -> List[InterviewRequest]:
        with self._lock:
            requests = [
                r.copy() for r in self._requests.values()
                if r.is_party(party_id) and (status is None or r.status == status)
            ]
        return sorted(requests, key=_request_order)


# === MongoDB backend ===

# Claim held by slots that are inserted but not yet visible to candidates
PUBLISHING_PLACEHOLDER = "__publishing__"


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except DuplicateKeyError:
        raise
    except PyMongoError as e:
        logger.error(f"[Store] {operation} failed: {e}")
        raise StoreUnavailableError(f"Store unavailable during {operation}", "Store") from e


class MongoSlotStore(SlotStore):
    """
    Slots in the `slots` collection; claim is one find_one_and_update guarded on claimed_by.

    Publishing is optimistic per interviewer. A calendar document in
    `slot_calendars` carries a version; a publish reads it, checks for
    overlaps, inserts its slots hidden behind a placeholder claim, then bumps
    the version it read. If another publish bumped it first, the hidden slots
    are deleted and the whole publish is retried.
    """

    def __init__(self, collection: Collection, calendars: Optional[Collection] = None, max_attempts: int = 3):
        self.col = collection
        self.calendars = calendars if calendars is not None else collection.database["slot_calendars"]
        self.max_attempts = max_attempts

    def _calendar_version(self, interviewer_id: str) -> int:
        doc = self.calendars.find_one({"_id": interviewer_id})
        return int(doc["version"]) if doc else 0

    def _bump_calendar(self, interviewer_id: str, version: int) -> bool:
        try:
            # Upserts on first publish; a mismatched version collides on _id
            self.calendars.update_one(
                {"_id": interviewer_id, "version": version},
                {"$inc": {"version": 1}},
                upsert=True,
            )
        except DuplicateKeyError:
            return False
        return True

    def _find_overlap(self, slots: List[Slot]) -> Optional[Slot]:
        clauses = [
            {
                "interviewer_id": slot.interviewer_id,
                "date": slot.date.isoformat(),
                # "HH:MM" strings order the same way as the times they encode
                "start_time": {"$lt": slot.end_time.strftime("%H:%M")},
                "end_time": {"$gt": slot.start_time.strftime("%H:%M")},
            }
            for slot in slots
        ]
        doc = self.col.find_one({"$or": clauses})
        return Slot.from_doc(doc) if doc else None

    def insert_many(self, slots: Iterable[Slot]) -> Optional[Slot]:
        slots = list(slots)
        if not slots:
            return None
        ids = [slot.id for slot in slots]
        interviewers = sorted({slot.interviewer_id for slot in slots})

        for attempt in range(1, self.max_attempts + 1):
            with _store_errors("slot insert"):
                versions = {i: self._calendar_version(i) for i in interviewers}
                conflict = self._find_overlap(slots)
                if conflict is not None:
                    return conflict

                docs = [dict(slot.to_doc(), claimed_by=PUBLISHING_PLACEHOLDER) for slot in slots]
                self.col.insert_many(docs, ordered=True)
                if all(self._bump_calendar(i, v) for i, v in versions.items()):
                    self.col.update_many(
                        {"_id": {"$in": ids}, "claimed_by": PUBLISHING_PLACEHOLDER},
                        {"$set": {"claimed_by": None}},
                    )
                    return None
                self.col.delete_many({"_id": {"$in": ids}, "claimed_by": PUBLISHING_PLACEHOLDER})
            logger.warning(f"[Store] Concurrent publish for {', '.join(interviewers)}; attempt {attempt} rolled back")

        raise StoreUnavailableError("Slot publish kept colliding with concurrent publishes", "Store")

    def get(self, slot_id: str) -> Optional[Slot]:
        with _store_errors("slot lookup"):
            doc = self.col.find_one({"_id": slot_id})
        return Slot.from_doc(doc) if doc else None

    def claim(self, slot_id: str, candidate_id: str, claimed_at: Optional[datetime] = None) -> Optional[Slot]:
        with _store_errors("slot claim"):
            doc = self.col.find_one_and_update(
                {"_id": slot_id, "claimed_by": None},
                {"$set": {"claimed_by": candidate_id, "claimed_at": claimed_at.isoformat() if claimed_at else None}},
                return_document=ReturnDocument.AFTER,
            )
        return Slot.from_doc(doc) if doc else None

    def release(self, slot_id: str, candidate_id: Optional[str] = None) -> bool:
        query = {"_id": slot_id, "claimed_by": {"$ne": None}}
        if candidate_id is not None:
            query["claimed_by"] = candidate_id
        with _store_errors("slot release"):
            result = self.col.update_one(query, {"$set": {"claimed_by": None, "claimed_at": None}})
        return result.modified_count == 1

    def delete_if_free(self, slot_id: str) -> bool:
        with _store_errors("slot delete"):
            result = self.col.delete_one({"_id": slot_id, "claimed_by": None})
        return result.deleted_count == 1

    def list_for_interviewer(self, interviewer_id: str, free_only: bool = True) -> List[Slot]:
        query = {"interviewer_id": interviewer_id}
        # Slots of an unfinished publish stay out of every listing
        query["claimed_by"] = None if free_only else {"$ne": PUBLISHING_PLACEHOLDER}
        with _store_errors("slot listing"):
            docs = list(self.col.find(query).sort([("date", 1), ("start_time", 1), ("_id", 1)]))
        return [Slot.from_doc(doc) for doc in docs]


class MongoRequestStore(RequestStore):
    """Requests in `interview_requests`; writes are find_one_and_replace guarded on status+version."""

    def __init__(self, collection: Collection):
        self.col = collection

    def insert(self, request: InterviewRequest) -> None:
        with _store_errors("request insert"):
            self.col.insert_one(request.to_doc())

    def get(self, request_id: str) -> Optional[InterviewRequest]:
        with _store_errors("request lookup"):
            doc = self.col.find_one({"_id": request_id})
        return InterviewRequest.from_doc(doc) if doc else None

    def replace_if(
        self,
        request: InterviewRequest,
        expected_status: RequestStatus,
        expected_version: int,
    ) -> bool:
        with _store_errors("request update"):
            previous = self.col.find_one_and_replace(
                {"_id": request.id, "status": expected_status.value, "version": expected_version},
                request.to_doc(),
            )
        return previous is not None

    def list_for_party(
        self, party_id: str, status: Optional[RequestStatus] = None
    ) -> List[InterviewRequest]:
        query: Dict = {"$or": [{"candidate_id": party_id}, {"interviewer_id": party_id}]}
        if status is not None:
            query["status"] = status.value
        with _store_errors("request listing"):
            docs = list(self.col.find(query))
        return sorted((InterviewRequest.from_doc(doc) for doc in docs), key=_request_order)
