from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status

from interview_booking.schemas.slots import (
    PublishDaySlotsRequest,
    PublishSlotsRequest,
    SlotListResponse,
    SlotResponse,
)
from interview_booking.services.container import get_scheduling_service
from interview_booking.services.scheduling_service import SchedulingService
from interview_booking.utils.auth_dependencies import get_current_party, get_now
from interview_booking.utils.logger import get_logger

logger = get_logger(__name__)

# Interviewer availability (publish / withdraw) and public free-slot listing
router = APIRouter(tags=["Slots"])


def _require_self(interviewer_id: str, party_id: str) -> None:
    if interviewer_id != party_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Interviewers can only manage their own availability",
        )


@router.post(
    "/interviewers/{interviewer_id}/slots",
    response_model=SlotListResponse,
    status_code=status.HTTP_201_CREATED,
)
async def publish_slots(
    interviewer_id: str,
    request: PublishSlotsRequest,
    party_id: str = Depends(get_current_party),
    now: datetime = Depends(get_now),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Publish one or more availability windows.

    All windows are validated before any is stored.
    """
    _require_self(interviewer_id, party_id)
    windows = [(w.date, w.start_time, w.end_time) for w in request.slots]
    slots = service.publish_slots(interviewer_id, windows, now)
    logger.info(f"[API] {len(slots)} slot(s) published by interviewer {interviewer_id}")
    return SlotListResponse(
        interviewer_id=interviewer_id,
        slots=[SlotResponse.from_slot(s) for s in slots],
        total=len(slots),
    )


@router.post(
    "/interviewers/{interviewer_id}/slots/day",
    response_model=SlotListResponse,
    status_code=status.HTTP_201_CREATED,
)
async def publish_day_slots(
    interviewer_id: str,
    request: PublishDaySlotsRequest,
    party_id: str = Depends(get_current_party),
    now: datetime = Depends(get_now),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Split a working day into back-to-back slots.
    """
    _require_self(interviewer_id, party_id)
    slots = service.publish_day_slots(
        interviewer_id,
        request.date,
        request.start_time,
        request.end_time,
        request.duration_minutes,
        request.interval_minutes,
        now,
    )
    return SlotListResponse(
        interviewer_id=interviewer_id,
        slots=[SlotResponse.from_slot(s) for s in slots],
        total=len(slots),
    )


@router.get("/interviewers/{interviewer_id}/slots", response_model=SlotListResponse)
async def list_slots(
    interviewer_id: str,
    include_claimed: bool = False,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Free slots a candidate can book, ordered by date and start time.

    With include_claimed=true, claimed slots are listed too.
    """
    if include_claimed:
        slots = service.list_slots(interviewer_id)
    else:
        slots = service.list_free_slots(interviewer_id)
    return SlotListResponse(
        interviewer_id=interviewer_id,
        slots=[SlotResponse.from_slot(s) for s in slots],
        total=len(slots),
    )


@router.get("/slots/{slot_id}", response_model=SlotResponse)
async def get_slot(
    slot_id: str,
    service: SchedulingService = Depends(get_scheduling_service),
):
    return SlotResponse.from_slot(service.get_slot(slot_id))


@router.delete("/slots/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def withdraw_slot(
    slot_id: str,
    party_id: str = Depends(get_current_party),
    now: datetime = Depends(get_now),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Withdraw a free slot. Claimed slots are released only by cancelling their request.
    """
    service.withdraw_slot(slot_id, interviewer_id=party_id, now=now)
    logger.info(f"[API] Slot {slot_id} withdrawn by {party_id}")
