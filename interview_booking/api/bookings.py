from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from interview_booking.config import get_config
from interview_booking.models import RequestStatus
from interview_booking.schemas.requests import (
    BookSlotRequest,
    CancelRequestBody,
    InterviewRequestListResponse,
    InterviewRequestResponse,
)
from interview_booking.services.container import get_scheduling_service
from interview_booking.services.scheduling_service import SchedulingService
from interview_booking.utils.api_key import require_service_key
from interview_booking.utils.auth_dependencies import get_current_party, get_now
from interview_booking.utils.limiter import limiter
from interview_booking.utils.logger import get_logger

logger = get_logger(__name__)
config = get_config()

# Booking and request lifecycle endpoints
router = APIRouter(tags=["Bookings"])


@router.post(
    "/slots/{slot_id}/book",
    response_model=InterviewRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(config.server.booking_rate_limit)
async def book_slot(
    request: Request,
    slot_id: str,
    body: BookSlotRequest,
    party_id: str = Depends(get_current_party),
    now: datetime = Depends(get_now),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Book a free slot for the calling candidate.

    Exactly one of several concurrent bookings for the same slot succeeds;
    the others receive 409 AlreadyClaimed.
    """
    logger.info(f"[API] Booking request: slot={slot_id} candidate={party_id}")
    interview = service.book_slot(party_id, slot_id, body.quoted_price, now)
    return InterviewRequestResponse.from_request(interview)


@router.get("/requests", response_model=InterviewRequestListResponse)
async def list_requests(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    party_id: str = Depends(get_current_party),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    The caller's interview requests, as candidate or interviewer.
    """
    requests = service.list_requests(party_id, status_filter)
    return InterviewRequestListResponse(
        requests=[InterviewRequestResponse.from_request(r) for r in requests],
        total=len(requests),
    )


@router.get("/requests/{request_id}", response_model=InterviewRequestResponse)
async def get_request(
    request_id: str,
    party_id: str = Depends(get_current_party),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return InterviewRequestResponse.from_request(service.get_request(request_id, party_id))


@router.post("/requests/{request_id}/approve", response_model=InterviewRequestResponse)
async def approve_request(
    request_id: str,
    party_id: str = Depends(get_current_party),
    now: datetime = Depends(get_now),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Interviewer accepts a Requested interview.
    """
    return InterviewRequestResponse.from_request(service.approve_request(request_id, party_id, now))


@router.post("/requests/{request_id}/cancel", response_model=InterviewRequestResponse)
async def cancel_request(
    request_id: str,
    body: Optional[CancelRequestBody] = None,
    party_id: str = Depends(get_current_party),
    now: datetime = Depends(get_now),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Either party cancels a Requested or Approved interview.
    """
    reason = body.reason if body else None
    return InterviewRequestResponse.from_request(service.cancel_request(request_id, party_id, now, reason))


@router.post("/requests/{request_id}/complete", response_model=InterviewRequestResponse)
async def complete_request(
    request_id: str,
    _service_key: str = Depends(require_service_key),
    now: datetime = Depends(get_now),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Mark an Approved interview Completed once its window has elapsed.

    Called by the scheduler that drives completion, authenticated with the
    service key in X-API-Key rather than a party identity.
    """
    return InterviewRequestResponse.from_request(service.complete_request(request_id, now))
