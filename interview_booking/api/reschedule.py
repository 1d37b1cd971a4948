from datetime import datetime

from fastapi import APIRouter, Depends

from interview_booking.schemas.requests import (
    InterviewRequestResponse,
    ProposeRescheduleRequest,
    ResolveRescheduleRequest,
)
from interview_booking.services.container import get_scheduling_service
from interview_booking.services.scheduling_service import SchedulingService
from interview_booking.utils.auth_dependencies import get_current_party, get_now
from interview_booking.utils.logger import get_logger

logger = get_logger(__name__)

# Reschedule negotiation between candidate and interviewer
router = APIRouter(tags=["Reschedule"])


@router.post("/requests/{request_id}/reschedule", response_model=InterviewRequestResponse)
async def propose_reschedule(
    request_id: str,
    body: ProposeRescheduleRequest,
    party_id: str = Depends(get_current_party),
    now: datetime = Depends(get_now),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Propose a new window for an Approved interview.

    Validation failures come back as 422 with the specific rule that failed.
    """
    logger.info(f"[API] Reschedule proposal on {request_id} by {party_id}: {body.date} {body.start_time}-{body.end_time}")
    interview = service.propose_reschedule(
        request_id, body.date, body.start_time, body.end_time, party_id, now
    )
    return InterviewRequestResponse.from_request(interview)


@router.post("/requests/{request_id}/reschedule/resolve", response_model=InterviewRequestResponse)
async def resolve_reschedule(
    request_id: str,
    body: ResolveRescheduleRequest,
    party_id: str = Depends(get_current_party),
    now: datetime = Depends(get_now),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Counter-party accepts or rejects the pending proposal.
    """
    interview = service.resolve_reschedule(request_id, body.accept, now, resolved_by=party_id)
    return InterviewRequestResponse.from_request(interview)
