"""
Caller Identity Dependencies

Identity is owned by the upstream auth gateway: by the time a request reaches
this service the caller's candidate or interviewer id has been verified and
forwarded in the X-Party-Id header. These dependencies only read it.
"""

from datetime import datetime
from typing import Optional

from fastapi import Header, HTTPException, status

from interview_booking.utils.logger import get_logger
from interview_booking.utils.time_rules import utc_now

logger = get_logger(__name__)


async def get_current_party(
    x_party_id: Optional[str] = Header(None, alias="X-Party-Id"),
) -> str:
    """
    Get the authenticated caller's party id.

    Raises:
        HTTPException: If the identity header is missing or blank
    """
    party_id = (x_party_id or "").strip()
    if not party_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing caller identity",
        )
    logger.debug(f"[Auth] Request from party {party_id}")
    return party_id


def get_now() -> datetime:
    """Clock for the request. Read once at the edge and passed into the engine."""
    return utc_now()
