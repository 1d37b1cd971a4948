"""
Slot publication and listing schemas.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from interview_booking.models import Slot


class SlotWindow(BaseModel):
    date: str = Field(..., example="2024-06-10")  # YYYY-MM-DD or dd/MM/yyyy
    start_time: str = Field(..., example="09:00")  # HH:MM (24-hour) or h:mm AM
    end_time: str = Field(..., example="09:45")


class PublishSlotsRequest(BaseModel):
    slots: List[SlotWindow] = Field(..., min_length=1)


class PublishDaySlotsRequest(BaseModel):
    date: str = Field(..., example="2024-06-10")
    start_time: str = Field(..., example="09:00")
    end_time: str = Field(..., example="17:00")
    duration_minutes: int = Field(default=45, example=45)
    interval_minutes: int = Field(default=45, example=60)


class SlotResponse(BaseModel):
    id: str
    interviewer_id: str
    date: str
    start_time: str
    end_time: str
    duration_minutes: int
    is_free: bool
    created_at: Optional[str] = None

    @classmethod
    def from_slot(cls, slot: Slot) -> "SlotResponse":
        return cls(
            id=slot.id,
            interviewer_id=slot.interviewer_id,
            date=slot.date.isoformat(),
            start_time=slot.start_time.strftime("%H:%M"),
            end_time=slot.end_time.strftime("%H:%M"),
            duration_minutes=slot.duration_minutes,
            is_free=slot.is_free,
            created_at=slot.created_at.isoformat() if slot.created_at else None,
        )


class SlotListResponse(BaseModel):
    interviewer_id: str
    slots: List[SlotResponse]
    total: int


__all__ = [
    "SlotWindow",
    "PublishSlotsRequest",
    "PublishDaySlotsRequest",
    "SlotResponse",
    "SlotListResponse",
]
