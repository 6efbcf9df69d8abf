from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional, List
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..domain.booking import resolve_timezone, to_bookings
from ..services.booking_service import BookingService
from .auth import get_current_user_id
from .deps import get_booking_service

router = APIRouter(prefix="/meetings", tags=["meetings"])


class BookingOut(BaseModel):
    id: str
    title: str
    start_time: datetime = Field(..., alias="startTime")
    end_time: datetime = Field(..., alias="endTime")
    meeting_url: Optional[str] = Field(None, alias="meetingUrl")
    participants: List[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


@router.get("", response_model=List[BookingOut])
def list_meetings(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    grant = service.get_grant(db, user_id)
    bookings = to_bookings(service.list_events(grant), resolve_timezone(grant.timezone))
    return [
        BookingOut(
            id=b.id,
            title=b.title,
            startTime=b.start,
            endTime=b.end,
            meetingUrl=b.meeting_url,
            participants=b.participants,
        ) for b in bookings
    ]


@router.delete("/{event_id}", status_code=204)
def cancel_meeting(
    event_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    service.cancel(db, user_id, event_id)
    return Response(status_code=204)
