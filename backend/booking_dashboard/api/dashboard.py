"""Server-rendered dashboard pages."""
from pathlib import Path

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..domain.booking import resolve_timezone, to_bookings
from ..services.booking_service import BookingService
from .auth import get_current_user_id
from .deps import get_booking_service

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

MEETINGS_PATH = "/dashboard/meetings"


@router.get("/meetings", response_class=HTMLResponse)
def meetings_page(
    request: Request,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    grant = service.get_grant(db, user_id)
    events = service.list_events(grant)
    bookings = to_bookings(events, resolve_timezone(grant.timezone))
    return templates.TemplateResponse(
        request,
        "meetings.html",
        {
            # the empty state keys off the raw list, not the renderable rows
            "has_events": bool(events),
            "bookings": bookings,
            "cancel_action": f"{MEETINGS_PATH}/cancel",
        },
    )


@router.post("/meetings/cancel")
def cancel_meeting(
    event_id: str = Form("", alias="eventId"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    service.cancel(db, user_id, event_id)
    return RedirectResponse(MEETINGS_PATH, status_code=303)
