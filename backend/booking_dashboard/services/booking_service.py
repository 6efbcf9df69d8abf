from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List
import logging

from prometheus_client import Counter
from sqlalchemy.orm import Session

from ..db import models
from ..errors import NotFoundError, ConflictError, ValidationAppError, CalendarProviderError
from ..ports.calendar_provider import CalendarProvider

logger = logging.getLogger(__name__)

MEETINGS_FETCH_COUNT = Counter(
    "booking_dashboard_meetings_fetch_total", "Total booking list fetches"
)
MEETINGS_CANCEL_COUNT = Counter(
    "booking_dashboard_meetings_cancel_total", "Booking cancellations", ["outcome"]
)


@dataclass
class UserGrant:
    grant_id: str
    grant_email: str
    timezone: str = "UTC"


def normalize_event(event: Dict[str, Any]) -> Dict[str, Any]:
    """Keep every vendor field; default the title and participant names."""
    participants = event.get("participants") or []
    return {
        **event,
        "title": event.get("title") or "",
        "participants": [
            {**p, "name": p.get("name") or ""} if isinstance(p, dict) else {"name": ""}
            for p in participants
        ],
    }


class BookingService:
    def __init__(self, provider: CalendarProvider):
        self.provider = provider

    def get_grant(self, db: Session, user_id: str) -> UserGrant:
        user = db.query(models.User).filter(models.User.id == user_id).first()
        if not user:
            raise NotFoundError("USER_NOT_FOUND", "User not found")
        if not user.grant_id:
            raise ConflictError("GRANT_ID_MISSING", "User grantId not found")
        if not user.grant_email:
            raise ConflictError("GRANT_EMAIL_MISSING", "User grantEmail not found")
        return UserGrant(grant_id=user.grant_id, grant_email=user.grant_email, timezone=user.timezone or "UTC")

    def get_data(self, db: Session, user_id: str) -> List[Dict[str, Any]]:
        return self.list_events(self.get_grant(db, user_id))

    def list_events(self, grant: UserGrant) -> List[Dict[str, Any]]:
        MEETINGS_FETCH_COUNT.inc()
        # the grant's email doubles as its primary calendar id
        events = self.provider.list_events(grant.grant_id, calendar_id=grant.grant_email)
        return [normalize_event(e) for e in events]

    def cancel(self, db: Session, user_id: str, event_id: str) -> None:
        if not event_id or not event_id.strip():
            raise ValidationAppError("EVENT_ID_REQUIRED", "eventId is required")
        grant = self.get_grant(db, user_id)
        try:
            self.provider.delete_event(grant.grant_id, event_id.strip(), calendar_id=grant.grant_email)
        except CalendarProviderError:
            MEETINGS_CANCEL_COUNT.labels(outcome="error").inc()
            raise
        MEETINGS_CANCEL_COUNT.labels(outcome="success").inc()
        logger.info("booking cancelled", extra={"event_id": event_id})
