"""Presentation model for a single row of the bookings list."""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from .when import get_start_time, get_end_time, get_meeting_url

logger = logging.getLogger(__name__)

DATE_FORMAT = "%a, %d %b"   # e.g. "Tue, 03 Mar"
TIME_FORMAT = "%I:%M %p"    # e.g. "09:30 AM"
PARTICIPANT_FALLBACK = "participant"


@dataclass
class Booking:
    id: str
    title: str
    start: datetime
    end: datetime
    meeting_url: Optional[str] = None
    participants: List[str] = field(default_factory=list)

    @property
    def date_label(self) -> str:
        return self.start.strftime(DATE_FORMAT)

    @property
    def time_range_label(self) -> str:
        return f"{self.start.strftime(TIME_FORMAT)} - {self.end.strftime(TIME_FORMAT)}"

    @property
    def counterpart(self) -> str:
        if self.participants and self.participants[0]:
            return self.participants[0]
        return PARTICIPANT_FALLBACK


def resolve_timezone(name: Optional[str]) -> tzinfo:
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("unknown timezone, falling back to UTC", extra={"timezone": name})
        return timezone.utc


def to_booking(event: Dict[str, Any], tz: tzinfo) -> Optional[Booking]:
    """Build a row from a normalized event; None when it has no usable span."""
    when = event.get("when")
    start_ts = get_start_time(when)
    end_ts = get_end_time(when)
    # zero counts as missing here, same as an absent value
    if not start_ts or not end_ts:
        return None
    try:
        start = datetime.fromtimestamp(start_ts, tz)
        end = datetime.fromtimestamp(end_ts, tz)
    except (OverflowError, OSError, ValueError, TypeError):
        logger.warning("event timestamps out of range, skipping", extra={"event_id": event.get("id")})
        return None
    return Booking(
        id=event.get("id", ""),
        title=event.get("title", ""),
        start=start,
        end=end,
        meeting_url=get_meeting_url(event.get("conferencing")),
        participants=[p.get("name", "") for p in event.get("participants", [])],
    )


def to_bookings(events: Iterable[Dict[str, Any]], tz: tzinfo) -> List[Booking]:
    rows = []
    for event in events:
        booking = to_booking(event, tz)
        if booking is not None:
            rows.append(booking)
    return rows
