from __future__ import annotations
from typing import Protocol, Dict, Any, List


class CalendarProvider(Protocol):
    """Abstracts the calendar vendor for testability."""

    def list_events(self, grant_id: str, calendar_id: str) -> List[Dict[str, Any]]:
        """Return every event of ``calendar_id`` reachable through the grant."""
        ...

    def delete_event(self, grant_id: str, event_id: str, calendar_id: str) -> None:
        ...
