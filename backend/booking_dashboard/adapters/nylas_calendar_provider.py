from __future__ import annotations
from typing import Dict, Any, List, Optional
import logging

import requests
from prometheus_client import Histogram

from ..config import Settings, get_settings
from ..errors import CalendarProviderError
from ..ports.calendar_provider import CalendarProvider

logger = logging.getLogger(__name__)

PROVIDER_LATENCY = Histogram(
    "booking_dashboard_provider_request_duration_seconds",
    "Latency of calendar vendor calls",
    ["operation"],
)

# Nylas caps list pages at 200
PAGE_LIMIT = 200


class NylasCalendarProvider(CalendarProvider):
    """Nylas v3 REST client (events only)."""

    def __init__(self, settings: Settings | None = None, session: requests.Session | None = None):
        self._settings = settings or get_settings()
        self._session = session or requests.Session()

    def list_events(self, grant_id: str, calendar_id: str) -> List[Dict[str, Any]]:
        events: List[Dict[str, Any]] = []
        params: Dict[str, Any] = {"calendar_id": calendar_id, "limit": PAGE_LIMIT}
        with PROVIDER_LATENCY.labels(operation="list_events").time():
            while True:
                body = self._request("GET", f"/v3/grants/{grant_id}/events", params=params)
                events.extend(body.get("data") or [])
                cursor = body.get("next_cursor")
                if not cursor:
                    break
                params = {**params, "page_token": cursor}
        logger.info("events listed", extra={"count": len(events)})
        return events

    def delete_event(self, grant_id: str, event_id: str, calendar_id: str) -> None:
        with PROVIDER_LATENCY.labels(operation="delete_event").time():
            self._request(
                "DELETE",
                f"/v3/grants/{grant_id}/events/{event_id}",
                params={"calendar_id": calendar_id},
            )
        logger.info("event deleted", extra={"event_id": event_id})

    def _request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if not self._settings.nylas_api_key:
            raise CalendarProviderError("Nylas API key not configured")
        url = f"{self._settings.nylas_api_uri}{path}"
        try:
            resp = self._session.request(
                method,
                url,
                params=params,
                headers={
                    "Authorization": f"Bearer {self._settings.nylas_api_key}",
                    "Accept": "application/json",
                },
                timeout=self._settings.nylas_timeout_seconds,
            )
        except requests.RequestException as e:
            logger.warning("vendor request failed", extra={"method": method, "error": str(e)})
            raise CalendarProviderError(f"Calendar vendor unreachable: {e}") from e

        if not resp.ok:
            message = _error_message(resp)
            logger.warning(
                "vendor returned error",
                extra={"method": method, "status": resp.status_code, "error": message},
            )
            raise CalendarProviderError(f"Calendar vendor error: {message}", vendor_status=resp.status_code)
        if not resp.content:
            return {}
        return resp.json()


def _error_message(resp: requests.Response) -> str:
    fallback = resp.reason or str(resp.status_code)
    try:
        payload = resp.json()
    except ValueError:
        return fallback
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return fallback
