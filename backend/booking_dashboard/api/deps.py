"""Shared FastAPI dependencies. Tests swap the provider via ``app.dependency_overrides``."""
from fastapi import Depends

from ..adapters.nylas_calendar_provider import NylasCalendarProvider
from ..ports.calendar_provider import CalendarProvider
from ..services.booking_service import BookingService
from ..services.oauth_service import OAuthService


def get_calendar_provider() -> CalendarProvider:
    return NylasCalendarProvider()


def get_booking_service(provider: CalendarProvider = Depends(get_calendar_provider)) -> BookingService:
    return BookingService(provider)


def get_oauth_service() -> OAuthService:
    return OAuthService()
