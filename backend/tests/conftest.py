import os, sys
import tempfile
import pytest
from typing import Any, Dict, List

# Ensure package import path
# backend root first on sys.path so the local package wins
backend_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if backend_root not in sys.path:
    sys.path.insert(0, backend_root)

# isolated database + deterministic settings before the app is imported
_db_dir = tempfile.mkdtemp(prefix="booking-dashboard-")
os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["NYLAS_API_KEY"] = "nyk_test"
os.environ["NYLAS_CLIENT_ID"] = "client-123"
os.environ["NYLAS_API_URI"] = "https://api.test.nylas.com"
os.environ.pop("OAUTH_STATE_BACKEND", None)
os.environ.pop("OTEL_EXPORTER_OTLP_ENDPOINT", None)

from fastapi.testclient import TestClient  # noqa: E402

from booking_dashboard.config import get_settings  # noqa: E402
get_settings.cache_clear()

from booking_dashboard.main import app  # noqa: E402
from booking_dashboard.db.session import engine, Base, SessionLocal  # noqa: E402
from booking_dashboard.db import models  # noqa: E402
from booking_dashboard.api.deps import get_calendar_provider  # noqa: E402
from booking_dashboard.services.auth_service import create_access_token  # noqa: E402
from booking_dashboard.services.state_store import get_state_store  # noqa: E402


class FakeProvider:
    """In-memory CalendarProvider recording every call."""

    def __init__(self, events: List[Dict[str, Any]] | None = None, error: Exception | None = None):
        self.events = list(events or [])
        self.error = error
        self.list_calls: List[tuple] = []
        self.deleted: List[tuple] = []

    def list_events(self, grant_id: str, calendar_id: str) -> List[Dict[str, Any]]:
        self.list_calls.append((grant_id, calendar_id))
        if self.error:
            raise self.error
        return list(self.events)

    def delete_event(self, grant_id: str, event_id: str, calendar_id: str) -> None:
        if self.error:
            raise self.error
        self.deleted.append((grant_id, event_id, calendar_id))
        self.events = [e for e in self.events if e.get("id") != event_id]


@pytest.fixture(scope="function")  # fresh DB per test
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_provider():
    provider = FakeProvider()
    app.dependency_overrides[get_calendar_provider] = lambda: provider
    yield provider
    app.dependency_overrides.pop(get_calendar_provider, None)


@pytest.fixture
def client(db, fake_provider):
    get_state_store().clear()
    return TestClient(app)


@pytest.fixture
def make_user(db):
    def _make(user_id="u1", email="host@example.com", grant_id="grant-1",
              grant_email="host@example.com", timezone="UTC", name="Host"):
        user = models.User(id=user_id, email=email, name=name, timezone=timezone,
                           grant_id=grant_id, grant_email=grant_email)
        db.add(user)
        db.commit()
        return user
    return _make


@pytest.fixture
def auth_headers():
    def _headers(user_id="u1"):
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}
    return _headers
