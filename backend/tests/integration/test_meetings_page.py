from booking_dashboard.errors import CalendarProviderError

# 2024-03-05 14:30:00 UTC (a Tuesday)
START = 1709649000


def booking(event_id="evt_1", **overrides):
    event = {
        "id": event_id,
        "title": "Intro call",
        "when": {"object": "timespan", "start_time": START, "end_time": START + 1800},
        "participants": [{"name": "Ada Lovelace", "email": "ada@example.com"}],
        "conferencing": {"provider": "Zoom Meeting", "details": {"url": "https://zoom.us/j/123"}},
    }
    event.update(overrides)
    return event


def test_requires_session(client):
    r = client.get("/dashboard/meetings")
    assert r.status_code == 401
    assert r.json()["detail"]["code"] == "UNAUTHORIZED"


def test_empty_state(client, make_user, auth_headers):
    make_user()
    r = client.get("/dashboard/meetings", headers=auth_headers())
    assert r.status_code == 200
    assert "text/html" in r.headers["content-type"]
    assert "No meetings found" in r.text
    assert "You don't have any meetings yet." in r.text
    assert 'href="/dashboard/new"' in r.text
    assert "Create a new event type" in r.text


def test_renders_bookings(client, make_user, auth_headers, fake_provider):
    make_user()
    fake_provider.events = [booking()]
    r = client.get("/dashboard/meetings", headers=auth_headers())
    assert r.status_code == 200
    body = r.text
    assert "Bookings" in body
    assert "See upcoming and past events booked through your event type links." in body
    assert "Tue, 05 Mar" in body
    assert "02:30 PM - 03:00 PM" in body
    assert "Intro call" in body
    assert "You and Ada Lovelace" in body
    assert 'href="https://zoom.us/j/123"' in body
    assert 'rel="noopener noreferrer"' in body
    assert 'name="eventId" value="evt_1"' in body
    assert "Cancel Event" in body


def test_session_cookie_is_accepted(client, make_user, fake_provider):
    from booking_dashboard.services.auth_service import create_access_token
    make_user()
    client.cookies.set("session", create_access_token("u1"))
    r = client.get("/dashboard/meetings")
    assert r.status_code == 200


def test_renders_in_user_timezone(client, make_user, auth_headers, fake_provider):
    make_user(timezone="America/New_York")
    fake_provider.events = [booking()]
    r = client.get("/dashboard/meetings", headers=auth_headers())
    assert "09:30 AM - 10:00 AM" in r.text


def test_skips_rows_without_span_and_handles_missing_fields(client, make_user, auth_headers, fake_provider):
    make_user()
    fake_provider.events = [
        booking("keep", title=None, participants=None, conferencing=None),
        booking("all-day", when={"object": "date", "date": "2024-03-05"}),
        booking("moment", when={"object": "time", "time": START}),
    ]
    r = client.get("/dashboard/meetings", headers=auth_headers())
    assert r.status_code == 200
    assert 'value="keep"' in r.text
    assert 'value="all-day"' not in r.text
    assert 'value="moment"' not in r.text
    assert "You and participant" in r.text
    assert "Join Meeting" not in r.text
    # still a card, not the empty state
    assert "No meetings found" not in r.text


def test_times_list_shape(client, make_user, auth_headers, fake_provider):
    make_user()
    fake_provider.events = [booking(when={"times": [{"start_time": START, "end_time": START + 3600}]})]
    r = client.get("/dashboard/meetings", headers=auth_headers())
    assert "02:30 PM - 03:30 PM" in r.text


def test_fallback_meeting_url(client, make_user, auth_headers, fake_provider):
    make_user()
    fake_provider.events = [booking(conferencing={"url": "https://meet.example.com/x"})]
    r = client.get("/dashboard/meetings", headers=auth_headers())
    assert 'href="https://meet.example.com/x"' in r.text


def test_user_not_found(client, auth_headers):
    r = client.get("/dashboard/meetings", headers=auth_headers("nobody"))
    assert r.status_code == 404
    assert r.json()["detail"]["code"] == "USER_NOT_FOUND"


def test_missing_grant(client, make_user, auth_headers, fake_provider):
    make_user(grant_id=None)
    r = client.get("/dashboard/meetings", headers=auth_headers())
    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "GRANT_ID_MISSING"
    assert fake_provider.list_calls == []


def test_vendor_failure(client, make_user, auth_headers, fake_provider):
    make_user()
    fake_provider.error = CalendarProviderError("Calendar vendor unreachable")
    r = client.get("/dashboard/meetings", headers=auth_headers())
    assert r.status_code == 502
    assert r.json()["detail"]["code"] == "CALENDAR_PROVIDER_ERROR"


def test_cancel_redirects_back(client, make_user, auth_headers, fake_provider):
    make_user(grant_id="grant-1", grant_email="host@example.com")
    fake_provider.events = [booking("evt_1")]
    r = client.post("/dashboard/meetings/cancel", data={"eventId": "evt_1"},
                    headers=auth_headers(), follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard/meetings"
    assert fake_provider.deleted == [("grant-1", "evt_1", "host@example.com")]

    page = client.get("/dashboard/meetings", headers=auth_headers())
    assert "No meetings found" in page.text


def test_cancel_without_event_id(client, make_user, auth_headers, fake_provider):
    make_user()
    r = client.post("/dashboard/meetings/cancel", data={}, headers=auth_headers())
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "EVENT_ID_REQUIRED"
    assert fake_provider.deleted == []


def test_one_bad_timestamp_does_not_break_the_list(client, make_user, auth_headers, fake_provider):
    make_user()
    fake_provider.events = [
        booking("good"),
        booking("millis", when={"start_time": START * 1000, "end_time": (START + 1800) * 1000}),
    ]
    r = client.get("/dashboard/meetings", headers=auth_headers())
    assert r.status_code == 200
    assert 'value="good"' in r.text
    assert 'value="millis"' not in r.text

    api = client.get("/meetings", headers=auth_headers())
    assert api.status_code == 200
    assert [m["id"] for m in api.json()] == ["good"]
