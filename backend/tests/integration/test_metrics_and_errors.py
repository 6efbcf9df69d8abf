from booking_dashboard.errors import CalendarProviderError


def test_metrics_endpoint_exposes_prometheus_after_requests(client, make_user, auth_headers):
    make_user()
    assert client.get('/healthz').status_code == 200
    assert client.get('/dashboard/meetings', headers=auth_headers()).status_code == 200
    m = client.get('/metrics')
    assert m.status_code == 200
    body = m.text
    assert 'booking_dashboard_requests_total' in body
    assert 'booking_dashboard_meetings_fetch_total' in body


def test_cancel_outcome_counted(client, make_user, auth_headers, fake_provider):
    make_user()
    fake_provider.error = CalendarProviderError("down")
    r = client.delete('/meetings/evt_1', headers=auth_headers())
    assert r.status_code == 502
    body = client.get('/metrics').text
    assert 'booking_dashboard_meetings_cancel_total{outcome="error"}' in body


def test_healthz_reports_backends(client):
    data = client.get('/healthz').json()
    assert data['status'] == 'ok'
    assert data['oauthStateBackend'] == 'memory'
    assert data['tracing'] == 'disabled'


def test_request_id_echoed(client):
    r = client.get('/healthz', headers={'X-Request-ID': 'abc-123'})
    assert r.headers['X-Request-ID'] == 'abc-123'
    assert client.get('/healthz').headers['X-Request-ID']


def test_unknown_route_is_404(client):
    assert client.get('/nope').status_code == 404
