import pytest

from lodging.throttles import LoginRateThrottle

from .helpers import PASSWORD

pytestmark = pytest.mark.django_db


def test_health_reports_database(api):
    r = api.get('/health')
    assert r.status_code == 200
    body = r.json()
    assert body['status'] == 'OK'
    assert body['database']['connected'] is True
    assert body['database']['vendor'] == 'sqlite'


def test_api_index_lists_routes(api):
    r = api.get('/api')
    assert r.status_code == 200
    assert r.data['data']['endpoints']['bookings'] == '/api/bookings'


def test_unknown_route_returns_json_404(api):
    r = api.get('/api/does-not-exist/anywhere')
    assert r.status_code == 404
    body = r.json()
    assert body['success'] is False
    assert body['type'] == 'NotFoundError'
    assert body['message'] == 'Route GET /api/does-not-exist/anywhere not found'
    assert '/api/hotels' in body['availableRoutes']


def test_missing_credentials_are_enveloped(api):
    r = api.get('/api/users/profile')
    assert r.status_code == 401
    assert r.data['success'] is False
    assert r.data['type'] == 'AuthenticationError'


def test_garbage_bearer_token_is_rejected(api):
    api.credentials(HTTP_AUTHORIZATION='Bearer not.a.token')
    r = api.get('/api/users/profile')
    assert r.status_code == 401
    assert r.data['type'] == 'AuthenticationError'


def test_login_is_rate_limited(monkeypatch, api, user):
    monkeypatch.setattr(LoginRateThrottle, 'rate', '2/min', raising=False)
    for _ in range(2):
        api.post('/api/auth/login', {'email': 'guest@example.com', 'password': PASSWORD}, format='json')
    r = api.post('/api/auth/login', {'email': 'guest@example.com', 'password': PASSWORD}, format='json')
    assert r.status_code == 429
    assert r.data['type'] == 'RateLimitError'
    assert r.data['message'] == 'Too many requests, please try again later'
    assert r.data['retryAfter'] > 0


def test_malformed_json_is_a_validation_error(user_api):
    r = user_api.generic('POST', '/api/bookings', '{"hotelId": ', content_type='application/json')
    assert r.status_code == 400
    assert r.data['type'] == 'ValidationError'
