"""
Tests for the portal's JSON endpoints.
"""

from datetime import date, timedelta

from services.client_state import EXTENSION_KEY, ClientStateRegistry
from utils.errors import NetworkError, ServerError


def booking_body(**overrides):
    check_in = date.today() + timedelta(days=30)
    body = {
        'room_id': 101,
        'contact_name': 'Nguyễn Văn A',
        'contact_email': 'khach@homestay.vn',
        'contact_phone': '0901234567',
        'check_in_date': check_in.isoformat(),
        'check_out_date': (check_in + timedelta(days=2)).isoformat(),
        'adults': 2,
        'children': 0,
    }
    body.update(overrides)
    return body


class TestHealthAndAuth:
    """Health check and auth state."""

    def test_health(self, client):
        response = client.get('/api/health')

        data = response.get_json()
        assert response.status_code == 200
        assert data['success'] is True
        assert data['data']['status'] == 'ok'
        assert data['data']['version'] == '1.0.0'

    def test_auth_state_anonymous(self, client):
        data = client.get('/api/auth/state').get_json()['data']

        assert data['status'] == 'unauthenticated'
        assert data['loading'] is False
        assert data['user'] is None

    def test_auth_state_logged_in(self, admin_client):
        data = admin_client.get('/api/auth/state').get_json()['data']

        assert data['is_authenticated'] is True
        assert data['user']['role'] == 'admin'


class TestSearchEndpoints:
    """Search triggers and side features."""

    def test_search(self, client):
        response = client.get('/api/search', query_string={'q': 'phòng đôi'})

        data = response.get_json()['data']
        assert response.status_code == 200
        assert data['status'] == 'success'
        assert data['has_results'] is True
        assert len(data['result']['rooms']) == 2
        assert data['history'] == ['phòng đôi']

    def test_page_keeps_query(self, client, fake_api):
        client.get('/api/search', query_string={'q': 'phòng đôi', 'sort_by': 'price', 'sort_order': 'asc'})

        response = client.post('/api/search/page', json={'page': 2})

        params = response.get_json()['data']['params']
        assert params['page'] == 2
        assert params['q'] == 'phòng đôi'
        assert params['sort_by'] == 'price'
        assert params['sort_order'] == 'asc'

    def test_invalid_page(self, client):
        assert client.post('/api/search/page', json={'page': 0}).status_code == 400
        assert client.post('/api/search/page', json={'page': 'two'}).status_code == 400

    def test_sort_resets_page(self, client):
        client.post('/api/search/page', json={'page': 3})

        response = client.post('/api/search/sort', json={'sort_by': 'rating', 'sort_order': 'desc'})

        params = response.get_json()['data']['params']
        assert params['page'] == 1
        assert params['sort_by'] == 'rating'

    def test_invalid_sort(self, client):
        assert client.post('/api/search/sort', json={'sort_by': 'popularity'}).status_code == 400

    def test_filters_merge(self, client):
        client.post('/api/search/filters', json={'filters': {'room_type': 'Phòng đôi', 'min_price': 500000}})

        response = client.post('/api/search/filters', json={'filters': {'min_price': None, 'guests': 2}})

        params = response.get_json()['data']['params']
        assert params['filters'] == {'room_type': 'Phòng đôi', 'guests': 2}
        assert params['page'] == 1

    def test_filters_must_be_object(self, client):
        assert client.post('/api/search/filters', json={'filters': ['a']}).status_code == 400

    def test_post_search_merges(self, client):
        client.get('/api/search', query_string={'q': 'phòng', 'guests': 2})

        response = client.post('/api/search', json={'q': 'phòng đôi'})

        params = response.get_json()['data']['params']
        assert params['q'] == 'phòng đôi'
        assert params['filters'] == {'guests': '2'}

    def test_failure_keeps_results(self, client, fake_api):
        client.get('/api/search', query_string={'q': 'phòng đôi'})
        fake_api.fail('search_rooms', ServerError('boom', status=500))

        response = client.post('/api/search/page', json={'page': 2})

        body = response.get_json()
        assert response.status_code == 502
        assert body['success'] is False
        assert body['data']['status'] == 'error'
        assert body['data']['has_results'] is True

    def test_network_failure(self, client, fake_api):
        fake_api.fail('search_rooms', NetworkError('down'))

        assert client.get('/api/search', query_string={'q': 'x'}).status_code == 503

    def test_state_and_clear(self, client):
        client.get('/api/search', query_string={'q': 'phòng đôi'})

        state = client.get('/api/search/state').get_json()['data']
        assert state['has_query'] is True

        cleared = client.post('/api/search/clear').get_json()['data']
        assert cleared['status'] == 'idle'
        assert cleared['result'] is None

    def test_cancel(self, client):
        response = client.post('/api/search/cancel')
        assert response.get_json()['data']['is_searching'] is False

    def test_suggestions(self, client):
        body = client.get('/api/search/suggestions', query_string={'q': 'Phòng g'}).get_json()

        assert body['data']['suggestions'] == ['Phòng gia đình']
        assert body['superseded'] is False

    def test_suggestions_failure_is_silent(self, client, fake_api):
        fake_api.fail('search_suggestions', ServerError('boom', status=500))

        response = client.get('/api/search/suggestions', query_string={'q': 'Phòng'})

        assert response.status_code == 200
        assert response.get_json()['data']['suggestions'] == []

    def test_popular(self, client):
        data = client.get('/api/search/popular').get_json()['data']
        assert data['searches'][0]['query'] == 'phòng đôi'

    def test_history(self, client):
        client.get('/api/search', query_string={'q': 'phòng đôi'})
        client.get('/api/search', query_string={'q': 'phòng gia đình'})

        history = client.get('/api/search/history').get_json()['data']['history']
        assert history == ['phòng gia đình', 'phòng đôi']

        response = client.delete('/api/search/history', query_string={'q': 'phòng đôi'})
        assert response.get_json()['data']['history'] == ['phòng gia đình']

        response = client.delete('/api/search/history')
        assert response.get_json()['data']['history'] == []

    def test_history_survives_new_app_state(self, app, client):
        client.get('/api/search', query_string={'q': 'phòng đôi'})
        app.extensions[EXTENSION_KEY] = ClientStateRegistry()

        history = client.get('/api/search/history').get_json()['data']['history']

        assert history == ['phòng đôi']

    def test_click(self, client, fake_api):
        client.get('/api/search', query_string={'q': 'phòng đôi'})

        response = client.post('/api/search/click', json={'result_id': 101, 'position': 1})

        assert response.get_json()['data']['logged'] is True
        assert fake_api.count('log_search_click') == 1

    def test_click_requires_result_id(self, client):
        assert client.post('/api/search/click', json={}).status_code == 400


class TestBookingEndpoint:
    """POST /api/bookings."""

    def test_requires_login(self, client, fake_api):
        response = client.post('/api/bookings', json=booking_body())

        assert response.status_code == 401
        assert fake_api.count('create_booking') == 0

    def test_create_booking(self, customer_client, fake_api):
        response = customer_client.post('/api/bookings', json=booking_body())

        body = response.get_json()
        assert response.status_code == 201
        assert body['data']['booking_id'] == 500
        assert body['data']['status'] == 'pending'
        assert fake_api.count('create_booking') == 1

    def test_validation_errors(self, customer_client, fake_api):
        response = customer_client.post('/api/bookings', json=booking_body(contact_email='bad', adults=0))

        body = response.get_json()
        assert response.status_code == 400
        assert set(body['errors']) == {'contact_email', 'adults'}
        assert body['data']['draft']['contact_email'] == 'bad'
        assert fake_api.count('create_booking') == 0

    def test_non_string_fields_are_field_errors(self, customer_client, fake_api):
        response = customer_client.post('/api/bookings', json=booking_body(
            contact_name=12345, contact_email=12345, contact_phone=901234567,
            special_requests={'floor': 'high'},
        ))

        body = response.get_json()
        assert response.status_code == 400
        assert set(body['errors']) == {'contact_email', 'contact_phone'}
        assert body['data']['draft']['contact_name'] == '12345'
        assert fake_api.count('create_booking') == 0

    def test_missing_room(self, customer_client):
        assert customer_client.post('/api/bookings', json=booking_body(room_id=None)).status_code == 400

    def test_upstream_failure_returns_draft(self, customer_client, fake_api):
        fake_api.fail('create_booking', NetworkError('down'))

        response = customer_client.post('/api/bookings', json=booking_body(special_requests='Tầng cao'))

        body = response.get_json()
        assert response.status_code == 503
        assert body['data']['draft']['special_requests'] == 'Tầng cao'

    def test_rejected_token(self, customer_client, fake_api):
        fake_api.tokens.clear()

        response = customer_client.post('/api/bookings', json=booking_body())

        assert response.status_code == 401
        assert customer_client.get('/api/auth/state').get_json()['data']['is_authenticated'] is False
