"""
Pytest configuration and fixtures.
The REST API is replaced by an in-memory FakeApi injected through
API_CLIENT_FACTORY, so no test reaches the network.
"""

import os
import pytest

from api_client.client import AuthPayload
from models.booking import BookingConfirmation
from models.search import SearchResult
from models.user import UserProfile
from utils.errors import AuthenticationError, AuthorizationError, NotFoundError, ConflictError, RequestRejectedError

os.environ['FLASK_ENV'] = 'test'

USERS = {
    'admin@homestay.vn': ('admin123', {
        'id': 1, 'email': 'admin@homestay.vn', 'full_name': 'Quản Trị', 'role': 'admin', 'is_active': True,
    }),
    'staff@homestay.vn': ('staff123', {
        'id': 2, 'email': 'staff@homestay.vn', 'full_name': 'Nhân Viên', 'role': 'staff', 'is_active': True,
    }),
    'khach@homestay.vn': ('khach123', {
        'id': 3, 'email': 'khach@homestay.vn', 'full_name': 'Nguyễn Văn A', 'role': 'customer',
        'is_active': True, 'phone': '0901234567',
    }),
    'inactive@homestay.vn': ('inactive123', {
        'id': 4, 'email': 'inactive@homestay.vn', 'full_name': 'Tạm Khóa', 'role': 'customer', 'is_active': 0,
    }),
}

ROOMS = {
    101: {'room_id': 101, 'room_number': '101', 'room_type': 'Phòng đôi', 'capacity': 2, 'price_per_night': 850000},
    102: {'room_id': 102, 'room_number': '102', 'room_type': 'Phòng đôi', 'capacity': 2, 'price_per_night': 900000},
    201: {'room_id': 201, 'room_number': '201', 'room_type': 'Phòng gia đình', 'capacity': 4, 'price_per_night': 1500000},
}


class FakeApi:
    """
    In-memory stand-in for HomestayApiClient.

    State is shared across requests of one test. fail(method, error) makes
    the next calls to method raise error; calls records every call by name.
    """

    def __init__(self):
        self.token_getter = None
        self.calls = []
        self.failures = {}
        self.tokens = {}
        self.bookings = {}
        self.reset_tokens = {'valid-reset-token'}
        self.search_log_id = 77

    def bind(self, token_getter=None):
        """API_CLIENT_FACTORY entry point."""
        self.token_getter = token_getter
        return self

    def fail(self, method: str, error: Exception) -> None:
        self.failures[method] = error

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    def _call(self, name: str, *args):
        self.calls.append((name, args))
        if name in self.failures:
            raise self.failures[name]

    def _current_user(self, token=None):
        token = token or (self.token_getter() if self.token_getter else None)
        if token not in self.tokens:
            raise AuthenticationError('Invalid token', status=401)
        return self.tokens[token]

    # Auth

    def login(self, identifier, secret):
        self._call('login', identifier)
        record = USERS.get(identifier)
        if record is None or record[0] != secret:
            raise AuthenticationError('Invalid credentials', status=401)
        token = f'token-{record[1]["id"]}-{len(self.tokens)}'
        self.tokens[token] = record[1]
        return AuthPayload(token=token, user=UserProfile.from_dict(record[1]))

    def register(self, fields):
        self._call('register', fields['email'])
        if fields['email'] in USERS:
            raise ConflictError('Email already registered', status=409)
        user = {'id': 100 + len(self.tokens), 'email': fields['email'], 'full_name': fields['full_name'],
                'phone': fields['phone'], 'role': 'customer', 'is_active': True}
        token = f'token-new-{len(self.tokens)}'
        self.tokens[token] = user
        return AuthPayload(token=token, user=UserProfile.from_dict(user))

    def logout(self, token=None):
        self._call('logout')
        self.tokens.pop(token, None)

    def me(self, token=None):
        self._call('me')
        return UserProfile.from_dict(self._current_user(token))

    def lookup_account(self, id_number):
        self._call('lookup_account', id_number)
        if id_number != '012345678901':
            raise NotFoundError('Account not found', status=404)
        return {'full_name': 'Nguyễn Văn A', 'email': 'khach@homestay.vn', 'phone': '0901234567',
                'password': 'Tmp12345'}

    def forgot_password(self, email):
        self._call('forgot_password', email)

    def reset_password(self, token, new_password):
        self._call('reset_password', token)
        if token not in self.reset_tokens:
            raise AuthenticationError('Invalid or expired token', status=401)
        self.reset_tokens.discard(token)
        return True

    def change_password(self, current_password, new_password):
        self._call('change_password')
        user = self._current_user()
        if USERS[user['email']][0] != current_password:
            raise AuthenticationError('Current password is incorrect', status=401)

    def update_profile(self, fields):
        self._call('update_profile', fields)
        token = self.token_getter() if self.token_getter else None
        user = dict(self._current_user(token), **fields)
        self.tokens[token] = user
        # The customers endpoint answers without role or id
        customer = {k: v for k, v in user.items() if k not in ('id', 'role')}
        return dict(customer, customer_id=user['id'])

    # Rooms

    def get_room(self, room_id):
        self._call('get_room', room_id)
        if int(room_id) not in ROOMS:
            raise NotFoundError('Room not found', status=404)
        return dict(ROOMS[int(room_id)])

    def get_room_reviews(self, room_id, page=1, limit=10):
        self._call('get_room_reviews', room_id, page)
        return {
            'reviews': [{'customer_name': 'Lan', 'rating': 5, 'comment': 'Sạch sẽ', 'created_at': '2026-09-01'}],
            'pagination': {'page': page, 'totalPages': 1, 'total': 1},
        }

    # Search

    def search_rooms(self, params):
        self._call('search_rooms', params)
        query = params.query.strip().lower()
        rooms = [r for r in ROOMS.values() if not query or query in r['room_type'].lower()]
        return SearchResult.from_payload({
            'rooms': rooms,
            'pagination': {'page': params.page, 'totalPages': 3 if rooms else 1, 'total': len(rooms)},
            'search': {'log_id': self.search_log_id},
        }, params)

    def search_suggestions(self, query, limit=5):
        self._call('search_suggestions', query)
        return [r['room_type'] for r in ROOMS.values() if r['room_type'].lower().startswith(query.lower())][:limit]

    def popular_searches(self, timeframe='30d', limit=10):
        self._call('popular_searches')
        return [{'query': 'phòng đôi', 'count': 12}]

    def log_search_click(self, log_id, result_id, position):
        self._call('log_search_click', log_id, result_id, position)

    # Bookings

    def create_booking(self, payload):
        self._call('create_booking', payload)
        self._current_user()
        booking_id = 500 + len(self.bookings)
        booking = dict(payload, booking_id=booking_id, status='pending', payment_status='pending')
        self.bookings[booking_id] = booking
        return BookingConfirmation.from_payload({'booking': booking, 'payment': {'status': 'pending'}})

    def get_booking(self, booking_id):
        self._call('get_booking', booking_id)
        self._current_user()
        return self._booking(booking_id)

    def _booking(self, booking_id):
        booking = self.bookings.get(int(booking_id))
        if booking is None:
            raise NotFoundError('Booking not found', status=404)
        return booking

    def cancel_booking(self, booking_id, reason=''):
        self._call('cancel_booking', booking_id, reason)
        self._current_user()
        booking = self._booking(booking_id)
        if booking['status'] not in ('pending', 'confirmed'):
            raise RequestRejectedError('Booking cannot be cancelled', status=400)
        booking.update(status='cancelled', cancellation_reason=reason)
        return booking

    def update_booking_status(self, booking_id, status, notes=''):
        self._call('update_booking_status', booking_id, status, notes)
        if self._current_user()['role'] not in ('staff', 'admin'):
            raise AuthorizationError('Access denied', status=403)
        booking = self._booking(booking_id)
        booking.update(status=status, staff_notes=notes)
        return booking

    def list_my_bookings(self, page=1, limit=10, status=None):
        self._call('list_my_bookings', page, status)
        self._current_user()
        return {'bookings': list(self.bookings.values()), 'pagination': {'page': page, 'totalPages': 1}}

    def list_bookings(self, page=1, limit=20, status=None):
        self._call('list_bookings', page, status)
        self._current_user()
        bookings = [b for b in self.bookings.values() if status is None or b['status'] == status]
        return {'bookings': bookings, 'pagination': {'page': page, 'totalPages': 1, 'total': len(bookings)}}

    def health(self):
        self._call('health')
        return {'status': 'ok'}


@pytest.fixture
def fake_api():
    """Shared in-memory REST API."""
    return FakeApi()


@pytest.fixture
def app(fake_api):
    """Create test application backed by the fake API."""
    from app import create_app

    app = create_app('test')
    app.config['TESTING'] = True
    app.config['WTF_CSRF_ENABLED'] = False
    app.config['API_CLIENT_FACTORY'] = fake_api.bind
    yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


def login(client, email, password):
    return client.post('/login', data={'email': email, 'password': password}, follow_redirects=False)


@pytest.fixture
def customer_client(client):
    """Test client logged in as a customer."""
    login(client, 'khach@homestay.vn', 'khach123')
    return client


@pytest.fixture
def staff_client(client):
    """Test client logged in as staff."""
    login(client, 'staff@homestay.vn', 'staff123')
    return client


@pytest.fixture
def admin_client(client):
    """Test client logged in as admin."""
    login(client, 'admin@homestay.vn', 'admin123')
    return client
