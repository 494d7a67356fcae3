"""
HTTP client for the homestay REST API.

Every request carries a fixed timeout. GET requests are retried with
exponential backoff on connection errors, timeouts and 502/503/504 answers;
other methods are sent exactly once (a retried POST could create a duplicate
booking).
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from models.booking import BookingConfirmation
from models.search import SearchParams, SearchResult
from models.user import UserProfile
from utils.errors import ApiError, NetworkError, ServerError, error_from_response

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = frozenset({502, 503, 504})


@dataclass(frozen=True)
class AuthPayload:
    """Token and profile returned by login/register."""

    token: Optional[str]
    user: UserProfile


def _unwrap(body):
    """Strip the {success, message, data} envelope used by the API."""
    if isinstance(body, dict) and 'data' in body and ('success' in body or 'message' in body):
        return body['data']
    return body


def _booking(data) -> dict:
    if isinstance(data, dict) and isinstance(data.get('booking'), dict):
        return data['booking']
    return data if isinstance(data, dict) else {}


class HomestayApiClient:
    """
    Typed access to the REST API resources.

    Args:
        base_url: API root, e.g. http://localhost:5000/api
        timeout: Seconds per attempt
        max_retries: Extra attempts for GET requests
        backoff: Base backoff in seconds, doubled per attempt
        token_getter: Callable returning the current bearer token or None
        session: requests.Session to use (one is created if omitted)
        sleep: Sleep function used between retries
    """

    def __init__(self, base_url: str, timeout: float = 10, max_retries: int = 3,
                 backoff: float = 0.5, token_getter: Callable[[], Optional[str]] = None,
                 session: requests.Session = None, sleep: Callable[[float], None] = time.sleep):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max(0, int(max_retries))
        self.backoff = backoff
        self.token_getter = token_getter or (lambda: None)
        self.session = session or requests.Session()
        self.session.headers.setdefault('Accept', 'application/json')
        self._sleep = sleep

    def close(self) -> None:
        self.session.close()

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    def request(self, method: str, path: str, params: dict = None, json: dict = None,
                auth: bool = True, token: str = None, unwrap: bool = True):
        """
        Send a request and return the JSON body.

        Args:
            method: HTTP method
            path: Path relative to base_url
            params: Query-string parameters
            json: JSON body
            auth: Attach the bearer token when one is available
            token: Explicit token overriding token_getter
            unwrap: Strip the {success, message, data} envelope

        Raises:
            ApiError subclass for error answers, NetworkError for transport failures
        """
        method = method.upper()
        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {}
        if auth:
            bearer = token or self.token_getter()
            if bearer:
                headers['Authorization'] = f'Bearer {bearer}'

        attempts = 1 + (self.max_retries if method == 'GET' else 0)
        for attempt in range(attempts):
            is_last = attempt == attempts - 1
            try:
                response = self.session.request(
                    method, url, params=params, json=json,
                    headers=headers, timeout=self.timeout
                )
            except (requests.ConnectionError, requests.Timeout) as e:
                logger.warning(f"{method} {path} attempt {attempt + 1}/{attempts} failed: {e}")
                if is_last:
                    raise NetworkError(str(e) or 'Connection failed') from e
                self._backoff(attempt)
                continue
            except requests.RequestException as e:
                raise NetworkError(str(e) or 'Request failed') from e

            if response.status_code in RETRYABLE_STATUSES and not is_last:
                logger.warning(
                    f"{method} {path} attempt {attempt + 1}/{attempts} "
                    f"answered {response.status_code}, retrying"
                )
                self._backoff(attempt)
                continue

            body = self._handle_response(response)
            return _unwrap(body) if unwrap else body

        raise AssertionError('unreachable')

    def _backoff(self, attempt: int) -> None:
        delay = self.backoff * (2 ** attempt)
        if delay > 0:
            self._sleep(delay)

    def _handle_response(self, response: requests.Response):
        try:
            body = response.json() if response.content else None
        except ValueError:
            body = None

        if response.status_code >= 400:
            raise error_from_response(response.status_code, body)

        if body is None and response.content:
            raise ServerError('Invalid JSON response', status=response.status_code)

        return body

    def get(self, path: str, **kwargs):
        return self.request('GET', path, **kwargs)

    def post(self, path: str, **kwargs):
        return self.request('POST', path, **kwargs)

    def put(self, path: str, **kwargs):
        return self.request('PUT', path, **kwargs)

    # =========================================================================
    # AUTH
    # =========================================================================

    def login(self, identifier: str, secret: str) -> AuthPayload:
        data = self.post('/auth/login', json={'email': identifier, 'password': secret}, auth=False)
        return self._auth_payload(data)

    def register(self, fields: dict) -> AuthPayload:
        data = self.post('/auth/register', json=fields, auth=False)
        return self._auth_payload(data)

    def logout(self, token: str = None) -> None:
        self.post('/auth/logout', token=token)

    def me(self, token: str = None) -> UserProfile:
        data = self.get('/auth/me', token=token)
        if isinstance(data, dict) and isinstance(data.get('user'), dict):
            data = data['user']
        return self._profile(data)

    def lookup_account(self, id_number: str) -> dict:
        data = self.post('/auth/lookup-account', json={'id_number': id_number}, auth=False)
        return dict(data or {})

    def forgot_password(self, email: str) -> None:
        self.post('/auth/forgot-password', json={'email': email}, auth=False)

    def reset_password(self, token: str, new_password: str) -> bool:
        data = self.post(
            '/auth/reset-password',
            json={'token': token, 'newPassword': new_password},
            auth=False
        )
        if isinstance(data, dict) and 'success' in data:
            return bool(data['success'])
        return True

    def change_password(self, current_password: str, new_password: str) -> None:
        self.post('/auth/change-password', json={
            'currentPassword': current_password,
            'newPassword': new_password,
        })

    def update_profile(self, fields: dict) -> dict:
        """
        Update the logged-in customer's profile.

        Returns:
            The stored profile as answered by the API (may omit role)
        """
        data = self.put('/customers/profile', json=fields)
        if isinstance(data, dict):
            for key in ('customer', 'user'):
                if isinstance(data.get(key), dict):
                    return data[key]
            return data
        return {}

    def _auth_payload(self, data) -> AuthPayload:
        if not isinstance(data, dict):
            raise ServerError('Invalid authentication response')
        token = data.get('token') or data.get('accessToken')
        user_data = data.get('user') or data.get('customer')
        return AuthPayload(token=token, user=self._profile(user_data))

    @staticmethod
    def _profile(data) -> UserProfile:
        try:
            return UserProfile.from_dict(data)
        except ValueError as e:
            raise ServerError(f'Invalid user profile: {e}', payload=data) from e

    # =========================================================================
    # ROOMS & REVIEWS
    # =========================================================================

    def get_room(self, room_id) -> dict:
        data = self.get(f'/rooms/{room_id}', auth=False)
        if isinstance(data, dict) and isinstance(data.get('room'), dict):
            return data['room']
        return data or {}

    def get_room_reviews(self, room_id, page: int = 1, limit: int = 10) -> dict:
        """
        Fetch a page of room reviews.

        Returns:
            Dict with 'reviews' list and 'pagination' dict (page, totalPages, total)
        """
        body = self.request(
            'GET', f'/rooms/{room_id}/reviews',
            params={'page': page, 'limit': limit}, auth=False, unwrap=False
        )
        reviews, pagination = [], {}
        if isinstance(body, list):
            reviews = body
        elif isinstance(body, dict):
            data = body.get('data', body)
            if isinstance(data, list):
                reviews = data
                pagination = body.get('pagination') or {}
            elif isinstance(data, dict):
                reviews = data.get('reviews') or []
                pagination = data.get('pagination') or body.get('pagination') or {}
        return {
            'reviews': reviews if isinstance(reviews, list) else [],
            'pagination': {
                'page': pagination.get('page') or page,
                'totalPages': pagination.get('totalPages') or 1,
                'total': pagination.get('total') or len(reviews),
            },
        }

    # =========================================================================
    # SEARCH
    # =========================================================================

    def search_rooms(self, params: SearchParams) -> SearchResult:
        data = self.get('/search/rooms', params=params.to_query())
        return SearchResult.from_payload(data if isinstance(data, dict) else {}, params)

    def search_suggestions(self, query: str, limit: int = 5) -> list:
        data = self.get('/search/suggestions', params={'q': query, 'limit': limit}, auth=False)
        suggestions = (data or {}).get('suggestions') if isinstance(data, dict) else data
        return list(suggestions or [])

    def popular_searches(self, timeframe: str = '30d', limit: int = 10) -> list:
        data = self.get('/search/popular', params={'timeframe': timeframe, 'limit': limit}, auth=False)
        searches = (data or {}).get('searches') if isinstance(data, dict) else data
        return list(searches or [])

    def log_search_click(self, log_id, result_id, position: int) -> None:
        self.post('/search/click', json={
            'log_id': log_id,
            'result_id': result_id,
            'position': position,
        })

    # =========================================================================
    # BOOKINGS
    # =========================================================================

    def create_booking(self, payload: dict) -> BookingConfirmation:
        data = self.post('/bookings', json=payload)
        try:
            return BookingConfirmation.from_payload(data)
        except (TypeError, ValueError, AttributeError) as e:
            raise ServerError(f'Invalid booking response: {e}', payload=data) from e

    def get_booking(self, booking_id) -> dict:
        return _booking(self.get(f'/bookings/{booking_id}'))

    def list_my_bookings(self, page: int = 1, limit: int = 10, status: str = None) -> dict:
        params = {'page': page, 'limit': limit, 'sort_by': 'created_at', 'sort_order': 'desc'}
        if status:
            params['status'] = status
        data = self.get('/bookings/my', params=params)
        if isinstance(data, list):
            return {'bookings': data, 'pagination': {}}
        return {
            'bookings': (data or {}).get('bookings') or [],
            'pagination': (data or {}).get('pagination') or {},
        }

    def cancel_booking(self, booking_id, reason: str = '') -> dict:
        data = self.put(f'/bookings/{booking_id}/cancel', json={'reason': reason})
        return _booking(data)

    def update_booking_status(self, booking_id, status: str, notes: str = '') -> dict:
        """Set a booking's status (staff/admin)."""
        data = self.put(f'/bookings/{booking_id}/status', json={'status': status, 'notes': notes})
        return _booking(data)

    def list_bookings(self, page: int = 1, limit: int = 20, status: str = None) -> dict:
        """All bookings (staff/admin)."""
        params = {'page': page, 'limit': limit}
        if status:
            params['status'] = status
        data = self.get('/bookings', params=params)
        if isinstance(data, list):
            return {'bookings': data, 'pagination': {}}
        return {
            'bookings': (data or {}).get('bookings') or [],
            'pagination': (data or {}).get('pagination') or {},
        }

    # =========================================================================
    # HEALTH
    # =========================================================================

    def health(self) -> dict:
        data = self.get('/health', auth=False)
        return data if isinstance(data, dict) else {'status': 'ok'}


__all__ = ['HomestayApiClient', 'AuthPayload', 'ApiError', 'RETRYABLE_STATUSES']
