"""
Session model and durable session store.

The store wraps any mutable mapping used as durable client-side storage
(the signed Flask cookie session in the running app, a plain dict in tests).
Token and user profile live together in a single record under one key, so
readers never observe one without the other.
"""

import logging
import time
from dataclasses import dataclass
from typing import MutableMapping, Optional

from models.user import UserProfile

logger = logging.getLogger(__name__)

# Fixed storage keys
STORAGE_KEYS = {
    'session': 'homestay_auth',
    'preferences': 'homestay_preferences',
    'search_history': 'homestay_search_history',
    'client_id': 'homestay_client_id',
}


@dataclass(frozen=True)
class Session:
    """Authentication token and user profile of the current login."""

    token: Optional[str] = None
    user: Optional[UserProfile] = None
    validated_at: float = 0.0

    @property
    def is_empty(self) -> bool:
        return self.token is None


EMPTY_SESSION = Session()


class SessionStore:
    """
    Read/write/clear access to the persisted session.

    All access goes through these methods; the storage mapping is never
    mutated directly by callers.
    """

    def __init__(self, storage: MutableMapping, clock=time.time):
        self._storage = storage
        self._clock = clock

    def read(self) -> Session:
        """
        Read the persisted session.

        A partial or malformed record is discarded and reported as empty.

        Returns:
            Session (EMPTY_SESSION when nothing valid is stored)
        """
        record = self._storage.get(STORAGE_KEYS['session'])
        if not record:
            return EMPTY_SESSION

        try:
            token = record['token']
            user = UserProfile.from_dict(record['user'])
            validated_at = float(record.get('validated_at') or 0)
            if not token or not isinstance(token, str):
                raise ValueError('empty token')
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding malformed stored session: {e}")
            self.clear()
            return EMPTY_SESSION

        return Session(token=token, user=user, validated_at=validated_at)

    def write(self, token: str, user: UserProfile, validated: bool = True) -> Session:
        """
        Persist token and user together.

        Args:
            token: Auth token (non-empty)
            user: User profile
            validated: Mark the session as validated by the server now

        Returns:
            The stored Session
        """
        if not token or user is None:
            raise ValueError('Session requires both token and user')

        validated_at = self._clock() if validated else 0.0
        self._storage[STORAGE_KEYS['session']] = {
            'token': token,
            'user': user.to_dict(),
            'validated_at': validated_at,
        }
        return Session(token=token, user=user, validated_at=validated_at)

    def clear(self) -> None:
        """Remove the persisted session. Safe to call when already empty."""
        self._storage.pop(STORAGE_KEYS['session'], None)

    # Preferences

    def get_preferences(self) -> dict:
        return dict(self._storage.get(STORAGE_KEYS['preferences']) or {})

    def set_preference(self, key: str, value) -> None:
        preferences = self.get_preferences()
        preferences[key] = value
        self._storage[STORAGE_KEYS['preferences']] = preferences

    # Search history

    def get_search_history(self) -> list:
        history = self._storage.get(STORAGE_KEYS['search_history']) or []
        return [item for item in history if isinstance(item, str)]

    def set_search_history(self, entries: list) -> None:
        self._storage[STORAGE_KEYS['search_history']] = list(entries)

    # Client identity

    def get_client_id(self) -> Optional[str]:
        return self._storage.get(STORAGE_KEYS['client_id'])

    def set_client_id(self, client_id: str) -> None:
        self._storage[STORAGE_KEYS['client_id']] = client_id
