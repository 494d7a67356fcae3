"""
Per-browser client state.

A random client id is kept in the browser's cookie session; the search
controller and booking submission of that client are held in a bounded,
least-recently-used registry owned by the Flask app.
"""

import logging
import secrets
import threading
from collections import OrderedDict

from flask import current_app, session

from models.session import SessionStore
from services.booking_service import BookingSubmission
from services.search_service import SearchController

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'homestay_client_state'


class ClientState:
    """Search and booking state of one browser client."""

    def __init__(self, client_id: str, search: SearchController, booking: BookingSubmission = None):
        self.client_id = client_id
        self.search = search
        self.booking = booking or BookingSubmission()


class ClientStateRegistry:
    """
    Bounded LRU map of client id -> ClientState.

    Args:
        capacity: Maximum number of clients held; the least recently used is evicted
    """

    def __init__(self, capacity: int = 1000):
        if capacity < 1:
            raise ValueError('capacity must be >= 1')
        self.capacity = capacity
        self._states = OrderedDict()
        self._lock = threading.Lock()

    def get_or_create(self, client_id: str, factory) -> ClientState:
        """
        Get the state of client_id, creating it with factory() if absent.

        Args:
            client_id: Client identifier
            factory: Callable returning a new ClientState

        Returns:
            ClientState
        """
        with self._lock:
            state = self._states.get(client_id)
            if state is not None:
                self._states.move_to_end(client_id)
                return state

            state = factory()
            self._states[client_id] = state
            while len(self._states) > self.capacity:
                evicted, _ = self._states.popitem(last=False)
                logger.debug(f"Evicted client state {evicted[:8]}")
            return state

    def discard(self, client_id: str) -> None:
        with self._lock:
            self._states.pop(client_id, None)

    def __contains__(self, client_id) -> bool:
        with self._lock:
            return client_id in self._states

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)


def init_client_state(app) -> ClientStateRegistry:
    """Create the app's client state registry."""
    registry = ClientStateRegistry(app.config.get('CLIENT_STATE_CAPACITY', 1000))
    app.extensions[EXTENSION_KEY] = registry
    return registry


def get_client_state() -> ClientState:
    """
    Get the client state of the current browser, creating the client id and
    the state on first use. Search history is seeded from the cookie session.

    Returns:
        ClientState
    """
    store = SessionStore(session)
    client_id = store.get_client_id()
    if not client_id:
        client_id = secrets.token_urlsafe(16)
        store.set_client_id(client_id)

    config = current_app.config

    def factory():
        controller = SearchController(
            history=store.get_search_history(),
            history_limit=config.get('SEARCH_HISTORY_LIMIT', 10),
            page_size=config.get('SEARCH_PAGE_SIZE', 12),
            debounce_seconds=config.get('SUGGESTION_DEBOUNCE_MS', 300) / 1000.0,
            suggestion_limit=config.get('SUGGESTION_LIMIT', 5),
        )
        return ClientState(client_id, controller)

    registry = current_app.extensions[EXTENSION_KEY]
    return registry.get_or_create(client_id, factory)


def persist_search_history(state: ClientState) -> None:
    """Write the client's search history back to the cookie session."""
    SessionStore(session).set_search_history(state.search.history_entries())
