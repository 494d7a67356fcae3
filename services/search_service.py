"""
Search Service - room search state machine for one browser client.

States:
    IDLE -> SEARCHING -> {SUCCESS, ERROR}

Every trigger (search, change_page, change_sort, apply_filters) issues a new
ticket. Only the response for the latest ticket is applied; responses for
older tickets are discarded, whatever order they resolve in. State changes
happen under a lock and network calls outside it, so concurrent requests of
the same client interleave only at the network boundary.
"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from models.search import SearchParams, SearchResult, SearchHistory, SortBy, SortOrder
from utils.errors import ApiError
from utils.events import log_event


class SearchStatus(str, Enum):
    IDLE = 'idle'
    SEARCHING = 'searching'
    SUCCESS = 'success'
    ERROR = 'error'


@dataclass(frozen=True)
class SearchSnapshot:
    """Consistent copy of the search state."""

    status: SearchStatus
    params: SearchParams
    result: Optional[SearchResult]
    error: Optional[ApiError]
    history: tuple
    ticket: int
    applied: bool = True

    @property
    def is_searching(self) -> bool:
        return self.status == SearchStatus.SEARCHING

    @property
    def has_results(self) -> bool:
        return self.result is not None and self.result.has_results

    @property
    def has_query(self) -> bool:
        return self.params.has_query

    @property
    def has_filters(self) -> bool:
        return self.params.has_filters

    def to_dict(self) -> dict:
        return {
            'status': self.status.value,
            'params': self.params.to_dict(),
            'result': self.result.to_dict() if self.result else None,
            'error': self.error.message if self.error else None,
            'history': list(self.history),
            'is_searching': self.is_searching,
            'has_query': self.has_query,
            'has_filters': self.has_filters,
            'has_results': self.has_results,
            'applied': self.applied,
        }


class SearchController:
    """
    Search lifecycle for one client.

    Args:
        history: Initial search history entries (most recent first)
        history_limit: Maximum history entries
        page_size: Default page size
        debounce_seconds: Suggestion debounce interval
        suggestion_limit: Number of suggestions requested
        sleep: Sleep function used by the debounce
    """

    def __init__(self, history=None, history_limit: int = 10, page_size: int = 12,
                 debounce_seconds: float = 0.3, suggestion_limit: int = 5,
                 sleep: Callable[[float], None] = time.sleep):
        self._lock = threading.Lock()
        self._sleep = sleep
        self.debounce_seconds = debounce_seconds
        self.suggestion_limit = suggestion_limit

        self.status = SearchStatus.IDLE
        self.params = SearchParams(limit=page_size)
        self.result: Optional[SearchResult] = None
        self.error: Optional[ApiError] = None
        self.history = SearchHistory(history, limit=history_limit)

        self._issued = 0
        self._suggestion_seq = 0

    # =========================================================================
    # TICKETS
    # =========================================================================

    def begin(self, params: SearchParams) -> int:
        """
        Enter SEARCHING for params and issue a new ticket.

        Returns:
            Ticket identifying this request
        """
        with self._lock:
            self._issued += 1
            self.params = params
            self.status = SearchStatus.SEARCHING
            return self._issued

    def complete(self, ticket: int, result: SearchResult) -> bool:
        """
        Apply a successful response if its ticket is still current.

        Returns:
            True if applied, False if discarded as stale
        """
        with self._lock:
            latest = self._issued
            if ticket != latest:
                stale = True
            else:
                stale = False
                self.result = result
                self.error = None
                self.status = SearchStatus.SUCCESS
                if self.params.has_query:
                    self.history.add(self.params.query)
        if stale:
            log_event('search.stale_discarded', logging.DEBUG, ticket=ticket, latest=latest)
        return not stale

    def fail(self, ticket: int, error: ApiError) -> bool:
        """
        Apply a failed response if its ticket is still current.
        The previous result is kept on display.

        Returns:
            True if applied, False if discarded as stale
        """
        with self._lock:
            latest = self._issued
            if ticket != latest:
                stale = True
            else:
                stale = False
                self.error = error
                self.status = SearchStatus.ERROR
        if stale:
            log_event('search.stale_discarded', logging.DEBUG, ticket=ticket, latest=latest)
        else:
            log_event('search.failed', logging.WARNING, error=type(error).__name__)
        return not stale

    def cancel(self) -> None:
        """Drop any in-flight request (view left or unmounted)."""
        with self._lock:
            self._issued += 1
            if self.status == SearchStatus.SEARCHING:
                self.status = SearchStatus.SUCCESS if self.result is not None else SearchStatus.IDLE

    def snapshot(self, ticket: int = None, applied: bool = True) -> SearchSnapshot:
        with self._lock:
            return SearchSnapshot(
                status=self.status,
                params=self.params,
                result=self.result,
                error=self.error,
                history=tuple(self.history.entries()),
                ticket=self._issued if ticket is None else ticket,
                applied=applied,
            )

    # =========================================================================
    # TRIGGERS
    # =========================================================================

    def run(self, api, params: SearchParams) -> SearchSnapshot:
        """Issue a search for params and apply the response if still current."""
        ticket = self.begin(params)
        log_event('search.started', logging.DEBUG, ticket=ticket, page=params.page)
        try:
            result = api.search_rooms(params)
        except ApiError as e:
            applied = self.fail(ticket, e)
        else:
            applied = self.complete(ticket, result)
        return self.snapshot(ticket, applied)

    def search(self, api, **changes) -> SearchSnapshot:
        """
        Search with changes merged into the current params.
        page resets to 1 unless given.
        """
        if 'filters' in changes:
            changes['filters'] = self.params.merge_filters(changes['filters'])
        return self.run(api, self.params.evolve(**changes))

    def change_page(self, api, page: int) -> SearchSnapshot:
        """Go to page, keeping query, filters and sort."""
        return self.run(api, self.params.evolve(page=int(page)))

    def change_sort(self, api, sort_by, sort_order=SortOrder.DESC) -> SearchSnapshot:
        """Change sort; page resets to 1."""
        return self.run(api, self.params.evolve(sort_by=SortBy(sort_by), sort_order=SortOrder(sort_order)))

    def apply_filters(self, api, filters: dict) -> SearchSnapshot:
        """Merge filters; empty values remove a filter; page resets to 1."""
        return self.run(api, self.params.evolve(filters=self.params.merge_filters(filters)))

    def clear(self) -> SearchSnapshot:
        """Reset params and results, dropping any in-flight request."""
        with self._lock:
            self._issued += 1
            self.params = SearchParams(limit=self.params.limit)
            self.result = None
            self.error = None
            self.status = SearchStatus.IDLE
        return self.snapshot()

    # =========================================================================
    # SUGGESTIONS & ANALYTICS
    # =========================================================================

    def suggestions(self, api, text: str) -> Optional[list]:
        """
        Debounced suggestions for raw input text.

        Failures degrade silently to an empty list and never touch the
        search state.

        Returns:
            List of suggestions, or None when a newer call superseded this one
        """
        query = (text or '').strip()
        with self._lock:
            self._suggestion_seq += 1
            seq = self._suggestion_seq
        if len(query) < 1:
            return []

        if self.debounce_seconds > 0:
            self._sleep(self.debounce_seconds)

        with self._lock:
            if seq != self._suggestion_seq:
                return None

        try:
            suggestions = api.search_suggestions(query, self.suggestion_limit)
        except ApiError as e:
            log_event('search.suggestions_failed', logging.DEBUG, error=type(e).__name__)
            return []

        with self._lock:
            if seq != self._suggestion_seq:
                return None
        return list(suggestions)

    def popular_searches(self, api, limit: int = 10) -> list:
        """Popular searches; failures degrade silently to an empty list."""
        try:
            return api.popular_searches('30d', limit)
        except ApiError as e:
            log_event('search.popular_failed', logging.DEBUG, error=type(e).__name__)
            return []

    def log_result_click(self, api, result_id, position: int) -> bool:
        """
        Record a click on a search result for analytics.

        Returns:
            True if the click was sent
        """
        with self._lock:
            log_id = self.result.log_id if self.result else None
        if not log_id:
            return False
        try:
            api.log_search_click(log_id, result_id, position)
        except ApiError as e:
            log_event('search.click_log_failed', logging.DEBUG, error=type(e).__name__)
            return False
        return True

    # =========================================================================
    # HISTORY
    # =========================================================================

    def history_entries(self) -> list:
        with self._lock:
            return self.history.entries()

    def remove_history(self, query: str) -> list:
        with self._lock:
            self.history.remove(query)
            return self.history.entries()

    def clear_history(self) -> list:
        with self._lock:
            self.history.clear()
            return []
