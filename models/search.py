"""
Room search value types: query parameters, results and local search history.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

DEFAULT_LIMIT = 12
HISTORY_LIMIT = 10


class SortBy(str, Enum):
    RELEVANCE = 'relevance'
    PRICE = 'price'
    RATING = 'rating'
    DISTANCE = 'distance'
    CREATED_AT = 'created_at'


class SortOrder(str, Enum):
    ASC = 'asc'
    DESC = 'desc'


# Filter keys understood by GET /search/rooms
FILTER_KEYS = (
    'min_price', 'max_price', 'room_type', 'location', 'amenities',
    'check_in_date', 'check_out_date', 'guests', 'available_only',
)


def _clean_filters(filters: dict) -> dict:
    """Drop empty filter values ('' and None)."""
    return {k: v for k, v in (filters or {}).items() if v is not None and v != ''}


@dataclass(frozen=True)
class SearchParams:
    """
    Search query state.

    Use evolve() to derive new params: it resets page to 1 unless page is
    among the changes.
    """

    query: str = ''
    page: int = 1
    limit: int = DEFAULT_LIMIT
    sort_by: SortBy = SortBy.RELEVANCE
    sort_order: SortOrder = SortOrder.DESC
    filters: dict = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'query', self.query or '')
        object.__setattr__(self, 'page', int(self.page))
        object.__setattr__(self, 'limit', int(self.limit))
        object.__setattr__(self, 'sort_by', SortBy(self.sort_by))
        object.__setattr__(self, 'sort_order', SortOrder(self.sort_order))
        object.__setattr__(self, 'filters', _clean_filters(self.filters))
        if self.page < 1:
            raise ValueError('page must be >= 1')
        if self.limit < 1:
            raise ValueError('limit must be > 0')

    def evolve(self, **changes) -> 'SearchParams':
        """Return new params with changes applied; page resets to 1 unless given."""
        if 'page' not in changes:
            changes['page'] = 1
        return replace(self, **changes)

    def merge_filters(self, filters: dict) -> dict:
        """Merge filters into the current ones; empty values remove a key."""
        merged = dict(self.filters)
        for key, value in (filters or {}).items():
            if value is None or value == '':
                merged.pop(key, None)
            else:
                merged[key] = value
        return merged

    @property
    def has_query(self) -> bool:
        return bool(self.query.strip())

    @property
    def has_filters(self) -> bool:
        return bool(self.filters)

    def to_query(self) -> dict:
        """Query-string parameters for GET /search/rooms."""
        params = {
            'page': self.page,
            'limit': self.limit,
            'sort_by': self.sort_by.value,
            'sort_order': self.sort_order.value,
        }
        if self.has_query:
            params['q'] = self.query.strip()
        for key, value in self.filters.items():
            if isinstance(value, (list, tuple, set)):
                value = ','.join(str(v) for v in value)
            elif isinstance(value, bool):
                value = 'true' if value else 'false'
            params[key] = value
        return params

    def to_dict(self) -> dict:
        return {
            'q': self.query,
            'page': self.page,
            'limit': self.limit,
            'sort_by': self.sort_by.value,
            'sort_order': self.sort_order.value,
            'filters': dict(self.filters),
        }

    @classmethod
    def from_args(cls, args: dict, base: Optional['SearchParams'] = None) -> 'SearchParams':
        """
        Build params from request arguments (`q`, `page`, `sort_by`, filter keys).

        Unspecified fields are taken from base; page resets to 1 unless given.
        """
        base = base or cls()
        changes = {}
        if 'q' in args or 'query' in args:
            changes['query'] = (args.get('q') if 'q' in args else args.get('query')) or ''
        if args.get('page'):
            changes['page'] = int(args['page'])
        if args.get('limit'):
            changes['limit'] = int(args['limit'])
        if args.get('sort_by'):
            changes['sort_by'] = SortBy(args['sort_by'])
        if args.get('sort_order'):
            changes['sort_order'] = SortOrder(args['sort_order'])

        filters = {key: args[key] for key in FILTER_KEYS if key in args}
        if isinstance(args.get('filters'), dict):
            filters.update(args['filters'])
        if filters:
            changes['filters'] = base.merge_filters(filters)

        return base.evolve(**changes)


@dataclass(frozen=True)
class Pagination:
    page: int = 1
    total_pages: int = 1
    total: int = 0

    @classmethod
    def from_dict(cls, data: Optional[dict], default_page: int = 1) -> 'Pagination':
        data = data or {}
        return cls(
            page=int(data.get('page') or default_page),
            total_pages=int(data.get('totalPages') or data.get('total_pages') or 1),
            total=int(data.get('total') or 0),
        )

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def to_dict(self) -> dict:
        return {'page': self.page, 'totalPages': self.total_pages, 'total': self.total}


@dataclass(frozen=True)
class SearchResult:
    """Result of one successful search request."""

    rooms: tuple = ()
    pagination: Pagination = field(default_factory=Pagination)
    filters: dict = field(default_factory=dict)
    search_info: dict = field(default_factory=dict)
    suggestions: tuple = ()

    @classmethod
    def from_payload(cls, payload: dict, params: SearchParams = None) -> 'SearchResult':
        payload = payload or {}
        default_page = params.page if params else 1
        return cls(
            rooms=tuple(payload.get('rooms') or ()),
            pagination=Pagination.from_dict(payload.get('pagination'), default_page),
            filters=dict(payload.get('filters') or {}),
            search_info=dict(payload.get('search') or {}),
            suggestions=tuple(payload.get('suggestions') or ()),
        )

    @property
    def has_results(self) -> bool:
        return len(self.rooms) > 0

    @property
    def log_id(self):
        return self.search_info.get('log_id')

    def to_dict(self) -> dict:
        return {
            'rooms': list(self.rooms),
            'pagination': self.pagination.to_dict(),
            'filters': dict(self.filters),
            'search': dict(self.search_info),
            'suggestions': list(self.suggestions),
        }


class SearchHistory:
    """Bounded, de-duplicated, most-recent-first list of past queries."""

    def __init__(self, entries=None, limit: int = HISTORY_LIMIT):
        self.limit = limit
        self._entries = []
        for entry in reversed(list(entries or [])):
            self.add(entry)

    def add(self, query: str) -> None:
        query = (query or '').strip()
        if not query:
            return
        self._entries = [query] + [e for e in self._entries if e != query]
        del self._entries[self.limit:]

    def remove(self, query: str) -> None:
        self._entries = [e for e in self._entries if e != query]

    def clear(self) -> None:
        self._entries = []

    def entries(self) -> list:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))
