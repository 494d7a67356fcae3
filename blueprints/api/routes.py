"""
API routes for JSON endpoints.
Drives the search controller and booking submission from page scripts.

All endpoints answer with the envelope from utils.api_response; errors from
the REST API are mapped by api_exception().
"""

from flask import request, Blueprint, current_app

from api_client import get_api
from models.booking import BookingDraft
from models.search import SearchParams
from services.auth_context import get_auth
from services.client_state import get_client_state, persist_search_history
from utils.api_response import api_success, api_error, api_exception
from utils.decorators import protected_route
from utils.errors import ApiError, AuthenticationError, ValidationError
from utils.messages import MESSAGES

api_bp = Blueprint('api', __name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _search_response(state, snapshot):
    """Answer for a search trigger; a failed current search is an error answer."""
    persist_search_history(state)
    if snapshot.applied and snapshot.error is not None:
        if isinstance(snapshot.error, AuthenticationError):
            raise snapshot.error
        return api_exception(snapshot.error, data=snapshot.to_dict())
    return api_success(data=snapshot.to_dict())


@api_bp.route('/health')
def health_check():
    """
    Health check endpoint (no authentication required).

    Returns:
        JSON with status and version
    """
    return api_success(data={
        'status': 'ok',
        'version': current_app.config.get('APP_VERSION', '1.0.0'),
        'app': 'Homestay Portal',
    })


@api_bp.route('/auth/state')
def auth_state():
    """Current auth state (status, user, retry_later)."""
    return api_success(data=get_auth().snapshot())


# =============================================================================
# SEARCH
# =============================================================================

@api_bp.route('/search', methods=['GET', 'POST'])
def search():
    """
    Run a search.

    GET: query-string arguments replace the search (`q`, `page`, `sort_by`,
         `sort_order` and filter keys)
    POST: JSON body merged into the current search; page resets to 1 unless given
    """
    state = get_client_state()
    controller = state.search
    try:
        if request.method == 'GET':
            base = SearchParams(limit=current_app.config.get('SEARCH_PAGE_SIZE', 12))
            params = SearchParams.from_args(request.args.to_dict(), base=base)
        else:
            params = SearchParams.from_args(_json_body(), base=controller.params)
    except ValueError as e:
        return api_error(str(e), status=400)

    return _search_response(state, controller.run(get_api(), params))


@api_bp.route('/search/page', methods=['POST'])
def search_page():
    """Go to another result page, keeping query, filters and sort."""
    page = _json_body().get('page')
    try:
        page = int(page)
        if page < 1:
            raise ValueError
    except (TypeError, ValueError):
        return api_error('page must be a positive integer', status=400)

    state = get_client_state()
    return _search_response(state, state.search.change_page(get_api(), page))


@api_bp.route('/search/sort', methods=['POST'])
def search_sort():
    """Change sort field and order; page resets to 1."""
    body = _json_body()
    state = get_client_state()
    try:
        snapshot = state.search.change_sort(get_api(), body.get('sort_by'), body.get('sort_order') or 'desc')
    except ValueError:
        return api_error('invalid sort', status=400)
    return _search_response(state, snapshot)


@api_bp.route('/search/filters', methods=['POST'])
def search_filters():
    """Merge filters into the current search; null or empty values remove a filter."""
    filters = _json_body().get('filters')
    if not isinstance(filters, dict):
        return api_error('filters must be an object', status=400)
    state = get_client_state()
    return _search_response(state, state.search.apply_filters(get_api(), filters))


@api_bp.route('/search/clear', methods=['POST'])
def search_clear():
    """Reset the search."""
    return api_success(data=get_client_state().search.clear().to_dict())


@api_bp.route('/search/cancel', methods=['POST'])
def search_cancel():
    """Drop any in-flight search (page left)."""
    controller = get_client_state().search
    controller.cancel()
    return api_success(data=controller.snapshot().to_dict())


@api_bp.route('/search/state')
def search_state():
    """Current search state without triggering a request."""
    return api_success(data=get_client_state().search.snapshot().to_dict())


@api_bp.route('/search/suggestions')
def search_suggestions():
    """
    Debounced suggestions for the text typed so far.

    Returns:
        superseded=true when a newer suggestions request arrived meanwhile
    """
    suggestions = get_client_state().search.suggestions(get_api(), request.args.get('q', ''))
    if suggestions is None:
        return api_success(data={'suggestions': []}, superseded=True)
    return api_success(data={'suggestions': suggestions}, superseded=False)


@api_bp.route('/search/popular')
def search_popular():
    """Popular searches."""
    limit = request.args.get('limit', current_app.config.get('POPULAR_SEARCH_LIMIT', 10), type=int)
    searches = get_client_state().search.popular_searches(get_api(), limit)
    return api_success(data={'searches': searches})


@api_bp.route('/search/history', methods=['GET', 'DELETE'])
def search_history():
    """
    GET: search history, most recent first
    DELETE: clear the history, or remove one entry with ?q=
    """
    state = get_client_state()
    if request.method == 'DELETE':
        query = request.args.get('q')
        entries = state.search.remove_history(query) if query else state.search.clear_history()
        persist_search_history(state)
    else:
        entries = state.search.history_entries()
    return api_success(data={'history': entries})


@api_bp.route('/search/click', methods=['POST'])
def search_click():
    """Record a click on a search result."""
    body = _json_body()
    if body.get('result_id') is None:
        return api_error(MESSAGES['field_required'], status=400, errors={'result_id': MESSAGES['field_required']})
    try:
        position = int(body.get('position') or 0)
    except (TypeError, ValueError):
        position = 0
    logged = get_client_state().search.log_result_click(get_api(), body['result_id'], position)
    return api_success(data={'logged': logged})


# =============================================================================
# BOOKINGS
# =============================================================================

@api_bp.route('/bookings', methods=['POST'])
@protected_route
def create_booking():
    """
    Submit a booking for the current client.

    Returns:
        201 with the confirmation, 409 while another submission is in flight
    """
    body = _json_body()
    if body.get('room_id') is None:
        return api_error(MESSAGES['field_required'], status=400, errors={'room_id': MESSAGES['field_required']})

    state = get_client_state()
    draft = BookingDraft.from_form(body['room_id'], body)
    try:
        outcome = state.booking.submit(get_api(), draft)
    except AuthenticationError:
        raise
    except (ValidationError, ApiError) as e:
        return api_exception(e, data={'draft': draft.to_form()})

    if outcome.ignored:
        return api_error(MESSAGES['booking_in_progress'], status=409, code='submission_in_progress')
    return api_success(data=outcome.confirmation.to_dict(), message=MESSAGES['booking_created'], status=201)
