"""
Room routes: search, room detail with reviews, booking, booking pages and cancellation.
"""

from flask import render_template, redirect, url_for, flash, request, Blueprint, current_app

from api_client import get_api
from blueprints.rooms.forms import SearchForm, BookingForm
from models.booking import BookingDraft
from models.search import SearchParams, FILTER_KEYS
from services.auth_context import get_auth
from services.booking_service import can_cancel, cancel_booking
from services.client_state import get_client_state, persist_search_history
from utils.decorators import protected_route
from utils.errors import (
    ApiError,
    AuthenticationError,
    ValidationError,
    NetworkError,
    ServerError,
)
from utils.messages import MESSAGES

rooms_bp = Blueprint('rooms', __name__)

SEARCH_ARGS = ('q', 'page', 'sort_by', 'sort_order') + FILTER_KEYS


def _flash_api_error(error: ApiError, default_key: str) -> None:
    """One toast per failed API call."""
    if isinstance(error, NetworkError):
        flash(MESSAGES['network_error'], 'error')
    elif isinstance(error, ServerError):
        flash(MESSAGES['server_error'], 'error')
    else:
        flash(error.message or MESSAGES[default_key], 'error')


@rooms_bp.route('/rooms/search')
def search():
    """
    Room search page.

    The query string holds the whole search state, so result pages can be
    bookmarked and shared. Without search arguments the client's current
    search is shown.
    """
    state = get_client_state()
    controller = state.search
    api = get_api()
    form = SearchForm(formdata=request.args)

    if any(key in request.args for key in SEARCH_ARGS):
        try:
            if not form.validate():
                raise ValueError('invalid search form')
            base = SearchParams(limit=current_app.config.get('SEARCH_PAGE_SIZE', 12))
            params = SearchParams.from_args(request.args.to_dict(), base=base)
        except ValueError:
            snapshot = controller.snapshot()
        else:
            snapshot = controller.run(api, params)
            if snapshot.applied and snapshot.error is not None:
                if isinstance(snapshot.error, AuthenticationError):
                    raise snapshot.error
                _flash_api_error(snapshot.error, 'search_failed')
            persist_search_history(state)
    else:
        snapshot = controller.snapshot()

    popular = [] if snapshot.has_results else controller.popular_searches(
        api, current_app.config.get('POPULAR_SEARCH_LIMIT', 10)
    )

    return render_template(
        'rooms/search.html',
        form=form,
        search=snapshot,
        popular=popular,
        no_results_message=MESSAGES['no_results'],
    )


@rooms_bp.route('/rooms/<int:room_id>')
def room_detail(room_id):
    """Room detail with a page of reviews."""
    api = get_api()
    room = api.get_room(room_id)

    page = request.args.get('page', 1, type=int) or 1
    try:
        reviews = api.get_room_reviews(
            room_id, page=max(1, page), limit=current_app.config.get('REVIEWS_PER_PAGE', 10)
        )
    except AuthenticationError:
        raise
    except ApiError:
        flash(MESSAGES['reviews_failed'], 'warning')
        reviews = {'reviews': [], 'pagination': {'page': 1, 'totalPages': 1, 'total': 0}}

    return render_template('rooms/detail.html', room=room, room_id=room_id, reviews=reviews)


@rooms_bp.route('/rooms/<int:room_id>/book', methods=['GET', 'POST'])
@protected_route
def book_room(room_id):
    """
    Booking form for a room.

    A failed submission re-renders the form with everything the user typed.
    """
    api = get_api()
    auth = get_auth()
    state = get_client_state()
    room = api.get_room(room_id)

    form = BookingForm()

    if request.method == 'GET':
        # Resume a draft kept from a failed submission, else prefill from the profile
        draft = state.booking.draft
        if draft is not None and str(draft.room_id) == str(room_id):
            form.process(data=draft.to_form())
        else:
            user = auth.user
            form.contact_name.data = user.full_name
            form.contact_email.data = user.email
            form.contact_phone.data = user.phone
            form.check_in_date.data = request.args.get('check_in_date', '')
            form.check_out_date.data = request.args.get('check_out_date', '')
            state.booking.open(BookingDraft(room_id=room_id))

    if form.validate_on_submit():
        draft = BookingDraft.from_form(room_id, form.data)
        try:
            outcome = state.booking.submit(api, draft)
        except ValidationError as e:
            for name, message in e.field_errors.items():
                field = getattr(form, name, None)
                if field is not None:
                    field.errors = list(field.errors) + [message]
        except AuthenticationError:
            raise
        except ApiError as e:
            _flash_api_error(e, 'booking_failed')
        else:
            if outcome.ignored:
                flash(MESSAGES['booking_in_progress'], 'info')
            else:
                flash(MESSAGES['booking_created'], 'success')
                return redirect(url_for('rooms.booking_detail', booking_id=outcome.confirmation.booking_id))

    return render_template('rooms/book.html', form=form, room=room, room_id=room_id)


@rooms_bp.route('/bookings/<booking_id>')
@protected_route
def booking_detail(booking_id):
    """Booking confirmation and details."""
    booking = get_api().get_booking(booking_id)
    return render_template('bookings/detail.html', booking=booking, cancellable=can_cancel(booking))


@rooms_bp.route('/bookings/<booking_id>/cancel', methods=['POST'])
@protected_route
def cancel_my_booking(booking_id):
    """Cancel one of the customer's bookings."""
    api = get_api()
    booking = api.get_booking(booking_id)
    try:
        cancel_booking(api, booking, request.form.get('reason', ''))
    except ValidationError as e:
        flash(e.message, 'error')
    except AuthenticationError:
        raise
    except ApiError as e:
        _flash_api_error(e, 'booking_update_failed')
    else:
        flash(MESSAGES['booking_cancelled'], 'success')
    return redirect(url_for('rooms.booking_detail', booking_id=booking_id))


@rooms_bp.route('/bookings/my')
@protected_route
def my_bookings():
    """The current customer's bookings."""
    page = max(1, request.args.get('page', 1, type=int) or 1)
    status = request.args.get('status') or None
    data = get_api().list_my_bookings(page=page, status=status)
    return render_template('bookings/list.html', bookings=data['bookings'],
                           pagination=data['pagination'], status=status)
