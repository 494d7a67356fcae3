"""
Staff routes: booking desk for staff and administrators.
"""

from flask import render_template, redirect, url_for, flash, request, Blueprint

from api_client import get_api
from models.user import Role
from services.booking_service import BOOKING_STATUSES, update_booking_status
from utils.decorators import role_required
from utils.errors import ApiError, AuthenticationError, ValidationError, NetworkError, ServerError
from utils.messages import MESSAGES

staff_bp = Blueprint('staff', __name__)


@staff_bp.route('/')
@staff_bp.route('/dashboard')
@role_required(Role.STAFF, Role.ADMIN)
def dashboard():
    """Bookings list filtered by status."""
    page = max(1, request.args.get('page', 1, type=int) or 1)
    status = request.args.get('status')
    if status not in BOOKING_STATUSES:
        status = None

    data = get_api().list_bookings(page=page, status=status)

    return render_template(
        'staff/dashboard.html',
        bookings=data['bookings'],
        pagination=data['pagination'],
        status=status,
        statuses=BOOKING_STATUSES,
    )


@staff_bp.route('/bookings/<booking_id>/status', methods=['POST'])
@role_required(Role.STAFF, Role.ADMIN)
def change_booking_status(booking_id):
    """Set a booking's status from the desk, then go back to the filtered list."""
    try:
        update_booking_status(
            get_api(), booking_id,
            request.form.get('status', ''), request.form.get('notes', ''),
        )
    except ValidationError as e:
        flash(e.message, 'error')
    except AuthenticationError:
        raise
    except NetworkError:
        flash(MESSAGES['network_error'], 'error')
    except ServerError:
        flash(MESSAGES['server_error'], 'error')
    except ApiError as e:
        flash(e.message or MESSAGES['booking_update_failed'], 'error')
    else:
        flash(MESSAGES['booking_status_updated'], 'success')

    back_to = request.form.get('filter')
    if back_to in BOOKING_STATUSES:
        return redirect(url_for('staff.dashboard', status=back_to))
    return redirect(url_for('staff.dashboard'))
