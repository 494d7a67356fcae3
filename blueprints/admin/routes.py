"""
Admin routes: overview of bookings by status.
"""

from collections import Counter

from flask import render_template, Blueprint

from api_client import get_api
from models.user import Role
from utils.decorators import role_required

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/')
@admin_bp.route('/dashboard')
@role_required(Role.ADMIN)
def dashboard():
    """Admin dashboard with booking summary statistics."""
    data = get_api().list_bookings(page=1, limit=100)
    bookings = data['bookings']
    by_status = Counter(b.get('status') or 'pending' for b in bookings)

    stats = {
        'total_bookings': data['pagination'].get('total') or len(bookings),
        'pending': by_status.get('pending', 0),
        'confirmed': by_status.get('confirmed', 0),
        'checked_in': by_status.get('checked_in', 0),
        'cancelled': by_status.get('cancelled', 0),
    }

    return render_template('admin/dashboard.html', stats=stats, recent=bookings[:10])
