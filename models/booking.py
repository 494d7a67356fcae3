"""
Booking draft and confirmation types.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Optional

from utils.validators import sanitize_input

SPECIAL_REQUESTS_MAX_LENGTH = 1000


@dataclass
class GuestInfo:
    name: str = ''
    email: str = ''
    phone: str = ''
    special_requests: str = ''


@dataclass
class BookingDraft:
    """
    Transient booking form state.

    Created when the booking form is opened, submitted once and discarded
    after success or cancel. Kept intact after a failed submission.
    """

    room_id: Any
    guest_info: GuestInfo = field(default_factory=GuestInfo)
    check_in: str = ''
    check_out: str = ''
    adults: int = 1
    children: int = 0
    payment_method: str = 'pay_at_hotel'

    @classmethod
    def from_form(cls, room_id, data: dict) -> 'BookingDraft':
        """Build a draft from submitted form or JSON fields."""
        return cls(
            room_id=room_id,
            guest_info=GuestInfo(
                name=_to_text(data.get('contact_name')),
                email=_to_text(data.get('contact_email')),
                phone=_to_text(data.get('contact_phone')),
                special_requests=sanitize_input(_to_text(data.get('special_requests')), SPECIAL_REQUESTS_MAX_LENGTH),
            ),
            check_in=str(data.get('check_in_date') or ''),
            check_out=str(data.get('check_out_date') or ''),
            adults=_to_int(data.get('adults'), 1),
            children=_to_int(data.get('children'), 0),
            payment_method=_to_text(data.get('payment_method')) or 'pay_at_hotel',
        )

    @property
    def total_guests(self) -> int:
        return self.adults + self.children

    @property
    def nights(self) -> int:
        try:
            start = datetime.strptime(self.check_in, '%Y-%m-%d')
            end = datetime.strptime(self.check_out, '%Y-%m-%d')
        except ValueError:
            return 0
        return max(0, (end - start).days)

    def to_form(self) -> dict:
        """Field values to re-populate the booking form."""
        return {
            'contact_name': self.guest_info.name,
            'contact_email': self.guest_info.email,
            'contact_phone': self.guest_info.phone,
            'special_requests': self.guest_info.special_requests,
            'check_in_date': self.check_in,
            'check_out_date': self.check_out,
            'adults': self.adults,
            'children': self.children,
            'payment_method': self.payment_method,
        }

    def to_payload(self) -> dict:
        """Request body for POST /bookings."""
        return {
            'room_id': self.room_id,
            'check_in_date': self.check_in,
            'check_out_date': self.check_out,
            'adults': self.adults,
            'children': self.children,
            'guests': self.total_guests,
            'contact_name': self.guest_info.name,
            'contact_email': self.guest_info.email,
            'contact_phone': self.guest_info.phone,
            'special_requests': self.guest_info.special_requests,
            'payment_method': self.payment_method,
        }

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class BookingConfirmation:
    """Confirmation returned by POST /bookings."""

    booking_id: Any
    status: str
    payment_status: Optional[str]
    booking: dict = field(default_factory=dict)
    payment: dict = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict) -> 'BookingConfirmation':
        payload = payload or {}
        booking = payload.get('booking') or {}
        payment = payload.get('payment') or {}
        booking_id = booking.get('booking_id', booking.get('id'))
        if booking_id is None:
            raise ValueError('Booking payload has no booking id')
        return cls(
            booking_id=booking_id,
            status=booking.get('status') or 'pending',
            payment_status=payment.get('status') or booking.get('payment_status'),
            booking=dict(booking),
            payment=dict(payment),
        )

    def to_dict(self) -> dict:
        return {
            'booking_id': self.booking_id,
            'status': self.status,
            'payment_status': self.payment_status,
            'booking': dict(self.booking),
            'payment': dict(self.payment),
        }


def _to_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_text(value) -> str:
    """Stripped text for a submitted field; numbers are kept as their digits, other types as ''."""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return ''
    return str(value).strip()
