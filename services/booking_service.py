"""
Booking Service - validation and single-flight submission of booking drafts,
cancellation and staff status changes.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from models.booking import BookingDraft, BookingConfirmation
from utils.datetime_helpers import get_today
from utils.errors import ValidationError
from utils.events import log_event
from utils.messages import MESSAGES
from utils.validators import (
    validate_email,
    validate_phone,
    validate_date_format,
    validate_stay_dates,
    sanitize_input,
)

BOOKING_STATUSES = ('pending', 'confirmed', 'checked_in', 'checked_out', 'cancelled')
CANCELLABLE_STATUSES = frozenset({'pending', 'confirmed'})
NOTE_MAX_LENGTH = 500


def validate_booking_draft(draft: BookingDraft, today: date = None) -> None:
    """
    Validate a booking draft before it is sent.

    Args:
        draft: Booking draft
        today: Reference date for the "not in the past" rule (defaults to
            today in the configured timezone)

    Raises:
        ValidationError: With one message per invalid field
    """
    errors = {}
    guest = draft.guest_info

    if not guest.name:
        errors['contact_name'] = MESSAGES['field_required']
    if not guest.email:
        errors['contact_email'] = MESSAGES['field_required']
    elif not validate_email(guest.email):
        errors['contact_email'] = MESSAGES['invalid_email']
    if not guest.phone:
        errors['contact_phone'] = MESSAGES['field_required']
    elif not validate_phone(guest.phone):
        errors['contact_phone'] = MESSAGES['invalid_phone']

    if not validate_date_format(draft.check_in):
        errors['check_in_date'] = MESSAGES['invalid_date']
    elif datetime.strptime(draft.check_in, '%Y-%m-%d').date() < (today or get_today()):
        errors['check_in_date'] = MESSAGES['check_in_past']
    if not validate_date_format(draft.check_out):
        errors['check_out_date'] = MESSAGES['invalid_date']
    elif 'check_in_date' not in errors and not validate_stay_dates(draft.check_in, draft.check_out):
        errors['check_out_date'] = MESSAGES['invalid_date_range']

    if draft.adults < 1 or draft.children < 0:
        errors['adults'] = MESSAGES['invalid_guests']

    if errors:
        raise ValidationError(errors)


@dataclass(frozen=True)
class SubmitOutcome:
    """Result of a submit() call that was not rejected by an error."""

    confirmation: Optional[BookingConfirmation] = None
    ignored: bool = False

    @property
    def success(self) -> bool:
        return self.confirmation is not None


IGNORED = SubmitOutcome(ignored=True)


class BookingSubmission:
    """
    Submission state for one client's booking form.

    While a submission is in flight a second submit() returns IGNORED
    without calling the API. A failed submission keeps the draft so the
    form can be re-rendered as it was.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.is_submitting = False
        self.draft: Optional[BookingDraft] = None
        self.last_confirmation: Optional[BookingConfirmation] = None

    def open(self, draft: BookingDraft) -> None:
        """Start editing a draft (form opened)."""
        with self._lock:
            self.draft = draft

    def discard(self) -> None:
        """Drop the draft (form cancelled)."""
        with self._lock:
            self.draft = None

    def submit(self, api, draft: BookingDraft, today: date = None) -> SubmitOutcome:
        """
        Validate and send a booking draft exactly once.

        Args:
            api: API client
            draft: Booking draft
            today: Reference date for validation

        Returns:
            SubmitOutcome with the confirmation, or IGNORED when a submission
            is already in flight

        Raises:
            ValidationError: Draft is invalid (no request sent)
            ApiError: Booking rejected or failed
        """
        with self._lock:
            if self.is_submitting:
                log_event('booking.duplicate_ignored', room_id=draft.room_id)
                return IGNORED
            self.is_submitting = True
            self.draft = draft

        try:
            validate_booking_draft(draft, today)
            confirmation = api.create_booking(draft.to_payload())
        except Exception as e:
            with self._lock:
                self.is_submitting = False
            level = logging.DEBUG if isinstance(e, ValidationError) else logging.WARNING
            log_event('booking.failed', level, room_id=draft.room_id, error=type(e).__name__)
            raise

        with self._lock:
            self.is_submitting = False
            self.draft = None
            self.last_confirmation = confirmation
        log_event('booking.created', booking_id=confirmation.booking_id, room_id=draft.room_id)
        return SubmitOutcome(confirmation=confirmation)


def booking_ref(booking: dict):
    return booking.get('booking_id', booking.get('id'))


def can_cancel(booking: dict) -> bool:
    """Whether a customer may still cancel the booking (pending or confirmed)."""
    flag = booking.get('can_be_cancelled')
    if flag is not None:
        return bool(flag)
    return booking.get('status') in CANCELLABLE_STATUSES


def cancel_booking(api, booking: dict, reason: str = '') -> dict:
    """
    Cancel a booking with an optional reason.

    Args:
        api: API client
        booking: The booking as fetched from the API
        reason: Free-text cancellation reason

    Returns:
        The updated booking

    Raises:
        ValidationError: The booking is past the cancellable states (no request sent)
        ApiError: Cancellation rejected or failed
    """
    booking_id = booking_ref(booking)
    if not can_cancel(booking):
        log_event('booking.cancel_refused', logging.DEBUG, booking_id=booking_id, status=booking.get('status'))
        raise ValidationError({'status': MESSAGES['booking_not_cancellable']})

    updated = api.cancel_booking(booking_id, sanitize_input(reason, NOTE_MAX_LENGTH))
    log_event('booking.cancelled', booking_id=booking_id)
    return updated


def update_booking_status(api, booking_id, status: str, notes: str = '') -> dict:
    """
    Move a booking to a new status (staff desk).

    Raises:
        ValidationError: Unknown status (no request sent)
        ApiError: Update rejected or failed
    """
    if status not in BOOKING_STATUSES:
        raise ValidationError({'status': MESSAGES['invalid_booking_status']})

    updated = api.update_booking_status(booking_id, status, sanitize_input(notes, NOTE_MAX_LENGTH))
    log_event('booking.status_changed', booking_id=booking_id, status=status)
    return updated
