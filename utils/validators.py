"""
Input validation helper functions.
Provides validation for common input types.
"""

import re
from datetime import datetime

PASSWORD_MIN_LENGTH = 6
FULL_NAME_MIN_LENGTH = 2
FULL_NAME_MAX_LENGTH = 50


def validate_email(email: str) -> bool:
    """
    Validate email format.

    Args:
        email: Email address to validate

    Returns:
        True if valid email format
    """
    if not email:
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email.strip()))


def validate_phone(phone: str) -> bool:
    """
    Validate Vietnamese phone number format.
    Accepts 10 or 11 digits once spaces, dashes, dots and parentheses are removed.

    Args:
        phone: Phone number to validate

    Returns:
        True if valid phone format
    """
    if not phone:
        return False

    cleaned = re.sub(r'[\s\-\.\(\)]', '', phone)
    return bool(re.match(r'^[0-9]{10,11}$', cleaned))


def validate_password(password: str, min_length: int = PASSWORD_MIN_LENGTH) -> tuple:
    """
    Validate password strength.

    Args:
        password: Password to validate
        min_length: Minimum password length

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not password:
        return False, 'Mật khẩu là bắt buộc'

    if len(password) < min_length:
        return False, f'Mật khẩu phải có ít nhất {min_length} ký tự'

    return True, ''


def validate_full_name(full_name: str) -> bool:
    """Validate full name length (2-50 characters once trimmed)."""
    if not full_name:
        return False
    return FULL_NAME_MIN_LENGTH <= len(full_name.strip()) <= FULL_NAME_MAX_LENGTH


def validate_id_number(id_number: str) -> bool:
    """
    Validate Vietnamese ID card number (CMND 9 digits, CCCD 12 digits).

    Args:
        id_number: ID number to validate

    Returns:
        True if valid format
    """
    if not id_number:
        return False
    return bool(re.match(r'^([0-9]{9}|[0-9]{12})$', id_number.strip()))


def validate_date_format(date_str: str) -> bool:
    """
    Validate date is in YYYY-MM-DD format.

    Args:
        date_str: Date string to validate

    Returns:
        True if valid format
    """
    try:
        datetime.strptime(date_str, '%Y-%m-%d')
        return True
    except (ValueError, TypeError):
        return False


def validate_stay_dates(check_in: str, check_out: str) -> bool:
    """
    Validate that check-out is strictly after check-in (at least one night).

    Args:
        check_in: Check-in date (YYYY-MM-DD)
        check_out: Check-out date (YYYY-MM-DD)

    Returns:
        True if valid stay range
    """
    try:
        start = datetime.strptime(check_in, '%Y-%m-%d')
        end = datetime.strptime(check_out, '%Y-%m-%d')
        return end > start
    except (ValueError, TypeError):
        return False


def sanitize_input(text: str, max_length: int = None) -> str:
    """
    Sanitize text input by trimming and limiting length.

    Args:
        text: Text to sanitize
        max_length: Maximum length (optional)

    Returns:
        Sanitized text
    """
    if not text:
        return ''

    sanitized = str(text).strip()

    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized
