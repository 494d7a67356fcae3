"""
Miscellaneous utility helper functions.
Formatting and URL helpers shared by views and templates.
"""

from datetime import datetime
from urllib.parse import urlparse

from utils.messages import MESSAGES


def format_date(date_str: str, format_str: str = '%d/%m/%Y') -> str:
    """
    Format date string to Vietnamese format.

    Args:
        date_str: Date string (YYYY-MM-DD, optionally followed by a time)
        format_str: Output format (default: DD/MM/YYYY)

    Returns:
        Formatted date string or original if invalid
    """
    try:
        date_obj = datetime.strptime(str(date_str)[:10], '%Y-%m-%d')
        return date_obj.strftime(format_str)
    except (ValueError, TypeError):
        return date_str or ''


def format_currency(amount, suffix: str = ' ₫') -> str:
    """
    Format an amount in VND with dot thousands separators.

    Args:
        amount: Number or numeric string

    Returns:
        e.g. '1.250.000 ₫', or '' when amount is not numeric
    """
    try:
        value = int(round(float(amount)))
    except (TypeError, ValueError):
        return ''
    return f"{value:,}".replace(',', '.') + suffix


def truncate_text(text: str, max_length: int = 100, suffix: str = '...') -> str:
    """Truncate text to max_length characters, appending suffix."""
    if not text or len(text) <= max_length:
        return text or ''
    return text[:max_length - len(suffix)].rstrip() + suffix


def booking_status_label(status: str) -> str:
    return MESSAGES.get(f'status_{status}', status or '')


def payment_status_label(status: str) -> str:
    return MESSAGES.get(f'payment_{status}', status or '')


def is_safe_redirect(target: str) -> bool:
    """
    Check that a redirect target is a local path.

    Args:
        target: Value of a `next` parameter

    Returns:
        True for paths like '/rooms/5', False for absolute or scheme-relative URLs
        and for anything containing a backslash (browsers read '/\\' as '//')
    """
    if not target or '\\' in target:
        return False
    parsed = urlparse(target)
    return not parsed.scheme and not parsed.netloc and target.startswith('/') and not target.startswith('//')
