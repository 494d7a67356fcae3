"""
Structured event logging.
Emits leveled key=value records for auth, guard, search and booking events.

Logging never alters the outcome of the operation being logged: failures to
format or emit a record are reported on the module logger and swallowed.
"""

import logging

from flask import has_request_context, request, g

# Logger for domain events, configured by the application factory
logger = logging.getLogger('homestay.events')


def _request_fields() -> dict:
    """Extract request path, client IP and user id when inside a request."""
    if not has_request_context():
        return {}

    ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
    if ip_address and ',' in ip_address:
        ip_address = ip_address.split(',')[0].strip()

    fields = {'path': request.path, 'ip': ip_address}

    auth = g.get('auth')
    if auth is not None and auth.user is not None:
        fields['user_id'] = auth.user.id
    return fields


def _format_value(value) -> str:
    text = str(value)
    if not text or any(ch.isspace() for ch in text) or '=' in text:
        return '"' + text.replace('"', '\\"') + '"'
    return text


def format_event(event: str, fields: dict) -> str:
    """
    Render an event and its fields as a single key=value line.

    Example:
        >>> format_event('auth.login', {'success': True})
        'event=auth.login success=True'
    """
    parts = [f'event={event}']
    for key in sorted(fields):
        if fields[key] is not None:
            parts.append(f'{key}={_format_value(fields[key])}')
    return ' '.join(parts)


def log_event(event: str, level: int = logging.INFO, **fields) -> None:
    """
    Log a structured domain event.

    Args:
        event: Dotted event name (e.g. 'guard.redirect_login')
        level: logging level
        **fields: Event attributes; request path, IP and user id are added
    """
    if not logger.isEnabledFor(level):
        return
    try:
        merged = _request_fields()
        merged.update(fields)
        logger.log(level, format_event(event, merged))
    except Exception as e:
        logger.error(f"Failed to log event {event}: {e}", exc_info=True)
