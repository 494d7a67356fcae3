"""
Error taxonomy for the homestay portal.

Validation errors are raised before any network call and carry field-scoped
messages. Everything the REST API can answer with maps onto an ApiError
subclass via error_from_response(); transport failures become NetworkError.
"""

from typing import Any


class HomestayError(Exception):
    """Base class for every error raised by the portal."""

    def __init__(self, message: str = ''):
        super().__init__(message)
        self.message = message


class ValidationError(HomestayError):
    """Client-side validation failure. Never reaches the network."""

    def __init__(self, field_errors: dict, message: str = ''):
        self.field_errors = dict(field_errors)
        if not message and self.field_errors:
            message = next(iter(self.field_errors.values()))
        super().__init__(message)


class WeakPasswordError(ValidationError):
    """New password rejected by the strength rules."""


class ApiError(HomestayError):
    """Error answered by, or while reaching, the REST API."""

    def __init__(self, message: str = '', status: int = None, payload: Any = None):
        super().__init__(message)
        self.status = status
        self.payload = payload

    @property
    def field_errors(self) -> dict:
        """Field errors reported by the server, if any."""
        errors = {}
        if isinstance(self.payload, dict):
            for item in self.payload.get('errors') or []:
                if isinstance(item, dict):
                    field = item.get('path') or item.get('param') or item.get('field')
                    if field and field not in errors:
                        errors[field] = item.get('msg') or item.get('message') or ''
        return errors


class AuthenticationError(ApiError):
    """401: invalid credentials, expired or invalid token."""


class AccountInactiveError(AuthenticationError):
    """Credentials are valid but the account has been deactivated."""


class InvalidResetTokenError(AuthenticationError):
    """Password reset token is invalid or has expired."""


class AuthorizationError(ApiError):
    """403: valid session, insufficient role."""


class NotFoundError(ApiError):
    """404: resource does not exist."""


class ConflictError(ApiError):
    """409: resource already exists (e.g. duplicate email)."""


class RequestRejectedError(ApiError):
    """Any other 4xx answer (bad request, unprocessable entity)."""


class ServerError(ApiError):
    """5xx answer from the REST API."""


class NetworkError(ApiError):
    """Timeout or connection failure. No answer from the server."""


_STATUS_ERRORS = {
    401: AuthenticationError,
    403: AuthorizationError,
    404: NotFoundError,
    409: ConflictError,
}


def error_from_response(status: int, payload: Any = None) -> ApiError:
    """
    Build the ApiError matching an HTTP error answer.

    Args:
        status: HTTP status code (>= 400)
        payload: Decoded JSON body, if any

    Returns:
        ApiError subclass instance
    """
    message = ''
    if isinstance(payload, dict):
        message = payload.get('message') or payload.get('error') or ''

    if status in _STATUS_ERRORS:
        error_class = _STATUS_ERRORS[status]
    elif status >= 500:
        error_class = ServerError
    else:
        error_class = RequestRejectedError

    return error_class(message or f'HTTP {status}', status=status, payload=payload)
