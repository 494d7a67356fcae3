"""
Standardized JSON response helpers for the portal's own JSON API.

    Success:  {"success": true, "data": {...}, "message": "..."}
    Error:    {"success": false, "error": "Vietnamese message", "errors": {...}}

Usage:
    from utils.api_response import api_success, api_error

    return api_success(data={'rooms': rooms})
    return api_error('Email không hợp lệ', status=400)
"""

from typing import Any

from flask import jsonify

from utils.errors import (
    ApiError,
    AuthenticationError,
    AuthorizationError,
    NetworkError,
    NotFoundError,
    ConflictError,
    ServerError,
    ValidationError,
)
from utils.messages import MESSAGES


def api_success(
    data: Any = None,
    message: str = None,
    status: int = 200,
    **extra_fields: Any
) -> tuple:
    """
    Build a standardized success JSON response.

    Args:
        data: Optional payload included as 'data'.
        message: Optional success message.
        status: HTTP status code (default 200).
        **extra_fields: Additional top-level fields.

    Returns:
        Tuple of (Response, status_code)
    """
    response = {'success': True}

    if data is not None:
        response['data'] = data

    if message:
        response['message'] = message

    if extra_fields:
        response.update(extra_fields)

    return jsonify(response), status


def api_error(error: str, status: int = 400, **extra_fields: Any) -> tuple:
    """
    Build a standardized error JSON response.

    Args:
        error: Error message.
        status: HTTP status code (default 400).
        **extra_fields: Additional top-level fields (e.g. errors, code).

    Returns:
        Tuple of (Response, status_code)
    """
    response = {'success': False, 'error': error}

    if extra_fields:
        response.update(extra_fields)

    return jsonify(response), status


def api_exception(error: Exception, **extra_fields: Any) -> tuple:
    """
    Build the error response for a portal error.

    Validation errors map to 400 with field errors; REST API errors keep
    their class semantics (401, 403, 404, 409) and upstream failures map
    to 502/503.
    """
    if isinstance(error, ValidationError):
        return api_error(error.message, status=400, errors=error.field_errors, **extra_fields)
    if isinstance(error, AuthenticationError):
        return api_error(MESSAGES['session_expired'], status=401, **extra_fields)
    if isinstance(error, AuthorizationError):
        return api_error(MESSAGES['unauthorized'], status=403, **extra_fields)
    if isinstance(error, NotFoundError):
        return api_error(MESSAGES['not_found'], status=404, **extra_fields)
    if isinstance(error, ConflictError):
        return api_error(error.message, status=409, **extra_fields)
    if isinstance(error, NetworkError):
        return api_error(MESSAGES['network_error'], status=503, **extra_fields)
    if isinstance(error, ServerError):
        return api_error(MESSAGES['server_error'], status=502, **extra_fields)
    if isinstance(error, ApiError):
        return api_error(error.message, status=error.status or 400, errors=error.field_errors, **extra_fields)
    return api_error(MESSAGES['unexpected_error'], status=500, **extra_fields)
