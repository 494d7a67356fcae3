"""
Route decorators for authentication and authorization.
Apply the route guard decisions to Flask views.
"""

import logging
from functools import wraps

from flask import flash, redirect, url_for, request, render_template

from services.auth_context import get_auth
from utils.api_response import api_error
from utils.events import log_event
from utils.guards import GuardOutcome, check_protected, check_role
from utils.messages import MESSAGES


def wants_json() -> bool:
    """True for JSON API requests, which get status codes instead of redirects."""
    return request.blueprint == 'api' or request.is_json


def login_redirect():
    """Redirect to the login page, keeping the requested path for the return trip."""
    next_path = request.full_path if request.query_string else request.path
    return redirect(url_for('auth.login', next=next_path))


def _deny(decision, unauthorized_endpoint: str):
    """Build the response for a guard decision that does not render the view."""
    outcome = decision.outcome
    log_event(f'guard.{outcome.value}', logging.INFO, reason=decision.reason)

    if wants_json():
        if outcome == GuardOutcome.RENDER_LOADING:
            return api_error(MESSAGES['loading'], status=503, retry_after=1)
        if outcome == GuardOutcome.REDIRECT_LOGIN:
            return api_error(MESSAGES['login_required'], status=401)
        if outcome == GuardOutcome.ACCOUNT_INACTIVE:
            return api_error(MESSAGES['account_inactive'], status=403, code='account_inactive')
        return api_error(MESSAGES['unauthorized'], status=403)

    if outcome == GuardOutcome.RENDER_LOADING:
        return render_template('loading.html'), 503, {'Retry-After': '1'}
    if outcome == GuardOutcome.REDIRECT_LOGIN:
        auth = get_auth()
        flash(MESSAGES['network_error'] if auth.retry_later else MESSAGES['login_required'], 'warning')
        return login_redirect()
    if outcome == GuardOutcome.ACCOUNT_INACTIVE:
        return render_template('auth/inactive.html'), 403
    return redirect(url_for(unauthorized_endpoint))


def protected_route(func):
    """
    Decorator to require a logged-in, active user.

    Usage:
        @bp.route('/profile')
        @protected_route
        def profile():
            ...
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        auth = get_auth()
        decision = check_protected(auth.loading, auth.user)
        if not decision.allowed:
            return _deny(decision, 'auth.unauthorized')
        return func(*args, **kwargs)
    return wrapper


def role_required(*roles, unauthorized_endpoint: str = 'auth.unauthorized'):
    """
    Decorator to restrict a route to the given roles.
    Includes the protected_route checks; no roles means nobody is allowed.

    Usage:
        @bp.route('/staff')
        @role_required(Role.STAFF, Role.ADMIN)
        def staff_dashboard():
            ...

    Args:
        *roles: Allowed roles (Role members or role strings)
        unauthorized_endpoint: Endpoint to redirect to when the role is not allowed

    Returns:
        Decorator function
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            auth = get_auth()
            decision = check_protected(auth.loading, auth.user)
            if decision.allowed:
                decision = check_role(auth.user, roles)
            if not decision.allowed:
                return _deny(decision, unauthorized_endpoint)
            return func(*args, **kwargs)
        return wrapper
    return decorator


__all__ = ['protected_route', 'role_required', 'wants_json', 'login_redirect']
