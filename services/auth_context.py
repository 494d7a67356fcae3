"""
Auth Context - session lifecycle for the current browser.

State machine:
    INIT -> LOADING -> {AUTHENTICATED, UNAUTHENTICATED}

One context is built per request (see get_auth()). initialize() restores the
persisted session, re-validating it against the API when its last
validation is older than AUTH_REVALIDATE_SECONDS. The auth operations never
raise into the views: they return an AuthResult carrying either the user or
the error.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from flask import g, current_app, session

from models.session import SessionStore, Session
from models.user import UserProfile
from utils.errors import (
    HomestayError,
    ValidationError,
    WeakPasswordError,
    ApiError,
    AuthenticationError,
    AccountInactiveError,
    InvalidResetTokenError,
    NetworkError,
    NotFoundError,
    RequestRejectedError,
    ServerError,
)
from utils.events import log_event
from utils.messages import MESSAGES
from utils.validators import (
    validate_email,
    validate_phone,
    validate_password,
    validate_full_name,
    validate_id_number,
    validate_date_format,
)


class AuthStatus(str, Enum):
    INIT = 'init'
    LOADING = 'loading'
    AUTHENTICATED = 'authenticated'
    UNAUTHENTICATED = 'unauthenticated'


@dataclass(frozen=True)
class AuthResult:
    """Outcome of an auth operation."""

    success: bool
    error: Optional[HomestayError] = None
    user: Optional[UserProfile] = None
    requires_login: bool = False
    data: Optional[dict] = None

    @property
    def field_errors(self) -> dict:
        if self.error is None:
            return {}
        return dict(getattr(self.error, 'field_errors', {}) or {})

    @property
    def message(self) -> str:
        return self.error.message if self.error is not None else ''


REGISTER_REQUIRED_FIELDS = ('full_name', 'email', 'phone', 'password', 'confirm_password')


def validate_registration(user_data: dict) -> dict:
    """
    Validate registration fields.

    Args:
        user_data: Submitted registration fields

    Returns:
        Dict of field -> error message (empty when valid)
    """
    errors = {}
    for field in REGISTER_REQUIRED_FIELDS:
        value = user_data.get(field)
        if not value or (isinstance(value, str) and not value.strip()):
            errors[field] = MESSAGES['field_required']

    if 'full_name' not in errors and not validate_full_name(user_data['full_name']):
        errors['full_name'] = MESSAGES['invalid_full_name']
    if 'email' not in errors and not validate_email(user_data['email']):
        errors['email'] = MESSAGES['invalid_email']
    if 'phone' not in errors and not validate_phone(user_data['phone']):
        errors['phone'] = MESSAGES['invalid_phone']
    if 'password' not in errors:
        is_valid, message = validate_password(user_data['password'])
        if not is_valid:
            errors['password'] = message
    if 'confirm_password' not in errors and 'password' not in errors:
        if user_data['confirm_password'] != user_data['password']:
            errors['confirm_password'] = MESSAGES['password_mismatch']

    return errors


PROFILE_OPTIONAL_FIELDS = ('address', 'date_of_birth')


def validate_profile_update(fields: dict) -> dict:
    """Validate profile fields; returns field -> error message."""
    errors = {}
    for name in ('full_name', 'phone'):
        value = fields.get(name)
        if not isinstance(value, str) or not value.strip():
            errors[name] = MESSAGES['field_required']

    if 'full_name' not in errors and not validate_full_name(fields['full_name']):
        errors['full_name'] = MESSAGES['invalid_full_name']
    if 'phone' not in errors and not validate_phone(fields['phone']):
        errors['phone'] = MESSAGES['invalid_phone']

    birth = fields.get('date_of_birth')
    if birth and (not isinstance(birth, str) or not validate_date_format(birth.strip())):
        errors['date_of_birth'] = MESSAGES['invalid_date']
    address = fields.get('address')
    if address is not None and not isinstance(address, str):
        errors['address'] = MESSAGES['field_required']

    return errors


class AuthContext:
    """
    Single source of truth for who is logged in.

    Args:
        api: API client
        store: SessionStore over durable storage
        revalidate_after: Seconds a stored session is trusted without re-validation
        auto_login_on_register: Log the user in when registration returns a token
        clock: Time source (epoch seconds)
    """

    def __init__(self, api, store: SessionStore, revalidate_after: int = 300,
                 auto_login_on_register: bool = True, clock=time.time):
        self.api = api
        self.store = store
        self.revalidate_after = revalidate_after
        self.auto_login_on_register = auto_login_on_register
        self._clock = clock

        self.status = AuthStatus.INIT
        self.user: Optional[UserProfile] = None
        self.error: Optional[HomestayError] = None
        self.retry_later = False

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def loading(self) -> bool:
        return self.status in (AuthStatus.INIT, AuthStatus.LOADING)

    @property
    def is_authenticated(self) -> bool:
        return self.status == AuthStatus.AUTHENTICATED and self.user is not None

    @property
    def token(self) -> Optional[str]:
        return self.store.read().token if self.is_authenticated else None

    def _begin(self) -> None:
        self.error = None

    def _authenticated(self, stored: Session) -> None:
        self.user = stored.user
        self.status = AuthStatus.AUTHENTICATED
        self.retry_later = False

    def _unauthenticated(self, error: HomestayError = None, retry_later: bool = False) -> None:
        self.user = None
        self.status = AuthStatus.UNAUTHENTICATED
        self.error = error
        self.retry_later = retry_later

    def snapshot(self) -> dict:
        """JSON-safe view of the auth state."""
        return {
            'status': self.status.value,
            'loading': self.loading,
            'is_authenticated': self.is_authenticated,
            'retry_later': self.retry_later,
            'user': self.user.to_dict() if self.user else None,
        }

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self) -> AuthStatus:
        """
        Restore the persisted session.

        Returns:
            The resulting status (AUTHENTICATED or UNAUTHENTICATED)
        """
        self.status = AuthStatus.LOADING
        self._begin()

        stored = self.store.read()
        if stored.is_empty:
            self._unauthenticated()
            return self.status

        age = self._clock() - stored.validated_at
        if age < self.revalidate_after:
            self._authenticated(stored)
            return self.status

        try:
            user = self.api.me(token=stored.token)
        except AuthenticationError as e:
            self.store.clear()
            self._unauthenticated(e)
            log_event('auth.session_invalid', logging.INFO, status=e.status)
        except (NetworkError, ServerError) as e:
            # Keep the stored session; the next request retries validation
            self._unauthenticated(e, retry_later=True)
            log_event('auth.validation_deferred', logging.WARNING, error=type(e).__name__)
        except ApiError as e:
            self.store.clear()
            self._unauthenticated(e)
            log_event('auth.session_invalid', logging.INFO, status=e.status)
        else:
            self._authenticated(self.store.write(stored.token, user))
            log_event('auth.session_validated', logging.DEBUG, role=user.role.value)

        return self.status

    def login(self, identifier: str, secret: str) -> AuthResult:
        """
        Log in with identifier (email) and secret (password).

        Returns:
            AuthResult with the user on success, the error otherwise
        """
        self._begin()

        field_errors = {}
        if not identifier or not identifier.strip():
            field_errors['identifier'] = MESSAGES['identifier_required']
        if not secret:
            field_errors['secret'] = MESSAGES['secret_required']
        if field_errors:
            return self._fail(ValidationError(field_errors), 'auth.login_failed')

        self.status = AuthStatus.LOADING
        try:
            payload = self.api.login(identifier.strip(), secret)
            if not payload.token:
                raise ServerError('Login response has no token')
            if not payload.user.is_active:
                raise AccountInactiveError(MESSAGES['account_inactive'], status=401)
        except AuthenticationError as e:
            if not isinstance(e, AccountInactiveError) and _mentions_inactive(e):
                e = AccountInactiveError(MESSAGES['account_inactive'], status=e.status, payload=e.payload)
            self.store.clear()
            return self._fail(e, 'auth.login_failed')
        except ApiError as e:
            self.store.clear()
            return self._fail(e, 'auth.login_failed')

        self._authenticated(self.store.write(payload.token, payload.user))
        log_event('auth.login', role=payload.user.role.value)
        return AuthResult(success=True, user=payload.user)

    def register(self, user_data: dict) -> AuthResult:
        """
        Register a new account.

        Fields are validated locally first. If the API answers with a token
        and auto-login is enabled the user is logged in; otherwise the
        result has requires_login=True.
        """
        self._begin()

        field_errors = validate_registration(user_data)
        if field_errors:
            return self._fail(ValidationError(field_errors), 'auth.register_failed')

        fields = {
            'full_name': user_data['full_name'].strip(),
            'email': user_data['email'].strip(),
            'phone': user_data['phone'].strip(),
            'password': user_data['password'],
        }

        try:
            payload = self.api.register(fields)
        except ApiError as e:
            return self._fail(e, 'auth.register_failed')

        if payload.token and self.auto_login_on_register and payload.user.is_active:
            self._authenticated(self.store.write(payload.token, payload.user))
            log_event('auth.register', auto_login=True)
            return AuthResult(success=True, user=payload.user)

        self._unauthenticated()
        log_event('auth.register', auto_login=False)
        return AuthResult(success=True, user=payload.user, requires_login=True)

    def logout(self) -> AuthResult:
        """
        Log out. Idempotent.

        The stored session is cleared before the best-effort server call.
        """
        self._begin()
        stored = self.store.read()
        self.store.clear()
        self._unauthenticated()

        if stored.token:
            try:
                self.api.logout(token=stored.token)
            except ApiError as e:
                log_event('auth.logout_remote_failed', logging.WARNING, error=type(e).__name__)
            log_event('auth.logout')

        return AuthResult(success=True)

    def force_logout(self, reason: str = 'session_invalid') -> None:
        """Clear the session after the API rejected the token."""
        self.store.clear()
        self._unauthenticated(AuthenticationError(MESSAGES['session_expired'], status=401))
        log_event('auth.forced_logout', logging.WARNING, reason=reason)

    def refresh_profile(self) -> AuthResult:
        """Re-fetch the current user's profile."""
        self._begin()
        stored = self.store.read()
        if stored.is_empty:
            return AuthResult(success=False, error=AuthenticationError(MESSAGES['login_required'], status=401))
        try:
            user = self.api.me(token=stored.token)
        except AuthenticationError as e:
            self.force_logout('refresh_rejected')
            return AuthResult(success=False, error=e)
        except ApiError as e:
            self.error = e
            return AuthResult(success=False, error=e)

        self._authenticated(self.store.write(stored.token, user))
        return AuthResult(success=True, user=user)

    def update_profile(self, fields: dict) -> AuthResult:
        """
        Update the logged-in user's editable profile fields.

        Only full_name, phone, address and date_of_birth are sent. The
        stored user is replaced by the current one merged with the API's
        answer, so role and email survive an answer that omits them.
        """
        self._begin()
        stored = self.store.read()
        if stored.is_empty:
            return AuthResult(success=False, error=AuthenticationError(MESSAGES['login_required'], status=401))

        field_errors = validate_profile_update(fields)
        if field_errors:
            return self._fail(ValidationError(field_errors), 'auth.profile_update_failed')

        changes = {
            'full_name': fields['full_name'].strip(),
            'phone': fields['phone'].strip(),
        }
        for name in PROFILE_OPTIONAL_FIELDS:
            value = fields.get(name)
            changes[name] = value.strip() if isinstance(value, str) and value.strip() else None

        try:
            answer = self.api.update_profile(changes)
        except AuthenticationError as e:
            self.force_logout('profile_update_rejected')
            return AuthResult(success=False, error=e)
        except ApiError as e:
            return self._fail(e, 'auth.profile_update_failed')

        merged = stored.user.to_dict()
        merged.update(changes)
        merged.update({key: value for key, value in (answer or {}).items() if value is not None})
        merged['role'] = stored.user.role.value
        try:
            user = UserProfile.from_dict(merged)
        except ValueError as e:
            return self._fail(ServerError(f'Invalid user profile: {e}', payload=answer), 'auth.profile_update_failed')

        self._authenticated(self.store.write(stored.token, user))
        log_event('auth.profile_updated')
        return AuthResult(success=True, user=user)

    # =========================================================================
    # PASSWORDS
    # =========================================================================

    def reset_password(self, token: str, new_password: str) -> AuthResult:
        """
        Reset password with a one-shot reset token.

        A weak password yields WeakPasswordError; an invalid or expired token
        yields InvalidResetTokenError.
        """
        self._begin()

        if not token or not token.strip():
            return self._fail(InvalidResetTokenError(MESSAGES['invalid_reset_token']), 'auth.reset_failed')

        is_valid, message = validate_password(new_password)
        if not is_valid:
            return self._fail(WeakPasswordError({'new_password': message}), 'auth.reset_failed')

        try:
            ok = self.api.reset_password(token.strip(), new_password)
        except (AuthenticationError, NotFoundError) as e:
            return self._fail(_reset_token_error(e), 'auth.reset_failed')
        except RequestRejectedError as e:
            if e.status == 422:
                errors = e.field_errors or {'new_password': e.message}
                return self._fail(WeakPasswordError(errors, e.message), 'auth.reset_failed')
            return self._fail(_reset_token_error(e), 'auth.reset_failed')
        except ApiError as e:
            return self._fail(e, 'auth.reset_failed')

        if not ok:
            return self._fail(InvalidResetTokenError(MESSAGES['invalid_reset_token']), 'auth.reset_failed')

        log_event('auth.password_reset')
        return AuthResult(success=True)

    def request_password_reset(self, email: str) -> AuthResult:
        """Ask the API to send a reset link."""
        self._begin()
        if not validate_email(email or ''):
            return self._fail(ValidationError({'email': MESSAGES['invalid_email']}), 'auth.forgot_failed')
        try:
            self.api.forgot_password(email.strip())
        except NotFoundError:
            # Same answer whether the email exists or not
            pass
        except ApiError as e:
            return self._fail(e, 'auth.forgot_failed')
        return AuthResult(success=True)

    def change_password(self, current_password: str, new_password: str) -> AuthResult:
        """Change the logged-in user's password."""
        self._begin()
        field_errors = {}
        if not current_password:
            field_errors['current_password'] = MESSAGES['field_required']
        is_valid, message = validate_password(new_password)
        if not is_valid:
            field_errors['new_password'] = message
        if field_errors:
            error_class = WeakPasswordError if 'new_password' in field_errors else ValidationError
            return self._fail(error_class(field_errors), 'auth.change_password_failed')

        try:
            self.api.change_password(current_password, new_password)
        except AuthenticationError as e:
            # The API answers 401 both for a wrong current password and for a dead token
            if 'current password' not in (e.message or '').lower():
                self.force_logout('change_password_rejected')
                return AuthResult(success=False, error=e)
            return self._fail(
                ValidationError({'current_password': MESSAGES['current_password_incorrect']}, e.message),
                'auth.change_password_failed'
            )
        except RequestRejectedError as e:
            return self._fail(
                ValidationError({'current_password': MESSAGES['current_password_incorrect']}, e.message),
                'auth.change_password_failed'
            )
        except ApiError as e:
            return self._fail(e, 'auth.change_password_failed')

        log_event('auth.password_changed')
        return AuthResult(success=True)

    def lookup_account(self, id_number: str) -> AuthResult:
        """
        Look up an account by national ID number.

        The API answers with a freshly generated temporary password in
        plaintext; the flow is kept behind FEATURE_ACCOUNT_LOOKUP.
        """
        self._begin()
        if not validate_id_number(id_number or ''):
            return self._fail(ValidationError({'id_number': MESSAGES['invalid_id_number']}), 'auth.lookup_failed')
        try:
            account = self.api.lookup_account(id_number.strip())
        except ApiError as e:
            return self._fail(e, 'auth.lookup_failed')

        log_event('auth.account_lookup', logging.WARNING)
        return AuthResult(success=True, data=account)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _fail(self, error: HomestayError, event: str) -> AuthResult:
        self.error = error
        if self.status == AuthStatus.LOADING:
            self._unauthenticated(error)
        level = logging.DEBUG if isinstance(error, ValidationError) else logging.INFO
        log_event(event, level, error=type(error).__name__)
        return AuthResult(success=False, error=error)


def _mentions_inactive(error: ApiError) -> bool:
    return 'deactivated' in (error.message or '').lower() or 'inactive' in (error.message or '').lower()


def _reset_token_error(error: ApiError) -> InvalidResetTokenError:
    return InvalidResetTokenError(
        MESSAGES['invalid_reset_token'], status=error.status, payload=error.payload
    )


def get_auth() -> AuthContext:
    """
    Get the request's Auth Context, building and initializing it on first use.

    Returns:
        AuthContext bound to the current browser session
    """
    if 'auth' not in g:
        from api_client import get_api

        auth = AuthContext(
            api=get_api(),
            store=SessionStore(session),
            revalidate_after=current_app.config.get('AUTH_REVALIDATE_SECONDS', 300),
            auto_login_on_register=current_app.config.get('FEATURE_REGISTER_AUTO_LOGIN', True),
        )
        g.auth = auth
        auth.initialize()
    return g.auth
