"""
Tests for the Auth Context state machine and auth operations.
"""

import pytest

from models.session import SessionStore
from models.user import Role
from services.auth_context import AuthContext, AuthStatus, validate_registration
from utils.errors import (
    ValidationError,
    WeakPasswordError,
    AuthenticationError,
    AccountInactiveError,
    InvalidResetTokenError,
    NetworkError,
    RequestRejectedError,
)


class Clock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def storage():
    return {}


@pytest.fixture
def make_auth(fake_api, storage, clock):
    def factory(**kwargs):
        store = SessionStore(storage, clock=clock)
        return AuthContext(fake_api, store, revalidate_after=300, clock=clock, **kwargs)
    return factory


@pytest.fixture
def auth(make_auth):
    context = make_auth()
    context.initialize()
    return context


class TestLogin:
    """Tests for login()."""

    def test_login_success(self, auth, fake_api):
        result = auth.login('khach@homestay.vn', 'khach123')

        assert result.success
        assert auth.status == AuthStatus.AUTHENTICATED
        assert auth.user.email == 'khach@homestay.vn'
        assert auth.token in fake_api.tokens

    def test_admin_login_scenario(self, auth):
        result = auth.login('admin@homestay.vn', 'admin123')

        assert result.success
        assert auth.user.role == Role.ADMIN
        assert auth.is_authenticated

    def test_invalid_credentials(self, auth):
        result = auth.login('khach@homestay.vn', 'wrong-password')

        assert not result.success
        assert isinstance(result.error, AuthenticationError)
        assert auth.status == AuthStatus.UNAUTHENTICATED
        assert auth.store.read().is_empty

    def test_empty_fields_never_reach_api(self, auth, fake_api):
        result = auth.login('  ', '')

        assert isinstance(result.error, ValidationError)
        assert set(result.field_errors) == {'identifier', 'secret'}
        assert fake_api.count('login') == 0

    def test_inactive_user_is_rejected(self, auth):
        result = auth.login('inactive@homestay.vn', 'inactive123')

        assert isinstance(result.error, AccountInactiveError)
        assert not auth.is_authenticated
        assert auth.store.read().is_empty

    def test_deactivated_message_maps_to_inactive(self, auth, fake_api):
        fake_api.fail('login', AuthenticationError('Account has been deactivated', status=401))

        result = auth.login('khach@homestay.vn', 'khach123')

        assert isinstance(result.error, AccountInactiveError)

    def test_failed_login_replaces_previous_session(self, auth):
        auth.login('khach@homestay.vn', 'khach123')

        auth.login('khach@homestay.vn', 'wrong')

        assert auth.user is None
        assert auth.store.read().is_empty


class TestLogout:
    """Tests for logout()."""

    def test_logout_clears_session(self, auth, fake_api):
        auth.login('khach@homestay.vn', 'khach123')

        result = auth.logout()

        assert result.success
        assert not auth.is_authenticated
        assert auth.store.read().is_empty
        assert fake_api.count('logout') == 1

    def test_logout_is_idempotent(self, auth, fake_api):
        auth.login('khach@homestay.vn', 'khach123')
        auth.logout()

        assert auth.logout().success
        assert fake_api.count('logout') == 1

    def test_remote_failure_still_logs_out(self, auth, fake_api):
        auth.login('khach@homestay.vn', 'khach123')
        fake_api.fail('logout', NetworkError('down'))

        assert auth.logout().success
        assert auth.store.read().is_empty


class TestInitialize:
    """Tests for restoring a persisted session."""

    def test_no_stored_session(self, make_auth):
        auth = make_auth()
        assert auth.loading

        assert auth.initialize() == AuthStatus.UNAUTHENTICATED
        assert not auth.loading

    def test_recent_session_trusted_without_api_call(self, auth, make_auth, fake_api):
        auth.login('khach@homestay.vn', 'khach123')

        restored = make_auth()
        restored.initialize()

        assert restored.is_authenticated
        assert fake_api.count('me') == 0

    def test_old_session_revalidated(self, auth, make_auth, fake_api, clock):
        auth.login('khach@homestay.vn', 'khach123')
        clock.now += 301

        restored = make_auth()
        restored.initialize()

        assert restored.is_authenticated
        assert fake_api.count('me') == 1
        assert restored.store.read().validated_at == clock.now

    def test_rejected_token_clears_session(self, auth, make_auth, fake_api, clock):
        auth.login('khach@homestay.vn', 'khach123')
        fake_api.tokens.clear()
        clock.now += 301

        restored = make_auth()
        restored.initialize()

        assert restored.status == AuthStatus.UNAUTHENTICATED
        assert restored.store.read().is_empty
        assert not restored.retry_later

    def test_network_failure_keeps_session(self, auth, make_auth, fake_api, clock):
        auth.login('khach@homestay.vn', 'khach123')
        fake_api.fail('me', NetworkError('down'))
        clock.now += 301

        restored = make_auth()
        restored.initialize()

        assert restored.status == AuthStatus.UNAUTHENTICATED
        assert restored.retry_later
        assert not restored.store.read().is_empty


class TestRegister:
    """Tests for register()."""

    FIELDS = {
        'full_name': 'Trần Thị B',
        'email': 'new@homestay.vn',
        'phone': '0912 345 678',
        'password': 'matkhau1',
        'confirm_password': 'matkhau1',
    }

    def test_register_logs_in(self, auth):
        result = auth.register(dict(self.FIELDS))

        assert result.success
        assert not result.requires_login
        assert auth.is_authenticated

    def test_register_without_auto_login(self, make_auth):
        auth = make_auth(auto_login_on_register=False)
        auth.initialize()

        result = auth.register(dict(self.FIELDS))

        assert result.success
        assert result.requires_login
        assert not auth.is_authenticated

    def test_register_validation(self, auth, fake_api):
        fields = dict(self.FIELDS, email='bad', phone='123', confirm_password='other')

        result = auth.register(fields)

        assert set(result.field_errors) == {'email', 'phone', 'confirm_password'}
        assert fake_api.count('register') == 0

    def test_validate_registration_required_fields(self):
        errors = validate_registration({})
        assert set(errors) == {'full_name', 'email', 'phone', 'password', 'confirm_password'}


class TestPasswords:
    """Tests for reset and change password."""

    def test_reset_password_success(self, auth):
        assert auth.reset_password('valid-reset-token', 'newpass1').success

    def test_reset_password_weak(self, auth, fake_api):
        result = auth.reset_password('valid-reset-token', '123')

        assert isinstance(result.error, WeakPasswordError)
        assert fake_api.count('reset_password') == 0

    def test_reset_password_invalid_token(self, auth):
        result = auth.reset_password('expired-token', 'newpass1')

        assert isinstance(result.error, InvalidResetTokenError)
        assert not isinstance(result.error, WeakPasswordError)

    def test_reset_password_rejected_by_server_as_weak(self, auth, fake_api):
        fake_api.fail('reset_password', RequestRejectedError('Password too weak', status=422))

        result = auth.reset_password('valid-reset-token', 'newpass1')

        assert isinstance(result.error, WeakPasswordError)

    def test_change_password_wrong_current(self, auth, fake_api):
        auth.login('khach@homestay.vn', 'khach123')
        fake_api.bind(lambda: auth.store.read().token)

        result = auth.change_password('not-my-password', 'newpass1')

        assert 'current_password' in result.field_errors
        assert auth.is_authenticated

    def test_change_password_with_dead_token_logs_out(self, auth, fake_api):
        auth.login('khach@homestay.vn', 'khach123')
        fake_api.tokens.clear()
        fake_api.bind(lambda: auth.store.read().token)

        result = auth.change_password('khach123', 'newpass1')

        assert not result.success
        assert not auth.is_authenticated
        assert auth.store.read().is_empty

    def test_request_password_reset_validates_email(self, auth, fake_api):
        result = auth.request_password_reset('not-an-email')

        assert 'email' in result.field_errors
        assert fake_api.count('forgot_password') == 0


class TestUpdateProfile:
    """Tests for update_profile()."""

    FIELDS = {'full_name': 'Nguyễn Văn B', 'phone': '0912345678', 'address': ' 12 Trần Phú ', 'date_of_birth': ''}

    @pytest.fixture
    def logged_in(self, auth, fake_api):
        auth.login('khach@homestay.vn', 'khach123')
        fake_api.bind(lambda: auth.store.read().token)
        return auth

    def test_update_keeps_identity(self, logged_in, fake_api):
        result = logged_in.update_profile(self.FIELDS)

        assert result.success
        user = logged_in.store.read().user
        assert user.full_name == 'Nguyễn Văn B'
        assert user.phone == '0912345678'
        assert user.get('address') == '12 Trần Phú'
        assert (user.id, user.email, user.role) == (3, 'khach@homestay.vn', Role.CUSTOMER)
        sent = fake_api.calls[-1][1][0]
        assert sent == {'full_name': 'Nguyễn Văn B', 'phone': '0912345678',
                        'address': '12 Trần Phú', 'date_of_birth': None}

    def test_admin_role_survives_answer_without_role(self, auth, fake_api):
        auth.login('admin@homestay.vn', 'admin123')
        fake_api.bind(lambda: auth.store.read().token)

        result = auth.update_profile(dict(self.FIELDS, full_name='Quản Trị Mới'))

        assert result.success
        assert auth.user.role == Role.ADMIN

    def test_invalid_fields_never_reach_api(self, logged_in, fake_api):
        result = logged_in.update_profile({'full_name': 'B', 'phone': '123', 'date_of_birth': '01/02/1990'})

        assert set(result.field_errors) == {'full_name', 'phone', 'date_of_birth'}
        assert fake_api.count('update_profile') == 0
        assert logged_in.is_authenticated

    def test_requires_session(self, auth, fake_api):
        result = auth.update_profile(self.FIELDS)

        assert isinstance(result.error, AuthenticationError)
        assert fake_api.count('update_profile') == 0

    def test_dead_token_logs_out(self, logged_in, fake_api):
        fake_api.tokens.clear()

        result = logged_in.update_profile(self.FIELDS)

        assert not result.success
        assert not logged_in.is_authenticated
        assert logged_in.store.read().is_empty

    def test_network_failure_keeps_session(self, logged_in, fake_api):
        fake_api.fail('update_profile', NetworkError('down'))

        result = logged_in.update_profile(self.FIELDS)

        assert isinstance(result.error, NetworkError)
        assert logged_in.is_authenticated
        assert logged_in.user.full_name == 'Nguyễn Văn A'
