"""
Authentication routes: login, logout, registration, password flows, profile.
All session changes go through the Auth Context.
"""

from flask import render_template, redirect, url_for, flash, request, Blueprint, current_app, abort

from blueprints.auth.forms import (
    LoginForm,
    RegisterForm,
    ForgotPasswordForm,
    ResetPasswordForm,
    ChangePasswordForm,
    ProfileForm,
    AccountLookupForm,
)
from services.auth_context import get_auth
from utils.decorators import protected_route
from utils.errors import (
    ValidationError,
    AuthenticationError,
    AccountInactiveError,
    InvalidResetTokenError,
    ConflictError,
    NotFoundError,
    NetworkError,
    ServerError,
)
from utils.helpers import is_safe_redirect
from utils.messages import MESSAGES

auth_bp = Blueprint('auth', __name__)

# Auth Context field names -> form field names
LOGIN_FIELDS = {'identifier': 'email', 'secret': 'password'}


def _apply_field_errors(form, field_errors: dict, aliases: dict = None) -> bool:
    """
    Attach field errors from the Auth Context to form fields.

    Returns:
        True if at least one error was attached to a field
    """
    attached = False
    for name, message in (field_errors or {}).items():
        field = getattr(form, (aliases or {}).get(name, name), None)
        if field is None:
            continue
        field.errors = list(field.errors) + [message]
        attached = True
    return attached


def _flash_error(error, default_key: str = 'unexpected_error') -> None:
    """Flash a single toast for an error that is not bound to a form field."""
    if isinstance(error, NetworkError):
        flash(MESSAGES['network_error'], 'error')
    elif isinstance(error, ServerError):
        flash(MESSAGES['server_error'], 'error')
    else:
        flash(error.message or MESSAGES[default_key], 'error')


def _home_for(user) -> str:
    if user is not None and user.is_staff:
        return url_for('index')
    return url_for('rooms.search')


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    """
    Login route with form handling.

    GET: Display login form
    POST: Process login credentials
    """
    auth = get_auth()

    # Redirect if already logged in
    if auth.is_authenticated:
        return redirect(_home_for(auth.user))

    form = LoginForm()

    if form.validate_on_submit():
        result = auth.login(form.email.data, form.password.data)

        if result.success:
            flash(MESSAGES['login_success'].format(name=result.user.display_name), 'success')

            # Redirect to next page or default
            next_page = request.args.get('next')
            if not is_safe_redirect(next_page):
                next_page = _home_for(result.user)
            return redirect(next_page)

        error = result.error
        if isinstance(error, ValidationError):
            _apply_field_errors(form, error.field_errors, LOGIN_FIELDS)
        elif isinstance(error, AccountInactiveError):
            flash(MESSAGES['account_inactive'], 'error')
        elif isinstance(error, AuthenticationError):
            flash(MESSAGES['invalid_credentials'], 'error')
        else:
            _flash_error(error)

    return render_template('auth/login.html', form=form)


@auth_bp.route('/logout', methods=['GET', 'POST'])
def logout():
    """Logout current user. Safe to call when already logged out."""
    get_auth().logout()
    flash(MESSAGES['logout_success'], 'success')
    return redirect(url_for('auth.login'))


@auth_bp.route('/register', methods=['GET', 'POST'])
def register():
    """Customer registration."""
    auth = get_auth()
    if auth.is_authenticated:
        return redirect(_home_for(auth.user))

    form = RegisterForm()

    if form.validate_on_submit():
        result = auth.register({
            'full_name': form.full_name.data,
            'email': form.email.data,
            'phone': form.phone.data,
            'password': form.password.data,
            'confirm_password': form.confirm_password.data,
        })

        if result.success and result.requires_login:
            flash(MESSAGES['register_login_required'], 'success')
            return redirect(url_for('auth.login'))
        if result.success:
            flash(MESSAGES['register_success'], 'success')
            return redirect(_home_for(result.user))

        error = result.error
        if isinstance(error, ConflictError):
            _apply_field_errors(form, {'email': MESSAGES['email_exists']})
        elif not _apply_field_errors(form, result.field_errors):
            _flash_error(error)

    return render_template('auth/register.html', form=form)


@auth_bp.route('/forgot-password', methods=['GET', 'POST'])
def forgot_password():
    """Request a password reset email."""
    form = ForgotPasswordForm()

    if form.validate_on_submit():
        result = get_auth().request_password_reset(form.email.data)
        if result.success:
            flash(MESSAGES['password_reset_requested'], 'info')
            return redirect(url_for('auth.login'))
        if not _apply_field_errors(form, result.field_errors):
            _flash_error(result.error)

    return render_template('auth/forgot_password.html', form=form)


@auth_bp.route('/reset-password/<token>', methods=['GET', 'POST'])
def reset_password(token):
    """Set a new password with the token from the reset email."""
    form = ResetPasswordForm()

    if form.validate_on_submit():
        result = get_auth().reset_password(token, form.new_password.data)
        if result.success:
            flash(MESSAGES['password_reset_success'], 'success')
            return redirect(url_for('auth.login'))

        error = result.error
        if isinstance(error, InvalidResetTokenError):
            flash(MESSAGES['invalid_reset_token'], 'error')
            return redirect(url_for('auth.forgot_password'))
        if not _apply_field_errors(form, result.field_errors):
            _flash_error(error)

    return render_template('auth/reset_password.html', form=form, token=token)


@auth_bp.route('/account-lookup', methods=['GET', 'POST'])
def account_lookup():
    """
    Find an account by national ID number.

    The API answers with a temporary password in plaintext, so the page is
    only served when FEATURE_ACCOUNT_LOOKUP is enabled.
    """
    if not current_app.config.get('FEATURE_ACCOUNT_LOOKUP'):
        abort(404)

    form = AccountLookupForm()
    account = None

    if form.validate_on_submit():
        result = get_auth().lookup_account(form.id_number.data)
        if result.success:
            account = result.data
            flash(MESSAGES['account_found'], 'success')
        elif isinstance(result.error, NotFoundError):
            flash(MESSAGES['account_not_found'], 'error')
        elif not _apply_field_errors(form, result.field_errors):
            _flash_error(result.error)

    return render_template('auth/account_lookup.html', form=form, account=account)


@auth_bp.route('/profile')
@protected_route
def profile():
    """Display user profile, refreshed from the API when possible."""
    auth = get_auth()
    result = auth.refresh_profile()
    if not result.success and not auth.is_authenticated:
        flash(MESSAGES['session_expired'], 'warning')
        return redirect(url_for('auth.login'))
    return render_template('auth/profile.html', user=auth.user)


@auth_bp.route('/profile/edit', methods=['GET', 'POST'])
@protected_route
def edit_profile():
    """Edit name, phone, address and date of birth."""
    auth = get_auth()
    form = ProfileForm()

    if request.method == 'GET':
        user = auth.user
        form.full_name.data = user.full_name
        form.phone.data = user.phone
        form.address.data = user.get('address')
        form.date_of_birth.data = str(user.get('date_of_birth') or '')[:10]

    if form.validate_on_submit():
        result = auth.update_profile({
            'full_name': form.full_name.data,
            'phone': form.phone.data,
            'address': form.address.data,
            'date_of_birth': form.date_of_birth.data,
        })
        if result.success:
            flash(MESSAGES['profile_updated'], 'success')
            return redirect(url_for('auth.profile'))
        if not auth.is_authenticated:
            flash(MESSAGES['session_expired'], 'warning')
            return redirect(url_for('auth.login'))
        if not _apply_field_errors(form, result.field_errors):
            _flash_error(result.error)

    return render_template('auth/edit_profile.html', form=form)


@auth_bp.route('/profile/change-password', methods=['GET', 'POST'])
@protected_route
def change_password():
    """Change user password."""
    form = ChangePasswordForm()

    if form.validate_on_submit():
        auth = get_auth()
        result = auth.change_password(form.current_password.data, form.new_password.data)
        if result.success:
            flash(MESSAGES['password_updated'], 'success')
            return redirect(url_for('auth.profile'))
        if not auth.is_authenticated:
            flash(MESSAGES['session_expired'], 'warning')
            return redirect(url_for('auth.login'))
        if not _apply_field_errors(form, result.field_errors):
            _flash_error(result.error)

    return render_template('auth/change_password.html', form=form)


@auth_bp.route('/unauthorized')
def unauthorized():
    """Landing page for authenticated users without the required role."""
    return render_template('auth/unauthorized.html'), 403
