"""
Authentication forms using Flask-WTF.
Provides login, registration and password forms with CSRF protection.
"""

from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, BooleanField
from wtforms.validators import DataRequired, Email, Length, EqualTo, Regexp, Optional

from utils.messages import MESSAGES
from utils.validators import PASSWORD_MIN_LENGTH, FULL_NAME_MIN_LENGTH, FULL_NAME_MAX_LENGTH


class LoginForm(FlaskForm):
    """Login form with email and password."""

    email = StringField('Email', validators=[
        DataRequired(message=MESSAGES['identifier_required'])
    ])

    password = PasswordField('Mật khẩu', validators=[
        DataRequired(message=MESSAGES['secret_required'])
    ])

    remember_me = BooleanField('Ghi nhớ đăng nhập')


class RegisterForm(FlaskForm):
    """Customer registration form."""

    full_name = StringField('Họ và tên', validators=[
        DataRequired(message=MESSAGES['field_required']),
        Length(min=FULL_NAME_MIN_LENGTH, max=FULL_NAME_MAX_LENGTH, message=MESSAGES['invalid_full_name'])
    ])

    email = StringField('Email', validators=[
        DataRequired(message=MESSAGES['field_required']),
        Email(message=MESSAGES['invalid_email'])
    ])

    phone = StringField('Số điện thoại', validators=[
        DataRequired(message=MESSAGES['field_required'])
    ])

    password = PasswordField('Mật khẩu', validators=[
        DataRequired(message=MESSAGES['field_required']),
        Length(min=PASSWORD_MIN_LENGTH, message=MESSAGES['password_too_short'])
    ])

    confirm_password = PasswordField('Xác nhận mật khẩu', validators=[
        DataRequired(message=MESSAGES['field_required']),
        EqualTo('password', message=MESSAGES['password_mismatch'])
    ])


class ForgotPasswordForm(FlaskForm):
    """Request a password reset link."""

    email = StringField('Email', validators=[
        DataRequired(message=MESSAGES['field_required']),
        Email(message=MESSAGES['invalid_email'])
    ])


class ResetPasswordForm(FlaskForm):
    """Set a new password with a reset token."""

    new_password = PasswordField('Mật khẩu mới', validators=[
        DataRequired(message=MESSAGES['field_required'])
    ])

    confirm_password = PasswordField('Xác nhận mật khẩu', validators=[
        DataRequired(message=MESSAGES['field_required']),
        EqualTo('new_password', message=MESSAGES['password_mismatch'])
    ])


class ChangePasswordForm(FlaskForm):
    """Password change form."""

    current_password = PasswordField('Mật khẩu hiện tại', validators=[
        DataRequired(message=MESSAGES['field_required'])
    ])

    new_password = PasswordField('Mật khẩu mới', validators=[
        DataRequired(message=MESSAGES['field_required'])
    ])

    confirm_password = PasswordField('Xác nhận mật khẩu', validators=[
        DataRequired(message=MESSAGES['field_required']),
        EqualTo('new_password', message=MESSAGES['password_mismatch'])
    ])


class AccountLookupForm(FlaskForm):
    """Look up an account by national ID number (CMND/CCCD)."""

    id_number = StringField('Số CMND/CCCD', validators=[
        DataRequired(message=MESSAGES['field_required']),
        Regexp(r'^(\d{9}|\d{12})$', message=MESSAGES['invalid_id_number'])
    ])


class ProfileForm(FlaskForm):
    """Editable profile fields; email and role are read-only."""

    full_name = StringField('Họ và tên', validators=[
        DataRequired(message=MESSAGES['field_required']),
        Length(min=FULL_NAME_MIN_LENGTH, max=FULL_NAME_MAX_LENGTH, message=MESSAGES['invalid_full_name'])
    ])

    phone = StringField('Số điện thoại', validators=[
        DataRequired(message=MESSAGES['field_required'])
    ])

    address = StringField('Địa chỉ', validators=[
        Optional(),
        Length(max=255)
    ])

    date_of_birth = StringField('Ngày sinh (YYYY-MM-DD)', validators=[
        Optional()
    ])
