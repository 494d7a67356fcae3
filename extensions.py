"""
Flask extensions initialization.
Extensions are initialized here and then initialized with the app in app.py.
"""

from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect

# Initialize Flask-Login
login_manager = LoginManager()

# Initialize CSRF Protection
csrf = CSRFProtect()

# Configure Login Manager
login_manager.login_view = 'auth.login'
login_manager.login_message = 'Vui lòng đăng nhập để truy cập trang này'
login_manager.login_message_category = 'warning'


@login_manager.request_loader
def load_user_from_request(request):
    """
    Load the current user for Flask-Login from the Auth Context.

    The REST API owns the session; Flask-Login only mirrors it so that
    current_user is available in templates.

    Args:
        request: The current request

    Returns:
        UserProfile or None if not authenticated
    """
    from services.auth_context import get_auth

    auth = get_auth()
    return auth.user if auth.is_authenticated else None
