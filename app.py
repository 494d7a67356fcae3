"""
Homestay - Customer & Staff Portal
Flask application factory and initialization
"""

import os
import click
import logging
from flask import Flask, render_template, request, redirect, url_for, flash
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Import configuration
from config import config

# Import extensions
from extensions import login_manager, csrf

# Import API client functions
from api_client import close_api, build_api_client
from utils.errors import (
    ApiError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    NetworkError,
    ServerError,
)
from utils.messages import MESSAGES


def create_app(config_name=None):
    """
    Application factory for Flask app.

    Args:
        config_name: Configuration name ('development', 'production', 'test')

    Returns:
        Flask application instance
    """
    # Determine config
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    # Create Flask app
    app = Flask(__name__)

    # Load configuration
    config_class = config[config_name]
    if hasattr(config_class, 'validate'):
        config_class.validate()
    app.config.from_object(config_class)

    # Initialize extensions
    initialize_extensions(app)

    # Register blueprints
    register_blueprints(app)

    # Register request hooks
    register_request_hooks(app)

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_cli_commands(app)

    # Register context processors
    register_context_processors(app)

    # Register teardown handlers
    register_teardown_handlers(app)

    # Configure logging
    configure_logging(app)

    return app


def initialize_extensions(app):
    """Initialize Flask extensions."""
    from services.client_state import init_client_state

    # Initialize Flask-Login
    login_manager.init_app(app)
    # Initialize CSRF Protection
    csrf.init_app(app)
    # Per-browser search and booking state
    init_client_state(app)


def register_blueprints(app):
    """Register Flask blueprints."""
    # Import blueprints
    from blueprints.auth.routes import auth_bp
    from blueprints.rooms.routes import rooms_bp
    from blueprints.staff.routes import staff_bp
    from blueprints.admin.routes import admin_bp
    from blueprints.api.routes import api_bp

    # JSON API is guarded by the session, not by form tokens
    csrf.exempt(api_bp)

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(rooms_bp)
    app.register_blueprint(staff_bp, url_prefix='/staff')
    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.register_blueprint(api_bp, url_prefix='/api')

    # Set default route
    @app.route('/')
    def index():
        """Redirect to the area matching the user's role."""
        from services.auth_context import get_auth
        from models.user import Role

        auth = get_auth()
        if auth.is_authenticated and auth.user.role == Role.ADMIN:
            return redirect(url_for('admin.dashboard'))
        if auth.is_authenticated and auth.user.role == Role.STAFF:
            return redirect(url_for('staff.dashboard'))
        return redirect(url_for('rooms.search'))


def register_request_hooks(app):
    """Register before-request hooks."""

    @app.before_request
    def load_auth_context():
        """Restore the auth state once per request, before any guard runs."""
        if request.endpoint == 'static':
            return None
        from services.auth_context import get_auth
        get_auth()
        return None


def _is_json_request() -> bool:
    return request.blueprint == 'api' or request.is_json


def register_error_handlers(app):
    """Register error handlers."""
    from utils.api_response import api_exception, api_error

    @app.errorhandler(AuthenticationError)
    def authentication_error(error):
        """API rejected the token: log out and send the user to login."""
        from services.auth_context import get_auth
        from utils.decorators import login_redirect

        get_auth().force_logout('api_rejected')
        if _is_json_request():
            return api_exception(error)
        flash(MESSAGES['session_expired'], 'warning')
        return login_redirect()

    @app.errorhandler(AuthorizationError)
    def authorization_error(error):
        """Handle 403 answers from the API."""
        if _is_json_request():
            return api_exception(error)
        return redirect(url_for('auth.unauthorized'))

    @app.errorhandler(NotFoundError)
    def api_not_found(error):
        """Handle 404 answers from the API."""
        if _is_json_request():
            return api_exception(error)
        return render_template('errors/404.html'), 404

    @app.errorhandler(NetworkError)
    @app.errorhandler(ServerError)
    def upstream_error(error):
        """REST API unreachable or failing."""
        app.logger.warning(f"Upstream error on {request.path}: {type(error).__name__}: {error}")
        if _is_json_request():
            return api_exception(error)
        message = MESSAGES['network_error'] if isinstance(error, NetworkError) else MESSAGES['server_error']
        flash(message, 'error')
        if request.method == 'POST':
            return redirect(request.referrer or url_for('index'))
        return render_template('errors/503.html', message=message), 503

    @app.errorhandler(ApiError)
    def other_api_error(error):
        """Remaining 4xx answers not handled in the views."""
        if _is_json_request():
            return api_exception(error)
        flash(error.message or MESSAGES['unexpected_error'], 'error')
        return redirect(request.referrer or url_for('index'))

    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 errors."""
        if _is_json_request():
            return api_error(MESSAGES['not_found'], status=404)
        return render_template('errors/404.html'), 404

    @app.errorhandler(403)
    def forbidden_error(error):
        """Handle 403 errors."""
        if _is_json_request():
            return api_error(MESSAGES['unauthorized'], status=403)
        return render_template('errors/403.html'), 403

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        if _is_json_request():
            return api_error(MESSAGES['unexpected_error'], status=500)
        return render_template('errors/500.html'), 500

    @app.errorhandler(Exception)
    def unhandled_error(error):
        """Generic recovery page for anything not handled above."""
        from werkzeug.exceptions import HTTPException

        if isinstance(error, HTTPException):
            return error
        if app.debug:
            app.logger.exception(f"Unhandled error on {request.path}")
        else:
            app.logger.error(f"Unhandled error on {request.path}: {type(error).__name__}")
        if _is_json_request():
            return api_error(MESSAGES['unexpected_error'], status=500)
        return render_template('errors/500.html'), 500


def register_cli_commands(app):
    """Register Flask CLI commands."""

    @app.cli.command('check-api')
    def check_api_command():
        """Check that the REST API is reachable."""
        client = build_api_client(app.config)
        click.echo(f"Checking {app.config['API_BASE_URL']} ...")
        try:
            status = client.health()
        except ApiError as e:
            click.echo(f'API unreachable: {type(e).__name__}: {e}', err=True)
            raise SystemExit(1)
        finally:
            if hasattr(client, 'close'):
                client.close()
        click.echo(f"API OK: {status.get('status', 'ok')}")

    @app.cli.command('show-config')
    def show_config_command():
        """Print the effective portal configuration (secrets hidden)."""
        keys = (
            'API_BASE_URL', 'API_TIMEOUT', 'API_MAX_RETRIES', 'API_RETRY_BACKOFF',
            'AUTH_REVALIDATE_SECONDS', 'SUGGESTION_DEBOUNCE_MS', 'CLIENT_STATE_CAPACITY',
            'FEATURE_ACCOUNT_LOOKUP', 'FEATURE_REGISTER_AUTO_LOGIN', 'TIMEZONE',
        )
        for key in keys:
            click.echo(f'{key}={app.config.get(key)}')
        click.echo(f"SECRET_KEY={'set' if os.environ.get('SECRET_KEY') else 'default'}")


def register_context_processors(app):
    """Register template context processors."""

    @app.context_processor
    def utility_processor():
        """Inject utility values into templates."""
        from datetime import datetime

        return {
            'current_year': datetime.now().year,
            'app_name': app.config.get('APP_NAME', 'Homestay'),
            'app_version': app.config.get('APP_VERSION', '1.0.0'),
            'messages': MESSAGES,
        }

    # Add custom template filters
    from utils.helpers import format_date, format_currency, booking_status_label, payment_status_label

    app.add_template_filter(format_date, 'format_date')
    app.add_template_filter(format_currency, 'currency')
    app.add_template_filter(booking_status_label, 'booking_status')
    app.add_template_filter(payment_status_label, 'payment_status')


def register_teardown_handlers(app):
    """Register teardown handlers."""

    @app.teardown_appcontext
    def teardown_api(error):
        """Close the API client at end of request."""
        close_api(error)


def configure_logging(app):
    """Configure application logging."""
    events_logger = logging.getLogger('homestay.events')

    if not app.debug and not app.testing:
        # Production logging
        if not os.path.exists('logs'):
            os.mkdir('logs')

        file_handler = logging.FileHandler('logs/homestay.log')
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
        events_logger.addHandler(file_handler)

        app.logger.setLevel(logging.INFO)
        events_logger.setLevel(logging.INFO)
        app.logger.info('Homestay portal startup')
    else:
        # Development logging
        app.logger.setLevel(logging.DEBUG)
        events_logger.setLevel(logging.DEBUG)


# Create application instance for development server
if __name__ == '__main__':
    app = create_app()
    # host='0.0.0.0' allows access from other devices on the network
    app.run(host='0.0.0.0', port=8000, debug=True)
