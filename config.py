"""
Flask application configuration classes.
Provides configuration for development, production, and testing environments.
"""

import os
from datetime import timedelta


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Base configuration class with common settings."""

    # Secret key for session cookie signing and CSRF protection
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # REST API collaborator
    API_BASE_URL = os.environ.get('API_BASE_URL') or 'http://localhost:5000/api'
    API_TIMEOUT = float(os.environ.get('API_TIMEOUT', 10))  # seconds, every request
    API_MAX_RETRIES = int(os.environ.get('API_MAX_RETRIES', 3))  # GET requests only
    API_RETRY_BACKOFF = float(os.environ.get('API_RETRY_BACKOFF', 0.5))  # seconds, doubled per attempt

    # Factory used to build the per-request API client (overridden in tests)
    API_CLIENT_FACTORY = None

    # Security settings
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = 3600  # CSRF token expires after 1 hour
    SESSION_COOKIE_NAME = 'homestay_session'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = False  # Set to True in production with HTTPS
    PERMANENT_SESSION_LIFETIME = timedelta(
        hours=int(os.environ.get('SESSION_TIMEOUT_HOURS', 8))
    )

    # Stored sessions are re-validated against /auth/me after this many seconds
    AUTH_REVALIDATE_SECONDS = int(os.environ.get('AUTH_REVALIDATE_SECONDS', 300))

    # Search
    SEARCH_PAGE_SIZE = 12
    SEARCH_HISTORY_LIMIT = 10
    SUGGESTION_DEBOUNCE_MS = int(os.environ.get('SUGGESTION_DEBOUNCE_MS', 300))
    SUGGESTION_LIMIT = 5
    POPULAR_SEARCH_LIMIT = 10

    # Reviews pagination
    REVIEWS_PER_PAGE = 10

    # Maximum number of browser clients whose search/booking state is held in memory
    CLIENT_STATE_CAPACITY = int(os.environ.get('CLIENT_STATE_CAPACITY', 1000))

    # Feature flags
    FEATURE_ACCOUNT_LOOKUP = _env_flag('FEATURE_ACCOUNT_LOOKUP', 'true')
    FEATURE_REGISTER_AUTO_LOGIN = _env_flag('FEATURE_REGISTER_AUTO_LOGIN', 'true')

    # Timezone
    TIMEZONE = 'Asia/Ho_Chi_Minh'

    # Application settings
    APP_NAME = 'Homestay'
    APP_VERSION = '1.0.0'


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG = True
    TESTING = False
    TEMPLATES_AUTO_RELOAD = True
    SESSION_COOKIE_SECURE = False
    WTF_CSRF_SSL_STRICT = False


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = os.environ.get('SESSION_COOKIE_SECURE', 'true').lower() == 'true'
    WTF_CSRF_SSL_STRICT = SESSION_COOKIE_SECURE

    SECRET_KEY = os.environ.get('SECRET_KEY') or Config.SECRET_KEY

    # URL scheme preference (follows SESSION_COOKIE_SECURE setting)
    PREFERRED_URL_SCHEME = 'https' if SESSION_COOKIE_SECURE else 'http'

    @classmethod
    def validate(cls) -> None:
        """Validate that required production environment variables are set."""
        secret_key = os.environ.get('SECRET_KEY')
        if not secret_key:
            raise ValueError("SECRET_KEY environment variable must be set in production")
        if len(secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters in production")
        if not os.environ.get('API_BASE_URL'):
            raise ValueError("API_BASE_URL environment variable must be set in production")


class TestConfig(Config):
    """Testing environment configuration."""

    TESTING = True
    DEBUG = True
    WTF_CSRF_ENABLED = False  # Disable CSRF for tests
    SECRET_KEY = 'test-secret-key'
    API_BASE_URL = 'http://api.test/api'
    API_RETRY_BACKOFF = 0
    SUGGESTION_DEBOUNCE_MS = 0


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'test': TestConfig,
    'default': DevelopmentConfig
}
