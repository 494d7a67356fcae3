"""
API client connection management.
Builds one client per request and closes it at teardown.
"""

from flask import g, current_app, session

from models.session import SessionStore


def build_api_client(config: dict, token_getter=None):
    """
    Build an API client from application configuration.

    API_CLIENT_FACTORY, when set, replaces the default HomestayApiClient
    (tests inject a stub this way).

    Args:
        config: Flask config mapping
        token_getter: Callable returning the bearer token

    Returns:
        API client instance
    """
    factory = config.get('API_CLIENT_FACTORY')
    if factory is not None:
        return factory(token_getter=token_getter)

    from api_client.client import HomestayApiClient

    return HomestayApiClient(
        base_url=config['API_BASE_URL'],
        timeout=config.get('API_TIMEOUT', 10),
        max_retries=config.get('API_MAX_RETRIES', 3),
        backoff=config.get('API_RETRY_BACKOFF', 0.5),
        token_getter=token_getter,
    )


def get_api():
    """
    Get the request's API client.
    The bearer token is read from the session store on every call.

    Returns:
        API client bound to the current browser session
    """
    if 'api' not in g:
        store = SessionStore(session)
        g.api = build_api_client(current_app.config, token_getter=lambda: store.read().token)
    return g.api


def close_api(e=None):
    """
    Close the request's API client.

    Args:
        e: Exception if any (from Flask teardown context)
    """
    api = g.pop('api', None)
    if api is not None and hasattr(api, 'close'):
        api.close()
