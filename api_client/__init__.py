"""
REST API client package for the homestay portal.

This package provides access to the homestay REST API:
- client: HomestayApiClient with typed resource methods
- connection: Per-request client management (get_api, close_api)
"""

from api_client.client import HomestayApiClient, AuthPayload
from api_client.connection import get_api, close_api, build_api_client

__all__ = [
    'HomestayApiClient',
    'AuthPayload',
    'get_api',
    'close_api',
    'build_api_client',
]
