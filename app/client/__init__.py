"""
Client-side auth facade.

``AuthClient`` talks to the auth HTTP API and keeps the session cookie;
``UserCache`` holds the last authenticated user for an immediate first render.
"""

from app.client.auth_client import AuthClient, AuthClientError
from app.client.cache import UserCache

__all__ = ["AuthClient", "AuthClientError", "UserCache"]
