"""
Request guards for the study endpoints.
"""
import hmac
import logging
from typing import Optional

from fastapi import Header

from algespace.core.config import settings
from algespace.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


def require_api_key(x_api_key: Optional[str] = Header(default=None)) -> None:
    """Check the X-API-Key header outside development when a key is configured."""
    if settings.is_development or not settings.api_key:
        return
    if x_api_key is None or not hmac.compare_digest(x_api_key, settings.api_key):
        logger.warning("Rejected request with missing or invalid API key")
        raise AuthenticationError("Invalid or missing API key")


def require_bearer_token(authorization: Optional[str] = Header(default=None)) -> str:
    """Require 'Authorization: Bearer <token>' and return the token."""
    if not authorization:
        raise AuthenticationError("Missing Authorization header")

    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Authorization header must use the Bearer scheme")

    if settings.bearer_token and not hmac.compare_digest(token, settings.bearer_token):
        raise AuthenticationError("Invalid bearer token")
    return token
