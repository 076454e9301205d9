"""
HTTP client for the study tracking endpoints.
"""
import logging
from typing import Any, Dict, Optional

import requests

from algespace.core.config import settings
from algespace.core.exceptions import TrackingError

logger = logging.getLogger(__name__)


class TrackingClient:
    """
    Sends tracking calls for one authenticated study participant.

    Failures are not retried; they are raised as TrackingError carrying the
    context of the call.
    """

    def __init__(
        self,
        token: str,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.tracking_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.tracking_timeout_seconds
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
        })
        if api_key or settings.api_key:
            self.session.headers["X-API-Key"] = api_key or settings.api_key

    def _request(self, method: str, path: str, payload: Dict[str, Any], context: str) -> requests.Response:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            return response
        except requests.exceptions.RequestException as e:
            error_msg = f"{context}: {str(e)}"
            if getattr(e, "response", None) is not None and e.response.text:
                error_msg += f" - {e.response.text}"
            logger.error(error_msg)
            raise TrackingError(error_msg) from e

    def create_entry(self, route_prefix: str, payload: Dict[str, Any]) -> int:
        """PUT <prefix>/createEntry and return the entry ID."""
        response = self._request(
            "PUT", f"{route_prefix}/createEntry", payload,
            "Server initialization for tracking failed",
        )
        try:
            return int(response.json())
        except ValueError as e:
            raise TrackingError(f"Server initialization for tracking failed: unexpected response {response.text!r}") from e

    def send(self, route_prefix: str, route: str, payload: Dict[str, Any], context: str) -> None:
        """POST <prefix>/<route>."""
        self._request("POST", f"{route_prefix}/{route}", payload, context)
