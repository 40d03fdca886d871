"""
Telemetry Hub - API Key Checks

Each caller role has its own shared secret, sent in ``X-Api-Key``.
"""

import hmac
import logging
from typing import Optional

from fastapi import Header, Request

from telemetry_hub.errors import AuthError

logger = logging.getLogger(__name__)

PROBE_KEY = "PROBE_API_KEY"
COLLECTOR_KEY = "LOG_COLLECTOR_API_KEY"
CLI_KEY = "CLI_API_KEY"


def check_api_key(provided: Optional[str], expected: str) -> None:
    """
    Raises:
        AuthError: If the key is missing or does not match
    """
    if provided is None:
        raise AuthError("Missing X-Api-Key header")
    if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise AuthError("Unauthorized")


def require_api_key(setting_name: str):
    """Build a dependency that checks X-Api-Key against one configured key."""

    def dependency(request: Request, x_api_key: Optional[str] = Header(None)) -> None:
        expected = getattr(request.app.state.settings, setting_name)
        try:
            check_api_key(x_api_key, expected)
        except AuthError:
            logger.warning("Rejected %s %s: bad API key", request.method, request.url.path)
            raise

    return dependency
