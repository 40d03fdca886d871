"""
Telemetry Hub - Error Types

Every error a request can end in maps onto one HTTP status code.
"""


class HubError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthError(HubError):
    """Missing or wrong API key."""

    status_code = 401


class ValidationError(HubError):
    """Malformed body, missing field, bad parameter or unknown command."""

    status_code = 400


class StoreError(HubError):
    """The persistence layer failed."""

    status_code = 500
