"""
Error taxonomy shared by the services and the HTTP shell.
"""
from typing import Optional


class NearbyWeatherError(Exception):
    """Base class for all errors raised by the nearby weather services."""


class InputValidationError(NearbyWeatherError):
    """Caller supplied a missing or malformed value. Raised before any upstream call."""


class ConfigurationError(NearbyWeatherError):
    """A collaborator was used without the configuration it needs (e.g. an API key)."""


class UpstreamError(NearbyWeatherError):
    """An upstream provider failed, timed out, or returned a payload we could not parse.

    The message is meant for logs only; the HTTP layer replaces it with a
    generic one before responding.
    """

    def __init__(self, service: str, message: str, status_code: Optional[int] = None):
        self.service = service
        self.status_code = status_code
        status_str = f" (status: {status_code})" if status_code else ""
        super().__init__(f"{service} upstream error{status_str}: {message}")
