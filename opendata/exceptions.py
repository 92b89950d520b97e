"""
Errors raised by the data providers.
The cache never raises; these only surface from upstream fetches.
"""


class DataServiceError(Exception):
    """Base class for upstream data failures shown to the user."""


class ConfigurationError(DataServiceError):
    """A required API key or setting is missing."""


class RateLimitError(DataServiceError):
    """The upstream API refused the request with HTTP 429."""


class NotFoundError(DataServiceError):
    """The upstream API has no record for the requested item."""


class UpstreamError(DataServiceError):
    """The upstream API answered with an unexpected status or body."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code
