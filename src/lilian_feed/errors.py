from __future__ import annotations

from typing import Optional


class LilianFeedError(Exception):
    """Base class for all errors raised by lilian_feed."""


class ConfigError(LilianFeedError):
    """Raised when a configuration value has the wrong type or range."""


class FetchError(LilianFeedError):
    """A request to the content backend did not produce usable data."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class NetworkError(FetchError):
    """The backend could not be reached, or the request timed out."""


class HTTPStatusError(FetchError):
    def __init__(self, status_code: int, url: Optional[str] = None):
        super().__init__(f"HTTP {status_code} from {url}", url=url)
        self.status_code = status_code


class MalformedResponseError(FetchError):
    """The body was not JSON, or its top-level shape was not the one expected."""
