"""Custom exception classes for the WebLattice library.

These exceptions never reach callers of the public verb methods: the client
translates every one of them into a failure `ApiResponse`. They exist so the
pipeline can carry the failing request, response and body to that boundary.
"""

from typing import Any

import httpx


class WebLatticeError(Exception):
    """Base exception class for all WebLattice errors."""

    def __init__(
        self,
        message: str,
        *,
        response: httpx.Response | None = None,
        request: httpx.Request | None = None,
        data: Any | None = None,
    ):
        """Initializes the base exception.

        Args:
            message: The error message.
            response: Optional httpx.Response object associated with the error.
            request: Optional httpx.Request object associated with the error.
            data: Optional response body (already decrypted when possible).
        """
        super().__init__(message)
        self.message = message
        self.response = response
        self.request = request
        self.data = data

    @property
    def status_code(self) -> int | None:
        """HTTP status of the associated response, if there was one."""
        return self.response.status_code if self.response is not None else None

    def __str__(self) -> str:
        if self.response is not None:
            url_info = getattr(getattr(self.response, "request", None), "url", "N/A")
            return (
                f"{self.message} (Status: {self.response.status_code}, URL: {url_info})"
            )
        if isinstance(self.request, httpx.Request):
            return f"{self.message} (URL: {self.request.url})"
        return self.message


class APIError(WebLatticeError):
    """Represents a non-2xx HTTP response."""


class TimeoutError(WebLatticeError):
    """Represents a request timeout error.

    Raised when the transport does not complete within the per-call or global
    timeout. Callers see it as a generic failure with status 500.
    """

    def __init__(self, message: str, *, request: httpx.Request | None = None):
        super().__init__(message, request=request, response=None)


class NetworkError(WebLatticeError):
    """Represents a network connection error (DNS failure, connection refused...)."""

    def __init__(self, message: str, *, request: httpx.Request | None = None):
        super().__init__(message, request=request, response=None)


class WebLatticeRequestError(WebLatticeError):
    """Represents any other transport-level error raised by httpx."""


class ConfigurationError(WebLatticeError):
    """Represents an error in the client configuration."""

    def __init__(self, message: str):
        # Configuration errors never have an HTTP response
        super().__init__(message, response=None)


class DecryptionError(WebLatticeError):
    """Raised when an encrypted body cannot be decrypted or is not valid JSON."""


class AuthError(WebLatticeError):
    """Raised when the session token cannot be read."""
