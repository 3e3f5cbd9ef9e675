from collections import UserDict
from collections.abc import Mapping
from typing import Protocol

import httpx

from .constants import ACCESS_TOKEN_KEY, HEADER_AUTHORIZATION
from .exceptions import AuthError, ConfigurationError
from .log_config import logger


class AuthStrategy(Protocol):
    """Protocol defining the interface for credential injection.

    Concrete implementations add authentication information (e.g. a Bearer
    token) to an outgoing request during the pipeline's Building phase.
    """

    async def async_authenticate(self, request: httpx.Request) -> None:
        """
        Asynchronously modifies the request to add authentication information.

        Args:
            request: The httpx.Request object to modify.

        Raises:
            AuthError: If the credentials cannot be read.
        """
        ...

    async def async_close(self) -> None:
        """
        Asynchronously closes any underlying resources used by the auth strategy.
        This method should be idempotent.
        """
        ...


class SessionStore(UserDict[str, str]):
    """In-memory session storage, keyed like a browser's sessionStorage.

    Applications store the access token under ``"accessToken"`` after login;
    `SessionTokenAuth` reads it on every request.
    """


class NoAuth:
    """Implements the AuthStrategy protocol for requests requiring no authentication."""

    async def async_authenticate(self, request: httpx.Request) -> None:
        """Does nothing as no authentication is needed."""
        logger.trace("Using NoAuth strategy, no authentication applied.")

    async def async_close(self) -> None:
        """No resources to close for NoAuth, this method is a no-op."""


class StaticTokenAuth:
    """Implements AuthStrategy using a fixed Bearer token.

    Attributes:
        _token: The static API token.
    """

    def __init__(self, token: str | None):
        """Initializes StaticTokenAuth with the provided API token.

        Raises:
            ConfigurationError: If the token is None or empty.
        """
        if not token:
            raise ConfigurationError("StaticTokenAuth requires a non-empty 'token'.")
        self._token: str = token
        logger.debug("StaticTokenAuth initialized.")

    async def async_authenticate(self, request: httpx.Request) -> None:
        """Adds the static 'Authorization: Bearer <token>' header to the request."""
        logger.trace("Authenticating request using StaticTokenAuth.")
        request.headers[HEADER_AUTHORIZATION] = f"Bearer {self._token}"

    async def async_close(self) -> None:
        """No resources to close for StaticTokenAuth, this method is a no-op."""


class SessionTokenAuth:
    """Implements AuthStrategy by reading the current token from a session store.

    The token is looked up on every request, so logging in or out (writing to
    or clearing the store) takes effect on the next call. When no token is
    stored the request goes out unauthenticated.

    Attributes:
        _store: Mapping holding the session values.
        _key: Key under which the access token is stored.
    """

    def __init__(self, store: Mapping[str, str] | None = None, key: str = ACCESS_TOKEN_KEY):
        self._store: Mapping[str, str] = store if store is not None else SessionStore()
        self._key = key
        logger.debug(f"SessionTokenAuth initialized reading '{key}'.")

    @property
    def store(self) -> Mapping[str, str]:
        return self._store

    def get_token(self) -> str | None:
        """Read the current token, if any.

        Raises:
            AuthError: If the underlying store fails.
        """
        try:
            return self._store.get(self._key) or None
        except Exception as e:
            raise AuthError(f"Could not read '{self._key}' from session store: {e}") from e

    async def async_authenticate(self, request: httpx.Request) -> None:
        """Adds 'Authorization: Bearer <token>' when a token is stored."""
        token = self.get_token()
        if token:
            logger.trace("Authenticating request using session token.")
            request.headers[HEADER_AUTHORIZATION] = f"Bearer {token}"
        else:
            logger.trace("No session token stored, sending request unauthenticated.")

    async def async_close(self) -> None:
        """No resources to close for SessionTokenAuth, this method is a no-op."""
