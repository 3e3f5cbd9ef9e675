"""Tests for the credential injection strategies."""

import httpx
import pytest

from weblattice.auth import NoAuth, SessionStore, SessionTokenAuth, StaticTokenAuth
from weblattice.exceptions import AuthError, ConfigurationError


@pytest.mark.asyncio
async def test_no_auth_authenticate():
    """Test NoAuth strategy does not modify the request."""
    request = httpx.Request("GET", "http://example.com")
    original_headers = dict(request.headers)
    await NoAuth().async_authenticate(request)
    assert dict(request.headers) == original_headers


def test_static_token_auth_init_no_token():
    """Test StaticTokenAuth raises ConfigurationError if no token is provided."""
    with pytest.raises(
        ConfigurationError, match="StaticTokenAuth requires a non-empty 'token'."
    ):
        StaticTokenAuth(token="")
    with pytest.raises(
        ConfigurationError, match="StaticTokenAuth requires a non-empty 'token'."
    ):
        StaticTokenAuth(token=None)


@pytest.mark.asyncio
async def test_static_token_auth_authenticate():
    auth = StaticTokenAuth(token="test_token")
    request = httpx.Request("GET", "http://example.com")
    await auth.async_authenticate(request)
    assert request.headers["Authorization"] == "Bearer test_token"


@pytest.mark.asyncio
async def test_session_token_auth_without_token():
    auth = SessionTokenAuth(SessionStore())
    request = httpx.Request("GET", "http://example.com")
    await auth.async_authenticate(request)
    assert "Authorization" not in request.headers


@pytest.mark.asyncio
async def test_session_token_auth_reads_token_on_every_request():
    store = SessionStore()
    auth = SessionTokenAuth(store)

    store["accessToken"] = "first"
    first = httpx.Request("GET", "http://example.com")
    await auth.async_authenticate(first)

    store["accessToken"] = "second"
    second = httpx.Request("GET", "http://example.com")
    await auth.async_authenticate(second)

    del store["accessToken"]
    third = httpx.Request("GET", "http://example.com")
    await auth.async_authenticate(third)

    assert first.headers["Authorization"] == "Bearer first"
    assert second.headers["Authorization"] == "Bearer second"
    assert "Authorization" not in third.headers


@pytest.mark.asyncio
async def test_session_token_auth_ignores_empty_token():
    auth = SessionTokenAuth({"accessToken": ""})
    request = httpx.Request("GET", "http://example.com")
    await auth.async_authenticate(request)
    assert "Authorization" not in request.headers


def test_session_token_auth_custom_key():
    auth = SessionTokenAuth({"jwt": "abc"}, key="jwt")
    assert auth.get_token() == "abc"


def test_session_token_auth_store_failure():
    class BrokenStore(dict):
        def get(self, key, default=None):
            raise OSError("storage unavailable")

    auth = SessionTokenAuth(BrokenStore())
    with pytest.raises(AuthError, match="storage unavailable"):
        auth.get_token()


@pytest.mark.asyncio
async def test_close_is_noop():
    await NoAuth().async_close()
    await StaticTokenAuth("t").async_close()
    await SessionTokenAuth().async_close()
