# weblattice/types.py
"""Type aliases for the collaborators and hooks the weblattice client accepts.

The client treats session-token storage, navigation and metrics emission as
pluggable callables so they can be swapped out by applications and tests.
"""

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from .models import MetricRecord

QueryValue = str | int | float | bool | None
QueryParams = Mapping[str, QueryValue]
"""Query parameters for a single call. `None` values are dropped from the URL."""

PreRequestHook = Callable[[str, str, httpx.Headers], None]
"""Type alias for a pre-request hook.

Called once the pipeline has built all of its headers, right before the
request is sent.

Args:
    method (str): The HTTP method of the request (e.g., "GET", "POST").
    url (str): The request URL, including the query string.
    headers (httpx.Headers): The mutable outgoing headers. Hooks can modify
        them in place; keys are case-insensitive, so setting "Content-Type"
        replaces the default value.
Return:
    None: Hooks are expected to modify arguments in-place or perform side effects.
"""

PostRequestHook = Callable[[httpx.Response, Any], None]
"""Type alias for a post-request hook.

Called on the success path after the response body has been decrypted.

Args:
    response (httpx.Response): The raw `httpx.Response` object.
    data (Any): The parsed (and decrypted, if applicable) response body.
Return:
    None: Hooks are expected to perform side effects.
"""

MetricsSink = Callable[["MetricRecord"], None]
"""Receives every emitted metric record."""

Redirector = Callable[[str], None]
"""Navigation side effect, invoked with the target path on 401 and 5xx responses."""
