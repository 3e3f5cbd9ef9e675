"""HTTP client façade for the weblattice library.

This module provides `WebLatticeClient`, whose verb methods (get, post, put,
patch, delete, graphql) run every call through the `RequestPipeline` and
always return an `ApiResponse` envelope: transport errors, HTTP errors,
decryption failures and configuration errors are all converted into failure
envelopes instead of being raised.
"""

import ssl
from collections.abc import Mapping, Sequence
from typing import Any, Self
from urllib.parse import urlencode

import certifi
import httpx
import tenacity
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from .auth import AuthStrategy, SessionTokenAuth
from .config import (
    EncryptionSettings,
    Environment,
    MetricsSettings,
    NetworkConfig,
    get_settings,
)
from .constants import DEFAULT_TIMEOUT
from .exceptions import (
    ConfigurationError,
    NetworkError,
    TimeoutError,
    WebLatticeError,
    WebLatticeRequestError,
)
from .graphql import build_graphql_payload, unwrap_graphql_data
from .log_config import logger
from .models import ApiResponse, RequestContext
from .navigation import log_redirect
from .pipeline import RequestPipeline
from .types import MetricsSink, QueryParams, QueryValue, Redirector


def _format_query_value(value: QueryValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_url(url: str, params: QueryParams | None = None) -> str:
    """Append URL-encoded query parameters to ``url``.

    ``None`` values are skipped. Parameters are joined with ``&`` when the URL
    already carries a query string.

    Example:
        >>> build_url("/users?x=1", {"page": 2, "limit": None})
        '/users?x=1&page=2'
    """
    if not params:
        return url
    query = urlencode(
        [(key, _format_query_value(value)) for key, value in params.items() if value is not None]
    )
    if not query:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"


class WebLatticeClient:
    """Asynchronous HTTP client with encryption, metrics and GraphQL support.

    Each client owns its configuration; `update_config` changes it for calls
    that have not started building yet.

    Example:
    ```python
    async with init_client("https://api.example.com", environment="PROD",
                           encryption_key="s3cret") as client:
        result = await client.get("/users", params={"page": 1})
        if result.success:
            print(result.data)
    ```

    Attributes:
        _config: Live configuration for this client.
        _auth_strategy: Credential injection strategy.
        _pipeline: The request/response pipeline.
        _http_client: The underlying httpx.AsyncClient.
        _should_close_client: Flag indicating if this instance owns the _http_client.
    """

    def __init__(
        self,
        config: NetworkConfig | None = None,
        auth_strategy: AuthStrategy | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        redirect: Redirector | None = None,
        metrics_sinks: Sequence[MetricsSink] = (),
    ):
        """Initialize the client.

        Args:
            config: Configuration owned by this client. Defaults to a copy of
                the environment-derived settings.
            auth_strategy: Credential strategy. Defaults to `SessionTokenAuth`
                over an empty session store.
            http_client: Optional pre-configured httpx.AsyncClient instance.
            redirect: Navigation side effect for 401/5xx. Defaults to logging.
            metrics_sinks: Extra sinks receiving every metric record.
        """
        self._config = config if config is not None else get_settings().model_copy(deep=True)
        self._auth_strategy: AuthStrategy = auth_strategy or SessionTokenAuth()
        logger.info(
            f"Using authentication strategy: {type(self._auth_strategy).__name__}"
        )
        self._pipeline = RequestPipeline(
            self._config,
            self._auth_strategy,
            redirect or log_redirect,
            metrics_sinks,
        )

        self._should_close_client = http_client is None
        self._http_client = http_client or self._create_default_http_client()
        logger.debug(
            f"WebLatticeClient initialized for {self._config.base_url or '<no base url>'} "
            f"({self._config.environment.value})"
        )

    @property
    def config(self) -> NetworkConfig:
        """The live configuration. Later updates are visible through this object."""
        return self._config

    @property
    def auth_strategy(self) -> AuthStrategy:
        return self._auth_strategy

    def update_config(self, partial: Mapping[str, Any] | None = None, **changes: Any) -> None:
        """Shallow-merge configuration changes; see `NetworkConfig.update`."""
        self._config.update(partial, **changes)

    def _create_default_http_client(self) -> httpx.AsyncClient:
        """Create a default httpx.AsyncClient.

        Base URL, timeout and headers are applied per request from the live
        configuration, so they are not baked into the transport.
        """
        try:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            verify_ssl: ssl.SSLContext | bool = ssl_context
            logger.debug("Using certifi SSL context.")
        except Exception:
            verify_ssl = True
            logger.warning(
                "certifi not found or failed to load. Using default SSL verification."
            )

        return httpx.AsyncClient(verify=verify_ssl, follow_redirects=True)

    async def _execute_single_request(self, request: httpx.Request) -> httpx.Response:
        """Send one attempt, translating httpx errors into WebLattice errors.

        Raises:
            TimeoutError: If the request times out.
            NetworkError: For connection-level errors.
            WebLatticeRequestError: For other httpx request errors.
            WebLatticeError: For anything else that goes wrong while sending.
        """
        try:
            return await self._http_client.send(request)
        except httpx.TimeoutException as e:
            logger.error(f"Request timed out: {request.url}")
            raise TimeoutError(str(e) or "Request timed out", request=request) from e
        except httpx.NetworkError as e:
            logger.error(f"Network error occurred for {request.url}: {e}")
            raise NetworkError(str(e) or "Network error", request=request) from e
        except httpx.RequestError as e:
            logger.error(f"HTTP request error for {request.url}: {e}")
            raise WebLatticeRequestError(
                str(e) or "HTTP request error", request=request
            ) from e
        except Exception as e:
            logger.exception(f"Unexpected error while sending request to {request.url}: {e}")
            raise WebLatticeError(
                f"An unexpected error occurred during request execution: {e}",
                request=request,
            ) from e

    def _should_retry_request(self, retry_state: tenacity.RetryCallState) -> bool:
        """Predicate for tenacity: retry only timeouts and network errors."""
        outcome = retry_state.outcome
        if not outcome or not outcome.failed:
            return False
        exc = outcome.exception()
        if isinstance(exc, TimeoutError | NetworkError):
            url = getattr(getattr(exc, "request", None), "url", "N/A")
            logger.warning(f"Retrying due to {type(exc).__name__} for {url}")
            return True
        return False

    async def _before_retry_sleep(self, retry_state: tenacity.RetryCallState) -> None:
        sleep_time = (
            getattr(retry_state.next_action, "sleep", 0) if retry_state.next_action else 0
        )
        logger.info(
            f"Retrying request in {sleep_time:.2f} seconds "
            f"after {retry_state.attempt_number} attempt(s)"
        )

    async def _send(self, request: httpx.Request) -> httpx.Response:
        """Sent phase: the transport call, retried on transient errors."""
        retry_strategy = AsyncRetrying(
            stop=stop_after_attempt(max(self._config.max_retries, 0) + 1),
            wait=wait_exponential(multiplier=self._config.backoff_factor),
            retry=self._should_retry_request,
            reraise=True,
            before_sleep=self._before_retry_sleep,
        )
        return await retry_strategy(self._execute_single_request, request)

    async def request(
        self,
        method: str,
        url: str,
        *,
        body: Any | None = None,
        params: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        is_graphql: bool = False,
        base_url: str | None = None,
    ) -> ApiResponse[Any]:
        """Perform a call and wrap its outcome in an `ApiResponse`.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE).
            url: Path relative to the base URL, or an absolute URL.
            body: JSON-serialisable body or pydantic model (write verbs).
            params: Query parameters; ``None`` values are dropped.
            headers: Per-call headers, overriding configured ones.
            timeout: Per-call timeout in seconds.
            is_graphql: Marks the call as GraphQL in its metric record.
            base_url: Per-call base URL override.

        Returns:
            ApiResponse[Any]: Never raises; failures come back with
                ``success=False``.
        """
        try:
            context = RequestContext(
                method=method.upper(),
                url=build_url(url, params),
                headers=dict(headers or {}),
                body=body,
                query_params=params,
                timeout=timeout,
                base_url=base_url,
                is_graphql=is_graphql,
            )
            response, data = await self._pipeline.execute(context, self._send)
        except WebLatticeError as e:
            return self._failure_envelope(e)
        except Exception as e:
            logger.exception(f"Unexpected error during {method} {url}: {e}")
            return ApiResponse.failure(str(e) or None)

        return ApiResponse.ok(data, response.status_code, dict(response.headers))

    @staticmethod
    def _failure_envelope(error: WebLatticeError) -> ApiResponse[Any]:
        headers = dict(error.response.headers) if error.response is not None else None
        return ApiResponse.failure(
            error.message, error.status_code, data=error.data, headers=headers
        )

    async def get(
        self,
        url: str,
        *,
        params: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        is_graphql: bool = False,
    ) -> ApiResponse[Any]:
        return await self.request(
            "GET", url, params=params, headers=headers, timeout=timeout, is_graphql=is_graphql
        )

    async def post(
        self,
        url: str,
        body: Any | None = None,
        *,
        params: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        is_graphql: bool = False,
    ) -> ApiResponse[Any]:
        return await self.request(
            "POST",
            url,
            body=body,
            params=params,
            headers=headers,
            timeout=timeout,
            is_graphql=is_graphql,
        )

    async def put(
        self,
        url: str,
        body: Any | None = None,
        *,
        params: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        is_graphql: bool = False,
    ) -> ApiResponse[Any]:
        return await self.request(
            "PUT",
            url,
            body=body,
            params=params,
            headers=headers,
            timeout=timeout,
            is_graphql=is_graphql,
        )

    async def patch(
        self,
        url: str,
        body: Any | None = None,
        *,
        params: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        is_graphql: bool = False,
    ) -> ApiResponse[Any]:
        return await self.request(
            "PATCH",
            url,
            body=body,
            params=params,
            headers=headers,
            timeout=timeout,
            is_graphql=is_graphql,
        )

    async def delete(
        self,
        url: str,
        *,
        params: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        is_graphql: bool = False,
    ) -> ApiResponse[Any]:
        return await self.request(
            "DELETE", url, params=params, headers=headers, timeout=timeout, is_graphql=is_graphql
        )

    async def graphql(
        self,
        query: str,
        variables: Mapping[str, Any] | None = None,
        *,
        endpoint: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ApiResponse[Any]:
        """POST a GraphQL operation and unwrap the ``data`` member on success.

        The endpoint comes from ``endpoint``, else from ``config.graphql.endpoint``.
        Without either, a failure envelope is returned and nothing is sent.
        """
        target = endpoint or self._config.graphql.endpoint
        if not target:
            error = ConfigurationError("GraphQL endpoint is not configured")
            logger.error(error.message)
            return self._failure_envelope(error)

        result = await self.request(
            "POST",
            target,
            body=build_graphql_payload(query, variables),
            headers=headers,
            timeout=timeout,
            is_graphql=True,
        )
        if not result.success:
            return result
        return result.model_copy(update={"data": unwrap_graphql_data(result.data)})

    async def aclose(self) -> None:
        """Close the underlying HTTP client and the auth strategy."""
        if self._should_close_client and not self._http_client.is_closed:
            await self._http_client.aclose()
            logger.debug(f"WebLatticeClient internal HTTP client closed. Client ID: {id(self)}.")
        await self._auth_strategy.async_close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        await self.aclose()


def init_client(
    base_url: str,
    environment: Environment | str = Environment.DEV,
    encryption_key: str | None = None,
    timeout: float | None = None,
    headers: Mapping[str, str] | None = None,
    use_remote_keys: bool = False,
    enable_metrics: bool = True,
    **client_kwargs: Any,
) -> WebLatticeClient:
    """Create a client from the common options.

    Encryption is enabled exactly when ``encryption_key`` is given (it only
    takes effect in PROD). Metrics are logged to the console unless
    ``enable_metrics`` is False.

    Args:
        base_url: Base URL for relative request paths.
        environment: Deployment tier, as `Environment` or its name.
        encryption_key: Secret used to encrypt payloads.
        timeout: Default timeout in seconds.
        headers: Headers sent with every request.
        use_remote_keys: Announce the remote key id instead of the local one.
        enable_metrics: Record a metric for every call.
        **client_kwargs: Passed to `WebLatticeClient` (auth_strategy,
            http_client, redirect, metrics_sinks).
    """
    config = get_settings().model_copy(deep=True)
    config.update(
        base_url=base_url,
        environment=environment,
        timeout=timeout or DEFAULT_TIMEOUT,
        headers=dict(headers or {}),
        encryption=EncryptionSettings(
            enabled=bool(encryption_key),
            secret_key=encryption_key or None,
            use_remote_keys=use_remote_keys,
        ),
        metrics=MetricsSettings(enabled=enable_metrics, log_to_console=True),
    )
    return WebLatticeClient(config, **client_kwargs)
