"""Request/response pipeline for the weblattice client.

Each call runs through three phases:

1. Building: headers are assembled, the body is encrypted when the client is
   in PROD with encryption enabled, credentials are injected and the start
   time is recorded on the call's `RequestContext`.
2. Sent: the transport is awaited. This is the only suspension point.
3. Succeeded/Failed: the body is decrypted with the keys stored on the same
   context, a metric is recorded and, for 401/5xx, navigation is triggered.

All per-call state lives on the `RequestContext`, so concurrent calls never
share keys or timings. Only the `NetworkConfig` is shared, and it is read at
the moment each phase needs it.
"""

import json
import secrets
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import httpx
from pydantic import BaseModel

from .auth import AuthStrategy
from .config import NetworkConfig
from .constants import (
    DEFAULT_CONTENT_TYPE,
    HEADER_APP_PLATFORM,
    HEADER_CLIENT_VERSION,
    HEADER_CONTENT_TYPE,
    HEADER_CORRELATION_ID,
    HEADER_ENCRYPTION,
    HEADER_ENCRYPTION_IV,
    HEADER_ENCRYPTION_KEY,
    HEADER_PUBLIC_KEY_ID,
)
from .crypto import decrypt_payload, encrypt_payload, generate_key_pair, public_key_id, to_json
from .exceptions import APIError, DecryptionError, WebLatticeError
from .log_config import logger
from .metrics import record_metrics
from .models import MetricRecord, RequestContext
from .navigation import redirect_for_status
from .types import MetricsSink, Redirector

Send = Callable[[httpx.Request], Awaitable[httpx.Response]]


def new_correlation_id() -> str:
    """Millisecond timestamp plus a random suffix, unique per request."""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}"


def resolve_url(base_url: str, url: str) -> str:
    """Join a request path onto the base URL. Absolute URLs are kept as-is."""
    if httpx.URL(url).is_absolute_url or not base_url:
        return url
    return f"{base_url.rstrip('/')}/{url.lstrip('/')}"


def read_body(response: httpx.Response) -> Any:
    """Decode a response body: JSON when possible, text otherwise, None when empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _jsonable(body: Any) -> Any:
    if isinstance(body, BaseModel):
        return body.model_dump(mode="json")
    return body


def _serialized_size(data: Any) -> int:
    if data is None:
        return 0
    if isinstance(data, str):
        return len(data.encode("utf-8"))
    return len(to_json(data).encode("utf-8"))


class RequestPipeline:
    """Runs a `RequestContext` through the Building, Sent and response phases.

    Attributes:
        _config: Live configuration of the owning client.
        _auth_strategy: Strategy injecting credentials into outgoing requests.
        _redirect: Navigation side effect for 401 and 5xx responses.
        _metrics_sinks: Extra sinks receiving every metric record.
    """

    def __init__(
        self,
        config: NetworkConfig,
        auth_strategy: AuthStrategy,
        redirect: Redirector,
        metrics_sinks: Sequence[MetricsSink] = (),
    ):
        self._config = config
        self._auth_strategy = auth_strategy
        self._redirect = redirect
        self._metrics_sinks = list(metrics_sinks)

    async def build(self, context: RequestContext) -> httpx.Request:
        """Building phase: turn the context into a ready-to-send request.

        Mutates ``context`` with the encrypted body, the key pair, the
        correlation id and the start time.
        """
        config = self._config
        headers = httpx.Headers({HEADER_CONTENT_TYPE: DEFAULT_CONTENT_TYPE})
        headers.update(config.headers)
        headers.update(context.headers)

        context.encrypted = config.is_production_encrypted
        if context.encrypted:
            encryption = config.encryption
            key_pair = generate_key_pair()
            context.encryption = encryption
            context.key_pair = key_pair
            if context.body is not None and not isinstance(context.body, str | bytes):
                try:
                    context.body = encrypt_payload(_jsonable(context.body), encryption)
                except (TypeError, ValueError) as e:
                    raise WebLatticeError(f"Request body is not JSON serializable: {e}") from e
            headers[HEADER_ENCRYPTION] = "true"
            headers[HEADER_ENCRYPTION_KEY] = key_pair.aes_key
            headers[HEADER_ENCRYPTION_IV] = key_pair.iv
            headers[HEADER_PUBLIC_KEY_ID] = public_key_id(encryption)

        context.correlation_id = new_correlation_id()
        headers[HEADER_CORRELATION_ID] = context.correlation_id
        headers[HEADER_CLIENT_VERSION] = config.client_version
        headers[HEADER_APP_PLATFORM] = config.app_platform

        if config.pre_request_hooks:
            logger.debug(
                f"Executing {len(config.pre_request_hooks)} pre-request hooks "
                f"for {context.method} {context.url}"
            )
            for hook in config.pre_request_hooks:
                try:
                    hook(context.method, context.url, headers)
                except Exception as e:
                    logger.error(
                        f"Error executing pre-request hook {getattr(hook, '__name__', str(hook))}: {e}"
                    )
        context.headers = dict(headers)

        content: bytes | None = None
        if isinstance(context.body, bytes):
            content = context.body
        elif context.body is not None:
            try:
                content = to_json(_jsonable(context.body)).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise WebLatticeError(f"Request body is not JSON serializable: {e}") from e

        timeout = context.timeout if context.timeout is not None else config.timeout
        request = httpx.Request(
            method=context.method,
            url=resolve_url(context.base_url or config.base_url, context.url),
            content=content,
            headers=headers,
            extensions={"timeout": httpx.Timeout(timeout).as_dict()},
        )
        await self._auth_strategy.async_authenticate(request)

        context.start_time = time.time()
        return request

    async def execute(
        self, context: RequestContext, send: Send
    ) -> tuple[httpx.Response, Any]:
        """Run a call end to end.

        Returns:
            tuple[httpx.Response, Any]: The response and its decoded body.

        Raises:
            WebLatticeError: For transport failures, non-2xx responses and
                undecryptable success bodies. The failure metric and any
                navigation have already happened when this is raised. Errors
                raised while building (auth store, body serialization) are
                recorded too, with no status.
        """
        try:
            request = await self.build(context)
        except WebLatticeError as e:
            self.handle_failure(context, e)
            raise

        logger.debug(f"Sending request: {request.method} {request.url}")
        logger.trace(f"Request Headers: {request.headers}")

        try:
            response = await send(request)
        except WebLatticeError as e:
            self.handle_failure(context, e)
            raise

        logger.debug(f"Received response: {response.status_code} for {request.url}")
        if not response.is_success:
            error = APIError(
                f"Request failed with status code {response.status_code}",
                response=response,
                request=request,
            )
            raise self.handle_failure(context, error)

        return response, self.handle_response(context, request, response)

    def handle_response(
        self, context: RequestContext, request: httpx.Request, response: httpx.Response
    ) -> Any:
        """Success path: decrypt when needed, run hooks, record the metric."""
        data = read_body(response)
        if context.key_pair is not None and isinstance(data, str):
            try:
                data = self._decrypt_json(context, data)
            except DecryptionError as e:
                logger.error(f"Error decoding encrypted response for {request.url}: {e}")
                e.request = request
                self._record(context, status=response.status_code, success=False)
                raise

        config = self._config
        if config.post_request_hooks:
            for hook in config.post_request_hooks:
                try:
                    hook(response, data)
                except Exception as e:
                    logger.error(
                        f"Error executing post-request hook {getattr(hook, '__name__', str(hook))}: {e}"
                    )

        self._record(
            context,
            status=response.status_code,
            success=True,
            request_size=len(request.content),
            response_size=_serialized_size(data),
        )
        return data

    def handle_failure(self, context: RequestContext, error: WebLatticeError) -> WebLatticeError:
        """Failure path: soft-decrypt the error body, record, navigate.

        Decryption problems are logged and leave the original body in place;
        the call is already failing.
        """
        status = error.status_code
        if error.response is not None:
            data = read_body(error.response)
            if context.key_pair is not None and isinstance(data, str):
                try:
                    data = self._decrypt_json(context, data)
                except DecryptionError as e:
                    logger.warning(f"Error decoding encrypted error response: {e}")
            error.data = data

        logger.error(f"Request {context.method} {context.url} failed: {error.message}")
        self._record(context, status=status, success=False)

        path = redirect_for_status(status, self._redirect)
        if path:
            logger.info(f"Status {status} for {context.url} triggered navigation to {path}")
        return error

    def _decrypt_json(self, context: RequestContext, ciphertext: str) -> Any:
        assert context.encryption is not None
        decrypted = decrypt_payload(ciphertext, context.encryption)
        try:
            return json.loads(decrypted)
        except ValueError as e:
            raise DecryptionError(f"Decrypted response is not valid JSON: {e}") from e

    def _record(
        self,
        context: RequestContext,
        *,
        status: int | None,
        success: bool,
        request_size: int | None = None,
        response_size: int | None = None,
    ) -> MetricRecord | None:
        end_time = time.time()
        start_time = context.start_time if context.start_time is not None else end_time
        record = MetricRecord(
            url=context.url,
            method=context.method.upper(),
            start_time=start_time,
            end_time=end_time,
            duration=(end_time - start_time) * 1000,
            status=status,
            success=success,
            encrypted=context.encrypted,
            graphql=context.is_graphql,
            request_size=request_size,
            response_size=response_size,
        )
        return record_metrics(record, self._config.metrics, self._metrics_sinks)
