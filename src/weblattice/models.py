"""Pydantic models shared by the weblattice pipeline and client.

`ApiResponse` is the uniform envelope handed back for every call,
`MetricRecord` describes one completed call, and `RequestContext` carries the
per-call state (including the transient encryption keys) from the Building
phase of the pipeline to its response phase.
"""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .config import EncryptionSettings
from .types import QueryParams

DataType = TypeVar("DataType")


class EncryptionKeyPair(BaseModel):
    """Random AES key and IV generated for exactly one encrypted request.

    Attributes:
        aes_key: 16 random bytes rendered as 32 lowercase hex characters.
        iv: 16 random bytes rendered as 32 lowercase hex characters.
    """

    aes_key: str
    iv: str

    model_config = ConfigDict(frozen=True)


class RequestContext(BaseModel):
    """Transient state for a single in-flight call.

    Owned by exactly one call; created by the client, filled in by the
    pipeline's Building phase and read back in its response phase.
    """

    method: str
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any | None = None
    query_params: QueryParams | None = None
    timeout: float | None = None
    base_url: str | None = None
    is_graphql: bool = False

    # Populated while building
    start_time: float | None = None
    correlation_id: str | None = None
    encrypted: bool = False
    key_pair: EncryptionKeyPair | None = None
    encryption: EncryptionSettings | None = None


class MetricRecord(BaseModel):
    """Timing and outcome of one call.

    Attributes:
        url: The request URL as given by the caller (query string included).
        method: Upper-cased HTTP method.
        start_time: Epoch seconds when the request was built.
        end_time: Epoch seconds when the outcome was known.
        duration: Elapsed time in milliseconds.
        status: HTTP status, absent for transport failures.
        success: Whether the call produced a success envelope.
        encrypted: Whether the request went out encrypted.
        graphql: Whether the call was a GraphQL operation.
        request_size: Byte length of the serialised request body.
        response_size: Byte length of the serialised (decrypted) response body.
        timestamp: Set by the recorder when the record is emitted.
    """

    url: str
    method: str
    start_time: float
    end_time: float
    duration: float
    status: int | None = None
    success: bool
    encrypted: bool = False
    graphql: bool = False
    request_size: int | None = None
    response_size: int | None = None
    timestamp: datetime | None = None


class ApiResponse(BaseModel, Generic[DataType]):
    """Uniform result envelope returned for every call, successful or not.

    On failure ``error``, ``status_code`` and ``error_code`` are always set.
    """

    success: bool
    data: DataType | None = None
    error: str | None = None
    status_code: int | None = None
    error_code: str | None = None
    headers: dict[str, str] | None = None

    @classmethod
    def ok(
        cls,
        data: Any,
        status_code: int,
        headers: dict[str, str] | None = None,
    ) -> "ApiResponse[Any]":
        return cls(success=True, data=data, status_code=status_code, headers=headers)

    @classmethod
    def failure(
        cls,
        error: str | None,
        status_code: int | None = None,
        *,
        data: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> "ApiResponse[Any]":
        """Build a failure envelope.

        ``status_code`` defaults to 500 while ``error_code`` keeps the real
        status, so a failure without any HTTP response reads ``ERR_UNKNOWN``.
        """
        return cls(
            success=False,
            data=data,
            error=error or "An unknown error occurred",
            status_code=status_code or 500,
            error_code=f"ERR_{status_code or 'UNKNOWN'}",
            headers=headers,
        )
