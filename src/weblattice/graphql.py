"""GraphQL helpers: the `gql` tag and envelope handling for `graphql()` calls."""

from collections.abc import Mapping, Sequence
from typing import Any

from .log_config import logger


def gql(fragments: str | Sequence[str], *values: Any) -> str:
    """Join query fragments and interpolated values into one query string.

    Only a marker for editors and linters: the query is neither parsed nor
    validated. ``None`` values render as empty strings.

    Example:
        >>> gql(["query { user(id: ", ") { name } }"], 42)
        'query { user(id: 42) { name } }'
    """
    if isinstance(fragments, str):
        fragments = [fragments]
    parts: list[str] = []
    for index, fragment in enumerate(fragments):
        parts.append(fragment)
        if index < len(values) and values[index] is not None:
            parts.append(str(values[index]))
    return "".join(parts)


def build_graphql_payload(
    query: str, variables: Mapping[str, Any] | None = None
) -> dict[str, Any]:
    """Body POSTed for a GraphQL operation. ``variables`` is omitted when None."""
    payload: dict[str, Any] = {"query": query}
    if variables is not None:
        payload["variables"] = dict(variables)
    return payload


def unwrap_graphql_data(body: Any) -> Any:
    """Return the ``data`` member of a GraphQL response envelope.

    GraphQL-level ``errors`` are logged; they do not turn a 2xx into a failure.
    """
    if not isinstance(body, Mapping):
        logger.warning(f"GraphQL response is not an object: {type(body).__name__}")
        return None
    if body.get("errors"):
        logger.warning(f"GraphQL response contains errors: {body['errors']}")
    return body.get("data")
