from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import requests

from .errors import GraphQLError
from .logging import get_logger
from .retry import RetryConfig, run_with_retries

DEFAULT_GRAPHQL_URL = "https://api.github.com/graphql"
USER_AGENT = "issuefields-graphql"
HTTP_ERROR_STATUS = 400
REQUEST_TIMEOUT = 30


def _retry_after(response: requests.Response) -> float | None:
    raw = response.headers.get("Retry-After") if response.headers else None
    if raw is None:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


@dataclass
class GraphQLClient:
    """Minimal GitHub GraphQL client: one POST per query, errors raised as GraphQLError."""

    token: str = field(repr=False)
    url: str = DEFAULT_GRAPHQL_URL
    retry: RetryConfig | None = None
    session: requests.Session | None = None
    _session: requests.Session = field(init=False, repr=False)
    _owns_session: bool = field(init=False, repr=False, default=False)

    def __post_init__(self) -> None:
        self._owns_session = self.session is None
        self._session = self.session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {self.token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": USER_AGENT,
            }
        )

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> GraphQLClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = self._session.post(self.url, json=payload, timeout=REQUEST_TIMEOUT)
        if response.status_code >= HTTP_ERROR_STATUS:
            raise GraphQLError(
                f"GraphQL request failed with HTTP {response.status_code}: {response.text}",
                status=response.status_code,
                retry_after=_retry_after(response),
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise GraphQLError(
                f"GraphQL response was not valid JSON: {response.text[:200]}",
                status=response.status_code,
            ) from exc
        if not isinstance(body, Mapping):
            raise GraphQLError("GraphQL response must be a JSON object", status=response.status_code)
        errors = body.get("errors")
        if errors:
            messages = "; ".join(
                str(err.get("message", err)) if isinstance(err, Mapping) else str(err)
                for err in errors
            )
            raise GraphQLError(
                f"GraphQL query returned errors: {messages}",
                status=response.status_code,
                errors=[err for err in errors if isinstance(err, Mapping)],
            )
        data = body.get("data")
        return dict(data) if isinstance(data, Mapping) else {}

    def execute(self, query: str, variables: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Run a query or mutation and return its ``data`` object."""
        payload = {"query": query, "variables": dict(variables or {})}
        get_logger().debug("GraphQL request", variables=payload["variables"])
        return run_with_retries(lambda: self._post(payload), cfg=self.retry)


__all__ = ["DEFAULT_GRAPHQL_URL", "GraphQLClient"]
