"""Error taxonomy & redaction helpers.

Every failure the synchroniser raises on purpose derives from
``IssueFieldsError`` so callers (the CLI in particular) can report a single
message and exit non-zero. Transport faults from ``requests`` are not wrapped;
they propagate as-is once retries are exhausted.

Public API:
- IssueFieldsError and its subclasses
- classify_error(exc) -> ErrorInfo
- redact(text) -> str
"""
from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import requests

_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"ghp_[A-Za-z0-9]{20,40}"),  # GitHub classic tokens
    re.compile(r"gh[osur]_[A-Za-z0-9]{20,40}"),  # OAuth / app / refresh tokens
    re.compile(r"github_pat_\w{20,}"),  # GitHub fine-grained tokens
    re.compile(r"(?i)bearer\s+[A-Za-z0-9_\-.]{16,}"),
]

_REDACTION_PLACEHOLDER = "<redacted>"

RATE_LIMIT_STATUSES = frozenset({403, 429})
TRANSIENT_STATUSES = frozenset({502, 503, 504})


class IssueFieldsError(RuntimeError):
    """Base class for failures reported by issuefields."""


class MalformedLocation(IssueFieldsError):
    """Raised when a project URL does not match orgs|users/<login>/projects/<n>."""

    def __init__(self, location: str | None, reason: str | None = None):
        detail = f" ({reason})" if reason else ""
        super().__init__(
            f"Bad project URL (expect orgs/<login>/projects/<n> or "
            f"users/<login>/projects/<n>): {location!r}{detail}"
        )
        self.location = location


class MissingCredential(IssueFieldsError):
    """Raised when no GitHub token is available."""

    def __init__(self, message: str = "Missing token") -> None:
        super().__init__(message)


class ProjectNotFound(IssueFieldsError):
    """Raised when the project does not exist or is not visible to the token."""

    def __init__(self, login: str, number: int):
        super().__init__(f"Project not found or not visible. login={login} number={number}")
        self.login = login
        self.number = number


class MissingContentId(IssueFieldsError):
    """Raised when the issue context has no GraphQL node id."""

    def __init__(self, message: str = "No issue node_id in context") -> None:
        super().__init__(message)


class GraphQLError(IssueFieldsError):
    """Raised when the GraphQL endpoint answers with an HTTP or GraphQL error."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        errors: Sequence[Mapping[str, Any]] | None = None,
        retry_after: float | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.errors: list[Mapping[str, Any]] = list(errors or [])
        self.retry_after = retry_after

    @property
    def error_types(self) -> set[str]:
        return {str(err.get("type")) for err in self.errors if err.get("type")}

    def is_not_found(self) -> bool:
        return bool(self.errors) and self.error_types == {"NOT_FOUND"}


class PartialUpdateFailure(IssueFieldsError):
    """Raised after all field updates ran when one or more of them failed."""

    def __init__(self, failures: Mapping[str, BaseException]):
        self.failures = dict(failures)
        detail = "; ".join(f"{name}: {exc}" for name, exc in self.failures.items())
        super().__init__(f"Failed to update {len(self.failures)} project field(s): {detail}")


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    transient: bool = False
    details: dict[str, Any] | None = None


def redact(text: str) -> str:
    """Replace anything that looks like a GitHub credential with a placeholder."""
    if not text:
        return text
    redacted = text
    for pat in _SENSITIVE_PATTERNS:
        redacted = pat.sub(_REDACTION_PLACEHOLDER, redacted)
    return redacted


def classify_error(exc: BaseException) -> ErrorInfo:
    """Best-effort classification of an exception.

    - GraphQL/HTTP responses or messages mentioning rate limits -> 'github.rate_limit'
    - Gateway errors (502/503/504) -> 'github.unavailable'
    - Connection errors, timeouts -> 'network'
    - GraphQL NOT_FOUND errors -> 'github.not_found'
    - Fallback -> 'generic'

    Only the first three categories are transient.
    """
    msg = str(exc) if exc else ""
    low = msg.lower()
    name = exc.__class__.__name__

    if "rate limit" in low or "secondary rate" in low or "abuse" in low:
        return ErrorInfo("github.rate_limit", redact(msg), name, transient=True)
    if isinstance(exc, GraphQLError):
        if exc.status == 429 or (
            exc.status in RATE_LIMIT_STATUSES and exc.retry_after is not None
        ):
            return ErrorInfo(
                "github.rate_limit",
                redact(msg),
                name,
                transient=True,
                details={"status": exc.status},
            )
        if exc.status in TRANSIENT_STATUSES:
            return ErrorInfo(
                "github.unavailable",
                redact(msg),
                name,
                transient=True,
                details={"status": exc.status},
            )
        if exc.is_not_found():
            return ErrorInfo("github.not_found", redact(msg), name)
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return ErrorInfo("network", redact(msg), name, transient=True)
    if any(k in low for k in ("timed out", "connection reset", "temporarily unavailable")):
        return ErrorInfo("network", redact(msg), name, transient=True)
    return ErrorInfo("generic", redact(msg), name)


__all__ = [
    "ErrorInfo",
    "GraphQLError",
    "IssueFieldsError",
    "MalformedLocation",
    "MissingContentId",
    "MissingCredential",
    "PartialUpdateFailure",
    "ProjectNotFound",
    "classify_error",
    "redact",
]
