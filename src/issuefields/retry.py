"""Centralized retry / backoff helpers.

``run_with_retries`` wraps a single GraphQL round trip with exponential
backoff plus jitter. Only faults that ``classify_error`` marks as transient
(rate limits, gateway errors, connection problems, timeouts) are retried;
every other exception propagates from the first attempt.

Environment overrides:
  ISSUEFIELDS_RETRY_ATTEMPTS (default 3)
  ISSUEFIELDS_RETRY_BASE (seconds base, default 0.5)
  ISSUEFIELDS_RETRY_MAX_SLEEP (cap for a single sleep, default 30)
"""

from __future__ import annotations

import os
import random
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from .errors import GraphQLError, classify_error
from .logging import get_logger

T = TypeVar("T")

_RE_RETRY_AFTER = re.compile(r"retry[-\s]after:?\s*(\d+)", re.IGNORECASE)
_RE_SECONDS_HINT = re.compile(r"wait\s*(\d+)\s*seconds", re.IGNORECASE)
_JITTER = random.SystemRandom()


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


@dataclass
class RetryConfig:
    attempts: int = field(default_factory=lambda: _env_int("ISSUEFIELDS_RETRY_ATTEMPTS", 3))
    base_sleep: float = field(default_factory=lambda: _env_float("ISSUEFIELDS_RETRY_BASE", 0.5))
    max_sleep: float = field(
        default_factory=lambda: _env_float("ISSUEFIELDS_RETRY_MAX_SLEEP", 30.0)
    )


def extract_explicit_backoff(text: str) -> float | None:
    """Extract an explicit backoff (seconds) from error text.

    Supports patterns like:
      Retry-After: 12
      retry after 12
      wait 30 seconds
    """
    if not text:
        return None
    for pattern in (_RE_RETRY_AFTER, _RE_SECONDS_HINT):
        m = pattern.search(text)
        if m:
            val = float(m.group(1))
            return val if val > 0 else None
    return None


def compute_sleep(attempt: int, cfg: RetryConfig, exc: BaseException) -> float:
    explicit: float | None = None
    if isinstance(exc, GraphQLError) and exc.retry_after:
        explicit = exc.retry_after
    if explicit is None:
        explicit = extract_explicit_backoff(str(exc))
    backoff = cfg.base_sleep * (2 ** (attempt - 1)) + _JITTER.uniform(0, 0.25)
    sleep_for = explicit if explicit is not None else backoff
    return max(0.0, min(sleep_for, cfg.max_sleep))


def run_with_retries(
    fn: Callable[[], T],
    *,
    cfg: RetryConfig | None = None,
    sleep: Callable[[float], None] | None = None,
) -> T:
    cfg = cfg or RetryConfig()
    sleep = sleep or time.sleep
    attempts = max(1, cfg.attempts)
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except Exception as exc:
            info = classify_error(exc)
            if attempt >= attempts or not info.transient:
                raise
            sleep_for = compute_sleep(attempt, cfg, exc)
            get_logger().warning(
                f"[retry] transient error, attempt {attempt}/{attempts}, sleeping {sleep_for:.2f}s",
                category=info.category,
                error=info.message,
            )
            sleep(sleep_for)
    raise RuntimeError("retry logic exited unexpectedly")  # pragma: no cover


__all__ = ["RetryConfig", "compute_sleep", "extract_explicit_backoff", "run_with_retries"]
