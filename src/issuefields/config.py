from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

import yaml

from .errors import IssueFieldsError
from .graphql import DEFAULT_GRAPHQL_URL
from .retry import RetryConfig
from .sections import SECTION_LABELS
from .synchronizer import DEFAULT_BINDINGS, FieldBinding

CONFIG_DEFAULT = "issuefields.config.yaml"
TOKEN_ENV_VARS = ("GITHUB_TOKEN", "PROJECT_TOKEN", "GH_TOKEN")


class ConfigError(IssueFieldsError):
    pass


@dataclass
class SyncConfig:
    """Explicit inputs of one synchronisation run."""

    token: str | None
    project_url: str | None
    issue_id: str | None
    issue_body: str | None
    bindings: tuple[FieldBinding, ...] = DEFAULT_BINDINGS
    graphql_url: str = DEFAULT_GRAPHQL_URL
    retry: RetryConfig = field(default_factory=RetryConfig)


@dataclass
class Settings:
    """Optional file-based defaults (``issuefields.config.yaml``)."""

    source_file: Path | None = None
    project_url: str | None = None
    graphql_url: str = DEFAULT_GRAPHQL_URL
    field_names: dict[str, str] = field(default_factory=dict)
    logging_json_enabled: bool = False
    logging_level: str = "INFO"
    retry_attempts: int | None = None
    retry_base_sleep: float | None = None

    def bindings(self) -> tuple[FieldBinding, ...]:
        return tuple(
            FieldBinding(b.label, self.field_names.get(b.label, b.field_name), b.kind)
            for b in DEFAULT_BINDINGS
        )

    def retry_config(self) -> RetryConfig:
        cfg = RetryConfig()
        if self.retry_attempts is not None:
            cfg.attempts = self.retry_attempts
        if self.retry_base_sleep is not None:
            cfg.base_sleep = self.retry_base_sleep
        return cfg


def _canonical_label(raw: str) -> str:
    for label in SECTION_LABELS:
        if label.casefold() == raw.strip().casefold():
            return label
    raise ConfigError(f"Unknown section label '{raw}' (expected one of {list(SECTION_LABELS)})")


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping, got {type(value).__name__}")
    return cast(dict[str, Any], value)


def _number(section: dict[str, Any], key: str, kind: type[int] | type[float]) -> Any:
    value = section.get(key)
    if value is None:
        return None
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'retry.{key}' must be a number, got {value!r}") from exc


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from YAML; a missing default file yields default settings."""
    p = Path(path or CONFIG_DEFAULT)
    if not p.exists():
        if path is not None and str(path) != CONFIG_DEFAULT:
            raise ConfigError(f"Configuration file not found: {p}")
        return Settings()
    try:
        raw_any = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {p}: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read configuration file {p}: {exc}") from exc
    if not isinstance(raw_any, dict):
        raise ConfigError(f"Configuration root in {p} must be a mapping")
    raw = cast(dict[str, Any], raw_any)
    project = _section(raw, "project")
    logging_config = _section(raw, "logging")
    retry_config = _section(raw, "retry")
    fields_raw = raw.get("fields", {}) or {}
    if not isinstance(fields_raw, dict):
        raise ConfigError("'fields' must map section labels to project field names")
    field_names = {_canonical_label(str(k)): str(v) for k, v in fields_raw.items()}

    return Settings(
        source_file=p,
        project_url=project.get("url"),
        graphql_url=str(raw.get("graphql_url") or DEFAULT_GRAPHQL_URL),
        field_names=field_names,
        logging_json_enabled=bool(logging_config.get("json_enabled", False)),
        logging_level=str(logging_config.get("level", "INFO")),
        retry_attempts=_number(retry_config, "attempts", int),
        retry_base_sleep=_number(retry_config, "base_sleep", float),
    )


def resolve_token(environ: Mapping[str, str], explicit: str | None = None) -> str | None:
    if explicit and explicit.strip():
        return explicit.strip()
    for name in TOKEN_ENV_VARS:
        token = environ.get(name)
        if token and token.strip():
            return token.strip()
    return None


def load_event_issue(event_path: str | Path | None) -> dict[str, Any]:
    """Return the ``issue`` object of a GitHub Actions event payload ({} when absent)."""
    if not event_path:
        return {}
    p = Path(event_path)
    if not p.exists():
        raise ConfigError(f"Event payload not found: {p}")
    try:
        payload = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Event payload {p} is not valid JSON: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read event payload {p}: {exc}") from exc
    issue = payload.get("issue") if isinstance(payload, dict) else None
    return issue if isinstance(issue, dict) else {}


def config_from_env(
    environ: Mapping[str, str] | None = None,
    *,
    settings: Settings | None = None,
    token: str | None = None,
    project_url: str | None = None,
    event_path: str | Path | None = None,
    issue_id: str | None = None,
    issue_body: str | None = None,
) -> SyncConfig:
    """Build a SyncConfig from explicit overrides, the environment and the event payload.

    Precedence: explicit argument > environment > settings file.
    """
    env = os.environ if environ is None else environ
    settings = settings or Settings()
    issue = load_event_issue(event_path or env.get("GITHUB_EVENT_PATH"))
    node_id = issue.get("node_id")
    body = issue.get("body")
    return SyncConfig(
        token=resolve_token(env, token),
        project_url=project_url or env.get("PROJECT_URL") or settings.project_url,
        issue_id=issue_id or (node_id if isinstance(node_id, str) else None),
        issue_body=issue_body
        if issue_body is not None
        else (body if isinstance(body, str) else None),
        bindings=settings.bindings(),
        graphql_url=settings.graphql_url,
        retry=settings.retry_config(),
    )


__all__ = [
    "CONFIG_DEFAULT",
    "ConfigError",
    "Settings",
    "SyncConfig",
    "config_from_env",
    "load_event_issue",
    "load_settings",
    "resolve_token",
]
