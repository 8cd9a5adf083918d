"""issuefields CLI.

Subcommands:
  sync      -> add the triggering issue to a GitHub project and fill its fields
  sections  -> print the sections parsed from an issue body as JSON (no network)

Inputs default to what a GitHub Actions workflow provides: GITHUB_TOKEN (or
PROJECT_TOKEN / GH_TOKEN), PROJECT_URL and the event payload at
GITHUB_EVENT_PATH. A ``.env`` file in the working directory is loaded first.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any

import requests
from dotenv import load_dotenv

from issuefields.config import (
    CONFIG_DEFAULT,
    ConfigError,
    config_from_env,
    load_event_issue,
    load_settings,
)
from issuefields.errors import IssueFieldsError, redact
from issuefields.logging import configure_logging
from issuefields.sections import extract_sections
from issuefields.sync import run

_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _add_issue_source_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--event-path",
        type=Path,
        help="GitHub Actions event payload (defaults to $GITHUB_EVENT_PATH)",
    )
    parser.add_argument(
        "--body-file",
        type=Path,
        help="Read the issue body from a file instead of the event payload",
    )


def _build_parser() -> argparse.ArgumentParser:
    p = _FormatterArgumentParser(
        prog="issuefields", description="Sync issue form sections into GitHub project fields"
    )
    p.add_argument(
        "--no-dotenv",
        action="store_true",
        help="Do not load a .env file before reading the environment",
    )
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    ps = sub.add_parser("sync", help="Add the issue to the project and update its fields")
    ps.add_argument("--config", default=CONFIG_DEFAULT)
    ps.add_argument("--project-url", help="Project URL (falls back to PROJECT_URL)")
    ps.add_argument(
        "--token",
        help="Explicit GitHub token (falls back to GITHUB_TOKEN/PROJECT_TOKEN/GH_TOKEN)",
    )
    ps.add_argument("--issue-id", help="Issue GraphQL node id (overrides the event payload)")
    _add_issue_source_args(ps)
    ps.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    ps.add_argument("--log-level", help="Logging level (defaults to INFO)")

    psec = sub.add_parser("sections", help="Print parsed issue body sections as JSON")
    _add_issue_source_args(psec)
    return p


def _read_body(args: argparse.Namespace) -> str | None:
    body_file: Path | None = getattr(args, "body_file", None)
    if body_file is None:
        return None
    try:
        return body_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read issue body from {body_file}: {exc}") from exc


def _escape_workflow_data(text: str) -> str:
    return text.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _report_failure(exc: BaseException) -> None:
    message = redact(str(exc) or exc.__class__.__name__)
    print(f"[issuefields] {message}", file=sys.stderr)
    if os.environ.get("GITHUB_ACTIONS") == "true":
        print(f"::error::{_escape_workflow_data(message)}")


def _cmd_sync(args: argparse.Namespace) -> int:
    try:
        settings = load_settings(args.config)
    except IssueFieldsError as exc:
        _report_failure(exc)
        return 1
    configure_logging(
        json_logging=args.json_logs or settings.logging_json_enabled,
        level=args.log_level or settings.logging_level,
    )
    try:
        config = config_from_env(
            settings=settings,
            token=args.token,
            project_url=args.project_url,
            event_path=args.event_path,
            issue_id=args.issue_id,
            issue_body=_read_body(args),
        )
        result = run(config)
    except (IssueFieldsError, requests.RequestException) as exc:
        _report_failure(exc)
        return 1
    print(
        f"[issuefields] item {result.item_id} "
        f"{'created' if result.created_item else 'already present'}: "
        f"updated={','.join(result.updated_fields) or 'none'}",
        file=sys.stderr,
    )
    return 0


def _cmd_sections(args: argparse.Namespace) -> int:
    try:
        body = _read_body(args)
        if body is None:
            issue = load_event_issue(args.event_path or os.environ.get("GITHUB_EVENT_PATH"))
            raw = issue.get("body")
            body = raw if isinstance(raw, str) else None
    except IssueFieldsError as exc:
        _report_failure(exc)
        return 1
    print(json.dumps(extract_sections(body), indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.no_dotenv:
        load_dotenv(Path.cwd() / ".env")
    handlers = {
        "sync": lambda: _cmd_sync(args),
        "sections": lambda: _cmd_sections(args),
    }
    return handlers[args.cmd]()


__all__ = ["main"]


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
