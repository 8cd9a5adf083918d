"""Pytest configuration for issuefields tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install, and provides a replaying stand-in for
``requests.Session`` so no test touches the network.
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from issuefields.logging import configure_logging  # noqa: E402
from issuefields.retry import RetryConfig  # noqa: E402

PROJECT_URL = "https://github.com/orgs/acme/projects/7"
ISSUE_ID = "I_kwDOissue42"


@dataclass
class DummyResponse:
    status_code: int
    payload: Any
    headers: dict[str, str] = field(default_factory=dict)

    def json(self) -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload

    @property
    def text(self) -> str:
        if isinstance(self.payload, (dict, list)):
            return json.dumps(self.payload)
        return str(self.payload)


class DummySession:
    """Replays queued responses and records every GraphQL payload posted."""

    def __init__(self, responses: list[DummyResponse | Exception]):
        self._responses = list(responses)
        self.headers: dict[str, str] = {}
        self.posted: list[dict[str, Any]] = []
        self.closed = False

    def post(self, url: str, *, json: Any = None, timeout: float | None = None) -> DummyResponse:
        self.posted.append(json)
        if not self._responses:
            raise AssertionError("No response queued for request")
        nxt = self._responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt

    def close(self) -> None:
        self.closed = True

    @property
    def queries(self) -> list[str]:
        return [p["query"] for p in self.posted]

    @property
    def variables(self) -> list[dict[str, Any]]:
        return [p["variables"] for p in self.posted]


def ok(data: dict[str, Any]) -> DummyResponse:
    return DummyResponse(200, {"data": data})


def project_lookup(project_id: str = "PVT_1", title: str = "Roadmap", root: str = "organization") -> DummyResponse:
    return ok({root: {"projectV2": {"id": project_id, "title": title}}})


def field_payload(field_id: str, name: str, data_type: str, options: list[str] | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"id": field_id, "name": name, "dataType": data_type}
    if options is not None:
        payload["options"] = [
            {"id": f"{field_id}_{opt.lower()}", "name": opt} for opt in options
        ]
    return payload


STANDARD_FIELDS = [
    field_payload("F_TITLE", "Title", "TITLE"),
    field_payload("F_EFFORT", "Effort", "SINGLE_SELECT", ["Low", "Medium", "High"]),
    field_payload("F_CATEGORY", "Category", "SINGLE_SELECT", ["Bug", "Feature", "Chore"]),
    field_payload("F_IMPACT", "Impact", "TEXT"),
    field_payload("F_AREA", "Area / Component", "TEXT"),
    field_payload("F_PROPOSAL", "Proposed Action", "TEXT"),
    {},
]


def project_snapshot(
    fields: list[dict[str, Any]] | None = None,
    items: list[dict[str, Any]] | None = None,
    project_id: str = "PVT_1",
    root: str = "organization",
) -> DummyResponse:
    return ok(
        {
            root: {
                "projectV2": {
                    "id": project_id,
                    "fields": {"nodes": STANDARD_FIELDS if fields is None else fields},
                    "items": {"nodes": items or []},
                }
            }
        }
    )


def item_added(item_id: str = "PVTI_new") -> DummyResponse:
    return ok({"addProjectV2ItemById": {"item": {"id": item_id}}})


def field_updated(item_id: str = "PVTI_1") -> DummyResponse:
    return ok({"updateProjectV2ItemFieldValue": {"projectV2Item": {"id": item_id}}})


@pytest.fixture
def no_retry() -> RetryConfig:
    return RetryConfig(attempts=1, base_sleep=0.0, max_sleep=0.0)


@pytest.fixture(autouse=True)
def _fresh_logger() -> None:
    configure_logging(level="DEBUG")
