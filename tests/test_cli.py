from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from conftest import ISSUE_ID, PROJECT_URL, field_updated, project_lookup, project_snapshot

from issuefields.cli import main


@pytest.fixture
def actions_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    for name in ("GITHUB_TOKEN", "PROJECT_TOKEN", "GH_TOKEN", "PROJECT_URL", "GITHUB_ACTIONS"):
        # setenv first so teardown also removes values a .env file injected
        monkeypatch.setenv(name, "unset")
        monkeypatch.delenv(name)
    monkeypatch.setenv("ISSUEFIELDS_RETRY_ATTEMPTS", "1")
    event = tmp_path / "event.json"
    event.write_text(
        json.dumps(
            {
                "issue": {
                    "node_id": ISSUE_ID,
                    "body": "### Area / Component\nBackend\n### Effort\nHigh",
                }
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("GITHUB_EVENT_PATH", str(event))
    return event


def test_sections_command_prints_json(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    body = tmp_path / "body.md"
    body.write_text("### Effort\nLow\n### Category\nBug\n", encoding="utf-8")

    assert main(["--no-dotenv", "sections", "--body-file", str(body)]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["Effort"] == "Low"
    assert data["Category"] == "Bug"
    assert data["Impact"] is None


def test_sections_command_reads_event_payload(
    actions_env: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["--no-dotenv", "sections"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["Area / Component"] == "Backend"


def test_sync_without_token_reports_single_failure(
    actions_env: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    code = main(["--no-dotenv", "sync", "--project-url", PROJECT_URL])

    assert code == 1
    err = capsys.readouterr().err
    assert err.strip() == "[issuefields] Missing token"


def test_sync_failure_emits_workflow_error_and_redacts(
    actions_env: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_ABCDEFGHIJKLMNOPQRSTUVWX")

    code = main(
        ["--no-dotenv", "sync", "--project-url", "https://github.com/orgs/acme/ghp_ABCDEFGHIJKLMNOPQRSTUVWX"]
    )

    assert code == 1
    captured = capsys.readouterr()
    assert "Bad project URL" in captured.err
    assert "ghp_ABCDEFGHIJKLMNOPQRSTUVWX" not in captured.err
    assert "::error::Bad project URL" in captured.out


@patch("requests.Session")
def test_sync_applies_updates_with_mocked_http(
    mock_session_class: MagicMock,
    actions_env: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    mock_session = MagicMock()
    mock_session.headers = {}
    mock_session_class.return_value = mock_session
    mock_session.post.side_effect = [
        project_lookup(),
        project_snapshot(items=[{"id": "PVTI_1", "content": {"id": ISSUE_ID}}]),
        field_updated(),
        field_updated(),
    ]
    monkeypatch.setenv("PROJECT_TOKEN", "ghp_test_token")
    monkeypatch.setenv("PROJECT_URL", PROJECT_URL)

    assert main(["--no-dotenv", "sync"]) == 0

    assert mock_session.post.call_count == 4
    assert mock_session.headers["Authorization"] == "Bearer ghp_test_token"
    mock_session.close.assert_called_once()
    assert "updated=Effort,Area / Component" in capsys.readouterr().err


def test_sync_loads_dotenv(
    actions_env: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (tmp_path / ".env").write_text("PROJECT_URL=https://x/teams/acme/projects/7\nGITHUB_TOKEN=t\n")

    assert main(["sync"]) == 1
    assert "teams/acme" in capsys.readouterr().err


def test_sync_reports_bad_config_file(
    actions_env: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (tmp_path / "issuefields.config.yaml").write_text("fields:\n  Nope: X\n", encoding="utf-8")

    assert main(["--no-dotenv", "sync"]) == 1
    assert "Unknown section label" in capsys.readouterr().err


def test_sync_reports_missing_body_file(
    actions_env: Path,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_test_token")
    missing = tmp_path / "nope.md"

    code = main(
        ["--no-dotenv", "sync", "--project-url", PROJECT_URL, "--body-file", str(missing)]
    )

    assert code == 1
    err = capsys.readouterr().err.strip().splitlines()
    assert len(err) == 1
    assert err[0].startswith("[issuefields] Cannot read issue body from")


def test_sections_reports_undecodable_body_file(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    body = tmp_path / "body.md"
    body.write_bytes(b"### Effort\n\xff\xfeLow\n")

    assert main(["--no-dotenv", "sections", "--body-file", str(body)]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Cannot read issue body" in captured.err


@pytest.mark.parametrize(
    "content, message",
    [
        ("retry:\n  attempts: many\n", "'retry.attempts' must be a number"),
        ("project: https://github.com/orgs/acme/projects/7\n", "'project' must be a mapping"),
    ],
)
def test_sync_reports_malformed_config_values(
    actions_env: Path,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    content: str,
    message: str,
) -> None:
    (tmp_path / "issuefields.config.yaml").write_text(content, encoding="utf-8")

    assert main(["--no-dotenv", "sync"]) == 1
    assert message in capsys.readouterr().err
