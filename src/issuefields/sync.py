"""One synchronisation run: resolve the project, parse the issue, update fields.

Steps run strictly in sequence and every failure aborts the run, except
field updates, which are isolated from each other by the synchronizer.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import requests

from .config import SyncConfig
from .errors import MissingContentId, MissingCredential
from .graphql import GraphQLClient
from .location import resolve
from .logging import get_logger
from .project import ProjectSummary, fetch_snapshot, lookup_project
from .sections import AREA, CATEGORY, EFFORT, IMPACT, PROPOSED_ACTION, extract_sections
from .synchronizer import FieldSynchronizer


@dataclass
class SyncResult:
    project: ProjectSummary
    item_id: str
    created_item: bool
    sections: dict[str, str | None]
    updated_fields: list[str] = field(default_factory=list)
    skipped_fields: list[str] = field(default_factory=list)


def _length(value: str | None) -> int:
    return len(value) if value else 0


def describe_sections(sections: dict[str, str | None]) -> str:
    return (
        f"Effort: {sections.get(EFFORT)} | Category: {sections.get(CATEGORY)} | "
        f"Impact length: {_length(sections.get(IMPACT))} | Area: {sections.get(AREA)} | "
        f"Proposal length: {_length(sections.get(PROPOSED_ACTION))}"
    )


def run(config: SyncConfig, *, session: requests.Session | None = None) -> SyncResult:
    logger = get_logger()
    if not config.token:
        raise MissingCredential()
    ref = resolve(config.project_url or "")

    with GraphQLClient(
        token=config.token, url=config.graphql_url, retry=config.retry, session=session
    ) as client, logger.timed_operation("project_sync", project=str(ref)):
        summary = lookup_project(client, ref)
        logger.info(
            f'Project resolved: id={summary.id} title="{summary.title}"',
            project_id=summary.id,
        )

        sections = extract_sections(config.issue_body, [b.label for b in config.bindings])
        logger.info(f"Parsed sections -> {describe_sections(sections)}")
        logger.info(f"Target project -> {ref}")

        if not config.issue_id:
            raise MissingContentId()

        snapshot = fetch_snapshot(client, ref)
        synchronizer = FieldSynchronizer(client, snapshot, config.issue_id)
        report = synchronizer.apply(sections, config.bindings)
        item_id, created = synchronizer.ensure_item()

        return SyncResult(
            project=summary,
            item_id=item_id,
            created_item=created,
            sections=sections,
            updated_fields=report.updated,
            skipped_fields=report.skipped,
        )


__all__ = ["SyncResult", "describe_sections", "run"]
