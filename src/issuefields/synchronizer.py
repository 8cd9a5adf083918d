"""Push extracted issue sections into the fields of a project item.

Single-select bindings are written before text bindings, each group in
declared order. A value that is missing, blank, or not among a
single-select field's options is skipped without error, and a field that
was set earlier is never cleared. Every update is its own mutation: a
failure is recorded, the remaining updates still run, and the failures are
raised together as ``PartialUpdateFailure`` at the end.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from . import project as gql
from .errors import PartialUpdateFailure
from .graphql import GraphQLClient
from .logging import get_logger
from .project import FieldKind, ProjectField, ProjectSnapshot
from .sections import AREA, CATEGORY, EFFORT, IMPACT, PROPOSED_ACTION


@dataclass(frozen=True)
class FieldBinding:
    label: str
    field_name: str
    kind: FieldKind


DEFAULT_BINDINGS: tuple[FieldBinding, ...] = (
    FieldBinding(EFFORT, EFFORT, FieldKind.SINGLE_SELECT),
    FieldBinding(CATEGORY, CATEGORY, FieldKind.SINGLE_SELECT),
    FieldBinding(IMPACT, IMPACT, FieldKind.TEXT),
    FieldBinding(AREA, AREA, FieldKind.TEXT),
    FieldBinding(PROPOSED_ACTION, PROPOSED_ACTION, FieldKind.TEXT),
)


def ordered_bindings(bindings: Iterable[FieldBinding]) -> list[FieldBinding]:
    """Single-select bindings first, then text; declared order within each group."""
    bindings = list(bindings)
    return [b for b in bindings if b.kind is FieldKind.SINGLE_SELECT] + [
        b for b in bindings if b.kind is FieldKind.TEXT
    ]


@dataclass
class FieldUpdateReport:
    updated: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failures: dict[str, Exception] = field(default_factory=dict)


class FieldSynchronizer:
    def __init__(self, client: GraphQLClient, snapshot: ProjectSnapshot, content_id: str):
        self.client = client
        self.snapshot = snapshot
        self.content_id = content_id
        self.logger = get_logger()
        self._item_id: str | None = None
        self.created_item = False

    def find_field(self, name: str) -> ProjectField | None:
        key = name.casefold()
        matches = [f for f in self.snapshot.fields if f.name.casefold() == key]
        if not matches:
            return None
        if len(matches) > 1:
            self.logger.warning(
                f"Project has {len(matches)} fields named '{name}'; using the first",
                field=name,
                field_ids=[f.id for f in matches],
            )
        return matches[0]

    def ensure_item(self) -> tuple[str, bool]:
        """Return ``(item_id, created)`` for the item linked to the issue.

        The issue is added to the project at most once per synchronizer.
        """
        if self._item_id is not None:
            return self._item_id, self.created_item
        existing = next(
            (item for item in self.snapshot.items if item.content_id == self.content_id), None
        )
        if existing is not None:
            self._item_id = existing.id
            return self._item_id, False
        self._item_id = gql.add_item(
            self.client, project_id=self.snapshot.id, content_id=self.content_id
        )
        self.created_item = True
        self.logger.info(
            f"Added issue to project as item {self._item_id}",
            item_id=self._item_id,
            content_id=self.content_id,
        )
        return self._item_id, True

    def set_single(self, project_field: ProjectField | None, value: str | None) -> bool:
        if project_field is None or not value:
            return False
        option = project_field.find_option(value)
        if option is None:
            self.logger.debug(
                f"No option '{value}' for field '{project_field.name}'; leaving it unset",
                field=project_field.name,
                value=value,
            )
            return False
        gql.set_single_select_value(
            self.client,
            project_id=self.snapshot.id,
            item_id=self.ensure_item()[0],
            field_id=project_field.id,
            option_id=option.id,
        )
        return True

    def set_text(self, project_field: ProjectField | None, value: str | None) -> bool:
        if project_field is None or not value:
            return False
        gql.set_text_value(
            self.client,
            project_id=self.snapshot.id,
            item_id=self.ensure_item()[0],
            field_id=project_field.id,
            text=value,
        )
        return True

    def apply(
        self,
        values: Mapping[str, str | None],
        bindings: Iterable[FieldBinding] = DEFAULT_BINDINGS,
    ) -> FieldUpdateReport:
        report = FieldUpdateReport()
        self.ensure_item()
        for binding in ordered_bindings(bindings):
            setter = self.set_single if binding.kind is FieldKind.SINGLE_SELECT else self.set_text
            try:
                changed = setter(self.find_field(binding.field_name), values.get(binding.label))
            except Exception as exc:
                self.logger.log_error(
                    f"Failed to update project field '{binding.field_name}'",
                    error=str(exc),
                    field=binding.field_name,
                )
                report.failures[binding.field_name] = exc
                continue
            (report.updated if changed else report.skipped).append(binding.field_name)
        if report.failures:
            raise PartialUpdateFailure(report.failures)
        return report


__all__ = [
    "DEFAULT_BINDINGS",
    "FieldBinding",
    "FieldSynchronizer",
    "FieldUpdateReport",
    "ordered_bindings",
]
