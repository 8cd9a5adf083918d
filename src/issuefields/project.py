"""GitHub Projects (v2) queries, mutations and snapshot models.

The snapshot is fetched once per run and never refreshed: fields are capped at
50 and items at 200, mirroring what a single GraphQL page returns. Item
creation goes through ``addProjectV2ItemById`` and field writes through
``updateProjectV2ItemFieldValue`` with either a single-select option id or
raw text.
"""

# ruff: noqa: PLR0913

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import GraphQLError, IssueFieldsError, ProjectNotFound
from .graphql import GraphQLClient
from .location import ProjectRef

FIELDS_PAGE_SIZE = 50
ITEMS_PAGE_SIZE = 200


class FieldKind(str, Enum):
    SINGLE_SELECT = "SINGLE_SELECT"
    TEXT = "TEXT"
    OTHER = "OTHER"

    @classmethod
    def from_data_type(cls, data_type: str | None) -> FieldKind:
        try:
            return cls(str(data_type or "").upper())
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class FieldOption:
    id: str
    name: str


@dataclass(frozen=True)
class ProjectField:
    id: str
    name: str
    kind: FieldKind
    options: tuple[FieldOption, ...] = ()

    def find_option(self, value: str) -> FieldOption | None:
        key = value.casefold()
        return next((opt for opt in self.options if opt.name.casefold() == key), None)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ProjectField:
        options_payload = payload.get("options")
        if isinstance(options_payload, Mapping):
            options_payload = options_payload.get("nodes")
        options: list[FieldOption] = []
        if isinstance(options_payload, list):
            for node in options_payload:
                if not isinstance(node, Mapping):
                    continue
                option_id = node.get("id")
                option_name = node.get("name")
                if isinstance(option_id, str) and isinstance(option_name, str):
                    options.append(FieldOption(id=option_id, name=option_name))
        kind = FieldKind.from_data_type(payload.get("dataType"))
        if kind is FieldKind.OTHER and options:
            kind = FieldKind.SINGLE_SELECT
        return cls(
            id=str(payload.get("id")),
            name=str(payload.get("name")),
            kind=kind,
            options=tuple(options),
        )


@dataclass(frozen=True)
class ProjectItem:
    id: str
    content_id: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ProjectItem:
        content = payload.get("content")
        content_id = content.get("id") if isinstance(content, Mapping) else None
        return cls(
            id=str(payload.get("id")),
            content_id=content_id if isinstance(content_id, str) else None,
        )


@dataclass(frozen=True)
class ProjectSummary:
    id: str
    title: str


@dataclass(frozen=True)
class ProjectSnapshot:
    id: str
    fields: tuple[ProjectField, ...] = ()
    items: tuple[ProjectItem, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ProjectSnapshot:
        project_id = payload.get("id")
        if not isinstance(project_id, str):
            raise IssueFieldsError("Project response missing id")
        return cls(
            id=project_id,
            fields=tuple(
                ProjectField.from_payload(node)
                for node in _nodes(payload.get("fields"))
                # Fields outside the two fragments come back as empty objects.
                if node.get("id")
            ),
            items=tuple(
                ProjectItem.from_payload(node)
                for node in _nodes(payload.get("items"))
                if node.get("id")
            ),
        )


def _nodes(connection: Any) -> list[Mapping[str, Any]]:
    nodes = connection.get("nodes") if isinstance(connection, Mapping) else None
    if not isinstance(nodes, list):
        return []
    return [node for node in nodes if isinstance(node, Mapping)]


PROJECT_LOOKUP_QUERY = """
query($login: String!, $number: Int!) {
  %(root)s(login: $login) {
    projectV2(number: $number) { id title }
  }
}
"""

PROJECT_SNAPSHOT_QUERY = """
query($login: String!, $number: Int!) {
  %(root)s(login: $login) {
    projectV2(number: $number) {
      id
      fields(first: %(fields)d) {
        nodes {
          ... on ProjectV2FieldCommon { id name dataType }
          ... on ProjectV2SingleSelectField { id name options { id name } }
        }
      }
      items(first: %(items)d) {
        nodes {
          id
          content {
            ... on Issue { id }
            ... on PullRequest { id }
          }
        }
      }
    }
  }
}
"""

ADD_ITEM_MUTATION = """
mutation($projectId: ID!, $contentId: ID!) {
  addProjectV2ItemById(input: {projectId: $projectId, contentId: $contentId}) {
    item { id }
  }
}
"""

SET_SINGLE_SELECT_MUTATION = """
mutation($projectId: ID!, $itemId: ID!, $fieldId: ID!, $optionId: String!) {
  updateProjectV2ItemFieldValue(
    input: {projectId: $projectId, itemId: $itemId, fieldId: $fieldId, value: {singleSelectOptionId: $optionId}}
  ) {
    projectV2Item { id }
  }
}
"""

SET_TEXT_MUTATION = """
mutation($projectId: ID!, $itemId: ID!, $fieldId: ID!, $text: String!) {
  updateProjectV2ItemFieldValue(
    input: {projectId: $projectId, itemId: $itemId, fieldId: $fieldId, value: {text: $text}}
  ) {
    projectV2Item { id }
  }
}
"""


def _project_payload(client: GraphQLClient, query: str, ref: ProjectRef) -> Mapping[str, Any]:
    root = ref.owner_kind.graphql_root
    try:
        data = client.execute(query, {"login": ref.login, "number": ref.number})
    except GraphQLError as exc:
        # GitHub reports an unknown owner or project as a NOT_FOUND error, not null data.
        if exc.is_not_found():
            raise ProjectNotFound(ref.login, ref.number) from exc
        raise
    owner = data.get(root)
    project = owner.get("projectV2") if isinstance(owner, Mapping) else None
    if not isinstance(project, Mapping):
        raise ProjectNotFound(ref.login, ref.number)
    return project


def lookup_project(client: GraphQLClient, ref: ProjectRef) -> ProjectSummary:
    query = PROJECT_LOOKUP_QUERY % {"root": ref.owner_kind.graphql_root}
    payload = _project_payload(client, query, ref)
    project_id = payload.get("id")
    if not isinstance(project_id, str):
        raise IssueFieldsError("Project response missing id")
    return ProjectSummary(id=project_id, title=str(payload.get("title") or ""))


def fetch_snapshot(client: GraphQLClient, ref: ProjectRef) -> ProjectSnapshot:
    query = PROJECT_SNAPSHOT_QUERY % {
        "root": ref.owner_kind.graphql_root,
        "fields": FIELDS_PAGE_SIZE,
        "items": ITEMS_PAGE_SIZE,
    }
    return ProjectSnapshot.from_payload(_project_payload(client, query, ref))


def add_item(client: GraphQLClient, *, project_id: str, content_id: str) -> str:
    data = client.execute(ADD_ITEM_MUTATION, {"projectId": project_id, "contentId": content_id})
    add_payload = data.get("addProjectV2ItemById")
    item_payload = add_payload.get("item") if isinstance(add_payload, Mapping) else None
    item_id = item_payload.get("id") if isinstance(item_payload, Mapping) else None
    if not isinstance(item_id, str):
        raise IssueFieldsError("Project item creation returned invalid payload")
    return item_id


def set_single_select_value(
    client: GraphQLClient, *, project_id: str, item_id: str, field_id: str, option_id: str
) -> None:
    client.execute(
        SET_SINGLE_SELECT_MUTATION,
        {"projectId": project_id, "itemId": item_id, "fieldId": field_id, "optionId": option_id},
    )


def set_text_value(
    client: GraphQLClient, *, project_id: str, item_id: str, field_id: str, text: str
) -> None:
    client.execute(
        SET_TEXT_MUTATION,
        {"projectId": project_id, "itemId": item_id, "fieldId": field_id, "text": text},
    )


__all__ = [
    "FieldKind",
    "FieldOption",
    "ProjectField",
    "ProjectItem",
    "ProjectSnapshot",
    "ProjectSummary",
    "add_item",
    "fetch_snapshot",
    "lookup_project",
    "set_single_select_value",
    "set_text_value",
]
