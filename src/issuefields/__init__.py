"""issuefields - copy issue form sections into GitHub Projects (v2) fields.

High-level public API:

from issuefields import SyncConfig, run

result = run(
    SyncConfig(
        token=token,
        project_url="https://github.com/orgs/acme/projects/7",
        issue_id=issue_node_id,
        issue_body=issue_body,
    )
)
print(result.updated_fields)

The CLI (``issuefields sync``) builds the same SyncConfig from a GitHub
Actions environment.
"""

from __future__ import annotations

from .config import SyncConfig, config_from_env
from .errors import (
    GraphQLError,
    IssueFieldsError,
    MalformedLocation,
    MissingContentId,
    MissingCredential,
    PartialUpdateFailure,
    ProjectNotFound,
)
from .location import OwnerKind, ProjectRef, resolve
from .sections import SECTION_LABELS, extract, extract_sections
from .sync import SyncResult, run

__version__ = "0.1.0"

__all__ = [
    "GraphQLError",
    "IssueFieldsError",
    "MalformedLocation",
    "MissingContentId",
    "MissingCredential",
    "OwnerKind",
    "PartialUpdateFailure",
    "ProjectNotFound",
    "ProjectRef",
    "SECTION_LABELS",
    "SyncConfig",
    "SyncResult",
    "__version__",
    "config_from_env",
    "extract",
    "extract_sections",
    "resolve",
    "run",
]
