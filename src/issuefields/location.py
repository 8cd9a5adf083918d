"""Parse GitHub project URLs into owner kind, login and project number."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlsplit

from .errors import MalformedLocation

_NUMBER_RE = re.compile(r"^[0-9]+$")


class OwnerKind(str, Enum):
    ORG = "org"
    USER = "user"

    @property
    def graphql_root(self) -> str:
        return "organization" if self is OwnerKind.ORG else "user"


_SEGMENT_KINDS = {"orgs": OwnerKind.ORG, "users": OwnerKind.USER}


@dataclass(frozen=True)
class ProjectRef:
    owner_kind: OwnerKind
    login: str
    number: int

    def __str__(self) -> str:
        return f"{self.owner_kind.value}: {self.login} #{self.number}"


def resolve(location: str) -> ProjectRef:
    """Return the ProjectRef for ``https://<host>/(orgs|users)/<login>/projects/<n>``.

    Raises MalformedLocation for anything else, including a number that is
    not a positive decimal integer.
    """
    if not isinstance(location, str) or not location.strip():
        raise MalformedLocation(location, "empty location")
    try:
        parts = urlsplit(location.strip())
    except ValueError as exc:
        raise MalformedLocation(location, str(exc)) from exc
    if not parts.scheme or not parts.netloc:
        raise MalformedLocation(location, "not an absolute URL")
    segments = [s for s in parts.path.split("/") if s]
    if len(segments) != 4 or segments[0] not in _SEGMENT_KINDS or segments[2] != "projects":
        raise MalformedLocation(location)
    number_text = segments[3]
    if not _NUMBER_RE.match(number_text) or int(number_text) <= 0:
        raise MalformedLocation(
            location, f"project number {number_text!r} is not a positive integer"
        )
    return ProjectRef(
        owner_kind=_SEGMENT_KINDS[segments[0]],
        login=segments[1],
        number=int(number_text),
    )


__all__ = ["OwnerKind", "ProjectRef", "resolve"]
