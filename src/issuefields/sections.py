from __future__ import annotations

from collections.abc import Iterable

AREA = "Area / Component"
EFFORT = "Effort"
IMPACT = "Impact"
PROPOSED_ACTION = "Proposed Action"
CATEGORY = "Category"

SECTION_LABELS: tuple[str, ...] = (AREA, EFFORT, IMPACT, PROPOSED_ACTION, CATEGORY)

HEADING_PREFIX = "### "


def extract(body: str | None, label: str) -> str | None:
    """Return the text under the first ``### <label>`` heading of ``body``.

    Heading matching is case-insensitive and by prefix, so ``### Effort (t-shirt)``
    still opens the Effort section. Collection stops at the next ``### `` line.
    Returns None when the heading is missing or the section is blank.
    """
    heading = f"{HEADING_PREFIX}{label}".casefold()
    collecting = False
    collected: list[str] = []
    for line in (body or "").split("\n"):
        if not collecting:
            if line.strip().casefold().startswith(heading):
                collecting = True
            continue
        if line.casefold().startswith(HEADING_PREFIX):
            break
        collected.append(line)
    text = "\n".join(collected).strip()
    return text or None


def extract_sections(
    body: str | None, labels: Iterable[str] = SECTION_LABELS
) -> dict[str, str | None]:
    return {label: extract(body, label) for label in labels}


__all__ = [
    "AREA",
    "CATEGORY",
    "EFFORT",
    "IMPACT",
    "PROPOSED_ACTION",
    "SECTION_LABELS",
    "extract",
    "extract_sections",
]
