from __future__ import annotations

from issuefields.sections import SECTION_LABELS, extract, extract_sections

ISSUE_FORM_BODY = """### Area / Component

Backend / sync worker

### Effort

Medium

### Impact

Users see stale boards.

Happens on every deploy.

### Proposed Action

_No response_

### Category

Bug
"""


def test_extract_stops_at_next_heading() -> None:
    assert extract("### Effort\nHigh\n### Other\nX", "Effort") == "High"


def test_extract_missing_label_is_none_not_empty() -> None:
    assert extract("### Effort\nHigh", "Category") is None
    assert extract("", "Effort") is None
    assert extract(None, "Effort") is None


def test_extract_blank_section_is_none() -> None:
    assert extract("### Effort\n\n   \n### Impact\nbig", "Effort") is None


def test_extract_trims_outer_blank_lines_keeps_inner_ones() -> None:
    body = "### Impact\n\n\nline one\n\nline two\n\n\n### Next\nz"
    assert extract(body, "Impact") == "line one\n\nline two"


def test_extract_is_case_insensitive() -> None:
    assert extract("### effort\nLow", "Effort") == "Low"
    assert extract("### EFFORT\nLow", "effort") == "Low"


def test_extract_only_first_heading_counts() -> None:
    assert extract("### Effort\nLow\n### Effort\nHigh", "Effort") == "Low"


def test_extract_heading_prefix_opens_and_closes_sections() -> None:
    assert extract("### Effort level\nM", "Effort") == "M"
    body = "### Impact\nbig\n### Impact notes\nmore"
    assert extract(body, "Impact") == "big"


def test_extract_indented_heading_opens_but_does_not_close() -> None:
    body = "  ### Impact\ntext\n  ### not a boundary\nmore\n### Next\nend"
    assert extract(body, "Impact") == "text\n  ### not a boundary\nmore"


def test_extract_keeps_lines_verbatim() -> None:
    body = "### Proposed Action\n- [ ] step one\n    indented code\n"
    assert extract(body, "Proposed Action") == "- [ ] step one\n    indented code"


def test_extract_sections_reads_issue_form_body() -> None:
    sections = extract_sections(ISSUE_FORM_BODY)
    assert list(sections) == list(SECTION_LABELS)
    assert sections["Area / Component"] == "Backend / sync worker"
    assert sections["Effort"] == "Medium"
    assert sections["Impact"] == "Users see stale boards.\n\nHappens on every deploy."
    assert sections["Proposed Action"] == "_No response_"
    assert sections["Category"] == "Bug"


def test_extract_sections_custom_labels() -> None:
    assert extract_sections("### Effort\nHigh", ["Effort", "Impact"]) == {
        "Effort": "High",
        "Impact": None,
    }
