"""Tests for heading-aware section filtering."""

import pytest

from vault_canvas.services.sections import heading_level, strip_sections, truncate_at_second_heading

NOTE = """# Project

Intro line.

## Log
entry one
### Details
nested detail

## Summary
Keep me.
"""


def test_heading_level_detects_markers():
    assert heading_level("# Title") == 1
    assert heading_level("###### Deep") == 6
    assert heading_level("####### Too deep") is None
    assert heading_level("#NoSpace") is None
    assert heading_level("plain text") is None
    assert heading_level("  ## Indented") == 2


def test_strip_sections_removes_nested_content_until_same_depth():
    result = strip_sections(NOTE, ["Log"])

    assert "entry one" not in result
    assert "nested detail" not in result
    assert "### Details" not in result
    assert "## Summary\nKeep me." in result
    assert result.startswith("# Project")


def test_strip_sections_without_exclusions_only_trims():
    assert strip_sections("\n\n  body  \n", []) == "body"


def test_strip_sections_reevaluates_closing_heading():
    content = "## A\none\n## B\ntwo\n## C\nthree"

    result = strip_sections(content, ["A", "B"])

    assert result == "## C\nthree"


def test_strip_sections_closes_on_shallower_heading():
    content = "## Hidden\nsecret\n# Top\nvisible"

    assert strip_sections(content, ["Hidden"]) == "# Top\nvisible"


def test_strip_sections_requires_exact_title():
    content = "## Log book\nkept\n## log\nalso kept"

    assert strip_sections(content, ["Log"]) == content


def test_strip_sections_keeps_line_breaks_verbatim():
    content = "line one\r\nline two\r\n## Drop\r\ngone\r\n"

    assert strip_sections(content, ["Drop"]) == "line one\r\nline two"


@pytest.mark.parametrize(
    "content,titles",
    [
        (NOTE, ["Log"]),
        (NOTE, ["Project"]),
        (NOTE, ["Details", "Summary"]),
        ("## A\n## A\ntext\n# B", ["A"]),
        ("", ["Anything"]),
        ("  # Secret\nhidden body\n# Public\nshown", ["Secret"]),
    ],
)
def test_strip_sections_is_idempotent(content, titles):
    once = strip_sections(content, titles)

    assert strip_sections(once, titles) == once


def test_truncate_at_second_heading():
    assert truncate_at_second_heading(NOTE) == "# Project\n\nIntro line."


def test_truncate_without_second_heading_returns_all():
    assert truncate_at_second_heading("  just text\nmore  ") == "just text\nmore"


def test_truncate_when_body_starts_before_first_heading():
    content = "preface\n# One\nbody\n# Two\nrest"

    assert truncate_at_second_heading(content) == "preface\n# One\nbody"


def test_strip_sections_treats_indented_heading_as_heading():
    content = "  # Secret\nhidden body\n# Public\nshown"

    assert strip_sections(content, ["Secret"]) == "# Public\nshown"
