"""Tests for markdown headings, block ids and frontmatter."""

from __future__ import annotations

import logging

import pytest

from embedref.core.positions import EditorPosition, EditorRange
from embedref.documents.markdown import (
    MarkdownOutline,
    parse_frontmatter,
    split_frontmatter,
    strip_heading,
)

NOTE = "\n".join(
    [
        "---",
        "title: Sample",
        "---",
        "# Intro",
        "Preface text.",
        "## Details",
        "- item one",
        "- item two ^item2",
        "",
        "Closing paragraph ^para-1",
        "# Outro",
        "done",
        "",
    ]
)


def _span(start_line: int, start_ch: int, end_line: int, end_ch: int) -> EditorRange:
    return EditorRange(EditorPosition(start_line, start_ch), EditorPosition(end_line, end_ch))


@pytest.fixture()
def outline() -> MarkdownOutline:
    return MarkdownOutline(NOTE)


def test_strip_heading_removes_link_syntax():
    assert strip_heading("Intro [[the]] link #tag") == "Intro the link tag"
    assert strip_heading("  Q: what | why  ") == "Q what why"


def test_frontmatter_is_split_and_parsed(outline: MarkdownOutline):
    block, body_line = split_frontmatter(NOTE)

    assert block == "title: Sample"
    assert body_line == 3
    assert outline.body_line == 3
    assert outline.frontmatter == {"title": "Sample"}


def test_unclosed_frontmatter_is_treated_as_body():
    assert split_frontmatter("---\ntitle: x\n") == (None, 0)
    assert split_frontmatter("# Heading\n") == (None, 0)


def test_invalid_frontmatter_logs_warning(caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.WARNING, logger="embedref.documents.markdown")

    assert parse_frontmatter("title: [unclosed") == {}
    assert "Ignoring invalid frontmatter" in caplog.text


def test_headings_carry_section_extents(outline: MarkdownOutline):
    summary = [(h.level, h.text, h.line, h.end_line) for h in outline.headings]

    assert summary == [
        (1, "Intro", 3, 9),
        (2, "Details", 5, 9),
        (1, "Outro", 10, 12),
    ]


def test_blocks_are_detected_by_trailing_id(outline: MarkdownOutline):
    summary = [(b.block_id, b.start_line, b.end_line) for b in outline.blocks]

    assert summary == [("item2", 7, 7), ("para-1", 9, 9)]


def test_enclosing_subpath_prefers_blocks(outline: MarkdownOutline):
    assert outline.enclosing_subpath(_span(7, 2, 7, 10)) == "^item2"
    assert outline.enclosing_subpath(_span(6, 0, 6, 4)) == "Intro#Details"
    assert outline.enclosing_subpath(_span(4, 0, 6, 4)) == "Intro"
    assert outline.enclosing_subpath(_span(11, 0, 12, 0)) == "Outro"


def test_enclosing_subpath_outside_sections(outline: MarkdownOutline):
    assert outline.enclosing_subpath(_span(1, 0, 1, 5)) == ""
    assert outline.enclosing_subpath(_span(4, 0, 11, 2)) == ""


def test_resolve_subpath_returns_section_text(outline: MarkdownOutline):
    bounds = outline.resolve_subpath("Intro#Details")

    assert bounds is not None
    assert bounds.start_line == 5
    assert NOTE[bounds.start_offset : bounds.end_offset] == (
        "## Details\n- item one\n- item two ^item2\n\nClosing paragraph ^para-1"
    )


def test_resolve_subpath_for_blocks_and_last_section(outline: MarkdownOutline):
    block = outline.resolve_subpath("^item2")
    last = outline.resolve_subpath("Outro")

    assert block is not None and NOTE[block.start_offset : block.end_offset] == "- item two ^item2"
    assert last is not None and last.end_offset is None
    assert NOTE[last.start_offset :] == "# Outro\ndone\n"


def test_resolve_subpath_rejects_unknown_paths(outline: MarkdownOutline):
    assert outline.resolve_subpath("Missing") is None
    assert outline.resolve_subpath("^nope") is None
    assert outline.resolve_subpath("Outro#Details") is None
    assert outline.resolve_subpath("") is None


def test_setext_headings_and_fenced_code():
    text = "Title\n=====\n```\n# not a heading ^nope\n```\n## Real\n"

    outline = MarkdownOutline(text)

    assert [(h.level, h.text, h.line) for h in outline.headings] == [(1, "Title", 0), (2, "Real", 5)]
    assert outline.blocks == ()
