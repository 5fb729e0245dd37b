"""Tests for re-locating references inside documents."""

from __future__ import annotations

import pytest

from embedref.core.errors import RangeNotFoundError
from embedref.core.positions import EditorPosition
from embedref.core.ranges import AnchoredRange, PositionRange, UniqueSubstring
from embedref.documents.markdown import MarkdownOutline
from embedref.services.builder import SelectedSpan, build_embed
from embedref.services.resolver import locate_range, resolve_reference
from embedref.services.settings import CopySettings


def test_resolves_unique_and_anchored_ranges():
    document = "alpha beta gamma delta"

    assert resolve_reference("note=beta", document).text == "beta"
    assert resolve_reference("note=b~ma", document).text == "beta gamma"


def test_resolves_whole_document_and_offsets(sectioned_note: str):
    outline = MarkdownOutline(sectioned_note)

    whole = resolve_reference("note", sectioned_note)
    scoped = resolve_reference("note#Intro#Details=second", sectioned_note, structure=outline)

    assert whole.text == sectioned_note
    start, end = scoped.spans[0]
    assert sectioned_note[start:end] == "second"


def test_join_mode_controls_displayed_text():
    document = "alpha beta gamma delta"

    assert resolve_reference("note=alpha&delta", document).text == "alpha … delta"
    assert resolve_reference("note=alpha;delta", document).text == "alpha\ndelta"
    assert resolve_reference("note=alpha,delta", document).text == "alpha\n\ndelta"


def test_built_references_resolve_to_the_selection(sectioned_note: str):
    outline = MarkdownOutline(sectioned_note)
    selection = [
        SelectedSpan(EditorPosition(3, 0), EditorPosition(3, 5)),
        SelectedSpan(EditorPosition(4, 7), EditorPosition(4, 12)),
    ]

    reference = build_embed(
        CopySettings(), sectioned_note, selection, document_id="note", structure=outline
    )
    resolved = resolve_reference(reference, sectioned_note, structure=outline)

    assert resolved.excerpts == ("first", "point")


def test_position_ranges_resolve_against_scoped_lines():
    text = "# A\nx\n# B\nsame\nsame"
    outline = MarkdownOutline(text)

    resolved = resolve_reference("note#B=@2:0-2:4", text, structure=outline)

    assert resolved.spans == ((15, 19),)
    assert resolved.text == "same"


def test_locate_range_errors():
    with pytest.raises(RangeNotFoundError) as missing:
        locate_range("abc", UniqueSubstring("zzz"))
    with pytest.raises(RangeNotFoundError) as ambiguous:
        locate_range("abc abc", UniqueSubstring("abc"))
    with pytest.raises(RangeNotFoundError):
        locate_range("abc", AnchoredRange("c", "a"))
    with pytest.raises(RangeNotFoundError):
        locate_range("one line", PositionRange(EditorPosition(0, 0), EditorPosition(3, 0)))

    assert missing.value.reason == "not_found"
    assert ambiguous.value.reason == "ambiguous"
    assert ambiguous.value.details()["range"] == UniqueSubstring("abc")


def test_subpath_errors(sectioned_note: str):
    with pytest.raises(RangeNotFoundError) as no_structure:
        resolve_reference("note#Intro=Preface", sectioned_note)
    with pytest.raises(RangeNotFoundError) as missing:
        resolve_reference("note#Nope=Preface", sectioned_note, structure=MarkdownOutline(sectioned_note))

    assert no_structure.value.reason == "structure_required"
    assert missing.value.reason == "subpath_not_found"


@pytest.mark.parametrize(
    ("document", "span", "expected"),
    [
        ("alpha beta gamma", (0, 6, 0, 11), "beta "),
        ("a\n   \nb", (1, 0, 1, 3), "   "),
    ],
)
def test_whitespace_selections_round_trip(
    document: str, span: tuple[int, int, int, int], expected: str
):
    start_line, start_ch, end_line, end_ch = span
    selection = [SelectedSpan(EditorPosition(start_line, start_ch), EditorPosition(end_line, end_ch))]

    reference = build_embed(CopySettings(), document, selection, document_id="note")
    resolved = resolve_reference(reference, document)

    assert resolved.excerpts == (expected,)


def test_repeated_heading_titles_resolve_to_the_selection():
    document = "# A\nfoo\n# A\nbar baz"
    outline = MarkdownOutline(document)
    selection = [SelectedSpan(EditorPosition(3, 0), EditorPosition(3, 3))]

    reference = build_embed(CopySettings(), document, selection, document_id="note", structure=outline)
    resolved = resolve_reference(reference, document, structure=outline)

    assert resolved.text == "bar"
    assert resolved.spans == ((12, 15),)
