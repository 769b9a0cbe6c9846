"""Tests for the backlink index."""

from __future__ import annotations

from notegraph.graph.backlinks import BacklinkIndex, context_snippet
from notegraph.graph.notes import Note


def _note(note_id: str, title: str, content: str = "") -> Note:
    return Note(id=note_id, title=title, content=content)


class TestContextSnippet:
    def test_truncates_before(self):
        content = "one two three [[B]] four five"
        start = content.index("[[")
        snippet = context_snippet(content, start, start + 5, words=2)
        assert snippet == "... two three [[B]] four five"

    def test_truncates_after(self):
        content = "[[B]] a b c"
        assert context_snippet(content, 0, 5, words=1) == "[[B]] a ..."

    def test_short_content_untouched(self):
        assert context_snippet("see [[B]]", 4, 9) == "see [[B]]"


class TestBacklinkIndex:
    def test_backlinks_by_title(self):
        notes = {
            "a": _note("a", "Alpha", "Links to [[Beta]] here"),
            "b": _note("b", "Beta"),
        }
        index = BacklinkIndex()
        index.rebuild(notes)

        found = index.backlinks_for("beta")
        assert len(found) == 1
        assert found[0].source_id == "a"
        assert found[0].source_title == "Alpha"
        assert "[[Beta]]" in found[0].context

    def test_identifier_link_keyed_by_target_title(self):
        notes = {
            "a": _note("a", "Alpha", "[[b|whatever]]"),
            "b": _note("b", "Beta"),
        }
        index = BacklinkIndex()
        index.rebuild(notes)
        assert [bl.source_id for bl in index.backlinks_for("Beta")] == ["a"]

    def test_one_backlink_per_source(self):
        notes = {
            "a": _note("a", "Alpha", "[[Beta]] and [[Beta]] and [[b|B]]"),
            "b": _note("b", "Beta"),
        }
        index = BacklinkIndex()
        index.rebuild(notes)
        assert len(index.backlinks_for("Beta")) == 1

    def test_self_link_is_not_a_backlink(self):
        notes = {"a": _note("a", "Alpha", "I am [[Alpha]]")}
        index = BacklinkIndex()
        index.rebuild(notes)
        assert index.backlinks_for("Alpha") == []
        assert len(index) == 0

    def test_unknown_title_returns_empty(self):
        index = BacklinkIndex()
        index.rebuild({})
        assert index.backlinks_for("Nothing") == []

    def test_rebuild_replaces_index(self):
        index = BacklinkIndex()
        index.rebuild({"a": _note("a", "Alpha", "[[Beta]]"), "b": _note("b", "Beta")})
        index.rebuild({"a": _note("a", "Alpha"), "b": _note("b", "Beta")})
        assert index.backlinks_for("Beta") == []

    def test_insertion_order(self):
        notes = {
            "c": _note("c", "Gamma", "[[Beta]]"),
            "a": _note("a", "Alpha", "[[Beta]]"),
            "b": _note("b", "Beta"),
        }
        index = BacklinkIndex()
        index.rebuild(notes)
        assert [bl.source_id for bl in index.backlinks_for("Beta")] == ["c", "a"]
