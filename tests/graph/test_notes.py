"""Tests for the Note model and frontmatter parsing."""

from __future__ import annotations

from notegraph.graph.links import LinkTarget
from notegraph.graph.notes import Note, parse_frontmatter, strip_frontmatter

CONTENT = """---
title: "Graph Theory"
tags: [math, graphs]
# comment: ignored
---
Graphs are everywhere.
They link things.

Second paragraph with [[Euler]]."""


class TestParseFrontmatter:
    def test_scalars_and_inline_list(self):
        meta = parse_frontmatter(CONTENT)
        assert meta["title"] == "Graph Theory"
        assert meta["tags"] == ["math", "graphs"]
        assert "# comment" not in meta

    def test_block_list(self):
        meta = parse_frontmatter("---\ntags:\n  - one\n  - 'two'\n---\nbody")
        assert meta["tags"] == ["one", "two"]

    def test_no_frontmatter(self):
        assert parse_frontmatter("just text\n---\n") == {}

    def test_strip(self):
        assert strip_frontmatter("---\na: b\n---\nbody") == "body"


class TestNote:
    def test_title_from_metadata(self):
        note = Note(id="n1", title="fallback", content=CONTENT)
        assert note.title == "Graph Theory"

    def test_stored_title_kept_without_metadata(self):
        assert Note(id="n1", title="Stored", content="text").title == "Stored"

    def test_empty_title_becomes_untitled(self):
        assert Note(id="n1", title="").title == "Untitled"

    def test_tags(self):
        assert Note(id="n1", content=CONTENT).tags == ["math", "graphs"]
        assert Note(id="n2", content="no metadata").tags == []

    def test_body_and_counts(self):
        note = Note(id="n1", content="---\ntitle: T\n---\nthree small words")
        assert note.body == "three small words"
        assert note.word_count == 3
        assert note.character_count == len("three small words")

    def test_first_paragraph(self):
        note = Note(id="n1", content=CONTENT)
        assert note.first_paragraph() == "Graphs are everywhere. They link things."
        assert note.first_paragraph(6) == "Graphs"

    def test_first_paragraph_empty(self):
        assert Note(id="n1", content="").first_paragraph() == ""

    def test_outgoing_links(self):
        note = Note(id="n1", content=CONTENT)
        assert note.outgoing_links() == [LinkTarget.by_title("Euler")]
