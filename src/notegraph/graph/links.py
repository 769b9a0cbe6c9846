"""Wikilink extraction and resolution.

Two link formats coexist in note content:

- ``[[<id>|<display>]]`` (optionally ``[[<id>|<display>|<decorator>]]``)
  targets a note by its stable identifier;
- ``[[<title>]]`` and ``[[<title>/<alias>]]`` target a note by title;
- ``[[<title>/<alias>|<decorator>]]`` is read as an identifier link, since
  identifiers may contain slashes, and resolves by the title before the
  slash when no identifier matches.

Extraction never looks at the collection. Resolution happens in
``NoteResolver``, the one place that maps a ``LinkTarget`` to a note.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from notegraph.graph.notes import Note

# First part up to "|" or "]]"; anything after the first "|" is display text.
_WIKILINK_RE = re.compile(r"\[\[([^\[\]|\n]+)(\|[^\[\]\n]*)?\]\]")


class LinkKind(StrEnum):
    """How a link names its target."""

    BY_ID = "by_id"
    BY_TITLE = "by_title"


class LinkTarget(BaseModel):
    """A link target as written in content, never resolved."""

    model_config = ConfigDict(frozen=True)

    kind: LinkKind
    value: str

    @classmethod
    def by_id(cls, value: str) -> LinkTarget:
        return cls(kind=LinkKind.BY_ID, value=value)

    @classmethod
    def by_title(cls, value: str) -> LinkTarget:
        return cls(kind=LinkKind.BY_TITLE, value=value)


@dataclass(frozen=True)
class LinkOccurrence:
    """One link marker in content, with its character span."""

    target: LinkTarget
    start: int
    end: int


def link_occurrences(content: str) -> Iterator[LinkOccurrence]:
    """Yield every well-formed link marker in *content*, in order."""
    for match in _WIKILINK_RE.finditer(content):
        first = match.group(1).strip()
        if match.group(2) is not None:
            target = LinkTarget.by_id(first) if first else None
        else:
            # [[Title/alias]]: the title ends at the first slash
            title = first.split("/", 1)[0].strip()
            target = LinkTarget.by_title(title) if title else None
        if target is None:
            continue
        yield LinkOccurrence(target=target, start=match.start(), end=match.end())


def outgoing_links(content: str) -> list[LinkTarget]:
    """Return the distinct link targets declared in *content*.

    Order is first occurrence; repeated mentions collapse to one entry.
    """
    seen: dict[LinkTarget, None] = {}
    for occurrence in link_occurrences(content):
        seen.setdefault(occurrence.target, None)
    return list(seen)


class NoteResolver:
    """Resolve link targets against one snapshot of a note collection.

    Identifier links resolve by id and fall back to a case-insensitive
    title match of the same text, so legacy ``[[Title|Display]]`` content
    still resolves. An identifier with a slash that matches neither an id
    nor a title tries the text before the first slash as a title. Title
    links resolve by case-insensitive title only.
    When titles collide the first note in collection order wins.
    """

    def __init__(self, notes: Mapping[str, Note]) -> None:
        self._notes = notes
        self._by_title: dict[str, Note] = {}
        for note in notes.values():
            self._by_title.setdefault(note.title.lower(), note)
        self._resolved: dict[str, list[str]] = {}

    def resolve(self, target: LinkTarget) -> Note | None:
        """Return the note *target* points at, or ``None``."""
        if target.kind == LinkKind.BY_ID:
            note = self._notes.get(target.value)
            if note is not None:
                return note
        note = self._by_title.get(target.value.lower())
        if note is None and target.kind == LinkKind.BY_ID and "/" in target.value:
            # [[Title/alias|decorator]]: the title ends at the first slash
            title = target.value.split("/", 1)[0].strip()
            note = self._by_title.get(title.lower())
        return note

    def find_by_title(self, title: str) -> Note | None:
        return self._by_title.get(title.lower())

    def resolved_links(self, note: Note) -> list[str]:
        """Ids of the distinct notes *note* links to, excluding itself.

        Two targets that resolve to the same note count once.
        """
        cached = self._resolved.get(note.id)
        if cached is not None:
            return cached
        ids: dict[str, None] = {}
        for target in note.outgoing_links():
            resolved = self.resolve(target)
            if resolved is None or resolved.id == note.id:
                continue
            ids.setdefault(resolved.id, None)
        result = list(ids)
        self._resolved[note.id] = result
        return result

    def incoming_index(self) -> dict[str, list[str]]:
        """Map each linked-to note id to the ids of notes linking to it.

        Sources appear in collection order.
        """
        index: dict[str, list[str]] = {}
        for note in self._notes.values():
            for target_id in self.resolved_links(note):
                index.setdefault(target_id, []).append(note.id)
        return index
