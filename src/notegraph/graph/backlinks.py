"""Reverse link index: which notes point at a given title."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from notegraph.graph.links import NoteResolver, link_occurrences
from notegraph.graph.models import Backlink
from notegraph.graph.notes import Note

logger = logging.getLogger(__name__)

ELLIPSIS = "..."


def context_snippet(content: str, start: int, end: int, words: int = 10) -> str:
    """Return the link at ``content[start:end]`` with *words* words each side.

    ``...`` marks each side that was cut short.
    """
    before = content[:start].split()
    after = content[end:].split()
    parts: list[str] = []
    if len(before) > words:
        parts.append(ELLIPSIS)
    if words:
        parts.extend(before[-words:])
    parts.append(content[start:end])
    parts.extend(after[:words])
    if len(after) > words:
        parts.append(ELLIPSIS)
    return " ".join(parts)


class BacklinkIndex:
    """Backlinks keyed by the lower-cased current title of the target.

    The index is rebuilt wholesale from a snapshot; it is never patched
    incrementally.
    """

    def __init__(self, context_words: int = 10) -> None:
        self._context_words = context_words
        self._index: dict[str, list[Backlink]] = {}

    def rebuild(self, notes: Mapping[str, Note]) -> None:
        """Replace the whole index from *notes*."""
        resolver = NoteResolver(notes)
        index: dict[str, list[Backlink]] = {}

        for note in notes.values():
            linked: set[str] = set()
            for occurrence in link_occurrences(note.content):
                target = resolver.resolve(occurrence.target)
                if target is None or target.id == note.id or target.id in linked:
                    continue
                linked.add(target.id)
                index.setdefault(target.title.lower(), []).append(
                    Backlink(
                        source_id=note.id,
                        source_title=note.title,
                        context=context_snippet(
                            note.content,
                            occurrence.start,
                            occurrence.end,
                            self._context_words,
                        ),
                    )
                )

        self._index = index
        logger.debug(
            "Rebuilt backlink index: %d notes, %d linked targets",
            len(notes),
            len(index),
        )

    def backlinks_for(self, title: str) -> list[Backlink]:
        """Backlinks to the note titled *title*, in insertion order."""
        return list(self._index.get(title.lower(), []))

    def __len__(self) -> int:
        return len(self._index)
