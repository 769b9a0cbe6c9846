"""Load a directory of markdown files as a note collection.

Each ``*.md`` file becomes one note. Its id is the path relative to the
vault root without the suffix (``projects/alpha``), which stays stable as
long as the file is not moved. The file stem is the fallback title when
the file has no ``title:`` metadata.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from notegraph.errors import VaultLoadError
from notegraph.graph.notes import Note

logger = logging.getLogger(__name__)

NOTE_SUFFIX = ".md"


def load_vault(directory: Path) -> dict[str, Note]:
    """Read every markdown file under *directory*, sorted by path.

    Raises ``VaultLoadError`` if *directory* is not a directory. Files that
    cannot be read are logged and skipped.
    """
    if not directory.is_dir():
        raise VaultLoadError(f"Vault directory not found: {directory}")

    notes: dict[str, Note] = {}
    for path in sorted(directory.rglob(f"*{NOTE_SUFFIX}")):
        if not path.is_file():
            continue
        note = _load_note(path, directory)
        if note is not None:
            notes[note.id] = note

    logger.info("Loaded %d notes from %s", len(notes), directory)
    return notes


def _load_note(path: Path, root: Path) -> Note | None:
    try:
        content = path.read_text(encoding="utf-8")
        stat = path.stat()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Skipping unreadable note %s: %s", path, exc)
        return None

    relative = path.relative_to(root).with_suffix("")
    folder = relative.parent.as_posix()
    return Note(
        id=relative.as_posix(),
        title=path.stem,
        content=content,
        folder="" if folder == "." else folder,
        created=datetime.fromtimestamp(stat.st_ctime, tz=UTC),
        modified=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
    )
