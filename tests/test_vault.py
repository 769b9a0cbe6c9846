"""Tests for loading a markdown folder as a note collection."""

from __future__ import annotations

from pathlib import Path

import pytest

from notegraph.errors import VaultLoadError
from notegraph.vault import load_vault


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    (tmp_path / "projects").mkdir()
    (tmp_path / "index.md").write_text("Start with [[Alpha]]\n")
    (tmp_path / "projects" / "alpha.md").write_text("---\ntitle: Alpha\n---\nBody\n")
    (tmp_path / "projects" / "beta.md").write_text("No metadata here\n")
    (tmp_path / "notes.txt").write_text("not a note")
    return tmp_path


class TestLoadVault:
    def test_ids_are_relative_paths(self, vault):
        notes = load_vault(vault)
        assert list(notes) == ["index", "projects/alpha", "projects/beta"]

    def test_titles(self, vault):
        notes = load_vault(vault)
        assert notes["projects/alpha"].title == "Alpha"
        assert notes["projects/beta"].title == "beta"

    def test_folders(self, vault):
        notes = load_vault(vault)
        assert notes["index"].folder == ""
        assert notes["projects/beta"].folder == "projects"

    def test_timestamps_are_utc(self, vault):
        note = load_vault(vault)["index"]
        assert note.modified.tzinfo is not None
        assert note.created.utcoffset().total_seconds() == 0

    def test_missing_directory(self, tmp_path):
        with pytest.raises(VaultLoadError):
            load_vault(tmp_path / "missing")

    def test_undecodable_file_skipped(self, vault, caplog):
        (vault / "broken.md").write_bytes(b"\xff\xfe\x00bad")
        notes = load_vault(vault)
        assert "broken" not in notes
        assert "Skipping unreadable note" in caplog.text

    def test_empty_directory(self, tmp_path):
        assert load_vault(tmp_path) == {}
