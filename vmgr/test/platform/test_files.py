"""Tests for vmgr.platform.files module."""

from __future__ import annotations

import stat
from pathlib import Path

from vmgr.platform.files import atomic_write_text, remove_tree


class TestAtomicWriteText:
    """Test atomic_write_text."""

    def test_creates_parents(self, tmp_path: Path) -> None:
        path = tmp_path / "a" / "b" / "state.json"

        atomic_write_text(path, "{}")

        assert path.read_text(encoding="utf-8") == "{}"

    def test_replaces_and_leaves_no_temp(self, tmp_path: Path) -> None:
        path = tmp_path / "state.json"
        path.write_text("old", encoding="utf-8")

        atomic_write_text(path, "new")

        assert path.read_text(encoding="utf-8") == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]


class TestRemoveTree:
    """Test remove_tree."""

    def test_missing_is_noop(self, tmp_path: Path) -> None:
        remove_tree(tmp_path / "nope")

    def test_removes_read_only_files(self, tmp_path: Path) -> None:
        """Archives may unpack read-only files; they are still removed."""
        root = tmp_path / "21.0.2"
        (root / "lib").mkdir(parents=True)
        locked = root / "lib" / "ct.sym"
        locked.write_text("x", encoding="utf-8")
        locked.chmod(stat.S_IREAD)

        remove_tree(root)

        assert not root.exists()

    def test_removes_single_file(self, tmp_path: Path) -> None:
        path = tmp_path / "rustup-init"
        path.write_text("x", encoding="utf-8")

        remove_tree(path)

        assert not path.exists()
