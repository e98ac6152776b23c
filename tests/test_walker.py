"""Tests for the tree walker."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

import pytest

from fileinventory.errors import FatalWalkError
from fileinventory.models import Candidate, ErrorPhase, ProcessingError
from fileinventory.scan.classifier import SkipRules, SpecialEntryPolicy
from fileinventory.scan.walker import TreeWalker, count_files

IS_ROOT = hasattr(os, "geteuid") and os.geteuid() == 0


def _walk(root: Path, rules: SkipRules | None = None, **kwargs):
    emitted: List[Candidate] = []
    reported: List[ProcessingError] = []
    walker = TreeWalker(rules or SkipRules(), **kwargs)
    stats = walker.walk(str(root), emitted.append, reported.append)
    return emitted, reported, stats


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    """A small tree with an excluded VCS directory."""
    (tmp_path / "b.txt").write_text("b")
    (tmp_path / "a.txt").write_text("a")
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "guide.md").write_text("guide")
    deep = docs / "deep"
    deep.mkdir()
    (deep / "notes.txt").write_text("notes")
    git = tmp_path / ".git"
    git.mkdir()
    (git / "HEAD").write_text("ref")
    (git / "objects").mkdir()
    (git / "objects" / "pack").write_text("pack")
    return tmp_path


class TestTreeWalker:
    """Test TreeWalker traversal."""

    def test_emits_every_regular_file(self, tree: Path) -> None:
        emitted, reported, stats = _walk(tree)

        names = {Path(c.path).name for c in emitted}
        assert names == {"a.txt", "b.txt", "guide.md", "notes.txt", "HEAD", "pack"}
        assert reported == []
        assert stats.candidates == 6

    def test_paths_are_absolute_and_metadata_cached(self, tree: Path) -> None:
        emitted, _, _ = _walk(tree)

        for candidate in emitted:
            assert os.path.isabs(candidate.path)
            assert candidate.size == os.path.getsize(candidate.path)

    def test_excluded_directory_pruned_transitively(self, tree: Path) -> None:
        """Nothing below an excluded directory is emitted."""
        emitted, _, stats = _walk(tree, SkipRules.build(names=[".git"]))

        assert all(".git" not in Path(c.path).parts for c in emitted)
        assert len(emitted) == 4
        assert stats.pruned == 1

    def test_prefix_exclusion(self, tree: Path) -> None:
        emitted, _, _ = _walk(tree, SkipRules.build(prefixes=[str(tree / "docs")]))

        assert {Path(c.path).name for c in emitted} == {"a.txt", "b.txt", "HEAD", "pack"}

    def test_depth_first_sorted_order(self, tree: Path) -> None:
        """Files of a directory come in name order, subdirectories depth-first."""
        emitted, _, _ = _walk(tree, SkipRules.build(names=[".git"]))

        assert [Path(c.path).name for c in emitted] == ["a.txt", "b.txt", "guide.md", "notes.txt"]

    def test_root_file_is_hashed(self, tmp_path: Path) -> None:
        target = tmp_path / "single.bin"
        target.write_bytes(b"1")

        emitted, _, _ = _walk(target)

        assert [c.path for c in emitted] == [str(target)]

    def test_missing_root_is_fatal(self, tmp_path: Path) -> None:
        with pytest.raises(FatalWalkError):
            _walk(tmp_path / "nope")

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlinks_are_not_followed(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        real = tmp_path / "real"
        real.mkdir()
        (real / "file.txt").write_text("x")
        os.symlink(real, tmp_path / "link_dir")
        os.symlink(real / "file.txt", tmp_path / "link_file")

        with caplog.at_level(logging.INFO, logger="fileinventory.scan.walker"):
            emitted, reported, stats = _walk(tmp_path)

        assert [Path(c.path).name for c in emitted] == ["file.txt"]
        assert reported == []
        assert stats.skipped == 2
        assert "symbolic link" in caplog.text

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="FIFOs unsupported")
    def test_fifo_reported_with_report_policy(self, tmp_path: Path) -> None:
        os.mkfifo(tmp_path / "pipe")
        (tmp_path / "file.txt").write_text("x")

        emitted, reported, _ = _walk(tmp_path, special_policy=SpecialEntryPolicy.REPORT)

        assert len(emitted) == 1
        assert len(reported) == 1
        assert reported[0].phase is ErrorPhase.WALK_SPECIAL
        assert reported[0].path.endswith("pipe")

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="FIFOs unsupported")
    def test_fifo_ignored_silently(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        os.mkfifo(tmp_path / "pipe")

        with caplog.at_level(logging.INFO, logger="fileinventory.scan.walker"):
            emitted, reported, stats = _walk(tmp_path, special_policy="ignore")

        assert emitted == [] and reported == []
        assert stats.skipped == 1
        assert "pipe" not in caplog.text

    @pytest.mark.skipif(IS_ROOT or os.name != "posix", reason="needs POSIX permissions as non-root")
    def test_unreadable_directory_is_pruned(self, tmp_path: Path) -> None:
        """A permission error on a directory prunes it without aborting."""
        locked = tmp_path / "locked"
        locked.mkdir()
        (locked / "secret.txt").write_text("s")
        (tmp_path / "open.txt").write_text("o")
        locked.chmod(0)
        try:
            emitted, reported, stats = _walk(tmp_path)
        finally:
            locked.chmod(0o755)

        assert [Path(c.path).name for c in emitted] == ["open.txt"]
        assert reported == []
        assert stats.pruned == 1

    @pytest.mark.skipif(IS_ROOT or os.name != "posix", reason="needs POSIX permissions as non-root")
    def test_unreadable_root_is_fatal(self, tmp_path: Path) -> None:
        root = tmp_path / "root"
        root.mkdir()
        root.chmod(0)
        try:
            with pytest.raises(FatalWalkError):
                _walk(root)
        finally:
            root.chmod(0o755)

    def test_other_listing_errors_are_reported(self, tree: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Unexpected I/O errors become walk-access errors; siblings continue."""
        real_scandir = os.scandir
        broken = str(tree / "docs")

        def flaky_scandir(path):
            if str(path) == broken:
                raise OSError(5, "Input/output error")
            return real_scandir(path)

        monkeypatch.setattr("fileinventory.scan.walker.os.scandir", flaky_scandir)

        emitted, reported, _ = _walk(tree, SkipRules.build(names=[".git"]))

        assert {Path(c.path).name for c in emitted} == {"a.txt", "b.txt"}
        assert len(reported) == 1
        assert reported[0].phase is ErrorPhase.WALK_ACCESS
        assert reported[0].path == broken


class TestCountFiles:
    """Test count_files helper."""

    def test_counts_hashable_files(self, tree: Path) -> None:
        assert count_files(str(tree), SkipRules()) == 6
        assert count_files(str(tree), SkipRules.build(names=[".git"])) == 4

    def test_empty_directory(self, tmp_path: Path) -> None:
        assert count_files(str(tmp_path), SkipRules()) == 0
