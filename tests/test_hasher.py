"""Tests for the content hasher."""

from __future__ import annotations

import hashlib
import io
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from fileinventory.errors import HashOpenError, HashReadError
from fileinventory.scan.hasher import ensure_algorithm, hash_file


class TestHashFile:
    """Test hash_file function."""

    def test_md5_default(self, tmp_path: Path) -> None:
        """Should compute MD5 by default."""
        target = tmp_path / "hello.txt"
        target.write_bytes(b"Hello, World!")

        assert hash_file(str(target)) == "65a8e27d8879283831b664bd8b7f0ad4"

    def test_sha256(self, tmp_path: Path) -> None:
        target = tmp_path / "hello.txt"
        target.write_bytes(b"Hello, World!")

        digest = hash_file(str(target), "sha256")

        assert digest == "dffd6021bb2bd5b0af676290809ec3a53191dd81c7f70a4b28688a362182986f"

    def test_empty_file(self, tmp_path: Path) -> None:
        target = tmp_path / "empty"
        target.write_bytes(b"")

        assert hash_file(str(target)) == "d41d8cd98f00b204e9800998ecf8427e"

    def test_chunked_read_matches_whole_digest(self, tmp_path: Path) -> None:
        """Small chunks must not change the result."""
        payload = os.urandom(300_000)
        target = tmp_path / "blob.bin"
        target.write_bytes(payload)

        assert hash_file(str(target), "sha1", chunk_size=4096) == hashlib.sha1(payload).hexdigest()

    def test_stable_across_calls(self, tmp_path: Path) -> None:
        """Hashing the same unmodified file twice gives the same digest."""
        target = tmp_path / "large.bin"
        target.write_bytes(b"x" * (2 * 1024 * 1024 + 17))

        assert hash_file(str(target)) == hash_file(str(target))

    def test_missing_file_raises_open_error(self, tmp_path: Path) -> None:
        missing = tmp_path / "missing.bin"

        with pytest.raises(HashOpenError) as excinfo:
            hash_file(str(missing))

        assert excinfo.value.path == str(missing)
        assert isinstance(excinfo.value.__cause__, FileNotFoundError)

    def test_directory_raises_open_error(self, tmp_path: Path) -> None:
        with pytest.raises(HashOpenError):
            hash_file(str(tmp_path))

    def test_read_failure_raises_read_error_and_closes(self, tmp_path: Path) -> None:
        """A failing read is reported distinctly and the handle is closed."""

        class FailingReader(io.BytesIO):
            def read(self, size: int = -1) -> bytes:
                raise OSError(5, "Input/output error")

        handle = FailingReader(b"data")
        with patch("builtins.open", return_value=handle):
            with pytest.raises(HashReadError) as excinfo:
                hash_file("/data/flaky.bin")

        assert handle.closed
        assert "Input/output error" in str(excinfo.value)


class TestEnsureAlgorithm:
    """Test ensure_algorithm validation."""

    def test_normalizes_case(self) -> None:
        assert ensure_algorithm("SHA256") == "sha256"

    def test_rejects_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unsupported digest algorithm"):
            ensure_algorithm("not-a-hash")
