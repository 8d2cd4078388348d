"""
Tests for fontspine.core.hashing module.

Tests cover:
- Deterministic hash computation
- Value fingerprints independent of key order
- File fingerprints tracking size and modification time
"""

import os

from fontspine.core.hashing import compute_hash, content_fingerprint, file_fingerprint, value_fingerprint


class TestComputeHash:
    """Tests for compute_hash function."""

    def test_default_length(self):
        assert len(compute_hash("test_value")) == 32

    def test_custom_length(self):
        assert len(compute_hash("a", length=12)) == 12

    def test_deterministic(self):
        assert compute_hash("a", "b", "c") == compute_hash("a", "b", "c")

    def test_order_matters(self):
        assert compute_hash("a", "b") != compute_hash("b", "a")


class TestValueFingerprint:
    """Tests for value_fingerprint."""

    def test_dict_key_order_ignored(self):
        assert value_fingerprint({"a": 1, "b": 2}) == value_fingerprint({"b": 2, "a": 1})

    def test_list_order_matters(self):
        assert value_fingerprint(["light", "regular"]) != value_fingerprint(["regular", "light"])


class TestFileFingerprint:
    """Tests for file_fingerprint."""

    def test_missing_file(self, tmp_path):
        assert file_fingerprint(tmp_path / "nope.ttf") is None

    def test_stable_for_untouched_file(self, tmp_path):
        path = tmp_path / "a.ttf"
        path.write_bytes(b"font")
        assert file_fingerprint(path) == file_fingerprint(path)

    def test_changes_with_content_size(self, tmp_path):
        path = tmp_path / "a.ttf"
        path.write_bytes(b"font")
        before = file_fingerprint(path)
        path.write_bytes(b"longer font")
        assert file_fingerprint(path) != before

    def test_changes_with_mtime(self, tmp_path):
        path = tmp_path / "a.ttf"
        path.write_bytes(b"font")
        before = file_fingerprint(path)
        stat = path.stat()
        os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000))
        assert file_fingerprint(path) != before


class TestContentFingerprint:
    """Content hashes ignore timestamps but see every byte."""

    def test_same_bytes_same_fingerprint(self, tmp_path):
        path = tmp_path / "stage.py"
        path.write_text("FLAGS = ['-O3']")
        before = content_fingerprint([path])
        os.utime(path, (1_000_000, 1_000_000))
        assert content_fingerprint([path]) == before

    def test_edit_changes_fingerprint(self, tmp_path):
        path = tmp_path / "stage.py"
        path.write_text("FLAGS = ['-O3']")
        before = content_fingerprint([path])
        path.write_text("FLAGS = ['-O2']")
        assert content_fingerprint([path]) != before

    def test_order_matters(self, tmp_path):
        a, b = tmp_path / "a.py", tmp_path / "b.py"
        a.write_text("a")
        b.write_text("b")
        assert content_fingerprint([a, b]) != content_fingerprint([b, a])
