"""Tests for fontspine.tools.files."""

import pytest

from fontspine.tools.files import copy, ensure_dir, move, remove, scratch


class TestScratch:
    def test_removes_on_success(self, tmp_path):
        tmp = tmp_path / "a.tmp.otd"
        tmp.write_text("x")
        with scratch(tmp, tmp_path / "never-written"):
            pass
        assert not tmp.exists()

    def test_keeps_files_on_failure(self, tmp_path):
        tmp = tmp_path / "a.tmp.otd"
        tmp.write_text("x")
        with pytest.raises(RuntimeError):
            with scratch(tmp):
                raise RuntimeError("recipe failed")
        assert tmp.exists()


class TestFileOps:
    def test_remove_missing_is_noop(self, tmp_path):
        remove(tmp_path / "missing.ttf")

    def test_move_replaces_target(self, tmp_path):
        src = tmp_path / "sources" / "SourceHanSansK-Regular.otf"
        ensure_dir(src.parent)
        src.write_text("new")
        dst = tmp_path / "build" / "shs" / "SourceHanSansK-Regular.otf"
        ensure_dir(dst.parent)
        dst.write_text("old")

        move(src, dst)

        assert not src.exists()
        assert dst.read_text() == "new"

    def test_copy_creates_directory(self, tmp_path):
        src = tmp_path / "a.ttf"
        src.write_text("font")
        copy(src, tmp_path / "deep" / "dir" / "b.ttf")
        assert (tmp_path / "deep" / "dir" / "b.ttf").read_text() == "font"
