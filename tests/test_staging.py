from __future__ import annotations

from pathlib import Path

import pytest

from mrtpack import staging
from mrtpack.errors import StagingIOError


def test_copy_dir_missing_source_is_not_fatal(tmp_path: Path) -> None:
    dst = tmp_path / "out"
    assert staging.copy_dir(tmp_path / "missing", dst) is False
    assert not dst.exists()


def test_copy_dir_recursive_and_merging(tmp_path: Path) -> None:
    src = tmp_path / "src"
    (src / "a" / "b").mkdir(parents=True)
    (src / "a" / "b" / "file.txt").write_text("deep")
    (src / "top.txt").write_text("top")

    dst = tmp_path / "dst"
    dst.mkdir()
    (dst / "existing.txt").write_text("kept")

    assert staging.copy_dir(src, dst) is True
    assert (dst / "a" / "b" / "file.txt").read_text() == "deep"
    assert (dst / "top.txt").read_text() == "top"
    assert (dst / "existing.txt").read_text() == "kept"


def test_remove_dir_is_idempotent(tmp_path: Path) -> None:
    target = tmp_path / "tree"
    (target / "sub").mkdir(parents=True)
    (target / "sub" / "f").write_text("x")

    staging.remove_dir(target)
    assert not target.exists()
    staging.remove_dir(target)  # second time is a no-op


def test_remove_dir_on_a_file(tmp_path: Path) -> None:
    f = tmp_path / "f.txt"
    f.write_text("x")
    staging.remove_dir(f)
    assert not f.exists()


def test_rename_missing_source_raises(tmp_path: Path) -> None:
    with pytest.raises(StagingIOError) as info:
        staging.rename(tmp_path / "nope", tmp_path / "other")
    assert info.value.operation == "rename"


def test_move_file_creates_parent(tmp_path: Path) -> None:
    src = tmp_path / "ssr.js"
    src.write_text("bundle")
    dst = tmp_path / "standalone" / "ssr.js"

    staging.move_file(src, dst)
    assert not src.exists()
    assert dst.read_text() == "bundle"


def test_copy_file_missing_source_raises(tmp_path: Path) -> None:
    with pytest.raises(StagingIOError):
        staging.copy_file(tmp_path / "nope.js", tmp_path / "out.js")


def test_patch_file_replaces_first_occurrence(tmp_path: Path) -> None:
    f = tmp_path / "entry.js"
    f.write_text("a /*X*/ b /*X*/ c")
    assert staging.patch_file(f, "/*X*/", "1") is True
    assert f.read_text() == "a 1 b /*X*/ c"


def test_patch_file_without_marker_leaves_bytes_unchanged(tmp_path: Path) -> None:
    f = tmp_path / "entry.js"
    original = "const x = 1;\r\nmodule.exports = x\n".encode("utf-8")
    f.write_bytes(original)

    assert staging.patch_file(f, "/* -- INSERT NEXT CONFIG HERE -- */", "boom") is False
    assert f.read_bytes() == original


def test_patch_file_missing_file_does_not_raise(tmp_path: Path) -> None:
    assert staging.patch_file(tmp_path / "absent.js", "m", "r") is False


def test_patch_file_keeps_crlf_line_endings(tmp_path: Path) -> None:
    f = tmp_path / "entry.js"
    f.write_bytes(b"a\r\n/*X*/\r\nb\r\n")

    assert staging.patch_file(f, "/*X*/", "1") is True
    assert f.read_bytes() == b"a\r\n1\r\nb\r\n"


def test_patch_file_on_non_utf8_file_warns(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    f = tmp_path / "entry.js"
    original = b"\xff\xfe junk /*X*/"
    f.write_bytes(original)

    assert staging.patch_file(f, "/*X*/", "1") is False
    assert f.read_bytes() == original
    assert "not a UTF-8 text file" in caplog.text
