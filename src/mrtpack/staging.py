# staging.py
# Moves build artifacts between the framework's output layout and the
# packaged layout. Missing optional sources are warnings; anything else that
# goes wrong on disk is a StagingIOError.

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .errors import StagingIOError

log = logging.getLogger(__name__)


def ensure_dir(path: str | Path) -> Path:
    """Create a directory (and parents) and return it as a Path."""
    p = Path(path)
    try:
        p.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StagingIOError(operation="mkdir", path=p, cause=e) from e
    return p


def copy_dir(src: str | Path, dst: str | Path) -> bool:
    """
    Recursively copy src into dst, merging with whatever dst already holds.

    Returns:
        True if something was copied, False if src does not exist. In that
        case dst is left alone (not created).
    """
    src_p, dst_p = Path(src), Path(dst)
    if not src_p.is_dir():
        log.warning("Source directory %s does not exist, skipping copy.", src_p)
        return False

    try:
        shutil.copytree(src_p, dst_p, dirs_exist_ok=True)
    except OSError as e:  # shutil.Error is an OSError too
        raise StagingIOError(operation="copy", path=src_p, cause=e) from e
    return True


def remove_dir(path: str | Path) -> None:
    """Recursively remove path. Removing something that is not there is a no-op."""
    p = Path(path)
    try:
        if p.is_dir() and not p.is_symlink():
            shutil.rmtree(p)
        elif p.exists() or p.is_symlink():
            p.unlink()
    except OSError as e:
        raise StagingIOError(operation="remove", path=p, cause=e) from e


def rename(src: str | Path, dst: str | Path) -> None:
    src_p, dst_p = Path(src), Path(dst)
    try:
        src_p.rename(dst_p)
    except OSError as e:
        raise StagingIOError(operation="rename", path=src_p, cause=e) from e


def copy_file(src: str | Path, dst: str | Path) -> None:
    src_p, dst_p = Path(src), Path(dst)
    ensure_dir(dst_p.parent)
    try:
        shutil.copyfile(src_p, dst_p)
    except OSError as e:
        raise StagingIOError(operation="copy", path=src_p, cause=e) from e


def move_file(src: str | Path, dst: str | Path) -> None:
    """Copy src to dst, then delete src."""
    copy_file(src, dst)
    src_p = Path(src)
    try:
        src_p.unlink()
    except OSError as e:
        raise StagingIOError(operation="remove", path=src_p, cause=e) from e


def read_text(path: str | Path) -> str:
    """
    Read a UTF-8 text file with its line endings untouched.

    Raises:
        StagingIOError: the file cannot be read
        UnicodeDecodeError: the file is not UTF-8
    """
    p = Path(path)
    try:
        with p.open(encoding="utf-8", newline="") as f:
            return f.read()
    except OSError as e:
        raise StagingIOError(operation="read", path=p, cause=e) from e


def write_text(path: str | Path, text: str) -> None:
    p = Path(path)
    try:
        with p.open("w", encoding="utf-8", newline="") as f:
            f.write(text)
    except OSError as e:
        raise StagingIOError(operation="write", path=p, cause=e) from e


def patch_file(path: str | Path, marker: str, replacement: str) -> bool:
    """
    Replace the first literal occurrence of marker in a text file.

    Returns:
        True if the file was rewritten. False (with a warning) when the file
        is missing or not UTF-8, or the marker is absent. The file is not
        touched in that case.
    """
    p = Path(path)
    if not p.is_file():
        log.warning("Cannot patch %s: file not found.", p)
        return False

    try:
        text = read_text(p)
    except UnicodeDecodeError as e:
        log.warning("Cannot patch %s: not a UTF-8 text file (%s).", p, e.reason)
        return False
    if marker not in text:
        log.warning("Cannot patch %s: marker %r not found.", p, marker)
        return False

    write_text(p, text.replace(marker, replacement, 1))
    return True
