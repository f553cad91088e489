"""Tests for candidate file traversal."""

from __future__ import annotations

from pathlib import Path

import pytest

from sourcelynk.walker import iter_files


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    return path


def test_iter_files_is_lazy_and_skips_vcs_dirs(tmp_path: Path) -> None:
    _touch(tmp_path / "bin" / "app")
    _touch(tmp_path / "lib" / "libdemo.so")
    _touch(tmp_path / ".git" / "objects" / "ab")

    walker = iter_files(tmp_path)
    first = next(walker)
    rest = list(walker)

    found = [path.relative_to(tmp_path).as_posix() for path in [first, *rest]]
    assert found == ["bin/app", "lib/libdemo.so"]


def test_iter_files_honours_exclude_patterns(tmp_path: Path) -> None:
    _touch(tmp_path / "build" / "app")
    _touch(tmp_path / "out" / "debug" / "app.o")
    _touch(tmp_path / "out" / "debug" / "app")
    _touch(tmp_path / "third_party" / "vendor" / "lib.so")

    found = [
        path.relative_to(tmp_path).as_posix()
        for path in iter_files(tmp_path, ["build/", "*.o", "third_party/vendor"])
    ]

    assert found == ["out/debug/app"]


def test_iter_files_skips_symlinks(tmp_path: Path) -> None:
    target = _touch(tmp_path / "real")
    (tmp_path / "link").symlink_to(target)

    assert [path.name for path in iter_files(tmp_path)] == ["real"]


def test_iter_files_missing_root(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        iter_files(tmp_path / "missing")


def test_iter_files_root_must_be_directory(tmp_path: Path) -> None:
    with pytest.raises(NotADirectoryError):
        iter_files(_touch(tmp_path / "file"))
