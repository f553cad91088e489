"""Lazy directory traversal yielding candidate files."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Sequence

from .logging import get_logger

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
}


@dataclass
class ExcludeRule:
    """A gitignore-style pattern from ``exclude_paths``."""

    pattern: str
    directory_only: bool
    anchored: bool

    @classmethod
    def parse(cls, pattern: str) -> "ExcludeRule | None":
        pattern = pattern.strip()
        directory_only = pattern.endswith("/")
        if directory_only:
            pattern = pattern.rstrip("/")
        anchored = pattern.startswith("/") or "/" in pattern
        pattern = pattern.lstrip("/")
        if not pattern:
            return None
        return cls(pattern=pattern, directory_only=directory_only, anchored=anchored)

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.directory_only and not is_dir:
            return False
        if self.anchored:
            return fnmatchcase(rel_path, self.pattern)
        return fnmatchcase(rel_path.rsplit("/", 1)[-1], self.pattern)


def build_rules(patterns: Sequence[str]) -> List[ExcludeRule]:
    rules = [ExcludeRule.parse(pattern) for pattern in patterns]
    return [rule for rule in rules if rule is not None]


def iter_files(
    root: Path | str,
    exclude_paths: Sequence[str] = (),
    logger: logging.Logger | None = None,
) -> Iterator[Path]:
    """Yield regular files under ``root`` one at a time.

    Raises:
        FileNotFoundError: if ``root`` does not exist.
        NotADirectoryError: if ``root`` is not a directory.
    """
    root_path = Path(root).expanduser()
    if not root_path.exists():
        raise FileNotFoundError(f"Search path not found: {root}")
    if not root_path.is_dir():
        raise NotADirectoryError(f"Search path is not a directory: {root}")
    return _walk(root_path, build_rules(exclude_paths), logger or get_logger("walker"))


def _walk(root: Path, rules: Sequence[ExcludeRule], logger: logging.Logger) -> Iterator[Path]:
    def _on_error(exc: OSError) -> None:
        logger.warning("Unable to read %s: %s", exc.filename, exc.strerror or exc)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept = []
        for name in sorted(dirnames):
            if name in _EXCLUDED_DIRS:
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if _should_exclude(rel_path, True, rules):
                continue
            kept.append(name)
        dirnames[:] = kept

        for filename in sorted(filenames):
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if _should_exclude(rel_path, False, rules):
                continue
            path = current_dir / filename
            if path.is_file() and not path.is_symlink():
                yield path


def _should_exclude(rel_path: str, is_dir: bool, rules: Sequence[ExcludeRule]) -> bool:
    return any(rule.matches(rel_path, is_dir) for rule in rules)


__all__ = ["ExcludeRule", "build_rules", "iter_files"]
