"""Map source files claimed by a binary onto the git working trees that track them."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Protocol, Sequence

from ..logging import get_logger
from ..models import ResolvedRepository, SourceFileRef
from .backend import GitBackend, GitError, RepositoryNotFound, WorkTree


class TreeDiscovery(Protocol):
    def discover(self, path: Path | str) -> WorkTree: ...


class RepositoryResolver:
    """Finds the distinct working trees that track a binary's source files."""

    def __init__(
        self,
        backend: TreeDiscovery | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.backend = backend or GitBackend()
        self.logger = logger or get_logger("resolver")

    def resolve(self, source_files: Sequence[SourceFileRef]) -> List[ResolvedRepository]:
        """Return one repository per working tree root, in first-seen order."""
        resolved: Dict[Path, ResolvedRepository] = {}
        for source in source_files:
            path = Path(source.path)
            self.logger.debug("Searching for repo for %s", path)
            if not path.is_file():
                self.logger.debug("Not indexing %s as it does not exist on disk", path)
                continue

            worktree = self._discover(path)
            if worktree is None:
                continue
            root = worktree.root
            self.logger.debug("Found repo %s for %s", root, path)

            if root in resolved:
                continue

            relative = _relative_posix(path, root)
            if relative is None:
                self.logger.warning("%s resolved to repo %s but lies outside it", path, root)
                continue

            try:
                if not worktree.is_tracked_at_head(relative):
                    self.logger.debug("%s not tracked in git repo %s", path, root)
                    continue
                revision = worktree.head_revision()
            except GitError as exc:
                self.logger.warning("Skipping repo %s: %s", root, exc)
                continue

            resolved[root] = ResolvedRepository(root=root, revision=revision, worktree=worktree)

        return list(resolved.values())

    def _discover(self, path: Path) -> WorkTree | None:
        try:
            return self.backend.discover(path)
        except RepositoryNotFound:
            self.logger.debug("Not indexing %s as it is not tracked by source control", path)
        except GitError as exc:
            self.logger.warning('Error %s discovering git repo at "%s"', exc, path)
        return None


def _relative_posix(path: Path, root: Path) -> str | None:
    for candidate in (path, path.resolve()):
        try:
            return candidate.relative_to(root).as_posix()
        except ValueError:
            continue
    return None


__all__ = ["RepositoryResolver", "TreeDiscovery"]
