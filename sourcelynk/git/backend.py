"""Thin git CLI wrapper used to resolve working trees, revisions and remotes."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterable, List, Optional

_NOT_A_REPOSITORY_MARKERS = ("not a git repository",)


class GitError(RuntimeError):
    """Raised when a git command fails unexpectedly."""


class RepositoryNotFound(GitError):
    """Raised when a path is not inside any git working tree."""


class RemoteNotFound(GitError):
    """Raised when a working tree has no remote with the requested name."""


Runner = Callable[..., str]


class WorkTree:
    """Handle on a single git working tree."""

    def __init__(self, root: Path, runner: Runner) -> None:
        self.root = root
        self._runner = runner

    def __repr__(self) -> str:
        return f"WorkTree({str(self.root)!r})"

    def head_revision(self) -> str:
        """Return the commit hash checked out at ``HEAD``."""
        output = self._git(["rev-parse", "--verify", "HEAD"])
        revision = output.strip()
        if not revision:
            raise GitError(f"HEAD of {self.root} did not resolve to a commit")
        return revision

    def is_tracked_at_head(self, relative_path: str) -> bool:
        """Return True when ``relative_path`` is recorded in the tree at ``HEAD``."""
        output = self._git(
            [
                "--literal-pathspecs",
                "ls-tree",
                "-z",
                "--full-tree",
                "--name-only",
                "HEAD",
                "--",
                relative_path,
            ]
        )
        return relative_path in output.split("\0")

    def remote_names(self) -> List[str]:
        output = self._git(["remote"])
        return [line.strip() for line in output.splitlines() if line.strip()]

    def remote_url(self, name: str) -> Optional[str]:
        """Return the fetch URL of remote ``name`` or None when it has none.

        Raises:
            RemoteNotFound: if no remote called ``name`` is configured.
        """
        if name not in self.remote_names():
            raise RemoteNotFound(f"No remote named {name} in {self.root}")
        try:
            output = self._git(["config", "--get", f"remote.{name}.url"])
        except GitError:
            # git config exits non-zero when the key is unset
            return None
        url = output.strip()
        return url or None

    def _git(self, args: List[str]) -> str:
        return _run_git(self._runner, args, cwd=self.root)


class GitBackend:
    """Discovers git working trees for files on disk."""

    def __init__(self, runner: Runner | None = None) -> None:
        self._runner = runner or self._default_runner

    def discover(self, path: Path | str) -> WorkTree:
        """Return the working tree containing ``path``.

        Raises:
            RepositoryNotFound: if ``path`` is not inside a working tree.
            GitError: for any other failure, e.g. permissions or a missing git binary.
        """
        target = Path(path)
        start = target if target.is_dir() else target.parent
        try:
            output = self._runner(
                ["git", "rev-parse", "--show-toplevel"],
                cwd=start,
                capture_output=True,
            )
        except subprocess.CalledProcessError as exc:
            message = _stderr_text(exc)
            if any(marker in message.lower() for marker in _NOT_A_REPOSITORY_MARKERS):
                raise RepositoryNotFound(f"{target} is not inside a git working tree") from exc
            raise GitError(f"git rev-parse failed for {target}: {message or exc}") from exc
        except OSError as exc:
            raise GitError(f"Unable to run git for {target}: {exc}") from exc

        toplevel = output.strip()
        if not toplevel:
            # bare repositories and the inside of .git have no working tree
            raise RepositoryNotFound(f"{target} has no git working tree")
        return WorkTree(Path(toplevel).resolve(), self._runner)

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        capture_output: bool = False,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=capture_output,
        )
        return completed.stdout if capture_output else ""


def _run_git(runner: Runner, args: List[str], *, cwd: Path) -> str:
    try:
        return runner(["git", *args], cwd=cwd, capture_output=True)
    except subprocess.CalledProcessError as exc:
        message = _stderr_text(exc)
        raise GitError(f"git {' '.join(args)} failed in {cwd}: {message or exc}") from exc
    except OSError as exc:
        raise GitError(f"Unable to run git in {cwd}: {exc}") from exc


def _stderr_text(exc: subprocess.CalledProcessError) -> str:
    stderr = exc.stderr
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    return (stderr or "").strip()


__all__ = ["GitBackend", "GitError", "RemoteNotFound", "RepositoryNotFound", "WorkTree"]
