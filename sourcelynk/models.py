"""Core data models shared across sourcelynk components."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .git.backend import WorkTree

# Wildcard key (``<root>/*``) to retrieval URL.
PathUrlMapping = Dict[str, str]


@dataclass(frozen=True)
class SourceFileRef:
    """Absolute path of a source file that contributed to a binary."""

    path: Path


@dataclass(frozen=True)
class ResolvedRepository:
    """A working tree that tracks at least one source file of a binary.

    Identity is the canonical root path; the work tree handle is carried along so
    remotes can be looked up later but does not take part in equality.
    """

    root: Path
    revision: str
    worktree: "WorkTree" = field(compare=False, repr=False)

    @property
    def key(self) -> str:
        """Forward-slash wildcard key used in source link documents."""
        return f"{self.root.as_posix().rstrip('/')}/*"


@dataclass
class SourceLinkDocument:
    """JSON document embedded into a debug-information file."""

    documents: PathUrlMapping = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"documents": dict(self.documents)}
