"""Git integration: working tree discovery and source-to-repository resolution."""

from .backend import GitBackend, GitError, RemoteNotFound, RepositoryNotFound, WorkTree
from .resolver import RepositoryResolver

__all__ = [
    "GitBackend",
    "GitError",
    "RemoteNotFound",
    "RepositoryNotFound",
    "RepositoryResolver",
    "WorkTree",
]
