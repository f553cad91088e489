"""Base classes for hosting providers that turn git remotes into retrieval URLs."""

from __future__ import annotations

import ipaddress
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple
from urllib.parse import urlsplit

# git@github.com:owner/repo.git
_SCP_LIKE = re.compile(r"^(?P<user>[^@/:]+@)?(?P<host>[^/:]+):(?P<path>[^/].*)$")


class RemoteUrlError(ValueError):
    """Raised when a remote URL cannot be parsed into scheme, host and path."""


class UnsupportedRemote(ValueError):
    """Raised when a provider cannot build a URL for a particular remote."""


@dataclass(frozen=True)
class RemoteUrl:
    """Structured view of a git remote URL."""

    raw: str
    scheme: str
    host: str
    segments: Tuple[str, ...]

    @classmethod
    def parse(cls, text: str) -> "RemoteUrl":
        candidate = text.strip()
        if not candidate:
            raise RemoteUrlError("empty URL")
        if "://" not in candidate:
            match = _SCP_LIKE.match(candidate)
            if match is None:
                raise RemoteUrlError(f"relative URL without a base: {text}")
            candidate = f"ssh://{match.group('user') or ''}{match.group('host')}/{match.group('path')}"

        try:
            parts = urlsplit(candidate)
            host = parts.hostname
        except ValueError as exc:
            raise RemoteUrlError(str(exc)) from exc
        if not parts.scheme:
            raise RemoteUrlError(f"missing scheme: {text}")
        if not host:
            raise RemoteUrlError(f"Url {text} has no domain")
        if _is_ip_address(host):
            raise RemoteUrlError(f"Url {text} has no domain")

        path = parts.path[1:] if parts.path.startswith("/") else parts.path
        segments = tuple(path.split("/")) if path else ()
        return cls(raw=text, scheme=parts.scheme, host=host.lower(), segments=segments)

    def segment(self, index: int) -> str:
        """Return a non-empty path segment or raise UnsupportedRemote."""
        if index >= len(self.segments) or not self.segments[index]:
            raise UnsupportedRemote(f"{self.raw} has no path segment at position {index}")
        return self.segments[index]


class UrlProvider(ABC):
    """Contract for hosting providers that serve file contents at a revision."""

    name: str = "provider"

    @abstractmethod
    def matches(self, host: str) -> bool:
        """Return True when this provider hosts remotes on ``host``."""

    @abstractmethod
    def build_url(self, remote: RemoteUrl, revision: str) -> str:
        """Return a wildcard retrieval URL for ``remote`` pinned at ``revision``."""


def _is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True
