"""Turn resolved repositories into wildcard path to retrieval URL mappings."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from .config import DEFAULT_REMOTE
from .git.backend import GitError, RemoteNotFound
from .logging import get_logger
from .models import PathUrlMapping, ResolvedRepository
from .providers import (
    RemoteUrl,
    RemoteUrlError,
    UnsupportedRemote,
    UrlProvider,
    discover_providers,
    provider_for_host,
)


class RemoteUrlMapper:
    """Builds provider-specific retrieval URLs for each repository's remote."""

    def __init__(
        self,
        providers: Optional[Iterable[UrlProvider]] = None,
        *,
        remote_name: str = DEFAULT_REMOTE,
        logger: logging.Logger | None = None,
    ) -> None:
        self.providers: List[UrlProvider] = (
            list(providers) if providers is not None else discover_providers()
        )
        self.remote_name = remote_name
        self.logger = logger or get_logger("mapper")

    def map(self, repos: Sequence[ResolvedRepository]) -> PathUrlMapping:
        mapping: PathUrlMapping = {}
        for repo in repos:
            url = self.url_for(repo)
            if url is not None:
                mapping[repo.key] = url
        return mapping

    def url_for(self, repo: ResolvedRepository) -> Optional[str]:
        """Return the retrieval URL for ``repo`` or None when it must be skipped."""
        workdir = repo.root
        try:
            remote_text = repo.worktree.remote_url(self.remote_name)
        except RemoteNotFound:
            self.logger.warning("Skipping repo %s. No remote named %s", workdir, self.remote_name)
            return None
        except GitError as exc:
            self.logger.error("Skipping repo %s. Unexpected error getting remote %s", workdir, exc)
            return None

        if remote_text is None:
            self.logger.warning("Skipping repo %s. URL is invalid", workdir)
            return None

        try:
            remote = RemoteUrl.parse(remote_text)
        except RemoteUrlError as exc:
            self.logger.warning("Skipping repo %s. Unable to parse url due to: %s", workdir, exc)
            return None

        provider = provider_for_host(remote.host, self.providers)
        if provider is None:
            self.logger.warning("%s is not a known domain (%s)", remote.host, remote.raw)
            return None

        try:
            return provider.build_url(remote, repo.revision)
        except UnsupportedRemote as exc:
            self.logger.warning(
                "Skipping repo %s. Unable to generate %s url: %s", workdir, provider.name, exc
            )
            return None


__all__ = ["RemoteUrlMapper"]
