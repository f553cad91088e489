"""GitHub contents API URLs."""

from __future__ import annotations

from .base import RemoteUrl, UnsupportedRemote, UrlProvider

_GITHUB_HOST = "github.com"
_CONTENTS_URL = "https://api.github.com/repos/{user}/{repo}/contents/*?ref={revision}"


class GitHubProvider(UrlProvider):
    name = "github"

    def matches(self, host: str) -> bool:
        return host == _GITHUB_HOST

    def build_url(self, remote: RemoteUrl, revision: str) -> str:
        user = remote.segment(0)
        repo = remote.segment(1)
        if repo.endswith(".git"):
            repo = repo[: -len(".git")]
        if not repo:
            raise UnsupportedRemote(f"{remote.raw} has no repository name")
        return _CONTENTS_URL.format(user=user, repo=repo, revision=revision)
