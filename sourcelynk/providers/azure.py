"""Azure DevOps (visualstudio.com) items API URLs."""

from __future__ import annotations

from .base import RemoteUrl, UnsupportedRemote, UrlProvider

_HOST_SUFFIX = "visualstudio.com"
_GIT_MARKER = "_git"
_ITEMS_URL = (
    "https://dev.azure.com/{organization}/{project}/_apis/git/repositories/{repo}/items"
    "?versionDescriptor.versionType=commit&versionDescriptor.version={revision}"
    "&api-version=5.1&path=/*"
)


class AzureDevOpsProvider(UrlProvider):
    """Remotes such as ``https://contoso.visualstudio.com/[Collection/]proj/_git/repo``."""

    name = "azure-devops"

    def matches(self, host: str) -> bool:
        return host.endswith(_HOST_SUFFIX)

    def build_url(self, remote: RemoteUrl, revision: str) -> str:
        organization = remote.host.split(".", 1)[0]
        project, repo = _project_and_repo(remote)
        return _ITEMS_URL.format(
            organization=organization,
            project=project,
            repo=repo,
            revision=revision,
        )


def _project_and_repo(remote: RemoteUrl) -> tuple[str, str]:
    segments = remote.segments
    if _GIT_MARKER in segments:
        marker = segments.index(_GIT_MARKER)
        repo = remote.segment(marker + 1)
        # /_git/repo addresses the project of the same name
        project = remote.segment(marker - 1) if marker > 0 else repo
        return project, repo
    if len(segments) < 4:
        raise UnsupportedRemote(f"{remote.raw} does not look like an Azure DevOps git remote")
    return remote.segment(1), remote.segment(3)
