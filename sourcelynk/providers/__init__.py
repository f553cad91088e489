"""Hosting provider implementations and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Iterable, List, Optional, Sequence, Set

from .azure import AzureDevOpsProvider
from .base import RemoteUrl, RemoteUrlError, UnsupportedRemote, UrlProvider
from .github import GitHubProvider

_ENTRY_POINT_GROUP = "sourcelynk.providers"

_BUILTIN_FACTORIES: dict[str, Callable[[], UrlProvider]] = {
    "github": GitHubProvider,
    "azure-devops": AzureDevOpsProvider,
}


def discover_providers(enabled: Sequence[str] | None = None) -> List[UrlProvider]:
    """Return instantiated providers, built-ins first, honoring optional enabled names."""

    enabled_set: Set[str] | None = None
    if enabled is not None:
        enabled_set = {name.lower() for name in enabled}

    providers: List[UrlProvider] = []
    seen: Set[str] = set()

    def _add(name: str, factory: Callable[[], UrlProvider]) -> None:
        key = name.lower()
        if enabled_set is not None and key not in enabled_set:
            return
        if key in seen:
            return
        instance = factory()
        if not isinstance(instance, UrlProvider):
            raise TypeError(f"Provider factory for '{name}' did not return a UrlProvider instance")
        providers.append(instance)
        seen.add(key)

    for name, factory in _BUILTIN_FACTORIES.items():
        _add(name, factory)

    for entry in _iter_entry_points():
        name = entry.name
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - defensive guard
            raise RuntimeError(f"Failed to load provider entry point '{name}': {exc}") from exc

        def _factory(obj: object = loaded) -> UrlProvider:
            return _coerce_provider(obj)

        _add(name, _factory)

    if enabled_set is not None:
        missing = enabled_set - seen
        if missing:
            raise ValueError(f"Unknown providers requested: {', '.join(sorted(missing))}")

    return providers


def provider_for_host(host: str, providers: Iterable[UrlProvider]) -> Optional[UrlProvider]:
    """Return the first provider that claims ``host``."""
    for provider in providers:
        if provider.matches(host):
            return provider
    return None


def _coerce_provider(obj: object) -> UrlProvider:
    if isinstance(obj, UrlProvider):
        return obj
    if isinstance(obj, type) and issubclass(obj, UrlProvider):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, UrlProvider):
            return instance
    raise TypeError("Provider entry point must be a UrlProvider subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "AzureDevOpsProvider",
    "GitHubProvider",
    "RemoteUrl",
    "RemoteUrlError",
    "UnsupportedRemote",
    "UrlProvider",
    "discover_providers",
    "provider_for_host",
]
