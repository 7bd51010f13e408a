"""Provider registry and cross-provider aggregation."""

import logging
from concurrent.futures import ThreadPoolExecutor
from copy import copy
from typing import Callable, Iterable, Optional, Type, TypeVar

from ..config import ViewerConfig
from ..models import Project, ProviderInfo, ProviderSummary, Session, UnifiedProject
from ..pathcodec import decode_path_id, encode_path_id, project_name
from .base import SessionProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Registry of all provider classes, in registration (tab display) order
_PROVIDERS: dict[str, Type[SessionProvider]] = {}


def register_provider(provider_class: Type[SessionProvider]) -> Type[SessionProvider]:
    """Decorator to register a provider class."""
    _PROVIDERS[provider_class.name] = provider_class
    return provider_class


def _fan_out(items: list, call: Callable[..., T], default: T) -> list[T]:
    """Run call once per item in parallel; results keep item order.

    An item whose call raises contributes a copy of ``default``, so one slow
    or broken provider cannot fail the whole request.
    """
    if not items:
        return []
    with ThreadPoolExecutor(max_workers=len(items)) as pool:
        futures = [pool.submit(call, item) for item in items]
    results = []
    for item, future in zip(items, futures):
        try:
            results.append(future.result())
        except Exception as e:
            logger.warning(f"Provider call failed for {item!r}: {e}")
            results.append(copy(default))
    return results


class ProviderRegistry:
    """A fixed, ordered set of provider instances."""

    def __init__(self, providers: Iterable[SessionProvider]):
        self.providers = list(providers)

    @classmethod
    def from_config(cls, config: Optional[ViewerConfig] = None) -> "ProviderRegistry":
        config = config or ViewerConfig.from_env()
        return cls(
            provider_class(config.root_for(name))
            for name, provider_class in _PROVIDERS.items()
        )

    def get_provider(self, provider_id: str) -> Optional[SessionProvider]:
        for provider in self.providers:
            if provider.name == provider_id:
                return provider
        return None

    def get_available_providers(self) -> list[ProviderInfo]:
        """Availability of every provider, probed concurrently."""
        available = _fan_out(self.providers, lambda p: p.is_available(), False)
        return [
            ProviderInfo(
                id=provider.name,
                name=provider.display_name,
                description=provider.description,
                icon=provider.icon,
                base_dir=str(provider.root),
                available=bool(is_available),
            )
            for provider, is_available in zip(self.providers, available)
        ]

    def available(self) -> list[SessionProvider]:
        flags = _fan_out(self.providers, lambda p: p.is_available(), False)
        return [p for p, ok in zip(self.providers, flags) if ok]

    def get_unified_projects(self) -> list[UnifiedProject]:
        """Projects of all available providers, grouped by exact path."""
        providers = self.available()
        project_lists = _fan_out(providers, lambda p: p.list_projects(), [])

        # path -> summaries, in provider registration order
        grouped: dict[str, list[ProviderSummary]] = {}
        for provider, projects in zip(providers, project_lists):
            for project in projects:
                grouped.setdefault(project.path, []).append(_summary(provider, project))

        unified = [
            UnifiedProject(
                id=encode_path_id(path),
                path=path,
                name=project_name(path),
                total_sessions=sum(s.session_count for s in summaries),
                last_modified=max(s.last_modified for s in summaries),
                providers=tuple(summaries),
            )
            for path, summaries in grouped.items()
        ]
        unified.sort(key=lambda u: u.last_modified, reverse=True)
        logger.info(f"{len(unified)} projects from {len(providers)} providers")
        return unified

    def get_unified_project(self, unified_id: str) -> Optional[UnifiedProject]:
        path = decode_path_id(unified_id)
        for project in self.get_unified_projects():
            if project.path == path or project.id == unified_id:
                return project
        return None

    def get_unified_sessions(self, project: UnifiedProject) -> list[tuple[ProviderSummary, list[Session]]]:
        """Sessions of each contributing provider, fetched concurrently."""
        pairs = [
            (summary, self.get_provider(summary.provider_id))
            for summary in project.providers
        ]
        pairs = [(summary, provider) for summary, provider in pairs if provider is not None]

        sessions = _fan_out(pairs, lambda pair: pair[1].list_sessions(pair[0].project_id), [])
        return [(summary, found) for (summary, _), found in zip(pairs, sessions)]


def _summary(provider: SessionProvider, project: Project) -> ProviderSummary:
    return ProviderSummary(
        provider_id=provider.name,
        provider_name=provider.display_name,
        provider_icon=provider.icon,
        project_id=project.id,
        session_count=project.session_count,
        last_modified=project.last_modified,
    )


def get_registry(config: Optional[ViewerConfig] = None) -> ProviderRegistry:
    return ProviderRegistry.from_config(config)


def get_provider(name: str) -> SessionProvider | None:
    """Get an instance of a provider by name."""
    return get_registry().get_provider(name)


def get_all_providers() -> list[SessionProvider]:
    """Get instances of all registered providers."""
    return get_registry().providers


def get_available_providers() -> list[ProviderInfo]:
    """Availability status of all registered providers."""
    return get_registry().get_available_providers()


def get_unified_projects() -> list[UnifiedProject]:
    return get_registry().get_unified_projects()


# Import providers to trigger registration
from . import claude_code  # noqa: F401, E402
from . import codex  # noqa: F401, E402
from . import opencode  # noqa: F401, E402
