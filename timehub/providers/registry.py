"""Explicit registry of the configured time providers."""

import logging
from typing import Callable, Dict, Iterable, List

from sqlalchemy.orm import Session

from timehub.config import Settings
from timehub.providers.base import TimeProvider
from timehub.providers.tempo_provider import TempoProvider
from timehub.providers.toggl_provider import TogglProvider

log = logging.getLogger(__name__)


class ProviderRegistry:
    """Name -> provider lookup. Names are matched case-insensitively."""

    def __init__(self, providers: Iterable[TimeProvider] = ()):
        self._providers: Dict[str, TimeProvider] = {}
        for provider in providers:
            self.register(provider)

    def register(self, provider: TimeProvider) -> None:
        name = provider.get_name().upper()
        if name in self._providers:
            log.warning(f"Provider {name} registered twice, replacing previous instance")
        self._providers[name] = provider
        log.debug(f"Registered provider: {name}")

    def get(self, name: str) -> TimeProvider:
        """Return the provider for ``name``; raises KeyError for unknown names."""
        try:
            return self._providers[name.upper()]
        except KeyError:
            raise KeyError(f"Unknown provider: {name}") from None

    def all(self) -> List[TimeProvider]:
        return list(self._providers.values())

    def names(self) -> List[str]:
        return list(self._providers)

    def __contains__(self, name: str) -> bool:
        return name.upper() in self._providers

    def __len__(self) -> int:
        return len(self._providers)


def build_registry(settings: Settings, session_factory: Callable[[], Session]) -> ProviderRegistry:
    return ProviderRegistry([
        TogglProvider(settings, session_factory),
        TempoProvider(settings, session_factory),
    ])
