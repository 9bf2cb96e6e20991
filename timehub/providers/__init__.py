from timehub.providers.base import SyncOptions, TimeProvider
from timehub.providers.cache import ResponseCache, load_raw_entries
from timehub.providers.registry import ProviderRegistry, build_registry
from timehub.providers.tempo_provider import TempoProvider
from timehub.providers.toggl_provider import TogglProvider

__all__ = [
    "ProviderRegistry",
    "ResponseCache",
    "SyncOptions",
    "TempoProvider",
    "TimeProvider",
    "TogglProvider",
    "build_registry",
    "load_raw_entries",
]
