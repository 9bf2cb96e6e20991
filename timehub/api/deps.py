from fastapi import Request

from timehub.providers.registry import ProviderRegistry


def get_registry(request: Request) -> ProviderRegistry:
    """Provider registry built at application startup."""
    return request.app.state.registry
