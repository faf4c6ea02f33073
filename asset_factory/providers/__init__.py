"""
Generation providers for the asset factory.
"""

from typing import Dict, Any

from .base import (
    GenerationProvider, ProviderResponse, ProviderError, SafetyRating, ProviderFactory, provider_factory
)
from .classifier import classify_failure, filter_ratings
from .gemini import GeminiProvider
from .stub import StubProvider


provider_factory.register_provider_class("gemini", GeminiProvider)
provider_factory.register_provider_class("stub", StubProvider)


def create_provider(name: str, config: Dict[str, Any]) -> GenerationProvider:
    """Create a configured provider by registered name."""
    return provider_factory.create_provider(name, config)


__all__ = [
    "GenerationProvider",
    "ProviderResponse",
    "ProviderError",
    "SafetyRating",
    "ProviderFactory",
    "provider_factory",
    "classify_failure",
    "filter_ratings",
    "GeminiProvider",
    "StubProvider",
    "create_provider",
]
