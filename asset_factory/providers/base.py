"""
Abstract base classes for generation providers.
Defines the interface that every provider must implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Sequence, Union

from ..errors import ConfigurationError


# Ordered content part: raw image bytes or instruction text
Part = Union[bytes, str]

# Finish or block reasons that mean the provider refused on safety grounds
SAFETY_REASONS = ("SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "IMAGE_SAFETY")


@dataclass
class SafetyRating:
    """A single safety rating attached to a provider response."""
    category: str
    probability: str

    @property
    def flagged(self) -> bool:
        """Ratings above LOW are reported back to the user."""
        return self.probability not in ("NEGLIGIBLE", "LOW")

    def to_dict(self) -> Dict[str, str]:
        return {"category": self.category, "probability": self.probability}


@dataclass
class ProviderResponse:
    """Result of an image transform call."""
    image_bytes: Optional[bytes] = None
    text: Optional[str] = None
    finish_reason: Optional[str] = None
    safety_ratings: List[SafetyRating] = field(default_factory=list)
    mime_type: str = "image/png"
    raw: Optional[Any] = None

    @property
    def has_image(self) -> bool:
        return bool(self.image_bytes)

    def flagged_ratings(self) -> List[Dict[str, str]]:
        return [rating.to_dict() for rating in self.safety_ratings if rating.flagged]


class ProviderError(Exception):
    """Raw transport failure reported by a provider, before classification."""

    def __init__(self, message: str, provider: str, status_code: Optional[int] = None,
                 body: Optional[Any] = None, recoverable: bool = False):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.body = body
        self.recoverable = recoverable


class GenerationProvider(ABC):
    """Abstract base class for generation providers."""

    name = "provider"

    def __init__(self, config: Dict[str, Any]):
        """Initialize provider with configuration."""
        self.config = config
        self._configured = False

    @abstractmethod
    def create_image(self, prompt: str, count: int = 1, mime_type: str = "image/png",
                     aspect_ratio: Optional[str] = None) -> List[bytes]:
        """
        Generate images from text.

        Args:
            prompt: Prompt text
            count: Number of images to generate
            mime_type: Output image format
            aspect_ratio: Optional aspect ratio such as "1:1" or "16:9"

        Returns:
            List of raw image bytes (may be empty)

        Raises:
            ProviderError: If the provider call fails
        """
        pass

    @abstractmethod
    def transform_image(self, parts: Sequence[Part],
                        response_modalities: Sequence[str] = ("IMAGE", "TEXT")) -> ProviderResponse:
        """
        Generate an image conditioned on ordered image and text parts.

        Args:
            parts: Image bytes and text, in the order the model should read them
            response_modalities: Requested output modalities

        Returns:
            ProviderResponse with image and/or text, finish reason and safety ratings
        """
        pass

    @abstractmethod
    def generate_structured(self, prompt: str, schema: Dict[str, Any]) -> str:
        """
        Generate JSON text matching a response schema.

        Returns:
            Raw JSON text as returned by the provider
        """
        pass

    @abstractmethod
    def generate_text(self, prompt: str) -> str:
        """Generate free text."""
        pass

    @abstractmethod
    def configure(self, config: Dict[str, Any]) -> None:
        """
        Configure provider with settings.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        pass

    def is_configured(self) -> bool:
        """Check if provider is properly configured."""
        return self._configured

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        """
        Validate provider configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        return []

    def get_provider_info(self) -> Dict[str, Any]:
        """Get information about this provider; secrets are masked."""
        safe_config = {
            key: ("***" if "key" in key.lower() and value else value)
            for key, value in self.config.items()
        }
        return {
            "name": self.name,
            "class": self.__class__.__name__,
            "configured": self.is_configured(),
            "config": safe_config,
        }


class ProviderFactory:
    """Factory for creating generation providers."""

    def __init__(self):
        self._provider_classes: Dict[str, type] = {}

    def register_provider_class(self, name: str, provider_class: type) -> None:
        """
        Register a provider class.

        Raises:
            ValueError: If provider_class doesn't inherit from GenerationProvider
        """
        if not issubclass(provider_class, GenerationProvider):
            raise ValueError(f"Provider class {provider_class} must inherit from GenerationProvider")
        self._provider_classes[name] = provider_class

    def create_provider(self, name: str, config: Dict[str, Any]) -> GenerationProvider:
        """
        Create and configure a provider instance.

        Raises:
            ConfigurationError: If the name is unknown or configuration fails
        """
        if name not in self._provider_classes:
            raise ConfigurationError(
                f"Unknown provider '{name}'. Available: {self.list_providers()}", name
            )

        provider = self._provider_classes[name](config)
        provider.configure(config)
        return provider

    def list_providers(self) -> List[str]:
        """List registered provider names."""
        return list(self._provider_classes.keys())


provider_factory = ProviderFactory()
