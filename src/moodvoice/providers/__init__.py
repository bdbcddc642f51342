"""Provider abstraction for speech synthesis services.

This module provides a registry pattern for managing providers, allowing
runtime selection of the speech backend by name.
"""

from typing import ClassVar

from .base import SpeechSynthesisProvider
from .clova import ClovaProvider
from .elevenlabs import ElevenLabsProvider

__all__ = [
    "ClovaProvider",
    "ElevenLabsProvider",
    "ProviderRegistry",
    "SpeechSynthesisProvider",
]


class ProviderRegistry:
    """Registry for managing speech synthesis providers.

    This class maintains a registry of available providers, allowing
    registration and retrieval by name.
    """

    _providers: ClassVar[dict[str, type[SpeechSynthesisProvider]]] = {}
    _instances: ClassVar[dict[str, SpeechSynthesisProvider]] = {}

    @classmethod
    def register(
        cls, name: str, provider_class: type[SpeechSynthesisProvider]
    ) -> None:
        """Register a provider class under name."""
        cls._providers[name] = provider_class
        cls._instances.pop(name, None)

    @classmethod
    def get(cls, name: str) -> type[SpeechSynthesisProvider]:
        """Get a provider class by name.

        Raises:
            KeyError: If provider name not found
        """
        if name not in cls._providers:
            available = ", ".join(cls._providers.keys()) if cls._providers else "none"
            raise KeyError(
                f"Provider '{name}' not found. Available providers: {available}"
            )
        return cls._providers[name]

    @classmethod
    def get_instance(cls, name: str, **kwargs) -> SpeechSynthesisProvider:
        """Get a cached provider instance by name.

        Creates the instance on first call, returns cached instance after.
        kwargs are passed to the constructor on first creation only.

        Raises:
            KeyError: If provider name not found
        """
        if name not in cls._instances:
            provider_class = cls.get(name)
            cls._instances[name] = provider_class(**kwargs)
        return cls._instances[name]


# Register providers
ProviderRegistry.register("clova", ClovaProvider)
ProviderRegistry.register("elevenlabs", ElevenLabsProvider)
