"""Unit tests for provider registry functionality."""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from moodvoice.providers import ClovaProvider, ElevenLabsProvider, ProviderRegistry


class MockProvider:
    """Mock provider class for testing registration."""

    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs


class AnotherMockProvider:
    """Another mock provider class for testing multiple registrations."""

    pass


class TestProviderRegistry:
    """Test ProviderRegistry functionality."""

    def test_builtin_providers_registered(self) -> None:
        """Test that clova and elevenlabs are registered on import."""
        assert ProviderRegistry.get("clova") is ClovaProvider
        assert ProviderRegistry.get("elevenlabs") is ElevenLabsProvider

    def test_register_and_get_provider(self) -> None:
        """Test registering and retrieving a provider."""
        ProviderRegistry._providers.clear()

        ProviderRegistry.register("test", MockProvider)

        assert ProviderRegistry._providers["test"] is MockProvider
        assert ProviderRegistry.get("test") is MockProvider

    def test_register_overwrites_existing(self) -> None:
        """Test that registering with same name overwrites existing provider."""
        ProviderRegistry._providers.clear()

        ProviderRegistry.register("test", MockProvider)
        ProviderRegistry.register("test", AnotherMockProvider)

        assert ProviderRegistry.get("test") is AnotherMockProvider
        assert len(ProviderRegistry._providers) == 1

    def test_get_nonexistent_provider_error(self) -> None:
        """Test that getting non-existent provider raises KeyError with helpful message."""
        ProviderRegistry._providers.clear()

        with pytest.raises(
            KeyError, match="Provider 'missing' not found. Available providers: none"
        ):
            ProviderRegistry.get("missing")

    def test_get_nonexistent_provider_with_available(self) -> None:
        """Test error message includes available providers when some exist."""
        ProviderRegistry._providers.clear()
        ProviderRegistry.register("clova", MockProvider)
        ProviderRegistry.register("elevenlabs", AnotherMockProvider)

        with pytest.raises(
            KeyError,
            match="Provider 'missing' not found. Available providers: clova, elevenlabs",
        ):
            ProviderRegistry.get("missing")


class TestProviderInstances:
    """Test cached provider instances."""

    def test_get_instance_is_cached(self) -> None:
        """Test that the instance is created once and kwargs apply to the first call."""
        ProviderRegistry.register("cached", MockProvider)

        first = ProviderRegistry.get_instance("cached", timeout=5)
        second = ProviderRegistry.get_instance("cached", timeout=99)

        assert first is second
        assert first.kwargs == {"timeout": 5}

    def test_register_drops_cached_instance(self) -> None:
        """Test that re-registering a name forgets the old instance."""
        ProviderRegistry.register("cached", MockProvider)
        first = ProviderRegistry.get_instance("cached")

        ProviderRegistry.register("cached", MockProvider)

        assert ProviderRegistry.get_instance("cached") is not first

    def test_get_instance_builds_clova_from_env(self) -> None:
        """Test that clova is constructed with credentials from the environment."""
        with patch.dict(
            "os.environ",
            {"CLOVA_CLIENT_ID": "id", "CLOVA_CLIENT_SECRET": "secret"},
        ):
            ProviderRegistry._instances.pop("clova", None)
            provider = ProviderRegistry.get_instance("clova")

        assert isinstance(provider, ClovaProvider)
