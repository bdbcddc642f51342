"""Pytest configuration and fixtures for moodvoice tests."""

import sys
from collections.abc import Generator
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from moodvoice.config import reset_config
from moodvoice.providers import ProviderRegistry


@pytest.fixture(autouse=True)
def restore_provider_registry() -> Generator[None]:
    """Tests may clear or extend the registry; put the real providers back."""
    providers = dict(ProviderRegistry._providers)
    instances = dict(ProviderRegistry._instances)
    yield
    ProviderRegistry._providers.clear()
    ProviderRegistry._providers.update(providers)
    ProviderRegistry._instances.clear()
    ProviderRegistry._instances.update(instances)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch) -> Generator[None]:
    """Drop cached config and MOODVOICE_* overrides between tests."""
    for name in (
        "MOODVOICE_PROVIDER",
        "MOODVOICE_VOICE",
        "MOODVOICE_FORMAT",
        "MOODVOICE_TIMEOUT",
        "MOODVOICE_CACHE_DIR",
        "MOODVOICE_STORAGE_DIR",
        "MOODVOICE_BASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()
