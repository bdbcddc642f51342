"""Configuration management for moodvoice.

Loads configuration from ~/.config/moodvoice/config.toml.
Priority chain: CLI flags > env vars > config file.
"""

import os
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_DIR = Path.home() / ".config" / "moodvoice"
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_CONFIG = """\
# moodvoice configuration

[tts]
# Provider: "clova" (CLOVA Voice premium) or "elevenlabs"
provider = "clova"

# Voice used when a request does not name one
# clova: ARA, MIKYUNG, DAIN, YUNA, GOEUN, DAESUNG
voice = "ARA"

# Output format: "wav" or "mp3" (elevenlabs supports mp3 only)
format = "wav"

# Seconds to wait for the provider before failing the request
timeout = 30

[cache]
# Directory holding the SQLite cache database
dir = "~/.cache/moodvoice"

# Let only one request synthesize a given cache key at a time
single_flight = true

# Entries not accessed for this many days are reported as stale
retention_days = 30

[storage]
# Directory where generated audio is written
dir = "~/.local/share/moodvoice/audio"

# Public URL prefix for stored audio (file:// URIs when empty)
base_url = ""

# Credentials are read from environment variables, not this file:
#   CLOVA_CLIENT_ID / CLOVA_CLIENT_SECRET  - clova provider
#   ELEVENLABS_API_KEY                     - elevenlabs provider
"""


@dataclass(frozen=True)
class TTSConfig:
    """Speech provider configuration."""

    provider: str
    voice: str
    format: str
    timeout: float


@dataclass(frozen=True)
class CacheConfig:
    """TTS cache configuration."""

    dir: Path
    single_flight: bool
    retention_days: int


@dataclass(frozen=True)
class StorageConfig:
    """Audio blob storage configuration."""

    dir: Path
    base_url: str | None


@dataclass(frozen=True)
class MoodVoiceConfig:
    """Top-level moodvoice configuration."""

    tts: TTSConfig
    cache: CacheConfig
    storage: StorageConfig


_cached_config: MoodVoiceConfig | None = None


def generate_config(path: Path = CONFIG_PATH) -> Path:
    """Write the default config file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG)
    return path


def reset_config() -> None:
    """Forget the cached configuration (next load_config() rereads the file)."""
    global _cached_config
    _cached_config = None


def parse_config(data: dict) -> MoodVoiceConfig:
    """Build a validated config from parsed TOML data with env overrides.

    Raises:
        ValueError: If required keys are missing or values are invalid
    """
    tts = data.get("tts", {})
    cache = data.get("cache", {})
    storage = data.get("storage", {})

    missing = []
    for section, values, keys in (
        ("tts", tts, ("provider", "voice", "format")),
        ("cache", cache, ("dir",)),
        ("storage", storage, ("dir",)),
    ):
        missing.extend(f"{section}.{key}" for key in keys if key not in values)
    if missing:
        raise ValueError(f"Missing required config values: {', '.join(missing)}")

    timeout = float(os.getenv("MOODVOICE_TIMEOUT", tts.get("timeout", 30)))
    if timeout <= 0:
        raise ValueError(f"tts.timeout must be positive, got {timeout}")

    retention_days = int(cache.get("retention_days", 30))
    if retention_days < 1:
        raise ValueError(f"cache.retention_days must be at least 1, got {retention_days}")

    base_url = os.getenv("MOODVOICE_BASE_URL", storage.get("base_url", ""))

    return MoodVoiceConfig(
        tts=TTSConfig(
            provider=os.getenv("MOODVOICE_PROVIDER", tts["provider"]),
            voice=os.getenv("MOODVOICE_VOICE", tts["voice"]),
            format=os.getenv("MOODVOICE_FORMAT", tts["format"]).lower(),
            timeout=timeout,
        ),
        cache=CacheConfig(
            dir=Path(os.getenv("MOODVOICE_CACHE_DIR", cache["dir"])).expanduser(),
            single_flight=bool(cache.get("single_flight", True)),
            retention_days=retention_days,
        ),
        storage=StorageConfig(
            dir=Path(os.getenv("MOODVOICE_STORAGE_DIR", storage["dir"])).expanduser(),
            base_url=base_url or None,
        ),
    )


def load_config(path: Path | None = None) -> MoodVoiceConfig:
    """Load configuration from config file with env var overrides.

    On first run, generates the config file and exits so the user
    can review it before proceeding.

    Returns:
        Loaded and validated MoodVoiceConfig.

    Raises:
        SystemExit: If config is missing (after generating) or invalid.
    """
    global _cached_config
    if _cached_config is not None and path is None:
        return _cached_config

    config_path = path or CONFIG_PATH
    if not config_path.exists():
        generated = generate_config(config_path)
        print(
            f"No config found. Generated {generated}, review and run again.",
            file=sys.stderr,
        )
        raise SystemExit(1)

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    try:
        config = parse_config(data)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        print(f"Edit {config_path} or delete it to regenerate.", file=sys.stderr)
        raise SystemExit(1) from e

    if path is None:
        _cached_config = config
    return config
