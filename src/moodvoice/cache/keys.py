"""Deterministic cache key derivation for synthesized speech."""

import hashlib
import json
import logging

from ..errors import CacheKeyError
from ..tts.models import VoiceTone

logger = logging.getLogger(__name__)

DEFAULT_AUDIO_FORMAT = "wav"


def canonicalize(
    text: str, voice: str, tone: VoiceTone, audio_format: str
) -> str:
    """Build the canonical string a cache key is hashed from.

    The components are encoded as a compact JSON array, so text containing
    any delimiter character can never collide with a different split.

    Raises:
        CacheKeyError: If any component is missing or the tone cannot be serialized
    """
    if text is None or voice is None or audio_format is None:
        raise CacheKeyError(
            "All parameters (text, voice, audio_format) must be non-None"
        )
    if not isinstance(tone, VoiceTone):
        raise CacheKeyError(
            f"tone must be a VoiceTone, got {type(tone).__name__}"
        )

    try:
        return json.dumps(
            [text.strip(), voice, tone.to_dict(), audio_format],
            ensure_ascii=False,
            separators=(",", ":"),
        )
    except (TypeError, ValueError) as e:
        raise CacheKeyError(f"Failed to serialize cache key components: {e}", e) from e


def derive_cache_key(
    text: str,
    voice: str,
    tone: VoiceTone,
    audio_format: str = DEFAULT_AUDIO_FORMAT,
) -> str:
    """Derive the cache key for one (text, voice, tone, format) combination.

    Args:
        text: Text to be spoken (surrounding whitespace is ignored)
        voice: Voice identity
        tone: Voice tone vector
        audio_format: Output container format

    Returns:
        32-character lowercase hex MD5 digest

    Raises:
        CacheKeyError: If the inputs cannot be canonicalized
    """
    try:
        canonical = canonicalize(text, voice, tone, audio_format)
    except CacheKeyError as e:
        logger.error(f"Cache key derivation failed: {e}")
        raise

    key = hashlib.md5(canonical.encode("utf-8")).hexdigest()
    logger.debug(
        f"Derived cache key {key} (text length {len(text)}, voice {voice})"
    )
    return key
