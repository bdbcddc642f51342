"""ElevenLabs text-to-speech provider implementation."""

import asyncio
import logging
import os
from dataclasses import dataclass

from elevenlabs.client import ElevenLabs

from ..tts.errors import (
    TTSAPIError,
    TTSAuthError,
    TTSError,
    TTSInputError,
    TTSUnavailableError,
    error_for_status,
)
from ..tts.models import SynthesisResult, VoiceTone
from .base import SpeechSynthesisProvider

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = {"mp3": "mp3_44100_128"}


@dataclass
class ElevenLabsVoiceSettings:
    """Voice generation settings derived from a VoiceTone.

    Args:
        stability: Voice stability (0.0-1.0)
        similarity_boost: Voice similarity boost (0.0-1.0)
        style: Voice style exaggeration (0.0-1.0)
        use_speaker_boost: Whether to use speaker boost
        speed: Speaking rate (0.7-1.2)
    """

    stability: float = 0.75
    similarity_boost: float = 0.75
    style: float = 0.0
    use_speaker_boost: bool = True
    speed: float = 1.0

    def __post_init__(self) -> None:
        """Validate voice settings."""
        if not 0.0 <= self.stability <= 1.0:
            raise ValueError("stability must be between 0.0 and 1.0")
        if not 0.0 <= self.similarity_boost <= 1.0:
            raise ValueError("similarity_boost must be between 0.0 and 1.0")
        if not 0.0 <= self.style <= 1.0:
            raise ValueError("style must be between 0.0 and 1.0")
        if not 0.7 <= self.speed <= 1.2:
            raise ValueError("speed must be between 0.7 and 1.2")

    @classmethod
    def from_tone(cls, tone: VoiceTone) -> "ElevenLabsVoiceSettings":
        """Approximate a tone: negative speed is faster, strength adds style.

        Pitch has no ElevenLabs counterpart and is ignored.
        """
        return cls(
            stability=round(0.75 - 0.15 * tone.emotion_strength, 2),
            style=round(0.3 * tone.emotion_strength, 2),
            speed=round(1.0 - 0.1 * tone.speed, 2),
        )

    def to_dict(self) -> dict:
        return {
            "stability": self.stability,
            "similarity_boost": self.similarity_boost,
            "style": self.style,
            "use_speaker_boost": self.use_speaker_boost,
            "speed": self.speed,
        }


def _map_sdk_error(e: Exception) -> TTSError:
    status_code = getattr(e, "status_code", None)
    if isinstance(status_code, int):
        return error_for_status(status_code, str(e), e)
    message = str(e)
    if "unauthorized" in message.lower() or "401" in message:
        return TTSAuthError(f"Authentication failed: {e}", e)
    if "429" in message:
        return error_for_status(429, message, e)
    if message[:1] == "5":
        return TTSUnavailableError(f"Server error: {e}", original_error=e)
    return TTSAPIError(f"API call failed: {e}", original_error=e)


class ElevenLabsProvider(SpeechSynthesisProvider):
    """ElevenLabs TTS provider implementation.

    The SDK is synchronous, so calls run in a worker thread.
    """

    name = "elevenlabs"

    def __init__(
        self, api_key: str | None = None, model_id: str = "eleven_multilingual_v2"
    ) -> None:
        """Initialize ElevenLabs provider.

        Args:
            api_key: ElevenLabs API key. If not provided, reads from
                    ELEVENLABS_API_KEY environment variable.
            model_id: ElevenLabs model ID to use

        Raises:
            TTSAuthError: If API key is not provided or invalid.
        """
        self._api_key = api_key or os.getenv("ELEVENLABS_API_KEY")
        if not self._api_key:
            raise TTSAuthError(
                "ElevenLabs API key not found. Set ELEVENLABS_API_KEY environment "
                "variable or provide api_key parameter."
            )

        try:
            self._client = ElevenLabs(api_key=self._api_key)
        except Exception as e:
            raise TTSAuthError(f"Failed to initialize ElevenLabs client: {e}") from e

        self.model_id = model_id
        self._voices_cache: list[dict] | None = None

    async def synthesize(
        self,
        text: str,
        voice: str,
        tone: VoiceTone,
        audio_format: str = "mp3",
    ) -> SynthesisResult:
        """Convert text to speech audio bytes.

        Raises:
            TTSInputError: If audio_format is not supported
            TTSAPIError: If API call fails
            TTSAuthError: If authentication fails
            ValueError: If text is empty
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")
        if audio_format not in OUTPUT_FORMATS:
            raise TTSInputError(
                f"Unsupported audio format for ElevenLabs: {audio_format}"
            )

        settings = ElevenLabsVoiceSettings.from_tone(tone)

        def _sync_convert() -> bytes:
            audio_generator = self._client.text_to_speech.convert(
                text=text.strip(),
                voice_id=voice,
                model_id=self.model_id,
                output_format=OUTPUT_FORMATS[audio_format],
                voice_settings=settings.to_dict(),
            )
            return b"".join(audio_generator)

        try:
            audio_bytes = await asyncio.to_thread(_sync_convert)
        except Exception as e:
            raise _map_sdk_error(e) from e

        if not audio_bytes:
            raise TTSAPIError("No audio data received from API")

        logger.debug(f"ElevenLabs returned {len(audio_bytes)} bytes for voice {voice}")
        return SynthesisResult(audio=audio_bytes, audio_format=audio_format)

    async def list_voices(self) -> list[dict]:
        """Get list of available voices.

        Results are cached after first call to avoid repeated API requests.
        """
        if self._voices_cache is not None:
            return self._voices_cache

        def _sync_get_voices() -> list[dict]:
            response = self._client.voices.get_all()
            return [
                {"id": voice.voice_id, "name": voice.name, "provider": self.name}
                for voice in response.voices
            ]

        try:
            voices = await asyncio.to_thread(_sync_get_voices)
        except Exception as e:
            raise _map_sdk_error(e) from e

        self._voices_cache = voices
        return voices
