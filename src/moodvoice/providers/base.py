"""Abstract base class for speech synthesis providers.

This module defines the interface every provider adapter implements, so the
orchestrator can call any backend with (text, voice, tone, format) and get
raw audio bytes or a typed TTSError back.
"""

from abc import ABC, abstractmethod

from ..tts.models import SynthesisResult, VoiceTone


class SpeechSynthesisProvider(ABC):
    """Abstract base class for speech synthesis providers.

    Implementations must translate every transport or SDK failure into a
    TTSError subclass; raw transport exceptions never escape synthesize().

    Voice Dictionary Structure:
        Each voice returned by list_voices() should follow this structure:
        {
            "id": str,       # Identity accepted by synthesize()
            "name": str,     # Human-readable name for the voice
            "provider": str  # Name of the provider (e.g., "clova")
        }
    """

    name: str = "base"

    @abstractmethod
    async def synthesize(
        self,
        text: str,
        voice: str,
        tone: VoiceTone,
        audio_format: str = "wav",
    ) -> SynthesisResult:
        """Convert text to audio bytes.

        Args:
            text: The text to convert to speech
            voice: Voice identity to use for synthesis
            tone: Voice tone vector to apply
            audio_format: Requested container format

        Returns:
            SynthesisResult with the encoded audio

        Raises:
            TTSError: If synthesis fails (see tts.errors for subclasses)
            ValueError: If text is empty
        """
        pass

    @abstractmethod
    async def list_voices(self) -> list[dict]:
        """Return available voices for this provider."""
        pass
