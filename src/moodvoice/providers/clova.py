"""CLOVA Voice (premium TTS) provider implementation."""

import logging
import os

import httpx

from ..tts.errors import (
    TTSAPIError,
    TTSAuthError,
    TTSInputError,
    TTSUnavailableError,
    error_for_status,
)
from ..tts.models import SynthesisResult, VoiceTone, VoiceType
from .base import SpeechSynthesisProvider

logger = logging.getLogger(__name__)

DEFAULT_TTS_URL = "https://naveropenapi.apigw.ntruss.com/tts-premium/v1/tts"
SUPPORTED_FORMATS = ("wav", "mp3")


class ClovaProvider(SpeechSynthesisProvider):
    """CLOVA Voice TTS provider.

    Sends the full tone vector as form parameters; the API answers with the
    encoded audio as the response body.
    """

    name = "clova"

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize CLOVA provider.

        Args:
            client_id: API gateway key id. Defaults to CLOVA_CLIENT_ID.
            client_secret: API gateway key. Defaults to CLOVA_CLIENT_SECRET.
            url: TTS endpoint. Defaults to CLOVA_TTS_URL or the public endpoint.
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (tests inject a MockTransport)

        Raises:
            TTSAuthError: If credentials are not provided.
        """
        self._client_id = client_id or os.getenv("CLOVA_CLIENT_ID")
        self._client_secret = client_secret or os.getenv("CLOVA_CLIENT_SECRET")
        if not self._client_id or not self._client_secret:
            raise TTSAuthError(
                "CLOVA credentials not found. Set CLOVA_CLIENT_ID and "
                "CLOVA_CLIENT_SECRET environment variables or provide them."
            )

        self._url = url or os.getenv("CLOVA_TTS_URL", DEFAULT_TTS_URL)
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "X-NCP-APIGW-API-KEY-ID": self._client_id,
            "X-NCP-APIGW-API-KEY": self._client_secret,
            "Accept": "*/*",
        }

    @staticmethod
    def build_form(
        text: str, voice: VoiceType, tone: VoiceTone, audio_format: str
    ) -> dict[str, str]:
        """Form parameters for one synthesis request."""
        return {
            "speaker": voice.voice_key,
            "volume": str(tone.volume),
            "speed": str(tone.speed),
            "pitch": str(tone.pitch),
            "alpha": str(tone.alpha),
            "emotion": str(tone.emotion),
            "emotion-strength": str(tone.emotion_strength),
            "format": audio_format,
            "text": text,
        }

    async def synthesize(
        self,
        text: str,
        voice: str,
        tone: VoiceTone,
        audio_format: str = "wav",
    ) -> SynthesisResult:
        """Convert text to speech audio bytes.

        Raises:
            TTSAuthError: If the gateway rejects the credentials
            TTSRateLimitError: If the quota is exhausted
            TTSInputError: If voice, format or payload is rejected
            TTSUnavailableError: On 5xx, timeouts and connection failures
            ValueError: If text is empty
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")
        if audio_format not in SUPPORTED_FORMATS:
            raise TTSInputError(f"Unsupported audio format: {audio_format}")
        try:
            voice_type = VoiceType.lookup(voice)
        except ValueError as e:
            raise TTSInputError(str(e), original_error=e) from e

        form = self.build_form(text.strip(), voice_type, tone, audio_format)
        logger.info(
            f"[CLOVA TTS] POST {self._url} speaker={voice_type.voice_key} "
            f"textLen={len(text)} tone={tone.to_json()}"
        )

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self._url, headers=self._headers(), data=form
                )
        except httpx.TimeoutException as e:
            raise TTSUnavailableError(f"Request timed out: {e}", original_error=e) from e
        except httpx.HTTPError as e:
            raise TTSUnavailableError(f"Request failed: {e}", original_error=e) from e

        if response.status_code != 200:
            logger.error(
                f"[CLOVA TTS] API error {response.status_code} body={response.text[:200]}"
            )
            raise error_for_status(response.status_code, response.text[:200])

        audio = response.content
        if not audio:
            raise TTSAPIError("No audio data received from API", response.status_code)

        logger.info(
            f"[CLOVA TTS] status={response.status_code} "
            f"contentType={response.headers.get('content-type')} bytes={len(audio)}"
        )
        return SynthesisResult(audio=audio, audio_format=audio_format)

    async def list_voices(self) -> list[dict]:
        """Voices are a fixed catalogue for this provider."""
        return [
            {"id": voice.name, "name": voice.voice_name, "provider": self.name}
            for voice in VoiceType
        ]
