"""Voice tone models, tone synthesis and provider error types."""

from .errors import (
    TTSAPIError,
    TTSAuthError,
    TTSError,
    TTSInputError,
    TTSRateLimitError,
    TTSUnavailableError,
)
from .models import SynthesisResult, VoiceTone, VoiceType
from .tone import TONE_RULES, ToneRule, tone_from_emotions

__all__ = [
    "TONE_RULES",
    "SynthesisResult",
    "TTSAPIError",
    "TTSAuthError",
    "TTSError",
    "TTSInputError",
    "TTSRateLimitError",
    "TTSUnavailableError",
    "ToneRule",
    "VoiceTone",
    "VoiceType",
    "tone_from_emotions",
]
