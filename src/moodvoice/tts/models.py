"""TTS data models with validation."""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

SPEED_RANGE = (-1, 1)
PITCH_RANGE = (-2, 2)
VOLUME_RANGE = (-5, 5)
ALPHA_RANGE = (-5, 5)
EMOTION_CODES = (0, 1, 3)
STRENGTH_RANGE = (0, 2)


@dataclass(frozen=True)
class VoiceTone:
    """Voice control vector sent to the speech provider.

    Args:
        volume: Loudness offset (fixed at 0 by the tone rules)
        speed: -1..1, negative is faster
        pitch: -2..2, negative is higher
        alpha: Timbre offset (fixed at 0 by the tone rules)
        emotion: Provider emotion code: 0 neutral, 1 sad/tired, 3 angry
        emotion_strength: 0..2 (weak, normal, strong)
    """

    volume: int = 0
    speed: int = 0
    pitch: int = 0
    alpha: int = 0
    emotion: int = 0
    emotion_strength: int = 0

    def __post_init__(self) -> None:
        """Validate tone ranges."""
        _check_range("volume", self.volume, VOLUME_RANGE)
        _check_range("speed", self.speed, SPEED_RANGE)
        _check_range("pitch", self.pitch, PITCH_RANGE)
        _check_range("alpha", self.alpha, ALPHA_RANGE)
        _check_range("emotion_strength", self.emotion_strength, STRENGTH_RANGE)
        if self.emotion not in EMOTION_CODES:
            raise ValueError(
                f"emotion must be one of {EMOTION_CODES}, got {self.emotion}"
            )

    @classmethod
    def neutral(cls) -> "VoiceTone":
        return cls()

    @property
    def is_neutral(self) -> bool:
        return self == VoiceTone.neutral()

    def to_dict(self) -> dict[str, int]:
        """Field-ordered mapping used for canonical serialization."""
        return {
            "volume": self.volume,
            "speed": self.speed,
            "pitch": self.pitch,
            "alpha": self.alpha,
            "emotion": self.emotion,
            "emotionStrength": self.emotion_strength,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json(cls, raw: str) -> "VoiceTone":
        data: dict[str, Any] = json.loads(raw)
        return cls(
            volume=data.get("volume", 0),
            speed=data.get("speed", 0),
            pitch=data.get("pitch", 0),
            alpha=data.get("alpha", 0),
            emotion=data.get("emotion", 0),
            emotion_strength=data.get("emotionStrength", 0),
        )


def _check_range(name: str, value: int, bounds: tuple[int, int]) -> None:
    low, high = bounds
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if not low <= value <= high:
        raise ValueError(f"{name} must be between {low} and {high}, got {value}")


class VoiceType(Enum):
    """Voices offered by the speech provider: name -> (speaker key, display name)."""

    ARA = ("vara", "아라")
    MIKYUNG = ("vmikyung", "미경")
    DAIN = ("vdain", "다인")
    YUNA = ("vyuna", "유나")
    GOEUN = ("vgoeun", "고은")
    DAESUNG = ("vdaeseong", "대성")

    @property
    def voice_key(self) -> str:
        return self.value[0]

    @property
    def voice_name(self) -> str:
        return self.value[1]

    @classmethod
    def lookup(cls, identity: str) -> "VoiceType":
        """Find a voice by enum name (any case) or speaker key.

        Raises:
            ValueError: If identity matches no voice
        """
        if not identity or not identity.strip():
            raise ValueError("Voice identity cannot be empty")
        candidate = identity.strip()
        if candidate.upper() in cls.__members__:
            return cls[candidate.upper()]
        for voice in cls:
            if voice.voice_key == candidate.lower():
                return voice
        raise ValueError(f"Unknown voice '{identity}'")


@dataclass(frozen=True)
class SynthesisResult:
    """Raw audio returned by a provider.

    Args:
        audio: Encoded audio bytes
        audio_format: Container format of audio (e.g. "wav", "mp3")
    """

    audio: bytes
    audio_format: str

    def __post_init__(self) -> None:
        """Validate audio payload."""
        if not self.audio:
            raise ValueError("audio cannot be empty")

    @property
    def size_bytes(self) -> int:
        return len(self.audio)
