"""Emotion data models."""

from dataclasses import dataclass
from enum import Enum


class EmotionType(Enum):
    """The six emotion labels a journal record can carry.

    Declaration order is significant: it is the tie-break order used when
    two selections compete for the voice emotion code.
    """

    JOY = "기쁨"
    EXCITEMENT = "설렘"
    CALMNESS = "평온"
    ANGER = "분노"
    SADNESS = "슬픔"
    GUIDANCE = "지침"

    @property
    def description(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        """Position in declaration order."""
        return list(EmotionType).index(self)

    @classmethod
    def parse(cls, value: "str | EmotionType") -> "EmotionType":
        """Parse an enum name (any case) or a display label.

        Raises:
            ValueError: If value matches no emotion
        """
        if isinstance(value, EmotionType):
            return value
        if value is None:
            raise ValueError("Emotion type cannot be None")

        candidate = str(value).strip()
        upper = candidate.upper()
        if upper in cls.__members__:
            return cls[upper]
        for emotion in cls:
            if emotion.value == candidate:
                return emotion

        valid = ", ".join(emotion.name for emotion in cls)
        raise ValueError(f"Unknown emotion type '{value}'. Valid types: {valid}")

    @classmethod
    def from_description(cls, description: str | None) -> "EmotionType":
        """Lenient lookup for stored labels: unknown values map to CALMNESS."""
        if description is None:
            return cls.CALMNESS
        try:
            return cls.parse(description)
        except ValueError:
            return cls.CALMNESS


def clamp_percentage(percentage: int | float | None) -> int:
    """Clamp a raw percentage into [0, 100]; None counts as 0."""
    if percentage is None:
        return 0
    return max(0, min(100, int(percentage)))


@dataclass(frozen=True)
class EmotionSelection:
    """One weighted emotion attached to a record.

    Args:
        type: Emotion label
        percentage: Weight 0-100 (out-of-range values are clamped by consumers)
    """

    type: EmotionType
    percentage: int | None

    def __post_init__(self) -> None:
        """Validate emotion type."""
        if not isinstance(self.type, EmotionType):
            object.__setattr__(self, "type", EmotionType.parse(self.type))

    @property
    def clamped_percentage(self) -> int:
        return clamp_percentage(self.percentage)


@dataclass(frozen=True)
class ScoredEmotion:
    """A system-scored emotion, also used for normalized top-3 output."""

    type: EmotionType
    percentage: int

    def __post_init__(self) -> None:
        """Validate emotion type."""
        if not isinstance(self.type, EmotionType):
            object.__setattr__(self, "type", EmotionType.parse(self.type))

    def to_selection(self) -> EmotionSelection:
        return EmotionSelection(type=self.type, percentage=self.percentage)
