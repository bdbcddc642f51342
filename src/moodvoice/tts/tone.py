"""Emotion-to-voice-tone synthesis.

Each emotion label owns one ToneRule describing how it nudges speed and
pitch and which provider emotion code it maps to. Contributions from all
selections are summed and clamped; the single strongest coded emotion picks
the provider emotion and its strength.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from ..emotions.models import EmotionSelection, EmotionType
from ..emotions.normalizer import round_half_up
from .models import PITCH_RANGE, SPEED_RANGE, VoiceTone

logger = logging.getLogger(__name__)

SPEED_THRESHOLD = 50

EMOTION_NEUTRAL = 0
EMOTION_MILD = 1
EMOTION_SAD = 1
EMOTION_STRONG = 3


def linear(max_delta: int) -> Callable[[int], int]:
    """Contribution scaling 0-100% onto 0..max_delta, rounded half up."""

    def contribution(percent: int) -> int:
        sign = -1 if max_delta < 0 else 1
        return sign * round_half_up(abs(max_delta) * percent / 100)

    return contribution


def step(direction: int) -> Callable[[int], int]:
    """One step in direction once percent reaches SPEED_THRESHOLD."""

    def contribution(percent: int) -> int:
        return direction if percent >= SPEED_THRESHOLD else 0

    return contribution


def no_change(percent: int) -> int:
    return 0


@dataclass(frozen=True)
class ToneRule:
    """How one emotion label shapes the voice.

    Args:
        speed: Percent -> speed delta
        pitch: Percent -> pitch delta
        emotion_code: Provider emotion code (0 means the label stays neutral)
        softened: Strength is reduced by one band for this label
    """

    speed: Callable[[int], int]
    pitch: Callable[[int], int]
    emotion_code: int = EMOTION_NEUTRAL
    softened: bool = False


TONE_RULES: dict[EmotionType, ToneRule] = {
    # faster, higher
    EmotionType.JOY: ToneRule(speed=step(-1), pitch=linear(-2)),
    EmotionType.EXCITEMENT: ToneRule(speed=step(-1), pitch=linear(-2)),
    # normal speed, lower
    EmotionType.CALMNESS: ToneRule(speed=no_change, pitch=linear(+2)),
    # slightly faster, slightly lower
    EmotionType.ANGER: ToneRule(
        speed=step(-1), pitch=linear(+1), emotion_code=EMOTION_STRONG
    ),
    EmotionType.SADNESS: ToneRule(
        speed=no_change, pitch=linear(+2), emotion_code=EMOTION_SAD
    ),
    # slower past the threshold, pitch untouched
    EmotionType.GUIDANCE: ToneRule(
        speed=step(+1), pitch=no_change, emotion_code=EMOTION_MILD, softened=True
    ),
}


def strength_for(percent: int, softened: bool = False) -> int:
    """Map a percentage onto the 0..2 strength bands."""
    if percent <= 33:
        strength = 0
    elif percent <= 66:
        strength = 1
    else:
        strength = 2
    if softened:
        strength = max(0, strength - 1)
    return strength


def _clamp(value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(high, value))


def tone_from_emotions(
    selections: Iterable[EmotionSelection | None] | None,
) -> VoiceTone:
    """Compute the voice tone for a set of weighted emotions.

    The result depends only on the multiset of selections, never on their
    order: equal-percentage candidates for the emotion code are decided by
    EmotionType declaration order. A 0% selection never sets the code, so
    all-zero input yields the neutral tone.

    Args:
        selections: Weighted emotions; None or empty yields the neutral tone

    Returns:
        VoiceTone with every field inside its range
    """
    if not selections:
        return VoiceTone.neutral()

    speed = 0
    pitch = 0
    chosen: tuple[int, EmotionType] | None = None

    for selection in selections:
        if selection is None or selection.type is None:
            continue

        percent = selection.clamped_percentage
        rule = TONE_RULES[selection.type]
        speed += rule.speed(percent)
        pitch += rule.pitch(percent)

        if rule.emotion_code == EMOTION_NEUTRAL or percent == 0:
            continue
        if (
            chosen is None
            or percent > chosen[0]
            or (percent == chosen[0] and selection.type.rank < chosen[1].rank)
        ):
            chosen = (percent, selection.type)

    if chosen is None:
        emotion = EMOTION_NEUTRAL
        strength = 0
    else:
        percent, emotion_type = chosen
        rule = TONE_RULES[emotion_type]
        emotion = rule.emotion_code
        strength = strength_for(percent, softened=rule.softened)

    tone = VoiceTone(
        volume=0,
        speed=_clamp(speed, SPEED_RANGE),
        pitch=_clamp(pitch, PITCH_RANGE),
        alpha=0,
        emotion=emotion,
        emotion_strength=strength,
    )
    logger.debug(
        f"Computed tone speed={tone.speed} pitch={tone.pitch} "
        f"emotion={tone.emotion} strength={tone.emotion_strength}"
    )
    return tone
