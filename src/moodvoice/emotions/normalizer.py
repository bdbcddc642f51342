"""Top-3 emotion renormalization.

Only the three highest-scoring emotions are shown to users, rescaled so the
percentages add up to exactly 100 and none of them reads as 0%.
"""

import logging
import math
from collections.abc import Iterable

from .models import ScoredEmotion, clamp_percentage

logger = logging.getLogger(__name__)

TOP_EMOTION_COUNT = 3


def round_half_up(value: float) -> int:
    """Round to nearest integer with .5 going up (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def normalize_top_emotions(
    emotions: Iterable[ScoredEmotion] | None,
) -> list[ScoredEmotion]:
    """Rescale the top three emotions so their percentages sum to 100.

    Args:
        emotions: Scored emotions in any order

    Returns:
        Up to three emotions sorted by descending raw percentage. With fewer
        than three inputs the (clamped, sorted) input is returned as-is;
        otherwise percentages sum to exactly 100 and each is at least 1.
    """
    if not emotions:
        return []

    clamped = [
        ScoredEmotion(type=e.type, percentage=clamp_percentage(e.percentage))
        for e in emotions
        if e is not None
    ]
    top = sorted(clamped, key=lambda e: e.percentage, reverse=True)[
        :TOP_EMOTION_COUNT
    ]

    if len(top) < TOP_EMOTION_COUNT:
        return top

    total = sum(e.percentage for e in top)

    values: list[int] = []
    for i, emotion in enumerate(top):
        if i == len(top) - 1:
            value = 100 - sum(values)
        elif total == 0:
            value = round_half_up(100 / len(top))
        else:
            value = round_half_up(100 * emotion.percentage / total)
        values.append(max(1, value))

    residual = 100 - sum(values)
    if residual:
        values[-1] += residual

    # The residual can only be negative here, and only when the last raw
    # value was already floored; borrow the shortfall from the largest.
    if values[-1] < 1:
        shortfall = 1 - values[-1]
        values[-1] = 1
        largest = max(range(len(values) - 1), key=lambda i: values[i])
        values[largest] -= shortfall

    logger.debug(
        f"Normalized top emotions {[e.percentage for e in top]} -> {values}"
    )

    return [
        ScoredEmotion(type=emotion.type, percentage=value)
        for emotion, value in zip(top, values)
    ]
