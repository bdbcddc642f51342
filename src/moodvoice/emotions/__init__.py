"""Emotion labels, selections and score normalization."""

from .models import EmotionSelection, EmotionType, ScoredEmotion, clamp_percentage
from .normalizer import normalize_top_emotions, round_half_up

__all__ = [
    "EmotionSelection",
    "EmotionType",
    "ScoredEmotion",
    "clamp_percentage",
    "normalize_top_emotions",
    "round_half_up",
]
