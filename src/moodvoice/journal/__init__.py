"""Journal collaborators: users, records and their emotions."""

from .models import EmotionRecord, UploadedAudio, User
from .repository import InMemoryJournalRepository, JournalRepository, percentage_to_step

__all__ = [
    "EmotionRecord",
    "InMemoryJournalRepository",
    "JournalRepository",
    "UploadedAudio",
    "User",
    "percentage_to_step",
]
