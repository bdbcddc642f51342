"""Journal persistence interface and an in-memory implementation."""

import logging
import threading
from abc import ABC, abstractmethod

from ..emotions.models import EmotionSelection, EmotionType, ScoredEmotion
from .models import EmotionRecord, User

logger = logging.getLogger(__name__)


def percentage_to_step(percentage: int | None) -> int:
    """Map a 0-100 percentage onto comment steps 1-5 (20% bands)."""
    if percentage is None or percentage <= 20:
        return 1
    if percentage <= 40:
        return 2
    if percentage <= 60:
        return 3
    if percentage <= 80:
        return 4
    return 5


class JournalRepository(ABC):
    """Read access to users, records and their emotions."""

    @abstractmethod
    def find_user_by_nickname(self, nickname: str) -> User | None:
        pass

    @abstractmethod
    def find_record(self, record_id: int) -> EmotionRecord | None:
        pass

    @abstractmethod
    def find_user_selected_emotion(self, record_id: int) -> EmotionSelection | None:
        """The emotion the user confirmed for a record, if any."""
        pass

    @abstractmethod
    def find_emotion_scores(self, record_id: int) -> list[ScoredEmotion]:
        """System-scored emotions for a record, in no particular order."""
        pass

    @abstractmethod
    def find_comment(self, emotion_type: EmotionType, step: int) -> str | None:
        """Active comment text for an emotion at a 1-5 step, if any."""
        pass


class InMemoryJournalRepository(JournalRepository):
    """Dict-backed repository.

    Writes replace whole values; nothing handed out is mutated afterwards.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: dict[str, User] = {}
        self._records: dict[int, EmotionRecord] = {}
        self._selected: dict[int, EmotionSelection] = {}
        self._scores: dict[int, list[ScoredEmotion]] = {}
        self._comments: dict[tuple[EmotionType, int], str] = {}

    def add_user(self, user: User) -> User:
        with self._lock:
            self._users[user.nickname] = user
        return user

    def add_record(self, record: EmotionRecord) -> EmotionRecord:
        with self._lock:
            self._records[record.id] = record
        return record

    def set_user_selected_emotion(
        self, record_id: int, selection: EmotionSelection
    ) -> None:
        with self._lock:
            self._selected[record_id] = selection

    def set_emotion_scores(self, record_id: int, scores: list[ScoredEmotion]) -> None:
        with self._lock:
            self._scores[record_id] = list(scores)

    def set_comment(self, emotion_type: EmotionType, step: int, comment: str) -> None:
        with self._lock:
            self._comments[(emotion_type, step)] = comment

    def find_user_by_nickname(self, nickname: str) -> User | None:
        with self._lock:
            return self._users.get(nickname)

    def find_record(self, record_id: int) -> EmotionRecord | None:
        with self._lock:
            return self._records.get(record_id)

    def find_user_selected_emotion(self, record_id: int) -> EmotionSelection | None:
        with self._lock:
            return self._selected.get(record_id)

    def find_emotion_scores(self, record_id: int) -> list[ScoredEmotion]:
        with self._lock:
            return list(self._scores.get(record_id, []))

    def find_comment(self, emotion_type: EmotionType, step: int) -> str | None:
        with self._lock:
            return self._comments.get((emotion_type, step))
