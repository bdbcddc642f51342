"""Data models for cache storage."""

from dataclasses import dataclass
from datetime import datetime

from ..tts.models import VoiceTone


@dataclass(frozen=True)
class CacheEntry:
    """Cache entry describing one synthesized audio asset.

    Attributes:
        key: Content hash of (text, voice, tone, format)
        original_text: Text that was synthesized
        voice: Voice identity used for synthesis
        tone_snapshot: JSON-serialized VoiceTone
        audio_url: Durable URL returned by the blob store
        file_name: Display file name of the audio
        file_size_bytes: Size of the audio payload
        mime_type: MIME type of the audio
        created_at: When this entry was created
        last_accessed_at: Last cache hit (or creation time)
    """

    key: str
    original_text: str
    voice: str
    tone_snapshot: str
    audio_url: str
    file_name: str
    file_size_bytes: int
    mime_type: str
    created_at: datetime
    last_accessed_at: datetime

    @property
    def tone(self) -> VoiceTone:
        return VoiceTone.from_json(self.tone_snapshot)

    def is_stale(self, threshold: datetime) -> bool:
        """True if the entry has not been accessed since threshold."""
        return self.last_accessed_at < threshold
