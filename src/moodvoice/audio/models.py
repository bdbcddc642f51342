"""Response shape handed back to the rest of the system."""

from dataclasses import dataclass

from ..cache.models import CacheEntry
from ..journal.models import UploadedAudio


@dataclass(frozen=True)
class AudioDescriptor:
    """Where an audio asset lives and how to serve it.

    Attributes:
        audio_url: Durable URL of the audio
        file_name: File name to present to clients
        file_size_bytes: Size in bytes, when known
        mime_type: MIME type of the audio
        is_from_user_upload: True for the user's own recording
        voice: Voice identity used for synthesized audio
        duration_seconds: Length of the audio, when known
    """

    audio_url: str
    file_name: str | None
    file_size_bytes: int | None
    mime_type: str | None
    is_from_user_upload: bool
    voice: str | None = None
    duration_seconds: int | None = None

    @classmethod
    def from_upload(cls, upload: UploadedAudio) -> "AudioDescriptor":
        return cls(
            audio_url=upload.path,
            file_name=upload.file_name,
            file_size_bytes=upload.file_size_bytes,
            mime_type=upload.mime_type,
            is_from_user_upload=True,
            duration_seconds=upload.duration_seconds,
        )

    @classmethod
    def from_cache_entry(cls, entry: CacheEntry) -> "AudioDescriptor":
        return cls(
            audio_url=entry.audio_url,
            file_name=entry.file_name,
            file_size_bytes=entry.file_size_bytes,
            mime_type=entry.mime_type,
            is_from_user_upload=False,
            voice=entry.voice,
        )

    def to_dict(self) -> dict:
        """camelCase mapping for JSON responses; unset optionals are omitted."""
        data = {
            "audioUrl": self.audio_url,
            "fileName": self.file_name,
            "fileSizeBytes": self.file_size_bytes,
            "mimeType": self.mime_type,
            "isFromUserUpload": self.is_from_user_upload,
        }
        if self.voice is not None:
            data["voiceIdentity"] = self.voice
        if self.duration_seconds is not None:
            data["durationSeconds"] = self.duration_seconds
        return data
