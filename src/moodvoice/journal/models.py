"""Journal records as seen by the audio subsystem."""

from dataclasses import dataclass


@dataclass(frozen=True)
class User:
    id: int
    nickname: str


@dataclass(frozen=True)
class UploadedAudio:
    """Metadata of a user's original voice recording.

    Attributes:
        path: Stored URL of the recording
        file_name: Original file name
        file_size_bytes: Size in bytes
        mime_type: MIME type of the recording
        duration_seconds: Length of the recording, when known
    """

    path: str | None
    file_name: str | None = None
    file_size_bytes: int | None = None
    mime_type: str | None = None
    duration_seconds: int | None = None

    @property
    def has_file(self) -> bool:
        return bool(self.path and self.path.strip())


@dataclass(frozen=True)
class EmotionRecord:
    """One journal entry.

    Attributes:
        id: Record id
        user_id: Owner's user id
        text: The user's own words
        summary: Generated summary of the entry
        upload: Original recording, if the user uploaded one
    """

    id: int
    user_id: int
    text: str | None = None
    summary: str | None = None
    upload: UploadedAudio | None = None
