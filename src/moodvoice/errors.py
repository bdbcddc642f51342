"""Domain exceptions raised by the audio orchestrator.

Each error carries the HTTP status a web layer should answer with, so the
response mapping lives next to the taxonomy instead of in every caller.
"""


class MoodVoiceError(Exception):
    """Base exception for moodvoice errors."""

    status_code = 500

    def __init__(
        self, message: str, original_error: Exception | None = None
    ) -> None:
        super().__init__(message)
        self.original_error = original_error

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


class ValidationError(MoodVoiceError):
    """Missing or malformed request fields."""

    status_code = 400


class NotFoundError(MoodVoiceError):
    """User or record does not exist."""

    status_code = 404


class PermissionDeniedError(MoodVoiceError):
    """Record exists but belongs to a different user."""

    status_code = 403


class NoUploadedAudioError(MoodVoiceError):
    """Original upload requested but the record has none on file."""

    status_code = 404


class SynthesisError(MoodVoiceError):
    """Speech provider failed, timed out, or returned unusable audio."""

    status_code = 502

    @property
    def retryable(self) -> bool:
        return bool(getattr(self.original_error, "retryable", False))


class StorageError(MoodVoiceError):
    """Blob upload or cache write failure."""

    status_code = 503


class ConfigurationError(MoodVoiceError):
    """Programming or configuration fault that must not be silently defaulted."""

    status_code = 500


class CacheKeyError(ConfigurationError):
    """Cache key inputs could not be canonicalized."""

    pass
