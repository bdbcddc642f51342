"""Audio orchestrator for moodvoice.

Answers "give me audio for this journal record": either the user's own
upload, or speech synthesized in a tone derived from the record's
emotions. Synthesized audio is cached by content hash so identical
(text, voice, tone, format) requests reuse the stored file.
"""

import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING

from ..blob.store import BlobStore, LocalBlobStore, mime_type_for
from ..cache.keys import derive_cache_key
from ..cache.models import CacheEntry
from ..cache.storage import SQLiteCacheStore, TtsCacheStore
from ..emotions.models import EmotionSelection, EmotionType
from ..emotions.normalizer import normalize_top_emotions
from ..errors import (
    NoUploadedAudioError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    SynthesisError,
    ValidationError,
)
from ..journal.models import EmotionRecord, User
from ..journal.repository import JournalRepository, percentage_to_step
from ..providers import ProviderRegistry, SpeechSynthesisProvider
from ..tts.models import VoiceTone
from ..tts.tone import tone_from_emotions
from .models import AudioDescriptor
from .singleflight import SingleFlight

if TYPE_CHECKING:
    from ..config import MoodVoiceConfig

logger = logging.getLogger(__name__)

DEFAULT_EMOTION = EmotionSelection(type=EmotionType.CALMNESS, percentage=50)
DEFAULT_TIMEOUT = 30.0


class AudioOrchestrator:
    """Resolves journal records to playable audio.

    Example:
        orchestrator = AudioOrchestrator(
            repository=repository,
            cache_store=SQLiteCacheStore(cache_dir),
            provider=ProviderRegistry.get_instance("clova"),
            blob_store=LocalBlobStore(storage_dir),
            default_voice="ARA",
        )
        descriptor = await orchestrator.get_or_create_audio("mina", 42, False)
    """

    def __init__(
        self,
        repository: JournalRepository,
        cache_store: TtsCacheStore,
        provider: SpeechSynthesisProvider,
        blob_store: BlobStore,
        default_voice: str,
        audio_format: str = "wav",
        timeout: float = DEFAULT_TIMEOUT,
        single_flight: bool = True,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            repository: Source of users, records and emotions
            cache_store: Synthesized audio cache
            provider: Speech synthesis backend
            blob_store: Durable storage for generated audio
            default_voice: Voice used when a request names none
            audio_format: Output format for synthesized audio
            timeout: Seconds to wait for the provider
            single_flight: Coalesce concurrent misses on the same cache key
        """
        self.repository = repository
        self.cache_store = cache_store
        self.provider = provider
        self.blob_store = blob_store
        self.default_voice = default_voice
        self.audio_format = audio_format
        self.timeout = timeout
        self._flight = SingleFlight() if single_flight else None

        logger.debug(
            f"AudioOrchestrator initialized with provider={provider.name}, "
            f"voice={default_voice}, format={audio_format}, "
            f"single_flight={single_flight}"
        )

    @classmethod
    def from_config(
        cls, config: "MoodVoiceConfig", repository: JournalRepository
    ) -> "AudioOrchestrator":
        """Build an orchestrator with the configured provider and stores."""
        return cls(
            repository=repository,
            cache_store=SQLiteCacheStore(config.cache.dir),
            provider=ProviderRegistry.get_instance(config.tts.provider),
            blob_store=LocalBlobStore(config.storage.dir, config.storage.base_url),
            default_voice=config.tts.voice,
            audio_format=config.tts.format,
            timeout=config.tts.timeout,
            single_flight=config.cache.single_flight,
        )

    async def get_or_create_audio(
        self,
        user_ref: str,
        record_ref: int,
        wants_original_upload: bool,
        voice: str | None = None,
    ) -> AudioDescriptor:
        """Return the audio for a record.

        Args:
            user_ref: Nickname of the requesting user
            record_ref: Id of the journal record
            wants_original_upload: True for the user's own recording,
                False for synthesized speech of the record text
            voice: Voice identity; defaults to the configured voice

        Raises:
            ValidationError: If a request field is missing or malformed
            NotFoundError: If the user or record does not exist
            PermissionDeniedError: If the record belongs to another user
            NoUploadedAudioError: If an upload is requested but none exists
            SynthesisError: If the provider fails or times out
            StorageError: If the generated audio cannot be stored
        """
        if not isinstance(wants_original_upload, bool):
            raise ValidationError("wants_original_upload must be a boolean")

        user, record = await self._load_owned_record(user_ref, record_ref)

        if wants_original_upload:
            return await self._uploaded_audio(record)

        if not record.text or not record.text.strip():
            raise ValidationError(f"Record {record.id} has no text to speak")

        selections = await self._resolve_emotions(record.id)
        tone = tone_from_emotions(selections)
        logger.info(
            f"Record {record.id}: emotions "
            f"{[(s.type.name, s.percentage) for s in selections]} -> tone {tone.to_json()}"
        )
        return await self.get_or_create_speech(
            record.text, voice or self.default_voice, tone, str(user.id)
        )

    async def get_or_create_summary_audio(
        self, user_ref: str, record_ref: int, voice: str | None = None
    ) -> AudioDescriptor:
        """Speak a record's summary followed by the comment for its emotion.

        Spoken in the neutral tone. The comment is picked by the dominant
        emotion and its 1-5 step; if none can be found the summary is
        spoken alone.

        Raises:
            ValidationError: If the record has no summary
            (plus the errors of get_or_create_audio)
        """
        user, record = await self._load_owned_record(user_ref, record_ref)

        if not record.summary or not record.summary.strip():
            raise ValidationError(f"Record {record.id} has no summary to speak")

        text = record.summary
        comment = await self._find_comment(record.id)
        if comment:
            text = f"{record.summary}. {comment}"

        return await self.get_or_create_speech(
            text, voice or self.default_voice, VoiceTone.neutral(), str(user.id)
        )

    async def get_or_create_speech(
        self, text: str, voice: str, tone: VoiceTone, owner_ref: str
    ) -> AudioDescriptor:
        """Return cached speech for (text, voice, tone), synthesizing on a miss.

        A hit makes no provider or blob calls. A miss makes exactly one of
        each, then records the result in the cache.

        Raises:
            CacheKeyError: If the inputs cannot form a cache key
            SynthesisError: If the provider fails or times out
            StorageError: If the audio cannot be uploaded
        """
        key = derive_cache_key(text, voice, tone, self.audio_format)

        cached = await self._lookup(key)
        if cached is not None:
            logger.info(f"Cache hit for {key}: {cached.audio_url}")
            return AudioDescriptor.from_cache_entry(cached)

        logger.info(f"Cache miss for {key}, synthesizing with {self.provider.name}")
        if self._flight is None:
            return await self._synthesize_and_store(key, text, voice, tone, owner_ref)
        return await self._flight.run(
            key, lambda: self._lead_synthesis(key, text, voice, tone, owner_ref)
        )

    async def _lead_synthesis(
        self, key: str, text: str, voice: str, tone: VoiceTone, owner_ref: str
    ) -> AudioDescriptor:
        # A previous leader may have stored the entry after our first lookup
        cached = await self._lookup(key)
        if cached is not None:
            logger.info(f"Cache filled while waiting for {key}: {cached.audio_url}")
            return AudioDescriptor.from_cache_entry(cached)
        return await self._synthesize_and_store(key, text, voice, tone, owner_ref)

    async def _load_owned_record(
        self, user_ref: str, record_ref: int
    ) -> tuple[User, EmotionRecord]:
        if not isinstance(user_ref, str) or not user_ref.strip():
            raise ValidationError("user_ref is required")
        if record_ref is None or isinstance(record_ref, bool) or not isinstance(
            record_ref, int
        ):
            raise ValidationError("record_ref is required and must be an integer")

        user = await asyncio.to_thread(
            self.repository.find_user_by_nickname, user_ref
        )
        if user is None:
            raise NotFoundError(f"User not found: {user_ref}")

        record = await asyncio.to_thread(self.repository.find_record, record_ref)
        if record is None:
            raise NotFoundError(f"Record not found: {record_ref}")

        if record.user_id != user.id:
            logger.warning(
                f"User {user.id} requested record {record.id} owned by {record.user_id}"
            )
            raise PermissionDeniedError(
                f"Record {record.id} does not belong to user {user_ref}"
            )

        return user, record

    async def _uploaded_audio(self, record: EmotionRecord) -> AudioDescriptor:
        upload = record.upload
        if upload is None or not upload.has_file:
            raise NoUploadedAudioError(f"Record {record.id} has no uploaded audio")

        try:
            present = await asyncio.to_thread(self.blob_store.exists, upload.path)
        except Exception as e:
            logger.warning(f"Could not check uploaded audio {upload.path}: {e}")
        else:
            if not present:
                logger.warning(
                    f"Uploaded audio for record {record.id} is missing from storage: "
                    f"{upload.path}"
                )

        return AudioDescriptor.from_upload(upload)

    async def _resolve_emotions(self, record_id: int) -> list[EmotionSelection]:
        """User selection, else the top-3 scores, else the default emotion."""
        selected = await asyncio.to_thread(
            self.repository.find_user_selected_emotion, record_id
        )
        if selected is not None:
            return [selected]

        scores = await asyncio.to_thread(
            self.repository.find_emotion_scores, record_id
        )
        top = normalize_top_emotions(scores)
        if top:
            return [score.to_selection() for score in top]

        logger.debug(f"Record {record_id} has no emotions, using default")
        return [DEFAULT_EMOTION]

    async def _find_comment(self, record_id: int) -> str | None:
        try:
            dominant = await self._dominant_emotion(record_id)
            if dominant is None:
                return None
            step = percentage_to_step(dominant.clamped_percentage)
            comment = await asyncio.to_thread(
                self.repository.find_comment, dominant.type, step
            )
        except Exception as e:
            logger.warning(f"Comment lookup failed for record {record_id}: {e}")
            return None

        if not comment:
            logger.debug(f"No comment for record {record_id}")
        return comment

    async def _dominant_emotion(self, record_id: int) -> EmotionSelection | None:
        selected = await asyncio.to_thread(
            self.repository.find_user_selected_emotion, record_id
        )
        if selected is not None:
            return selected

        scores = await asyncio.to_thread(
            self.repository.find_emotion_scores, record_id
        )
        if not scores:
            return None
        top = min(scores, key=lambda s: (-s.percentage, s.type.rank))
        return top.to_selection()

    async def _lookup(self, key: str) -> CacheEntry | None:
        try:
            return await asyncio.to_thread(self.cache_store.lookup, key)
        except Exception as e:
            logger.warning(f"Cache lookup failed for {key}, treating as miss: {e}")
            return None

    async def _synthesize_and_store(
        self, key: str, text: str, voice: str, tone: VoiceTone, owner_ref: str
    ) -> AudioDescriptor:
        try:
            result = await asyncio.wait_for(
                self.provider.synthesize(text, voice, tone, self.audio_format),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Provider {self.provider.name} timed out after {self.timeout}s")
            raise SynthesisError(
                f"Speech synthesis timed out after {self.timeout}s", e
            ) from e
        except Exception as e:
            logger.error(f"Provider {self.provider.name} failed: {e}")
            raise SynthesisError(f"Speech synthesis failed: {e}", e) from e

        mime_type = mime_type_for(self.audio_format)
        try:
            url = await asyncio.to_thread(
                self.blob_store.upload,
                result.audio,
                owner_ref,
                self.audio_format,
                mime_type,
            )
        except Exception as e:
            logger.error(f"Audio upload failed for {key}: {e}")
            raise StorageError(f"Failed to store synthesized audio: {e}", e) from e

        now = datetime.now()
        entry = CacheEntry(
            key=key,
            original_text=text,
            voice=voice,
            tone_snapshot=tone.to_json(),
            audio_url=url,
            file_name=f"tts_{key[:8]}.{self.audio_format}",
            file_size_bytes=result.size_bytes,
            mime_type=mime_type,
            created_at=now,
            last_accessed_at=now,
        )

        try:
            saved = await asyncio.to_thread(self.cache_store.save, entry)
        except Exception as e:
            logger.error(f"Failed to cache audio for {key}: {e}")
            return AudioDescriptor.from_cache_entry(entry)

        if saved.audio_url != url:
            # Another request stored this key first; its file is the one kept
            logger.info(f"Cache key {key} already stored, discarding {url}")
            await self._discard_blob(url)
        else:
            logger.info(f"Cached {key} ({result.size_bytes} bytes) at {url}")

        return AudioDescriptor.from_cache_entry(saved)

    async def _discard_blob(self, url: str) -> None:
        try:
            await asyncio.to_thread(self.blob_store.delete, url)
        except Exception as e:
            logger.warning(f"Failed to delete orphaned audio {url}: {e}")
