"""Integration tests for the full audio pipeline with real stores."""

import asyncio
import sys
from pathlib import Path
from tempfile import TemporaryDirectory
from urllib.parse import parse_qs

import httpx
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent))

from moodvoice.audio import AudioOrchestrator
from moodvoice.blob import LocalBlobStore
from moodvoice.cache import SQLiteCacheStore
from moodvoice.config import parse_config
from moodvoice.errors import SynthesisError
from moodvoice.providers import ClovaProvider, ProviderRegistry
from test_helpers import FakeProvider, build_repository


class PipelineTestBase:
    """Orchestrator over SQLite, the local blob store and a fake provider."""

    def setup_method(self) -> None:
        self.temp_dir = TemporaryDirectory()
        root = Path(self.temp_dir.name)
        self.cache_dir = root / "cache"
        self.audio_dir = root / "audio"
        self.repository = build_repository()
        self.provider = FakeProvider(delay=0.05)

    def teardown_method(self) -> None:
        self.temp_dir.cleanup()

    def make_orchestrator(self, provider=None, single_flight: bool = True) -> AudioOrchestrator:
        return AudioOrchestrator(
            repository=self.repository,
            cache_store=SQLiteCacheStore(self.cache_dir),
            provider=provider or self.provider,
            blob_store=LocalBlobStore(self.audio_dir),
            default_voice="ARA",
            single_flight=single_flight,
        )


class TestAudioPipelineIntegration(PipelineTestBase):
    """Miss, hit and persistence across orchestrator instances."""

    @pytest.mark.asyncio
    async def test_miss_then_hit_across_instances(self) -> None:
        """
        Test complete workflow:
        - First request synthesizes and writes the audio file
        - A new orchestrator over the same directories hits the cache
        - The stored file holds the provider's bytes
        """
        first = await self.make_orchestrator().get_or_create_audio("mina", 10, False)

        blob_store = LocalBlobStore(self.audio_dir)
        assert blob_store.exists(first.audio_url)
        stored = blob_store._path_for(first.audio_url).read_bytes()
        assert stored == f"RIFF:ARA:{self.provider.calls[0][0]}".encode()
        assert first.file_size_bytes == len(stored)
        assert first.mime_type == "audio/wav"

        second = await self.make_orchestrator().get_or_create_audio("mina", 10, False)

        assert second == first
        assert len(self.provider.calls) == 1
        assert SQLiteCacheStore(self.cache_dir).count() == 1
        assert len(list(self.audio_dir.rglob("*.wav"))) == 1

    @pytest.mark.asyncio
    async def test_upload_and_speech_for_same_record(self) -> None:
        orchestrator = self.make_orchestrator()

        upload = await orchestrator.get_or_create_audio("mina", 10, True)
        speech = await orchestrator.get_or_create_audio("mina", 10, False)

        assert upload.is_from_user_upload
        assert not speech.is_from_user_upload
        assert upload.audio_url != speech.audio_url

    @pytest.mark.asyncio
    async def test_failed_synthesis_leaves_no_trace(self) -> None:
        orchestrator = self.make_orchestrator(
            provider=FakeProvider(error=RuntimeError("boom"))
        )

        with pytest.raises(SynthesisError):
            await orchestrator.get_or_create_audio("mina", 10, False)

        assert SQLiteCacheStore(self.cache_dir).count() == 0
        assert not list(self.audio_dir.rglob("*.wav"))


class TestConcurrentRequestsIntegration(PipelineTestBase):
    """Two identical requests racing on a cold cache."""

    @pytest.mark.asyncio
    async def test_single_flight_one_provider_call(self) -> None:
        orchestrator = self.make_orchestrator()

        a, b = await asyncio.gather(
            orchestrator.get_or_create_audio("mina", 11, False),
            orchestrator.get_or_create_audio("mina", 11, False),
        )

        assert len(self.provider.calls) == 1
        assert a.audio_url == b.audio_url
        assert LocalBlobStore(self.audio_dir).exists(a.audio_url)

    @pytest.mark.asyncio
    async def test_tolerated_duplicates_at_most_two_calls(self) -> None:
        orchestrator = self.make_orchestrator(single_flight=False)

        a, b = await asyncio.gather(
            orchestrator.get_or_create_audio("mina", 11, False),
            orchestrator.get_or_create_audio("mina", 11, False),
        )

        assert len(self.provider.calls) <= 2
        assert a.audio_url == b.audio_url
        blob_store = LocalBlobStore(self.audio_dir)
        assert blob_store.exists(a.audio_url)
        assert SQLiteCacheStore(self.cache_dir).count() == 1
        # Only the winning file is kept
        assert len(list(self.audio_dir.rglob("*.wav"))) == 1


class TestClovaPipelineIntegration(PipelineTestBase):
    """The orchestrator driving the CLOVA adapter over a mock transport."""

    @pytest.mark.asyncio
    async def test_tone_reaches_the_wire(self) -> None:
        forms: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            forms.append({k: v[0] for k, v in parse_qs(request.content.decode()).items()})
            return httpx.Response(200, content=b"RIFF" + b"\x00" * 64)

        provider = ClovaProvider("id", "secret", transport=httpx.MockTransport(handler))
        orchestrator = self.make_orchestrator(provider=provider)

        descriptor = await orchestrator.get_or_create_audio("mina", 10, False, voice="YUNA")

        # Record 10: user picked SADNESS 70
        assert forms == [
            {
                "speaker": "vyuna",
                "volume": "0",
                "speed": "0",
                "pitch": "1",
                "alpha": "0",
                "emotion": "1",
                "emotion-strength": "2",
                "format": "wav",
                "text": "오늘은 비가 와서 조금 우울했다",
            }
        ]
        assert descriptor.file_size_bytes == 68
        assert descriptor.voice == "YUNA"


class TestFromConfigIntegration:
    """Building the orchestrator from configuration."""

    @pytest.mark.asyncio
    async def test_from_config(self) -> None:
        with TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            config = parse_config(
                {
                    "tts": {"provider": "fake", "voice": "GOEUN", "format": "wav"},
                    "cache": {"dir": str(root / "cache"), "single_flight": False},
                    "storage": {"dir": str(root / "audio"), "base_url": "https://cdn.example.com"},
                }
            )
            ProviderRegistry.register("fake", FakeProvider)

            orchestrator = AudioOrchestrator.from_config(config, build_repository())
            descriptor = await orchestrator.get_or_create_audio("mina", 12, False)

            assert isinstance(orchestrator.provider, FakeProvider)
            assert orchestrator.default_voice == "GOEUN"
            assert descriptor.audio_url.startswith("https://cdn.example.com/users/1/audio/")
            assert (root / "cache" / "tts_cache.db").exists()
