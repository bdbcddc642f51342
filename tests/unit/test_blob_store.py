"""Unit tests for blob storage."""

import re
import sys
from datetime import datetime
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from moodvoice.blob.store import (
    MAX_UPLOAD_BYTES,
    LocalBlobStore,
    mime_type_for,
    validate_upload,
)


class TestValidateUpload:
    """Test upload parameter validation."""

    def test_empty_data(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            validate_upload(b"", "1", "wav")

    def test_missing_owner(self) -> None:
        with pytest.raises(ValueError, match="Owner reference is required"):
            validate_upload(b"data", " ", "wav")

    def test_missing_extension(self) -> None:
        with pytest.raises(ValueError, match="extension is required"):
            validate_upload(b"data", "1", ".")

    def test_too_large(self) -> None:
        with pytest.raises(ValueError, match="File too large"):
            validate_upload(b"x" * (MAX_UPLOAD_BYTES + 1), "1", "wav")


class TestMimeTypes:
    """Test extension to MIME type mapping."""

    @pytest.mark.parametrize(
        ("extension", "expected"),
        [
            ("wav", "audio/wav"),
            (".MP3", "audio/mpeg"),
            ("m4a", "audio/mp4"),
            ("xyz", "application/octet-stream"),
        ],
    )
    def test_mime_type_for(self, extension: str, expected: str) -> None:
        assert mime_type_for(extension) == expected


class TestLocalBlobStore:
    """Test the filesystem blob store."""

    def test_upload_writes_file_under_owner_and_month(self) -> None:
        with TemporaryDirectory() as temp_dir:
            store = LocalBlobStore(Path(temp_dir))

            url = store.upload(b"RIFFdata", "1", "wav", "audio/wav")

            assert url.startswith("file://")
            now = datetime.now()
            assert f"/users/1/audio/{now:%Y}/{now:%m}/" in url
            assert re.search(r"/\d{8}_\d{6}_[0-9a-f]{8}\.wav$", url)
            assert store.exists(url)
            files = list(Path(temp_dir).rglob("*.wav"))
            assert len(files) == 1
            assert files[0].read_bytes() == b"RIFFdata"
            assert not list(Path(temp_dir).rglob("*.part"))

    def test_each_upload_is_a_new_object(self) -> None:
        with TemporaryDirectory() as temp_dir:
            store = LocalBlobStore(Path(temp_dir))

            first = store.upload(b"a", "1", "wav", "audio/wav")
            second = store.upload(b"a", "1", "wav", "audio/wav")

            assert first != second

    def test_base_url(self) -> None:
        with TemporaryDirectory() as temp_dir:
            store = LocalBlobStore(Path(temp_dir), base_url="https://cdn.example.com/")

            url = store.upload(b"a", "mina", "mp3", "audio/mpeg")

            assert url.startswith("https://cdn.example.com/users/mina/audio/")
            assert store.exists(url)

    def test_owner_is_sanitized(self) -> None:
        with TemporaryDirectory() as temp_dir:
            store = LocalBlobStore(Path(temp_dir), base_url="https://cdn.example.com")

            url = store.upload(b"a", "../evil", "wav", "audio/wav")

            assert "/users/___evil/audio/" in url
            assert store.exists(url)

    def test_delete(self) -> None:
        with TemporaryDirectory() as temp_dir:
            store = LocalBlobStore(Path(temp_dir))
            url = store.upload(b"a", "1", "wav", "audio/wav")

            store.delete(url)
            store.delete(url)

            assert not store.exists(url)

    def test_foreign_url(self) -> None:
        with TemporaryDirectory() as temp_dir:
            store = LocalBlobStore(Path(temp_dir))

            assert not store.exists("https://elsewhere.example.com/a.wav")
            store.delete("https://elsewhere.example.com/a.wav")
