"""Blob storage for generated audio."""

import logging
import secrets
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from urllib.parse import unquote, urlparse

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 50 * 1024 * 1024

MIME_TYPES = {
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "m4a": "audio/mp4",
    "aac": "audio/aac",
    "ogg": "audio/ogg",
    "flac": "audio/flac",
}


def mime_type_for(extension: str) -> str:
    """MIME type for a file extension, with or without the leading dot."""
    return MIME_TYPES.get(extension.lstrip(".").lower(), "application/octet-stream")


def validate_upload(data: bytes, owner_ref: str, extension: str) -> None:
    """Check upload parameters.

    Raises:
        ValueError: If data is empty or too large, or owner/extension is missing
    """
    if not data:
        raise ValueError("Audio data is empty")
    if not owner_ref or not owner_ref.strip():
        raise ValueError("Owner reference is required")
    if not extension or not extension.strip(". "):
        raise ValueError("File extension is required")
    if len(data) > MAX_UPLOAD_BYTES:
        raise ValueError(
            f"File too large: {len(data)} bytes (max {MAX_UPLOAD_BYTES})"
        )


class BlobStore(ABC):
    """Durable byte storage addressed by URL."""

    @abstractmethod
    def upload(
        self, data: bytes, owner_ref: str, extension: str, mime_type: str
    ) -> str:
        """Store bytes and return a durable URL.

        Every call writes a new object, so calling once per cache miss is safe.

        Raises:
            ValueError: If parameters are invalid
            OSError: If the write fails
        """
        pass

    @abstractmethod
    def exists(self, url: str) -> bool:
        pass

    @abstractmethod
    def delete(self, url: str) -> None:
        pass


class LocalBlobStore(BlobStore):
    """Filesystem blob store.

    Objects are laid out as users/{owner}/audio/{YYYY}/{MM}/{name}.{ext}
    under root. URLs are base_url + key when a base URL is configured,
    otherwise file:// URIs.
    """

    def __init__(self, root: Path, base_url: str | None = None) -> None:
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)
        self.base_url = base_url.rstrip("/") if base_url else None

    def _object_key(self, owner_ref: str, extension: str) -> str:
        now = datetime.now()
        name = f"{now.strftime('%Y%m%d_%H%M%S')}_{secrets.token_hex(4)}"
        safe_owner = "".join(
            c if c.isalnum() or c in "-_" else "_" for c in owner_ref.strip()
        )
        return (
            f"users/{safe_owner}/audio/{now:%Y}/{now:%m}/"
            f"{name}.{extension.lstrip('.').lower()}"
        )

    def _url_for(self, key: str) -> str:
        if self.base_url:
            return f"{self.base_url}/{key}"
        return (self.root / key).resolve().as_uri()

    def _path_for(self, url: str) -> Path | None:
        if self.base_url and url.startswith(self.base_url + "/"):
            return self.root / url[len(self.base_url) + 1 :]
        parsed = urlparse(url)
        if parsed.scheme == "file":
            return Path(unquote(parsed.path))
        return None

    def upload(
        self, data: bytes, owner_ref: str, extension: str, mime_type: str
    ) -> str:
        validate_upload(data, owner_ref, extension)

        key = self._object_key(owner_ref, extension)
        path = self.root / key
        path.parent.mkdir(parents=True, exist_ok=True)

        # Write to a temp name first so readers never see partial audio
        tmp_path = path.with_suffix(path.suffix + ".part")
        tmp_path.write_bytes(data)
        tmp_path.replace(path)

        url = self._url_for(key)
        logger.info(
            f"Uploaded audio {key} ({len(data)} bytes, {mime_type or mime_type_for(extension)})"
        )
        return url

    def exists(self, url: str) -> bool:
        path = self._path_for(url)
        return path is not None and path.is_file()

    def delete(self, url: str) -> None:
        path = self._path_for(url)
        if path is None:
            logger.warning(f"Not a local blob URL, skipping delete: {url}")
            return
        path.unlink(missing_ok=True)
        logger.info(f"Deleted audio {path}")
