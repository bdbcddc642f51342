"""Blob storage for generated audio files."""

from .store import BlobStore, LocalBlobStore, mime_type_for

__all__ = ["BlobStore", "LocalBlobStore", "mime_type_for"]
