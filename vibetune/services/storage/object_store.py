"""
Object storage for generated audio.

``ObjectStore`` is the bucket-style interface the generation pipeline writes
through; ``LocalObjectStore`` keeps objects on the local filesystem under
``<root>/<bucket>/<key>`` and exposes them at ``/media/<bucket>/<key>``.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from vibetune.core.exceptions import StorageError

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = {
    "video/webm": "webm",
    "video/mp4": "mp4",
    "video/quicktime": "mov",
    "video/ogg": "ogv",
}


def song_audio_key(song_id: str) -> str:
    """Object key under which a song's WAV artifact is stored."""
    return f"songs/{song_id}.wav"


def source_video_key(song_id: str, mime_type: str) -> str:
    """Object key under which a submitted clip is kept."""
    base_type = (mime_type or "").split(";")[0].strip().lower()
    return f"videos/{song_id}.{VIDEO_EXTENSIONS.get(base_type, 'bin')}"


def source_video_keys(song_id: str) -> list[str]:
    """Every key a song's source clip may have been stored under."""
    extensions = sorted({*VIDEO_EXTENSIONS.values(), "bin"})
    return [f"videos/{song_id}.{ext}" for ext in extensions]


class ObjectStore(ABC):
    """Interface every object storage backend must implement."""

    bucket: str

    @abstractmethod
    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        upsert: bool = True,
    ) -> str:
        """Store *data* under *key* and return the stored path."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete *key*. Returns False when nothing was stored there."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return whether an object is stored under *key*."""

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Return the URL clients use to fetch *key*."""


class LocalObjectStore(ObjectStore):
    """Filesystem-backed object store.

    Args:
        root: Directory holding one subdirectory per bucket.
        bucket: Bucket name.
        public_base_url: Base URL of the server serving ``/media``.
    """

    def __init__(self, root: str, bucket: str, public_base_url: str) -> None:
        self.bucket = bucket
        self._bucket_dir = (Path(root) / bucket).resolve()
        self._public_base_url = public_base_url.rstrip("/")
        self._bucket_dir.mkdir(parents=True, exist_ok=True)

    @property
    def bucket_dir(self) -> Path:
        return self._bucket_dir

    def resolve(self, key: str) -> Path:
        """Map *key* to a path inside the bucket, rejecting traversal."""
        path = (self._bucket_dir / key).resolve()
        if not path.is_relative_to(self._bucket_dir):
            raise StorageError(f"Invalid object key: {key}")
        return path

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        upsert: bool = True,
    ) -> str:
        path = self.resolve(key)
        if not upsert and path.exists():
            raise StorageError(f"Object already exists: {key}")

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(path.suffix + ".part")
            tmp.write_bytes(data)
            tmp.replace(path)

        try:
            await asyncio.to_thread(_write)
        except OSError as exc:
            raise StorageError(f"Failed to upload to storage: {exc}") from exc
        logger.info("Stored object %s/%s (%d bytes, %s)", self.bucket, key, len(data), content_type)
        return key

    async def delete(self, key: str) -> bool:
        path = self.resolve(key)
        if not path.exists():
            return False
        try:
            await asyncio.to_thread(path.unlink, True)
        except OSError as exc:
            raise StorageError(f"Failed to delete {key}: {exc}") from exc
        logger.info("Deleted object %s/%s", self.bucket, key)
        return True

    async def exists(self, key: str) -> bool:
        return self.resolve(key).is_file()

    def public_url(self, key: str) -> str:
        return f"{self._public_base_url}/media/{self.bucket}/{key}"
