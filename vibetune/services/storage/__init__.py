"""
Storage module - Database, repository, and object storage.
"""

from vibetune.services.storage.database import Base, Database
from vibetune.services.storage.models_db import Song
from vibetune.services.storage.object_store import LocalObjectStore, ObjectStore, song_audio_key
from vibetune.services.storage.repository import SongRepository

__all__ = [
    "Base",
    "Database",
    "LocalObjectStore",
    "ObjectStore",
    "Song",
    "SongRepository",
    "create_object_store",
    "song_audio_key",
]


def create_object_store(settings) -> ObjectStore:
    """Build the object store configured in *settings*."""
    return LocalObjectStore(
        root=settings.storage_dir,
        bucket=settings.storage_bucket,
        public_base_url=settings.public_base_url,
    )
