"""
CRUD repository for the ``songs`` table.

``SongRepository`` receives an ``AsyncSession`` and provides all
data-access methods.  It calls ``flush()`` rather than ``commit()`` so
that transaction boundaries are controlled by the caller (typically
:meth:`Database.session`).
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vibetune.core.exceptions import InvalidStatusTransitionError, MissingFieldError, SongNotFoundError
from vibetune.core.models import SongStatus
from vibetune.services.storage.models_db import Song
from vibetune.services.storage.object_store import ObjectStore, song_audio_key, source_video_keys

logger = logging.getLogger(__name__)

_TERMINAL = {SongStatus.completed.value, SongStatus.failed.value}


def check_transition(current: str, requested: str) -> bool:
    """Validate a status change and report whether it changes anything.

    Only ``processing -> completed`` and ``processing -> failed`` move a song.
    Re-applying the current status is a no-op.

    Returns:
        True when the status actually changes.

    Raises:
        InvalidStatusTransitionError: For any other transition.
    """
    if current == requested:
        return False
    if current == SongStatus.processing and requested in _TERMINAL:
        return True
    raise InvalidStatusTransitionError(current, requested)


class SongRepository:
    """Data-access layer for songs.

    All methods use ``flush()`` instead of ``commit()`` so transaction
    boundaries are controlled by the caller.

    Args:
        session: An active SQLAlchemy ``AsyncSession``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_song(
        self,
        title: str,
        user_id: str,
        description: str | None = None,
        parameters: dict | None = None,
    ) -> Song:
        """Create and return a new song with status *processing*."""
        song = Song(
            title=title,
            user_id=user_id,
            description=description,
            parameters=parameters,
            status=SongStatus.processing.value,
        )
        self._session.add(song)
        await self._session.flush()
        return song

    async def get_song(self, song_id: str) -> Song:
        """Return a song by ID or raise :class:`SongNotFoundError`."""
        song = await self._session.get(Song, song_id)
        if song is None:
            raise SongNotFoundError(song_id)
        return song

    async def list_songs(
        self,
        user_id: str | None = None,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Song]:
        """Return songs newest first, optionally filtered by owner and *status*."""
        stmt = select(Song).order_by(Song.created_at.desc()).limit(limit).offset(offset)
        if user_id is not None:
            stmt = stmt.where(Song.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Song.status == status)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def update_metadata(
        self,
        song_id: str,
        title: str,
        description: str | None = None,
        update_description: bool = False,
    ) -> Song:
        """Update title and, when *update_description* is set, the description."""
        song = await self.get_song(song_id)
        song.title = title
        if update_description:
            song.description = description
        await self._session.flush()
        return song

    async def update_status(
        self,
        song_id: str,
        status: str | None = None,
        file_url: str | None = None,
    ) -> Song:
        """Apply a pipeline update: optional *file_url* and/or terminal *status*.

        Raises:
            SongNotFoundError: Unknown song.
            InvalidStatusTransitionError: Leaving a terminal status.
            MissingFieldError: Completing without any result media.
        """
        song = await self.get_song(song_id)
        if status is not None:
            changed = check_transition(song.status, status)
            if status == SongStatus.completed and not (file_url or song.file_url):
                raise MissingFieldError("file_url", "file_url is required to complete a song")
            if changed:
                song.status = str(status)
                if status == SongStatus.failed:
                    song.file_url = None
        if file_url is not None and song.status != SongStatus.failed:
            song.file_url = file_url
        await self._session.flush()
        return song

    async def update_parameters(self, song_id: str, **changes) -> Song:
        """Merge *changes* into the song's generation parameters."""
        song = await self.get_song(song_id)
        # Reassign so the JSON column is flagged dirty
        song.parameters = {**(song.parameters or {}), **changes}
        await self._session.flush()
        return song

    async def complete_song(self, song_id: str, file_url: str) -> Song:
        """Mark a song *completed* with its result media."""
        return await self.update_status(song_id, SongStatus.completed, file_url)

    async def fail_song(self, song_id: str) -> Song:
        """Mark a song *failed*."""
        return await self.update_status(song_id, SongStatus.failed)

    async def list_processing(self, user_id: str | None = None) -> list[Song]:
        """Return songs still in *processing*."""
        return await self.list_songs(user_id=user_id, status=SongStatus.processing, limit=1000)

    async def delete_song(self, song_id: str) -> None:
        """Delete a song row."""
        song = await self.get_song(song_id)
        await self._session.delete(song)
        await self._session.flush()

    async def delete_song_with_cleanup(self, song_id: str, store: ObjectStore) -> dict:
        """Delete a song from DB and remove its stored audio and source clip.

        Objects that were never stored are skipped without error.

        Returns:
            A dict matching ``DeleteSongResponse``.
        """
        song = await self.get_song(song_id)
        await self._session.delete(song)
        await self._session.flush()

        audio_deleted = False
        try:
            audio_deleted = await store.delete(song_audio_key(song_id))
        except Exception as exc:
            logger.warning("Failed to delete audio for song %s: %s", song_id, exc)

        video_deleted = False
        for key in source_video_keys(song_id):
            try:
                video_deleted = await store.delete(key) or video_deleted
            except Exception as exc:
                logger.warning("Failed to delete %s for song %s: %s", key, song_id, exc)

        return {"song_id": song_id, "audio_deleted": audio_deleted, "video_deleted": video_deleted}
