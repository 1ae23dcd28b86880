"""Background generation orchestrator.

Decouples song generation from the request that submitted it: ``submit``
creates the Song in ``processing`` and returns at once, while an
``asyncio.Task`` runs prompt → generate → store → complete. Any failure marks
the Song ``failed``; there is no automatic retry.

Usage::

    orchestrator = GenerationOrchestrator(database, store, generator, prompts)
    song = await orchestrator.submit(video, "video/webm", user_id="u1")
    ...
    await orchestrator.shutdown(timeout=30.0)
"""

import asyncio
import logging
from datetime import UTC, datetime

from vibetune.core.exceptions import JobAlreadyRunningError, MissingFieldError
from vibetune.core.models import SongStatus
from vibetune.core.utils import clean_text
from vibetune.services.music.base import BaseMusicGenerator
from vibetune.services.prompting.service import PromptService
from vibetune.services.storage.database import Database
from vibetune.services.storage.models_db import Song
from vibetune.services.storage.object_store import ObjectStore, song_audio_key, source_video_key
from vibetune.services.storage.repository import SongRepository

logger = logging.getLogger(__name__)


def default_title(now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    return f"Song {now.strftime('%Y-%m-%d %H:%M')}"


class GenerationOrchestrator:
    """Runs one background generation job per Song.

    Args:
        database: Database whose sessions the jobs use.
        store: Object store for source clips and generated audio.
        generator: Text-to-music provider.
        prompts: Video-to-prompt service (never returns an empty prompt).
        negative_prompt: Optional negative prompt sent with every generation.
    """

    def __init__(
        self,
        database: Database,
        store: ObjectStore,
        generator: BaseMusicGenerator,
        prompts: PromptService,
        negative_prompt: str | None = None,
    ) -> None:
        self._db = database
        self._store = store
        self._generator = generator
        self._prompts = prompts
        self._negative_prompt = negative_prompt
        self._jobs: dict[str, asyncio.Task] = {}

    @property
    def active_jobs(self) -> list[str]:
        """IDs of songs whose job is still running."""
        return [song_id for song_id, task in self._jobs.items() if not task.done()]

    def job(self, song_id: str) -> asyncio.Task | None:
        return self._jobs.get(song_id)

    async def cancel(self, song_id: str) -> bool:
        """Cancel the running job for *song_id* and wait for it to unwind.

        Returns:
            False when no job was running.
        """
        task = self._jobs.get(song_id)
        if task is None or task.done():
            return False
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        return True

    async def submit(
        self,
        video: bytes,
        mime_type: str = "video/webm",
        user_id: str | None = None,
        description: str | None = None,
    ) -> Song:
        """Create a ``processing`` Song and start its generation job.

        Returns:
            The new Song, before any generation work has happened.

        Raises:
            MissingFieldError: No user or an empty clip.
        """
        user_id = clean_text(user_id)
        if not user_id:
            raise MissingFieldError("user_id")
        if not video:
            raise MissingFieldError("video", "No video file provided")

        description = clean_text(description)
        async with self._db.session() as session:
            song = await SongRepository(session).create_song(
                title=description or default_title(),
                user_id=user_id,
                description=description,
                parameters={"prompt": None, "negative_tags": self._negative_prompt},
            )

        logger.info("Song %s created for user %s; starting generation", song.id, user_id)
        self.start(song.id, video, mime_type, description)
        return song

    def start(
        self,
        song_id: str,
        video: bytes,
        mime_type: str = "video/webm",
        user_text: str | None = None,
    ) -> asyncio.Task:
        """Launch the job for an existing Song.

        Raises:
            JobAlreadyRunningError: A job for *song_id* is still running.
        """
        existing = self._jobs.get(song_id)
        if existing is not None and not existing.done():
            raise JobAlreadyRunningError(song_id)

        task = asyncio.create_task(
            self._run(song_id, video, mime_type, user_text),
            name=f"generate-{song_id}",
        )
        self._jobs[song_id] = task
        task.add_done_callback(lambda t, sid=song_id: self._forget(sid, t))
        return task

    def _forget(self, song_id: str, task: asyncio.Task) -> None:
        if self._jobs.get(song_id) is task:
            del self._jobs[song_id]

    async def _run(self, song_id: str, video: bytes, mime_type: str, user_text: str | None) -> None:
        try:
            video_key = source_video_key(song_id, mime_type)
            await self._store.put(video_key, video, content_type=mime_type)

            result = await self._prompts.generate_prompt(video, mime_type, user_text)
            logger.info("Song %s prompt from %s: %s", song_id, result.source, result.prompt)
            async with self._db.session() as session:
                await SongRepository(session).update_parameters(
                    song_id,
                    prompt=result.prompt,
                    source_video_url=self._store.public_url(video_key),
                )

            audio = await self._generator.generate(result.prompt, self._negative_prompt)

            audio_key = song_audio_key(song_id)
            await self._store.put(audio_key, audio.data, content_type="audio/wav", upsert=True)

            async with self._db.session() as session:
                await SongRepository(session).complete_song(song_id, self._store.public_url(audio_key))
            logger.info("Song %s completed (%.1fs of audio)", song_id, audio.duration)
        except asyncio.CancelledError:
            logger.warning("Generation for song %s cancelled", song_id)
            await self._mark_failed(song_id)
            raise
        except Exception:
            logger.exception("Generation failed for song %s", song_id)
            await self._mark_failed(song_id)

    async def _mark_failed(self, song_id: str) -> None:
        try:
            async with self._db.session() as session:
                repo = SongRepository(session)
                song = await repo.get_song(song_id)
                if song.status == SongStatus.processing:
                    await repo.fail_song(song_id)
        except Exception:
            logger.exception("Failed to mark song %s as failed", song_id)

    async def shutdown(self, timeout: float = 30.0) -> None:
        """Wait up to *timeout* seconds for running jobs, then cancel the rest."""
        tasks = [t for t in self._jobs.values() if not t.done()]
        if not tasks:
            return
        logger.info("Waiting for %d generation job(s) to finish", len(tasks))
        _, pending = await asyncio.wait(tasks, timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            logger.warning("Cancelled %d unfinished generation job(s)", len(pending))
            await asyncio.gather(*pending, return_exceptions=True)
