"""
Song REST endpoints.

CRUD for Songs plus the status update used by the generation pipeline.
All endpoints delegate to ``SongRepository``; no business logic here.
"""

import logging

from fastapi import APIRouter, Depends, Query

from vibetune.api.deps import get_database, get_object_store, get_orchestrator
from vibetune.core.exceptions import MissingFieldError
from vibetune.core.models import (
    DeleteSongResponse,
    SongCreate,
    SongMetadataUpdate,
    SongParameters,
    SongResponse,
    SongStatus,
    SongStatusUpdate,
)
from vibetune.core.utils import clean_text
from vibetune.services.orchestrator import GenerationOrchestrator
from vibetune.services.storage.database import Database
from vibetune.services.storage.object_store import ObjectStore
from vibetune.services.storage.repository import SongRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/song", tags=["songs"])


def _to_response(song) -> SongResponse:
    """Convert an ORM Song object to its API response model."""
    return SongResponse(
        id=song.id,
        title=song.title,
        description=song.description,
        user_id=song.user_id,
        status=SongStatus(song.status),
        parameters=SongParameters.model_validate(song.parameters) if song.parameters else None,
        file_url=song.file_url,
        created_at=song.created_at,
        updated_at=song.updated_at,
    )


@router.post("", response_model=SongResponse, status_code=201)
async def create_song(body: SongCreate, database: Database = Depends(get_database)):
    """Create a Song in ``processing`` status."""
    title = clean_text(body.title)
    if not title:
        raise MissingFieldError("title")
    user_id = clean_text(body.user_id)
    if not user_id:
        raise MissingFieldError("user_id")

    parameters = body.parameters.model_dump() if body.parameters else None
    async with database.session() as session:
        song = await SongRepository(session).create_song(
            title=title,
            user_id=user_id,
            description=clean_text(body.description),
            parameters=parameters,
        )
    logger.info("Created song %s for user %s", song.id, user_id)
    return _to_response(song)


@router.get("", response_model=list[SongResponse])
async def list_songs(
    user_id: str | None = Query(None),
    status: SongStatus | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    database: Database = Depends(get_database),
):
    """List songs newest first with optional filters."""
    async with database.session() as session:
        songs = await SongRepository(session).list_songs(
            user_id=user_id,
            status=status.value if status else None,
            limit=limit,
            offset=offset,
        )
    return [_to_response(s) for s in songs]


@router.put("", response_model=SongResponse)
async def update_song_status(body: SongStatusUpdate, database: Database = Depends(get_database)):
    """Apply a pipeline update: result media and/or terminal status."""
    song_id = clean_text(body.id)
    if not song_id:
        raise MissingFieldError("id")
    file_url = clean_text(body.file_url)
    if body.status is None and file_url is None:
        raise MissingFieldError("status", "status or file_url is required")

    async with database.session() as session:
        song = await SongRepository(session).update_status(song_id, body.status, file_url)
    logger.info("Song %s updated (status=%s)", song_id, song.status)
    return _to_response(song)


@router.get("/{song_id}", response_model=SongResponse)
async def get_song(song_id: str, database: Database = Depends(get_database)):
    """Fetch a single song."""
    async with database.session() as session:
        song = await SongRepository(session).get_song(song_id)
    return _to_response(song)


@router.put("/{song_id}", response_model=SongResponse)
async def update_song_metadata(
    song_id: str,
    body: SongMetadataUpdate,
    database: Database = Depends(get_database),
):
    """Rename a song; description is replaced only when present in the body."""
    title = clean_text(body.title)
    if not title:
        raise MissingFieldError("title", "Title is required")

    async with database.session() as session:
        song = await SongRepository(session).update_metadata(
            song_id,
            title=title,
            description=clean_text(body.description),
            update_description="description" in body.model_fields_set,
        )
    return _to_response(song)


@router.delete("/{song_id}", response_model=DeleteSongResponse)
async def delete_song(
    song_id: str,
    database: Database = Depends(get_database),
    store: ObjectStore = Depends(get_object_store),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Delete a song, its stored media, and any generation job still running."""
    if await orchestrator.cancel(song_id):
        logger.info("Cancelled running generation for song %s before delete", song_id)
    async with database.session() as session:
        result = await SongRepository(session).delete_song_with_cleanup(song_id, store)
    logger.info(
        "Deleted song %s (audio deleted: %s, video deleted: %s)",
        song_id,
        result["audio_deleted"],
        result["video_deleted"],
    )
    return DeleteSongResponse(**result)
