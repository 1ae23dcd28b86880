"""Audio upload endpoint: stores a finished WAV as ``songs/{songId}.wav``."""

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile

from vibetune.api.deps import get_object_store
from vibetune.core.exceptions import MissingFieldError
from vibetune.core.models import UploadResponse
from vibetune.core.utils import clean_text
from vibetune.services.storage.object_store import ObjectStore, song_audio_key

logger = logging.getLogger(__name__)

router = APIRouter(tags=["upload"])


@router.post("/upload", response_model=UploadResponse)
async def upload_audio(
    audio: UploadFile | None = File(None),
    songId: str | None = Form(None),
    store: ObjectStore = Depends(get_object_store),
):
    """Store an audio artifact for a song, overwriting any previous one."""
    if audio is None:
        raise MissingFieldError("audio", "No file received")
    song_id = clean_text(songId)
    if not song_id:
        raise MissingFieldError("songId", "No song ID provided")

    data = await audio.read()
    key = song_audio_key(song_id)
    path = await store.put(key, data, content_type="audio/wav", upsert=True)
    logger.info("Uploaded %d bytes of audio for song %s", len(data), song_id)
    return UploadResponse(file_url=store.public_url(key), path=path)
