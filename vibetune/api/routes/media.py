"""Serve objects from the local object store at ``/media/{bucket}/{key}``."""

import mimetypes

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from vibetune.api.deps import get_object_store
from vibetune.core.exceptions import StorageError, VibeTuneError
from vibetune.services.storage.object_store import LocalObjectStore, ObjectStore

router = APIRouter(prefix="/media", tags=["media"])


def _not_found(key: str) -> VibeTuneError:
    return VibeTuneError(detail=f"Object not found: {key}", code="OBJECT_NOT_FOUND", status_code=404)


@router.get("/{bucket}/{key:path}")
async def get_object(bucket: str, key: str, store: ObjectStore = Depends(get_object_store)):
    """Stream a stored object."""
    if bucket != store.bucket or not isinstance(store, LocalObjectStore):
        raise _not_found(key)
    try:
        path = store.resolve(key)
    except StorageError:
        raise _not_found(key) from None
    if not path.is_file():
        raise _not_found(key)
    media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return FileResponse(path, media_type=media_type)
