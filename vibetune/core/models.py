"""
Pydantic v2 request / response models used across the API layer.

Song CRUD, generation, upload, recorder WebSocket messages, and health.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Song
# ---------------------------------------------------------------------------


class SongStatus(StrEnum):
    """Lifecycle states of a song."""

    processing = "processing"
    completed = "completed"
    failed = "failed"


class SongParameters(BaseModel):
    """Generation inputs recorded alongside a song."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str | None = None
    negative_tags: str | None = Field(None, alias="negativeTags")
    source_video_url: str | None = Field(None, alias="originalVideoUrl")


class SongCreate(BaseModel):
    """POST /api/song request body.

    ``title`` and ``user_id`` are required but declared optional so that the
    route can answer 400 with a field-specific message.
    """

    title: str | None = None
    description: str | None = None
    user_id: str | None = None
    parameters: SongParameters | None = None


class SongStatusUpdate(BaseModel):
    """PUT /api/song request body used by the generation pipeline."""

    id: str | None = None
    status: SongStatus | None = None
    file_url: str | None = None


class SongMetadataUpdate(BaseModel):
    """PUT /api/song/{id} request body."""

    title: str | None = None
    description: str | None = None


class SongResponse(BaseModel):
    """Standard song representation returned by the API."""

    id: str
    title: str
    description: str | None = None
    user_id: str
    status: SongStatus
    parameters: SongParameters | None = None
    file_url: str | None = None
    created_at: datetime
    updated_at: datetime


class DeleteSongResponse(BaseModel):
    """DELETE /api/song/{id} response."""

    message: str = "Song deleted"
    song_id: str
    audio_deleted: bool = False
    video_deleted: bool = False


# ---------------------------------------------------------------------------
# Generation / upload
# ---------------------------------------------------------------------------


class GenerateRequest(BaseModel):
    """POST /api/generate request body."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str | None = None
    negative_tags: str | None = Field(None, alias="negativeTags")


class PromptSource(StrEnum):
    """Where a music prompt came from."""

    video = "video"
    text = "text"
    fallback = "fallback"


class PromptResponse(BaseModel):
    """POST /api/prompt response."""

    prompt: str
    source: PromptSource


class UploadResponse(BaseModel):
    """POST /api/upload response."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    file_url: str = Field(alias="fileUrl")
    path: str


# ---------------------------------------------------------------------------
# Recorder WebSocket
# ---------------------------------------------------------------------------


class RecorderMessageType(StrEnum):
    """Discriminator for messages sent over the recorder WebSocket."""

    connected = "connected"
    state = "state"
    devices = "devices"
    song = "song"
    error = "error"


class RecorderMessage(BaseModel):
    """JSON message sent from server to client over the recorder WebSocket."""

    type: RecorderMessageType
    data: dict = Field(default_factory=dict)


class RecorderCommand(BaseModel):
    """JSON control message sent from client to server."""

    action: str
    device_id: str | None = None
    description: str | None = None
    user_id: str | None = None


# ---------------------------------------------------------------------------
# Error
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error envelope returned by the API."""

    error: str
    detail: str
    code: str
    timestamp: str
