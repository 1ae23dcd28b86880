"""
Generation endpoints.

- ``POST /generate``: text prompt → WAV attachment from the music model.
- ``POST /prompt``: video clip (+ annotation) → music prompt.
- ``POST /submit``: video clip → Song in ``processing`` plus a background job.
"""

import logging
import time

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response

from vibetune.api.deps import get_app_settings, get_music_generator, get_orchestrator, get_prompt_service
from vibetune.api.routes.songs import _to_response
from vibetune.core.config import Settings
from vibetune.core.exceptions import MissingFieldError, VibeTuneError
from vibetune.core.models import GenerateRequest, PromptResponse, SongResponse
from vibetune.core.utils import clean_text
from vibetune.services.music.base import BaseMusicGenerator
from vibetune.services.orchestrator import GenerationOrchestrator
from vibetune.services.prompting.cleaning import simplify_prompt
from vibetune.services.prompting.service import PromptService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["generation"])


async def _read_video(video: UploadFile | None, limit: int) -> tuple[bytes, str]:
    """Read an uploaded clip, enforcing the configured size limit."""
    if video is None:
        raise MissingFieldError("video", "No video file provided")
    data = await video.read()
    if not data:
        raise MissingFieldError("video", "No video file provided")
    if len(data) > limit:
        raise VibeTuneError(
            detail=f"Video exceeds the {limit} byte upload limit",
            code="PAYLOAD_TOO_LARGE",
            status_code=413,
        )
    return data, video.content_type or "video/webm"


@router.post("/generate")
async def generate_song(
    body: GenerateRequest,
    generator: BaseMusicGenerator = Depends(get_music_generator),
):
    """Generate a song from a text prompt and return it as a WAV attachment."""
    prompt = clean_text(body.prompt)
    if not prompt:
        raise MissingFieldError("prompt", "Prompt is required")

    audio = await generator.generate(prompt, clean_text(body.negative_tags))
    headers = {
        "Content-Disposition": f'attachment; filename="generated-song-{int(time.time() * 1000)}.wav"',
        **audio.headers,
    }
    return Response(content=audio.data, media_type="audio/wav", headers=headers)


@router.post("/prompt", response_model=PromptResponse)
async def create_prompt(
    video: UploadFile | None = File(None),
    userText: str | None = Form(None),
    simplify: bool = Form(False),
    prompts: PromptService = Depends(get_prompt_service),
    settings: Settings = Depends(get_app_settings),
):
    """Turn a video clip into a music prompt (never empty)."""
    data, mime_type = await _read_video(video, settings.max_upload_bytes)
    result = await prompts.generate_prompt(data, mime_type, clean_text(userText))
    prompt = simplify_prompt(result.prompt) if simplify else result.prompt
    return PromptResponse(prompt=prompt, source=result.source)


@router.post("/submit", response_model=SongResponse, status_code=202)
async def submit_video(
    video: UploadFile | None = File(None),
    user_id: str | None = Form(None),
    description: str | None = Form(None),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_app_settings),
):
    """Create a Song and generate its audio in the background."""
    if not clean_text(user_id):
        raise MissingFieldError("user_id")
    data, mime_type = await _read_video(video, settings.max_upload_bytes)
    song = await orchestrator.submit(data, mime_type, user_id=user_id, description=description)
    return _to_response(song)
