"""
Lyria text-to-music provider on Vertex AI.

Posts ``{"instances": [{"prompt", "negative_prompt"}], "parameters": {}}`` to
the model's ``predict`` endpoint with bearer-token auth and a long timeout,
then decodes ``predictions[0].bytesBase64Encoded`` into a WAV artifact.
Transport and HTTP failures are translated into the VibeTune error taxonomy
(408 timeout, 503 unreachable, upstream status otherwise).
"""

import logging
from collections.abc import Awaitable, Callable

import httpx

from vibetune.core.config import get_settings
from vibetune.core.exceptions import (
    UpstreamError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from vibetune.services.music.audio import GeneratedAudio, decode_base64_wav
from vibetune.services.music.base import BaseMusicGenerator

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str]]


def _error_message(response: httpx.Response) -> str:
    """Pull ``error.message`` out of a Google API error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or "Failed to generate song"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or "Failed to generate song"
    if isinstance(error, str):
        return error
    return "Failed to generate song"


class LyriaGenerator(BaseMusicGenerator):
    """Vertex AI Lyria client.

    Args:
        project: Google Cloud project id.
        location: Vertex AI region.
        model: Publisher model name (``lyria-002``).
        access_token: Static bearer token; ignored when *token_provider* is set.
        token_provider: Async callable returning a fresh bearer token.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        project: str | None = None,
        location: str | None = None,
        model: str | None = None,
        access_token: str | None = None,
        token_provider: TokenProvider | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._project = project or settings.lyria_project
        self._location = location or settings.lyria_location
        self._model = model or settings.lyria_model
        self._access_token = access_token if access_token is not None else settings.lyria_access_token
        self._token_provider = token_provider
        self._timeout = timeout or settings.generation_timeout
        self._client = httpx.AsyncClient(timeout=self._timeout, transport=transport)

    @property
    def endpoint(self) -> str:
        return (
            f"https://{self._location}-aiplatform.googleapis.com/v1/projects/{self._project}"
            f"/locations/{self._location}/publishers/google/models/{self._model}:predict"
        )

    async def _token(self) -> str:
        if self._token_provider is not None:
            return await self._token_provider()
        if not self._access_token:
            raise UpstreamError("Lyria access token is not configured", status_code=500)
        return self._access_token

    async def generate(self, prompt: str, negative_prompt: str | None = None) -> GeneratedAudio:
        payload = {
            "instances": [{"prompt": prompt, "negative_prompt": negative_prompt or ""}],
            "parameters": {},
        }
        headers = {
            "Authorization": f"Bearer {await self._token()}",
            "Content-Type": "application/json",
        }
        logger.info("Requesting song from %s (prompt %d chars)", self._model, len(prompt))

        try:
            response = await self._client.post(self.endpoint, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            logger.warning("Lyria request timed out: %s", exc)
            raise UpstreamTimeoutError() from exc
        except httpx.TransportError as exc:
            logger.warning("Lyria connection error: %s", exc)
            raise UpstreamUnavailableError() from exc

        if response.status_code >= 400:
            message = _error_message(response)
            logger.error("Lyria API error %s: %s", response.status_code, message)
            raise UpstreamError(message, status_code=response.status_code)

        try:
            result = response.json()
        except ValueError as exc:
            raise UpstreamError("Malformed response from AI model", status_code=500) from exc

        if not isinstance(result, dict):
            raise UpstreamError("Malformed response from AI model", status_code=502)
        predictions = result.get("predictions")
        first = predictions[0] if isinstance(predictions, list) and predictions else None
        payload = first.get("bytesBase64Encoded") if isinstance(first, dict) else None
        audio = decode_base64_wav(payload)
        logger.info(
            "Song generated: %.1fs, %d Hz, %d ch, %d bytes",
            audio.duration,
            audio.sample_rate,
            audio.channels,
            len(audio.data),
        )
        return audio

    async def aclose(self) -> None:
        await self._client.aclose()
