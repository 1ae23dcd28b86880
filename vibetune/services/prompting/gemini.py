"""
Gemini video-understanding provider.

Calls the Generative Language REST API (``models/{model}:generateContent``)
with the clip as inline base64 data under a system instruction describing
the music prompt to write. HTTP and transport failures are mapped to the
VibeTune error taxonomy so the attempt policy can decide what to retry.
"""

import base64
import logging

import httpx

from vibetune.core.config import get_settings
from vibetune.core.exceptions import (
    UpstreamError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
    VibeTuneError,
)
from vibetune.services.prompting.base import BaseVideoPrompter

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = """\
You are a music prompt generator for Lyria AI. Create detailed, comprehensive music prompts that capture exactly what you see in the video.

GUIDELINES:
- Generate detailed music descriptions with specific technical elements
- Include: genre, BPM, instruments, production techniques, mixing style, vocal style
- Be specific about sound design, effects, and musical arrangements
- Describe energy, mood, and musical progression
- Use professional music production terminology

EXAMPLE OUTPUTS:
"Aggressive trap beat at 140 BPM. Heavy 808 bassline with hard-hitting kick and snare patterns. Use distorted synth leads and dark, gritty sound design for an intense mood. Add ad-libs and vocal chops with heavy autotune and aggressive mixing for a sinister tone."

"Upbeat indie pop song at 128 BPM with jangly electric guitar arpeggios, warm analog synth pads, steady four-on-the-floor kick drum, and bright vocals with slight reverb. Major key progression with nostalgic summer vibes, layered harmonies in the chorus, and a driving bassline."

"Mellow lo-fi hip hop at 85 BPM featuring dusty vinyl samples, warm jazz piano chords, subtle vinyl crackle, laid-back drum loop with soft kick and snare, and atmospheric pad textures. Dreamy and nostalgic mood with tape saturation and analog warmth."

Analyze the video for movement, energy, and emotion, then create a comprehensive musical description that includes all technical details needed for high-quality music generation.
"""


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"Gemini API error {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return f"Gemini API error {response.status_code}"


class GeminiPrompter(BaseVideoPrompter):
    """Gemini ``generateContent`` client.

    Args:
        api_key: Generative Language API key.
        model: Model name (``gemini-2.0-flash``).
        base_url: API root including the version segment.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.gemini_api_key
        self._model = model or settings.gemini_model
        self._base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=timeout or settings.gemini_timeout,
            transport=transport,
        )

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    async def _generate(self, parts: list[dict]) -> str:
        if not self._api_key:
            raise VibeTuneError("Missing Gemini API key", code="CONFIG_ERROR")

        payload = {
            "system_instruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
            "contents": [{"role": "user", "parts": parts}],
        }
        try:
            response = await self._client.post(
                self.endpoint,
                json=payload,
                headers={"x-goog-api-key": self._api_key},
            )
        except httpx.TimeoutException as exc:
            logger.warning("Gemini request timed out: %s", exc)
            raise UpstreamTimeoutError("Request timeout - video analysis took too long") from exc
        except httpx.TransportError as exc:
            logger.warning("Gemini connection error: %s", exc)
            raise UpstreamUnavailableError() from exc

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning("Gemini API error %s: %s", response.status_code, message)
            raise UpstreamError(message, status_code=response.status_code)

        body = response.json()
        candidates = body.get("candidates") or []
        if not candidates:
            raise UpstreamError("Gemini returned no candidates", status_code=502)
        text_parts = candidates[0].get("content", {}).get("parts", [])
        text = "".join(p.get("text", "") for p in text_parts).strip()
        if not text:
            raise UpstreamError("Gemini returned an empty response", status_code=502)
        return text

    async def describe_video(
        self,
        video: bytes,
        mime_type: str = "video/webm",
        user_text: str | None = None,
    ) -> str:
        parts: list[dict] = []
        if user_text and user_text.strip():
            parts.append({"text": f"User's musical description: {user_text}"})
        parts.append(
            {
                "inline_data": {
                    "mime_type": mime_type or "video/webm",
                    "data": base64.b64encode(video).decode("ascii"),
                }
            }
        )
        logger.info("Sending %d byte video to %s", len(video), self._model)
        return await self._generate(parts)

    async def describe_text(self, user_text: str) -> str:
        prompt = (
            f'Create a detailed song description based on this user input: "{user_text}". '
            "Include genre, tempo, mood, instruments, and song structure. "
            "Be specific and creative."
        )
        return await self._generate([{"text": prompt}])

    async def aclose(self) -> None:
        await self._client.aclose()
