"""
Prompt service: video → text-only → heuristic fallback.

The video call runs under an ``AttemptPolicy``; once it gives up, a single
text-only call is tried when the user typed an annotation, and finally a
keyword template is used. The result is never empty.
"""

import logging
from dataclasses import dataclass

from vibetune.core.models import PromptSource
from vibetune.services.prompting.base import BaseVideoPrompter
from vibetune.services.prompting.cleaning import clean_prompt
from vibetune.services.prompting.fallback import fallback_prompt
from vibetune.services.prompting.policy import AttemptPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromptResult:
    prompt: str
    source: PromptSource


class PromptService:
    """Turn a recorded clip into a music prompt."""

    def __init__(self, prompter: BaseVideoPrompter, policy: AttemptPolicy | None = None) -> None:
        self._prompter = prompter
        self._policy = policy or AttemptPolicy()

    async def generate_prompt(
        self,
        video: bytes,
        mime_type: str = "video/webm",
        user_text: str | None = None,
    ) -> PromptResult:
        async def from_video() -> PromptResult:
            raw = await self._prompter.describe_video(video, mime_type, user_text)
            return self._result(raw, PromptSource.video)

        async def after_video_failure(exc: BaseException) -> PromptResult:
            return await self._text_or_fallback(user_text)

        return await self._policy.run(from_video, fallback=after_video_failure)

    async def _text_or_fallback(self, user_text: str | None) -> PromptResult:
        if user_text and user_text.strip():
            logger.info("Video analysis failed, trying text-only mode")
            try:
                raw = await self._prompter.describe_text(user_text)
                return self._result(raw, PromptSource.text)
            except Exception as exc:
                logger.warning("Text-only prompt also failed: %s", exc)

        logger.info("Using heuristic fallback prompt")
        return PromptResult(prompt=fallback_prompt(user_text), source=PromptSource.fallback)

    def _result(self, raw: str, source: PromptSource) -> PromptResult:
        prompt = clean_prompt(raw)
        if not prompt:
            # Empty model output is treated like a failed call
            raise ValueError("Model returned an empty prompt")
        return PromptResult(prompt=prompt, source=source)

    async def aclose(self) -> None:
        await self._prompter.aclose()
