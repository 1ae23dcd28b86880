"""Unit tests for PromptService: video → text-only → heuristic fallback."""

from unittest.mock import AsyncMock

import pytest

from vibetune.core.exceptions import UpstreamError
from vibetune.core.models import PromptSource
from vibetune.services.prompting import create_prompt_service
from vibetune.services.prompting.base import BaseVideoPrompter
from vibetune.services.prompting.fallback import JAZZ_PROMPT
from vibetune.services.prompting.policy import AttemptPolicy
from vibetune.services.prompting.service import PromptService


@pytest.fixture
def prompter():
    return AsyncMock(spec=BaseVideoPrompter)


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.fixture
def service(prompter, sleep):
    return PromptService(prompter, AttemptPolicy(max_attempts=3, sleep=sleep))


async def test_video_prompt_is_cleaned(service, prompter):
    prompter.describe_video.return_value = '```\n"Dreamy   synthwave at 100 BPM"\n```'
    result = await service.generate_prompt(b"clip", "video/webm", "night drive")
    assert result.prompt == "Dreamy synthwave at 100 BPM"
    assert result.source == PromptSource.video
    prompter.describe_video.assert_awaited_once_with(b"clip", "video/webm", "night drive")
    prompter.describe_text.assert_not_awaited()


async def test_transient_errors_retried_with_backoff(service, prompter, sleep):
    prompter.describe_video.side_effect = [UpstreamError("Internal error", 500), "Folk ballad"]
    result = await service.generate_prompt(b"clip")
    assert result.prompt == "Folk ballad"
    assert result.source == PromptSource.video
    assert [c.args[0] for c in sleep.await_args_list] == [2.0]


async def test_falls_back_to_text_only(service, prompter):
    prompter.describe_video.side_effect = UpstreamError("Internal error", 500)
    prompter.describe_text.return_value = "Country road trip anthem"
    result = await service.generate_prompt(b"clip", user_text="road trip")
    assert prompter.describe_video.await_count == 3
    prompter.describe_text.assert_awaited_once_with("road trip")
    assert result.source == PromptSource.text
    assert result.prompt == "Country road trip anthem"


async def test_jazz_fallback_is_deterministic(prompter, sleep):
    """All retries failing plus a jazz annotation yields the jazz template."""
    prompter.describe_video.side_effect = UpstreamError("Internal error", 500)
    prompter.describe_text.side_effect = UpstreamError("Internal error", 500)

    results = []
    for _ in range(2):
        service = PromptService(prompter, AttemptPolicy(max_attempts=3, sleep=sleep))
        results.append(await service.generate_prompt(b"clip", user_text="late night Jazz club"))

    assert results[0] == results[1]
    assert results[0].prompt == JAZZ_PROMPT
    assert results[0].source == PromptSource.fallback


async def test_no_annotation_skips_text_mode(service, prompter):
    prompter.describe_video.side_effect = UpstreamError("Quota", 429)
    result = await service.generate_prompt(b"clip")
    prompter.describe_text.assert_not_awaited()
    assert result.source == PromptSource.fallback
    assert result.prompt.startswith("Upbeat contemporary song at 120 BPM")


async def test_non_transient_error_goes_straight_to_fallback(service, prompter, sleep):
    prompter.describe_video.side_effect = UpstreamError("Bad request", 400)
    prompter.describe_text.side_effect = UpstreamError("Bad request", 400)
    result = await service.generate_prompt(b"clip", user_text="rock anthem")
    prompter.describe_video.assert_awaited_once()
    sleep.assert_not_awaited()
    assert result.prompt.startswith("Energetic rock song")


async def test_empty_model_output_treated_as_failure(service, prompter):
    prompter.describe_video.return_value = "   "
    prompter.describe_text.return_value = "```\n```"
    result = await service.generate_prompt(b"clip", user_text="trap")
    assert result.source == PromptSource.fallback
    assert result.prompt.startswith("Aggressive trap beat")


def test_factory_uses_settings(settings):
    service = create_prompt_service(settings=settings.model_copy(update={"prompt_max_attempts": 5}))
    assert service._policy.max_attempts == 5


def test_factory_rejects_unknown_provider(settings):
    with pytest.raises(ValueError):
        create_prompt_service("openai", settings=settings)
