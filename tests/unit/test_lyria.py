"""Unit tests for the Lyria music generator (HTTP faked with MockTransport)."""

import base64
import json

import httpx
import pytest

from vibetune.core.exceptions import (
    AudioDecodeError,
    UpstreamError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from vibetune.services.music import create_music_generator
from vibetune.services.music.lyria import LyriaGenerator

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _generator(handler, **kwargs) -> LyriaGenerator:
    return LyriaGenerator(
        project="proj",
        location="us-central1",
        model="lyria-002",
        access_token=kwargs.pop("access_token", "tok"),
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _ok(wav_bytes):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"predictions": [{"bytesBase64Encoded": base64.b64encode(wav_bytes).decode()}]}
        )

    return handler


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestLyriaRequest:
    async def test_posts_prompt_with_bearer_token(self, wav_bytes):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return _ok(wav_bytes)(request)

        gen = _generator(handler)
        audio = await gen.generate("calm piano", "drums")
        await gen.aclose()

        assert seen["url"] == (
            "https://us-central1-aiplatform.googleapis.com/v1/projects/proj"
            "/locations/us-central1/publishers/google/models/lyria-002:predict"
        )
        assert seen["auth"] == "Bearer tok"
        assert seen["body"] == {
            "instances": [{"prompt": "calm piano", "negative_prompt": "drums"}],
            "parameters": {},
        }
        assert audio.data == wav_bytes
        assert audio.sample_rate == 16000

    async def test_negative_prompt_defaults_to_empty(self, wav_bytes):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return _ok(wav_bytes)(request)

        await _generator(handler).generate("x")
        assert bodies[0]["instances"][0]["negative_prompt"] == ""

    async def test_token_provider_preferred(self, wav_bytes):
        async def provider() -> str:
            return "fresh"

        headers = []

        def handler(request):
            headers.append(request.headers["authorization"])
            return _ok(wav_bytes)(request)

        await _generator(handler, token_provider=provider).generate("x")
        assert headers == ["Bearer fresh"]

    async def test_missing_token(self, wav_bytes):
        gen = _generator(_ok(wav_bytes), access_token="")
        with pytest.raises(UpstreamError, match="access token"):
            await gen.generate("x")


class TestLyriaErrors:
    async def test_http_error_forwards_status_and_message(self):
        def handler(request):
            return httpx.Response(429, json={"error": {"message": "Quota exceeded"}})

        with pytest.raises(UpstreamError) as exc_info:
            await _generator(handler).generate("x")
        assert exc_info.value.status_code == 429
        assert exc_info.value.detail == "Quota exceeded"

    async def test_http_error_without_body(self):
        def handler(request):
            return httpx.Response(400, text="")

        with pytest.raises(UpstreamError, match="Failed to generate song"):
            await _generator(handler).generate("x")

    async def test_timeout_maps_to_408(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(UpstreamTimeoutError) as exc_info:
            await _generator(handler).generate("x")
        assert exc_info.value.status_code == 408

    async def test_connect_error_maps_to_503(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        with pytest.raises(UpstreamUnavailableError) as exc_info:
            await _generator(handler).generate("x")
        assert exc_info.value.status_code == 503

    async def test_missing_audio_payload(self):
        def handler(request):
            return httpx.Response(200, json={"predictions": [{}]})

        with pytest.raises(AudioDecodeError, match="No audio data"):
            await _generator(handler).generate("x")

    async def test_non_object_body(self):
        def handler(request):
            return httpx.Response(200, json=["not", "an", "object"])

        with pytest.raises(UpstreamError) as exc_info:
            await _generator(handler).generate("x")
        assert exc_info.value.status_code == 502

    @pytest.mark.parametrize("predictions", [["raw-string"], [], "oops", None])
    async def test_malformed_predictions(self, predictions):
        def handler(request):
            return httpx.Response(200, json={"predictions": predictions})

        with pytest.raises(AudioDecodeError):
            await _generator(handler).generate("x")


def test_factory_rejects_unknown_provider():
    with pytest.raises(ValueError):
        create_music_generator("musicgen")
