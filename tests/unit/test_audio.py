"""Unit tests for WAV decoding of generated audio."""

import base64

import pytest

from vibetune.core.exceptions import AudioDecodeError
from vibetune.services.music.audio import decode_base64_wav, read_wav


def test_read_wav_metadata(wav_factory):
    audio = read_wav(wav_factory(seconds=2.0, sample_rate=8000, channels=2))
    assert audio.duration == pytest.approx(2.0)
    assert audio.sample_rate == 8000
    assert audio.channels == 2


def test_headers(wav_bytes):
    headers = read_wav(wav_bytes).headers
    assert headers["X-Audio-Duration"] == "1.0"
    assert headers["X-Audio-Sample-Rate"] == "16000"
    assert headers["X-Audio-Channels"] == "1"


def test_decode_base64(wav_bytes):
    audio = decode_base64_wav(base64.b64encode(wav_bytes).decode())
    assert audio.data == wav_bytes


@pytest.mark.parametrize("payload", [None, ""])
def test_missing_payload(payload):
    with pytest.raises(AudioDecodeError, match="No audio data"):
        decode_base64_wav(payload)


def test_invalid_base64():
    with pytest.raises(AudioDecodeError):
        decode_base64_wav("not base64!!")


def test_not_audio():
    with pytest.raises(AudioDecodeError) as exc_info:
        read_wav(b"definitely not a wav file")
    assert exc_info.value.status_code == 500
