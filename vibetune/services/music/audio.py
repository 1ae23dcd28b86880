"""WAV payload decoding for generated songs.

The music model returns base64-encoded WAV bytes; this module decodes them
and reads the header metadata surfaced to clients as response headers.
"""

import base64
import binascii
import io
from dataclasses import dataclass

import soundfile as sf

from vibetune.core.exceptions import AudioDecodeError


@dataclass(frozen=True)
class GeneratedAudio:
    """A decoded audio artifact with its metadata."""

    data: bytes
    duration: float
    sample_rate: int
    channels: int

    @property
    def headers(self) -> dict[str, str]:
        """Metadata headers attached to WAV responses."""
        return {
            "X-Audio-Duration": str(self.duration),
            "X-Audio-Sample-Rate": str(self.sample_rate),
            "X-Audio-Channels": str(self.channels),
        }


def read_wav(data: bytes) -> GeneratedAudio:
    """Read metadata from raw WAV bytes.

    Raises:
        AudioDecodeError: If the bytes are not a readable audio file.
    """
    if not data:
        raise AudioDecodeError("No audio data received from AI model")
    try:
        info = sf.info(io.BytesIO(data))
    except (RuntimeError, TypeError) as exc:
        raise AudioDecodeError(f"Failed to decode audio data: {exc}") from exc
    if info.samplerate <= 0:
        raise AudioDecodeError(f"Invalid sample rate: {info.samplerate}")
    return GeneratedAudio(
        data=data,
        duration=info.frames / info.samplerate,
        sample_rate=int(info.samplerate),
        channels=int(info.channels),
    )


def decode_base64_wav(payload: str | None) -> GeneratedAudio:
    """Decode a base64 WAV payload and read its metadata."""
    if not payload:
        raise AudioDecodeError("No audio data received from AI model")
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise AudioDecodeError("Failed to decode audio data") from exc
    return read_wav(data)
