"""
Media capture abstraction.

A ``CaptureBackend`` enumerates devices, hands out capture streams bound to a
device id and creates recorders that collect media fragments from a stream.
``FeedCaptureBackend`` is the implementation used by the WebSocket recorder:
its streams are fed fragments pushed by the browser.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from vibetune.core.exceptions import CaptureError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureDevice:
    device_id: str
    label: str
    kind: str = "videoinput"

    def to_dict(self) -> dict:
        return {"device_id": self.device_id, "label": self.label, "kind": self.kind}


class MediaRecorder:
    """Collects fragments fed to a stream between ``start()`` and ``stop()``."""

    def __init__(self, mime_type: str = "video/webm") -> None:
        self.mime_type = mime_type
        self._chunks: list[bytes] = []
        self.active = False

    def start(self) -> None:
        self._chunks = []
        self.active = True

    def write(self, data: bytes) -> None:
        if self.active and data:
            self._chunks.append(data)

    def stop(self) -> bytes:
        """Stop recording and return the concatenated clip."""
        self.active = False
        return b"".join(self._chunks)


class CaptureStream:
    """A live stream bound to one device."""

    def __init__(self, device_id: str) -> None:
        self.device_id = device_id
        self.active = True
        self._recorder: MediaRecorder | None = None

    def attach(self, recorder: MediaRecorder) -> None:
        self._recorder = recorder

    def feed(self, data: bytes) -> None:
        if self.active and self._recorder is not None:
            self._recorder.write(data)

    def close(self) -> None:
        self.active = False
        self._recorder = None


class CaptureBackend(ABC):
    """Interface for device enumeration and stream lifecycle."""

    @abstractmethod
    async def list_devices(self) -> list[CaptureDevice]:
        """Return the available capture devices."""

    @abstractmethod
    async def acquire(self, device_id: str | None = None) -> CaptureStream:
        """Open a stream on *device_id* (default device when None).

        Raises:
            CaptureError: If the device is unknown or cannot be opened.
        """

    @abstractmethod
    async def release(self, stream: CaptureStream) -> None:
        """Close *stream*; releasing an already closed stream is a no-op."""

    def create_recorder(self, stream: CaptureStream, mime_type: str = "video/webm") -> MediaRecorder:
        recorder = MediaRecorder(mime_type)
        stream.attach(recorder)
        return recorder


class FeedCaptureBackend(CaptureBackend):
    """Backend whose streams are fed by a remote client.

    Args:
        devices: Devices reported by the client; defaults to a single
            ``default`` camera.
    """

    def __init__(self, devices: list[CaptureDevice] | None = None) -> None:
        self._devices = list(devices) if devices else [CaptureDevice("default", "Default camera")]
        self.open_streams: list[CaptureStream] = []

    def set_devices(self, devices: list[CaptureDevice]) -> None:
        if devices:
            self._devices = list(devices)

    async def list_devices(self) -> list[CaptureDevice]:
        return list(self._devices)

    async def acquire(self, device_id: str | None = None) -> CaptureStream:
        if device_id is None:
            device_id = self._devices[0].device_id
        if not any(d.device_id == device_id for d in self._devices):
            raise CaptureError(f"Unknown capture device: {device_id}")
        stream = CaptureStream(device_id)
        self.open_streams.append(stream)
        logger.debug("Acquired capture stream on %s", device_id)
        return stream

    async def release(self, stream: CaptureStream) -> None:
        stream.close()
        if stream in self.open_streams:
            self.open_streams.remove(stream)
            logger.debug("Released capture stream on %s", stream.device_id)
