"""
Recorder module - countdown / recording / playback session management.

Factory function for creating a recorder controller from settings.
"""

from .capture import CaptureBackend, CaptureDevice, CaptureStream, FeedCaptureBackend, MediaRecorder
from .controller import RecorderController
from .machine import (
    Accept,
    Discard,
    RecorderSnapshot,
    RecorderState,
    SelectDevice,
    Start,
    Stop,
    Teardown,
    Tick,
    transition,
)

__all__ = [
    "Accept",
    "CaptureBackend",
    "CaptureDevice",
    "CaptureStream",
    "Discard",
    "FeedCaptureBackend",
    "MediaRecorder",
    "RecorderController",
    "RecorderSnapshot",
    "RecorderState",
    "SelectDevice",
    "Start",
    "Stop",
    "Teardown",
    "Tick",
    "create_recorder_controller",
    "transition",
]


def create_recorder_controller(settings, backend: CaptureBackend | None = None, **kwargs) -> RecorderController:
    """Create a ``RecorderController`` configured from *settings*.

    Args:
        settings: Application Settings (countdown, ceiling and tick length).
        backend: Capture backend; a new ``FeedCaptureBackend`` when omitted.
        **kwargs: Passed through to ``RecorderController`` (callbacks etc.).
    """
    return RecorderController(
        backend or FeedCaptureBackend(),
        countdown_seconds=settings.countdown_seconds,
        max_seconds=settings.max_recording_seconds,
        tick_interval=settings.recorder_tick_seconds,
        **kwargs,
    )
