"""
Recorder controller: the effect-execution layer around the pure state machine.

Owns the single capture stream, the media recorder and the 1 s tick timer.
Events are serialized through an ``asyncio.Lock`` so timer ticks and client
commands never interleave.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from vibetune.services.recorder.capture import CaptureBackend, CaptureStream, MediaRecorder
from vibetune.services.recorder.machine import (
    AcquireStream,
    Effect,
    Event,
    HandOff,
    RecorderSnapshot,
    RecorderState,
    ReleaseStream,
    StartRecorder,
    StartTimer,
    StopRecorder,
    StopTimer,
    Teardown,
    Tick,
    transition,
)

logger = logging.getLogger(__name__)

HandOffCallback = Callable[[bytes, str, str | None, str | None], Awaitable[Any]]
ChangeCallback = Callable[[RecorderSnapshot], Awaitable[None]]


class RecorderController:
    """Drive one recording session.

    Args:
        backend: Capture backend providing streams and recorders.
        on_handoff: Awaited with ``(clip, mime_type, description, user_id)``
            when the user accepts a recording.
        on_change: Awaited with the new snapshot after every event.
        countdown_seconds: Countdown length before recording starts.
        max_seconds: Recording ceiling.
        tick_interval: Seconds between timer ticks.
        mime_type: MIME type of the recorded clip.
    """

    def __init__(
        self,
        backend: CaptureBackend,
        on_handoff: HandOffCallback,
        on_change: ChangeCallback | None = None,
        countdown_seconds: int = 3,
        max_seconds: int = 30,
        tick_interval: float = 1.0,
        mime_type: str = "video/webm",
    ) -> None:
        self._backend = backend
        self._on_handoff = on_handoff
        self._on_change = on_change
        self._tick_interval = tick_interval
        self.mime_type = mime_type
        self._snapshot = RecorderSnapshot(countdown_seconds=countdown_seconds, max_seconds=max_seconds)
        self._lock = asyncio.Lock()
        self._stream: CaptureStream | None = None
        self._recorder: MediaRecorder | None = None
        self._timer_task: asyncio.Task | None = None
        self._clip: bytes = b""
        self.handoff_result: Any = None

    @property
    def snapshot(self) -> RecorderSnapshot:
        return self._snapshot

    @property
    def stream(self) -> CaptureStream | None:
        return self._stream

    @property
    def clip(self) -> bytes:
        return self._clip

    def feed(self, data: bytes) -> None:
        """Push a media fragment received from the client into the stream."""
        if self._stream is not None:
            self._stream.feed(data)

    async def dispatch(self, event: Event) -> RecorderSnapshot:
        """Apply *event* and execute the resulting effects in order.

        Raises:
            RecorderStateError: If the event does not apply (state unchanged).
        """
        async with self._lock:
            snapshot, effects = transition(self._snapshot, event)
            self._snapshot = snapshot
            try:
                for effect in effects:
                    await self._execute(effect)
            except Exception:
                logger.exception("Recorder effect failed; tearing down session")
                await self._reset()
                raise
            finally:
                if self._on_change is not None:
                    await self._on_change(self._snapshot)
            return self._snapshot

    async def close(self) -> None:
        """Tear the session down (client disconnected)."""
        await self.dispatch(Teardown())

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    async def _execute(self, effect: Effect) -> None:
        if isinstance(effect, AcquireStream):
            if self._stream is not None:
                await self._release_stream()
            self._stream = await self._backend.acquire(effect.device_id)
        elif isinstance(effect, ReleaseStream):
            await self._release_stream()
        elif isinstance(effect, StartTimer):
            self._start_timer()
        elif isinstance(effect, StopTimer):
            self._stop_timer()
        elif isinstance(effect, StartRecorder):
            self._start_recorder()
        elif isinstance(effect, StopRecorder):
            self._stop_recorder()
        elif isinstance(effect, HandOff):
            clip, self._clip = self._clip, b""
            self.handoff_result = await self._on_handoff(
                clip, self.mime_type, effect.description, effect.user_id
            )
        else:
            raise TypeError(f"Unknown recorder effect: {effect!r}")

    async def _release_stream(self) -> None:
        if self._stream is not None:
            stream, self._stream = self._stream, None
            await self._backend.release(stream)

    def _start_recorder(self) -> None:
        if self._recorder is not None:
            self._stop_recorder()
        if self._stream is None:
            raise RuntimeError("Cannot start recorder without a capture stream")
        self._clip = b""
        self._recorder = self._backend.create_recorder(self._stream, self.mime_type)
        self._recorder.start()

    def _stop_recorder(self) -> None:
        if self._recorder is not None:
            recorder, self._recorder = self._recorder, None
            self._clip = recorder.stop()
            logger.info("Recorded clip: %d bytes", len(self._clip))

    def _start_timer(self) -> None:
        self._stop_timer()
        self._timer_task = asyncio.create_task(self._run_timer())

    def _stop_timer(self) -> None:
        task, self._timer_task = self._timer_task, None
        # A tick that stops the timer is running inside that timer task
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _run_timer(self) -> None:
        me = asyncio.current_task()
        while self._timer_task is me:
            await asyncio.sleep(self._tick_interval)
            if self._timer_task is not me:
                return
            try:
                await self.dispatch(Tick())
            except Exception:
                logger.exception("Recorder tick failed")
                return

    async def _reset(self) -> None:
        self._stop_timer()
        if self._recorder is not None:
            self._recorder.stop()
            self._recorder = None
        await self._release_stream()
        self._snapshot = RecorderSnapshot(
            state=RecorderState.idle,
            device_id=self._snapshot.device_id,
            countdown_seconds=self._snapshot.countdown_seconds,
            max_seconds=self._snapshot.max_seconds,
        )
