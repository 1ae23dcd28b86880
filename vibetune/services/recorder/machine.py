"""
Recorder state machine.

``transition(snapshot, event)`` is a pure function: it returns the next
immutable ``RecorderSnapshot`` and the ordered list of effects the controller
must execute (acquire/release the capture stream, start/stop the tick timer,
start/stop the media recorder, hand the clip off). No I/O happens here.

State diagram::

    idle --start--> countdown --tick x N--> recording --stop / ceiling--> playback
      ^                                                                    |
      +------------------------- discard / accept -------------------------+
"""

from dataclasses import dataclass, replace
from enum import StrEnum

from vibetune.core.exceptions import RecorderStateError

DEFAULT_COUNTDOWN = 3
DEFAULT_MAX_SECONDS = 30


class RecorderState(StrEnum):
    idle = "idle"
    countdown = "countdown"
    recording = "recording"
    playback = "playback"


@dataclass(frozen=True)
class RecorderSnapshot:
    """Immutable recorder state.

    Attributes:
        state: Current state.
        countdown: Ticks left before recording starts.
        elapsed: Seconds recorded so far.
        device_id: Selected capture device (None = backend default).
        has_stream: Whether a capture stream is held.
        countdown_seconds: Countdown length used on ``start``.
        max_seconds: Recording ceiling; reaching it stops automatically.
    """

    state: RecorderState = RecorderState.idle
    countdown: int = 0
    elapsed: int = 0
    device_id: str | None = None
    has_stream: bool = False
    countdown_seconds: int = DEFAULT_COUNTDOWN
    max_seconds: int = DEFAULT_MAX_SECONDS

    def to_dict(self) -> dict:
        return {
            "state": str(self.state),
            "countdown": self.countdown,
            "elapsed": self.elapsed,
            "device_id": self.device_id,
            "max_seconds": self.max_seconds,
        }


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Start:
    device_id: str | None = None
    name = "start"


@dataclass(frozen=True)
class Tick:
    name = "tick"


@dataclass(frozen=True)
class Stop:
    name = "stop"


@dataclass(frozen=True)
class Discard:
    name = "discard"


@dataclass(frozen=True)
class Accept:
    description: str | None = None
    user_id: str | None = None
    name = "accept"


@dataclass(frozen=True)
class SelectDevice:
    device_id: str | None = None
    name = "select_device"


@dataclass(frozen=True)
class Teardown:
    name = "teardown"


Event = Start | Tick | Stop | Discard | Accept | SelectDevice | Teardown


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AcquireStream:
    device_id: str | None = None


@dataclass(frozen=True)
class ReleaseStream:
    pass


@dataclass(frozen=True)
class StartTimer:
    pass


@dataclass(frozen=True)
class StopTimer:
    pass


@dataclass(frozen=True)
class StartRecorder:
    pass


@dataclass(frozen=True)
class StopRecorder:
    pass


@dataclass(frozen=True)
class HandOff:
    description: str | None = None
    user_id: str | None = None


Effect = AcquireStream | ReleaseStream | StartTimer | StopTimer | StartRecorder | StopRecorder | HandOff


# ---------------------------------------------------------------------------
# Transition function
# ---------------------------------------------------------------------------


def _stop_recording(snapshot: RecorderSnapshot) -> tuple[RecorderSnapshot, list[Effect]]:
    # Timer first so no tick can reach a stopped recorder
    return replace(snapshot, state=RecorderState.playback), [StopTimer(), StopRecorder()]


def transition(snapshot: RecorderSnapshot, event: Event) -> tuple[RecorderSnapshot, list[Effect]]:
    """Compute the next snapshot and the effects to run for *event*.

    Raises:
        RecorderStateError: If *event* does not apply in the current state.
    """
    state = snapshot.state

    if isinstance(event, Teardown):
        effects: list[Effect] = []
        if state in (RecorderState.countdown, RecorderState.recording):
            effects.append(StopTimer())
        if state == RecorderState.recording:
            effects.append(StopRecorder())
        if snapshot.has_stream:
            effects.append(ReleaseStream())
        return (
            replace(snapshot, state=RecorderState.idle, countdown=0, elapsed=0, has_stream=False),
            effects,
        )

    if isinstance(event, SelectDevice):
        if state == RecorderState.recording:
            raise RecorderStateError(state, event.name)
        effects = [ReleaseStream(), AcquireStream(event.device_id)] if snapshot.has_stream else []
        return replace(snapshot, device_id=event.device_id), effects

    if state == RecorderState.idle and isinstance(event, Start):
        device_id = event.device_id if event.device_id is not None else snapshot.device_id
        effects = []
        if snapshot.has_stream:
            effects.append(ReleaseStream())
        effects += [AcquireStream(device_id), StartTimer()]
        return (
            replace(
                snapshot,
                state=RecorderState.countdown,
                countdown=snapshot.countdown_seconds,
                elapsed=0,
                device_id=device_id,
                has_stream=True,
            ),
            effects,
        )

    if state == RecorderState.countdown and isinstance(event, Tick):
        remaining = snapshot.countdown - 1
        if remaining > 0:
            return replace(snapshot, countdown=remaining), []
        return (
            replace(snapshot, state=RecorderState.recording, countdown=0, elapsed=0),
            [StopTimer(), StartRecorder(), StartTimer()],
        )

    if state == RecorderState.recording and isinstance(event, Tick):
        elapsed = snapshot.elapsed + 1
        ticked = replace(snapshot, elapsed=elapsed)
        if elapsed >= snapshot.max_seconds:
            return _stop_recording(ticked)
        return ticked, []

    if state == RecorderState.recording and isinstance(event, Stop):
        return _stop_recording(snapshot)

    if state == RecorderState.playback and isinstance(event, Discard):
        return replace(snapshot, state=RecorderState.idle, elapsed=0), []

    if state == RecorderState.playback and isinstance(event, Accept):
        return (
            replace(snapshot, state=RecorderState.idle, elapsed=0),
            [HandOff(event.description, event.user_id)],
        )

    raise RecorderStateError(state, event.name)
