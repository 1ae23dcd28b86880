"""Unit tests for the pure recorder state machine."""

import pytest

from vibetune.core.exceptions import RecorderStateError
from vibetune.services.recorder.machine import (
    Accept,
    AcquireStream,
    Discard,
    HandOff,
    RecorderSnapshot,
    RecorderState,
    ReleaseStream,
    SelectDevice,
    Start,
    StartRecorder,
    StartTimer,
    Stop,
    StopRecorder,
    StopTimer,
    Teardown,
    Tick,
    transition,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(snapshot: RecorderSnapshot, *events):
    """Apply events in order, returning the final snapshot and all effects."""
    effects = []
    for event in events:
        snapshot, produced = transition(snapshot, event)
        effects.extend(produced)
    return snapshot, effects


def _recording(**kwargs) -> RecorderSnapshot:
    snapshot, _ = _run(RecorderSnapshot(**kwargs), Start(), Tick(), Tick(), Tick())
    assert snapshot.state == RecorderState.recording
    return snapshot


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestStartAndCountdown:
    def test_start_acquires_stream_and_starts_countdown(self):
        snapshot, effects = transition(RecorderSnapshot(), Start("cam-1"))
        assert snapshot.state == RecorderState.countdown
        assert snapshot.countdown == 3
        assert snapshot.device_id == "cam-1"
        assert snapshot.has_stream
        assert effects == [AcquireStream("cam-1"), StartTimer()]

    def test_countdown_ticks_down(self):
        snapshot, effects = _run(RecorderSnapshot(), Start(), Tick())
        assert snapshot.state == RecorderState.countdown
        assert snapshot.countdown == 2

    def test_countdown_reaches_recording(self):
        snapshot, _ = _run(RecorderSnapshot(), Start(), Tick(), Tick())
        snapshot, effects = transition(snapshot, Tick())
        assert snapshot.state == RecorderState.recording
        assert snapshot.elapsed == 0
        assert effects == [StopTimer(), StartRecorder(), StartTimer()]

    def test_start_uses_selected_device(self):
        snapshot, _ = transition(RecorderSnapshot(), SelectDevice("cam-2"))
        _, effects = transition(snapshot, Start())
        assert effects[0] == AcquireStream("cam-2")

    def test_restart_releases_previous_stream_first(self):
        snapshot = _recording()
        snapshot, _ = _run(snapshot, Stop(), Discard())
        assert snapshot.has_stream
        _, effects = transition(snapshot, Start())
        assert effects[:2] == [ReleaseStream(), AcquireStream(None)]
        assert sum(isinstance(e, AcquireStream) for e in effects) == 1


class TestRecording:
    def test_tick_counts_seconds(self):
        snapshot, effects = _run(_recording(), Tick(), Tick())
        assert snapshot.elapsed == 2
        assert effects == []

    def test_stop_orders_timer_before_recorder(self):
        snapshot, effects = transition(_recording(), Stop())
        assert snapshot.state == RecorderState.playback
        assert effects == [StopTimer(), StopRecorder()]

    def test_auto_stop_at_exactly_thirty_seconds(self):
        snapshot = _recording()
        snapshot, effects = _run(snapshot, *[Tick()] * 29)
        assert snapshot.state == RecorderState.recording
        assert snapshot.elapsed == 29
        assert effects == []

        snapshot, effects = transition(snapshot, Tick())
        assert snapshot.state == RecorderState.playback
        assert snapshot.elapsed == 30
        assert effects == [StopTimer(), StopRecorder()]

    def test_custom_ceiling(self):
        snapshot, _ = _run(_recording(max_seconds=5), *[Tick()] * 5)
        assert snapshot.state == RecorderState.playback


class TestPlayback:
    def test_discard_returns_to_idle(self):
        snapshot, effects = _run(_recording(), Stop(), Discard())
        assert snapshot.state == RecorderState.idle
        assert not any(isinstance(e, HandOff) for e in effects)

    def test_accept_hands_off(self):
        snapshot, _ = transition(_recording(), Stop())
        snapshot, effects = transition(snapshot, Accept("beach day", "u1"))
        assert snapshot.state == RecorderState.idle
        assert effects == [HandOff("beach day", "u1")]


# ---------------------------------------------------------------------------
# Device switching and teardown
# ---------------------------------------------------------------------------


class TestSelectDevice:
    def test_idle_without_stream_only_records_choice(self):
        snapshot, effects = transition(RecorderSnapshot(), SelectDevice("cam-2"))
        assert snapshot.device_id == "cam-2"
        assert effects == []

    def test_reacquires_held_stream(self):
        snapshot, _ = transition(RecorderSnapshot(), Start("cam-1"))
        snapshot, effects = transition(snapshot, SelectDevice("cam-2"))
        assert effects == [ReleaseStream(), AcquireStream("cam-2")]
        assert snapshot.state == RecorderState.countdown

    def test_rejected_while_recording(self):
        with pytest.raises(RecorderStateError) as exc_info:
            transition(_recording(), SelectDevice("cam-2"))
        assert exc_info.value.status_code == 409
        assert exc_info.value.event == "select_device"


class TestTeardown:
    def test_from_recording(self):
        snapshot, effects = transition(_recording(), Teardown())
        assert snapshot.state == RecorderState.idle
        assert not snapshot.has_stream
        assert effects == [StopTimer(), StopRecorder(), ReleaseStream()]

    def test_from_countdown(self):
        snapshot, _ = transition(RecorderSnapshot(), Start())
        _, effects = transition(snapshot, Teardown())
        assert effects == [StopTimer(), ReleaseStream()]

    def test_from_fresh_idle_is_noop(self):
        snapshot, effects = transition(RecorderSnapshot(), Teardown())
        assert snapshot.state == RecorderState.idle
        assert effects == []


class TestInvalidEvents:
    @pytest.mark.parametrize("event", [Tick(), Stop(), Discard(), Accept()])
    def test_idle_rejects(self, event):
        with pytest.raises(RecorderStateError):
            transition(RecorderSnapshot(), event)

    def test_double_start_rejected(self):
        snapshot, _ = transition(RecorderSnapshot(), Start())
        with pytest.raises(RecorderStateError) as exc_info:
            transition(snapshot, Start())
        assert exc_info.value.state == "countdown"

    def test_stop_during_countdown_rejected(self):
        snapshot, _ = transition(RecorderSnapshot(), Start())
        with pytest.raises(RecorderStateError):
            transition(snapshot, Stop())

    def test_playback_rejects_start(self):
        snapshot, _ = transition(_recording(), Stop())
        with pytest.raises(RecorderStateError):
            transition(snapshot, Start())


def test_snapshot_to_dict():
    data = RecorderSnapshot(device_id="cam-1").to_dict()
    assert data == {
        "state": "idle",
        "countdown": 0,
        "elapsed": 0,
        "device_id": "cam-1",
        "max_seconds": 30,
    }
