"""
VibeTune exception hierarchy.

All application-specific exceptions inherit from VibeTuneError,
enabling centralized error handling in the API middleware layer.
"""

from datetime import UTC, datetime


class VibeTuneError(Exception):
    """Base exception for all VibeTune errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "VIBETUNE_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


class MissingFieldError(VibeTuneError):
    """Raised when a required request field is absent or blank."""

    def __init__(self, field: str, detail: str | None = None) -> None:
        self.field = field
        super().__init__(
            detail=detail or f"{field} is required",
            code="MISSING_FIELD",
            status_code=400,
        )


class SongNotFoundError(VibeTuneError):
    """Raised when a song ID does not exist."""

    def __init__(self, song_id: str) -> None:
        super().__init__(
            detail=f"Song not found: {song_id}",
            code="SONG_NOT_FOUND",
            status_code=404,
        )


class InvalidStatusTransitionError(VibeTuneError):
    """Raised when a song status change would leave a terminal state."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            detail=f"Cannot change song status from {current} to {requested}",
            code="INVALID_STATUS_TRANSITION",
            status_code=409,
        )


class JobAlreadyRunningError(VibeTuneError):
    """Raised when a generation job is already in flight for a song."""

    def __init__(self, song_id: str) -> None:
        super().__init__(
            detail=f"A generation job is already running for song {song_id}",
            code="JOB_ALREADY_RUNNING",
            status_code=409,
        )


class RecorderStateError(VibeTuneError):
    """Raised when a recorder event does not apply to the current state."""

    def __init__(self, state: str, event: str) -> None:
        self.state = state
        self.event = event
        super().__init__(
            detail=f"Cannot handle '{event}' while recorder is {state}",
            code="RECORDER_STATE_ERROR",
            status_code=409,
        )


class CaptureError(VibeTuneError):
    """Raised when a capture stream cannot be acquired."""

    def __init__(self, detail: str = "Capture device unavailable") -> None:
        super().__init__(detail=detail, code="CAPTURE_ERROR", status_code=500)


class UpstreamError(VibeTuneError):
    """Raised when a remote model answers with an error.

    ``status_code`` mirrors the upstream status so that callers see the same
    4xx/5xx the model returned.
    """

    def __init__(self, detail: str = "Upstream service error", status_code: int = 500) -> None:
        super().__init__(detail=detail, code="UPSTREAM_ERROR", status_code=status_code)


class UpstreamUnavailableError(VibeTuneError):
    """Raised when a remote model cannot be reached."""

    def __init__(self, detail: str = "Failed to connect to AI service") -> None:
        super().__init__(detail=detail, code="UPSTREAM_UNAVAILABLE", status_code=503)


class UpstreamTimeoutError(VibeTuneError):
    """Raised when a remote model does not answer in time."""

    def __init__(self, detail: str = "Request timeout - music generation took too long") -> None:
        super().__init__(detail=detail, code="UPSTREAM_TIMEOUT", status_code=408)


class AudioDecodeError(VibeTuneError):
    """Raised when a generated audio payload is missing or malformed."""

    def __init__(self, detail: str = "Failed to decode audio data") -> None:
        super().__init__(detail=detail, code="AUDIO_DECODE_ERROR", status_code=500)


class StorageError(VibeTuneError):
    """Raised when an object-store write or delete fails."""

    def __init__(self, detail: str = "Storage operation failed") -> None:
        super().__init__(detail=detail, code="STORAGE_ERROR", status_code=500)
