"""Session state models."""

from dataclasses import dataclass
from enum import Enum


class RecordingState(Enum):
    """State of the recording session controller."""
    IDLE = "idle"
    RECORDING = "recording"
    PROCESSING = "processing"
    ERROR = "error"


class ErrorKind(Enum):
    """Kind of failure that put the session into the error state."""
    PERMISSION_DENIED = "permission_denied"
    CAPTURE_FAILURE = "capture_failure"
    UPLOAD_FAILURE = "upload_failure"


@dataclass(frozen=True)
class SessionError:
    """User-facing error for the last attempt."""
    kind: ErrorKind
    message: str
