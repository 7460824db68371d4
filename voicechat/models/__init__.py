"""Data models for the voice chat client."""

from .audio import SILENCE, AmplitudeSample, AudioEncoding
from .backend import (
    BackendFailure,
    BackendResult,
    BackendSuccess,
    ChatRequest,
    ChatResponse,
)
from .chat import Message
from .session import ErrorKind, RecordingState, SessionError

__all__ = [
    "AmplitudeSample",
    "SILENCE",
    "AudioEncoding",
    "BackendFailure",
    "BackendResult",
    "BackendSuccess",
    "ChatRequest",
    "ChatResponse",
    "Message",
    "ErrorKind",
    "RecordingState",
    "SessionError",
]
