"""Recording session layer: controller, transcript and observer events."""

from .controller import SessionController
from .events import SessionEvents
from .transcript import TranscriptStore

__all__ = [
    "SessionController",
    "SessionEvents",
    "TranscriptStore",
]
