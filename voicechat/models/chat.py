"""Chat transcript models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Message:
    """A single chat message. Immutable once created."""
    text: str
    is_user: bool
