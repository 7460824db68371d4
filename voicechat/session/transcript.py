"""Append-only chat transcript."""

import logging
from typing import List, Optional, Tuple

from ..models.chat import Message
from .events import SessionEvents

logger = logging.getLogger(__name__)


class TranscriptStore:
    """Ordered log of exchanged messages.

    No deletion, reordering or deduplication. Every append is published to
    `transcript_message` subscribers in call order.
    """

    def __init__(self, events: Optional[SessionEvents] = None):
        self.events = events
        self._messages: List[Message] = []

    def append(self, message: Message) -> None:
        self._messages.append(message)
        logger.info(f"Transcript +{'user' if message.is_user else 'assistant'} "
                    f"message (#{len(self._messages)})")
        if self.events is not None:
            self.events.publish_message(message)

    @property
    def messages(self) -> Tuple[Message, ...]:
        """Read-only snapshot in insertion order."""
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self):
        return iter(tuple(self._messages))
