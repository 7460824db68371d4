"""Publishes session events to observers using a private pypubsub publisher."""

import logging
from typing import Callable, Optional

from pubsub.core import Publisher

from ..models.audio import AmplitudeSample
from ..models.chat import Message
from ..models.session import RecordingState, SessionError

logger = logging.getLogger(__name__)


STATE_TOPIC = "session_state"
AMPLITUDE_TOPIC = "session_amplitude"
MESSAGE_TOPIC = "transcript_message"


# Prototype listeners fix each topic's message signature up front.
def _state_listener(state: RecordingState, error: Optional[SessionError]):
    pass


def _amplitude_listener(sample: AmplitudeSample):
    pass


def _message_listener(message: Message):
    pass


class SessionEvents:
    """Event hub for one session controller.

    Listeners are held weakly by pypubsub, so callers must keep a reference
    to whatever they subscribe.
    """

    def __init__(self, publisher: Optional[Publisher] = None):
        self.publisher = publisher or Publisher()
        topic_mgr = self.publisher.getTopicMgr()
        topic_mgr.getOrCreateTopic(STATE_TOPIC, _state_listener)
        topic_mgr.getOrCreateTopic(AMPLITUDE_TOPIC, _amplitude_listener)
        topic_mgr.getOrCreateTopic(MESSAGE_TOPIC, _message_listener)

    def subscribe_state(self, listener: Callable[[RecordingState, Optional[SessionError]], None]) -> None:
        self.publisher.subscribe(listener, STATE_TOPIC)

    def subscribe_amplitude(self, listener: Callable[[AmplitudeSample], None]) -> None:
        self.publisher.subscribe(listener, AMPLITUDE_TOPIC)

    def subscribe_messages(self, listener: Callable[[Message], None]) -> None:
        self.publisher.subscribe(listener, MESSAGE_TOPIC)

    def unsubscribe_all(self) -> None:
        for topic in (STATE_TOPIC, AMPLITUDE_TOPIC, MESSAGE_TOPIC):
            self.publisher.getTopicMgr().getTopic(topic).unsubscribeAllListeners()

    def publish_state(self, state: RecordingState, error: Optional[SessionError]) -> None:
        self.publisher.sendMessage(STATE_TOPIC, state=state, error=error)

    def publish_amplitude(self, sample: AmplitudeSample) -> None:
        self.publisher.sendMessage(AMPLITUDE_TOPIC, sample=sample)

    def publish_message(self, message: Message) -> None:
        self.publisher.sendMessage(MESSAGE_TOPIC, message=message)
        logger.debug(f"Published message (user={message.is_user})")
