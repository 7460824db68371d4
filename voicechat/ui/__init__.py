"""Terminal user interface."""

from .chat_screen import ChatScreen
from .keyboard_input import KeyboardInputHandler

__all__ = [
    "ChatScreen",
    "KeyboardInputHandler",
]
