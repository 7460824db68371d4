"""Unit tests for the keyboard input thread."""

from unittest.mock import patch

import pytest

from voicechat.ui.keyboard_input import KeyboardInputHandler


@pytest.mark.unit
class TestKeyboardInputHandler:

    def test_keys_reach_callback_until_quit(self):
        received = []

        def callback(key):
            received.append(key)
            return key != 'q'

        handler = KeyboardInputHandler(callback)
        keys = iter([None, ' ', None, ' ', 'q', 'x'])
        with patch.object(handler, '_get_key', side_effect=lambda: next(keys)):
            handler.start()
            handler.thread.join(timeout=2.0)

        assert received == [' ', ' ', 'q']
        assert handler.running is False

    def test_read_error_ends_loop(self):
        handler = KeyboardInputHandler(lambda key: True)
        with patch.object(handler, '_get_key', side_effect=OSError("not a tty")):
            handler.start()
            handler.thread.join(timeout=2.0)

        assert handler.running is False

    def test_start_twice_keeps_one_thread(self):
        handler = KeyboardInputHandler(lambda key: True)
        with patch.object(handler, '_get_key', return_value=None):
            handler.start()
            first = handler.thread
            handler.start()
            assert handler.thread is first
            handler.stop()

        assert not first.is_alive()
