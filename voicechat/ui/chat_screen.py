"""Terminal chat screen: transcript bubbles, level meter and hold-to-talk control."""

import asyncio
import logging
from typing import List, Optional, Set

from rich.align import Align
from rich.console import Console, Group
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.text import Text

from ..models.audio import SILENCE, AmplitudeSample
from ..models.chat import Message
from ..models.session import RecordingState, SessionError
from ..session.controller import SessionController
from .keyboard_input import KeyboardInputHandler

logger = logging.getLogger(__name__)

STATE_STYLES = {
    RecordingState.IDLE: ("READY", "bold green"),
    RecordingState.RECORDING: ("RECORDING", "bold red"),
    RecordingState.PROCESSING: ("PROCESSING", "bold yellow"),
    RecordingState.ERROR: ("ERROR", "bold magenta"),
}


class ChatScreen:
    """Rich live view over a SessionController.

    Terminals do not report key release, so SPACE toggles the hold: the first
    press begins capture and the next one ends it.
    """

    def __init__(self, controller: SessionController, console: Optional[Console] = None):
        self.controller = controller
        self.console = console or Console()

        self.messages: List[Message] = list(controller.transcript.messages)
        self.state = controller.state
        self.error: Optional[SessionError] = controller.error
        self.level: AmplitudeSample = SILENCE

        self._tasks: Set[asyncio.Task] = set()
        self._holding = False
        self._begin_task: Optional[asyncio.Task] = None
        self._quit: Optional[asyncio.Event] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

        controller.events.subscribe_state(self.on_state)
        controller.events.subscribe_amplitude(self.on_amplitude)
        controller.events.subscribe_messages(self.on_message)

    def on_state(self, state: RecordingState, error: Optional[SessionError]) -> None:
        self.state = state
        self.error = error

    def on_amplitude(self, sample: AmplitudeSample) -> None:
        self.level = sample

    def on_message(self, message: Message) -> None:
        self.messages.append(message)

    def render_header(self) -> Panel:
        label, style = STATE_STYLES[self.state]
        header = Text.assemble(("Voice AI Chat", "bold blue"), "  |  ", (label, style))
        return Panel(Align.center(header), style="bright_blue")

    def render_transcript(self, max_messages: int = 20) -> Panel:
        if not self.messages:
            body = Text("Press SPACE to talk, again to send",
                        style="dim italic")
            return Panel(body, title="Chat", border_style="blue")

        bubbles = []
        for message in self.messages[-max_messages:]:
            if message.is_user:
                bubble = Panel(Text(message.text), border_style="cyan", expand=False)
                bubbles.append(Align.right(bubble))
            else:
                bubble = Panel(Text(message.text), border_style="white", expand=False)
                bubbles.append(Align.left(bubble))
        return Panel(Group(*bubbles), title="Chat", border_style="blue")

    def render_status(self) -> Group:
        parts = []
        if self.state is RecordingState.RECORDING:
            parts.append(ProgressBar(total=100, completed=self.level.level * 100))
        elif self.state is RecordingState.PROCESSING:
            parts.append(Text("Sending audio...", style="yellow italic"))
        if self.error is not None:
            parts.append(Text(self.error.message, style="bold red"))
        controls = Text.assemble(
            ("SPACE", "bold green"), " Talk/Send  ",
            ("Q", "bold red"), " Quit",
        )
        parts.append(Align.center(controls))
        return Group(*parts)

    def render(self) -> Layout:
        layout = Layout()
        layout.split_column(
            Layout(self.render_header(), name="header", size=3),
            Layout(self.render_transcript(), name="transcript", ratio=1),
            Layout(self.render_status(), name="status", size=3),
        )
        return layout

    def dispatch_key(self, key: str) -> None:
        """Apply a key on the event loop thread."""
        if key == 'q':
            logger.info("Quit key pressed")
            if self._quit is not None:
                self._quit.set()
            return
        if key not in (' ', '\n', '\r'):
            logger.debug(f"Unhandled key: {key!r}")
            return

        starting = self._begin_task is not None and not self._begin_task.done()
        # A press while a start is still pending is a release, not a second start.
        if self._holding and (starting or self.controller.state is RecordingState.RECORDING):
            self._holding = False
            task = asyncio.get_running_loop().create_task(self.controller.end_capture())
        else:
            self._holding = True
            task = asyncio.get_running_loop().create_task(self.controller.begin_capture())
            self._begin_task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _on_key(self, key: str) -> bool:
        """Input-thread callback; hands the key to the loop."""
        self._loop.call_soon_threadsafe(self.dispatch_key, key)
        return key != 'q'

    async def run(self, refresh_interval: float = 0.1) -> None:
        """Run the screen until the user quits."""
        self._loop = asyncio.get_running_loop()
        self._quit = asyncio.Event()
        input_handler = KeyboardInputHandler(self._on_key)
        input_handler.start()

        try:
            with Live(self.render(), console=self.console, screen=True,
                      auto_refresh=False) as live:
                while not self._quit.is_set():
                    live.update(self.render(), refresh=True)
                    try:
                        await asyncio.wait_for(self._quit.wait(), timeout=refresh_interval)
                    except asyncio.TimeoutError:
                        pass
        finally:
            input_handler.stop()
            if self._tasks:
                await asyncio.gather(*self._tasks, return_exceptions=True)
            logger.info("ChatScreen closed")
