"""Recording session controller: capture, upload and reply handling for one hold-to-talk cycle."""

import asyncio
import logging
from typing import Optional

from ..audio.capture import AudioCapture
from ..backend.client import BackendClient
from ..models.audio import SILENCE, AmplitudeSample, AudioEncoding
from ..models.backend import BackendFailure, BackendSuccess
from ..models.chat import Message
from ..models.session import ErrorKind, RecordingState, SessionError
from ..storage.recording_files import RecordingFileStore
from .events import SessionEvents
from .transcript import TranscriptStore

logger = logging.getLogger(__name__)


PERMISSION_DENIED_MESSAGE = "Microphone permission not granted."
RECORDING_FAILED_MESSAGE = "Recording failed."
API_ERROR_PREFIX = "API Error: "
PROCESSING_PLACEHOLDER = "User Audio (Processing...)"


class SessionController:
    """Finite-state machine driving one record -> upload -> respond cycle at a time.

    States move idle -> recording -> processing -> idle|error, and error ->
    idle when the next attempt begins. Events that arrive in a state that does
    not accept them are ignored, so duplicate release signals are harmless.

    While recording, the microphone level is sampled every `poll_interval`
    seconds and published on `session_amplitude`. Polling is cancelled
    before any transition out of recording.
    """

    def __init__(
        self,
        capture: AudioCapture,
        backend: BackendClient,
        file_store: RecordingFileStore,
        events: Optional[SessionEvents] = None,
        transcript: Optional[TranscriptStore] = None,
        poll_interval: float = 0.1,
        sample_rate: int = 16000,
        encoding: AudioEncoding = AudioEncoding.OPUS,
    ):
        self.events = events or SessionEvents()
        self.transcript = transcript or TranscriptStore(self.events)

        self._capture = capture
        self._backend = backend
        self._file_store = file_store
        self._poll_interval = poll_interval
        self._sample_rate = sample_rate
        self._encoding = encoding

        self._state = RecordingState.IDLE
        self._error: Optional[SessionError] = None
        self._amplitude = SILENCE
        self._poll_task: Optional[asyncio.Task] = None
        self._starting: Optional[asyncio.Event] = None
        self._attempts = 0
        self._disposed = False

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def error(self) -> Optional[SessionError]:
        return self._error

    @property
    def amplitude(self) -> AmplitudeSample:
        return self._amplitude

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    def _transition(self, state: RecordingState, error: Optional[SessionError] = None) -> None:
        previous = self._state
        self._state = state
        self._error = error
        if error is not None:
            logger.warning(f"Session {previous.value} -> {state.value}: {error.message}")
        else:
            logger.info(f"Session {previous.value} -> {state.value}")
        self.events.publish_state(state, error)

    def _fail(self, kind: ErrorKind, message: str) -> None:
        self._transition(RecordingState.ERROR, SessionError(kind=kind, message=message))

    async def begin_capture(self) -> None:
        """User started holding the talk control."""
        if self._disposed or self._starting is not None:
            logger.debug("Ignoring begin-capture while unavailable")
            return
        if self._state not in (RecordingState.IDLE, RecordingState.ERROR):
            logger.debug(f"Ignoring begin-capture in state {self._state.value}")
            return

        starting = asyncio.Event()
        self._starting = starting
        self._attempts += 1
        logger.info(f"Beginning attempt #{self._attempts}")
        try:
            if self._state is RecordingState.ERROR:
                self._transition(RecordingState.IDLE)

            try:
                granted = await self._capture.has_permission()
            except Exception as e:
                logger.error(f"Permission check failed: {e}")
                granted = False
            if not granted:
                self._fail(ErrorKind.PERMISSION_DENIED, PERMISSION_DENIED_MESSAGE)
                return

            self._transition(RecordingState.RECORDING)
            try:
                await self._capture.start(
                    self._file_store.recording_path(),
                    encoding=self._encoding,
                    sample_rate=self._sample_rate,
                )
            except Exception as e:
                logger.error(f"Could not start capture: {e}")
                self._fail(ErrorKind.CAPTURE_FAILURE, RECORDING_FAILED_MESSAGE)
                return

            self._start_polling()
        finally:
            self._starting = None
            starting.set()

    async def end_capture(self) -> None:
        """User released the talk control."""
        starting = self._starting
        if starting is not None:
            await starting.wait()
        if self._state is not RecordingState.RECORDING:
            logger.debug(f"Ignoring end-capture in state {self._state.value}")
            return

        self._stop_polling()
        self._transition(RecordingState.PROCESSING)

        try:
            path = await self._capture.stop()
        except Exception as e:
            logger.error(f"Error stopping capture: {e}")
            path = None

        if path is None:
            self._fail(ErrorKind.CAPTURE_FAILURE, RECORDING_FAILED_MESSAGE)
            return

        try:
            await self._exchange(path)
        finally:
            await self._file_store.delete(path)

    async def _exchange(self, path: str) -> None:
        try:
            payload = await self._file_store.read_encoded(path)
        except OSError as e:
            logger.error(f"Could not read recording {path}: {e}")
            # A recording was made, so the attempt still leaves a user turn.
            self.transcript.append(Message(text=PROCESSING_PLACEHOLDER, is_user=True))
            self._fail(ErrorKind.CAPTURE_FAILURE, RECORDING_FAILED_MESSAGE)
            return

        # The user turn stays in the transcript whatever the upload outcome.
        self.transcript.append(Message(text=PROCESSING_PLACEHOLDER, is_user=True))

        try:
            result = await self._backend.send_audio(payload)
        except Exception as e:
            logger.exception("Backend client raised instead of returning a failure")
            result = BackendFailure(detail=str(e))

        if isinstance(result, BackendSuccess):
            self.transcript.append(Message(text=result.text, is_user=False))
            self._transition(RecordingState.IDLE)
        else:
            self._fail(ErrorKind.UPLOAD_FAILURE, f"{API_ERROR_PREFIX}{result.detail}")

    def _start_polling(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
        self._poll_task = asyncio.create_task(self._poll_amplitude(), name="amplitude-poll")

    def _stop_polling(self) -> None:
        """Cancel the polling task and publish silence. No sample is delivered after this returns."""
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None
        self._amplitude = SILENCE
        self.events.publish_amplitude(SILENCE)

    async def _poll_amplitude(self) -> None:
        while True:
            await asyncio.sleep(self._poll_interval)
            try:
                sample = await self._capture.get_amplitude()
            except Exception as e:
                logger.debug(f"Amplitude tick skipped: {e}")
                continue
            if self._state is not RecordingState.RECORDING:
                continue
            self._amplitude = sample
            self.events.publish_amplitude(sample)

    async def dispose(self) -> None:
        """Tear down: abandon any recording, release the microphone and HTTP session."""
        if self._disposed:
            return
        starting = self._starting
        if starting is not None:
            await starting.wait()
        self._disposed = True

        if self._state is RecordingState.RECORDING:
            self._stop_polling()
            try:
                path = await self._capture.stop()
            except Exception as e:
                logger.error(f"Error stopping capture during dispose: {e}")
                path = None
            if path is not None:
                await self._file_store.delete(path)
            self._transition(RecordingState.IDLE)

        self._capture.dispose()
        await self._backend.close()
        logger.info("SessionController disposed")
