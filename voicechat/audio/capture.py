"""Microphone capture to an encoded file with live amplitude sampling."""

import asyncio
import logging
from pathlib import Path
from threading import Event, Lock, Thread
from typing import Optional

import numpy as np
import pyaudio
import soundfile as sf

from ..models.audio import SILENCE, AmplitudeSample, AudioEncoding


logger = logging.getLogger(__name__)

INT16_FULL_SCALE = 32768.0


class AudioCapture:
    """Records the default microphone to a file on a background thread.

    The public coroutines are the surface the session controller uses;
    blocking PortAudio and file work is pushed to worker threads.
    """

    def __init__(
        self,
        chunk_size: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
    ):
        """Initialize audio capture.

        Args:
            chunk_size: Size of each audio chunk in samples
            channels: Number of audio channels (1 for mono)
            format: PortAudio sample format (16-bit signed int)
        """
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format

        # Recording thread management
        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False

        self.output_path: Optional[str] = None
        self.sample_rate: Optional[int] = None
        self.frames_written = 0

        self._level = 0.0
        self._level_lock = Lock()
        self._failure: Optional[BaseException] = None

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self._stream = None
        self._writer: Optional[sf.SoundFile] = None
        self._disposed = False

    def _get_pyaudio(self) -> pyaudio.PyAudio:
        if self.pyaudio_instance is None:
            self.pyaudio_instance = pyaudio.PyAudio()
        return self.pyaudio_instance

    async def has_permission(self) -> bool:
        """Whether a microphone can be opened for input."""
        return await asyncio.to_thread(self._probe_input_device)

    def _probe_input_device(self) -> bool:
        try:
            info = self._get_pyaudio().get_default_input_device_info()
        except OSError as e:
            logger.warning(f"No usable input device: {e}")
            return False
        return int(info.get('maxInputChannels', 0)) > 0

    async def start(
        self,
        output_path: str,
        encoding: AudioEncoding = AudioEncoding.OPUS,
        sample_rate: int = 16000,
    ) -> None:
        """Start recording to `output_path`.

        Raises:
            RuntimeError: If the capture was disposed
            OSError: If the input stream or output file cannot be opened
        """
        if self._disposed:
            raise RuntimeError("AudioCapture has been disposed")
        if self.is_recording:
            logger.warning("Recording already in progress")
            return
        await asyncio.to_thread(self._open, output_path, encoding, sample_rate)

    def _open(self, output_path: str, encoding: AudioEncoding, sample_rate: int) -> None:
        logger.info(f"Starting audio recording to {output_path} "
                    f"({encoding.container}/{encoding.codec}, {sample_rate}Hz)")
        self._writer = sf.SoundFile(
            output_path,
            mode='w',
            samplerate=sample_rate,
            channels=self.channels,
            format=encoding.container,
            subtype=encoding.codec,
        )
        try:
            self._stream = self._get_pyaudio().open(
                format=self.format,
                channels=self.channels,
                rate=sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size,
            )
        except Exception:
            self._writer.close()
            self._writer = None
            Path(output_path).unlink(missing_ok=True)
            raise

        self.output_path = output_path
        self.sample_rate = sample_rate
        self.frames_written = 0
        self._failure = None
        self._set_level(0.0)
        self.stop_event.clear()

        self.recording_thread = Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = "AudioCaptureThread"
        self.recording_thread.start()
        self.is_recording = True

    def _record_continuously(self) -> None:
        """Internal method: continuous recording loop in background thread."""
        try:
            while not self.stop_event.is_set():
                audio_chunk = self._stream.read(self.chunk_size, exception_on_overflow=False)
                samples = np.frombuffer(audio_chunk, dtype=np.int16)
                if samples.size == 0:
                    continue
                self._set_level(np.abs(samples.astype(np.int32)).max() / INT16_FULL_SCALE)
                self._writer.write(samples.reshape(-1, self.channels))
                self.frames_written += samples.size // self.channels
        except Exception as e:
            logger.error(f"Error in recording loop: {e}")
            self._failure = e

    def _set_level(self, level: float) -> None:
        with self._level_lock:
            self._level = float(level)

    async def get_amplitude(self) -> AmplitudeSample:
        """Latest chunk peak, normalized to 0.0-1.0."""
        if not self.is_recording:
            return SILENCE
        with self._level_lock:
            return AmplitudeSample(self._level)

    async def stop(self) -> Optional[str]:
        """Stop recording and return the file path, or None if nothing usable was recorded."""
        if not self.is_recording:
            logger.warning("No recording in progress")
            return None
        return await asyncio.to_thread(self._stop_blocking)

    def _stop_blocking(self) -> Optional[str]:
        logger.info("Stopping audio recording")
        self.stop_event.set()

        if self.recording_thread and self.recording_thread.is_alive():
            self.recording_thread.join(timeout=2.0)
            if self.recording_thread.is_alive():
                logger.warning("Recording thread did not stop cleanly")

        try:
            if self._stream is not None:
                self._stream.stop_stream()
                self._stream.close()
        except Exception as e:
            logger.error(f"Error closing input stream: {e}")
        finally:
            self._stream = None

        try:
            if self._writer is not None:
                self._writer.close()
        except Exception as e:
            logger.error(f"Error finalizing recording: {e}")
            self._failure = self._failure or e
        finally:
            self._writer = None

        self.is_recording = False
        self._set_level(0.0)
        path = self.output_path
        self.output_path = None
        logger.info(f"Recording stopped. Frames written: {self.frames_written}")

        if self._failure is not None or self.frames_written == 0:
            logger.warning("Recording produced no usable output")
            if path:
                Path(path).unlink(missing_ok=True)
            return None
        return path

    def dispose(self) -> None:
        """Release PortAudio. Safe to call when never started; repeat calls are no-ops."""
        if self._disposed:
            return
        self._disposed = True
        if self.is_recording:
            path = self._stop_blocking()
            if path:
                Path(path).unlink(missing_ok=True)
        if self.pyaudio_instance is not None:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None
        logger.info("AudioCapture disposed")
