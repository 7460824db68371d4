"""Pytest configuration and fixtures for voice chat tests."""

import logging
import tempfile
import time
from unittest.mock import DEFAULT, Mock, patch

import numpy as np
import pytest

from .fakes import (
    EventRecorder,
    FakeAudioCapture,
    FakeBackendClient,
    SpyRecordingFileStore,
)
from voicechat.session.controller import SessionController


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without hardware or network")
    config.addinivalue_line("markers", "integration: tests wiring several real components")
    config.addinivalue_line("markers", "hardware: tests that need a real microphone")


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def fake_capture():
    return FakeAudioCapture()


@pytest.fixture
def fake_backend():
    return FakeBackendClient()


@pytest.fixture
def file_store(temp_data_dir):
    return SpyRecordingFileStore(temp_data_dir)


@pytest.fixture
def controller(fake_capture, fake_backend, file_store):
    """SessionController over fakes with a fast polling cadence."""
    return SessionController(fake_capture, fake_backend, file_store, poll_interval=0.01)


@pytest.fixture
def recorder(controller):
    return EventRecorder(controller)


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    sample_rate = 16000
    duration = 1024 / sample_rate
    freq = 440  # A4 note

    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * freq * t) * 0.5

    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        def paced_read(*args, **kwargs):
            # Roughly real-time pacing so capture threads do not spin
            time.sleep(0.005)
            return DEFAULT

        mock_stream.read.side_effect = paced_read
        mock_stream.read.return_value = b'\x00' * 2048  # Silent audio
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_default_input_device_info.return_value = {
            'name': 'Mock Microphone',
            'maxInputChannels': 1,
        }

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def mock_soundfile():
    """Mock soundfile.SoundFile so no real encoder is needed.

    The fake writer creates the target file on open and appends raw bytes on write.
    """
    writers = []

    def make_writer(path, mode='w', samplerate=None, channels=None, format=None, subtype=None):
        writer = Mock()
        writer.path = path
        writer.samplerate = samplerate
        writer.format = format
        writer.subtype = subtype
        writer.frames = []
        with open(path, 'wb') as f:
            f.write(b"OggS")

        def write(data):
            writer.frames.append(data)
            with open(path, 'ab') as f:
                f.write(np.asarray(data).tobytes())

        writer.write.side_effect = write
        writers.append(writer)
        return writer

    with patch('voicechat.audio.capture.sf.SoundFile', side_effect=make_writer) as mock_class:
        yield {'class': mock_class, 'writers': writers}
