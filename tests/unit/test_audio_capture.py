"""Unit tests for AudioCapture class."""

import asyncio
import os
from pathlib import Path

import numpy as np
import pytest

from voicechat.audio.capture import AudioCapture
from voicechat.models.audio import AudioEncoding


@pytest.mark.unit
@pytest.mark.asyncio
class TestAudioCapture:
    """Test cases for AudioCapture class."""

    async def test_initialization(self):
        capture = AudioCapture()

        assert capture.chunk_size == 1024
        assert capture.channels == 1
        assert capture.is_recording is False
        assert capture.pyaudio_instance is None

    async def test_has_permission(self, mock_pyaudio):
        capture = AudioCapture()

        assert await capture.has_permission() is True
        mock_pyaudio['instance'].get_default_input_device_info.assert_called_once()

    async def test_has_permission_no_device(self, mock_pyaudio):
        mock_pyaudio['instance'].get_default_input_device_info.side_effect = OSError(
            "No Default Input Device Available")
        capture = AudioCapture()

        assert await capture.has_permission() is False

    async def test_has_permission_output_only_device(self, mock_pyaudio):
        mock_pyaudio['instance'].get_default_input_device_info.return_value = {
            'maxInputChannels': 0,
        }
        capture = AudioCapture()

        assert await capture.has_permission() is False

    async def test_start_opens_stream_and_writer(self, mock_pyaudio, mock_soundfile, temp_data_dir):
        capture = AudioCapture()
        path = os.path.join(temp_data_dir, "recording.ogg")

        await capture.start(path, AudioEncoding.OPUS, 16000)
        try:
            assert capture.is_recording is True
            assert capture.recording_thread.daemon is True
            mock_soundfile['class'].assert_called_once_with(
                path, mode='w', samplerate=16000, channels=1,
                format="OGG", subtype="OPUS",
            )
            _, kwargs = mock_pyaudio['instance'].open.call_args
            assert kwargs['rate'] == 16000
            assert kwargs['input'] is True
        finally:
            await capture.stop()

    async def test_start_twice_is_noop(self, mock_pyaudio, mock_soundfile, temp_data_dir):
        capture = AudioCapture()
        path = os.path.join(temp_data_dir, "recording.ogg")

        await capture.start(path)
        await capture.start(path)

        assert mock_soundfile['class'].call_count == 1
        await capture.stop()

    async def test_start_stream_failure_cleans_up(self, mock_pyaudio, mock_soundfile, temp_data_dir):
        mock_pyaudio['instance'].open.side_effect = OSError("Invalid sample rate")
        capture = AudioCapture()
        path = os.path.join(temp_data_dir, "recording.ogg")

        with pytest.raises(OSError):
            await capture.start(path)

        assert capture.is_recording is False
        assert not os.path.exists(path)
        mock_soundfile['writers'][0].close.assert_called_once()

    async def test_stop_returns_path(self, mock_pyaudio, mock_soundfile, temp_data_dir):
        capture = AudioCapture()
        path = os.path.join(temp_data_dir, "recording.ogg")

        await capture.start(path)
        await asyncio.sleep(0.05)
        result = await capture.stop()

        assert result == path
        assert capture.is_recording is False
        assert capture.frames_written > 0
        assert os.path.getsize(path) > 0
        mock_pyaudio['stream'].stop_stream.assert_called_once()
        mock_pyaudio['stream'].close.assert_called_once()
        mock_soundfile['writers'][0].close.assert_called_once()

    async def test_stop_not_recording(self):
        capture = AudioCapture()
        assert await capture.stop() is None

    async def test_stop_without_audio(self, mock_pyaudio, mock_soundfile, temp_data_dir):
        mock_pyaudio['stream'].read.return_value = b''
        capture = AudioCapture()
        path = os.path.join(temp_data_dir, "recording.ogg")

        await capture.start(path)
        await asyncio.sleep(0.02)

        assert await capture.stop() is None
        assert not os.path.exists(path)

    async def test_stream_error_yields_no_path(self, mock_pyaudio, mock_soundfile, temp_data_dir):
        mock_pyaudio['stream'].read.side_effect = OSError("Input overflowed")
        capture = AudioCapture()
        path = os.path.join(temp_data_dir, "recording.ogg")

        await capture.start(path)
        await asyncio.sleep(0.02)

        assert await capture.stop() is None

    async def test_peak_level(self, mock_pyaudio, mock_soundfile, temp_data_dir):
        # 50% peak
        samples = np.array([0, 16383, 0, -16383, 0, 0, 0, 0], dtype=np.int16)
        mock_pyaudio['stream'].read.return_value = samples.tobytes()
        capture = AudioCapture()

        await capture.start(os.path.join(temp_data_dir, "recording.ogg"))
        await asyncio.sleep(0.05)
        sample = await capture.get_amplitude()
        await capture.stop()

        assert 0.45 < sample.level < 0.55

    async def test_amplitude_zero_when_not_recording(self):
        capture = AudioCapture()
        sample = await capture.get_amplitude()
        assert sample.level == 0.0

    async def test_written_audio_matches_stream(self, mock_pyaudio, mock_soundfile,
                                                temp_data_dir, sample_audio_chunk):
        mock_pyaudio['stream'].read.return_value = sample_audio_chunk
        capture = AudioCapture()

        await capture.start(os.path.join(temp_data_dir, "recording.ogg"))
        await asyncio.sleep(0.03)
        await capture.stop()

        frames = mock_soundfile['writers'][0].frames
        assert len(frames) > 0
        assert frames[0].shape == (1024, 1)
        assert frames[0].tobytes() == sample_audio_chunk

    async def test_dispose_never_started(self, mock_pyaudio):
        capture = AudioCapture()
        capture.dispose()
        capture.dispose()

        mock_pyaudio['instance'].terminate.assert_not_called()

    async def test_dispose_terminates_pyaudio_once(self, mock_pyaudio):
        capture = AudioCapture()
        await capture.has_permission()

        capture.dispose()
        capture.dispose()

        mock_pyaudio['instance'].terminate.assert_called_once()
        assert capture.pyaudio_instance is None

    async def test_dispose_while_recording(self, mock_pyaudio, mock_soundfile, temp_data_dir):
        capture = AudioCapture()
        path = os.path.join(temp_data_dir, "recording.ogg")
        await capture.start(path)
        await asyncio.sleep(0.02)

        capture.dispose()

        assert capture.is_recording is False
        assert not Path(path).exists()
        mock_pyaudio['instance'].terminate.assert_called_once()

    async def test_start_after_dispose(self, temp_data_dir):
        capture = AudioCapture()
        capture.dispose()

        with pytest.raises(RuntimeError):
            await capture.start(os.path.join(temp_data_dir, "recording.ogg"))
