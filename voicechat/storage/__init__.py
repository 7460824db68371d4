"""Storage for recordings."""

from .recording_files import RecordingFileStore

__all__ = [
    "RecordingFileStore",
]
