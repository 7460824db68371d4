"""Temporary storage for the recording of the attempt in flight."""

import asyncio
import base64
import logging
from pathlib import Path


logger = logging.getLogger(__name__)


class RecordingFileStore:
    """Owns the temporary file a single recording attempt is written to.

    Only one attempt is ever in flight, so the file name is fixed.
    """

    def __init__(self, temp_dir: str, file_name: str = "recording.ogg"):
        """Initialize the store.

        Args:
            temp_dir: Directory for the temporary recording
            file_name: Name of the recording file inside `temp_dir`
        """
        self.temp_dir = Path(temp_dir)
        self.file_name = file_name

        self.temp_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"RecordingFileStore initialized with temp_dir: {self.temp_dir}")

    def recording_path(self) -> str:
        """Path the next recording is written to."""
        return str(self.temp_dir / self.file_name)

    async def read_encoded(self, path: str) -> str:
        """Read a recording fully and return it base64 encoded.

        Raises:
            OSError: If the file cannot be read
        """
        data = await asyncio.to_thread(Path(path).read_bytes)
        logger.debug(f"Read recording {path} ({len(data)} bytes)")
        return base64.b64encode(data).decode('ascii')

    async def delete(self, path: str) -> bool:
        """Delete a recording. Returns True if a file was removed."""
        try:
            await asyncio.to_thread(Path(path).unlink)
            logger.debug(f"Deleted recording: {path}")
            return True
        except FileNotFoundError:
            logger.warning(f"Recording already gone: {path}")
            return False
        except OSError as e:
            logger.error(f"Error deleting recording {path}: {e}")
            return False
