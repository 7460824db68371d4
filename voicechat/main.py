"""Main application entry point for the voice chat client."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .audio.capture import AudioCapture
from .backend.client import BackendClient
from .config import VoiceChatConfig
from .session.controller import SessionController
from .storage.recording_files import RecordingFileStore
from .ui.chat_screen import ChatScreen

logger = logging.getLogger(__name__)


class VoiceChatApp:
    """Wires configuration, collaborators and the session controller together."""

    def __init__(self, config: VoiceChatConfig):
        self.config = config
        self.controller: Optional[SessionController] = None

    def init(self) -> SessionController:
        logger.info("Initializing services...")

        sample_rate = self.config.get('audio.sample_rate', 16000)
        logger.info(f"Audio settings: {sample_rate}Hz, "
                    f"{self.config.get('audio.chunk_size')} samples/chunk, "
                    f"{self.config.get('audio.channels')} channels")

        capture = AudioCapture(
            chunk_size=self.config.get('audio.chunk_size', 1024),
            channels=self.config.get('audio.channels', 1),
        )
        backend = BackendClient(
            self.config.get_backend_url(),
            timeout_seconds=self.config.get_backend_timeout(),
        )
        file_store = RecordingFileStore(
            self.config.get_temp_dir(),
            self.config.get('audio.file_name', 'recording.ogg'),
        )
        self.controller = SessionController(
            capture,
            backend,
            file_store,
            poll_interval=self.config.get_poll_interval(),
            sample_rate=sample_rate,
        )
        return self.controller

    async def run(self) -> None:
        controller = self.init()
        try:
            await ChatScreen(controller).run()
        finally:
            await controller.dispose()


def setup_logging(config: VoiceChatConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path')
    console_output = config.get('logging.console_output', True)

    handlers = []

    if log_file_path:
        Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        ))
        handlers.append(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        # Only warnings and above so the live view stays readable
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("Voice chat client starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


@click.command()
@click.option("--config", "config_path", type=click.Path(dir_okay=False),
              help="Path to configuration YAML file (defaults are used when omitted)")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
              help="Set logging level (overrides config)")
@click.option("--base-url", help="Backend base URL (overrides config)")
@click.version_option(package_name="voicechat")
def main(config_path: Optional[str], log_level: Optional[str], base_url: Optional[str]) -> None:
    """Hold-to-talk voice chat with a conversational backend."""
    try:
        config = VoiceChatConfig(config_path)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e))

    if base_url:
        config.set('backend.base_url', base_url)
    setup_logging(config, log_level or config.get('logging.level', 'INFO'))

    try:
        asyncio.run(VoiceChatApp(config).run())
    except KeyboardInterrupt:
        click.echo("\nGoodbye!")
    except Exception as e:
        logger.error(f"Application error: {e}", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
