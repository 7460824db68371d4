"""YAML configuration loader for the voice chat client."""

import copy
import os
import tempfile
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


DEFAULTS: Dict[str, Any] = {
    "backend": {
        "base_url": "http://10.0.2.16:8000",
        "timeout_seconds": None,
    },
    "audio": {
        "sample_rate": 16000,
        "channels": 1,
        "chunk_size": 1024,
        "temp_dir": None,
        "file_name": "recording.ogg",
    },
    "session": {
        "poll_interval_ms": 100,
    },
    "logging": {
        "level": "INFO",
        "file_path": None,
        "console_output": True,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge `override` into a copy of `base`."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class VoiceChatConfig:
    """Voice chat configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, only the built-in
                        defaults are used.
        """
        self.config_file = Path(config_path) if config_path else None

        if self.config_file is None:
            logger.info("No configuration file given, using defaults")
            self.config = copy.deepcopy(DEFAULTS)
            return

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping")

        config = _merge(DEFAULTS, loaded)
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        log_path = config['logging'].get('file_path')
        if log_path and not os.path.isabs(log_path):
            config['logging']['file_path'] = str(config_dir / log_path)

        temp_dir = config['audio'].get('temp_dir')
        if temp_dir and not os.path.isabs(temp_dir):
            config['audio']['temp_dir'] = str(config_dir / temp_dir)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'backend.base_url').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'backend.base_url')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_backend_url(self) -> str:
        """Get backend base URL without a trailing slash."""
        base_url = self.get('backend.base_url')
        if not base_url:
            raise ValueError("Backend base URL not configured")
        return str(base_url).rstrip('/')

    def get_backend_timeout(self) -> Optional[float]:
        """Get total request timeout in seconds, or None for no timeout."""
        timeout = self.get('backend.timeout_seconds')
        return float(timeout) if timeout is not None else None

    def get_temp_dir(self) -> str:
        """Get directory that holds the in-flight recording."""
        temp_dir = self.get('audio.temp_dir')
        return str(Path(temp_dir).absolute()) if temp_dir else tempfile.gettempdir()

    def get_poll_interval(self) -> float:
        """Get amplitude polling interval in seconds."""
        return self.get('session.poll_interval_ms', 100) / 1000.0
