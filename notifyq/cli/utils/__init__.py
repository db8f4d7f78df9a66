"""CLI utilities."""

from .config import CliConfig, ConfigError, ConfigManager
from .validation import validate_message_id, validate_url

__all__ = [
    "ConfigManager",
    "ConfigError",
    "CliConfig",
    "validate_message_id",
    "validate_url",
]
