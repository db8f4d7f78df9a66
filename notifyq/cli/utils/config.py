"""Configuration file management for CLI."""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from notifyq.queue.settings import QueueSettings
from notifyq.server.config import PortalConfig, SenderConfig, check_stale_after


@dataclass
class CliConfig:
    """CLI configuration loaded from config file."""

    db_path: Path
    sender: SenderConfig = field(default_factory=SenderConfig)
    portal: PortalConfig = field(default_factory=PortalConfig)
    queue: QueueSettings = field(default_factory=QueueSettings)


class ConfigError(Exception):
    """Configuration file error."""

    pass


_QUEUE_KEYS = (
    "batch_size",
    "max_attempts",
    "backoff_max",
    "send_concurrency",
    "stale_after",
    "manual_retry_resets_attempts",
)


class ConfigManager:
    """Manages CLI configuration in ~/.notifyq/config.yaml."""

    DEFAULT_DIR = Path.home() / ".notifyq"
    CONFIG_FILE = "config.yaml"
    DB_FILE = "notifyq.db"

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        self._config_dir = config_dir or self.DEFAULT_DIR
        self._config_path = self._config_dir / self.CONFIG_FILE

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    @property
    def config_path(self) -> Path:
        return self._config_path

    @property
    def default_db_path(self) -> Path:
        return self._config_dir / self.DB_FILE

    def exists(self) -> bool:
        """Check if configuration exists."""
        return self._config_path.exists()

    def load(self) -> CliConfig:
        """Load configuration from file. Raises ConfigError if not found."""
        if not self._config_path.exists():
            raise ConfigError(
                f"Config not found at {self._config_path}. Run 'notifyq init' first."
            )

        with open(self._config_path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid config file: {e}") from e

        if not isinstance(data, dict) or "db_path" not in data:
            raise ConfigError("Invalid config: missing db_path")

        try:
            sender = SenderConfig(**(data.get("sender") or {}))
            portal = PortalConfig(**(data.get("portal") or {}))
            queue_data = {k: v for k, v in (data.get("queue") or {}).items() if k in _QUEUE_KEYS}
            queue = QueueSettings(**queue_data)
            check_stale_after(queue, sender)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid config: {e}") from e

        if sender.method == "webhook" and not sender.url:
            raise ConfigError("Invalid config: sender.url required for webhook sender")

        return CliConfig(
            db_path=Path(data["db_path"]).expanduser(),
            sender=sender,
            portal=portal,
            queue=queue,
        )

    def save(
        self,
        db_path: Optional[Path] = None,
        sender: Optional[SenderConfig] = None,
        portal: Optional[PortalConfig] = None,
    ) -> CliConfig:
        """Save configuration to file."""
        self._config_dir.mkdir(parents=True, exist_ok=True)
        config = CliConfig(
            db_path=db_path or self.default_db_path,
            sender=sender or SenderConfig(),
            portal=portal or PortalConfig(),
        )
        config_data: dict[str, Any] = {
            "db_path": str(config.db_path),
            "sender": asdict(config.sender),
            "portal": asdict(config.portal),
        }

        with open(self._config_path, "w") as f:
            yaml.safe_dump(config_data, f, default_flow_style=False)

        if config.sender.api_key:
            self._config_path.chmod(0o600)
        return config
