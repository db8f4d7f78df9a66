"""Server configuration."""
import logging
from dataclasses import dataclass, field
from pathlib import Path
import os

from notifyq.queue.composer import DEFAULT_PORTAL_NAME, DEFAULT_PORTAL_URL
from notifyq.queue.settings import DEFAULT_PERMANENT_ERROR_CODES, QueueSettings

logger = logging.getLogger(__name__)

_RECOGNISED_BOOL_VALUES = frozenset(
    ("1", "true", "yes", "0", "false", "no")
)
_SENDER_METHODS = ("log", "webhook")
_NO_CODES = "none"


@dataclass(frozen=True)
class SenderConfig:
    """Delivery transport selection.

    ``method``: 'log' (development, logs instead of sending) or 'webhook'
        (POST to an HTTP email provider at ``url``).
    ``api_key``: bearer token for the provider. Empty sends no header.
    """

    method: str = "log"
    url: str = ""
    api_key: str = ""
    from_address: str = "noreply@alwr.com"
    timeout: float = 10.0


@dataclass(frozen=True)
class PortalConfig:
    """Branding and base URL used in rendered notifications."""

    name: str = DEFAULT_PORTAL_NAME
    url: str = DEFAULT_PORTAL_URL


@dataclass(frozen=True)
class ServerConfig:
    queue: QueueSettings = field(default_factory=QueueSettings)
    sender: SenderConfig = field(default_factory=SenderConfig)
    portal: PortalConfig = field(default_factory=PortalConfig)
    db_path: Path = field(default_factory=lambda: Path("data/notifyq.db"))
    scheduler_enabled: bool = True
    admin_token: str = ""
    version: str = "0.1.0"


def _parse_bool(value: str, default: bool) -> bool:
    """Parse a boolean environment variable with explicit default.

    Recognises ``true/1/yes`` and ``false/0/no`` (case-insensitive).
    Returns *default* when the value is empty or unset.
    Logs a warning and returns *default* for unrecognised values
    (e.g. typos like ``ture``).
    """
    if not value:
        return default
    normalised = value.lower()
    if normalised not in _RECOGNISED_BOOL_VALUES:
        logger.warning(
            "Unrecognised boolean value %r, using default %s. "
            "Expected one of: true/1/yes or false/0/no.",
            value,
            default,
        )
        return default
    return normalised in ("1", "true", "yes")


def check_stale_after(queue: QueueSettings, sender: SenderConfig) -> None:
    """Reject a stale cut-off that a live send could outlast.

    A claim is only recovered as stale once it is older than
    ``stale_after``, so that must exceed the sender timeout.
    """
    if queue.stale_after <= sender.timeout:
        raise ValueError(
            f"stale_after ({queue.stale_after:g}s) must exceed the sender "
            f"timeout ({sender.timeout:g}s)"
        )


def _parse_codes(value: str) -> frozenset[str]:
    """Parse a comma separated list of sender error codes.

    Unset or empty keeps the defaults; ``none`` disables permanent codes.
    """
    if not value.strip():
        return DEFAULT_PERMANENT_ERROR_CODES
    if value.strip().lower() == _NO_CODES:
        return frozenset()
    return frozenset(code.strip() for code in value.split(",") if code.strip())


def load_config_from_env() -> ServerConfig:
    sender_method = os.environ.get("SENDER_METHOD", "log")
    if sender_method not in _SENDER_METHODS:
        raise ValueError(
            f"SENDER_METHOD must be one of {', '.join(_SENDER_METHODS)}, got {sender_method!r}"
        )
    sender_url = os.environ.get("SENDER_URL", "")
    if sender_method == "webhook" and not sender_url:
        raise ValueError("SENDER_URL required when SENDER_METHOD is 'webhook'")

    admin_token = os.environ.get("ADMIN_TOKEN", "")
    if not admin_token:
        logger.warning(
            "No ADMIN_TOKEN set -- admin endpoints accept unauthenticated "
            "requests. Put the service behind the portal's auth layer."
        )

    queue = QueueSettings(
        batch_size=int(os.environ.get("QUEUE_BATCH_SIZE", "10")),
        interval=float(os.environ.get("QUEUE_INTERVAL_SECONDS", "5.0")),
        max_attempts=int(os.environ.get("QUEUE_MAX_ATTEMPTS", "3")),
        backoff_max=float(os.environ.get("QUEUE_BACKOFF_MAX_SECONDS", "3600")),
        send_concurrency=int(os.environ.get("QUEUE_SEND_CONCURRENCY", "10")),
        stale_after=float(os.environ.get("QUEUE_STALE_AFTER_SECONDS", "300")),
        permanent_error_codes=_parse_codes(os.environ.get("QUEUE_PERMANENT_ERROR_CODES", "")),
        manual_retry_resets_attempts=_parse_bool(
            os.environ.get("QUEUE_MANUAL_RETRY_RESETS", ""), default=False
        ),
    )

    sender = SenderConfig(
        method=sender_method,
        url=sender_url,
        api_key=os.environ.get("SENDER_API_KEY", ""),
        from_address=os.environ.get("SENDER_FROM_ADDRESS", "noreply@alwr.com"),
        timeout=float(os.environ.get("SENDER_TIMEOUT", "10.0")),
    )
    check_stale_after(queue, sender)

    return ServerConfig(
        queue=queue,
        sender=sender,
        portal=PortalConfig(
            name=os.environ.get("PORTAL_NAME", DEFAULT_PORTAL_NAME),
            url=os.environ.get("PORTAL_URL", DEFAULT_PORTAL_URL),
        ),
        db_path=Path(os.environ.get("DB_PATH", "data/notifyq.db")),
        scheduler_enabled=_parse_bool(os.environ.get("SCHEDULER_ENABLED", ""), default=True),
        admin_token=admin_token,
    )
