"""Queue engine tuning and the retry backoff schedule."""
from dataclasses import dataclass, field

DEFAULT_PERMANENT_ERROR_CODES = frozenset({"invalid_recipient"})


@dataclass(frozen=True)
class QueueSettings:
    """Tuning for the processing cycle.

    ``permanent_error_codes`` is the allow-list of sender error codes that
    skip the retry budget and fail a message immediately.
    ``manual_retry_resets_attempts`` switches manual retry from continuing
    the attempt counter to granting a fresh budget.
    """

    batch_size: int = 10
    interval: float = 5.0
    max_attempts: int = 3
    backoff_base: float = 1.0
    backoff_max: float = 3600.0
    send_concurrency: int = 10
    stale_after: float = 300.0
    permanent_error_codes: frozenset[str] = field(
        default_factory=lambda: DEFAULT_PERMANENT_ERROR_CODES
    )
    manual_retry_resets_attempts: bool = False

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.interval <= 0:
            raise ValueError("interval must be positive")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff_base <= 0 or self.backoff_max < self.backoff_base:
            raise ValueError("backoff_max must be >= backoff_base > 0")
        if self.send_concurrency < 1:
            raise ValueError("send_concurrency must be at least 1")
        if self.stale_after <= 0:
            raise ValueError("stale_after must be positive")


def backoff_delay(failed_attempts: int, base: float = 1.0, maximum: float = 3600.0) -> float:
    """Seconds to wait after the n-th failed attempt: base * 2**(n-1), capped.

    >>> [backoff_delay(n) for n in (1, 2, 3, 4)]
    [1.0, 2.0, 4.0, 8.0]
    """
    if failed_attempts < 1:
        raise ValueError(f"failed_attempts must be >= 1, got {failed_attempts!r}")
    # keeps base * 2**n a finite float
    exponent = min(failed_attempts - 1, 64)
    return min(base * (2 ** exponent), maximum)
