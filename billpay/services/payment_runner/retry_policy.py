"""
Retry policy.

Fixed-delay bounded retry: a payment gets max_attempts settlement calls
with the same pause between them. Limits are process-wide.
"""

from dataclasses import dataclass

from billpay.config.settings import Settings


@dataclass(frozen=True)
class RetryPolicy:
    """Pure retry decision logic."""

    max_attempts: int
    base_delay: float  # seconds

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")

    @classmethod
    def from_settings(cls, config: Settings) -> "RetryPolicy":
        """Build policy from RETRY_ATTEMPTS and RETRY_DELAY_MS."""
        return cls(
            max_attempts=config.retry_attempts,
            base_delay=config.retry_delay_seconds,
        )

    def should_retry(self, attempt_index: int) -> bool:
        """
        Decide whether another attempt is allowed.

        Args:
            attempt_index: Number of attempts made so far

        Returns:
            True while attempt_index < max_attempts
        """
        return attempt_index < self.max_attempts

    def delay_before_next_attempt(self) -> float:
        """Seconds to wait before the next attempt."""
        return self.base_delay
