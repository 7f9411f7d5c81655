# Reconnect Policy - Exponential Backoff
# Bounded exponential backoff for account reconnects

"""
Reconnect Policy Module

The delay for a retry uses the attempt count *after* it was incremented,
so a first failure waits base_delay * 2 (not base_delay):

    attempt:  1   2   3    4    5
    delay:    2s  4s  8s  16s  30s   (base 1s, cap 30s)
"""

from dataclasses import dataclass

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 30.0


@dataclass(frozen=True)
class ReconnectPolicy:
    """
    Reconnect limits

    Attributes:
        max_attempts: Reconnects allowed before giving up
        base_delay: Base delay in seconds
        max_delay: Delay cap in seconds
    """
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY
    max_delay: float = DEFAULT_MAX_DELAY

    def __post_init__(self):
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")
        if self.base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")

    @classmethod
    def from_config(cls, config: dict) -> "ReconnectPolicy":
        """Build policy from the `reconnect` config section"""
        return cls(
            max_attempts=int(config.get('max_attempts', DEFAULT_MAX_ATTEMPTS)),
            base_delay=float(config.get('base_delay', DEFAULT_BASE_DELAY)),
            max_delay=float(config.get('max_delay', DEFAULT_MAX_DELAY)),
        )

    def delay_for(self, attempt: int) -> float:
        """Delay in seconds before reconnect number `attempt` (1-based)"""
        return min(self.base_delay * (2 ** attempt), self.max_delay)

    def can_retry(self, attempts: int) -> bool:
        return attempts < self.max_attempts
