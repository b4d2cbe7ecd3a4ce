"""Bounded exponential backoff shared by every beecli HTTP call.

The pairing endpoint and the identity endpoint use the same policy: up to
``max_attempts`` tries, with ``min(base_delay * 2 ** (attempt - 1), max_delay)``
seconds between them (1 s, 2 s, 4 s, 8 s, 16 s, 30 s, 30 s, ... by default).
"""

from __future__ import annotations

from dataclasses import dataclass

from beecli.models import PairingSettings


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget for transient network and 5xx failures.

    Attributes:
        max_attempts: Total number of attempts, including the first one.
        base_delay: Delay in seconds after the first failed attempt.
        max_delay: Upper bound for any single delay, in seconds.
    """

    max_attempts: int = 10
    base_delay: float = 1.0
    max_delay: float = 30.0

    def delay_for(self, attempt: int) -> float:
        """Return the delay to wait after failed attempt number *attempt* (1-based)."""
        return min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)

    @classmethod
    def from_settings(cls, settings: PairingSettings) -> RetryPolicy:
        return cls(
            max_attempts=settings.max_attempts,
            base_delay=settings.base_delay,
            max_delay=settings.max_delay,
        )
