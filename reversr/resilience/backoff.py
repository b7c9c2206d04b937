"""Exponential backoff with jitter.

Two profiles are used by the retry orchestrator: a wide band after rate
limits (quota windows clear in tens of seconds) and a tight band for other
transient failures.
"""

import random
from dataclasses import dataclass


@dataclass(frozen=True)
class BackoffProfile:
    """Parameters for one backoff band."""

    base_delay: float  # Delay for attempt 0, in seconds
    max_delay: float  # Hard cap, in seconds
    jitter_ceiling: float = 0.0  # Upper bound of the uniform jitter term

    def __post_init__(self):
        if self.base_delay < 0 or self.max_delay < 0 or self.jitter_ceiling < 0:
            raise ValueError("Backoff parameters must be non-negative")

    def delay_for(self, attempt_index: int) -> float:
        return compute_delay(attempt_index, self.base_delay, self.max_delay, self.jitter_ceiling)


RATE_LIMIT_PROFILE = BackoffProfile(base_delay=4.0, max_delay=60.0, jitter_ceiling=1.0)
GENERIC_ERROR_PROFILE = BackoffProfile(base_delay=0.5, max_delay=5.0, jitter_ceiling=0.25)


def compute_delay(
    attempt_index: int,
    base_delay: float,
    max_delay: float,
    jitter_ceiling: float = 0.0,
) -> float:
    """Calculate the delay before the next attempt.

    Args:
        attempt_index: Zero-based retry number
        base_delay: Delay for the first retry
        max_delay: Maximum delay
        jitter_ceiling: Upper bound of the random term added before capping

    Returns:
        Delay in seconds, never above max_delay
    """
    if attempt_index < 0:
        raise ValueError("attempt_index must be >= 0")

    # base * 2^attempt + U(0, jitter); exponent clamped to stay a finite float
    delay = base_delay * (2.0 ** min(attempt_index, 64))
    if jitter_ceiling > 0:
        delay += random.uniform(0, jitter_ceiling)

    return min(delay, max_delay)
