"""Credential pool for the generation service.

Provides:
- Per-credential cooldown tracking after rate limits
- Fair round-robin rotation across available credentials
- Least-bad fallback when every credential is cooling down
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_SECONDS = 60.0


@dataclass
class Credential:
    """State for one API credential."""

    secret: str = field(repr=False)
    label: str = ""
    cooldown_until: float = 0.0  # Clock timestamp; 0 means never limited
    consecutive_failures: int = 0

    def is_available(self, now: float) -> bool:
        return self.cooldown_until <= now

    def cooldown_remaining(self, now: float) -> float:
        return max(0.0, self.cooldown_until - now)


class CredentialPool:
    """Rotates calls across a fixed set of credentials.

    Usage:
        pool = CredentialPool(["key-a", "key-b"])
        credential = pool.select_next_available()
        try:
            result = await call_service(credential.secret)
            pool.record_success(credential)
        except RateLimitError as e:
            pool.record_rate_limited(credential, e.retry_after)
    """

    def __init__(
        self,
        secrets: Sequence[str],
        default_cooldown: float = DEFAULT_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize credential pool.

        Args:
            secrets: API keys, in rotation order
            default_cooldown: Cooldown applied when a rate limit has no retry hint
            clock: Monotonic time source in seconds

        Raises:
            ValueError: If no credentials are configured
        """
        if not secrets:
            raise ValueError("CredentialPool requires at least one credential")
        if default_cooldown < 0:
            raise ValueError("default_cooldown must be >= 0")

        self._credentials = [
            Credential(secret=secret, label=f"key-{index + 1}")
            for index, secret in enumerate(secrets)
        ]
        self.default_cooldown = default_cooldown
        self._clock = clock
        self._cursor = 0
        self._lock = threading.Lock()
        logger.info(f"Credential pool initialized with {len(self._credentials)} credentials")

    def __len__(self) -> int:
        return len(self._credentials)

    @property
    def credentials(self) -> tuple[Credential, ...]:
        return tuple(self._credentials)

    def select_next_available(self) -> Credential:
        """Pick the next credential to use.

        Scans cyclically from the rotation cursor for a credential that is
        not cooling down. If all are cooling down, returns the one whose
        cooldown ends soonest and leaves the cursor where it is.

        Returns:
            Selected credential (never fails)
        """
        with self._lock:
            now = self._clock()
            count = len(self._credentials)

            for offset in range(count):
                index = (self._cursor + offset) % count
                credential = self._credentials[index]
                if credential.is_available(now):
                    self._cursor = (index + 1) % count
                    return credential

            soonest = min(self._credentials, key=lambda c: c.cooldown_until)
            logger.debug(
                f"All credentials cooling down; using {soonest.label} "
                f"({soonest.cooldown_remaining(now):.1f}s left)"
            )
            return soonest

    def record_success(self, credential: Credential) -> None:
        """Clear the failure streak. An active cooldown is left untouched."""
        with self._lock:
            credential.consecutive_failures = 0

    def record_rate_limited(
        self,
        credential: Credential,
        retry_after: Optional[float] = None,
    ) -> None:
        """Put a credential into cooldown after a rate limit.

        Args:
            credential: Credential that was rate limited
            retry_after: Upstream retry hint in seconds (default cooldown if absent)
        """
        cooldown = self.default_cooldown if retry_after is None else retry_after
        with self._lock:
            now = self._clock()
            credential.cooldown_until = max(credential.cooldown_until, now + cooldown)
            credential.consecutive_failures += 1
            failures = credential.consecutive_failures

        logger.warning(
            f"Credential {credential.label} rate limited; cooling down {cooldown:.1f}s "
            f"({failures} consecutive failures)"
        )

    def cooldown_remaining(self, credential: Credential) -> float:
        """Seconds until a credential leaves cooldown, on the pool's clock."""
        with self._lock:
            return credential.cooldown_remaining(self._clock())

    def available_count(self) -> int:
        """Number of credentials not currently cooling down."""
        with self._lock:
            now = self._clock()
            return sum(1 for c in self._credentials if c.is_available(now))

    def get_status(self) -> list[dict[str, Any]]:
        """Get pool status. Secrets are never included.

        Returns:
            One status dict per credential, in rotation order
        """
        with self._lock:
            now = self._clock()
            return [
                {
                    "label": c.label,
                    "available": c.is_available(now),
                    "cooldown_remaining": c.cooldown_remaining(now),
                    "consecutive_failures": c.consecutive_failures,
                }
                for c in self._credentials
            ]
