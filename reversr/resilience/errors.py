"""Error taxonomy for calls to the generation service.

Provides:
- A closed error-kind enumeration (rate-limited vs transient)
- A typed upstream error populated at the call boundary
- The terminal error raised when all attempts are consumed
- A configurable classifier mapping arbitrary exceptions to typed errors
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Classification of a failed attempt."""

    RATE_LIMITED = "RATE_LIMITED"  # 429 / quota / resource exhausted
    TRANSIENT = "TRANSIENT"  # Anything else: network, 5xx, malformed output


class UpstreamError(Exception):
    """Failure of a single call to the generation service."""

    def __init__(
        self,
        message: str = "",
        kind: ErrorKind = ErrorKind.TRANSIENT,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.retry_after = retry_after

    @property
    def rate_limited(self) -> bool:
        return self.kind == ErrorKind.RATE_LIMITED


class ExhaustedError(Exception):
    """Raised when every permitted attempt failed.

    Carries the last classified error so the HTTP layer can decide whether
    to answer with a rate-limit or a generic failure.
    """

    def __init__(self, last_error: UpstreamError, attempts: int):
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(f"All {attempts} attempts failed. Last error: {last_error}")

    @property
    def rate_limited(self) -> bool:
        """True if the terminal failure was a rate limit."""
        return self.last_error.rate_limited


@dataclass
class ErrorClassifier:
    """Maps exceptions raised by the SDK into UpstreamError.

    This is the only place free-form error text is inspected. Which status
    codes count as rate limits is policy, not a fixed list.
    """

    rate_limit_status_codes: frozenset[int] = field(default_factory=lambda: frozenset({429}))
    rate_limit_markers: tuple[str, ...] = ("429", "RESOURCE_EXHAUSTED", "quota")

    def classify(self, error: BaseException) -> UpstreamError:
        """Classify an exception raised by a unit of work.

        Args:
            error: Exception raised by the call

        Returns:
            Typed upstream error (the same object if already typed)
        """
        if isinstance(error, UpstreamError):
            return error

        status_code = _status_code(error)
        retry_after = _retry_after(error)

        if status_code is not None and status_code in self.rate_limit_status_codes:
            kind = ErrorKind.RATE_LIMITED
        elif self._matches_marker(error):
            kind = ErrorKind.RATE_LIMITED
        else:
            kind = ErrorKind.TRANSIENT

        classified = UpstreamError(
            str(error) or type(error).__name__,
            kind=kind,
            status_code=status_code,
            retry_after=retry_after,
        )
        logger.debug(
            f"Classified {type(error).__name__} as {kind.value} "
            f"(status={status_code}, retry_after={retry_after})"
        )
        return classified

    def _matches_marker(self, error: BaseException) -> bool:
        text = f"{type(error).__name__}: {error}".lower()
        return any(marker.lower() in text for marker in self.rate_limit_markers)


def _status_code(error: BaseException) -> Optional[int]:
    """Read a numeric status from the attributes SDK errors commonly carry."""
    for attr in ("status_code", "status", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.isdigit():
            return int(value)
    return None


def _retry_after(error: BaseException) -> Optional[float]:
    """Read a retry hint in seconds, from an attribute or a response header."""
    value: Any = getattr(error, "retry_after", None)
    if value is None:
        response = getattr(error, "response", None)
        headers = getattr(response, "headers", None)
        if headers is not None:
            try:
                value = headers.get("retry-after") or headers.get("Retry-After")
            except AttributeError:
                value = None
    if value is None:
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        # HTTP-date form is not supported; fall back to the default cooldown
        return None
    return seconds if seconds >= 0 else None
