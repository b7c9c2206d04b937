"""Retry orchestration for calls to the generation service.

Composes the credential pool, backoff profiles and response cache:
- Serves repeated requests from the cache
- Rotates credentials and honours per-credential cooldowns
- Retries rate limits and transient failures with separate backoff bands
- Raises ExhaustedError once every permitted attempt has failed
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from .backoff import GENERIC_ERROR_PROFILE, RATE_LIMIT_PROFILE, BackoffProfile
from .cache import ResponseCache
from .credentials import Credential, CredentialPool
from .errors import ErrorClassifier, ErrorKind, ExhaustedError, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3

UnitOfWork = Callable[[Credential], Awaitable[Any]]

_MISSING = object()


class RetryOrchestrator:
    """Executes units of work against the generation service.

    Usage:
        orchestrator = RetryOrchestrator(pool, cache)

        async def analyze(credential):
            return await client.generate(prompt, api_key=credential.secret)

        result = await orchestrator.execute(analyze, fingerprint=key)
    """

    def __init__(
        self,
        pool: CredentialPool,
        cache: Optional[ResponseCache] = None,
        classifier: Optional[ErrorClassifier] = None,
        rate_limit_profile: BackoffProfile = RATE_LIMIT_PROFILE,
        generic_profile: BackoffProfile = GENERIC_ERROR_PROFILE,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize orchestrator.

        Args:
            pool: Credential pool shared by all requests
            cache: Response cache (no caching if omitted)
            classifier: Maps raised exceptions to typed upstream errors
            rate_limit_profile: Backoff band after a rate limit
            generic_profile: Backoff band after any other failure
            sleep: Async sleep, injectable for simulated time
        """
        self.pool = pool
        self.cache = cache
        self.classifier = classifier or ErrorClassifier()
        self.rate_limit_profile = rate_limit_profile
        self.generic_profile = generic_profile
        self._sleep = sleep

    async def execute(
        self,
        unit_of_work: UnitOfWork,
        fingerprint: Optional[str] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> Any:
        """Run a unit of work with caching, rotation and retries.

        Args:
            unit_of_work: Async callable receiving the credential to use
            fingerprint: Cache identity; None always executes fresh
            max_attempts: Total attempts including the first

        Returns:
            Result of the first successful attempt, or the cached result

        Raises:
            ExhaustedError: If every attempt failed
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        if fingerprint is not None and self.cache is not None:
            cached = self.cache.get(fingerprint, _MISSING)
            if cached is not _MISSING:
                return cached

        last_error: Optional[UpstreamError] = None
        last_exception: Optional[BaseException] = None

        for attempt in range(max_attempts):
            credential = self.pool.select_next_available()

            # Only reached when every credential is cooling down
            wait = self.pool.cooldown_remaining(credential)
            if wait > 0:
                logger.info(f"All credentials cooling down; waiting {wait:.2f}s for {credential.label}")
                await self._sleep(wait)

            try:
                result = await unit_of_work(credential)
            except Exception as e:
                last_exception = e
                last_error = self.classifier.classify(e)
            else:
                self.pool.record_success(credential)
                if fingerprint is not None and self.cache is not None:
                    self.cache.put(fingerprint, result)
                return result

            is_last = attempt == max_attempts - 1

            if last_error.kind == ErrorKind.RATE_LIMITED:
                self.pool.record_rate_limited(credential, last_error.retry_after)
                profile = self.rate_limit_profile
            else:
                profile = self.generic_profile

            if is_last:
                break

            delay = profile.delay_for(attempt)
            logger.warning(
                f"Attempt {attempt + 1}/{max_attempts} failed on {credential.label} "
                f"({last_error.kind.value}): {last_error}. Retrying in {delay:.2f}s"
            )
            await self._sleep(delay)

        logger.error(f"All {max_attempts} attempts failed: {last_error}")
        raise ExhaustedError(last_error, max_attempts) from last_exception
