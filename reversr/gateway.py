"""Generation gateway.

Owns the credential pool, response cache and retry orchestrator for the
process. Build one at startup with ``GenerationGateway.from_settings`` and
hand it to the HTTP layer; nothing here is a module-level singleton.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from .config import Settings
from .resilience import (
    BackoffProfile,
    CredentialPool,
    ErrorClassifier,
    ResponseCache,
    RetryOrchestrator,
)
from .resilience.orchestrator import UnitOfWork

logger = logging.getLogger(__name__)


class GenerationGateway:
    """Entry point for every call to the generation service."""

    def __init__(
        self,
        orchestrator: RetryOrchestrator,
        standard_max_attempts: int = 3,
        image_max_attempts: int = 5,
    ):
        """Initialize gateway.

        Args:
            orchestrator: Retry orchestrator owning the pool and cache
            standard_max_attempts: Attempts for text/JSON generation calls
            image_max_attempts: Attempts for image generation calls
        """
        self.orchestrator = orchestrator
        self.standard_max_attempts = standard_max_attempts
        self.image_max_attempts = image_max_attempts

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> "GenerationGateway":
        """Build the pool, cache and orchestrator from settings.

        Raises:
            ValueError: If no API keys are configured
        """
        keys = settings.api_keys
        if not keys:
            raise ValueError("GENERATION_API_KEYS must contain at least one key")

        pool = CredentialPool(keys, default_cooldown=settings.default_cooldown_seconds, clock=clock)
        cache = ResponseCache(
            max_entries=settings.cache_max_entries,
            ttl_seconds=settings.cache_ttl_seconds,
            clock=clock,
        )
        orchestrator = RetryOrchestrator(
            pool,
            cache,
            classifier=ErrorClassifier(rate_limit_status_codes=settings.rate_limit_codes),
            rate_limit_profile=BackoffProfile(
                base_delay=settings.rate_limit_base_delay,
                max_delay=settings.rate_limit_max_delay,
                jitter_ceiling=settings.rate_limit_jitter,
            ),
            generic_profile=BackoffProfile(
                base_delay=settings.generic_base_delay,
                max_delay=settings.generic_max_delay,
                jitter_ceiling=settings.generic_jitter,
            ),
            sleep=sleep,
        )
        logger.info(
            f"Generation gateway ready: {len(pool)} credentials, "
            f"attempts standard={settings.standard_max_attempts} image={settings.image_max_attempts}"
        )
        return cls(
            orchestrator,
            standard_max_attempts=settings.standard_max_attempts,
            image_max_attempts=settings.image_max_attempts,
        )

    @property
    def pool(self) -> CredentialPool:
        return self.orchestrator.pool

    @property
    def cache(self) -> Optional[ResponseCache]:
        return self.orchestrator.cache

    async def generate(self, unit_of_work: UnitOfWork, fingerprint: Optional[str] = None) -> Any:
        """Run a standard generation call."""
        return await self.orchestrator.execute(
            unit_of_work, fingerprint, max_attempts=self.standard_max_attempts
        )

    async def generate_image(self, unit_of_work: UnitOfWork, fingerprint: Optional[str] = None) -> Any:
        """Run an image generation call, which gets a larger attempt budget."""
        return await self.orchestrator.execute(
            unit_of_work, fingerprint, max_attempts=self.image_max_attempts
        )

    def reset_cache(self) -> None:
        """Operational reset of cached responses."""
        if self.cache is not None:
            self.cache.clear()

    def get_status(self) -> dict[str, Any]:
        """Get pool and cache status."""
        return {
            "credentials": self.pool.get_status(),
            "cache": self.cache.get_status() if self.cache is not None else None,
        }
