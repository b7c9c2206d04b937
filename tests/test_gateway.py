"""Tests for the generation gateway and settings wiring."""

import pytest
from unittest.mock import AsyncMock

from pydantic import ValidationError

from reversr.config import Settings
from reversr.gateway import GenerationGateway
from reversr.resilience import ErrorKind, ExhaustedError, UpstreamError


class TestSettings:
    """Test settings parsing."""

    def test_defaults(self, test_settings):
        """Test documented defaults."""
        assert test_settings.cache_max_entries == 50
        assert test_settings.cache_ttl_seconds == 300.0
        assert test_settings.default_cooldown_seconds == 60.0
        assert test_settings.standard_max_attempts == 3
        assert test_settings.image_max_attempts == 5
        assert test_settings.rate_limit_codes == frozenset({429})

    def test_api_keys_split(self):
        """Test comma-separated keys are split and stripped."""
        settings = Settings(_env_file=None, generation_api_keys=" a , b,,c ")
        assert settings.api_keys == ["a", "b", "c"]

    def test_api_keys_from_environment(self):
        """Test keys are read from the environment."""
        settings = Settings(_env_file=None)
        assert settings.api_keys == ["test-key-1", "test-key-2"]

    def test_rate_limit_codes_configurable(self):
        """Test 503 can be added to the rate-limit codes."""
        settings = Settings(_env_file=None, rate_limit_status_codes="429, 503")
        assert settings.rate_limit_codes == frozenset({429, 503})

    def test_rejects_non_positive_capacity(self):
        """Test invalid cache capacity is rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, cache_max_entries=0)


class TestFromSettings:
    """Test gateway construction."""

    def test_builds_components(self, test_settings, clock):
        """Test pool and cache reflect settings."""
        gateway = GenerationGateway.from_settings(test_settings, sleep=clock.sleep, clock=clock)

        assert len(gateway.pool) == 2
        assert gateway.pool.default_cooldown == 60.0
        assert gateway.cache.max_entries == 50
        assert gateway.cache.ttl_seconds == 300.0
        assert gateway.orchestrator.rate_limit_profile.base_delay == 4.0
        assert gateway.orchestrator.generic_profile.max_delay == 5.0

    def test_no_keys_is_fatal(self, clock):
        """Test startup fails without credentials."""
        settings = Settings(_env_file=None, generation_api_keys="")
        with pytest.raises(ValueError):
            GenerationGateway.from_settings(settings, clock=clock)

    def test_instances_are_independent(self, test_settings, clock):
        """Test each gateway owns its own pool and cache."""
        first = GenerationGateway.from_settings(test_settings, clock=clock)
        second = GenerationGateway.from_settings(test_settings, clock=clock)
        assert first.pool is not second.pool
        assert first.cache is not second.cache


class TestGatewayCalls:
    """Test attempt budgets per call site."""

    @pytest.fixture
    def gateway(self, test_settings, clock):
        return GenerationGateway.from_settings(test_settings, sleep=clock.sleep, clock=clock)

    @pytest.mark.asyncio
    async def test_standard_budget(self, gateway):
        """Test standard calls get three attempts."""
        unit = AsyncMock(side_effect=UpstreamError("boom", kind=ErrorKind.TRANSIENT))
        with pytest.raises(ExhaustedError) as exc_info:
            await gateway.generate(unit)
        assert unit.await_count == 3
        assert exc_info.value.attempts == 3

    @pytest.mark.asyncio
    async def test_image_budget(self, gateway):
        """Test image generation gets the larger budget."""
        unit = AsyncMock(side_effect=UpstreamError("boom", kind=ErrorKind.TRANSIENT))
        with pytest.raises(ExhaustedError):
            await gateway.generate_image(unit)
        assert unit.await_count == 5

    @pytest.mark.asyncio
    async def test_generate_caches(self, gateway):
        """Test fingerprinted calls are cached."""
        unit = AsyncMock(return_value={"ok": True})
        await gateway.generate(unit, "f1")
        await gateway.generate(unit, "f1")
        assert unit.await_count == 1

    @pytest.mark.asyncio
    async def test_reset_cache(self, gateway):
        """Test operational cache reset."""
        unit = AsyncMock(return_value="v")
        await gateway.generate(unit, "f1")
        gateway.reset_cache()
        await gateway.generate(unit, "f1")
        assert unit.await_count == 2

    def test_get_status(self, gateway):
        """Test status combines pool and cache."""
        status = gateway.get_status()
        assert [c["label"] for c in status["credentials"]] == ["key-1", "key-2"]
        assert status["cache"]["max_entries"] == 50
