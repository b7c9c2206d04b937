"""Tests for resilience module."""

import pytest


def test_resilience_imports():
    """Test that resilience module can be imported."""
    from reversr.resilience import (
        compute_delay,
        BackoffProfile,
        ResponseCache,
        CredentialPool,
        ErrorClassifier,
        ExhaustedError,
        RetryOrchestrator,
    )

    assert compute_delay is not None
    assert CredentialPool is not None
    assert ResponseCache is not None
    assert RetryOrchestrator is not None
