"""Resilience layer for calls to the generation service.

This module provides:
- Credential pool with per-credential cooldowns
- Exponential backoff with jitter
- LRU response cache with TTL
- Retry orchestrator composing the above
"""

from .backoff import GENERIC_ERROR_PROFILE, RATE_LIMIT_PROFILE, BackoffProfile, compute_delay
from .cache import ResponseCache
from .credentials import Credential, CredentialPool
from .errors import ErrorClassifier, ErrorKind, ExhaustedError, UpstreamError
from .orchestrator import RetryOrchestrator

__all__ = [
    "compute_delay",
    "BackoffProfile",
    "RATE_LIMIT_PROFILE",
    "GENERIC_ERROR_PROFILE",
    "ResponseCache",
    "Credential",
    "CredentialPool",
    "ErrorKind",
    "UpstreamError",
    "ExhaustedError",
    "ErrorClassifier",
    "RetryOrchestrator",
]
