"""ReversR: systematic inventive thinking on a rate-limited generation service."""

__version__ = "0.1.0"

from .gateway import GenerationGateway
from .llm import InnovationClient
from .resilience import CredentialPool, ExhaustedError, ResponseCache, RetryOrchestrator

__all__ = [
    "GenerationGateway",
    "InnovationClient",
    "CredentialPool",
    "ResponseCache",
    "RetryOrchestrator",
    "ExhaustedError",
]
