"""Vector-similarity collaborator contract.

The similarity store (embeddings, index, scoring) lives outside this
package. Implementations report failure by returning a falsy or empty
result rather than raising.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Metadata limits applied when an innovation is stored
DESCRIPTION_LIMIT = 500
MARKET_TEXT_LIMIT = 300


@dataclass
class SimilarMatch:
    """One search hit."""

    id: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class IndexStats:
    """Size of the similarity index."""

    count: int
    dimension: int


class SimilarityStore(ABC):
    """Opaque key/value-with-score lookup for past innovations."""

    @abstractmethod
    async def store(self, item: dict[str, Any], embedding_input: str) -> bool:
        """Store an innovation. Returns False on failure."""

    @abstractmethod
    async def search(self, query: str, embedding_input: str, top_k: int = 5) -> list[SimilarMatch]:
        """Return matches ordered by descending score; empty on failure."""

    @abstractmethod
    async def delete(self, item_id: str) -> bool:
        """Delete an innovation. Returns False on failure."""

    @abstractmethod
    async def stats(self) -> Optional[IndexStats]:
        """Return index statistics, or None if unavailable."""


def innovation_embedding_text(innovation: dict[str, Any]) -> str:
    """Text used to embed a stored innovation."""
    lines = [
        f"Product: {innovation.get('conceptName', '')}",
        f"Description: {innovation.get('conceptDescription', '')}",
        f"Pattern: {innovation.get('patternUsed', '')}",
        f"Market Gap: {innovation.get('marketGap', '')}",
        f"Market Benefit: {innovation.get('marketBenefit', '')}",
    ]
    return "\n".join(lines)


def innovation_metadata(innovation: dict[str, Any]) -> dict[str, Any]:
    """Trimmed metadata stored alongside an innovation's embedding."""
    return {
        "conceptName": innovation.get("conceptName", ""),
        "conceptDescription": (innovation.get("conceptDescription") or "")[:DESCRIPTION_LIMIT],
        "patternUsed": innovation.get("patternUsed", ""),
        "marketGap": (innovation.get("marketGap") or "")[:MARKET_TEXT_LIMIT],
        "marketBenefit": (innovation.get("marketBenefit") or "")[:MARKET_TEXT_LIMIT],
        "noveltyScore": innovation.get("noveltyScore") or 0,
        "viabilityScore": innovation.get("viabilityScore") or 0,
    }


async def build_innovation_context(
    store: Optional[SimilarityStore],
    query: str,
    top_k: int = 3,
) -> str:
    """Build a prompt block describing similar past innovations.

    Args:
        store: Similarity store, or None when not configured
        query: Product description or user query
        top_k: Number of matches to include

    Returns:
        Context block, or an empty string when nothing relevant is found
    """
    if store is None:
        return ""

    matches = await store.search(query, query, top_k)
    if not matches:
        return ""

    lines = []
    for position, match in enumerate(matches, start=1):
        meta = match.metadata
        lines.append(
            f"[Similar Innovation {position}] {meta.get('conceptName', match.id)}: "
            f"{meta.get('conceptDescription', '')} "
            f"(Pattern: {meta.get('patternUsed', 'unknown')}, Relevance: {match.score * 100:.1f}%)"
        )

    logger.debug(f"Built innovation context from {len(matches)} matches")
    return "\n\nRELEVANT PAST INNOVATIONS:\n" + "\n".join(lines) + "\n"
