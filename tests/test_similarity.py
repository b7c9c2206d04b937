"""Tests for the similarity collaborator helpers."""

import pytest

from reversr.similarity import (
    IndexStats,
    SimilarMatch,
    SimilarityStore,
    build_innovation_context,
    innovation_embedding_text,
    innovation_metadata,
)


class InMemoryStore(SimilarityStore):
    """Store returning canned matches."""

    def __init__(self, matches):
        self.matches = matches
        self.queries = []

    async def store(self, item, embedding_input):
        return True

    async def search(self, query, embedding_input, top_k=5):
        self.queries.append((query, top_k))
        return self.matches[:top_k]

    async def delete(self, item_id):
        return False

    async def stats(self):
        return IndexStats(count=len(self.matches), dimension=768)


class TestSimilarityStore:
    """Test the abstract contract."""

    def test_cannot_instantiate_abstract(self):
        """Test the ABC requires all operations."""
        with pytest.raises(TypeError):
            SimilarityStore()

    @pytest.mark.asyncio
    async def test_concrete_store(self):
        """Test a concrete store satisfies the contract."""
        store = InMemoryStore([])
        assert await store.stats() == IndexStats(count=0, dimension=768)
        assert await store.delete("missing") is False


class TestBuildInnovationContext:
    """Test retrieval context formatting."""

    @pytest.mark.asyncio
    async def test_no_store(self):
        """Test no store yields no context."""
        assert await build_innovation_context(None, "bottle") == ""

    @pytest.mark.asyncio
    async def test_no_matches(self, mock_similarity_store):
        """Test an empty search yields no context."""
        assert await build_innovation_context(mock_similarity_store, "bottle") == ""

    @pytest.mark.asyncio
    async def test_formats_matches(self):
        """Test matches are listed with pattern and relevance."""
        store = InMemoryStore(
            [
                SimilarMatch(
                    id="i1",
                    score=0.923,
                    metadata={
                        "conceptName": "Sun-Lid",
                        "conceptDescription": "Lid that purifies water",
                        "patternUsed": "Task Unification",
                    },
                ),
                SimilarMatch(id="i2", score=0.5),
            ]
        )

        context = await build_innovation_context(store, "bottle", top_k=3)

        assert context.startswith("\n\nRELEVANT PAST INNOVATIONS:\n")
        assert "[Similar Innovation 1] Sun-Lid: Lid that purifies water" in context
        assert "(Pattern: Task Unification, Relevance: 92.3%)" in context
        assert "[Similar Innovation 2] i2" in context
        assert store.queries == [("bottle", 3)]


class TestInnovationText:
    """Test embedding text and metadata."""

    def test_embedding_text(self, sample_innovation):
        """Test embedding text includes the key fields."""
        text = innovation_embedding_text(sample_innovation)
        assert "Product: Sun-Lid" in text
        assert "Pattern: Task Unification" in text
        assert "Market Gap: Hikers without filters" in text

    def test_metadata_truncated(self, sample_innovation):
        """Test long descriptions are trimmed in metadata."""
        innovation = dict(sample_innovation, conceptDescription="x" * 900, marketGap=None)
        metadata = innovation_metadata(innovation)
        assert len(metadata["conceptDescription"]) == 500
        assert metadata["marketGap"] == ""
        assert metadata["noveltyScore"] == 7
