"""Tests for knowledge base ingestion and search."""

import pytest

from swiftship.agents.infrastructure import DocumentIngester, KnowledgeBaseAdapter
from swiftship.infrastructure.llm import MockLLMClient
from swiftship.infrastructure.vectorstore import InMemoryVectorStore, cosine_similarity

ARTICLE = (
    "Express freight ships the same day when booked before noon.\n\n"
    "Standard freight ships within two business days. "
    "Eco freight consolidates loads and ships within a week.\n\n"
    "Hazardous materials require a declaration and an approved carrier."
)


class TestChunking:
    def test_short_text_is_one_chunk(self):
        assert DocumentIngester._chunk_text("One paragraph.", 1000, 200) == ["One paragraph."]

    def test_splits_on_paragraphs_with_overlap(self):
        chunks = DocumentIngester._chunk_text(ARTICLE, 120, 20)

        assert len(chunks) > 1
        assert chunks[0].startswith("Express freight ships the same day")
        assert chunks[0].endswith("within two business days.")
        assert all(len(chunk) <= 120 for chunk in chunks)
        assert chunks[-1].endswith("approved carrier.")

    def test_blank_text(self):
        assert DocumentIngester._chunk_text("   \n\n  ", 100, 10) == []


class TestKnowledgeBase:
    """Ingestion into and search over the in-memory store."""

    @pytest.mark.asyncio
    async def test_reingest_replaces_article(self):
        store = InMemoryVectorStore()
        ingester = DocumentIngester(MockLLMClient(), store)
        metadata = {"title": "Service levels", "url": "/docs/services"}

        first = await ingester.ingest_text(ARTICLE, metadata, chunk_size=120, chunk_overlap=20)
        second = await ingester.ingest_text(ARTICLE, metadata, chunk_size=120, chunk_overlap=20)

        assert second["chunks_replaced"] == first["chunks_created"]
        assert await store.get_document_count() == second["chunks_created"]

    @pytest.mark.asyncio
    async def test_empty_article(self):
        result = await DocumentIngester(MockLLMClient(), InMemoryVectorStore()).ingest_text("", {})
        assert result["chunks_created"] == 0

    @pytest.mark.asyncio
    async def test_exact_text_is_top_hit(self):
        llm = MockLLMClient()
        store = InMemoryVectorStore()
        await DocumentIngester(llm, store).ingest_text(ARTICLE, {"url": "/docs/services"}, chunk_size=120, chunk_overlap=20)

        kb = KnowledgeBaseAdapter(llm, store)
        query = DocumentIngester._chunk_text(ARTICLE, 120, 20)[0]
        results = await kb.search(query, threshold=0.99, limit=5)

        assert len(results) == 1
        assert results[0].content == query
        assert results[0].metadata["chunk_index"] == 0
        assert results[0].score == pytest.approx(1.0)

    def test_cosine_similarity(self):
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)
