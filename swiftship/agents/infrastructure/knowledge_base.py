"""
Knowledge Base Infrastructure
=============================

Similarity search and ingestion over the vector store.

Embeddings come from the configured LLM client, so documents and
queries share one embedding model.
"""

import uuid
from typing import List

from swiftship.agents.application import IKnowledgeBase
from swiftship.infrastructure.llm import ILLMClient
from swiftship.infrastructure.vectorstore import Document, IVectorStore, SearchResult
from swiftship.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)


class KnowledgeBaseAdapter(IKnowledgeBase):
    """Embed the query, then search the vector store with a score threshold."""

    def __init__(self, llm_client: ILLMClient, vector_store: IVectorStore):
        self._llm = llm_client
        self._vector_store = vector_store

    async def search(self, text: str, threshold: float, limit: int) -> List[SearchResult]:
        """
        Raises:
            LLMException: If the query cannot be embedded
            VectorStoreException: If the search fails
        """
        with log_latency(logger, "knowledge_base_search", limit=limit):
            embedding = await self._llm.generate_embedding(text)
            return await self._vector_store.search(
                embedding.embedding,
                top_k=limit,
                score_threshold=threshold
            )


class DocumentIngester:
    """
    Chunks, embeds and stores knowledge base articles.

    Re-ingesting an article replaces the chunks stored under its url.
    """

    def __init__(self, llm_client: ILLMClient, vector_store: IVectorStore):
        self._llm = llm_client
        self._vector_store = vector_store

    async def ingest_text(
        self,
        text: str,
        metadata: dict,
        chunk_size: int = 1000,
        chunk_overlap: int = 200
    ) -> dict:
        """
        Ingest one article.

        Args:
            text: Article body
            metadata: title, url, category, resolution, ...
            chunk_size: Target chunk size in characters
            chunk_overlap: Characters shared by consecutive chunks

        Returns:
            Ingestion statistics
        """
        chunks = self._chunk_text(text, chunk_size, chunk_overlap)
        if not chunks:
            return {"status": "success", "chunks_created": 0, "message": "No content to chunk"}

        replaced = 0
        if metadata.get("url"):
            replaced = await self._vector_store.delete_by_source(metadata["url"])

        documents = []
        for index, chunk in enumerate(chunks):
            embedding = await self._llm.generate_embedding(chunk)
            documents.append(Document(
                id=str(uuid.uuid4()),
                text=chunk,
                embedding=embedding.embedding,
                metadata={**metadata, "chunk_index": index}
            ))

        await self._vector_store.add_documents(documents)

        logger.info(
            "Article ingested",
            extra={"url": metadata.get("url"), "chunks": len(chunks), "replaced": replaced}
        )
        return {
            "status": "success",
            "chunks_created": len(chunks),
            "chunks_replaced": replaced,
            "message": f"Successfully ingested {len(chunks)} chunks"
        }

    @staticmethod
    def _chunk_text(text: str, chunk_size: int, chunk_overlap: int) -> List[str]:
        """
        Split text at the latest paragraph, line or sentence break in the
        second half of each window, else hard at chunk_size.
        """
        chunks = []
        start = 0
        text_length = len(text)

        while start < text_length:
            end = start + chunk_size

            if end < text_length:
                for separator in ("\n\n", "\n", ". "):
                    position = text.rfind(separator, start, end)
                    if position > start + chunk_size // 2:
                        end = position + len(separator)
                        break

            chunk = text[start:end].strip()
            if chunk:
                chunks.append(chunk)

            start = max(end - chunk_overlap, start + 1) if end < text_length else text_length

        return chunks
