"""
Vector Store Infrastructure
============================

Vector store implementations for the knowledge base the agents ground on
(documentation articles, resolved support issues, shipment notes).

Scores are cosine similarities in [-1, 1]; searches may drop hits below a
similarity threshold.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pymilvus import MilvusClient

from swiftship.config import settings
from swiftship.core import VectorStoreException
from swiftship.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Document:
    """Document for vector storage."""
    id: str
    text: str
    embedding: List[float]
    metadata: dict = field(default_factory=dict)


@dataclass
class SearchResult:
    """Result from vector search."""
    content: str
    metadata: dict
    score: float
    id: Optional[str] = None


class IVectorStore(ABC):
    """Interface for vector store operations."""

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the vector store."""

    @abstractmethod
    async def get_document_count(self) -> int:
        """Get number of documents in the collection."""

    @abstractmethod
    async def add_documents(self, documents: List[Document]) -> None:
        """Add documents to the vector store."""

    @abstractmethod
    async def search(
        self,
        query_embedding: List[float],
        top_k: int = 5,
        score_threshold: Optional[float] = None
    ) -> List[SearchResult]:
        """Search for similar documents, best match first."""

    @abstractmethod
    async def delete_by_source(self, source_url: str) -> int:
        """Delete all documents from a specific source."""


class MilvusVectorStore(IVectorStore):
    """
    Zilliz Cloud (Managed Milvus) implementation of vector store.

    The collection uses the COSINE metric so hit distances are similarities
    and can be compared with the configured threshold directly.
    """

    def __init__(
        self,
        collection_name: Optional[str] = None,
        uri: Optional[str] = None,
        api_key: Optional[str] = None
    ):
        self._collection_name = collection_name or settings.milvus_collection_name
        self._dimension = settings.embedding_dimension
        self._uri = uri or settings.zilliz_uri
        self._api_key = api_key or settings.zilliz_api_key
        self._client: Optional[MilvusClient] = None
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize Zilliz Cloud client and collection."""
        if self._initialized:
            return

        if not self._uri or not self._api_key:
            raise VectorStoreException("ZILLIZ_URI and ZILLIZ_API_KEY must be configured")

        try:
            self._client = MilvusClient(uri=self._uri, token=self._api_key)

            if not self._client.has_collection(self._collection_name):
                self._client.create_collection(
                    collection_name=self._collection_name,
                    dimension=self._dimension,
                    metric_type="COSINE",
                    id_type="string",
                    max_length=64,
                    auto_id=False
                )
        except Exception as e:
            raise VectorStoreException(f"Failed to initialize Milvus: {e}") from e

        self._initialized = True
        logger.info(
            "Milvus vector store initialized",
            extra={"collection": self._collection_name}
        )

    async def _ensure_client(self) -> MilvusClient:
        if not self._initialized:
            await self.initialize()
        if self._client is None:
            raise VectorStoreException("Vector store not initialized")
        return self._client

    async def get_document_count(self) -> int:
        client = await self._ensure_client()
        try:
            stats = client.get_collection_stats(self._collection_name)
        except Exception as e:
            raise VectorStoreException(f"Failed to read collection stats: {e}") from e
        return int(stats.get("row_count", 0))

    async def add_documents(self, documents: List[Document]) -> None:
        """
        Add documents to the vector store.

        Raises:
            VectorStoreException: If add operation fails
        """
        if not documents:
            return

        client = await self._ensure_client()
        data = [
            {
                "id": doc.id,
                "vector": doc.embedding,
                "text": doc.text,
                "metadata": doc.metadata,
            }
            for doc in documents
        ]

        try:
            client.insert(collection_name=self._collection_name, data=data)
        except Exception as e:
            raise VectorStoreException(f"Failed to add documents: {e}") from e

    async def search(
        self,
        query_embedding: List[float],
        top_k: int = 5,
        score_threshold: Optional[float] = None
    ) -> List[SearchResult]:
        """
        Search for similar documents.

        Raises:
            VectorStoreException: If search fails
        """
        client = await self._ensure_client()

        try:
            results = client.search(
                collection_name=self._collection_name,
                data=[query_embedding],
                limit=top_k,
                output_fields=["text", "metadata"]
            )
        except Exception as e:
            raise VectorStoreException(f"Search failed: {e}") from e

        hits = results[0] if results else []
        formatted = []
        for hit in hits:
            score = float(hit["distance"])
            if score_threshold is not None and score < score_threshold:
                continue
            entity = hit.get("entity", {})
            formatted.append(SearchResult(
                content=entity.get("text", ""),
                metadata=entity.get("metadata") or {},
                score=score,
                id=hit.get("id")
            ))
        return formatted

    async def delete_by_source(self, source_url: str) -> int:
        """Delete all documents whose metadata url matches source_url."""
        client = await self._ensure_client()
        escaped = source_url.replace('"', '\\"')
        try:
            result = client.delete(
                collection_name=self._collection_name,
                filter=f'metadata["url"] == "{escaped}"'
            )
        except Exception as e:
            raise VectorStoreException(f"Delete failed: {e}") from e

        if isinstance(result, dict):
            return int(result.get("delete_count", 0))
        return len(result)


def cosine_similarity(a: List[float], b: List[float]) -> float:
    """Cosine similarity of two vectors; 0.0 when either is all zeros."""
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class InMemoryVectorStore(IVectorStore):
    """
    Process-local vector store for development and tests.

    Brute-force cosine search over every stored document.
    """

    def __init__(self):
        self._documents: Dict[str, Document] = {}

    async def initialize(self) -> None:
        return None

    async def get_document_count(self) -> int:
        return len(self._documents)

    async def add_documents(self, documents: List[Document]) -> None:
        for doc in documents:
            self._documents[doc.id] = doc

    async def search(
        self,
        query_embedding: List[float],
        top_k: int = 5,
        score_threshold: Optional[float] = None
    ) -> List[SearchResult]:
        scored = [
            (cosine_similarity(query_embedding, doc.embedding), doc)
            for doc in self._documents.values()
        ]
        if score_threshold is not None:
            scored = [item for item in scored if item[0] >= score_threshold]
        scored.sort(key=lambda item: item[0], reverse=True)

        return [
            SearchResult(content=doc.text, metadata=doc.metadata, score=score, id=doc.id)
            for score, doc in scored[:top_k]
        ]

    async def delete_by_source(self, source_url: str) -> int:
        doomed = [
            doc_id for doc_id, doc in self._documents.items()
            if doc.metadata.get("url") == source_url
        ]
        for doc_id in doomed:
            del self._documents[doc_id]
        return len(doomed)


__all__ = [
    "Document",
    "SearchResult",
    "IVectorStore",
    "MilvusVectorStore",
    "InMemoryVectorStore",
    "cosine_similarity",
]
