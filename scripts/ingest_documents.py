#!/usr/bin/env python3
"""
Ingest Knowledge Base Documents
===============================

Chunks, embeds and stores knowledge base articles in the vector store
the agents search.

Input is a JSON list of articles:

    [{"text": "...", "metadata": {"title": "...", "url": "...", "category": "..."}}]

Support articles may carry a "resolution" in metadata; the support agent
shows it next to similar issues.

Usage:
    python scripts/ingest_documents.py docs/articles.json
"""

import argparse
import asyncio
import json
from pathlib import Path

from swiftship.agents.infrastructure import DocumentIngester
from swiftship.config import settings
from swiftship.infrastructure.llm import create_llm_client
from swiftship.infrastructure.vectorstore import MilvusVectorStore
from swiftship.shared.infrastructure.logging import setup_logging, get_logger

logger = get_logger(__name__)


async def main(path: Path, chunk_size: int, chunk_overlap: int) -> None:
    """Ingest every article in the file."""
    setup_logging(settings.log_level, settings.environment)

    with open(path) as f:
        articles = json.load(f)

    print(f"Loaded {len(articles)} articles")

    vector_store = MilvusVectorStore()
    await vector_store.initialize()
    ingester = DocumentIngester(create_llm_client(), vector_store)

    total_chunks = 0
    for article in articles:
        metadata = article.get("metadata", {})
        stats = await ingester.ingest_text(
            article["text"],
            metadata,
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap
        )
        total_chunks += stats["chunks_created"]
        print(f"  {metadata.get('title', 'Untitled')}: {stats['chunks_created']} chunks")

    count = await vector_store.get_document_count()
    print(f"\nIngested {total_chunks} chunks; collection now holds {count} documents")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Ingest knowledge base articles")
    parser.add_argument("path", type=Path, help="JSON file with articles")
    parser.add_argument("--chunk-size", type=int, default=1000)
    parser.add_argument("--chunk-overlap", type=int, default=200)
    args = parser.parse_args()

    asyncio.run(main(args.path, args.chunk_size, args.chunk_overlap))
