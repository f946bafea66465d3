"""
Agents Infrastructure Layer
===========================

Knowledge base search and ingestion.
"""

from swiftship.agents.infrastructure.knowledge_base import KnowledgeBaseAdapter, DocumentIngester

__all__ = ["KnowledgeBaseAdapter", "DocumentIngester"]
