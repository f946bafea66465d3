"""
LLM Client Infrastructure
==========================

Wrapper for LLM providers (OpenAI, Z.AI) providing a clean interface for
the completion and embedding calls made by the agents.

The agents depend on the ILLMClient abstraction, never on a provider SDK.
"""

import asyncio
import hashlib
import json
import random
import time
from abc import ABC, abstractmethod
from typing import List, Optional

from openai import AsyncOpenAI
from zai import ZaiClient

from swiftship.config import settings
from swiftship.core import ConfigurationException, LLMException
from swiftship.shared.infrastructure.grafana import get_grafana_exporter
from swiftship.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class EmbeddingResult:
    """Result of an embedding generation."""

    def __init__(self, embedding: List[float], model: str):
        self.embedding = embedding
        self.model = model
        self.dimension = len(embedding)


class ChatCompletionResult:
    """Result of a chat completion."""

    def __init__(
        self,
        content: str,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
        latency_ms: int
    ):
        self.content = content
        self.model = model
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.total_tokens = prompt_tokens + completion_tokens
        self.latency_ms = latency_ms


class ILLMClient(ABC):
    """
    Interface for LLM client operations.

    Only the two calls the agents make are defined.
    """

    @abstractmethod
    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """Generate embedding for text."""

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.7,
        max_tokens: int = 1000,
        operation: str = "chat_completion",
        top_p: Optional[float] = None,
        frequency_penalty: Optional[float] = None,
        presence_penalty: Optional[float] = None
    ) -> ChatCompletionResult:
        """Generate chat completion."""


async def _export_metrics(result: ChatCompletionResult, operation: str) -> None:
    exporter = get_grafana_exporter()
    if exporter.is_enabled():
        await exporter.export_llm_metrics(
            model=result.model,
            prompt_tokens=result.prompt_tokens,
            completion_tokens=result.completion_tokens,
            latency_ms=result.latency_ms,
            operation=operation
        )


class OpenAILLMClient(ILLMClient):
    """
    OpenAI client implementation.

    Provides async wrapper around OpenAI SDK operations.
    """

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self._api_key = api_key or settings.openai_api_key
        if not self._api_key:
            raise ConfigurationException("OpenAI API key not configured")

        self._client = AsyncOpenAI(api_key=self._api_key, base_url=base_url)
        self._model = settings.llm_model
        self._embedding_model = settings.embedding_model

    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """
        Generate embedding for text using the OpenAI embedding model.

        Raises:
            LLMException: If embedding generation fails
        """
        try:
            response = await self._client.embeddings.create(
                model=self._embedding_model,
                input=text
            )
        except Exception as e:
            raise LLMException(f"Embedding generation failed: {e}") from e

        return EmbeddingResult(
            embedding=response.data[0].embedding,
            model=self._embedding_model
        )

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.7,
        max_tokens: int = 1000,
        operation: str = "chat_completion",
        top_p: Optional[float] = None,
        frequency_penalty: Optional[float] = None,
        presence_penalty: Optional[float] = None
    ) -> ChatCompletionResult:
        """
        Generate chat completion.

        Args:
            messages: List of message dicts with 'role' and 'content'
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            operation: Operation name for metrics (routing, docs_answer, ...)
            top_p, frequency_penalty, presence_penalty: Optional sampling controls

        Raises:
            LLMException: If completion fails
        """
        start_time = time.perf_counter()
        sampling = {
            key: value for key, value in {
                "top_p": top_p,
                "frequency_penalty": frequency_penalty,
                "presence_penalty": presence_penalty,
            }.items() if value is not None
        }

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                **sampling
            )
        except Exception as e:
            raise LLMException(f"Chat completion failed: {e}") from e

        usage = response.usage
        result = ChatCompletionResult(
            content=response.choices[0].message.content or "",
            model=self._model,
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            latency_ms=int((time.perf_counter() - start_time) * 1000)
        )
        await _export_metrics(result, operation)
        return result


class ZAIILLMClient(ILLMClient):
    """
    Z.AI SDK client implementation for GLM models.

    The SDK is synchronous, so calls run in a worker thread.
    """

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key or settings.zai_api_key
        if not self._api_key:
            raise ConfigurationException("Z.AI API key not configured")

        self._client = ZaiClient(api_key=self._api_key)
        self._model = settings.llm_model
        self._embedding_model = settings.embedding_model

    async def generate_embedding(self, text: str) -> EmbeddingResult:
        try:
            response = await asyncio.to_thread(
                self._client.embeddings.create,
                model=self._embedding_model,
                input=text
            )
        except Exception as e:
            raise LLMException(f"Embedding generation failed: {e}") from e

        return EmbeddingResult(
            embedding=response.data[0].embedding,
            model=self._embedding_model
        )

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.7,
        max_tokens: int = 1000,
        operation: str = "chat_completion",
        top_p: Optional[float] = None,
        frequency_penalty: Optional[float] = None,
        presence_penalty: Optional[float] = None
    ) -> ChatCompletionResult:
        """GLM does not accept frequency/presence penalties; they are ignored."""
        start_time = time.perf_counter()
        extra = {"top_p": top_p} if top_p is not None else {}

        try:
            response = await asyncio.to_thread(
                self._client.chat.completions.create,
                model=self._model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                **extra
            )
        except Exception as e:
            raise LLMException(f"Chat completion failed: {e}") from e

        content = response.choices[0].message.content or ""

        # Z.AI doesn't always return token usage, so we estimate
        result = ChatCompletionResult(
            content=content,
            model=self._model,
            prompt_tokens=len(str(messages)) // 4,
            completion_tokens=len(content) // 4,
            latency_ms=int((time.perf_counter() - start_time) * 1000)
        )
        await _export_metrics(result, operation)
        return result


class MockLLMClient(ILLMClient):
    """
    Mock LLM client for local development and testing.

    Returns predictable responses without calling external APIs.
    """

    ROUTING_KEYWORDS = [
        ("QUOTE_AGENT", ("quote", "price", "pricing", "rate", "cost")),
        ("SUPPORT_AGENT", ("bug", "error", "issue", "broken", "problem", "billing")),
        ("SHIPMENTS_AGENT", ("shipment", "track", "delivery", "pickup", "logistics")),
    ]

    async def generate_embedding(self, text: str) -> EmbeddingResult:
        """Return a deterministic pseudo-embedding seeded by the text hash."""
        seed = int(hashlib.sha256(text.encode()).hexdigest()[:8], 16)
        rng = random.Random(seed)
        embedding = [rng.uniform(-1, 1) for _ in range(settings.embedding_dimension)]
        return EmbeddingResult(embedding=embedding, model="mock-embedding")

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.7,
        max_tokens: int = 1000,
        operation: str = "chat_completion",
        top_p: Optional[float] = None,
        frequency_penalty: Optional[float] = None,
        presence_penalty: Optional[float] = None
    ) -> ChatCompletionResult:
        """Return mock response based on operation type."""
        user_content = str(messages[-1].get("content", "")).lower() if messages else ""

        if operation == "routing":
            agent = "DOCS_AGENT"
            for name, keywords in self.ROUTING_KEYWORDS:
                if any(keyword in user_content for keyword in keywords):
                    agent = name
                    break
            content = json.dumps({"agent": agent, "reason": "Mock keyword routing"})
        elif operation == "docs_topic":
            content = "OTHER"
        elif operation == "support_escalation":
            content = "false"
        elif operation == "support_pages":
            content = "[]"
        else:
            content = "This is a mock Swift Ship assistant response for testing purposes."

        return ChatCompletionResult(
            content=content,
            model="mock-model",
            prompt_tokens=100,
            completion_tokens=len(content.split()),
            latency_ms=1
        )


def create_llm_client(provider: Optional[str] = None) -> ILLMClient:
    """
    Build the LLM client for the configured provider.

    Raises:
        ConfigurationException: If the provider's API key is missing
    """
    provider = provider or settings.llm_provider
    if provider == "mock":
        return MockLLMClient()
    if provider == "zai":
        return ZAIILLMClient()
    return OpenAILLMClient()


__all__ = [
    "EmbeddingResult",
    "ChatCompletionResult",
    "ILLMClient",
    "OpenAILLMClient",
    "ZAIILLMClient",
    "MockLLMClient",
    "create_llm_client",
]
