"""
Specialized Agents
==================

Role-bound handlers that turn a conversation into one assistant reply.

- QuoteAgent: drives the quote state machine, no LLM needed
- DocsAgent: topic classification plus documentation search
- SupportAgent: similar issues, escalation check, suggested pages
- ShipmentsAgent: answers about the customer's own shipments
- RouterAgent: picks which of the above handles a message

Every agent catches its own failures in process() and replies with its
fixed apology text instead of raising.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from swiftship.config import AGENT_TYPE_TO_NAME, AgentName, AgentType, DocsTopic, settings
from swiftship.core import LLMException
from swiftship.infrastructure.llm import ILLMClient
from swiftship.infrastructure.vectorstore import SearchResult
from swiftship.agents.domain import (
    AgentContext,
    AgentResponse,
    DocsPromptBuilder,
    PageSuggestion,
    QuotePromptBuilder,
    RouterPromptBuilder,
    RoutingDecision,
    ShipmentsPromptBuilder,
    SourceReference,
    SupportPromptBuilder,
    build_system_message,
    format_shipments,
    site_map_as_dict,
    strip_code_fences,
    validate_suggestions,
)
from swiftship.quoting.application import IConversationStateStore, QuoteStateMachine
from swiftship.quoting.domain import ConversationState
from swiftship.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

DEFAULT_ERROR_MESSAGE = "I encountered an error while processing your request. Please try again."


# ========== Knowledge Base Interface ==========

class IKnowledgeBase(ABC):
    """Interface for similarity search over embedded documents."""

    @abstractmethod
    async def search(self, text: str, threshold: float, limit: int) -> List[SearchResult]:
        """Return up to `limit` documents with similarity >= threshold, best first."""


# ========== Base Agent ==========

class BaseAgent(ABC):
    """
    Shared completion and search plumbing.

    Subclasses set the class attributes and implement _process().
    """

    name: AgentName
    agent_id: str = "agent"
    agent_type: str = "general"
    system_prompt: str = ""
    error_message: str = DEFAULT_ERROR_MESSAGE
    requires_llm: bool = True

    def __init__(
        self,
        llm_client: Optional[ILLMClient] = None,
        knowledge_base: Optional[IKnowledgeBase] = None,
        history_window: Optional[int] = None
    ):
        self._llm = llm_client
        self._knowledge_base = knowledge_base
        self._history_window = history_window or settings.history_window

    @property
    def is_available(self) -> bool:
        """False when the agent needs an LLM and none is configured."""
        return not self.requires_llm or self._llm is not None

    async def process(self, context: AgentContext) -> AgentResponse:
        try:
            return await self._process(context)
        except Exception as e:
            logger.error(
                "Agent processing failed",
                extra={"agent_id": self.agent_id, "error": str(e)},
                exc_info=True
            )
            return self.reply(self.error_message, error=True)

    @abstractmethod
    async def _process(self, context: AgentContext) -> AgentResponse:
        """Produce the reply; may raise."""

    def reply(
        self,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
        sources: Optional[List[SourceReference]] = None,
        error: bool = False
    ) -> AgentResponse:
        return AgentResponse(
            content=content,
            agent_id=self.agent_id,
            metadata=metadata or {},
            sources=sources or [],
            error=error,
        )

    def history(self, context: AgentContext, count: Optional[int] = None) -> List[Dict[str, str]]:
        """Recent messages in completion format, bounded by the history window."""
        return [message.to_llm() for message in context.recent(count or self._history_window)]

    async def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        operation: str = "chat_completion"
    ) -> str:
        """Raw completion without the role prompt."""
        if self._llm is None:
            raise LLMException("LLM client not configured", {"agent_id": self.agent_id})

        result = await self._llm.chat_completion(
            messages=messages,
            temperature=settings.llm_temperature if temperature is None else temperature,
            max_tokens=max_tokens or settings.llm_max_tokens,
            operation=operation,
            top_p=settings.llm_top_p,
            frequency_penalty=settings.llm_frequency_penalty,
            presence_penalty=settings.llm_presence_penalty,
        )
        return result.content

    async def get_completion(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        operation: str = "chat_completion",
        system_prompt: Optional[str] = None
    ) -> str:
        """Completion with the role prompt and focus guard prepended."""
        system = build_system_message(system_prompt or self.system_prompt, self.agent_type)
        return await self.complete(
            [{"role": "system", "content": system}] + messages,
            temperature=temperature,
            max_tokens=max_tokens,
            operation=operation,
        )

    async def search_similar_content(
        self,
        text: str,
        threshold: Optional[float] = None,
        limit: int = 5
    ) -> List[SearchResult]:
        """Knowledge base matches; search failures degrade to no matches."""
        if self._knowledge_base is None:
            return []
        try:
            return await self._knowledge_base.search(
                text,
                threshold=settings.similarity_threshold if threshold is None else threshold,
                limit=limit
            )
        except Exception as e:
            logger.warning(
                "Knowledge base search failed",
                extra={"agent_id": self.agent_id, "error": str(e)}
            )
            return []


# ========== Quote Agent ==========

class QuoteAgent(BaseAgent):
    """
    Wraps the quote state machine.

    A serialized state sent by the client in metadata.quote wins over the
    stored one. The updated state is always returned in metadata.quote and
    written back to the store when the conversation has a key.
    """

    name = AgentName.QUOTE
    agent_id = "quote"
    agent_type = "quote"
    error_message = QuotePromptBuilder.ERROR
    requires_llm = False

    def __init__(
        self,
        state_machine: QuoteStateMachine,
        state_store: Optional[IConversationStateStore] = None,
        llm_client: Optional[ILLMClient] = None,
        knowledge_base: Optional[IKnowledgeBase] = None
    ):
        super().__init__(llm_client, knowledge_base)
        self._state_machine = state_machine
        self._state_store = state_store

    @staticmethod
    def conversation_key(context: AgentContext) -> Optional[str]:
        return context.conversation_id or context.user_id or None

    def load_state(self, context: AgentContext, key: Optional[str]) -> Optional[ConversationState]:
        client_state = context.metadata.get("quote")
        if isinstance(client_state, dict) and client_state:
            try:
                return ConversationState.from_dict(client_state)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(
                    "Ignoring malformed client quote state",
                    extra={"conversation_key": key, "error": str(e)}
                )

        if key and self._state_store is not None:
            return self._state_store.get(key)
        return None

    async def _process(self, context: AgentContext) -> AgentResponse:
        key = self.conversation_key(context)
        state = self.load_state(context, key)

        result = await self._state_machine.handle(
            state,
            context.last_user_message,
            customer=context.customer
        )

        if key and self._state_store is not None:
            self._state_store.save(key, result.state)

        metadata: Dict[str, Any] = {
            "quote": result.state.to_dict(),
            "step": result.state.step.value,
        }
        if result.outcome:
            metadata["outcome"] = result.outcome.value
        if result.quote_id:
            metadata["quoteId"] = result.quote_id

        return self.reply(result.reply, metadata)


# ========== Docs Agent ==========

class DocsAgent(BaseAgent):
    """
    Answers from documentation.

    The reply is the matching documents themselves, cleaned and joined,
    plus a topic-specific closing line. The LLM only classifies the topic.
    """

    name = AgentName.DOCS
    agent_id = "docs"
    agent_type = "docs"
    system_prompt = DocsPromptBuilder.SYSTEM_PROMPT
    error_message = DocsPromptBuilder.ERROR

    SEARCH_LIMIT = 5

    async def classify_topic(self, message: str) -> DocsTopic:
        raw = await self.get_completion(
            [
                {"role": "system", "content": DocsPromptBuilder.TOPIC_PROMPT},
                {"role": "user", "content": message},
            ],
            temperature=0,
            operation="docs_topic"
        )
        return DocsPromptBuilder.parse_topic(raw)

    async def _process(self, context: AgentContext) -> AgentResponse:
        message = context.last_user_message
        if not message:
            return self.reply(DocsPromptBuilder.GREETING)

        topic = await self.classify_topic(message)
        matches = await self.search_similar_content(message, limit=self.SEARCH_LIMIT)

        content = DocsPromptBuilder.format_documents([match.content for match in matches])
        content += DocsPromptBuilder.topic_suffix(topic)

        sources = [
            SourceReference(
                title=match.metadata.get("title", "Untitled"),
                url=match.metadata.get("url", ""),
                score=match.score
            )
            for match in matches
        ]

        logger.info(
            "Docs answer assembled",
            extra={"topic": topic.value, "documents": len(matches)}
        )
        return self.reply(content, {"topic": topic.value}, sources=sources)


# ========== Support Agent ==========

class SupportAgent(BaseAgent):
    """
    Technical support with similar-issue grounding.

    Whether a human is needed is reported as metadata, not acted upon.
    """

    name = AgentName.SUPPORT
    agent_id = "support"
    agent_type = "technical_support"
    system_prompt = SupportPromptBuilder.SYSTEM_PROMPT
    error_message = SupportPromptBuilder.ERROR

    SEARCH_LIMIT = 2

    async def needs_human(self, message: str) -> bool:
        raw = await self.get_completion(
            [
                {"role": "system", "content": SupportPromptBuilder.ESCALATION_PROMPT},
                {"role": "user", "content": message},
            ],
            temperature=0,
            operation="support_escalation"
        )
        return SupportPromptBuilder.parse_escalation(raw)

    async def suggest_pages(self, message: str) -> List[PageSuggestion]:
        """Pages from the site map the model recommends; [] on any failure."""
        try:
            raw = await self.complete(
                [
                    {"role": "system", "content": SupportPromptBuilder.build_pages_prompt(site_map_as_dict())},
                    {"role": "user", "content": SupportPromptBuilder.build_pages_query(message)},
                ],
                max_tokens=500,
                operation="support_pages"
            )
            return validate_suggestions(json.loads(strip_code_fences(raw)))
        except (LLMException, json.JSONDecodeError) as e:
            logger.warning("Page suggestion failed", extra={"error": str(e)})
            return []

    @staticmethod
    def format_issues(issues: List[SearchResult]) -> str:
        return "\n".join(
            SupportPromptBuilder.format_issue(
                issue.metadata.get("title"),
                issue.metadata.get("resolution"),
                issue.content
            )
            for issue in issues
        )

    async def _process(self, context: AgentContext) -> AgentResponse:
        message = context.last_user_message
        if not message:
            return self.reply(SupportPromptBuilder.GREETING)

        issues = await self.search_similar_content(message, limit=self.SEARCH_LIMIT)
        escalate = await self.needs_human(message)
        pages = await self.suggest_pages(message)

        answer = await self.get_completion(
            [{"role": "system", "content": SupportPromptBuilder.build_context_prompt(
                self.format_issues(issues), escalate
            )}] + self.history(context),
            operation="support_answer"
        )

        if escalate:
            logger.info("Support issue flagged for human intervention", extra={"similar_issues": len(issues)})

        return self.reply(answer, {
            "needsHumanIntervention": escalate,
            "similarIssuesFound": len(issues),
            "suggestedPages": [page.to_dict() for page in pages],
        })


# ========== Shipments Agent ==========

class ShipmentsAgent(BaseAgent):
    """Answers about the customer's shipments passed in request metadata."""

    name = AgentName.SHIPMENTS
    agent_id = "shipments"
    agent_type = "shipments"
    system_prompt = ShipmentsPromptBuilder.SYSTEM_PROMPT
    error_message = ShipmentsPromptBuilder.ERROR

    SEARCH_LIMIT = 3
    HISTORY_MESSAGES = 2
    MAX_TOKENS = 500

    async def _process(self, context: AgentContext) -> AgentResponse:
        message = context.last_user_message
        if not message:
            return self.reply(ShipmentsPromptBuilder.EMPTY_MESSAGE)

        shipments = context.shipments
        system_prompt = ShipmentsPromptBuilder.build_system_prompt(
            context.customer,
            format_shipments(shipments)
        )

        matches = await self.search_similar_content(message, limit=self.SEARCH_LIMIT)
        messages = []
        if matches:
            messages.append({
                "role": "system",
                "content": ShipmentsPromptBuilder.build_context_prompt([m.content for m in matches])
            })
        messages.extend(self.history(context, self.HISTORY_MESSAGES))

        answer = await self.get_completion(
            messages,
            temperature=0.7,
            max_tokens=self.MAX_TOKENS,
            operation="shipments_answer",
            system_prompt=system_prompt
        )

        return self.reply(answer, {
            "similarContentFound": bool(matches),
            "shipmentCount": len(shipments),
        })


# ========== Router Agent ==========

class RouterAgent(BaseAgent):
    """
    Chooses the agent for a message.

    An explicit agentType (or agent) in metadata wins without a model call.
    Missing messages, model failures, malformed output and unknown agent
    names all fall back to DOCS_AGENT; route() never raises.
    """

    agent_id = "router"
    agent_type = "router"
    system_prompt = RouterPromptBuilder.SYSTEM_PROMPT

    @staticmethod
    def explicit_override(metadata: Dict[str, Any]) -> Optional[AgentType]:
        for key in ("agentType", "agent"):
            value = metadata.get(key)
            if not value:
                continue
            try:
                return AgentType(str(value).strip().lower())
            except ValueError:
                logger.warning("Ignoring unknown agent override", extra={"override": value})
        return None

    @staticmethod
    def parse_decision(raw: str) -> RoutingDecision:
        try:
            data = json.loads(strip_code_fences(raw))
            agent = AgentName(str(data.get("agent", "")).strip().upper())
        except (json.JSONDecodeError, AttributeError, ValueError):
            logger.warning("Invalid router response", extra={"response": raw[:200]})
            return RoutingDecision(AgentName.DOCS, RouterPromptBuilder.INVALID_RESPONSE_REASON)
        return RoutingDecision(agent, str(data.get("reason", "")))

    async def route(self, context: AgentContext) -> RoutingDecision:
        override = self.explicit_override(context.metadata)
        if override is not None:
            return RoutingDecision(AGENT_TYPE_TO_NAME[override], RouterPromptBuilder.override_reason(override.value))

        message = context.last_user_message
        if not message:
            return RoutingDecision(AgentName.DOCS, RouterPromptBuilder.NO_MESSAGE_REASON)

        try:
            raw = await self.get_completion(
                [{"role": "user", "content": message}],
                temperature=0,
                operation="routing"
            )
        except Exception as e:
            logger.warning("Routing completion failed, defaulting to docs agent", extra={"error": str(e)})
            return RoutingDecision(AgentName.DOCS, "Router unavailable, defaulting to docs agent")

        return self.parse_decision(raw)

    async def _process(self, context: AgentContext) -> AgentResponse:
        decision = await self.route(context)
        return self.reply(json.dumps(decision.to_dict()), {"routedAgent": decision.agent.value})
