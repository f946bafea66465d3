"""Tests for the agent registry and coordinator."""

import pytest
from unittest.mock import AsyncMock

from swiftship.config import AgentName, MessageRole
from swiftship.agents.application import (
    AgentCoordinator,
    AgentRegistry,
    ChatRequest,
    DocsAgent,
    RouterAgent,
)
from swiftship.agents.domain import COORDINATOR_UNAVAILABLE, AgentContext, Message, RoutingDecision
from swiftship.infrastructure.llm import MockLLMClient
from swiftship.main import build_coordinator
from swiftship.quoting.infrastructure import ConversationStateStore

from conftest import scripted_llm


def user_context(text: str, **metadata) -> AgentContext:
    return AgentContext(messages=[Message(role=MessageRole.USER, content=text)], metadata=metadata)


class TestAgentCoordinator:
    """Dispatch and failure isolation."""

    @pytest.mark.asyncio
    async def test_unregistered_agent_gets_coordinator_message(self):
        llm = scripted_llm({"routing": '{"agent": "SHIPMENTS_AGENT", "reason": "tracking"}'})
        coordinator = AgentCoordinator(RouterAgent(llm), AgentRegistry([DocsAgent(llm)]))

        decision, response = await coordinator.handle(user_context("track SS123"))

        assert decision.agent == AgentName.SHIPMENTS
        assert response.content == COORDINATOR_UNAVAILABLE
        assert response.agent_id == "coordinator"
        assert response.error

    @pytest.mark.asyncio
    async def test_agent_raising_past_boundary(self):
        broken = AsyncMock()
        broken.name = AgentName.DOCS
        broken.process.side_effect = RuntimeError("unexpected")
        coordinator = AgentCoordinator(RouterAgent(None), AgentRegistry([broken]))

        decision, response = await coordinator.handle(user_context("hello"))

        assert decision.agent == AgentName.DOCS
        assert response.content == COORDINATOR_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_given_decision_skips_routing(self):
        llm = AsyncMock()
        docs = DocsAgent(scripted_llm({"docs_topic": "OTHER"}))
        coordinator = AgentCoordinator(RouterAgent(llm), AgentRegistry([docs]))

        decision, response = await coordinator.handle(
            user_context("hi"), RoutingDecision(AgentName.DOCS, "preselected")
        )

        assert decision.reason == "preselected"
        assert response.agent_id == "docs"
        llm.chat_completion.assert_not_awaited()

    def test_build_coordinator_registers_every_agent(self, state_machine):
        coordinator = build_coordinator(MockLLMClient(), None, state_machine, ConversationStateStore())

        assert set(coordinator.registry.names()) == set(AgentName)
        assert AgentName.QUOTE in coordinator.registry

    @pytest.mark.asyncio
    async def test_quote_available_without_llm(self, state_machine):
        coordinator = build_coordinator(None, None, state_machine)

        decision, response = await coordinator.handle(user_context("I have a bug", agentType="quote"))

        assert decision.agent == AgentName.QUOTE
        assert response.metadata["step"] == "package_details"
        assert not coordinator.registry.get(AgentName.DOCS).is_available


class TestChatRequest:
    """Request to context conversion."""

    def test_message_appended_to_history(self):
        request = ChatRequest.model_validate({
            "message": "And to Dallas?",
            "conversationHistory": [
                {"role": "user", "content": "Ship to Austin?"},
                {"role": "assistant", "content": "Yes."},
            ],
            "agentType": "docs",
            "metadata": {"userId": "user-1"},
        })

        context = request.to_context()

        assert [m.content for m in context.messages] == ["Ship to Austin?", "Yes.", "And to Dallas?"]
        assert context.metadata == {"userId": "user-1", "agentType": "docs"}

    def test_message_already_in_history_not_duplicated(self):
        request = ChatRequest(
            message="Where is my order?",
            conversation_history=[{"role": "user", "content": "Where is my order?"}],
        )
        assert len(request.to_context().messages) == 1
