"""Tests for the router agent."""

import json

import pytest
from unittest.mock import AsyncMock

from swiftship.config import AgentName, AgentType, MessageRole
from swiftship.agents.application import RouterAgent
from swiftship.agents.domain import AgentContext, Message, RouterPromptBuilder
from swiftship.infrastructure.llm import MockLLMClient

from conftest import completion, scripted_llm


def context_for(text: str = "", **metadata) -> AgentContext:
    messages = [Message(role=MessageRole.USER, content=text)] if text else []
    return AgentContext(messages=messages, metadata=metadata)


class TestRouterAgent:
    """Routing decisions and their fallbacks."""

    @pytest.mark.asyncio
    async def test_explicit_override_wins_without_llm_call(self):
        llm = AsyncMock()
        router = RouterAgent(llm)

        decision = await router.route(context_for("I have a bug in my invoice", agentType="quote"))

        assert decision.agent == AgentName.QUOTE
        assert decision.reason == "Explicitly requested quote agent"
        llm.chat_completion.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_agent_key_override_is_case_insensitive(self):
        router = RouterAgent(AsyncMock())
        decision = await router.route(context_for("hello", agent="SHIPMENTS"))
        assert decision.agent == AgentName.SHIPMENTS

    @pytest.mark.asyncio
    async def test_unknown_override_is_ignored(self):
        router = RouterAgent(scripted_llm({"routing": '{"agent": "SUPPORT_AGENT", "reason": "bug"}'}))
        decision = await router.route(context_for("my app crashes", agentType="billing"))
        assert decision.agent == AgentName.SUPPORT

    @pytest.mark.asyncio
    async def test_model_decision(self):
        llm = scripted_llm({"routing": '{"agent": "SHIPMENTS_AGENT", "reason": "Tracking question"}'})
        router = RouterAgent(llm)

        decision = await router.route(context_for("Where is my shipment?"))

        assert decision.agent == AgentName.SHIPMENTS
        assert decision.reason == "Tracking question"
        kwargs = llm.chat_completion.await_args.kwargs
        assert kwargs["temperature"] == 0
        assert kwargs["operation"] == "routing"
        assert kwargs["messages"][0]["role"] == "system"
        assert kwargs["messages"][-1] == {"role": "user", "content": "Where is my shipment?"}

    @pytest.mark.asyncio
    async def test_fenced_json_is_accepted(self):
        llm = scripted_llm({"routing": '```json\n{"agent": "QUOTE_AGENT", "reason": "price"}\n```'})
        decision = await RouterAgent(llm).route(context_for("how much to ship 5 tons?"))
        assert decision.agent == AgentName.QUOTE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", [
        "I think the docs agent",
        '{"agent": "BILLING_AGENT", "reason": "invoice"}',
        '["QUOTE_AGENT"]',
        "",
    ])
    async def test_invalid_response_defaults_to_docs(self, raw):
        decision = await RouterAgent(scripted_llm({"routing": raw})).route(context_for("hello"))
        assert decision.agent == AgentName.DOCS
        assert decision.reason == RouterPromptBuilder.INVALID_RESPONSE_REASON

    @pytest.mark.asyncio
    async def test_no_message_defaults_to_docs(self):
        llm = AsyncMock()
        decision = await RouterAgent(llm).route(context_for())

        assert decision.agent == AgentName.DOCS
        assert decision.reason == RouterPromptBuilder.NO_MESSAGE_REASON
        llm.chat_completion.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_completion_failure_defaults_to_docs(self):
        llm = AsyncMock()
        llm.chat_completion.side_effect = RuntimeError("rate limited")

        decision = await RouterAgent(llm).route(context_for("help"))

        assert decision.agent == AgentName.DOCS

    @pytest.mark.asyncio
    async def test_without_llm_defaults_to_docs(self):
        decision = await RouterAgent(None).route(context_for("quote please"))
        assert decision.agent == AgentName.DOCS

    @pytest.mark.asyncio
    async def test_process_returns_decision_json(self):
        llm = AsyncMock()
        llm.chat_completion.return_value = completion('{"agent": "SUPPORT_AGENT", "reason": "error"}')

        response = await RouterAgent(llm).process(context_for("I get an error"))

        assert json.loads(response.content) == {"agent": "SUPPORT_AGENT", "reason": "error"}
        assert response.metadata["routedAgent"] == "SUPPORT_AGENT"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text,agent", [
        ("Can I get a price for 10 tons?", AgentName.QUOTE),
        ("There is a bug in checkout", AgentName.SUPPORT),
        ("Track my delivery", AgentName.SHIPMENTS),
        ("What are your opening hours?", AgentName.DOCS),
    ])
    async def test_mock_client_keyword_routing(self, text, agent):
        decision = await RouterAgent(MockLLMClient()).route(context_for(text))
        assert decision.agent == agent

    def test_explicit_override_parsing(self):
        assert RouterAgent.explicit_override({"agentType": " Docs "}) == AgentType.DOCS
        assert RouterAgent.explicit_override({}) is None
