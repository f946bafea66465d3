"""Tests for the specialized agents."""

import pytest
from unittest.mock import AsyncMock

from swiftship.config import DocsTopic, MessageRole, QuoteStep
from swiftship.agents.application import (
    DEFAULT_ERROR_MESSAGE,
    DocsAgent,
    QuoteAgent,
    ShipmentsAgent,
    SupportAgent,
)
from swiftship.agents.domain import (
    AgentContext,
    DocsPromptBuilder,
    Message,
    QuotePromptBuilder,
    ShipmentsPromptBuilder,
    SupportPromptBuilder,
    format_shipments,
    Shipment,
)
from swiftship.infrastructure.vectorstore import SearchResult
from swiftship.quoting.infrastructure import ConversationStateStore

from conftest import PACKAGE_MESSAGE, scripted_llm

CUSTOMER = {"id": "cust-1", "name": "Ada Lovelace", "email": "ada@example.com"}

SHIPMENT = {
    "id": "shp-1",
    "status": "in_transit",
    "type": "full_truckload",
    "origin": "Los Angeles, CA",
    "destination": "New York, NY",
    "tracking_number": "SS123456",
    "scheduled_pickup": "2025-03-04T09:00:00Z",
    "metadata": {"weight": "20", "hazardous": True},
    "shipment_events": [
        {"created_at": "2025-03-04T09:30:00Z", "status": "pickup_completed", "location": "Los Angeles"},
        {"created_at": "2025-03-05T18:00:00Z", "status": "in_transit", "notes": "On schedule"},
    ],
}


def conversation(*texts: str, **metadata) -> AgentContext:
    messages = []
    for index, text in enumerate(texts):
        role = MessageRole.USER if index % 2 == 0 else MessageRole.ASSISTANT
        messages.append(Message(role=role, content=text))
    return AgentContext(messages=messages, metadata=metadata)


def knowledge_base(*results: SearchResult) -> AsyncMock:
    kb = AsyncMock()
    kb.search.return_value = list(results)
    return kb


class TestDocsAgent:
    """Documentation answers."""

    @pytest.mark.asyncio
    async def test_documents_joined_with_topic_suffix(self):
        llm = scripted_llm({"docs_topic": "PRICING"})
        kb = knowledge_base(
            SearchResult(content="## Rates\n\n\n\nRates depend on distance.", metadata={"title": "Rates", "url": "/docs/rates"}, score=0.91234),
            SearchResult(content="Rush fees apply under 24 hours.", metadata={"title": "Rush"}, score=0.8),
        )
        agent = DocsAgent(llm, kb)

        response = await agent.process(conversation("How is pricing calculated?"))

        assert response.content.startswith("**Rates\n\nRates depend on distance.\n\n---\n\nRush fees")
        assert response.content.endswith(DocsPromptBuilder.topic_suffix(DocsTopic.PRICING))
        assert response.metadata == {"topic": "PRICING"}
        assert [source.to_dict() for source in response.sources] == [
            {"title": "Rates", "url": "/docs/rates", "score": 0.9123},
            {"title": "Rush", "url": "", "score": 0.8},
        ]
        kb.search.assert_awaited_once()
        assert kb.search.await_args.kwargs["limit"] == 5

    @pytest.mark.asyncio
    async def test_no_documents(self):
        agent = DocsAgent(scripted_llm({"docs_topic": "gibberish"}), knowledge_base())

        response = await agent.process(conversation("Do you ship to Mars?"))

        assert response.content == DocsPromptBuilder.NO_DOCUMENTS
        assert response.metadata["topic"] == "OTHER"
        assert not response.error

    @pytest.mark.asyncio
    async def test_search_failure_degrades(self):
        kb = AsyncMock()
        kb.search.side_effect = RuntimeError("milvus unavailable")
        agent = DocsAgent(scripted_llm({"docs_topic": "SERVICES"}), kb)

        response = await agent.process(conversation("What services do you offer?"))

        assert response.content.startswith(DocsPromptBuilder.NO_DOCUMENTS)
        assert "sales@swiftship.com" in response.content
        assert not response.error

    @pytest.mark.asyncio
    async def test_greeting_without_message(self):
        response = await DocsAgent(AsyncMock()).process(AgentContext())
        assert response.content == DocsPromptBuilder.GREETING

    @pytest.mark.asyncio
    async def test_completion_failure_returns_apology(self):
        llm = AsyncMock()
        llm.chat_completion.side_effect = RuntimeError("upstream 500")

        response = await DocsAgent(llm).process(conversation("What is LTL?"))

        assert response.error is True
        assert response.content == DocsPromptBuilder.ERROR
        assert response.response_metadata()["error"] is True


class TestSupportAgent:
    """Support answers with escalation and page suggestions."""

    @pytest.mark.asyncio
    async def test_escalation_and_pages(self):
        llm = scripted_llm({
            "support_escalation": "True",
            "support_pages": (
                '[{"path": "/portal/tickets", "reason": "Open a ticket"},'
                ' {"path": "/does-not-exist", "reason": "?"},'
                ' {"path": "/portal/tickets", "reason": "duplicate"}]'
            ),
            "support_answer": "Please open a ticket with the error message.",
        })
        kb = knowledge_base(SearchResult(
            content="Invoices failed to render",
            metadata={"title": "Invoice PDF error", "resolution": "Clear cache"},
            score=0.75
        ))
        agent = SupportAgent(llm, kb)

        response = await agent.process(conversation("My invoice page shows error 500"))

        assert response.content == "Please open a ticket with the error message."
        assert response.metadata["needsHumanIntervention"] is True
        assert response.metadata["similarIssuesFound"] == 1
        assert response.metadata["suggestedPages"] == [
            {"path": "/portal/tickets", "reason": "Open a ticket", "title": "Portal Tickets"}
        ]

        answer_call = [
            call for call in llm.chat_completion.await_args_list
            if call.kwargs["operation"] == "support_answer"
        ][0]
        context_prompt = answer_call.kwargs["messages"][1]["content"]
        assert "Similar Issue: Invoice PDF error" in context_prompt
        assert "Resolution: Clear cache" in context_prompt
        assert SupportPromptBuilder.ESCALATE_INSTRUCTION in context_prompt

    @pytest.mark.asyncio
    async def test_bad_page_json_gives_no_pages(self):
        llm = scripted_llm({"support_escalation": "false", "support_pages": "see /shipments"})
        response = await SupportAgent(llm, knowledge_base()).process(conversation("Login is slow"))

        assert response.metadata["needsHumanIntervention"] is False
        assert response.metadata["suggestedPages"] == []
        assert not response.error

    @pytest.mark.asyncio
    async def test_greeting_without_message(self):
        response = await SupportAgent(AsyncMock()).process(AgentContext())
        assert response.content == SupportPromptBuilder.GREETING

    @pytest.mark.asyncio
    async def test_failure_returns_apology(self):
        llm = AsyncMock()
        llm.chat_completion.side_effect = RuntimeError("boom")
        response = await SupportAgent(llm).process(conversation("broken"))
        assert response.content == SupportPromptBuilder.ERROR
        assert response.error


class TestShipmentsAgent:
    """Answers about the customer's shipments."""

    @pytest.mark.asyncio
    async def test_prompt_includes_customer_and_shipments(self):
        llm = scripted_llm({}, default="Your shipment SS123456 is in transit.")
        agent = ShipmentsAgent(llm, knowledge_base())
        context = conversation(
            "Hi", "Hello! How can I help?", "Where is my shipment?",
            customer=CUSTOMER, shipments=[SHIPMENT]
        )

        response = await agent.process(context)

        assert response.content == "Your shipment SS123456 is in transit."
        assert response.metadata == {"similarContentFound": False, "shipmentCount": 1}

        kwargs = llm.chat_completion.await_args.kwargs
        assert kwargs["operation"] == "shipments_answer"
        assert kwargs["max_tokens"] == 500
        system = kwargs["messages"][0]["content"]
        assert "Current customer: Ada Lovelace (ada@example.com)" in system
        assert "Tracking Number: SS123456" in system
        # Last two messages of history only
        assert [m["content"] for m in kwargs["messages"][1:]] == ["Hello! How can I help?", "Where is my shipment?"]

    @pytest.mark.asyncio
    async def test_similar_content_added_as_context(self):
        llm = scripted_llm({})
        kb = knowledge_base(SearchResult(content="Transit times vary by region.", metadata={}, score=0.9))

        response = await ShipmentsAgent(llm, kb).process(conversation("How long is transit?"))

        assert response.metadata["similarContentFound"] is True
        messages = llm.chat_completion.await_args.kwargs["messages"]
        assert "Transit times vary by region." in messages[1]["content"]

    @pytest.mark.asyncio
    async def test_empty_message(self):
        response = await ShipmentsAgent(AsyncMock()).process(AgentContext())
        assert response.content == ShipmentsPromptBuilder.EMPTY_MESSAGE

    def test_format_shipments(self):
        text = format_shipments([Shipment.from_dict(SHIPMENT)])

        assert "Shipment 1:" in text
        assert "- Status: 🚛 In Transit" in text
        assert "- Type: 🚛 Full Truckload" in text
        assert "- Scheduled Pickup: 03/04/2025, 09:00:00 AM" in text
        assert "- Estimated Delivery: Not available" in text
        assert "- Hazardous Materials: Yes ⚠️" in text
        # Newest event first
        assert text.index("On schedule") < text.index("at Los Angeles")


class TestQuoteAgent:
    """Quote conversations through the agent boundary."""

    @pytest.mark.asyncio
    async def test_state_returned_and_stored(self, state_machine):
        store = ConversationStateStore(max_entries=10, ttl_seconds=60)
        agent = QuoteAgent(state_machine, store)

        first = await agent.process(conversation("I want a quote", conversationId="conv-1", customer=CUSTOMER))
        assert first.metadata["step"] == QuoteStep.PACKAGE_DETAILS.value
        assert first.metadata["quote"]["customer"]["id"] == "cust-1"
        assert store.get("conv-1").step == QuoteStep.PACKAGE_DETAILS

        second = await agent.process(conversation(PACKAGE_MESSAGE, conversationId="conv-1"))
        assert second.metadata["step"] == QuoteStep.ADDRESSES.value
        assert second.metadata["quote"]["packageDetails"]["weight"] == "20"

    @pytest.mark.asyncio
    async def test_client_state_wins_over_store(self, state_machine):
        store = ConversationStateStore(max_entries=10, ttl_seconds=60)
        agent = QuoteAgent(state_machine, store)
        await agent.process(conversation("quote", userId="user-1"))

        response = await agent.process(conversation(
            PACKAGE_MESSAGE, userId="user-1", quote={"step": "initial"}
        ))

        # Restarted from the client copy instead of advancing the stored one
        assert response.metadata["step"] == QuoteStep.PACKAGE_DETAILS.value

    @pytest.mark.asyncio
    async def test_malformed_client_state_falls_back_to_store(self, state_machine):
        store = ConversationStateStore(max_entries=10, ttl_seconds=60)
        agent = QuoteAgent(state_machine, store)
        await agent.process(conversation("quote", userId="user-1"))

        response = await agent.process(conversation(
            PACKAGE_MESSAGE, userId="user-1", quote={"step": "teleporting"}
        ))

        assert response.metadata["step"] == QuoteStep.ADDRESSES.value

    @pytest.mark.asyncio
    async def test_client_state_with_string_addresses_falls_back_to_store(self, state_machine):
        store = ConversationStateStore(max_entries=10, ttl_seconds=60)
        agent = QuoteAgent(state_machine, store)
        await agent.process(conversation("quote", userId="user-1"))

        response = await agent.process(conversation(
            PACKAGE_MESSAGE,
            userId="user-1",
            quote={"step": "addresses", "destination": {"from": "x", "to": "y", "pickupDate": "2025-03-10"}},
        ))

        assert not response.error
        assert response.metadata["step"] == QuoteStep.ADDRESSES.value

    @pytest.mark.asyncio
    async def test_without_key_state_travels_in_metadata(self, state_machine):
        agent = QuoteAgent(state_machine)

        first = await agent.process(conversation("quote"))
        second = await agent.process(conversation(PACKAGE_MESSAGE, quote=first.metadata["quote"]))

        assert second.metadata["step"] == QuoteStep.ADDRESSES.value
        assert agent.is_available

    def test_conversation_key_prefers_conversation_id(self):
        assert QuoteAgent.conversation_key(conversation("hi", conversationId="conv-1", userId="user-1")) == "conv-1"
        assert QuoteAgent.conversation_key(conversation("hi", userId="user-1")) == "user-1"
        assert QuoteAgent.conversation_key(conversation("hi")) is None

    @pytest.mark.asyncio
    async def test_state_machine_failure_returns_apology(self):
        machine = AsyncMock()
        machine.handle.side_effect = RuntimeError("db down")

        response = await QuoteAgent(machine).process(conversation("quote"))

        assert response.error
        assert response.content == QuotePromptBuilder.ERROR
        assert response.content != DEFAULT_ERROR_MESSAGE
