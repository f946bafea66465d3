"""HTTP tests for the agents and quoting endpoints."""

import pytest
from fastapi.testclient import TestClient

from swiftship.config import StreamEventType
from swiftship.infrastructure.llm import MockLLMClient
from swiftship.main import app, build_coordinator
from swiftship.quoting.application import QuoteService
from swiftship.quoting.domain import RouteInfo
from swiftship.quoting.infrastructure import ConversationStateStore
from swiftship.streaming import SSEDecoder

from conftest import ADDRESS_MESSAGE, PACKAGE_MESSAGE, FakeGateway

CUSTOMER = {"id": "cust-1", "name": "Ada Lovelace", "email": "ada@example.com"}


def decode(response):
    return SSEDecoder().feed(response.text)


def metadata_frames(events):
    return [event.payload["metadata"] for event in events if event.type == StreamEventType.METADATA]


@pytest.fixture
def client(state_machine, gateway, repository):
    # Services are wired by hand; the lifespan is not entered
    app.state.llm_client = None
    app.state.vector_store = None
    app.state.sweep_scheduler = None
    app.state.state_store = ConversationStateStore()
    app.state.coordinator = build_coordinator(MockLLMClient(), None, state_machine, app.state.state_store)
    app.state.quote_service = QuoteService(gateway, repository)
    yield TestClient(app)
    app.state.coordinator = None
    app.state.quote_service = None


class TestChatEndpoint:
    """POST /agents/chat"""

    def test_streams_frames_in_order(self, client):
        response = client.post("/agents/chat", json={"message": "What are your opening hours?"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")

        events = decode(response)
        assert events[0].type == StreamEventType.METADATA
        assert events[0].payload["metadata"]["agent"] == "DOCS_AGENT"
        assert events[-1].type == StreamEventType.METADATA
        assert events[-1].payload["metadata"]["agentId"] == "docs"
        assert "timestamp" in events[-1].payload["metadata"]

        chunks = [event for event in events if event.type == StreamEventType.CHUNK]
        assert chunks
        assert all(event.type != StreamEventType.DEBUG for event in events)

    @pytest.mark.parametrize("body", [{}, {"message": ""}, {"message": "   "}])
    def test_blank_message_rejected(self, client, body):
        response = client.post("/agents/chat", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "No input provided"}

    def test_llm_agent_without_client_is_unavailable(self, client, state_machine):
        app.state.coordinator = build_coordinator(None, None, state_machine)

        response = client.post("/agents/chat", json={"message": "What is LTL freight?"})

        assert response.status_code == 503
        assert response.json() == {"error": "LLM client is not configured"}

    def test_quote_conversation_over_chat(self, client):
        metadata = {"conversationId": "conv-1", "customer": CUSTOMER}

        turns = ["I want a quote", PACKAGE_MESSAGE, ADDRESS_MESSAGE, "express", "yes"]
        tail = {}
        for text in turns:
            response = client.post(
                "/agents/chat",
                json={"message": text, "agentType": "quote", "metadata": metadata}
            )
            assert response.status_code == 200
            frames = metadata_frames(decode(response))
            assert frames[0]["agent"] == "QUOTE_AGENT"
            tail = frames[-1]

        assert tail["outcome"] == "created"
        assert tail["step"] == "initial"

        quote = client.get(f"/quotes/{tail['quoteId']}")
        assert quote.status_code == 200
        assert quote.json()["quoted_price"] == 14000
        assert quote.json()["customer_id"] == "cust-1"

    def test_quote_state_round_trips_through_client(self, client):
        first = client.post("/agents/chat", json={"message": "quote", "agentType": "quote"})
        state = metadata_frames(decode(first))[-1]["quote"]

        second = client.post(
            "/agents/chat",
            json={"message": PACKAGE_MESSAGE, "agentType": "quote", "metadata": {"quote": state}}
        )

        tail = metadata_frames(decode(second))[-1]
        assert tail["step"] == "addresses"
        assert tail["quote"]["packageDetails"]["weight"] == "20"


class TestRouteEndpoint:
    """POST /agents/route"""

    def test_model_routing(self, client):
        response = client.post("/agents/route", json={"message": "Track my delivery"})

        assert response.status_code == 200
        assert response.json()["agent"] == "SHIPMENTS_AGENT"

    def test_override(self, client):
        response = client.post("/agents/route", json={"message": "hello", "agentType": "support"})
        assert response.json() == {"agent": "SUPPORT_AGENT", "reason": "Explicitly requested support agent"}


class TestQuotesEndpoints:
    """Estimates, quote lookup and autocomplete."""

    def test_estimate_with_distance(self, client):
        response = client.post("/quotes/estimate", json={
            "weight_tons": 5,
            "volume_m3": 10,
            "distance_km": 1000,
            "pickup_date": "2025-03-03",
        })

        assert response.status_code == 200
        body = response.json()
        assert body["route"]["source"] == "client"
        assert body["is_rush"] is True
        assert [option["id"] for option in body["options"]] == [
            "express_freight", "standard_freight", "eco_freight"
        ]
        assert [option["price"] for option in body["options"]] == [7000, 3000, 2000]

    def test_estimate_with_coordinates(self, client):
        response = client.post("/quotes/estimate", json={
            "weight_tons": 20,
            "volume_m3": 60,
            "origin": {"latitude": 34.0522, "longitude": -118.2437},
            "destination": {"latitude": 40.7128, "longitude": -74.0060},
        })

        assert response.status_code == 200
        body = response.json()
        assert body["route"]["kilometers"] == 4490.2
        assert body["is_rush"] is False
        assert [option["price"] for option in body["options"]] == [14000, 10000, 7000]

    def test_estimate_requires_distance_or_coordinates(self, client):
        response = client.post("/quotes/estimate", json={"weight_tons": 5, "volume_m3": 10})
        assert response.status_code == 422

    def test_estimate_zero_route_rejected(self, client, repository):
        app.state.quote_service = QuoteService(
            FakeGateway(route=RouteInfo.from_measurements(0, 0, source="provider")), repository
        )
        response = client.post("/quotes/estimate", json={
            "weight_tons": 5,
            "volume_m3": 10,
            "origin": {"latitude": 34.0, "longitude": -118.0},
            "destination": {"latitude": 34.0, "longitude": -118.0},
        })
        assert response.status_code == 400

    def test_unknown_quote(self, client):
        response = client.get("/quotes/4f9e7c51-3b0a-4c55-8a55-1d2f3e4a5b6c")
        assert response.status_code == 404

    def test_autocomplete_short_query(self, client):
        response = client.get("/geocoding/autocomplete", params={"query": "Au"})

        assert response.status_code == 200
        assert response.json() == {"suggestions": []}

    def test_autocomplete(self, client):
        response = client.get("/geocoding/autocomplete", params={"query": "Congress"})
        assert response.json()["suggestions"] == [{"formattedAddress": "Congress Street, Austin, TX"}]


class TestHealth:
    def test_health_lists_agents(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"]["llm_client"] == "not_configured"
        assert set(body["checks"]["agents"]) == {
            "QUOTE_AGENT", "DOCS_AGENT", "SUPPORT_AGENT", "SHIPMENTS_AGENT"
        }

    def test_services_missing_gives_503(self, client):
        app.state.quote_service = None
        response = client.get("/quotes/anything")
        assert response.status_code == 503
