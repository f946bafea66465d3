"""Shared fixtures for the Swift Ship agents tests."""

from datetime import date
from typing import Dict, List, Optional

import pytest
from unittest.mock import AsyncMock

from swiftship.core import InvalidRouteException
from swiftship.infrastructure.llm import ChatCompletionResult
from swiftship.quoting.application import IGeocodingGateway, QuoteStateMachine
from swiftship.quoting.domain import Address, Coordinates, Customer, RouteInfo
from swiftship.quoting.infrastructure import InMemoryQuoteRepository


# Monday
TODAY = date(2025, 3, 3)

LA = Coordinates(34.0522, -118.2437)
NY = Coordinates(40.7128, -74.0060)

PACKAGE_MESSAGE = "Full truckload, 20 tons, 60 cubic meters, no hazardous materials"
ADDRESS_MESSAGE = (
    "from 123 Main St, Los Angeles, CA to 500 Broadway, New York, NY pickup tomorrow at 9am"
)


class FakeGateway(IGeocodingGateway):
    """Gateway with canned geocodes and one fixed route."""

    def __init__(self, route: Optional[RouteInfo] = None, unknown: tuple = ()):
        self.route = route or RouteInfo.from_measurements(4490.2, 2460, source="provider")
        self.unknown = set(unknown)
        self.geocoded: List[str] = []

    async def geocode_address(self, text: str) -> Optional[Address]:
        self.geocoded.append(text)
        if text in self.unknown:
            return None
        coordinates = LA if "Los Angeles" in text else NY
        return Address(
            address=text,
            coordinates=coordinates,
            formatted_address=f"{text}, USA",
        )

    async def calculate_route(self, origin: Coordinates, destination: Coordinates) -> RouteInfo:
        if self.route.kilometers <= 0:
            raise InvalidRouteException(self.route.kilometers)
        return self.route

    async def autocomplete(self, query: str, limit: int = 5) -> List[dict]:
        return [{"formattedAddress": f"{query} Street, Austin, TX"}][:limit]


def completion(content: str) -> ChatCompletionResult:
    return ChatCompletionResult(
        content=content,
        model="test-model",
        prompt_tokens=10,
        completion_tokens=5,
        latency_ms=1
    )


def scripted_llm(responses: Dict[str, str], default: str = "Here is what I found.") -> AsyncMock:
    """LLM mock answering by operation name."""
    llm = AsyncMock()

    async def chat_completion(messages, operation="chat_completion", **kwargs):
        return completion(responses.get(operation, default))

    llm.chat_completion.side_effect = chat_completion
    return llm


@pytest.fixture
def customer():
    return Customer(id="cust-1", name="Ada Lovelace", email="ada@example.com")


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def repository():
    return InMemoryQuoteRepository()


@pytest.fixture
def state_machine(gateway, repository):
    return QuoteStateMachine(gateway, repository)
