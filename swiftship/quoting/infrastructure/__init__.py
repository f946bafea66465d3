"""
Quoting Infrastructure Layer
============================

Routing gateway, pricing config, conversation store and quote persistence.
"""

from swiftship.quoting.infrastructure.external import (
    CircuitState,
    CircuitBreaker,
    haversine_km,
    RouteGateway,
    ConfigFileHandler,
    PricingConfigManager,
    ConversationSweepScheduler,
)
from swiftship.quoting.infrastructure.state_store import ConversationStateStore
from swiftship.quoting.infrastructure.models import QuoteModel
from swiftship.quoting.infrastructure.repositories import (
    SQLAlchemyQuoteRepository,
    InMemoryQuoteRepository,
)

__all__ = [
    "CircuitState",
    "CircuitBreaker",
    "haversine_km",
    "RouteGateway",
    "ConfigFileHandler",
    "PricingConfigManager",
    "ConversationSweepScheduler",
    "ConversationStateStore",
    "QuoteModel",
    "SQLAlchemyQuoteRepository",
    "InMemoryQuoteRepository",
]
