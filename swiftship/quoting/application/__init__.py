"""
Quoting Application Layer
=========================

Quote conversation orchestration and API DTOs.
"""

from swiftship.quoting.application.services import (
    IGeocodingGateway,
    IQuoteRepository,
    IConversationStateStore,
    IPricingConfigProvider,
    StaticPricingConfigProvider,
    QuoteTurnResult,
    QuoteStateMachine,
    QuoteService,
)
from swiftship.quoting.application.dto import (
    CoordinatesDTO,
    EstimateRequest,
    ServiceOptionResponse,
    RouteResponse,
    EstimateResponse,
    QuoteResponse,
    AutocompleteResponse,
)

__all__ = [
    # Interfaces
    "IGeocodingGateway",
    "IQuoteRepository",
    "IConversationStateStore",
    "IPricingConfigProvider",
    "StaticPricingConfigProvider",
    # Services
    "QuoteTurnResult",
    "QuoteStateMachine",
    "QuoteService",
    # DTOs
    "CoordinatesDTO",
    "EstimateRequest",
    "ServiceOptionResponse",
    "RouteResponse",
    "EstimateResponse",
    "QuoteResponse",
    "AutocompleteResponse",
]
