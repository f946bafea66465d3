"""
Quoting Domain Layer
====================

Entities, pricing and text extraction for shipping quotes.
"""

from swiftship.quoting.domain.entities import (
    Customer,
    PackageDetails,
    Coordinates,
    Address,
    QuoteDestination,
    RouteInfo,
    ServiceOption,
    ConversationState,
    QuoteRecord,
)
from swiftship.quoting.domain.value_objects import (
    ServiceRates,
    DEFAULT_SERVICE_RATES,
    PricingConfig,
    DeliveryEstimate,
    PricingEngine,
)
from swiftship.quoting.domain.extractors import (
    AddressPair,
    IAddressPairParser,
    RegexAddressPairParser,
    extract_package_details,
    parse_address_pair,
    resolve_pickup_date,
    time_slot_for_hour,
    extract_service_level,
    extract_confirmation,
)
from swiftship.quoting.domain.messages import QuoteMessages

__all__ = [
    # Entities
    "Customer",
    "PackageDetails",
    "Coordinates",
    "Address",
    "QuoteDestination",
    "RouteInfo",
    "ServiceOption",
    "ConversationState",
    "QuoteRecord",
    # Pricing
    "ServiceRates",
    "DEFAULT_SERVICE_RATES",
    "PricingConfig",
    "DeliveryEstimate",
    "PricingEngine",
    # Extraction
    "AddressPair",
    "IAddressPairParser",
    "RegexAddressPairParser",
    "extract_package_details",
    "parse_address_pair",
    "resolve_pickup_date",
    "time_slot_for_hour",
    "extract_service_level",
    "extract_confirmation",
    # Messages
    "QuoteMessages",
]
