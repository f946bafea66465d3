"""
Agents Domain Layer
===================

Messages, agent context and responses, prompts, shipment formatting
and the support site map.
"""

from swiftship.agents.domain.entities import (
    Message,
    ShipmentEvent,
    Shipment,
    AgentContext,
    SourceReference,
    AgentResponse,
    RoutingDecision,
)
from swiftship.agents.domain.prompts import (
    FOCUS_GUARD,
    COORDINATOR_UNAVAILABLE,
    build_system_message,
    strip_code_fences,
    RouterPromptBuilder,
    DocsPromptBuilder,
    SupportPromptBuilder,
    ShipmentsPromptBuilder,
    QuotePromptBuilder,
)
from swiftship.agents.domain.formatters import (
    STATUS_MAP,
    TYPE_MAP,
    format_status,
    format_shipment_type,
    format_metadata,
    format_shipment_events,
    format_shipments,
)
from swiftship.agents.domain.site_map import (
    SitePage,
    PageSuggestion,
    SITE_MAP,
    site_map_as_dict,
    validate_suggestions,
)

__all__ = [
    "Message",
    "ShipmentEvent",
    "Shipment",
    "AgentContext",
    "SourceReference",
    "AgentResponse",
    "RoutingDecision",
    "FOCUS_GUARD",
    "COORDINATOR_UNAVAILABLE",
    "build_system_message",
    "strip_code_fences",
    "RouterPromptBuilder",
    "DocsPromptBuilder",
    "SupportPromptBuilder",
    "ShipmentsPromptBuilder",
    "QuotePromptBuilder",
    "STATUS_MAP",
    "TYPE_MAP",
    "format_status",
    "format_shipment_type",
    "format_metadata",
    "format_shipment_events",
    "format_shipments",
    "SitePage",
    "PageSuggestion",
    "SITE_MAP",
    "site_map_as_dict",
    "validate_suggestions",
]
