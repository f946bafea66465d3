"""
Agents Application Layer
========================

Specialized agents, router, coordinator and chat DTOs.
"""

from swiftship.agents.application.agents import (
    DEFAULT_ERROR_MESSAGE,
    IKnowledgeBase,
    BaseAgent,
    QuoteAgent,
    DocsAgent,
    SupportAgent,
    ShipmentsAgent,
    RouterAgent,
)
from swiftship.agents.application.coordinator import AgentRegistry, AgentCoordinator
from swiftship.agents.application.dto import ChatMessageDTO, ChatRequest, RoutingResponse

__all__ = [
    "DEFAULT_ERROR_MESSAGE",
    "IKnowledgeBase",
    "BaseAgent",
    "QuoteAgent",
    "DocsAgent",
    "SupportAgent",
    "ShipmentsAgent",
    "RouterAgent",
    "AgentRegistry",
    "AgentCoordinator",
    "ChatMessageDTO",
    "ChatRequest",
    "RoutingResponse",
]
