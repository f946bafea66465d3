"""
Agents Data Transfer Objects
============================

Pydantic models for the chat API.

Field aliases follow the chat client's camelCase wire format.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from swiftship.config import AgentName, AgentType, MessageRole
from swiftship.agents.domain import AgentContext, Message


class ChatMessageDTO(BaseModel):
    """One message of the conversation history."""
    role: MessageRole
    content: str = ""
    metadata: Optional[Dict[str, Any]] = None

    def to_message(self) -> Message:
        return Message(role=self.role, content=self.content, metadata=dict(self.metadata or {}))


class ChatRequest(BaseModel):
    """Chat request body."""
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = Field(default=None, description="Latest user message")
    conversation_history: List[ChatMessageDTO] = Field(default_factory=list, alias="conversationHistory")
    agent_type: Optional[AgentType] = Field(
        default=None,
        alias="agentType",
        description="Skip classification and use this agent"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="userId, conversationId, customer, quote, shipments, streamMode"
    )

    def to_context(self) -> AgentContext:
        """
        Build the agent context.

        The message is appended to the history unless the history already
        ends with it. A top-level agentType is copied into metadata.
        """
        messages = [item.to_message() for item in self.conversation_history]
        text = (self.message or "").strip()
        if text:
            last = messages[-1] if messages else None
            if last is None or last.role != MessageRole.USER or last.content.strip() != text:
                messages.append(Message(role=MessageRole.USER, content=text))

        metadata = dict(self.metadata)
        if self.agent_type is not None:
            metadata["agentType"] = self.agent_type.value
        return AgentContext(messages=messages, metadata=metadata)


class RoutingResponse(BaseModel):
    """Routing decision without running the agent."""
    agent: AgentName
    reason: str
