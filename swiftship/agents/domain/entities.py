"""
Agents Domain Entities
======================

Conversation messages, agent context and agent responses.

Plain dataclasses with camelCase to_dict/from_dict for the wire format
the chat client speaks.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from swiftship.config import AgentName, MessageRole
from swiftship.quoting.domain import Customer


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class Message:
    """
    One conversation message.

    History is append-only; agents read the tail or a bounded recent window.
    """
    role: MessageRole
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_llm(self) -> Dict[str, str]:
        """Role/content dict accepted by chat completion APIs."""
        return {"role": self.role.value, "content": self.content}

    def to_dict(self) -> Dict[str, Any]:
        data = {"role": self.role.value, "content": self.content}
        if self.metadata:
            data["metadata"] = self.metadata
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        return cls(
            role=MessageRole(data.get("role", MessageRole.USER.value)),
            content=str(data.get("content") or ""),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class ShipmentEvent:
    """Status change in a shipment's history."""
    created_at: str
    status: str
    location: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ShipmentEvent":
        return cls(
            created_at=str(data.get("created_at", "")),
            status=str(data.get("status", "")),
            location=data.get("location"),
            notes=data.get("notes"),
        )


@dataclass
class Shipment:
    """Customer shipment as supplied by the client with the chat request."""
    id: str
    status: str
    type: str
    origin: str
    destination: str
    tracking_number: str
    scheduled_pickup: Optional[str] = None
    estimated_delivery: Optional[str] = None
    actual_delivery: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    events: List[ShipmentEvent] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Shipment":
        return cls(
            id=str(data.get("id", "")),
            status=str(data.get("status", "")),
            type=str(data.get("type", "")),
            origin=str(data.get("origin", "")),
            destination=str(data.get("destination", "")),
            tracking_number=str(data.get("tracking_number", "")),
            scheduled_pickup=data.get("scheduled_pickup"),
            estimated_delivery=data.get("estimated_delivery"),
            actual_delivery=data.get("actual_delivery"),
            metadata=dict(data.get("metadata") or {}),
            events=[ShipmentEvent.from_dict(e) for e in data.get("shipment_events") or []],
        )


@dataclass
class AgentContext:
    """
    Input to every agent: the conversation so far plus request metadata
    (userId, conversationId, customer, quote, shipments, agentType, ...).
    """
    messages: List[Message] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def last_user_message(self) -> str:
        """Content of the most recent user message, or "" when there is none."""
        for message in reversed(self.messages):
            if message.role == MessageRole.USER:
                return message.content
        return ""

    def recent(self, count: int) -> List[Message]:
        """Last `count` messages, oldest first."""
        if count <= 0:
            return []
        return self.messages[-count:]

    @property
    def customer(self) -> Optional[Customer]:
        return Customer.from_dict(self.metadata.get("customer"))

    @property
    def shipments(self) -> List[Shipment]:
        return [Shipment.from_dict(s) for s in self.metadata.get("shipments") or []]

    @property
    def user_id(self) -> Optional[str]:
        return self.metadata.get("userId")

    @property
    def conversation_id(self) -> Optional[str]:
        return self.metadata.get("conversationId")


@dataclass
class SourceReference:
    """Knowledge base document an answer was grounded on."""
    title: str
    url: str
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "url": self.url, "score": round(self.score, 4)}


@dataclass
class AgentResponse:
    """
    Reply produced by an agent.

    Failures are replies too: `error` is set and content holds the agent's
    apology text.
    """
    content: str
    agent_id: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    sources: List[SourceReference] = field(default_factory=list)
    error: bool = False
    timestamp: int = field(default_factory=_now_ms)

    def response_metadata(self) -> Dict[str, Any]:
        """Metadata as sent to the client: agentId and timestamp first."""
        data = {"agentId": self.agent_id, "timestamp": self.timestamp}
        data.update(self.metadata)
        if self.error:
            data["error"] = True
        return data

    def to_message(self) -> Message:
        metadata = self.response_metadata()
        if self.sources:
            metadata["sources"] = [source.to_dict() for source in self.sources]
        return Message(role=MessageRole.ASSISTANT, content=self.content, metadata=metadata)


@dataclass
class RoutingDecision:
    """Which agent handles a message, and why."""
    agent: AgentName
    reason: str
    decided_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, str]:
        return {"agent": self.agent.value, "reason": self.reason}
