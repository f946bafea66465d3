"""
Shipment Formatters
===================

Render customer shipments as plain text for the shipments agent prompt.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from swiftship.agents.domain.entities import Shipment, ShipmentEvent

STATUS_MAP = {
    "quote_requested": "📝 Quote Requested",
    "quote_provided": "💰 Quote Provided",
    "quote_accepted": "✅ Quote Accepted",
    "pickup_scheduled": "📅 Pickup Scheduled",
    "pickup_completed": "🚚 Picked Up",
    "in_transit": "🚛 In Transit",
    "out_for_delivery": "🚚 Out for Delivery",
    "delivered": "✅ Delivered",
    "cancelled": "❌ Cancelled",
}

TYPE_MAP = {
    "full_truckload": "🚛 Full Truckload",
    "less_than_truckload": "🚚 Less Than Truckload",
    "sea_container": "🚢 Sea Container",
    "bulk_freight": "📦 Bulk Freight",
}

# (metadata key, label)
METADATA_FIELDS = [
    ("weight", "Weight"),
    ("volume", "Volume"),
    ("container_size", "Container Size"),
    ("pallet_count", "Pallet Count"),
    ("hazardous", "Hazardous Materials"),
    ("special_requirements", "Special Requirements"),
    ("selected_service", "Service Level"),
    ("quoted_price", "Quoted Price"),
]


def format_status(status: str) -> str:
    return STATUS_MAP.get(status, status)


def format_shipment_type(shipment_type: str) -> str:
    return TYPE_MAP.get(shipment_type, shipment_type)


def _parse_timestamp(value: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None


def format_datetime(value: Optional[str], default: str = "") -> str:
    """Human readable timestamp; unparseable values are returned as given."""
    if not value:
        return default
    parsed = _parse_timestamp(value)
    if parsed is None:
        return value
    return parsed.strftime("%m/%d/%Y, %I:%M:%S %p")


def format_metadata(metadata: Dict[str, Any]) -> str:
    lines = []
    for key, label in METADATA_FIELDS:
        value = metadata.get(key)
        if not value:
            continue
        if key == "hazardous":
            value = "Yes ⚠️"
        lines.append(f"- {label}: {value}")

    if not lines:
        return ""
    return "\nAdditional Details:" + "".join(f"\n{line}" for line in lines)


def format_shipment_events(events: List[ShipmentEvent]) -> str:
    """Shipment history, newest event first."""
    if not events:
        return ""

    def sort_key(event: ShipmentEvent) -> float:
        parsed = _parse_timestamp(event.created_at)
        return parsed.timestamp() if parsed else 0.0

    parts = []
    for event in sorted(events, key=sort_key, reverse=True):
        line = f"\n- {format_datetime(event.created_at)}: {format_status(event.status)}"
        if event.location:
            line += f" at {event.location}"
        if event.notes:
            line += f" - {event.notes}"
        parts.append(line)
    return "\nShipment History:" + "".join(parts)


def format_shipment(shipment: Shipment, index: int) -> str:
    details = (
        f"\nShipment {index}:"
        f"\n- Tracking Number: {shipment.tracking_number}"
        f"\n- Status: {format_status(shipment.status)}"
        f"\n- Type: {format_shipment_type(shipment.type)}"
        f"\n- From: {shipment.origin}"
        f"\n- To: {shipment.destination}"
        f"\n- Scheduled Pickup: {format_datetime(shipment.scheduled_pickup, 'Not scheduled')}"
        f"\n- Estimated Delivery: {format_datetime(shipment.estimated_delivery, 'Not available')}"
    )
    if shipment.actual_delivery:
        details += f"\n- Delivered: {format_datetime(shipment.actual_delivery)}"
    if shipment.metadata:
        details += format_metadata(shipment.metadata)
    if shipment.events:
        details += format_shipment_events(shipment.events)
    return details


def format_shipments(shipments: List[Shipment]) -> str:
    return "\n\n".join(format_shipment(s, i) for i, s in enumerate(shipments, 1))
