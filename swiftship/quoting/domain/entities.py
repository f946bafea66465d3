"""
Quoting Domain Entities
=======================

Business objects for the multi-turn shipping quote conversation.

Package details, addresses, destinations and routes are immutable value
holders: a new extraction replaces them wholesale. ConversationState is the
one mutable entity and guards the pricing invariant: a price and a selected
service only ever appear together, and only once package details and a
route are both known.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from swiftship.config import (
    ContainerSize, QuoteStep, ServiceType, ShipmentType, TimeSlot
)
from swiftship.core import DomainException


@dataclass(frozen=True)
class Customer:
    """Customer the quote is created for."""
    id: str
    name: str
    email: str

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["Customer"]:
        if not data or not data.get("id"):
            return None
        return cls(id=str(data["id"]), name=data.get("name", ""), email=data.get("email", ""))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "email": self.email}


@dataclass(frozen=True)
class PackageDetails:
    """
    Shipment cargo description.

    Weight (metric tons) and volume (cubic meters) keep the decimal text
    the customer typed.
    """
    type: ShipmentType
    weight: str
    volume: str
    hazardous: bool
    special_requirements: str = ""
    container_size: Optional[ContainerSize] = None
    pallet_count: Optional[str] = None
    # Hazard keyword and a negation word both present; hazardous was forced False
    hazard_negation_ambiguous: bool = False

    @property
    def weight_tons(self) -> float:
        return float(self.weight)

    @property
    def volume_m3(self) -> float:
        return float(self.volume)

    @property
    def pallets(self) -> int:
        return int(self.pallet_count) if self.pallet_count else 0

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "type": self.type.value,
            "weight": self.weight,
            "volume": self.volume,
            "hazardous": self.hazardous,
            "specialRequirements": self.special_requirements,
        }
        if self.container_size:
            data["containerSize"] = self.container_size.value
        if self.pallet_count:
            data["palletCount"] = self.pallet_count
        if self.hazard_negation_ambiguous:
            data["hazardNegationAmbiguous"] = True
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackageDetails":
        container = data.get("containerSize")
        return cls(
            type=ShipmentType(data["type"]),
            weight=str(data["weight"]),
            volume=str(data["volume"]),
            hazardous=bool(data.get("hazardous", False)),
            special_requirements=data.get("specialRequirements", ""),
            container_size=ContainerSize(container) if container else None,
            pallet_count=str(data["palletCount"]) if data.get("palletCount") else None,
            hazard_negation_ambiguous=bool(data.get("hazardNegationAmbiguous", False)),
        )


@dataclass(frozen=True)
class Coordinates:
    """WGS84 latitude/longitude pair."""
    latitude: float
    longitude: float

    def is_valid(self) -> bool:
        return -90 <= self.latitude <= 90 and -180 <= self.longitude <= 180

    def as_tuple(self) -> tuple:
        return (self.latitude, self.longitude)


@dataclass(frozen=True)
class Address:
    """A pickup or delivery address as typed, plus geocoding output when known."""
    address: str
    street: str = ""
    city: str = ""
    state: str = ""
    coordinates: Optional[Coordinates] = None
    formatted_address: Optional[str] = None
    place_details: Optional[Dict[str, Any]] = None

    @property
    def display(self) -> str:
        return self.formatted_address or self.address

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "address": self.address,
            "street": self.street,
            "city": self.city,
            "state": self.state,
        }
        if self.coordinates:
            data["coordinates"] = {
                "latitude": self.coordinates.latitude,
                "longitude": self.coordinates.longitude,
            }
        if self.formatted_address:
            data["formattedAddress"] = self.formatted_address
        if self.place_details:
            data["placeDetails"] = self.place_details
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Address":
        coords = data.get("coordinates")
        return cls(
            address=data.get("address", ""),
            street=data.get("street", ""),
            city=data.get("city", ""),
            state=data.get("state", ""),
            coordinates=Coordinates(float(coords["latitude"]), float(coords["longitude"])) if coords else None,
            formatted_address=data.get("formattedAddress"),
            place_details=data.get("placeDetails"),
        )


@dataclass(frozen=True)
class QuoteDestination:
    """Pickup and delivery addresses with the requested pickup window."""
    from_address: Address
    to_address: Address
    pickup_date: date
    pickup_time_slot: TimeSlot

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_address.to_dict(),
            "to": self.to_address.to_dict(),
            "pickupDate": self.pickup_date.isoformat(),
            "pickupTimeSlot": self.pickup_time_slot.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuoteDestination":
        return cls(
            from_address=Address.from_dict(data["from"]),
            to_address=Address.from_dict(data["to"]),
            pickup_date=date.fromisoformat(data["pickupDate"][:10]),
            pickup_time_slot=TimeSlot(data.get("pickupTimeSlot") or TimeSlot.MORNING_1.value),
        )


@dataclass(frozen=True)
class RouteInfo:
    """
    Driving distance and duration between pickup and delivery.

    Always derived from a provider lookup or the great-circle fallback.
    """
    kilometers: float
    miles: float
    minutes: int
    hours: float
    source: str = "provider"

    @classmethod
    def from_measurements(cls, distance_km: float, duration_minutes: float, source: str) -> "RouteInfo":
        """Apply display rounding: km and hours to 1 decimal, minutes to int."""
        return cls(
            kilometers=round(distance_km, 1),
            miles=round(distance_km * 0.621371, 1),
            minutes=int(round(duration_minutes)),
            hours=round(duration_minutes / 60, 1),
            source=source,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distance": {"kilometers": self.kilometers, "miles": self.miles},
            "duration": {"minutes": self.minutes, "hours": self.hours},
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RouteInfo":
        return cls(
            kilometers=float(data["distance"]["kilometers"]),
            miles=float(data["distance"]["miles"]),
            minutes=int(data["duration"]["minutes"]),
            hours=float(data["duration"]["hours"]),
            source=data.get("source", "provider"),
        )


@dataclass(frozen=True)
class ServiceOption:
    """One priced service tier presented to the customer."""
    id: ServiceType
    name: str
    description: str
    price: int
    duration: str
    business_days: int
    estimated_delivery: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id.value,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "duration": self.duration,
            "businessDays": self.business_days,
            "estimatedDelivery": self.estimated_delivery.isoformat() if self.estimated_delivery else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServiceOption":
        delivery = data.get("estimatedDelivery")
        return cls(
            id=ServiceType(data["id"]),
            name=data["name"],
            description=data.get("description", ""),
            price=int(data["price"]),
            duration=data.get("duration", ""),
            business_days=int(data.get("businessDays", 0)),
            estimated_delivery=date.fromisoformat(delivery) if delivery else None,
        )


@dataclass
class ConversationState:
    """
    Per-conversation quote progress.

    Step only moves forward one state at a time, except reset() which
    returns to INITIAL.
    """
    step: QuoteStep = QuoteStep.INITIAL
    package_details: Optional[PackageDetails] = None
    destination: Optional[QuoteDestination] = None
    route: Optional[RouteInfo] = None
    service_options: List[ServiceOption] = field(default_factory=list)
    selected_service: Optional[ServiceType] = None
    price: Optional[int] = None
    customer: Optional[Customer] = None
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def option_for(self, service: ServiceType) -> Optional[ServiceOption]:
        for option in self.service_options:
            if option.id == service:
                return option
        return None

    def select_service(self, service: ServiceType, price: int) -> None:
        """Set service and price together; requires package details and route."""
        if self.package_details is None or self.route is None:
            raise DomainException(
                "Cannot price a quote before package details and route are known",
                {"has_package_details": self.package_details is not None, "has_route": self.route is not None}
            )
        if price <= 0:
            raise DomainException(f"Quoted price must be positive, got {price}")
        self.selected_service = service
        self.price = price

    def missing_for_confirmation(self) -> List[str]:
        """Names of the fields a confirmed quote still lacks."""
        missing = []
        if self.package_details is None:
            missing.append("package_details")
        if self.destination is None:
            missing.append("destination")
        if self.selected_service is None or self.price is None:
            missing.append("selected_service")
        if self.route is None or self.route.kilometers <= 0:
            missing.append("route")
        return missing

    def reset(self) -> None:
        """Discard quote progress; the customer is kept."""
        self.step = QuoteStep.INITIAL
        self.package_details = None
        self.destination = None
        self.route = None
        self.service_options = []
        self.selected_service = None
        self.price = None
        self.touch()

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)

    def copy(self) -> "ConversationState":
        return replace(self, service_options=list(self.service_options))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step.value,
            "packageDetails": self.package_details.to_dict() if self.package_details else None,
            "destination": self.destination.to_dict() if self.destination else None,
            "route": self.route.to_dict() if self.route else None,
            "serviceOptions": [option.to_dict() for option in self.service_options],
            "selectedService": self.selected_service.value if self.selected_service else None,
            "price": self.price,
            "customer": self.customer.to_dict() if self.customer else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversationState":
        selected = data.get("selectedService")
        return cls(
            step=QuoteStep(data.get("step") or QuoteStep.INITIAL.value),
            package_details=PackageDetails.from_dict(data["packageDetails"]) if data.get("packageDetails") else None,
            destination=QuoteDestination.from_dict(data["destination"]) if data.get("destination") else None,
            route=RouteInfo.from_dict(data["route"]) if data.get("route") else None,
            service_options=[ServiceOption.from_dict(o) for o in data.get("serviceOptions") or []],
            selected_service=ServiceType(selected) if selected else None,
            price=int(data["price"]) if data.get("price") is not None else None,
            customer=Customer.from_dict(data.get("customer")),
        )


@dataclass
class QuoteRecord:
    """A confirmed quote request ready to persist."""
    customer: Customer
    package_details: PackageDetails
    destination: QuoteDestination
    selected_service: ServiceType
    quoted_price: int
    route: RouteInfo
    id: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def title(self) -> str:
        return f"Shipping Quote - {self.customer.name}"

    @property
    def description(self) -> str:
        return (
            f"Quote request for shipping from {self.destination.from_address.display} "
            f"to {self.destination.to_address.display}"
        )

    @classmethod
    def from_state(cls, state: ConversationState) -> "QuoteRecord":
        return cls(
            customer=state.customer,
            package_details=state.package_details,
            destination=state.destination,
            selected_service=state.selected_service,
            quoted_price=state.price,
            route=state.route,
        )

    def metadata(self) -> Dict[str, Any]:
        return {
            "packageDetails": self.package_details.to_dict(),
            "destination": self.destination.to_dict(),
            "selectedService": self.selected_service.value,
            "quotedPrice": self.quoted_price,
            "route": self.route.to_dict(),
        }
