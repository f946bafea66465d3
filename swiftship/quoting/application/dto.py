"""
Quoting Application DTOs
========================

Pydantic models for the quoting HTTP API.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from swiftship.quoting.domain import QuoteRecord, RouteInfo, ServiceOption


ShipmentTypeStr = Literal["full_truckload", "less_than_truckload", "sea_container", "bulk_freight"]


# ========== Request DTOs ==========

class CoordinatesDTO(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class EstimateRequest(BaseModel):
    """Request model for a stateless price estimate."""
    weight_tons: float = Field(..., ge=0, description="Total weight in metric tons")
    volume_m3: float = Field(..., ge=0, description="Total volume in cubic meters")
    pallet_count: int = Field(default=0, ge=0, description="Number of pallets")
    distance_km: Optional[float] = Field(None, gt=0, description="Known road distance")
    origin: Optional[CoordinatesDTO] = Field(None, description="Pickup coordinates")
    destination: Optional[CoordinatesDTO] = Field(None, description="Delivery coordinates")
    pickup_date: Optional[date] = Field(None, description="Pickup date for delivery estimates")
    shipment_type: ShipmentTypeStr = Field(default="full_truckload")

    @model_validator(mode="after")
    def require_distance_or_coordinates(self) -> "EstimateRequest":
        if self.distance_km is None and (self.origin is None or self.destination is None):
            raise ValueError("Provide distance_km or both origin and destination")
        return self


# ========== Response DTOs ==========

class ServiceOptionResponse(BaseModel):
    """One priced service tier."""
    id: str
    name: str
    description: str
    price: int
    duration: str
    business_days: int
    estimated_delivery: Optional[date] = None

    @classmethod
    def from_option(cls, option: ServiceOption) -> "ServiceOptionResponse":
        return cls(
            id=option.id.value,
            name=option.name,
            description=option.description,
            price=option.price,
            duration=option.duration,
            business_days=option.business_days,
            estimated_delivery=option.estimated_delivery,
        )


class RouteResponse(BaseModel):
    kilometers: float
    miles: float
    minutes: int
    hours: float
    source: str

    @classmethod
    def from_route(cls, route: RouteInfo) -> "RouteResponse":
        return cls(
            kilometers=route.kilometers,
            miles=route.miles,
            minutes=route.minutes,
            hours=route.hours,
            source=route.source,
        )


class EstimateResponse(BaseModel):
    """Response model for a price estimate."""
    route: RouteResponse
    is_rush: bool = Field(..., description="Route under 24 hours; rush factor applied")
    options: List[ServiceOptionResponse]


class QuoteResponse(BaseModel):
    """Response model for a persisted quote."""
    id: str
    title: str
    description: str
    customer_id: str
    selected_service: str
    quoted_price: int
    created_at: datetime
    metadata: Dict[str, Any]

    @classmethod
    def from_record(cls, record: QuoteRecord) -> "QuoteResponse":
        return cls(
            id=record.id,
            title=record.title,
            description=record.description,
            customer_id=record.customer.id,
            selected_service=record.selected_service.value,
            quoted_price=record.quoted_price,
            created_at=record.created_at,
            metadata=record.metadata(),
        )


class AutocompleteResponse(BaseModel):
    suggestions: List[Dict[str, Any]] = Field(default_factory=list)
