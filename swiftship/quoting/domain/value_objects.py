"""
Quoting Value Objects
=====================

Pricing configuration and the pricing engine.

Price formula per service tier:

    amount = base + volume*perM3 + weight*perTon + pallets*perPallet
             (+ distance*perKm when distance > short-distance threshold)
    amount *= rushFactor            when the route takes under 24 hours
    price   = ceil(amount / unit) * unit

The rounding unit is 1000 for long routes. For short routes both 1000 and
100 have been used historically; it is a configuration value here.
"""

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from swiftship.config import ServiceType
from swiftship.core import ValidationException
from swiftship.quoting.domain.entities import PackageDetails, RouteInfo, ServiceOption


class ServiceRates(BaseModel):
    """Rate constants for one service tier."""
    name: str
    description: str
    base_price: float = Field(ge=0)
    per_km: float = Field(ge=0)
    per_m3: float = Field(ge=0)
    per_ton: float = Field(ge=0)
    per_pallet: float = Field(ge=0)
    speed_factor: float = Field(gt=0, description="Multiplier on pure driving time")
    rush_factor: float = Field(gt=0, description="Price multiplier for routes under the rush threshold")
    handling_hours: float = Field(ge=0)
    business_days: int = Field(ge=1, description="Business days added to pickup for the delivery date")


DEFAULT_SERVICE_RATES: Dict[ServiceType, dict] = {
    ServiceType.EXPRESS: {
        "name": "Express Freight",
        "description": "Priority handling and expedited transport",
        "base_price": 1500, "per_km": 2.5, "per_m3": 8, "per_ton": 15, "per_pallet": 12,
        "speed_factor": 1.0, "rush_factor": 1.5, "handling_hours": 2, "business_days": 2,
    },
    ServiceType.STANDARD: {
        "name": "Standard Freight",
        "description": "Regular service with standard handling",
        "base_price": 1000, "per_km": 1.8, "per_m3": 6, "per_ton": 12, "per_pallet": 10,
        "speed_factor": 1.3, "rush_factor": 1.0, "handling_hours": 8, "business_days": 4,
    },
    ServiceType.ECO: {
        "name": "Eco Freight",
        "description": "Cost-effective with consolidated handling",
        "base_price": 800, "per_km": 1.2, "per_m3": 4, "per_ton": 8, "per_pallet": 8,
        "speed_factor": 1.6, "rush_factor": 0.8, "handling_hours": 16, "business_days": 6,
    },
}


class PricingConfig(BaseModel):
    """
    Pricing configuration loaded from YAML.

    Missing service tiers are filled with the default rate table, so a file
    may override a single tier.
    """
    services: Dict[ServiceType, ServiceRates] = Field(default_factory=dict, validate_default=True)
    short_distance_km: float = Field(default=50, ge=0)
    short_distance_rounding: int = Field(default=1000, ge=1)
    long_distance_rounding: int = Field(default=1000, ge=1)
    average_speed_kmh: float = Field(default=80, gt=0)
    hours_per_business_day: float = Field(default=8, gt=0)
    rush_threshold_hours: float = Field(default=24, ge=0)

    @field_validator("services", mode="before")
    @classmethod
    def fill_default_services(cls, v: Optional[dict]) -> dict:
        merged = {service: dict(rates) for service, rates in DEFAULT_SERVICE_RATES.items()}
        for key, overrides in (v or {}).items():
            service = ServiceType(key)
            if isinstance(overrides, ServiceRates):
                overrides = overrides.model_dump()
            merged[service].update(overrides)
        return merged

    def rates_for(self, service: ServiceType) -> ServiceRates:
        return self.services[service]


@dataclass(frozen=True)
class DeliveryEstimate:
    """Transit time estimate for one service tier."""
    total_hours: float
    business_days: int
    text: str


class PricingEngine:
    """
    Stateless pricing calculations over a PricingConfig.

    All methods are pure; the config is swapped by replacing the engine.
    """

    def __init__(self, config: Optional[PricingConfig] = None):
        self.config = config or PricingConfig()

    @staticmethod
    def round_up(amount: float, unit: int) -> int:
        # round() absorbs float noise such as 2000.0000000002
        return int(math.ceil(round(amount / unit, 9)) * unit)

    def calculate_price(
        self,
        service: ServiceType,
        distance_km: float,
        volume_m3: float,
        weight_tons: float,
        pallet_count: int = 0,
        is_rush: bool = False
    ) -> int:
        """
        Price a shipment for one service tier.

        Raises:
            ValidationException: If any quantity is negative
        """
        for label, value in (
            ("distance_km", distance_km), ("volume_m3", volume_m3),
            ("weight_tons", weight_tons), ("pallet_count", pallet_count),
        ):
            if value < 0:
                raise ValidationException(f"{label} must be >= 0", {label: value})

        rates = self.config.rates_for(service)
        amount = (
            rates.base_price
            + volume_m3 * rates.per_m3
            + weight_tons * rates.per_ton
            + pallet_count * rates.per_pallet
        )

        if distance_km <= self.config.short_distance_km:
            unit = self.config.short_distance_rounding
        else:
            amount += distance_km * rates.per_km
            unit = self.config.long_distance_rounding

        if is_rush:
            amount *= rates.rush_factor

        return self.round_up(amount, unit)

    def is_rush(self, route: RouteInfo) -> bool:
        return route.hours < self.config.rush_threshold_hours

    def estimate_delivery(self, service: ServiceType, distance_km: float) -> DeliveryEstimate:
        """
        Estimate transit time.

        total_hours = (distance / average speed) * speedFactor + handling hours,
        converted to business days of hours_per_business_day each.
        """
        rates = self.config.rates_for(service)
        total_hours = (distance_km / self.config.average_speed_kmh) * rates.speed_factor + rates.handling_hours
        days = max(1, math.ceil(total_hours / self.config.hours_per_business_day))

        if days <= 1 and total_hours <= 4:
            text = "Same day delivery"
        elif days <= 1:
            text = "Next business day"
        elif days == 2:
            text = "2 business days"
        else:
            text = f"{days} business days"

        return DeliveryEstimate(total_hours=total_hours, business_days=days, text=text)

    @staticmethod
    def add_business_days(start: date, days: int) -> date:
        """Advance start by days, counting Monday through Friday only."""
        current = start
        remaining = days
        while remaining > 0:
            current += timedelta(days=1)
            if current.weekday() < 5:
                remaining -= 1
        return current

    def calculate_service_options(
        self,
        package: PackageDetails,
        route: RouteInfo,
        pickup_date: Optional[date] = None
    ) -> List[ServiceOption]:
        """Price every service tier for the package and route, express first."""
        rush = self.is_rush(route)
        options = []
        for service in (ServiceType.EXPRESS, ServiceType.STANDARD, ServiceType.ECO):
            rates = self.config.rates_for(service)
            estimate = self.estimate_delivery(service, route.kilometers)
            options.append(ServiceOption(
                id=service,
                name=rates.name,
                description=rates.description,
                price=self.calculate_price(
                    service,
                    distance_km=route.kilometers,
                    volume_m3=package.volume_m3,
                    weight_tons=package.weight_tons,
                    pallet_count=package.pallets,
                    is_rush=rush,
                ),
                duration=estimate.text,
                business_days=rates.business_days,
                estimated_delivery=(
                    self.add_business_days(pickup_date, rates.business_days) if pickup_date else None
                ),
            ))
        return options
