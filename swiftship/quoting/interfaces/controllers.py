"""
Quoting Controllers (API Routes)
================================

FastAPI routes for price estimates, quote lookup and address autocomplete.

Controllers delegate to QuoteService.
"""

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status

from swiftship.config import ShipmentType
from swiftship.core import InvalidRouteException, ResourceNotFoundException, ValidationException
from swiftship.quoting.application import (
    AutocompleteResponse,
    EstimateRequest,
    EstimateResponse,
    QuoteResponse,
    QuoteService,
    RouteResponse,
    ServiceOptionResponse,
)
from swiftship.quoting.domain import Coordinates
from swiftship.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
quotes_router = APIRouter(prefix="/quotes", tags=["Quotes"])
geocoding_router = APIRouter(prefix="/geocoding", tags=["Geocoding"])


# ========== Example payloads for Swagger ==========

ESTIMATE_REQUEST_EXAMPLE = {
    "weight_tons": 12,
    "volume_m3": 40,
    "pallet_count": 0,
    "origin": {"latitude": 34.0522, "longitude": -118.2437},
    "destination": {"latitude": 40.7128, "longitude": -74.0060},
    "pickup_date": "2025-03-03",
    "shipment_type": "full_truckload"
}

ESTIMATE_RESPONSE_EXAMPLE = {
    "route": {"kilometers": 4490.2, "miles": 2790.1, "minutes": 2460, "hours": 41.0, "source": "provider"},
    "is_rush": False,
    "options": [
        {
            "id": "express_freight",
            "name": "Express Freight",
            "description": "Priority handling and expedited transport",
            "price": 13000,
            "duration": "9 business days",
            "business_days": 2,
            "estimated_delivery": "2025-03-05"
        }
    ]
}


# ========== Dependencies ==========

def get_quote_service(request: Request) -> QuoteService:
    service = getattr(request.app.state, "quote_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Quote service not initialized"
        )
    return service


# ========== Route Handlers ==========

@quotes_router.post(
    "/estimate",
    response_model=EstimateResponse,
    summary="Estimate prices for all service levels",
    description="""
    Price express, standard and eco freight for a shipment without starting
    a quote conversation.

    Provide either `distance_km` or both `origin` and `destination`
    coordinates. Coordinates are routed through the routing provider,
    falling back to a great-circle estimate when it is unavailable.
    """,
    responses={
        200: {
            "description": "Estimate computed",
            "content": {"application/json": {"example": ESTIMATE_RESPONSE_EXAMPLE}}
        },
        400: {"description": "Route could not be computed"}
    }
)
async def estimate_quote(
    payload: EstimateRequest = Body(..., examples=[ESTIMATE_REQUEST_EXAMPLE]),
    service: QuoteService = Depends(get_quote_service)
):
    try:
        route, options = await service.estimate(
            weight_tons=payload.weight_tons,
            volume_m3=payload.volume_m3,
            distance_km=payload.distance_km,
            origin=Coordinates(payload.origin.latitude, payload.origin.longitude) if payload.origin else None,
            destination=(
                Coordinates(payload.destination.latitude, payload.destination.longitude)
                if payload.destination else None
            ),
            pallet_count=payload.pallet_count,
            pickup_date=payload.pickup_date,
            shipment_type=ShipmentType(payload.shipment_type),
        )
    except (ValidationException, InvalidRouteException) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    logger.info(
        "Quote estimate computed",
        extra={
            "distance_km": route.kilometers,
            "route_source": route.source,
            "prices": {option.id.value: option.price for option in options},
        }
    )

    return EstimateResponse(
        route=RouteResponse.from_route(route),
        is_rush=service.is_rush(route),
        options=[ServiceOptionResponse.from_option(option) for option in options],
    )


@quotes_router.get(
    "/{quote_id}",
    response_model=QuoteResponse,
    summary="Get a created quote",
    responses={404: {"description": "Quote not found"}}
)
async def get_quote(
    quote_id: str,
    service: QuoteService = Depends(get_quote_service)
):
    try:
        record = await service.get_quote(quote_id)
    except ResourceNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    return QuoteResponse.from_record(record)


@geocoding_router.get(
    "/autocomplete",
    response_model=AutocompleteResponse,
    summary="Address suggestions",
    description="Returns up to `limit` address suggestions. Queries under 3 characters return an empty list."
)
async def autocomplete(
    query: str = Query(..., description="Partial address"),
    limit: int = Query(5, ge=1, le=10),
    service: QuoteService = Depends(get_quote_service)
):
    if len(query.strip()) < 3:
        return AutocompleteResponse()
    return AutocompleteResponse(suggestions=await service.autocomplete(query, limit))


__all__ = ["quotes_router", "geocoding_router"]
