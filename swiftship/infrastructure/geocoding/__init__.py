"""
Geocoding Infrastructure
========================

Clients for address geocoding and road routing providers.

- RadarClient: Radar REST API (forward/reverse geocoding, autocomplete,
  route matrix) over httpx
- NominatimGeocoder: OpenStreetMap Nominatim through geopy, geocoding only

Providers return None when nothing matches and raise GeocodingException
when the provider itself fails. Turning failures into fallbacks is the
caller's job.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import httpx
from geopy.exc import GeopyError
from geopy.geocoders import Nominatim

from swiftship.config import settings
from swiftship.core import ConfigurationException, GeocodingException
from swiftship.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

LatLon = Tuple[float, float]


@dataclass
class PlaceDetails:
    """Top geocoding match for an address."""
    formatted_address: str
    latitude: float
    longitude: float
    country: str = ""
    country_code: str = ""
    country_flag: str = ""
    city: str = ""
    state: str = ""
    state_code: str = ""
    postal_code: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "formattedAddress": self.formatted_address,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "country": self.country,
            "countryCode": self.country_code,
            "countryFlag": self.country_flag,
            "city": self.city,
            "state": self.state,
            "stateCode": self.state_code,
            "postalCode": self.postal_code,
        }


@dataclass
class RouteMatrixResult:
    """Raw road distance and duration between two points."""
    distance_meters: float
    duration_seconds: float


class IGeocodingProvider(ABC):
    """Interface for geocoding and routing providers."""

    @abstractmethod
    async def geocode(self, query: str) -> Optional[PlaceDetails]:
        """Return the top match for a free-text address."""

    @abstractmethod
    async def reverse_geocode(self, latitude: float, longitude: float) -> Optional[PlaceDetails]:
        """Return the address closest to a coordinate pair."""

    @abstractmethod
    async def autocomplete(self, query: str, limit: int = 5) -> List[PlaceDetails]:
        """Return address suggestions for a partial query."""

    @abstractmethod
    async def route_matrix(self, origin: LatLon, destination: LatLon) -> Optional[RouteMatrixResult]:
        """Return driving distance and duration, or None if unsupported."""

    async def close(self) -> None:
        """Release network resources."""


class RadarClient(IGeocodingProvider):
    """
    Radar API client.

    Authenticates with the publishable key in the Authorization header.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self._api_key = api_key or settings.radar_api_key
        if not self._api_key:
            raise ConfigurationException("Radar API key not configured")
        self._base_url = (base_url or settings.radar_base_url).rstrip("/")
        self._timeout = timeout or settings.geocoding_timeout_seconds
        self._http_client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        client = await self._get_client()
        try:
            response = await client.get(
                f"{self._base_url}/{path}",
                params=params,
                headers={"Authorization": self._api_key}
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise GeocodingException(
                f"Radar {path} returned {e.response.status_code}",
                {"path": path, "status_code": e.response.status_code}
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise GeocodingException(f"Radar {path} failed: {e}", {"path": path}) from e

    @staticmethod
    def _to_place(address: Dict[str, Any]) -> PlaceDetails:
        return PlaceDetails(
            formatted_address=address.get("formattedAddress", ""),
            latitude=float(address["latitude"]),
            longitude=float(address["longitude"]),
            country=address.get("country", ""),
            country_code=address.get("countryCode", ""),
            country_flag=address.get("countryFlag", ""),
            city=address.get("city", ""),
            state=address.get("state", ""),
            state_code=address.get("stateCode", ""),
            postal_code=address.get("postalCode", ""),
        )

    async def geocode(self, query: str) -> Optional[PlaceDetails]:
        data = await self._get("geocode/forward", {"query": query})
        addresses = data.get("addresses") or []
        return self._to_place(addresses[0]) if addresses else None

    async def reverse_geocode(self, latitude: float, longitude: float) -> Optional[PlaceDetails]:
        data = await self._get(
            "geocode/reverse",
            {"coordinates": f"{latitude},{longitude}"}
        )
        addresses = data.get("addresses") or []
        return self._to_place(addresses[0]) if addresses else None

    async def autocomplete(self, query: str, limit: int = 5) -> List[PlaceDetails]:
        if len(query.strip()) < 3:
            return []
        data = await self._get("search/autocomplete", {"query": query, "limit": limit})
        return [self._to_place(address) for address in data.get("addresses") or []]

    async def route_matrix(self, origin: LatLon, destination: LatLon) -> Optional[RouteMatrixResult]:
        data = await self._get(
            "route/matrix",
            {
                "origins": f"{origin[0]:.6f},{origin[1]:.6f}",
                "destinations": f"{destination[0]:.6f},{destination[1]:.6f}",
                "mode": "car",
                "units": "metric",
            }
        )
        try:
            cell = data["matrix"][0][0]
            return RouteMatrixResult(
                distance_meters=float(cell["distance"]["value"]),
                duration_seconds=float(cell["duration"]["value"]),
            )
        except (KeyError, IndexError, TypeError):
            logger.warning("Radar route matrix returned no route", extra={"response_keys": list(data)})
            return None

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None


class NominatimGeocoder(IGeocodingProvider):
    """
    OpenStreetMap Nominatim geocoder via geopy.

    geopy's Nominatim client is blocking, so lookups run in a worker thread.
    Routing is not available; route_matrix always returns None.
    """

    def __init__(self, user_agent: Optional[str] = None, timeout: Optional[float] = None):
        self._geolocator = Nominatim(
            user_agent=user_agent or settings.nominatim_user_agent,
            timeout=timeout or settings.geocoding_timeout_seconds
        )

    @staticmethod
    def _to_place(location: Any) -> PlaceDetails:
        raw = getattr(location, "raw", {}) or {}
        parts = raw.get("address", {})
        return PlaceDetails(
            formatted_address=location.address,
            latitude=float(location.latitude),
            longitude=float(location.longitude),
            country=parts.get("country", ""),
            country_code=parts.get("country_code", "").upper(),
            city=parts.get("city") or parts.get("town") or parts.get("village", ""),
            state=parts.get("state", ""),
            postal_code=parts.get("postcode", ""),
        )

    async def geocode(self, query: str) -> Optional[PlaceDetails]:
        try:
            location = await asyncio.to_thread(
                self._geolocator.geocode, query, addressdetails=True
            )
        except GeopyError as e:
            raise GeocodingException(f"Nominatim geocode failed: {e}") from e
        return self._to_place(location) if location else None

    async def reverse_geocode(self, latitude: float, longitude: float) -> Optional[PlaceDetails]:
        try:
            location = await asyncio.to_thread(
                self._geolocator.reverse, (latitude, longitude), addressdetails=True
            )
        except GeopyError as e:
            raise GeocodingException(f"Nominatim reverse geocode failed: {e}") from e
        return self._to_place(location) if location else None

    async def autocomplete(self, query: str, limit: int = 5) -> List[PlaceDetails]:
        if len(query.strip()) < 3:
            return []
        try:
            locations = await asyncio.to_thread(
                self._geolocator.geocode, query,
                exactly_one=False, limit=limit, addressdetails=True
            )
        except GeopyError as e:
            raise GeocodingException(f"Nominatim search failed: {e}") from e
        return [self._to_place(location) for location in locations or []]

    async def route_matrix(self, origin: LatLon, destination: LatLon) -> Optional[RouteMatrixResult]:
        return None


def create_geocoding_provider(provider: Optional[str] = None) -> IGeocodingProvider:
    """Build the configured provider; Radar without a key degrades to Nominatim."""
    provider = provider or settings.geocoding_provider
    if provider == "radar" and settings.radar_api_key:
        return RadarClient()
    if provider == "radar":
        logger.warning("Radar API key not configured, using Nominatim geocoding")
    return NominatimGeocoder()


__all__ = [
    "LatLon",
    "PlaceDetails",
    "RouteMatrixResult",
    "IGeocodingProvider",
    "RadarClient",
    "NominatimGeocoder",
    "create_geocoding_provider",
]
