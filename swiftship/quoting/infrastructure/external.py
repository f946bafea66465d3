"""
Quoting External Service Integrations
=====================================

External services for quoting:
- Route gateway over a geocoding provider with a great-circle fallback
- YAML pricing config file watcher
- APScheduler job sweeping idle quote conversations
"""

import math
import threading
import time
from pathlib import Path
from typing import Callable, List, Optional

import yaml
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from swiftship.config import settings
from swiftship.core import GeocodingException, InvalidRouteException
from swiftship.infrastructure.geocoding import IGeocodingProvider, PlaceDetails
from swiftship.quoting.application import IGeocodingGateway, IPricingConfigProvider
from swiftship.quoting.domain import Address, Coordinates, PricingConfig, RouteInfo
from swiftship.shared.infrastructure.grafana import get_grafana_exporter
from swiftship.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

EARTH_RADIUS_KM = 6371


class CircuitState:
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Circuit breaker for the routing provider.

    States:
    - CLOSED: Normal operation, lookups go to the provider
    - OPEN: After N failures, skip the provider for M seconds
    - HALF_OPEN: After timeout, allow one test lookup
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: Optional[float] = None

    @property
    def state(self) -> str:
        """Get current circuit state."""
        if self._state == CircuitState.OPEN and self._last_failure_time:
            if time.time() - self._last_failure_time >= self.recovery_timeout:
                self._state = CircuitState.HALF_OPEN
        return self._state

    def allow_request(self) -> bool:
        return self.state in (CircuitState.CLOSED, CircuitState.HALF_OPEN)

    def record_success(self) -> None:
        self._failure_count = 0
        self._state = CircuitState.CLOSED

    def record_failure(self) -> None:
        self._failure_count += 1
        self._last_failure_time = time.time()

        if self._failure_count >= self.failure_threshold:
            self._state = CircuitState.OPEN
            logger.warning(
                "Routing circuit breaker opened",
                extra={
                    "failure_count": self._failure_count,
                    "recovery_timeout": self.recovery_timeout
                }
            )


def haversine_km(origin: Coordinates, destination: Coordinates) -> float:
    """Great-circle distance on a sphere of radius 6371 km. Accepts out-of-range input."""
    lat1, lat2 = math.radians(origin.latitude), math.radians(destination.latitude)
    d_lat = lat2 - lat1
    d_lon = math.radians(destination.longitude - origin.longitude)
    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


class RouteGateway(IGeocodingGateway):
    """
    Geocoding and routing with graceful degradation.

    - Geocoding failures become None so the conversation can ask again
    - Routing failures, missing routes and invalid coordinates fall back
      to a haversine estimate at a fixed travel speed
    - An open circuit skips the provider and goes straight to the fallback
    """

    def __init__(
        self,
        provider: IGeocodingProvider,
        circuit_breaker: Optional[CircuitBreaker] = None,
        fallback_speed_kmh: Optional[float] = None
    ):
        self._provider = provider
        self._circuit_breaker = circuit_breaker or CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        self._fallback_speed_kmh = fallback_speed_kmh or settings.fallback_speed_kmh

    @staticmethod
    def _to_address(text: str, place: PlaceDetails) -> Address:
        return Address(
            address=text,
            street=text.split(",")[0].strip(),
            city=place.city,
            state=place.state_code or place.state,
            coordinates=Coordinates(place.latitude, place.longitude),
            formatted_address=place.formatted_address,
            place_details=place.to_dict(),
        )

    async def geocode_address(self, text: str) -> Optional[Address]:
        if not text or not text.strip():
            return None
        try:
            place = await self._provider.geocode(text)
        except GeocodingException as e:
            logger.warning("Geocoding failed", extra={"query": text, "error": e.message})
            return None

        if place is None:
            logger.info("No geocoding match", extra={"query": text})
            return None

        address = self._to_address(text, place)
        if not address.coordinates.is_valid():
            logger.warning("Geocoder returned invalid coordinates", extra={"query": text})
            return None
        return address

    async def calculate_route(self, origin: Coordinates, destination: Coordinates) -> RouteInfo:
        started = time.perf_counter()
        route = None

        if not (origin.is_valid() and destination.is_valid()):
            logger.warning(
                "Invalid coordinates, using great-circle estimate",
                extra={"origin": origin.as_tuple(), "destination": destination.as_tuple()}
            )
        elif not self._circuit_breaker.allow_request():
            logger.info("Routing circuit open, using great-circle estimate")
        else:
            route = await self._provider_route(origin, destination)

        if route is None:
            route = self._haversine_route(origin, destination)

        await get_grafana_exporter().export_route_lookup(
            route.source, int((time.perf_counter() - started) * 1000)
        )

        if route.kilometers <= 0:
            raise InvalidRouteException(route.kilometers, {"source": route.source})
        return route

    async def _provider_route(self, origin: Coordinates, destination: Coordinates) -> Optional[RouteInfo]:
        try:
            result = await self._provider.route_matrix(origin.as_tuple(), destination.as_tuple())
        except GeocodingException as e:
            self._circuit_breaker.record_failure()
            logger.warning("Route lookup failed, using great-circle estimate", extra={"error": e.message})
            return None

        self._circuit_breaker.record_success()
        if result is None:
            return None

        return RouteInfo.from_measurements(
            result.distance_meters / 1000,
            result.duration_seconds / 60,
            source="provider",
        )

    def _haversine_route(self, origin: Coordinates, destination: Coordinates) -> RouteInfo:
        distance_km = haversine_km(origin, destination)
        logger.info(
            "Great-circle route estimate",
            extra={"distance_km": round(distance_km, 1), "speed_kmh": self._fallback_speed_kmh}
        )
        return RouteInfo.from_measurements(
            distance_km,
            distance_km / self._fallback_speed_kmh * 60,
            source="haversine",
        )

    async def autocomplete(self, query: str, limit: int = 5) -> List[dict]:
        try:
            places = await self._provider.autocomplete(query, limit)
        except GeocodingException as e:
            logger.warning("Autocomplete failed", extra={"query": query, "error": e.message})
            return []
        return [place.to_dict() for place in places]


class ConfigFileHandler(FileSystemEventHandler):
    """Watchdog event handler for pricing config file changes."""

    def __init__(self, config_manager: "PricingConfigManager", config_path: Path):
        self.config_manager = config_manager
        self.config_path = config_path
        super().__init__()

    def on_modified(self, event):
        if event.is_directory:
            return
        if Path(event.src_path).resolve() == self.config_path.resolve():
            logger.info("Pricing config file changed", extra={"path": event.src_path})
            self.config_manager.reload()


class PricingConfigManager(IPricingConfigProvider):
    """
    Thread-safe pricing configuration with hot reload.

    A missing file means the built-in rate table. A file that fails to
    parse on reload keeps the previous configuration.
    """

    def __init__(self):
        self._config: Optional[PricingConfig] = None
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Path) -> PricingConfig:
        """Initial configuration load."""
        self._path = path
        self._config = self._load_from_file(path)
        return self._config

    def _load_from_file(self, path: Path) -> PricingConfig:
        if not path.exists():
            logger.info("Pricing config file not found, using default rates", extra={"path": str(path)})
            return PricingConfig()

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        return PricingConfig(**data)

    def reload(self) -> bool:
        if self._path is None:
            return False

        try:
            new_config = self._load_from_file(self._path)
        except Exception as e:
            logger.error("Failed to reload pricing config", extra={"error": str(e)})
            return False

        with self._lock:
            self._config = new_config
        logger.info("Pricing configuration reloaded")
        return True

    def start_watching(self) -> None:
        """Watch the config file; skipped when the file is absent or inotify is unavailable."""
        if self._path is None:
            raise RuntimeError("Config not loaded. Call load() first.")

        if not self._path.exists():
            logger.info("Pricing config file absent, skipping file watch", extra={"path": str(self._path)})
            return

        try:
            self._observer = Observer()
            self._observer.schedule(
                ConfigFileHandler(self, self._path),
                str(self._path.parent.resolve()),
                recursive=False
            )
            self._observer.start()
            logger.info("Watching pricing config file", extra={"path": str(self._path)})
        except OSError as e:
            logger.warning("File watching not available, using static pricing config", extra={"error": str(e)})
            self._observer = None

    def stop_watching(self) -> None:
        """Safe to call even if not watching."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    def get_config(self) -> PricingConfig:
        with self._lock:
            if self._config is None:
                raise RuntimeError("Pricing configuration not loaded")
            return self._config


class ConversationSweepScheduler:
    """
    APScheduler wrapper for the periodic idle-conversation sweep.
    """

    def __init__(self, interval_seconds: int = 300):
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    async def start(self, job_func: Callable[[], object]) -> None:
        if self._running:
            logger.warning("Conversation sweep scheduler already running")
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            job_func,
            "interval",
            seconds=self.interval_seconds,
            id="conversation_sweep",
            name="Quote Conversation Sweep",
            misfire_grace_time=60,
            max_instances=1,
            replace_existing=True
        )
        self._scheduler.start()
        self._running = True

        logger.info(
            "Conversation sweep scheduler started",
            extra={"interval_seconds": self.interval_seconds}
        )

    async def stop(self) -> None:
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=True)

        self._running = False
        logger.info("Conversation sweep scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._running
