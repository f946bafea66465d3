"""
Quoting Application Services
============================

Application services orchestrate the quote conversation and coordinate
between domain logic, the geocoding gateway and quote persistence.

- QuoteStateMachine: one conversation turn at a time
- QuoteService: stateless estimates and quote lookup for the HTTP API
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import date
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from swiftship.config import QuoteOutcome, QuoteStep, ServiceType, ShipmentType, settings
from swiftship.core import (
    DomainException,
    IncompleteQuoteException,
    InvalidRouteException,
    ResourceNotFoundException,
    ValidationException,
)
from swiftship.quoting.domain import (
    Address,
    ConversationState,
    Coordinates,
    Customer,
    IAddressPairParser,
    PackageDetails,
    PricingConfig,
    PricingEngine,
    QuoteDestination,
    QuoteMessages,
    QuoteRecord,
    RegexAddressPairParser,
    RouteInfo,
    ServiceOption,
    extract_confirmation,
    extract_package_details,
    extract_service_level,
)
from swiftship.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Gateway & Repository Interfaces (Dependency Inversion) ==========

class IGeocodingGateway(ABC):
    """Interface for address lookup and road routing."""

    @abstractmethod
    async def geocode_address(self, text: str) -> Optional[Address]:
        """Return the top match for an address, or None when nothing usable is found."""

    @abstractmethod
    async def calculate_route(self, origin: Coordinates, destination: Coordinates) -> RouteInfo:
        """
        Return the route between two points.

        Never fails on provider errors (falls back to a great-circle estimate);
        raises InvalidRouteException for a non-positive distance.
        """

    @abstractmethod
    async def autocomplete(self, query: str, limit: int = 5) -> List[dict]:
        """Return address suggestions for a partial query."""


class IQuoteRepository(ABC):
    """Interface for quote persistence."""

    @abstractmethod
    async def create(self, record: QuoteRecord) -> str:
        """Persist a confirmed quote and return its ID."""

    @abstractmethod
    async def get_by_id(self, quote_id: str) -> Optional[QuoteRecord]:
        """Get a quote by ID."""


class IConversationStateStore(ABC):
    """Interface for per-conversation quote state storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[ConversationState]:
        """Get a copy of the stored state, or None."""

    @abstractmethod
    def save(self, key: str, state: ConversationState) -> None:
        """Store a copy of the state."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Forget the conversation."""


class IPricingConfigProvider(ABC):
    """Interface for pricing configuration access."""

    @abstractmethod
    def get_config(self) -> PricingConfig:
        """Get current pricing configuration."""


class StaticPricingConfigProvider(IPricingConfigProvider):
    """Fixed configuration, used when no YAML file is managed."""

    def __init__(self, config: Optional[PricingConfig] = None):
        self._config = config or PricingConfig()

    def get_config(self) -> PricingConfig:
        return self._config


# ========== Quote State Machine ==========

@dataclass
class QuoteTurnResult:
    """Outcome of one quote conversation turn."""
    reply: str
    state: ConversationState
    outcome: Optional[QuoteOutcome] = None
    quote_id: Optional[str] = None


StepHandler = Callable[[ConversationState, str, date], Awaitable[QuoteTurnResult]]


class QuoteStateMachine:
    """
    Drives the multi-turn quote conversation.

    Steps: initial -> package_details -> addresses -> service_selection ->
    confirmation, ending in created or cancelled. Each step needs one
    successful extraction to advance; a failed extraction re-prompts and
    leaves the step where it is. Only "no" at confirmation resets.

    The incoming state is never mutated; every turn works on a copy that
    is returned in the result.
    """

    def __init__(
        self,
        gateway: IGeocodingGateway,
        repository: IQuoteRepository,
        config_provider: Optional[IPricingConfigProvider] = None,
        address_parser: Optional[IAddressPairParser] = None
    ):
        self._gateway = gateway
        self._repository = repository
        self._config_provider = config_provider or StaticPricingConfigProvider()
        self._address_parser = address_parser or RegexAddressPairParser()
        self._handlers: Dict[QuoteStep, StepHandler] = {
            QuoteStep.INITIAL: self._handle_initial,
            QuoteStep.PACKAGE_DETAILS: self._handle_package_details,
            QuoteStep.ADDRESSES: self._handle_addresses,
            QuoteStep.SERVICE_SELECTION: self._handle_service_selection,
            QuoteStep.CONFIRMATION: self._handle_confirmation,
        }

    @property
    def pricing_engine(self) -> PricingEngine:
        # Built per use so a hot-reloaded config applies to the next turn
        return PricingEngine(self._config_provider.get_config())

    async def handle(
        self,
        state: Optional[ConversationState],
        message: str,
        customer: Optional[Customer] = None,
        today: Optional[date] = None
    ) -> QuoteTurnResult:
        """
        Process one user message.

        Args:
            state: Current conversation state (None starts a new quote)
            message: Latest user message
            customer: Authenticated customer, replaces any stored one
            today: Reference date for pickup phrases like "tomorrow"

        Returns:
            QuoteTurnResult with the reply and the updated state copy
        """
        working = state.copy() if state else ConversationState()
        if customer is not None:
            working.customer = customer

        previous_step = working.step
        result = await self._handlers[previous_step](working, message, today or date.today())
        result.state.touch()

        if result.state.step != previous_step or result.outcome:
            logger.info(
                "Quote step transition",
                extra={
                    "from_step": previous_step.value,
                    "to_step": result.state.step.value,
                    "outcome": result.outcome.value if result.outcome else None,
                    "quote_id": result.quote_id,
                }
            )
        return result

    # ----- step handlers -----

    async def _handle_initial(self, state: ConversationState, message: str, today: date) -> QuoteTurnResult:
        state.step = QuoteStep.PACKAGE_DETAILS
        return QuoteTurnResult(reply=QuoteMessages.START_QUOTE, state=state)

    async def _handle_package_details(
        self, state: ConversationState, message: str, today: date
    ) -> QuoteTurnResult:
        package = extract_package_details(message)
        if package is None:
            return QuoteTurnResult(reply=QuoteMessages.PACKAGE_RETRY, state=state)

        if package.hazard_negation_ambiguous:
            logger.warning(
                "Hazard keyword negated elsewhere in message",
                extra={"shipment_type": package.type.value}
            )

        state.package_details = package
        state.step = QuoteStep.ADDRESSES
        return QuoteTurnResult(reply=QuoteMessages.ADDRESS_DETAILS, state=state)

    async def _handle_addresses(self, state: ConversationState, message: str, today: date) -> QuoteTurnResult:
        pair = self._address_parser.parse(message, today)
        if pair is None:
            return QuoteTurnResult(reply=QuoteMessages.ADDRESS_RETRY, state=state)

        pickup_match, delivery_match = await asyncio.gather(
            self._gateway.geocode_address(pair.pickup.address),
            self._gateway.geocode_address(pair.delivery.address),
        )
        if pickup_match is None or delivery_match is None:
            logger.info(
                "Address could not be geocoded",
                extra={
                    "pickup_found": pickup_match is not None,
                    "delivery_found": delivery_match is not None,
                }
            )
            return QuoteTurnResult(reply=QuoteMessages.ADDRESS_RETRY, state=state)

        pickup = self._merge_geocoded(pair.pickup, pickup_match)
        delivery = self._merge_geocoded(pair.delivery, delivery_match)

        try:
            route = await self._gateway.calculate_route(pickup.coordinates, delivery.coordinates)
        except InvalidRouteException as e:
            logger.info("Rejected route", extra={"distance_km": e.distance_km})
            return QuoteTurnResult(reply=QuoteMessages.ADDRESS_RETRY, state=state)

        state.destination = QuoteDestination(
            from_address=pickup,
            to_address=delivery,
            pickup_date=pair.pickup_date,
            pickup_time_slot=pair.pickup_time_slot,
        )
        state.route = route
        state.service_options = self.pricing_engine.calculate_service_options(
            state.package_details, route, pair.pickup_date
        )
        state.step = QuoteStep.SERVICE_SELECTION

        return QuoteTurnResult(
            reply=QuoteMessages.service_options(state.package_details, route, state.service_options),
            state=state,
        )

    @staticmethod
    def _merge_geocoded(parsed: Address, match: Address) -> Address:
        return replace(
            parsed,
            coordinates=match.coordinates,
            formatted_address=match.formatted_address,
            place_details=match.place_details,
        )

    async def _handle_service_selection(
        self, state: ConversationState, message: str, today: date
    ) -> QuoteTurnResult:
        service = extract_service_level(message)
        if service is None:
            return QuoteTurnResult(reply=QuoteMessages.SERVICE_RETRY, state=state)

        option = self._option_for(state, service)
        try:
            state.select_service(service, option.price if option else 0)
        except DomainException as e:
            logger.warning("Service selection rejected", extra={"error": e.message})
            return QuoteTurnResult(
                reply=QuoteMessages.missing_information(state.missing_for_confirmation()),
                state=state,
            )

        state.step = QuoteStep.CONFIRMATION
        return QuoteTurnResult(
            reply=QuoteMessages.quote_summary(state.package_details, state.destination, state.route, option),
            state=state,
        )

    def _option_for(self, state: ConversationState, service: ServiceType) -> Optional[ServiceOption]:
        option = state.option_for(service)
        if option is None and state.package_details and state.route:
            # Client-held state may omit the rendered options
            state.service_options = self.pricing_engine.calculate_service_options(
                state.package_details,
                state.route,
                state.destination.pickup_date if state.destination else None,
            )
            option = state.option_for(service)
        return option

    @staticmethod
    def _ensure_complete(state: ConversationState) -> None:
        missing = state.missing_for_confirmation()
        if missing:
            raise IncompleteQuoteException(missing)

    async def _handle_confirmation(self, state: ConversationState, message: str, today: date) -> QuoteTurnResult:
        answer = extract_confirmation(message)
        if answer is None:
            return QuoteTurnResult(reply=QuoteMessages.CONFIRM_RETRY, state=state)

        if not answer:
            state.reset()
            return QuoteTurnResult(
                reply=QuoteMessages.QUOTE_CANCELLED, state=state, outcome=QuoteOutcome.CANCELLED
            )

        try:
            self._ensure_complete(state)
        except IncompleteQuoteException as e:
            logger.warning("Confirmation with incomplete quote", extra={"missing_fields": e.missing_fields})
            return QuoteTurnResult(reply=QuoteMessages.missing_information(e.missing_fields), state=state)

        if state.customer is None:
            return QuoteTurnResult(reply=QuoteMessages.CUSTOMER_REQUIRED, state=state)

        try:
            quote_id = await self._repository.create(QuoteRecord.from_state(state))
        except Exception as e:
            logger.error(
                "Failed to persist quote",
                extra={"customer_id": state.customer.id, "error": str(e)},
                exc_info=True
            )
            return QuoteTurnResult(reply=QuoteMessages.CREATE_FAILED, state=state)

        state.reset()
        return QuoteTurnResult(
            reply=QuoteMessages.quote_created(quote_id),
            state=state,
            outcome=QuoteOutcome.CREATED,
            quote_id=quote_id,
        )


# ========== Quote Service ==========

class QuoteService:
    """
    Stateless quoting operations for the HTTP API.

    Coordinates between pricing, routing and the quote repository.
    """

    def __init__(
        self,
        gateway: IGeocodingGateway,
        repository: IQuoteRepository,
        config_provider: Optional[IPricingConfigProvider] = None
    ):
        self._gateway = gateway
        self._repository = repository
        self._config_provider = config_provider or StaticPricingConfigProvider()

    async def estimate(
        self,
        weight_tons: float,
        volume_m3: float,
        distance_km: Optional[float] = None,
        origin: Optional[Coordinates] = None,
        destination: Optional[Coordinates] = None,
        pallet_count: int = 0,
        pickup_date: Optional[date] = None,
        shipment_type: ShipmentType = ShipmentType.FULL_TRUCKLOAD
    ) -> Tuple[RouteInfo, List[ServiceOption]]:
        """
        Price all service tiers without a conversation.

        Either distance_km or both coordinate pairs must be given. A bare
        distance is timed at the fallback travel speed.

        Raises:
            ValidationException: If neither distance nor coordinates are usable
            InvalidRouteException: If the routed distance is not positive
        """
        if distance_km is not None:
            if distance_km <= 0:
                raise ValidationException("distance_km must be > 0", {"distance_km": distance_km})
            route = RouteInfo.from_measurements(
                distance_km,
                distance_km / settings.fallback_speed_kmh * 60,
                source="client",
            )
        elif origin is not None and destination is not None:
            route = await self._gateway.calculate_route(origin, destination)
        else:
            raise ValidationException("Provide distance_km or both origin and destination")

        package = PackageDetails(
            type=shipment_type,
            weight=str(weight_tons),
            volume=str(volume_m3),
            hazardous=False,
            pallet_count=str(pallet_count) if pallet_count else None,
        )
        engine = PricingEngine(self._config_provider.get_config())
        return route, engine.calculate_service_options(package, route, pickup_date)

    def is_rush(self, route: RouteInfo) -> bool:
        return PricingEngine(self._config_provider.get_config()).is_rush(route)

    async def get_quote(self, quote_id: str) -> QuoteRecord:
        """
        Raises:
            ResourceNotFoundException: If no quote has this ID
        """
        record = await self._repository.get_by_id(quote_id)
        if record is None:
            raise ResourceNotFoundException("Quote", quote_id)
        return record

    async def autocomplete(self, query: str, limit: int = 5) -> List[dict]:
        return await self._gateway.autocomplete(query, limit)
