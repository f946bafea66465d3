"""Tests for quote persistence."""

from contextlib import asynccontextmanager
from datetime import date

import pytest
from sqlalchemy.exc import SQLAlchemyError

from swiftship.config import ServiceType, ShipmentType, TimeSlot
from swiftship.core import RepositoryException
from swiftship.infrastructure.database import close_database, create_tables, init_database
from swiftship.quoting.domain import (
    Address, Customer, PackageDetails, QuoteDestination, QuoteRecord, RouteInfo
)
from swiftship.quoting.infrastructure import InMemoryQuoteRepository, SQLAlchemyQuoteRepository

from conftest import LA, NY


def make_record() -> QuoteRecord:
    return QuoteRecord(
        customer=Customer(id="cust-1", name="Ada Lovelace", email="ada@example.com"),
        package_details=PackageDetails(
            type=ShipmentType.FULL_TRUCKLOAD, weight="20", volume="60", hazardous=False
        ),
        destination=QuoteDestination(
            from_address=Address("123 Main St, Los Angeles, CA", coordinates=LA),
            to_address=Address("500 Broadway, New York, NY", coordinates=NY, formatted_address="500 Broadway, NY"),
            pickup_date=date(2025, 3, 4),
            pickup_time_slot=TimeSlot.MORNING_1,
        ),
        selected_service=ServiceType.EXPRESS,
        quoted_price=14000,
        route=RouteInfo.from_measurements(4490.2, 2460, source="provider"),
    )


class TestSQLAlchemyQuoteRepository:
    """Round trip through SQLite."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, tmp_path):
        init_database(f"sqlite+aiosqlite:///{tmp_path}/quotes.db")
        try:
            await create_tables()
            repository = SQLAlchemyQuoteRepository()

            quote_id = await repository.create(make_record())
            loaded = await repository.get_by_id(quote_id)

            assert loaded.id == quote_id
            assert loaded.quoted_price == 14000
            assert loaded.selected_service == ServiceType.EXPRESS
            assert loaded.customer.email == "ada@example.com"
            assert loaded.package_details.weight == "20"
            assert loaded.destination.pickup_date == date(2025, 3, 4)
            assert loaded.destination.to_address.coordinates == NY
            assert loaded.route.kilometers == 4490.2
            assert loaded.title == "Shipping Quote - Ada Lovelace"
            assert "500 Broadway, NY" in loaded.description

            assert await repository.get_by_id("not-a-uuid") is None
            assert await repository.get_by_id("4f9e7c51-3b0a-4c55-8a55-1d2f3e4a5b6c") is None
        finally:
            await close_database()

    @pytest.mark.asyncio
    async def test_database_errors_wrapped(self):
        @asynccontextmanager
        async def failing_session():
            raise SQLAlchemyError("connection refused")
            yield

        repository = SQLAlchemyQuoteRepository(session_factory=failing_session)

        with pytest.raises(RepositoryException):
            await repository.create(make_record())
        with pytest.raises(RepositoryException):
            await repository.get_by_id("4f9e7c51-3b0a-4c55-8a55-1d2f3e4a5b6c")


class TestInMemoryQuoteRepository:
    @pytest.mark.asyncio
    async def test_create_assigns_id(self):
        repository = InMemoryQuoteRepository()

        quote_id = await repository.create(make_record())

        assert (await repository.get_by_id(quote_id)).quoted_price == 14000
        assert await repository.get_by_id("missing") is None
        assert len(repository) == 1
