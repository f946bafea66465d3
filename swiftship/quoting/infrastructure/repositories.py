"""
Quoting Infrastructure Repositories
===================================

Concrete implementations of IQuoteRepository.
"""

from typing import Callable, Dict, Optional
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from swiftship.config import ServiceType
from swiftship.core import RepositoryException
from swiftship.infrastructure.database import get_session_context
from swiftship.quoting.application import IQuoteRepository
from swiftship.quoting.domain import (
    Customer, PackageDetails, QuoteDestination, QuoteRecord, RouteInfo
)
from swiftship.quoting.infrastructure.models import QuoteModel


class SQLAlchemyQuoteRepository(IQuoteRepository):
    """
    SQLAlchemy implementation of the quote repository.

    Each call runs in its own unit of work from the session factory, since
    the repository outlives any single request.
    """

    def __init__(self, session_factory: Callable = get_session_context):
        self._session_factory = session_factory

    @staticmethod
    def _to_record(model: QuoteModel) -> QuoteRecord:
        details = model.details or {}
        return QuoteRecord(
            id=str(model.id),
            customer=Customer(id=model.customer_id, name=model.customer_name, email=model.customer_email),
            package_details=PackageDetails.from_dict(details["packageDetails"]),
            destination=QuoteDestination.from_dict(details["destination"]),
            selected_service=ServiceType(model.selected_service),
            quoted_price=model.quoted_price,
            route=RouteInfo.from_dict(details["route"]),
            created_at=model.created_at,
        )

    async def create(self, record: QuoteRecord) -> str:
        model = QuoteModel(
            id=uuid4(),
            title=record.title,
            description=record.description,
            customer_id=record.customer.id,
            customer_name=record.customer.name,
            customer_email=record.customer.email,
            selected_service=record.selected_service.value,
            quoted_price=record.quoted_price,
            details=record.metadata(),
            created_at=record.created_at,
        )

        try:
            async with self._session_factory() as session:
                session.add(model)
                await session.flush()
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to create quote: {e}", {"customer_id": record.customer.id}) from e

        record.id = str(model.id)
        return record.id

    async def get_by_id(self, quote_id: str) -> Optional[QuoteRecord]:
        try:
            quote_uuid = UUID(quote_id)
        except ValueError:
            return None

        try:
            async with self._session_factory() as session:
                result = await session.execute(select(QuoteModel).where(QuoteModel.id == quote_uuid))
                model = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to load quote: {e}", {"quote_id": quote_id}) from e

        return self._to_record(model) if model else None


class InMemoryQuoteRepository(IQuoteRepository):
    """
    In-memory quote repository.

    For development without a database and for tests.
    """

    def __init__(self):
        self._quotes: Dict[str, QuoteRecord] = {}

    async def create(self, record: QuoteRecord) -> str:
        record.id = str(uuid4())
        self._quotes[record.id] = record
        return record.id

    async def get_by_id(self, quote_id: str) -> Optional[QuoteRecord]:
        return self._quotes.get(quote_id)

    def __len__(self) -> int:
        return len(self._quotes)
