"""
Quoting Infrastructure Models
=============================

SQLAlchemy ORM models for the quoting module.
"""

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from swiftship.config import ServiceType
from swiftship.infrastructure.database import Base


class QuoteModel(Base):
    """
    Database model for a confirmed quote request.

    Maps to the 'quotes' table.
    """
    __tablename__ = "quotes"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # Customer
    customer_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # Pricing
    selected_service: Mapped[ServiceType] = mapped_column(String(50), nullable=False)
    quoted_price: Mapped[int] = mapped_column(Integer, nullable=False)

    # packageDetails, destination, route as serialized by the domain entities
    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
