import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roomrent.core.database import Base, utcnow

if TYPE_CHECKING:
    from roomrent.models.contract import Contract
    from roomrent.models.room import Room


class Bill(Base):
    """Monthly charge for a contract: rent + electric + water + service."""
    __tablename__ = "bills"
    __table_args__ = (
        UniqueConstraint("contract_id", "month", "year", name="uq_bills_contract_period"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    contract_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("contracts.id"), index=True
    )
    room_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("rooms.id"), index=True
    )
    month: Mapped[int] = mapped_column(Integer)
    year: Mapped[int] = mapped_column(Integer)
    rent_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    electric_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal(0))
    water_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal(0))
    service_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal(0))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    status: Mapped[str] = mapped_column(
        String(20), default="UNPAID", index=True
    )  # UNPAID | PAID | OVERDUE
    due_date: Mapped[date] = mapped_column(Date)
    paid_date: Mapped[date | None] = mapped_column(Date)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    contract: Mapped["Contract"] = relationship(back_populates="bills")
    room: Mapped["Room"] = relationship(back_populates="bills")
