import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roomrent.core.database import Base, utcnow

if TYPE_CHECKING:
    from roomrent.models.bill import Bill
    from roomrent.models.contract import Contract


class Room(Base):
    """A rentable room. ``status`` mirrors whether an ACTIVE contract exists."""
    __tablename__ = "rooms"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    number: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    floor: Mapped[int] = mapped_column(Integer)
    area: Mapped[Decimal] = mapped_column(Numeric(8, 2))
    capacity: Mapped[int] = mapped_column(Integer, default=1)
    type: Mapped[str] = mapped_column(String(50))  # single | double | studio ...
    base_price: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    status: Mapped[str] = mapped_column(
        String(20), default="AVAILABLE", index=True
    )  # AVAILABLE | OCCUPIED | RESERVED | MAINTENANCE
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    contracts: Mapped[list["Contract"]] = relationship(back_populates="room")
    bills: Mapped[list["Bill"]] = relationship(back_populates="room")
    meter_readings: Mapped[list["MeterReading"]] = relationship(back_populates="room")


class MeterReading(Base):
    """Cumulative electricity / water counters for one room and month."""
    __tablename__ = "meter_readings"
    __table_args__ = (
        UniqueConstraint("room_id", "month", "year", name="uq_meter_readings_room_period"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    room_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("rooms.id", ondelete="CASCADE"), index=True
    )
    month: Mapped[int] = mapped_column(Integer)
    year: Mapped[int] = mapped_column(Integer)
    electric_reading: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    water_reading: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    electric_scan_confidence: Mapped[Decimal | None] = mapped_column(Numeric(5, 4))
    water_scan_confidence: Mapped[Decimal | None] = mapped_column(Numeric(5, 4))
    is_ai_scanned: Mapped[bool] = mapped_column(Boolean, default=False)
    verified_by: Mapped[str | None] = mapped_column(String(100))
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    room: Mapped["Room"] = relationship(back_populates="meter_readings")
