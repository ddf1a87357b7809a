import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roomrent.core.database import Base, utcnow

if TYPE_CHECKING:
    from roomrent.models.bill import Bill
    from roomrent.models.room import Room
    from roomrent.models.tenant import Tenant


class Contract(Base):
    """A lease of one room to one or more tenants for a date range."""
    __tablename__ = "contracts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    contract_number: Mapped[str] = mapped_column(String(30), unique=True, index=True)
    room_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("rooms.id"), index=True
    )
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date)
    deposit: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    status: Mapped[str] = mapped_column(
        String(20), default="ACTIVE", index=True
    )  # ACTIVE | EXPIRED | TERMINATED
    notes: Mapped[str | None] = mapped_column(Text)
    terminated_at: Mapped[date | None] = mapped_column(Date)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    room: Mapped["Room"] = relationship(back_populates="contracts")
    tenant_links: Mapped[list["ContractTenant"]] = relationship(
        back_populates="contract",
        order_by="ContractTenant.is_primary.desc()",
    )
    bills: Mapped[list["Bill"]] = relationship(
        back_populates="contract",
        order_by="[Bill.year.desc(), Bill.month.desc()]",
    )


class ContractTenant(Base):
    """Join row between a contract and a tenant; one row per contract is primary."""
    __tablename__ = "contract_tenants"

    contract_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("contracts.id", ondelete="CASCADE"), primary_key=True
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tenants.id", ondelete="CASCADE"), primary_key=True
    )
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)

    contract: Mapped["Contract"] = relationship(back_populates="tenant_links")
    tenant: Mapped["Tenant"] = relationship(back_populates="contract_links")
