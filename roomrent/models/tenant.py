import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, ForeignKey, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roomrent.core.database import Base, utcnow

if TYPE_CHECKING:
    from roomrent.models.contract import ContractTenant


class Tenant(Base):
    __tablename__ = "tenants"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    full_name: Mapped[str] = mapped_column(String(100), index=True)
    date_of_birth: Mapped[date] = mapped_column(Date)
    id_card: Mapped[str] = mapped_column(String(12), unique=True, index=True)
    hometown: Mapped[str] = mapped_column(String(200))
    phone: Mapped[str] = mapped_column(String(15))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    contract_links: Mapped[list["ContractTenant"]] = relationship(back_populates="tenant")
    residency_records: Mapped[list["ResidencyRecord"]] = relationship(
        back_populates="tenant", order_by="ResidencyRecord.start_date.desc()"
    )


class ResidencyRecord(Base):
    """Temporary residence / temporary absence registration for a tenant."""
    __tablename__ = "residency_records"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tenants.id", ondelete="CASCADE"), index=True
    )
    type: Mapped[str] = mapped_column(String(30))  # TEMPORARY_RESIDENCE | TEMPORARY_ABSENCE
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)  # open-ended when null
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    tenant: Mapped["Tenant"] = relationship(back_populates="residency_records")
