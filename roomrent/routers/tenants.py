import logging
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from roomrent.core.database import get_db
from roomrent.core.deps import get_current_user
from roomrent.core.errors import bad_request, conflict, not_found
from roomrent.core.pagination import paginate
from roomrent.models.contract import Contract, ContractTenant
from roomrent.models.enums import ContractStatus
from roomrent.models.room import Room
from roomrent.models.tenant import ResidencyRecord, Tenant
from roomrent.models.user import User
from roomrent.schemas.common import Envelope, MessageResponse, Page
from roomrent.schemas.room import RoomBrief
from roomrent.schemas.tenant import TenantCreate, TenantResponse, TenantUpdate
from roomrent.schemas.views import (
    ContractHistoryItem,
    ContractWithRoom,
    TenantDetail,
    TenantHistory,
    TenantListItem,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tenants", tags=["tenants"])

_SORT_COLUMNS = {
    "created_at": Tenant.created_at,
    "full_name": Tenant.full_name,
    "date_of_birth": Tenant.date_of_birth,
}


async def _get_tenant(tenant_id: uuid.UUID, db: AsyncSession) -> Tenant:
    tenant = await db.get(Tenant, tenant_id)
    if not tenant:
        raise not_found("Tenant")
    return tenant


async def _ensure_id_card_free(
    db: AsyncSession, id_card: str, exclude_id: uuid.UUID | None = None
) -> None:
    stmt = select(Tenant.id).where(Tenant.id_card == id_card)
    if exclude_id is not None:
        stmt = stmt.where(Tenant.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise conflict("ID card already exists", f"A tenant with ID card {id_card} already exists")


def _active_tenancies(*columns):
    """Select ``columns`` over every tenant on an ACTIVE contract, joined to its room."""
    return (
        select(*columns)
        .select_from(ContractTenant)
        .join(Contract, ContractTenant.contract_id == Contract.id)
        .join(Room, Contract.room_id == Room.id)
        .where(Contract.status == ContractStatus.ACTIVE.value)
    )


def _tenant_contracts(tenant_id: uuid.UUID):
    return (
        select(Contract)
        .where(
            Contract.id.in_(
                select(ContractTenant.contract_id).where(ContractTenant.tenant_id == tenant_id)
            )
        )
        .order_by(Contract.start_date.desc())
    )


def _contract_options():
    return (
        selectinload(Contract.room),
        selectinload(Contract.tenant_links).selectinload(ContractTenant.tenant),
    )


# ─── List / detail ──────────────────────────────────────────────────────────

@router.get("", response_model=Page[TenantListItem])
async def list_tenants(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    search: str | None = Query(default=None, max_length=100),
    room_number: str | None = None,
    floor: int | None = Query(default=None, ge=1),
    sort_by: Literal["created_at", "full_name", "date_of_birth"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stmt = select(Tenant)
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                Tenant.full_name.ilike(pattern),
                Tenant.phone.ilike(pattern),
                Tenant.id_card.ilike(pattern),
            )
        )
    if room_number or floor is not None:
        housed = _active_tenancies(ContractTenant.tenant_id)
        if room_number:
            housed = housed.where(Room.number == room_number)
        if floor is not None:
            housed = housed.where(Room.floor == floor)
        stmt = stmt.where(Tenant.id.in_(housed))

    column = _SORT_COLUMNS[sort_by]
    stmt = stmt.order_by(column.asc() if sort_order == "asc" else column.desc())

    tenants, pagination = await paginate(db, stmt, page, limit)

    rooms_by_tenant: dict[uuid.UUID, Room] = {}
    if tenants:
        rows = await db.execute(
            _active_tenancies(ContractTenant.tenant_id, Room)
            .where(ContractTenant.tenant_id.in_([t.id for t in tenants]))
        )
        rooms_by_tenant = {tenant_id: room for tenant_id, room in rows.all()}

    items = [
        TenantListItem(
            **TenantResponse.model_validate(t).model_dump(),
            current_room=(
                RoomBrief.model_validate(rooms_by_tenant[t.id]) if t.id in rooms_by_tenant else None
            ),
        )
        for t in tenants
    ]
    return {"data": items, "pagination": pagination}


@router.get("/{tenant_id}", response_model=Envelope[TenantDetail])
async def get_tenant(
    tenant_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tenant = await _get_tenant(tenant_id, db)
    contracts = await db.execute(_tenant_contracts(tenant_id).options(*_contract_options()))
    records = await db.execute(
        select(ResidencyRecord)
        .where(ResidencyRecord.tenant_id == tenant_id)
        .order_by(ResidencyRecord.start_date.desc())
    )
    detail = TenantDetail(
        **TenantResponse.model_validate(tenant).model_dump(),
        contracts=[ContractWithRoom.model_validate(c) for c in contracts.scalars().all()],
        residency_records=list(records.scalars().all()),
    )
    return {"data": detail}


@router.get("/{tenant_id}/history")
async def tenant_history(
    tenant_id: uuid.UUID,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=50),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Contract history for a tenant, newest first, with each contract's bills."""
    tenant = await _get_tenant(tenant_id, db)
    contracts, pagination = await paginate(
        db,
        _tenant_contracts(tenant_id),
        page,
        limit,
        *_contract_options(),
        selectinload(Contract.bills),
    )
    history = TenantHistory(
        tenant=TenantResponse.model_validate(tenant),
        contracts=[ContractHistoryItem.model_validate(c) for c in contracts],
    )
    return {"data": history, "pagination": pagination}


# ─── Writes ─────────────────────────────────────────────────────────────────

@router.post("", response_model=Envelope[TenantResponse], status_code=201)
async def create_tenant(
    payload: TenantCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await _ensure_id_card_free(db, payload.id_card)
    tenant = Tenant(**payload.model_dump())
    db.add(tenant)
    await db.flush()
    await db.refresh(tenant)
    logger.info("Tenant %s created by %s", tenant.id, user.username)
    return {"message": "Tenant created successfully", "data": tenant}


@router.put("/{tenant_id}", response_model=Envelope[TenantResponse])
async def update_tenant(
    tenant_id: uuid.UUID,
    payload: TenantUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tenant = await _get_tenant(tenant_id, db)
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "id_card" in data and data["id_card"] != tenant.id_card:
        await _ensure_id_card_free(db, data["id_card"], exclude_id=tenant.id)

    for field, value in data.items():
        setattr(tenant, field, value)
    await db.flush()
    await db.refresh(tenant)
    logger.info("Tenant %s updated by %s", tenant.id, user.username)
    return {"message": "Tenant updated successfully", "data": tenant}


@router.delete("/{tenant_id}", response_model=MessageResponse)
async def delete_tenant(
    tenant_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tenant = await _get_tenant(tenant_id, db)

    housed = await db.execute(
        _active_tenancies(ContractTenant.tenant_id, Room).where(ContractTenant.tenant_id == tenant.id)
    )
    rooms = sorted({room.number for _, room in housed.all()})
    if rooms:
        raise bad_request(
            "Cannot delete tenant with active contracts",
            f"Tenant has active contracts in room(s): {', '.join(rooms)}",
            {"rooms": rooms},
        )

    await db.execute(delete(ContractTenant).where(ContractTenant.tenant_id == tenant.id))
    await db.execute(delete(ResidencyRecord).where(ResidencyRecord.tenant_id == tenant.id))
    await db.execute(delete(Tenant).where(Tenant.id == tenant.id))
    logger.info("Tenant %s deleted by %s", tenant_id, user.username)
    return {"message": "Tenant deleted successfully"}
