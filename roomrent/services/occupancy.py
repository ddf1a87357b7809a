"""Keeps ``Room.status`` in line with the ACTIVE contracts that reference it."""

import logging
import uuid
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roomrent.models.contract import Contract
from roomrent.models.enums import ContractStatus, RoomStatus
from roomrent.models.room import Room
from roomrent.services.rules import find_overlapping, room_status_after_transition

logger = logging.getLogger(__name__)


async def active_contracts(
    db: AsyncSession,
    room_id: uuid.UUID,
    exclude_id: uuid.UUID | None = None,
) -> list[Contract]:
    stmt = select(Contract).where(
        Contract.room_id == room_id,
        Contract.status == ContractStatus.ACTIVE.value,
    )
    if exclude_id is not None:
        stmt = stmt.where(Contract.id != exclude_id)
    return list((await db.execute(stmt)).scalars().all())


async def find_conflicting_contract(
    db: AsyncSession,
    room_id: uuid.UUID,
    start: date,
    end: date,
    exclude_id: uuid.UUID | None = None,
) -> Contract | None:
    """First ACTIVE contract on the room whose dates overlap ``[start, end]``."""
    return find_overlapping(start, end, await active_contracts(db, room_id, exclude_id))


async def apply_transition(
    db: AsyncSession,
    room_id: uuid.UUID,
    contract_id: uuid.UUID,
    old_status: str | None,
    new_status: str,
) -> None:
    """Update the room after contract ``contract_id`` moved between statuses."""
    others = await active_contracts(db, room_id, exclude_id=contract_id)
    target = room_status_after_transition(old_status, new_status, len(others))
    if target is None:
        return
    room = await db.get(Room, room_id)
    if room is None or room.status == target.value:
        return
    # only an occupied room is released; MAINTENANCE / RESERVED are left to the manager
    if target == RoomStatus.AVAILABLE and room.status != RoomStatus.OCCUPIED:
        return
    logger.info("Room %s status %s -> %s", room.number, room.status, target.value)
    room.status = target.value


async def release_room(db: AsyncSession, room_id: uuid.UUID, contract_id: uuid.UUID) -> None:
    """Contract ``contract_id`` no longer holds the room (deleted or moved away)."""
    await apply_transition(
        db, room_id, contract_id, ContractStatus.ACTIVE.value, ContractStatus.TERMINATED.value
    )
