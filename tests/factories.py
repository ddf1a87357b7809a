"""Request builders shared by the router tests."""
from datetime import date
from decimal import Decimal

from httpx import AsyncClient

from roomrent.core.security import create_access_token
from roomrent.models.user import User

ADMIN_PASSWORD = "admin123"


def bearer(user: User) -> dict[str, str]:
    token = create_access_token({"sub": str(user.id), "username": user.username, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


async def create_room(client: AsyncClient, number: str = "101", **overrides) -> dict:
    body = {
        "number": number,
        "floor": 1,
        "area": "20.5",
        "capacity": 2,
        "type": "double",
        "base_price": "3000000",
        **overrides,
    }
    resp = await client.post("/api/rooms", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def create_tenant(client: AsyncClient, id_card: str = "012345678901", **overrides) -> dict:
    body = {
        "full_name": "Nguyen Van A",
        "date_of_birth": "1995-04-12",
        "id_card": id_card,
        "hometown": "Ha Noi",
        "phone": "0912345678",
        **overrides,
    }
    resp = await client.post("/api/tenants", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def create_contract(
    client: AsyncClient,
    room_id: str,
    tenant_ids: list[str],
    start: date | None = None,
    end: date | None = None,
    **overrides,
):
    today = date.today()
    body = {
        "room_id": room_id,
        "tenant_ids": tenant_ids,
        "primary_tenant_id": tenant_ids[0] if tenant_ids else None,
        "start_date": (start or today.replace(day=1)).isoformat(),
        "end_date": (end or date(today.year + 1, today.month, 1)).isoformat(),
        "deposit": str(Decimal("3000000")),
        **overrides,
    }
    return await client.post("/api/contracts", json=body)
