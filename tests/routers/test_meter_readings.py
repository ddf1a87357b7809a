from tests.factories import create_room

MISSING_ID = "00000000-0000-0000-0000-000000000000"


def _reading(room_id: str, month: int = 6, **overrides) -> dict:
    return {
        "room_id": room_id,
        "month": month,
        "year": 2030,
        "electric_reading": "1250.5",
        "water_reading": "48",
        **overrides,
    }


class TestMeterReadings:
    async def test_create_and_list(self, auth_client):
        room = await create_room(auth_client)
        resp = await auth_client.post("/api/meter-readings", json=_reading(room["id"]))
        assert resp.status_code == 201
        assert resp.json()["data"]["verified_at"] is None

        resp = await auth_client.get("/api/meter-readings", params={"room_id": room["id"]})
        assert resp.json()["pagination"]["total"] == 1

    async def test_unknown_room(self, auth_client):
        resp = await auth_client.post("/api/meter-readings", json=_reading(MISSING_ID))
        assert resp.status_code == 404

    async def test_one_reading_per_period(self, auth_client):
        room = await create_room(auth_client)
        await auth_client.post("/api/meter-readings", json=_reading(room["id"]))
        resp = await auth_client.post("/api/meter-readings", json=_reading(room["id"]))
        assert resp.status_code == 409
        assert resp.json()["error"] == "Meter reading already exists"

    async def test_negative_reading_rejected(self, auth_client):
        room = await create_room(auth_client)
        resp = await auth_client.post("/api/meter-readings", json=_reading(room["id"], electric_reading="-5"))
        assert resp.status_code == 400

    async def test_verify_sets_timestamp(self, auth_client):
        room = await create_room(auth_client)
        reading = (await auth_client.post("/api/meter-readings", json=_reading(room["id"]))).json()["data"]

        resp = await auth_client.put(f"/api/meter-readings/{reading['id']}", json={"verified_by": "admin"})
        assert resp.status_code == 200
        assert resp.json()["data"]["verified_by"] == "admin"
        assert resp.json()["data"]["verified_at"] is not None

    async def test_delete(self, auth_client):
        room = await create_room(auth_client)
        reading = (await auth_client.post("/api/meter-readings", json=_reading(room["id"]))).json()["data"]
        assert (await auth_client.delete(f"/api/meter-readings/{reading['id']}")).status_code == 200
        assert (await auth_client.delete(f"/api/meter-readings/{reading['id']}")).status_code == 404
