import csv
import io
from datetime import date

from tests.factories import create_contract, create_room, create_tenant

RANGE = {"start_date": "2030-01-01", "end_date": "2030-03-31"}


async def _seed(client) -> None:
    """Two rooms, one let from February 2030, bills for Feb (paid) and Mar (unpaid)."""
    room = await create_room(client, "101", base_price="2000000")
    await create_room(client, "102")
    tenant = await create_tenant(client)
    await create_contract(client, room["id"], [tenant["id"]], start=date(2030, 2, 1), end=date(2031, 1, 31))
    feb = (await client.post("/api/bills/generate", json={"month": 2, "year": 2030})).json()["data"]["bills"][0]
    await client.post(f"/api/bills/{feb['id']}/pay")
    await client.post("/api/bills/generate", json={"month": 3, "year": 2030})


class TestReports:
    async def test_revenue(self, auth_client):
        await _seed(auth_client)
        resp = await auth_client.get("/api/reports/revenue", params=RANGE)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["type"] == "revenue"
        assert data["total_records"] == 3
        rows = {r["period"]: r for r in data["report_data"]}
        assert rows["2030-01"]["total_bills"] == 0
        assert rows["2030-02"]["paid_revenue"] == 2000000.0
        assert rows["2030-03"]["pending_revenue"] == 2000000.0
        assert data["summary"]["total_revenue"] == 4000000.0

    async def test_occupancy_follows_contract_dates(self, auth_client):
        await _seed(auth_client)
        data = (await auth_client.get("/api/reports/occupancy", params=RANGE)).json()["data"]
        rates = [r["occupancy_rate"] for r in data["report_data"]]
        assert rates == [0.0, 50.0, 50.0]
        assert data["summary"]["peak_occupancy_rate"] == 50.0

    async def test_bills(self, auth_client):
        await _seed(auth_client)
        data = (await auth_client.get("/api/reports/bills", params=RANGE)).json()["data"]
        assert data["summary"]["total_bills"] == 2
        assert data["summary"]["paid_bills"] == 1
        assert data["summary"]["collection_rate"] == 50.0

    async def test_room_filter(self, auth_client):
        await _seed(auth_client)
        rooms = (await auth_client.get("/api/rooms", params={"search": "102"})).json()["data"]
        params = {**RANGE, "room_ids": [rooms[0]["id"]]}
        data = (await auth_client.get("/api/reports/revenue", params=params)).json()["data"]
        assert data["summary"]["total_bills"] == 0
        assert data["filters"]["room_ids"] == [rooms[0]["id"]]

    async def test_summary_shape(self, auth_client):
        resp = await auth_client.get("/api/reports/summary", params=RANGE)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["period"] == {"start": "2030-01-01", "end": "2030-03-31", "months": 3}
        assert data["total_bills"] == 0

    async def test_inverted_range(self, auth_client):
        resp = await auth_client.get("/api/reports/revenue", params={"start_date": "2030-03-01", "end_date": "2030-01-01"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid date range"

    async def test_export_csv(self, auth_client):
        await _seed(auth_client)
        resp = await auth_client.get("/api/reports/export", params={**RANGE, "type": "bills"})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert 'filename="bills-report-2030-01-01-2030-03-31.csv"' in resp.headers["content-disposition"]
        rows = list(csv.reader(io.StringIO(resp.text)))
        assert rows[0][0] == "period"
        assert [r[0] for r in rows[1:]] == ["2030-01", "2030-02", "2030-03"]

    async def test_export_unknown_type(self, auth_client):
        resp = await auth_client.get("/api/reports/export", params={**RANGE, "type": "payroll"})
        assert resp.status_code == 400
