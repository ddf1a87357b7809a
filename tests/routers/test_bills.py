from decimal import Decimal

from tests.factories import create_contract, create_room, create_tenant


async def _active_contract(client, number: str = "101", id_card: str = "300000001") -> dict:
    room = await create_room(client, number)
    tenant = await create_tenant(client, id_card)
    resp = await create_contract(client, room["id"], [tenant["id"]])
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def _bill_body(contract: dict, **overrides) -> dict:
    return {
        "contract_id": contract["id"],
        "room_id": contract["room_id"],
        "month": 3,
        "year": 2030,
        "rent_amount": "3000000",
        "electric_amount": "350000",
        "water_amount": "100000",
        "service_amount": "50000",
        "due_date": "2030-04-05",
        **overrides,
    }


class TestCreateBill:
    async def test_total_computed_when_omitted(self, auth_client):
        contract = await _active_contract(auth_client)
        resp = await auth_client.post("/api/bills", json=_bill_body(contract))
        assert resp.status_code == 201
        bill = resp.json()["data"]
        assert Decimal(bill["total_amount"]) == Decimal("3500000")
        assert bill["status"] == "UNPAID"
        assert bill["room"]["number"] == "101"
        assert bill["contract"]["id"] == contract["id"]

    async def test_total_within_tolerance(self, auth_client):
        contract = await _active_contract(auth_client)
        resp = await auth_client.post("/api/bills", json=_bill_body(contract, total_amount="3500000.01"))
        assert resp.status_code == 201

    async def test_total_mismatch(self, auth_client):
        contract = await _active_contract(auth_client)
        resp = await auth_client.post("/api/bills", json=_bill_body(contract, total_amount="3600000"))
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid total amount"

    async def test_duplicate_period(self, auth_client):
        contract = await _active_contract(auth_client)
        await auth_client.post("/api/bills", json=_bill_body(contract))
        resp = await auth_client.post("/api/bills", json=_bill_body(contract))
        assert resp.status_code == 409
        assert resp.json()["error"] == "Bill already exists"

    async def test_room_mismatch(self, auth_client):
        contract = await _active_contract(auth_client)
        other = await create_room(auth_client, "999")
        resp = await auth_client.post("/api/bills", json=_bill_body(contract, room_id=other["id"]))
        assert resp.status_code == 400
        assert resp.json()["error"] == "Room mismatch"

    async def test_inactive_contract(self, auth_client):
        contract = await _active_contract(auth_client)
        await auth_client.post(f"/api/contracts/{contract['id']}/checkout")
        resp = await auth_client.post("/api/bills", json=_bill_body(contract))
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid contract status"

    async def test_month_out_of_range(self, auth_client):
        contract = await _active_contract(auth_client)
        resp = await auth_client.post("/api/bills", json=_bill_body(contract, month=13))
        assert resp.status_code == 400
        assert resp.json()["details"][0]["field"] == "month"


class TestPayAndEdit:
    async def test_pay_then_locked(self, auth_client):
        contract = await _active_contract(auth_client)
        bill = (await auth_client.post("/api/bills", json=_bill_body(contract))).json()["data"]

        resp = await auth_client.post(f"/api/bills/{bill['id']}/pay", json={"paid_date": "2030-04-01"})
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "PAID"
        assert resp.json()["data"]["paid_date"] == "2030-04-01"

        resp = await auth_client.post(f"/api/bills/{bill['id']}/pay")
        assert resp.status_code == 409
        assert resp.json()["error"] == "Bill already paid"

        resp = await auth_client.put(f"/api/bills/{bill['id']}", json={"rent_amount": "1"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Cannot modify paid bill"

        resp = await auth_client.delete(f"/api/bills/{bill['id']}")
        assert resp.status_code == 409
        assert resp.json()["error"] == "Cannot delete paid bill"

    async def test_update_recomputes_total(self, auth_client):
        contract = await _active_contract(auth_client)
        bill = (await auth_client.post("/api/bills", json=_bill_body(contract))).json()["data"]

        resp = await auth_client.put(f"/api/bills/{bill['id']}", json={"water_amount": "200000"})
        assert resp.status_code == 200
        assert Decimal(resp.json()["data"]["total_amount"]) == Decimal("3600000")

    async def test_update_with_wrong_total(self, auth_client):
        contract = await _active_contract(auth_client)
        bill = (await auth_client.post("/api/bills", json=_bill_body(contract))).json()["data"]

        resp = await auth_client.put(f"/api/bills/{bill['id']}", json={"total_amount": "1"})
        assert resp.status_code == 400

    async def test_delete_unpaid(self, auth_client):
        contract = await _active_contract(auth_client)
        bill = (await auth_client.post("/api/bills", json=_bill_body(contract))).json()["data"]
        resp = await auth_client.delete(f"/api/bills/{bill['id']}")
        assert resp.status_code == 200
        assert (await auth_client.get(f"/api/bills/{bill['id']}")).status_code == 404


class TestGenerateBills:
    async def test_no_active_contracts(self, auth_client):
        resp = await auth_client.post("/api/bills/generate", json={"month": 5, "year": 2030})
        assert resp.status_code == 404
        assert resp.json()["error"] == "No active contracts"

    async def test_generates_once_per_period(self, auth_client):
        first = await _active_contract(auth_client, "101", "300000001")
        await _active_contract(auth_client, "102", "300000002")
        await auth_client.put("/api/settings/pricing", json={"internet_fee": "100000"})
        await auth_client.post("/api/meter-readings", json={
            "room_id": first["room_id"], "month": 4, "year": 2030,
            "electric_reading": "1000", "water_reading": "50",
        })
        await auth_client.post("/api/meter-readings", json={
            "room_id": first["room_id"], "month": 5, "year": 2030,
            "electric_reading": "1100", "water_reading": "52",
        })

        resp = await auth_client.post("/api/bills/generate", json={"month": 5, "year": 2030})
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["generated"] == 2
        assert data["errors"] == 0
        by_room = {b["room_id"]: b for b in data["bills"]}
        bill = by_room[first["room_id"]]
        assert Decimal(bill["electric_amount"]) == Decimal("350000")
        assert Decimal(bill["water_amount"]) == Decimal("50000")
        assert Decimal(bill["service_amount"]) == Decimal("100000")
        assert bill["due_date"] == "2030-06-05"

        resp = await auth_client.post("/api/bills/generate", json={"month": 5, "year": 2030})
        assert resp.status_code == 409
        assert resp.json()["error"] == "Bills already exist"

    async def test_invalid_period(self, auth_client):
        resp = await auth_client.post("/api/bills/generate", json={"month": 0, "year": 2019})
        assert resp.status_code == 400


class TestBillListing:
    async def test_filter_by_status(self, auth_client):
        contract = await _active_contract(auth_client)
        paid = (await auth_client.post("/api/bills", json=_bill_body(contract, month=1))).json()["data"]
        await auth_client.post("/api/bills", json=_bill_body(contract, month=2))
        await auth_client.post(f"/api/bills/{paid['id']}/pay")

        resp = await auth_client.get("/api/bills", params={"status": "UNPAID"})
        assert [b["month"] for b in resp.json()["data"]] == [2]

        resp = await auth_client.get("/api/bills", params={"sort_by": "month", "sort_order": "asc"})
        assert [b["month"] for b in resp.json()["data"]] == [1, 2]
