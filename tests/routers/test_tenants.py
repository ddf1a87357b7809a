from tests.factories import create_contract, create_room, create_tenant


class TestTenantCrud:
    async def test_create_and_detail(self, auth_client):
        tenant = await create_tenant(auth_client)
        resp = await auth_client.get(f"/api/tenants/{tenant['id']}")
        assert resp.status_code == 200
        detail = resp.json()["data"]
        assert detail["full_name"] == "Nguyen Van A"
        assert detail["contracts"] == []
        assert detail["residency_records"] == []

    async def test_duplicate_id_card(self, auth_client):
        await create_tenant(auth_client, "123456789")
        resp = await auth_client.post("/api/tenants", json={
            "full_name": "Tran Thi B",
            "date_of_birth": "1990-01-01",
            "id_card": "123456789",
            "hometown": "Hue",
            "phone": "0987654321",
        })
        assert resp.status_code == 409
        assert resp.json()["error"] == "ID card already exists"

    async def test_birth_date_in_future(self, auth_client):
        resp = await auth_client.post("/api/tenants", json={
            "full_name": "Future Kid",
            "date_of_birth": "2999-01-01",
            "id_card": "111111111",
            "hometown": "Hue",
            "phone": "0987654321",
        })
        assert resp.status_code == 400
        assert resp.json()["details"][0]["field"] == "date_of_birth"

    async def test_bad_id_card_format(self, auth_client):
        resp = await auth_client.post("/api/tenants", json={
            "full_name": "Le Van C",
            "date_of_birth": "1990-01-01",
            "id_card": "12AB",
            "hometown": "Hue",
            "phone": "0987654321",
        })
        assert resp.status_code == 400

    async def test_update(self, auth_client):
        tenant = await create_tenant(auth_client)
        resp = await auth_client.put(f"/api/tenants/{tenant['id']}", json={"hometown": "Da Nang"})
        assert resp.status_code == 200
        assert resp.json()["data"]["hometown"] == "Da Nang"


class TestTenantListing:
    async def test_current_room_and_room_filter(self, auth_client):
        room = await create_room(auth_client, "101")
        housed = await create_tenant(auth_client, "100000001", full_name="Housed Tenant")
        await create_tenant(auth_client, "100000002", full_name="Free Tenant")
        await create_contract(auth_client, room["id"], [housed["id"]])

        resp = await auth_client.get("/api/tenants", params={"sort_by": "full_name", "sort_order": "asc"})
        data = resp.json()["data"]
        assert [t["full_name"] for t in data] == ["Free Tenant", "Housed Tenant"]
        assert data[0]["current_room"] is None
        assert data[1]["current_room"]["number"] == "101"

        resp = await auth_client.get("/api/tenants", params={"room_number": "101"})
        assert [t["id"] for t in resp.json()["data"]] == [housed["id"]]

    async def test_search(self, auth_client):
        await create_tenant(auth_client, "100000003", full_name="Pham Minh")
        await create_tenant(auth_client, "100000004", full_name="Vo Lan")
        resp = await auth_client.get("/api/tenants", params={"search": "minh"})
        assert [t["full_name"] for t in resp.json()["data"]] == ["Pham Minh"]

    async def test_history(self, auth_client):
        room = await create_room(auth_client, "102")
        tenant = await create_tenant(auth_client)
        await create_contract(auth_client, room["id"], [tenant["id"]])

        resp = await auth_client.get(f"/api/tenants/{tenant['id']}/history")
        assert resp.status_code == 200
        body = resp.json()
        assert body["pagination"]["total"] == 1
        assert body["data"]["contracts"][0]["room"]["number"] == "102"
        assert body["data"]["contracts"][0]["bills"] == []


class TestTenantDelete:
    async def test_active_contract_blocks_delete(self, auth_client):
        room = await create_room(auth_client, "201")
        tenant = await create_tenant(auth_client)
        await create_contract(auth_client, room["id"], [tenant["id"]])

        resp = await auth_client.delete(f"/api/tenants/{tenant['id']}")
        assert resp.status_code == 400
        assert resp.json()["details"] == {"rooms": ["201"]}

    async def test_delete(self, auth_client):
        tenant = await create_tenant(auth_client)
        resp = await auth_client.delete(f"/api/tenants/{tenant['id']}")
        assert resp.status_code == 200
        assert (await auth_client.get(f"/api/tenants/{tenant['id']}")).status_code == 404
