from tests.factories import create_tenant


def _record(tenant_id: str, start: str, end: str | None = None, **overrides) -> dict:
    return {
        "tenant_id": tenant_id,
        "type": "TEMPORARY_RESIDENCE",
        "start_date": start,
        "end_date": end,
        **overrides,
    }


class TestResidencyRecords:
    async def test_create_and_get(self, auth_client):
        tenant = await create_tenant(auth_client)
        resp = await auth_client.post("/api/residency-records", json=_record(tenant["id"], "2030-01-01", "2030-06-30"))
        assert resp.status_code == 201
        record = resp.json()["data"]
        assert record["tenant"]["id"] == tenant["id"]

        resp = await auth_client.get(f"/api/residency-records/{record['id']}")
        assert resp.status_code == 200

        detail = (await auth_client.get(f"/api/tenants/{tenant['id']}")).json()["data"]
        assert [r["id"] for r in detail["residency_records"]] == [record["id"]]

    async def test_overlap_rejected(self, auth_client):
        tenant = await create_tenant(auth_client)
        await auth_client.post("/api/residency-records", json=_record(tenant["id"], "2030-01-01"))
        resp = await auth_client.post("/api/residency-records", json=_record(tenant["id"], "2031-01-01", "2031-02-01"))
        assert resp.status_code == 409
        assert resp.json()["error"] == "Overlapping residency record"

    async def test_other_type_may_overlap(self, auth_client):
        tenant = await create_tenant(auth_client)
        await auth_client.post("/api/residency-records", json=_record(tenant["id"], "2030-01-01"))
        resp = await auth_client.post(
            "/api/residency-records",
            json=_record(tenant["id"], "2030-03-01", "2030-03-10", type="TEMPORARY_ABSENCE"),
        )
        assert resp.status_code == 201

    async def test_end_before_start(self, auth_client):
        tenant = await create_tenant(auth_client)
        resp = await auth_client.post("/api/residency-records", json=_record(tenant["id"], "2030-05-01", "2030-04-01"))
        assert resp.status_code == 400

    async def test_update_excludes_itself(self, auth_client):
        tenant = await create_tenant(auth_client)
        record = (await auth_client.post(
            "/api/residency-records", json=_record(tenant["id"], "2030-01-01", "2030-06-30"),
        )).json()["data"]

        resp = await auth_client.put(f"/api/residency-records/{record['id']}", json={"end_date": "2030-12-31"})
        assert resp.status_code == 200
        assert resp.json()["data"]["end_date"] == "2030-12-31"

    async def test_unknown_tenant(self, auth_client):
        resp = await auth_client.post(
            "/api/residency-records", json=_record("00000000-0000-0000-0000-000000000000", "2030-01-01"),
        )
        assert resp.status_code == 404

    async def test_list_by_tenant(self, auth_client):
        first = await create_tenant(auth_client, "400000001")
        second = await create_tenant(auth_client, "400000002")
        await auth_client.post("/api/residency-records", json=_record(first["id"], "2030-01-01", "2030-02-01"))
        await auth_client.post("/api/residency-records", json=_record(second["id"], "2030-01-01", "2030-02-01"))

        resp = await auth_client.get("/api/residency-records", params={"tenant_id": first["id"]})
        assert resp.json()["pagination"]["total"] == 1

        resp = await auth_client.get("/api/residency-records", params={"limit": 51})
        assert resp.status_code == 400

    async def test_delete(self, auth_client):
        tenant = await create_tenant(auth_client)
        record = (await auth_client.post(
            "/api/residency-records", json=_record(tenant["id"], "2030-01-01"),
        )).json()["data"]
        assert (await auth_client.delete(f"/api/residency-records/{record['id']}")).status_code == 200
        assert (await auth_client.get(f"/api/residency-records/{record['id']}")).status_code == 404
