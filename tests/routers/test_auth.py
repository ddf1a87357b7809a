from tests.factories import ADMIN_PASSWORD


class TestLogin:
    async def test_success_returns_token_and_cookie(self, client, admin):
        resp = await client.post("/api/auth/login", json={"username": "admin", "password": ADMIN_PASSWORD})
        assert resp.status_code == 200
        body = resp.json()
        assert body["token"]
        assert body["token_type"] == "bearer"
        assert body["user"]["username"] == "admin"
        assert "access_token" in resp.headers.get("set-cookie", "")

    async def test_wrong_password(self, client, admin, lockouts):
        resp = await client.post("/api/auth/login", json={"username": "admin", "password": "wrong-one"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Authentication failed"
        assert lockouts["admin"] == 1

    async def test_unknown_user(self, client):
        resp = await client.post("/api/auth/login", json={"username": "ghost", "password": "whatever"})
        assert resp.status_code == 401

    async def test_locked_out_after_repeated_failures(self, client, admin, lockouts):
        lockouts["admin"] = 5
        resp = await client.post("/api/auth/login", json={"username": "admin", "password": ADMIN_PASSWORD})
        assert resp.status_code == 429

    async def test_invalid_username_format(self, client):
        resp = await client.post("/api/auth/login", json={"username": "a!", "password": "secret1"})
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "Validation failed"
        assert any(d["field"] == "username" for d in body["details"])


class TestSession:
    async def test_me_requires_token(self, client):
        resp = await client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.json()["error"] == "Access token required"

    async def test_garbage_token(self, client):
        resp = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid or expired token"

    async def test_me(self, auth_client):
        resp = await auth_client.get("/api/auth/me")
        assert resp.status_code == 200
        assert resp.json()["role"] == "ADMIN"

    async def test_refresh(self, auth_client):
        resp = await auth_client.post("/api/auth/refresh")
        assert resp.status_code == 200
        assert resp.json()["token"]

    async def test_logout_clears_cookie(self, auth_client):
        resp = await auth_client.post("/api/auth/logout")
        assert resp.status_code == 200
        assert resp.json()["message"] == "Logged out"
        assert 'access_token=""' in resp.headers["set-cookie"]


class TestChangePassword:
    async def test_wrong_current_password(self, auth_client):
        resp = await auth_client.post("/api/auth/change-password", json={
            "current_password": "nope-nope",
            "new_password": "brandnew1",
            "confirm_password": "brandnew1",
        })
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid password"

    async def test_confirmation_mismatch(self, auth_client):
        resp = await auth_client.post("/api/auth/change-password", json={
            "current_password": ADMIN_PASSWORD,
            "new_password": "brandnew1",
            "confirm_password": "brandnew2",
        })
        assert resp.status_code == 400

    async def test_change_then_login(self, auth_client):
        resp = await auth_client.post("/api/auth/change-password", json={
            "current_password": ADMIN_PASSWORD,
            "new_password": "brandnew1",
            "confirm_password": "brandnew1",
        })
        assert resp.status_code == 200

        resp = await auth_client.post("/api/auth/login", json={"username": "admin", "password": "brandnew1"})
        assert resp.status_code == 200
