"""Tests for access-token verification and the admin gate."""

import pytest

from conftest import auth_headers, make_token
from app.security import InvalidAccessToken, decode_access_token


class TestDecodeAccessToken:
    def test_valid_token(self):
        claims = decode_access_token(make_token("alice-uuid"))
        assert claims["sub"] == "alice-uuid"

    def test_wrong_secret(self):
        with pytest.raises(InvalidAccessToken):
            decode_access_token(make_token("alice-uuid", secret="another-secret-with-enough-bytes"))

    def test_wrong_audience(self):
        with pytest.raises(InvalidAccessToken):
            decode_access_token(make_token("alice-uuid", audience="anon"))

    def test_expired(self):
        with pytest.raises(InvalidAccessToken, match="expired"):
            decode_access_token(make_token("alice-uuid", expires_in=-60))


class TestUserRoutesAuth:
    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, client, users):
        response = await client.get("/api/me")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_profile_is_401(self, client, users):
        response = await client.get("/api/me", headers=auth_headers("ghost-uuid"))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me(self, client, users):
        response = await client.get("/api/me", headers=auth_headers(users["alice"]))

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Alice"
        assert body["level"] == 1
        assert body["title"] == "Novato"


class TestAdminGate:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("headers", [
        {},
        {"Authorization": "Bearer not-a-jwt"},
    ])
    async def test_bad_credentials_are_403(self, client, users, headers):
        response = await client.post("/api/admin/crud", json={"action": "list", "table": "matches"}, headers=headers)

        assert response.status_code == 403
        assert response.json() == {"error": "Não autorizado"}

    @pytest.mark.asyncio
    async def test_non_admin_is_403(self, client, users):
        response = await client.post(
            "/api/admin/crud",
            json={"action": "list", "table": "matches"},
            headers=auth_headers(users["alice"]),
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Não autorizado"}
