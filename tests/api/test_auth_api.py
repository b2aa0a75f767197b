"""Registration, login and profile endpoints."""

import pytest

REGISTER = {"email": "Player@PuzzleHub.dev", "password": "Secure123", "display_name": "player"}


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_returns_token(self, client, storage):
        response = await client.post("/api/v1/auth/register", json=REGISTER)
        assert response.status_code == 201
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "player@puzzlehub.dev"
        assert data["expires_in"] == 24 * 60 * 60
        assert storage.commits == 1

    @pytest.mark.asyncio
    async def test_duplicate_email(self, client):
        await client.post("/api/v1/auth/register", json=REGISTER)
        response = await client.post("/api/v1/auth/register", json=REGISTER)
        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"

    @pytest.mark.asyncio
    async def test_weak_password(self, client):
        response = await client.post("/api/v1/auth/register", json={**REGISTER, "password": "password"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_email(self, client):
        response = await client.post("/api/v1/auth/register", json={**REGISTER, "email": "nope"})
        assert response.status_code == 422


class TestLoginAndMe:
    @pytest.mark.asyncio
    async def test_login_then_me(self, client):
        await client.post("/api/v1/auth/register", json=REGISTER)

        login = await client.post(
            "/api/v1/auth/login", json={"email": "player@puzzlehub.dev", "password": "Secure123"}
        )
        assert login.status_code == 200
        token = login.json()["access_token"]

        me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["display_name"] == "player"

    @pytest.mark.asyncio
    async def test_wrong_password(self, client):
        await client.post("/api/v1/auth/register", json=REGISTER)
        response = await client.post(
            "/api/v1/auth/login", json={"email": "player@puzzlehub.dev", "password": "Wrong1234"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Email or password is wrong"

    @pytest.mark.asyncio
    async def test_me_requires_token(self, client):
        response = await client.get("/api/v1/auth/me")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me_for_unknown_user(self, client, signer):
        token = signer.create_access_token(4242)
        response = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid token"
