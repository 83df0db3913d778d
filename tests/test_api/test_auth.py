"""Tests for login and request authentication."""

import pytest
from unittest.mock import MagicMock, patch
from httpx import AsyncClient, ASGITransport
from fastapi import FastAPI

from medi_scribe.api.routes import auth
from medi_scribe.core.auth import ACCESS_COOKIE, create_access_token, hash_password
from medi_scribe.core.repository import DoctorRepository
from tests.conftest import apply_db_override


@pytest.fixture
def app(session):
    app = FastAPI()
    app.include_router(auth.router, prefix="/api/v1")
    apply_db_override(app, session)
    return app


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def registered_doctor(session):
    return await DoctorRepository(session).create(
        full_name="Dra. Ana Torres",
        email="ana@example.com",
        specialty="Cardiología",
        password_hash=hash_password("secreta123"),
    )


class TestLogin:
    async def test_login_sets_cookie_and_returns_token(self, client: AsyncClient, registered_doctor):
        resp = await client.post(
            "/api/v1/auth/login", json={"email": "ana@example.com", "password": "secreta123"}
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["id"] == str(registered_doctor.id)
        assert body["token_type"] == "bearer"
        assert ACCESS_COOKIE in resp.headers["set-cookie"]

        me = await client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"}
        )
        assert me.status_code == 200
        assert me.json()["specialty"] == "Cardiología"

    async def test_wrong_password(self, client: AsyncClient, registered_doctor):
        resp = await client.post(
            "/api/v1/auth/login", json={"email": "ana@example.com", "password": "otra"}
        )
        assert resp.status_code == 401

    async def test_unknown_email(self, client: AsyncClient):
        resp = await client.post(
            "/api/v1/auth/login", json={"email": "nadie@example.com", "password": "x"}
        )
        assert resp.status_code == 401

    async def test_logout_clears_cookie(self, client: AsyncClient):
        resp = await client.post("/api/v1/auth/logout")

        assert resp.json() == {"ok": True}
        assert ACCESS_COOKIE in resp.headers["set-cookie"]


class TestCurrentUser:
    async def test_cookie_token(self, client: AsyncClient, registered_doctor):
        token = create_access_token(str(registered_doctor.id))

        resp = await client.get("/api/v1/auth/me", headers={"Cookie": f"{ACCESS_COOKIE}={token}"})

        assert resp.status_code == 200
        assert resp.json()["email"] == "ana@example.com"

    async def test_no_credentials(self, client: AsyncClient):
        resp = await client.get("/api/v1/auth/me")
        assert resp.status_code == 401

    async def test_garbage_token(self, client: AsyncClient, registered_doctor):
        resp = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401

    async def test_inactive_doctor_rejected(self, client: AsyncClient, session, registered_doctor):
        token = create_access_token(str(registered_doctor.id))
        registered_doctor.active = False
        await session.flush()

        resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    async def test_api_key_with_doctor_header(self, client: AsyncClient, registered_doctor):
        settings = MagicMock(api_key="static-key")
        with patch("medi_scribe.api.dependencies.get_settings", return_value=settings):
            resp = await client.get(
                "/api/v1/auth/me",
                headers={"X-API-Key": "static-key", "X-Doctor-Id": str(registered_doctor.id)},
            )

        assert resp.status_code == 200
        assert resp.json()["id"] == str(registered_doctor.id)

    async def test_wrong_api_key(self, client: AsyncClient, registered_doctor):
        settings = MagicMock(api_key="static-key")
        with patch("medi_scribe.api.dependencies.get_settings", return_value=settings):
            resp = await client.get("/api/v1/auth/me", headers={"X-API-Key": "other"})

        assert resp.status_code == 401
