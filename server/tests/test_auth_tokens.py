import asyncio
from datetime import timedelta
from uuid import uuid4

import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient
from jose import jwt

from app import config
from app.core import dependencies as core_dependencies
from app.core.services.auth import create_access_token, decode_token


@pytest.fixture(autouse=True)
def _settings(monkeypatch):
    monkeypatch.setattr(
        config,
        "_settings",
        config.Settings(database_url="postgresql://test", port=8000, jwt_secret_key="test-secret"),
    )


class _ConnectionContext:
    def __init__(self, conn):
        self._conn = conn

    async def __aenter__(self):
        return self._conn

    async def __aexit__(self, exc_type, exc, tb):
        return False


class _UserConn:
    def __init__(self, user_row):
        self._user_row = user_row

    async def fetchrow(self, query, *args):
        if "FROM users WHERE id = $1" in query:
            return self._user_row
        raise AssertionError(f"Unexpected fetchrow query: {query}")


def test_access_token_round_trip():
    user_id = uuid4()
    workspace_id = uuid4()
    token = create_access_token(user_id, "pat@example.com", "superintendent", workspace_id)

    payload = decode_token(token)
    assert payload is not None
    assert payload.sub == str(user_id)
    assert payload.role == "superintendent"
    assert payload.workspace_id == str(workspace_id)


def test_expired_token_is_rejected():
    token = create_access_token(uuid4(), "pat@example.com", "field", uuid4(), timedelta(minutes=-5))
    assert decode_token(token) is None


def test_non_access_token_is_rejected():
    token = jwt.encode(
        {"sub": str(uuid4()), "email": "pat@example.com", "role": "field", "workspace_id": str(uuid4()),
         "exp": 4102444800, "type": "refresh"},
        "test-secret",
        algorithm="HS256",
    )
    assert decode_token(token) is None


def test_token_signed_with_other_key_is_rejected():
    token = jwt.encode(
        {"sub": str(uuid4()), "email": "pat@example.com", "role": "field", "workspace_id": str(uuid4()),
         "exp": 4102444800, "type": "access"},
        "another-secret",
        algorithm="HS256",
    )
    assert decode_token(token) is None


def _role_app(monkeypatch, user_row):
    app = FastAPI()

    @app.get("/managers-only")
    async def managers_only(current_user=Depends(core_dependencies.require_roles("superintendent"))):
        return {"id": str(current_user.id), "role": current_user.role}

    monkeypatch.setattr(
        core_dependencies,
        "get_connection",
        lambda: _ConnectionContext(_UserConn(user_row)),
    )
    return app


def test_current_user_must_match_token_workspace(monkeypatch):
    asyncio.run(_run_current_user_must_match_token_workspace(monkeypatch))


async def _run_current_user_must_match_token_workspace(monkeypatch):
    user_id = uuid4()
    user_row = {
        "id": user_id,
        "email": "pat@example.com",
        "role": "superintendent",
        "workspace_id": uuid4(),
        "full_name": "Pat Morgan",
        "is_active": True,
    }
    app = _role_app(monkeypatch, user_row)
    good = create_access_token(user_id, "pat@example.com", "superintendent", user_row["workspace_id"])
    stale = create_access_token(user_id, "pat@example.com", "superintendent", uuid4())

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        ok = await client.get("/managers-only", headers={"Authorization": f"Bearer {good}"})
        mismatch = await client.get("/managers-only", headers={"Authorization": f"Bearer {stale}"})

    assert ok.status_code == 200
    assert ok.json()["role"] == "superintendent"
    assert mismatch.status_code == 401


def test_role_check_denies_field_user(monkeypatch):
    asyncio.run(_run_role_check_denies_field_user(monkeypatch))


async def _run_role_check_denies_field_user(monkeypatch):
    user_id = uuid4()
    workspace_id = uuid4()
    user_row = {
        "id": user_id,
        "email": "crew@example.com",
        "role": "field",
        "workspace_id": workspace_id,
        "full_name": None,
        "is_active": True,
    }
    app = _role_app(monkeypatch, user_row)
    token = create_access_token(user_id, "crew@example.com", "field", workspace_id)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        response = await client.get("/managers-only", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 403
