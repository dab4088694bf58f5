"""Unit tests for authentication middleware

Tests cover:
- Admin API key: missing/malformed header, wrong key, correct key, open mode
- User tokens: userinfo exchange, rejection, caching, optional auth
"""

from __future__ import annotations

import asyncio

import httpx
import pytest
from fastapi import Depends, FastAPI, HTTPException
from fastapi.testclient import TestClient

from newsdigest.api.middleware import user_auth
from newsdigest.api.middleware.auth import APIKeyAuth
from newsdigest.api.middleware.user_auth import (
    AuthenticatedUser,
    clear_token_cache,
    get_optional_user,
    verify_token,
)


def create_admin_app(monkeypatch, api_key: str | None):
    """Test app with one endpoint behind a fresh APIKeyAuth"""
    if api_key is None:
        monkeypatch.delenv("NEWSDIGEST_ADMIN_API_KEY", raising=False)
    else:
        monkeypatch.setenv("NEWSDIGEST_ADMIN_API_KEY", api_key)

    auth_instance = APIKeyAuth()
    test_app = FastAPI()

    @test_app.post("/generate")
    async def generate(_authenticated: bool = Depends(auth_instance.verify_api_key)):
        return {"status": "ok"}

    return TestClient(test_app)


class TestAdminKey:
    def test_rejects_missing_header(self, monkeypatch):
        client = create_admin_app(monkeypatch, "admin-key")
        response = client.post("/generate")

        assert response.status_code == 401
        assert response.json()["detail"] == "Missing authorization header"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.parametrize("header", ["Basic abc123", "admin-key", "Bearer "])
    def test_rejects_malformed_header(self, monkeypatch, header):
        client = create_admin_app(monkeypatch, "admin-key")
        response = client.post("/generate", headers={"Authorization": header})

        assert response.status_code == 401
        assert "Invalid authorization header format" in response.json()["detail"]

    def test_rejects_wrong_key(self, monkeypatch):
        client = create_admin_app(monkeypatch, "admin-key")
        response = client.post("/generate", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 403

    def test_accepts_correct_key_any_scheme_case(self, monkeypatch):
        client = create_admin_app(monkeypatch, "admin-key")

        for scheme in ("Bearer", "bearer", "BEARER"):
            response = client.post("/generate", headers={"Authorization": f"{scheme} admin-key"})
            assert response.status_code == 200

    def test_open_when_no_key_configured(self, monkeypatch):
        client = create_admin_app(monkeypatch, None)

        assert client.post("/generate").status_code == 200


@pytest.fixture
def userinfo(monkeypatch):
    """Route the middleware's httpx client to a fake identity provider."""
    monkeypatch.setenv("AUTH_ISSUER_URL", "https://id.example.test/")
    clear_token_cache()

    state = {"calls": 0, "profiles": {"good-token": {"sub": "user-1", "email": "a@x.com"}}}

    def handler(request: httpx.Request) -> httpx.Response:
        state["calls"] += 1
        assert request.url.path == "/userinfo"
        token = request.headers["Authorization"].removeprefix("Bearer ")
        profile = state["profiles"].get(token)
        if profile is None:
            return httpx.Response(401)
        return httpx.Response(200, json=profile)

    real_client = httpx.AsyncClient
    monkeypatch.setattr(
        user_auth.httpx,
        "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )
    yield state
    clear_token_cache()


class TestVerifyToken:
    def test_resolves_subject(self, userinfo):
        user = asyncio.run(verify_token("good-token"))

        assert user == AuthenticatedUser(id="user-1", email="a@x.com", name=None)

    def test_result_is_cached(self, userinfo):
        asyncio.run(verify_token("good-token"))
        asyncio.run(verify_token("good-token"))

        assert userinfo["calls"] == 1

    def test_rejected_token(self, userinfo):
        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(verify_token("bad-token"))

        assert exc_info.value.status_code == 401

    def test_profile_without_subject_rejected(self, userinfo):
        userinfo["profiles"]["odd-token"] = {"email": "a@x.com"}

        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(verify_token("odd-token"))

        assert exc_info.value.status_code == 401

    def test_unconfigured_issuer_is_unavailable(self, monkeypatch):
        monkeypatch.delenv("AUTH_ISSUER_URL", raising=False)
        clear_token_cache()

        with pytest.raises(HTTPException) as exc_info:
            asyncio.run(verify_token("any-token"))

        assert exc_info.value.status_code == 503


class TestOptionalUser:
    @pytest.fixture
    def client(self, userinfo):
        test_app = FastAPI()

        @test_app.get("/whoami")
        async def whoami(user: AuthenticatedUser | None = Depends(get_optional_user)):
            return {"user": user.id if user else None}

        return TestClient(test_app)

    def test_anonymous(self, client):
        assert client.get("/whoami").json() == {"user": None}

    def test_signed_in(self, client):
        response = client.get("/whoami", headers={"Authorization": "Bearer good-token"})

        assert response.json() == {"user": "user-1"}

    def test_invalid_token_is_not_downgraded_to_anonymous(self, client):
        response = client.get("/whoami", headers={"Authorization": "Bearer bad-token"})

        assert response.status_code == 401
