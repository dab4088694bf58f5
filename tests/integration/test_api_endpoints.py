"""
End-to-end API tests against a temp-dir store and a fake summarizer.

Identity is faked: "Authorization: Bearer <user-id>" signs in as <user-id>.
"""

from __future__ import annotations

import asyncio

import pytest
from fastapi import HTTPException, Request
from fastapi.testclient import TestClient

from newsdigest.api.app import app
from newsdigest.api.middleware.auth import require_admin_auth
from newsdigest.api.middleware.user_auth import (
    AuthenticatedUser,
    get_current_user,
    get_optional_user,
)
from newsdigest.digest.catalog import get_digest_catalog
from newsdigest.digest.pipeline import get_generation_pipeline
from newsdigest.llm.perplexity import SummarizerTimeoutError
from newsdigest.subscriptions.registry import get_subscription_registry


def _user_from_header(request: Request) -> AuthenticatedUser | None:
    authorization = request.headers.get("Authorization")
    if not authorization:
        return None
    return AuthenticatedUser(id=authorization.removeprefix("Bearer ").strip())


def _require_user(request: Request) -> AuthenticatedUser:
    user = _user_from_header(request)
    if user is None:
        raise HTTPException(status_code=401, detail="Missing authorization header")
    return user


@pytest.fixture
def client(registry, catalog, pipeline):
    app.dependency_overrides[get_subscription_registry] = lambda: registry
    app.dependency_overrides[get_digest_catalog] = lambda: catalog
    app.dependency_overrides[get_generation_pipeline] = lambda: pipeline
    app.dependency_overrides[get_optional_user] = _user_from_header
    app.dependency_overrides[get_current_user] = _require_user
    app.dependency_overrides[require_admin_auth] = lambda: True
    yield TestClient(app)
    app.dependency_overrides.clear()


def _subscribe(client, user=None, **body):
    payload = {"category": "stock-market", "email": "a@x.com", "deliveryTime": "08:00"}
    payload.update(body)
    headers = {"Authorization": f"Bearer {user}"} if user else {}
    return client.post("/api/subscribe", json=payload, headers=headers)


class TestMeta:
    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert "counters" in response.json()["metrics"]

    def test_categories(self, client):
        response = client.get("/api/categories")

        assert response.status_code == 200
        body = response.json()
        assert [c["slug"] for c in body] == ["stock-market", "ai-updates", "geopolitics", "startups"]
        assert "prompt" not in body[0]

    def test_root_lists_endpoints(self, client):
        assert client.get("/").json()["status"] == "running"


class TestSubscriptions:
    def test_subscribe_then_list_as_same_identity(self, client):
        response = _subscribe(client, user="user-1")

        assert response.status_code == 200
        assert response.json()["message"] == "Successfully subscribed"
        subscription = response.json()["subscription"]
        assert subscription["userId"] == "user-1"
        assert subscription["status"] == "active"

        listed = client.get("/api/subscriptions", headers={"Authorization": "Bearer user-1"})

        assert listed.status_code == 200
        assert len(listed.json()) == 1
        assert listed.json()[0]["category"] == "stock-market"
        assert listed.json()[0]["deliveryTime"] == "08:00"

    def test_anonymous_subscribe(self, client):
        response = _subscribe(client)

        assert response.status_code == 200
        assert response.json()["subscription"]["userId"] is None

    def test_resubscribe_updates_existing(self, client):
        first = _subscribe(client, user="user-1").json()["subscription"]
        second = _subscribe(client, user="user-1", deliveryTime="18:00").json()["subscription"]

        assert second["id"] == first["id"]
        assert second["deliveryTime"] == "18:00"
        listed = client.get("/api/subscriptions", headers={"Authorization": "Bearer user-1"})
        assert len(listed.json()) == 1

    def test_missing_field_is_400(self, client):
        response = client.post("/api/subscribe", json={"category": "stock-market"})

        assert response.status_code == 400
        assert response.json() == {"message": "Missing required fields"}

    def test_invalid_category_is_400(self, client):
        response = _subscribe(client, category="sports")

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid category"}

    def test_malformed_body_is_400(self, client):
        response = client.post(
            "/api/subscribe",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert "message" in response.json()

    def test_list_requires_identity(self, client):
        response = client.get("/api/subscriptions")

        assert response.status_code == 401
        assert response.json() == {"message": "Missing authorization header"}

    def test_list_is_scoped_to_caller(self, client):
        _subscribe(client, user="user-1", email="a@x.com")
        _subscribe(client, user="user-2", email="b@x.com")

        listed = client.get("/api/subscriptions", headers={"Authorization": "Bearer user-2"})

        assert [s["email"] for s in listed.json()] == ["b@x.com"]

    def test_unsubscribe_own(self, client):
        subscription_id = _subscribe(client, user="user-1").json()["subscription"]["id"]

        response = client.delete(
            f"/api/subscribe/{subscription_id}", headers={"Authorization": "Bearer user-1"}
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Successfully unsubscribed"}
        listed = client.get("/api/subscriptions", headers={"Authorization": "Bearer user-1"})
        assert listed.json() == []

    def test_unsubscribe_someone_elses_is_404(self, client):
        subscription_id = _subscribe(client, user="user-1").json()["subscription"]["id"]

        response = client.delete(
            f"/api/subscribe/{subscription_id}", headers={"Authorization": "Bearer user-2"}
        )

        assert response.status_code == 404
        assert response.json() == {"message": "Subscription not found"}
        listed = client.get("/api/subscriptions", headers={"Authorization": "Bearer user-1"})
        assert len(listed.json()) == 1

    def test_unsubscribe_requires_identity(self, client):
        assert client.delete("/api/subscribe/anything").status_code == 401


class TestDigests:
    def test_latest_404_then_generate_then_200(self, client):
        missing = client.get("/api/digest/geopolitics")

        assert missing.status_code == 404
        assert missing.json() == {"message": "No digest found"}

        generated = client.post("/api/digest/generate", json={"category": "geopolitics"})

        assert generated.status_code == 200
        assert generated.json()["message"] == "Digest generated successfully"
        digest = generated.json()["digest"]

        latest = client.get("/api/digest/geopolitics")

        assert latest.status_code == 200
        assert latest.json()["id"] == digest["id"]
        assert latest.json()["content"] == digest["content"]
        assert latest.json()["bullets"] == ["geopolitics headline one", "geopolitics headline two"]
        assert latest.json()["citations"] == ["https://news.example.com/geopolitics"]
        assert "createdAt" in latest.json()

    def test_generate_requires_category(self, client):
        response = client.post("/api/digest/generate", json={})

        assert response.status_code == 400
        assert response.json() == {"message": "Category is required"}

    def test_generate_unknown_category(self, client):
        response = client.post("/api/digest/generate", json={"category": "sports"})

        assert response.status_code == 400

    def test_generate_failure_is_500_and_persists_nothing(self, client, summarizer):
        summarizer.failures["startups"] = SummarizerTimeoutError("timed out")

        response = client.post("/api/digest/generate", json={"category": "startups"})

        assert response.status_code == 500
        assert response.json() == {"message": "Failed to generate digest"}
        assert client.get("/api/digest/startups").status_code == 404

    def test_list_newest_first_with_limit(self, client, clock):
        for _ in range(3):
            client.post("/api/digest/generate", json={"category": "ai-updates"})
            clock.advance(minutes=1)

        everything = client.get("/api/digests/ai-updates").json()
        two = client.get("/api/digests/ai-updates", params={"limit": "2"}).json()

        assert len(everything) == 3
        assert [d["id"] for d in two] == [d["id"] for d in everything[:2]]
        assert everything[0]["createdAt"] > everything[-1]["createdAt"]

    @pytest.mark.parametrize("limit", ["abc", "0", "-4"])
    def test_list_invalid_limit_falls_back_to_default(self, client, limit):
        client.post("/api/digest/generate", json={"category": "startups"})

        response = client.get("/api/digests/startups", params={"limit": limit})

        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_list_unknown_category_is_empty(self, client):
        response = client.get("/api/digests/nothing-here")

        assert response.status_code == 200
        assert response.json() == []


class TestMalformedStoredRecords:
    def test_digest_missing_content_is_json_500(self, client, store):
        asyncio.run(store.save("digests", [{"id": "1", "category": "geopolitics"}]))

        latest = client.get("/api/digest/geopolitics")
        listed = client.get("/api/digests/geopolitics")

        assert latest.status_code == 500
        assert latest.json() == {"message": "Internal server error"}
        assert listed.status_code == 500
        assert listed.json() == {"message": "Internal server error"}

    def test_subscription_missing_delivery_time_is_json_500(self, client, store):
        record = {"id": "sub-1", "category": "stock-market", "email": "a@x.com", "userId": "user-1"}
        asyncio.run(store.save("subscriptions", [record]))

        listed = client.get("/api/subscriptions", headers={"Authorization": "Bearer user-1"})
        resubscribed = _subscribe(client, user="user-1")

        assert listed.status_code == 500
        assert listed.json() == {"message": "Internal server error"}
        assert resubscribed.status_code == 500
        assert resubscribed.json() == {"message": "Internal server error"}
