"""Integration tests for FastAPI server endpoints.

Uses httpx.AsyncClient with ASGITransport to test the REST API
without starting a real server. Redis is patched to use fakeredis and the
results gate is lowered to 3 swipes by the test AppContext.
"""

from unittest.mock import AsyncMock, patch

import pytest
import redis
from httpx import ASGITransport, AsyncClient


@pytest.fixture
def patched_app(r, small_catalog, app_ctx):
    """Import and patch the FastAPI app to use fakeredis and the small catalog."""
    with (
        patch("kisho.server._get_redis", return_value=r),
        patch("kisho.server._get_catalog", return_value=small_catalog),
    ):
        from kisho.server import app
        yield app


@pytest.fixture
async def client(patched_app):
    transport = ASGITransport(app=patched_app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def auth(client):
    resp = await client.post("/api/auth/anonymous")
    assert resp.status_code == 200
    data = resp.json()
    return {"user_id": data["user_id"], "headers": {"Authorization": f"Bearer {data['token']}"}}


# ═══════════════════════════════════════════════════════════════════════════
# Health & Catalog
# ═══════════════════════════════════════════════════════════════════════════


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health_returns_ok(self, client):
        resp = await client.get("/api/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["redis"] is True
        assert data["cards"] == 4


class TestCardEndpoints:
    @pytest.mark.asyncio
    async def test_list_cards_in_order(self, client):
        resp = await client.get("/api/cards")
        assert resp.status_code == 200
        ids = [c["id"] for c in resp.json()["cards"]]
        assert ids == ["inner", "harmony", "plan", "silent"]

    @pytest.mark.asyncio
    async def test_get_card(self, client):
        resp = await client.get("/api/cards/harmony")
        assert resp.status_code == 200
        card = resp.json()
        assert card["right"]["axis"] == {"name": "Shō", "pole": "Harmony"}
        assert card["left"] == {}

    @pytest.mark.asyncio
    async def test_get_unknown_card_404(self, client):
        resp = await client.get("/api/cards/nope")
        assert resp.status_code == 404


# ═══════════════════════════════════════════════════════════════════════════
# Identity
# ═══════════════════════════════════════════════════════════════════════════


class TestAuth:
    @pytest.mark.asyncio
    async def test_sign_in_creates_zeroed_scores(self, client, auth):
        resp = await client.get("/api/scores", headers=auth["headers"])
        assert resp.status_code == 200
        data = resp.json()
        assert data["Response_Count"] == 0
        assert data["MBTI_Total"]["I"] == 0

    @pytest.mark.asyncio
    async def test_missing_token_401(self, client):
        resp = await client.get("/api/scores")
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_token_401(self, client):
        resp = await client.get("/api/results", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_signout_revokes_token(self, client, auth, store):
        resp = await client.post("/api/auth/signout", headers=auth["headers"])
        assert resp.status_code == 200
        assert resp.json() == {"signed_out": True}

        resp = await client.get("/api/scores", headers=auth["headers"])
        assert resp.status_code == 401
        resp = await client.post("/api/auth/signout", headers=auth["headers"])
        assert resp.status_code == 401
        assert await store.load(auth["user_id"]) is not None

    @pytest.mark.asyncio
    async def test_signout_without_token_401(self, client):
        resp = await client.post("/api/auth/signout")
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_wrong_scheme_401(self, client):
        resp = await client.get("/api/results", headers={"Authorization": "Basic abc"})
        assert resp.status_code == 401


# ═══════════════════════════════════════════════════════════════════════════
# Swipes & Results
# ═══════════════════════════════════════════════════════════════════════════


class TestSwipeFlow:
    @pytest.mark.asyncio
    async def test_swipe_increments_count(self, client, auth):
        resp = await client.post(
            "/api/swipes", json={"card_id": "inner", "direction": "right"}, headers=auth["headers"]
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["response_count"] == 1
        assert data["can_show_results"] is False
        assert data["remaining"] == 2
        assert data["known_card"] is True

    @pytest.mark.asyncio
    async def test_unknown_card_still_counts(self, client, auth):
        resp = await client.post(
            "/api/swipes", json={"card_id": "ghost", "direction": "left"}, headers=auth["headers"]
        )
        assert resp.status_code == 200
        assert resp.json()["known_card"] is False
        scores = (await client.get("/api/scores", headers=auth["headers"])).json()
        assert scores["Response_Count"] == 1
        assert sum(scores["MBTI_Total"].values()) == 0

    @pytest.mark.asyncio
    async def test_invalid_direction_422(self, client, auth):
        resp = await client.post(
            "/api/swipes", json={"card_id": "inner", "direction": "up"}, headers=auth["headers"]
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_results_locked_then_unlocked(self, client, auth):
        headers = auth["headers"]
        resp = await client.get("/api/results", headers=headers)
        assert resp.json() == {"canShowResults": False}

        for card_id, direction in [("inner", "left"), ("harmony", "right"), ("plan", "right")]:
            await client.post("/api/swipes", json={"card_id": card_id, "direction": direction}, headers=headers)

        resp = await client.get("/api/results", headers=headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["canShowResults"] is True
        assert data["kisho"]["fullType"] == "Outer-Harmony-Feeling-Fixed"
        assert data["mbti"]["type"] == "ESFJ"
        for value in data["bigFive"].values():
            assert 0.0 <= value <= 100.0

    @pytest.mark.asyncio
    async def test_results_are_stable(self, client, auth):
        headers = auth["headers"]
        for _ in range(3):
            await client.post("/api/swipes", json={"card_id": "plan", "direction": "left"}, headers=headers)
        first = (await client.get("/api/results", headers=headers)).content
        second = (await client.get("/api/results", headers=headers)).content
        assert first == second


class TestStorageErrors:
    @pytest.mark.asyncio
    async def test_storage_down_returns_503(self, client, auth, r):
        with patch.object(r, "hgetall", AsyncMock(side_effect=redis.ConnectionError("down"))):
            resp = await client.get("/api/scores", headers=auth["headers"])
        assert resp.status_code == 503
