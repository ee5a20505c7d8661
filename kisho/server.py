"""FastAPI server exposing the scoring engine to the mobile client.

REST endpoints for the card catalog, swipes, stored scores and the derived
personality result. Identity is an anonymous bearer token; persistence is
Redis.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import redis.asyncio as aioredis
import uvicorn
from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from kisho.config.context import get_context, init_context, reset_context
from kisho.config.settings import LOG_LEVEL, SERVER_HOST, SERVER_PORT
from kisho.engine.catalog import CardCatalog, load_catalog
from kisho.engine.classifier import can_show_results
from kisho.engine.session import load_results, record_swipe
from kisho.errors import ConfigurationError, ScoreRecordError, StorageUnavailable
from kisho.models.card import SwipeDirection
from kisho.services.identity import AnonymousIdentityProvider
from kisho.services.score_store import RedisScoreStore

logger = logging.getLogger(__name__)

# ── Shared State (installed by lifespan) ─────────────────────────────────

_redis: Optional[aioredis.Redis] = None
_catalog: Optional[CardCatalog] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _redis, _catalog
    ctx = init_context()
    _catalog = load_catalog(ctx.catalog_path)
    _redis = aioredis.Redis.from_url(ctx.redis_url, decode_responses=True)
    logger.info("Kishō API ready (app_id=%s, %d cards)", ctx.app_id, len(_catalog))
    try:
        yield
    finally:
        await _redis.aclose()
        _redis = None
        _catalog = None
        reset_context()


app = FastAPI(title="Kishō", description="Poem-card personality scoring", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_redis() -> aioredis.Redis:
    if _redis is None:
        raise ConfigurationError("Redis client not initialized")
    return _redis


def _get_catalog() -> CardCatalog:
    if _catalog is None:
        raise ConfigurationError("Card catalog not loaded")
    return _catalog


def _get_store() -> RedisScoreStore:
    return RedisScoreStore.from_context(get_context(), _get_redis())


def _get_identity() -> AnonymousIdentityProvider:
    return AnonymousIdentityProvider.from_context(get_context(), _get_redis())


def _bearer_token(authorization: Optional[str]) -> str:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Missing bearer token")
    return token.strip()


async def _require_user(authorization: Optional[str]) -> str:
    """Resolve ``Authorization: Bearer <token>`` to a user id or raise 401."""
    user_id = await _get_identity().resolve(_bearer_token(authorization))
    if not user_id:
        raise HTTPException(status_code=401, detail="Unknown or expired token")
    return user_id


@app.exception_handler(StorageUnavailable)
async def _storage_unavailable(request: Request, exc: StorageUnavailable):
    return JSONResponse(status_code=503, content={"detail": "Score storage unavailable"})


@app.exception_handler(ScoreRecordError)
async def _corrupt_record(request: Request, exc: ScoreRecordError):
    logger.error("Corrupt score record on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Stored score record is invalid"})


# ── REST Endpoints ───────────────────────────────────────────────────────

@app.get("/api/health")
async def health():
    redis_ok = await _get_store().ping()
    return {
        "status": "ok",
        "redis": redis_ok,
        "cards": len(_get_catalog()),
    }


@app.post("/api/auth/anonymous")
async def sign_in_anonymously():
    """Issue a new anonymous identity and create its zeroed score record."""
    user_id, token = await _get_identity().sign_in_anonymously()
    await _get_store().create_initial(user_id)
    return {"user_id": user_id, "token": token}


@app.post("/api/auth/signout")
async def sign_out(authorization: Optional[str] = Header(default=None)):
    """Revoke the caller's token. The score record is kept."""
    user_id = await _require_user(authorization)
    await _get_identity().revoke(_bearer_token(authorization))
    logger.info("Signed out %s", user_id)
    return {"signed_out": True}


@app.get("/api/cards")
async def list_cards():
    return {"cards": [c.to_dict() for c in _get_catalog().all_cards()]}


@app.get("/api/cards/{card_id}")
async def get_card(card_id: str):
    card = _get_catalog().get(card_id)
    if card is None:
        raise HTTPException(status_code=404, detail="Card not found")
    return card.to_dict()


class SwipeRequest(BaseModel):
    card_id: str
    direction: SwipeDirection


@app.post("/api/swipes")
async def swipe(req: SwipeRequest, authorization: Optional[str] = Header(default=None)):
    """Fold one swipe into the caller's totals."""
    user_id = await _require_user(authorization)
    catalog = _get_catalog()
    scores = await record_swipe(_get_store(), catalog, user_id, req.card_id, req.direction)
    min_responses = get_context().min_responses
    return {
        "response_count": scores.response_count,
        "can_show_results": can_show_results(scores, min_responses),
        "remaining": max(0, min_responses - scores.response_count),
        "known_card": req.card_id in catalog,
    }


@app.get("/api/scores")
async def get_scores(authorization: Optional[str] = Header(default=None)):
    user_id = await _require_user(authorization)
    scores = await _get_store().load(user_id)
    if scores is None:
        raise HTTPException(status_code=404, detail="No score record")
    return scores.to_dict()


@app.get("/api/results")
async def get_results(authorization: Optional[str] = Header(default=None)):
    user_id = await _require_user(authorization)
    ctx = get_context()
    result = await load_results(
        _get_store(),
        user_id,
        min_responses=ctx.min_responses,
        big_five_bound=ctx.big_five_bound,
    )
    return result.to_dict()


if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL)
    uvicorn.run(app, host=SERVER_HOST, port=SERVER_PORT)
