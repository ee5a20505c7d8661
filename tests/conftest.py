"""Shared test fixtures for the Kishō scoring engine test suite."""

from datetime import datetime, timezone

import fakeredis
import pytest

from kisho.config.context import AppContext, init_context, reset_context
from kisho.config.settings import CARD_CATALOG_PATH
from kisho.engine.catalog import CardCatalog
from kisho.models.card import Contribution, PoemCard
from kisho.services.score_store import RedisScoreStore


# ── Redis ────────────────────────────────────────────────────────────────

@pytest.fixture
def r():
    """Fresh async fakeredis instance per test (decode_responses=True like production)."""
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def store(r):
    return RedisScoreStore(r, app_id="test-app")


# ── Application Context ─────────────────────────────────────────────────

@pytest.fixture
def app_ctx():
    """Install a test AppContext for the duration of one test."""
    reset_context()
    ctx = init_context(AppContext(
        app_id="test-app",
        redis_url="redis://localhost:6379/15",
        catalog_path=CARD_CATALOG_PATH,
        min_responses=3,
        big_five_bound=0.2,
    ))
    yield ctx
    reset_context()


# ── Time Freezing ───────────────────────────────────────────────────────

@pytest.fixture
def frozen_now():
    """Fixed 'now' for deterministic Last_Updated assertions."""
    return datetime(2026, 2, 15, 12, 0, 0, tzinfo=timezone.utc)


# ── Card Factories ──────────────────────────────────────────────────────

@pytest.fixture
def make_card():
    """Factory fixture that creates PoemCards with sensible defaults.

    Usage:
        card = make_card(right={"mbti": "I", "axis": {"name": "Ki", "pole": "Inner"}})
    """
    _counter = 0

    def _factory(card_id=None, left=None, right=None, **overrides):
        nonlocal _counter
        _counter += 1
        defaults = {
            "card_id": card_id or f"test-card-{_counter}",
            "text_kr": f"시 {_counter}",
            "text_jp": f"詩 {_counter}",
            "kisho_tag": "",
            "left": Contribution.from_dict(left),
            "right": Contribution.from_dict(right),
        }
        defaults.update(overrides)
        return PoemCard(**defaults)

    return _factory


@pytest.fixture
def small_catalog(make_card):
    """Four cards: one per signal kind plus a silent card."""
    return CardCatalog([
        make_card(
            card_id="inner",
            right={"mbti": "I", "big_five": {"E": -0.2}, "axis": {"name": "Ki", "pole": "Inner"}},
            left={"mbti": "E", "axis": {"name": "Ki", "pole": "Outer"}},
        ),
        make_card(
            card_id="harmony",
            right={"mbti": "F", "big_five": {"A": 0.3}, "axis": {"name": "Shō", "pole": "Harmony"}},
        ),
        make_card(
            card_id="plan",
            right={"mbti": "J", "big_five": {"C": 0.2, "N": -0.1}, "axis": {"name": "Ketsu", "pole": "Fixed"}},
            left={"mbti": "P", "axis": {"name": "Ketsu", "pole": "Flow"}},
        ),
        make_card(card_id="silent"),
    ])
