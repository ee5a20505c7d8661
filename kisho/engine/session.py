"""Swipe session orchestration: one load -> fold -> save per swipe.

No raw swipe log is kept, so there is no replay or undo.
"""

from __future__ import annotations

import logging
from datetime import datetime

from kisho.config.settings import BIG_FIVE_BOUND_PER_RESPONSE, MIN_RESPONSE_THRESHOLD
from kisho.engine.accumulator import fold
from kisho.engine.catalog import CardCatalog
from kisho.engine.classifier import AnalysisResult, classify
from kisho.models.card import SwipeDirection
from kisho.models.scores import UserScores
from kisho.services.score_store import RedisScoreStore

logger = logging.getLogger(__name__)


async def record_swipe(
    store: RedisScoreStore,
    catalog: CardCatalog,
    user_id: str,
    card_id: str,
    direction: SwipeDirection,
    now: datetime | None = None,
) -> UserScores:
    """Fold a single swipe into the user's persisted totals and return them."""
    current = await store.load(user_id)
    if current is None:
        current = await store.create_initial(user_id, now)

    card = catalog.get(card_id)
    if card is None:
        logger.warning("Swipe on unknown card %r by %s counted as no-op", card_id, user_id)

    updated = fold(current, card, direction, now=now)
    await store.save(user_id, updated)
    return updated


async def load_results(
    store: RedisScoreStore,
    user_id: str,
    min_responses: int = MIN_RESPONSE_THRESHOLD,
    big_five_bound: float = BIG_FIVE_BOUND_PER_RESPONSE,
) -> AnalysisResult:
    """Classify the user's stored totals; a missing record counts as zeroed."""
    totals = await store.load(user_id) or UserScores.initial()
    return classify(totals, min_responses=min_responses, big_five_bound=big_five_bound)
