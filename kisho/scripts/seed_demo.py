"""Seed Redis with a demo user who has swiped past the results gate.

Run: python -m kisho.scripts.seed_demo [swipes]
"""

import asyncio
import logging
import random
import sys

import redis.asyncio as aioredis

from kisho.config.context import init_context
from kisho.config.settings import LOG_LEVEL
from kisho.engine.accumulator import fold_many
from kisho.engine.catalog import load_catalog
from kisho.engine.classifier import classify
from kisho.models.card import SwipeDirection
from kisho.models.scores import UserScores
from kisho.services.identity import AnonymousIdentityProvider
from kisho.services.score_store import RedisScoreStore

logger = logging.getLogger(__name__)

DEMO_SEED = 1187


def demo_swipes(catalog, count: int, seed: int = DEMO_SEED):
    """Deterministic swipe sequence: catalog order, repeated, random directions."""
    rng = random.Random(seed)
    cards = catalog.all_cards()
    for i in range(count):
        direction = SwipeDirection.RIGHT if rng.random() < 0.6 else SwipeDirection.LEFT
        yield cards[i % len(cards)], direction


async def seed(swipes: int) -> None:
    ctx = init_context()
    catalog = load_catalog(ctx.catalog_path)
    r = aioredis.Redis.from_url(ctx.redis_url, decode_responses=True)
    try:
        identity = AnonymousIdentityProvider.from_context(ctx, r)
        store = RedisScoreStore.from_context(ctx, r)

        user_id, token = await identity.sign_in_anonymously()
        scores = fold_many(UserScores.initial(), demo_swipes(catalog, swipes))
        await store.save(user_id, scores)

        result = classify(scores, ctx.min_responses, ctx.big_five_bound)
        print(f"user_id: {user_id}")
        print(f"token:   {token}")
        print(f"swipes:  {scores.response_count}")
        if result.can_show_results:
            print(f"kisho:   {result.kisho.full_type}")
            print(f"mbti:    {result.mbti.type}")
        else:
            print(f"results locked until {ctx.min_responses} swipes")
    finally:
        await r.aclose()


if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL)
    count = int(sys.argv[1]) if len(sys.argv) > 1 else 240
    asyncio.run(seed(count))
