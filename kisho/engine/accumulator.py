"""Score Accumulator: pure fold of one swipe into the running totals.

No Redis dependency. The caller owns load/save; fold only ever returns a new
UserScores and never touches the one it was given.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from kisho.models.card import (
    NO_CONTRIBUTION,
    Contribution,
    PoemCard,
    SwipeDirection,
    split_contribution,
)
from kisho.models.scores import UserScores

logger = logging.getLogger(__name__)


def resolve_contribution(card: Optional[PoemCard], direction: SwipeDirection) -> Contribution:
    """Valid contribution for a swipe.

    NO_CONTRIBUTION when there is no card. Parts naming an unknown letter,
    dimension, axis or pole are dropped with a warning so they can never
    reach the stored totals.
    """
    if card is None:
        return NO_CONTRIBUTION
    contrib, problems = split_contribution(card.contribution(direction))
    if problems:
        logger.warning(
            "Ignoring invalid contribution parts on card %r (%s): %s",
            card.card_id,
            SwipeDirection(direction).value,
            "; ".join(problems),
        )
    return contrib


def apply_contribution(scores: UserScores, contrib: Contribution) -> None:
    """Add a contribution to ``scores`` in place (used on a fresh copy only)."""
    if contrib.mbti is not None:
        scores.mbti_total[contrib.mbti] = scores.mbti_total.get(contrib.mbti, 0) + 1
    for dim, delta in contrib.big_five.items():
        scores.big_five_cumulative[dim] = scores.big_five_cumulative.get(dim, 0.0) + delta
    if contrib.axis_vote is not None:
        axis, pole = contrib.axis_vote
        poles = scores.kisho_axis_totals.setdefault(axis, {})
        poles[pole] = poles.get(pole, 0) + 1


def fold(
    current: UserScores,
    card: Optional[PoemCard],
    direction: SwipeDirection,
    now: datetime | None = None,
) -> UserScores:
    """Merge one swipe into ``current`` and return the new totals.

    An unknown card (``None``) or a direction without signal still counts as
    a response: only Response_Count and Last_Updated change.
    """
    contrib = resolve_contribution(card, direction)
    updated = current.copy()
    apply_contribution(updated, contrib)
    updated.response_count = current.response_count + 1
    updated.last_updated = now or datetime.now(timezone.utc)

    logger.debug(
        "Folded %s/%s (empty=%s) -> response_count=%d",
        card.card_id if card else "<unknown>",
        SwipeDirection(direction).value,
        contrib.is_empty,
        updated.response_count,
    )
    return updated


def fold_many(
    current: UserScores,
    swipes: Iterable[tuple[Optional[PoemCard], SwipeDirection]],
    now: datetime | None = None,
) -> UserScores:
    """Left fold over an ordered sequence of (card, direction) swipes."""
    scores = current
    for card, direction in swipes:
        scores = fold(scores, card, direction, now=now)
    return scores
