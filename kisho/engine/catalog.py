"""Card Catalog: the static, ordered set of poem cards.

Loaded once from YAML and validated up front so the accumulator never has to
second-guess a contribution. Same cards, same order, for every user.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterator, Optional

import yaml

from kisho.errors import CatalogError
from kisho.models.card import Contribution, PoemCard, split_contribution

logger = logging.getLogger(__name__)


def _validate_contribution(card_id: str, side: str, contrib: Contribution) -> None:
    _, problems = split_contribution(contrib)
    if problems:
        raise CatalogError(f"card {card_id!r} ({side}): {problems[0]}")


class CardCatalog:
    """Immutable ordered collection of PoemCards with id lookup."""

    def __init__(self, cards: list[PoemCard]):
        self._cards: tuple[PoemCard, ...] = tuple(cards)
        self._by_id: dict[str, PoemCard] = {}
        for card in self._cards:
            if card.card_id in self._by_id:
                raise CatalogError(f"Duplicate card id: {card.card_id!r}")
            if not card.text_kr or not card.text_jp:
                raise CatalogError(f"card {card.card_id!r}: both text_kr and text_jp are required")
            _validate_contribution(card.card_id, "left", card.left)
            _validate_contribution(card.card_id, "right", card.right)
            self._by_id[card.card_id] = card

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[PoemCard]:
        return iter(self._cards)

    def __contains__(self, card_id: object) -> bool:
        return card_id in self._by_id

    def all_cards(self) -> list[PoemCard]:
        return list(self._cards)

    def get(self, card_id: str) -> Optional[PoemCard]:
        return self._by_id.get(card_id)

    @classmethod
    def from_dicts(cls, rows: list[dict[str, Any]]) -> CardCatalog:
        cards = []
        for i, row in enumerate(rows):
            try:
                cards.append(PoemCard.from_dict(row))
            except (KeyError, TypeError, ValueError) as exc:
                raise CatalogError(f"Invalid card entry #{i}: {exc}") from exc
        return cls(cards)


def load_catalog(path: Path) -> CardCatalog:
    """Load and validate the catalog YAML (top-level ``cards:`` list)."""
    try:
        with open(path, encoding="utf-8") as f:
            doc = yaml.safe_load(f)
    except FileNotFoundError as exc:
        raise CatalogError(f"Card catalog not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise CatalogError(f"Card catalog is not valid YAML: {exc}") from exc

    rows = (doc or {}).get("cards") if isinstance(doc, dict) else None
    if not isinstance(rows, list) or not rows:
        raise CatalogError(f"Card catalog {path} has no 'cards' list")

    catalog = CardCatalog.from_dicts(rows)
    logger.info("Loaded %d poem cards from %s", len(catalog), path)
    return catalog
