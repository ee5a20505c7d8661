"""Poem card model and the scoring vocabulary shared by the engine.

A card carries one Contribution per swipe direction. A contribution may add
one MBTI letter, any number of Big-Five deltas and one Kishō axis vote, or
nothing at all.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

# MBTI letter pairs; the first letter of each pair wins ties
MBTI_PAIRS: tuple[tuple[str, str], ...] = (
    ("E", "I"),
    ("S", "N"),
    ("T", "F"),
    ("J", "P"),
)
MBTI_LETTERS: tuple[str, ...] = ("I", "E", "S", "N", "T", "F", "J", "P")
MBTI_OPPOSITE: dict[str, str] = {
    **{a: b for a, b in MBTI_PAIRS},
    **{b: a for a, b in MBTI_PAIRS},
}

BIG_FIVE_DIMENSIONS: tuple[str, ...] = ("O", "C", "E", "A", "N")

# Kishō axes in display order; the first pole of each axis wins ties
KISHO_AXES: dict[str, tuple[str, str]] = {
    "Ki": ("Inner", "Outer"),
    "Shō": ("Harmony", "Solitude"),
    "Ten": ("Feeling", "Logic"),
    "Ketsu": ("Fixed", "Flow"),
}

# ASCII spellings accepted from catalogs and clients
_AXIS_ALIASES = {"Sho": "Shō", "Shou": "Shō"}


def normalize_axis(name: str) -> str:
    return _AXIS_ALIASES.get(name, name)


class SwipeDirection(str, Enum):
    LEFT = "left"    # non-agreement
    RIGHT = "right"  # agreement


@dataclass(frozen=True)
class Contribution:
    """What one swipe direction on one card adds to the totals."""

    mbti: Optional[str] = None
    big_five: Mapping[str, float] = field(default_factory=dict)
    axis_vote: Optional[tuple[str, str]] = None  # (axis, pole)

    def __post_init__(self):
        # read-only view over a private copy
        object.__setattr__(self, "big_five", MappingProxyType(dict(self.big_five)))
        if isinstance(self.axis_vote, (tuple, list)) and len(self.axis_vote) == 2:
            axis, pole = self.axis_vote
            if isinstance(axis, str):
                axis = normalize_axis(axis)
            object.__setattr__(self, "axis_vote", (axis, pole))

    @property
    def is_empty(self) -> bool:
        return self.mbti is None and not self.big_five and self.axis_vote is None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.mbti is not None:
            d["mbti"] = self.mbti
        if self.big_five:
            d["big_five"] = dict(self.big_five)
        if self.axis_vote is not None:
            d["axis"] = {"name": self.axis_vote[0], "pole": self.axis_vote[1]}
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Contribution:
        if not data:
            return NO_CONTRIBUTION
        axis = data.get("axis")
        axis_vote = None
        if axis:
            axis_vote = (str(axis["name"]), str(axis["pole"]))
        big_five = {str(k): float(v) for k, v in (data.get("big_five") or {}).items()}
        mbti = data.get("mbti")
        return cls(
            mbti=str(mbti) if mbti is not None else None,
            big_five=big_five,
            axis_vote=axis_vote,
        )


NO_CONTRIBUTION = Contribution()


def split_contribution(contrib: Contribution) -> tuple[Contribution, list[str]]:
    """Separate a contribution into its valid part and a list of problems.

    The valid part keeps only a known MBTI letter, finite deltas on known
    Big-Five dimensions and a vote for a real pole of a real axis. When
    nothing survives it is NO_CONTRIBUTION.
    """
    problems: list[str] = []

    mbti = contrib.mbti
    if mbti is not None and mbti not in MBTI_LETTERS:
        problems.append(f"unknown MBTI letter {mbti!r}")
        mbti = None

    big_five: dict[str, float] = {}
    for dim, delta in contrib.big_five.items():
        if dim not in BIG_FIVE_DIMENSIONS:
            problems.append(f"unknown Big-Five dimension {dim!r}")
        elif isinstance(delta, bool) or not isinstance(delta, (int, float)) or not math.isfinite(delta):
            problems.append(f"Big-Five delta for {dim} is not a finite number: {delta!r}")
        else:
            big_five[dim] = float(delta)

    axis_vote = contrib.axis_vote
    if axis_vote is not None:
        if not isinstance(axis_vote, tuple) or len(axis_vote) != 2:
            problems.append(f"malformed Kishō axis vote {axis_vote!r}")
            axis_vote = None
        elif axis_vote[0] not in KISHO_AXES:
            problems.append(f"unknown Kishō axis {axis_vote[0]!r}")
            axis_vote = None
        elif axis_vote[1] not in KISHO_AXES[axis_vote[0]]:
            problems.append(f"{axis_vote[1]!r} is not a pole of {axis_vote[0]}")
            axis_vote = None

    if not problems:
        return contrib, problems
    valid = Contribution(mbti=mbti, big_five=big_five, axis_vote=axis_vote)
    return (NO_CONTRIBUTION if valid.is_empty else valid), problems


@dataclass(frozen=True)
class PoemCard:
    card_id: str
    text_kr: str
    text_jp: str
    kisho_tag: str = ""
    left: Contribution = NO_CONTRIBUTION
    right: Contribution = NO_CONTRIBUTION

    def contribution(self, direction: SwipeDirection) -> Contribution:
        if SwipeDirection(direction) is SwipeDirection.RIGHT:
            return self.right
        return self.left

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.card_id,
            "text_kr": self.text_kr,
            "text_jp": self.text_jp,
            "kisho_tag": self.kisho_tag,
            "left": self.left.to_dict(),
            "right": self.right.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PoemCard:
        return cls(
            card_id=str(data["id"]),
            text_kr=str(data.get("text_kr", "")),
            text_jp=str(data.get("text_jp", "")),
            kisho_tag=str(data.get("kisho_tag", "")),
            left=Contribution.from_dict(data.get("left")),
            right=Contribution.from_dict(data.get("right")),
        )
