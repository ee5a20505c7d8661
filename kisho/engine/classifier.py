"""Result Classifier: derive the displayed profile from accumulated totals.

Pure and deterministic. Zero-vote pairs and axes never divide by zero; they
fall back to the declared tie-break defaults:

    MBTI    E / S / T / J           (default type "ESTJ")
    Kishō   Inner / Harmony / Feeling / Fixed

Big-Five sums are mapped linearly from [-B*n, +B*n] to [0, 100] and clamped,
where n is the response count and B the per-response bound.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from kisho.config.settings import BIG_FIVE_BOUND_PER_RESPONSE, MIN_RESPONSE_THRESHOLD
from kisho.models.card import BIG_FIVE_DIMENSIONS, KISHO_AXES, MBTI_PAIRS
from kisho.models.scores import UserScores

DEFAULT_MBTI_TYPE: str = "".join(first for first, _ in MBTI_PAIRS)
DEFAULT_KISHO_POLES: dict[str, str] = {axis: poles[0] for axis, poles in KISHO_AXES.items()}


@dataclass(frozen=True)
class KishoType:
    ki: str
    sho: str
    ten: str
    ketsu: str

    @property
    def full_type(self) -> str:
        return "-".join((self.ki, self.sho, self.ten, self.ketsu))

    def to_dict(self) -> dict[str, str]:
        return {
            "Ki": self.ki,
            "Shō": self.sho,
            "Ten": self.ten,
            "Ketsu": self.ketsu,
            "fullType": self.full_type,
        }


@dataclass(frozen=True)
class MbtiProfile:
    type: str
    preferences: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "preferences": dict(self.preferences)}


@dataclass(frozen=True)
class AnalysisResult:
    can_show_results: bool
    kisho: Optional[KishoType] = None
    big_five: Optional[dict[str, float]] = None
    mbti: Optional[MbtiProfile] = None

    def to_dict(self) -> dict[str, Any]:
        if not self.can_show_results:
            return {"canShowResults": False}
        return {
            "canShowResults": True,
            "kisho": self.kisho.to_dict(),
            "bigFive": dict(self.big_five),
            "mbti": self.mbti.to_dict(),
        }


# ── Big Five ─────────────────────────────────────────────────────────────

def big_five_percentage(total: float, response_count: int, bound_per_response: float) -> float:
    """Linear map of a cumulative sum onto 0-100, clamped. 50 when unbounded."""
    bound = bound_per_response * response_count
    if bound <= 0:
        return 50.0
    pct = (total + bound) / (2 * bound) * 100.0
    return max(0.0, min(100.0, pct))


def big_five_profile(totals: UserScores, bound_per_response: float) -> dict[str, float]:
    return {
        dim: big_five_percentage(
            totals.big_five_cumulative.get(dim, 0.0),
            totals.response_count,
            bound_per_response,
        )
        for dim in BIG_FIVE_DIMENSIONS
    }


# ── MBTI ─────────────────────────────────────────────────────────────────

def mbti_profile(totals: UserScores) -> MbtiProfile:
    """Per-pair preference percentages and the 4-letter type."""
    preferences: dict[str, float] = {}
    letters = []
    for first, second in MBTI_PAIRS:
        a = totals.mbti_total.get(first, 0)
        b = totals.mbti_total.get(second, 0)
        votes = a + b
        if votes == 0:
            preferences[first] = 50.0
            preferences[second] = 50.0
        else:
            preferences[first] = a / votes * 100.0
            preferences[second] = b / votes * 100.0
        letters.append(second if b > a else first)
    return MbtiProfile(type="".join(letters), preferences=preferences)


# ── Kishō ────────────────────────────────────────────────────────────────

def winning_pole(axis: str, tallies: dict[str, int]) -> str:
    """Pole with the strictly higher vote count; ties go to the first pole."""
    first, second = KISHO_AXES[axis]
    if tallies.get(second, 0) > tallies.get(first, 0):
        return second
    return first


def kisho_type(totals: UserScores) -> KishoType:
    poles = {
        axis: winning_pole(axis, totals.kisho_axis_totals.get(axis, {}))
        for axis in KISHO_AXES
    }
    return KishoType(ki=poles["Ki"], sho=poles["Shō"], ten=poles["Ten"], ketsu=poles["Ketsu"])


# ── Entry point ──────────────────────────────────────────────────────────

def can_show_results(totals: UserScores, min_responses: int = MIN_RESPONSE_THRESHOLD) -> bool:
    return totals.response_count >= min_responses


def classify(
    totals: UserScores,
    min_responses: int = MIN_RESPONSE_THRESHOLD,
    big_five_bound: float = BIG_FIVE_BOUND_PER_RESPONSE,
) -> AnalysisResult:
    """Build the AnalysisResult for ``totals``.

    Below the response gate only ``can_show_results=False`` is returned and
    nothing else is computed.
    """
    if not can_show_results(totals, min_responses):
        return AnalysisResult(can_show_results=False)

    return AnalysisResult(
        can_show_results=True,
        kisho=kisho_type(totals),
        big_five=big_five_profile(totals, big_five_bound),
        mbti=mbti_profile(totals),
    )
