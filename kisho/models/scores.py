"""Accumulated score record for one user.

Stored as a single Redis hash. Map-valued fields are JSON strings and the
field names match the document shape the mobile client already reads.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from kisho.errors import ScoreRecordError
from kisho.models.card import BIG_FIVE_DIMENSIONS, KISHO_AXES, MBTI_LETTERS


def _zero_mbti() -> dict[str, int]:
    return {letter: 0 for letter in MBTI_LETTERS}


def _zero_big_five() -> dict[str, float]:
    return {dim: 0.0 for dim in BIG_FIVE_DIMENSIONS}


def _zero_axes() -> dict[str, dict[str, int]]:
    return {axis: {pole: 0 for pole in poles} for axis, poles in KISHO_AXES.items()}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _count(value: Any, what: str) -> int:
    """Whole-number count; a fractional value is a corrupt record."""
    if isinstance(value, float) and not value.is_integer():
        raise ScoreRecordError(f"{what} must be a whole number, got {value!r}")
    return int(value)


@dataclass
class UserScores:
    mbti_total: dict[str, int] = field(default_factory=_zero_mbti)
    big_five_cumulative: dict[str, float] = field(default_factory=_zero_big_five)
    kisho_axis_totals: dict[str, dict[str, int]] = field(default_factory=_zero_axes)
    response_count: int = 0
    last_updated: datetime = field(default_factory=_utcnow)

    @classmethod
    def initial(cls, now: datetime | None = None) -> UserScores:
        """Zeroed record created at account creation."""
        return cls(last_updated=now or _utcnow())

    def copy(self) -> UserScores:
        return UserScores(
            mbti_total=dict(self.mbti_total),
            big_five_cumulative=dict(self.big_five_cumulative),
            kisho_axis_totals={a: dict(p) for a, p in self.kisho_axis_totals.items()},
            response_count=self.response_count,
            last_updated=self.last_updated,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "MBTI_Total": dict(self.mbti_total),
            "BigFive_Cumulative": dict(self.big_five_cumulative),
            "Kisho_Axis_Totals": {a: dict(p) for a, p in self.kisho_axis_totals.items()},
            "Response_Count": self.response_count,
            "Last_Updated": self.last_updated.isoformat(),
        }

    def to_hash(self) -> dict[str, str]:
        """Flatten to a Redis hash mapping (all values are strings)."""
        d = self.to_dict()
        return {
            "MBTI_Total": json.dumps(d["MBTI_Total"], ensure_ascii=False),
            "BigFive_Cumulative": json.dumps(d["BigFive_Cumulative"], ensure_ascii=False),
            "Kisho_Axis_Totals": json.dumps(d["Kisho_Axis_Totals"], ensure_ascii=False),
            "Response_Count": str(d["Response_Count"]),
            "Last_Updated": d["Last_Updated"],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserScores:
        """Build and validate a record from its document form.

        JSON-string values (as read back from a Redis hash) are decoded.
        Axes missing from older records start at zero.
        """
        data = dict(data)  # copy
        try:
            for key in ("MBTI_Total", "BigFive_Cumulative", "Kisho_Axis_Totals"):
                if isinstance(data.get(key), str):
                    data[key] = json.loads(data[key])

            mbti = _zero_mbti()
            for letter, count in (data.get("MBTI_Total") or {}).items():
                if letter not in mbti:
                    raise ScoreRecordError(f"Unknown MBTI letter: {letter!r}")
                mbti[letter] = _count(count, f"MBTI_Total.{letter}")

            big_five = _zero_big_five()
            for dim, total in (data.get("BigFive_Cumulative") or {}).items():
                if dim not in big_five:
                    raise ScoreRecordError(f"Unknown Big-Five dimension: {dim!r}")
                big_five[dim] = float(total)

            axes = _zero_axes()
            for axis, poles in (data.get("Kisho_Axis_Totals") or {}).items():
                if axis not in axes:
                    raise ScoreRecordError(f"Unknown Kishō axis: {axis!r}")
                for pole, count in poles.items():
                    if pole not in axes[axis]:
                        raise ScoreRecordError(f"Unknown pole {pole!r} on axis {axis}")
                    axes[axis][pole] = _count(count, f"Kisho_Axis_Totals.{axis}.{pole}")

            response_count = _count(data.get("Response_Count", 0), "Response_Count")
            raw_ts = data.get("Last_Updated")
            if isinstance(raw_ts, datetime):
                last_updated = raw_ts
            elif raw_ts:
                last_updated = datetime.fromisoformat(str(raw_ts))
            else:
                last_updated = _utcnow()
        except (ValueError, TypeError, AttributeError) as exc:
            raise ScoreRecordError(f"Malformed score record: {exc}") from exc

        if response_count < 0:
            raise ScoreRecordError("Response_Count must be non-negative")
        negatives = [k for k, v in mbti.items() if v < 0]
        negatives += [f"{a}.{p}" for a, ps in axes.items() for p, v in ps.items() if v < 0]
        if negatives:
            raise ScoreRecordError(f"Negative counts in record: {', '.join(negatives)}")
        if last_updated.tzinfo is None:
            last_updated = last_updated.replace(tzinfo=timezone.utc)

        return cls(
            mbti_total=mbti,
            big_five_cumulative=big_five,
            kisho_axis_totals=axes,
            response_count=response_count,
            last_updated=last_updated,
        )
