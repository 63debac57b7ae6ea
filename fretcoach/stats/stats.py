from __future__ import annotations

"""CAGED practice session scoring and formatting."""

from typing import Dict, Iterable, Optional

from pydantic import BaseModel, Field

from ..theory.caged import SHAPE_IDS
from ..theory.note_utils import note_name

ACCURACY_LABELS = {
    1: "Poor - Many mistakes",
    2: "Fair - Some mistakes",
    3: "Good - Few mistakes",
    4: "Very Good - Rare mistakes",
    5: "Perfect - No mistakes",
}


class SessionScoreConfig(BaseModel):
    """Weights for the 0-100 session score.

    Accuracy carries the largest share; coverage rewards more distinct shapes;
    pace is a small penalty for taking longer than target_seconds_per_shape.
    """

    target_seconds_per_shape: float = Field(4.0, gt=0)
    accuracy_weight: float = Field(0.6, ge=0)
    coverage_weight: float = Field(0.25, ge=0)
    pace_weight: float = Field(0.15, ge=0)


def score_session(
    shapes: Iterable[str],
    self_accuracy: int,
    elapsed_seconds: float,
    cfg: Optional[SessionScoreConfig] = None,
) -> int:
    """Score a timed CAGED run from shapes played, 1-5 self rating and time taken."""
    cfg = cfg or SessionScoreConfig()
    if not isinstance(self_accuracy, int) or isinstance(self_accuracy, bool) or not 1 <= self_accuracy <= 5:
        raise ValueError(f"self_accuracy must be an integer 1..5, got {self_accuracy!r}")
    distinct = set()
    for s in shapes:
        sid = str(s).upper()
        if sid not in SHAPE_IDS:
            raise ValueError(f"Unknown CAGED shape: {s}")
        distinct.add(sid)
    n = len(distinct)

    accuracy_part = (self_accuracy - 1) / 4
    coverage_part = min(n / len(SHAPE_IDS), 1.0)
    if n == 0:
        pace_part = 0.0
    elif elapsed_seconds <= 0:
        pace_part = 1.0
    else:
        pace_part = min(1.0, cfg.target_seconds_per_shape * n / elapsed_seconds)

    total_weight = cfg.accuracy_weight + cfg.coverage_weight + cfg.pace_weight
    if total_weight <= 0:
        raise ValueError("Session score weights must not all be zero")
    raw = (
        accuracy_part * cfg.accuracy_weight
        + coverage_part * cfg.coverage_weight
        + pace_part * cfg.pace_weight
    ) / total_weight
    return max(0, min(100, round(raw * 100)))


def accuracy_label(self_accuracy: int) -> str:
    return ACCURACY_LABELS.get(self_accuracy, "Unknown")


def score_band(score: float) -> str:
    """Map a 0-100 score (or percentage) to excellent / good / fair / poor."""
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "fair"
    return "poor"


def format_time(seconds: float) -> str:
    seconds = int(round(seconds))
    if seconds < 60:
        return f"{seconds}s"
    mins, secs = divmod(seconds, 60)
    return f"{mins}m {secs}s"


def format_summary(stats: Dict) -> str:
    """Return a human-readable summary of per-note quiz stats.

    `stats` maps pitch class -> {"correct": int, "incorrect": int}.
    """
    total_c = sum(int(v.get("correct", 0)) for v in stats.values())
    total = total_c + sum(int(v.get("incorrect", 0)) for v in stats.values())
    lines = [f"Total: {total_c}/{total} correct"]
    for pc in sorted(stats):
        corr = int(stats[pc].get("correct", 0))
        asked = corr + int(stats[pc].get("incorrect", 0))
        lines.append(f"{note_name(pc)}: {corr}/{asked}")
    return "\n".join(lines)
