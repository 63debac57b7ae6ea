from __future__ import annotations

"""Per-note difficulty scoring from note finder attempt history."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..results.schema import AttemptRecord
from ..theory.note_utils import ALL_PITCH_CLASSES, note_name

SECONDS_PER_DAY = 86400.0


class DifficultyConfig(BaseModel):
    """Weights and thresholds of the difficulty heuristic.

    - *_weight: share of each factor in the final [0, 1] score
    - slow_threshold_ms / slow_range_ms: response time above the threshold
      scales linearly to full slowness over slow_range_ms
    - exposure_target: attempts below this count add low-exposure difficulty
    - staleness_days: days without practice to reach full staleness
    - never_practiced_days: staleness assumed for notes with no attempts
    """

    accuracy_weight: float = Field(0.4, ge=0)
    slowness_weight: float = Field(0.3, ge=0)
    exposure_weight: float = Field(0.2, ge=0)
    staleness_weight: float = Field(0.1, ge=0)
    slow_threshold_ms: float = Field(3000, ge=0)
    slow_range_ms: float = Field(5000, gt=0)
    exposure_target: int = Field(5, gt=0)
    staleness_days: float = Field(7, gt=0)
    never_practiced_days: float = Field(30, ge=0)
    needs_practice_score: float = Field(0.4, ge=0, le=1)
    min_attempts: int = Field(3, ge=0)


@dataclass(frozen=True)
class NotePerformance:
    note: int
    accuracy: Optional[float]          # None = no attempts
    avg_response_ms: Optional[float]   # None = no attempts
    total_attempts: int
    days_since_last_practice: float
    difficulty_score: float
    needs_practice: bool

    @property
    def has_data(self) -> bool:
        return self.total_attempts > 0

    @property
    def note_name(self) -> str:
        return note_name(self.note)


def _clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def score_difficulty(
    accuracy: Optional[float],
    avg_response_ms: Optional[float],
    total_attempts: int,
    days_since_last_practice: float,
    cfg: Optional[DifficultyConfig] = None,
) -> Tuple[float, bool]:
    """Return (difficulty_score, needs_practice). Pure and deterministic."""
    cfg = cfg or DifficultyConfig()
    acc = 0.0 if accuracy is None else _clamp01(accuracy)
    inaccuracy = (1.0 - acc) * cfg.accuracy_weight
    slowness = 0.0
    if avg_response_ms is not None:
        slowness = _clamp01((avg_response_ms - cfg.slow_threshold_ms) / cfg.slow_range_ms) * cfg.slowness_weight
    low_exposure = _clamp01((cfg.exposure_target - total_attempts) / cfg.exposure_target) * cfg.exposure_weight
    staleness = _clamp01(days_since_last_practice / cfg.staleness_days) * cfg.staleness_weight
    score = min(1.0, inaccuracy + slowness + low_exposure + staleness)
    needs = score > cfg.needs_practice_score or total_attempts < cfg.min_attempts
    return score, needs


def analyze_note_performance(
    attempts: Iterable[AttemptRecord],
    now: Optional[datetime] = None,
    cfg: Optional[DifficultyConfig] = None,
) -> List[NotePerformance]:
    """Aggregate attempts into one NotePerformance per pitch class, C..B.

    `now` anchors the staleness factor; pass it explicitly for reproducible
    results (defaults to the current UTC time).
    """
    cfg = cfg or DifficultyConfig()
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    buckets: Dict[int, Dict] = {
        pc: {"total": 0, "correct": 0, "time_ms": 0.0, "last": None} for pc in ALL_PITCH_CLASSES
    }
    for a in attempts:
        b = buckets[a.note]
        b["total"] += 1
        b["correct"] += 1 if a.correct else 0
        b["time_ms"] += a.response_time_seconds * 1000.0
        if b["last"] is None or a.timestamp > b["last"]:
            b["last"] = a.timestamp

    out: List[NotePerformance] = []
    for pc in ALL_PITCH_CLASSES:
        b = buckets[pc]
        total = b["total"]
        if total > 0:
            accuracy: Optional[float] = b["correct"] / total
            avg_ms: Optional[float] = b["time_ms"] / total
        else:
            accuracy = None
            avg_ms = None
        if b["last"] is None:
            days = float(cfg.never_practiced_days)
        else:
            days = max(0.0, (now - b["last"]).total_seconds() / SECONDS_PER_DAY)
        score, needs = score_difficulty(accuracy, avg_ms, total, days, cfg)
        out.append(
            NotePerformance(
                note=pc,
                accuracy=accuracy,
                avg_response_ms=avg_ms,
                total_attempts=total,
                days_since_last_practice=days,
                difficulty_score=score,
                needs_practice=needs,
            )
        )
    return out
