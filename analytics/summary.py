from __future__ import annotations

"""Per-shape / per-note performance rollups and the overall practice summary."""

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence

import pandas as pd

from fretcoach.results.schema import CagedSessionRecord
from fretcoach.theory.caged import SHAPE_IDS
from fretcoach.theory.note_utils import ALL_PITCH_CLASSES

from .heatmap import observations_frame


@dataclass(frozen=True)
class GroupPerformance:
    key: Any                      # shape id or pitch class
    attempts: int
    correct: int
    accuracy: Optional[float]     # None when attempts == 0


@dataclass(frozen=True)
class PerformanceSummary:
    session_count: int
    average_score: Optional[float]
    average_elapsed_seconds: Optional[float]
    best_score: Optional[int]
    best_elapsed_seconds: Optional[float]
    strongest_shape: Optional[str]
    weakest_shape: Optional[str]
    strongest_note: Optional[int]
    weakest_note: Optional[int]


def _rollup(df: pd.DataFrame, column: str, keys: Sequence[Any]) -> List[GroupPerformance]:
    if df.empty:
        counts = pd.DataFrame({"attempts": 0, "correct": 0}, index=pd.Index(list(keys)), dtype="int64")
    else:
        counts = (
            df.groupby(column)["correct"]
            .agg(attempts="size", correct="sum")
            .reindex(list(keys), fill_value=0)
            .astype("int64")
        )
    out: List[GroupPerformance] = []
    # counts rows follow `keys`; zip keeps plain python keys instead of numpy scalars
    for key, attempts, correct in zip(keys, counts["attempts"].tolist(), counts["correct"].tolist()):
        out.append(GroupPerformance(key, attempts, correct, correct / attempts if attempts else None))
    return out


def shape_performance(observations: Iterable[Any]) -> List[GroupPerformance]:
    """One entry per CAGED shape, in C A G E D order."""
    return _rollup(observations_frame(observations), "shape", SHAPE_IDS)


def note_performance(observations: Iterable[Any]) -> List[GroupPerformance]:
    """One entry per pitch class, C..B."""
    return _rollup(observations_frame(observations), "note", ALL_PITCH_CLASSES)


def _extremes(groups: Sequence[GroupPerformance]):
    with_data = [g for g in groups if g.accuracy is not None]
    if not with_data:
        return None, None
    # max/min return the first of equal items, so ties go to canonical order
    strongest = max(with_data, key=lambda g: g.accuracy)
    weakest = min(with_data, key=lambda g: g.accuracy)
    return strongest.key, weakest.key


def _session(rec: Any) -> CagedSessionRecord:
    if isinstance(rec, CagedSessionRecord):
        return rec
    return CagedSessionRecord.model_validate(rec)


def performance_summary(
    observations: Iterable[Any],
    sessions: Iterable[Any] = (),
) -> PerformanceSummary:
    df = observations_frame(observations)
    strongest_shape, weakest_shape = _extremes(_rollup(df, "shape", SHAPE_IDS))
    strongest_note, weakest_note = _extremes(_rollup(df, "note", ALL_PITCH_CLASSES))

    records = [_session(s) for s in sessions]
    scores = [r.score for r in records]
    times = [r.elapsed_seconds for r in records]
    return PerformanceSummary(
        session_count=len(records),
        average_score=sum(scores) / len(scores) if records else None,
        average_elapsed_seconds=sum(times) / len(times) if records else None,
        best_score=max(scores) if records else None,
        best_elapsed_seconds=min(times) if records else None,
        strongest_shape=strongest_shape,
        weakest_shape=weakest_shape,
        strongest_note=strongest_note,
        weakest_note=weakest_note,
    )
