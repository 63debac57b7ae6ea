from __future__ import annotations

"""Shape × note heatmap aggregation over graded CAGED quiz answers."""

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

import numpy as np
import pandas as pd

from fretcoach.app.explain import trace as xtrace
from fretcoach.results.schema import ShapeNoteObservation
from fretcoach.theory.caged import SHAPE_IDS
from fretcoach.theory.note_utils import ALL_PITCH_CLASSES, note_name

from .config import AnalyticsConfig

NO_DATA = "no_data"
BUCKETS = ("poor", "fair", "good", "excellent", NO_DATA)


@dataclass(frozen=True)
class HeatmapCell:
    shape: str
    note: int
    attempts: int
    correct: int
    accuracy: Optional[float]   # None when attempts == 0
    color_bucket: str


def color_bucket(accuracy: Optional[float], attempts: int, cfg: Optional[AnalyticsConfig] = None) -> str:
    cfg = cfg or AnalyticsConfig()
    if attempts <= 0 or accuracy is None:
        return NO_DATA
    if accuracy < cfg.poor_below:
        return "poor"
    if accuracy < cfg.fair_below:
        return "fair"
    if accuracy < cfg.good_below:
        return "good"
    return "excellent"


def _coerce(obs: Any) -> ShapeNoteObservation:
    if isinstance(obs, ShapeNoteObservation):
        return obs
    if isinstance(obs, (tuple, list)):
        shape, note, correct = obs
        return ShapeNoteObservation(shape=shape, note=note, correct=correct)
    return ShapeNoteObservation.model_validate(obs)


def observations_frame(observations: Iterable[Any]) -> pd.DataFrame:
    """Validate observations into a (shape, note, correct) DataFrame.

    Accepts ShapeNoteObservation, dicts, or (shape, note, correct) tuples.
    """
    rows = [_coerce(o).model_dump() for o in observations]
    df = pd.DataFrame(rows, columns=["shape", "note", "correct"])
    return df.astype({"shape": str, "note": "int64", "correct": "int64"})


def _full_index() -> pd.MultiIndex:
    return pd.MultiIndex.from_product([list(SHAPE_IDS), ALL_PITCH_CLASSES], names=["shape", "note"])


def aggregate_counts(df: pd.DataFrame) -> pd.DataFrame:
    """Attempts and correct counts for every (shape, note), zero-filled to 5 × 12 rows."""
    index = _full_index()
    if df.empty:
        return pd.DataFrame({"attempts": 0, "correct": 0}, index=index, dtype="int64")
    g = df.groupby(["shape", "note"])["correct"].agg(attempts="size", correct="sum")
    return g.reindex(index, fill_value=0).astype("int64")


def build_heatmap(observations: Iterable[Any], cfg: Optional[AnalyticsConfig] = None) -> List[HeatmapCell]:
    """Always 60 cells, shapes in C A G E D order, notes C..B within each shape."""
    cfg = cfg or AnalyticsConfig()
    counts = aggregate_counts(observations_frame(observations))
    cells: List[HeatmapCell] = []
    for (shape, note), row in counts.iterrows():
        attempts = int(row["attempts"])
        correct = int(row["correct"])
        accuracy = correct / attempts if attempts > 0 else None
        cells.append(
            HeatmapCell(
                shape=str(shape),
                note=int(note),
                attempts=attempts,
                correct=correct,
                accuracy=accuracy,
                color_bucket=color_bucket(accuracy, attempts, cfg),
            )
        )
    xtrace("heatmap_built", {"cells": len(cells), "attempts": int(counts["attempts"].sum())})
    return cells


def heatmap_frame(cells: Iterable[HeatmapCell]) -> pd.DataFrame:
    """5 × 12 accuracy table (rows = shapes, columns = note names), pd.NA where no data."""
    by_key = {(c.shape, c.note): c.accuracy for c in cells}
    matrix = [[by_key.get((s, pc)) for pc in ALL_PITCH_CLASSES] for s in SHAPE_IDS]
    frame = pd.DataFrame(matrix, index=list(SHAPE_IDS), columns=[note_name(pc) for pc in ALL_PITCH_CLASSES])
    return frame.astype("Float64")


def attempts_matrix(cells: Iterable[HeatmapCell]) -> np.ndarray:
    """5 × 12 integer attempt counts in heatmap order."""
    out = np.zeros((len(SHAPE_IDS), len(ALL_PITCH_CLASSES)), dtype=np.int64)
    for c in cells:
        out[SHAPE_IDS.index(c.shape), c.note] = c.attempts
    return out
