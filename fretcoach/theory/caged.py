from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import random
import yaml

from .fretboard import STANDARD_TUNING, StringTuning, find_fret_for_pitch_on_string, note_at
from .note_utils import note_name, pc_of

SHAPE_IDS: Tuple[str, ...] = ("C", "A", "G", "E", "D")

ROOT = "R"
THIRD = "3"
FIFTH = "5"
INTERVAL_TYPES = {ROOT: "Root", THIRD: "Third", FIFTH: "Fifth"}

DEFAULT_MAX_FRET = 15


@dataclass(frozen=True)
class ShapeInterval:
    string_index: int
    reference_fret: int          # fret in the template's natural (open) position
    interval_type: str           # "R" | "3" | "5"


@dataclass(frozen=True)
class ShapePosition:
    """A concrete fretted chord tone after transposition."""

    string_index: int
    fret: int
    interval_type: str
    note: int

    @property
    def note_name(self) -> str:
        return note_name(self.note)


@dataclass(frozen=True)
class CagedShapeDefinition:
    """One CAGED template: fixed finger geometry anchored on a root string."""

    shape_id: str
    root_string: int
    intervals: Tuple[ShapeInterval, ...]

    def __post_init__(self) -> None:
        if self.shape_id not in SHAPE_IDS:
            raise ValueError(f"Unknown CAGED shape id: {self.shape_id}")
        for iv in self.intervals:
            if iv.interval_type not in INTERVAL_TYPES:
                raise ValueError(
                    f"Shape {self.shape_id}: unknown interval type {iv.interval_type!r}"
                )
            if iv.reference_fret < 0:
                raise ValueError(f"Shape {self.shape_id}: negative reference fret")
        anchors = [
            iv for iv in self.intervals
            if iv.interval_type == ROOT and iv.string_index == self.root_string
        ]
        if len(anchors) != 1:
            raise ValueError(
                f"Shape {self.shape_id} must have exactly one root on string "
                f"{self.root_string}, found {len(anchors)}"
            )

    @property
    def anchor(self) -> ShapeInterval:
        return next(
            iv for iv in self.intervals
            if iv.interval_type == ROOT and iv.string_index == self.root_string
        )


def root_fret_for(
    shape: CagedShapeDefinition, desired_root: int | str, tuning: StringTuning = STANDARD_TUNING
) -> int:
    """Fret of the anchor root after moving the shape to `desired_root`.

    Always within [reference_fret, reference_fret + 12).
    """
    anchor = shape.anchor
    root_fret = find_fret_for_pitch_on_string(tuning, anchor.string_index, desired_root, 0)
    while root_fret < anchor.reference_fret:
        root_fret += 12
    return root_fret


def transpose_shape(
    shape: CagedShapeDefinition,
    desired_root: int | str,
    tuning: StringTuning = STANDARD_TUNING,
    max_fret: int = DEFAULT_MAX_FRET,
) -> List[ShapePosition]:
    """Slide the template up the neck so its anchor root sounds `desired_root`.

    Intervals that would land above `max_fret` are dropped.
    """
    fret_offset = root_fret_for(shape, desired_root, tuning) - shape.anchor.reference_fret
    out: List[ShapePosition] = []
    for iv in shape.intervals:
        final_fret = iv.reference_fret + fret_offset
        if final_fret > max_fret:
            continue
        out.append(
            ShapePosition(
                string_index=iv.string_index,
                fret=final_fret,
                interval_type=iv.interval_type,
                note=note_at(tuning, iv.string_index, final_fret),
            )
        )
    return out


class ShapeBank:
    """Loads CAGED templates from YAML and serves them by id (C, A, G, E, D order)."""

    def __init__(self, path: Optional[str] = None):
        if path is None:
            path = str(Path(__file__).resolve().parents[1] / "resources" / "shapes" / "caged_standard.yml")
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        self.defaults: Dict[str, Any] = data.get("defaults", {})
        self._shapes: Dict[str, CagedShapeDefinition] = {}
        for entry in data.get("shapes") or []:
            shape = _parse_shape(entry)
            if shape.shape_id in self._shapes:
                raise ValueError(f"Duplicate shape id in {path}: {shape.shape_id}")
            self._shapes[shape.shape_id] = shape
        missing = [s for s in SHAPE_IDS if s not in self._shapes]
        if missing:
            raise ValueError(f"Shape bank {path} is missing shapes: {', '.join(missing)}")

    @property
    def max_fret(self) -> int:
        return int(self.defaults.get("max_fret", DEFAULT_MAX_FRET))

    def get(self, shape_id: str) -> CagedShapeDefinition:
        try:
            return self._shapes[shape_id.upper()]
        except KeyError:
            raise KeyError(f"Unknown CAGED shape id: {shape_id}") from None

    def shapes(self) -> List[CagedShapeDefinition]:
        return [self._shapes[s] for s in SHAPE_IDS]

    def transpose(
        self,
        shape_id: str,
        desired_root: int | str,
        tuning: StringTuning = STANDARD_TUNING,
        max_fret: Optional[int] = None,
    ) -> List[ShapePosition]:
        limit = self.max_fret if max_fret is None else int(max_fret)
        return transpose_shape(self.get(shape_id), desired_root, tuning, limit)


def _parse_shape(entry: Dict[str, Any]) -> CagedShapeDefinition:
    intervals = tuple(
        ShapeInterval(
            string_index=int(iv["string"]),
            reference_fret=int(iv["fret"]),
            interval_type=str(iv["type"]).upper(),
        )
        for iv in entry.get("intervals") or []
    )
    return CagedShapeDefinition(
        shape_id=str(entry["id"]).upper(),
        root_string=int(entry["root_string"]),
        intervals=intervals,
    )


@dataclass(frozen=True)
class ShapePrompt:
    root: int
    shape_id: str


def random_shape_prompt(rng: Optional[random.Random] = None) -> ShapePrompt:
    """Random (root, shape) pair for the explorer's identify-the-shape quiz."""
    rng = rng or random.Random()
    return ShapePrompt(root=rng.randrange(12), shape_id=rng.choice(SHAPE_IDS))


def shape_chord_tones(root: int | str) -> Dict[str, int]:
    """Pitch classes of the major triad the shapes spell, keyed by interval type."""
    r = pc_of(root)
    return {ROOT: r, THIRD: (r + 4) % 12, FIFTH: (r + 7) % 12}
