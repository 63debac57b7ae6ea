from __future__ import annotations

"""Pydantic models for the practice records the core consumes.

Records are produced and stored by the surrounding app; here they are only
validated and read. All models are frozen.
"""

import datetime as dt
from typing import FrozenSet, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..theory.caged import SHAPE_IDS
from ..theory.note_utils import pc_of

QUIZ_MODES = ("find-any", "find-all", "find-on-string")
QuizMode = Literal["find-any", "find-all", "find-on-string"]


def _ensure_utc(v: dt.datetime) -> dt.datetime:
    if v.tzinfo is None:
        return v.replace(tzinfo=dt.timezone.utc)
    return v.astimezone(dt.timezone.utc)


def _note_value(v):
    # ints pass through so the 0..11 bound rejects them instead of wrapping
    if isinstance(v, int) and not isinstance(v, bool):
        return v
    return pc_of(v)


def _shape_id(v: str) -> str:
    s = str(v).upper()
    if s not in SHAPE_IDS:
        raise ValueError(f"unknown CAGED shape: {v}")
    return s


class AttemptRecord(BaseModel):
    """One click in the note finder quiz."""

    model_config = ConfigDict(frozen=True)

    note: int = Field(ge=0, le=11)
    correct: bool
    response_time_seconds: float = Field(ge=0)
    timestamp: dt.datetime
    string_index: Optional[int] = Field(default=None, ge=0, le=5)
    fret: Optional[int] = Field(default=None, ge=0)
    mode: Optional[QuizMode] = None

    @field_validator("note", mode="before")
    @classmethod
    def _note_from_name(cls, v):
        return _note_value(v)

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, v: dt.datetime) -> dt.datetime:
        return _ensure_utc(v)


class CagedSessionRecord(BaseModel):
    """A timed run through one or more CAGED shapes with a self-rating."""

    model_config = ConfigDict(frozen=True)

    shapes: FrozenSet[str]
    self_accuracy: int = Field(ge=1, le=5)
    elapsed_seconds: float = Field(ge=0)
    score: int = Field(ge=0, le=100)
    date: dt.date

    @field_validator("shapes", mode="before")
    @classmethod
    def _known_shapes(cls, v):
        if isinstance(v, str):
            v = [v]
        return frozenset(_shape_id(s) for s in v)


class ShapeNoteObservation(BaseModel):
    """A single graded (shape, root note) quiz answer, used by the heatmap."""

    model_config = ConfigDict(frozen=True)

    shape: str
    note: int = Field(ge=0, le=11)
    correct: bool

    @field_validator("shape", mode="before")
    @classmethod
    def _known_shape(cls, v):
        return _shape_id(v)

    @field_validator("note", mode="before")
    @classmethod
    def _note_from_name(cls, v):
        return _note_value(v)
