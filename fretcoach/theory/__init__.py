"""Fretboard theory layer: pitch arithmetic and CAGED shape transposition."""

from .fretboard import STANDARD_TUNING, FretPosition, StringTuning  # noqa: F401
from .caged import CagedShapeDefinition, ShapeBank, transpose_shape  # noqa: F401
