"""fretcoach package initialization.

Fretboard theory (pitch classes, CAGED shapes) and the adaptive note finder
practice engine. The pure theory helpers are re-exported for convenience:
`from fretcoach import STANDARD_TUNING, note_at`.
"""

from __future__ import annotations

from .theory.fretboard import STANDARD_TUNING, FretPosition, StringTuning, note_at, positions_of
from .theory.caged import ShapeBank, transpose_shape

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "STANDARD_TUNING",
    "FretPosition",
    "StringTuning",
    "note_at",
    "positions_of",
    "ShapeBank",
    "transpose_shape",
]
