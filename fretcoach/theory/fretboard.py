from __future__ import annotations

"""Fretboard pitch arithmetic over a six-string tuning.

String index 0 is the highest-pitched string (tablature order). All note
values are pitch classes 0..11 with C = 0.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from .note_utils import note_name, pc_of

STRING_COUNT = 6


@dataclass(frozen=True)
class StringTuning:
    """Open-string pitch classes, high string first."""

    pitches: Tuple[int, ...]

    def __post_init__(self) -> None:
        if len(self.pitches) != STRING_COUNT:
            raise ValueError(
                f"A tuning needs exactly {STRING_COUNT} strings, got {len(self.pitches)}"
            )
        object.__setattr__(self, "pitches", tuple(pc_of(p) for p in self.pitches))

    @classmethod
    def from_names(cls, names: Sequence[str | int]) -> "StringTuning":
        return cls(tuple(pc_of(n) for n in names))

    def __getitem__(self, string_index: int) -> int:
        return self.pitches[string_index]

    def __len__(self) -> int:
        return STRING_COUNT

    def names(self) -> List[str]:
        return [note_name(p) for p in self.pitches]


STANDARD_TUNING = StringTuning.from_names(["E", "B", "G", "D", "A", "E"])


@dataclass(frozen=True)
class FretPosition:
    string_index: int
    fret: int

    def __post_init__(self) -> None:
        if self.fret < 0:
            raise ValueError(f"Fret must be >= 0, got {self.fret}")

    def __str__(self) -> str:
        return f"S{self.string_index}F{self.fret}"


def _check_string(string_index: int) -> None:
    if not 0 <= string_index < STRING_COUNT:
        raise ValueError(f"string_index must be 0..{STRING_COUNT - 1}, got {string_index}")


def note_at(tuning: StringTuning, string_index: int, fret: int) -> int:
    """Pitch class sounded at (string, fret)."""
    _check_string(string_index)
    if fret < 0:
        raise ValueError(f"Fret must be >= 0, got {fret}")
    return (tuning[string_index] + fret) % 12


def positions_of(tuning: StringTuning, note: int | str, max_fret: int) -> List[FretPosition]:
    """All positions with fret in [0, max_fret] that sound `note`.

    Ordered by string, then fret. Every string yields at least one position
    once max_fret reaches 11.
    """
    target = pc_of(note)
    out: List[FretPosition] = []
    for s in range(STRING_COUNT):
        fret = (target - tuning[s]) % 12
        while fret <= max_fret:
            out.append(FretPosition(s, fret))
            fret += 12
    return out


def strings_with_note(tuning: StringTuning, note: int | str, max_fret: int) -> List[int]:
    """String indices carrying `note` at some fret <= max_fret."""
    seen: List[int] = []
    for pos in positions_of(tuning, note, max_fret):
        if pos.string_index not in seen:
            seen.append(pos.string_index)
    return seen


def find_fret_for_pitch_on_string(
    tuning: StringTuning, string_index: int, note: int | str, min_fret: int = 0
) -> int:
    """Lowest fret >= min_fret on the string that sounds `note`."""
    _check_string(string_index)
    if min_fret < 0:
        raise ValueError(f"min_fret must be >= 0, got {min_fret}")
    fret = (pc_of(note) - tuning[string_index]) % 12
    while fret < min_fret:
        fret += 12
    return fret


def describe(positions: Iterable[FretPosition], tuning: StringTuning) -> List[str]:
    """Human-readable labels like 'S4F3=C' for CLI output."""
    return [f"{p}={note_name(note_at(tuning, p.string_index, p.fret))}" for p in positions]
