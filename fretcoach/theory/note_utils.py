# fretcoach/theory/note_utils.py
from __future__ import annotations
from typing import Dict, List

PITCH_CLASS_NAMES_SHARP = ["C","C#","D","D#","E","F","F#","G","G#","A","A#","B"]
NAME_TO_PC: Dict[str, int] = {
    "C":0,"B#":0, "C#":1,"Db":1, "D":2,"D#":3,"Eb":3, "E":4,"Fb":4,
    "F":5,"E#":5, "F#":6,"Gb":6, "G":7,"G#":8,"Ab":8, "A":9,"A#":10,"Bb":10, "B":11,"Cb":11
}

ALL_PITCH_CLASSES: List[int] = list(range(12))


def pc_of(note: int | str) -> int:
    """Resolve a note name ('F#', 'Bb') or pitch class int to 0..11."""
    if isinstance(note, bool):
        raise ValueError(f"Invalid note: {note!r}")
    if isinstance(note, int):
        return note % 12
    name = str(note).strip()
    if name[:1].islower():
        name = name[:1].upper() + name[1:]
    if name not in NAME_TO_PC:
        raise ValueError(f"Unsupported note name: {note}")
    return NAME_TO_PC[name]


def note_name(pc: int) -> str:
    return PITCH_CLASS_NAMES_SHARP[pc % 12]

