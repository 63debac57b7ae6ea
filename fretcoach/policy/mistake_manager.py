from __future__ import annotations

"""Answer checking for note finder questions and find-all wrong-click policies."""

from dataclasses import dataclass
from typing import Any, FrozenSet, Literal, Protocol, Tuple

from ..theory.fretboard import StringTuning, note_at, positions_of
from ..theory.note_utils import note_name

Found = FrozenSet[Tuple[int, int]]


@dataclass(frozen=True)
class Decision:
    action: Literal["next", "retry"]
    correct: bool
    found: Found = frozenset()
    feedback: str = ""


class MistakeManager(Protocol):
    def on_wrong_click(self, found: Found) -> Found: ...


class KeepProgress:
    """Wrong click in find-all: positions already found stay found."""

    def on_wrong_click(self, found: Found) -> Found:
        return found


class ResetProgress:
    """Wrong click in find-all: start the search over."""

    def on_wrong_click(self, found: Found) -> Found:
        return frozenset()


def make_mistake_manager(name: str) -> MistakeManager:
    if name == "ignore":
        return KeepProgress()
    if name == "reset":
        return ResetProgress()
    raise ValueError(f"Unknown find-all wrong click policy: {name}")


def required_positions(question: Any, tuning: StringTuning) -> Found:
    return frozenset((p.string_index, p.fret) for p in positions_of(tuning, question.note, question.max_fret))


def check_answer(
    question: Any,
    string_index: int,
    fret: int,
    tuning: StringTuning,
    found: Found = frozenset(),
    manager: MistakeManager | None = None,
) -> Decision:
    """Grade one click against a question (note, mode, target_string, max_fret)."""
    clicked = note_at(tuning, string_index, fret)
    hit = clicked == question.note
    target = note_name(question.note)

    if question.mode == "find-any":
        return Decision(action="next", correct=hit, feedback="" if hit else f"That was {note_name(clicked)}, not {target}")

    if question.mode == "find-on-string":
        ok = hit and string_index == question.target_string
        if ok:
            fb = ""
        elif hit:
            fb = f"Right note, wrong string (wanted string {question.target_string})"
        else:
            fb = f"That was {note_name(clicked)}, not {target}"
        return Decision(action="next", correct=ok, feedback=fb)

    if question.mode == "find-all":
        required = required_positions(question, tuning)
        if hit:
            # a matching note above max_fret is right but does not count toward the set
            now_found = found | ({(string_index, fret)} & required)
            done = required <= now_found
            return Decision(
                action="next" if done else "retry",
                correct=True,
                found=now_found,
                feedback=f"{len(now_found)}/{len(required)} found",
            )
        manager = manager or KeepProgress()
        return Decision(
            action="retry",
            correct=False,
            found=manager.on_wrong_click(found),
            feedback=f"That was {note_name(clicked)}, not {target}",
        )

    raise ValueError(f"Unknown quiz mode: {question.mode}")
