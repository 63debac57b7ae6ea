from __future__ import annotations

"""Note finder quiz as an explicit state machine.

Phases: idle -> awaiting_answer <-> showing_feedback -> complete. Every
transition is a pure function returning a new QuizState; the caller owns
timing (the feedback delay) and persistence.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Sequence, Tuple

from ..policy.mistake_manager import Found, MistakeManager, check_answer, required_positions
from ..samplers.quiz_sequencer import QuizQuestion
from ..theory.fretboard import StringTuning, note_at

IDLE = "idle"
AWAITING_ANSWER = "awaiting_answer"
SHOWING_FEEDBACK = "showing_feedback"
COMPLETE = "complete"


@dataclass(frozen=True)
class ClickOutcome:
    question_index: int
    string_index: int
    fret: int
    clicked_note: int
    expected_note: int
    correct: bool
    ends_question: bool
    found_count: int = 0
    required_count: int = 0
    feedback: str = ""


@dataclass(frozen=True)
class QuizState:
    phase: str
    questions: Tuple[QuizQuestion, ...]
    index: int = 0
    found: Found = frozenset()
    last_outcome: Optional[ClickOutcome] = None
    history: Tuple[ClickOutcome, ...] = field(default_factory=tuple)

    @property
    def current(self) -> Optional[QuizQuestion]:
        if self.phase in (AWAITING_ANSWER, SHOWING_FEEDBACK) and self.index < len(self.questions):
            return self.questions[self.index]
        return None

    @property
    def completed_questions(self) -> int:
        return sum(1 for o in self.history if o.ends_question)


def _require(state: QuizState, phase: str, action: str) -> None:
    if state.phase != phase:
        raise ValueError(f"Cannot {action} while quiz is {state.phase}")


def new_quiz(questions: Sequence[QuizQuestion]) -> QuizState:
    return QuizState(phase=IDLE, questions=tuple(questions))


def start(state: QuizState) -> QuizState:
    _require(state, IDLE, "start")
    if not state.questions:
        return replace(state, phase=COMPLETE)
    return replace(state, phase=AWAITING_ANSWER, index=0, found=frozenset())


def click(
    state: QuizState,
    string_index: int,
    fret: int,
    tuning: StringTuning,
    manager: Optional[MistakeManager] = None,
) -> Tuple[QuizState, ClickOutcome]:
    """Grade a fretboard click and move to showing_feedback."""
    _require(state, AWAITING_ANSWER, "answer")
    question = state.questions[state.index]
    decision = check_answer(question, string_index, fret, tuning, state.found, manager)
    required = len(required_positions(question, tuning)) if question.mode == "find-all" else 0
    outcome = ClickOutcome(
        question_index=state.index,
        string_index=string_index,
        fret=fret,
        clicked_note=note_at(tuning, string_index, fret),
        expected_note=question.note,
        correct=decision.correct,
        ends_question=decision.action == "next",
        found_count=len(decision.found),
        required_count=required,
        feedback=decision.feedback,
    )
    new_state = replace(
        state,
        phase=SHOWING_FEEDBACK,
        found=decision.found,
        last_outcome=outcome,
        history=state.history + (outcome,),
    )
    return new_state, outcome


def advance(state: QuizState) -> QuizState:
    """Leave the feedback phase: next question, same question, or complete."""
    _require(state, SHOWING_FEEDBACK, "advance")
    outcome = state.last_outcome
    if outcome is None or not outcome.ends_question:
        return replace(state, phase=AWAITING_ANSWER)
    nxt = state.index + 1
    if nxt >= len(state.questions):
        return replace(state, phase=COMPLETE, index=nxt, found=frozenset())
    return replace(state, phase=AWAITING_ANSWER, index=nxt, found=frozenset())


def give_up(state: QuizState) -> QuizState:
    """Skip the current question without answering (the find-all 'give up' button)."""
    _require(state, AWAITING_ANSWER, "give up")
    nxt = state.index + 1
    phase = COMPLETE if nxt >= len(state.questions) else AWAITING_ANSWER
    return replace(state, phase=phase, index=nxt, found=frozenset())


def abandon(state: QuizState) -> QuizState:
    """Stop at any point; completed clicks stay in history."""
    return replace(state, phase=COMPLETE)


def quiz_summary(state: QuizState) -> Dict[int, Dict[str, int]]:
    """Per target note: correct and incorrect click counts."""
    per: Dict[int, Dict[str, int]] = {}
    for o in state.history:
        bucket = per.setdefault(o.expected_note, {"correct": 0, "incorrect": 0})
        bucket["correct" if o.correct else "incorrect"] += 1
    return per
