from __future__ import annotations

"""Session Manager: runs a note finder quiz and hands attempts to a sink.

The quiz itself is the pure state machine in drills.note_finder; this class
adds the clock (response times, feedback delay) and attempt emission. It is
front-end agnostic: a GUI or the CLI calls click/advance as the user acts.
"""

import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..drills import note_finder as nf
from ..policy.difficulty import DifficultyConfig
from ..policy.mistake_manager import make_mistake_manager
from ..results.schema import AttemptRecord
from ..samplers.quiz_sequencer import QuizConfig, QuizQuestion, QuizSequencer
from ..stats.stats import format_summary
from ..theory.fretboard import STANDARD_TUNING, StringTuning
from .explain import trace as xtrace

AttemptSink = Callable[[AttemptRecord], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PracticeContext:
    user_id: Optional[str]
    tuning: StringTuning = STANDARD_TUNING
    started_at: datetime = field(default_factory=_utcnow)
    config: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    @property
    def quiz_config(self) -> QuizConfig:
        return QuizConfig(**self.config.get("quiz", {}))

    @property
    def difficulty_config(self) -> DifficultyConfig:
        return DifficultyConfig(**self.config.get("difficulty", {}))

    @property
    def max_fret(self) -> int:
        return int(self.config.get("fretboard", {}).get("max_fret", 15))


class NoteFinderSession:
    def __init__(
        self,
        ctx: PracticeContext,
        questions: Sequence[QuizQuestion],
        sink: Optional[AttemptSink] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.ctx = ctx
        self.sink = sink
        self.clock = clock or _utcnow
        qcfg = ctx.quiz_config
        self.manager = make_mistake_manager(qcfg.find_all_wrong_click)
        self.feedback_delay_ms = qcfg.feedback_delay_ms
        self.state = nf.new_quiz(questions)
        self.attempts: List[AttemptRecord] = []
        self._asked_at: Optional[datetime] = None

    @classmethod
    def from_history(
        cls,
        ctx: PracticeContext,
        history: Sequence[AttemptRecord],
        count: Optional[int] = None,
        rng: Optional[random.Random] = None,
        sink: Optional[AttemptSink] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "NoteFinderSession":
        """Build the question sequence from past attempts (adaptive or cold start)."""
        sequencer = QuizSequencer(
            tuning=ctx.tuning,
            cfg=ctx.quiz_config,
            difficulty_cfg=ctx.difficulty_config,
            rng=rng,
            max_fret=ctx.max_fret,
        )
        now = (clock or _utcnow)()
        return cls(ctx, sequencer.build(history, count, now=now), sink=sink, clock=clock)

    @property
    def phase(self) -> str:
        return self.state.phase

    @property
    def current(self) -> Optional[QuizQuestion]:
        return self.state.current

    def start(self) -> None:
        self.state = nf.start(self.state)
        self._asked_at = self.clock()

    def click(self, string_index: int, fret: int) -> nf.ClickOutcome:
        """Grade a click, emit its AttemptRecord and enter the feedback phase.

        The caller shows the feedback for `feedback_delay_ms`, then calls advance().
        """
        question = self.state.current
        self.state, outcome = nf.click(self.state, string_index, fret, self.ctx.tuning, self.manager)
        now = self.clock()
        elapsed = (now - self._asked_at).total_seconds() if self._asked_at else 0.0
        record = AttemptRecord(
            note=question.note,
            correct=outcome.correct,
            response_time_seconds=max(0.0, elapsed),
            timestamp=now,
            string_index=string_index,
            fret=fret,
            mode=question.mode,
        )
        self.attempts.append(record)
        xtrace("click_graded", {
            "user": self.ctx.user_id,
            "note": question.note,
            "mode": question.mode,
            "string": string_index,
            "fret": fret,
            "correct": outcome.correct,
            "ends_question": outcome.ends_question,
        })
        self._emit(record)
        return outcome

    def advance(self) -> None:
        self.state = nf.advance(self.state)
        if self.state.phase == nf.AWAITING_ANSWER:
            self._asked_at = self.clock()

    def give_up(self) -> None:
        self.state = nf.give_up(self.state)
        self._asked_at = self.clock()

    def abandon(self) -> None:
        """Stop early. Attempts already handed to the sink are kept."""
        self.state = nf.abandon(self.state)

    def summary(self) -> Dict[int, Dict[str, int]]:
        return nf.quiz_summary(self.state)

    def summary_text(self) -> str:
        return format_summary(self.summary())

    def _emit(self, record: AttemptRecord) -> None:
        if self.sink is None:
            return
        try:
            self.sink(record)
        except Exception as e:
            # Play continues; the record is still in self.attempts
            xtrace("attempt_sink_failed", {"error": repr(e), "note": record.note})
