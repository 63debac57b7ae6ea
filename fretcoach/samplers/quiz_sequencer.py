from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple
import math
import random

from pydantic import BaseModel, Field

from ..app.explain import trace as xtrace
from ..policy.difficulty import DifficultyConfig, NotePerformance, analyze_note_performance
from ..results.schema import QUIZ_MODES, AttemptRecord
from ..theory.fretboard import STANDARD_TUNING, StringTuning, strings_with_note
from ..theory.note_utils import ALL_PITCH_CLASSES, note_name
from ..util.randomness import choose_random_note

COMBO = "combo"


# ---- Config for the sequencer ----
class QuizConfig(BaseModel):
    """Selection ratios and pools for adaptive quizzes.

    Priority questions come from the weakest notes, maintenance questions from
    well-known ones, and the remainder is uniform over all 12 pitch classes.
    """

    questions: int = Field(12, ge=1)
    priority_ratio: float = Field(0.7, ge=0, le=1)
    maintenance_ratio: float = Field(0.2, ge=0, le=1)
    priority_pool: int = Field(6, ge=1)
    maintenance_pool: int = Field(3, ge=1)
    maintenance_accuracy: float = Field(0.7, ge=0, le=1)
    maintenance_min_attempts: int = Field(5, ge=0)
    maintenance_mode: str = "find-any"
    min_attempts_for_adaptive: int = Field(10, ge=0)
    find_all_wrong_click: str = "ignore"
    feedback_delay_ms: int = Field(1500, ge=0)


@dataclass(frozen=True)
class TierPolicy:
    name: str
    max_fret: int
    modes: Tuple[str, ...]


BEGINNER = TierPolicy("beginner", 5, ("find-any",))
INTERMEDIATE = TierPolicy("intermediate", 12, ("find-any", "find-on-string"))
ADVANCED = TierPolicy("advanced", 15, ("find-any", "find-all", "find-on-string"))


def skill_tier(total_attempts: int, average_accuracy: Optional[float]) -> TierPolicy:
    acc = 0.0 if average_accuracy is None else average_accuracy
    if total_attempts < 50 or acc < 0.6:
        return BEGINNER
    if total_attempts < 200 or acc < 0.8:
        return INTERMEDIATE
    return ADVANCED


@dataclass(frozen=True)
class QuizQuestion:
    note: int
    mode: str                      # "find-any" | "find-all" | "find-on-string"
    max_fret: int
    target_string: Optional[int] = None
    source: str = "variety"        # "priority" | "maintenance" | "variety"

    def prompt(self) -> str:
        name = note_name(self.note)
        if self.mode == "find-all":
            return f"Find every {name} up to fret {self.max_fret}"
        if self.mode == "find-on-string":
            return f"Find {name} on string {self.target_string}"
        return f"Find any {name}"


@dataclass(frozen=True)
class Recommendation:
    priority_notes: Tuple[int, ...]
    maintenance_notes: Tuple[int, ...]
    tier: TierPolicy
    average_accuracy: Optional[float]   # None = no attempts at all
    total_attempts: int
    reasoning: str

    @property
    def max_fret(self) -> int:
        return self.tier.max_fret


def recommend(performance: Sequence[NotePerformance], cfg: Optional[QuizConfig] = None) -> Recommendation:
    """Pick priority and maintenance notes and the learner's skill tier."""
    cfg = cfg or QuizConfig()
    # sorted() is stable, so ties keep C..B order
    by_difficulty = sorted(performance, key=lambda p: -p.difficulty_score)
    priority = tuple(p.note for p in by_difficulty if p.needs_practice)[: cfg.priority_pool]

    strong = [
        p for p in performance
        if p.accuracy is not None
        and p.accuracy > cfg.maintenance_accuracy
        and p.total_attempts >= cfg.maintenance_min_attempts
        and not p.needs_practice
    ]
    strong.sort(key=lambda p: -(p.accuracy or 0.0))
    maintenance = tuple(p.note for p in strong)[: cfg.maintenance_pool]

    with_data = [p for p in performance if p.has_data]
    avg = sum(p.accuracy or 0.0 for p in with_data) / len(with_data) if with_data else None
    total = sum(p.total_attempts for p in performance)
    tier = skill_tier(total, avg)

    reasoning = "Based on your practice history: "
    if priority:
        reasoning += f"Focus on {', '.join(note_name(n) for n in priority[:3])} (these need more practice). "
    if maintenance:
        reasoning += f"Review {', '.join(note_name(n) for n in maintenance[:2])} to maintain your progress. "
    reasoning += f"Difficulty: {tier.name} ({round((avg or 0.0) * 100)}% avg accuracy)."

    return Recommendation(
        priority_notes=priority,
        maintenance_notes=maintenance,
        tier=tier,
        average_accuracy=avg,
        total_attempts=total,
        reasoning=reasoning,
    )


def _portion(count: int, ratio: float) -> int:
    # round first so 10 * 0.7 is 7, not 7.000000000000001 -> 8
    return math.ceil(round(count * ratio, 9))


def make_question(
    note: int,
    mode: str,
    max_fret: int,
    tuning: StringTuning,
    rng: random.Random,
    source: str = "variety",
) -> QuizQuestion:
    """Build a question, drawing the target string for find-on-string."""
    if mode not in QUIZ_MODES:
        raise ValueError(f"Unknown quiz mode: {mode}")
    target_string = None
    if mode == "find-on-string":
        strings = strings_with_note(tuning, note, max_fret)
        if strings:
            target_string = rng.choice(strings)
        else:
            mode = "find-any"
    return QuizQuestion(note=note, mode=mode, max_fret=max_fret, target_string=target_string, source=source)


def build_quiz_sequence(
    performance: Sequence[NotePerformance],
    count: int,
    tuning: StringTuning = STANDARD_TUNING,
    rng: Optional[random.Random] = None,
    cfg: Optional[QuizConfig] = None,
) -> List[QuizQuestion]:
    """Adaptive sequence: weak notes first in the mix, then shuffled to hide the bias."""
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")
    rng = rng or random.Random()
    cfg = cfg or QuizConfig()
    rec = recommend(performance, cfg)
    tier = rec.tier

    priority_count = min(count, _portion(count, cfg.priority_ratio))
    maintenance_count = min(count - priority_count, _portion(count, cfg.maintenance_ratio))
    variety_count = count - priority_count - maintenance_count

    def tier_mode() -> str:
        return tier.modes[0] if len(tier.modes) == 1 else rng.choice(tier.modes)

    seq: List[QuizQuestion] = []
    for i in range(priority_count):
        if rec.priority_notes:
            note = rec.priority_notes[i % len(rec.priority_notes)]
        else:
            note = choose_random_note(rng)
        seq.append(make_question(note, tier_mode(), tier.max_fret, tuning, rng, "priority"))
    for i in range(maintenance_count):
        if rec.maintenance_notes:
            note = rec.maintenance_notes[i % len(rec.maintenance_notes)]
        else:
            note = choose_random_note(rng)
        seq.append(make_question(note, cfg.maintenance_mode, tier.max_fret, tuning, rng, "maintenance"))
    for _ in range(variety_count):
        seq.append(make_question(choose_random_note(rng), tier_mode(), tier.max_fret, tuning, rng, "variety"))

    rng.shuffle(seq)
    xtrace("tier_selected", {"tier": tier.name, "total_attempts": rec.total_attempts, "avg_accuracy": rec.average_accuracy})
    xtrace("quiz_built", {
        "count": count,
        "priority": priority_count,
        "maintenance": maintenance_count,
        "variety": variety_count,
        "priority_notes": [note_name(n) for n in rec.priority_notes],
    })
    return seq


class _NoteBag:
    """Shuffled 12-note bag; refills when empty and avoids an immediate repeat."""

    def __init__(self, rng: random.Random) -> None:
        self.rng = rng
        self._bag: List[int] = []
        self._last: Optional[int] = None

    def _refill(self) -> None:
        self._bag = list(ALL_PITCH_CLASSES)
        self.rng.shuffle(self._bag)

    def draw(self) -> int:
        if not self._bag:
            self._refill()
            if self._last is not None and self._bag[0] == self._last:
                self._bag[0], self._bag[1] = self._bag[1], self._bag[0]
        note = self._bag.pop(0)
        self._last = note
        return note


def build_random_sequence(
    mode: str,
    count: int,
    tuning: StringTuning = STANDARD_TUNING,
    rng: Optional[random.Random] = None,
    max_fret: int = 15,
) -> List[QuizQuestion]:
    """Cold-start sequence for learners without enough history.

    `mode` is one quiz mode for every question, or "combo" to mix all three.
    """
    if mode != COMBO and mode not in QUIZ_MODES:
        raise ValueError(f"Unknown quiz mode: {mode}")
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")
    rng = rng or random.Random()
    bag = _NoteBag(rng)
    seq: List[QuizQuestion] = []
    for _ in range(count):
        q_mode = rng.choice(QUIZ_MODES) if mode == COMBO else mode
        seq.append(make_question(bag.draw(), q_mode, max_fret, tuning, rng))
    xtrace("quiz_built", {"count": count, "mode": mode, "adaptive": False})
    return seq


class QuizSequencer:
    """Chooses between the adaptive and cold-start sequences for one learner."""

    def __init__(
        self,
        tuning: StringTuning = STANDARD_TUNING,
        cfg: Optional[QuizConfig] = None,
        difficulty_cfg: Optional[DifficultyConfig] = None,
        rng: Optional[random.Random] = None,
        max_fret: int = 15,
    ) -> None:
        self.tuning = tuning
        self.cfg = cfg or QuizConfig()
        self.difficulty_cfg = difficulty_cfg or DifficultyConfig()
        self.rng = rng or random.Random()
        self.max_fret = max_fret

    def performance(self, attempts: Iterable[AttemptRecord], now: Optional[datetime] = None) -> List[NotePerformance]:
        return analyze_note_performance(attempts, now, self.difficulty_cfg)

    def recommendation(self, attempts: Iterable[AttemptRecord], now: Optional[datetime] = None) -> Recommendation:
        return recommend(self.performance(attempts, now), self.cfg)

    def build(
        self,
        attempts: Sequence[AttemptRecord],
        count: Optional[int] = None,
        now: Optional[datetime] = None,
        fallback_mode: str = COMBO,
    ) -> List[QuizQuestion]:
        n = self.cfg.questions if count is None else int(count)
        if len(attempts) >= self.cfg.min_attempts_for_adaptive:
            return build_quiz_sequence(self.performance(attempts, now), n, self.tuning, self.rng, self.cfg)
        return build_random_sequence(fallback_mode, n, self.tuning, self.rng, self.max_fret)
