import random
import unittest
from collections import Counter
from datetime import datetime, timezone

from fretcoach.policy.difficulty import analyze_note_performance
from fretcoach.results.schema import QUIZ_MODES, AttemptRecord
from fretcoach.samplers.quiz_sequencer import (
    ADVANCED,
    BEGINNER,
    COMBO,
    INTERMEDIATE,
    QuizConfig,
    QuizSequencer,
    build_quiz_sequence,
    build_random_sequence,
    make_question,
    recommend,
    skill_tier,
)
from fretcoach.theory.fretboard import STANDARD_TUNING, positions_of

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def history_with_weak_c(per_note: int = 10):
    """C always missed and slow; every other note right and fast."""
    out = []
    for note in range(12):
        for _ in range(per_note):
            if note == 0:
                out.append(AttemptRecord(note=0, correct=False, response_time_seconds=8.0, timestamp=NOW))
            else:
                out.append(AttemptRecord(note=note, correct=True, response_time_seconds=1.0, timestamp=NOW))
    return out


class TierTests(unittest.TestCase):
    def test_thresholds(self) -> None:
        self.assertIs(skill_tier(0, None), BEGINNER)
        self.assertIs(skill_tier(49, 1.0), BEGINNER)
        self.assertIs(skill_tier(300, 0.5), BEGINNER)
        self.assertIs(skill_tier(100, 0.9), INTERMEDIATE)
        self.assertIs(skill_tier(300, 0.7), INTERMEDIATE)
        self.assertIs(skill_tier(200, 0.8), ADVANCED)

    def test_tier_limits(self) -> None:
        self.assertEqual((BEGINNER.max_fret, BEGINNER.modes), (5, ("find-any",)))
        self.assertEqual(INTERMEDIATE.max_fret, 12)
        self.assertEqual(set(ADVANCED.modes), set(QUIZ_MODES))


class RecommendTests(unittest.TestCase):
    def test_weak_note_prioritised_and_strong_notes_maintained(self) -> None:
        rec = recommend(analyze_note_performance(history_with_weak_c(), now=NOW))
        self.assertEqual(rec.priority_notes, (0,))
        self.assertEqual(rec.maintenance_notes, (1, 2, 3))
        self.assertIs(rec.tier, INTERMEDIATE)
        self.assertEqual(rec.total_attempts, 120)
        self.assertAlmostEqual(rec.average_accuracy, 11 / 12)
        self.assertIn("Focus on C", rec.reasoning)

    def test_no_history(self) -> None:
        rec = recommend(analyze_note_performance([], now=NOW))
        self.assertEqual(len(rec.priority_notes), 6)
        self.assertEqual(rec.maintenance_notes, ())
        self.assertIsNone(rec.average_accuracy)
        self.assertIs(rec.tier, BEGINNER)


class BuildQuizSequenceTests(unittest.TestCase):
    def test_length_always_matches_count(self) -> None:
        perf = analyze_note_performance(history_with_weak_c(), now=NOW)
        for count in range(0, 26):
            seq = build_quiz_sequence(perf, count, STANDARD_TUNING, random.Random(count))
            self.assertEqual(len(seq), count)

    def test_priority_maintenance_variety_split(self) -> None:
        perf = analyze_note_performance(history_with_weak_c(), now=NOW)
        seq = build_quiz_sequence(perf, 10, STANDARD_TUNING, random.Random(3))
        sources = Counter(q.source for q in seq)
        self.assertEqual(sources, Counter(priority=7, maintenance=2, variety=1))
        self.assertTrue(all(q.note == 0 for q in seq if q.source == "priority"))
        maintenance = [q for q in seq if q.source == "maintenance"]
        self.assertEqual(sorted(q.note for q in maintenance), [1, 2])
        self.assertTrue(all(q.mode == "find-any" for q in maintenance))

    def test_shuffle_preserves_multiset(self) -> None:
        perf = analyze_note_performance(history_with_weak_c(), now=NOW)
        a = build_quiz_sequence(perf, 20, STANDARD_TUNING, random.Random(1))
        b = build_quiz_sequence(perf, 20, STANDARD_TUNING, random.Random(2))
        self.assertEqual(Counter(q.source for q in a), Counter(q.source for q in b))
        self.assertEqual(
            Counter(q.note for q in a if q.source == "priority"),
            Counter(q.note for q in b if q.source == "priority"),
        )

    def test_beginner_questions_use_low_frets_and_find_any(self) -> None:
        perf = analyze_note_performance([], now=NOW)
        for q in build_quiz_sequence(perf, 12, STANDARD_TUNING, random.Random(5)):
            self.assertEqual(q.mode, "find-any")
            self.assertEqual(q.max_fret, 5)

    def test_negative_count_rejected(self) -> None:
        with self.assertRaises(ValueError):
            build_quiz_sequence(analyze_note_performance([], now=NOW), -1)


class MakeQuestionTests(unittest.TestCase):
    def test_target_string_carries_the_note(self) -> None:
        rng = random.Random(11)
        for note in range(12):
            for max_fret in (5, 12):
                q = make_question(note, "find-on-string", max_fret, STANDARD_TUNING, rng)
                if q.mode == "find-on-string":
                    frets = [p.fret for p in positions_of(STANDARD_TUNING, note, max_fret)
                             if p.string_index == q.target_string]
                    self.assertTrue(frets)

    def test_find_on_string_degrades_without_a_string(self) -> None:
        q = make_question(1, "find-on-string", 0, STANDARD_TUNING, random.Random(0))
        self.assertEqual(q.mode, "find-any")
        self.assertIsNone(q.target_string)

    def test_unknown_mode(self) -> None:
        with self.assertRaises(ValueError):
            make_question(0, "find-some", 12, STANDARD_TUNING, random.Random(0))

    def test_prompts(self) -> None:
        rng = random.Random(0)
        self.assertEqual(make_question(0, "find-any", 12, STANDARD_TUNING, rng).prompt(), "Find any C")
        self.assertIn("every D", make_question(2, "find-all", 12, STANDARD_TUNING, rng).prompt())


class RandomSequenceTests(unittest.TestCase):
    def test_bag_covers_all_notes_without_repeats(self) -> None:
        seq = build_random_sequence("find-any", 36, STANDARD_TUNING, random.Random(9))
        notes = [q.note for q in seq]
        for i in range(0, 36, 12):
            self.assertEqual(sorted(notes[i:i + 12]), list(range(12)))
        for a, b in zip(notes, notes[1:]):
            self.assertNotEqual(a, b)

    def test_combo_mixes_modes(self) -> None:
        seq = build_random_sequence(COMBO, 60, STANDARD_TUNING, random.Random(4))
        self.assertGreater(len({q.mode for q in seq}), 1)

    def test_unknown_mode(self) -> None:
        with self.assertRaises(ValueError):
            build_random_sequence("chaos", 5)


class QuizSequencerTests(unittest.TestCase):
    def test_cold_start_below_threshold(self) -> None:
        seq = QuizSequencer(rng=random.Random(0)).build(history_with_weak_c()[:9], now=NOW)
        self.assertEqual(len(seq), QuizConfig().questions)
        self.assertTrue(all(q.source == "variety" and q.max_fret == 15 for q in seq))

    def test_adaptive_with_history(self) -> None:
        seq = QuizSequencer(rng=random.Random(0)).build(history_with_weak_c(), count=10, now=NOW)
        self.assertEqual(len(seq), 10)
        self.assertIn("priority", {q.source for q in seq})

    def test_seeded_runs_repeat(self) -> None:
        history = history_with_weak_c()
        a = QuizSequencer(rng=random.Random(42)).build(history, now=NOW)
        b = QuizSequencer(rng=random.Random(42)).build(history, now=NOW)
        self.assertEqual(a, b)


if __name__ == "__main__":
    unittest.main()
