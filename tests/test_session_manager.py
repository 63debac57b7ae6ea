import io
import random
import unittest
from contextlib import redirect_stdout
from datetime import datetime, timedelta, timezone

from fretcoach.app import explain
from fretcoach.app.session_manager import NoteFinderSession, PracticeContext
from fretcoach.drills import note_finder as nf
from fretcoach.samplers.quiz_sequencer import QuizQuestion

START = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Advances two seconds on every call."""

    def __init__(self) -> None:
        self.now = START

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=2)
        return current


QUESTIONS = [
    QuizQuestion(note=0, mode="find-any", max_fret=12),
    QuizQuestion(note=0, mode="find-all", max_fret=5),
]


class NoteFinderSessionTests(unittest.TestCase):
    def test_attempts_emitted_per_click(self) -> None:
        sink = []
        session = NoteFinderSession(PracticeContext(user_id="u1"), QUESTIONS, sink=sink.append, clock=FakeClock())
        session.start()
        outcome = session.click(4, 3)
        self.assertTrue(outcome.correct)
        self.assertEqual(session.phase, nf.SHOWING_FEEDBACK)
        self.assertEqual(session.feedback_delay_ms, 1500)
        session.advance()
        session.click(0, 0)

        self.assertEqual(len(sink), 2)
        self.assertEqual(sink, session.attempts)
        first, second = sink
        self.assertEqual((first.note, first.correct, first.mode), (0, True, "find-any"))
        self.assertEqual(first.response_time_seconds, 2.0)
        self.assertEqual((second.string_index, second.fret, second.correct), (0, 0, False))
        self.assertEqual(second.mode, "find-all")

    def test_failing_sink_does_not_block_play(self) -> None:
        def broken(_record):
            raise OSError("disk full")

        explain.enable(True)
        try:
            buf = io.StringIO()
            with redirect_stdout(buf):
                session = NoteFinderSession(PracticeContext(user_id=None), QUESTIONS[:1], sink=broken, clock=FakeClock())
                session.start()
                session.click(4, 3)
                session.advance()
        finally:
            explain.enable(False)
        self.assertFalse(explain.enabled())
        self.assertIn("attempt_sink_failed", buf.getvalue())
        self.assertEqual(session.phase, nf.COMPLETE)
        self.assertEqual(len(session.attempts), 1)

    def test_reset_policy_from_config(self) -> None:
        ctx = PracticeContext(user_id=None, config={"quiz": {"find_all_wrong_click": "reset"}})
        session = NoteFinderSession(ctx, QUESTIONS[1:], clock=FakeClock())
        session.start()
        session.click(4, 3)
        session.advance()
        outcome = session.click(0, 0)
        self.assertEqual(outcome.found_count, 0)

    def test_abandon_keeps_attempts(self) -> None:
        sink = []
        session = NoteFinderSession(PracticeContext(user_id=None), QUESTIONS, sink=sink.append, clock=FakeClock())
        session.start()
        session.click(1, 1)
        session.abandon()
        self.assertEqual(session.phase, nf.COMPLETE)
        self.assertEqual(len(sink), 1)
        self.assertEqual(session.summary(), {0: {"correct": 1, "incorrect": 0}})
        self.assertEqual(session.summary_text().splitlines(), ["Total: 1/1 correct", "C: 1/1"])

    def test_context_is_hashable_and_user_traced(self) -> None:
        ctx = PracticeContext(user_id="u1", config={"quiz": {"questions": 4}})
        self.assertIsInstance(hash(ctx), int)
        explain.enable(True)
        try:
            buf = io.StringIO()
            with redirect_stdout(buf):
                session = NoteFinderSession(ctx, QUESTIONS[:1], clock=FakeClock())
                session.start()
                session.click(4, 3)
        finally:
            explain.enable(False)
        self.assertIn("click_graded", buf.getvalue())
        self.assertIn('"user":"u1"', buf.getvalue())

    def test_from_history_cold_start(self) -> None:
        session = NoteFinderSession.from_history(PracticeContext(user_id=None), [], rng=random.Random(1))
        self.assertEqual(len(session.state.questions), 12)
        self.assertEqual(session.phase, nf.IDLE)


if __name__ == "__main__":
    unittest.main()
