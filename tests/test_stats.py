import unittest

from fretcoach.stats.stats import (
    SessionScoreConfig,
    accuracy_label,
    format_summary,
    format_time,
    score_band,
    score_session,
)


class ScoreSessionTests(unittest.TestCase):
    def test_reference_examples(self) -> None:
        self.assertEqual(score_session({"C", "A"}, 5, 20), 76)
        self.assertEqual(score_session({"C"}, 2, 90), 21)

    def test_bounds(self) -> None:
        self.assertEqual(score_session(["C", "A", "G", "E", "D"], 5, 10), 100)
        self.assertEqual(score_session([], 1, 30), 0)
        for acc in range(1, 6):
            for elapsed in (0, 1, 30, 600):
                score = score_session(["E", "D"], acc, elapsed)
                self.assertGreaterEqual(score, 0)
                self.assertLessEqual(score, 100)

    def test_monotone_in_accuracy(self) -> None:
        scores = [score_session({"G", "E"}, acc, 40) for acc in range(1, 6)]
        self.assertEqual(scores, sorted(scores))
        self.assertLess(scores[0], scores[-1])

    def test_more_shapes_never_hurt(self) -> None:
        shapes = ["C", "A", "G", "E", "D"]
        scores = [score_session(shapes[:n], 4, 20 * n) for n in range(1, 6)]
        self.assertEqual(scores, sorted(scores))

    def test_duplicate_and_lowercase_shapes(self) -> None:
        self.assertEqual(score_session(["c", "C", "a"], 5, 20), score_session({"C", "A"}, 5, 20))

    def test_invalid_input(self) -> None:
        for bad in (0, 6, 2.5, True):
            with self.assertRaises(ValueError):
                score_session({"C"}, bad, 10)
        with self.assertRaises(ValueError):
            score_session({"F"}, 3, 10)
        with self.assertRaises(ValueError):
            score_session({"C"}, 3, 10, SessionScoreConfig(accuracy_weight=0, coverage_weight=0, pace_weight=0))


class FormattingTests(unittest.TestCase):
    def test_labels_and_bands(self) -> None:
        self.assertTrue(accuracy_label(5).startswith("Perfect"))
        self.assertEqual(accuracy_label(9), "Unknown")
        self.assertEqual(score_band(85), "excellent")
        self.assertEqual(score_band(60), "good")
        self.assertEqual(score_band(39.9), "poor")

    def test_format_time(self) -> None:
        self.assertEqual(format_time(42), "42s")
        self.assertEqual(format_time(75), "1m 15s")

    def test_format_summary(self) -> None:
        text = format_summary({7: {"correct": 1, "incorrect": 1}, 0: {"correct": 2, "incorrect": 0}})
        self.assertEqual(text.splitlines(), ["Total: 3/4 correct", "C: 2/2", "G: 1/2"])


if __name__ == "__main__":
    unittest.main()
