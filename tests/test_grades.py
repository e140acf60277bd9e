import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from readiness_tracking.services.grades import bucket_grade, individual_grade, rating_for


class GradeTests(unittest.TestCase):
    def test_individual_thresholds(self) -> None:
        cases = {100: "A", 95: "A", 94.9: "B", 85: "B", 84.9: "C", 70: "C", 69.9: "D", 0: "D"}
        for score, grade in cases.items():
            with self.subTest(score=score):
                self.assertEqual(individual_grade(score), grade)

    def test_bucket_thresholds(self) -> None:
        cases = {
            95: "A+",
            90: "A",
            85: "A-",
            80: "B+",
            75: "B",
            70: "B-",
            65: "C+",
            60: "C",
            55: "C-",
            50: "D",
            49.9: "F",
        }
        for score, grade in cases.items():
            with self.subTest(score=score):
                self.assertEqual(bucket_grade(score), grade)

    def test_ratings(self) -> None:
        self.assertEqual(rating_for("A+"), "Excellent")
        self.assertEqual(rating_for("B-"), "Above Average")
        self.assertEqual(rating_for("F"), "Needs Improvement")
        self.assertEqual(rating_for("B", individual=True), "Good")
        self.assertEqual(rating_for("?"), "Needs Improvement")


if __name__ == "__main__":
    unittest.main()
