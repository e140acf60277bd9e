from __future__ import annotations

# Thresholds are inclusive lower bounds, highest first.
INDIVIDUAL_SCALE: tuple[tuple[float, str], ...] = (
    (95, "A"),
    (85, "B"),
    (70, "C"),
)
INDIVIDUAL_FLOOR = "D"

BUCKET_SCALE: tuple[tuple[float, str], ...] = (
    (95, "A+"),
    (90, "A"),
    (85, "A-"),
    (80, "B+"),
    (75, "B"),
    (70, "B-"),
    (65, "C+"),
    (60, "C"),
    (55, "C-"),
    (50, "D"),
)
BUCKET_FLOOR = "F"

RATINGS = {
    "A+": "Excellent",
    "A": "Excellent",
    "A-": "Very Good",
    "B+": "Good",
    "B": "Good",
    "B-": "Above Average",
    "C+": "Average",
    "C": "Average",
    "C-": "Below Average",
    "D": "Below Average",
    "F": "Needs Improvement",
}

INDIVIDUAL_RATINGS = {
    "A": "Excellent",
    "B": "Good",
    "C": "Average",
    "D": "Needs Improvement",
}


def _grade(score: float, scale: tuple[tuple[float, str], ...], floor: str) -> str:
    for threshold, grade in scale:
        if score >= threshold:
            return grade
    return floor


def individual_grade(score: float) -> str:
    return _grade(score, INDIVIDUAL_SCALE, INDIVIDUAL_FLOOR)


def bucket_grade(score: float) -> str:
    return _grade(score, BUCKET_SCALE, BUCKET_FLOOR)


def rating_for(grade: str, individual: bool = False) -> str:
    ratings = INDIVIDUAL_RATINGS if individual else RATINGS
    return ratings.get(grade, "Needs Improvement")
