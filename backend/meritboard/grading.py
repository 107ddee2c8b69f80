"""
grading.py — 12-point KCSE-style grading scale.

Every score → grade/points mapping in the package goes through this module:
  A (12), A- (11), B+ (10) ... D- (2), E (1)

Rounding for all reported figures also lives here so that grade resolution
and the numbers it is applied to always agree.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List


@dataclass(frozen=True)
class GradeDef:
    """One tier of the grading scale."""

    min: float
    max: float
    label: str
    points: int

    def contains(self, score: float) -> bool:
        """Half-open [min, max); only the top tier also takes its max."""
        if score == self.max == SCORE_CEILING:
            return True
        return self.min <= score < self.max


SCORE_CEILING = 100.0

# Ordered high to low. Each tier's max is the next tier's min, so the
# tiers cover 0-100 without gaps.
GRADE_SCALE = (
    GradeDef(80.0, SCORE_CEILING, "A", 12),
    GradeDef(75.0, 80.0, "A-", 11),
    GradeDef(70.0, 75.0, "B+", 10),
    GradeDef(65.0, 70.0, "B", 9),
    GradeDef(60.0, 65.0, "B-", 8),
    GradeDef(55.0, 60.0, "C+", 7),
    GradeDef(50.0, 55.0, "C", 6),
    GradeDef(45.0, 50.0, "C-", 5),
    GradeDef(40.0, 45.0, "D+", 4),
    GradeDef(35.0, 40.0, "D", 3),
    GradeDef(30.0, 35.0, "D-", 2),
    GradeDef(0.0, 30.0, "E", 1),
)

GRADE_LABELS = [g.label for g in GRADE_SCALE]
LOWEST_GRADE = GRADE_SCALE[-1]

PASS_MARK = 50
QUALITY_GRADE = "C+"

_BY_POINTS = {g.points: g for g in GRADE_SCALE}
_BY_LABEL = {g.label: g for g in GRADE_SCALE}


def round_half_up(value: float, places: int = 2) -> float:
    """Round with ties away from zero (2.675 -> 2.68, 8.5 -> 9)."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def resolve_grade(score: float) -> GradeDef:
    """Return the grade tier for a 0-100 score.

    Scores outside 0-100 are not clamped; they match no tier and fall back
    to the lowest one.
    """
    top = GRADE_SCALE[0]
    if score < LOWEST_GRADE.min or score > top.max:
        return LOWEST_GRADE
    for grade in GRADE_SCALE:
        if score >= grade.min:
            return grade
    return LOWEST_GRADE


def resolve_mean_grade(avg_points: float) -> str:
    """Return the grade label for an average point value (rounded half-up)."""
    rounded = int(round_half_up(avg_points, 0))
    grade = _BY_POINTS.get(rounded)
    return grade.label if grade else LOWEST_GRADE.label


def grade_label(score: float) -> str:
    return resolve_grade(score).label


def grade_points(score: float) -> int:
    return resolve_grade(score).points


def empty_grade_tally() -> Dict[str, int]:
    """All twelve labels, high to low, counted as zero."""
    return {label: 0 for label in GRADE_LABELS}


def quality_threshold(label: str = QUALITY_GRADE) -> float:
    """Minimum score of the given tier (55 for C+)."""
    grade = _BY_LABEL.get(label)
    if grade is None:
        raise ValueError(f"Unknown grade label: {label!r}")
    return grade.min


def get_all_grade_thresholds() -> List[Dict[str, Any]]:
    """Return the full grade scale for legend/reference."""
    return [
        {"min": g.min, "max": g.max, "label": g.label, "points": g.points}
        for g in GRADE_SCALE
    ]
