"""
students.py — Per-student aggregation.

Each row becomes a StudentRecord carrying its subject scores, metadata and
mean score / mean points / mean grade / grade tally. Cells that are not
numbers are skipped, so a student's means cover only the subjects they
actually have a score for.
"""

from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from meritboard.grading import empty_grade_tally, resolve_grade, resolve_mean_grade, round_half_up
from meritboard.models import StudentRecord
from meritboard.parser import ColumnRoles, Row, is_number


@dataclass(frozen=True)
class ScoreSummary:
    mean_score: float
    mean_points: float
    mean_grade: str
    grade_counts: Dict[str, int]
    count: int


def summarize_scores(scores: Iterable[Optional[float]]) -> Optional[ScoreSummary]:
    """Mean score, mean points and grade tally over the numeric scores.

    Returns None when there is nothing numeric to average.
    """
    total_score = 0.0
    total_points = 0
    count = 0
    counts = empty_grade_tally()
    for score in scores:
        if not is_number(score):
            continue
        grade = resolve_grade(score)
        total_score += score
        total_points += grade.points
        counts[grade.label] += 1
        count += 1

    if count == 0:
        return None

    mean_points = round_half_up(total_points / count, 2)
    return ScoreSummary(
        mean_score=round_half_up(total_score / count, 2),
        mean_points=mean_points,
        mean_grade=resolve_mean_grade(mean_points),
        grade_counts=counts,
        count=count,
    )


def _subject_scores(row: Row, subjects: Sequence[str]) -> Tuple[Tuple[str, Optional[float]], ...]:
    pairs = []
    for subject in subjects:
        value = row.get(subject)
        pairs.append((subject, float(value) if is_number(value) else None))
    return tuple(pairs)


def _text(value) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def build_student(position: int, row: Row, roles: ColumnRoles) -> StudentRecord:
    """Build the (unenriched) record for one parsed row."""
    return StudentRecord(
        position=position,
        fields=dict(row),
        scores=_subject_scores(row, roles.subjects),
        student_id=row.get(roles.id_column) if roles.has_id else None,
        name=_text(row.get(roles.name_column)) if roles.has_name else None,
        group=str(row.get(roles.group_column, "")) if roles.has_group else None,
    )


def enrich_student(record: StudentRecord) -> StudentRecord:
    """Attach means and grade tally. Already-enriched records are returned as-is."""
    if record.is_ranked:
        return record
    summary = summarize_scores(value for _, value in record.scores)
    if summary is None:
        return replace(record, grade_counts=empty_grade_tally())
    return replace(
        record,
        mean_score=summary.mean_score,
        mean_points=summary.mean_points,
        mean_grade=summary.mean_grade,
        grade_counts=summary.grade_counts,
    )


def enrich_students(rows: Sequence[Row], roles: ColumnRoles) -> List[StudentRecord]:
    return [enrich_student(build_student(i, row, roles)) for i, row in enumerate(rows)]


def student_figures(
    record: StudentRecord, subjects: Optional[Sequence[str]] = None
) -> Optional[Tuple[float, float]]:
    """
    (average, points) for one student.

    Uses the stored means when looking at all of the student's subjects and
    recomputes from the score columns for a subject subset.
    """
    own_subjects = [name for name, _ in record.scores]
    if subjects is None or list(subjects) == own_subjects:
        if record.is_ranked:
            return record.mean_score, record.mean_points
        subjects = own_subjects

    wanted = set(subjects)
    summary = summarize_scores(value for name, value in record.scores if name in wanted)
    if summary is None:
        return None
    return summary.mean_score, summary.mean_points
