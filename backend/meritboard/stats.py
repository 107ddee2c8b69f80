"""
stats.py — Aggregate statistics over enriched, ranked student records.

Computes:
- Per-subject stats (mean, median, mode, std, pass rate, grade distribution)
- Per-stream aggregations
- School-wide summary and top/bottom student lists
- Subject champions
- Subject x stream matrix
"""

from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats as sp_stats

from meritboard.grading import PASS_MARK, empty_grade_tally, resolve_grade, resolve_mean_grade, round_half_up
from meritboard.models import (
    ClassStats,
    GlobalStats,
    StudentRecord,
    StudentSummary,
    SubjectChampion,
    SubjectStats,
)
from meritboard.parser import ColumnRoles, is_number
from meritboard.students import student_figures


# ── Helpers ─────────────────────────────────────────────────────────

def _mean(values: Sequence[float]) -> float:
    """Arithmetic mean rounded to 2 dp; 0 for no values."""
    if len(values) == 0:
        return 0.0
    return round_half_up(sum(values) / len(values), 2)


def _rate(hits: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round_half_up(hits / total * 100, 1)


def _as_number(value: float):
    value = float(value)
    return int(value) if value.is_integer() else value


# ── Subject Statistics ──────────────────────────────────────────────

def compute_subject_stats(
    records: Sequence[StudentRecord], subject: str, pass_mark: float = PASS_MARK
) -> SubjectStats:
    """Statistics for one subject over every student with a numeric score in it."""
    scores = pd.Series(
        [s for s in (r.score(subject) for r in records) if is_number(s)],
        dtype=float,
    )

    if scores.empty:
        return SubjectStats(
            subject=subject, mean=0, median=0, mode=0, std_dev=0, min=0, max=0,
            pass_rate=0, count=0, mean_points=0, mean_grade="E",
            grade_distribution=empty_grade_tally(),
        )

    distribution = empty_grade_tally()
    total_points = 0
    for score in scores:
        grade = resolve_grade(score)
        distribution[grade.label] += 1
        total_points += grade.points

    # scipy returns the smallest of equally frequent values
    mode = sp_stats.mode(scores.to_numpy(), keepdims=False).mode
    mean_points = round_half_up(total_points / len(scores), 2)

    return SubjectStats(
        subject=subject,
        mean=_mean(scores.tolist()),
        median=_as_number(scores.median()),
        mode=_as_number(mode),
        std_dev=round_half_up(float(np.std(scores.to_numpy(), ddof=0)), 2),
        min=_as_number(scores.min()),
        max=_as_number(scores.max()),
        pass_rate=_rate(int((scores >= pass_mark).sum()), len(scores)),
        count=int(len(scores)),
        mean_points=mean_points,
        mean_grade=resolve_mean_grade(mean_points),
        grade_distribution=distribution,
    )


def compute_all_subject_stats(
    records: Sequence[StudentRecord], subjects: Sequence[str], pass_mark: float = PASS_MARK
) -> List[SubjectStats]:
    return [compute_subject_stats(records, subject, pass_mark=pass_mark) for subject in subjects]


# ── Stream Statistics ───────────────────────────────────────────────

def list_groups(records: Sequence[StudentRecord], roles: ColumnRoles) -> List[str]:
    """Distinct group values, sorted."""
    if not roles.has_group:
        return []
    return sorted({r.group for r in records if r.group is not None})


def compute_class_stats(
    records: Sequence[StudentRecord],
    roles: ColumnRoles,
    groups: Optional[Sequence[str]] = None,
    subjects: Optional[Sequence[str]] = None,
    pass_mark: float = PASS_MARK,
) -> List[ClassStats]:
    """
    Per-stream mean score, mean points, mean grade and pass rate.

    With a subject subset, each student's figures are recomputed from just
    those subject columns; otherwise the stored means are reused. Means are
    taken over students with figures; the pass rate is over every student
    in the stream, so one without scores counts as not passed.
    """
    if not roles.has_group:
        return []
    if groups is None:
        groups = list_groups(records, roles)

    class_stats = []
    for group in groups:
        members = [r for r in records if r.group == group]
        figures = [f for f in (student_figures(r, subjects) for r in members) if f is not None]

        if not figures:
            class_stats.append(ClassStats(
                class_name=group, mean_score=0, mean_points=0, mean_grade="-",
                pass_rate=0, student_count=len(members),
            ))
            continue

        averages = [avg for avg, _ in figures]
        points = [pts for _, pts in figures]
        mean_points = _mean(points)
        class_stats.append(ClassStats(
            class_name=group,
            mean_score=_mean(averages),
            mean_points=mean_points,
            mean_grade=resolve_mean_grade(mean_points),
            pass_rate=_rate(sum(1 for avg in averages if avg >= pass_mark), len(members)),
            student_count=len(members),
        ))
    return class_stats


def compute_subject_group_matrix(
    records: Sequence[StudentRecord],
    roles: ColumnRoles,
    groups: Optional[Sequence[str]] = None,
) -> List[Dict[str, Any]]:
    """Mean score / points / grade of each subject within each stream."""
    if not roles.has_group:
        return []
    if groups is None:
        groups = list_groups(records, roles)

    matrix = []
    for subject in roles.subjects:
        streams: Dict[str, Dict[str, Any]] = {}
        for group in groups:
            scores = [
                s for s in (r.score(subject) for r in records if r.group == group)
                if is_number(s)
            ]
            if not scores:
                streams[group] = {"mean": 0, "points": 0, "grade": "-"}
                continue
            points = _mean([resolve_grade(s).points for s in scores])
            streams[group] = {
                "mean": _mean(scores),
                "points": points,
                "grade": resolve_mean_grade(points),
            }
        matrix.append({"subject": subject, "streams": streams})
    return matrix


# ── School Overview ─────────────────────────────────────────────────

def compute_global_stats(
    records: Sequence[StudentRecord], subject_stats: Sequence[SubjectStats]
) -> GlobalStats:
    """
    School-wide figures.

    mean_score averages the subject means; mean_points averages the
    students' mean points. The two use different bases and need not agree.

    Subjects without scores are ignored. On equal mean points the earlier
    column is the top subject and the later column the lowest.
    """
    observed = [s for s in subject_stats if s.count > 0]
    mean_points = _mean([r.mean_points for r in records if r.is_ranked])

    top = lowest = "N/A"
    if observed:
        top = max(observed, key=lambda s: s.mean_points).subject
        lowest = min(reversed(observed), key=lambda s: s.mean_points).subject

    return GlobalStats(
        total_students=len(records),
        mean_score=_mean([s.mean for s in observed]),
        mean_points=mean_points,
        mean_grade=resolve_mean_grade(mean_points),
        top_performing_subject=top,
        lowest_performing_subject=lowest,
    )


def _merit_order(records: Sequence[StudentRecord]) -> List[StudentRecord]:
    ranked = [r for r in records if r.is_ranked]
    return sorted(ranked, key=lambda r: (-r.mean_points, -r.mean_score, r.position))


def _summary(record: StudentRecord) -> StudentSummary:
    return StudentSummary(
        name=record.display_name,
        student_id=record.display_id,
        average=record.mean_score,
        mean_points=record.mean_points,
        mean_grade=resolve_mean_grade(record.mean_points),
        overall_rank=record.overall_rank,
    )


def select_top_students(records: Sequence[StudentRecord], n: int = 5) -> List[StudentSummary]:
    return [_summary(r) for r in _merit_order(records)[:n]]


def select_bottom_students(records: Sequence[StudentRecord], n: int = 5) -> List[StudentSummary]:
    """The last n in merit order, weakest first."""
    if n <= 0:
        return []
    tail = _merit_order(records)[-n:]
    return [_summary(r) for r in reversed(tail)]


# ── Subject Champions ───────────────────────────────────────────────

def compute_subject_champions(
    records: Sequence[StudentRecord], subjects: Sequence[str]
) -> List[SubjectChampion]:
    """
    Highest scorer per subject.

    Only a strictly higher score replaces the current champion, so ties go
    to the earliest row of the source data.
    """
    in_source_order = sorted(records, key=lambda r: r.position)
    champions = []
    for subject in subjects:
        best: Optional[StudentRecord] = None
        best_score: Optional[float] = None
        for record in in_source_order:
            score = record.score(subject)
            if not is_number(score):
                continue
            if best_score is None or score > best_score:
                best, best_score = record, score
        if best is not None:
            champions.append(SubjectChampion(
                subject=subject,
                name=best.display_name,
                student_id=best.display_id,
                score=_as_number(best_score),
            ))
    return champions
