"""
pipeline.py — End-to-end analysis of one exam sitting.

    parse -> detect roles -> enrich students -> rank -> aggregate

Every call is an independent run; filtering to one stream re-runs the whole
pipeline over that stream's rows instead of adjusting an earlier result.
"""

import logging
from typing import Optional, Sequence

from meritboard.grading import PASS_MARK
from meritboard.models import AnalysisResult
from meritboard.parser import ColumnRoles, Row, detect_column_roles, parse_csv_text
from meritboard.ranking import rank_students
from meritboard.stats import (
    compute_all_subject_stats,
    compute_class_stats,
    compute_global_stats,
    compute_subject_champions,
    list_groups,
    select_bottom_students,
    select_top_students,
)
from meritboard.students import enrich_students

logger = logging.getLogger("meritboard.pipeline")

TOP_N = 5


class AnalysisError(ValueError):
    """The input could not be analyzed at all (e.g. it has no data rows)."""


def analyze_rows(
    rows: Sequence[Row],
    roles: Optional[ColumnRoles] = None,
    pass_mark: float = PASS_MARK,
) -> AnalysisResult:
    """
    Analyze parsed rows.

    Roles are detected from the first row unless given (re-filtered views
    reuse the roles of the full dataset).
    """
    if not rows:
        raise AnalysisError("No data to analyze")

    if roles is None:
        roles = detect_column_roles(rows[0])

    records = rank_students(enrich_students(rows, roles), roles)
    subjects = list(roles.subjects)
    groups = list_groups(records, roles)
    subject_stats = compute_all_subject_stats(records, subjects, pass_mark=pass_mark)

    result = AnalysisResult(
        records=records,
        subjects=subjects,
        groups=groups,
        subject_stats=subject_stats,
        class_stats=compute_class_stats(records, roles, groups, pass_mark=pass_mark),
        global_stats=compute_global_stats(records, subject_stats),
        top_students=select_top_students(records, TOP_N),
        bottom_students=select_bottom_students(records, TOP_N),
        subject_champions=compute_subject_champions(records, subjects),
        roles=roles,
        pass_mark=pass_mark,
    )
    logger.info(
        "Analyzed %d student(s) across %d subject(s), %d stream(s)",
        len(records), len(subjects), len(groups),
    )
    return result


def analyze_csv(text: str, pass_mark: float = PASS_MARK) -> AnalysisResult:
    """Parse comma-separated text and analyze it."""
    return analyze_rows(parse_csv_text(text or ""), pass_mark=pass_mark)


def analyze_group(result: AnalysisResult, group: str) -> AnalysisResult:
    """Fresh analysis restricted to one stream of an earlier result."""
    if not result.roles.has_group:
        raise AnalysisError("Dataset has no stream/class column to filter on")

    members = sorted(
        (r for r in result.records if r.group == str(group)),
        key=lambda r: r.position,
    )
    rows = [dict(r.fields) for r in members]
    if not rows:
        raise AnalysisError(f"No students found in stream '{group}'")
    return analyze_rows(rows, roles=result.roles, pass_mark=result.pass_mark)
