"""
summary.py — Compact, serializable summary of an analysis.

This is the structured input handed to narrative-report generators. It is
derived only from deterministic analytics; no grading or ranking happens
here.
"""

from typing import Any, Dict

from meritboard.grading import QUALITY_GRADE, quality_threshold
from meritboard.models import AnalysisResult


def count_quality_candidates(result: AnalysisResult, quality_grade: str = QUALITY_GRADE) -> int:
    """Students whose mean score reaches the quality tier (C+ and above)."""
    threshold = quality_threshold(quality_grade)
    return sum(1 for r in result.ranked_records if r.mean_score >= threshold)


def build_report_summary(result: AnalysisResult, quality_grade: str = QUALITY_GRADE) -> Dict[str, Any]:
    g = result.global_stats
    return {
        "school_mean": {
            "grade": g.mean_grade,
            "points": g.mean_points,
            "score": g.mean_score,
        },
        "subjects": [
            {
                "name": s.subject,
                "mean_points": s.mean_points,
                "mean_grade": s.mean_grade,
            }
            for s in result.subject_stats
        ],
        "top_student": result.top_students[0].name if result.top_students else None,
        "quality_grade": quality_grade,
        "quality_count": count_quality_candidates(result, quality_grade),
        "total_candidates": g.total_students,
    }
