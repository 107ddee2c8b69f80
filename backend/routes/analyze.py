"""
Analyze routes — analytics API endpoints.
"""

import os
from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from meritboard.grading import get_all_grade_thresholds
from meritboard.models import AnalysisResult
from meritboard.pipeline import AnalysisError, analyze_csv, analyze_group
from meritboard.stats import compute_class_stats, compute_subject_group_matrix
from meritboard.summary import build_report_summary

router = APIRouter()

PASS_MARK = int(os.getenv("PASS_MARK", "50"))


def _analysis_from_payload(payload: dict) -> AnalysisResult:
    """Run the pipeline on the CSV text in the request payload."""
    text = payload.get("csv")
    if not text or not isinstance(text, str):
        raise HTTPException(400, "No data provided.")
    try:
        return analyze_csv(text, pass_mark=PASS_MARK)
    except AnalysisError as e:
        raise HTTPException(400, f"Unable to analyze this input: {e}")


@router.post("/overview")
async def overview(payload: dict):
    """Full analysis; pass "group" to get a single stream's view."""
    result = _analysis_from_payload(payload)
    group = payload.get("group")
    if group not in (None, "", "All"):
        try:
            result = analyze_group(result, str(group))
        except AnalysisError as e:
            raise HTTPException(404, str(e))
    return result.to_dict()


@router.post("/classes")
async def classes(payload: dict):
    """Stream comparison, optionally restricted to selected subjects."""
    result = _analysis_from_payload(payload)
    subjects = payload.get("subjects") or None
    if subjects is not None:
        unknown = [s for s in subjects if s not in result.subjects]
        if unknown:
            raise HTTPException(400, f"Unknown subjects: {unknown}")
    stats = compute_class_stats(
        result.records, result.roles, result.groups,
        subjects=subjects, pass_mark=result.pass_mark,
    )
    return {
        "class_column": result.group_column,
        "subjects": subjects or result.subjects,
        "class_stats": [asdict(s) for s in stats],
    }


@router.post("/stream-matrix")
async def stream_matrix(payload: dict):
    """Per-subject performance broken down by stream."""
    result = _analysis_from_payload(payload)
    return {
        "classes": result.groups,
        "matrix": compute_subject_group_matrix(result.records, result.roles, result.groups),
    }


@router.post("/summary")
async def summary(payload: dict):
    """Structured summary for narrative report generation."""
    result = _analysis_from_payload(payload)
    return build_report_summary(result)


@router.get("/grade-scale")
async def grade_scale():
    """Return the grading scale used for every grade in the analysis."""
    return {
        "pass_mark": PASS_MARK,
        "grade_scale": get_all_grade_thresholds(),
    }
