"""
Tests for meritboard/pipeline.py — end-to-end analysis on the sample school.
"""

import json
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from meritboard.parser import ColumnRoles, parse_csv_text
from meritboard.pipeline import AnalysisError, analyze_csv, analyze_group, analyze_rows

SAMPLE_CSV = os.path.join(os.path.dirname(__file__), "..", "sample_data", "sample_school.csv")


@pytest.fixture(scope="module")
def sample_text():
    with open(SAMPLE_CSV, encoding="utf-8") as f:
        return f.read()


@pytest.fixture(scope="module")
def result(sample_text):
    return analyze_csv(sample_text)


class TestAnalyzeSample:
    """The bundled 20-student, 3-stream sample."""

    def test_shape(self, result):
        assert len(result.records) == 20
        assert len(result.subjects) == 9
        assert result.group_column == "Stream"
        assert result.id_column == "AdmNo"
        assert result.name_column == "Name"
        assert result.groups == ["4 East", "4 North", "4 West"]
        assert result.global_stats.total_students == 20

    def test_top_of_merit_list(self, result):
        leaders = result.records[:5]
        assert [r.name for r in leaders] == [
            "Mercy Auma", "Brian Ochieng", "Purity Wangui", "Kevin Otieno", "Samuel Maina",
        ]
        assert [r.overall_rank for r in leaders] == [1, 1, 1, 1, 5]
        assert leaders[0].mean_score == 94.0
        assert leaders[4].mean_points == 11.89

    def test_stream_ranks(self, result):
        by_name = {r.name: r for r in result.records}
        assert by_name["Mercy Auma"].stream_rank == 1
        assert by_name["Purity Wangui"].stream_rank == 1
        assert by_name["Samuel Maina"].stream_rank == 3
        assert by_name["Kevin Otieno"].stream_rank == 1

    def test_top_and_weakest(self, result):
        assert result.top_students[0].name == "Mercy Auma"
        assert len(result.top_students) == 5
        assert [s.name for s in result.bottom_students[:2]] == ["Sarah Korir", "Joseph Njoroge"]
        assert result.bottom_students[0].mean_points == 2.44
        assert result.bottom_students[0].student_id == 1012

    def test_champions(self, result):
        champions = {c.subject: c for c in result.subject_champions}
        assert champions["Mathematics"].name == "Mercy Auma"
        assert champions["Mathematics"].score == 95
        assert champions["English"].name == "Purity Wangui"
        assert champions["Geography"].name == "Brian Ochieng"
        assert champions["Geography"].student_id == 1003

    def test_subject_invariants(self, result):
        for stats in result.subject_stats:
            assert sum(stats.grade_distribution.values()) == stats.count
            assert stats.count <= result.global_stats.total_students

    def test_global_means_use_their_own_bases(self, result):
        observed = [s.mean for s in result.subject_stats if s.count > 0]
        expected_score = round(sum(observed) / len(observed), 2)
        assert result.global_stats.mean_score == pytest.approx(expected_score, abs=0.005)

        points = [r.mean_points for r in result.ranked_records]
        expected_points = round(sum(points) / len(points), 2)
        assert result.global_stats.mean_points == pytest.approx(expected_points, abs=0.005)

    def test_class_stats(self, result):
        counts = {c.class_name: c.student_count for c in result.class_stats}
        assert counts == {"4 East": 7, "4 North": 6, "4 West": 7}

    def test_to_dict_is_json_serializable(self, result):
        data = result.to_dict()
        json.dumps(data)
        assert data["class_column"] == "Stream"
        assert data["records"][0]["Name"] == "Mercy Auma"
        assert data["records"][0]["overall_rank"] == 1
        assert len(data["weakest_students"]) == 5


class TestScenarios:
    """Small hand-checked datasets."""

    def test_two_students(self):
        result = analyze_csv("Name,Math,Eng\nAnn,80,70\nBen,60,50\n")
        ann, ben = result.records
        assert (ann.mean_score, ann.mean_points, ann.mean_grade) == (75.0, 11.0, "A-")
        assert (ann.overall_rank, ben.overall_rank) == (1, 2)
        assert ann.stream_rank is None
        assert result.class_stats == []
        assert result.groups == []

    def test_subject_with_no_numeric_entries(self):
        rows = parse_csv_text("Name,Math,Art\nAnn,80,\nBen,60,abs\n")
        roles = ColumnRoles(subjects=("Math", "Art"), name_column="Name")
        result = analyze_rows(rows, roles=roles)
        art = result.subject("Art")
        assert art.count == 0
        assert art.mean == 0
        assert art.mean_grade == "E"
        assert set(art.grade_distribution.values()) == {0}
        assert result.global_stats.mean_score == 70.0

    def test_student_without_scores_is_listed_not_ranked(self):
        result = analyze_csv("Name,Math\nAnn,80\nBen,abs\n")
        assert [r.name for r in result.records] == ["Ann", "Ben"]
        assert result.records[1].overall_rank is None
        assert result.global_stats.total_students == 2
        assert result.global_stats.mean_points == 12.0
        assert [s.name for s in result.bottom_students] == ["Ann"]

    def test_malformed_lines_are_ignored(self):
        result = analyze_csv("Name,Math\nAnn,80\nBen,60,extra\n")
        assert len(result.records) == 1


class TestErrors:

    def test_empty_input(self):
        with pytest.raises(AnalysisError):
            analyze_csv("")

    def test_header_only(self):
        with pytest.raises(AnalysisError):
            analyze_csv("Name,Math\n")

    def test_no_rows(self):
        with pytest.raises(AnalysisError):
            analyze_rows([])

    def test_error_is_a_value_error(self):
        assert issubclass(AnalysisError, ValueError)


class TestAnalyzeGroup:
    """Re-filtering to one stream."""

    def test_fresh_run_for_one_stream(self, result):
        north = analyze_group(result, "4 North")
        assert len(north.records) == 6
        assert north.groups == ["4 North"]
        assert north.global_stats.total_students == 6
        assert [r.overall_rank for r in north.records[:3]] == [1, 1, 3]
        assert north.top_students[0].name == "Mercy Auma"
        assert north.bottom_students[0].name == "Sarah Korir"

    def test_parent_result_untouched(self, result):
        before = [(r.name, r.overall_rank) for r in result.records]
        analyze_group(result, "4 West")
        assert [(r.name, r.overall_rank) for r in result.records] == before
        assert len(result.records) == 20

    def test_roles_are_reused(self, result):
        west = analyze_group(result, "4 West")
        assert west.roles == result.roles

    def test_unknown_stream(self, result):
        with pytest.raises(AnalysisError):
            analyze_group(result, "5 South")

    def test_dataset_without_streams(self):
        plain = analyze_csv("Name,Math\nAnn,80\n")
        with pytest.raises(AnalysisError):
            analyze_group(plain, "A")
