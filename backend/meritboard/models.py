"""
models.py — Typed records produced by the analysis pipeline.

All records are frozen: the pipeline builds new ones at each stage instead
of mutating rows in place, and callers treat a finished AnalysisResult as a
read-only snapshot.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from meritboard.parser import Cell, ColumnRoles, Row


@dataclass(frozen=True)
class StudentRecord:
    """One student in one exam sitting, with derived grading fields."""

    position: int
    fields: Row
    scores: Tuple[Tuple[str, Optional[float]], ...]
    student_id: Optional[Cell] = None
    name: Optional[str] = None
    group: Optional[str] = None
    mean_score: Optional[float] = None
    mean_points: Optional[float] = None
    mean_grade: Optional[str] = None
    grade_counts: Dict[str, int] = field(default_factory=dict)
    overall_rank: Optional[int] = None
    stream_rank: Optional[int] = None

    @property
    def is_ranked(self) -> bool:
        """Students without a single numeric score are never ranked."""
        return self.mean_points is not None and self.mean_score is not None

    @property
    def display_name(self) -> str:
        return self.name if self.name else "Unknown"

    @property
    def display_id(self) -> Cell:
        return self.student_id if self.student_id not in (None, "") else "-"

    def score(self, subject: str) -> Optional[float]:
        for name, value in self.scores:
            if name == subject:
                return value
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.fields)
        data.update({
            "mean_score": self.mean_score,
            "mean_points": self.mean_points,
            "mean_grade": self.mean_grade,
            "grade_counts": dict(self.grade_counts),
            "overall_rank": self.overall_rank,
            "stream_rank": self.stream_rank,
        })
        return data


@dataclass(frozen=True)
class SubjectStats:
    subject: str
    mean: float
    median: float
    mode: float
    std_dev: float
    min: float
    max: float
    pass_rate: float
    count: int
    mean_points: float
    mean_grade: str
    grade_distribution: Dict[str, int]


@dataclass(frozen=True)
class ClassStats:
    class_name: str
    mean_score: float
    mean_points: float
    mean_grade: str
    pass_rate: float
    student_count: int


@dataclass(frozen=True)
class GlobalStats:
    total_students: int
    mean_score: float
    mean_points: float
    mean_grade: str
    top_performing_subject: str
    lowest_performing_subject: str


@dataclass(frozen=True)
class StudentSummary:
    """Entry in the top/bottom student lists."""

    name: str
    student_id: Cell
    average: float
    mean_points: float
    mean_grade: str
    overall_rank: Optional[int] = None


@dataclass(frozen=True)
class SubjectChampion:
    subject: str
    name: str
    student_id: Cell
    score: float


@dataclass(frozen=True)
class AnalysisResult:
    """Root aggregate of one analysis run."""

    records: List[StudentRecord]
    subjects: List[str]
    groups: List[str]
    subject_stats: List[SubjectStats]
    class_stats: List[ClassStats]
    global_stats: GlobalStats
    top_students: List[StudentSummary]
    bottom_students: List[StudentSummary]
    subject_champions: List[SubjectChampion]
    roles: ColumnRoles
    pass_mark: float

    @property
    def group_column(self) -> Optional[str]:
        return self.roles.group_column

    @property
    def id_column(self) -> Optional[str]:
        return self.roles.id_column

    @property
    def name_column(self) -> Optional[str]:
        return self.roles.name_column

    @property
    def ranked_records(self) -> List[StudentRecord]:
        return [r for r in self.records if r.is_ranked]

    def subject(self, name: str) -> Optional[SubjectStats]:
        return next((s for s in self.subject_stats if s.subject == name), None)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe snapshot for the API and report consumers."""
        return {
            "records": [r.to_dict() for r in self.records],
            "subjects": list(self.subjects),
            "class_column": self.group_column,
            "adm_column": self.id_column,
            "name_column": self.name_column,
            "classes": list(self.groups),
            "pass_mark": self.pass_mark,
            "subject_stats": [asdict(s) for s in self.subject_stats],
            "class_stats": [asdict(c) for c in self.class_stats],
            "global_stats": asdict(self.global_stats),
            "top_students": [asdict(s) for s in self.top_students],
            "weakest_students": [asdict(s) for s in self.bottom_students],
            "subject_champions": [asdict(c) for c in self.subject_champions],
        }
