"""
ranking.py — Competition ranking ("1, 2, 2, 4") on mean points.

Students are ordered by mean points, then mean score, then source order.
Only mean points decide the rank number: equal points share a rank and the
next distinct student takes its 1-based position.
"""

from dataclasses import replace
from typing import List, Sequence

import pandas as pd

from meritboard.models import StudentRecord
from meritboard.parser import ColumnRoles


def rank_students(records: Sequence[StudentRecord], roles: ColumnRoles) -> List[StudentRecord]:
    """
    Assign overall_rank (and stream_rank when a group column exists).

    Returns new records: ranked students in rank order, followed by the
    unranked ones (no numeric scores) in source order.
    """
    ranked = [r for r in records if r.is_ranked]
    unranked = sorted((r for r in records if not r.is_ranked), key=lambda r: r.position)
    if not ranked:
        return [replace(r, overall_rank=None, stream_rank=None) for r in unranked]

    frame = pd.DataFrame({
        "idx": range(len(ranked)),
        "position": [r.position for r in ranked],
        "points": [r.mean_points for r in ranked],
        "average": [r.mean_score for r in ranked],
        "group": [r.group for r in ranked],
    })
    frame = frame.sort_values(
        ["points", "average", "position"],
        ascending=[False, False, True],
        kind="mergesort",
    )
    frame["overall_rank"] = frame["points"].rank(method="min", ascending=False).astype(int)
    if roles.has_group:
        frame["stream_rank"] = (
            frame.groupby("group")["points"].rank(method="min", ascending=False).astype(int)
        )

    result = []
    for row in frame.itertuples(index=False):
        record = ranked[row.idx]
        result.append(replace(
            record,
            overall_rank=int(row.overall_rank),
            stream_rank=int(row.stream_rank) if roles.has_group else None,
        ))
    return result + unranked
