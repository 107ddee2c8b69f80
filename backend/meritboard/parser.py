"""
parser.py — Delimited-text ingestion with column-role detection.

Handles:
- Header + data lines, one student per line
- Per-cell number/text inference
- Lenient handling of malformed lines (dropped, never raised)
- Heuristic detection of subject, group, identifier and name columns
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

logger = logging.getLogger("meritboard.parser")

Cell = Union[int, float, str]
Row = Dict[str, Cell]

# Normalized header names (lowercase, alphanumerics only)
GROUP_HEADERS = ("stream", "class", "grade", "form", "section", "yeargroup")
ID_HEADERS = ("adm", "admno", "admission", "id", "reg", "regno")
NAME_HEADERS = ("name", "names", "student", "studentname", "candidate", "pupil")

# Numeric columns that are never subjects
RESERVED_HEADERS = frozenset(ID_HEADERS) | {"phone", "mobile", "zip", "year"}


@dataclass(frozen=True)
class ColumnRoles:
    """Column roles inferred from the first data row."""

    subjects: Tuple[str, ...] = ()
    group_column: Optional[str] = None
    id_column: Optional[str] = None
    name_column: Optional[str] = None

    @property
    def has_group(self) -> bool:
        return self.group_column is not None

    @property
    def has_id(self) -> bool:
        return self.id_column is not None

    @property
    def has_name(self) -> bool:
        return self.name_column is not None


def is_number(value) -> bool:
    """True for parsed numeric cells (bools are not scores)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def normalize_header(name) -> str:
    """'Adm. No' -> 'admno', 'Year Group' -> 'yeargroup'."""
    return re.sub(r"[^a-z0-9]", "", str(name).lower())


def _to_cell(text: str, number: float) -> Cell:
    if pd.isna(number) or not np.isfinite(number):
        return text
    number = float(number)
    return int(number) if number.is_integer() else number


def parse_csv_text(text: str, delimiter: str = ",") -> List[Row]:
    """
    Parse delimited text into rows keyed by header name.

    Lines whose field count differs from the header's are dropped.
    Empty cells stay as "" so they count as missing, not zero.
    """
    lines = [line for line in text.strip().splitlines() if line.strip()]
    if not lines:
        return []

    headers = [h.strip() for h in lines[0].split(delimiter)]
    fields = []
    dropped = 0
    for line in lines[1:]:
        values = line.split(delimiter)
        if len(values) != len(headers):
            dropped += 1
            continue
        fields.append([v.strip() for v in values])

    if dropped:
        logger.debug("Dropped %d line(s) with a field count other than %d", dropped, len(headers))
    if not fields:
        return []

    raw = pd.DataFrame(fields, dtype=str)
    numeric = raw.apply(pd.to_numeric, errors="coerce")

    rows: List[Row] = []
    for i in range(len(raw)):
        row: Row = {}
        for j, header in enumerate(headers):
            row[header] = _to_cell(raw.iat[i, j], numeric.iat[i, j])
        rows.append(row)
    return rows


def _find_header(headers: List[str], synonyms) -> Optional[str]:
    for header in headers:
        if normalize_header(header) in synonyms:
            return header
    return None


def detect_column_roles(first_row: Mapping[str, Cell]) -> ColumnRoles:
    """
    Infer column roles from the first data row.

    Subject columns are numeric in the first row and neither reserved
    metadata (ids, phone, year...) nor already claimed by another role.
    """
    headers = list(first_row.keys())

    group_col = _find_header(headers, GROUP_HEADERS)
    id_col = _find_header(headers, ID_HEADERS)
    name_col = _find_header(headers, NAME_HEADERS)
    if name_col is None:
        name_col = next(
            (
                h for h in headers
                if isinstance(first_row[h], str) and h not in (id_col, group_col)
            ),
            None,
        )

    claimed = {group_col, id_col, name_col}
    subjects = tuple(
        h for h in headers
        if is_number(first_row[h])
        and normalize_header(h) not in RESERVED_HEADERS
        and h not in claimed
    )

    roles = ColumnRoles(
        subjects=subjects,
        group_column=group_col,
        id_column=id_col,
        name_column=name_col,
    )
    logger.debug(
        "Detected roles: %d subject(s), group=%s, id=%s, name=%s",
        len(subjects), group_col, id_col, name_col,
    )
    return roles
