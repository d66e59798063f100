"""Student cohorts — per-band student/branch totals for cur, y1, y2, y3."""

from __future__ import annotations

from feasibility.bands import aggregate
from feasibility.config import EngineConfig, default_config
from feasibility.periods import YEAR_KEYS
from feasibility.types import CohortResult


def period_rows(doc: dict, period: str) -> list:
    if period == "cur":
        return doc.get("gradesCurrent") or []
    return (doc.get("gradesYears") or {}).get(period) or []


def aggregate_cohorts(doc: dict, cfg: EngineConfig | None = None) -> CohortResult:
    """Band sums of a normalized document's grade rows for every period."""
    cfg = cfg if cfg is not None else default_config()
    kademe = doc.get("kademeler")
    students: dict[str, dict[str, float]] = {}
    branches: dict[str, dict[str, float]] = {}
    for period in ("cur",) + YEAR_KEYS:
        rows = period_rows(doc, period)
        students[period] = aggregate(rows, kademe, cfg, field="totalStudents")
        branches[period] = aggregate(rows, kademe, cfg, field="branchCount")
    return CohortResult(students=students, branches=branches)
