"""Capacity projection — seats, utilization and enrollment growth per band."""

from __future__ import annotations

from feasibility.bands import band_label, visible_bands
from feasibility.config import EngineConfig, default_config
from feasibility.formulas import nonneg, safe_div
from feasibility.periods import PERIOD_KEYS, YEAR_KEYS, previous_period
from feasibility.types import CapacityLine, CapacityResult, CohortResult

TOTAL = "TOTAL"


def utilization(students: float, capacity: float) -> float | None:
    """students / capacity; None when there is no capacity."""
    if capacity <= 0:
        return None
    return safe_div(students, capacity)


def _build_line(band: str, label: str, capacity: dict[str, float],
                students: dict[str, float]) -> CapacityLine:
    delta: dict[str, float] = {}
    growth: dict[str, float | None] = {}
    for y in YEAR_KEYS:
        prev = students[previous_period(y)]
        delta[y] = students[y] - prev
        growth[y] = delta[y] / prev if prev > 0 else None
    return {
        "band": band,
        "label": label,
        "capacity": capacity,
        "students": students,
        "utilization": {p: utilization(students[p], capacity[p]) for p in PERIOD_KEYS},
        "delta": delta,
        "growth_rate": growth,
    }


def project_capacity(doc: dict, cohorts: CohortResult,
                     cfg: EngineConfig | None = None) -> CapacityResult:
    """Visible-band lines plus a TOTAL line summed from them."""
    cfg = cfg if cfg is not None else default_config()
    kademe = doc["kademeler"]
    lines: list[CapacityLine] = []
    for band in visible_bands(kademe, cfg):
        caps = doc["capacity"][band]["caps"]
        capacity = {p: nonneg(caps.get(p)) for p in PERIOD_KEYS}
        students = {p: cohorts.band_students(p, band) for p in PERIOD_KEYS}
        lines.append(_build_line(band, band_label(band, kademe, cfg), capacity, students))

    total_capacity = {p: sum(ln["capacity"][p] for ln in lines) for p in PERIOD_KEYS}
    total_students = {p: sum(ln["students"][p] for ln in lines) for p in PERIOD_KEYS}
    total = _build_line(TOTAL, "TOPLAM", total_capacity, total_students)
    return CapacityResult(bands=lines, total=total)
