"""Income projection — tuition, non-tuition fees, dormitory and other income.

For year y with inflation factor f_y:

    tuition_y      = sum(students(variant, y) * unitFee * f_y)
    non_ed_y       = sum(entered count_y * unitFee * f_y)
    dormitory_y    = sum(entered count_y * unitFee * f_y)
    activity_y     = tuition_y + non_ed_y + dormitory_y
    other_y        = (sum(amount) + governmentIncentives) * f_y

Tuition students are never entered: each variant row takes its base
band's cohort for the year, and rows hidden by the program type or by a
disabled band count zero students.
"""

from __future__ import annotations

from typing import Callable

from feasibility.bands import variant_active, variant_band, variant_label
from feasibility.config import EngineConfig, default_config
from feasibility.currency import unconverted
from feasibility.formulas import nonneg
from feasibility.periods import YEAR_KEYS
from feasibility.types import CohortResult, IncomeLine, IncomeResult, IncomeYear

_COUNT_FIELDS = {"y1": "studentCount", "y2": "studentCountY2", "y3": "studentCountY3"}


def entered_count(row: dict, year: str) -> float:
    """Per-year entered count; each year reads its own field."""
    return nonneg(row.get(_COUNT_FIELDS[year]))


def _line(key: str, label: str, active: bool, students: dict[str, float],
          unit_fee: float, factors: dict[str, float]) -> IncomeLine:
    fee = {y: unit_fee * factors[y] for y in YEAR_KEYS}
    return {
        "key": key,
        "label": label,
        "active": active,
        "students": students,
        "unit_fee": fee,
        "amount": {y: students[y] * fee[y] for y in YEAR_KEYS},
    }


def tuition_lines(doc: dict, cohorts: CohortResult, factors: dict[str, float],
                  cfg: EngineConfig, money: Callable[[float], float]) -> list[IncomeLine]:
    lines: list[IncomeLine] = []
    for row in doc["income"]["tuition"]:
        variant = row["key"]
        active = variant_active(variant, doc["programType"], doc["kademeler"], cfg)
        band = variant_band(variant, cfg)
        students = {y: cohorts.band_students(y, band) if active else 0.0
                    for y in YEAR_KEYS}
        label = variant_label(variant, doc["kademeler"], cfg)
        lines.append(_line(variant, label, active, students,
                           money(row["unitFee"]), factors))
    return lines


def fee_lines(rows: list[dict], factors: dict[str, float],
              money: Callable[[float], float]) -> list[IncomeLine]:
    return [
        _line(row["key"], row["label"], True,
              {y: entered_count(row, y) for y in YEAR_KEYS},
              money(row["unitFee"]), factors)
        for row in rows
    ]


def other_lines(rows: list[dict], factors: dict[str, float],
                money: Callable[[float], float]) -> list[IncomeLine]:
    lines: list[IncomeLine] = []
    for row in rows:
        base = money(row["amount"])
        lines.append({
            "key": row["key"],
            "label": row["label"],
            "active": True,
            "students": {y: 0.0 for y in YEAR_KEYS},
            "unit_fee": {y: 0.0 for y in YEAR_KEYS},
            "amount": {y: base * factors[y] for y in YEAR_KEYS},
        })
    return lines


def project_income(doc: dict, cohorts: CohortResult, factors: dict[str, float],
                   cfg: EngineConfig | None = None,
                   money: Callable[[float], float] = unconverted) -> IncomeResult:
    """Per-row and per-year income from a normalized document."""
    cfg = cfg if cfg is not None else default_config()
    inc = doc["income"]
    tuition = tuition_lines(doc, cohorts, factors, cfg, money)
    non_ed = fee_lines(inc["nonEducationFees"], factors, money)
    dorm = fee_lines(inc["dormitory"], factors, money)
    other = other_lines(inc["otherInstitutionIncome"], factors, money)
    incentives = money(inc["governmentIncentives"])

    years: dict[str, IncomeYear] = {}
    for y in YEAR_KEYS:
        years[y] = IncomeYear(
            gross_tuition=sum(ln["amount"][y] for ln in tuition),
            tuition_students=sum(ln["students"][y] for ln in tuition),
            non_education_total=sum(ln["amount"][y] for ln in non_ed),
            dormitory_total=sum(ln["amount"][y] for ln in dorm),
            other_institution_total=sum(ln["amount"][y] for ln in other),
            government_incentives=incentives * factors[y],
        )
    return IncomeResult(tuition=tuition, non_education=non_ed, dormitory=dorm,
                        other=other, years=years)
