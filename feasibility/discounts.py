"""Discount engine — blended scholarship/discount rate and total per year.

Per definition d and year y:

    ratio_y    = clamp(round(count_y) / tuition_students_y)   when count_y is entered
               = clamp(stored ratio_y)                        otherwise
    percent    rate_d = ratio_y * clamp(value_y)
               amount = gross_tuition_y * rate_d
    fixed      per_student = value_y if entered for y, else value * f_y
               rate_d = ratio_y * per_student / avg_tuition_fee_y   (0 when no fee)
               amount = tuition_students_y * ratio_y * per_student

    capped_rate_y   = clamp(sum(rate_d))
    total_discount  = min(gross_tuition_y, gross_tuition_y * capped_rate_y)

Each year reads only its own fields. Y2/Y3 ratios and counts were filled
from Y1 when the document was normalized; an unset Y2/Y3 value falls back
to the Y1 value (percent) or the inflated Y1 amount (fixed).
"""

from __future__ import annotations

from typing import Callable

from feasibility.config import EngineConfig, default_config
from feasibility.currency import unconverted
from feasibility.formulas import clamp, nonneg
from feasibility.periods import YEAR_KEYS
from feasibility.types import DiscountLine, DiscountResult, DiscountYear, IncomeResult


def _field(base_key: str, year: str) -> str:
    return base_key if year == "y1" else f"{base_key}{year.upper()}"


def effective_ratio(d: dict, year: str, tuition_students: float) -> float:
    """Student-count override first, then the stored ratio for that year."""
    count = d.get(_field("studentCount", year))
    if count is not None and tuition_students > 0:
        return clamp(round(nonneg(count)) / tuition_students)
    return clamp(d.get(_field("ratio", year)))


def per_student_value(d: dict, year: str, factor: float,
                      money: Callable[[float], float] = unconverted) -> float:
    """Fixed-mode amount per student for the year."""
    explicit = d.get(_field("value", year))
    if year != "y1" and explicit is not None:
        return money(nonneg(explicit))
    return money(nonneg(d.get("value"))) * factor


def percent_value(d: dict, year: str) -> float:
    raw = d.get(_field("value", year))
    if raw is None:
        raw = d.get("value")
    return clamp(raw)


def project_discounts(doc: dict, income: IncomeResult, factors: dict[str, float],
                      money: Callable[[float], float] = unconverted) -> DiscountResult:
    """Per-definition contributions and capped yearly totals."""
    definitions = doc.get("discounts") or []
    lines: list[DiscountLine] = [
        {"name": d["name"], "mode": d["mode"], "ratio": {}, "students": {},
         "value": {}, "rate": {}, "amount": {}}
        for d in definitions
    ]
    years: dict[str, DiscountYear] = {}

    for y in YEAR_KEYS:
        inc = income.years[y]
        students = inc.tuition_students
        gross = inc.gross_tuition
        avg_fee = inc.avg_tuition_fee or 0.0
        rate_sum = 0.0

        for d, line in zip(definitions, lines):
            ratio = effective_ratio(d, y, students)
            if d["mode"] == "fixed":
                value = per_student_value(d, y, factors[y], money)
                rate = ratio * value / avg_fee if avg_fee > 0 else 0.0
                amount = students * ratio * value
            else:
                value = percent_value(d, y)
                rate = ratio * value
                amount = gross * rate
            line["ratio"][y] = ratio
            line["students"][y] = students * ratio
            line["value"][y] = value
            line["rate"][y] = rate
            line["amount"][y] = amount
            rate_sum += rate

        capped = clamp(rate_sum)
        if gross <= 0 or students <= 0:
            total = 0.0
        else:
            total = min(gross, gross * capped)
        years[y] = DiscountYear(
            gross_tuition=gross,
            tuition_students=students,
            activity_gross=inc.activity_gross,
            other_income=inc.other_income_total,
            rate_sum=rate_sum,
            capped_rate=capped,
            total_discount=total,
        )

    return DiscountResult(lines=lines, years=years)


def scholarship_rows(result: DiscountResult,
                     cfg: EngineConfig | None = None) -> list[DiscountLine]:
    """Discount lines in catalogue order, zero rows for unused catalogue
    names, then any custom definitions."""
    cfg = cfg if cfg is not None else default_config()
    zero = {y: 0.0 for y in YEAR_KEYS}
    by_name: dict[str, list[DiscountLine]] = {}
    for line in result.lines:
        by_name.setdefault(line["name"], []).append(line)

    out: list[DiscountLine] = []
    for name in cfg.catalog["scholarships"]:
        if name in by_name:
            out.extend(by_name.pop(name))
        else:
            out.append({"name": name, "mode": "percent", "ratio": dict(zero),
                        "students": dict(zero), "value": dict(zero),
                        "rate": dict(zero), "amount": dict(zero)})
    for lines in by_name.values():
        out.extend(lines)
    return out
