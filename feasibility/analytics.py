"""Feasibility KPIs and warnings per projected year."""

from __future__ import annotations

from feasibility.config import EngineConfig, default_config
from feasibility.formulas import safe_div
from feasibility.periods import YEAR_KEYS
from feasibility.types import (
    CapacityResult,
    CohortResult,
    DiscountResult,
    ExpenseResult,
    YearKpis,
)


def feasibility_warnings(kpis: YearKpis, cfg: EngineConfig) -> list[str]:
    warnings: list[str] = []
    util = kpis.utilization
    if util is not None:
        if util < cfg.utilization_low:
            warnings.append(f"Low utilization ({util * 100:.2f}%).")
        if util > cfg.utilization_high:
            warnings.append(f"High utilization ({util * 100:.2f}%). Capacity risk.")
    if kpis.profit_margin is not None and kpis.profit_margin < 0:
        warnings.append("Operating loss (profit margin < 0).")
    ratio = kpis.discount_to_tuition_ratio
    if ratio is not None and ratio > cfg.discount_pressure:
        warnings.append("High discount pressure.")
    return warnings


def compute_kpis(cohorts: CohortResult, discounts: DiscountResult,
                 expenses: ExpenseResult, capacity: CapacityResult,
                 cfg: EngineConfig | None = None) -> dict[str, YearKpis]:
    """Per-student figures use tuition students, or the cohort total when
    no tuition students exist."""
    cfg = cfg if cfg is not None else default_config()
    out: dict[str, YearKpis] = {}
    for y in YEAR_KEYS:
        disc = discounts.years[y]
        exp = expenses.years[y]
        base = disc.tuition_students if disc.tuition_students > 0 else cohorts.total_students(y)
        net_income = disc.net_total_income
        total_expenses = exp.total_expenses
        net_result = net_income - total_expenses
        k = YearKpis(
            net_result=net_result,
            student_base=base,
            revenue_per_student=safe_div(net_income, base),
            net_ciro_per_student=safe_div(disc.net_activity_income, base),
            cost_per_student=safe_div(total_expenses, base),
            profit_per_student=safe_div(net_result, base),
            profit_margin=safe_div(net_result, net_income),
            discount_to_tuition_ratio=disc.discount_to_tuition,
            hr_share=exp.hr_share,
            other_income_ratio=(disc.other_income / net_income) if net_income > 0 else None,
            utilization=capacity.total["utilization"][y],
        )
        k.warnings = feasibility_warnings(k, cfg)
        out[y] = k
    return out
