"""Expense projection — operating items, student services, dormitory.

Operating items follow the fixed catalogue order. The five salary rows
are HR-derived: their amounts come from HRResult.salary_expense_mapping
and are never read from the document. Every other operating item is
entered for Y1 and inflated for Y2/Y3.

Service and dormitory items pair 1:1 with an income row (catalog
income_key) and reuse that row's per-year student counts:

    amount_y = income_count_y * unitCost * f_y
"""

from __future__ import annotations

from typing import Callable

from feasibility.config import EngineConfig, default_config
from feasibility.currency import unconverted
from feasibility.formulas import nonneg, safe_div
from feasibility.periods import YEAR_KEYS
from feasibility.types import (
    DiscountResult,
    ExpenseLine,
    ExpenseResult,
    ExpenseYear,
    HRResult,
    IncomeResult,
)


def yoy_change(amount: dict[str, float]) -> dict[str, float | None]:
    """cur / prev - 1 when prev > 0; Y1 has no previous year."""
    out: dict[str, float | None] = {"y1": None}
    for prev, cur in zip(YEAR_KEYS, YEAR_KEYS[1:]):
        out[cur] = amount[cur] / amount[prev] - 1 if amount[prev] > 0 else None
    return out


def _line(item: dict, section: str, amount: dict[str, float],
          students: dict[str, float] | None = None,
          unit_cost: dict[str, float] | None = None) -> ExpenseLine:
    return {
        "key": item["key"],
        "no": item.get("no", 0),
        "code": item.get("code", 0),
        "label": item["label"],
        "group": item.get("group"),
        "section": section,
        "hr_derived": bool(item.get("hr_derived")),
        "students": students,
        "unit_cost": unit_cost,
        "amount": amount,
        "share_of_total": {},
        "share_of_revenue": {},
        "yoy": yoy_change(amount),
    }


def _paired_lines(items: list[dict], section: str, unit_costs: dict,
                  income_lines: list, factors: dict[str, float],
                  money: Callable[[float], float]) -> list[ExpenseLine]:
    counts = {ln["key"]: ln["students"] for ln in income_lines}
    lines: list[ExpenseLine] = []
    for it in items:
        students = counts.get(it["income_key"]) or {y: 0.0 for y in YEAR_KEYS}
        base = money(nonneg((unit_costs.get(it["key"]) or {}).get("unitCost")))
        unit = {y: base * factors[y] for y in YEAR_KEYS}
        amount = {y: students[y] * unit[y] for y in YEAR_KEYS}
        lines.append(_line(it, section, amount, dict(students), unit))
    return lines


def project_expenses(doc: dict, income: IncomeResult, discounts: DiscountResult,
                     hr: HRResult, factors: dict[str, float],
                     cfg: EngineConfig | None = None,
                     money: Callable[[float], float] = unconverted) -> ExpenseResult:
    """All expense lines, section totals and percentage columns."""
    cfg = cfg if cfg is not None else default_config()
    exp = doc["expenses"]
    catalog = cfg.catalog

    lines: list[ExpenseLine] = []
    for it in catalog["operating_items"]:
        if it.get("hr_derived"):
            amount = {y: hr.salary_expense_mapping(y)[it["key"]] for y in YEAR_KEYS}
        else:
            base = money(nonneg(exp["operating"].get(it["key"])))
            amount = {y: base * factors[y] for y in YEAR_KEYS}
        lines.append(_line(it, "operating", amount))

    lines.extend(_paired_lines(catalog["service_items"], "services", exp["services"],
                               income.non_education, factors, money))
    lines.extend(_paired_lines(catalog["dormitory_items"], "dormitory", exp["dormitory"],
                               income.dormitory, factors, money))

    years: dict[str, ExpenseYear] = {}
    for y in YEAR_KEYS:
        totals = {s: sum(ln["amount"][y] for ln in lines if ln["section"] == s)
                  for s in ("operating", "services", "dormitory")}
        years[y] = ExpenseYear(
            operating_total=totals["operating"],
            service_total=totals["services"],
            dormitory_total=totals["dormitory"],
            hr_total=sum(ln["amount"][y] for ln in lines if ln["hr_derived"]),
            net_revenue=discounts.years[y].net_activity_income,
        )
        for ln in lines:
            ln["share_of_total"][y] = safe_div(ln["amount"][y], totals[ln["section"]])
            ln["share_of_revenue"][y] = safe_div(ln["amount"][y], years[y].net_revenue)

    return ExpenseResult(lines=lines, years=years)
