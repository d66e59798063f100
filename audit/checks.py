"""Pure audit check functions for the school feasibility model.

Each function takes engine output and returns a list of check result tuples:
    (section: str, name: str, expected: float, actual: float, delta: float, passed: bool)

All checks read from engine output (ProjectionResult and its parts), never
from the editing surface.
"""

from __future__ import annotations

from feasibility.config import EngineConfig
from feasibility.periods import PERIOD_KEYS, YEAR_KEYS
from feasibility.scenario import ScenarioDocument
from feasibility.schema import normalize
from feasibility.types import (
    CapacityResult,
    CohortResult,
    DiscountResult,
    ExpenseResult,
    HRResult,
    IncomeResult,
)

TOLERANCE = 0.01  # display currency units


# ── Helper ────────────────────────────────────────────────────────

def _check(results: list, section: str, name: str,
           expected: float, actual: float, tolerance: float = TOLERANCE) -> None:
    """Append a single check result to the results list."""
    delta = abs(expected - actual)
    ok = delta <= tolerance
    results.append((section, name, expected, actual, delta, ok))


# ── Classification ────────────────────────────────────────────────

def classify_check(section: str, name: str) -> str:
    """Return 'arithmetic' or 'model_design' for a check.

    Model design gaps are known structural differences, not bugs:
    - per-definition discount amounts are not scaled down when the blended
      rate is capped at 100%, or when tuition has students but no fee
    """
    if "sum(definition amounts) = total discount" in name:
        return "model_design"
    return "arithmetic"


# ── Inflation ─────────────────────────────────────────────────────

def check_factors(factors: dict[str, float], inflation: dict) -> list[tuple]:
    """Compounding: f1 = 1, f2 = 1 + r2, f3 = f2 * (1 + r3)."""
    results: list[tuple] = []
    sec = "INFLATION"
    r2 = inflation.get("y2", 0.0)
    r3 = inflation.get("y3", 0.0)
    _check(results, sec, "Y1 factor = 1", 1.0, factors["y1"], 1e-12)
    _check(results, sec, "Y2 factor = 1 + r2", 1.0 + r2, factors["y2"], 1e-12)
    _check(results, sec, "Y3 factor = f2 * (1 + r3)",
           factors["y2"] * (1.0 + r3), factors["y3"], 1e-12)
    return results


# ── Cohorts ───────────────────────────────────────────────────────

def check_cohorts(cohorts: CohortResult, cfg: EngineConfig) -> list[tuple]:
    """Band sums add up to the period total (students and branches)."""
    results: list[tuple] = []
    sec = "COHORTS"
    for p in PERIOD_KEYS:
        students = cohorts.students[p]
        branches = cohorts.branches[p]
        _check(results, sec, f"{p.upper()} students: sum(bands) = total",
               sum(students.get(b, 0.0) for b in cfg.band_keys), students["total"])
        _check(results, sec, f"{p.upper()} branches: sum(bands) = total",
               sum(branches.get(b, 0.0) for b in cfg.band_keys), branches["total"])
    return results


# ── Income ────────────────────────────────────────────────────────

def check_income(income: IncomeResult) -> list[tuple]:
    """Section totals equal their line sums; gross = activity + other."""
    results: list[tuple] = []
    sec = "INCOME"
    for y in YEAR_KEYS:
        iy = income.years[y]
        tag = y.upper()
        _check(results, sec, f"{tag} tuition = sum(lines)",
               sum(ln["amount"][y] for ln in income.tuition), iy.gross_tuition)
        _check(results, sec, f"{tag} tuition students = sum(lines)",
               sum(ln["students"][y] for ln in income.tuition), iy.tuition_students)
        _check(results, sec, f"{tag} non-education = sum(lines)",
               sum(ln["amount"][y] for ln in income.non_education),
               iy.non_education_total)
        _check(results, sec, f"{tag} dormitory = sum(lines)",
               sum(ln["amount"][y] for ln in income.dormitory), iy.dormitory_total)
        _check(results, sec, f"{tag} other institution = sum(lines)",
               sum(ln["amount"][y] for ln in income.other), iy.other_institution_total)
        _check(results, sec, f"{tag} gross = activity + other",
               iy.activity_gross + iy.other_income_total, iy.total_gross_income)
    return results


# ── Discounts ─────────────────────────────────────────────────────

def check_discounts(income: IncomeResult, discounts: DiscountResult) -> list[tuple]:
    """Total discount never exceeds activity gross; net = gross - discount."""
    results: list[tuple] = []
    sec = "DISCOUNTS"
    for y in YEAR_KEYS:
        iy = income.years[y]
        dy = discounts.years[y]
        tag = y.upper()
        excess = max(0.0, dy.total_discount - max(iy.activity_gross, 0.0))
        _check(results, sec, f"{tag} discount <= activity gross", 0.0, excess)
        _check(results, sec, f"{tag} blended rate within [0, 1]",
               min(max(dy.capped_rate, 0.0), 1.0), dy.capped_rate, 1e-12)
        _check(results, sec, f"{tag} net activity = gross - discount",
               iy.activity_gross - dy.total_discount, dy.net_activity_income)
        _check(results, sec, f"{tag} net total = gross + other - discount",
               iy.total_gross_income - dy.total_discount, dy.net_total_income)
        _check(results, sec, f"{tag} sum(definition amounts) = total discount",
               sum(ln["amount"][y] for ln in discounts.lines), dy.total_discount)
    return results


# ── HR ────────────────────────────────────────────────────────────

def check_hr(hr: HRResult) -> list[tuple]:
    """Role costs and the salary mapping both reconcile to the HR total."""
    results: list[tuple] = []
    sec = "HR"
    for y in YEAR_KEYS:
        hy = hr.years[y]
        tag = y.upper()
        _check(results, sec, f"{tag} sum(role costs) = HR total",
               sum(r["annual_cost"][y] for r in hr.roles), hy.total_cost)
        _check(results, sec, f"{tag} sum(salary mapping) = HR total",
               sum(hr.salary_expense_mapping(y).values()), hy.total_cost)
        _check(results, sec, f"{tag} sum(role headcount) = total headcount",
               sum(r["headcount"][y] for r in hr.roles), hy.total_headcount, 1e-9)
    return results


# ── Expenses ──────────────────────────────────────────────────────

def check_expenses(expenses: ExpenseResult, hr: HRResult) -> list[tuple]:
    """Sections sum to the grand total; salary rows carry the HR cost."""
    results: list[tuple] = []
    sec = "EXPENSES"
    for y in YEAR_KEYS:
        ey = expenses.years[y]
        tag = y.upper()
        _check(results, sec, f"{tag} operating = sum(lines)",
               sum(ln["amount"][y] for ln in expenses.section("operating")),
               ey.operating_total)
        _check(results, sec, f"{tag} services = sum(lines)",
               sum(ln["amount"][y] for ln in expenses.section("services")),
               ey.service_total)
        _check(results, sec, f"{tag} dormitory = sum(lines)",
               sum(ln["amount"][y] for ln in expenses.section("dormitory")),
               ey.dormitory_total)
        _check(results, sec, f"{tag} total = operating + services + dormitory",
               ey.operating_total + ey.service_total + ey.dormitory_total,
               ey.total_expenses)
        _check(results, sec, f"{tag} salary rows = HR total",
               hr.years[y].total_cost, ey.hr_total)
    return results


# ── Capacity ──────────────────────────────────────────────────────

def check_capacity(capacity: CapacityResult, cohorts: CohortResult) -> list[tuple]:
    """TOTAL line equals the sum of the visible band lines."""
    results: list[tuple] = []
    sec = "CAPACITY"
    total = capacity.total
    for p in PERIOD_KEYS:
        tag = p.upper()
        _check(results, sec, f"{tag} capacity: sum(bands) = total",
               sum(ln["capacity"][p] for ln in capacity.bands), total["capacity"][p])
        _check(results, sec, f"{tag} students: sum(bands) = total",
               sum(ln["students"][p] for ln in capacity.bands), total["students"][p])
        _check(results, sec, f"{tag} total students = cohort total",
               cohorts.total_students(p), total["students"][p])
    return results


# ── Document ──────────────────────────────────────────────────────

def check_normalization(document: ScenarioDocument) -> list[tuple]:
    """Normalizing an already normalized document changes nothing."""
    results: list[tuple] = []
    renormalized = normalize(document.to_dict(), document.cfg)
    changed = [k for k in document.data if renormalized.get(k) != document.data[k]]
    _check(results, "DOCUMENT", "normalize(normalize(doc)) = normalize(doc)",
           0.0, float(len(changed)), 0.0)
    return results
