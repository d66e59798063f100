"""Data shapes for the projection engine.

Document rows (TypedDict) mirror the persisted scenario JSON and keep its
camelCase keys. Result objects (dataclasses) are what the engine hands to
the editing surface and to the report builder.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypedDict

from feasibility.formulas import safe_div


# ── Document rows ───────────────────────────────────────────────

class GradeRow(TypedDict):
    grade: str
    branchCount: float
    totalStudents: float    # grade total, not per branch


KademeEntry = TypedDict("KademeEntry", {"enabled": bool, "from": str, "to": str})


class TuitionRow(TypedDict):
    key: str
    unitFee: float


class FeeRow(TypedDict):
    key: str
    label: str
    unitFee: float
    studentCount: float
    studentCountY2: float
    studentCountY3: float


class AmountRow(TypedDict):
    key: str
    label: str
    amount: float


class DiscountDef(TypedDict):
    name: str
    mode: str                   # "percent" | "fixed"
    value: float
    valueY2: float | None       # None: percent reuses Y1, fixed inflates Y1
    valueY3: float | None
    ratio: float
    ratioY2: float
    ratioY3: float
    studentCount: float | None
    studentCountY2: float | None
    studentCountY3: float | None


# ── Income ──────────────────────────────────────────────────────

class IncomeLine(TypedDict):
    key: str
    label: str
    active: bool
    students: dict[str, float]      # year -> count
    unit_fee: dict[str, float]      # year -> inflated fee
    amount: dict[str, float]        # year -> total


@dataclass
class IncomeYear:
    gross_tuition: float = 0.0
    tuition_students: float = 0.0
    non_education_total: float = 0.0
    dormitory_total: float = 0.0
    other_institution_total: float = 0.0
    government_incentives: float = 0.0

    @property
    def activity_gross(self) -> float:
        return self.gross_tuition + self.non_education_total + self.dormitory_total

    @property
    def other_income_total(self) -> float:
        return self.other_institution_total + self.government_incentives

    @property
    def total_gross_income(self) -> float:
        return self.activity_gross + self.other_income_total

    @property
    def avg_tuition_fee(self) -> float | None:
        if self.tuition_students <= 0:
            return None
        return self.gross_tuition / self.tuition_students


@dataclass
class IncomeResult:
    tuition: list[IncomeLine]
    non_education: list[IncomeLine]
    dormitory: list[IncomeLine]
    other: list[IncomeLine]
    years: dict[str, IncomeYear]

    def line(self, section: str, key: str) -> IncomeLine | None:
        for row in getattr(self, section):
            if row["key"] == key:
                return row
        return None


# ── Discounts ───────────────────────────────────────────────────

class DiscountLine(TypedDict):
    name: str
    mode: str
    ratio: dict[str, float]         # effective, after count override + clamp
    students: dict[str, float]      # students receiving the discount
    value: dict[str, float]         # percent or per-student amount used
    rate: dict[str, float]          # contribution to the blended rate
    amount: dict[str, float]


@dataclass
class DiscountYear:
    gross_tuition: float = 0.0
    tuition_students: float = 0.0
    activity_gross: float = 0.0
    other_income: float = 0.0
    rate_sum: float = 0.0
    capped_rate: float = 0.0
    total_discount: float = 0.0

    @property
    def cap_applied(self) -> bool:
        return self.rate_sum > 1.0

    @property
    def net_activity_income(self) -> float:
        return self.activity_gross - self.total_discount

    @property
    def net_total_income(self) -> float:
        return self.activity_gross + self.other_income - self.total_discount

    @property
    def discount_to_tuition(self) -> float | None:
        return safe_div(self.total_discount, self.gross_tuition)


@dataclass
class DiscountResult:
    lines: list[DiscountLine]
    years: dict[str, DiscountYear]


# ── HR ──────────────────────────────────────────────────────────

class HRRoleLine(TypedDict):
    role: str
    label: str
    group: str
    headcount: dict[str, float]
    unit_cost: dict[str, float]
    annual_cost: dict[str, float]
    monthly_avg: dict[str, float | None]   # per person per month


@dataclass
class HRYear:
    total_cost: float = 0.0
    total_headcount: float = 0.0
    salary_mapping: dict[str, float] = field(default_factory=dict)


@dataclass
class HRResult:
    unit_cost_ratio: float
    roles: list[HRRoleLine]
    years: dict[str, HRYear]

    def salary_expense_mapping(self, year: str) -> dict[str, float]:
        return dict(self.years[year].salary_mapping)


# ── Expenses ────────────────────────────────────────────────────

class ExpenseLine(TypedDict):
    key: str
    no: int
    code: int
    label: str
    group: str | None
    section: str                        # operating | services | dormitory
    hr_derived: bool
    students: dict[str, float] | None   # services/dormitory only
    unit_cost: dict[str, float] | None
    amount: dict[str, float]
    share_of_total: dict[str, float | None]
    share_of_revenue: dict[str, float | None]
    yoy: dict[str, float | None]


@dataclass
class ExpenseYear:
    operating_total: float = 0.0
    service_total: float = 0.0
    dormitory_total: float = 0.0
    hr_total: float = 0.0
    net_revenue: float = 0.0

    @property
    def total_expenses(self) -> float:
        return self.operating_total + self.service_total + self.dormitory_total

    @property
    def expense_to_revenue(self) -> float | None:
        return safe_div(self.total_expenses, self.net_revenue)

    @property
    def hr_share(self) -> float | None:
        return safe_div(self.hr_total, self.total_expenses)


@dataclass
class ExpenseResult:
    lines: list[ExpenseLine]
    years: dict[str, ExpenseYear]

    def section(self, name: str) -> list[ExpenseLine]:
        return [ln for ln in self.lines if ln["section"] == name]

    def line(self, key: str) -> ExpenseLine | None:
        for ln in self.lines:
            if ln["key"] == key:
                return ln
        return None


# ── Cohorts & capacity ──────────────────────────────────────────

@dataclass
class CohortResult:
    """Per-period band sums. Keys: band keys + 'total'."""
    students: dict[str, dict[str, float]]
    branches: dict[str, dict[str, float]]

    def band_students(self, period: str, band: str) -> float:
        return self.students[period].get(band, 0.0)

    def total_students(self, period: str) -> float:
        return self.students[period]["total"]


class CapacityLine(TypedDict):
    band: str
    label: str
    capacity: dict[str, float]
    students: dict[str, float]
    utilization: dict[str, float | None]
    delta: dict[str, float]
    growth_rate: dict[str, float | None]


@dataclass
class CapacityResult:
    bands: list[CapacityLine]
    total: CapacityLine


# ── Norm ────────────────────────────────────────────────────────

@dataclass
class NormYear:
    teacher_weekly_max_hours: float
    total_teaching_hours: float = 0.0
    required_teachers: int | None = None
    by_grade: list[dict] = field(default_factory=list)
    by_subject: list[dict] = field(default_factory=list)


# ── KPIs ────────────────────────────────────────────────────────

@dataclass
class YearKpis:
    net_result: float = 0.0
    student_base: float = 0.0
    revenue_per_student: float | None = None
    net_ciro_per_student: float | None = None
    cost_per_student: float | None = None
    profit_per_student: float | None = None
    profit_margin: float | None = None
    discount_to_tuition_ratio: float | None = None
    hr_share: float | None = None
    other_income_ratio: float | None = None
    utilization: float | None = None
    warnings: list[str] = field(default_factory=list)
