"""Projection orchestrator — one forward pass over the engine components.

Architecture:
    PASS 0: Normalize. Raw documents become a ScenarioDocument once,
            at the boundary; nothing downstream sees a legacy shape.
    PASS 1: Inflation factors, currency normalizer, student cohorts.
    PASS 2: Income, then discounts (reads income's tuition totals).
    PASS 3: HR costs, then expenses (reads HR's salary mapping and the
            net activity income after discounts).
    PASS 4: Capacity (reads cohorts) and norm teachers (reads grades).
    PASS 5: KPIs and warnings.

Data flows strictly downward: no pass reads the output of a later one.
The editing surface and the report/export builder both call
run_projection(); there is no second implementation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from feasibility.analytics import compute_kpis
from feasibility.capacity import project_capacity
from feasibility.cohorts import aggregate_cohorts
from feasibility.config import EngineConfig, ReportOptions
from feasibility.currency import CurrencyNormalizer
from feasibility.discounts import project_discounts
from feasibility.expenses import project_expenses
from feasibility.formulas import inflation_factors
from feasibility.hr import project_hr
from feasibility.income import project_income
from feasibility.norm import project_norm
from feasibility.periods import YEAR_KEYS, YearMeta, year_meta
from feasibility.scenario import ScenarioDocument
from feasibility.types import (
    CapacityResult,
    CohortResult,
    DiscountResult,
    ExpenseResult,
    HRResult,
    IncomeResult,
    NormYear,
    YearKpis,
)

logger = logging.getLogger(__name__)


@dataclass
class ProjectionResult:
    """Everything the editor and the report builder read."""
    document: ScenarioDocument
    currency: CurrencyNormalizer
    factors: dict[str, float]
    years: dict[str, YearMeta]
    cohorts: CohortResult
    income: IncomeResult
    discounts: DiscountResult
    hr: HRResult
    expenses: ExpenseResult
    capacity: CapacityResult
    norm: dict[str, NormYear]
    kpis: dict[str, YearKpis]

    @property
    def currency_code(self) -> str:
        return self.currency.display_code

    def summary(self, year: str) -> dict:
        """Headline figures for one year."""
        inc = self.income.years[year]
        disc = self.discounts.years[year]
        exp = self.expenses.years[year]
        return {
            "year": year,
            "label": self.years[year].label_short,
            "students": self.cohorts.total_students(year),
            "gross_tuition": inc.gross_tuition,
            "non_education_total": inc.non_education_total,
            "dormitory_total": inc.dormitory_total,
            "activity_gross": inc.activity_gross,
            "other_income_total": inc.other_income_total,
            "total_gross_income": inc.total_gross_income,
            "total_discount": disc.total_discount,
            "net_activity_income": disc.net_activity_income,
            "net_total_income": disc.net_total_income,
            "operating_total": exp.operating_total,
            "service_total": exp.service_total,
            "dormitory_cost_total": exp.dormitory_total,
            "total_expenses": exp.total_expenses,
            "net_result": self.kpis[year].net_result,
        }

    @property
    def summary_rows(self) -> list[dict]:
        return [self.summary(y) for y in YEAR_KEYS]

    @property
    def dataframe(self):
        """Per-year summary as a pandas DataFrame indexed by year."""
        import pandas as pd
        df = pd.DataFrame(self.summary_rows).set_index("year")
        df.attrs["currency"] = self.currency_code
        return df


def run_projection(document, cfg: EngineConfig | None = None,
                   options: ReportOptions | None = None) -> ProjectionResult:
    """Run every engine component over one scenario snapshot.

    document may be a ScenarioDocument or any stored document shape.
    """
    if not isinstance(document, ScenarioDocument):
        document = ScenarioDocument.from_raw(document, cfg)
    cfg = cfg if cfg is not None else document.config
    options = options if options is not None else ReportOptions.defaults()
    doc = document.data

    # PASS 1
    cur = doc["currency"]
    money = CurrencyNormalizer(
        entry_currency=cur["inputCurrency"],
        display_currency=options.resolve_display(cur["inputCurrency"]),
        fx_rate=cur["fxUsdToLocal"],
        local_currency_code=cur["localCurrencyCode"],
    )
    factors = inflation_factors(doc["inflation"]["y2"], doc["inflation"]["y3"])
    cohorts = aggregate_cohorts(doc, cfg)

    # PASS 2
    income = project_income(doc, cohorts, factors, cfg, money)
    discounts = project_discounts(doc, income, factors, money)

    # PASS 3
    hr = project_hr(doc, factors, cfg, money)
    expenses = project_expenses(doc, income, discounts, hr, factors, cfg, money)

    # PASS 4
    capacity = project_capacity(doc, cohorts, cfg)
    norm = project_norm(doc)

    # PASS 5
    kpis = compute_kpis(cohorts, discounts, expenses, capacity, cfg)

    logger.debug("Projection %s: factors=%s display=%s",
                 doc["academicYear"], factors, money.display_code)
    return ProjectionResult(
        document=document,
        currency=money,
        factors=factors,
        years=year_meta(doc["academicYear"]),
        cohorts=cohorts,
        income=income,
        discounts=discounts,
        hr=hr,
        expenses=expenses,
        capacity=capacity,
        norm=norm,
        kpis=kpis,
    )
