import pytest

import feasibility
from feasibility.analytics import feasibility_warnings
from feasibility.config import ReportOptions
from feasibility.orchestrator import run_projection
from feasibility.report import ITEM, TOTAL, ReportTable
from feasibility.types import YearKpis

pytestmark = pytest.mark.integration


# ── KPIs & warnings ───────────────────────────────────────────────

def test_sample_kpis(sample_projection):
    k = sample_projection.kpis["y1"]
    assert k.net_result == pytest.approx(157_540 - 10_300)
    assert k.student_base == 150
    assert k.revenue_per_student == pytest.approx(157_540 / 150)
    assert k.profit_margin == pytest.approx((157_540 - 10_300) / 157_540)
    assert k.discount_to_tuition_ratio == pytest.approx(0.02)
    assert k.hr_share == pytest.approx(3400 / 10_300)
    assert k.other_income_ratio == pytest.approx(1500 / 157_540)
    assert k.utilization == pytest.approx(150 / 160)
    assert k.warnings == []


def test_warning_thresholds(cfg):
    k = YearKpis(utilization=0.5, profit_margin=-0.1, discount_to_tuition_ratio=0.4)
    warnings = feasibility_warnings(k, cfg)
    assert warnings == [
        "Low utilization (50.00%).",
        "Operating loss (profit margin < 0).",
        "High discount pressure.",
    ]
    assert feasibility_warnings(YearKpis(utilization=0.99), cfg) == [
        "High utilization (99.00%). Capacity risk."]


def test_empty_scenario_kpis_are_none():
    result = run_projection({})
    k = result.kpis["y1"]
    assert k.revenue_per_student is None
    assert k.profit_margin is None
    assert k.other_income_ratio is None
    assert k.utilization is None


# ── Orchestrator ──────────────────────────────────────────────────

def test_run_projection_accepts_raw_document(sample_raw, sample_projection):
    result = feasibility.run_projection(sample_raw)
    assert result.summary("y1") == sample_projection.summary("y1")


def test_summary_and_dataframe(sample_projection):
    row = sample_projection.summary("y2")
    assert row["label"] == "2.Yıl (2026-2027)"
    assert row["students"] == 165
    df = sample_projection.dataframe
    assert list(df.index) == ["y1", "y2", "y3"]
    assert df.loc["y1", "total_expenses"] == pytest.approx(10_300)
    assert df.attrs["currency"] == "USD"


def test_display_currency_conversion(sample_doc):
    local = run_projection(sample_doc, options=ReportOptions(display_currency="LOCAL"))
    assert local.currency_code == "TRY"
    assert local.income.years["y1"].gross_tuition == pytest.approx(148_000 * 35)
    assert local.expenses.years["y1"].total_expenses == pytest.approx(10_300 * 35)
    assert local.kpis["y1"].profit_margin == pytest.approx(
        (157_540 - 10_300) / 157_540)


# ── Report ────────────────────────────────────────────────────────

def test_build_report_tables(sample_projection):
    report = feasibility.build_report(sample_projection)
    assert list(report.tables) == [
        "temel_bilgiler", "grades", "capacity", "income", "discounts", "hr",
        "hr_mapping", "hr_levels", "expenses", "norm", "summary",
    ]
    assert report.year_labels["y1"] == "1.Yıl (2025-2026)"
    assert report.currency_code == "USD"
    for table in report.tables.values():
        assert all(len(r) == len(table.columns) for r in table.rows)


def test_report_figures_match_engine(sample_projection):
    report = feasibility.build_report(sample_projection)
    income = report.tables["income"]
    labels = [r[0] for r in income.rows]
    assert "İlkokul (1-5)-YEREL" in labels
    assert "Lise (10-12)-INT." not in labels
    gross = income.rows[labels.index("Brüt Eğitim Ücreti")]
    assert gross[3] == pytest.approx(148_000)

    expenses = report.tables["expenses"]
    grand = next(r for r, kind in zip(expenses.rows, expenses.row_kinds)
                 if kind == TOTAL and r[2] == "TOPLAM GİDER")
    assert grand[3] == pytest.approx(10_300)

    levels = report.tables["hr_levels"]
    assert levels.rows[0] == ["Merkez (Genel Müdürlük)", 1.0, 1.0, 1.0]


def test_report_dataframes(sample_projection):
    frames = feasibility.build_report(sample_projection).dataframes
    summary = frames["summary"]
    assert list(summary.columns) == ["Gösterge", "1.Yıl (2025-2026)",
                                     "2.Yıl (2026-2027)", "3.Yıl (2027-2028)"]
    assert frames["income"].columns.nlevels == 2


def test_report_table_rejects_bad_row():
    t = ReportTable("x", "X", [("", "A"), ("", "B")])
    t.add([1, 2])
    assert t.row_kinds == [ITEM]
    with pytest.raises(ValueError, match="expected 2"):
        t.add([1])
