import pytest

from feasibility.cohorts import aggregate_cohorts
from feasibility.discounts import (
    effective_ratio,
    per_student_value,
    project_discounts,
    scholarship_rows,
)
from feasibility.formulas import inflation_factors
from feasibility.income import project_income
from feasibility.scenario import ScenarioDocument

pytestmark = pytest.mark.unit

BASE = {
    "inflation": {"y2": 0.10, "y3": 0.0},
    "gradesYears": {"y1": [{"grade": "1", "branchCount": 4, "totalStudents": 100}]},
    "income": {"tuition": [{"key": "ilkokulYerel", "unitFee": 1000}]},
}


def _project(discounts, cfg):
    raw = dict(BASE, discounts=discounts)
    doc = ScenarioDocument.from_raw(raw, cfg).data
    factors = inflation_factors(doc["inflation"]["y2"], doc["inflation"]["y3"])
    income = project_income(doc, aggregate_cohorts(doc, cfg), factors, cfg)
    return income, project_discounts(doc, income, factors)


def test_combined_rate_under_cap(cfg):
    income, result = _project([
        {"name": "A", "mode": "percent", "value": 0.5, "ratio": 0.5},
        {"name": "B", "mode": "percent", "value": 0.5, "ratio": 0.8},
    ], cfg)
    y1 = result.years["y1"]
    assert y1.rate_sum == pytest.approx(0.65)
    assert y1.capped_rate == pytest.approx(0.65)
    assert not y1.cap_applied
    assert y1.total_discount == pytest.approx(0.65 * income.years["y1"].gross_tuition)


def test_combined_rate_capped_at_gross(cfg):
    income, result = _project([
        {"name": "A", "mode": "percent", "value": 1.0, "ratio": 0.7},
        {"name": "B", "mode": "percent", "value": 1.0, "ratio": 0.6},
    ], cfg)
    for y in ("y1", "y2", "y3"):
        d = result.years[y]
        assert d.rate_sum == pytest.approx(1.3)
        assert d.capped_rate == 1.0
        assert d.cap_applied
        assert d.total_discount == pytest.approx(income.years[y].gross_tuition)


def test_count_overrides_ratio(cfg):
    _, result = _project([
        {"name": "A", "mode": "percent", "value": 1.0, "ratio": 0.9, "studentCount": 24.6},
    ], cfg)
    line = result.lines[0]
    assert line["ratio"]["y1"] == pytest.approx(0.25)
    assert line["students"]["y1"] == pytest.approx(25)


def test_entered_zero_count_turns_year_off():
    assert effective_ratio({"ratio": 0.4, "studentCount": 0}, "y1", 100) == 0.0
    assert effective_ratio({"ratio": 0.4, "studentCount": None}, "y1", 100) == 0.4
    assert effective_ratio({"ratio": 0.4, "studentCount": 10}, "y1", 0) == 0.4


def test_years_read_their_own_fields(cfg):
    _, result = _project([
        {"name": "A", "mode": "percent", "value": 0.5, "ratio": 0.2, "ratioY3": 0.0},
    ], cfg)
    line = result.lines[0]
    assert line["ratio"]["y2"] == 0.2
    assert line["ratio"]["y3"] == 0.0
    assert result.years["y3"].total_discount == 0.0


def test_fixed_mode_inflates_unless_entered(cfg):
    income, result = _project([
        {"name": "F", "mode": "fixed", "value": 200, "ratio": 0.5, "valueY3": 150},
    ], cfg)
    line = result.lines[0]
    assert line["value"]["y1"] == 200
    assert line["value"]["y2"] == pytest.approx(220)
    assert line["value"]["y3"] == 150
    assert line["amount"]["y1"] == pytest.approx(100 * 0.5 * 200)
    assert line["rate"]["y1"] == pytest.approx(0.5 * 200 / 1000)
    assert result.years["y1"].total_discount == pytest.approx(10_000)


def test_per_student_value_helper():
    d = {"value": 100, "valueY2": None}
    assert per_student_value(d, "y2", 1.5) == pytest.approx(150)


def test_no_tuition_means_no_discount(cfg):
    raw = {"discounts": [{"name": "A", "mode": "percent", "value": 1, "ratio": 1}]}
    doc = ScenarioDocument.from_raw(raw, cfg).data
    factors = inflation_factors(0, 0)
    income = project_income(doc, aggregate_cohorts(doc, cfg), factors, cfg)
    result = project_discounts(doc, income, factors)
    assert result.years["y1"].total_discount == 0.0
    assert result.years["y1"].discount_to_tuition is None


def test_scholarship_rows_catalogue_order(cfg):
    _, result = _project([
        {"name": "Özel İndirim", "mode": "percent", "value": 0.1, "ratio": 0.1},
        {"name": "KARDEŞ İNDİRİMİ", "mode": "percent", "value": 0.1, "ratio": 0.1},
    ], cfg)
    rows = scholarship_rows(result, cfg)
    names = [r["name"] for r in rows]
    assert names[:len(cfg.catalog["scholarships"])] == cfg.catalog["scholarships"]
    assert names[-1] == "Özel İndirim"
    magis = rows[0]
    assert magis["amount"] == {"y1": 0.0, "y2": 0.0, "y3": 0.0}


def test_zero_count_in_one_year_removes_that_year(cfg):
    _, result = _project([
        {"name": "A", "mode": "percent", "value": 1.0, "ratio": 0.3, "studentCountY3": 0},
    ], cfg)
    line = result.lines[0]
    assert line["ratio"]["y2"] == pytest.approx(0.3)
    assert line["ratio"]["y3"] == 0.0
    assert result.years["y3"].total_discount == 0.0
