import pytest

from feasibility.capacity import TOTAL, project_capacity, utilization
from feasibility.cohorts import aggregate_cohorts
from feasibility.norm import calculate_norm_teachers, project_norm
from feasibility.scenario import ScenarioDocument

pytestmark = pytest.mark.unit


def _line(result, band):
    return next(ln for ln in result.bands if ln["band"] == band)


# ── Cohorts ───────────────────────────────────────────────────────

def test_cohort_totals(sample_doc, cfg):
    cohorts = aggregate_cohorts(sample_doc.data, cfg)
    assert cohorts.total_students("cur") == 65
    assert cohorts.total_students("y1") == 150
    assert cohorts.total_students("y2") == 165
    assert cohorts.total_students("y3") == 150
    assert cohorts.band_students("y1", "ilkokul") == 100
    assert cohorts.branches["y1"]["total"] == 7


# ── Capacity ──────────────────────────────────────────────────────

def test_utilization_of_single_band(cfg):
    """30 KG students against 40 seats -> 75%."""
    raw = {
        "gradesYears": {"y1": [{"grade": "KG", "branchCount": 2, "totalStudents": 30}]},
        "capacity": {"okulOncesi": {"caps": {"y1": 40}}},
    }
    doc = ScenarioDocument.from_raw(raw, cfg).data
    result = project_capacity(doc, aggregate_cohorts(doc, cfg), cfg)
    assert _line(result, "okulOncesi")["utilization"]["y1"] == pytest.approx(0.75)


def test_zero_capacity_utilization_is_none():
    assert utilization(10, 0) is None
    assert utilization(0, 50) == 0.0


def test_capacity_total_line(sample_doc, cfg):
    doc = sample_doc.data
    result = project_capacity(doc, aggregate_cohorts(doc, cfg), cfg)
    total = result.total
    assert total["band"] == TOTAL
    assert total["capacity"]["y1"] == 160
    assert total["students"]["y1"] == 150
    assert total["utilization"]["y1"] == pytest.approx(150 / 160)
    assert _line(result, "ortaokul")["utilization"]["y1"] is None
    assert total["delta"]["y1"] == 150 - 65
    assert total["growth_rate"]["y2"] == pytest.approx(15 / 150)


def test_disabled_band_hidden_from_capacity(sample_raw, cfg):
    sample_raw["kademeler"] = {"ortaokul": {"enabled": False}}
    doc = ScenarioDocument.from_raw(sample_raw, cfg).data
    result = project_capacity(doc, aggregate_cohorts(doc, cfg), cfg)
    assert [ln["band"] for ln in result.bands] == ["okulOncesi", "ilkokul", "lise"]
    assert result.total["capacity"]["y2"] == 160
    assert result.bands[0]["label"] == "Okul Öncesi (KG)"


# ── Norm ──────────────────────────────────────────────────────────

def test_norm_teachers():
    rows = [
        {"grade": "1", "branchCount": 2},
        {"grade": "2", "branchCount": 1},
        {"grade": "3", "branchCount": 0},
    ]
    curriculum = {"1": {"Türkçe": 10, "Matematik": 5}, "2": {"Türkçe": 10}}
    year = calculate_norm_teachers(rows, curriculum, 24)
    assert year.total_teaching_hours == 40
    assert year.required_teachers == 2
    assert year.by_subject[0] == {"subject": "Türkçe", "weekly_teaching_hours": 30}
    assert year.by_grade[2]["weekly_teaching_hours"] == 0


def test_project_norm(sample_doc):
    norm = project_norm(sample_doc.data)
    assert norm["y1"].total_teaching_hours == 60
    assert norm["y1"].required_teachers == 3
    assert norm["y3"].teacher_weekly_max_hours == 24
    assert norm["y2"].total_teaching_hours == 60
