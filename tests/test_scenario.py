import pytest

from feasibility.orchestrator import run_projection
from feasibility.scenario import ReadOnlyFieldError, ScenarioDocument

pytestmark = pytest.mark.unit


def test_set_returns_new_snapshot_and_path(sample_doc):
    upd = sample_doc.set_capacity("ilkokul", "y1", 150)
    assert upd.path == "capacity.ilkokul.caps.y1"
    assert upd.document.get("capacity.ilkokul.caps.y1") == 150
    assert sample_doc.get("capacity.ilkokul.caps.y1") == 120


def test_row_addressing_by_key_and_grade(sample_doc):
    assert sample_doc.get("income.nonEducationFees.yemek.unitFee") == 100
    assert sample_doc.get("gradesYears.y2.KG.totalStudents") == 35
    upd = sample_doc.set_grade("y3", "KG", "totalStudents", 44)
    assert upd.path == "gradesYears.y3.KG.totalStudents"
    assert upd.document.get("gradesYears.y3.KG.totalStudents") == 44


def test_write_is_renormalized(sample_doc):
    upd = sample_doc.set_unit_fee("tuition", "ilkokulYerel", "-50")
    assert upd.document.get("income.tuition.ilkokulYerel.unitFee") == 0.0


def test_student_count_reset_to_y1(sample_doc):
    upd = sample_doc.set_student_count("dormitory", "yurt", "y2", None)
    assert upd.path == "income.dormitory.yurt.studentCountY2"
    assert upd.document.get("income.dormitory.yurt.studentCountY2") == 10


def test_tuition_count_is_read_only(sample_doc):
    with pytest.raises(ReadOnlyFieldError):
        sample_doc.set_student_count("tuition", "ilkokulYerel", "y1", 10)


def test_unknown_path_raises_key_error(sample_doc):
    with pytest.raises(KeyError):
        sample_doc.set("income.tuition.nope.unitFee", 1)
    with pytest.raises(KeyError):
        sample_doc.set_inflation("y1", 0.1)
    with pytest.raises(KeyError):
        sample_doc.set_grade("y9", "1", "totalStudents", 1)


def test_discount_editing(sample_doc):
    upd = sample_doc.add_discount("ERKEN KAYIT İNDİRİMİ", ratio=0.1, value=0.05)
    assert upd.path == "discounts.1"
    doc = upd.document
    assert doc.get("discounts.1.ratioY3") == 0.1
    doc = doc.set_discount_ratio(1, "y2", 0.3).document
    assert doc.get("discounts.1.ratioY2") == 0.3
    assert doc.get("discounts.1.ratio") == 0.1
    doc = doc.set_discount_count(0, "y1", 30).document
    assert doc.get("discounts.0.studentCount") == 30
    doc = doc.remove_discount(0).document
    assert len(doc.data["discounts"]) == 1
    with pytest.raises(KeyError):
        doc.remove_discount(5)


def test_set_kademe_and_headcount(sample_doc):
    doc = sample_doc.set_kademe("lise", enabled=False).document
    assert doc.data["kademeler"]["lise"]["enabled"] is False
    doc = doc.set_kademe("ilkokul", from_grade="4", to_grade="1").document
    assert doc.data["kademeler"]["ilkokul"]["from"] == "1"
    doc = doc.set_headcount("y2", "merkez", "turk_mudur", 2).document
    assert doc.get("ik.years.y2.headcountsByLevel.merkez.turk_mudur") == 2


def test_norm_curriculum_accepts_new_subjects(sample_doc):
    upd = sample_doc.set("norm.years.y1.curriculumWeeklyHours.3.Fen", 4)
    assert upd.document.get("norm.years.y1.curriculumWeeklyHours.3.Fen") == 4


def test_editor_and_export_share_engine(sample_doc):
    doc = sample_doc.set_inflation("y2", 0.25).document
    result = run_projection(doc)
    assert result.factors["y2"] == pytest.approx(1.25)
    assert result.income.years["y2"].gross_tuition == pytest.approx(163_000 * 1.25)


def test_round_trip_through_dict(sample_doc, cfg):
    restored = ScenarioDocument.from_raw(sample_doc.to_dict(), cfg)
    assert restored == sample_doc


def test_get_returns_a_copy(sample_doc):
    caps = sample_doc.get("capacity.ilkokul.caps")
    caps["y1"] = 999
    sample_doc.get("discounts")[0]["ratio"] = 1.0
    assert sample_doc.data["capacity"]["ilkokul"]["caps"]["y1"] == 120
    assert sample_doc.get("discounts.0.ratio") == 0.2


def test_switching_discount_mode_inflates_fixed_amount(sample_doc):
    doc = sample_doc.add_discount("BURS", value=0.5, ratio=0.5).document
    assert doc.get("discounts.1.valueY2") is None
    doc = doc.set("discounts.1.mode", "fixed").document
    doc = doc.set("discounts.1.value", 200).document
    assert (doc.get("discounts.1.valueY2"), doc.get("discounts.1.valueY3")) == (None, None)
    line = run_projection(doc).discounts.lines[1]
    assert line["value"]["y2"] == pytest.approx(200 * 1.1)


def test_mode_change_clears_entered_year_values(sample_doc):
    doc = sample_doc.add_discount("BURS", value=0.5, ratio=0.5).document
    doc = doc.set_discount_value(1, "y3", 0.25).document
    assert doc.get("discounts.1.valueY3") == 0.25
    assert doc.set("discounts.1.mode", "percent").document.get("discounts.1.valueY3") == 0.25
    assert doc.set("discounts.1.mode", "fixed").document.get("discounts.1.valueY3") is None


def test_hr_derived_rows_read_only_through_containers(sample_doc):
    operating = sample_doc.get("expenses.operating")
    assert "turkPersonelMaas" not in operating
    with pytest.raises(ReadOnlyFieldError):
        sample_doc.set("expenses.operating", dict(operating, turkPersonelMaas=1))
    expenses = sample_doc.get("expenses")
    expenses["operating"]["turkPersonelMaas"] = 1
    with pytest.raises(ReadOnlyFieldError):
        sample_doc.set("expenses", expenses)
    upd = sample_doc.set("expenses.operating", dict(operating, kira=7))
    assert upd.document.get("expenses.operating.kira") == 7
