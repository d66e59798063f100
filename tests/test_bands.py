import pytest

from feasibility.bands import (
    aggregate,
    band_label,
    classify,
    grades_of_band,
    is_variant_visible,
    normalize_grade,
    normalize_kademe_config,
    normalize_program_type,
    range_label,
    variant_active,
    variant_label,
    visible_bands,
)

pytestmark = pytest.mark.unit


@pytest.mark.parametrize("token, expected", [
    ("kg", "KG"),
    ("ANA", "KG"),
    (3, "3"),
    ("03", "3"),
    (" 12 ", "12"),
    ("13", None),
    ("2.5", None),
    (None, None),
    (True, None),
    ("abc", None),
])
def test_normalize_grade(token, expected, cfg):
    assert normalize_grade(token, cfg) == expected


def test_default_bands(cfg):
    bands = normalize_kademe_config(None, cfg)
    assert list(bands) == ["okulOncesi", "ilkokul", "ortaokul", "lise"]
    assert bands["ilkokul"] == {"enabled": True, "from": "1", "to": "5"}
    assert classify("KG", bands, cfg) == "okulOncesi"
    assert classify("9", bands, cfg) == "ortaokul"
    assert classify("10", bands, cfg) == "lise"


def test_reversed_range_is_swapped(cfg):
    bands = normalize_kademe_config({"ilkokul": {"from": "5", "to": "1"}}, cfg)
    assert bands["ilkokul"]["from"] == "1"
    assert bands["ilkokul"]["to"] == "5"


def test_malformed_range_falls_back_to_default(cfg):
    bands = normalize_kademe_config({"lise": {"from": "x", "to": "12"}}, cfg)
    assert (bands["lise"]["from"], bands["lise"]["to"]) == ("10", "12")


def test_disabled_band_is_skipped(cfg):
    config = {"ortaokul": {"enabled": False}}
    assert classify("7", config, cfg) is None
    assert grades_of_band("ortaokul", config, cfg) == []
    assert "ortaokul" not in visible_bands(config, cfg)


def test_overlapping_ranges_first_band_wins(cfg):
    config = {"ilkokul": {"from": "1", "to": "6"}}
    assert classify("6", config, cfg) == "ilkokul"
    assert grades_of_band("ortaokul", config, cfg) == ["7", "8", "9"]


def test_aggregate_sums_per_band(cfg):
    rows = [
        {"grade": "KG", "totalStudents": 30, "branchCount": 2},
        {"grade": "1", "totalStudents": 50, "branchCount": 2},
        {"grade": "5", "totalStudents": 10, "branchCount": 1},
        {"grade": "11", "totalStudents": -5, "branchCount": 1},
        {"grade": "99", "totalStudents": 1000},
        "garbage",
    ]
    out = aggregate(rows, None, cfg)
    assert out["okulOncesi"] == 30
    assert out["ilkokul"] == 60
    assert out["lise"] == 0
    assert out["total"] == 90
    assert aggregate(rows, None, cfg, field="branchCount")["total"] == 6


def test_no_enabled_band_shows_all(cfg):
    config = {b: {"enabled": False} for b in ("okulOncesi", "ilkokul", "ortaokul", "lise")}
    assert visible_bands(config, cfg) == ["okulOncesi", "ilkokul", "ortaokul", "lise"]
    assert aggregate([{"grade": "1", "totalStudents": 10}], config, cfg)["total"] == 0


def test_labels(cfg):
    assert range_label("okulOncesi", None, cfg) == "KG"
    assert band_label("ilkokul", None, cfg) == "İlkokul (1-5)"
    assert variant_label("ilkokulYerel", None, cfg) == "İlkokul (1-5)-YEREL"
    assert variant_label("liseInt", {"lise": {"from": "9", "to": "12"}}, cfg) == \
        "Lise (9-12)-INT."


def test_program_type_variants(cfg):
    assert normalize_program_type("INT", cfg) == "international"
    assert normalize_program_type("unknown", cfg) == "local"
    assert is_variant_visible("okulOncesi", "international", cfg)
    assert is_variant_visible("ilkokulYerel", "local", cfg)
    assert not is_variant_visible("ilkokulInt", "local", cfg)
    assert not variant_active("ilkokulYerel", "local", {"ilkokul": {"enabled": False}}, cfg)


def test_unknown_variant_raises(cfg):
    with pytest.raises(ValueError, match="Unknown tuition variant"):
        variant_label("nope", None, cfg)
