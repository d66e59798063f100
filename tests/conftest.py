import copy

import pytest

from feasibility.config import default_config
from feasibility.scenario import ScenarioDocument


def pytest_configure(config):
    """
    Register custom markers to avoid pytest warnings.
    """
    config.addinivalue_line("markers", "unit: mark a test as a unit test")
    config.addinivalue_line("markers", "integration: mark a test as an integration test")
    config.addinivalue_line("markers", "legacy: mark a test as a legacy document test")


SAMPLE = {
    "academicYear": "2025-2026",
    "programType": "local",
    "currency": {"inputCurrency": "USD", "fxUsdToLocal": 35.0, "localCurrencyCode": "TRY"},
    "inflation": {"y2": 0.10, "y3": 0.20},
    "gradesCurrent": [
        {"grade": "KG", "branchCount": 1, "totalStudents": 25},
        {"grade": "1", "branchCount": 2, "totalStudents": 40},
    ],
    "gradesYears": {
        "y1": [
            {"grade": "KG", "branchCount": 2, "totalStudents": 30},
            {"grade": "1", "branchCount": 2, "totalStudents": 50},
            {"grade": "2", "branchCount": 2, "totalStudents": 50},
            {"grade": "6", "branchCount": 1, "totalStudents": 20},
        ],
        "y2": [
            {"grade": "KG", "branchCount": 2, "totalStudents": 35},
            {"grade": "1", "branchCount": 2, "totalStudents": 55},
            {"grade": "2", "branchCount": 2, "totalStudents": 50},
            {"grade": "6", "branchCount": 1, "totalStudents": 25},
        ],
    },
    "income": {
        "tuition": [
            {"key": "okulOncesi", "unitFee": 800},
            {"key": "ilkokulYerel", "unitFee": 1000},
            {"key": "ortaokulYerel", "unitFee": 1200},
            {"key": "liseInt", "unitFee": 5000},
        ],
        "nonEducationFees": [
            {"key": "yemek", "unitFee": 100, "studentCount": 60},
        ],
        "dormitory": [
            {"key": "yurt", "unitFee": 500, "studentCount": 10, "studentCountY2": 12},
        ],
        "otherInstitutionIncome": [
            {"key": "bagislar", "amount": 1000},
        ],
        "governmentIncentives": 500,
    },
    "discounts": [
        {"name": "KARDEŞ İNDİRİMİ", "mode": "percent", "value": 0.1, "ratio": 0.2},
    ],
    "ik": {
        "unitCostRatio": 1.1,
        "years": {
            "y1": {
                "unitCosts": {"turk_egitimci": 1000, "yerel_destek": 400},
                "headcountsByLevel": {
                    "ilkokulYerel": {"turk_egitimci": 2, "yerel_destek": 1},
                    "merkez": {"turk_egitimci": 1},
                },
            },
        },
    },
    "expenses": {
        "operating": {"kira": 2000, "genelYonetim": 500},
        "services": {"yemek": {"unitCost": 40}},
        "dormitory": {"yurtGiderleri": {"unitCost": 200}},
    },
    "capacity": {
        "okulOncesi": {"caps": {"cur": 30, "y1": 40, "y2": 40, "y3": 40}},
        "ilkokul": {"caps": {"cur": 100, "y1": 120, "y2": 120, "y3": 120}},
        "ortaokul": {"caps": {"cur": 0, "y1": 0, "y2": 30, "y3": 30}},
    },
    "norm": {
        "teacherWeeklyMaxHours": 24,
        "years": {
            "y1": {"curriculumWeeklyHours": {
                "1": {"Türkçe": 10, "Matematik": 5},
                "2": {"Türkçe": 10, "Matematik": 5},
            }},
        },
    },
}


@pytest.fixture
def cfg():
    return default_config()


@pytest.fixture
def sample_raw():
    return copy.deepcopy(SAMPLE)


@pytest.fixture
def sample_doc(sample_raw, cfg):
    return ScenarioDocument.from_raw(sample_raw, cfg)


@pytest.fixture
def sample_projection(sample_doc):
    from feasibility.orchestrator import run_projection
    return run_projection(sample_doc)
