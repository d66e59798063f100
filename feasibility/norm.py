"""Norm teacher requirement from curriculum hours.

    teaching_hours = sum over grades of branchCount * sum(weekly subject hours)
    required       = ceil(teaching_hours / teacher_weekly_max_hours)
"""

from __future__ import annotations

from feasibility.formulas import ceil_div, nonneg
from feasibility.periods import YEAR_KEYS
from feasibility.types import NormYear


def calculate_norm_teachers(grade_rows: list[dict], curriculum: dict,
                            teacher_weekly_max_hours: float) -> NormYear:
    """Weekly teaching load and required teacher count for one year."""
    result = NormYear(teacher_weekly_max_hours=teacher_weekly_max_hours)
    subject_totals: dict[str, float] = {}
    for row in grade_rows:
        grade = str(row["grade"])
        branches = nonneg(row.get("branchCount"))
        grade_hours = 0.0
        for subject, hours in (curriculum.get(grade) or {}).items():
            load = nonneg(hours) * branches
            grade_hours += load
            subject_totals[subject] = subject_totals.get(subject, 0.0) + load
        result.by_grade.append({"grade": grade, "branch_count": branches,
                                "weekly_teaching_hours": grade_hours})
        result.total_teaching_hours += grade_hours

    result.required_teachers = ceil_div(result.total_teaching_hours,
                                        teacher_weekly_max_hours)
    result.by_subject = sorted(
        ({"subject": s, "weekly_teaching_hours": h} for s, h in subject_totals.items()),
        key=lambda x: x["weekly_teaching_hours"],
        reverse=True,
    )
    return result


def project_norm(doc: dict) -> dict[str, NormYear]:
    norm = doc["norm"]["years"]
    return {
        y: calculate_norm_teachers(
            doc["gradesYears"][y],
            norm[y]["curriculumWeeklyHours"],
            norm[y]["teacherWeeklyMaxHours"],
        )
        for y in YEAR_KEYS
    }
