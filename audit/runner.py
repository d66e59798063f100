"""Audit runner -- orchestrates all checks against engine output."""

from __future__ import annotations

from feasibility.config import EngineConfig, ReportOptions
from feasibility.orchestrator import ProjectionResult, run_projection
from feasibility.scenario import ScenarioDocument
from audit.checks import (
    check_capacity,
    check_cohorts,
    check_discounts,
    check_expenses,
    check_factors,
    check_hr,
    check_income,
    check_normalization,
    classify_check,
)


def run_all_checks(
    result: ProjectionResult | None = None,
    document=None,
    cfg: EngineConfig | None = None,
    options: ReportOptions | None = None,
) -> dict:
    """Run all audit checks. If result is None, runs the projection first
    (on the default scenario when no document is given).

    Returns dict with:
        results: list of (section, name, expected, actual, delta, passed)
        summary: dict with counts
        model_result: the ProjectionResult used
    """
    if result is None:
        if document is None:
            document = ScenarioDocument.default(cfg)
        result = run_projection(document, cfg, options)
    cfg = cfg if cfg is not None else result.document.config
    doc = result.document.data

    all_results: list[tuple] = []
    all_results.extend(check_normalization(result.document))
    all_results.extend(check_factors(result.factors, doc["inflation"]))
    all_results.extend(check_cohorts(result.cohorts, cfg))
    all_results.extend(check_income(result.income))
    all_results.extend(check_discounts(result.income, result.discounts))
    all_results.extend(check_hr(result.hr))
    all_results.extend(check_expenses(result.expenses, result.hr))
    all_results.extend(check_capacity(result.capacity, result.cohorts))

    # Summary
    arith = [r for r in all_results
             if classify_check(r[0], r[1]) == "arithmetic"]
    design = [r for r in all_results
              if classify_check(r[0], r[1]) == "model_design"]

    return {
        "results": all_results,
        "summary": {
            "total": len(all_results),
            "arithmetic_pass": sum(1 for r in arith if r[5]),
            "arithmetic_fail": sum(1 for r in arith if not r[5]),
            "design_pass": sum(1 for r in design if r[5]),
            "design_fail": sum(1 for r in design if not r[5]),
        },
        "model_result": result,
    }
