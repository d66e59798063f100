"""Audit report output -- JSON file and console text.

Checks are grouped by engine module (INCOME, DISCOUNTS, HR, ...) and by
the projection year their name starts with, next to that year's headline
figures from ProjectionResult.summary().
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from feasibility.periods import PERIOD_KEYS, YEAR_KEYS
from audit.checks import classify_check

WIDTH = 78
_TAGS = tuple(p.upper() for p in PERIOD_KEYS)

HEADLINE = (
    ("students", "Students", "{:,.0f}"),
    ("activity_gross", "Activity gross", "{:,.2f}"),
    ("total_discount", "Discounts", "{:,.2f}"),
    ("net_total_income", "Net total income", "{:,.2f}"),
    ("total_expenses", "Total expenses", "{:,.2f}"),
    ("net_result", "Net result", "{:,.2f}"),
)


def check_year(name: str) -> str | None:
    """Period tag a check applies to ("Y1", "CUR", ...), None for whole-model checks."""
    tag = name.split(" ", 1)[0]
    return tag if tag in _TAGS else None


def verdict(summary: dict) -> str:
    return "CONSISTENT" if summary["arithmetic_fail"] == 0 else "ARITHMETIC_ERRORS"


def group_by_module(results: list[tuple]) -> dict[str, dict]:
    """{module: {"checks": n, "failed": [...], "gaps": [...], "by_year": {tag: [pass, total]}}}"""
    modules: dict[str, dict] = {}
    for r in results:
        entry = modules.setdefault(
            r[0], {"checks": 0, "failed": [], "gaps": [], "by_year": {}})
        entry["checks"] += 1
        tally = entry["by_year"].setdefault(check_year(r[1]) or "ALL", [0, 0])
        tally[1] += 1
        if r[5]:
            tally[0] += 1
        elif classify_check(r[0], r[1]) == "model_design":
            entry["gaps"].append(r)
        else:
            entry["failed"].append(r)
    return modules


def headline_figures(projection) -> dict[str, dict]:
    if projection is None:
        return {}
    return {y: projection.summary(y) for y in YEAR_KEYS}


# ── JSON ──────────────────────────────────────────────────────────

def _check_record(r: tuple) -> dict:
    return {
        "module": r[0],
        "year": check_year(r[1]),
        "name": r[1],
        "expected": r[2],
        "actual": r[3],
        "delta": r[4],
        "passed": r[5],
        "category": classify_check(r[0], r[1]),
    }


def write_json_report(audit_data: dict, output_path: str | Path) -> Path:
    """Write the audit as JSON; returns the path written."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    results = audit_data["results"]
    summary = audit_data["summary"]
    projection = audit_data.get("model_result")
    modules = group_by_module(results)

    report = {
        "timestamp": datetime.now().isoformat(),
        "academic_year": (projection.document.data["academicYear"]
                          if projection is not None else None),
        "currency": projection.currency_code if projection is not None else None,
        "verdict": verdict(summary),
        "summary": summary,
        "years": headline_figures(projection),
        "modules": {
            name: {
                "checks": m["checks"],
                "failed": len(m["failed"]),
                "design_gaps": len(m["gaps"]),
                "by_year": {tag: {"passed": ok, "total": n}
                            for tag, (ok, n) in m["by_year"].items()},
            }
            for name, m in modules.items()
        },
        "checks": [_check_record(r) for r in results],
    }

    with open(path, "w", encoding="utf-8") as f:
        json.dump(report, f, indent=2, ensure_ascii=False)
    return path


# ── Text ──────────────────────────────────────────────────────────

def _headline_lines(projection) -> list[str]:
    figures = headline_figures(projection)
    if not figures:
        return []
    labels = [figures[y]["label"] for y in YEAR_KEYS]
    lines = [f"HEADLINE FIGURES ({projection.currency_code})", "-" * WIDTH,
             f"  {'':<20}" + "".join(f"{lb:>19}" for lb in labels)]
    for key, title, fmt in HEADLINE:
        cells = "".join(f"{fmt.format(figures[y][key] or 0.0):>19}" for y in YEAR_KEYS)
        lines.append(f"  {title:<20}{cells}")
    lines.append("")
    return lines


def _module_lines(modules: dict[str, dict]) -> list[str]:
    lines = ["CHECKS BY MODULE", "-" * WIDTH]
    for name, m in modules.items():
        tallies = "  ".join(f"{tag} {ok}/{n}" for tag, (ok, n) in m["by_year"].items())
        status = "ok" if not m["failed"] else f"{len(m['failed'])} FAIL"
        lines.append(f"  {name:<12} {status:<8} {tallies}")
        for r in m["failed"]:
            lines.append(f"      FAIL {r[1]}")
            lines.append(f"           expected {r[2]:,.2f}  actual {r[3]:,.2f}  "
                         f"delta {r[4]:,.4f}")
    lines.append("")
    return lines


def _gap_lines(modules: dict[str, dict]) -> list[str]:
    by_year: dict[str, list[tuple]] = {}
    for m in modules.values():
        for r in m["gaps"]:
            by_year.setdefault(check_year(r[1]) or "ALL", []).append(r)
    lines = ["DESIGN GAPS (capped or fee-less discounts)", "-" * WIDTH]
    if not by_year:
        lines.append("  none")
    for tag in (*_TAGS, "ALL"):
        for r in by_year.get(tag, []):
            lines.append(f"  {tag:<4} {r[0]:<10} {r[1][len(tag) + 1:]}: "
                         f"delta {r[4]:,.2f}")
    lines.append("")
    return lines


def format_text_report(audit_data: dict) -> str:
    """Console report: headline figures, checks by module, design gaps, verdict."""
    summary = audit_data["summary"]
    projection = audit_data.get("model_result")
    modules = group_by_module(audit_data["results"])

    lines = ["=" * WIDTH, "SCHOOL FEASIBILITY MODEL - AUDIT REPORT"]
    if projection is not None:
        lines.append(f"  {projection.years['y1'].label_long}  "
                     f"({projection.currency_code})")
    lines += ["=" * WIDTH, ""]
    lines += _headline_lines(projection)
    lines += _module_lines(modules)
    lines += _gap_lines(modules)

    arith_total = summary["arithmetic_pass"] + summary["arithmetic_fail"]
    lines += [
        "=" * WIDTH,
        f"  {summary['total']} checks: {summary['arithmetic_pass']}/{arith_total} "
        f"arithmetic pass, {summary['design_fail']} design gap(s)",
    ]
    if verdict(summary) == "CONSISTENT":
        lines.append("  VERDICT: MODEL IS CONSISTENT")
    else:
        lines.append("  VERDICT: MODEL HAS ARITHMETIC ERRORS")
    lines.append("=" * WIDTH)
    return "\n".join(lines)
