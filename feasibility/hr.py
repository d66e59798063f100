"""HR cost allocation — per-role staffing cost for Y1..Y3.

annual_cost(role, y) = unit_cost(role, y) * headcount(role, y)

headcount(role, y) sums every level (HQ plus the seven tuition variants).
Unit costs are entered for Y1 only. Y2/Y3 grow by one of two rules:

    ratio      y2 = y1 * R,   y3 = y2 * R        (R = ik.unitCostRatio)
    inflation  y2 = y1 * f2,  y3 = y1 * f3       (f = inflation factors)

Every role follows the ratio rule except the local-staff ("yerel") group,
which follows EngineConfig.local_staff_growth (hr.json). The salary
mapping sums role subsets into the five HR-derived expense rows.
"""

from __future__ import annotations

from typing import Callable

from feasibility.bands import variant_active
from feasibility.config import EngineConfig, default_config
from feasibility.currency import unconverted
from feasibility.formulas import nonneg, safe_div, safe_num
from feasibility.periods import YEAR_KEYS
from feasibility.types import HRResult, HRRoleLine, HRYear


def normalize_unit_cost_ratio(value, default: float = 1.0) -> float:
    """Positive finite ratio, else the default."""
    r = safe_num(value)
    return r if r > 0 else default


def project_unit_costs(y1_cost: float, ratio: float, factors: dict[str, float],
                       rule: str = "ratio") -> dict[str, float]:
    """Y1..Y3 unit costs from the Y1 entry."""
    if rule == "inflation":
        return {y: y1_cost * factors[y] for y in YEAR_KEYS}
    y2 = y1_cost * ratio
    return {"y1": y1_cost, "y2": y2, "y3": y2 * ratio}


def role_growth_rule(role: str, cfg: EngineConfig) -> str:
    if role in cfg.local_role_keys:
        return cfg.local_staff_growth
    return "ratio"


def total_headcount(headcounts_by_level: dict, role: str) -> float:
    return sum(nonneg((levels or {}).get(role))
               for levels in (headcounts_by_level or {}).values())


def visible_levels(doc: dict, cfg: EngineConfig | None = None) -> list[str]:
    """Levels shown in the HR table: active variants, plus HQ when it has
    staff or no variant is active."""
    cfg = cfg if cfg is not None else default_config()
    levels = cfg.hr["levels"]
    hq = [lvl["key"] for lvl in levels if lvl["variant"] is None]
    active = [
        lvl["key"] for lvl in levels
        if lvl["variant"] is not None
        and variant_active(lvl["variant"], doc["programType"], doc["kademeler"], cfg)
    ]
    hq_used = any(
        nonneg(count)
        for y in YEAR_KEYS
        for key in hq
        for count in doc["ik"]["years"][y]["headcountsByLevel"][key].values()
    )
    return (hq if hq_used or not active else []) + active


def project_hr(doc: dict, factors: dict[str, float],
               cfg: EngineConfig | None = None,
               money: Callable[[float], float] = unconverted) -> HRResult:
    """Per-role, per-year staffing cost from a normalized document."""
    cfg = cfg if cfg is not None else default_config()
    ik = doc["ik"]
    ratio = normalize_unit_cost_ratio(ik.get("unitCostRatio"), cfg.default_unit_cost_ratio)
    y1_costs = ik["years"]["y1"]["unitCosts"]

    roles: list[HRRoleLine] = []
    cost_by_role: dict[str, dict[str, float]] = {}
    years = {y: HRYear() for y in YEAR_KEYS}

    for group in cfg.hr["role_groups"]:
        for r in group["roles"]:
            role = r["key"]
            unit = project_unit_costs(money(nonneg(y1_costs.get(role))), ratio,
                                      factors, role_growth_rule(role, cfg))
            heads = {y: total_headcount(ik["years"][y]["headcountsByLevel"], role)
                     for y in YEAR_KEYS}
            annual = {y: unit[y] * heads[y] for y in YEAR_KEYS}
            monthly = {y: safe_div(annual[y], heads[y] * 12) for y in YEAR_KEYS}
            roles.append({
                "role": role,
                "label": r["label"],
                "group": group["key"],
                "headcount": heads,
                "unit_cost": unit,
                "annual_cost": annual,
                "monthly_avg": monthly,
            })
            cost_by_role[role] = annual
            for y in YEAR_KEYS:
                years[y].total_cost += annual[y]
                years[y].total_headcount += heads[y]

    for y in YEAR_KEYS:
        years[y].salary_mapping = {
            key: sum(cost_by_role[role][y] for role in members)
            for key, members in cfg.hr["salary_mapping"].items()
        }

    return HRResult(unit_cost_ratio=ratio, roles=roles, years=years)
