"""Scenario document schema — default skeleton and normalization.

normalize() is the one boundary where stored documents are upgraded to the
current shape. It runs before any computation and is idempotent:
normalize(normalize(d)) == normalize(d).

Accepted input shapes (current keys win over legacy ones):
    - current:  income / expenses / capacity / ik / norm, camelCase meta
    - wire:     temelBilgiler.{inflation, inflationY2, kademeler, programType},
                gelirler, giderler.{isletme,ogrenimDisi,yurt}.items,
                kapasite.byKademe, snake_case scenario meta
                (academic_year, input_currency, fx_usd_to_local, ...)
    - legacy:   flat grades list, gradesYears.years, studentsPerBranch,
                flat per-student fees, staff/operational expense totals,
                single-year ik {unitCosts, headcountsByLevel}

Unknown keys are dropped. Missing known keys get zero defaults. Per-year
fields left unset (Y2/Y3 counts, discount ratios) are filled from Y1 here
and nowhere else.
"""

from __future__ import annotations

import copy
import logging

from feasibility.bands import (
    aggregate,
    normalize_grade,
    normalize_kademe_config,
    normalize_program_type,
)
from feasibility.config import EngineConfig, default_config
from feasibility.currency import normalize_currency
from feasibility.formulas import clamp, nonneg, safe_num
from feasibility.hr import normalize_unit_cost_ratio
from feasibility.periods import PERIOD_KEYS, YEAR_KEYS

logger = logging.getLogger(__name__)

LEGACY_FEE_KEYS = (
    "tuitionFeePerStudentYearly",
    "lunchFeePerStudentYearly",
    "dormitoryFeePerStudentYearly",
    "otherFeePerStudentYearly",
)
_ROW_SECTIONS = (
    "tuition", "nonEducationFees", "dormitory",
    "otherInstitutionIncome", "governmentIncentives",
)


# ── Helpers ─────────────────────────────────────────────────────

def _dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def _list(value) -> list:
    return value if isinstance(value, list) else []


def _first(*candidates):
    for c in candidates:
        if c is not None and c != "":
            return c
    return None


def _rows(section) -> list:
    """Row list from either a bare list or a {rows: [...]} container."""
    if isinstance(section, list):
        return section
    return _list(_dict(section).get("rows"))


def _by_key(rows: list) -> dict[str, dict]:
    out: dict[str, dict] = {}
    for r in rows:
        if isinstance(r, dict) and r.get("key") is not None:
            out.setdefault(str(r["key"]), r)
    return out


def _opt_nonneg(value) -> float | None:
    """None stays None (never entered); anything else coerces."""
    if value is None or value == "":
        return None
    return nonneg(value)


# ── Meta ────────────────────────────────────────────────────────

def _split(raw: dict) -> tuple[dict, dict]:
    """(inputs body, scenario meta). Stored rows may wrap inputs."""
    body = raw["inputs"] if isinstance(raw.get("inputs"), dict) else raw
    meta = _dict(raw.get("scenario")) or raw
    return body, meta


def _normalize_currency(body: dict, meta: dict, cfg: EngineConfig) -> dict:
    cur = _dict(body.get("currency"))
    entry = _first(cur.get("inputCurrency"), meta.get("input_currency"),
                   meta.get("inputCurrency"))
    fx = _first(cur.get("fxUsdToLocal"), meta.get("fx_usd_to_local"),
                meta.get("fxUsdToLocal"))
    code = _first(cur.get("localCurrencyCode"), meta.get("local_currency_code"),
                  meta.get("localCurrencyCode"))
    code = str(code).strip().upper() if code is not None else ""
    return {
        "inputCurrency": normalize_currency(entry),
        "fxUsdToLocal": safe_num(fx),
        "localCurrencyCode": code or cfg.engine["default_local_currency_code"],
    }


def _normalize_inflation(body: dict, basics: dict) -> dict:
    inf = _dict(body.get("inflation")) or _dict(basics.get("inflation"))
    return {
        "y2": safe_num(_first(inf.get("y2"), basics.get("inflationY2"))),
        "y3": safe_num(_first(inf.get("y3"), basics.get("inflationY3"))),
    }


# ── Grades ──────────────────────────────────────────────────────

def _grade_rows(rows, cfg: EngineConfig) -> list[dict]:
    """One row per grade in grade order; duplicate grades are summed."""
    totals = {g: [0.0, 0.0] for g in cfg.grades}
    for row in _list(rows):
        if not isinstance(row, dict):
            continue
        grade = normalize_grade(row.get("grade"), cfg)
        if grade is None:
            continue
        students = _first(row.get("totalStudents"), row.get("studentsPerBranch"),
                          row.get("students"))
        totals[grade][0] += nonneg(row.get("branchCount"))
        totals[grade][1] += nonneg(students)
    return [{"grade": g, "branchCount": b, "totalStudents": s}
            for g, (b, s) in totals.items()]


def _normalize_grades_years(body: dict, cfg: EngineConfig) -> dict[str, list]:
    src = body.get("gradesYears")
    if isinstance(src, dict) and isinstance(src.get("years"), dict):
        src = src["years"]
    src = _dict(src)
    y1_raw = src.get("y1")
    if not isinstance(y1_raw, list):
        y1_raw = body.get("grades")
    y1 = _grade_rows(y1_raw, cfg)
    out = {"y1": y1}
    for y in YEAR_KEYS[1:]:
        if isinstance(src.get(y), list):
            out[y] = _grade_rows(src[y], cfg)
        else:
            out[y] = copy.deepcopy(y1)
    return out


# ── Income ──────────────────────────────────────────────────────

def _fee_row(defn: dict, src: dict) -> dict:
    c1 = nonneg(src.get("studentCount"))
    c2 = _opt_nonneg(src.get("studentCountY2"))
    c3 = _opt_nonneg(src.get("studentCountY3"))
    return {
        "key": defn["key"],
        "label": defn["label"],
        "unitFee": nonneg(src.get("unitFee")),
        "studentCount": c1,
        "studentCountY2": c1 if c2 is None else c2,
        "studentCountY3": c1 if c3 is None else c3,
    }


def _fee_rows(defs: list[dict], section, extra: tuple[dict, ...] = ()) -> list[dict]:
    src = _by_key(_rows(section))
    out = [_fee_row(d, _dict(src.get(d["key"]))) for d in defs]
    for d in extra:
        if d["key"] in src:
            out.append(_fee_row(d, src[d["key"]]))
    return out


def _migrate_flat_fees(income: dict, fees: dict, y1_students: float,
                       cfg: EngineConfig) -> None:
    """Synthesize fee rows from the per-student flat fee fields."""
    logger.debug("Migrating flat per-student fees to fee rows (%s)",
                 ", ".join(sorted(k for k, v in fees.items() if v is not None)))
    tuition_fee = nonneg(fees["tuitionFeePerStudentYearly"])
    for row in income["tuition"]:
        row["unitFee"] = tuition_fee

    def _fill(rows: list[dict], key: str, fee) -> None:
        for row in rows:
            if row["key"] == key:
                row["unitFee"] = nonneg(fee)
                for f in ("studentCount", "studentCountY2", "studentCountY3"):
                    row[f] = y1_students

    if fees["lunchFeePerStudentYearly"] is not None:
        _fill(income["nonEducationFees"], "yemek", fees["lunchFeePerStudentYearly"])
    if fees["dormitoryFeePerStudentYearly"] is not None:
        _fill(income["dormitory"], "yurt", fees["dormitoryFeePerStudentYearly"])
    if fees["otherFeePerStudentYearly"] is not None:
        extra = cfg.catalog["legacy_other_fee_row"]
        income["nonEducationFees"].append(_fee_row(extra, {}))
        _fill(income["nonEducationFees"], extra["key"], fees["otherFeePerStudentYearly"])


def _normalize_income(body: dict, y1_students: float, cfg: EngineConfig) -> dict:
    inc = _dict(_first(body.get("income"), body.get("gelirler")))
    catalog = cfg.catalog
    tuition_src = _by_key(_rows(inc.get("tuition")))
    other_src = _by_key(_rows(inc.get("otherInstitutionIncome")))

    income = {
        "tuition": [
            {"key": v, "unitFee": nonneg(_dict(tuition_src.get(v)).get("unitFee"))}
            for v in cfg.variant_keys
        ],
        "nonEducationFees": _fee_rows(
            catalog["non_education_rows"], inc.get("nonEducationFees"),
            extra=(catalog["legacy_other_fee_row"],)),
        "dormitory": _fee_rows(catalog["dormitory_rows"], inc.get("dormitory")),
        "otherInstitutionIncome": [
            {"key": d["key"], "label": d["label"],
             "amount": nonneg(_dict(other_src.get(d["key"])).get("amount"))}
            for d in catalog["other_income_rows"]
        ],
        "governmentIncentives": nonneg(inc.get("governmentIncentives")),
    }

    has_rows = any(k in inc for k in _ROW_SECTIONS)
    fees = {k: _first(inc.get(k), body.get(k)) for k in LEGACY_FEE_KEYS}
    if not has_rows and any(v is not None for v in fees.values()):
        _migrate_flat_fees(income, fees, y1_students, cfg)
    return income


# ── Discounts ───────────────────────────────────────────────────

def _normalize_discount(d: dict) -> dict:
    mode = "fixed" if str(d.get("mode") or "").strip().lower() == "fixed" else "percent"
    value = nonneg(d.get("value"))
    ratio = clamp(d.get("ratio"))
    count = _opt_nonneg(d.get("studentCount"))
    out = {
        "name": str(d.get("name") or "").strip() or "İndirim",
        "mode": mode,
        "value": value,
        "ratio": ratio,
        "studentCount": count,
    }
    for y in YEAR_KEYS[1:]:
        suffix = y.upper()
        # None: percent reuses the Y1 value, fixed inflates the Y1 amount
        out[f"value{suffix}"] = _opt_nonneg(d.get(f"value{suffix}"))
        r = d.get(f"ratio{suffix}")
        out[f"ratio{suffix}"] = ratio if r is None or r == "" else clamp(r)
        c = _opt_nonneg(d.get(f"studentCount{suffix}"))
        out[f"studentCount{suffix}"] = count if c is None else c
    return out


def _normalize_discounts(body: dict) -> list[dict]:
    src = body.get("discounts")
    if src is None:
        src = _dict(_first(body.get("income"), body.get("gelirler"))).get("discounts")
    return [_normalize_discount(d) for d in _rows(src) if isinstance(d, dict)]


# ── HR ──────────────────────────────────────────────────────────

def _headcounts(raw, cfg: EngineConfig) -> dict[str, dict[str, float]]:
    src = _dict(raw)
    return {
        level: {role: nonneg(_dict(src.get(level)).get(role)) for role in cfg.role_keys}
        for level in cfg.level_keys
    }


def _normalize_ik(body: dict, cfg: EngineConfig) -> dict:
    ik = _dict(body.get("ik"))
    years = _dict(ik.get("years"))
    if not years and ("unitCosts" in ik or "headcountsByLevel" in ik):
        logger.debug("Migrating single-year HR data to years.y1")
        years = {"y1": ik}
    y1 = _dict(years.get("y1"))
    unit_costs = _dict(y1.get("unitCosts"))
    head_y1 = _headcounts(y1.get("headcountsByLevel"), cfg)
    out_years = {
        "y1": {
            "unitCosts": {role: nonneg(unit_costs.get(role)) for role in cfg.role_keys},
            "headcountsByLevel": head_y1,
        },
    }
    for y in YEAR_KEYS[1:]:
        src = years.get(y)
        if isinstance(src, dict):
            out_years[y] = {"headcountsByLevel": _headcounts(src.get("headcountsByLevel"), cfg)}
        else:
            out_years[y] = {"headcountsByLevel": copy.deepcopy(head_y1)}
    return {
        "unitCostRatio": normalize_unit_cost_ratio(ik.get("unitCostRatio"),
                                                   cfg.default_unit_cost_ratio),
        "years": out_years,
    }


# ── Expenses ────────────────────────────────────────────────────

def _normalize_expenses(body: dict, cfg: EngineConfig) -> dict:
    exp = _dict(body.get("expenses"))
    gid = _dict(body.get("giderler"))
    operating_src = (_dict(exp.get("operating"))
                     or _dict(_dict(gid.get("isletme")).get("items")))
    services_src = (_dict(exp.get("services"))
                    or _dict(_dict(gid.get("ogrenimDisi")).get("items")))
    dorm_src = (_dict(exp.get("dormitory"))
                or _dict(_dict(gid.get("yurt")).get("items")))

    legacy_keys = cfg.catalog["legacy_expense_keys"]
    if not exp and not operating_src and any(gid.get(k) is not None for k in legacy_keys):
        target = cfg.catalog["legacy_expense_target"]
        logger.debug("Folding legacy staff/operational totals into %s", target)
        operating_src = {target: sum(nonneg(gid.get(k)) for k in legacy_keys)}

    operating: dict[str, float] = {}
    for key in cfg.operating_keys:
        if key in cfg.hr_derived_keys:
            if nonneg(operating_src.get(key)):
                logger.warning("Dropping entered value for HR-derived expense %s", key)
            continue
        operating[key] = nonneg(operating_src.get(key))

    def _unit_costs(items: list[dict], src: dict) -> dict[str, dict]:
        return {it["key"]: {"unitCost": nonneg(_dict(src.get(it["key"])).get("unitCost"))}
                for it in items}

    return {
        "operating": operating,
        "services": _unit_costs(cfg.catalog["service_items"], services_src),
        "dormitory": _unit_costs(cfg.catalog["dormitory_items"], dorm_src),
    }


# ── Capacity ────────────────────────────────────────────────────

def _normalize_capacity(body: dict, cfg: EngineConfig) -> dict:
    cap = _dict(body.get("capacity"))
    if not cap:
        kap = _dict(body.get("kapasite"))
        cap = _dict(kap.get("byKademe"))
        for legacy in ("totalCapacity", "schoolCapacity", "years"):
            if kap.get(legacy) is not None:
                logger.warning("Dropping legacy school-wide capacity field kapasite.%s", legacy)
    out: dict[str, dict] = {}
    for band in cfg.band_keys:
        entry = _dict(cap.get(band))
        caps = _dict(entry.get("caps")) or entry
        out[band] = {"caps": {p: nonneg(caps.get(p)) for p in PERIOD_KEYS}}
    return out


# ── Norm ────────────────────────────────────────────────────────

def _looks_like_curriculum(value, cfg: EngineConfig) -> bool:
    return isinstance(value, dict) and any(g in value for g in cfg.grades)


def _curriculum(raw, cfg: EngineConfig) -> dict[str, dict[str, float]]:
    out: dict[str, dict[str, float]] = {}
    for token, subjects in _dict(raw).items():
        grade = normalize_grade(token, cfg)
        if grade is None or not isinstance(subjects, dict):
            continue
        row = out.setdefault(grade, {})
        for subject, hours in subjects.items():
            h = safe_num(hours, default=-1.0)
            if h >= 0:
                row[str(subject)] = h
    return out


def _normalize_norm(body: dict, cfg: EngineConfig) -> dict:
    norm = _dict(body.get("norm"))
    base_hours = safe_num(norm.get("teacherWeeklyMaxHours"))
    if base_hours <= 0:
        base_hours = cfg.teacher_weekly_max_hours
    years = _dict(norm.get("years"))
    out_years: dict[str, dict] = {}
    for y in YEAR_KEYS:
        source = _dict(years.get(y) or years.get("y1")) if years else norm
        hours = safe_num(source.get("teacherWeeklyMaxHours"))
        if isinstance(source.get("curriculumWeeklyHours"), dict):
            curriculum = source["curriculumWeeklyHours"]
        elif _looks_like_curriculum(source, cfg):
            curriculum = source
        else:
            curriculum = norm.get("curriculumWeeklyHours")
        out_years[y] = {
            "teacherWeeklyMaxHours": hours if hours > 0 else base_hours,
            "curriculumWeeklyHours": _curriculum(curriculum, cfg),
        }
    return {"teacherWeeklyMaxHours": base_hours, "years": out_years}


# ── Entry points ────────────────────────────────────────────────

def _normalize_body(raw: dict, cfg: EngineConfig) -> dict:
    body, meta = _split(raw)
    basics = _dict(body.get("temelBilgiler"))
    kademeler = normalize_kademe_config(
        _first(body.get("kademeler"), basics.get("kademeler")), cfg)
    grades_years = _normalize_grades_years(body, cfg)
    program = _first(body.get("programType"), basics.get("programType"),
                     meta.get("program_type"), meta.get("programType"))
    academic_year = _first(body.get("academicYear"), meta.get("academic_year"),
                           meta.get("academicYear"), basics.get("academicYear"),
                           cfg.engine["default_academic_year"])
    y1_students = aggregate(grades_years["y1"], kademeler, cfg)["total"]

    return {
        "schemaVersion": cfg.schema_version,
        "academicYear": str(academic_year).strip(),
        "programType": normalize_program_type(program, cfg),
        "currency": _normalize_currency(body, meta, cfg),
        "inflation": _normalize_inflation(body, basics),
        "kademeler": kademeler,
        "gradesCurrent": _grade_rows(body.get("gradesCurrent"), cfg),
        "gradesYears": grades_years,
        "income": _normalize_income(body, y1_students, cfg),
        "discounts": _normalize_discounts(body),
        "ik": _normalize_ik(body, cfg),
        "expenses": _normalize_expenses(body, cfg),
        "capacity": _normalize_capacity(body, cfg),
        "norm": _normalize_norm(body, cfg),
    }


def default_document(cfg: EngineConfig | None = None) -> dict:
    """All-zero skeleton in the current schema."""
    cfg = cfg if cfg is not None else default_config()
    return _normalize_body({}, cfg)


def normalize(raw, cfg: EngineConfig | None = None) -> dict:
    """Upgrade any stored document shape to the current schema.

    Never raises on malformed data: an unrecognized shape yields the
    default skeleton.
    """
    cfg = cfg if cfg is not None else default_config()
    if not isinstance(raw, dict):
        logger.warning("Scenario document is %s, not a mapping; using default skeleton",
                       type(raw).__name__)
        return default_document(cfg)
    try:
        return _normalize_body(raw, cfg)
    except (TypeError, ValueError, AttributeError) as exc:
        logger.warning("Unrecognized scenario document shape (%s); using default skeleton",
                       exc)
        return default_document(cfg)
