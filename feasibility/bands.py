"""Grade → education band ("kademe") classification.

Grades are ordered KG,1..12. Each band covers an inclusive grade range
that the scenario may reconfigure; disabled bands are skipped. Tuition
rows, HR levels and capacity rows refer to bands either directly
(okulOncesi, ilkokul, ...) or through a program-type variant
(ilkokulYerel / ilkokulInt, ...).
"""

from __future__ import annotations

from feasibility.config import EngineConfig, default_config
from feasibility.formulas import safe_num, nonneg


def _cfg(cfg: EngineConfig | None) -> EngineConfig:
    return cfg if cfg is not None else default_config()


# ── Grades ──────────────────────────────────────────────────────

def normalize_grade(token, cfg: EngineConfig | None = None) -> str | None:
    """'kg' -> 'KG', 3 -> '3', '03' -> '3'; unknown -> None."""
    cfg = _cfg(cfg)
    if token is None or isinstance(token, bool):
        return None
    raw = str(token).strip().upper()
    alias = cfg.bands["grade_aliases"].get(raw)
    if alias:
        return alias
    num = safe_num(raw, default=-1.0)
    if num != int(num):
        return None
    grade = str(int(num))
    return grade if grade in cfg.grades else None


def grade_index(token, cfg: EngineConfig | None = None) -> int | None:
    cfg = _cfg(cfg)
    grade = normalize_grade(token, cfg)
    return cfg.grades.index(grade) if grade is not None else None


# ── Band configuration ──────────────────────────────────────────

def normalize_kademe_config(raw, cfg: EngineConfig | None = None) -> dict[str, dict]:
    """Complete, ordered band config. Reversed ranges are swapped;
    malformed ranges fall back to the band default."""
    cfg = _cfg(cfg)
    src = raw if isinstance(raw, dict) else {}
    out: dict[str, dict] = {}
    for b in cfg.bands["bands"]:
        entry = src.get(b["key"])
        entry = entry if isinstance(entry, dict) else {}
        lo = grade_index(entry.get("from"), cfg)
        hi = grade_index(entry.get("to"), cfg)
        if lo is None or hi is None:
            lo = cfg.grades.index(b["from"])
            hi = cfg.grades.index(b["to"])
        elif lo > hi:
            lo, hi = hi, lo
        out[b["key"]] = {
            "enabled": entry.get("enabled") is not False,
            "from": cfg.grades[lo],
            "to": cfg.grades[hi],
        }
    return out


def classify(grade, config, cfg: EngineConfig | None = None) -> str | None:
    """First enabled band (declaration order) whose range holds the grade."""
    cfg = _cfg(cfg)
    idx = grade_index(grade, cfg)
    if idx is None:
        return None
    bands = normalize_kademe_config(config, cfg)
    for key, b in bands.items():
        if not b["enabled"]:
            continue
        if cfg.grades.index(b["from"]) <= idx <= cfg.grades.index(b["to"]):
            return key
    return None


def grades_of_band(band: str, config, cfg: EngineConfig | None = None) -> list[str]:
    cfg = _cfg(cfg)
    return [g for g in cfg.grades if classify(g, config, cfg) == band]


def aggregate(rows, config, cfg: EngineConfig | None = None,
              field: str = "totalStudents") -> dict[str, float]:
    """Sum a grade-row field per band plus a grand total.

    Rows whose grade is unknown or falls in no enabled band are skipped.
    total is the sum of the band values.
    """
    cfg = _cfg(cfg)
    bands = normalize_kademe_config(config, cfg)
    out = {key: 0.0 for key in bands}
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        band = classify(row.get("grade"), bands, cfg)
        if band is None:
            continue
        out[band] += nonneg(row.get(field))
    out["total"] = sum(out[key] for key in bands)
    return out


def visible_bands(config, cfg: EngineConfig | None = None) -> list[str]:
    """Enabled bands; every band when none is enabled."""
    cfg = _cfg(cfg)
    bands = normalize_kademe_config(config, cfg)
    enabled = [key for key, b in bands.items() if b["enabled"]]
    return enabled or list(bands)


# ── Labels ──────────────────────────────────────────────────────

def range_label(band: str, config, cfg: EngineConfig | None = None) -> str:
    """'1-5', or 'KG' for a single-grade range."""
    b = normalize_kademe_config(config, cfg)[band]
    return b["from"] if b["from"] == b["to"] else f"{b['from']}-{b['to']}"


def band_label(band: str, config, cfg: EngineConfig | None = None) -> str:
    cfg = _cfg(cfg)
    return f"{cfg.band_def(band)['label']} ({range_label(band, config, cfg)})"


# ── Program-type variants ───────────────────────────────────────

def normalize_program_type(value, cfg: EngineConfig | None = None) -> str:
    cfg = _cfg(cfg)
    raw = str(value or "").strip().lower()
    if raw in ("int", "intl", "international"):
        return "international"
    if raw in cfg.bands["program_types"]:
        return raw
    return cfg.bands["default_program_type"]


def variant_band(variant: str, cfg: EngineConfig | None = None) -> str:
    """'ilkokulYerel' -> 'ilkokul'."""
    return _cfg(cfg).variant_def(variant)["band"]


def is_variant_visible(variant: str, program_type: str,
                       cfg: EngineConfig | None = None) -> bool:
    """Shared variants are always visible; the rest follow the program type."""
    program = _cfg(cfg).variant_def(variant)["program"]
    return program is None or program == normalize_program_type(program_type, cfg)


def variant_active(variant: str, program_type: str, config,
                   cfg: EngineConfig | None = None) -> bool:
    """Visible for the program type and its base band enabled."""
    cfg = _cfg(cfg)
    if not is_variant_visible(variant, program_type, cfg):
        return False
    return normalize_kademe_config(config, cfg)[variant_band(variant, cfg)]["enabled"]


def variant_label(variant: str, config, cfg: EngineConfig | None = None) -> str:
    """'İlkokul (1-5)-YEREL'."""
    cfg = _cfg(cfg)
    v = cfg.variant_def(variant)
    return f"{band_label(v['band'], config, cfg)}{v['suffix']}"
