"""Engine configuration — loads the static JSON catalogs shipped with the package."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from feasibility.currency import LOCAL, USD, normalize_currency

_CONFIG_DIR = Path(__file__).resolve().parent / "data"


@lru_cache(maxsize=16)
def load_config(name: str) -> dict:
    """Load a JSON config file by name (without .json extension)."""
    path = _CONFIG_DIR / f"{name}.json"
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_bands() -> dict:
    return load_config("bands")


def load_catalog() -> dict:
    return load_config("catalog")


def load_hr() -> dict:
    return load_config("hr")


def load_engine() -> dict:
    return load_config("engine")


@dataclass
class EngineConfig:
    """Consolidated engine configuration from all JSON files."""
    bands: dict = field(default_factory=dict)
    catalog: dict = field(default_factory=dict)
    hr: dict = field(default_factory=dict)
    engine: dict = field(default_factory=dict)

    # Derived constants
    grades: tuple[str, ...] = ()
    band_keys: tuple[str, ...] = ()
    variant_keys: tuple[str, ...] = ()
    role_keys: tuple[str, ...] = ()
    level_keys: tuple[str, ...] = ()
    hr_derived_keys: tuple[str, ...] = ()
    operating_keys: tuple[str, ...] = ()
    default_unit_cost_ratio: float = 1.0
    local_staff_growth: str = "inflation"
    local_role_keys: tuple[str, ...] = ()
    teacher_weekly_max_hours: float = 24.0
    utilization_low: float = 0.6
    utilization_high: float = 0.95
    discount_pressure: float = 0.3
    schema_version: int = 2

    @classmethod
    def load(cls) -> "EngineConfig":
        """Load all configs and derive constants."""
        cfg = cls(
            bands=load_bands(),
            catalog=load_catalog(),
            hr=load_hr(),
            engine=load_engine(),
        )
        cfg._derive_constants()
        return cfg

    def _derive_constants(self):
        self.grades = tuple(self.bands["grades"])
        self.band_keys = tuple(b["key"] for b in self.bands["bands"])
        self.variant_keys = tuple(v["key"] for v in self.bands["variants"])

        groups = self.hr["role_groups"]
        self.role_keys = tuple(r["key"] for g in groups for r in g["roles"])
        self.local_role_keys = tuple(
            r["key"] for g in groups if g["key"] == "yerel" for r in g["roles"])
        self.level_keys = tuple(lvl["key"] for lvl in self.hr["levels"])
        self.default_unit_cost_ratio = float(self.hr.get("default_unit_cost_ratio", 1.0))
        growth = self.hr.get("local_staff_growth", "inflation")
        if growth not in ("inflation", "ratio"):
            raise ValueError(f"Unknown local_staff_growth rule: {growth}")
        self.local_staff_growth = growth

        items = self.catalog["operating_items"]
        self.operating_keys = tuple(it["key"] for it in items)
        self.hr_derived_keys = tuple(it["key"] for it in items if it.get("hr_derived"))

        self.schema_version = int(self.engine.get("schema_version", 2))
        self.teacher_weekly_max_hours = float(
            self.engine.get("norm", {}).get("teacher_weekly_max_hours", 24))
        warn = self.engine.get("warnings", {})
        self.utilization_low = warn.get("utilization_low", 0.6)
        self.utilization_high = warn.get("utilization_high", 0.95)
        self.discount_pressure = warn.get("discount_pressure", 0.3)

    def band_def(self, band: str) -> dict:
        for b in self.bands["bands"]:
            if b["key"] == band:
                return b
        raise ValueError(f"Unknown band: {band}")

    def variant_def(self, variant: str) -> dict:
        for v in self.bands["variants"]:
            if v["key"] == variant:
                return v
        raise ValueError(f"Unknown tuition variant: {variant}")

    def role_label(self, role: str) -> str:
        for g in self.hr["role_groups"]:
            for r in g["roles"]:
                if r["key"] == role:
                    return r["label"]
        raise ValueError(f"Unknown role: {role}")


@lru_cache(maxsize=1)
def default_config() -> EngineConfig:
    return EngineConfig.load()


@dataclass
class ReportOptions:
    """Caller-side presentation choices (editor toggles or export request)."""
    display_currency: str | None = None   # None = show in entry currency

    @classmethod
    def from_request(cls, state: dict) -> "ReportOptions":
        """Build ReportOptions from an editor/export request dict."""
        raw = (state or {}).get("display_currency") or (state or {}).get("currency")
        if raw is None:
            return cls.defaults()
        return cls(display_currency=normalize_currency(raw, default=USD))

    @classmethod
    def defaults(cls) -> "ReportOptions":
        return cls()

    def resolve_display(self, entry_currency: str) -> str:
        if self.display_currency in (USD, LOCAL):
            return self.display_currency
        return normalize_currency(entry_currency)
