"""ScenarioDocument — immutable snapshot of one scenario's inputs.

Every write returns a new snapshot together with the field path that
changed, for the editing surface's dirty tracking:

    upd = doc.set_capacity("ilkokul", "y1", 120)
    upd.document     # new ScenarioDocument
    upd.path         # "capacity.ilkokul.caps.y1"

Paths are dotted. List rows are addressed by their key (income rows),
grade (grade rows) or index (discounts):

    income.nonEducationFees.yemek.studentCountY2
    gradesYears.y2.KG.totalStudents
    discounts.0.ratioY3

Snapshots are re-normalized after each write, so coercion and Y1
defaults apply exactly as when the document was loaded.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from feasibility.config import EngineConfig, default_config
from feasibility.periods import PERIOD_KEYS, YEAR_KEYS
from feasibility.schema import default_document, normalize


class ReadOnlyFieldError(ValueError):
    """Write to a value the engine computes (HR-derived expense rows)."""


@dataclass(frozen=True)
class FieldUpdate:
    document: "ScenarioDocument"
    path: str


def _year_field(base_key: str, year: str) -> str:
    if year not in YEAR_KEYS:
        raise KeyError(f"Unknown year: {year}")
    return base_key if year == "y1" else f"{base_key}{year.upper()}"


def _step(container, seg: str):
    """Resolve one path segment: dict key, list index, or row key/grade."""
    if isinstance(container, dict):
        if seg not in container:
            raise KeyError(seg)
        return seg
    if isinstance(container, list):
        if seg.isdigit():
            idx = int(seg)
            if idx >= len(container):
                raise KeyError(seg)
            return idx
        for idx, row in enumerate(container):
            if isinstance(row, dict) and seg in (row.get("key"), row.get("grade")):
                return idx
    raise KeyError(seg)


@dataclass(frozen=True)
class ScenarioDocument:
    """Normalized scenario inputs. Treat .data as read-only."""
    data: dict
    cfg: EngineConfig | None = field(default=None, compare=False, repr=False)

    @classmethod
    def from_raw(cls, raw, cfg: EngineConfig | None = None) -> "ScenarioDocument":
        """Normalize a stored document (any supported shape)."""
        return cls(normalize(raw, cfg), cfg)

    @classmethod
    def default(cls, cfg: EngineConfig | None = None) -> "ScenarioDocument":
        return cls(default_document(cfg), cfg)

    @property
    def config(self) -> EngineConfig:
        return self.cfg if self.cfg is not None else default_config()

    def to_dict(self) -> dict:
        """Deep copy of the normalized document for persistence."""
        return copy.deepcopy(self.data)

    # ── Generic access ──────────────────────────────────────────

    def get(self, path: str):
        """Copy of the value at path."""
        node = self.data
        for seg in path.split("."):
            node = node[_step(node, seg)]
        return copy.deepcopy(node)

    def _check_writable(self, segs: list[str], value) -> None:
        hr_keys = self.config.hr_derived_keys
        if segs[:2] == ["expenses", "operating"]:
            if len(segs) == 3 and segs[2] in hr_keys:
                raise ReadOnlyFieldError(
                    f"{segs[2]} is computed from HR costs and cannot be written")
            if len(segs) == 2 and isinstance(value, dict):
                written = sorted(k for k in value if k in hr_keys)
                if written:
                    raise ReadOnlyFieldError(
                        f"{', '.join(written)} computed from HR costs cannot be written")
        elif segs == ["expenses"] and isinstance(value, dict):
            operating = value.get("operating")
            if isinstance(operating, dict):
                self._check_writable(["expenses", "operating"], operating)

    def set(self, path: str, value) -> FieldUpdate:
        """Write one field. Raises KeyError for unknown paths and
        ReadOnlyFieldError for HR-derived expense rows.

        Changing a discount's mode clears its Y2/Y3 values, which mean a
        fraction in percent mode and an amount in fixed mode.
        """
        segs = path.split(".")
        self._check_writable(segs, value)
        allow_new = segs[0] == "norm" and "curriculumWeeklyHours" in segs

        data = copy.deepcopy(self.data)
        node = data
        for seg in segs[:-1]:
            try:
                node = node[_step(node, seg)]
            except KeyError:
                if not (allow_new and isinstance(node, dict)):
                    raise KeyError(path) from None
                node = node.setdefault(seg, {})
        last = segs[-1]
        if allow_new and isinstance(node, dict):
            node[last] = value
        else:
            try:
                step = _step(node, last)
            except KeyError:
                raise KeyError(path) from None
            if segs[0] == "discounts" and last == "mode":
                new_mode = "fixed" if str(value or "").strip().lower() == "fixed" else "percent"
                if new_mode != node[step]:
                    for y in YEAR_KEYS[1:]:
                        node[f"value{y.upper()}"] = None
            node[step] = value
        return FieldUpdate(ScenarioDocument(normalize(data, self.cfg), self.cfg), path)

    # ── Named editor actions ────────────────────────────────────

    def set_inflation(self, year: str, rate: float) -> FieldUpdate:
        if year not in ("y2", "y3"):
            raise KeyError(f"No inflation rate for {year}")
        return self.set(f"inflation.{year}", rate)

    def set_kademe(self, band: str, *, enabled: bool | None = None,
                   from_grade=None, to_grade=None) -> FieldUpdate:
        data = copy.deepcopy(self.data)
        entry = data["kademeler"][band]
        if enabled is not None:
            entry["enabled"] = bool(enabled)
        if from_grade is not None:
            entry["from"] = from_grade
        if to_grade is not None:
            entry["to"] = to_grade
        return FieldUpdate(ScenarioDocument(normalize(data, self.cfg), self.cfg),
                           f"kademeler.{band}")

    def set_grade(self, period: str, grade: str, field_name: str, value) -> FieldUpdate:
        if period not in PERIOD_KEYS:
            raise KeyError(f"Unknown period: {period}")
        base = "gradesCurrent" if period == "cur" else f"gradesYears.{period}"
        return self.set(f"{base}.{grade}.{field_name}", value)

    def set_capacity(self, band: str, period: str, value: float) -> FieldUpdate:
        return self.set(f"capacity.{band}.caps.{period}", value)

    def set_unit_fee(self, section: str, key: str, value: float) -> FieldUpdate:
        return self.set(f"income.{section}.{key}.unitFee", value)

    def set_student_count(self, section: str, key: str, year: str,
                          value: float | None) -> FieldUpdate:
        """Entered count for a non-tuition or dormitory row. None resets
        Y2/Y3 to the Y1 count."""
        if section == "tuition":
            raise ReadOnlyFieldError("Tuition student counts come from grade planning")
        return self.set(f"income.{section}.{key}.{_year_field('studentCount', year)}", value)

    def set_other_income(self, key: str, amount: float) -> FieldUpdate:
        return self.set(f"income.otherInstitutionIncome.{key}.amount", amount)

    def set_operating_expense(self, key: str, value: float) -> FieldUpdate:
        return self.set(f"expenses.operating.{key}", value)

    def set_expense_unit_cost(self, section: str, key: str, value: float) -> FieldUpdate:
        return self.set(f"expenses.{section}.{key}.unitCost", value)

    def set_unit_cost(self, role: str, value: float) -> FieldUpdate:
        return self.set(f"ik.years.y1.unitCosts.{role}", value)

    def set_unit_cost_ratio(self, value: float) -> FieldUpdate:
        return self.set("ik.unitCostRatio", value)

    def set_headcount(self, year: str, level: str, role: str, value: float) -> FieldUpdate:
        return self.set(f"ik.years.{year}.headcountsByLevel.{level}.{role}", value)

    def set_discount_ratio(self, index: int, year: str, value: float) -> FieldUpdate:
        return self.set(f"discounts.{index}.{_year_field('ratio', year)}", value)

    def set_discount_count(self, index: int, year: str, value: float | None) -> FieldUpdate:
        return self.set(f"discounts.{index}.{_year_field('studentCount', year)}", value)

    def set_discount_value(self, index: int, year: str, value: float | None) -> FieldUpdate:
        return self.set(f"discounts.{index}.{_year_field('value', year)}", value)

    def add_discount(self, name: str, mode: str = "percent", value: float = 0.0,
                     ratio: float = 0.0) -> FieldUpdate:
        data = copy.deepcopy(self.data)
        data["discounts"].append({"name": name, "mode": mode, "value": value,
                                  "ratio": ratio})
        path = f"discounts.{len(data['discounts']) - 1}"
        return FieldUpdate(ScenarioDocument(normalize(data, self.cfg), self.cfg), path)

    def remove_discount(self, index: int) -> FieldUpdate:
        data = copy.deepcopy(self.data)
        if not 0 <= index < len(data["discounts"]):
            raise KeyError(f"discounts.{index}")
        del data["discounts"][index]
        return FieldUpdate(ScenarioDocument(normalize(data, self.cfg), self.cfg), "discounts")
