"""Projection periods and academic-year labelling."""

from __future__ import annotations

import re
from dataclasses import dataclass

YEAR_KEYS: tuple[str, ...] = ("y1", "y2", "y3")
PERIOD_KEYS: tuple[str, ...] = ("cur", "y1", "y2", "y3")

_RANGE_RE = re.compile(r"(\d{4})\s*-\s*(\d{4})")
_START_RE = re.compile(r"^(\d{4})")


def previous_period(period: str) -> str | None:
    """'y1' -> 'cur', 'y2' -> 'y1', 'cur' -> None."""
    idx = PERIOD_KEYS.index(period)
    return PERIOD_KEYS[idx - 1] if idx > 0 else None


def parse_base_year(academic_year) -> int | None:
    """Start year of an academic year string ("2025-2026" or "2025")."""
    raw = str(academic_year or "").strip()
    m = _RANGE_RE.search(raw) or _START_RE.match(raw)
    if not m:
        return None
    return int(m.group(1))


@dataclass(frozen=True, slots=True)
class YearMeta:
    """Display metadata for one projected year."""
    key: str
    n: int
    start: int | None
    end: int | None

    @property
    def range(self) -> str:
        if self.start is None:
            return ""
        return f"{self.start}-{self.end}"

    @property
    def label_short(self) -> str:
        return f"{self.n}.Yıl ({self.range})" if self.range else f"{self.n}.Yıl"

    @property
    def label_long(self) -> str:
        if not self.range:
            return f"{self.n}.Yıl"
        return f"{self.n}.Yıl ({self.range} EĞİTİM ÖĞRETİM YILI)"


def year_meta(academic_year) -> dict[str, YearMeta]:
    base = parse_base_year(academic_year)
    out: dict[str, YearMeta] = {}
    for idx, key in enumerate(YEAR_KEYS):
        start = base + idx if base is not None else None
        end = start + 1 if start is not None else None
        out[key] = YearMeta(key=key, n=idx + 1, start=start, end=end)
    return out
