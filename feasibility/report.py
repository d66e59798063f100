"""Report tables — ordered header/row views of a ProjectionResult.

build_report() only reshapes engine output: no figure is computed here.
The editing surface and the spreadsheet/PDF exporter render the same
tables, so their numbers cannot drift apart. None cells mean "not
applicable" and render as a dash.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from feasibility.bands import (
    band_label,
    is_variant_visible,
    normalize_kademe_config,
    variant_label,
)
from feasibility.config import EngineConfig
from feasibility.discounts import scholarship_rows
from feasibility.hr import visible_levels
from feasibility.orchestrator import ProjectionResult
from feasibility.periods import PERIOD_KEYS, YEAR_KEYS

ITEM = "item"
SECTION = "section"
SUBTOTAL = "subtotal"
TOTAL = "total"

Column = tuple[str, str]   # (group, label); group "" = ungrouped


@dataclass
class ReportTable:
    """One ordered table. Columns are (group, label) pairs."""
    key: str
    title: str
    columns: list[Column]
    currency_code: str | None = None
    rows: list[list] = field(default_factory=list)
    row_kinds: list[str] = field(default_factory=list)

    def add(self, cells: list, kind: str = ITEM) -> None:
        if len(cells) != len(self.columns):
            raise ValueError(
                f"{self.key}: row has {len(cells)} cells, expected {len(self.columns)}")
        self.rows.append(cells)
        self.row_kinds.append(kind)

    @property
    def grouped(self) -> bool:
        return any(group for group, _ in self.columns)

    @property
    def header_rows(self) -> list[list[str]]:
        labels = [label for _, label in self.columns]
        if not self.grouped:
            return [labels]
        return [[group for group, _ in self.columns], labels]

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "title": self.title,
            "currency_code": self.currency_code,
            "header_rows": self.header_rows,
            "rows": self.rows,
            "row_kinds": self.row_kinds,
        }

    @property
    def dataframe(self):
        """Table as a pandas DataFrame (MultiIndex columns when grouped)."""
        import pandas as pd
        if self.grouped:
            columns = pd.MultiIndex.from_tuples(self.columns)
        else:
            columns = [label for _, label in self.columns]
        df = pd.DataFrame(self.rows, columns=columns)
        df.attrs["title"] = self.title
        df.attrs["currency"] = self.currency_code
        df.attrs["row_kinds"] = list(self.row_kinds)
        return df


@dataclass
class ReportModel:
    currency_code: str
    year_labels: dict[str, str]
    tables: dict[str, ReportTable]
    warnings: dict[str, list[str]]

    def to_dict(self) -> dict:
        return {
            "currency_code": self.currency_code,
            "year_labels": self.year_labels,
            "tables": {k: t.to_dict() for k, t in self.tables.items()},
            "warnings": self.warnings,
        }

    @property
    def dataframes(self) -> dict:
        return {k: t.dataframe for k, t in self.tables.items()}


# ── Table builders ──────────────────────────────────────────────

def _year_columns(p: ProjectionResult, labels: list[str]) -> list[Column]:
    return [(p.years[y].label_short, lab) for y in YEAR_KEYS for lab in labels]


def _basics_table(p: ProjectionResult, cfg: EngineConfig) -> ReportTable:
    doc = p.document.data
    t = ReportTable("temel_bilgiler", "Temel Bilgiler", [("", "Alan"), ("", "Değer")])
    cur = doc["currency"]
    t.add(["Eğitim Öğretim Yılı", doc["academicYear"]])
    t.add(["Program Türü", doc["programType"]])
    t.add(["Giriş Para Birimi", cur["inputCurrency"]])
    t.add(["Gösterim Para Birimi", p.currency_code])
    t.add(["Kur (1 USD)", cur["fxUsdToLocal"]])
    t.add(["Enflasyon 2.Yıl", doc["inflation"]["y2"]])
    t.add(["Enflasyon 3.Yıl", doc["inflation"]["y3"]])
    t.add(["Kademeler", None], SECTION)
    for band, entry in normalize_kademe_config(doc["kademeler"], cfg).items():
        state = "Aktif" if entry["enabled"] else "Pasif"
        t.add([band_label(band, doc["kademeler"], cfg), state])
    return t


def _grades_table(p: ProjectionResult, cfg: EngineConfig) -> ReportTable:
    doc = p.document.data
    periods = [("cur", "Mevcut")] + [(y, p.years[y].label_short) for y in YEAR_KEYS]
    columns: list[Column] = [("", "Sınıf")]
    for _, label in periods:
        columns += [(label, "Şube"), (label, "Öğrenci")]
    t = ReportTable("grades", "Öğrenci ve Şube Planlaması", columns)

    def rows_of(period: str) -> dict[str, dict]:
        src = doc["gradesCurrent"] if period == "cur" else doc["gradesYears"][period]
        return {r["grade"]: r for r in src}

    by_period = {period: rows_of(period) for period, _ in periods}
    for grade in cfg.grades:
        cells: list = [grade]
        for period, _ in periods:
            r = by_period[period][grade]
            cells += [r["branchCount"], r["totalStudents"]]
        t.add(cells)
    for band in normalize_kademe_config(doc["kademeler"], cfg):
        cells = [band_label(band, doc["kademeler"], cfg)]
        for period, _ in periods:
            cells += [p.cohorts.branches[period][band], p.cohorts.students[period][band]]
        t.add(cells, SUBTOTAL)
    cells = ["TOPLAM"]
    for period, _ in periods:
        cells += [p.cohorts.branches[period]["total"], p.cohorts.students[period]["total"]]
    t.add(cells, TOTAL)
    return t


def _capacity_table(p: ProjectionResult) -> ReportTable:
    groups = [("cur", "Mevcut")] + [(y, p.years[y].label_short) for y in YEAR_KEYS]
    columns: list[Column] = [("", "Kademe")]
    for _, label in groups:
        columns += [(label, "Kapasite"), (label, "Öğrenci"), (label, "Doluluk")]
    for y in YEAR_KEYS:
        columns += [(p.years[y].label_short, "Artış"), (p.years[y].label_short, "Artış %")]
    t = ReportTable("capacity", "Kapasite ve Doluluk", columns)

    def cells(line) -> list:
        out: list = [line["label"]]
        for period in PERIOD_KEYS:
            out += [line["capacity"][period], line["students"][period],
                    line["utilization"][period]]
        for y in YEAR_KEYS:
            out += [line["delta"][y], line["growth_rate"][y]]
        return out

    for line in p.capacity.bands:
        t.add(cells(line))
    t.add(cells(p.capacity.total), TOTAL)
    return t


def _income_table(p: ProjectionResult, cfg: EngineConfig) -> ReportTable:
    doc = p.document.data
    columns = [("", "Gelir Kalemi")] + _year_columns(p, ["Öğrenci", "Birim Ücret", "Toplam"])
    t = ReportTable("income", "Gelirler", columns, p.currency_code)
    blank = [None] * (len(columns) - 1)

    def line_cells(line) -> list:
        out: list = [line["label"]]
        for y in YEAR_KEYS:
            out += [line["students"][y], line["unit_fee"][y], line["amount"][y]]
        return out

    def total_cells(label: str, attr: str) -> list:
        out: list = [label]
        for y in YEAR_KEYS:
            out += [None, None, getattr(p.income.years[y], attr)]
        return out

    t.add(["Eğitim Ücretleri"] + blank, SECTION)
    for line in p.income.tuition:
        if is_variant_visible(line["key"], doc["programType"], cfg):
            t.add(line_cells(line))
    t.add(total_cells("Brüt Eğitim Ücreti", "gross_tuition"), SUBTOTAL)

    t.add(["Öğrenim Dışı Ücretler"] + blank, SECTION)
    for line in p.income.non_education:
        t.add(line_cells(line))
    t.add(total_cells("Öğrenim Dışı Toplam", "non_education_total"), SUBTOTAL)

    t.add(["Yurt Gelirleri"] + blank, SECTION)
    for line in p.income.dormitory:
        t.add(line_cells(line))
    t.add(total_cells("Yurt Toplam", "dormitory_total"), SUBTOTAL)
    t.add(total_cells("Faaliyet Gelirleri (Brüt)", "activity_gross"), TOTAL)

    t.add(["Diğer Kurum Gelirleri"] + blank, SECTION)
    for line in p.income.other:
        t.add(line_cells(line))
    t.add(total_cells("Devlet Teşvikleri", "government_incentives"))
    t.add(total_cells("Diğer Gelirler Toplam", "other_income_total"), SUBTOTAL)
    t.add(total_cells("Toplam Brüt Gelir", "total_gross_income"), TOTAL)

    discount_cells: list = ["Burs ve İndirimler"]
    net_activity: list = ["Net Faaliyet Geliri"]
    net_total: list = ["Net Toplam Gelir"]
    for y in YEAR_KEYS:
        d = p.discounts.years[y]
        discount_cells += [None, None, d.total_discount]
        net_activity += [None, None, d.net_activity_income]
        net_total += [None, None, d.net_total_income]
    t.add(discount_cells, SUBTOTAL)
    t.add(net_activity, TOTAL)
    t.add(net_total, TOTAL)
    return t


def _discounts_table(p: ProjectionResult, cfg: EngineConfig) -> ReportTable:
    columns = [("", "Burs / İndirim"), ("", "Tür")] + _year_columns(
        p, ["Oran", "Öğrenci", "Değer", "Etki", "Tutar"])
    t = ReportTable("discounts", "Burs ve İndirimler", columns, p.currency_code)
    for line in scholarship_rows(p.discounts, cfg):
        cells: list = [line["name"], line["mode"]]
        for y in YEAR_KEYS:
            cells += [line["ratio"][y], line["students"][y], line["value"][y],
                      line["rate"][y], line["amount"][y]]
        t.add(cells)

    def summary(label: str, attr: str, column: int) -> list:
        cells: list = [label, None]
        for y in YEAR_KEYS:
            block: list = [None] * 5
            block[column] = getattr(p.discounts.years[y], attr)
            cells += block
        return cells

    t.add(summary("Ağırlıklı İndirim Oranı", "rate_sum", 3), SUBTOTAL)
    t.add(summary("Uygulanan Oran (Tavan %100)", "capped_rate", 3), SUBTOTAL)
    t.add(summary("Toplam İndirim", "total_discount", 4), TOTAL)
    return t


def _hr_table(p: ProjectionResult, cfg: EngineConfig) -> ReportTable:
    columns = [("", "Personel")] + _year_columns(
        p, ["Kişi", "Birim Maliyet", "Yıllık Maliyet", "Aylık Ort."])
    t = ReportTable("hr", "İnsan Kaynakları", columns, p.currency_code)
    group_labels = {g["key"]: g["label"] for g in cfg.hr["role_groups"]}
    current_group = None
    blank = [None] * (len(columns) - 1)
    for line in p.hr.roles:
        if line["group"] != current_group:
            current_group = line["group"]
            t.add([group_labels[current_group]] + blank, SECTION)
        cells: list = [line["label"]]
        for y in YEAR_KEYS:
            cells += [line["headcount"][y], line["unit_cost"][y],
                      line["annual_cost"][y], line["monthly_avg"][y]]
        t.add(cells)
    total: list = ["TOPLAM"]
    for y in YEAR_KEYS:
        total += [p.hr.years[y].total_headcount, None, p.hr.years[y].total_cost, None]
    t.add(total, TOTAL)
    return t


def _hr_mapping_table(p: ProjectionResult, cfg: EngineConfig) -> ReportTable:
    labels = {it["key"]: it["label"] for it in cfg.catalog["operating_items"]}
    columns = [("", "Gider Kalemi")] + [("", p.years[y].label_short) for y in YEAR_KEYS]
    t = ReportTable("hr_mapping", "Personel Giderleri Eşlemesi", columns, p.currency_code)
    for key in cfg.hr["salary_mapping"]:
        t.add([labels[key]] + [p.hr.years[y].salary_mapping[key] for y in YEAR_KEYS])
    return t


def _hr_levels_table(p: ProjectionResult, cfg: EngineConfig) -> ReportTable:
    doc = p.document.data
    columns = [("", "Kademe")] + [("", p.years[y].label_short) for y in YEAR_KEYS]
    t = ReportTable("hr_levels", "Kademe Bazında Personel Sayısı", columns)
    levels = {lvl["key"]: lvl for lvl in cfg.hr["levels"]}
    for key in visible_levels(doc, cfg):
        lvl = levels[key]
        if lvl["variant"] is None:
            label = lvl["label"]
        else:
            label = variant_label(lvl["variant"], doc["kademeler"], cfg)
        counts = [
            sum(doc["ik"]["years"][y]["headcountsByLevel"][key].values())
            for y in YEAR_KEYS
        ]
        t.add([label] + counts)
    return t


def _expenses_table(p: ProjectionResult) -> ReportTable:
    columns = [("", "No"), ("", "Hesap"), ("", "Gider Kalemi")] + _year_columns(
        p, ["Tutar", "Pay %", "Net Ciro %", "Değişim %"])
    t = ReportTable("expenses", "Giderler", columns, p.currency_code)
    blank = [None] * (len(columns) - 3)
    titles = {"operating": "İşletme Giderleri",
              "services": "Öğrenim Dışı Maliyetler",
              "dormitory": "Yurt Maliyetleri"}
    attrs = {"operating": "operating_total", "services": "service_total",
             "dormitory": "dormitory_total"}
    for section, title in titles.items():
        t.add([None, None, title] + blank, SECTION)
        group = None
        for line in p.expenses.section(section):
            if line["group"] and line["group"] != group:
                t.add([None, None, line["group"]] + blank, SECTION)
            group = line["group"]
            cells: list = [line["no"], line["code"], line["label"]]
            for y in YEAR_KEYS:
                cells += [line["amount"][y], line["share_of_total"][y],
                          line["share_of_revenue"][y], line["yoy"][y]]
            t.add(cells)
        total: list = [None, None, f"{title} Toplam"]
        for y in YEAR_KEYS:
            total += [getattr(p.expenses.years[y], attrs[section]), None, None, None]
        t.add(total, SUBTOTAL)

    grand: list = [None, None, "TOPLAM GİDER"]
    ratio: list = [None, None, "Gider / Net Ciro"]
    for y in YEAR_KEYS:
        e = p.expenses.years[y]
        grand += [e.total_expenses, None, None, None]
        ratio += [None, None, e.expense_to_revenue, None]
    t.add(grand, TOTAL)
    t.add(ratio, SUBTOTAL)
    return t


def _norm_table(p: ProjectionResult, cfg: EngineConfig) -> ReportTable:
    columns = [("", "Sınıf")] + _year_columns(p, ["Şube", "Haftalık Ders Saati"])
    t = ReportTable("norm", "Norm Kadro", columns)
    by_grade = {y: {r["grade"]: r for r in p.norm[y].by_grade} for y in YEAR_KEYS}
    for grade in cfg.grades:
        cells: list = [grade]
        for y in YEAR_KEYS:
            r = by_grade[y].get(grade) or {"branch_count": 0.0, "weekly_teaching_hours": 0.0}
            cells += [r["branch_count"], r["weekly_teaching_hours"]]
        t.add(cells)
    hours: list = ["Toplam Ders Saati"]
    max_hours: list = ["Öğretmen Haftalık Maks. Saat"]
    required: list = ["Gerekli Öğretmen"]
    for y in YEAR_KEYS:
        n = p.norm[y]
        hours += [None, n.total_teaching_hours]
        max_hours += [None, n.teacher_weekly_max_hours]
        required += [None, n.required_teachers]
    t.add(hours, SUBTOTAL)
    t.add(max_hours, SUBTOTAL)
    t.add(required, TOTAL)
    return t


_KPI_ROWS = (
    ("Net Sonuç", "net_result"),
    ("Öğrenci Başı Gelir", "revenue_per_student"),
    ("Öğrenci Başı Net Ciro", "net_ciro_per_student"),
    ("Öğrenci Başı Maliyet", "cost_per_student"),
    ("Öğrenci Başı Kâr", "profit_per_student"),
    ("Kâr Marjı", "profit_margin"),
    ("İndirim / Eğitim Ücreti", "discount_to_tuition_ratio"),
    ("Personel Gideri Payı", "hr_share"),
    ("Diğer Gelir Oranı", "other_income_ratio"),
    ("Doluluk", "utilization"),
)


def _summary_table(p: ProjectionResult) -> ReportTable:
    columns = [("", "Gösterge")] + [("", p.years[y].label_short) for y in YEAR_KEYS]
    t = ReportTable("summary", "Fizibilite Özeti", columns, p.currency_code)
    for label, attr in _KPI_ROWS:
        t.add([label] + [getattr(p.kpis[y], attr) for y in YEAR_KEYS])
    return t


def build_report(projection: ProjectionResult,
                 cfg: EngineConfig | None = None) -> ReportModel:
    """All report tables for one projection, in export order."""
    cfg = cfg if cfg is not None else projection.document.config
    builders = (
        _basics_table(projection, cfg),
        _grades_table(projection, cfg),
        _capacity_table(projection),
        _income_table(projection, cfg),
        _discounts_table(projection, cfg),
        _hr_table(projection, cfg),
        _hr_mapping_table(projection, cfg),
        _hr_levels_table(projection, cfg),
        _expenses_table(projection),
        _norm_table(projection, cfg),
        _summary_table(projection),
    )
    return ReportModel(
        currency_code=projection.currency_code,
        year_labels={y: projection.years[y].label_short for y in YEAR_KEYS},
        tables={t.key: t for t in builders},
        warnings={y: list(projection.kpis[y].warnings) for y in YEAR_KEYS},
    )
