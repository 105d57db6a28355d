"""
Rich spreadsheet export: HTML tables inside the Excel XML envelope.

Excel opens these ``.xls`` files directly, which keeps section headings and
per-collection tables that a flat CSV cannot express.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from html import escape
from typing import Any

from apps.casework.export_render.common import SYSTEM_NAME, list_rows
from apps.casework.export_render.sections import EXPORT_SECTIONS, LIST_COLUMNS, CollectionSpec
from apps.casework.lib.field_normalizer import full_name
from apps.casework.lib.nested_records import ensure_case_record
from packages.shared.models.case import CaseRecord

_STYLE = """
body { font-family: Arial, sans-serif; font-size: 10pt; color: #2C3E50; }
h1 { font-size: 16pt; color: #2980B9; }
h2 { font-size: 12pt; color: #34495E; margin-top: 14pt; }
table { border-collapse: collapse; margin-bottom: 8pt; }
th { background: #2980B9; color: #FFFFFF; font-weight: bold; border: 0.5pt solid #95A5A6; padding: 3pt; }
td { border: 0.5pt solid #BDC3C7; padding: 3pt; vertical-align: top; mso-number-format: "\\@"; }
td.label { background: #ECF0F1; font-weight: bold; width: 180pt; }
tr.alt td { background: #F8F9FA; }
td.empty { color: #95A5A6; font-style: italic; }
"""


def _envelope(sheet_name: str, title: str, body: str) -> str:
    return (
        '<html xmlns:o="urn:schemas-microsoft-com:office:office" '
        'xmlns:x="urn:schemas-microsoft-com:office:excel" '
        'xmlns="http://www.w3.org/TR/REC-html40">\n'
        "<head>\n"
        '<meta http-equiv="Content-Type" content="application/vnd.ms-excel; charset=UTF-8">\n'
        "<!--[if gte mso 9]><xml><x:ExcelWorkbook><x:ExcelWorksheets><x:ExcelWorksheet>"
        f"<x:Name>{escape(sheet_name)}</x:Name>"
        "<x:WorksheetOptions><x:DisplayGridlines/></x:WorksheetOptions>"
        "</x:ExcelWorksheet></x:ExcelWorksheets></x:ExcelWorkbook></xml><![endif]-->\n"
        f"<title>{escape(title)}</title>\n"
        f"<style>{_STYLE}</style>\n"
        "</head>\n"
        f"<body>\n{body}</body>\n</html>\n"
    )


def _cell(value: str, css: str | None = None) -> str:
    cls = f' class="{css}"' if css else ""
    return f"<td{cls}>{escape(value)}</td>"


def _collection_table(spec: CollectionSpec, record: CaseRecord) -> str:
    header = "".join(f"<th>{escape(col.label)}</th>" for col in spec.columns)
    rows: list[str] = []
    if spec.has_rows(record):
        for i, entry in enumerate(spec.entries(record)):
            css = ' class="alt"' if i % 2 else ""
            cells = "".join(_cell(value) for value in spec.cells(entry))
            rows.append(f"<tr{css}>{cells}</tr>")
    else:
        rows.append(f'<tr><td class="empty" colspan="{len(spec.columns)}">No records</td></tr>')
    return f"<table>\n<tr>{header}</tr>\n" + "\n".join(rows) + "\n</table>\n"


def render_case_excel(case: CaseRecord | Mapping[str, Any], generated_at: datetime | None = None) -> str:
    record = ensure_case_record(case)
    name = full_name(record.fields) or "Unknown"
    stamp = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M")

    parts = [
        f"<h1>{escape(SYSTEM_NAME)}: Case Report</h1>\n",
        f"<p><b>Client:</b> {escape(name)}<br><b>Generated:</b> {escape(stamp)}</p>\n",
    ]
    for section in EXPORT_SECTIONS:
        parts.append(f"<h2>{escape(section.title)}</h2>\n")
        if section.fields:
            rows = "\n".join(
                f"<tr>{_cell(spec.label, 'label')}{_cell(spec.getter(record))}</tr>"
                for spec in section.fields
            )
            parts.append(f"<table>\n{rows}\n</table>\n")
        for collection in section.collections:
            if len(section.collections) > 1 or section.fields:
                parts.append(f"<h3>{escape(collection.title)}</h3>\n")
            parts.append(_collection_table(collection, record))
    return _envelope("Case Report", f"Case Report - {name}", "".join(parts))


def render_all_cases_excel(
    cases: Iterable[CaseRecord | Mapping[str, Any]],
    generated_at: datetime | None = None,
    today: date | None = None,
) -> str:
    stamp = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M")
    header = "".join(f"<th>{escape(h)}</th>" for h in LIST_COLUMNS)
    rows = []
    for i, row in enumerate(list_rows(cases, today=today)):
        css = ' class="alt"' if i % 2 else ""
        rows.append(f"<tr{css}>" + "".join(_cell(v) for v in row) + "</tr>")
    body = (
        "<h1>All Cases</h1>\n"
        f"<p><b>Generated:</b> {escape(stamp)}</p>\n"
        f"<table>\n<tr>{header}</tr>\n" + "\n".join(rows) + "\n</table>\n"
    )
    return _envelope("All Cases", "All Cases", body)
