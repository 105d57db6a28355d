"""
CSV rendering for case exports.

Single-case exports are one wide row (every canonical field plus each
collection flattened into a single cell). The bulk export is the reduced
four-column list view.
"""
from __future__ import annotations

import csv
import io
import re
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from apps.casework.export_render.common import flatten_collection, list_rows
from apps.casework.export_render.sections import EXPORT_SECTIONS, LIST_COLUMNS
from apps.casework.lib.derived_values import date_only
from apps.casework.lib.nested_records import ensure_case_record
from packages.shared.models.case import CaseRecord

_LINE_BREAKS = re.compile(r"\r\n|\r|\n")


def _clean_cell(value: Any) -> str:
    """Collapse line breaks to single spaces; date-like text reduced to YYYY-MM-DD."""
    text = "" if value is None else str(value)
    return date_only(_LINE_BREAKS.sub(" ", text))


def _writer(buf: io.StringIO):
    # QUOTE_ALL doubles embedded quotes and wraps every cell.
    return csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")


def case_csv_columns(record: CaseRecord) -> tuple[list[str], list[str]]:
    headers: list[str] = []
    values: list[str] = []
    for section in EXPORT_SECTIONS:
        for spec in section.fields:
            headers.append(spec.label)
            values.append(spec.getter(record))
        for collection in section.collections:
            headers.append(collection.title)
            values.append(flatten_collection(collection, record))
    return headers, values


def render_case_csv(case: CaseRecord | Mapping[str, Any]) -> str:
    record = ensure_case_record(case)
    headers, values = case_csv_columns(record)
    buf = io.StringIO()
    writer = _writer(buf)
    writer.writerow(headers)
    writer.writerow([_clean_cell(v) for v in values])
    return buf.getvalue()


def render_all_cases_csv(cases: Iterable[CaseRecord | Mapping[str, Any]], today: date | None = None) -> str:
    rows = list_rows(cases, today=today)
    if not rows:
        return ""
    buf = io.StringIO()
    writer = _writer(buf)
    writer.writerow(LIST_COLUMNS)
    for row in rows:
        writer.writerow([_clean_cell(v) for v in row])
    return buf.getvalue()
