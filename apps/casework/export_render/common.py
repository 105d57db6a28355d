"""
Helpers shared by the export renderers.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from reportlab.lib import colors
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from apps.casework.export_render.sections import CollectionSpec
from apps.casework.lib.derived_values import display_age, short_date
from apps.casework.lib.field_normalizer import full_name, program_label
from apps.casework.lib.nested_records import ensure_case_record
from packages.shared.models.case import CaseRecord

SYSTEM_NAME = "HOPETRACK Case Management System"

# PDF palette
PRIMARY = colors.HexColor("#2980B9")
SECONDARY = colors.HexColor("#34495E")
LIGHT = colors.HexColor("#ECF0F1")
TEXT = colors.HexColor("#2C3E50")
STRIPE = colors.HexColor("#F8F9FA")
GRID = colors.HexColor("#BDC3C7")


def list_row(case: CaseRecord | Mapping[str, Any], today: date | None = None) -> list[str]:
    """Name, Age, Program, Last Updated for the bulk list views."""
    record = ensure_case_record(case)
    f = record.fields
    return [
        full_name(f),
        display_age(f, today=today),
        program_label(f),
        short_date(f.last_updated or f.updated_at),
    ]


def list_rows(cases: Iterable[CaseRecord | Mapping[str, Any]], today: date | None = None) -> list[list[str]]:
    return [list_row(case, today=today) for case in cases]


def flatten_collection(spec: CollectionSpec, record: CaseRecord) -> str:
    """
    One cell for a whole collection: ``[1] Name: A | Age: 3 || [2] Name: B``.

    Blank values are left out instead of being written as N/A; entries with
    nothing to show are skipped.
    """
    parts: list[str] = []
    for entry in spec.entries(record):
        pairs = [
            f"{col.label}: {value}"
            for col, value in zip(spec.columns, spec.cells(entry))
            if value
        ]
        if pairs:
            parts.append(f"[{len(parts) + 1}] " + " | ".join(pairs))
    return " || ".join(parts)


def case_identifier(record: CaseRecord) -> str:
    """File-name identifier: the person's name, else the case id."""
    name = full_name(record.fields)
    if name:
        return name
    if record.fields.id:
        return f"Case_{record.fields.id}"
    return "Unknown"


def _set_cell_shading(cell, hex_color: str):
    """Set background shading on a DOCX table cell."""
    from docx.oxml.ns import qn
    from lxml import etree
    shading = etree.SubElement(cell._element.get_or_add_tcPr(), qn("w:shd"))
    shading.set(qn("w:fill"), hex_color)
    shading.set(qn("w:val"), "clear")


def numbered_canvas(footer_label: str = SYSTEM_NAME) -> type[canvas.Canvas]:
    """
    Canvas class that stamps ``footer_label`` and ``Page i of N`` on every page.

    Pages are buffered until save() so the total is known when footers are drawn.
    """

    class _NumberedCanvas(canvas.Canvas):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            self._page_states: list[dict] = []

        def showPage(self):
            self._page_states.append(dict(self.__dict__))
            self._startPage()

        def save(self):
            total = len(self._page_states)
            for state in self._page_states:
                self.__dict__.update(state)
                self._draw_footer(total)
                canvas.Canvas.showPage(self)
            canvas.Canvas.save(self)

        def _draw_footer(self, total: int):
            width, _ = self._pagesize
            self.saveState()
            self.setStrokeColor(GRID)
            self.setLineWidth(0.5)
            self.line(20 * mm, 15 * mm, width - 20 * mm, 15 * mm)
            self.setFont("Helvetica", 8)
            self.setFillColor(colors.grey)
            self.drawString(20 * mm, 10 * mm, footer_label)
            self.drawRightString(width - 20 * mm, 10 * mm, f"Page {self._pageNumber} of {total}")
            self.restoreState()

    return _NumberedCanvas
