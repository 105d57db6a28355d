"""
Consolidated "All Cases" list PDF.

Platypus document with one summary table centered at 80% of the page width;
the header row repeats on every page and every page carries the footer stamp.
"""
from __future__ import annotations

import io
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any
from xml.sax.saxutils import escape

from pypdf import PdfReader, PdfWriter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from apps.casework.export_render.case_pdf import render_case_pdf
from apps.casework.export_render.common import (
    GRID,
    PRIMARY,
    STRIPE,
    SYSTEM_NAME,
    TEXT,
    list_rows,
    numbered_canvas,
)
from apps.casework.export_render.sections import LIST_COLUMNS
from packages.shared.models.case import CaseRecord

PAGE_WIDTH, _ = A4
TABLE_WIDTH = PAGE_WIDTH * 0.8
COLUMN_SHARES = (0.40, 0.12, 0.24, 0.24)


def _styles() -> dict[str, ParagraphStyle]:
    return {
        "title": ParagraphStyle("Title", fontName="Helvetica-Bold", fontSize=18, leading=22, textColor=PRIMARY),
        "meta": ParagraphStyle("Meta", fontName="Helvetica", fontSize=9, leading=12, textColor=colors.grey),
        "cell": ParagraphStyle("Cell", fontName="Helvetica", fontSize=9, leading=11, textColor=TEXT),
        "head": ParagraphStyle("Head", fontName="Helvetica-Bold", fontSize=9, leading=11, textColor=colors.white),
    }


def render_all_cases_pdf(
    cases: Iterable[CaseRecord | Mapping[str, Any]],
    generated_at: datetime | None = None,
    today: date | None = None,
) -> bytes:
    """Render the consolidated case list. Returns PDF bytes."""
    styles = _styles()
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=(PAGE_WIDTH - TABLE_WIDTH) / 2,
        rightMargin=(PAGE_WIDTH - TABLE_WIDTH) / 2,
        topMargin=20 * mm,
        bottomMargin=22 * mm,
        title="All Cases",
        author=SYSTEM_NAME,
    )

    stamp = (generated_at or datetime.now()).strftime("%B %d, %Y %I:%M %p")
    story = [
        Paragraph("All Cases", styles["title"]),
        Paragraph(f"Generated: {escape(stamp)}", styles["meta"]),
        Spacer(1, 6 * mm),
    ]

    rows = list_rows(cases, today=today)
    data = [[Paragraph(escape(h), styles["head"]) for h in LIST_COLUMNS]]
    data.extend([Paragraph(escape(value), styles["cell"]) for value in row] for row in rows)

    table = Table(
        data,
        colWidths=[TABLE_WIDTH * share for share in COLUMN_SHARES],
        repeatRows=1,
        hAlign="CENTER",
    )
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), PRIMARY),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, STRIPE]),
                ("GRID", (0, 0), (-1, -1), 0.5, GRID),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ]
        )
    )
    story.append(table)
    if not rows:
        story.extend([Spacer(1, 4 * mm), Paragraph("No cases to display.", styles["meta"])])

    doc.build(story, canvasmaker=numbered_canvas(SYSTEM_NAME))
    return buf.getvalue()


def render_cases_with_details_pdf(
    cases: Iterable[CaseRecord | Mapping[str, Any]],
    generated_at: datetime | None = None,
) -> bytes:
    """The list PDF followed by each case's full intake report, as one document."""
    records = list(cases)
    writer = PdfWriter()
    writer.append(PdfReader(io.BytesIO(render_all_cases_pdf(records, generated_at=generated_at))))
    for record in records:
        writer.append(PdfReader(io.BytesIO(render_case_pdf(record))))
    writer.add_metadata({"/Title": "All Cases", "/Author": SYSTEM_NAME})
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()
