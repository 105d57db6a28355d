"""
Single-case intake report PDF.

Drawn directly on a reportlab canvas with a top-down cursor so the layout
keeps the fixed form look of the paper intake sheet: labelled underlined
fields, fixed-height text boxes and striped tables. Each section is drawn
under its own guard; a failing section is logged and skipped.
"""
from __future__ import annotations

import base64
import io
import logging
import os
from collections.abc import Callable, Mapping
from datetime import date
from typing import Any
from xml.sax.saxutils import escape

from pydantic import BaseModel
from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.platypus import Paragraph, Table, TableStyle

from apps.casework.export_render.common import (
    GRID,
    LIGHT,
    PRIMARY,
    SECONDARY,
    STRIPE,
    SYSTEM_NAME,
    TEXT,
    numbered_canvas,
)
from apps.casework.export_render.sections import (
    AGENCIES,
    EDUCATION,
    EXTENDED_FAMILY,
    FAMILY_MEMBERS,
    LIFE_SKILLS,
    SACRAMENTS,
    VITAL_SIGNS,
    CollectionSpec,
)
from apps.casework.lib.derived_values import date_only, display_age, format_income, living_label, long_date, yes_no
from apps.casework.lib.field_normalizer import full_name, program_label
from apps.casework.lib.nested_records import ensure_case_record
from apps.casework.lib.status import display_label
from packages.shared.models.case import CaseRecord

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 20 * mm
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
BOTTOM_LIMIT = PAGE_HEIGHT - 22 * mm  # footer band starts below this

HEADER_BAND_HEIGHT = 35 * mm
SECTION_CLEARANCE = 60 * mm  # section header needs this much room above the page bottom
TEXT_AREA_CLEARANCE = 40 * mm
TABLE_START_LIMIT = 200 * mm  # tables that would start lower than this begin on a new page

FIELD_ROW_HEIGHT = 7 * mm
TEXT_AREA_HEIGHT = 25 * mm
LINE_HEIGHT = 4 * mm

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
PDF_CURRENCY = "PHP "  # the peso sign is not in the standard PDF fonts


class PdfOptions(BaseModel):
    title: str = "HOPETRACK"
    subtitle: str = "CASE INTAKE FORM"
    logo: bytes | str | None = None
    photo: bytes | str | None = None  # defaults to the case's profile picture
    include_signatures: bool = True
    generated_on: date | None = None


_CELL = ParagraphStyle("Cell", fontName=FONT, fontSize=8, leading=10, textColor=TEXT, alignment=TA_LEFT)
_CELL_BOLD = ParagraphStyle("CellBold", parent=_CELL, fontName=FONT_BOLD)
_HEAD_CELL = ParagraphStyle("HeadCell", parent=_CELL, fontName=FONT_BOLD, textColor=colors.white)

_TABLE_STYLE = TableStyle(
    [
        ("BACKGROUND", (0, 0), (-1, 0), PRIMARY),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, STRIPE]),
        ("GRID", (0, 0), (-1, -1), 0.5, GRID),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
        ("LEFTPADDING", (0, 0), (-1, -1), 4),
        ("RIGHTPADDING", (0, 0), (-1, -1), 4),
    ]
)


def _image_reader(source: bytes | str | None) -> ImageReader | None:
    """Accept raw bytes, a data URL / base64 string or a file path."""
    if not source:
        return None
    try:
        if isinstance(source, str):
            text = source.strip()
            if os.path.isfile(text):
                return ImageReader(text)
            if text.startswith("data:"):
                text = text.split(",", 1)[1]
            source = base64.b64decode(text)
        reader = ImageReader(io.BytesIO(source))
        reader.getSize()
        return reader
    except Exception as exc:
        logger.warning(f"Image could not be decoded, leaving region blank: {exc}")
        return None


class _CaseReport:
    def __init__(self, record: CaseRecord, options: PdfOptions):
        self.record = record
        self.f = record.fields
        self.options = options
        self.buf = io.BytesIO()
        self.c = numbered_canvas(SYSTEM_NAME)(self.buf, pagesize=A4)
        self.c.setTitle(f"Case Report - {full_name(self.f) or 'Unknown'}")
        self.c.setAuthor(SYSTEM_NAME)
        self.y = 0.0  # cursor, measured from the top edge
        self.fresh_page = True

    # ── Cursor / page helpers ─────────────────────────────────────────

    def _pdf_y(self, top: float) -> float:
        return PAGE_HEIGHT - top

    def new_page(self) -> None:
        self.c.showPage()
        self.y = MARGIN
        self.fresh_page = True

    def ensure_room(self, needed: float) -> None:
        if self.y + needed > BOTTOM_LIMIT and not self.fresh_page:
            self.new_page()

    def _fit(self, text: str, width: float, font: str = FONT, size: float = 9) -> str:
        text = " ".join(text.split())
        if stringWidth(text, font, size) <= width:
            return text
        while text and stringWidth(text + "...", font, size) > width:
            text = text[:-1]
        return text + "..." if text else ""

    # ── Primitives ────────────────────────────────────────────────────

    def header_band(self) -> None:
        c = self.c
        c.saveState()
        c.setFillColor(PRIMARY)
        c.rect(0, PAGE_HEIGHT - HEADER_BAND_HEIGHT, PAGE_WIDTH, HEADER_BAND_HEIGHT, stroke=0, fill=1)
        c.setFillColor(colors.white)
        c.setFont(FONT_BOLD, 16)
        c.drawCentredString(PAGE_WIDTH / 2, self._pdf_y(15 * mm), self.options.title)
        c.setFont(FONT, 11)
        c.drawCentredString(PAGE_WIDTH / 2, self._pdf_y(23 * mm), self.options.subtitle)
        generated = long_date(self.options.generated_on or date.today())
        c.setFont(FONT, 8)
        c.drawCentredString(PAGE_WIDTH / 2, self._pdf_y(30 * mm), f"Generated: {generated}")
        c.restoreState()

        self._draw_image(self.options.logo, MARGIN, 5 * mm, 25 * mm, 25 * mm)
        photo = self.options.photo or self.f.profile_picture or None
        self._draw_image(photo, PAGE_WIDTH - MARGIN - 25 * mm, 5 * mm, 25 * mm, 25 * mm)

        self.y = HEADER_BAND_HEIGHT + 8 * mm
        self.fresh_page = False

    def _draw_image(self, source: bytes | str | None, x: float, top: float, w: float, h: float) -> None:
        reader = _image_reader(source)
        if reader is None:
            return
        try:
            self.c.drawImage(
                reader, x, self._pdf_y(top + h), width=w, height=h,
                preserveAspectRatio=True, mask="auto",
            )
        except Exception as exc:
            logger.warning(f"Image could not be drawn, leaving region blank: {exc}")

    def section_header(self, title: str) -> None:
        if self.y > PAGE_HEIGHT - SECTION_CLEARANCE:
            self.new_page()
        c = self.c
        c.saveState()
        c.setFillColor(LIGHT)
        c.rect(MARGIN, self._pdf_y(self.y + 7 * mm), CONTENT_WIDTH, 7 * mm, stroke=0, fill=1)
        c.setFillColor(PRIMARY)
        c.rect(MARGIN, self._pdf_y(self.y + 7 * mm), 1.5 * mm, 7 * mm, stroke=0, fill=1)
        c.setFillColor(SECONDARY)
        c.setFont(FONT_BOLD, 10)
        c.drawString(MARGIN + 4 * mm, self._pdf_y(self.y + 5 * mm), title)
        c.restoreState()
        self.y += 11 * mm
        self.fresh_page = False

    def sub_heading(self, text: str) -> None:
        self.ensure_room(FIELD_ROW_HEIGHT * 2)
        self.c.setFont(FONT_BOLD, 9)
        self.c.setFillColor(SECONDARY)
        self.c.drawString(MARGIN, self._pdf_y(self.y), text)
        self.y += 5 * mm

    def field_row(self, items: list[tuple[str, str]]) -> None:
        """Labelled, underlined values sharing one line."""
        self.ensure_room(FIELD_ROW_HEIGHT)
        c = self.c
        slot = CONTENT_WIDTH / len(items)
        baseline = self._pdf_y(self.y)
        for i, (label, value) in enumerate(items):
            x = MARGIN + i * slot
            label_text = f"{label}:"
            label_w = stringWidth(label_text, FONT_BOLD, 9) + 2 * mm
            rule_end = x + slot - 3 * mm
            c.setFillColor(TEXT)
            c.setFont(FONT_BOLD, 9)
            c.drawString(x, baseline, label_text)
            c.setStrokeColor(GRID)
            c.setLineWidth(0.5)
            c.line(x + label_w, baseline - 1 * mm, rule_end, baseline - 1 * mm)
            c.setFont(FONT, 9)
            c.drawString(x + label_w + 1 * mm, baseline, self._fit(value or "", rule_end - x - label_w - 2 * mm))
        self.y += FIELD_ROW_HEIGHT
        self.fresh_page = False

    def text_area(self, label: str, text: str, height: float = TEXT_AREA_HEIGHT) -> None:
        """Fixed-height bordered box; wrapped lines past the box are dropped."""
        if self.y + height + 6 * mm > PAGE_HEIGHT - TEXT_AREA_CLEARANCE and not self.fresh_page:
            self.new_page()
        c = self.c
        if label:
            c.setFont(FONT_BOLD, 9)
            c.setFillColor(TEXT)
            c.drawString(MARGIN, self._pdf_y(self.y), f"{label}:")
            self.y += 2 * mm
        box_top = self.y
        c.setStrokeColor(GRID)
        c.setLineWidth(0.5)
        c.rect(MARGIN, self._pdf_y(box_top + height), CONTENT_WIDTH, height, stroke=1, fill=0)

        c.setFont(FONT, 9)
        c.setFillColor(TEXT)
        line_top = box_top + 5 * mm
        for line in simpleSplit(text or "", FONT, 9, CONTENT_WIDTH - 4 * mm):
            if line_top > box_top + height - 2 * mm:
                break
            c.drawString(MARGIN + 2 * mm, self._pdf_y(line_top), line)
            line_top += LINE_HEIGHT
        self.y = box_top + height + 5 * mm
        self.fresh_page = False

    def table(self, headers: list[str], rows: list[list[str]], col_widths: list[float] | None = None) -> None:
        if self.y > TABLE_START_LIMIT:
            self.new_page()
        data = [[Paragraph(escape(h), _HEAD_CELL) for h in headers]]
        for row in rows:
            data.append(
                [
                    Paragraph(escape(value or "N/A"), _CELL_BOLD if i == 0 else _CELL)
                    for i, value in enumerate(row)
                ]
            )
        widths = col_widths or [CONTENT_WIDTH / len(headers)] * len(headers)
        tbl = Table(data, colWidths=widths, repeatRows=1)
        tbl.setStyle(_TABLE_STYLE)
        self._draw_flowing_table(tbl)

    def _draw_flowing_table(self, tbl: Table) -> None:
        pending = [tbl]
        while pending:
            current = pending.pop(0)
            room = BOTTOM_LIMIT - self.y
            _, h = current.wrapOn(self.c, CONTENT_WIDTH, room)
            parts = [] if h <= room else current.split(CONTENT_WIDTH, room)
            if h <= room or (len(parts) < 2 and self.fresh_page):
                # Fits, or a single row taller than a whole page: draw and let it overflow.
                _, h = current.wrapOn(self.c, CONTENT_WIDTH, room)
                current.drawOn(self.c, MARGIN, self._pdf_y(self.y) - h)
                self.y += h + 6 * mm
                self.fresh_page = False
                continue
            if len(parts) < 2:
                self.new_page()
                pending.insert(0, current)
                continue
            first = parts[0]
            _, first_h = first.wrapOn(self.c, CONTENT_WIDTH, room)
            first.drawOn(self.c, MARGIN, self._pdf_y(self.y) - first_h)
            self.new_page()
            pending = list(parts[1:]) + pending

    def collection_table(self, spec: CollectionSpec) -> None:
        rows = [
            spec.cells(entry)
            for entry in spec.entries(self.record)
            if any(str(getattr(entry, name)).strip() for name in spec.primary)
        ]
        self.table([col.label for col in spec.columns], rows)

    def signatures(self) -> None:
        self.ensure_room(30 * mm)
        c = self.c
        self.y += 10 * mm
        half = CONTENT_WIDTH / 2
        for i, (caption, role) in enumerate((("Prepared by:", "Social Worker"), ("Noted by:", "Supervisor"))):
            x = MARGIN + i * half
            c.setFont(FONT_BOLD, 9)
            c.setFillColor(TEXT)
            c.drawString(x, self._pdf_y(self.y), caption)
            c.setStrokeColor(TEXT)
            c.line(x, self._pdf_y(self.y + 12 * mm), x + half - 15 * mm, self._pdf_y(self.y + 12 * mm))
            c.setFont(FONT, 9)
            c.drawCentredString(x + (half - 15 * mm) / 2, self._pdf_y(self.y + 16 * mm), role)
        self.y += 20 * mm

    # ── Sections ──────────────────────────────────────────────────────

    def guarded(self, title: str, draw: Callable[[], None]) -> None:
        try:
            draw()
        except Exception:
            logger.exception(f"PDF section '{title}' failed to render; skipping")

    def identifying_information(self) -> None:
        f = self.f
        self.section_header("I. CLIENT'S IDENTIFYING INFORMATION")
        self.field_row([("Name", full_name(f))])
        self.field_row([("Sex", f.sex), ("Age", display_age(f)), ("Date of Birth", date_only(f.birthdate))])
        self.field_row([("Nickname", f.nickname), ("Birthplace", f.birthplace)])
        self.field_row(
            [("Nationality", f.nationality), ("Religion", f.religion), ("Status", str(display_label(f.status)))]
        )
        self.field_row([("Present Address", f.present_address or f.address)])
        self.field_row([("Provincial Address", f.provincial_address)])
        self.field_row([("Barangay", f.barangay), ("Municipality", f.municipality), ("Province", f.province)])
        self.field_row(
            [
                ("Source of Referral", f.source_of_referral or f.other_source_of_referral),
                ("Date of Referral", date_only(f.date_of_referral)),
            ]
        )
        self.field_row([("Referrer Address/Tel", f.address_and_tel), ("Relation to Client", f.relation_to_client)])
        self.field_row([("Program", program_label(f)), ("House Parent", f.assigned_house_parent)])
        self.field_row([("Admission", " ".join(p for p in (f.admission_month, f.admission_year) if p))])

    def family_composition(self) -> None:
        f = self.f
        self.section_header("II. FAMILY/HOUSEHOLD COMPOSITION")
        for prefix, title in (("father", "Father"), ("mother", "Mother"), ("guardian", "Guardian")):
            get = lambda name: getattr(f, f"{prefix}_{name}")  # noqa: E731
            self.sub_heading(title)
            if prefix == "guardian":
                self.field_row([("Name", get("name")), ("Relation", f.guardian_relation), ("Age", get("age"))])
            else:
                self.field_row([("Name", get("name")), ("Age", get("age"))])
            self.field_row([("Education", get("education")), ("Occupation", get("occupation"))])
            self.field_row(
                [("Other Skills", get("other_skills")), ("Income", format_income(get("income"), PDF_CURRENCY))]
            )
            self.field_row([("Address", get("address")), ("Status", living_label(get("living")))])

    def civil_status(self) -> None:
        f = self.f
        self.section_header("III. CIVIL STATUS OF PARENTS")
        self.field_row(
            [
                ("Married in Church", yes_no(f.married_in_church, "Yes", "No")),
                ("Live-in/Common Law", yes_no(f.live_in_common_law, "Yes", "No")),
            ]
        )
        self.field_row(
            [
                ("Civil Marriage", yes_no(f.civil_marriage, "Yes", "No")),
                ("Separated", yes_no(f.separated, "Yes", "No")),
            ]
        )
        self.field_row([("Date and Place of Marriage", f.marriage_date_place)])

    def narrative(self, title: str, label: str, text: str) -> None:
        self.section_header(title)
        self.text_area(label, text)

    def brief_description(self) -> None:
        f = self.f
        self.section_header("IV. BRIEF DESCRIPTION OF CLIENT AND FAMILY UPON INTAKE")
        self.text_area("Client", f.client_description or f.brief_description)
        self.text_area("Parents/Relatives/Guardian", f.parents_description)

    def collection_section(self, title: str, spec: CollectionSpec) -> None:
        if not spec.has_rows(self.record):
            return
        self.section_header(title)
        self.collection_table(spec)

    def agencies(self) -> None:
        if not AGENCIES.has_rows(self.record) and not self.record.agencies_note:
            return
        self.section_header("XIV. AGENCIES/PERSONS WHO HAVE HELPED THE CLIENT")
        if AGENCIES.has_rows(self.record):
            self.collection_table(AGENCIES)
        if self.record.agencies_note:
            self.text_area("Notes", self.record.agencies_note)

    def assessment(self) -> None:
        self.section_header("XV. ASSESSMENT AND RECOMMENDATION")
        self.text_area("Assessment", self.f.assessment)
        self.text_area("Recommendation", self.f.recommendation)

    def intervention_plan(self) -> None:
        items = [line.strip() for line in self.f.intervention_plan.splitlines() if line.strip()]
        if not items:
            return
        self.section_header("XVIII. INTERVENTION PLAN")
        self.table(["No.", "Intervention"], [[str(i), item] for i, item in enumerate(items, 1)],
                   col_widths=[15 * mm, CONTENT_WIDTH - 15 * mm])

    def render(self) -> bytes:
        f = self.f
        self.guarded("header", self.header_band)
        self.y = max(self.y, HEADER_BAND_HEIGHT + 8 * mm)
        sections: list[tuple[str, Callable[[], None]]] = [
            ("I", self.identifying_information),
            ("II", self.family_composition),
            ("III", self.civil_status),
            ("IV", self.brief_description),
            ("V", lambda: self.narrative("V. PROBLEM PRESENTED", "", f.problem_presented)),
            ("VI", lambda: self.narrative("VI. BRIEF HISTORY OF THE PROBLEM", "", f.brief_history)),
            ("VII", lambda: self.narrative("VII. ECONOMIC SITUATION", "", f.economic_situation)),
            ("VIII", lambda: self.narrative("VIII. MEDICAL HISTORY", "", f.medical_history)),
            ("IX", lambda: self.narrative("IX. FAMILY BACKGROUND", "", f.family_background)),
            ("X", lambda: self.collection_section("X. EDUCATIONAL ATTAINMENT", EDUCATION)),
            ("XI", lambda: self.collection_section("XI. SACRAMENTAL RECORD", SACRAMENTS)),
            ("XII", lambda: self.collection_section("XII. FAMILY MEMBERS", FAMILY_MEMBERS)),
            ("XIII", lambda: self.collection_section("XIII. EXTENDED FAMILY", EXTENDED_FAMILY)),
            ("XIV", self.agencies),
            ("XV", self.assessment),
            ("XVI", lambda: self.collection_section("XVI. LIFE SKILLS", LIFE_SKILLS)),
            ("XVII", lambda: self.collection_section("XVII. VITAL SIGNS", VITAL_SIGNS)),
            ("XVIII", self.intervention_plan),
        ]
        for title, draw in sections:
            self.guarded(title, draw)
        if self.options.include_signatures:
            self.guarded("signatures", self.signatures)

        self.c.showPage()
        self.c.save()
        return self.buf.getvalue()


def render_case_pdf(case: CaseRecord | Mapping[str, Any], options: PdfOptions | None = None) -> bytes:
    """Render the intake report for one case. Returns PDF bytes."""
    record = ensure_case_record(case)
    return _CaseReport(record, options or PdfOptions()).render()
