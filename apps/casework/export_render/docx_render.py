"""
DOCX rendering for case exports.

Same section structure as the intake PDF: label/value tables with shaded
label cells for the form parts and header-shaded tables for collections.
"""
from __future__ import annotations

import io
import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

from docx import Document as DocxDocument
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt, RGBColor

from apps.casework.export_render.common import SYSTEM_NAME, _set_cell_shading, list_rows
from apps.casework.export_render.sections import (
    AGENCIES,
    EDUCATION,
    EXTENDED_FAMILY,
    FAMILY_MEMBERS,
    LIFE_SKILLS,
    LIST_COLUMNS,
    SACRAMENTS,
    VITAL_SIGNS,
    CollectionSpec,
)
from apps.casework.lib.derived_values import date_only, display_age, format_income, living_label, yes_no
from apps.casework.lib.field_normalizer import full_name, program_label
from apps.casework.lib.nested_records import ensure_case_record
from apps.casework.lib.status import display_label
from packages.shared.models.case import CaseFields, CaseRecord

BLANK = "____________________"
HEADER_FILL = "2980B9"
LABEL_FILL = "ECF0F1"

# C0 controls other than tab, LF and CR are rejected by lxml text nodes.
_XML_ILLEGAL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def _xml_safe(text: str | None) -> str:
    return _XML_ILLEGAL.sub("", text or "")


def _new_document():
    doc = DocxDocument()
    for section in doc.sections:
        section.left_margin = Inches(0.75)
        section.right_margin = Inches(0.75)
        section.top_margin = Inches(0.75)
        section.bottom_margin = Inches(0.75)
    return doc


def _meta_line(doc, text: str) -> None:
    p = doc.add_paragraph(_xml_safe(text))
    p.alignment = WD_ALIGN_PARAGRAPH.CENTER
    p.runs[0].font.size = Pt(10)
    p.runs[0].font.color.rgb = RGBColor(0x7F, 0x8C, 0x8D)


def _size_cell(cell, size: int = 9, bold: bool = False, white: bool = False) -> None:
    for paragraph in cell.paragraphs:
        for run in paragraph.runs:
            run.font.size = Pt(size)
            run.font.bold = bold
            if white:
                run.font.color.rgb = RGBColor(0xFF, 0xFF, 0xFF)


def _form_table(doc, rows: list[tuple[str, str]]) -> None:
    tbl = doc.add_table(rows=len(rows), cols=2)
    tbl.style = "Table Grid"
    tbl.alignment = WD_TABLE_ALIGNMENT.CENTER
    for i, (label, value) in enumerate(rows):
        label_cell, value_cell = tbl.cell(i, 0), tbl.cell(i, 1)
        label_cell.text = _xml_safe(label)
        value = _xml_safe(value)
        value_cell.text = value if value.strip() else BLANK
        label_cell.width = Inches(2.2)
        value_cell.width = Inches(4.8)
        _set_cell_shading(label_cell, LABEL_FILL)
        _size_cell(label_cell, bold=True)
        _size_cell(value_cell)
    doc.add_paragraph()


def _grid_table(doc, headers: list[str] | tuple[str, ...], rows: list[list[str]], placeholder: str = "") -> None:
    tbl = doc.add_table(rows=1, cols=len(headers))
    tbl.style = "Table Grid"
    tbl.alignment = WD_TABLE_ALIGNMENT.CENTER
    for idx, text in enumerate(headers):
        cell = tbl.rows[0].cells[idx]
        cell.text = _xml_safe(text)
        _set_cell_shading(cell, HEADER_FILL)
        _size_cell(cell, bold=True, white=True)
    for row in rows:
        cells = tbl.add_row().cells
        for idx, value in enumerate(row):
            cells[idx].text = _xml_safe(value) or placeholder
            _size_cell(cells[idx])
    doc.add_paragraph()


def _collection(doc, record: CaseRecord, title: str, spec: CollectionSpec) -> None:
    if not spec.has_rows(record):
        return
    doc.add_heading(title, level=1)
    rows = [
        spec.cells(entry)
        for entry in spec.entries(record)
        if any(str(getattr(entry, name)).strip() for name in spec.primary)
    ]
    _grid_table(doc, [col.label for col in spec.columns], rows, placeholder="N/A")


def _narrative(doc, title: str, text: str) -> None:
    doc.add_heading(title, level=1)
    text = _xml_safe(text)
    p = doc.add_paragraph(text.strip() if text.strip() else BLANK)
    p.alignment = WD_ALIGN_PARAGRAPH.JUSTIFY
    for run in p.runs:
        run.font.size = Pt(10)


def _parent_rows(f: CaseFields, prefix: str, title: str) -> list[tuple[str, str]]:
    get = lambda name: getattr(f, f"{prefix}_{name}")  # noqa: E731
    rows = [(f"{title} Name", get("name"))]
    if prefix == "guardian":
        rows.append(("Relation to Client", f.guardian_relation))
    rows += [
        ("Age", get("age")),
        ("Education", get("education")),
        ("Occupation", get("occupation")),
        ("Other Skills", get("other_skills")),
        ("Address", get("address")),
        ("Monthly Income", format_income(get("income"))),
        ("Living/Deceased", living_label(get("living"))),
    ]
    return rows


def render_case_docx(case: CaseRecord | Mapping[str, Any], generated_at: datetime | None = None) -> bytes:
    """Generate the Word version of the intake report."""
    record = ensure_case_record(case)
    f = record.fields
    doc = _new_document()

    title_para = doc.add_heading("HOPETRACK Case Intake Report", level=0)
    title_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
    _meta_line(doc, f"Client: {full_name(f) or 'Unknown'}")
    _meta_line(doc, f"Generated: {(generated_at or datetime.now()).strftime('%Y-%m-%d %H:%M')}")
    doc.add_paragraph()

    doc.add_heading("I. Client's Identifying Information", level=1)
    _form_table(
        doc,
        [
            ("Name", full_name(f)),
            ("Nickname", f.nickname),
            ("Sex", f.sex),
            ("Date of Birth", date_only(f.birthdate)),
            ("Age", display_age(f)),
            ("Birthplace", f.birthplace),
            ("Nationality", f.nationality),
            ("Religion", f.religion),
            ("Status", str(display_label(f.status))),
            ("Present Address", f.present_address or f.address),
            ("Provincial Address", f.provincial_address),
            ("Barangay / Municipality / Province", ", ".join(p for p in (f.barangay, f.municipality, f.province) if p)),
            ("Source of Referral", f.source_of_referral or f.other_source_of_referral),
            ("Date of Referral", date_only(f.date_of_referral)),
            ("Referrer Address & Tel", f.address_and_tel),
            ("Relation to Client", f.relation_to_client),
            ("Program", program_label(f)),
            ("Assigned House Parent", f.assigned_house_parent),
            ("Admission", " ".join(p for p in (f.admission_month, f.admission_year) if p)),
        ],
    )

    doc.add_heading("II. Family/Household Composition", level=1)
    for prefix, title in (("father", "Father"), ("mother", "Mother"), ("guardian", "Guardian")):
        _form_table(doc, _parent_rows(f, prefix, title))

    doc.add_heading("III. Civil Status of Parents", level=1)
    _form_table(
        doc,
        [
            ("Married in Church", yes_no(f.married_in_church, "Yes", "No")),
            ("Live-in/Common Law", yes_no(f.live_in_common_law, "Yes", "No")),
            ("Civil Marriage", yes_no(f.civil_marriage, "Yes", "No")),
            ("Separated", yes_no(f.separated, "Yes", "No")),
            ("Date and Place of Marriage", f.marriage_date_place),
        ],
    )

    doc.add_heading("IV. Brief Description of Client and Family upon Intake", level=1)
    _form_table(
        doc,
        [
            ("Client", f.client_description or f.brief_description),
            ("Parents/Relatives/Guardian", f.parents_description),
        ],
    )
    _narrative(doc, "V. Problem Presented", f.problem_presented)
    _narrative(doc, "VI. Brief History of the Problem", f.brief_history)
    _narrative(doc, "VII. Economic Situation", f.economic_situation)
    _narrative(doc, "VIII. Medical History", f.medical_history)
    _narrative(doc, "IX. Family Background", f.family_background)

    _collection(doc, record, "X. Educational Attainment", EDUCATION)
    _collection(doc, record, "XI. Sacramental Record", SACRAMENTS)
    _collection(doc, record, "XII. Family Members", FAMILY_MEMBERS)
    _collection(doc, record, "XIII. Extended Family", EXTENDED_FAMILY)
    if AGENCIES.has_rows(record):
        _collection(doc, record, "XIV. Agencies/Persons Who Have Helped the Client", AGENCIES)
    elif record.agencies_note:
        _narrative(doc, "XIV. Agencies/Persons Who Have Helped the Client", record.agencies_note)

    doc.add_heading("XV. Assessment and Recommendation", level=1)
    _form_table(doc, [("Assessment", f.assessment), ("Recommendation", f.recommendation)])

    _collection(doc, record, "XVI. Life Skills", LIFE_SKILLS)
    _collection(doc, record, "XVII. Vital Signs", VITAL_SIGNS)

    plan = [line.strip() for line in f.intervention_plan.splitlines() if line.strip()]
    if plan:
        doc.add_heading("XVIII. Intervention Plan", level=1)
        for item in plan:
            doc.add_paragraph(_xml_safe(item), style="List Number")

    doc.add_paragraph()
    sig = doc.add_table(rows=3, cols=2)
    sig.alignment = WD_TABLE_ALIGNMENT.CENTER
    for col, (caption, role) in enumerate((("Prepared by:", "Social Worker"), ("Noted by:", "Supervisor"))):
        sig.cell(0, col).text = caption
        sig.cell(1, col).text = BLANK
        sig.cell(2, col).text = role
        for row in range(3):
            _size_cell(sig.cell(row, col), size=10, bold=row == 0)

    footer = doc.sections[0].footer.paragraphs[0]
    footer.text = SYSTEM_NAME
    footer.alignment = WD_ALIGN_PARAGRAPH.CENTER

    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


def render_all_cases_docx(
    cases: Iterable[CaseRecord | Mapping[str, Any]],
    generated_at: datetime | None = None,
    today: date | None = None,
) -> bytes:
    """Four-column summary table of every case."""
    doc = _new_document()
    title_para = doc.add_heading("All Cases", level=0)
    title_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
    _meta_line(doc, f"Generated: {(generated_at or datetime.now()).strftime('%Y-%m-%d %H:%M')}")
    doc.add_paragraph()

    rows = list_rows(cases, today=today)
    _grid_table(doc, LIST_COLUMNS, rows)
    if not rows:
        doc.add_paragraph("No cases to display.")

    footer = doc.sections[0].footer.paragraphs[0]
    footer.text = SYSTEM_NAME
    footer.alignment = WD_ALIGN_PARAGRAPH.CENTER

    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()
