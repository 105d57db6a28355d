"""
Unit tests for the intake report PDF and the consolidated list PDF.
"""
from __future__ import annotations

import io
import logging
from datetime import date

from pypdf import PdfReader

from apps.casework.export_render.case_pdf import PdfOptions, _CaseReport, render_case_pdf
from apps.casework.export_render.cases_list_pdf import render_all_cases_pdf, render_cases_with_details_pdf


# ── Fixtures ──────────────────────────────────────────────────────────────

def _make_case(**overrides) -> dict:
    case = {
        "id": 3,
        "firstName": "Ana",
        "lastName": "Cruz",
        "sex": "Female",
        "birthdate": "2014-06-15",
        "status": "active",
        "problemPresented": "Neglect reported by the barangay.",
        "assessment": "Needs residential care.",
    }
    case.update(overrides)
    return case


def _text(pdf_bytes: bytes) -> str:
    reader = PdfReader(io.BytesIO(pdf_bytes))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def _pages(pdf_bytes: bytes) -> int:
    return len(PdfReader(io.BytesIO(pdf_bytes)).pages)


# ── Intake report ─────────────────────────────────────────────────────────


class TestCasePdf:
    def test_produces_valid_pdf(self):
        pdf = render_case_pdf(_make_case(), PdfOptions(generated_on=date(2024, 1, 5)))
        assert pdf[:5] == b"%PDF-"
        text = _text(pdf)
        assert "CASE INTAKE FORM" in text
        assert "IDENTIFYING INFORMATION" in text
        assert "Ana Cruz" in text
        assert "Generated: January 5, 2024" in text

    def test_footer_on_every_page(self):
        pdf = render_case_pdf(_make_case())
        reader = PdfReader(io.BytesIO(pdf))
        total = len(reader.pages)
        for i, page in enumerate(reader.pages, 1):
            text = page.extract_text()
            assert "HOPETRACK Case Management System" in text
            assert f"Page {i} of {total}" in text

    def test_empty_collections_omit_sections(self):
        text = _text(render_case_pdf(_make_case()))
        assert "FAMILY MEMBERS" not in text
        assert "VITAL SIGNS" not in text
        assert "INTERVENTION PLAN" not in text

    def test_collections_render_tables(self):
        case = _make_case(
            familyMembers=[{"name": "Ben Cruz", "relation": "Brother"}],
            vitalSigns=[{"dateRecorded": "2024-02-02T08:00:00Z", "bloodPressure": "110/70"}],
            interventionPlan="Counseling\nSchooling",
        )
        text = _text(render_case_pdf(case))
        assert "XII. FAMILY MEMBERS" in text
        assert "Ben Cruz" in text
        assert "2024-02-02" in text
        assert "XVIII. INTERVENTION PLAN" in text
        assert "Schooling" in text

    def test_long_tables_flow_across_pages(self):
        members = [{"name": f"Member {i}", "relation": "Cousin", "age": i} for i in range(120)]
        pdf = render_case_pdf(_make_case(familyMembers=members))
        assert _pages(pdf) > 2
        text = _text(pdf)
        assert "Member 0" in text
        assert "Member 119" in text

    def test_undecodable_images_leave_region_blank(self):
        options = PdfOptions(logo="definitely not an image", photo=b"\x00\x01garbage")
        pdf = render_case_pdf(_make_case(profilePicture="data:image/png;base64,####"), options)
        assert pdf[:5] == b"%PDF-"
        assert "Ana Cruz" in _text(pdf)

    def test_signatures_optional(self):
        with_sig = _text(render_case_pdf(_make_case()))
        without_sig = _text(render_case_pdf(_make_case(), PdfOptions(include_signatures=False)))
        assert "Prepared by:" in with_sig
        assert "Prepared by:" not in without_sig

    def test_income_uses_text_currency(self):
        text = _text(render_case_pdf(_make_case(fatherName="Dan Cruz", fatherIncome="5000")))
        assert "PHP 5000" in text

    def test_failing_section_is_skipped(self, monkeypatch, caplog):
        def _boom(self):
            raise RuntimeError("section exploded")

        monkeypatch.setattr(_CaseReport, "civil_status", _boom)
        with caplog.at_level(logging.ERROR):
            pdf = render_case_pdf(_make_case())
        assert pdf[:5] == b"%PDF-"
        text = _text(pdf)
        assert "II. FAMILY/HOUSEHOLD COMPOSITION" in text
        assert "III. CIVIL STATUS OF PARENTS" not in text
        assert "Married in Church" not in text
        assert "IV. BRIEF DESCRIPTION OF CLIENT AND FAMILY UPON INTAKE" in text
        assert "PDF section 'III' failed to render" in caplog.text


# ── List PDF ──────────────────────────────────────────────────────────────


class TestCasesListPdf:
    def test_lists_every_case(self):
        cases = [_make_case(), _make_case(id=4, firstName="Dina", caseType="Day Care")]
        text = _text(render_all_cases_pdf(cases, today=date(2024, 6, 15)))
        assert "All Cases" in text
        assert "Ana Cruz" in text
        assert "Dina Cruz" in text
        assert "Day Care" in text

    def test_empty_list(self):
        text = _text(render_all_cases_pdf([]))
        assert "No cases to display." in text

    def test_many_cases_paginate(self):
        cases = [_make_case(id=i, firstName=f"Child{i}") for i in range(150)]
        pdf = render_all_cases_pdf(cases)
        assert _pages(pdf) > 1
        assert "Page 1 of" in PdfReader(io.BytesIO(pdf)).pages[0].extract_text()

    def test_with_details_appends_reports(self):
        cases = [_make_case(), _make_case(id=4, firstName="Dina")]
        list_only = render_all_cases_pdf(cases)
        combined = render_cases_with_details_pdf(cases)
        assert _pages(combined) >= _pages(list_only) + 2
        assert "IDENTIFYING INFORMATION" in _text(combined)
