"""
Unit tests for export dispatch, file naming and saving.
"""
from __future__ import annotations

import hashlib
from datetime import date

import pytest

from apps.casework.export_render.orchestrator import (
    render_case_export,
    render_cases_export,
    save_rendered_export,
)
from packages.shared.artifacts import (
    KIND_ARCHIVED_CASES,
    export_filename,
    media_type,
    safe_identifier,
)
from packages.shared.models import ExportFormat

BOM = b"\xef\xbb\xbf"
ON = date(2024, 1, 5)


def _make_case(**overrides) -> dict:
    case = {"id": 9, "firstName": "Ana", "lastName": "Cruz", "status": "active"}
    case.update(overrides)
    return case


class TestFileNaming:
    def test_export_filename(self):
        assert export_filename("CaseReport", "Ana Cruz", "pdf", on=ON) == "HOPETRACK_CaseReport_Ana_Cruz_2024-01-05.pdf"

    def test_unsafe_characters_stripped(self):
        assert safe_identifier("Ana  Cruz/../") == "Ana_Cruz"
        assert safe_identifier("") == "Unknown"

    def test_unknown_extension(self):
        with pytest.raises(ValueError):
            export_filename("CaseReport", "x", "exe")
        with pytest.raises(ValueError):
            media_type("exe")


class TestRenderCaseExport:
    @pytest.mark.parametrize(
        "fmt, filename, mime, magic",
        [
            ("pdf", "HOPETRACK_CaseReport_Ana_Cruz_2024-01-05.pdf", "application/pdf", b"%PDF-"),
            ("docx", "HOPETRACK_CaseReport_Ana_Cruz_2024-01-05.docx",
             "application/vnd.openxmlformats-officedocument.wordprocessingml.document", b"PK"),
            ("csv", "HOPETRACK_CaseData_Ana_Cruz_2024-01-05.xls", "application/vnd.ms-excel", BOM),
            ("excel", "HOPETRACK_CaseData_Ana_Cruz_2024-01-05.xls", "application/vnd.ms-excel", BOM),
        ],
    )
    def test_formats(self, fmt, filename, mime, magic):
        rendered = render_case_export(_make_case(), fmt, on=ON)
        assert rendered.filename == filename
        assert rendered.media_type == mime
        assert rendered.format is ExportFormat(fmt)
        assert rendered.data.startswith(magic)

    def test_nameless_case_uses_id(self):
        rendered = render_case_export({"id": 9}, ExportFormat.PDF, on=ON)
        assert rendered.filename == "HOPETRACK_CaseReport_Case_9_2024-01-05.pdf"

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            render_case_export(_make_case(), "xml")


class TestRenderCasesExport:
    def test_bulk_csv_extension(self):
        rendered = render_cases_export([_make_case()], "csv", on=ON)
        assert rendered.filename == "HOPETRACK_AllCases_List_2024-01-05.csv"
        assert rendered.media_type == "text/csv"
        assert rendered.data.startswith(BOM + b'"Name","Age","Program","Last Updated"')

    def test_empty_bulk_csv_is_bom_only(self):
        assert render_cases_export([], "csv", on=ON).data == BOM

    def test_archived_kind(self):
        rendered = render_cases_export([_make_case(status="archived")], "excel", kind=KIND_ARCHIVED_CASES, on=ON)
        assert rendered.filename == "HOPETRACK_ArchivedCases_List_2024-01-05.xls"

    def test_pdf_and_docx(self):
        assert render_cases_export([_make_case()], "pdf").data[:5] == b"%PDF-"
        assert render_cases_export([_make_case()], "docx").data[:2] == b"PK"


def test_save_rendered_export(tmp_path):
    rendered = render_case_export(_make_case(), "csv", on=ON)
    artifact = save_rendered_export(rendered, exports_dir=tmp_path)
    path = tmp_path / rendered.filename
    assert path.read_bytes() == rendered.data
    assert artifact.ref.uri == str(path)
    assert artifact.ref.sha256 == hashlib.sha256(rendered.data).hexdigest()
    assert artifact.ref.bytes == len(rendered.data)
