"""
Orchestrator for export rendering.

Single dispatch point used by the export service API and the client-side
export workflows: picks the renderer for a format, names the file and, when
asked, writes it to the downloads directory.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date
from pathlib import Path
from typing import Any

from apps.casework.export_render.case_pdf import PdfOptions, render_case_pdf
from apps.casework.export_render.cases_list_pdf import render_all_cases_pdf, render_cases_with_details_pdf
from apps.casework.export_render.common import case_identifier
from apps.casework.export_render.csv_render import render_all_cases_csv, render_case_csv
from apps.casework.export_render.docx_render import render_all_cases_docx, render_case_docx
from apps.casework.export_render.excel_render import render_all_cases_excel, render_case_excel
from apps.casework.lib.nested_records import ensure_case_record
from packages.shared.artifacts import (
    EXT_CSV,
    EXT_DOCX,
    EXT_PDF,
    EXT_XLS,
    KIND_ALL_CASES,
    KIND_CASE_DATA,
    KIND_CASE_REPORT,
    export_filename,
    media_type,
)
from packages.shared.models import ArtifactRef, CaseRecord, ExportArtifact, ExportFormat, RenderedExport
from packages.shared.storage import save_export, sha256_bytes

logger = logging.getLogger("hopetrack.exports")

# Spreadsheet text gets a BOM so Excel picks up UTF-8.
TEXT_ENCODING = "utf-8-sig"

CASE_EXPORTS: dict[ExportFormat, tuple[str, str]] = {
    ExportFormat.PDF: (KIND_CASE_REPORT, EXT_PDF),
    ExportFormat.DOCX: (KIND_CASE_REPORT, EXT_DOCX),
    ExportFormat.CSV: (KIND_CASE_DATA, EXT_XLS),
    ExportFormat.EXCEL: (KIND_CASE_DATA, EXT_XLS),
}

LIST_EXPORTS: dict[ExportFormat, str] = {
    ExportFormat.PDF: EXT_PDF,
    ExportFormat.DOCX: EXT_DOCX,
    ExportFormat.CSV: EXT_CSV,
    ExportFormat.EXCEL: EXT_XLS,
}


def render_case_export(
    case: CaseRecord | Mapping[str, Any],
    fmt: ExportFormat | str,
    options: PdfOptions | None = None,
    on: date | None = None,
) -> RenderedExport:
    """Render one case in the requested format."""
    fmt = ExportFormat(fmt)
    record = ensure_case_record(case)
    kind, ext = CASE_EXPORTS[fmt]

    if fmt is ExportFormat.PDF:
        data = render_case_pdf(record, options)
    elif fmt is ExportFormat.DOCX:
        data = render_case_docx(record)
    elif fmt is ExportFormat.CSV:
        data = render_case_csv(record).encode(TEXT_ENCODING)
    else:
        data = render_case_excel(record).encode(TEXT_ENCODING)

    filename = export_filename(kind, case_identifier(record), ext, on=on)
    logger.info(f"Rendered {fmt.value} export {filename} ({len(data)} bytes)")
    return RenderedExport(filename=filename, media_type=media_type(ext), format=fmt, data=data)


def render_cases_export(
    cases: Iterable[CaseRecord | Mapping[str, Any]],
    fmt: ExportFormat | str,
    kind: str = KIND_ALL_CASES,
    identifier: str = "List",
    on: date | None = None,
    include_details: bool = False,
) -> RenderedExport:
    """
    Render the reduced list view of many cases in the requested format.

    ``include_details`` appends each full intake report after the list (PDF only).
    """
    fmt = ExportFormat(fmt)
    records = [ensure_case_record(c) for c in cases]
    ext = LIST_EXPORTS[fmt]

    if fmt is ExportFormat.PDF and include_details:
        data = render_cases_with_details_pdf(records)
    elif fmt is ExportFormat.PDF:
        data = render_all_cases_pdf(records)
    elif fmt is ExportFormat.DOCX:
        data = render_all_cases_docx(records)
    elif fmt is ExportFormat.CSV:
        data = render_all_cases_csv(records).encode(TEXT_ENCODING)
    else:
        data = render_all_cases_excel(records).encode(TEXT_ENCODING)

    filename = export_filename(kind, identifier, ext, on=on)
    logger.info(f"Rendered {fmt.value} list export {filename} ({len(records)} cases, {len(data)} bytes)")
    return RenderedExport(filename=filename, media_type=media_type(ext), format=fmt, data=data)


def save_rendered_export(rendered: RenderedExport, exports_dir: Path | None = None) -> ExportArtifact:
    """Write a rendered export to disk and return its artifact reference."""
    path = save_export(rendered.filename, rendered.data, exports_dir=exports_dir)
    return ExportArtifact(
        filename=rendered.filename,
        format=rendered.format,
        ref=ArtifactRef(
            uri=str(path),
            sha256=sha256_bytes(rendered.data),
            bytes=len(rendered.data),
        ),
    )
