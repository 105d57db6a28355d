"""
API route: Exports

Stateless rendering: callers post case JSON and receive the document as an
attachment. Nothing is stored server-side.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field

from apps.api.authz import RequestToken, require_export_token
from apps.casework.export_render.orchestrator import render_case_export, render_cases_export
from packages.shared.artifacts import KIND_ALL_CASES, KIND_ARCHIVED_CASES
from packages.shared.models import ExportFormat, RenderedExport

logger = logging.getLogger("hopetrack.api.exports")

router = APIRouter(prefix="/export", tags=["exports"])


class CasesExportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cases: list[dict[str, Any]] = Field(default_factory=list)
    ids: list[str] | None = None
    list_only: bool = Field(default=True, alias="listOnly")
    archived: bool = False


def _attachment(rendered: RenderedExport) -> Response:
    return Response(
        content=rendered.data,
        media_type=rendered.media_type,
        headers={"Content-Disposition": f'attachment; filename="{rendered.filename}"'},
    )


def _require_cases(request: CasesExportRequest) -> list[dict[str, Any]]:
    if request.cases:
        return request.cases
    if request.ids:
        raise HTTPException(
            status_code=400,
            detail="Case lookup by id is not available here; send the cases array",
        )
    raise HTTPException(status_code=400, detail="No cases provided")


@router.post("/case/{fmt}")
def export_case(
    fmt: ExportFormat,
    case: dict[str, Any] = Body(...),
    token: RequestToken | None = Depends(require_export_token),
):
    """Render one case (form state or API row) in the requested format."""
    try:
        rendered = render_case_export(case, fmt)
    except Exception as exc:
        logger.exception(f"Case export failed for format {fmt.value}")
        raise HTTPException(status_code=500, detail="Failed to generate export") from exc
    return _attachment(rendered)


@router.post("/cases/pdf-html")
def export_cases_pdf(
    request: CasesExportRequest,
    token: RequestToken | None = Depends(require_export_token),
):
    """Consolidated list PDF; with listOnly=false each case's full report follows the list."""
    cases = _require_cases(request)
    kind = KIND_ARCHIVED_CASES if request.archived else KIND_ALL_CASES
    try:
        rendered = render_cases_export(cases, ExportFormat.PDF, kind=kind, include_details=not request.list_only)
    except Exception as exc:
        logger.exception("List PDF export failed")
        raise HTTPException(status_code=500, detail="Failed to generate PDF") from exc
    return _attachment(rendered)


@router.post("/cases/{fmt}")
def export_cases(
    fmt: ExportFormat,
    request: CasesExportRequest,
    token: RequestToken | None = Depends(require_export_token),
):
    cases = _require_cases(request)
    kind = KIND_ARCHIVED_CASES if request.archived else KIND_ALL_CASES
    try:
        rendered = render_cases_export(cases, fmt, kind=kind)
    except Exception as exc:
        logger.exception(f"List export failed for format {fmt.value}")
        raise HTTPException(status_code=500, detail="Failed to generate export") from exc
    return _attachment(rendered)
