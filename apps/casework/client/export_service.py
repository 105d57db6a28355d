"""
Client-side export and status workflows.

Detail fetches degrade to the summary record, bulk fetches run in parallel,
and the consolidated list PDF is requested from the export endpoint first
with the local renderer as the fallback. User-facing failures go through the
``alert`` callback.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from apps.casework.client.api_client import CaseApiClient
from apps.casework.export_render.case_pdf import PdfOptions
from apps.casework.export_render.orchestrator import (
    render_case_export,
    render_cases_export,
    save_rendered_export,
)
from apps.casework.lib.field_normalizer import normalize_fields
from apps.casework.lib.status import is_archived_status
from packages.shared.artifacts import EXT_PDF, KIND_ALL_CASES, KIND_ARCHIVED_CASES, export_filename, media_type
from packages.shared.models import ExportFormat, RenderedExport

logger = logging.getLogger("hopetrack.export_service")

Alert = Callable[[str], None]

FORMAT_LABELS: dict[ExportFormat, str] = {
    ExportFormat.PDF: "PDF",
    ExportFormat.DOCX: "Word document",
    ExportFormat.CSV: "CSV",
    ExportFormat.EXCEL: "Excel file",
}

# Collections fetched from side endpoints; not part of the case resource itself.
_DETAIL_ONLY_KEYS = ("lifeSkills", "vitalSigns")


def log_alert(message: str) -> None:
    logger.warning(f"alert: {message}")


def fetch_case_details_for_export(client: CaseApiClient, case_id: str | int) -> dict[str, Any] | None:
    """
    Full case record with life skills and vital signs attached.

    Returns None on any failure fetching the case itself; the side
    collections fall back to empty lists.
    """
    try:
        details = dict(client.get_case(case_id))
    except Exception as exc:
        logger.error(f"Failed to fetch case {case_id} for export: {exc}")
        return None

    for key, fetch in (("lifeSkills", client.get_life_skills), ("vitalSigns", client.get_vital_signs)):
        try:
            details[key] = fetch(case_id)
        except Exception as exc:
            logger.warning(f"Could not fetch {key} for case {case_id}: {exc}")
            details.setdefault(key, [])
    return details


def gather_full_cases(
    client: CaseApiClient,
    cases: Iterable[Mapping[str, Any]],
    max_workers: int | None = None,
) -> list[dict[str, Any]]:
    """
    Fetch full details for every case in parallel, keeping input order.

    A case whose fetch fails is exported from its summary record. With no
    ``max_workers`` one worker is used per case.
    """
    summaries = [c for c in cases if isinstance(c, Mapping)]
    if not summaries:
        return []

    def _one(summary: Mapping[str, Any]) -> dict[str, Any]:
        case_id = normalize_fields(summary).id
        details = fetch_case_details_for_export(client, case_id) if case_id else None
        return details if details is not None else dict(summary)

    with ThreadPoolExecutor(max_workers=max_workers or len(summaries)) as pool:
        return list(pool.map(_one, summaries))


class CaseExportService:
    def __init__(
        self,
        client: CaseApiClient,
        alert: Alert | None = None,
        exports_dir: Path | None = None,
        pdf_options: PdfOptions | None = None,
        max_workers: int | None = None,
    ):
        self.client = client
        self.alert = alert or log_alert
        self.exports_dir = exports_dir
        self.pdf_options = pdf_options
        self.max_workers = max_workers

    def _download(self, rendered: RenderedExport) -> Path:
        artifact = save_rendered_export(rendered, exports_dir=self.exports_dir)
        logger.info(f"Export saved: {artifact.filename} sha256={artifact.ref.sha256[:12]}")
        return Path(artifact.ref.uri)

    # ── Single case ───────────────────────────────────────────────────

    def export_case(self, summary: Mapping[str, Any], fmt: ExportFormat | str) -> Path | None:
        fmt = ExportFormat(fmt)
        case_id = normalize_fields(summary).id
        details = fetch_case_details_for_export(self.client, case_id) if case_id else None
        case = details if details is not None else summary
        try:
            rendered = render_case_export(case, fmt, options=self.pdf_options)
        except Exception:
            logger.exception(f"Failed to render {fmt.value} export for case {case_id}")
            self.alert(f"Error generating {FORMAT_LABELS[fmt]}. Please try again.")
            return None
        return self._download(rendered)

    def export_case_pdf(self, summary: Mapping[str, Any]) -> Path | None:
        return self.export_case(summary, ExportFormat.PDF)

    def export_case_docx(self, summary: Mapping[str, Any]) -> Path | None:
        return self.export_case(summary, ExportFormat.DOCX)

    def export_case_csv(self, summary: Mapping[str, Any]) -> Path | None:
        return self.export_case(summary, ExportFormat.CSV)

    def export_case_excel(self, summary: Mapping[str, Any]) -> Path | None:
        return self.export_case(summary, ExportFormat.EXCEL)

    # ── Bulk ──────────────────────────────────────────────────────────

    def export_cases(
        self,
        cases: Iterable[Mapping[str, Any]],
        fmt: ExportFormat | str,
        kind: str = KIND_ALL_CASES,
    ) -> Path | None:
        fmt = ExportFormat(fmt)
        summaries = [c for c in cases if isinstance(c, Mapping)]
        if not summaries:
            self.alert("No cases to export")
            return None

        full_cases = gather_full_cases(self.client, summaries, max_workers=self.max_workers)
        if fmt is ExportFormat.PDF:
            return self._export_cases_pdf(full_cases, kind)

        try:
            rendered = render_cases_export(full_cases, fmt, kind=kind)
        except Exception:
            logger.exception(f"Failed to render {fmt.value} list export")
            self.alert(f"Error generating {FORMAT_LABELS[fmt]}. Please try again.")
            return None
        return self._download(rendered)

    def _export_cases_pdf(self, full_cases: list[dict[str, Any]], kind: str) -> Path | None:
        try:
            data = self.client.export_cases_pdf(full_cases, list_only=True)
            rendered = RenderedExport(
                filename=export_filename(kind, "List", EXT_PDF),
                media_type=media_type(EXT_PDF),
                format=ExportFormat.PDF,
                data=data,
            )
        except Exception as exc:
            logger.warning(f"Export endpoint failed, rendering list PDF locally: {exc}")
            try:
                rendered = render_cases_export(full_cases, ExportFormat.PDF, kind=kind)
            except Exception:
                # Both paths failed: logged only, nothing is downloaded and no alert is raised.
                logger.exception("Local list PDF rendering failed")
                return None
        return self._download(rendered)

    def export_all_cases_pdf(self, cases: Iterable[Mapping[str, Any]]) -> Path | None:
        return self.export_cases(cases, ExportFormat.PDF)

    def export_all_cases_csv(self, cases: Iterable[Mapping[str, Any]]) -> Path | None:
        return self.export_cases(cases, ExportFormat.CSV)

    def export_all_cases_excel(self, cases: Iterable[Mapping[str, Any]]) -> Path | None:
        return self.export_cases(cases, ExportFormat.EXCEL)

    def export_all_cases_docx(self, cases: Iterable[Mapping[str, Any]]) -> Path | None:
        return self.export_cases(cases, ExportFormat.DOCX)

    def export_archived_cases(self, cases: Iterable[Mapping[str, Any]], fmt: ExportFormat | str) -> Path | None:
        """Bulk export limited to discharged and after-care cases."""
        archived = [c for c in cases if isinstance(c, Mapping) and is_archived_status(c.get("status"))]
        return self.export_cases(archived, fmt, kind=KIND_ARCHIVED_CASES)


class CaseStatusService:
    def __init__(
        self,
        client: CaseApiClient,
        alert: Alert | None = None,
        now: Callable[[], datetime] | None = None,
    ):
        self.client = client
        self.alert = alert or log_alert
        self._now = now or (lambda: datetime.now(timezone.utc))

    def transition_status(
        self,
        cases: list[dict[str, Any]],
        case_id: str | int,
        status: str,
    ) -> list[dict[str, Any]]:
        """
        PUT the new status and return the updated case list.

        On any failure the input list is returned untouched; there is no
        optimistic update and no retry.
        """
        case_id = str(case_id)
        details = fetch_case_details_for_export(self.client, case_id)
        if details is None:
            self.alert("Unable to load case details. Please try again.")
            return cases

        stamp = self._now().isoformat()
        payload = {k: v for k, v in details.items() if k not in _DETAIL_ONLY_KEYS}
        payload.update({"status": status, "lastUpdated": stamp})
        try:
            self.client.update_case(case_id, payload)
        except Exception as exc:
            logger.error(f"Status change to '{status}' failed for case {case_id}: {exc}")
            self.alert(f"Failed to update case status: {exc}")
            return cases

        logger.info(f"Case {case_id} moved to status '{status}'")
        return [
            {**c, "status": status, "lastUpdated": stamp} if normalize_fields(c).id == case_id else c
            for c in cases
        ]

    def move_to_after_care(self, cases: list[dict[str, Any]], case_id: str | int) -> list[dict[str, Any]]:
        return self.transition_status(cases, case_id, "after care")

    def archive_case(self, cases: list[dict[str, Any]], case_id: str | int) -> list[dict[str, Any]]:
        return self.transition_status(cases, case_id, "archived")
