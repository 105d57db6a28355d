"""
Central export artifact registry: kinds, extensions, media types and file naming.
"""
from __future__ import annotations

import re
from datetime import date

EXPORT_PREFIX = "HOPETRACK"

# Artifact kinds as they appear in download file names
KIND_CASE_REPORT = "CaseReport"
KIND_CASE_DATA = "CaseData"
KIND_ALL_CASES = "AllCases"
KIND_ARCHIVED_CASES = "ArchivedCases"

EXT_PDF = "pdf"
EXT_XLS = "xls"
EXT_CSV = "csv"
EXT_DOCX = "docx"

MEDIA_TYPE_MAP: dict[str, str] = {
    EXT_PDF: "application/pdf",
    EXT_XLS: "application/vnd.ms-excel",
    EXT_CSV: "text/csv",
    EXT_DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

VALID_EXTENSIONS: tuple[str, ...] = tuple(MEDIA_TYPE_MAP.keys())

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


def media_type(ext: str) -> str:
    try:
        return MEDIA_TYPE_MAP[ext]
    except KeyError as exc:
        raise ValueError(f"Unknown export extension: {ext}") from exc


def safe_identifier(value: str, fallback: str = "Unknown") -> str:
    """Collapse whitespace to underscores and drop characters unsafe in file names."""
    text = "_".join(str(value or "").split())
    text = _UNSAFE_CHARS.sub("", text).strip("_")
    return text or fallback


def export_filename(kind: str, identifier: str, ext: str, on: date | None = None) -> str:
    """Build ``HOPETRACK_<Kind>_<Identifier>_<ISODate>.<ext>``."""
    if ext not in MEDIA_TYPE_MAP:
        raise ValueError(f"Unknown export extension: {ext}")
    stamp = (on or date.today()).isoformat()
    return f"{EXPORT_PREFIX}_{kind}_{safe_identifier(identifier)}_{stamp}.{ext}"
