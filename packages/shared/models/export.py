from __future__ import annotations

from pydantic import BaseModel, Field

from .enums import ExportFormat


class RenderedExport(BaseModel):
    """A rendered document held in memory, ready to be downloaded or saved."""

    filename: str
    media_type: str
    format: ExportFormat
    data: bytes


class ArtifactRef(BaseModel):
    uri: str = Field(min_length=1, max_length=500)
    sha256: str = Field(pattern=r"^[a-f0-9]{64}$")
    bytes: int = Field(ge=1)


class ExportArtifact(BaseModel):
    filename: str
    format: ExportFormat
    ref: ArtifactRef
