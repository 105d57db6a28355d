from .case import (
    AgencyContact,
    CaseFields,
    CaseRecord,
    EducationEntry,
    ExtendedFamilyMember,
    FamilyMember,
    LifeSkillEntry,
    SacramentEntry,
    VitalSignEntry,
)
from .enums import CaseBucket, ExportFormat, NotificationType
from .export import ArtifactRef, ExportArtifact, RenderedExport
from .notification import Notification

__all__ = [
    "AgencyContact",
    "ArtifactRef",
    "CaseBucket",
    "CaseFields",
    "CaseRecord",
    "EducationEntry",
    "ExportArtifact",
    "ExportFormat",
    "ExtendedFamilyMember",
    "FamilyMember",
    "LifeSkillEntry",
    "Notification",
    "NotificationType",
    "RenderedExport",
    "SacramentEntry",
    "VitalSignEntry",
]
