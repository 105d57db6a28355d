from enum import Enum


class CaseBucket(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived-bucket"
    AFTER_CARE = "after-care"


class NotificationType(str, Enum):
    NEW = "new"  # case-created
    ADMISSION = "admission"
    ARCHIVED = "archived"
    REMINDER = "reminder"  # follow-up


class ExportFormat(str, Enum):
    PDF = "pdf"
    DOCX = "docx"
    CSV = "csv"
    EXCEL = "excel"  # HTML in the Excel XML envelope
