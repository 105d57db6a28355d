"""
Nested collection normalization and full CaseRecord assembly.

Sources disagree on collection shapes: educational attainment and the
sacramental record arrive keyed by level/sacrament from the intake form and
as row arrays from the API. Both are folded into ordered lists of typed
entries here so renderers only ever iterate.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel

from apps.casework.lib.field_normalizer import normalize_fields, resolve
from packages.shared.models.case import (
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

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

EDUCATION_LEVELS: tuple[tuple[str, str], ...] = (
    ("elementary", "Elementary"),
    ("highSchool", "High School"),
    ("seniorHighSchool", "Senior High School"),
    ("vocationalCourse", "Vocational Course"),
    ("college", "College"),
    ("others", "Others"),
)

SACRAMENTS: tuple[tuple[str, str], ...] = (
    ("baptism", "Baptism"),
    ("firstCommunion", "First Communion"),
    ("confirmation", "Confirmation"),
    ("others", "Others"),
)

FAMILY_MEMBER_KEYS: dict[str, tuple[str, ...]] = {
    "name": ("name",),
    "relation": ("relation", "relationship"),
    "age": ("age",),
    "sex": ("sex", "gender"),
    "status": ("civilStatus", "civil_status", "status"),
    "education": ("education", "educationalAttainment", "educational_attainment"),
    "occupation": ("occupation",),
    "income": ("income",),
}

EXTENDED_FAMILY_KEYS: dict[str, tuple[str, ...]] = {
    "name": ("name",),
    "relationship": ("relationship", "relation"),
    "age": ("age",),
    "sex": ("sex", "gender"),
    "status": ("civilStatus", "civil_status", "status"),
    "education": ("education", "educationalAttainment", "educational_attainment"),
    "occupation": ("occupation",),
    "income": ("income",),
}

AGENCY_KEYS: dict[str, tuple[str, ...]] = {
    "name": ("name", "agency", "agencyName", "agency_name"),
    "address_date_duration": ("addressDateDuration", "address_date_duration"),
    "services_received": ("servicesReceived", "services_received"),
}

LIFE_SKILL_KEYS: dict[str, tuple[str, ...]] = {
    "activity": ("activity",),
    "date_completed": ("dateCompleted", "date_completed"),
    "performance_rating": ("performanceRating", "performance_rating"),
    "notes": ("notes",),
}

VITAL_SIGN_KEYS: dict[str, tuple[str, ...]] = {
    "date_recorded": ("dateRecorded", "date_recorded"),
    "blood_pressure": ("bloodPressure", "blood_pressure"),
    "heart_rate": ("heartRate", "heart_rate"),
    "temperature": ("temperature",),
    "weight": ("weight",),
    "height": ("height",),
    "notes": ("notes",),
}

_SCHOOL_KEYS = {
    "school_name": ("schoolName", "school_name"),
    "school_address": ("schoolAddress", "school_address"),
    "year": ("year", "yearCompleted", "year_completed", "yearGraduated", "year_graduated"),
}

_SACRAMENT_KEYS = {
    "date_received": ("dateReceived", "date_received"),
    "place_parish": ("placeParish", "place_parish"),
}


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]", "", value.lower())


_LEVEL_BY_SLUG = {_slug(key): key for key, _ in EDUCATION_LEVELS}
_LEVEL_BY_SLUG.update({_slug(label): key for key, label in EDUCATION_LEVELS})
_LEVEL_BY_SLUG.update({"vocational": "vocationalCourse", "other": "others", "shs": "seniorHighSchool"})

_SACRAMENT_BY_SLUG = {_slug(key): key for key, _ in SACRAMENTS}
_SACRAMENT_BY_SLUG.update({_slug(label): key for key, label in SACRAMENTS})
_SACRAMENT_BY_SLUG.update({"communion": "firstCommunion", "other": "others"})


def _rows(raw: Mapping[str, Any], *keys: str) -> list[Mapping[str, Any]]:
    """First candidate key holding a list (or a map of rows); non-mapping rows dropped."""
    for key in keys:
        value = raw.get(key)
        if isinstance(value, Mapping):
            value = list(value.values())
        if isinstance(value, (list, tuple)) and value:
            rows = [row for row in value if isinstance(row, Mapping)]
            if len(rows) != len(value):
                logger.debug(f"Dropped {len(value) - len(rows)} malformed rows under '{key}'")
            return rows
    return []


def _keyed_or_rows(raw: Mapping[str, Any], *keys: str) -> Mapping[str, Any] | list | tuple | None:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, (Mapping, list, tuple)):
            return value
    return None


def _build(model: type[ModelT], row: Mapping[str, Any], table: dict[str, tuple[str, ...]]) -> ModelT:
    return model(**{field: resolve(row, *keys) for field, keys in table.items()})


def _has_values(entry: BaseModel, ignore: tuple[str, ...] = ()) -> bool:
    return any(
        str(value).strip()
        for field, value in entry.model_dump().items()
        if field not in ignore
    )


def _collect(model: type[ModelT], rows: list[Mapping[str, Any]], table: dict[str, tuple[str, ...]]) -> list[ModelT]:
    entries = [_build(model, row, table) for row in rows]
    return [entry for entry in entries if _has_values(entry)]


def normalize_education(raw: Mapping[str, Any]) -> list[EducationEntry]:
    value = _keyed_or_rows(raw, "educationalAttainment", "educational_attainment", "education_rows")
    if value is None:
        return []

    known: dict[str, EducationEntry] = {}
    unknown: list[EducationEntry] = []

    def _add(level_raw: str, details: Mapping[str, Any]) -> None:
        level = _LEVEL_BY_SLUG.get(_slug(level_raw))
        label = dict(EDUCATION_LEVELS).get(level, "") if level else level_raw.replace("_", " ").title()
        entry = EducationEntry(
            level=level or level_raw,
            level_label=label,
            **{field: resolve(details, *keys) for field, keys in _SCHOOL_KEYS.items()},
        )
        if not _has_values(entry, ignore=("level", "level_label")):
            return
        if level and level not in known:
            known[level] = entry
        else:
            unknown.append(entry)

    if isinstance(value, Mapping):
        for level_raw, details in value.items():
            if isinstance(details, Mapping):
                _add(str(level_raw), details)
    else:
        for row in value:
            if isinstance(row, Mapping):
                _add(resolve(row, "level", "educationLevel", "education_level"), row)

    ordered = [known[key] for key, _ in EDUCATION_LEVELS if key in known]
    return ordered + unknown


def normalize_sacraments(raw: Mapping[str, Any]) -> list[SacramentEntry]:
    value = _keyed_or_rows(raw, "sacramentalRecord", "sacramental_record", "sacramentalRecords", "sacramental_records")
    if value is None:
        return []

    known: dict[str, SacramentEntry] = {}
    unknown: list[SacramentEntry] = []

    def _add(name_raw: str, details: Mapping[str, Any]) -> None:
        key = _SACRAMENT_BY_SLUG.get(_slug(name_raw))
        label = dict(SACRAMENTS).get(key, "") if key else name_raw.replace("_", " ").title()
        entry = SacramentEntry(
            sacrament=key or name_raw,
            label=label,
            **{field: resolve(details, *keys) for field, keys in _SACRAMENT_KEYS.items()},
        )
        if not _has_values(entry, ignore=("sacrament", "label")):
            return
        if key and key not in known:
            known[key] = entry
        else:
            unknown.append(entry)

    if isinstance(value, Mapping):
        for name_raw, details in value.items():
            if isinstance(details, Mapping):
                _add(str(name_raw), details)
    else:
        for row in value:
            if isinstance(row, Mapping):
                _add(resolve(row, "sacrament", "name", "type"), row)

    ordered = [known[key] for key, _ in SACRAMENTS if key in known]
    return ordered + unknown


def normalize_case(raw: Mapping[str, Any] | None) -> CaseRecord:
    """Normalize a raw case payload (form state or API row) into a CaseRecord."""
    if not isinstance(raw, Mapping):
        raw = {}

    agencies_value = raw.get("agencies")
    agencies_note = agencies_value.strip() if isinstance(agencies_value, str) else ""

    return CaseRecord(
        fields=normalize_fields(raw),
        family_members=_collect(
            FamilyMember,
            _rows(raw, "familyMembers", "family_members", "family_members_rows"),
            FAMILY_MEMBER_KEYS,
        ),
        extended_family=_collect(
            ExtendedFamilyMember,
            _rows(raw, "extendedFamily", "extended_family", "extended_family_rows"),
            EXTENDED_FAMILY_KEYS,
        ),
        education=normalize_education(raw),
        sacraments=normalize_sacraments(raw),
        agencies=_collect(AgencyContact, _rows(raw, "agencies", "agencies_rows"), AGENCY_KEYS),
        agencies_note=agencies_note,
        life_skills=_collect(
            LifeSkillEntry,
            _rows(raw, "lifeSkills", "lifeSkillsData", "life_skills"),
            LIFE_SKILL_KEYS,
        ),
        vital_signs=_collect(
            VitalSignEntry,
            _rows(raw, "vitalSigns", "vitalSignsData", "vital_signs"),
            VITAL_SIGN_KEYS,
        ),
    )


def ensure_case_record(case: CaseRecord | CaseFields | Mapping[str, Any] | None) -> CaseRecord:
    """Accept an already-normalized record or a raw payload."""
    if isinstance(case, CaseRecord):
        return case
    if isinstance(case, CaseFields):
        return CaseRecord(fields=case)
    return normalize_case(case)
