"""
Field normalizer: heterogeneous case payloads -> CaseFields.

Case records arrive either as client form state (camelCase keys) or as API
rows (snake_case keys), sometimes with both present. Each canonical field is
resolved through FIELD_RESOLUTION, whose candidate keys are tried in order:
camelCase first, snake_case second, legacy aliases last. The first key holding
a non-empty value wins; nothing found resolves to "".
"""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from packages.shared.models.case import CaseFields

logger = logging.getLogger(__name__)


FIELD_RESOLUTION: dict[str, tuple[str, ...]] = {
    # Identity
    "id": ("id", "caseId", "case_id"),
    "first_name": ("firstName", "first_name"),
    "middle_name": ("middleName", "middle_name"),
    "last_name": ("lastName", "last_name"),
    "name": ("name", "fullName", "full_name"),
    "sex": ("sex", "gender"),
    "birthdate": ("birthdate", "birthDate", "birth_date"),
    "age": ("age",),
    "nickname": ("nickname", "nickName", "nick_name"),
    "birthplace": ("birthplace", "birthPlace", "birth_place"),
    "nationality": ("nationality",),
    "religion": ("religion",),
    # Address
    "address": ("address",),
    "present_address": ("presentAddress", "present_address"),
    "provincial_address": ("provincialAddress", "provincial_address"),
    "barangay": ("barangay",),
    "municipality": ("municipality",),
    "province": ("province",),
    # Referral
    "source_of_referral": ("sourceOfReferral", "source_of_referral"),
    "other_source_of_referral": ("otherSourceOfReferral", "other_source_of_referral"),
    "date_of_referral": ("dateOfReferral", "date_of_referral"),
    "address_and_tel": ("addressAndTel", "address_and_tel"),
    "relation_to_client": ("relationToClient", "relation_to_client"),
    # Program / case meta
    "case_type": ("caseType", "case_type"),
    "program_type": ("programType", "program_type"),
    "assigned_house_parent": ("assignedHouseParent", "assigned_house_parent"),
    "admission_month": ("admissionMonth", "admission_month"),
    "admission_year": ("admissionYear", "admission_year"),
    # Father
    "father_name": ("fatherName", "father_name"),
    "father_age": ("fatherAge", "father_age"),
    "father_education": ("fatherEducation", "father_education"),
    "father_occupation": ("fatherOccupation", "father_occupation"),
    "father_other_skills": ("fatherOtherSkills", "father_other_skills"),
    "father_address": ("fatherAddress", "father_address"),
    "father_income": ("fatherIncome", "father_income"),
    "father_living": ("fatherLiving", "father_living"),
    # Mother
    "mother_name": ("motherName", "mother_name"),
    "mother_age": ("motherAge", "mother_age"),
    "mother_education": ("motherEducation", "mother_education"),
    "mother_occupation": ("motherOccupation", "mother_occupation"),
    "mother_other_skills": ("motherOtherSkills", "mother_other_skills"),
    "mother_address": ("motherAddress", "mother_address"),
    "mother_income": ("motherIncome", "mother_income"),
    "mother_living": ("motherLiving", "mother_living"),
    # Guardian
    "guardian_name": ("guardianName", "guardian_name"),
    "guardian_relation": ("guardianRelation", "guardian_relation"),
    "guardian_age": ("guardianAge", "guardian_age"),
    "guardian_education": ("guardianEducation", "guardian_education"),
    "guardian_occupation": ("guardianOccupation", "guardian_occupation"),
    "guardian_other_skills": ("guardianOtherSkills", "guardian_other_skills"),
    "guardian_address": ("guardianAddress", "guardian_address"),
    "guardian_income": ("guardianIncome", "guardian_income"),
    "guardian_living": ("guardianLiving", "guardian_living"),
    # Civil status of parents
    "married_in_church": ("marriedInChurch", "married_in_church"),
    "live_in_common_law": ("liveInCommonLaw", "live_in_common_law"),
    "civil_marriage": ("civilMarriage", "civil_marriage"),
    "separated": ("separated",),
    "marriage_date_place": ("marriageDatePlace", "marriage_date_place"),
    # Narrative
    "brief_description": ("briefDescription", "brief_description"),
    "client_description": ("clientDescription", "client_description"),
    "parents_description": ("parentsDescription", "parents_description"),
    "problem_presented": ("problemPresented", "problem_presented"),
    "brief_history": ("briefHistory", "brief_history"),
    "economic_situation": ("economicSituation", "economic_situation"),
    "medical_history": ("medicalHistory", "medical_history"),
    "family_background": ("familyBackground", "family_background"),
    "assessment": ("assessment",),
    "recommendation": ("recommendation", "recommendations"),
    "intervention_plan": ("interventionPlan", "intervention_plan"),
    "notes": ("notes", "additionalNotes", "additional_notes"),
    "progress": ("progress",),
    # Lifecycle
    "status": ("status",),
    "last_updated": ("lastUpdated", "last_updated"),
    "created_at": ("createdAt", "created_at"),
    "updated_at": ("updatedAt", "updated_at"),
    "profile_picture": ("profilePicture", "profile_picture"),
}

TRI_STATE_FIELDS: frozenset[str] = frozenset(
    {
        "father_living",
        "mother_living",
        "guardian_living",
        "married_in_church",
        "live_in_common_law",
        "civil_marriage",
        "separated",
    }
)


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value != ""
    return isinstance(value, (bool, int, float, date))


def as_text(value: Any) -> str:
    """Stringify a scalar the way the case API serializes it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float, str)):
        return str(value)
    return ""


def first_present(raw: Mapping[str, Any] | None, *keys: str) -> Any:
    """Return the raw value of the first candidate key that holds something, else None."""
    if not isinstance(raw, Mapping):
        return None
    for key in keys:
        value = raw.get(key)
        if _is_present(value):
            return value
    return None


def resolve(raw: Mapping[str, Any] | None, *keys: str) -> str:
    return as_text(first_present(raw, *keys))


def _resolve_tri_state(raw: Mapping[str, Any], keys: tuple[str, ...]) -> bool | str:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, bool):
            return value
    return resolve(raw, *keys)


def intervention_plan_from_checklist(checklist: Any) -> str:
    """
    Flatten the intervention checklist into newline-separated text.

    Accepts a JSON-encoded string, a list of strings or a list of {"text": ...}
    objects. Strings that are not JSON pass through as-is.
    """
    items = checklist
    if isinstance(checklist, str):
        text = checklist.strip()
        if not text:
            return ""
        try:
            items = json.loads(text)
        except ValueError:
            return text
    if isinstance(items, str):
        return items
    if not isinstance(items, (list, tuple)):
        return ""

    lines: list[str] = []
    for item in items:
        if isinstance(item, Mapping):
            line = resolve(item, "text", "label", "item")
        else:
            line = as_text(item)
        if line.strip():
            lines.append(line.strip())
    return "\n".join(lines)


def normalize_fields(raw: Mapping[str, Any] | None) -> CaseFields:
    """Resolve every canonical field; never raises on missing or odd input."""
    if not isinstance(raw, Mapping):
        if raw is not None:
            logger.debug(f"normalize_fields received {type(raw).__name__}, treating as empty")
        raw = {}

    values: dict[str, Any] = {}
    for field, keys in FIELD_RESOLUTION.items():
        if field in TRI_STATE_FIELDS:
            values[field] = _resolve_tri_state(raw, keys)
        else:
            values[field] = resolve(raw, *keys)

    if not values["intervention_plan"]:
        values["intervention_plan"] = intervention_plan_from_checklist(raw.get("checklist"))

    return CaseFields(**values)


def full_name(fields: CaseFields) -> str:
    if fields.name.strip():
        return fields.name.strip()
    parts = [fields.first_name, fields.middle_name, fields.last_name]
    return " ".join(p.strip() for p in parts if p.strip())


def program_label(fields: CaseFields) -> str:
    return fields.case_type or fields.program_type
