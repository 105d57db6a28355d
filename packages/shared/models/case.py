"""
Canonical case record shapes.

Every text field defaults to an empty string so renderers never have to
guard against missing keys. Tri-state flags keep ``bool`` when the source
sent a real boolean and keep the raw string otherwise.
"""
from __future__ import annotations

from pydantic import BaseModel, Field

TriState = bool | str


class CaseFields(BaseModel):
    # Identity
    id: str = ""
    first_name: str = ""
    middle_name: str = ""
    last_name: str = ""
    name: str = ""
    sex: str = ""
    birthdate: str = ""
    age: str = ""
    nickname: str = ""
    birthplace: str = ""
    nationality: str = ""
    religion: str = ""

    # Address
    address: str = ""
    present_address: str = ""
    provincial_address: str = ""
    barangay: str = ""
    municipality: str = ""
    province: str = ""

    # Referral
    source_of_referral: str = ""
    other_source_of_referral: str = ""
    date_of_referral: str = ""
    address_and_tel: str = ""
    relation_to_client: str = ""

    # Program / case meta
    case_type: str = ""
    program_type: str = ""
    assigned_house_parent: str = ""
    admission_month: str = ""
    admission_year: str = ""

    # Father
    father_name: str = ""
    father_age: str = ""
    father_education: str = ""
    father_occupation: str = ""
    father_other_skills: str = ""
    father_address: str = ""
    father_income: str = ""
    father_living: TriState = ""

    # Mother
    mother_name: str = ""
    mother_age: str = ""
    mother_education: str = ""
    mother_occupation: str = ""
    mother_other_skills: str = ""
    mother_address: str = ""
    mother_income: str = ""
    mother_living: TriState = ""

    # Guardian
    guardian_name: str = ""
    guardian_relation: str = ""
    guardian_age: str = ""
    guardian_education: str = ""
    guardian_occupation: str = ""
    guardian_other_skills: str = ""
    guardian_address: str = ""
    guardian_income: str = ""
    guardian_living: TriState = ""

    # Civil status of parents
    married_in_church: TriState = ""
    live_in_common_law: TriState = ""
    civil_marriage: TriState = ""
    separated: TriState = ""
    marriage_date_place: str = ""

    # Narrative
    brief_description: str = ""
    client_description: str = ""
    parents_description: str = ""
    problem_presented: str = ""
    brief_history: str = ""
    economic_situation: str = ""
    medical_history: str = ""
    family_background: str = ""
    assessment: str = ""
    recommendation: str = ""
    intervention_plan: str = ""
    notes: str = ""
    progress: str = ""

    # Lifecycle
    status: str = ""
    last_updated: str = ""
    created_at: str = ""
    updated_at: str = ""
    profile_picture: str = ""


class FamilyMember(BaseModel):
    name: str = ""
    relation: str = ""
    age: str = ""
    sex: str = ""
    status: str = ""
    education: str = ""
    occupation: str = ""
    income: str = ""


class ExtendedFamilyMember(BaseModel):
    name: str = ""
    relationship: str = ""
    age: str = ""
    sex: str = ""
    status: str = ""
    education: str = ""
    occupation: str = ""
    income: str = ""


class EducationEntry(BaseModel):
    level: str = ""
    level_label: str = ""
    school_name: str = ""
    school_address: str = ""
    year: str = ""


class SacramentEntry(BaseModel):
    sacrament: str = ""
    label: str = ""
    date_received: str = ""
    place_parish: str = ""


class AgencyContact(BaseModel):
    name: str = ""
    address_date_duration: str = ""
    services_received: str = ""


class LifeSkillEntry(BaseModel):
    activity: str = ""
    date_completed: str = ""
    performance_rating: str = ""
    notes: str = ""


class VitalSignEntry(BaseModel):
    date_recorded: str = ""
    blood_pressure: str = ""
    heart_rate: str = ""
    temperature: str = ""
    weight: str = ""
    height: str = ""
    notes: str = ""


class CaseRecord(BaseModel):
    """Flat canonical fields plus every nested collection in one ordered shape."""

    fields: CaseFields = Field(default_factory=CaseFields)
    family_members: list[FamilyMember] = Field(default_factory=list)
    extended_family: list[ExtendedFamilyMember] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    sacraments: list[SacramentEntry] = Field(default_factory=list)
    agencies: list[AgencyContact] = Field(default_factory=list)
    agencies_note: str = ""
    life_skills: list[LifeSkillEntry] = Field(default_factory=list)
    vital_signs: list[VitalSignEntry] = Field(default_factory=list)
