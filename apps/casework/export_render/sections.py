"""
Section layout shared by the CSV, Excel and Word exports.

Each export walks EXPORT_SECTIONS in order: flat label/value fields first,
then any collections that belong to the section.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from pydantic import BaseModel

from apps.casework.lib.derived_values import date_only, display_age, format_income, living_label, yes_no
from apps.casework.lib.field_normalizer import full_name
from apps.casework.lib.status import display_label
from packages.shared.models.case import CaseRecord

Formatter = Callable[[object], str]


def _text(value: object) -> str:
    return "" if value is None else str(value).strip()


@dataclass(frozen=True)
class FieldSpec:
    label: str
    getter: Callable[[CaseRecord], str]


@dataclass(frozen=True)
class ColumnSpec:
    label: str
    field: str
    fmt: Formatter = _text


@dataclass(frozen=True)
class CollectionSpec:
    title: str
    attr: str
    columns: tuple[ColumnSpec, ...]
    primary: tuple[str, ...]

    def entries(self, record: CaseRecord) -> list[BaseModel]:
        return list(getattr(record, self.attr))

    def has_rows(self, record: CaseRecord) -> bool:
        """True when at least one entry has a non-empty primary field."""
        return any(
            _text(getattr(entry, field))
            for entry in self.entries(record)
            for field in self.primary
        )

    def cells(self, entry: BaseModel) -> list[str]:
        return [col.fmt(getattr(entry, col.field)) for col in self.columns]


@dataclass(frozen=True)
class ExportSection:
    title: str
    fields: tuple[FieldSpec, ...] = ()
    collections: tuple[CollectionSpec, ...] = ()


def field(label: str, attr: str, fmt: Formatter = _text) -> FieldSpec:
    return FieldSpec(label, lambda record: fmt(getattr(record.fields, attr)))


FAMILY_MEMBERS = CollectionSpec(
    title="Family Members",
    attr="family_members",
    columns=(
        ColumnSpec("Name", "name"),
        ColumnSpec("Relation", "relation"),
        ColumnSpec("Age", "age"),
        ColumnSpec("Sex", "sex"),
        ColumnSpec("Civil Status", "status"),
        ColumnSpec("Education", "education"),
        ColumnSpec("Occupation", "occupation"),
        ColumnSpec("Income", "income", format_income),
    ),
    primary=("name",),
)

EXTENDED_FAMILY = CollectionSpec(
    title="Extended Family",
    attr="extended_family",
    columns=(
        ColumnSpec("Name", "name"),
        ColumnSpec("Relationship", "relationship"),
        ColumnSpec("Age", "age"),
        ColumnSpec("Sex", "sex"),
        ColumnSpec("Civil Status", "status"),
        ColumnSpec("Education", "education"),
        ColumnSpec("Occupation", "occupation"),
        ColumnSpec("Income", "income", format_income),
    ),
    primary=("name",),
)

EDUCATION = CollectionSpec(
    title="Educational Attainment",
    attr="education",
    columns=(
        ColumnSpec("Level", "level_label"),
        ColumnSpec("School Name", "school_name"),
        ColumnSpec("School Address", "school_address"),
        ColumnSpec("Year", "year"),
    ),
    primary=("school_name", "school_address", "year"),
)

SACRAMENTS = CollectionSpec(
    title="Sacramental Record",
    attr="sacraments",
    columns=(
        ColumnSpec("Sacrament", "label"),
        ColumnSpec("Date Received", "date_received", date_only),
        ColumnSpec("Place/Parish", "place_parish"),
    ),
    primary=("date_received", "place_parish"),
)

AGENCIES = CollectionSpec(
    title="Agencies/Persons",
    attr="agencies",
    columns=(
        ColumnSpec("Name", "name"),
        ColumnSpec("Address/Date/Duration", "address_date_duration"),
        ColumnSpec("Services Received", "services_received"),
    ),
    primary=("name",),
)

LIFE_SKILLS = CollectionSpec(
    title="Life Skills",
    attr="life_skills",
    columns=(
        ColumnSpec("Activity", "activity"),
        ColumnSpec("Date Completed", "date_completed", date_only),
        ColumnSpec("Performance Rating", "performance_rating"),
        ColumnSpec("Notes", "notes"),
    ),
    primary=("activity",),
)

VITAL_SIGNS = CollectionSpec(
    title="Vital Signs",
    attr="vital_signs",
    columns=(
        ColumnSpec("Date Recorded", "date_recorded", date_only),
        ColumnSpec("Blood Pressure", "blood_pressure"),
        ColumnSpec("Heart Rate", "heart_rate"),
        ColumnSpec("Temperature", "temperature"),
        ColumnSpec("Weight", "weight"),
        ColumnSpec("Height", "height"),
        ColumnSpec("Notes", "notes"),
    ),
    primary=("date_recorded", "blood_pressure", "heart_rate", "temperature", "weight", "height"),
)


def _parent_fields(prefix: str, title: str) -> tuple[FieldSpec, ...]:
    return (
        field(f"{title} Name", f"{prefix}_name"),
        field(f"{title} Age", f"{prefix}_age"),
        field(f"{title} Education", f"{prefix}_education"),
        field(f"{title} Occupation", f"{prefix}_occupation"),
        field(f"{title} Other Skills", f"{prefix}_other_skills"),
        field(f"{title} Address", f"{prefix}_address"),
        field(f"{title} Income", f"{prefix}_income", format_income),
        field(f"{title} Living", f"{prefix}_living", living_label),
    )


EXPORT_SECTIONS: tuple[ExportSection, ...] = (
    ExportSection(
        "Personal Information",
        fields=(
            field("Case ID", "id"),
            field("Last Name", "last_name"),
            field("First Name", "first_name"),
            field("Middle Name", "middle_name"),
            FieldSpec("Full Name", lambda r: full_name(r.fields)),
            field("Nickname", "nickname"),
            field("Sex", "sex"),
            field("Date of Birth", "birthdate", date_only),
            FieldSpec("Age", lambda r: display_age(r.fields)),
            field("Birthplace", "birthplace"),
            field("Nationality", "nationality"),
            field("Religion", "religion"),
            FieldSpec("Status", lambda r: _text(display_label(r.fields.status))),
        ),
    ),
    ExportSection(
        "Addresses",
        fields=(
            field("Address", "address"),
            field("Present Address", "present_address"),
            field("Provincial Address", "provincial_address"),
            field("Barangay", "barangay"),
            field("Municipality", "municipality"),
            field("Province", "province"),
        ),
    ),
    ExportSection(
        "Referral",
        fields=(
            field("Source of Referral", "source_of_referral"),
            field("Other Source of Referral", "other_source_of_referral"),
            field("Date of Referral", "date_of_referral", date_only),
            field("Referrer Address & Tel", "address_and_tel"),
            field("Relation to Client", "relation_to_client"),
        ),
    ),
    ExportSection(
        "Case Details",
        fields=(
            field("Case Type", "case_type"),
            field("Program Type", "program_type"),
            field("Assigned House Parent", "assigned_house_parent"),
            field("Admission Month", "admission_month"),
            field("Admission Year", "admission_year"),
            field("Created", "created_at", date_only),
            field("Last Updated", "last_updated", date_only),
        ),
    ),
    ExportSection(
        "Family Composition",
        fields=(
            *_parent_fields("father", "Father"),
            *_parent_fields("mother", "Mother"),
            field("Guardian Name", "guardian_name"),
            field("Guardian Relation", "guardian_relation"),
            field("Guardian Age", "guardian_age"),
            field("Guardian Education", "guardian_education"),
            field("Guardian Occupation", "guardian_occupation"),
            field("Guardian Other Skills", "guardian_other_skills"),
            field("Guardian Address", "guardian_address"),
            field("Guardian Income", "guardian_income", format_income),
            field("Guardian Living", "guardian_living", living_label),
            field("Married in Church", "married_in_church", yes_no),
            field("Live-in/Common Law", "live_in_common_law", yes_no),
            field("Civil Marriage", "civil_marriage", yes_no),
            field("Separated", "separated", yes_no),
            field("Marriage Date & Place", "marriage_date_place"),
        ),
        collections=(FAMILY_MEMBERS,),
    ),
    ExportSection("Extended Family", collections=(EXTENDED_FAMILY,)),
    ExportSection("Educational Attainment", collections=(EDUCATION,)),
    ExportSection("Sacramental Record", collections=(SACRAMENTS,)),
    ExportSection(
        "Agencies",
        fields=(FieldSpec("Agencies Notes", lambda r: _text(r.agencies_note)),),
        collections=(AGENCIES,),
    ),
    ExportSection("Life Skills", collections=(LIFE_SKILLS,)),
    ExportSection("Vital Signs", collections=(VITAL_SIGNS,)),
    ExportSection(
        "Narrative",
        fields=(
            field("Brief Description", "brief_description"),
            field("Client Description", "client_description"),
            field("Parents Description", "parents_description"),
            field("Problem Presented", "problem_presented"),
            field("Brief History", "brief_history"),
            field("Economic Situation", "economic_situation"),
            field("Medical History", "medical_history"),
            field("Family Background", "family_background"),
            field("Assessment", "assessment"),
            field("Recommendation", "recommendation"),
            field("Notes", "notes"),
            field("Progress", "progress"),
        ),
    ),
    ExportSection("Intervention Plan", fields=(field("Intervention Plan", "intervention_plan"),)),
)

# Reduced bulk view headers; cell values come from common.list_rows
LIST_COLUMNS: tuple[str, ...] = ("Name", "Age", "Program", "Last Updated")
