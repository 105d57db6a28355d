"""
Unit tests for field resolution across camelCase, snake_case and legacy keys.
"""
from __future__ import annotations

from apps.casework.lib.field_normalizer import (
    full_name,
    intervention_plan_from_checklist,
    normalize_fields,
    program_label,
    resolve,
)
from packages.shared.models import CaseFields


class TestResolve:
    def test_camel_case_wins_over_snake_case(self):
        raw = {"firstName": "Ana", "first_name": "Other"}
        assert normalize_fields(raw).first_name == "Ana"

    def test_empty_camel_case_falls_through(self):
        raw = {"firstName": "", "first_name": "Ana"}
        assert normalize_fields(raw).first_name == "Ana"

    def test_missing_everywhere_is_empty_string(self):
        fields = normalize_fields({})
        assert fields.first_name == ""
        assert fields.present_address == ""

    def test_numbers_are_stringified(self):
        fields = normalize_fields({"id": 7, "age": 10})
        assert fields.id == "7"
        assert fields.age == "10"

    def test_legacy_alias(self):
        assert normalize_fields({"additional_notes": "See file"}).notes == "See file"

    def test_non_mapping_input_is_empty(self):
        assert normalize_fields(None) == CaseFields()
        assert normalize_fields(["not", "a", "case"]) == CaseFields()

    def test_resolve_skips_none(self):
        assert resolve({"a": None, "b": "x"}, "a", "b") == "x"


class TestTriState:
    def test_real_boolean_kept(self):
        fields = normalize_fields({"fatherLiving": False, "marriedInChurch": True})
        assert fields.father_living is False
        assert fields.married_in_church is True

    def test_boolean_under_snake_case_key(self):
        fields = normalize_fields({"motherLiving": "", "mother_living": True})
        assert fields.mother_living is True

    def test_text_kept_as_text(self):
        assert normalize_fields({"separated": "yes"}).separated == "yes"

    def test_missing_is_unknown(self):
        assert normalize_fields({}).guardian_living == ""


class TestInterventionPlan:
    def test_explicit_plan_wins(self):
        raw = {"interventionPlan": "Counseling", "checklist": '["Other"]'}
        assert normalize_fields(raw).intervention_plan == "Counseling"

    def test_checklist_json_of_objects(self):
        raw = {"checklist": '[{"text": "Counseling"}, {"text": "Schooling"}, {"text": "  "}]'}
        assert normalize_fields(raw).intervention_plan == "Counseling\nSchooling"

    def test_checklist_list_of_strings(self):
        assert intervention_plan_from_checklist(["Medical check", "Family visit"]) == "Medical check\nFamily visit"

    def test_checklist_plain_text_passes_through(self):
        assert intervention_plan_from_checklist("Weekly sessions") == "Weekly sessions"

    def test_checklist_garbage(self):
        assert intervention_plan_from_checklist(42) == ""
        assert intervention_plan_from_checklist("") == ""


class TestNames:
    def test_full_name_prefers_name_field(self):
        assert full_name(CaseFields(name="Ana M. Cruz", first_name="X")) == "Ana M. Cruz"

    def test_full_name_joins_parts(self):
        fields = CaseFields(first_name="Ana", middle_name="", last_name="Cruz")
        assert full_name(fields) == "Ana Cruz"

    def test_program_label(self):
        assert program_label(CaseFields(case_type="Residential", program_type="Day")) == "Residential"
        assert program_label(CaseFields(program_type="Day")) == "Day"
