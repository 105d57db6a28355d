"""
Unit tests for nested collection normalization and CaseRecord assembly.
"""
from __future__ import annotations

from apps.casework.lib.nested_records import ensure_case_record, normalize_case
from packages.shared.models import CaseFields, CaseRecord


class TestEducation:
    def test_keyed_map_in_canonical_order(self):
        record = normalize_case(
            {
                "educationalAttainment": {
                    "college": {"schoolName": "State University", "year": "2020"},
                    "elementary": {"schoolName": "Central School", "schoolAddress": "Poblacion"},
                }
            }
        )
        assert [e.level for e in record.education] == ["elementary", "college"]
        assert record.education[0].level_label == "Elementary"
        assert record.education[0].school_address == "Poblacion"
        assert record.education[1].year == "2020"

    def test_empty_levels_dropped(self):
        record = normalize_case(
            {"educationalAttainment": {"highSchool": {"schoolName": "", "year": ""}, "college": {"schoolName": "U"}}}
        )
        assert [e.level for e in record.education] == ["college"]

    def test_row_array_with_labels(self):
        record = normalize_case(
            {
                "education_rows": [
                    {"level": "High School", "school_name": "National HS"},
                    {"level": "Elementary", "school_name": "Central School"},
                ]
            }
        )
        assert [e.level for e in record.education] == ["elementary", "highSchool"]

    def test_unknown_level_kept_after_known(self):
        record = normalize_case(
            {"educationalAttainment": {"tesda_training": {"schoolName": "TESDA"}, "elementary": {"schoolName": "ES"}}}
        )
        assert [e.level for e in record.education] == ["elementary", "tesda_training"]
        assert record.education[1].level_label == "Tesda Training"


class TestSacraments:
    def test_keyed_map(self):
        record = normalize_case(
            {
                "sacramentalRecord": {
                    "confirmation": {"dateReceived": "2015-05-01", "placeParish": "St. Joseph"},
                    "baptism": {"dateReceived": "2006-01-01", "placeParish": "Sto. Nino"},
                }
            }
        )
        assert [s.label for s in record.sacraments] == ["Baptism", "Confirmation"]
        assert record.sacraments[1].place_parish == "St. Joseph"

    def test_row_array(self):
        record = normalize_case(
            {"sacramental_records": [{"sacrament": "First Communion", "date_received": "2013-04-04"}]}
        )
        assert record.sacraments[0].sacrament == "firstCommunion"


class TestRows:
    def test_malformed_rows_dropped(self):
        record = normalize_case({"familyMembers": [{"name": "Ana"}, "junk", None, {"name": ""}]})
        assert [m.name for m in record.family_members] == ["Ana"]

    def test_snake_case_rows(self):
        record = normalize_case({"family_members": [{"name": "Ben", "relationship": "Brother", "civil_status": "Single"}]})
        member = record.family_members[0]
        assert member.relation == "Brother"
        assert member.status == "Single"

    def test_extended_family(self):
        record = normalize_case({"extendedFamily": [{"name": "Lola", "relationship": "Grandmother"}]})
        assert record.extended_family[0].relationship == "Grandmother"

    def test_agencies_text_becomes_note(self):
        record = normalize_case({"agencies": "  DSWD referral  "})
        assert record.agencies == []
        assert record.agencies_note == "DSWD referral"

    def test_agencies_rows(self):
        record = normalize_case({"agencies": [{"name": "DSWD", "servicesReceived": "Shelter"}]})
        assert record.agencies[0].services_received == "Shelter"
        assert record.agencies_note == ""

    def test_side_collections_aliases(self):
        record = normalize_case(
            {
                "lifeSkillsData": [{"activity": "Cooking", "dateCompleted": "2024-02-01"}],
                "vital_signs": [{"date_recorded": "2024-02-02", "heart_rate": 80}],
            }
        )
        assert record.life_skills[0].activity == "Cooking"
        assert record.vital_signs[0].heart_rate == "80"


class TestEnsureCaseRecord:
    def test_record_passes_through(self):
        record = CaseRecord()
        assert ensure_case_record(record) is record

    def test_fields_wrapped(self):
        record = ensure_case_record(CaseFields(first_name="Ana"))
        assert record.fields.first_name == "Ana"
        assert record.family_members == []

    def test_none_is_empty_record(self):
        assert ensure_case_record(None) == CaseRecord()
