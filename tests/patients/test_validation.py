"""
Validation Tests

Rule tables, the rule runner and the age / date-of-birth cross check.
"""
from datetime import date, datetime, timezone

import pytest

from patient_records.core.errors import ErrorKind, ValidationError
from patient_records.core.validation import (
    INCONSISTENT_DATA,
    INVALID_MEDICAL_HISTORY_DATA,
    INVALID_PATIENT_DATA,
    FieldRule,
    RequestValidator,
    is_empty,
    one_of,
    past_date,
    required,
)
from patient_records.schemas.lifestyle_schemas import (
    LIFESTYLE_CREATE_RULES,
    LIFESTYLE_UPDATE_RULES,
    LifestyleCreateSchema,
    LifestyleUpdateSchema,
)
from patient_records.schemas.medical_history_schemas import (
    MEDICAL_HISTORY_CREATE_RULES,
    MEDICAL_HISTORY_UPDATE_RULES,
    MedicalHistoryCreateSchema,
    MedicalHistoryUpdateSchema,
)
from patient_records.schemas.patient_schemas import (
    PATIENT_CREATE_RULES,
    PATIENT_UPDATE_RULES,
    PatientCreateSchema,
    PatientUpdateSchema,
)


def _valid_patient(**overrides) -> PatientCreateSchema:
    data = dict(
        user_id=7,
        full_name="Ama Mensah",
        age=31,
        date_of_birth=date(1994, 1, 1),
        sex="Female",
        phone_number="+233201234567",
        email_address="ama@example.com",
        preferred_communication="Phone",
        socioeconomic_status="Decline to Answer",
    )
    data.update(overrides)
    return PatientCreateSchema(**data)


@pytest.mark.unit
class TestIsEmpty:
    @pytest.mark.parametrize("value", [None, "", 0, 0.0, False, [], {}])
    def test_zero_values_are_empty(self, value):
        assert is_empty(value)

    @pytest.mark.parametrize("value", ["x", 1, -1, True, [0], date(2000, 1, 1)])
    def test_other_values_are_not_empty(self, value):
        assert not is_empty(value)


@pytest.mark.unit
class TestPatientRules:
    def test_valid_patient_passes(self, validator: RequestValidator):
        assert validator.validate(_valid_patient(), PATIENT_CREATE_RULES) == []

    def test_missing_required_fields_are_all_reported(self, validator: RequestValidator):
        errors = validator.validate(PatientCreateSchema(), PATIENT_CREATE_RULES)

        failed = {(e.field, e.rule) for e in errors}
        assert ("user_id", "required") in failed
        assert ("full_name", "required") in failed
        assert ("date_of_birth", "required") in failed
        assert ("sex", "required") in failed
        assert ("email_address", "required") in failed

    def test_error_message_names_field_and_rule(self, validator: RequestValidator):
        errors = validator.validate(_valid_patient(full_name=""), PATIENT_CREATE_RULES)

        assert len(errors) == 1
        assert errors[0].message.startswith(
            "Field full_name failed validation for tag required"
        )

    def test_under_age_patient_rejected(self, validator: RequestValidator):
        errors = validator.validate(_valid_patient(age=17), PATIENT_CREATE_RULES)
        assert [(e.field, e.rule) for e in errors] == [("age", "min")]

    def test_omitted_age_is_not_checked(self, validator: RequestValidator):
        assert validator.validate(_valid_patient(age=0), PATIENT_CREATE_RULES) == []

    def test_future_birth_date_rejected(self, validator: RequestValidator):
        errors = validator.validate(
            _valid_patient(date_of_birth=date(2030, 1, 1), age=0), PATIENT_CREATE_RULES
        )
        assert [(e.field, e.rule) for e in errors] == [("date_of_birth", "pastdate")]

    def test_unknown_sex_rejected(self, validator: RequestValidator):
        errors = validator.validate(_valid_patient(sex="Unknown"), PATIENT_CREATE_RULES)
        assert [(e.field, e.rule) for e in errors] == [("sex", "oneof")]
        assert "Male, Female, Other" in errors[0].message

    @pytest.mark.parametrize("phone", ["0201234567", "+0123", "phone", "+1234567890123456"])
    def test_bad_phone_numbers_rejected(self, validator: RequestValidator, phone):
        errors = validator.validate(_valid_patient(phone_number=phone), PATIENT_CREATE_RULES)
        assert [(e.field, e.rule) for e in errors] == [("phone_number", "phone")]

    def test_omitted_phone_number_is_fine(self, validator: RequestValidator):
        assert validator.validate(_valid_patient(phone_number=""), PATIENT_CREATE_RULES) == []

    def test_bad_email_rejected(self, validator: RequestValidator):
        errors = validator.validate(
            _valid_patient(email_address="not-an-email"), PATIENT_CREATE_RULES
        )
        assert [(e.field, e.rule) for e in errors] == [("email_address", "email")]

    def test_bad_enumerations_rejected(self, validator: RequestValidator):
        errors = validator.validate(
            _valid_patient(preferred_communication="Pigeon", socioeconomic_status="Rich"),
            PATIENT_CREATE_RULES,
        )
        assert {e.field for e in errors} == {
            "preferred_communication",
            "socioeconomic_status",
        }

    def test_request_strings_kept_verbatim(self):
        assert _valid_patient(full_name="  Ama Mensah ").full_name == "  Ama Mensah "

    def test_empty_update_passes(self, validator: RequestValidator):
        assert validator.validate(PatientUpdateSchema(), PATIENT_UPDATE_RULES) == []

    def test_update_still_checks_supplied_values(self, validator: RequestValidator):
        errors = validator.validate(
            PatientUpdateSchema(sex="Unknown", email_address="bad"), PATIENT_UPDATE_RULES
        )
        assert {e.field for e in errors} == {"sex", "email_address"}

    def test_check_raises_with_code(self, validator: RequestValidator):
        with pytest.raises(ValidationError) as exc_info:
            validator.check(PatientCreateSchema(), PATIENT_CREATE_RULES, INVALID_PATIENT_DATA)

        assert exc_info.value.kind is ErrorKind.INVALID_INPUT
        assert exc_info.value.code == INVALID_PATIENT_DATA
        assert str(exc_info.value).startswith("INVALID_PATIENT_DATA: Validation errors occurred")


@pytest.mark.unit
class TestMedicalHistoryRules:
    def test_unknown_status_lists_allowed_values(self, validator: RequestValidator):
        request = MedicalHistoryCreateSchema(condition="Asthma", status="Unknown")

        with pytest.raises(ValidationError) as exc_info:
            validator.check(request, MEDICAL_HISTORY_CREATE_RULES, INVALID_MEDICAL_HISTORY_DATA)

        assert exc_info.value.code == INVALID_MEDICAL_HISTORY_DATA
        assert "Active, Inactive, Resolved" in str(exc_info.value)

    def test_missing_condition_and_status(self, validator: RequestValidator):
        errors = validator.validate(MedicalHistoryCreateSchema(), MEDICAL_HISTORY_CREATE_RULES)
        assert {(e.field, e.rule) for e in errors} == {
            ("condition", "required"),
            ("status", "required"),
        }

    def test_future_diagnosis_date_rejected(self, validator: RequestValidator):
        request = MedicalHistoryCreateSchema(
            condition="Asthma", status="Active", diagnosis_date=date(2026, 1, 1)
        )
        errors = validator.validate(request, MEDICAL_HISTORY_CREATE_RULES)
        assert [(e.field, e.rule) for e in errors] == [("diagnosis_date", "pastdate")]

    def test_update_with_nothing_supplied_passes(self, validator: RequestValidator):
        assert validator.validate(MedicalHistoryUpdateSchema(), MEDICAL_HISTORY_UPDATE_RULES) == []


@pytest.mark.unit
class TestLifestyleRules:
    def test_factor_required(self, validator: RequestValidator):
        errors = validator.validate(LifestyleCreateSchema(value="daily"), LIFESTYLE_CREATE_RULES)
        assert [(e.field, e.rule) for e in errors] == [("lifestyle_factor", "required")]

    def test_update_has_no_rules(self, validator: RequestValidator):
        assert validator.validate(LifestyleUpdateSchema(), LIFESTYLE_UPDATE_RULES) == []


@pytest.mark.unit
class TestRuleRunner:
    def test_clock_decides_what_is_past(self):
        rules = (past_date("when", omit_empty=False),)

        class Payload:
            when = date(2025, 6, 2)

        early = RequestValidator(clock=lambda: datetime(2025, 6, 1, tzinfo=timezone.utc))
        late = RequestValidator(clock=lambda: datetime(2025, 6, 3, tzinfo=timezone.utc))

        assert len(early.validate(Payload(), rules)) == 1
        assert late.validate(Payload(), rules) == []

    def test_unknown_rule_name_fails_loudly(self, validator: RequestValidator):
        class Payload:
            name = "x"

        with pytest.raises(KeyError):
            validator.validate(Payload(), (FieldRule("name", "no_such_rule"),))

    def test_accessor_overrides_attribute_lookup(self, validator: RequestValidator):
        rule = FieldRule("nested", "required", accessor=lambda p: p["inner"]["nested"])
        assert validator.validate({"inner": {"nested": "ok"}}, (rule,)) == []
        assert len(validator.validate({"inner": {"nested": ""}}, (rule,))) == 1

    def test_one_of_without_omit_empty_rejects_empty(self, validator: RequestValidator):
        class Payload:
            status = ""

        errors = validator.validate(Payload(), (required("status"), one_of("status", ("A", "B"))))
        assert [e.rule for e in errors] == ["required", "oneof"]


@pytest.mark.unit
class TestAgeConsistency:
    def test_inconsistent_age_and_birth_date(self, validator: RequestValidator):
        with pytest.raises(ValidationError) as exc_info:
            validator.check_age_matches_birth_date(30, date(1994, 1, 1))

        assert exc_info.value.code == INCONSISTENT_DATA
        assert "Age and DateOfBirth are inconsistent" in str(exc_info.value)

    def test_consistent_age_and_birth_date(self, validator: RequestValidator):
        validator.check_age_matches_birth_date(31, date(1994, 1, 1))

    def test_birthday_later_in_year_not_reached(self, validator: RequestValidator):
        # FIXED_NOW is 2025-06-01
        assert validator.expected_age(date(1990, 12, 31)) == 34
        assert validator.expected_age(date(1990, 1, 31)) == 35

    @pytest.mark.parametrize("age, dob", [(0, date(1994, 1, 1)), (30, None)])
    def test_nothing_to_compare(self, validator: RequestValidator, age, dob):
        validator.check_age_matches_birth_date(age, dob)
