"""
Tests for heysheets/services/functions/validator.py - structural argument validation.
"""
import pytest

from heysheets.services.functions.definitions import (
    CREATE_BOOKING_DEF,
    GET_MISC_DATA_DEF,
    GET_RECOMMENDATIONS_DEF,
    GET_STORE_INFO_DEF,
    SUBMIT_LEAD_DEF,
)
from heysheets.services.functions.schema import ParameterSpec
from heysheets.services.functions.validator import validate_params

BOOKING = {
    "service_name": "Wheel Throwing",
    "date": "2026-03-07",
    "time": "10:00",
    "customer_name": "Ana Costa",
    "customer_email": "ana@example.com",
}


class TestRequiredParameters:

    def test_missing_required_parameter_is_named(self):
        result = validate_params(GET_MISC_DATA_DEF, {"query": "parking"})

        assert result.valid is False
        assert "tab_name: required parameter is missing" in result.errors

    def test_null_counts_as_missing(self):
        result = validate_params(CREATE_BOOKING_DEF, {**BOOKING, "customer_email": None})

        assert result.valid is False
        assert result.errors == ["customer_email: required parameter is missing"]

    def test_blank_string_counts_as_missing(self):
        result = validate_params(CREATE_BOOKING_DEF, {**BOOKING, "customer_name": "", "customer_email": "   "})

        assert result.valid is False
        assert result.errors == [
            "customer_name: required parameter is missing",
            "customer_email: required parameter is missing",
        ]

    def test_blank_optional_string_is_dropped(self):
        result = validate_params(SUBMIT_LEAD_DEF, {"name": "  ", "email": "ana@example.com"})

        assert result.valid is True
        assert result.data == {"email": "ana@example.com"}

    def test_errors_accumulate(self):
        """Every problem is reported at once, not just the first."""
        result = validate_params(CREATE_BOOKING_DEF, {"service_name": 42, "customer_phone": 5551234})

        assert result.valid is False
        assert "service_name: expected string, got int" in result.errors
        assert "customer_email: required parameter is missing" in result.errors
        assert "customer_phone: expected string, got int" in result.errors
        assert result.error_message.startswith("Invalid parameters: ")
        assert "; " in result.error_message


class TestStringConstraints:

    def test_email_format(self):
        result = validate_params(SUBMIT_LEAD_DEF, {"name": "Ana", "email": "ana@"})

        assert result.valid is False
        assert result.errors == ["email: must be a valid email address"]

    def test_valid_email_is_trimmed(self):
        result = validate_params(SUBMIT_LEAD_DEF, {"name": "Ana", "email": " ana@example.com "})

        assert result.data["email"] == "ana@example.com"

    def test_min_length(self):
        result = validate_params(CREATE_BOOKING_DEF, {**BOOKING, "customer_name": "A"})

        assert result.valid is False
        assert result.errors == ["customer_name: must be at least 2 characters"]

    def test_date_and_time_formats(self):
        result = validate_params(CREATE_BOOKING_DEF, {**BOOKING, "date": "next Saturday", "time": "25:00"})

        assert result.valid is False
        assert result.errors == [
            "date: must be a date in YYYY-MM-DD format",
            "time: must be a time in HH:MM format",
        ]

    def test_string_constraints_only_on_strings(self):
        with pytest.raises(ValueError):
            ParameterSpec(name="count", type="integer", min_length=2)


class TestTypesAndEnums:

    def test_enum_value_outside_allowed_set(self):
        result = validate_params(GET_STORE_INFO_DEF, {"info_type": "weather"})

        assert result.valid is False
        assert result.errors == ["info_type: must be one of: hours, services, products, all"]

    def test_bool_is_not_a_number(self):
        result = validate_params(GET_RECOMMENDATIONS_DEF, {"goal": "relax", "budget_max": True})

        assert result.valid is False
        assert result.errors == ["budget_max: expected number, got bool"]

    def test_int_is_a_number(self):
        result = validate_params(GET_RECOMMENDATIONS_DEF, {"goal": "relax", "budget_max": 50})

        assert result.valid is True
        assert result.data["budget_max"] == 50

    def test_float_is_not_an_integer(self):
        result = validate_params(GET_RECOMMENDATIONS_DEF, {"goal": "relax", "limit": 2.5})

        assert result.valid is False
        assert result.errors == ["limit: expected integer, got float"]


class TestDefaultsAndExtras:

    def test_defaults_applied(self):
        result = validate_params(GET_STORE_INFO_DEF, {})

        assert result.valid is True
        assert result.data == {"info_type": "all"}

    def test_none_params_treated_as_empty(self):
        result = validate_params(GET_RECOMMENDATIONS_DEF, None)

        assert result.valid is True
        assert result.data == {"offering_type": "both", "limit": 3}

    def test_unknown_keys_are_ignored(self):
        result = validate_params(
            SUBMIT_LEAD_DEF,
            {"name": "Ana", "email": "ana@example.com", "favourite_colour": "teal"},
        )

        assert result.valid is True
        assert result.data == {"name": "Ana", "email": "ana@example.com"}

    def test_non_object_params_rejected(self):
        result = validate_params(SUBMIT_LEAD_DEF, ["Ana", "ana@example.com"])

        assert result.valid is False
        assert result.errors == ["parameters must be an object, got list"]

    def test_accepts_a_bare_parameter_list(self):
        specs = [ParameterSpec(name="flag", type="boolean", default=False)]

        assert validate_params(specs, {}).data == {"flag": False}
        assert validate_params(specs, {"flag": True}).data == {"flag": True}
