"""
Tests for the function registry and the startup drift check.
"""
import pytest

from heysheets.core.errors import RegistryDriftError
from heysheets.services.functions.definitions import FUNCTION_DEFINITIONS, REGISTRY_VERSION
from heysheets.services.functions.executor import DEFAULT_HANDLERS, FunctionExecutor, check_registry
from heysheets.services.functions.registry import FunctionRegistry, function_registry
from heysheets.services.functions.schema import FunctionDefinition, ParameterSpec


class TestFunctionRegistry:

    def test_catalog_contents(self):
        assert function_registry.version == REGISTRY_VERSION
        assert function_registry.names == [
            "get_store_info",
            "get_services",
            "get_products",
            "submit_lead",
            "get_misc_data",
            "check_availability",
            "create_booking",
            "get_booking_slots",
            "get_recommendations",
        ]
        assert "submit_lead" in function_registry
        assert function_registry.get("book_table") is None

    def test_duplicate_names_rejected(self):
        definition = FunctionDefinition(name="dup", description="twice")

        with pytest.raises(ValueError) as exc_info:
            FunctionRegistry([definition, definition])

        assert "dup" in str(exc_info.value)

    def test_only_writes_have_side_effects(self):
        assert [d.name for d in function_registry if d.side_effect] == ["submit_lead", "create_booking"]

    def test_openai_format(self):
        spec = function_registry.get("create_booking").to_openai_format()

        assert spec["type"] == "function"
        assert spec["function"]["name"] == "create_booking"
        assert spec["function"]["parameters"]["required"] == [
            "service_name", "date", "time", "customer_name", "customer_email",
        ]
        assert function_registry.get("create_booking").get_parameter("customer_phone").required is False
        properties = spec["function"]["parameters"]["properties"]
        assert properties["customer_phone"] == {"type": "string", "description": "Customer phone number"}
        assert properties["customer_email"]["format"] == "email"
        assert properties["customer_name"]["minLength"] == 2

    def test_lead_contact_fields_are_optional_but_checked(self):
        definition = function_registry.get("submit_lead")

        assert definition.required_parameters == []
        assert definition.get_parameter("email").format == "email"

    def test_enum_parameters_are_strings_with_options(self):
        spec = function_registry.get("get_store_info").to_openai_format()
        info_type = spec["function"]["parameters"]["properties"]["info_type"]

        assert info_type["type"] == "string"
        assert info_type["enum"] == ["hours", "services", "products", "all"]
        assert info_type["default"] == "all"

    def test_prompt_format_lists_every_function(self):
        prompt = function_registry.get_functions_prompt()

        for definition in FUNCTION_DEFINITIONS:
            assert f"Function: {definition.name}" in prompt
        assert "[options: hours, services, products, all]" in prompt


class TestParameterSpec:

    def test_enum_without_values_rejected(self):
        with pytest.raises(ValueError):
            ParameterSpec(name="mode", type="enum")

    def test_values_on_non_enum_rejected(self):
        with pytest.raises(ValueError):
            ParameterSpec(name="mode", type="string", enum=["a"])


class TestDriftCheck:

    def test_default_handlers_match_catalog(self):
        check_registry(function_registry, DEFAULT_HANDLERS)

    def test_missing_and_extra_handlers_reported(self):
        handlers = dict(DEFAULT_HANDLERS)
        handlers.pop("get_misc_data")
        handlers["book_table"] = DEFAULT_HANDLERS["get_products"]

        with pytest.raises(RegistryDriftError) as exc_info:
            check_registry(function_registry, handlers)

        assert exc_info.value.missing_handlers == ["get_misc_data"]
        assert exc_info.value.undeclared_handlers == ["book_table"]
        assert "get_misc_data" in str(exc_info.value)

    def test_executor_refuses_to_start_on_drift(self, services):
        with pytest.raises(RegistryDriftError):
            FunctionExecutor(services, handlers={"get_store_info": DEFAULT_HANDLERS["get_store_info"]})


class TestDeadlines:

    def test_deadlines_cover_sequential_external_calls(self):
        from heysheets.core.config import Settings

        settings = Settings(_env_file=None)
        read_then_rank = settings.SHEETS_REQUEST_TIMEOUT + settings.RANKING_REQUEST_TIMEOUT
        read_then_book = settings.SHEETS_REQUEST_TIMEOUT + 3 * settings.CALENDAR_REQUEST_TIMEOUT

        for name in ("get_services", "get_products", "get_recommendations"):
            assert function_registry.get(name).max_execution_time_ms > read_then_rank * 1000
        for name in ("check_availability", "create_booking", "get_booking_slots"):
            assert function_registry.get(name).max_execution_time_ms > read_then_book * 1000
        for definition in function_registry:
            assert definition.max_execution_time_ms > settings.SHEETS_REQUEST_TIMEOUT * 1000
