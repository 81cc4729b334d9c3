"""
Tests for heysheets/services/functions/resolver.py - role to tab resolution.
"""
from heysheets.services.functions.resolver import available_tabs, resolve_many, resolve_tab, tab_columns
from heysheets.services.functions.schema import StoreConfig


class TestResolveTab:

    def test_substring_match(self):
        assert resolve_tab("services", {"Our Services": {"columns": []}}) == "Our Services"

    def test_no_match_returns_none(self):
        assert resolve_tab("services", {"Hours": {"columns": []}}) is None

    def test_exact_match_beats_earlier_substring(self):
        schema = {"Product Categories": {}, "Products": {}}

        assert resolve_tab("products", schema) == "Products"

    def test_separators_and_case_are_ignored(self):
        assert resolve_tab("store_info", {"Store Info": {}}) == "Store Info"
        assert resolve_tab("STORE-INFO", {"store_info": {}}) == "store_info"

    def test_expected_role_containing_tab_name(self):
        assert resolve_tab("leads", {"Lead": {}}) == "Lead"

    def test_falls_back_to_inferred_role(self):
        schema = {"Menu": {"columns": ["name"]}, "Product List": {"columns": ["name"], "inferredRole": "products"}}

        assert resolve_tab("products", schema) == "Product List"

    def test_works_with_parsed_store_config(self, detected_schema):
        config = StoreConfig.model_validate({"detectedSchema": detected_schema})

        assert resolve_tab("products", config.detected_schema) == "Product List"
        assert resolve_tab("services", config.detected_schema) == "Our Services"

    def test_idempotent(self, detected_schema):
        first = resolve_tab("products", detected_schema)

        assert resolve_tab("products", detected_schema) == first
        assert resolve_tab(first, detected_schema) == first

    def test_empty_inputs(self):
        assert resolve_tab("services", {}) is None
        assert resolve_tab("services", None) is None
        assert resolve_tab("", {"Services": {}}) is None


class TestSchemaHelpers:

    def test_resolve_many(self, detected_schema):
        resolved = resolve_many(["hours", "leads", "staff"], detected_schema)

        assert resolved == {"hours": "Hours", "leads": "Leads", "staff": None}

    def test_available_tabs_keeps_schema_order(self, detected_schema):
        assert available_tabs(detected_schema) == list(detected_schema)
        assert available_tabs(None) == []

    def test_tab_columns(self, detected_schema, store_config):
        assert tab_columns("Leads", detected_schema) == ["Date", "Name", "Email", "Phone", "Status"]
        assert tab_columns("Leads", store_config.detected_schema) == ["Date", "Name", "Email", "Phone", "Status"]
        assert tab_columns("Missing", detected_schema) == []

    def test_tab_columns_skips_blank_headers(self):
        assert tab_columns("Leads", {"Leads": {"columns": ["Name", "", "  ", "Email"]}}) == ["Name", "Email"]
