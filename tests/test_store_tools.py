"""
Tests for store info, catalog lookups and misc tab reads.
"""
import pytest

from conftest import FakeRankingClient, FakeSheetsClient
from heysheets.core.errors import ErrorKind
from heysheets.services.functions.base import FunctionServices
from heysheets.services.functions.executor import FunctionExecutor
from heysheets.services.functions.schema import FunctionContext, StoreConfig
from heysheets.services.functions.store_tools import normalize_hours
from heysheets.services.semantic_matcher import SemanticMatcher


def build_executor(sheets, ranker=None):
    ranker = ranker or FakeRankingClient(ids=[])
    return FunctionExecutor(FunctionServices(sheets=sheets, matcher=SemanticMatcher(ranker)))


class TestGetStoreInfo:

    @pytest.mark.asyncio
    async def test_all_with_one_failing_read(self, sheet_tabs, context):
        sheets = FakeSheetsClient(sheet_tabs, failing={"Our Services"})
        result = await build_executor(sheets).execute("get_store_info", {"info_type": "all"}, context)

        assert result.success is True
        data = result.data
        assert data["services"] == []
        assert data["store_info"] == sheet_tabs["Store Info"]
        assert data["hours"] == sheet_tabs["Hours"]
        assert data["products"] == sheet_tabs["Product List"]
        assert data["unavailable"] == ["services"]
        assert data["store_name"] == "Clay Studio"

    @pytest.mark.asyncio
    async def test_defaults_to_all(self, executor, context):
        result = await executor.execute("get_store_info", {}, context)

        assert result.data["info_type"] == "all"
        assert {"store_info", "hours", "services", "products"} <= set(result.data)

    @pytest.mark.asyncio
    async def test_scoped_to_hours(self, executor, context, fake_sheets):
        result = await executor.execute("get_store_info", {"info_type": "hours"}, context)

        assert result.success is True
        assert "services" not in result.data
        assert "products" not in result.data
        assert sorted(read["tab_name"] for read in fake_sheets.reads) == ["Hours", "Store Info"]

    @pytest.mark.asyncio
    async def test_hours_fall_back_to_store_info(self, sheet_tabs):
        schema = {"Store Info": {"columns": ["name", "hours"]}, "Products": {"columns": ["name"]}}
        context = FunctionContext("store-1", "token-abc", StoreConfig.model_validate({"detectedSchema": schema}))
        sheets = FakeSheetsClient(sheet_tabs)

        result = await build_executor(sheets).execute("get_store_info", {"info_type": "hours"}, context)

        assert result.success is True
        assert result.data["hours"] == [
            {"day": "Hours", "openTime": "Mon-Fri 9:00-17:00", "closeTime": "", "isOpen": "Yes"}
        ]
        assert result.data["store_name"] == "Unknown"

    def test_normalize_hours(self):
        assert normalize_hours(None) == []
        assert normalize_hours([{"day": "Mon"}, "junk"]) == [{"day": "Mon"}]


class TestCatalogLookups:

    @pytest.mark.asyncio
    async def test_products_by_category_on_renamed_tab(self, executor, context, fake_sheets):
        result = await executor.execute("get_products", {"category": "drinks"}, context)

        assert result.success is True
        names = [row["name"] for row in result.data["products"]]
        assert names == ["Green Tea", "Iced Coffee"]
        assert result.data["count"] == 2
        assert result.data["ranked"] is False
        assert fake_sheets.reads[0]["tab_name"] == "Product List"

    @pytest.mark.asyncio
    async def test_query_ranks_results(self, sheet_tabs, context):
        ranker = FakeRankingClient(ids=["2", "0"])
        result = await build_executor(FakeSheetsClient(sheet_tabs), ranker).execute(
            "get_products", {"query": "something to drink"}, context
        )

        assert [row["name"] for row in result.data["products"]] == ["Iced Coffee", "Green Tea"]
        assert result.data["ranked"] is True
        assert ranker.calls[0]["kind"] == "product"

    @pytest.mark.asyncio
    async def test_ranking_failure_falls_back_to_unranked(self, executor, context):
        result = await executor.execute("get_services", {"query": "pottery for beginners"}, context)

        assert result.success is True
        assert result.data["count"] == 3
        assert result.data["ranked"] is False
        assert result.data["query"] == "pottery for beginners"

    @pytest.mark.asyncio
    async def test_missing_tab_is_a_resolution_failure(self, sheet_tabs):
        context = FunctionContext(
            "store-1",
            "token-abc",
            StoreConfig.model_validate({"detectedSchema": {"Hours": {"columns": ["day"]}}}),
        )
        result = await build_executor(FakeSheetsClient(sheet_tabs)).execute("get_services", {}, context)

        assert result.success is False
        assert result.error_kind == ErrorKind.RESOLUTION
        assert result.error.startswith('Services data not available. Please ensure your sheet has a tab named "Services"')

    @pytest.mark.asyncio
    async def test_read_failure_is_a_transport_failure(self, sheet_tabs, context):
        sheets = FakeSheetsClient(sheet_tabs, failing={"Product List"})
        result = await build_executor(sheets).execute("get_products", {}, context)

        assert result.success is False
        assert result.error_kind == ErrorKind.TRANSPORT
        assert result.error == "Failed to load Product List: HTTP 500"


class TestGetMiscData:

    @pytest.mark.asyncio
    async def test_text_filter(self, executor, context):
        result = await executor.execute("get_misc_data", {"tab_name": "faq", "query": "PARKING"}, context)

        assert result.success is True
        assert result.data["tab_name"] == "FAQ"
        assert result.data["count"] == 1
        assert result.data["data"][0]["question"] == "Do you offer parking?"

    @pytest.mark.asyncio
    async def test_unknown_tab_lists_available_tabs(self, executor, context):
        result = await executor.execute("get_misc_data", {"tab_name": "Staff"}, context)

        assert result.success is False
        assert result.error_kind == ErrorKind.RESOLUTION
        assert result.error.startswith('Tab "Staff" not found. Available tabs: Store Info, Hours')

    @pytest.mark.asyncio
    async def test_tab_name_is_required(self, executor, context):
        result = await executor.execute("get_misc_data", {}, context)

        assert result.error_kind == ErrorKind.VALIDATION
        assert "tab_name: required parameter is missing" in result.error
