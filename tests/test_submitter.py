"""Tests for the add-product flow."""

import pytest

from halalscan.client import (
    ConnectivityState,
    LocalProductCache,
    PendingWriteQueue,
    ProductSubmitter,
    RegistryClient,
    build_record,
)
from halalscan.core.exceptions import RemoteServerError, ValidationError
from halalscan.schemas import HalalStatus, ProductCategory


@pytest.fixture
def submitter(cache: LocalProductCache, queue: PendingWriteQueue, remote: RegistryClient,
              connectivity: ConnectivityState) -> ProductSubmitter:
    return ProductSubmitter(cache, queue, remote, connectivity)


class TestBuildRecord:
    """Tests for user input validation."""

    def test_csv_ingredients(self):
        """Test a comma-separated string becomes a trimmed list."""
        record = build_record("000111", "Biscuit", "food", " flour , water,, ")
        assert record.ingredients == ["flour", "water"]

    def test_list_ingredients(self):
        """Test a list is kept in order."""
        record = build_record("000111", "Biscuit", "food", ["flour", "water"])
        assert record.ingredients == ["flour", "water"]

    def test_food_defaults_to_unknown(self):
        """Test food without a status is Unknown."""
        assert build_record("1", "Biscuit", "food").status == HalalStatus.UNKNOWN

    def test_non_food_defaults_to_non_food_item(self):
        """Test non-food without a status is NonFoodItem."""
        record = build_record("1", "Pencil", "non-food")
        assert record.status == HalalStatus.NON_FOOD_ITEM
        assert record.category == ProductCategory.NON_FOOD
        assert record.ingredients == []

    def test_case_insensitive_values(self):
        """Test category and status accept loose spelling."""
        record = build_record("1", "Dates", "FOOD", "dates", "halal")
        assert record.category == ProductCategory.FOOD
        assert record.status == HalalStatus.HALAL

    def test_name_whitespace_collapsed(self):
        """Test the product name is trimmed."""
        assert build_record("1", "  Rose   Water ", "food").name == "Rose Water"

    @pytest.mark.parametrize("field,kwargs", [
        ("barcode", {"barcode": ""}),
        ("barcode", {"barcode": "12 34"}),
        ("name", {"name": "   "}),
        ("category", {"category": "drink"}),
        ("status", {"status": "Maybe"}),
    ])
    def test_invalid_fields(self, field, kwargs):
        """Test each bad field raises ValidationError naming it."""
        args = {"barcode": "000111", "name": "Biscuit", "category": "food"}
        args.update(kwargs)

        with pytest.raises(ValidationError) as exc_info:
            build_record(**args)
        assert exc_info.value.field == field


class TestOnlineSubmit:
    """Tests for submission while online."""

    @pytest.mark.asyncio
    async def test_submitted_to_registry(self, submitter, registry, cache, queue):
        """Test an online submit reaches the registry and the cache."""
        outcome = await submitter.submit("000111", "Biscuit", "food", "flour,water", "Unknown")

        assert outcome.remote is True
        assert outcome.queued is False
        assert registry.added == [{
            "barcode": "000111",
            "name": "Biscuit",
            "type": "food",
            "ingredients": ["flour", "water"],
            "status": "Unknown",
        }]
        assert (await cache.get("000111")).name == "Biscuit"
        assert await queue.size() == 0

    @pytest.mark.asyncio
    async def test_network_failure_queues(self, submitter, registry, cache, queue, connectivity):
        """Test a network failure falls back to the queue and goes offline."""
        registry.unreachable = True

        outcome = await submitter.submit("000111", "Biscuit", "food")

        assert outcome.remote is False
        assert outcome.queued is True
        assert not connectivity.is_online
        assert [r.barcode for r in await queue.list()] == ["000111"]
        assert await cache.get("000111") is not None

    @pytest.mark.asyncio
    async def test_server_error_not_queued(self, submitter, registry, queue, connectivity):
        """Test a registry refusal propagates and is not queued."""
        registry.rejected_barcodes.add("000111")

        with pytest.raises(RemoteServerError):
            await submitter.submit("000111", "Biscuit", "food")

        assert await queue.size() == 0
        assert connectivity.consecutive_server_errors == 1

    @pytest.mark.asyncio
    async def test_validation_before_io(self, submitter, registry):
        """Test bad input never reaches the registry."""
        with pytest.raises(ValidationError):
            await submitter.submit("000111", "", "food")
        assert registry.calls == []


class TestOfflineSubmit:
    """Tests for submission while offline."""

    @pytest.mark.asyncio
    async def test_offline_queues_without_calling(self, submitter, registry, cache, queue,
                                                   connectivity):
        """Test offline submissions are queued and visible locally."""
        connectivity.mark_offline("test")

        outcome = await submitter.submit("4006381", "Pencil", "non-food")

        assert outcome.queued is True
        assert registry.calls == []
        assert (await cache.get("4006381")).status == HalalStatus.NON_FOOD_ITEM
        assert await queue.size() == 1

    @pytest.mark.asyncio
    async def test_offline_order_preserved(self, submitter, queue, connectivity):
        """Test queued submissions keep submission order."""
        connectivity.mark_offline("test")
        for barcode in ("A1", "B2", "C3"):
            await submitter.submit(barcode, f"Product {barcode}", "food")

        assert [r.barcode for r in await queue.list()] == ["A1", "B2", "C3"]
