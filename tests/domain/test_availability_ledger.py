"""Unit tests for the AvailabilityLedger domain service."""

import pytest
from structlog.testing import capture_logs

from storefront.domain.exceptions import EntityNotFoundError, InsufficientAvailability
from storefront.domain.model.catalog import AttributeCombination, CatalogItem, ItemRef
from storefront.domain.model.value_objects import Money
from storefront.domain.service.availability_ledger import AvailabilityLedger
from tests.fakes import FakeCatalogRepository, FakeStore


@pytest.fixture
def store() -> FakeStore:
    s = FakeStore()
    s.items["1"] = CatalogItem(id="1", name="Shirt", unit_price=Money.of("20"), available_quantity=5)
    s.items["2"] = CatalogItem(
        id="2", name="Mug", unit_price=Money.of("8"), available_quantity=50,
        low_availability_threshold=45,
    )
    s.combinations["1-1"] = AttributeCombination(
        id="1-1", item_id="1", attributes={"size": "M"}, available_quantity=3
    )
    return s


@pytest.fixture
def ledger(store) -> AvailabilityLedger:
    return AvailabilityLedger(FakeCatalogRepository(store), default_threshold=2)


class TestReserve:

    def test_decrements_item_counter(self, ledger, store):
        reserved = ledger.reserve(ItemRef.item("1"), 2)
        assert reserved.remaining == 3
        assert store.items["1"].available_quantity == 3

    def test_combination_and_item_are_separate_ledgers(self, ledger, store):
        ledger.reserve(ItemRef.combination("1-1"), 3)
        assert store.combinations["1-1"].available_quantity == 0
        assert store.items["1"].available_quantity == 5

    def test_insufficient_reports_counts(self, ledger, store):
        with pytest.raises(InsufficientAvailability) as info:
            ledger.reserve(ItemRef.item("1"), 6)
        assert (info.value.requested, info.value.available) == (6, 5)
        assert store.items["1"].available_quantity == 5

    def test_last_unit_can_be_taken(self, ledger):
        assert ledger.reserve(ItemRef.item("1"), 5).remaining == 0
        with pytest.raises(InsufficientAvailability):
            ledger.reserve(ItemRef.item("1"), 1)

    def test_missing_record(self, ledger):
        with pytest.raises(InsufficientAvailability) as info:
            ledger.reserve(ItemRef.item("404"), 1)
        assert info.value.available == 0

    def test_inactive_item(self, ledger, store):
        store.items["1"].active = False
        with pytest.raises(InsufficientAvailability):
            ledger.reserve(ItemRef.item("1"), 1)

    def test_combination_of_inactive_item(self, ledger, store):
        store.items["1"].active = False
        assert ledger.available(ItemRef.combination("1-1")) == 0
        with pytest.raises(InsufficientAvailability):
            ledger.reserve(ItemRef.combination("1-1"), 1)

    def test_low_availability_warning(self, ledger):
        with capture_logs() as logs:
            ledger.reserve(ItemRef.item("2"), 5)
        assert any(
            e["event"] == "availability_low" and e["remaining"] == 45 and e["threshold"] == 45
            for e in logs
        )

    def test_no_warning_above_threshold(self, ledger):
        with capture_logs() as logs:
            ledger.reserve(ItemRef.item("2"), 1)
        assert not [e for e in logs if e["event"] == "availability_low"]


class TestRestock:

    def test_returns_units_to_the_same_counter(self, ledger, store):
        ledger.reserve(ItemRef.combination("1-1"), 2)
        assert ledger.restock(ItemRef.combination("1-1"), 2) == 3
        assert store.items["1"].available_quantity == 5

    def test_missing_record(self, ledger):
        with pytest.raises(EntityNotFoundError):
            ledger.restock(ItemRef.item("404"), 1)


class TestLowAvailability:

    def test_report(self, ledger, store):
        store.combinations["1-1"].available_quantity = 1
        store.items["2"].available_quantity = 40
        report = ledger.low_availability()
        refs = [str(entry.item_ref) for entry in report]
        assert refs == ["combination:1-1", "item:2"]
        assert report[0].name == "Shirt (size=M)"
        assert report[0].threshold == 2

    def test_inactive_items_are_skipped(self, ledger, store):
        store.items["2"].active = False
        assert all(str(e.item_ref) != "item:2" for e in ledger.low_availability())
