"""Unit tests for the portfolio ledger."""

import threading
import typing
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from investfolio.categories import Category
from investfolio.errors import NotFoundError, PersistenceError, ValidationError
from investfolio.ledger import PortfolioLedger
from investfolio.position import Position, PositionDraft
from investfolio.quotes import Quote
from investfolio.valuation import revalue


@pytest.fixture
def ledger():
    return PortfolioLedger("user-1")


@pytest.fixture
def store():
    mock_store = MagicMock()
    mock_store.list_positions.return_value = []
    return mock_store


def petr4_draft(amount="200", quantity="10"):
    return PositionDraft("PETR4", amount, quantity, Category.EQUITY)


class TestAddEditRemove:
    """In-memory ledger operations."""

    def test_add_sets_value_to_cost(self, ledger):
        position = ledger.add(PositionDraft("HGLG11", "1000", category=Category.REIT))

        assert position.current_value == Decimal("1000")
        assert position.performance_pct == Decimal("0")
        assert ledger.list() == [position]
        assert position.id in ledger

    def test_add_rejects_zero_amount(self, ledger):
        with pytest.raises(ValidationError):
            ledger.add(PositionDraft("PETR4", "0"))
        assert len(ledger) == 0

    def test_list_keeps_insertion_order(self, ledger):
        names = ["VALE3", "BTC", "CDB INTER", "HGLG11"]
        for name in names:
            ledger.add(PositionDraft(name, "100"))
        assert [p.asset_name for p in ledger.list()] == names

    def test_edit_resets_valuation(self, ledger):
        position = ledger.add(petr4_draft())
        ledger.apply_valuation(revalue([position], {"PETR4": Quote("PETR4", Decimal("30"))}))

        edited = ledger.edit(position.id, "250", "10")

        assert edited.amount_invested == Decimal("250")
        assert edited.current_value == Decimal("250")
        assert edited.performance_pct == Decimal("0")
        assert edited.unit_cost == Decimal("25")
        assert ledger.get(position.id) == edited

    def test_edit_unknown_id_raises(self, ledger):
        with pytest.raises(NotFoundError, match="missing"):
            ledger.edit("missing", "100")

    def test_edit_invalid_amount_keeps_previous_state(self, ledger):
        position = ledger.add(petr4_draft())
        with pytest.raises(ValidationError):
            ledger.edit(position.id, "-1")
        assert ledger.get(position.id) == position

    def test_remove_is_idempotent(self, ledger):
        position = ledger.add(petr4_draft())
        ledger.remove(position.id)
        ledger.remove(position.id)
        assert ledger.list() == []

    def test_get_unknown_raises(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.get("nope")


class TestPersistence:
    """Mutations are committed only after the store accepts them."""

    def test_load_replaces_positions(self, store):
        seed = PortfolioLedger("user-1").add(petr4_draft())
        store.list_positions.return_value = [seed]

        ledger = PortfolioLedger("user-1", store)
        assert ledger.load() == [seed]
        store.list_positions.assert_called_once_with("user-1")

    def test_add_persists_for_the_user(self, store):
        ledger = PortfolioLedger("user-1", store)
        position = ledger.add(petr4_draft())
        store.save_position.assert_called_once_with("user-1", position)

    def test_failed_add_leaves_ledger_unchanged(self, store):
        store.save_position.side_effect = PersistenceError("disk full")
        ledger = PortfolioLedger("user-1", store)

        with pytest.raises(PersistenceError, match="disk full"):
            ledger.add(petr4_draft())
        assert ledger.list() == []

    def test_failed_edit_keeps_previous_position(self, store):
        ledger = PortfolioLedger("user-1", store)
        position = ledger.add(petr4_draft())
        store.update_position.side_effect = PersistenceError("locked")

        with pytest.raises(PersistenceError):
            ledger.edit(position.id, "999")
        assert ledger.get(position.id) == position

    def test_failed_remove_keeps_position(self, store):
        ledger = PortfolioLedger("user-1", store)
        position = ledger.add(petr4_draft())
        store.delete_position.side_effect = PersistenceError("locked")

        with pytest.raises(PersistenceError):
            ledger.remove(position.id)
        assert position.id in ledger

    def test_remove_unknown_does_not_touch_store(self, store):
        PortfolioLedger("user-1", store).remove("nope")
        store.delete_position.assert_not_called()


class TestApplyValuation:
    """Revalued snapshots are committed unless the position changed meanwhile."""

    def test_applies_touched_positions_only(self, ledger):
        petr4 = ledger.add(petr4_draft())
        vale3 = ledger.add(PositionDraft("VALE3", "100", "2", Category.EQUITY))

        result = revalue(ledger.list(), {"PETR4": Quote("PETR4", Decimal("25.50"))})
        applied = ledger.apply_valuation(result)

        assert [p.id for p in applied] == [petr4.id]
        assert ledger.get(petr4.id).current_value == Decimal("255.00")
        assert ledger.get(vale3.id) == vale3

    def test_stale_valuation_does_not_overwrite_edit(self, ledger):
        position = ledger.add(petr4_draft())
        result = revalue(ledger.list(), {"PETR4": Quote("PETR4", Decimal("25.50"))})

        ledger.edit(position.id, "300", "10")
        applied = ledger.apply_valuation(result)

        assert applied == []
        assert ledger.get(position.id).current_value == Decimal("300")

    def test_return_annotation_resolves_to_builtin_list(self):
        hints = typing.get_type_hints(PortfolioLedger.apply_valuation)
        assert hints["return"] == list[Position]

    def test_valuation_of_removed_position_is_dropped(self, ledger):
        position = ledger.add(petr4_draft())
        result = revalue(ledger.list(), {"PETR4": Quote("PETR4", Decimal("25.50"))})

        ledger.remove(position.id)

        assert ledger.apply_valuation(result) == []
        assert len(ledger) == 0

    def test_persist_false_skips_store(self, store):
        ledger = PortfolioLedger("user-1", store)
        ledger.add(petr4_draft())
        result = revalue(ledger.list(), {"PETR4": Quote("PETR4", Decimal("25.50"))})

        ledger.apply_valuation(result, persist=False)

        store.update_position.assert_not_called()

    def test_partial_store_failure_applies_the_rest(self, store):
        ledger = PortfolioLedger("user-1", store)
        petr4 = ledger.add(petr4_draft())
        vale3 = ledger.add(PositionDraft("VALE3", "100", "2", Category.EQUITY))

        def update(user_id, position):
            if position.id == petr4.id:
                raise PersistenceError("locked")

        store.update_position.side_effect = update
        prices = {"PETR4": Quote("PETR4", Decimal("30")), "VALE3": Quote("VALE3", Decimal("60"))}
        result = revalue(ledger.list(), prices)

        with pytest.raises(PersistenceError, match=petr4.id):
            ledger.apply_valuation(result, persist=True)

        assert ledger.get(petr4.id).current_value == Decimal("200")
        assert ledger.get(vale3.id).current_value == Decimal("120")


class TestConcurrency:
    def test_concurrent_adds_are_not_lost(self, ledger):
        def add_many():
            for _ in range(50):
                ledger.add(PositionDraft("BTC", "10"))

        threads = [threading.Thread(target=add_many) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(ledger) == 200
