"""Tests for table state persistence (serialization/deserialization)."""

import json
from random import Random

import pytest

from api.routes.table import (
    _deserialize_card,
    _deserialize_result,
    _deserialize_table,
    _serialize_card,
    _serialize_result,
    _serialize_table,
    _tables,
    get_table,
    _save_table,
)
from api.session import InMemorySessionStore, set_session_store
from conftest import cards, stacked_shoe
from core.cards import Card, Rank, Suit
from core.game import BaccaratTable, TableState
from core.hand import validate_manual_hand


class TestCardSerialization:
    """Tests for card serialization."""

    def test_serialize_card_structure(self):
        serialized = _serialize_card(Card(Rank.TEN, Suit.DIAMONDS))
        assert serialized == {"rank": "10", "suit": "diamonds"}

    def test_every_card_survives(self):
        for card in cards("AS", "10D", "JH", "QS", "KC", "7H"):
            assert _deserialize_card(_serialize_card(card)) == card


class TestResultSerialization:
    """Tests for GameResult serialization."""

    def test_none(self):
        assert _serialize_result(None) is None
        assert _deserialize_result(None) is None

    def test_three_card_result(self):
        result = validate_manual_hand(cards("AH", "2D", "6H"), cards("3S", "3C", "3D"))
        restored = _deserialize_result(json.loads(json.dumps(_serialize_result(result))))
        assert restored == result


class TestTableSerialization:
    """Tests for whole-table serialization."""

    def test_restores_shoe_order_and_history(self):
        table = BaccaratTable(num_decks=8, rng=Random(4))
        for _ in range(3):
            table.deal()

        data = json.loads(json.dumps(_serialize_table(table)))
        restored = _deserialize_table(data)

        assert restored.shoe.snapshot() == table.shoe.snapshot()
        assert restored.history == table.history
        assert restored.last_result == table.last_result
        assert restored.state == TableState.READY
        assert restored.num_decks == 8

    def test_restored_table_deals_the_same_hand(self):
        table = BaccaratTable(rng=Random(6))
        restored = _deserialize_table(_serialize_table(table))
        assert restored.deal() == table.deal()

    def test_restores_undo_stack(self):
        table = BaccaratTable(rng=Random(5))
        first = table.deal()
        table.deal()

        restored = _deserialize_table(_serialize_table(table))
        assert restored.undo_depth == 2
        assert restored.undo()
        assert restored.last_result == first
        assert len(restored.history) == 1

    def test_restores_exhausted_state(self):
        table = BaccaratTable(
            shoe=stacked_shoe("9H", "2D", "KS", "3C", filler=5, reserve_cards=6)
        )
        table.deal()

        restored = _deserialize_table(_serialize_table(table))
        assert restored.state == TableState.SHOE_EXHAUSTED
        assert restored.deal() is None


class TestSessionRestore:
    """Tests for restoring a table from the session store."""

    @pytest.fixture(autouse=True)
    def memory_store(self):
        set_session_store(InMemorySessionStore())
        _tables.clear()
        yield
        _tables.clear()
        set_session_store(None)

    @pytest.mark.asyncio
    async def test_table_reloaded_after_cache_loss(self):
        table = BaccaratTable(rng=Random(9))
        table.deal()
        await _save_table("session-1", table)

        _tables.clear()
        restored = await get_table("session-1")

        assert restored is not table
        assert restored.history == table.history
        assert restored.shoe.snapshot() == table.shoe.snapshot()
        assert await get_table("session-1") is restored
