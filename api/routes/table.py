"""Table API endpoints."""

import time
from typing import Annotated, Any

from fastapi import APIRouter, HTTPException, Header

from api.schemas import (
    AdviceResponse,
    CardResponse,
    GameResultResponse,
    ManualHandRequest,
    NewShoeRequest,
    NewTableRequest,
    RoadCellResponse,
    RoadMapResponse,
    StatisticsResponse,
    TableStateResponse,
)
from api.session import create_session, get_session_store
from config import config
from core.cards import Card, Rank, Shoe, Suit
from core.errors import InvalidManualHand
from core.game import BaccaratTable, TableState
from core.game.engine import UndoSnapshot
from core.hand import GameResult, Winner
from core.history import ResultHistory

router = APIRouter()

# Live tables (for performance and in-flight forecasts, backed by session store)
_tables: dict[str, BaccaratTable] = {}

# Session data keys
SESSION_KEY_TABLE = "table"
SESSION_KEY_CREATED_AT = "created_at"
SESSION_KEY_LAST_ACTIVITY = "last_activity"


def _serialize_card(card: Card) -> dict[str, str]:
    """Serialize a card to a dict."""
    return {"rank": card.rank.value, "suit": card.suit.value}


def _deserialize_card(data: dict[str, str]) -> Card:
    """Deserialize a card from a dict."""
    return Card(Rank(data["rank"]), Suit(data["suit"]))


def _serialize_result(result: GameResult | None) -> dict[str, Any] | None:
    if result is None:
        return None
    return {
        "player_cards": [_serialize_card(c) for c in result.player_cards],
        "banker_cards": [_serialize_card(c) for c in result.banker_cards],
        "player_score": result.player_score,
        "banker_score": result.banker_score,
        "winner": result.winner.value,
        "is_natural": result.is_natural,
    }


def _deserialize_result(data: dict[str, Any] | None) -> GameResult | None:
    if data is None:
        return None
    return GameResult(
        player_cards=tuple(_deserialize_card(c) for c in data["player_cards"]),
        banker_cards=tuple(_deserialize_card(c) for c in data["banker_cards"]),
        player_score=data["player_score"],
        banker_score=data["banker_score"],
        winner=Winner(data["winner"]),
        is_natural=data["is_natural"],
    )


def _serialize_table(table: BaccaratTable) -> dict[str, Any]:
    """Serialize table state for session storage."""
    return {
        "state": table._machine_state,
        "num_decks": table.num_decks,
        "reserve_cards": table.reserve_cards,
        "shoe_cards": [_serialize_card(c) for c in table.shoe],
        "history": table.history.to_list(),
        "last_result": _serialize_result(table.last_result),
        "undo_stack": [
            {
                "history": snapshot.history.to_list(),
                "last_result": _serialize_result(snapshot.last_result),
            }
            for snapshot in table._undo_stack
        ],
    }


def _deserialize_table(data: dict[str, Any]) -> BaccaratTable:
    """Restore a table from session data."""
    shoe = Shoe(
        [_deserialize_card(c) for c in data["shoe_cards"]],
        num_decks=data["num_decks"],
        reserve_cards=data["reserve_cards"],
    )
    table = BaccaratTable(
        num_decks=data["num_decks"],
        reserve_cards=data["reserve_cards"],
        shoe=shoe,
        history=data["history"],
    )
    table._machine_state = data["state"]
    table.last_result = _deserialize_result(data["last_result"])
    table._undo_stack = [
        UndoSnapshot(
            ResultHistory(entry["history"]),
            _deserialize_result(entry["last_result"]),
        )
        for entry in data["undo_stack"]
    ]
    return table


async def _save_table(session_id: str, table: BaccaratTable) -> None:
    """Save table to session store."""
    store = await get_session_store()
    session_data = await store.get(session_id) or {}
    session_data[SESSION_KEY_TABLE] = _serialize_table(table)
    session_data[SESSION_KEY_LAST_ACTIVITY] = int(time.time())
    session_data.setdefault(SESSION_KEY_CREATED_AT, int(time.time()))
    await store.set(session_id, session_data)


async def get_table(session_id: str) -> BaccaratTable:
    """Get the live table for a session, restoring it from the store if needed."""
    if session_id in _tables:
        return _tables[session_id]

    store = await get_session_store()
    session_data = await store.get(session_id)
    if not session_data or SESSION_KEY_TABLE not in session_data:
        raise HTTPException(status_code=404, detail="Unknown session")

    table = _deserialize_table(session_data[SESSION_KEY_TABLE])
    _tables[session_id] = table
    return table


def _card_response(card: Card) -> CardResponse:
    return CardResponse(rank=card.rank.value, suit=card.suit.value, value=card.value)


def result_response(result: GameResult | None) -> GameResultResponse | None:
    """Convert a GameResult to its response model."""
    if result is None:
        return None
    return GameResultResponse(
        player_cards=[_card_response(c) for c in result.player_cards],
        banker_cards=[_card_response(c) for c in result.banker_cards],
        player_score=result.player_score,
        banker_score=result.banker_score,
        winner=result.winner.value,
        is_natural=result.is_natural,
    )


def _table_state_response(table: BaccaratTable) -> TableStateResponse:
    return TableStateResponse(
        state=table.state.name,
        shoe_exhausted=table.state == TableState.SHOE_EXHAUSTED,
        num_decks=table.num_decks,
        cards_remaining=table.shoe.cards_remaining,
        penetration=round(table.shoe.penetration, 4),
        history=table.history.to_list(),
        last_result=result_response(table.last_result),
        can_undo=table.undo_depth > 0,
    )


def _parse_cards(cards: list[str]) -> list[Card]:
    try:
        return [Card.from_string(c) for c in cards]
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.post("/new")
async def new_table(
    request: NewTableRequest | None = None,
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> dict[str, str]:
    """Open a table with a freshly prepared shoe."""
    if session_id is None:
        session_id = await create_session()

    previous = _tables.get(session_id)
    if previous is not None:
        previous.cancel_simulation()

    num_decks = request.num_decks if request else config.game.num_decks
    table = BaccaratTable(num_decks=num_decks, reserve_cards=config.game.reserve_cards)
    _tables[session_id] = table
    await _save_table(session_id, table)

    return {"session_id": session_id}


@router.get("/state")
async def get_state(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> TableStateResponse:
    """Get current table state."""
    table = await get_table(session_id)
    return _table_state_response(table)


@router.post("/deal")
async def deal(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> TableStateResponse:
    """Deal the next hand from the live shoe."""
    table = await get_table(session_id)

    if table.deal() is None:
        raise HTTPException(status_code=409, detail="shoe_exhausted")

    await _save_table(session_id, table)
    return _table_state_response(table)


@router.post("/manual")
async def record_manual_hand(
    request: ManualHandRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> TableStateResponse:
    """Record a hand entered by hand or by card recognition."""
    table = await get_table(session_id)
    player_cards = _parse_cards(request.player_cards)
    banker_cards = _parse_cards(request.banker_cards)

    try:
        table.record_manual_hand(player_cards, banker_cards)
    except InvalidManualHand as exc:
        raise HTTPException(status_code=422, detail=exc.reason) from exc

    await _save_table(session_id, table)
    return _table_state_response(table)


@router.post("/undo")
async def undo(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> TableStateResponse:
    """Undo the latest recorded hand or history reset."""
    table = await get_table(session_id)

    if not table.undo():
        raise HTTPException(status_code=400, detail="Nothing to undo")

    await _save_table(session_id, table)
    return _table_state_response(table)


@router.post("/shoe")
async def new_shoe(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
    request: NewShoeRequest | None = None,
) -> TableStateResponse:
    """Replace the live shoe with a freshly shuffled and burned one."""
    table = await get_table(session_id)
    table.new_shoe(request.num_decks if request else None)
    await _save_table(session_id, table)
    return _table_state_response(table)


@router.delete("/history")
async def clear_history(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> TableStateResponse:
    """Clear the outcome history."""
    table = await get_table(session_id)
    table.clear_history()
    await _save_table(session_id, table)
    return _table_state_response(table)


@router.get("/roadmap")
async def road_map(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> RoadMapResponse:
    """Big Road grid and derived roads for the current history."""
    table = await get_table(session_id)
    road = table.road_map()
    return RoadMapResponse(
        cells=[
            RoadCellResponse(col=c.col, row=c.row, winner=c.winner.value, ties=c.ties)
            for c in road.cells
        ],
        grid=[
            [cell.winner.value if cell else None for cell in row]
            for row in road.grid()
        ],
        big_eye_boy=[c.value for c in road.big_eye_boy],
        small_road=[c.value for c in road.small_road],
        cockroach_pig=[c.value for c in road.cockroach_pig],
        leading_ties=road.leading_ties,
    )


@router.get("/advice")
async def advice(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> AdviceResponse:
    """Pattern heuristic pick for the next hand."""
    table = await get_table(session_id)
    suggestion = table.advice()
    return AdviceResponse(
        next_move=suggestion.next_move.value if suggestion.next_move else None,
        rule=suggestion.rule.value,
        confidence=suggestion.confidence,
    )


@router.get("/statistics")
async def statistics(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> StatisticsResponse:
    """Outcome counts and percentages for the session."""
    table = await get_table(session_id)
    freq = table.frequencies()
    return StatisticsResponse(
        total=freq.total,
        player=freq.player,
        banker=freq.banker,
        tie=freq.tie,
        player_percent=freq.percent(Winner.PLAYER),
        banker_percent=freq.percent(Winner.BANKER),
        tie_percent=freq.percent(Winner.TIE),
    )
