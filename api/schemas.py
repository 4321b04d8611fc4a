"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Literal


Symbol = Literal["P", "B", "T"]


# Table schemas
class NewTableRequest(BaseModel):
    """Request to open a table."""

    num_decks: int = Field(default=8, ge=1, le=8)


class NewShoeRequest(BaseModel):
    """Request to replace the live shoe."""

    num_decks: int | None = Field(default=None, ge=1, le=8)


class ManualHandRequest(BaseModel):
    """Cards observed at a real table, e.g. '9H', '10S', 'KD'."""

    player_cards: list[str] = Field(..., min_length=2, max_length=3)
    banker_cards: list[str] = Field(..., min_length=2, max_length=3)


class CardResponse(BaseModel):
    """Card representation."""

    model_config = ConfigDict(from_attributes=True)

    rank: str
    suit: str
    value: int


class GameResultResponse(BaseModel):
    """One resolved hand."""

    player_cards: list[CardResponse]
    banker_cards: list[CardResponse]
    player_score: int
    banker_score: int
    winner: Symbol
    is_natural: bool


class TableStateResponse(BaseModel):
    """Current table state."""

    state: str
    shoe_exhausted: bool
    num_decks: int
    cards_remaining: int
    penetration: float
    history: list[Symbol]
    last_result: GameResultResponse | None
    can_undo: bool


class RoadCellResponse(BaseModel):
    """A placed Big Road cell."""

    col: int
    row: int
    winner: Symbol
    ties: int


class RoadMapResponse(BaseModel):
    """Big Road plus derived roads."""

    cells: list[RoadCellResponse]
    grid: list[list[Symbol | None]]
    big_eye_boy: list[Literal["red", "blue"]]
    small_road: list[Literal["red", "blue"]]
    cockroach_pig: list[Literal["red", "blue"]]
    leading_ties: int


class AdviceResponse(BaseModel):
    """Pattern heuristic suggestion."""

    next_move: Literal["P", "B"] | None
    rule: str
    confidence: int


class StatisticsResponse(BaseModel):
    """Outcome frequencies over the session."""

    total: int
    player: int
    banker: int
    tie: int
    player_percent: float
    banker_percent: float
    tie_percent: float


# Simulation schemas
class SimulationRequest(BaseModel):
    """Request to start a forecast."""

    iterations: int | None = Field(default=None, ge=1)


class SimulationStatsResponse(BaseModel):
    """Finished forecast."""

    p_wins: int
    b_wins: int
    t_wins: int
    total: int
    p_prob: float
    b_prob: float
    t_prob: float
    example_hand: GameResultResponse | None


class SimulationStatusResponse(BaseModel):
    """Progress of the live forecast and the last published stats."""

    generation: int
    status: Literal["idle", "pending", "running", "completed", "cancelled"]
    completed: int
    total: int
    percent: float
    stats: SimulationStatsResponse | None
