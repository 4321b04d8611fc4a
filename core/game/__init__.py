"""Table session engine and state management."""

from core.game.events import GameEvent, EventType
from core.game.state import TableState
from core.game.engine import BaccaratTable, UndoSnapshot

__all__ = [
    "GameEvent",
    "EventType",
    "TableState",
    "BaccaratTable",
    "UndoSnapshot",
]
