"""Table events for the event system."""

from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable


class EventType(Enum):
    """Types of table events."""

    # Shoe events
    SHOE_PREPARED = auto()
    CUT_CARD_REACHED = auto()

    # Hand events
    HAND_DEALT = auto()
    MANUAL_HAND_RECORDED = auto()
    INVALID_HAND = auto()

    # History events
    HAND_UNDONE = auto()
    HISTORY_CLEARED = auto()

    # Forecast events
    SIMULATION_STARTED = auto()
    SIMULATION_PROGRESS = auto()
    SIMULATION_COMPLETED = auto()
    SIMULATION_CANCELLED = auto()


@dataclass(frozen=True)
class GameEvent:
    """
    Immutable table event.

    Events are how the table talks to presentation layers (HTTP responses,
    WebSocket streams); the core never calls into them directly.
    """

    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.event_type.name}: {self.data}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON transport."""
        return {
            "event_type": self.event_type.name,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }


# Type alias for event handlers
EventHandler = Callable[[GameEvent], None]


class EventEmitter:
    """
    Event emitter with a bounded history.

    Handlers subscribe to one event type, or to every event with None.
    """

    def __init__(self, history_size: int = 200) -> None:
        self._handlers: dict[EventType | None, list[EventHandler]] = defaultdict(list)
        self._event_history: deque[GameEvent] = deque(maxlen=history_size)

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """Register ``handler`` for ``event_type`` (None for all events)."""
        self._handlers[event_type].append(handler)

    def unsubscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: GameEvent) -> None:
        """Record ``event`` and deliver it to matching then catch-all handlers."""
        self._event_history.append(event)
        for handler in [*self._handlers.get(event.event_type, []), *self._handlers.get(None, [])]:
            handler(event)

    def emit_new(self, event_type: EventType, **data: Any) -> GameEvent:
        """Create, emit and return a new event."""
        event = GameEvent(event_type=event_type, data=data)
        self.emit(event)
        return event

    @property
    def history(self) -> list[GameEvent]:
        """Return recent events, oldest first."""
        return list(self._event_history)

    def clear_history(self) -> None:
        self._event_history.clear()
