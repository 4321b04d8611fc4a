"""WebSocket stream of table events, including forecast progress."""

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect

from api.routes.table import _save_table, get_table
from config import config
from core.game import BaccaratTable, GameEvent, TableState

logger = logging.getLogger(__name__)

router = APIRouter()


class ConnectionManager:
    """Manage WebSocket connections and their table event queues."""

    def __init__(self, queue_size: int = 1000) -> None:
        self._connections: dict[str, WebSocket] = {}
        self._event_queues: dict[str, asyncio.Queue[GameEvent]] = {}
        self._queue_size = queue_size

    async def connect(self, websocket: WebSocket, session_id: str) -> None:
        """Accept and register a new connection."""
        await websocket.accept()
        self._connections[session_id] = websocket
        self._event_queues[session_id] = asyncio.Queue(maxsize=self._queue_size)

    def disconnect(self, session_id: str) -> None:
        """Remove a connection; the table itself stays live."""
        self._connections.pop(session_id, None)
        self._event_queues.pop(session_id, None)

    def queue_event(self, session_id: str, event: GameEvent) -> None:
        """Queue an event for async delivery."""
        queue = self._event_queues.get(session_id)
        if queue is None:
            return
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("Dropping %s for slow client", event.event_type.name)

    async def next_event(self, session_id: str) -> GameEvent:
        """Wait for the next queued event."""
        return await self._event_queues[session_id].get()

    async def send_message(self, session_id: str, message: dict[str, Any]) -> None:
        """Send a message to a specific session."""
        websocket = self._connections.get(session_id)
        if websocket is not None:
            await websocket.send_json(message)


# Global connection manager
manager = ConnectionManager()


def _table_state_to_dict(table: BaccaratTable) -> dict[str, Any]:
    """Convert table state to a dictionary for JSON serialization."""
    last = table.last_result
    return {
        "state": table.state.name,
        "shoe_exhausted": table.state == TableState.SHOE_EXHAUSTED,
        "cards_remaining": table.shoe.cards_remaining,
        "history": table.history.to_list(),
        "last_result": None if last is None else {
            "player_cards": [str(c) for c in last.player_cards],
            "banker_cards": [str(c) for c in last.banker_cards],
            "player_score": last.player_score,
            "banker_score": last.banker_score,
            "winner": last.winner.value,
            "is_natural": last.is_natural,
        },
    }


@router.websocket("/table/{session_id}")
async def table_websocket(websocket: WebSocket, session_id: str) -> None:
    """
    WebSocket endpoint for real-time table updates.

    Messages from client:
    - {"type": "deal"}
    - {"type": "undo"}
    - {"type": "new_shoe"}
    - {"type": "simulate", "iterations": 1000000}
    - {"type": "cancel_simulation"}
    - {"type": "get_state"}

    Messages to client:
    - {"type": "state_update", "state": {...}}
    - {"type": "event", "event_type": "...", "data": {...}, "timestamp": "..."}
    - {"type": "error", "message": "..."}
    """
    try:
        table = await get_table(session_id)
    except HTTPException:
        await websocket.close(code=4404)
        return

    await manager.connect(websocket, session_id)

    def forward(event: GameEvent) -> None:
        manager.queue_event(session_id, event)

    table.subscribe(forward)

    async def pump_events() -> None:
        while True:
            event = await manager.next_event(session_id)
            await manager.send_message(session_id, {"type": "event", **event.to_dict()})

    event_task = asyncio.create_task(pump_events())
    simulation_tasks: set[asyncio.Task] = set()

    def forget_simulation(task: asyncio.Task) -> None:
        simulation_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Forecast over socket failed", exc_info=task.exception())

    async def send_state() -> None:
        await manager.send_message(session_id, {
            "type": "state_update",
            "state": _table_state_to_dict(table),
        })

    async def send_error(message: str) -> None:
        await manager.send_message(session_id, {"type": "error", "message": message})

    await send_state()

    try:
        while True:
            try:
                message = json.loads(await websocket.receive_text())
            except json.JSONDecodeError:
                await send_error("Message must be a JSON object")
                continue
            if not isinstance(message, dict):
                await send_error("Message must be a JSON object")
                continue
            msg_type = message.get("type")

            if msg_type == "get_state":
                await send_state()

            elif msg_type == "deal":
                if table.deal() is None:
                    await send_error("shoe_exhausted")
                else:
                    await _save_table(session_id, table)

            elif msg_type == "undo":
                if table.undo():
                    await _save_table(session_id, table)
                else:
                    await send_error("Nothing to undo")

            elif msg_type == "new_shoe":
                table.new_shoe()
                await _save_table(session_id, table)
                await send_state()

            elif msg_type == "simulate":
                try:
                    iterations = int(message.get("iterations") or config.simulation.iterations)
                except (TypeError, ValueError):
                    await send_error("Iterations must be an integer")
                    continue
                if not 1 <= iterations <= config.simulation.max_iterations:
                    await send_error(
                        f"Iterations must be between 1 and {config.simulation.max_iterations}"
                    )
                    continue
                run = table.start_simulation(iterations, batch_size=config.simulation.batch_size)
                task = asyncio.create_task(table.run_simulation(run))
                simulation_tasks.add(task)
                task.add_done_callback(forget_simulation)

            elif msg_type == "cancel_simulation":
                if not table.cancel_simulation():
                    await send_error("No simulation running")

            else:
                await send_error(f"Unknown message type: {msg_type}")

    except WebSocketDisconnect:
        logger.debug("Table socket closed")
    except Exception as exc:
        logger.exception("Table socket failed")
        await send_error(str(exc))
    finally:
        table.events.unsubscribe(forward)
        event_task.cancel()
        if simulation_tasks:
            table.cancel_simulation()
        manager.disconnect(session_id)
