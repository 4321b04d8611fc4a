"""Forecast simulation endpoints."""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Header

from api.routes.table import get_table, result_response
from api.schemas import (
    SimulationRequest,
    SimulationStatsResponse,
    SimulationStatusResponse,
)
from config import config
from core.game import BaccaratTable
from core.statistics import SimulationStats

logger = logging.getLogger(__name__)

router = APIRouter()

# Background forecast tasks per session
_tasks: dict[str, asyncio.Task] = {}


def _stats_response(stats: SimulationStats | None) -> SimulationStatsResponse | None:
    if stats is None:
        return None
    return SimulationStatsResponse(
        p_wins=stats.p_wins,
        b_wins=stats.b_wins,
        t_wins=stats.t_wins,
        total=stats.total,
        p_prob=stats.p_prob,
        b_prob=stats.b_prob,
        t_prob=stats.t_prob,
        example_hand=result_response(stats.example_hand),
    )


def _status_response(table: BaccaratTable) -> SimulationStatusResponse:
    run = table.simulation
    if run is None:
        return SimulationStatusResponse(
            generation=table.generations.current,
            status="idle",
            completed=0,
            total=0,
            percent=0.0,
            stats=_stats_response(table.forecast),
        )
    progress = run.progress
    return SimulationStatusResponse(
        generation=run.generation,
        status=run.status.name.lower(),
        completed=progress.completed,
        total=progress.total,
        percent=progress.percent,
        stats=_stats_response(table.forecast),
    )


def _forget_task(session_id: str, task: asyncio.Task) -> None:
    if _tasks.get(session_id) is task:
        del _tasks[session_id]
    if not task.cancelled() and task.exception() is not None:
        logger.error("Forecast for session failed", exc_info=task.exception())


@router.post("/start")
async def start_simulation(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
    request: SimulationRequest | None = None,
) -> SimulationStatusResponse:
    """Start a forecast over the live shoe, superseding any run in flight."""
    table = await get_table(session_id)

    iterations = (request.iterations if request else None) or config.simulation.iterations
    if iterations > config.simulation.max_iterations:
        raise HTTPException(
            status_code=422,
            detail=f"At most {config.simulation.max_iterations} iterations",
        )

    run = table.start_simulation(iterations, batch_size=config.simulation.batch_size)
    task = asyncio.create_task(table.run_simulation(run))
    _tasks[session_id] = task
    task.add_done_callback(lambda t: _forget_task(session_id, t))

    return _status_response(table)


@router.get("/status")
async def simulation_status(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> SimulationStatusResponse:
    """Progress of the live forecast and the last published stats."""
    table = await get_table(session_id)
    return _status_response(table)


@router.post("/cancel")
async def cancel_simulation(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> SimulationStatusResponse:
    """Cancel the live forecast; it stops before its next batch."""
    table = await get_table(session_id)
    if not table.cancel_simulation():
        raise HTTPException(status_code=400, detail="No simulation running")
    return _status_response(table)
