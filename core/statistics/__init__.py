"""Forecasting and frequency statistics for baccarat."""

from core.statistics.frequency import OutcomeFrequencies
from core.statistics.simulation import (
    CancellationToken,
    SimulationGeneration,
    SimulationProgress,
    SimulationRun,
    SimulationStats,
    SimulationStatus,
    simulate,
)

__all__ = [
    "OutcomeFrequencies",
    "CancellationToken",
    "SimulationGeneration",
    "SimulationProgress",
    "SimulationRun",
    "SimulationStats",
    "SimulationStatus",
    "simulate",
]
