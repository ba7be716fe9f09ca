from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    population: int
    births: int
    deaths: int
    food: int
    pending_food: int
    average_energy: float
    average_age: float
    tick_duration_ms: float = 0.0
