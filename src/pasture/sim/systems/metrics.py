from __future__ import annotations

from typing import List

from ..core.herbivore import Herbivore
from ..types.metrics import TickMetrics


def create_metrics(
    tick: int,
    herbivores: List[Herbivore],
    births: int,
    deaths: int,
    food: int,
    pending_food: int,
    duration_ms: float,
) -> TickMetrics:
    population = 0
    energy_sum = 0.0
    age_sum = 0.0
    for agent in herbivores:
        if not agent.alive:
            continue
        population += 1
        energy_sum += agent.energy
        age_sum += agent.age
    return TickMetrics(
        tick=tick,
        population=population,
        births=births,
        deaths=deaths,
        food=food,
        pending_food=pending_food,
        average_energy=0.0 if population == 0 else energy_sum / population,
        average_age=0.0 if population == 0 else age_sum / population,
        tick_duration_ms=duration_ms,
    )
