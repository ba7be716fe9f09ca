from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AgentStats:
    id: int
    speed: float
    age: int
    energy: float
    max_energy: float
    base_consumption: float
    movement_consumption: float
    total_consumption: float
    food_eaten: int
    can_reproduce: bool
    reproduction_cooldown: float
