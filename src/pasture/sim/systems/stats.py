from __future__ import annotations

from ..core.config import SimulationConfig
from ..core.herbivore import Herbivore
from ..types.stats import AgentStats
from .lifecycle import base_consumption


def describe_agent(config: SimulationConfig, agent: Herbivore) -> AgentStats:
    """Per-frame energy budget of ``agent`` under the current settings. No side effects."""
    if agent.alive:
        base = base_consumption(config, agent)
        movement = 0.0 if agent.is_eating else agent.speed * config.speed_consumption_rate * config.simulation_speed
    else:
        base = 0.0
        movement = 0.0
    return AgentStats(
        id=agent.id,
        speed=agent.speed,
        age=agent.age,
        energy=agent.energy,
        max_energy=agent.max_energy,
        base_consumption=base,
        movement_consumption=movement,
        total_consumption=base + movement,
        food_eaten=agent.food_eaten_count,
        can_reproduce=agent.can_reproduce,
        reproduction_cooldown=agent.reproduction_cooldown,
    )
