from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.herbivore import Herbivore, HerbivoreState
from . import feeding, spawning

if TYPE_CHECKING:
    from ..core.config import SimulationConfig
    from ..core.world import World


def base_consumption(config: SimulationConfig, agent: Herbivore) -> float:
    return (
        config.herbivore.base_consumption_rate
        * (1 + agent.age * config.age_consumption_multiplier)
        * config.simulation_speed
    )


def apply_metabolism(world: World, agent: Herbivore) -> None:
    config = world._config
    agent.energy -= base_consumption(config, agent)
    agent.age += 1
    agent.reproduction_cooldown -= config.simulation_speed


def resolve_death(world: World, agent: Herbivore, now: float) -> bool:
    if agent.energy > 0:
        return False
    agent.alive = False
    agent.energy = 0.0
    agent.state = HerbivoreState.DEAD
    agent.velocity.update(0.0, 0.0)
    feeding.release_food(agent)
    spawning.request_food_spawn(world, now)
    return True
