from __future__ import annotations

from pygame.math import Vector2

from pasture.sim.core.config import SimulationConfig
from pasture.sim.core.herbivore import Herbivore
from pasture.sim.core.world import World


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def empty_world(clock, **overrides) -> World:
    values = {"herbivore_amount": 0, "food_amount": 0, "world_width": 400.0, "world_height": 300.0}
    values.update(overrides)
    return World(SimulationConfig(**values), clock=clock)


def add_herbivore(
    world: World,
    x: float,
    y: float,
    speed: float = 2.0,
    energy: float = 100.0,
    max_energy: float = 100.0,
    cooldown: float = 0.0,
) -> Herbivore:
    agent = world._spawn_herbivore(Vector2(x, y), speed=speed, queue=False)
    agent.max_energy = max_energy
    agent.energy = energy
    agent.reproduction_cooldown = cooldown
    agent.radius = world._config.min_size + (world._config.max_size - world._config.min_size) * agent.energy_ratio
    world.herbivores.append(agent)
    return agent


def add_food(world: World, x: float, y: float):
    return world.foods.spawn(Vector2(x, y), world.config.food_radius)
