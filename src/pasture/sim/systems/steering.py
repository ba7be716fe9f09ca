from __future__ import annotations

from typing import Protocol, TYPE_CHECKING

from pygame.math import Vector2

from ..core.herbivore import Herbivore
from ..utils.math2d import _safe_normalize_xy, clamp_to_bounds

if TYPE_CHECKING:
    from ..core.world import World


class Positioned(Protocol):
    position: Vector2


def move_towards(world: World, agent: Herbivore, target: Positioned | None) -> None:
    if target is None or agent.is_eating:
        return
    dx = target.position.x - agent.position.x
    dy = target.position.y - agent.position.y
    direction = _safe_normalize_xy(dx, dy)
    if direction.x == 0.0 and direction.y == 0.0:
        return

    config = world._config
    agent.velocity.update(direction.x * agent.speed, direction.y * agent.speed)
    # Charged on intended speed; the realised step may be shortened by the bounds clamp.
    agent.energy -= agent.speed * config.speed_consumption_rate * config.simulation_speed


def size_for(world: World, agent: Herbivore) -> float:
    config = world._config
    return config.min_size + (config.max_size - config.min_size) * agent.energy_ratio


def integrate(world: World, agent: Herbivore) -> None:
    config = world._config
    if agent.is_eating:
        agent.velocity.update(0.0, 0.0)
    agent.radius = size_for(world, agent)
    agent.position.x += agent.velocity.x * config.simulation_speed
    agent.position.y += agent.velocity.y * config.simulation_speed
    clamp_to_bounds(agent.position, agent.radius, config.world_width, config.world_height)


def apply_friction(world: World, agent: Herbivore) -> None:
    agent.velocity *= world._config.herbivore.friction
