from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.herbivore import Herbivore, HerbivoreState
from ..utils.math2d import distance
from . import spawning

if TYPE_CHECKING:
    from ..core.world import World


def eating_progress(world: World, agent: Herbivore, now: float) -> float:
    if not agent.is_eating:
        return 0.0
    duration = world._config.eating_duration
    if duration <= 0:
        return 1.0
    return max(0.0, min(1.0, (now - agent.eating_started_at) / duration))


def resolve_feeding(world: World, agent: Herbivore, now: float) -> bool:
    """Advance the idle/eating machine for one frame; True when a meal finished."""
    if agent.is_eating:
        agent.velocity.update(0.0, 0.0)
        if now - agent.eating_started_at < world._config.eating_duration:
            return False
        _finish_meal(world, agent, now)
        return True

    for food in world._foods:
        if food.being_eaten:
            continue
        if distance(agent.position, food.position) < agent.radius + food.radius:
            food.lock(agent.id)
            agent.is_eating = True
            agent.eating_started_at = now
            agent.current_food = food
            agent.state = HerbivoreState.EATING
            agent.velocity.update(0.0, 0.0)
            break
    return False


def _finish_meal(world: World, agent: Herbivore, now: float) -> None:
    herbivore_config = world._config.herbivore
    food = agent.current_food
    if food is not None:
        food.release()
        if world._foods.remove(food.id) is not None:
            spawning.request_food_spawn(world, now)
    agent.is_eating = False
    agent.current_food = None
    agent.state = HerbivoreState.IDLE
    agent.energy = min(agent.max_energy, agent.energy + herbivore_config.energy_recharge)
    agent.food_eaten_count += 1
    if agent.food_eaten_count >= herbivore_config.foods_to_mature:
        agent.can_reproduce = True


def release_food(agent: Herbivore) -> None:
    if agent.current_food is not None:
        agent.current_food.release()
    agent.current_food = None
    agent.is_eating = False
