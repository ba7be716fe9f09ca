from __future__ import annotations

import math
from typing import Iterable, TYPE_CHECKING

from ..core.food import Food
from ..core.herbivore import Herbivore, HerbivoreState
from ..utils.math2d import distance

if TYPE_CHECKING:
    from ..core.world import World


def find_closest_food(agent: Herbivore, foods: Iterable[Food]) -> Food | None:
    closest: Food | None = None
    min_distance = math.inf
    for food in foods:
        if food.being_eaten:
            continue
        dist = distance(agent.position, food.position)
        if dist < min_distance:
            min_distance = dist
            closest = food
    return closest


def find_closest_mate(agent: Herbivore, herbivores: Iterable[Herbivore]) -> Herbivore | None:
    closest: Herbivore | None = None
    min_distance = math.inf
    for other in herbivores:
        if other is agent or not other.alive or not other.ready_to_reproduce:
            continue
        dist = distance(agent.position, other.position)
        if dist < min_distance:
            min_distance = dist
            closest = other
    return closest


def choose_target(world: World, agent: Herbivore) -> Food | Herbivore | None:
    """Mate first when off cooldown, food otherwise; labels the agent's state."""
    if agent.is_eating:
        agent.state = HerbivoreState.EATING
        return None
    if agent.ready_to_reproduce:
        mate = find_closest_mate(agent, world._herbivores)
        if mate is not None:
            agent.state = HerbivoreState.SEEKING_MATE
            return mate
    food = find_closest_food(agent, world._foods)
    agent.state = HerbivoreState.SEEKING_FOOD if food is not None else HerbivoreState.IDLE
    return food
