from __future__ import annotations

from typing import TYPE_CHECKING

from pygame.math import Vector2

from ..core.herbivore import Herbivore
from ..utils.math2d import distance

if TYPE_CHECKING:
    from ..core.world import World

# Collision resolution leaves pairs exactly touching; float noise must not block pairing.
CONTACT_TOLERANCE = 1e-6


def resolve_reproduction(world: World, agent: Herbivore) -> Herbivore | None:
    """
    Pair ``agent`` with the first ready neighbour it touches.

    Gated only by the cooldown; ``can_reproduce`` is informational. The
    offspring is queued on the world and joins the population at the end of
    the tick. At most one birth per call.
    """

    if not agent.ready_to_reproduce:
        return None
    for other in world._herbivores:
        if other is agent or not other.alive or not other.ready_to_reproduce:
            continue
        if distance(agent.position, other.position) > agent.radius + other.radius + CONTACT_TOLERANCE:
            continue
        position = Vector2(
            (agent.position.x + other.position.x) / 2,
            (agent.position.y + other.position.y) / 2,
        )
        speed = (agent.speed + other.speed) / 2
        generation = max(agent.generation, other.generation) + 1
        offspring = world._spawn_herbivore(position, speed=speed, generation=generation)
        cooldown = world._config.reproduction_cooldown_frames
        agent.reproduction_cooldown = cooldown
        other.reproduction_cooldown = cooldown
        return offspring
    return None
