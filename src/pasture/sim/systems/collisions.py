from __future__ import annotations

import math
from typing import TYPE_CHECKING

from ..core.herbivore import Herbivore
from ..utils.math2d import distance

if TYPE_CHECKING:
    from ..core.world import World


def resolve_collisions(world: World, agent: Herbivore) -> int:
    """
    Push ``agent`` and every overlapping living neighbour apart, in place.

    Each pair is separated symmetrically by half the overlap. Positions are
    updated during the scan, so pairs resolved later in the same pass see the
    adjusted positions. All pairs are checked; this is quadratic in population.
    Returns the number of contacts resolved.
    """

    push_force = world._config.herbivore.push_force
    contacts = 0
    for other in world._herbivores:
        if other is agent or not other.alive:
            continue
        min_distance = agent.radius + other.radius
        dist = distance(agent.position, other.position)
        if dist >= min_distance:
            continue
        contacts += 1
        angle = math.atan2(other.position.y - agent.position.y, other.position.x - agent.position.x)
        normal_x = math.cos(angle)
        normal_y = math.sin(angle)
        overlap = min_distance - dist
        move_x = normal_x * overlap * 0.5
        move_y = normal_y * overlap * 0.5
        agent.position.x -= move_x
        agent.position.y -= move_y
        other.position.x += move_x
        other.position.y += move_y

        # Eating agents stay anchored; only free agents take the impulse.
        if not agent.is_eating:
            agent.velocity.x -= normal_x * push_force
            agent.velocity.y -= normal_y * push_force
        if not other.is_eating:
            other.velocity.x += normal_x * push_force
            other.velocity.y += normal_y * push_force
    return contacts
