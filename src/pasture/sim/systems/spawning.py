from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.world import World


def request_food_spawn(world: World, now: float) -> None:
    # The interval is measured from when the backlog became non-empty.
    if world._pending_food_spawns == 0:
        world._last_food_spawn_at = now
    world._pending_food_spawns += 1


def drain_pending_food(world: World, now: float) -> int:
    """Spawn at most one owed food item per configured interval."""
    if world._pending_food_spawns <= 0:
        return 0
    if now - world._last_food_spawn_at < world._config.food_spawn_interval:
        return 0
    world._pending_food_spawns -= 1
    world._last_food_spawn_at = now
    world._spawn_food()
    return 1
