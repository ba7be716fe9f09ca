from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator

from pygame.math import Vector2


@dataclass(slots=True)
class Food:
    id: int
    position: Vector2
    radius: float
    being_eaten: bool = False
    eaten_by: int | None = None

    def lock(self, agent_id: int) -> None:
        self.being_eaten = True
        self.eaten_by = agent_id

    def release(self) -> None:
        self.being_eaten = False
        self.eaten_by = None


class FoodStore:
    """
    Insertion-ordered food collection addressed by stable handles.

    Handles grow monotonically and are never reused, so a reference to removed
    food can never resolve to a newer item. Iteration order is spawn order,
    which is also the tie-break order for perception and feeding scans.
    """

    def __init__(self) -> None:
        self._items: Dict[int, Food] = {}
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Food]:
        return iter(self._items.values())

    def __contains__(self, food: object) -> bool:
        return isinstance(food, Food) and self._items.get(food.id) is food

    def spawn(self, position: Vector2, radius: float) -> Food:
        food = Food(id=self._next_id, position=position, radius=radius)
        self._items[food.id] = food
        self._next_id += 1
        return food

    def remove(self, food_id: int) -> Food | None:
        return self._items.pop(food_id, None)

    def clear(self) -> None:
        self._items.clear()
        self._next_id = 0
