from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pygame.math import Vector2

from .food import Food


class HerbivoreState(str, Enum):
    IDLE = "Idle"
    SEEKING_FOOD = "SeekingFood"
    SEEKING_MATE = "SeekingMate"
    EATING = "Eating"
    DEAD = "Dead"


@dataclass(slots=True)
class Herbivore:
    id: int
    position: Vector2
    speed: float
    max_energy: float
    energy: float
    radius: float
    generation: int = 0
    velocity: Vector2 = field(default_factory=Vector2)
    state: HerbivoreState = HerbivoreState.IDLE
    alive: bool = True
    is_eating: bool = False
    eating_started_at: float = 0.0
    current_food: Food | None = None
    age: int = 0
    reproduction_cooldown: float = 0.0
    food_eaten_count: int = 0
    # Set after enough meals; reproduction is gated by the cooldown alone.
    can_reproduce: bool = False

    @property
    def energy_ratio(self) -> float:
        if self.max_energy <= 0:
            return 0.0
        return max(0.0, min(1.0, self.energy / self.max_energy))

    @property
    def ready_to_reproduce(self) -> bool:
        return self.reproduction_cooldown <= 0
