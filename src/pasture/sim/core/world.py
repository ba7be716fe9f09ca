from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List

from pygame.math import Vector2

from .config import SimulationConfig
from .food import Food, FoodStore
from .herbivore import Herbivore, HerbivoreState
from .rng import DeterministicRng
from ..systems import collisions, feeding, lifecycle, perception, reproduction, spawning, steering
from ..systems import metrics as metrics_system
from ..systems.stats import describe_agent
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..types.stats import AgentStats
from ..utils.math2d import distance

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class World:
    """
    Owns the herbivores and food and advances them one frame per ``step``.

    ``clock`` returns seconds and drives eating and respawn timers; it is read
    once per tick. All mutation happens inside ``step`` and the command
    methods, which callers must not interleave.
    """

    def __init__(self, config: SimulationConfig, clock: Clock = time.monotonic):
        self._config = config
        self._clock = clock
        self._rng = DeterministicRng(config.seed)
        self._herbivores: List[Herbivore] = []
        self._birth_queue: List[Herbivore] = []
        self._foods = FoodStore()
        self._pending_food_spawns = 0
        self._last_food_spawn_at = clock()
        self._next_id = 0
        self._selected_id: int | None = None
        self._metrics: TickMetrics | None = None
        self._bootstrap()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def herbivores(self) -> List[Herbivore]:
        return self._herbivores

    @property
    def foods(self) -> FoodStore:
        return self._foods

    @property
    def pending_food_spawns(self) -> int:
        return self._pending_food_spawns

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    @property
    def selected(self) -> Herbivore | None:
        if self._selected_id is None:
            return None
        for agent in self._herbivores:
            if agent.id == self._selected_id:
                return agent
        return None

    def reset(self) -> None:
        self._herbivores.clear()
        self._birth_queue.clear()
        self._foods.clear()
        self._rng.reset()
        self._pending_food_spawns = 0
        self._last_food_spawn_at = self._clock()
        self._next_id = 0
        self._selected_id = None
        self._metrics = None
        self._bootstrap()
        logger.debug(
            "World reset with %d herbivores and %d food",
            len(self._herbivores),
            len(self._foods),
        )

    def step(self, tick: int) -> TickMetrics:
        start = time.perf_counter()
        now = self._clock()
        births = 0
        deaths = 0

        # Newborns are queued and join after the pass, so they first move next tick.
        for agent in self._herbivores:
            if not agent.alive:
                continue
            if self._update_herbivore(agent, now):
                births += 1
            if not agent.alive:
                deaths += 1
                logger.debug("Herbivore %d died at age %d", agent.id, agent.age)

        self._apply_births()
        spawning.drain_pending_food(self, now)

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        metrics = metrics_system.create_metrics(
            tick,
            self._herbivores,
            births,
            deaths,
            len(self._foods),
            self._pending_food_spawns,
            elapsed_ms,
        )
        self._metrics = metrics
        return metrics

    def _update_herbivore(self, agent: Herbivore, now: float) -> bool:
        lifecycle.apply_metabolism(self, agent)
        target = perception.choose_target(self, agent)
        steering.move_towards(self, agent, target)
        steering.integrate(self, agent)
        collisions.resolve_collisions(self, agent)
        feeding.resolve_feeding(self, agent, now)
        born = reproduction.resolve_reproduction(self, agent) is not None
        lifecycle.resolve_death(self, agent, now)
        steering.apply_friction(self, agent)
        return born

    def select_at(self, x: float, y: float) -> Herbivore | None:
        point = Vector2(x, y)
        closest: Herbivore | None = None
        min_distance = float("inf")
        for agent in self._herbivores:
            if not agent.alive:
                continue
            dist = distance(point, agent.position)
            if dist <= agent.radius and dist < min_distance:
                min_distance = dist
                closest = agent
        self._selected_id = None if closest is None else closest.id
        return closest

    def deselect(self) -> None:
        self._selected_id = None

    def agent_stats(self, agent: Herbivore | None = None) -> AgentStats | None:
        if agent is None:
            agent = self.selected
        if agent is None:
            return None
        return describe_agent(self._config, agent)

    def snapshot(self, tick: int) -> Snapshot:
        now = self._clock()
        metrics = self._metrics
        if metrics is None:
            metrics = metrics_system.create_metrics(
                tick, self._herbivores, 0, 0, len(self._foods), self._pending_food_spawns, 0.0
            )
        config = self._config
        return Snapshot(
            tick=tick,
            metrics=metrics,
            herbivores=[self._herbivore_snapshot(agent, now) for agent in self._herbivores if agent.alive],
            food=[self._food_snapshot(food) for food in self._foods],
            world=SnapshotWorld(width=config.world_width, height=config.world_height),
            metadata=SnapshotMetadata(
                simulation_speed=config.simulation_speed,
                frames_per_second=config.frames_per_second,
                seed=config.seed,
                config_version=config.config_version,
            ),
            selected_id=self._selected_id,
        )

    def _bootstrap(self) -> None:
        for _ in range(self._config.herbivore_amount):
            self._herbivores.append(self._spawn_herbivore(self._random_position(), queue=False))
        for _ in range(self._config.food_amount):
            self._spawn_food()

    def _random_position(self) -> Vector2:
        config = self._config
        return self._rng.next_position(config.world_width, config.world_height, config.spawn_margin)

    def _spawn_food(self) -> Food:
        return self._foods.spawn(self._random_position(), self._config.food_radius)

    def _spawn_herbivore(
        self,
        position: Vector2,
        speed: float | None = None,
        generation: int = 0,
        queue: bool = True,
    ) -> Herbivore:
        herbivore_config = self._config.herbivore
        if speed is None:
            speed = self._rng.next_range(*herbivore_config.speed_range)
        max_energy = self._rng.next_range(*herbivore_config.energy_range)
        agent = Herbivore(
            id=self._next_id,
            position=position,
            speed=speed,
            max_energy=max_energy,
            energy=max_energy,
            radius=self._config.max_size,
            generation=generation,
            state=HerbivoreState.IDLE,
        )
        self._next_id += 1
        if queue:
            self._birth_queue.append(agent)
            logger.debug("Herbivore %d born (generation %d, speed %.3f)", agent.id, generation, speed)
        return agent

    def _apply_births(self) -> None:
        self._herbivores.extend(self._birth_queue)
        self._birth_queue.clear()

    def _herbivore_snapshot(self, agent: Herbivore, now: float) -> Dict[str, Any]:
        return {
            "id": agent.id,
            "x": agent.position.x,
            "y": agent.position.y,
            "vx": agent.velocity.x,
            "vy": agent.velocity.y,
            "radius": agent.radius,
            "speed": agent.speed,
            "energy_ratio": agent.energy_ratio,
            "is_eating": agent.is_eating,
            "ready_to_reproduce": agent.ready_to_reproduce,
            "eating_progress": feeding.eating_progress(self, agent, now),
            "behavior_state": agent.state.value,
            "generation": agent.generation,
        }

    @staticmethod
    def _food_snapshot(food: Food) -> Dict[str, Any]:
        return {
            "id": food.id,
            "x": food.position.x,
            "y": food.position.y,
            "radius": food.radius,
            "being_eaten": food.being_eaten,
        }
