from __future__ import annotations

import argparse
import csv
import json
import logging
from pathlib import Path
from typing import Optional

from ..logging_config import configure_logging
from ..sim.core.config import SimulationConfig
from ..sim.core.world import World
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)

_BASIC_HEADER = [
    "tick",
    "population",
    "births",
    "deaths",
    "food",
    "pending_food",
    "avg_energy",
    "avg_age",
    "tick_ms",
]

_DETAILED_HEADER = _BASIC_HEADER + [
    "eating",
    "ready_to_reproduce",
    "avg_speed_trait",
    "max_generation",
    "locked_food",
]


class FrameClock:
    """Clock that advances one frame per tick so timers run at simulated, not real, pace."""

    def __init__(self, frames_per_second: int):
        self._frame_seconds = 1.0 / max(1, frames_per_second)
        self.frame = 0

    def __call__(self) -> float:
        return self.frame * self._frame_seconds

    def advance(self) -> None:
        self.frame += 1


def _format_basic_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.population,
        metrics.births,
        metrics.deaths,
        metrics.food,
        metrics.pending_food,
        f"{metrics.average_energy:.4f}",
        f"{metrics.average_age:.4f}",
        f"{tick_ms:.3f}",
    ]


def _format_detailed_row(world: World, metrics: TickMetrics, tick_ms: float) -> list[object]:
    eating = 0
    ready = 0
    speed_sum = 0.0
    max_generation = 0
    for agent in world.herbivores:
        if not agent.alive:
            continue
        eating += int(agent.is_eating)
        ready += int(agent.ready_to_reproduce)
        speed_sum += agent.speed
        max_generation = max(max_generation, agent.generation)
    avg_speed = 0.0 if metrics.population == 0 else speed_sum / metrics.population
    locked_food = sum(1 for food in world.foods if food.being_eaten)
    return _format_basic_row(metrics, tick_ms) + [
        eating,
        ready,
        f"{avg_speed:.4f}",
        max_generation,
        locked_food,
    ]


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0}
    return {
        "min": float(min(values)),
        "max": float(max(values)),
        "avg": float(sum(values) / len(values)),
    }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "basic",
    summary_path: Optional[Path] = None,
    config_path: Optional[Path] = None,
) -> TickMetrics | None:
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed

    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    clock = FrameClock(config.frames_per_second)
    world = World(config, clock=clock)
    logger.info(
        "Headless run: %d steps, seed %d, %d herbivores, %d food",
        steps,
        config.seed,
        config.herbivore_amount,
        config.food_amount,
    )

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    population_series: list[float] = []
    food_series: list[float] = []
    tick_ms_series: list[float] = []
    total_births = 0
    total_deaths = 0
    metrics: TickMetrics | None = None

    try:
        for tick in range(steps):
            clock.advance()
            metrics = world.step(tick)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms
            population_series.append(float(metrics.population))
            food_series.append(float(metrics.food))
            tick_ms_series.append(tick_ms)
            total_births += metrics.births
            total_deaths += metrics.deaths
            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(world, metrics, tick_ms))
                else:
                    writer.writerow(_format_basic_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    if metrics is not None and metrics.population == 0:
        logger.info("Population extinct by tick %d", metrics.tick)

    if summary_path:
        summary = {
            "steps": steps,
            "seed": config.seed,
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "births": total_births,
            "deaths": total_deaths,
            "population": _summary_stats(population_series),
            "food": _summary_stats(food_series),
            "tick_ms": _summary_stats(tick_ms_series),
            "final": {
                "population": 0 if metrics is None else metrics.population,
                "food": len(world.foods),
                "pending_food": world.pending_food_spawns,
                "simulated_seconds": round(clock(), 3),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    return metrics


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless pasture simulation")
    parser.add_argument("--steps", type=int, default=3600)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML file with simulation settings")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="basic",
        help="CSV format to write when --log is provided.",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: PASTURE_LOG_LEVEL or INFO)")
    args = parser.parse_args()
    configure_logging(level=args.log_level, include_uvicorn=False)
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        config_path=args.config,
    )


if __name__ == "__main__":
    main()
