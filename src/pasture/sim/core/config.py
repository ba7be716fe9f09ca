from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict

import yaml


class ConfigError(ValueError):
    pass


@dataclass
class HerbivoreConfig:
    speed_range: tuple[float, float] = (1.0, 3.0)
    energy_range: tuple[float, float] = (50.0, 100.0)
    base_consumption_rate: float = 0.05
    energy_recharge: float = 50.0
    base_eating_time: float = 1.0
    foods_to_mature: int = 3
    friction: float = 0.95
    push_force: float = 0.5


@dataclass
class SimulationConfig:
    world_width: float = 800.0
    world_height: float = 600.0
    spawn_margin: float = 10.0
    herbivore_amount: int = 5
    food_amount: int = 10
    food_radius: float = 5.0
    simulation_speed: float = 1.0
    food_spawn_interval: float = 2.0
    age_consumption_multiplier: float = 0.001
    speed_consumption_rate: float = 0.02
    reproduction_cooldown_seconds: float = 5.0
    min_size: float = 5.0
    max_size: float = 15.0
    frames_per_second: int = 60
    seed: int = 42
    config_version: str = "v1"
    herbivore: HerbivoreConfig = field(default_factory=HerbivoreConfig)

    @property
    def reproduction_cooldown_frames(self) -> float:
        return self.reproduction_cooldown_seconds * self.frames_per_second

    @property
    def eating_duration(self) -> float:
        return self.herbivore.base_eating_time / self.simulation_speed

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)


MIN_SIMULATION_SPEED = 0.1
MAX_SIMULATION_SPEED = 5.0
SIZE_BOUND_GAP = 1.0

# Fields the control surface may change between ticks.
TUNABLE_FIELDS = (
    "herbivore_amount",
    "food_amount",
    "simulation_speed",
    "food_spawn_interval",
    "age_consumption_multiplier",
    "speed_consumption_rate",
    "reproduction_cooldown_seconds",
    "min_size",
    "max_size",
)
_INT_FIELDS = {"herbivore_amount", "food_amount"}


def _pair(value: Any, default: tuple[float, float]) -> tuple[float, float]:
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return (float(value[0]), float(value[1]))
    return default


def load_config(raw: dict) -> SimulationConfig:
    known = {f.name for f in fields(SimulationConfig)}
    unknown = set(raw) - known
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    default_herbivore = HerbivoreConfig()
    herbivore_raw = dict(raw.get("herbivore", {}) or {})
    unknown = set(herbivore_raw) - {f.name for f in fields(HerbivoreConfig)}
    if unknown:
        raise ConfigError(f"Unknown herbivore keys: {', '.join(sorted(unknown))}")
    herbivore = HerbivoreConfig(
        speed_range=_pair(herbivore_raw.pop("speed_range", None), default_herbivore.speed_range),
        energy_range=_pair(herbivore_raw.pop("energy_range", None), default_herbivore.energy_range),
        **herbivore_raw,
    )
    sim_values = {k: v for k, v in raw.items() if k != "herbivore"}
    config = SimulationConfig(herbivore=herbivore, **sim_values)
    # Route everything tunable through the same policy the control surface uses.
    apply_config_updates(config, {name: getattr(config, name) for name in TUNABLE_FIELDS})
    return config


def set_min_size(config: SimulationConfig, value: float) -> None:
    config.min_size = max(0.0, value)
    if config.min_size >= config.max_size:
        config.max_size = config.min_size + SIZE_BOUND_GAP


def set_max_size(config: SimulationConfig, value: float) -> None:
    config.max_size = max(SIZE_BOUND_GAP, value)
    if config.max_size <= config.min_size:
        config.min_size = config.max_size - SIZE_BOUND_GAP


def apply_config_updates(config: SimulationConfig, values: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply control-surface updates in place and return the resulting tunables.

    Out-of-range values are corrected rather than rejected: the simulation
    speed is clamped and crossing size bounds push the opposite bound.
    Unknown keys and non-numeric or non-finite values raise ``ConfigError``
    before anything is written.
    """

    unknown = set(values) - set(TUNABLE_FIELDS)
    if unknown:
        raise ConfigError(f"Unknown tunable: {', '.join(sorted(unknown))}")

    parsed: Dict[str, float] = {}
    for name, value in values.items():
        if isinstance(value, bool):
            raise ConfigError(f"{name} must be numeric, got {value!r}")
        try:
            parsed[name] = float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"{name} must be numeric, got {value!r}") from exc
        if not math.isfinite(parsed[name]):
            raise ConfigError(f"{name} must be finite, got {value!r}")

    for name, value in parsed.items():
        if name == "min_size":
            set_min_size(config, value)
        elif name == "max_size":
            set_max_size(config, value)
        elif name == "simulation_speed":
            config.simulation_speed = max(MIN_SIMULATION_SPEED, min(MAX_SIMULATION_SPEED, value))
        elif name in _INT_FIELDS:
            setattr(config, name, max(0, int(value)))
        else:
            setattr(config, name, max(0.0, value))
    return tunables(config)


def tunables(config: SimulationConfig) -> Dict[str, Any]:
    return {name: getattr(config, name) for name in TUNABLE_FIELDS}
