from __future__ import annotations

import math

from pygame.math import Vector2


def distance(a: Vector2, b: Vector2) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def _safe_normalize_xy(x: float, y: float) -> Vector2:
    magnitude_sq = x * x + y * y
    if magnitude_sq == 0.0:
        return Vector2()
    inv = 1.0 / math.sqrt(magnitude_sq)
    return Vector2(x * inv, y * inv)


def _clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))


def clamp_to_bounds(position: Vector2, radius: float, width: float, height: float) -> None:
    """Hard clamp so a disc of ``radius`` stays inside the world, in place."""
    position.x = _clamp_value(position.x, radius, max(radius, width - radius))
    position.y = _clamp_value(position.y, radius, max(radius, height - radius))
