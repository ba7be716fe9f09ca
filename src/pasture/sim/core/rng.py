from __future__ import annotations

import random

from pygame.math import Vector2


class DeterministicRng:
    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_range(self, low: float, high: float) -> float:
        """Uniform sample in ``[low, high)``; a reversed range is swapped."""
        if high < low:
            low, high = high, low
        return self._random.random() * (high - low) + low

    def next_position(self, width: float, height: float, margin: float) -> Vector2:
        # Degenerate bounds collapse onto the centre line instead of escaping the world.
        margin_x = min(margin, width * 0.5)
        margin_y = min(margin, height * 0.5)
        return Vector2(
            self.next_range(margin_x, width - margin_x),
            self.next_range(margin_y, height - margin_y),
        )
