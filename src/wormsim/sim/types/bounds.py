from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class Bounds:
    x1: float
    y1: float
    x2: float
    y2: float

    def contains(self, x: float, y: float) -> bool:
        return self.x1 <= x <= self.x2 and self.y1 <= y <= self.y2

    def outside(self, width: float, height: float) -> bool:
        """True when the box lies entirely outside the ``width`` x ``height`` viewport."""
        return self.x2 < 0 or self.x1 > width or self.y2 < 0 or self.y1 > height
