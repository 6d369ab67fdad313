from __future__ import annotations

import math
from typing import List

from ..utils.vector import Vec2

# tail takes almost all of the correction so the body trails behind the head
STRENGTH = 0.998
DAMPING = 0.99
_MIN_DISTANCE = 1e-6


class Segment:
    """Distance constraint between two neighbouring joints of a worm.

    The segment does not own its points. It keeps the joint list and two
    indices, so ``head``/``tail`` always resolve to the shared joint objects.
    """

    __slots__ = ("spacing", "_joints", "head_index", "tail_index")

    def __init__(self, spacing: float, joints: List[Vec2], head_index: int, tail_index: int | None = None):
        self.spacing = spacing
        self._joints = joints
        self.head_index = head_index
        if tail_index is None:
            head = joints[head_index]
            joints.append(Vec2(head.x + spacing, head.y + spacing))
            tail_index = len(joints) - 1
        self.tail_index = tail_index

    @property
    def head(self) -> Vec2:
        return self._joints[self.head_index]

    @property
    def tail(self) -> Vec2:
        return self._joints[self.tail_index]

    def length(self) -> float:
        head = self.head
        tail = self.tail
        return math.hypot(head.x - tail.x, head.y - tail.y)

    def update(self) -> None:
        head = self.head
        tail = self.tail
        dx = head.x - tail.x
        dy = head.y - tail.y

        dist = math.sqrt(dx * dx + dy * dy) or _MIN_DISTANCE
        force = 0.5 - self.spacing / dist * 0.5
        force *= DAMPING

        fx = force * dx
        fy = force * dy

        tail.x += fx * STRENGTH * 2.0
        tail.y += fy * STRENGTH * 2.0
        head.x -= fx * (1.0 - STRENGTH) * 2.0
        head.y -= fy * (1.0 - STRENGTH) * 2.0
