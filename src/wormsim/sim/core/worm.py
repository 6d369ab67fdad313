from __future__ import annotations

import math
from typing import List, Protocol

from ..systems.spline import curve_through_points
from ..types.bounds import Bounds
from ..types.color import Hsl
from ..utils.vector import Vec2
from .rng import DeterministicRng
from .segment import Segment

DRAG = 0.985
JITTER_RANGE = (0.2, 1.5)
MAX_FORCE_RANGE = (0.08, 0.15)
CURL_RANGE = (0.2, 0.6)
RADIUS_RANGE = (20.0, 40.0)
ARRIVAL_EPSILON_SQ = 0.00001
FLEE_RADIUS_SQ = 100.0
SHADOW_STYLE = "rgba(0,0,0,0.1)"
SHADOW_EXTRA_WIDTH = 8.0
DEFAULT_COLOR = Hsl(0.0, 0.0, 20.0)


class StrokeSink(Protocol):
    stroke_style: str
    line_width: float
    line_join: str
    line_cap: str

    def begin_path(self) -> None: ...

    def move_to(self, x: float, y: float) -> None: ...

    def bezier_curve_to(
        self, c1x: float, c1y: float, c2x: float, c2y: float, x: float, y: float
    ) -> None: ...

    def stroke(self) -> None: ...


class Worm:
    """A chain of joints that steers like a single agent.

    Steering calls (``wander``/``seek``/``flee``) only accumulate into
    ``force``. ``update`` turns the accumulated force into a capped push on the
    head and then drags the body along with one relaxation pass.
    """

    def __init__(
        self,
        rng: DeterministicRng,
        length: int = 10,
        thickness: float = 8.0,
        spacing: float = 5.0,
        color: Hsl | None = None,
    ):
        self._rng = rng
        self.length = length
        self.thickness = thickness
        self.spacing = spacing
        self.color = color if color is not None else DEFAULT_COLOR
        self.joints: List[Vec2] = []
        self.segments: List[Segment] = []

        self.meander = Vec2(1.0, 1.0)
        self.jitter = rng.next_range(*JITTER_RANGE)
        self.max_force = rng.next_range(*MAX_FORCE_RANGE)
        self.velocity = Vec2()
        self.force = Vec2()

        self.create()

    @property
    def head(self) -> Vec2:
        return self.joints[0]

    @property
    def tail(self) -> Vec2:
        return self.joints[-1]

    def create(self) -> None:
        joints = self.joints
        joints.append(Vec2())

        for i in range(self.length):
            segment = Segment(self.spacing, joints, len(joints) - 1)
            node = segment.tail

            theta = i * self._rng.next_range(*CURL_RANGE)
            radius = self._rng.next_range(*RADIUS_RANGE)

            node.x += math.sin(theta) * radius
            node.y += math.cos(theta) * radius

            self.segments.append(segment)

        self.meander.rotate(self._rng.next_angle())

    def set_spacing(self, spacing: float) -> None:
        self.spacing = spacing
        for segment in self.segments:
            segment.spacing = spacing

    def move_to(self, position: Vec2) -> None:
        """Translate the whole body so the head sits at ``position``."""
        dx = position.x - self.head.x
        dy = position.y - self.head.y
        for joint in self.joints:
            joint.x += dx
            joint.y += dy

    def wander(self, multiplier: float = 1.0) -> None:
        self.meander.rotate(self._rng.next_range(-self.jitter, self.jitter))
        self.force.add(Vec2.scaled(self.meander, multiplier))

    def seek(self, target: Vec2, multiplier: float = 1.0) -> None:
        desired = Vec2.subtracted(target, self.head)
        if desired.magnitude_squared() > ARRIVAL_EPSILON_SQ:
            steer = Vec2.subtracted(desired, self.velocity)
            self.force.add(steer.scale(multiplier))

    def flee(self, target: Vec2, multiplier: float = 1.0) -> None:
        desired = Vec2.subtracted(target, self.head)
        distance_sq = desired.magnitude_squared()
        if ARRIVAL_EPSILON_SQ < distance_sq < FLEE_RADIUS_SQ:
            steer = Vec2.subtracted(self.velocity, desired)
            self.force.add(steer.scale(multiplier))

    def update(self) -> None:
        self.force.normalize().scale(self.max_force)

        self.velocity.add(self.force).scale(DRAG)
        self.head.add(self.velocity)

        self.force.set()

        # single relaxation pass, head to tail
        for segment in self.segments:
            segment.update()

    def get_bounds(self) -> Bounds:
        radius = self.thickness * 0.5
        xs = [joint.x for joint in self.joints]
        ys = [joint.y for joint in self.joints]
        return Bounds(
            x1=min(xs) - radius,
            y1=min(ys) - radius,
            x2=max(xs) + radius,
            y2=max(ys) + radius,
        )

    def stretch(self) -> float:
        """Mean ratio of actual segment length to the target spacing."""
        if not self.segments or self.spacing <= 0:
            return 1.0
        total = sum(segment.length() for segment in self.segments)
        return total / (len(self.segments) * self.spacing)

    def draw(self, sink: StrokeSink, shadow: bool = True) -> None:
        if shadow:
            self._stroke_body(sink, SHADOW_STYLE, self.thickness + SHADOW_EXTRA_WIDTH)
        self._stroke_body(sink, self.color.css(), self.thickness)

    def _stroke_body(self, sink: StrokeSink, style: str, width: float) -> None:
        head = self.head
        sink.begin_path()
        sink.move_to(head.x, head.y)
        curve_through_points(self.joints, sink)
        sink.stroke_style = style
        sink.line_width = width
        sink.line_join = "round"
        sink.line_cap = "round"
        sink.stroke()
