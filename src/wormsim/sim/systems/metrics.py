from __future__ import annotations

import math
from typing import Sequence

from ..core.worm import Worm
from ..types.metrics import TickMetrics
from ..utils.vector import Vec2


def create_metrics(
    tick: int,
    worms: Sequence[Worm],
    center: Vec2,
    seeking: int,
    duration_ms: float,
) -> TickMetrics:
    population = len(worms)
    if population == 0:
        return TickMetrics(
            tick=tick,
            population=0,
            seeking=seeking,
            average_speed=0.0,
            max_speed=0.0,
            average_stretch=0.0,
            center_distance=0.0,
            min_center_distance=0.0,
            max_center_distance=0.0,
            average_thickness=0.0,
            average_spacing=0.0,
            tick_duration_ms=duration_ms,
        )

    speeds = [worm.velocity.magnitude() for worm in worms]
    distances = [math.hypot(worm.head.x - center.x, worm.head.y - center.y) for worm in worms]
    return TickMetrics(
        tick=tick,
        population=population,
        seeking=seeking,
        average_speed=sum(speeds) / population,
        max_speed=max(speeds),
        average_stretch=sum(worm.stretch() for worm in worms) / population,
        center_distance=sum(distances) / population,
        min_center_distance=min(distances),
        max_center_distance=max(distances),
        average_thickness=sum(worm.thickness for worm in worms) / population,
        average_spacing=sum(worm.spacing for worm in worms) / population,
        tick_duration_ms=duration_ms,
    )
