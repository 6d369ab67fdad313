from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    population: int
    seeking: int
    average_speed: float
    max_speed: float
    average_stretch: float
    center_distance: float
    min_center_distance: float
    max_center_distance: float
    average_thickness: float
    average_spacing: float
    tick_duration_ms: float = 0.0
