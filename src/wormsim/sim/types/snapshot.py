from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .metrics import TickMetrics


@dataclass(slots=True)
class Snapshot:
    tick: int
    metrics: TickMetrics
    worms: List[Dict[str, Any]]
    viewport: "SnapshotViewport"
    metadata: "SnapshotMetadata"
    commands: List[List[Any]] = field(default_factory=list)


@dataclass(slots=True)
class SnapshotViewport:
    width: float
    height: float
    center_x: float
    center_y: float


@dataclass(slots=True)
class SnapshotMetadata:
    seed: int
    sim_dt: float
    tick_rate: float
    shadow: bool
    global_alpha: float
    config_version: str
