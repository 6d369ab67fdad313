from __future__ import annotations

import logging
import math
from time import perf_counter
from typing import Any, Dict, List, Optional

from ...render.canvas import Canvas, RecordingCanvas
from ..systems import metrics as metrics_system
from ..systems import steering
from ..types.color import Hsl
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotViewport
from ..utils.vector import Vec2
from .config import SimulationConfig
from .rng import DeterministicRng
from .worm import Worm

logger = logging.getLogger(__name__)

THICKNESS_FACTOR_RANGE = (0.5, 1.5)


class World:
    """Owns the worm population and the viewport it lives in.

    The host calls ``setup`` once, then ``step`` and ``draw`` every tick.
    ``resize`` and ``refresh`` may be called between ticks.
    """

    def __init__(self, config: SimulationConfig, rng: Optional[DeterministicRng] = None):
        self._config = config.validate()
        self._rng = rng if rng is not None else DeterministicRng(config.seed)
        self._worms: List[Worm] = []
        self._seeking: List[bool] = []
        self._width = config.viewport_width
        self._height = config.viewport_height
        self._center = Vec2(self._width * 0.5, self._height * 0.5)
        self._metrics: TickMetrics | None = None

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def worms(self) -> List[Worm]:
        return self._worms

    @property
    def center(self) -> Vec2:
        return self._center

    @property
    def viewport(self) -> tuple[float, float]:
        return (self._width, self._height)

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def setup(self, width: Optional[float] = None, height: Optional[float] = None) -> None:
        config = self._config
        if width is not None and height is not None:
            self._width = width
            self._height = height
        self._center.set(self._width * 0.5, self._height * 0.5)
        self._worms.clear()
        self._metrics = None

        palette = config.colors
        jitter = config.color_jitter
        spread_x, spread_y = config.spawn_spread
        for i in range(config.num_worms):
            length = self._rng.next_range(config.min_length, config.max_length)
            thickness = length * self._rng.next_range(*THICKNESS_FACTOR_RANGE)
            base = palette[i % len(palette)]
            color = Hsl(*base).jittered(
                self._rng.next_range(-jitter, jitter),
                self._rng.next_range(-jitter, jitter),
                self._rng.next_range(-jitter, jitter),
            )
            worm = Worm(
                self._rng,
                length=math.ceil(length),
                thickness=thickness,
                spacing=self._rng.next_range(config.min_segment_spacing, config.max_segment_spacing),
                color=color,
            )

            offset = Vec2(self._rng.next_range(-spread_x, spread_x), self._rng.next_range(-spread_y, spread_y))
            worm.head.copy_from(self._center.clone().add(offset))

            # settle the spawn pose before the first visible frame
            for _ in range(config.settle_ticks):
                worm.wander()
                worm.update()

            self._worms.append(worm)

        self._seeking = [False] * len(self._worms)
        logger.info(
            "Spawned %d worms in %.0fx%.0f viewport (seed=%s)",
            len(self._worms),
            self._width,
            self._height,
            self._rng.seed,
        )

    def reset(self) -> None:
        self._rng.reset()
        logger.info("Resetting world")
        self.setup(self._width, self._height)

    def resize(self, width: float, height: float) -> None:
        self._width = width
        self._height = height
        self._center.set(width * 0.5, height * 0.5)
        logger.info("Viewport resized to %.0fx%.0f", width, height)

    def configure(self, config: SimulationConfig) -> None:
        """Swap in ``config`` without touching the current worms."""
        self._config = config.validate()

    def refresh(self, **overrides: Any) -> None:
        if overrides:
            self._config = self._config.with_overrides(**overrides)
        config = self._config
        if "seed" in overrides:
            self._rng = DeterministicRng(config.seed)
        if "viewport_width" in overrides or "viewport_height" in overrides:
            self.resize(config.viewport_width, config.viewport_height)
        for worm in self._worms:
            worm.set_spacing(self._rng.next_range(config.min_segment_spacing, config.max_segment_spacing))
            worm.thickness = self._rng.next_range(config.min_thickness, config.max_thickness)
        logger.info("Refreshed %d worms", len(self._worms))

    def step(self, tick: int) -> TickMetrics:
        start = perf_counter()
        width = self._width
        height = self._height
        center = self._center
        seeking = 0

        for i in range(len(self._worms) - 1, -1, -1):
            worm = self._worms[i]
            is_seeking = steering.apply_behaviours(worm, center, width, height)
            self._seeking[i] = is_seeking
            if is_seeking:
                seeking += 1
            worm.update()

        duration_ms = (perf_counter() - start) * 1000.0
        self._metrics = metrics_system.create_metrics(tick, self._worms, center, seeking, duration_ms)
        return self._metrics

    def draw(self, canvas: Canvas) -> None:
        canvas.global_alpha = self._config.global_alpha
        shadow = self._config.shadow
        for worm in reversed(self._worms):
            worm.draw(canvas, shadow=shadow)

    def snapshot(self, tick: int, include_commands: bool = True, precision: Optional[int] = 2) -> Snapshot:
        metrics = self._metrics
        if metrics is None:
            metrics = metrics_system.create_metrics(tick, self._worms, self._center, sum(self._seeking), 0.0)
        commands: List[List[Any]] = []
        if include_commands:
            recorder = RecordingCanvas(precision=precision)
            self.draw(recorder)
            commands = recorder.commands
        config = self._config
        metadata = SnapshotMetadata(
            seed=self._rng.seed,
            sim_dt=config.time_step,
            tick_rate=0.0 if config.time_step <= 0 else 1.0 / config.time_step,
            shadow=config.shadow,
            global_alpha=config.global_alpha,
            config_version=config.config_version,
        )
        return Snapshot(
            tick=tick,
            metrics=metrics,
            worms=[self._worm_snapshot(i, worm) for i, worm in enumerate(self._worms)],
            viewport=SnapshotViewport(
                width=self._width,
                height=self._height,
                center_x=self._center.x,
                center_y=self._center.y,
            ),
            metadata=metadata,
            commands=commands,
        )

    def _worm_snapshot(self, index: int, worm: Worm) -> Dict[str, Any]:
        return {
            "id": index,
            "x": worm.head.x,
            "y": worm.head.y,
            "vx": worm.velocity.x,
            "vy": worm.velocity.y,
            "joints": [[joint.x, joint.y] for joint in worm.joints],
            "thickness": worm.thickness,
            "spacing": worm.spacing,
            "color": worm.color.css(),
            "seeking": self._seeking[index] if index < len(self._seeking) else False,
        }
