from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

import pygame as pg

from ..render.pygame_canvas import PygameCanvas
from ..sim.core.config import SimulationConfig, apply_tunables, tunables
from ..sim.core.world import World

logger = logging.getLogger(__name__)

BACKGROUND = (244, 241, 234)
TARGET_FPS = 60


class Viewer:
    """Drives a ``World`` from pygame events and paints it onto a surface.

    Keys: space start/stop, R refresh, S shadow, Up/Down max thickness,
    Right/Left max segment spacing, Esc/Q quit.
    """

    def __init__(self, world: World):
        self.world = world
        self.running = True
        self.alive = True
        self.tick = 0

    def toggle(self) -> None:
        self.running = not self.running
        logger.info("Simulation %s", "running" if self.running else "paused")

    def _tune(self, **values: object) -> None:
        config = apply_tunables(self.world.config, values)
        self.world.configure(config)
        logger.info("Parameters: %s", tunables(config))

    def handle_event(self, event: pg.event.Event) -> None:
        if event.type == pg.QUIT:
            self.alive = False
        elif event.type == pg.VIDEORESIZE:
            self.world.resize(event.w, event.h)
        elif event.type == pg.KEYDOWN:
            config = self.world.config
            if event.key in (pg.K_ESCAPE, pg.K_q):
                self.alive = False
            elif event.key == pg.K_SPACE:
                self.toggle()
            elif event.key == pg.K_r:
                self.world.refresh()
            elif event.key == pg.K_s:
                self._tune(shadow=not config.shadow)
            elif event.key == pg.K_UP:
                self._tune(max_thickness=config.max_thickness + 1)
            elif event.key == pg.K_DOWN:
                self._tune(max_thickness=config.max_thickness - 1)
            elif event.key == pg.K_RIGHT:
                self._tune(max_segment_spacing=config.max_segment_spacing + 1)
            elif event.key == pg.K_LEFT:
                self._tune(max_segment_spacing=config.max_segment_spacing - 1)

    def frame(self, surface: pg.Surface) -> None:
        if self.running:
            self.world.step(self.tick)
            self.tick += 1
        surface.fill(BACKGROUND)
        self.world.draw(PygameCanvas(surface))


def run_viewer(config: SimulationConfig, width: int, height: int, fps: int = TARGET_FPS, max_frames: Optional[int] = None) -> None:
    pg.init()
    try:
        pg.display.set_caption("Worms")
        screen = pg.display.set_mode((width, height), pg.RESIZABLE)
        clock = pg.time.Clock()

        world = World(config)
        world.setup(width, height)
        viewer = Viewer(world)

        frames = 0
        while viewer.alive:
            clock.tick(fps)
            for event in pg.event.get():
                viewer.handle_event(event)
            viewer.frame(pg.display.get_surface() or screen)
            pg.display.flip()
            frames += 1
            if max_frames is not None and frames >= max_frames:
                break
        logger.info("Viewer closed after %d frames", frames)
    finally:
        pg.quit()


def main() -> None:
    parser = argparse.ArgumentParser(description="Interactive worm viewer")
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--width", type=int, default=None)
    parser.add_argument("--height", type=int, default=None)
    parser.add_argument("--fps", type=int, default=TARGET_FPS)
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config = SimulationConfig.from_yaml(args.config) if args.config else SimulationConfig()
    if args.seed is not None:
        config = config.with_overrides(seed=args.seed)
    width = args.width or int(config.viewport_width)
    height = args.height or int(config.viewport_height)
    run_viewer(config, width, height, fps=args.fps)


if __name__ == "__main__":
    main()
