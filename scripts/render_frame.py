#!/usr/bin/env python3
"""Render a single simulation frame to a PNG without opening a window."""
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

import pygame  # noqa: E402

from wormsim.app.viewer import BACKGROUND  # noqa: E402
from wormsim.render.pygame_canvas import PygameCanvas  # noqa: E402
from wormsim.sim.core.config import SimulationConfig  # noqa: E402
from wormsim.sim.core.world import World  # noqa: E402


def render_frame(config: SimulationConfig, ticks: int, width: int, height: int) -> pygame.Surface:
    world = World(config)
    world.setup(width, height)
    for tick in range(ticks):
        world.step(tick)
    surface = pygame.Surface((width, height))
    surface.fill(BACKGROUND)
    world.draw(PygameCanvas(surface))
    return surface


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render one frame of the worm simulation to PNG.")
    parser.add_argument("--output", type=Path, default=Path("frame.png"))
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    parser.add_argument("--ticks", type=int, default=120, help="Ticks to simulate before rendering.")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--worms", type=int, default=None)
    parser.add_argument("--width", type=int, default=800)
    parser.add_argument("--height", type=int, default=600)
    parser.add_argument("--overwrite", action="store_true", help="Overwrite an existing file.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    output: Path = args.output
    if output.exists() and not args.overwrite:
        raise FileExistsError(f"{output} already exists. Use --overwrite to replace.")

    config = SimulationConfig.from_yaml(args.config) if args.config else SimulationConfig()
    overrides = {}
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.worms is not None:
        overrides["num_worms"] = args.worms
    if overrides:
        config = config.with_overrides(**overrides)

    output.parent.mkdir(parents=True, exist_ok=True)
    surface = render_frame(config, args.ticks, args.width, args.height)
    pygame.image.save(surface, str(output))
    print(f"Rendered frame to {output}")


if __name__ == "__main__":
    main()
