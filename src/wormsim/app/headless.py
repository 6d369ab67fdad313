from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional

from ..sim.core.config import SimulationConfig
from ..sim.core.world import World
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)

_BASIC_HEADER = [
    "tick",
    "population",
    "seeking",
    "avg_speed",
    "avg_stretch",
    "center_distance",
    "tick_ms",
]

_DETAILED_HEADER = _BASIC_HEADER + [
    "max_speed",
    "min_center_distance",
    "max_center_distance",
    "outside_ratio",
    "avg_thickness",
    "avg_spacing",
]


def _format_basic_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.population,
        metrics.seeking,
        f"{metrics.average_speed:.4f}",
        f"{metrics.average_stretch:.4f}",
        f"{metrics.center_distance:.4f}",
        f"{tick_ms:.3f}",
    ]


def _format_detailed_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    population = metrics.population
    outside_ratio = 0.0 if population <= 0 else metrics.seeking / population
    return _format_basic_row(metrics, tick_ms) + [
        f"{metrics.max_speed:.4f}",
        f"{metrics.min_center_distance:.4f}",
        f"{metrics.max_center_distance:.4f}",
        f"{outside_ratio:.4f}",
        f"{metrics.average_thickness:.4f}",
        f"{metrics.average_spacing:.4f}",
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p95": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p95": _percentile(sorted_values, 0.95),
        "p99": _percentile(sorted_values, 0.99),
    }


def _correlation(xs: list[float], ys: list[float]) -> float:
    if len(xs) != len(ys) or len(xs) < 2:
        return 0.0
    mean_x = sum(xs) / len(xs)
    mean_y = sum(ys) / len(ys)
    num = 0.0
    denom_x = 0.0
    denom_y = 0.0
    for x, y in zip(xs, ys):
        dx = x - mean_x
        dy = y - mean_y
        num += dx * dy
        denom_x += dx * dx
        denom_y += dy * dy
    denom = math.sqrt(denom_x * denom_y)
    if denom == 0.0:
        return 0.0
    return float(num / denom)


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "basic",
    summary_path: Optional[Path] = None,
    summary_window: int = 500,
    config: Optional[SimulationConfig] = None,
) -> World:
    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    config = config if config is not None else SimulationConfig()
    if seed is not None:
        config = config.with_overrides(seed=seed)
    world = World(config)
    world.setup(config.viewport_width, config.viewport_height)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    tick_ms_series: list[float] = []
    seeking_series: list[float] = []
    speed_series: list[float] = []
    distance_series: list[float] = []
    stretch_series: list[float] = []
    max_tick_ms = (-1.0, -1)
    max_seeking = (-1, -1)
    max_speed = (-1.0, -1)

    try:
        for tick in range(steps):
            metrics = world.step(tick)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms

            if summary_path:
                tick_ms_series.append(tick_ms)
                seeking_series.append(float(metrics.seeking))
                speed_series.append(metrics.average_speed)
                distance_series.append(metrics.center_distance)
                stretch_series.append(metrics.average_stretch)
                if tick_ms > max_tick_ms[0]:
                    max_tick_ms = (tick_ms, tick)
                if metrics.seeking > max_seeking[0]:
                    max_seeking = (metrics.seeking, tick)
                if metrics.max_speed > max_speed[0]:
                    max_speed = (metrics.max_speed, tick)

            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(metrics, tick_ms))
                else:
                    writer.writerow(_format_basic_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    logger.info("Ran %d ticks with %d worms (seed=%s)", steps, len(world.worms), config.seed)

    if summary_path:
        window = max(1, int(summary_window))
        tail_slice = slice(max(0, len(tick_ms_series) - window), len(tick_ms_series))
        summary = {
            "steps": steps,
            "seed": config.seed,
            "worms": len(world.worms),
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "tick_ms": _summary_stats(tick_ms_series),
            "seeking": _summary_stats(seeking_series),
            "avg_speed": _summary_stats(speed_series),
            "center_distance": _summary_stats(distance_series),
            "avg_stretch": _summary_stats(stretch_series),
            "correlations": {
                "tick_ms_vs_seeking": _correlation(tick_ms_series, seeking_series),
            },
            "peaks": {
                "tick_ms": {"value": float(max_tick_ms[0]), "tick": max_tick_ms[1]},
                "seeking": {"value": max_seeking[0], "tick": max_seeking[1]},
                "max_speed": {"value": float(max_speed[0]), "tick": max_speed[1]},
            },
            "tail_window": {
                "window": window,
                "tick_ms": _summary_stats(tick_ms_series[tail_slice]),
                "seeking": _summary_stats(seeking_series[tail_slice]),
                "center_distance": _summary_stats(distance_series[tail_slice]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))

    return world


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless worm simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="basic",
        help="CSV format to write when --log is provided.",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--summary-window",
        type=int,
        default=500,
        help="Tail window size (ticks) for summary stats.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = SimulationConfig.from_yaml(args.config) if args.config else None
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        summary_window=args.summary_window,
        config=config,
    )


if __name__ == "__main__":
    main()
