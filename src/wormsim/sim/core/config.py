from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping

import yaml

PaletteEntry = tuple[float, float, float]

DEFAULT_PALETTE: List[PaletteEntry] = [
    (349.0, 99.0, 63.0),  # #FE4365
    (25.0, 86.0, 83.0),  # #F9CDAE
    (177.0, 42.0, 76.0),  # #A8DCD9
    (350.0, 65.0, 46.0),  # #C02A43
    (185.0, 19.0, 40.0),  # #537679
    (46.0, 75.0, 70.0),  # #ECD179
    (153.0, 22.0, 60.0),  # #83AF9B
]

# live-tunable values and the limits they are clamped to
TUNABLE_LIMITS: Dict[str, tuple[float, float]] = {
    "max_thickness": (1.0, 80.0),
    "max_segment_spacing": (1.0, 20.0),
}
TUNABLE_FLAGS = ("shadow",)


class ConfigError(ValueError):
    pass


@dataclass
class SimulationConfig:
    seed: int = 42
    num_worms: int = 40
    min_length: float = 5.0
    max_length: float = 35.0
    min_thickness: float = 12.0
    max_thickness: float = 20.0
    min_segment_spacing: float = 1.0
    max_segment_spacing: float = 4.0
    shadow: bool = True
    colors: List[PaletteEntry] = field(default_factory=lambda: list(DEFAULT_PALETTE))
    color_jitter: float = 10.0
    spawn_spread: tuple[float, float] = (300.0, 100.0)
    settle_ticks: int = 60
    global_alpha: float = 0.92
    viewport_width: float = 1280.0
    viewport_height: float = 720.0
    time_step: float = 1.0 / 60.0
    config_version: str = "v1"

    def validate(self) -> "SimulationConfig":
        try:
            self._check()
        except TypeError as exc:
            raise ConfigError(f"Invalid config value: {exc}") from exc
        return self

    def _check(self) -> None:
        if self.num_worms < 0:
            raise ConfigError(f"num_worms must be >= 0, got {self.num_worms}")
        for name in ("length", "thickness", "segment_spacing"):
            low = getattr(self, f"min_{name}")
            high = getattr(self, f"max_{name}")
            if low > high:
                raise ConfigError(f"min_{name} ({low}) is greater than max_{name} ({high})")
        if self.min_length < 0:
            raise ConfigError(f"min_length must be >= 0, got {self.min_length}")
        if self.min_segment_spacing <= 0:
            raise ConfigError(f"min_segment_spacing must be > 0, got {self.min_segment_spacing}")
        if not self.colors:
            raise ConfigError("colors palette must not be empty")
        if self.viewport_width <= 0 or self.viewport_height <= 0:
            raise ConfigError(
                f"viewport must be positive, got {self.viewport_width}x{self.viewport_height}"
            )
        if self.settle_ticks < 0:
            raise ConfigError(f"settle_ticks must be >= 0, got {self.settle_ticks}")

    def with_overrides(self, **overrides: Any) -> "SimulationConfig":
        unknown = set(overrides) - {f.name for f in fields(self)}
        if unknown:
            raise ConfigError(f"Unknown config option(s): {', '.join(sorted(unknown))}")
        if "colors" in overrides:
            overrides["colors"] = _palette(overrides["colors"])
        if "spawn_spread" in overrides:
            overrides["spawn_spread"] = _pair(overrides["spawn_spread"], self.spawn_spread)
        return replace(self, **overrides).validate()

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data)


@dataclass
class AppConfig:
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    broadcast_interval: int = 2


def _pair(value: tuple[float, float] | list[float] | None, default: tuple[float, float]) -> tuple[float, float]:
    if isinstance(value, (tuple, list)) and len(value) == 2:
        return (float(value[0]), float(value[1]))
    return default


def _palette(raw: Any) -> List[PaletteEntry]:
    palette: List[PaletteEntry] = []
    for entry in raw or []:
        if not isinstance(entry, (tuple, list)) or len(entry) != 3:
            raise ConfigError(f"Palette entries must be [h, s, l] triples, got {entry!r}")
        palette.append((float(entry[0]), float(entry[1]), float(entry[2])))
    return palette


def load_config(raw: Mapping[str, Any]) -> SimulationConfig:
    values = dict(raw.get("simulation", raw))
    known = {f.name for f in fields(SimulationConfig)}
    unknown = set(values) - known
    if unknown:
        raise ConfigError(f"Unknown config option(s): {', '.join(sorted(unknown))}")
    if "colors" in values:
        values["colors"] = _palette(values["colors"])
    if "spawn_spread" in values:
        values["spawn_spread"] = _pair(values["spawn_spread"], SimulationConfig().spawn_spread)
    return SimulationConfig(**values).validate()


def load_app_config(path: Path) -> AppConfig:
    data = yaml.safe_load(Path(path).read_text()) or {}
    simulation = load_config(data.get("simulation", {}))
    return AppConfig(simulation=simulation, broadcast_interval=int(data.get("broadcast_interval", 2)))


def apply_tunables(config: SimulationConfig, values: Mapping[str, Any]) -> SimulationConfig:
    """Return ``config`` with the live-tunable ``values`` clamped and applied.

    Unknown names are ignored. Lowering a max below its min drags the min down
    with it so the ranges stay valid.
    """
    changes: Dict[str, Any] = {}
    for name, (low, high) in TUNABLE_LIMITS.items():
        if name in values:
            changes[name] = max(low, min(high, float(values[name])))
    for name in TUNABLE_FLAGS:
        if name in values:
            changes[name] = bool(values[name])
    if not changes:
        return config
    if "max_thickness" in changes:
        changes["min_thickness"] = min(config.min_thickness, changes["max_thickness"])
    if "max_segment_spacing" in changes:
        changes["min_segment_spacing"] = min(config.min_segment_spacing, changes["max_segment_spacing"])
    return replace(config, **changes)


def tunables(config: SimulationConfig) -> Dict[str, Any]:
    return {
        "max_thickness": config.max_thickness,
        "max_segment_spacing": config.max_segment_spacing,
        "shadow": config.shadow,
    }
