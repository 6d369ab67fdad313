from __future__ import annotations

from typing import Any, List, Optional, Protocol


class Canvas(Protocol):
    """Drawing surface the simulation renders into.

    Mirrors the subset of the HTML canvas 2D context the worms need.
    """

    stroke_style: str
    line_width: float
    line_join: str
    line_cap: str
    global_alpha: float

    def begin_path(self) -> None: ...

    def move_to(self, x: float, y: float) -> None: ...

    def line_to(self, x: float, y: float) -> None: ...

    def bezier_curve_to(
        self, c1x: float, c1y: float, c2x: float, c2y: float, x: float, y: float
    ) -> None: ...

    def stroke(self) -> None: ...


class RecordingCanvas:
    """Canvas that records every call as a JSON-friendly command list.

    ``precision`` rounds coordinates before they are stored, which keeps
    streamed frames small. ``None`` stores exact values.
    """

    def __init__(self, precision: Optional[int] = None):
        self.precision = precision
        self.stroke_style = "#000000"
        self.line_width = 1.0
        self.line_join = "miter"
        self.line_cap = "butt"
        self.global_alpha = 1.0
        self.commands: List[List[Any]] = []

    def _round(self, value: float) -> float:
        if self.precision is None:
            return value
        return round(value, self.precision)

    def begin_path(self) -> None:
        self.commands.append(["begin"])

    def move_to(self, x: float, y: float) -> None:
        self.commands.append(["move", self._round(x), self._round(y)])

    def line_to(self, x: float, y: float) -> None:
        self.commands.append(["line", self._round(x), self._round(y)])

    def bezier_curve_to(
        self, c1x: float, c1y: float, c2x: float, c2y: float, x: float, y: float
    ) -> None:
        self.commands.append(["bezier"] + [self._round(v) for v in (c1x, c1y, c2x, c2y, x, y)])

    def stroke(self) -> None:
        self.commands.append(
            ["stroke", self.stroke_style, self.line_width, self.line_join, self.line_cap, self.global_alpha]
        )

    def beziers(self) -> List[List[float]]:
        return [command[1:] for command in self.commands if command[0] == "bezier"]

    def strokes(self) -> List[List[Any]]:
        return [command[1:] for command in self.commands if command[0] == "stroke"]

    def clear(self) -> None:
        self.commands.clear()
