from __future__ import annotations

import math
import re
from typing import List, Tuple

import pygame

Point = Tuple[float, float]

_FUNCTION_COLOR = re.compile(r"^\s*(rgba?|hsla?)\s*\(([^)]*)\)\s*$", re.IGNORECASE)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def parse_css_color(style: str) -> pygame.Color:
    """Convert a CSS-style colour string into a ``pygame.Color``.

    Understands ``rgb()``, ``rgba()``, ``hsl()``, ``hsla()`` and anything
    ``pygame.Color`` accepts directly (hex strings, colour names). Out of range
    channels are clamped the way browsers clamp them.
    """
    match = _FUNCTION_COLOR.match(style)
    if match is None:
        return pygame.Color(style.strip())

    kind = match.group(1).lower()
    parts = [part.strip().rstrip("%") for part in match.group(2).split(",")]
    values = [float(part) for part in parts]
    alpha = _clamp(values[3], 0.0, 1.0) if len(values) > 3 else 1.0

    if kind.startswith("rgb"):
        r, g, b = (int(round(_clamp(v, 0.0, 255.0))) for v in values[:3])
        return pygame.Color(r, g, b, int(round(alpha * 255)))

    color = pygame.Color(0, 0, 0)
    color.hsla = (
        values[0] % 360.0,
        _clamp(values[1], 0.0, 100.0),
        _clamp(values[2], 0.0, 100.0),
        100.0,
    )
    color.a = int(round(alpha * 255))
    return color


def _cubic_point(p0: Point, p1: Point, p2: Point, p3: Point, t: float) -> Point:
    u = 1.0 - t
    a = u * u * u
    b = 3.0 * u * u * t
    c = 3.0 * u * t * t
    d = t * t * t
    return (
        a * p0[0] + b * p1[0] + c * p2[0] + d * p3[0],
        a * p0[1] + b * p1[1] + c * p2[1] + d * p3[1],
    )


class PygameCanvas:
    """Canvas backed by a ``pygame.Surface``.

    Cubic curves are flattened into ``curve_steps`` straight pieces. Each
    stroke is rendered opaque into a scratch layer and blended once, so a
    translucent ribbon does not darken where it overlaps itself.
    """

    def __init__(self, surface: pygame.Surface, curve_steps: int = 12):
        self.surface = surface
        self.curve_steps = max(1, curve_steps)
        self.stroke_style = "#000000"
        self.line_width = 1.0
        self.line_join = "miter"
        self.line_cap = "butt"
        self.global_alpha = 1.0
        self._subpaths: List[List[Point]] = []

    def _current(self) -> List[Point] | None:
        if self._subpaths and self._subpaths[-1]:
            return self._subpaths[-1]
        return None

    def begin_path(self) -> None:
        self._subpaths = []

    def move_to(self, x: float, y: float) -> None:
        self._subpaths.append([(x, y)])

    def line_to(self, x: float, y: float) -> None:
        current = self._current()
        if current is None:
            self.move_to(x, y)
            return
        current.append((x, y))

    def bezier_curve_to(
        self, c1x: float, c1y: float, c2x: float, c2y: float, x: float, y: float
    ) -> None:
        current = self._current()
        if current is None:
            # canvas semantics: an empty path starts at the first control point
            self.move_to(c1x, c1y)
            current = self._subpaths[-1]
        start = current[-1]
        steps = self.curve_steps
        for step in range(1, steps + 1):
            current.append(_cubic_point(start, (c1x, c1y), (c2x, c2y), (x, y), step / steps))

    def stroke(self) -> None:
        subpaths = [path for path in self._subpaths if path]
        if not subpaths:
            return
        color = parse_css_color(self.stroke_style)
        alpha = (color.a / 255.0) * _clamp(self.global_alpha, 0.0, 1.0)
        if alpha <= 0.0:
            return

        width = max(1.0, self.line_width)
        radius = width * 0.5
        pad = int(math.ceil(radius)) + 2
        xs = [p[0] for path in subpaths for p in path]
        ys = [p[1] for path in subpaths for p in path]
        left = int(math.floor(min(xs))) - pad
        top = int(math.floor(min(ys))) - pad
        layer_w = int(math.ceil(max(xs))) + pad - left
        layer_h = int(math.ceil(max(ys))) + pad - top

        layer = pygame.Surface((max(1, layer_w), max(1, layer_h)), pygame.SRCALPHA)
        opaque = pygame.Color(color.r, color.g, color.b, 255)
        round_ends = self.line_cap == "round"
        round_joins = self.line_join == "round"
        line_width = max(1, int(round(width)))

        for path in subpaths:
            local = [(p[0] - left, p[1] - top) for p in path]
            if len(local) > 1:
                pygame.draw.lines(layer, opaque, False, local, line_width)
            if round_joins:
                for point in local[1:-1]:
                    pygame.draw.circle(layer, opaque, point, radius)
            if round_ends:
                pygame.draw.circle(layer, opaque, local[0], radius)
                pygame.draw.circle(layer, opaque, local[-1], radius)

        layer.set_alpha(int(round(alpha * 255)))
        self.surface.blit(layer, (left, top))
