"""Catmull-Rom interpolation emitted as cubic Bezier segments."""

from __future__ import annotations

from typing import Protocol, Sequence

from ..utils.vector import Vec2

_I6 = 1.0 / 6.0


class CurveSink(Protocol):
    def bezier_curve_to(
        self, c1x: float, c1y: float, c2x: float, c2y: float, x: float, y: float
    ) -> None: ...


def curve_through_points(points: Sequence[Vec2], sink: CurveSink) -> int:
    """Append one cubic segment per interior quadruple of ``points`` to ``sink``.

    The segment for ``i`` runs from ``points[i - 2]`` to ``points[i - 1]`` using
    uniform Catmull-Rom tangents scaled by 1/6. Fewer than four points emit
    nothing. The caller is expected to have moved the sink to a start point.
    Returns the number of segments emitted.
    """
    emitted = 0
    for i in range(3, len(points)):
        p0 = points[i - 3]
        p1 = points[i - 2]
        p2 = points[i - 1]
        p3 = points[i]
        sink.bezier_curve_to(
            p2.x * _I6 + p1.x - p0.x * _I6,
            p2.y * _I6 + p1.y - p0.y * _I6,
            p3.x * -_I6 + p2.x + p1.x * _I6,
            p3.y * -_I6 + p2.y + p1.y * _I6,
            p2.x,
            p2.y,
        )
        emitted += 1
    return emitted
