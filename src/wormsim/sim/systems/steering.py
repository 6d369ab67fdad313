from __future__ import annotations

from ..core.worm import Worm
from ..utils.vector import Vec2


def is_outside_viewport(worm: Worm, width: float, height: float) -> bool:
    return worm.get_bounds().outside(width, height)


def apply_behaviours(worm: Worm, center: Vec2, width: float, height: float) -> bool:
    """Accumulate this tick's steering for ``worm``.

    Every worm wanders. A worm whose body has left the viewport entirely also
    seeks the viewport centre. Returns whether the worm is seeking.
    """
    worm.wander()
    if is_outside_viewport(worm, width, height):
        worm.seek(center)
        return True
    return False
