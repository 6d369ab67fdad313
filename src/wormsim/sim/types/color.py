from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Hsl:
    h: float
    s: float
    l: float

    def css(self) -> str:
        return f"hsl({self.h:g},{self.s:g}%,{self.l:g}%)"

    def jittered(self, dh: float, ds: float, dl: float) -> "Hsl":
        return Hsl(self.h + dh, self.s + ds, self.l + dl)
