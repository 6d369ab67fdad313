from __future__ import annotations

import math
from dataclasses import dataclass

NORMALIZE_EPSILON = 1e-6


@dataclass(slots=True)
class Vec2:
    """Mutable 2D vector.

    Named methods mutate in place and return ``self`` so calls can be chained.
    Operators and the ``added``/``subtracted``/``scaled`` helpers always build
    a new instance.
    """

    x: float = 0.0
    y: float = 0.0

    def set(self, x: float = 0.0, y: float = 0.0) -> "Vec2":
        self.x = x
        self.y = y
        return self

    def add(self, other: "Vec2") -> "Vec2":
        self.x += other.x
        self.y += other.y
        return self

    def sub(self, other: "Vec2") -> "Vec2":
        self.x -= other.x
        self.y -= other.y
        return self

    def div(self, other: "Vec2") -> "Vec2":
        self.x /= other.x
        self.y /= other.y
        return self

    def scale(self, factor: float) -> "Vec2":
        self.x *= factor
        self.y *= factor
        return self

    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y)

    def magnitude_squared(self) -> float:
        return self.x * self.x + self.y * self.y

    def normalize(self) -> "Vec2":
        # epsilon keeps the zero vector at zero instead of raising
        mag = math.sqrt(self.x * self.x + self.y * self.y) + NORMALIZE_EPSILON
        self.x /= mag
        self.y /= mag
        return self

    def angle(self) -> float:
        return math.atan2(self.y, self.x)

    def rotate(self, theta: float) -> "Vec2":
        s = math.sin(theta)
        c = math.cos(theta)
        x = self.x * c - self.y * s
        y = self.x * s + self.y * c
        self.x = x
        self.y = y
        return self

    def look_at(self, target: "Vec2") -> "Vec2":
        mag = self.magnitude()
        theta = math.atan2(target.y - self.y, target.x - self.x)
        self.rotate(theta - self.angle())
        self.normalize()
        self.scale(mag)
        return self

    def copy_from(self, other: "Vec2") -> "Vec2":
        self.x = other.x
        self.y = other.y
        return self

    def clone(self) -> "Vec2":
        return Vec2(self.x, self.y)

    def to_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)

    @staticmethod
    def added(a: "Vec2", b: "Vec2") -> "Vec2":
        return Vec2(a.x + b.x, a.y + b.y)

    @staticmethod
    def subtracted(a: "Vec2", b: "Vec2") -> "Vec2":
        return Vec2(a.x - b.x, a.y - b.y)

    @staticmethod
    def scaled(v: "Vec2", factor: float) -> "Vec2":
        return Vec2(v.x * factor, v.y * factor)

    def __add__(self, other: "Vec2") -> "Vec2":
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vec2") -> "Vec2":
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> "Vec2":
        return Vec2(self.x * scalar, self.y * scalar)

    def __truediv__(self, scalar: float) -> "Vec2":
        return Vec2(self.x / scalar, self.y / scalar)
