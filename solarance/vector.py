"""A small two-dimensional vector type used for positions and velocities."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Vec2:
    """An immutable 2D vector."""

    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_angle(cls, angle: float) -> Vec2:
        """Return the unit vector pointing at ``angle`` radians."""
        return cls(math.cos(angle), math.sin(angle))

    def length(self) -> float:
        """Return the Euclidean length of the vector."""
        return math.hypot(self.x, self.y)

    def normalize(self) -> Vec2:
        """Return a unit vector with the same direction.

        Raises ValueError for a zero-length vector, which has no direction.
        """
        size = self.length()
        if size == 0.0 or not math.isfinite(size):
            raise ValueError("cannot normalize a zero-length or non-finite vector")
        return Vec2(self.x / size, self.y / size)

    def __add__(self, other: Vec2) -> Vec2:
        if not isinstance(other, Vec2):
            return NotImplemented
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2) -> Vec2:
        if not isinstance(other, Vec2):
            return NotImplemented
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vec2:
        if not isinstance(scalar, (int, float)):
            return NotImplemented
        return Vec2(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __neg__(self) -> Vec2:
        return Vec2(-self.x, -self.y)

    def __iter__(self):
        yield self.x
        yield self.y


ZERO = Vec2(0.0, 0.0)