"""
Geometric Primitives for patch evaluation and mesh building.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING
import numpy as np
import math

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass
class Vector:
    """
    A 3-component point/vector. The editor works in the XY plane, so z is 0
    for everything the user touches.
    """
    x: float
    y: float
    z: float = 0.0

    def __add__(self, other: Vector) -> Vector:
        return Vector(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector) -> Vector:
        return Vector(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> Vector:
        return Vector(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Vector:
        if scalar == 0.0: raise ZeroDivisionError
        return Vector(self.x / scalar, self.y / scalar, self.z / scalar)

    def __neg__(self) -> Vector:
        return Vector(-self.x, -self.y, -self.z)

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.x**2 + self.y**2 + self.z**2)

    def lerp(self, other: Vector, t: float) -> Vector:
        """Linear interpolation towards `other`; t=0 gives self, t=1 gives other."""
        return Vector(
            self.x + (other.x - self.x) * t,
            self.y + (other.y - self.y) * t,
            self.z + (other.z - self.z) * t,
        )

    def distance_to(self, other: Vector) -> float:
        return (self - other).magnitude

    def is_close(self, other: Vector, tol: float = 1e-9) -> bool:
        return self.distance_to(other) <= tol

    def copy(self) -> Vector:
        return Vector(self.x, self.y, self.z)

    def to_array(self) -> npt.NDArray[np.float64]:
        return np.array([self.x, self.y, self.z])

    @classmethod
    def from_array(cls, values: npt.ArrayLike) -> Vector:
        arr = np.asarray(values, dtype=np.float64).ravel()
        if arr.size == 2:
            return cls(float(arr[0]), float(arr[1]))
        if arr.size != 3:
            raise ValueError(f"Expected 2 or 3 coordinates, got {arr.size}.")
        return cls(float(arr[0]), float(arr[1]), float(arr[2]))


