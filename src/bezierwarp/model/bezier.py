"""
Cubic Bezier helpers: Bernstein basis of degree 3, its derivative and
de Casteljau subdivision.
"""
from __future__ import annotations

from typing import Sequence

from bezierwarp.model.geometry_primitives import Vector


def basis3(i: int, t: float) -> float:
    """
    Bernstein polynomial of degree 3.

    Args:
        i: Basis index, 0 to 3.
        t: Curve parameter.

    Raises:
        ValueError: If `i` is not 0, 1, 2 or 3.

    Returns:
        The value of B(i, 3) at `t`.
    """
    tt = t * t
    mt = 1.0 - t
    mtt = mt * mt
    if i == 0:
        return mtt * mt
    elif i == 1:
        return 3.0 * t * mtt
    elif i == 2:
        return 3.0 * tt * mt
    elif i == 3:
        return tt * t
    else:
        raise ValueError(f"Invalid index for B3: {i}. 'i' must be 0, 1, 2 or 3.")


def derivative3(i: int, t: float) -> float:
    """
    First derivative of the degree 3 Bernstein polynomial.

    Raises:
        ValueError: If `i` is not 0, 1, 2 or 3.
    """
    mt = 1.0 - t
    if i == 0:
        return -3.0 * mt * mt
    elif i == 1:
        return 3.0 * (t - 1.0) * (3.0 * t - 1.0)
    elif i == 2:
        return 6.0 * t - 9.0 * t * t
    elif i == 3:
        return 3.0 * t * t
    else:
        raise ValueError(f"Invalid index for B3': {i}. 'i' must be 0, 1, 2 or 3.")


def de_casteljau_step(t: float, points: Sequence[Vector]) -> list[Vector]:
    """One round of the triangle scheme: lerp every consecutive pair by `t`."""
    return [points[k].lerp(points[k + 1], t) for k in range(len(points) - 1)]


def subdivide_curve(t: float, points: Sequence[Vector]) -> tuple[list[Vector], list[Vector]]:
    """
    Split a Bezier curve into two curves at the local parameter `t`.

    The parameter is local to the curve, so callers holding a global patch
    coordinate must remap it through the patch domain first.

    Args:
        t: Split parameter in the curve's own [0, 1] range.
        points: Control points of the curve. They are copied, never modified.

    Returns:
        A tuple (c0, c1). c0 spans [0, t] of the original curve and c1 spans
        [t, 1]; c0[-1] and c1[0] are both the curve point at `t`.
    """
    if len(points) < 2:
        raise ValueError(f"A curve needs at least 2 points, got {len(points)}.")

    current = [p.copy() for p in points]
    c0 = [current[0].copy()]
    c1 = [current[-1].copy()]

    while len(current) > 1:
        current = de_casteljau_step(t, current)
        c0.append(current[0].copy())
        c1.insert(0, current[-1].copy())

    return c0, c1


class BezierCurve3:
    """A cubic Bezier curve."""

    def __init__(self, points: Sequence[Vector]) -> None:
        if len(points) != 4:
            raise ValueError(f"4 points are required for a cubic Bezier curve, got {len(points)}.")
        self.points = list(points)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(points={self.points})"

    def compute(self, t: float) -> Vector:
        result = Vector(0.0, 0.0, 0.0)
        for i, p in enumerate(self.points):
            result = result + p * basis3(i, t)
        return result

    def derivative(self, t: float) -> Vector:
        result = Vector(0.0, 0.0, 0.0)
        for i, p in enumerate(self.points):
            result = result + p * derivative3(i, t)
        return result

    def subdivide(self, t: float) -> tuple[BezierCurve3, BezierCurve3]:
        c0, c1 = subdivide_curve(t, self.points)
        return BezierCurve3(c0), BezierCurve3(c1)
