"""
Bicubic Bezier patch.

Control point layout (handles into the owning PointArena), row-major with
row 0 at the bottom:

    12 -- 13 -- 14 -- 15      v = 1
    |     |     |     |
    8 --- 9 --- 10 -- 11
    |     |     |     |
    4 --- 5 --- 6 --- 7
    |     |     |     |
    0 --- 1 --- 2 --- 3       v = 0
  u = 0             u = 1
"""
from __future__ import annotations

from enum import StrEnum
from typing import Sequence

from bezierwarp.model.bezier import basis3
from bezierwarp.model.control_point import ControlPoint, PointArena
from bezierwarp.model.domain import Domain
from bezierwarp.model.geometry_primitives import Vector

CORNERS = (0, 3, 12, 15)
INTERIOR = (5, 6, 9, 10)
OUTLINE = (0, 1, 2, 3, 7, 11, 15, 14, 13, 12, 8, 4)


class ComputeMode(StrEnum):
    BEZIER = "bezier"
    LINEAR = "linear"


def parse_mode(mode: str | ComputeMode) -> ComputeMode:
    try:
        return ComputeMode(mode)
    except ValueError:
        raise ValueError(f"Invalid patch compute mode: {mode!r}. "
                         f"'mode' must be 'bezier' or 'linear'.") from None


class BicubicPatch:
    """One degree 3x3 piece of the composite surface."""

    def __init__(self, arena: PointArena, domain: Domain, indices: Sequence[int]) -> None:
        if len(indices) != 16:
            raise ValueError(f"A bicubic patch needs 16 control points, got {len(indices)}.")
        if any(i is None for i in indices):
            raise ValueError("A bicubic patch cannot have unset control points.")
        self.arena = arena
        self.domain = domain
        self.indices: list[int] = list(indices)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(domain={self.domain}, indices={self.indices})"

    @property
    def control_points(self) -> list[ControlPoint]:
        return [self.arena[i] for i in self.indices]

    def point(self, k: int) -> Vector:
        """Position of the k-th control point of this patch."""
        return self.arena[self.indices[k]].position

    def positions(self) -> list[Vector]:
        return [self.arena[i].position for i in self.indices]

    def rail(self, k: int, direction: str) -> list[int]:
        """
        Handles of one row ("u", running along u) or one column ("v", running
        along v) of the control net.
        """
        if not 0 <= k <= 3:
            raise ValueError(f"Rail index must be 0..3, got {k}.")
        if direction == "u":
            return [self.indices[4 * k + x] for x in range(4)]
        if direction == "v":
            return [self.indices[4 * y + k] for y in range(4)]
        raise ValueError(f"Rail direction must be 'u' or 'v', got {direction!r}.")

    def outline(self) -> list[int]:
        """The 12 boundary handles as a closed loop starting at the bottom-left corner."""
        return [self.indices[k] for k in OUTLINE]

    def corners(self) -> dict[str, int]:
        return {
            "bottom_left": self.indices[0],
            "bottom_right": self.indices[3],
            "top_left": self.indices[12],
            "top_right": self.indices[15],
        }

    def remap(self, mapping: dict[int, int]) -> None:
        self.indices = [mapping[i] for i in self.indices]

    def compute(self, u: float, v: float, mode: str | ComputeMode = ComputeMode.BEZIER) -> Vector:
        """
        Evaluate the patch at global (u, v).

        Args:
            u: Global u coordinate, remapped through the domain.
            v: Global v coordinate, remapped through the domain.
            mode: "bezier" for tensor-product evaluation of all 16 points,
                "linear" for bilinear blending of the 4 corners.

        Raises:
            ValueError: For any other mode.
        """
        mode = parse_mode(mode)
        lu, lv = self.domain.to_local(u, v)
        pts = self.positions()

        if mode is ComputeMode.LINEAR:
            bottom = pts[0].lerp(pts[3], lu)
            top = pts[12].lerp(pts[15], lu)
            return bottom.lerp(top, lv)

        bu = [basis3(x, lu) for x in range(4)]
        bv = [basis3(y, lv) for y in range(4)]
        rx = ry = rz = 0.0
        for y in range(4):
            for x in range(4):
                b = bu[x] * bv[y]
                p = pts[y * 4 + x]
                rx += p.x * b
                ry += p.y * b
                rz += p.z * b
        return Vector(rx, ry, rz)

    def update(self, mode: str | ComputeMode) -> None:
        """
        Recompute the points that depend on the interpolation mode. In linear
        mode only the corners are user-editable, so the outline and interior
        points are derived from them; bezier mode leaves everything as is.
        """
        mode = parse_mode(mode)
        if mode is not ComputeMode.LINEAR:
            return

        cp = self.control_points
        p0, p3, p12, p15 = (cp[k].position for k in CORNERS)

        cp[1].set_position(p0.lerp(p3, 1 / 3))
        cp[2].set_position(p0.lerp(p3, 2 / 3))

        cp[4].set_position(p0.lerp(p12, 1 / 3))
        cp[8].set_position(p0.lerp(p12, 2 / 3))

        cp[13].set_position(p12.lerp(p15, 1 / 3))
        cp[14].set_position(p12.lerp(p15, 2 / 3))

        cp[7].set_position(p3.lerp(p15, 1 / 3))
        cp[11].set_position(p3.lerp(p15, 2 / 3))

        cp[5].set_position(cp[4].position.lerp(cp[7].position, 1 / 3))
        cp[6].set_position(cp[4].position.lerp(cp[7].position, 2 / 3))
        cp[9].set_position(cp[8].position.lerp(cp[11].position, 1 / 3))
        cp[10].set_position(cp[8].position.lerp(cp[11].position, 2 / 3))
