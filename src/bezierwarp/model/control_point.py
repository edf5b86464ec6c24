"""
Control points and the arena that owns them.

Patches never hold coordinates directly: they hold integer handles into a
PointArena. Two patches that share an edge store the same handle, so moving
that point moves both patches at once.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Iterable, Iterator, Optional

from bezierwarp.model.geometry_primitives import Vector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MirrorLink:
    """
    Continuity constraint: keep point `other` symmetric to the owning point
    about point `reference`, i.e. other = reference + (reference - self).
    """
    other: int
    reference: int


@dataclass
class ControlPoint:
    """A control point of the composite surface."""
    x: float
    y: float
    z: float = 0.0
    mirror_point: Optional[MirrorLink] = None

    @property
    def position(self) -> Vector:
        return Vector(self.x, self.y, self.z)

    def set_position(self, value: Vector) -> None:
        self.x, self.y, self.z = value.x, value.y, value.z

    @classmethod
    def from_vector(cls, value: Vector) -> ControlPoint:
        return cls(value.x, value.y, value.z)


@dataclass
class PointArena:
    """Stable integer handles for every control point of one composite patch."""
    points: list[ControlPoint] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)

    def __getitem__(self, index: int) -> ControlPoint:
        return self.points[index]

    def __iter__(self) -> Iterator[ControlPoint]:
        return iter(self.points)

    def add(self, point: ControlPoint | Vector) -> int:
        """Store a point and return its handle."""
        if isinstance(point, Vector):
            point = ControlPoint.from_vector(point)
        self.points.append(point)
        return len(self.points) - 1

    def position(self, index: int) -> Vector:
        return self.points[index].position

    def mirror(self, index: int, other: Optional[int], reference: Optional[int]) -> None:
        """Link point `index` to mirror `other` about `reference`; None clears the link."""
        if other is not None and reference is not None:
            self.points[index].mirror_point = MirrorLink(other=other, reference=reference)
        else:
            self.points[index].mirror_point = None

    def clear_mirrors(self) -> None:
        for point in self.points:
            point.mirror_point = None

    def move_by(self, index: int, offset: Vector, mirror: bool = False) -> None:
        """
        Translate a point. With `mirror` set and a link present, the linked
        point is repositioned symmetrically about the link's reference.
        """
        point = self.points[index]
        point.set_position(point.position + offset)

        if mirror and point.mirror_point is not None:
            link = point.mirror_point
            reference = self.points[link.reference].position
            self.points[link.other].set_position(reference + (reference - point.position))

    def move_to(self, index: int, position: Vector, mirror: bool = False) -> None:
        self.move_by(index, position - self.points[index].position, mirror)

    def compact(self, used: Iterable[int]) -> dict[int, int]:
        """
        Drop every point whose handle is not in `used`.

        Surviving points keep their relative order. Mirror links pointing at a
        dropped point are cleared.

        Returns:
            Mapping from old handles to new handles for the surviving points.
        """
        keep = sorted(set(used))
        remap = {old: new for new, old in enumerate(keep)}
        survivors = [self.points[old] for old in keep]

        for point in survivors:
            link = point.mirror_point
            if link is None:
                continue
            if link.other in remap and link.reference in remap:
                point.mirror_point = MirrorLink(remap[link.other], remap[link.reference])
            else:
                point.mirror_point = None

        dropped = len(self.points) - len(survivors)
        self.points = survivors
        if dropped:
            logger.debug(f"Arena compacted: dropped {dropped} unreachable points, {len(survivors)} remain.")
        return remap
