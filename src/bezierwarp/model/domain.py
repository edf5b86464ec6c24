from __future__ import annotations

from dataclasses import dataclass, asdict


@dataclass(frozen=True)
class Domain:
    """
    Axis-aligned rectangle in parametric (u, v) space. Each bicubic patch of
    the composite mesh owns the region of [0, 1]^2 it is evaluated over.
    """
    u0: float
    v0: float
    u1: float
    v1: float

    def contains(self, u: float, v: float) -> bool:
        """Inclusive on both ends of both axes."""
        return self.u0 <= u <= self.u1 and self.v0 <= v <= self.v1

    @property
    def width(self) -> float:
        return self.u1 - self.u0

    @property
    def height(self) -> float:
        return self.v1 - self.v0

    @property
    def is_degenerate(self) -> bool:
        """True for the zero-area strips left by a cut on an existing boundary."""
        return self.u1 <= self.u0 or self.v1 <= self.v0

    def local_u(self, u: float) -> float:
        return (u - self.u0) / (self.u1 - self.u0)

    def local_v(self, v: float) -> float:
        return (v - self.v0) / (self.v1 - self.v0)

    def to_local(self, u: float, v: float) -> tuple[float, float]:
        """Remap global coordinates into this domain's [0, 1]^2."""
        return self.local_u(u), self.local_v(v)

    def split_u(self, u: float) -> tuple[Domain, Domain]:
        """Left and right halves of a vertical cut at `u`."""
        return Domain(self.u0, self.v0, u, self.v1), Domain(u, self.v0, self.u1, self.v1)

    def split_v(self, v: float) -> tuple[Domain, Domain]:
        """Bottom and top halves of a horizontal cut at `v`."""
        return Domain(self.u0, self.v0, self.u1, v), Domain(self.u0, v, self.u1, self.v1)

    def to_dict(self) -> dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> Domain:
        try:
            return cls(
                u0=float(data["u0"]),
                v0=float(data["v0"]),
                u1=float(data["u1"]),
                v1=float(data["v1"]),
            )
        except KeyError as e:
            raise ValueError(f"Domain data is missing key {e}.") from e


UNIT_DOMAIN = Domain(0.0, 0.0, 1.0, 1.0)
