"""
Composite Patch
===============
The editable surface: a grid of bicubic Bezier patches tiling the unit
parametric square.

Invariants kept by this module:
1. The cell domains tile [0, 1]^2 without gaps or overlaps. Every cell of a
   row shares the row's v-span and every cell of a column the column's u-span.
2. Grid neighbours share control point handles along their common edge.
3. Mirror links are derived data: they are rebuilt from scratch after every
   topology change by `relink_control_points`.

Classes:
    DomainTilingError: Raised when the tiling invariant is found broken.
    Patch: The composite surface.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Optional

from bezierwarp.model.bezier import subdivide_curve
from bezierwarp.model.bezier_patch import BicubicPatch, ComputeMode, parse_mode
from bezierwarp.model.control_point import ControlPoint, MirrorLink, PointArena
from bezierwarp.model.domain import Domain, UNIT_DOMAIN
from bezierwarp.model.geometry_primitives import Vector
from bezierwarp.model.grid import Grid

logger = logging.getLogger(__name__)

SerializedPatch = dict[str, Any]

TILING_TOLERANCE = 1e-12


class DomainTilingError(RuntimeError):
    """The cell domains no longer tile the unit square."""


class Patch:
    """
    A composite patch made of a grid of bicubic Bezier patches.
    """
    def __init__(self) -> None:
        self.arena = PointArena()
        self.bezier_patches: Grid[BicubicPatch] = Grid(0, 0)

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(rows={self.bezier_patches.row_count}, "
                f"cols={self.bezier_patches.col_count}, points={len(self.arena)})")

    @property
    def row_count(self) -> int:
        return self.bezier_patches.row_count

    @property
    def col_count(self) -> int:
        return self.bezier_patches.col_count

    def _new_point(self, position: Vector) -> int:
        return self.arena.add(ControlPoint.from_vector(position))

    # ------------------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------------------

    def init_from_corners(
        self,
        top_left: Vector,
        top_right: Vector,
        bottom_left: Vector,
        bottom_right: Vector,
    ) -> None:
        """
        Reset to a single bicubic patch spanned by the 4 corners. The other 12
        control points are interpolated so that the patch starts out flat.
        """
        self.arena = PointArena()
        pos: list[Optional[Vector]] = [None] * 16

        tl = pos[12] = top_left.copy()
        tr = pos[15] = top_right.copy()
        bl = pos[0] = bottom_left.copy()
        br = pos[3] = bottom_right.copy()

        pos[1] = bl.lerp(br, 1 / 3)
        pos[2] = bl.lerp(br, 2 / 3)

        pos[13] = tl.lerp(tr, 1 / 3)
        pos[14] = tl.lerp(tr, 2 / 3)

        pos[4] = bl.lerp(tl, 1 / 3)
        pos[8] = bl.lerp(tl, 2 / 3)

        pos[7] = br.lerp(tr, 1 / 3)
        pos[11] = br.lerp(tr, 2 / 3)

        # interior points sit on the two diagonals
        pos[5] = bl.lerp(tr, 1 / 3)
        pos[10] = bl.lerp(tr, 2 / 3)
        pos[9] = tl.lerp(br, 1 / 3)
        pos[6] = tl.lerp(br, 2 / 3)

        indices = [self._new_point(p) for p in pos]

        self.bezier_patches = Grid(1, 1)
        self.bezier_patches.set(0, 0, BicubicPatch(self.arena, UNIT_DOMAIN, indices))

        self.relink_control_points()
        logger.info("Patch initialized from corners.")

    # ------------------------------------------------------------------------------
    # Continuity links
    # ------------------------------------------------------------------------------

    def relink_control_points(self) -> None:
        """
        Rebuild every mirror link from the current grid topology.

        Links across a shared edge pair a handle of this cell with the facing
        handle of the neighbour, anchored at the shared corner. A corner of the
        whole mesh (no neighbour on either adjacent side) links its own two
        handles to each other, so that the two outer edges meeting there stay
        tangent to one another.
        """
        self.arena.clear_mirrors()
        grid = self.bezier_patches
        mirror = self.arena.mirror

        for i in range(grid.row_count):
            for j in range(grid.col_count):
                cp = grid.get(i, j).indices
                left = grid.get(i, j - 1)
                right = grid.get(i, j + 1)
                bottom = grid.get(i - 1, j)
                top = grid.get(i + 1, j)

                if left:
                    mirror(cp[1], left.indices[2], cp[0])
                    mirror(cp[13], left.indices[14], cp[12])

                if right:
                    mirror(cp[2], right.indices[1], cp[3])
                    mirror(cp[14], right.indices[13], cp[15])

                if bottom:
                    mirror(cp[4], bottom.indices[8], cp[0])
                    mirror(cp[7], bottom.indices[11], cp[3])

                if top:
                    mirror(cp[8], top.indices[4], cp[12])
                    mirror(cp[11], top.indices[7], cp[15])

                if not left and not bottom:
                    mirror(cp[1], cp[4], cp[0])
                    mirror(cp[4], cp[1], cp[0])

                if not left and not top:
                    mirror(cp[8], cp[13], cp[12])
                    mirror(cp[13], cp[8], cp[12])

                if not right and not top:
                    mirror(cp[14], cp[11], cp[15])
                    mirror(cp[11], cp[14], cp[15])

                if not right and not bottom:
                    mirror(cp[2], cp[7], cp[3])
                    mirror(cp[7], cp[2], cp[3])

        logger.debug(f"Relinked control points for a {grid.row_count}x{grid.col_count} grid.")

    # ------------------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------------------

    def compute(self, u: float, v: float, mode: str | ComputeMode = ComputeMode.BEZIER) -> Vector:
        """
        Evaluate the surface at global (u, v).

        Cells are scanned row-major and the first whose domain contains the
        point is used, so points on a shared boundary resolve to the lower /
        left cell. Zero-area cells are skipped, a neighbour always covers
        their boundary.

        Raises:
            ValueError: If `mode` is invalid.
            DomainTilingError: If no cell contains (u, v).
        """
        mode = parse_mode(mode)
        for p in self.bezier_patches:
            if p.domain.is_degenerate:
                continue
            if p.domain.contains(u, v):
                return p.compute(u, v, mode)
        raise DomainTilingError(f"No patch domain contains (u={u}, v={v}).")

    def update(self, mode: str | ComputeMode) -> None:
        """Refresh mode-dependent control points of every cell."""
        self.bezier_patches.for_each(lambda p: p.update(mode))

    def control_points(self) -> list[int]:
        """Unique handles in row-major, first-encounter order."""
        seen: dict[int, None] = {}
        for p in self.bezier_patches:
            for h in p.indices:
                seen.setdefault(h, None)
        return list(seen)

    def corners(self) -> dict[str, Vector]:
        """The four outer corners of the whole mesh."""
        grid = self.bezier_patches
        rows, cols = grid.row_count, grid.col_count
        return {
            "top_left": grid.get(rows - 1, 0).point(12),
            "top_right": grid.get(rows - 1, cols - 1).point(15),
            "bottom_left": grid.get(0, 0).point(0),
            "bottom_right": grid.get(0, cols - 1).point(3),
        }

    def move_point(self, index: int, offset: Vector, mirror: bool = False) -> None:
        self.arena.move_by(index, offset, mirror)

    # ------------------------------------------------------------------------------
    # Subdivision
    # ------------------------------------------------------------------------------

    def subdivide_horizontal(self, v: float) -> None:
        """
        Split the row containing `v` into two rows along the line v = const.

        Raises:
            ValueError: If no row spans `v`.
        """
        grid = self.bezier_patches
        rows = grid.rows()
        row_index = next(
            (i for i, r in enumerate(rows) if r[0].domain.v0 <= v <= r[0].domain.v1 and r[0].domain.height > 0.0),
            None
        )
        if row_index is None:
            raise ValueError(f"Cannot subdivide at v={v}: no row spans it.")

        bottom_patches: list[BicubicPatch] = []
        top_patches: list[BicubicPatch] = []

        #   a1   b1   c1   d1
        #   |    |    |    |
        #   ------------------  cut
        #   |    |    |    |
        #   a0   b0   c0   d0
        for j, cur in enumerate(rows[row_index]):
            t = self._local_cut(cur.domain.v0, cur.domain.v1, v, axis="v")

            # one de Casteljau split per column of the control net
            rails = [
                subdivide_curve(t, [cur.point(4 * y + x) for y in range(4)])
                for x in range(4)
            ]

            pts_bottom: list[Optional[int]] = [None] * 16
            pts_top: list[Optional[int]] = [None] * 16

            for x in range(4):
                if x == 0 and j > 0:
                    prev_bottom = bottom_patches[j - 1].indices
                    prev_top = top_patches[j - 1].indices
                    for y in range(4):
                        pts_bottom[4 * y] = prev_bottom[4 * y + 3]
                        pts_top[4 * y] = prev_top[4 * y + 3]
                    continue

                c0, c1 = rails[x]
                pts_bottom[x] = cur.indices[x]
                pts_bottom[4 + x] = self._new_point(c0[1])
                pts_bottom[8 + x] = self._new_point(c0[2])
                pts_bottom[12 + x] = pts_top[x] = self._new_point(c0[3])
                pts_top[4 + x] = self._new_point(c1[1])
                pts_top[8 + x] = self._new_point(c1[2])
                pts_top[12 + x] = cur.indices[12 + x]

            domain_bottom, domain_top = cur.domain.split_v(v)
            bottom_patches.append(BicubicPatch(self.arena, domain_bottom, pts_bottom))
            top_patches.append(BicubicPatch(self.arena, domain_top, pts_top))

        grid.insert_row(row_index + 1)
        grid.insert_row(row_index + 2)
        for j in range(grid.col_count):
            grid.set(row_index + 1, j, bottom_patches[j])
            grid.set(row_index + 2, j, top_patches[j])
        grid.delete_row(row_index)

        self._compact()
        self.relink_control_points()
        logger.info(f"Horizontal subdivision at v={v:g} (row {row_index}); "
                    f"grid is now {grid.row_count}x{grid.col_count}.")

    def subdivide_vertical(self, u: float) -> None:
        """
        Split the column containing `u` into two columns along the line u = const.

        Raises:
            ValueError: If no column spans `u`.
        """
        grid = self.bezier_patches
        columns = grid.columns()
        col_index = next(
            (j for j, c in enumerate(columns) if c[0].domain.u0 <= u <= c[0].domain.u1 and c[0].domain.width > 0.0),
            None
        )
        if col_index is None:
            raise ValueError(f"Cannot subdivide at u={u}: no column spans it.")

        left_patches: list[BicubicPatch] = []
        right_patches: list[BicubicPatch] = []

        #  d0 --------|-------- d1
        #  c0 --------|-------- c1
        #  b0 --------|-------- b1
        #  a0 --------|-------- a1
        #            cut
        for i, cur in enumerate(columns[col_index]):
            t = self._local_cut(cur.domain.u0, cur.domain.u1, u, axis="u")

            # one de Casteljau split per row of the control net
            rails = [
                subdivide_curve(t, [cur.point(4 * y + x) for x in range(4)])
                for y in range(4)
            ]

            pts_left: list[Optional[int]] = [None] * 16
            pts_right: list[Optional[int]] = [None] * 16

            for y in range(4):
                if y == 0 and i > 0:
                    prev_left = left_patches[i - 1].indices
                    prev_right = right_patches[i - 1].indices
                    for x in range(4):
                        pts_left[x] = prev_left[12 + x]
                        pts_right[x] = prev_right[12 + x]
                    continue

                c0, c1 = rails[y]
                pts_left[4 * y] = cur.indices[4 * y]
                pts_left[4 * y + 1] = self._new_point(c0[1])
                pts_left[4 * y + 2] = self._new_point(c0[2])
                pts_left[4 * y + 3] = pts_right[4 * y] = self._new_point(c0[3])
                pts_right[4 * y + 1] = self._new_point(c1[1])
                pts_right[4 * y + 2] = self._new_point(c1[2])
                pts_right[4 * y + 3] = cur.indices[4 * y + 3]

            domain_left, domain_right = cur.domain.split_u(u)
            left_patches.append(BicubicPatch(self.arena, domain_left, pts_left))
            right_patches.append(BicubicPatch(self.arena, domain_right, pts_right))

        grid.insert_column(col_index + 1)
        grid.insert_column(col_index + 2)
        for i in range(grid.row_count):
            grid.set(i, col_index + 1, left_patches[i])
            grid.set(i, col_index + 2, right_patches[i])
        grid.delete_column(col_index)

        self._compact()
        self.relink_control_points()
        logger.info(f"Vertical subdivision at u={u:g} (column {col_index}); "
                    f"grid is now {grid.row_count}x{grid.col_count}.")

    @staticmethod
    def _local_cut(lo: float, hi: float, value: float, axis: str) -> float:
        """Remap a global cut coordinate into the local [0, 1] of a cell."""
        if hi - lo <= 0.0:
            raise ValueError(f"Cannot subdivide a cell of zero extent along {axis} "
                             f"({axis}0={lo}, {axis}1={hi}).")
        t = (value - lo) / (hi - lo)
        if t <= 0.0 or t >= 1.0:
            logger.warning(f"Cut at {axis}={value:g} lies on an existing boundary; "
                           f"a zero-area strip of patches is created.")
        return t

    def _compact(self) -> None:
        """Drop the control points no patch references any more."""
        remap = self.arena.compact(self.control_points())
        for p in self.bezier_patches:
            p.remap(remap)

    # ------------------------------------------------------------------------------
    # Consistency
    # ------------------------------------------------------------------------------

    def validate_tiling(self) -> None:
        """
        Check that the cell domains tile the unit square.

        Raises:
            DomainTilingError: On a gap, an overlap, a missing cell or a
                misaligned row/column.
        """
        self._validate_grid(self.bezier_patches)

    @staticmethod
    def _validate_grid(grid: Grid[BicubicPatch]) -> None:
        if grid.row_count == 0 or grid.col_count == 0:
            raise DomainTilingError("Patch has no cells.")
        if any(p is None for p in grid):
            raise DomainTilingError("Patch grid has empty cells.")

        def close(a: float, b: float) -> bool:
            return math.isclose(a, b, rel_tol=0.0, abs_tol=TILING_TOLERANCE)

        for i, row in enumerate(grid.rows()):
            v0, v1 = row[0].domain.v0, row[0].domain.v1
            expected_v0 = 0.0 if i == 0 else grid.get(i - 1, 0).domain.v1
            if not close(v0, expected_v0):
                raise DomainTilingError(f"Row {i} starts at v={v0}, expected {expected_v0}.")
            if any(not (close(p.domain.v0, v0) and close(p.domain.v1, v1)) for p in row):
                raise DomainTilingError(f"Cells of row {i} do not share a v-span.")

        for j, col in enumerate(grid.columns()):
            u0, u1 = col[0].domain.u0, col[0].domain.u1
            expected_u0 = 0.0 if j == 0 else grid.get(0, j - 1).domain.u1
            if not close(u0, expected_u0):
                raise DomainTilingError(f"Column {j} starts at u={u0}, expected {expected_u0}.")
            if any(not (close(p.domain.u0, u0) and close(p.domain.u1, u1)) for p in col):
                raise DomainTilingError(f"Cells of column {j} do not share a u-span.")

        if not close(grid.get(grid.row_count - 1, 0).domain.v1, 1.0):
            raise DomainTilingError("Rows do not reach v=1.")
        if not close(grid.get(0, grid.col_count - 1).domain.u1, 1.0):
            raise DomainTilingError("Columns do not reach u=1.")

    # ------------------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------------------

    def save(self) -> SerializedPatch:
        """
        Serialize the point graph.

        Reference ids are dense and follow the row-major cell order, points in
        index order within a cell; a shared point is emitted once.
        """
        refs: dict[int, int] = {}
        for p in self.bezier_patches:
            for h in p.indices:
                refs.setdefault(h, len(refs))

        control_points = []
        for handle in refs:
            point = self.arena[handle]
            mirror_data = None
            if point.mirror_point is not None:
                link = point.mirror_point
                if link.other not in refs or link.reference not in refs:
                    raise RuntimeError(f"Mirror link of point {handle} targets a point outside the mesh.")
                mirror_data = {"other": refs[link.other], "reference": refs[link.reference]}
            control_points.append({
                "x": point.x,
                "y": point.y,
                "z": point.z,
                "mirrorPoint": mirror_data,
            })

        patches = [
            {
                "controlPoints": [refs[h] for h in p.indices],
                "domain": p.domain.to_dict(),
            }
            for p in self.bezier_patches
        ]

        return {
            "rows": self.bezier_patches.row_count,
            "cols": self.bezier_patches.col_count,
            "patches": patches,
            "controlPoints": control_points,
        }

    def restore(self, data: SerializedPatch) -> None:
        """
        Replace this patch with a serialized one.

        Points are rebuilt first, mirror links second, patches last.

        Raises:
            ValueError: If the data is malformed.
            DomainTilingError: If the restored domains do not tile [0, 1]^2.
        """
        try:
            rows = data["rows"]
            cols = data["cols"]
            patches_data = list(data["patches"])
            points_data = list(data["controlPoints"])
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed patch data: {e!r}") from e

        for count in (rows, cols):
            if not isinstance(count, int) or isinstance(count, bool):
                raise ValueError(f"Row and column counts must be integers, got {count!r}.")
        if rows <= 0 or cols <= 0:
            raise ValueError(f"Patch data must have at least one row and column, got {rows}x{cols}.")
        if len(patches_data) != rows * cols:
            raise ValueError(f"Patch data declares {rows}x{cols} cells but holds {len(patches_data)} patches.")

        n_points = len(points_data)

        def check_ref(ref: Any, what: str) -> int:
            if not isinstance(ref, int) or isinstance(ref, bool) or not 0 <= ref < n_points:
                raise ValueError(f"Invalid {what} reference {ref!r} (have {n_points} points).")
            return ref

        try:
            arena = PointArena([
                ControlPoint(float(p["x"]), float(p["y"]), float(p.get("z", 0.0)))
                for p in points_data
            ])

            for i, p in enumerate(points_data):
                mirror_data = p.get("mirrorPoint")
                if mirror_data:
                    arena[i].mirror_point = MirrorLink(
                        other=check_ref(mirror_data.get("other"), "mirror"),
                        reference=check_ref(mirror_data.get("reference"), "mirror anchor"),
                    )

            grid: Grid[BicubicPatch] = Grid(rows, cols)
            for k, patch_data in enumerate(patches_data):
                indices = [check_ref(r, "control point") for r in patch_data["controlPoints"]]
                domain = Domain.from_dict(patch_data["domain"])
                grid.set(k // cols, k % cols, BicubicPatch(arena, domain, indices))
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Malformed patch data: {e!r}") from e

        self._validate_grid(grid)
        self.arena = arena
        self.bezier_patches = grid
        self._compact()
        logger.debug(f"Patch restored: {rows}x{cols} cells, {len(self.arena)} points.")
