"""
Projection Mesh
===============
Samples the composite patch on a regular (u, v) lattice and keeps the buffers
a renderer needs: vertex positions, UVs, normals, triangle indices and the
grid-line segments drawn over the warped image.

The topology (indices, UVs, normals) depends only on the lattice resolution
and is built once; `update` refreshes the positions every frame.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
import pyvista as pv

from bezierwarp.model.bezier_patch import ComputeMode

if TYPE_CHECKING:
    import numpy.typing as npt
    from bezierwarp.model.patch import Patch

logger = logging.getLogger(__name__)

# grid lines are lifted slightly so they draw over the plane
GRID_LINES_Z = 0.01
BACKGROUND_Z = -0.1


class ProjectionMesh:
    """
    Triangle mesh of a (grid_width + 1) x (grid_height + 1) sample lattice.
    Vertex (x, y) of the lattice has index y * gw + x.
    """
    def __init__(self, grid_width: int = 20, grid_height: int = 20) -> None:
        if grid_width < 1 or grid_height < 1:
            raise ValueError(f"Grid resolution must be at least 1x1, got {grid_width}x{grid_height}.")
        self.grid_width = grid_width
        self.grid_height = grid_height

        gw, gh = self.gw, self.gh
        self.positions: npt.NDArray[np.float64] = np.zeros((gw * gh, 3), dtype=np.float64)
        self.triangles = self._build_triangles(gw, gh)
        self.uvs = self._build_uvs(gw, gh)
        self.normals = np.tile(np.array([0.0, 0.0, 1.0]), (gw * gh, 1))
        self.line_segments = self._build_line_segments(gw, gh)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(grid_width={self.grid_width}, grid_height={self.grid_height})"

    @property
    def gw(self) -> int:
        return self.grid_width + 1

    @property
    def gh(self) -> int:
        return self.grid_height + 1

    @property
    def n_vertices(self) -> int:
        return self.gw * self.gh

    @staticmethod
    def _build_triangles(gw: int, gh: int) -> npt.NDArray[np.int64]:
        tris = []
        for y in range(gh - 1):
            for x in range(gw - 1):
                a = y * gw + x
                b = y * gw + x + 1
                c = (y + 1) * gw + x
                d = (y + 1) * gw + x + 1
                tris.append((a, b, c))
                tris.append((b, d, c))
        return np.array(tris, dtype=np.int64)

    @staticmethod
    def _build_uvs(gw: int, gh: int) -> npt.NDArray[np.float64]:
        xs, ys = np.meshgrid(np.arange(gw) / (gw - 1), np.arange(gh) / (gh - 1))
        return np.column_stack((xs.ravel(), ys.ravel()))

    @staticmethod
    def _build_line_segments(gw: int, gh: int) -> npt.NDArray[np.int64]:
        segments = []
        # horizontal lines
        for y in range(gh):
            for x in range(gw - 1):
                segments.append((y * gw + x, y * gw + x + 1))
        # vertical lines
        for x in range(gw):
            for y in range(gh - 1):
                segments.append((y * gw + x, (y + 1) * gw + x))
        return np.array(segments, dtype=np.int64)

    def update(self, patch: Patch, mode: str | ComputeMode = ComputeMode.BEZIER) -> None:
        """Evaluate the patch at every lattice sample."""
        gw, gh = self.gw, self.gh
        for y in range(gh):
            for x in range(gw):
                point = patch.compute(x / (gw - 1), y / (gh - 1), mode)
                self.positions[y * gw + x] = (point.x, point.y, 0.0)

    def line_positions(self) -> npt.NDArray[np.float64]:
        lifted = self.positions.copy()
        lifted[:, 2] = GRID_LINES_Z
        return lifted

    def to_polydata(self) -> pv.PolyData:
        """The warped plane as a textured-ready pyvista mesh."""
        faces = np.hstack((np.full((len(self.triangles), 1), 3, dtype=np.int64), self.triangles)).ravel()
        mesh = pv.PolyData(self.positions.copy(), faces)
        mesh.active_texture_coordinates = self.uvs.copy()
        mesh.point_data["Normals"] = self.normals.copy()
        return mesh

    def grid_lines(self) -> pv.PolyData:
        lines = np.hstack((np.full((len(self.line_segments), 1), 2, dtype=np.int64), self.line_segments)).ravel()
        return pv.PolyData(self.line_positions(), lines=lines)


def background_plane(width: float, height: float) -> pv.PolyData:
    """Quad covering the background image, placed just below the warped plane."""
    plane = pv.Plane(
        center=(width / 2.0, height / 2.0, BACKGROUND_Z),
        direction=(0.0, 0.0, 1.0),
        i_size=width,
        j_size=height,
        i_resolution=1,
        j_resolution=1,
    )
    logger.debug(f"Background plane built ({width:g} x {height:g}).")
    return plane
