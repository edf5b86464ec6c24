from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pyvista as pv

from bezierwarp.model.projection import background_plane
from bezierwarp.model.state import ProjectState
from bezierwarp.model.textures import TextureCache, checkerboard_texture

logger = logging.getLogger(__name__)


def build_plotter(
    state: ProjectState,
    textures: Optional[TextureCache] = None,
    off_screen: bool = False,
) -> pv.Plotter:
    """
    PyVista scene for the current session:
      - background image plane,
      - warped plane with the texture mapped through the mesh UVs,
      - grid lines and control points,
      - locked orthographic XY camera.
    """
    if textures is None:
        textures = TextureCache()
    state.update_meshes()

    plotter = pv.Plotter(off_screen=off_screen)

    background = textures.load(state.options.background)
    plotter.add_mesh(
        background_plane(state.background_width, state.background_height),
        texture=background,
        color=None if background else "white",
    )

    texture = textures.load(state.options.texture) or checkerboard_texture()
    plotter.add_mesh(state.mesh.to_polydata(), texture=texture, opacity=1.0)

    plotter.add_mesh(
        state.mesh.grid_lines(),
        color=state.options.grid_color,
        opacity=0.5,
        line_width=1.0,
    )

    handles = np.array([state.patch.arena[i].position.to_array() for i in state.patch.control_points()])
    plotter.add_points(
        handles,
        color=state.options.primary_color,
        point_size=10.0,
        render_points_as_spheres=True,
    )

    plotter.enable_parallel_projection()
    plotter.view_xy()
    plotter.enable_image_style()
    logger.debug(f"Preview scene built with {len(handles)} control points.")
    return plotter
