"""
Project State (Data Model)
==========================
This module defines the editing session for one warped image.

Why is this file needed?
------------------------
1. State Management: It holds the composite patch, the projection options,
   the selection and the undo history in one place.
2. Persistence: This object is what gets serialized when saving a project.
3. Decoupling: A front end (widgets, render loop, input events) only calls the
   methods here and reads `mesh` to draw; it never touches the patch grid.

Classes:
    ProjectionOptions: Per-session display and sampling options.
    ProjectState: The main container class.
"""
from __future__ import annotations

from dataclasses import dataclass, field, asdict, fields
from enum import StrEnum
import logging
from typing import Any, Optional

from bezierwarp.config import (
    DEFAULT_BACKGROUND_SIZE,
    DEFAULT_GRID_HEIGHT,
    DEFAULT_GRID_WIDTH,
    DEFAULT_OPTIONS,
    DEFAULT_PATCH_SIZE,
)
from bezierwarp.model.bezier_patch import parse_mode
from bezierwarp.model.geometry_primitives import Vector
from bezierwarp.model.history import History
from bezierwarp.model.patch import Patch
from bezierwarp.model.projection import ProjectionMesh

logger = logging.getLogger(__name__)


class AlignDirection(StrEnum):
    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"


@dataclass
class ProjectionOptions:
    grid_width: int = DEFAULT_GRID_WIDTH
    grid_height: int = DEFAULT_GRID_HEIGHT
    grid_color: str = DEFAULT_OPTIONS["grid_color"]
    primary_color: str = DEFAULT_OPTIONS["primary_color"]
    secondary_color: str = DEFAULT_OPTIONS["secondary_color"]
    mode: str = DEFAULT_OPTIONS["mode"]
    texture: Optional[str] = None
    background: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectionOptions:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class ProjectState:
    """
    Holds the entire state of the open warp project.
    """
    project_name: str = "Untitled Project"
    filepath: Optional[str] = None

    options: ProjectionOptions = field(default_factory=ProjectionOptions)

    background_width: float = DEFAULT_BACKGROUND_SIZE[0]
    background_height: float = DEFAULT_BACKGROUND_SIZE[1]
    patch_width: float = DEFAULT_PATCH_SIZE[0]
    patch_height: float = DEFAULT_PATCH_SIZE[1]

    patch: Patch = field(default_factory=Patch)
    history: History = field(default_factory=History)
    selected_points: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.mesh = ProjectionMesh(self.options.grid_width, self.options.grid_height)
        self._drag_moved = False
        if self.patch.row_count == 0:
            self.reset(self.patch_width, self.patch_height, self.background_width, self.background_height)

    # ------------------------------------------------------------------------------
    # Session setup
    # ------------------------------------------------------------------------------

    def reset(
        self,
        patch_width: float = DEFAULT_PATCH_SIZE[0],
        patch_height: float = DEFAULT_PATCH_SIZE[1],
        background_width: float = DEFAULT_BACKGROUND_SIZE[0],
        background_height: float = DEFAULT_BACKGROUND_SIZE[1],
    ) -> None:
        """Start over with a single patch centred on the background."""
        self.background_width = background_width
        self.background_height = background_height
        self.patch_width = patch_width
        self.patch_height = patch_height

        x0 = (background_width - patch_width) / 2
        y0 = (background_height - patch_height) / 2

        self.patch.init_from_corners(
            top_left=Vector(x0, y0 + patch_height),
            top_right=Vector(x0 + patch_width, y0 + patch_height),
            bottom_left=Vector(x0, y0),
            bottom_right=Vector(x0 + patch_width, y0),
        )
        self.selected_points = []
        self.create_history()
        logger.info(f"Project reset: {patch_width:g}x{patch_height:g} patch on "
                    f"{background_width:g}x{background_height:g} background.")

    def configure(self, **options: Any) -> None:
        """
        Change projection options.

        Raises:
            ValueError: On an unknown option, an invalid mode or an invalid grid size.
        """
        known = {f.name for f in fields(ProjectionOptions)}
        unknown = set(options) - known
        if unknown:
            raise ValueError(f"Unknown projection options: {sorted(unknown)}")
        if "mode" in options:
            options["mode"] = str(parse_mode(options["mode"]))

        resolution = (
            int(options.get("grid_width", self.options.grid_width)),
            int(options.get("grid_height", self.options.grid_height)),
        )
        if resolution != (self.mesh.grid_width, self.mesh.grid_height):
            # raises before any option is touched
            self.mesh = ProjectionMesh(*resolution)
            logger.debug(f"Projection mesh rebuilt at {resolution[0]}x{resolution[1]}.")

        for key, value in options.items():
            setattr(self.options, key, value)

    # ------------------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------------------

    def create_history(self) -> None:
        self.history = History()
        self.save_history()

    def save_history(self) -> None:
        self.history.insert({"patchData": self.patch.save()})

    def restore_history(self) -> None:
        current = self.history.current()
        if current is None:
            return
        self.patch.restore(current["patchData"])
        self.selected_points = []

    def undo(self) -> None:
        self.history.back()
        self.restore_history()

    def redo(self) -> None:
        self.history.forward()
        self.restore_history()

    # ------------------------------------------------------------------------------
    # Frame update
    # ------------------------------------------------------------------------------

    def update_meshes(self) -> None:
        """Refresh mode-dependent control points, then resample the projection mesh."""
        self.patch.update(self.options.mode)
        self.mesh.update(self.patch, self.options.mode)

    # ------------------------------------------------------------------------------
    # Selection & dragging
    # ------------------------------------------------------------------------------

    def select(self, index: int, additive: bool = False) -> None:
        if index not in self.patch.control_points():
            raise ValueError(f"Control point {index} is not part of the patch.")
        if index in self.selected_points:
            return
        if additive:
            self.selected_points.append(index)
        else:
            self.selected_points = [index]

    def clear_selection(self) -> None:
        self.selected_points = []

    def select_in_rect(self, corner_a: Vector, corner_b: Vector, additive: bool = False) -> list[int]:
        """Select the control points whose XY position lies inside the rectangle."""
        x_min, x_max = sorted((corner_a.x, corner_b.x))
        y_min, y_max = sorted((corner_a.y, corner_b.y))

        hits = []
        for index in self.patch.control_points():
            p = self.patch.arena[index]
            if x_min <= p.x <= x_max and y_min <= p.y <= y_max:
                hits.append(index)

        if additive:
            self.selected_points.extend(h for h in hits if h not in self.selected_points)
        else:
            self.selected_points = hits
        return hits

    def move_selected(self, offset: Vector, mirror: bool = False) -> None:
        """
        Translate the selection. Mirroring only applies when exactly one point
        is selected.
        """
        mirror = mirror and len(self.selected_points) == 1
        for index in self.selected_points:
            self.patch.move_point(index, offset, mirror)
        if self.selected_points and offset.magnitude > 0.0:
            self._drag_moved = True

    def end_drag(self) -> None:
        """Record the drag in the history if anything actually moved."""
        if self._drag_moved:
            self.save_history()
        self._drag_moved = False

    def align_selected_points(self, direction: str | AlignDirection) -> None:
        """
        Line the selected points up with the outermost one in `direction`.

        Raises:
            ValueError: If the direction is not left, right, top or bottom.
        """
        try:
            direction = AlignDirection(direction)
        except ValueError:
            raise ValueError(f"Invalid alignment direction: {direction!r}") from None

        if len(self.selected_points) < 2:
            return

        points = [self.patch.arena[i] for i in self.selected_points]
        if direction is AlignDirection.LEFT:
            x = min(p.x for p in points)
            for p in points:
                p.x = x
        elif direction is AlignDirection.RIGHT:
            x = max(p.x for p in points)
            for p in points:
                p.x = x
        elif direction is AlignDirection.TOP:
            y = max(p.y for p in points)
            for p in points:
                p.y = y
        else:
            y = min(p.y for p in points)
            for p in points:
                p.y = y

        self.save_history()

    # ------------------------------------------------------------------------------
    # Cuts
    # ------------------------------------------------------------------------------

    def cut_horizontal(self, v: float) -> None:
        self.patch.subdivide_horizontal(v)
        self.selected_points = []
        self.save_history()

    def cut_vertical(self, u: float) -> None:
        self.patch.subdivide_vertical(u)
        self.selected_points = []
        self.save_history()

    def cut_line(self, horizontal: bool, u: float, v: float) -> list[Vector]:
        """
        Points along the surface line a cut through (u, v) would follow,
        sampled at the projection mesh resolution.
        """
        if horizontal:
            n = self.options.grid_width
            return [self.patch.compute(i / n, v, self.options.mode) for i in range(n + 1)]
        n = self.options.grid_height
        return [self.patch.compute(u, i / n, self.options.mode) for i in range(n + 1)]

    def mesh_corners(self) -> dict[str, list[float]]:
        return {name: [p.x, p.y, p.z] for name, p in self.patch.corners().items()}

    # ------------------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------------------

    def save(self) -> dict[str, Any]:
        return {
            "backgroundWidth": self.background_width,
            "backgroundHeight": self.background_height,
            "options": self.options.to_dict(),
            "patchData": self.patch.save(),
        }

    def restore(self, data: dict[str, Any]) -> None:
        """
        Replace the session with a saved one.

        Raises:
            ValueError: If the data is malformed.
        """
        try:
            background_width = float(data["backgroundWidth"])
            background_height = float(data["backgroundHeight"])
            patch_data = data["patchData"]
            options = ProjectionOptions.from_dict(data.get("options", {}))
            options.mode = str(parse_mode(options.mode))
            mesh = ProjectionMesh(int(options.grid_width), int(options.grid_height))
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Malformed project data: {e!r}") from e

        # everything above is validated before the session is touched
        self.patch.restore(patch_data)
        self.background_width = background_width
        self.background_height = background_height
        self.selected_points = []
        options.grid_width, options.grid_height = mesh.grid_width, mesh.grid_height
        self.options = options
        self.mesh = mesh
        self.create_history()
        logger.info(f"Project restored: {self.patch.row_count}x{self.patch.col_count} patches.")
