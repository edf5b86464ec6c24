"""Tests for the composite patch: linking, evaluation and subdivision."""

import logging

import numpy as np
import pytest

from bezierwarp.model.control_point import MirrorLink
from bezierwarp.model.domain import Domain
from bezierwarp.model.geometry_primitives import Vector
from bezierwarp.model.patch import DomainTilingError, Patch
from bezierwarp.model.projection import ProjectionMesh

SAMPLES = [(0.0, 0.0), (0.1, 0.9), (0.25, 0.5), (0.5, 0.5), (0.7, 0.3), (1.0, 1.0), (0.5, 1.0)]


def _close(a, b, tol=1e-9):
    return a.is_close(b, tol)


def _links(patch):
    return [p.mirror_point for p in patch.arena]


class TestInit:

    def test_single_cell(self, flat_patch):
        assert (flat_patch.row_count, flat_patch.col_count) == (1, 1)
        assert len(flat_patch.arena) == 16
        assert flat_patch.bezier_patches.get(0, 0).domain == Domain(0.0, 0.0, 1.0, 1.0)

    @pytest.mark.parametrize("mode", ["bezier", "linear"])
    def test_flat_surface(self, flat_patch, mode):
        for u, v in SAMPLES:
            assert _close(flat_patch.compute(u, v, mode), Vector(3 * u, 3 * v))

    def test_centre_of_unit_square(self):
        patch = Patch()
        patch.init_from_corners(Vector(0, 1), Vector(1, 1), Vector(0, 0), Vector(1, 0))
        assert _close(patch.compute(0.5, 0.5, "linear"), Vector(0.5, 0.5))

    def test_corners(self, flat_patch):
        corners = flat_patch.corners()
        assert corners["top_left"] == Vector(0, 3)
        assert corners["bottom_right"] == Vector(3, 0)

    def test_init_replaces_previous_state(self, flat_patch):
        flat_patch.subdivide_horizontal(0.5)
        flat_patch.init_from_corners(Vector(0, 1), Vector(1, 1), Vector(0, 0), Vector(1, 0))
        assert (flat_patch.row_count, flat_patch.col_count) == (1, 1)
        assert len(flat_patch.arena) == 16


class TestLinks:

    def test_exterior_corners_mirror_each_other(self, flat_patch):
        cp = flat_patch.bezier_patches.get(0, 0).indices
        arena = flat_patch.arena
        assert arena[cp[1]].mirror_point == MirrorLink(cp[4], cp[0])
        assert arena[cp[4]].mirror_point == MirrorLink(cp[1], cp[0])
        assert arena[cp[14]].mirror_point == MirrorLink(cp[11], cp[15])
        assert arena[cp[5]].mirror_point is None

    def test_mirror_move_reflects_through_corner(self, flat_patch):
        cp = flat_patch.bezier_patches.get(0, 0).indices
        flat_patch.move_point(cp[1], Vector(0.5, 0.0), mirror=True)
        assert _close(flat_patch.arena.position(cp[1]), Vector(1.5, 0.0))
        assert _close(flat_patch.arena.position(cp[4]), Vector(-1.5, 0.0))

    def test_neighbours_link_across_the_edge(self, flat_patch):
        flat_patch.subdivide_vertical(0.5)
        left = flat_patch.bezier_patches.get(0, 0).indices
        right = flat_patch.bezier_patches.get(0, 1).indices
        arena = flat_patch.arena
        assert arena[left[2]].mirror_point == MirrorLink(right[1], left[3])
        assert arena[right[1]].mirror_point == MirrorLink(left[2], right[0])
        assert arena[left[14]].mirror_point == MirrorLink(right[13], left[15])

    def test_mirror_move_keeps_the_seam_smooth(self, flat_patch):
        flat_patch.subdivide_vertical(0.5)
        left = flat_patch.bezier_patches.get(0, 0).indices
        right = flat_patch.bezier_patches.get(0, 1).indices
        arena = flat_patch.arena

        flat_patch.move_point(left[2], Vector(0.2, 0.3), mirror=True)
        anchor = arena.position(left[3])
        assert _close(arena.position(right[1]) - anchor, anchor - arena.position(left[2]))

    def test_relink_is_idempotent(self, flat_patch):
        flat_patch.subdivide_horizontal(0.3)
        flat_patch.subdivide_vertical(0.6)
        before = _links(flat_patch)
        flat_patch.relink_control_points()
        assert _links(flat_patch) == before


class TestEvaluation:

    @pytest.mark.parametrize("u, v", [(1.5, 0.5), (-0.1, 0.5), (0.5, 1.0001)])
    def test_outside_unit_square(self, flat_patch, u, v):
        with pytest.raises(DomainTilingError):
            flat_patch.compute(u, v)

    def test_invalid_mode(self, flat_patch):
        with pytest.raises(ValueError):
            flat_patch.compute(0.5, 0.5, "spline")

    def test_control_points_are_unique(self, flat_patch):
        flat_patch.subdivide_horizontal(0.5)
        flat_patch.subdivide_vertical(0.5)
        handles = flat_patch.control_points()
        assert len(handles) == len(set(handles)) == 49

    def test_update_linear_keeps_corners(self, flat_patch):
        cp = flat_patch.bezier_patches.get(0, 0).indices
        flat_patch.move_point(cp[5], Vector(1, 1))
        flat_patch.update("linear")
        assert _close(flat_patch.arena.position(cp[5]), Vector(1, 1))
        assert flat_patch.arena.position(cp[15]) == Vector(3, 3)


class TestSubdivision:

    def test_horizontal_split(self, flat_patch):
        flat_patch.subdivide_horizontal(0.5)
        grid = flat_patch.bezier_patches
        assert (grid.row_count, grid.col_count) == (2, 1)
        assert grid.get(0, 0).domain == Domain(0.0, 0.0, 1.0, 0.5)
        assert grid.get(1, 0).domain == Domain(0.0, 0.5, 1.0, 1.0)
        assert len(flat_patch.arena) == 28
        flat_patch.validate_tiling()

    def test_vertical_split(self, flat_patch):
        flat_patch.subdivide_vertical(0.25)
        grid = flat_patch.bezier_patches
        assert (grid.row_count, grid.col_count) == (1, 2)
        assert grid.get(0, 0).domain == Domain(0.0, 0.0, 0.25, 1.0)
        assert grid.get(0, 1).domain == Domain(0.25, 0.0, 1.0, 1.0)
        flat_patch.validate_tiling()

    def test_shape_is_preserved(self):
        patch = Patch()
        patch.init_from_corners(Vector(-1, 4), Vector(5, 3), Vector(0, 0), Vector(4, -1))
        cp = patch.bezier_patches.get(0, 0).indices
        patch.move_point(cp[5], Vector(0.7, -0.4))
        patch.move_point(cp[10], Vector(-0.3, 0.9, 0.5))
        patch.move_point(cp[13], Vector(0.2, 0.6))

        before = [patch.compute(u, v) for u, v in SAMPLES]
        patch.subdivide_horizontal(0.4)
        patch.subdivide_vertical(0.7)
        patch.subdivide_horizontal(0.8)
        after = [patch.compute(u, v) for u, v in SAMPLES]

        for a, b in zip(before, after):
            assert _close(a, b, 1e-9)

    def test_two_by_two_shares_handles(self, flat_patch):
        flat_patch.subdivide_horizontal(0.5)
        flat_patch.subdivide_vertical(0.5)
        grid = flat_patch.bezier_patches
        assert (grid.row_count, grid.col_count) == (2, 2)

        bl, br = grid.get(0, 0).indices, grid.get(0, 1).indices
        tl, tr = grid.get(1, 0).indices, grid.get(1, 1).indices

        # vertical seams
        assert [bl[3], bl[7], bl[11], bl[15]] == [br[0], br[4], br[8], br[12]]
        assert [tl[3], tl[7], tl[11], tl[15]] == [tr[0], tr[4], tr[8], tr[12]]
        # horizontal seams
        assert bl[12:16] == tl[0:4]
        assert br[12:16] == tr[0:4]
        # centre point is shared by all four cells
        assert bl[15] == br[12] == tl[3] == tr[0]
        assert _close(flat_patch.arena.position(bl[15]), Vector(1.5, 1.5))

        assert len(flat_patch.arena) == 49

    def test_moving_a_shared_point_moves_every_cell(self, flat_patch):
        flat_patch.subdivide_horizontal(0.5)
        flat_patch.subdivide_vertical(0.5)
        centre = flat_patch.bezier_patches.get(0, 0).indices[15]
        flat_patch.move_point(centre, Vector(0.5, 0.0))
        for i, j, k in [(0, 0, 15), (0, 1, 12), (1, 0, 3), (1, 1, 0)]:
            assert _close(flat_patch.bezier_patches.get(i, j).point(k), Vector(2.0, 1.5))

    def test_split_only_touches_the_spanning_row(self, flat_patch):
        flat_patch.subdivide_horizontal(0.5)
        top = list(flat_patch.bezier_patches.get(1, 0).indices)
        top_positions = [flat_patch.arena.position(h) for h in top]
        flat_patch.subdivide_horizontal(0.25)

        grid = flat_patch.bezier_patches
        assert grid.row_count == 3
        assert grid.get(0, 0).domain == Domain(0.0, 0.0, 1.0, 0.25)
        assert grid.get(1, 0).domain == Domain(0.0, 0.25, 1.0, 0.5)
        assert grid.get(2, 0).positions() == top_positions

    def test_cut_on_a_boundary_warns(self, flat_patch, caplog):
        flat_patch.subdivide_vertical(0.5)
        with caplog.at_level(logging.WARNING, logger="bezierwarp"):
            flat_patch.subdivide_vertical(0.5)
        assert "zero-area" in caplog.text
        assert flat_patch.col_count == 3
        flat_patch.validate_tiling()
        assert _close(flat_patch.compute(0.5, 0.5), Vector(1.5, 1.5))

    @pytest.mark.parametrize("cut, at", [
        ("subdivide_vertical", 0.0),
        ("subdivide_vertical", 1.0),
        ("subdivide_horizontal", 0.0),
        ("subdivide_horizontal", 1.0),
    ])
    def test_cut_on_the_outer_edge(self, flat_patch, caplog, cut, at):
        with caplog.at_level(logging.WARNING, logger="bezierwarp"):
            getattr(flat_patch, cut)(at)
        assert "zero-area" in caplog.text
        assert len(flat_patch.bezier_patches) == 2
        flat_patch.validate_tiling()

        edge = [0.0, 0.3, 1.0]
        samples = [(0.0, t) for t in edge] + [(t, 0.0) for t in edge]
        samples += [(1.0, t) for t in edge] + [(t, 1.0) for t in edge] + [(0.4, 0.6)]
        for u, v in samples:
            for mode in ("bezier", "linear"):
                assert _close(flat_patch.compute(u, v, mode), Vector(3 * u, 3 * v))

        mesh = ProjectionMesh(4, 4)
        mesh.update(flat_patch)
        assert np.allclose(mesh.positions[:, :2], mesh.uvs * 3.0)

    def test_repeated_cut_at_zero_skips_the_empty_strip(self, flat_patch):
        flat_patch.subdivide_vertical(0.0)
        flat_patch.subdivide_vertical(0.0)
        assert flat_patch.col_count == 3
        flat_patch.validate_tiling()
        assert _close(flat_patch.compute(0.0, 0.5), Vector(0.0, 1.5))

        flat_patch.subdivide_vertical(0.5)
        assert flat_patch.col_count == 4
        assert _close(flat_patch.compute(0.5, 0.5), Vector(1.5, 1.5))

    def test_cut_outside_the_square(self, flat_patch):
        with pytest.raises(ValueError):
            flat_patch.subdivide_horizontal(1.5)
        with pytest.raises(ValueError):
            flat_patch.subdivide_vertical(-0.5)

    def test_zero_extent_cell(self):
        with pytest.raises(ValueError):
            Patch._local_cut(0.5, 0.5, 0.5, axis="u")


class TestTiling:

    def test_broken_domain_is_detected(self, flat_patch):
        flat_patch.subdivide_vertical(0.5)
        cell = flat_patch.bezier_patches.get(0, 1)
        cell.domain = Domain(0.6, 0.0, 1.0, 1.0)
        with pytest.raises(DomainTilingError):
            flat_patch.validate_tiling()

    def test_empty_patch(self):
        with pytest.raises(DomainTilingError):
            Patch().validate_tiling()
