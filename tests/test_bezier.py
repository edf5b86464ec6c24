"""Tests for the cubic Bezier helpers."""

import pytest

from bezierwarp.model.bezier import (
    BezierCurve3, basis3, de_casteljau_step, derivative3, subdivide_curve,
)
from bezierwarp.model.geometry_primitives import Vector


def close(a, b, tol=1e-9):
    if isinstance(a, Vector):
        return a.is_close(b, tol)
    return abs(a - b) <= tol


CURVE = [Vector(0, 0), Vector(1, 2), Vector(3, 3), Vector(4, 0)]


class TestBasis:

    @pytest.mark.parametrize("t", [0.0, 0.1, 0.25, 0.5, 0.9, 1.0])
    def test_partition_of_unity(self, t):
        assert close(sum(basis3(i, t) for i in range(4)), 1.0)

    @pytest.mark.parametrize("t", [0.0, 0.3, 0.7, 1.0])
    def test_derivatives_sum_to_zero(self, t):
        assert close(sum(derivative3(i, t) for i in range(4)), 0.0)

    def test_endpoints(self):
        assert basis3(0, 0.0) == 1.0
        assert basis3(3, 1.0) == 1.0
        assert basis3(1, 0.0) == 0.0
        assert basis3(2, 1.0) == 0.0

    def test_invalid_index(self):
        with pytest.raises(ValueError):
            basis3(4, 0.5)
        with pytest.raises(ValueError):
            derivative3(-1, 0.5)


class TestSubdivision:

    def test_step_shortens_by_one(self):
        step = de_casteljau_step(0.5, CURVE)
        assert len(step) == 3
        assert close(step[0], Vector(0.5, 1.0))

    def test_halves_meet_on_the_curve(self):
        t = 0.3
        c0, c1 = subdivide_curve(t, CURVE)
        on_curve = BezierCurve3(CURVE).compute(t)
        assert len(c0) == len(c1) == 4
        assert close(c0[-1], on_curve)
        assert close(c1[0], on_curve)
        assert close(c0[0], CURVE[0])
        assert close(c1[-1], CURVE[-1])

    def test_halves_reparametrize_the_curve(self):
        t = 0.4
        curve = BezierCurve3(CURVE)
        left, right = curve.subdivide(t)
        for s in (0.0, 0.2, 0.5, 0.8, 1.0):
            assert close(left.compute(s), curve.compute(s * t))
            assert close(right.compute(s), curve.compute(t + s * (1 - t)))

    def test_inputs_are_not_modified(self):
        points = [p.copy() for p in CURVE]
        c0, _ = subdivide_curve(0.5, points)
        c0[0].x = 100.0
        assert points == CURVE

    def test_too_few_points(self):
        with pytest.raises(ValueError):
            subdivide_curve(0.5, [Vector(0, 0)])


class TestBezierCurve3:

    def test_requires_four_points(self):
        with pytest.raises(ValueError):
            BezierCurve3(CURVE[:3])

    def test_endpoints_interpolated(self):
        curve = BezierCurve3(CURVE)
        assert close(curve.compute(0.0), CURVE[0])
        assert close(curve.compute(1.0), CURVE[-1])

    def test_end_tangents(self):
        curve = BezierCurve3(CURVE)
        assert close(curve.derivative(0.0), (CURVE[1] - CURVE[0]) * 3)
        assert close(curve.derivative(1.0), (CURVE[3] - CURVE[2]) * 3)
