"""Shared fixtures for the bezierwarp tests."""

import logging

import pytest

from bezierwarp.model.control_point import PointArena
from bezierwarp.model.geometry_primitives import Vector
from bezierwarp.model.patch import Patch


@pytest.fixture
def flat_patch():
    """
    Single patch over the square (0, 0)-(3, 3). Its control net is the regular
    4x4 lattice, so the surface is (u, v) -> (3u, 3v) in bezier mode too.
    """
    patch = Patch()
    patch.init_from_corners(
        top_left=Vector(0, 3),
        top_right=Vector(3, 3),
        bottom_left=Vector(0, 0),
        bottom_right=Vector(3, 0),
    )
    return patch


@pytest.fixture
def lattice_arena():
    """Arena holding the regular 4x4 lattice, handles in row-major order."""
    arena = PointArena()
    for y in range(4):
        for x in range(4):
            arena.add(Vector(float(x), float(y)))
    return arena


@pytest.fixture(autouse=True)
def reset_package_logger():
    """setup_logging attaches handlers to the package logger; detach them after each test."""
    yield
    logger = logging.getLogger("bezierwarp")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
