"""Pytest configuration and fixtures."""

import numpy as np
import pytest

from shapefate.types import Point


def make_circle_mask(size: int = 128, radius: float = 40, center=None) -> np.ndarray:
    """Filled circle of subject pixels."""
    cy, cx = center if center is not None else (size / 2, size / 2)
    yy, xx = np.mgrid[0:size, 0:size]
    return (xx - cx) ** 2 + (yy - cy) ** 2 <= radius ** 2


def make_raster(height: int, width: int, color=(255, 255, 255)) -> np.ndarray:
    """Opaque RGBA raster filled with one color."""
    raster = np.zeros((height, width, 4), dtype=np.uint8)
    raster[..., :3] = color
    raster[..., 3] = 255
    return raster


@pytest.fixture
def rng():
    """Seeded random generator for reproducible decompositions."""
    return np.random.default_rng(1234)


@pytest.fixture
def circle_mask():
    """Filled circle of radius 40 in a 128x128 grid."""
    return make_circle_mask()


@pytest.fixture
def unit_square():
    """Counter-clockwise (positive area) unit square."""
    return [Point(0, 0), Point(1, 0), Point(1, 1), Point(0, 1)]


@pytest.fixture
def l_shape():
    """Concave L-shaped polygon with area 0.75."""
    return [
        Point(0, 0), Point(1, 0), Point(1, 0.5),
        Point(0.5, 0.5), Point(0.5, 1), Point(0, 1),
    ]
