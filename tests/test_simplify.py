"""Tests for Douglas-Peucker path simplification."""
import math

import numpy as np

from shapefate.simplify import simplify_path
from shapefate.types import Point


def _circle(n: int, radius: float = 0.3):
    return [
        Point(0.5 + radius * math.cos(2 * math.pi * i / n),
              0.5 + radius * math.sin(2 * math.pi * i / n))
        for i in range(n)
    ]


class TestSimplifyPath:
    """Test cases for simplify_path."""

    def test_straight_line_collapses_to_endpoints(self):
        line = [Point(i / 100, 0.1) for i in range(100)]

        simplified = simplify_path(line, 0.0025)

        assert simplified == [line[0], line[-1]]

    def test_square_keeps_corners(self):
        """Densely sampled square reduces to its corners."""
        top = [Point(i / 100, 0) for i in range(100)]
        right = [Point(1, i / 100) for i in range(100)]
        bottom = [Point(1 - i / 100, 1) for i in range(100)]
        left = [Point(0, 1 - i / 100) for i in range(100)]
        path = top + right + bottom + left

        simplified = simplify_path(path, 0.0025)

        for corner in [Point(0, 0), Point(1, 0), Point(1, 1), Point(0, 1)]:
            assert corner in simplified
        assert len(simplified) <= 6

    def test_short_paths_unchanged(self):
        assert simplify_path([], 0.01) == []
        pair = [Point(0, 0), Point(1, 1)]
        assert simplify_path(pair, 0.01) == pair

    def test_zero_tolerance_keeps_bends(self):
        path = [Point(0, 0), Point(0.5, 0.1), Point(1, 0)]
        assert simplify_path(path, 0.0) == path

    def test_never_increases_points(self):
        rng = np.random.default_rng(7)
        path = [Point(float(x), float(y)) for x, y in rng.random((200, 2))]
        for tolerance in [0.0, 0.001, 0.01, 0.1, 1.0]:
            assert len(simplify_path(path, tolerance)) <= len(path)

    def test_idempotent(self):
        """Simplifying an already simplified path changes nothing."""
        rng = np.random.default_rng(11)
        noisy = [
            Point(p.x + float(dx), p.y + float(dy))
            for p, (dx, dy) in zip(_circle(400), rng.normal(0, 0.002, (400, 2)))
        ]
        for tolerance in [0.0025, 0.01, 0.05]:
            once = simplify_path(noisy, tolerance)
            assert simplify_path(once, tolerance) == once

    def test_long_contour(self):
        """Long paths are handled without recursion limits."""
        zigzag = [Point(i * 0.001, 0.01 * (i % 2)) for i in range(3000)]
        simplified = simplify_path(zigzag, 0.001)
        assert simplified[0] == zigzag[0]
        assert simplified[-1] == zigzag[-1]
