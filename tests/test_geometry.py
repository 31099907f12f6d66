"""Tests for polygon geometry primitives."""
import math

import pytest

from shapefate.geometry import (
    signed_area,
    is_clockwise,
    point_in_polygon,
    segment_intersection,
    perpendicular_distance,
    bounding_box,
    to_normalized,
    to_raster,
    order_points_by_angle,
)
from shapefate.types import Point


class TestSignedArea:
    """Test cases for signed_area and is_clockwise."""

    def test_unit_square_area(self, unit_square):
        """Counter-clockwise square has positive unit area."""
        assert signed_area(unit_square) == pytest.approx(1.0)
        assert not is_clockwise(unit_square)

    def test_reversed_square_is_clockwise(self, unit_square):
        """Reversing the vertex order flips the sign."""
        reversed_square = unit_square[::-1]
        assert signed_area(reversed_square) == pytest.approx(-1.0)
        assert is_clockwise(reversed_square)

    def test_concave_area(self, l_shape):
        assert abs(signed_area(l_shape)) == pytest.approx(0.75)

    def test_degenerate_polygons(self):
        """Fewer than 3 vertices have zero area and are not clockwise."""
        assert signed_area([]) == 0.0
        assert signed_area([Point(0, 0), Point(1, 1)]) == 0.0
        assert not is_clockwise([Point(0, 0), Point(1, 1)])


class TestPointInPolygon:
    """Test cases for point_in_polygon."""

    def test_inside_and_outside(self, unit_square):
        assert point_in_polygon(Point(0.5, 0.5), unit_square)
        assert not point_in_polygon(Point(1.5, 0.5), unit_square)
        assert not point_in_polygon(Point(0.5, -0.1), unit_square)

    def test_concave_notch(self, l_shape):
        """The missing quadrant of the L is outside."""
        assert point_in_polygon(Point(0.25, 0.75), l_shape)
        assert not point_in_polygon(Point(0.75, 0.75), l_shape)

    def test_winding_invariance(self, l_shape):
        """Membership does not depend on vertex order."""
        reversed_l = l_shape[::-1]
        for x in [i / 10 + 0.05 for i in range(10)]:
            for y in [j / 10 + 0.05 for j in range(10)]:
                p = Point(x, y)
                assert point_in_polygon(p, l_shape) == point_in_polygon(p, reversed_l)
        assert is_clockwise(l_shape) != is_clockwise(reversed_l)


class TestSegmentIntersection:
    """Test cases for segment_intersection."""

    def test_crossing_diagonals(self):
        """Diagonals of the unit square cross at the center."""
        result = segment_intersection(Point(0, 0), Point(1, 1), Point(0, 1), Point(1, 0))
        assert result is not None
        assert result.x == pytest.approx(0.5)
        assert result.y == pytest.approx(0.5)

    def test_parallel_segments(self):
        result = segment_intersection(Point(0, 0), Point(1, 0), Point(0, 1), Point(1, 1))
        assert result is None

    def test_non_overlapping_segments(self):
        """Lines cross, but outside the second segment."""
        result = segment_intersection(Point(0, 0), Point(1, 1), Point(2, 0), Point(3, -1))
        assert result is None

    def test_shared_endpoint(self):
        """Endpoint contact is accepted within tolerance."""
        result = segment_intersection(Point(0, 0), Point(1, 0), Point(1, 0), Point(1, 1))
        assert result is not None
        assert result.x == pytest.approx(1.0)
        assert result.y == pytest.approx(0.0)


class TestPerpendicularDistance:
    """Test cases for perpendicular_distance."""

    def test_distance_to_line(self):
        d = perpendicular_distance(Point(0.5, 2), Point(0, 0), Point(1, 0))
        assert d == pytest.approx(2.0)

    def test_infinite_line(self):
        """Distance is to the line, not the segment."""
        d = perpendicular_distance(Point(5, 1), Point(0, 0), Point(1, 0))
        assert d == pytest.approx(1.0)

    def test_coincident_endpoints(self):
        d = perpendicular_distance(Point(3, 4), Point(0, 0), Point(0, 0))
        assert d == pytest.approx(5.0)


class TestBoundsAndConversion:
    """Test cases for bounding boxes and coordinate spaces."""

    def test_bounding_box(self, l_shape):
        box = bounding_box(l_shape)
        assert (box.min_x, box.min_y, box.max_x, box.max_y) == (0, 0, 1, 1)
        assert box.diagonal == pytest.approx(math.sqrt(2))
        assert box.center == Point(0.5, 0.5)

    def test_normalize_and_back(self):
        points = [Point(64, 32), Point(128, 0)]
        normalized = to_normalized(points, 128, 64)
        assert normalized == [Point(0.5, 0.5), Point(1.0, 0.0)]
        assert to_raster(normalized, 128, 64) == points

    def test_order_points_by_angle(self, unit_square):
        shuffled = [unit_square[2], unit_square[0], unit_square[3], unit_square[1]]
        ordered = order_points_by_angle(shuffled)
        assert abs(signed_area(ordered)) == pytest.approx(1.0)
