"""Polygon geometry primitives shared by tracing and decomposition."""
from typing import Iterable, List, Optional, Sequence
import math

from shapefate.types import BoundingBox, Point, Polygon

PARALLEL_EPS = 1e-10
SEGMENT_PARAM_EPS = 1e-5


def signed_area(polygon: Sequence[Point]) -> float:
    """
    Shoelace area of a closed polygon.

    Negative values mean clockwise winding in a y-down coordinate
    system. Polygons with fewer than 3 vertices have zero area.
    """
    n = len(polygon)
    if n < 3:
        return 0.0

    total = 0.0
    for i in range(n):
        current = polygon[i]
        nxt = polygon[(i + 1) % n]
        total += current.x * nxt.y - nxt.x * current.y

    return total / 2.0


def is_clockwise(polygon: Sequence[Point]) -> bool:
    """Return True if the polygon winds clockwise (negative signed area)."""
    if len(polygon) < 3:
        return False
    return signed_area(polygon) < 0


def point_in_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    """Ray casting parity test."""
    inside = False
    n = len(polygon)
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i].x, polygon[i].y
        xj, yj = polygon[j].x, polygon[j].y
        if (yi > point.y) != (yj > point.y):
            x_cross = (xj - xi) * (point.y - yi) / (yj - yi) + xi
            if point.x < x_cross:
                inside = not inside
        j = i
    return inside


def segment_intersection(
    p1: Point,
    p2: Point,
    p3: Point,
    p4: Point
) -> Optional[Point]:
    """
    Intersection of segments p1-p2 and p3-p4.

    Returns None for (near) parallel segments, or when the crossing lies
    outside either segment. Parameters slightly beyond [0, 1] are
    accepted so that crossings at shared endpoints are not lost.
    """
    s1x = p2.x - p1.x
    s1y = p2.y - p1.y
    s2x = p4.x - p3.x
    s2y = p4.y - p3.y

    denom = -s2x * s1y + s1x * s2y
    if abs(denom) < PARALLEL_EPS:
        return None

    s = (-s1y * (p1.x - p3.x) + s1x * (p1.y - p3.y)) / denom
    t = (s2x * (p1.y - p3.y) - s2y * (p1.x - p3.x)) / denom

    lo, hi = -SEGMENT_PARAM_EPS, 1 + SEGMENT_PARAM_EPS
    if s < lo or s > hi or t < lo or t > hi:
        return None

    return Point(p1.x + t * s1x, p1.y + t * s1y)


def perpendicular_distance(point: Point, line_start: Point, line_end: Point) -> float:
    """Distance from point to the infinite line through line_start and line_end."""
    dx = line_end.x - line_start.x
    dy = line_end.y - line_start.y
    length = math.hypot(dx, dy)
    if length == 0:
        return math.hypot(point.x - line_start.x, point.y - line_start.y)
    return abs((point.y - line_start.y) * dx - (point.x - line_start.x) * dy) / length


def bounding_box(polygon: Iterable[Point]) -> BoundingBox:
    """Bounding box of a point set. Empty input gives an inverted infinite box."""
    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    for p in polygon:
        min_x = min(min_x, p.x)
        min_y = min(min_y, p.y)
        max_x = max(max_x, p.x)
        max_y = max(max_y, p.y)
    return BoundingBox(min_x, min_y, max_x, max_y)


def distance_squared(a: Point, b: Point) -> float:
    dx = a.x - b.x
    dy = a.y - b.y
    return dx * dx + dy * dy


def to_normalized(points: Iterable[Point], width: int, height: int) -> Polygon:
    """Convert raster-space points to normalized [0, 1] space."""
    return [Point(p.x / width, p.y / height) for p in points]


def to_raster(points: Iterable[Point], width: int, height: int) -> Polygon:
    """Convert normalized points back to raster-space pixel coordinates."""
    return [Point(p.x * width, p.y * height) for p in points]


def order_points_by_angle(points: Sequence[Point]) -> List[Point]:
    """Sort points by angle around their centroid."""
    if len(points) < 3:
        return list(points)

    cx = sum(p.x for p in points) / len(points)
    cy = sum(p.y for p in points) / len(points)
    return sorted(points, key=lambda p: math.atan2(p.y - cy, p.x - cx))
