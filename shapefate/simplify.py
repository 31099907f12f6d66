"""Path simplification using the Douglas-Peucker algorithm."""
from typing import List, Sequence

from shapefate.geometry import perpendicular_distance
from shapefate.types import Point

# Default tolerance for traced silhouettes, in normalized units
SILHOUETTE_TOLERANCE = 0.0025


def simplify_path(points: Sequence[Point], tolerance: float = SILHOUETTE_TOLERANCE) -> List[Point]:
    """
    Simplify an open path with Douglas-Peucker.

    The farthest point from the chord between the endpoints of a span is
    kept when its distance exceeds the tolerance, and both halves are
    processed again; otherwise the span collapses to its endpoints.
    A closed contour is treated as an open path from its first to its
    last vertex.

    Spans are processed from an explicit stack, so long traced contours
    do not hit the interpreter recursion limit.

    Args:
        points: Ordered points
        tolerance: Maximum allowed perpendicular deviation

    Returns:
        Subset of the input points, in order
    """
    n = len(points)
    if n <= 2:
        return list(points)

    keep = [False] * n
    keep[0] = keep[n - 1] = True

    stack = [(0, n - 1)]
    while stack:
        first, last = stack.pop()
        if last - first < 2:
            continue

        start, end = points[first], points[last]
        max_dist = 0.0
        max_index = first
        for i in range(first + 1, last):
            dist = perpendicular_distance(points[i], start, end)
            if dist > max_dist:
                max_dist = dist
                max_index = i

        if max_dist > tolerance and max_index > first:
            keep[max_index] = True
            stack.append((max_index, last))
            stack.append((first, max_index))

    return [p for p, kept in zip(points, keep) if kept]
