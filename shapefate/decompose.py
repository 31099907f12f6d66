"""Random recursive bisection of a silhouette into puzzle pieces."""
from typing import List, Optional, Sequence
import logging
import math

import numpy as np

from shapefate.geometry import bounding_box, distance_squared, is_clockwise, signed_area
from shapefate.types import DecompositionResult, Point, Polygon, SplitResult

logger = logging.getLogger(__name__)

# Vertices closer than this to the cut line are treated as on it
LINE_EPS = 1e-5
# Consecutive vertices closer than this are merged after a split
CLEAN_EPS = 1e-4

MIN_PIECE_AREA = 1e-4
MIN_CUT_LENGTH = 0.02
CUT_LENGTH_FACTOR = 0.12

SPLIT_TRIES = 25
ATTEMPTS_PER_PIECE = 30


def clean_polygon(vertices: Sequence[Point], eps: float = CLEAN_EPS) -> Polygon:
    """Drop consecutive near-duplicates, including a last point matching the first."""
    eps_sq = eps * eps
    cleaned: Polygon = []
    for point in vertices:
        if not cleaned or distance_squared(cleaned[-1], point) > eps_sq:
            cleaned.append(point)

    if len(cleaned) >= 2 and distance_squared(cleaned[0], cleaned[-1]) < eps_sq:
        cleaned.pop()

    return cleaned


def min_cut_length(polygon: Sequence[Point]) -> float:
    """Shortest chord accepted when splitting this polygon."""
    return max(MIN_CUT_LENGTH, bounding_box(polygon).diagonal * CUT_LENGTH_FACTOR)


def split_polygon_by_line(
    vertices: Sequence[Point],
    point: Point,
    normal: Point
) -> Optional[SplitResult]:
    """
    Cut a polygon with the infinite line through point, perpendicular to normal.

    Vertices go to the front or back list by the sign of their distance to
    the line; crossing points and on-line vertices go to both.

    Args:
        vertices: Polygon to split
        point: Any point on the cut line
        normal: Unit normal of the cut line

    Returns:
        SplitResult, or None if either half degenerates, the line misses
        the polygon, or the chord is too short
    """
    n = len(vertices)
    if n < 3:
        return None

    front: Polygon = []
    back: Polygon = []
    intersections: List[Point] = []
    eps_sq = LINE_EPS * LINE_EPS

    def signed_distance(v: Point) -> float:
        return (v.x - point.x) * normal.x + (v.y - point.y) * normal.y

    def add_intersection(p: Point):
        if not any(distance_squared(q, p) < eps_sq for q in intersections):
            intersections.append(p)

    for i in range(n):
        current = vertices[i]
        nxt = vertices[(i + 1) % n]

        d_current = signed_distance(current)
        d_next = signed_distance(nxt)
        on_current = abs(d_current) < LINE_EPS
        on_next = abs(d_next) < LINE_EPS

        if d_current > LINE_EPS:
            front.append(current)
        elif d_current < -LINE_EPS:
            back.append(current)
        else:
            front.append(current)
            back.append(current)

        crosses = (
            (d_current > LINE_EPS and d_next < -LINE_EPS)
            or (d_current < -LINE_EPS and d_next > LINE_EPS)
        )
        if crosses:
            t = d_current / (d_current - d_next)
            crossing = Point(
                current.x + (nxt.x - current.x) * t,
                current.y + (nxt.y - current.y) * t,
            )
            front.append(crossing)
            back.append(crossing)
            add_intersection(crossing)
        elif on_next and not on_current:
            front.append(nxt)
            back.append(nxt)
            add_intersection(nxt)

    cleaned_front = clean_polygon(front)
    cleaned_back = clean_polygon(back)

    if len(cleaned_front) < 3 or len(cleaned_back) < 3:
        return None

    if len(intersections) < 2:
        return None

    chord = (intersections[0], intersections[1])
    max_dist_sq = 0.0
    for i in range(len(intersections)):
        for j in range(i + 1, len(intersections)):
            dist_sq = distance_squared(intersections[i], intersections[j])
            if dist_sq > max_dist_sq:
                max_dist_sq = dist_sq
                chord = (intersections[i], intersections[j])

    min_length = min_cut_length(vertices)
    if max_dist_sq < min_length * min_length:
        return None

    return SplitResult(front=cleaned_front, back=cleaned_back, chord=chord)


def ratio_band(attempt: int):
    """Accepted (min, max) front-area ratio; widens with the attempt index."""
    tolerance = min(0.15 + attempt * 0.02, 0.35)
    min_ratio = max(0.05, 0.3 - tolerance)
    max_ratio = min(0.95, 1 - min_ratio)
    return min_ratio, max_ratio


def attempt_split(
    polygon: Sequence[Point],
    rng: np.random.Generator,
    attempt: int
) -> Optional[SplitResult]:
    """
    One random split try along a line through a random point of the bounding box.

    Args:
        polygon: Polygon to split
        rng: Random source
        attempt: Zero-based try index, used to relax the area ratio band

    Returns:
        SplitResult, or None if the line was rejected
    """
    bounds = bounding_box(polygon)
    px = bounds.min_x + rng.random() * bounds.width
    py = bounds.min_y + rng.random() * bounds.height
    angle = rng.random() * math.pi
    normal = Point(math.cos(angle), math.sin(angle))

    split = split_polygon_by_line(polygon, Point(px, py), normal)
    if split is None:
        return None

    area_front = abs(signed_area(split.front))
    area_back = abs(signed_area(split.back))
    if area_front < MIN_PIECE_AREA or area_back < MIN_PIECE_AREA:
        return None

    ratio = area_front / (area_front + area_back)
    min_ratio, max_ratio = ratio_band(attempt)
    if ratio < min_ratio or ratio > max_ratio:
        return None

    return split


def split_polygon_randomly(
    polygon: Sequence[Point],
    rng: np.random.Generator,
    max_tries: int = SPLIT_TRIES
) -> Optional[SplitResult]:
    """Try up to max_tries random lines, returning the first accepted split."""
    for attempt in range(max_tries):
        split = attempt_split(polygon, rng, attempt)
        if split is not None:
            return split
    return None


def decompose(
    polygon: Sequence[Point],
    target_count: int,
    rng: Optional[np.random.Generator] = None
) -> DecompositionResult:
    """
    Split a silhouette into target_count pieces that tile it exactly.

    The piece with the largest area is always split next. When the
    attempt budget (30 rounds per requested piece) runs out, the pieces
    reached so far are returned and the result is marked degraded.

    Args:
        polygon: Silhouette in normalized coordinates
        target_count: Requested number of pieces (>= 1)
        rng: Random source (fresh entropy if None)

    Returns:
        DecompositionResult with at most target_count pieces

    Raises:
        ValueError: If target_count < 1 or the polygon has fewer than 3 vertices
    """
    if target_count < 1:
        raise ValueError(f"target_count must be >= 1, got {target_count}")
    if len(polygon) < 3:
        raise ValueError("Polygon must have at least 3 vertices")

    rng = rng if rng is not None else np.random.default_rng()

    working: List[Polygon] = [list(polygon)]
    max_attempts = target_count * ATTEMPTS_PER_PIECE
    attempts = 0

    while len(working) < target_count and attempts < max_attempts:
        attempts += 1

        areas = [abs(signed_area(p)) for p in working]
        largest = int(np.argmax(areas))

        split = split_polygon_randomly(working[largest], rng)
        if split is None:
            continue

        working.pop(largest)
        working.append(split.front)
        working.append(split.back)

    pieces = working[:target_count]
    result = DecompositionResult(
        pieces=pieces,
        achieved_count=len(pieces),
        target_count=target_count,
    )

    if result.degraded:
        logger.warning(
            f"Decomposition produced {result.achieved_count} pieces "
            f"(target {target_count}) after {attempts} attempts"
        )
    else:
        logger.debug(f"Decomposed into {result.achieved_count} pieces in {attempts} attempts")

    return result


def _inside_edge(point: Point, start: Point, end: Point, clip_clockwise: bool) -> float:
    cross = (end.x - start.x) * (point.y - start.y) - (end.y - start.y) * (point.x - start.x)
    return -cross if clip_clockwise else cross


def clip_polygon_to_polygon(subject: Sequence[Point], clip: Sequence[Point]) -> Polygon:
    """
    Clip a (possibly concave) subject polygon to a convex clip polygon.

    Sutherland-Hodgman: the subject is clipped against the half-plane of
    each clip edge in turn. The inside side is chosen from the clip
    polygon's winding, so clockwise and counter-clockwise clip polygons
    behave the same. Points on a clip edge count as inside.

    Returns:
        Clipped vertex list (empty if nothing remains or inputs are degenerate)
    """
    if not subject or len(clip) < 3:
        return []

    clip_clockwise = is_clockwise(clip)
    output: Polygon = list(subject)

    for i in range(len(clip)):
        if not output:
            break

        edge_start = clip[i]
        edge_end = clip[(i + 1) % len(clip)]
        candidates = output
        output = []

        for j in range(len(candidates)):
            current = candidates[j]
            previous = candidates[j - 1]

            c_current = _inside_edge(current, edge_start, edge_end, clip_clockwise)
            c_previous = _inside_edge(previous, edge_start, edge_end, clip_clockwise)
            current_inside = c_current >= 0
            previous_inside = c_previous >= 0

            if current_inside != previous_inside:
                t = c_previous / (c_previous - c_current)
                output.append(Point(
                    previous.x + (current.x - previous.x) * t,
                    previous.y + (current.y - previous.y) * t,
                ))
            if current_inside:
                output.append(current)

    return output
