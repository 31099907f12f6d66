"""Marching squares boundary tracing for subject masks."""
from typing import Dict, List, Optional, Tuple
import logging

import numpy as np

from shapefate.geometry import signed_area, to_normalized
from shapefate.types import Mask, NoClosedLoop, Point, Polygon

logger = logging.getLogger(__name__)

NodeKey = Tuple[float, float]
Segment = Tuple[Point, Point]

# Node coordinates are merged when they agree to this many decimals
KEY_DECIMALS = 4


def _edge_point(edge: str, x: int, y: int) -> Point:
    if edge == "top":
        return Point(x + 0.5, float(y))
    if edge == "right":
        return Point(float(x + 1), y + 0.5)
    if edge == "bottom":
        return Point(x + 0.5, float(y + 1))
    return Point(float(x), y + 0.5)


def marching_squares_segments(mask: Mask) -> List[Segment]:
    """
    Boundary segments between subject and background pixel centers.

    Each 2x2 cell whose corners disagree contributes one segment, or two
    for a saddle cell. Saddles connect around the diagonal holding the
    subject pixels.

    Args:
        mask: (H, W) bool mask

    Returns:
        List of (start, end) points in raster space, in row-major cell order
    """
    values = np.asarray(mask, dtype=np.int8)
    if values.shape[0] < 2 or values.shape[1] < 2:
        return []

    tl = values[:-1, :-1]
    tr = values[:-1, 1:]
    br = values[1:, 1:]
    bl = values[1:, :-1]
    active = (tl != tr) | (tr != br) | (br != bl) | (bl != tl)

    segments = []
    for y, x in zip(*np.nonzero(active)):
        y, x = int(y), int(x)
        c_tl, c_tr, c_br, c_bl = tl[y, x], tr[y, x], br[y, x], bl[y, x]

        crossings = []
        if c_tl != c_tr:
            crossings.append(_edge_point("top", x, y))
        if c_tr != c_br:
            crossings.append(_edge_point("right", x, y))
        if c_br != c_bl:
            crossings.append(_edge_point("bottom", x, y))
        if c_bl != c_tl:
            crossings.append(_edge_point("left", x, y))

        if len(crossings) == 4:
            top, right, bottom, left = crossings
            if c_tl + c_br > c_tr + c_bl:
                segments.append((top, left))
                segments.append((right, bottom))
            else:
                segments.append((top, right))
                segments.append((bottom, left))
        else:
            for i in range(0, len(crossings) - 1, 2):
                segments.append((crossings[i], crossings[i + 1]))

    return segments


def _edge_key(a: NodeKey, b: NodeKey) -> Tuple[NodeKey, NodeKey]:
    return (a, b) if a < b else (b, a)


class SegmentGraph:
    """Undirected graph of boundary segments with per-edge use counts."""

    def __init__(self):
        self.points: Dict[NodeKey, Point] = {}
        # Neighbor keys per node, kept in insertion order
        self.neighbors: Dict[NodeKey, Dict[NodeKey, None]] = {}
        self.edge_use: Dict[Tuple[NodeKey, NodeKey], int] = {}

    @staticmethod
    def key(point: Point) -> NodeKey:
        return (round(point.x, KEY_DECIMALS), round(point.y, KEY_DECIMALS))

    def _add_node(self, point: Point) -> NodeKey:
        k = self.key(point)
        if k not in self.points:
            self.points[k] = point
            self.neighbors[k] = {}
        return k

    def add_segment(self, a: Point, b: Point):
        key_a = self._add_node(a)
        key_b = self._add_node(b)
        self.neighbors[key_a][key_b] = None
        self.neighbors[key_b][key_a] = None
        edge = _edge_key(key_a, key_b)
        self.edge_use[edge] = self.edge_use.get(edge, 0) + 1

    @classmethod
    def from_segments(cls, segments: List[Segment]) -> "SegmentGraph":
        graph = cls()
        for a, b in segments:
            graph.add_segment(a, b)
        return graph

    def _next_key(self, current: NodeKey, previous: Optional[NodeKey]) -> Optional[NodeKey]:
        fallback = None
        for candidate in self.neighbors[current]:
            if self.edge_use[_edge_key(current, candidate)] <= 0:
                continue
            if candidate != previous:
                return candidate
            if fallback is None:
                fallback = candidate
        return fallback

    def _walk(self, start: NodeKey) -> List[Point]:
        path = []
        current = start
        previous = None

        while True:
            path.append(self.points[current])

            nxt = self._next_key(current, previous)
            if nxt is None:
                break

            self.edge_use[_edge_key(current, nxt)] -= 1
            previous, current = current, nxt

            if current == start:
                break

        return path

    def extract_loops(self) -> List[List[Point]]:
        """
        Consume every edge, returning the walks with at least 3 points.

        A walk ends when it returns to its start node or runs out of
        unused edges; the latter happens where the subject touches the
        raster edge, and such chains are closed implicitly.
        """
        loops = []
        for start, neighbors in self.neighbors.items():
            for neighbor in neighbors:
                if self.edge_use[_edge_key(start, neighbor)] <= 0:
                    continue
                path = self._walk(start)
                if len(path) >= 3:
                    loops.append(path)
        return loops


def select_largest_loop(
    loops: List[List[Point]],
    width: int,
    height: int
) -> Optional[Polygon]:
    """Normalize loops and return the one with the largest absolute area."""
    best = None
    best_area = 0.0
    for loop in loops:
        normalized = to_normalized(loop, width, height)
        area = abs(signed_area(normalized))
        if area > best_area:
            best_area = area
            best = normalized
    return best


def trace_contour(mask: Mask) -> Polygon:
    """
    Trace the outer boundary of the subject as a normalized polygon.

    Args:
        mask: (H, W) bool mask, normally a single region

    Returns:
        Closed polygon in normalized coordinates

    Raises:
        NoClosedLoop: If no loop with at least 3 points and nonzero area exists
    """
    height, width = mask.shape[:2]
    segments = marching_squares_segments(mask)
    if not segments:
        raise NoClosedLoop("Silhouette detection failed: no boundary found.")

    loops = SegmentGraph.from_segments(segments).extract_loops()
    logger.debug(f"Traced {len(segments)} segments into {len(loops)} loops")

    contour = select_largest_loop(loops, width, height)
    if contour is None:
        raise NoClosedLoop("Silhouette detection failed: no closed loop found.")

    return contour
